"""Tests for the Op model and translator."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from bfvm.errors import ParseError, ParseErrorKind
from bfvm.ir import UNUSED, Op, Program, translate


class TestOpSymbols:
    """Test mapping between source characters and ops."""

    def test_all_eight_symbols(self):
        """Each of the eight symbols maps to a distinct op."""
        ops = [Op.from_char(ch) for ch in "><+-.,[]"]
        assert ops == [
            Op.INC_PTR, Op.DEC_PTR, Op.INC_BYTE, Op.DEC_BYTE,
            Op.OUT_BYTE, Op.IN_BYTE, Op.LOOP_START, Op.LOOP_END,
        ]
        assert len(set(ops)) == 8

    def test_comment_characters(self):
        """Non-symbol characters are comments."""
        for ch in "aZ 0\n#!;":
            assert Op.from_char(ch) is None

    def test_to_char_inverts_from_char(self):
        for op in Op:
            assert Op.from_char(op.to_char()) is op


class TestTranslate:
    """Test translation of valid programs."""

    def test_empty_source(self):
        program = translate("")
        assert len(program) == 0
        assert program.jump_table == ()

    def test_comment_only_source(self):
        program = translate("just a comment\n")
        assert len(program) == 0

    @pytest.mark.parametrize("source", [
        "+-<>.,",
        "[]",
        "+[->+<]",
        "[[][[]]]",
        ">++++++++[<+++++++++>-]<.",
    ])
    def test_ops_round_trip_to_symbols(self, source):
        """Comment-free balanced source maps back to itself."""
        assert translate(source).to_source() == source

    def test_comments_are_dropped(self):
        """Comments contribute no ops and do not shift op indices."""
        program = translate("add two: ++ then loop [ - ] done")
        assert program.to_source() == "++[-]"
        assert program.jump_table[2] == 4
        assert program.jump_table[4] == 2

    def test_jump_table_sized_to_ops(self):
        program = translate("+[>+<-]>.")
        assert len(program.jump_table) == len(program.ops)

    def test_unused_entries_at_non_loop_ops(self):
        program = translate("+[>+<-]>.")
        for i, op in enumerate(program.ops):
            if op not in (Op.LOOP_START, Op.LOOP_END):
                assert program.jump_table[i] == UNUSED

    def test_nested_loops_pair_correctly(self):
        """Inner loops pair with inner brackets."""
        program = translate("[[]]")
        assert program.jump_table == (3, 2, 1, 0)

    def test_sequential_loops(self):
        program = translate("[][]")
        assert program.jump_table == (1, 0, 3, 2)

    def test_jump_table_symmetric(self):
        """Every loop start points at a loop end that points back."""
        program = translate("+[>[-]<[>+<-]]>[.[-]]")
        for start, end in program.loop_pairs().items():
            assert program.ops[start] is Op.LOOP_START
            assert program.ops[end] is Op.LOOP_END
            assert program.jump_table[end] == start
        assert program.validate() is True

    def test_bytes_source(self):
        """Bytes are accepted and positions are byte offsets."""
        assert translate(b"+[-]").to_source() == "+[-]"
        with pytest.raises(ParseError) as excinfo:
            translate(b"\xff\xfe]")
        assert excinfo.value.position == 2

    def test_from_source_alias(self):
        assert Program.from_source("+.") == translate("+.")


class TestTranslateErrors:
    """Test bracket mismatch reporting."""

    def test_lone_open_bracket(self):
        with pytest.raises(ParseError) as excinfo:
            translate("[")
        assert excinfo.value.kind is ParseErrorKind.UNCLOSED_LOOP
        assert excinfo.value.position == 0

    def test_lone_close_bracket(self):
        with pytest.raises(ParseError) as excinfo:
            translate("]")
        assert excinfo.value.kind is ParseErrorKind.UNEXPECTED_LOOP_END
        assert excinfo.value.position == 0

    def test_position_counts_comment_characters(self):
        """Positions index the source text, not the op sequence."""
        with pytest.raises(ParseError) as excinfo:
            translate("ab+c]")
        assert excinfo.value.position == 4

    def test_unclosed_reports_innermost(self):
        """The most recently opened unmatched bracket is reported."""
        with pytest.raises(ParseError) as excinfo:
            translate("[ [ [ ] ")
        assert excinfo.value.kind is ParseErrorKind.UNCLOSED_LOOP
        assert excinfo.value.position == 2

    def test_unexpected_end_stops_scan(self):
        """First stray ] wins even if a later [ is unclosed."""
        with pytest.raises(ParseError) as excinfo:
            translate("+]\n[")
        assert excinfo.value.kind is ParseErrorKind.UNEXPECTED_LOOP_END
        assert excinfo.value.position == 1

    def test_error_message(self):
        err = ParseError(7, ParseErrorKind.UNCLOSED_LOOP)
        assert str(err) == "parse error at 7: UnclosedLoop"

    def test_error_equality(self):
        assert ParseError(1, ParseErrorKind.UNCLOSED_LOOP) == ParseError(1, ParseErrorKind.UNCLOSED_LOOP)
        assert ParseError(1, ParseErrorKind.UNCLOSED_LOOP) != ParseError(1, ParseErrorKind.UNEXPECTED_LOOP_END)


class TestProgramValidation:
    """Test validation of hand-built programs."""

    def test_translated_program_is_valid(self):
        assert translate("+[-]").validate() is True

    def test_short_jump_table(self):
        program = Program(ops=(Op.LOOP_START, Op.LOOP_END), jump_table=(1,))
        assert program.validate() is False

    def test_longer_jump_table_is_valid(self):
        """Entries past the last op are ignored."""
        program = Program(
            ops=(Op.INC_BYTE, Op.LOOP_START, Op.DEC_BYTE, Op.LOOP_END),
            jump_table=(UNUSED, 3, UNUSED, 1, UNUSED),
        )
        assert program.validate() is True

    def test_asymmetric_pairing(self):
        program = Program(
            ops=(Op.LOOP_START, Op.LOOP_END, Op.LOOP_END),
            jump_table=(1, 0, 0),
        )
        assert program.validate() is False

    def test_target_must_be_counterpart(self):
        program = Program(ops=(Op.LOOP_START, Op.INC_BYTE), jump_table=(1, 0))
        assert program.validate() is False

    def test_non_loop_entry_must_be_unused(self):
        program = Program(ops=(Op.INC_BYTE,), jump_table=(0,))
        assert program.validate() is False

    def test_reversed_brackets(self):
        program = Program(ops=(Op.LOOP_END, Op.LOOP_START), jump_table=(1, 0))
        assert program.validate() is False

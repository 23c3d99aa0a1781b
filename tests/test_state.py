"""Tests for ExecutionState and Tape."""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from bfvm.errors import TapeBoundsError
from bfvm.state import ExecutionState, Tape, create_initial_state


class TestExecutionStateCreation:
    """Test ExecutionState initialization and defaults."""

    def test_default_state(self):
        state = ExecutionState()
        assert state.ip == 0
        assert state.tape_pointer == 0
        assert state.halted is False
        assert state.step_count == 0

    def test_create_initial_state(self):
        assert create_initial_state() == ExecutionState()


class TestExecutionStateValidation:
    """Test state validation."""

    def test_valid_state(self):
        assert ExecutionState().validate(program_length=3, tape_size=10) is True

    def test_ip_one_past_end_is_valid(self):
        """Halted state sits one past the last op."""
        assert ExecutionState(ip=3).validate(program_length=3, tape_size=10) is True

    def test_negative_ip(self):
        assert ExecutionState(ip=-1).validate(program_length=3, tape_size=10) is False

    def test_pointer_outside_tape(self):
        assert ExecutionState(tape_pointer=10).validate(program_length=3, tape_size=10) is False


class TestExecutionStateImmutability:
    """Test immutable state operations."""

    def test_advance_returns_new_state(self):
        state = ExecutionState()
        new_state = state.advance()
        assert state.ip == 0  # Original unchanged
        assert new_state.ip == 1

    def test_jump(self):
        state = ExecutionState(ip=2, tape_pointer=5)
        new_state = state.jump(9)
        assert new_state.ip == 9
        assert new_state.tape_pointer == 5

    def test_move(self):
        new_state = ExecutionState(ip=4).move(7)
        assert new_state.tape_pointer == 7
        assert new_state.ip == 4

    def test_set_halted_and_step(self):
        state = ExecutionState().increment_step().set_halted()
        assert state.halted is True
        assert state.step_count == 1

    def test_frozen(self):
        state = ExecutionState()
        with pytest.raises(AttributeError):
            state.ip = 3

    def test_snapshot(self):
        state = ExecutionState(ip=1, tape_pointer=2, halted=False, step_count=3)
        assert state.snapshot() == {
            "ip": 1, "tape_pointer": 2, "halted": False, "step_count": 3,
        }

    def test_str(self):
        assert str(ExecutionState(ip=1, tape_pointer=2)) == "[Step 0] IP=1 PTR=2"
        assert str(ExecutionState(halted=True)).endswith("HALTED")


class TestTape:
    """Test the fixed-size byte tape."""

    def test_zero_initialized(self):
        tape = Tape(16)
        assert len(tape) == 16
        assert tape.dump() == bytes(16)

    @pytest.mark.parametrize("size", [0, -1, 1.5, True])
    def test_rejects_bad_size(self, size):
        with pytest.raises(ValueError):
            Tape(size)

    def test_increment_wraps(self):
        tape = Tape(1)
        tape[0] = 255
        assert tape.increment(0) == 0

    def test_decrement_wraps(self):
        tape = Tape(1)
        assert tape.decrement(0) == 255

    def test_set_rejects_out_of_range_value(self):
        tape = Tape(1)
        with pytest.raises(ValueError):
            tape[0] = 256

    def test_bounds(self):
        tape = Tape(4)
        with pytest.raises(TapeBoundsError):
            tape[4]
        with pytest.raises(TapeBoundsError):
            tape[-1]

    def test_window_clipped(self):
        tape = Tape(5)
        tape[1] = 9
        start, cells = tape.window(0, radius=2)
        assert start == 0
        assert cells == (0, 9, 0)

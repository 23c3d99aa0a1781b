"""Instruction model and translator for bfvm.

Source text is translated in a single left-to-right pass into a Program:
a tuple of Ops and a jump table with exactly one entry per op.

Symbols:
    >   move tape pointer right
    <   move tape pointer left
    +   increment cell (wraps 255 -> 0)
    -   decrement cell (wraps 0 -> 255)
    .   write cell to the byte sink
    ,   read a byte from the byte source into the cell
    [   jump past the matching ] if the cell is zero
    ]   jump back to the matching [ if the cell is nonzero

Every other character is a comment. Comments produce no op, but source
positions reported in ParseError are always character indices into the
original text.

Jump table layout:
    jump_table[loop_start] = loop_end
    jump_table[loop_end] = loop_start
    jump_table[i] = UNUSED for every other i
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .errors import ParseError, ParseErrorKind

logger = logging.getLogger(__name__)

# Jump-table entry at indices that are not loop boundaries
UNUSED = -1


class Op(Enum):
    """The eight instructions, valued by their source symbol."""
    INC_PTR = ">"
    DEC_PTR = "<"
    INC_BYTE = "+"
    DEC_BYTE = "-"
    OUT_BYTE = "."
    IN_BYTE = ","
    LOOP_START = "["
    LOOP_END = "]"

    @classmethod
    def from_char(cls, ch: str) -> Optional["Op"]:
        """Return the op for a source character, or None for a comment."""
        return _SYMBOLS.get(ch)

    def to_char(self) -> str:
        return self.value


_SYMBOLS: Dict[str, Op] = {op.value: op for op in Op}


@dataclass(frozen=True)
class Program:
    """Translated program: instruction sequence plus jump table.

    Attributes:
        ops: Instruction sequence
        jump_table: Matching-bracket index for loop ops, UNUSED elsewhere
    """
    ops: Tuple[Op, ...]
    jump_table: Tuple[int, ...]

    @classmethod
    def from_source(cls, source: Union[str, bytes]) -> "Program":
        return translate(source)

    def __len__(self) -> int:
        return len(self.ops)

    def to_source(self) -> str:
        """Map ops back to their symbols (comments are not recoverable)."""
        return "".join(op.to_char() for op in self.ops)

    def loop_pairs(self) -> Dict[int, int]:
        """Map each loop-start index to the index of its loop-end."""
        return {
            i: self.jump_table[i]
            for i, op in enumerate(self.ops)
            if op is Op.LOOP_START
        }

    def validate(self) -> bool:
        """Validate program integrity.

        Checks:
            - Every op is an Op
            - Jump table has at least one entry per op (extra entries are ignored)
            - Loop ops point at a matching counterpart that points back
            - Non-loop entries are UNUSED

        Returns:
            True if the program is safe to execute, False otherwise
        """
        if len(self.jump_table) < len(self.ops):
            return False

        size = len(self.ops)
        for i, op in enumerate(self.ops):
            if not isinstance(op, Op):
                return False

            target = self.jump_table[i]
            if op is Op.LOOP_START or op is Op.LOOP_END:
                if not isinstance(target, int) or not 0 <= target < size:
                    return False
                expected = Op.LOOP_END if op is Op.LOOP_START else Op.LOOP_START
                if self.ops[target] is not expected:
                    return False
                if self.jump_table[target] != i:
                    return False
                # A loop-start must open before its loop-end
                if (op is Op.LOOP_START) != (target > i):
                    return False
            elif target != UNUSED:
                return False

        return True


def translate(source: Union[str, bytes]) -> Program:
    """Translate source text into a Program.

    Args:
        source: Program text. Bytes are decoded as latin-1 so that reported
            positions equal byte offsets.

    Returns:
        Program with a jump table sized to the instruction sequence

    Raises:
        ParseError: UNEXPECTED_LOOP_END at the first ']' with no open '[',
            or UNCLOSED_LOOP at the innermost '[' left open at end of input
    """
    if isinstance(source, (bytes, bytearray)):
        source = bytes(source).decode("latin-1")

    ops: List[Op] = []
    jump_table: List[int] = []
    # (op index, source position) of each open '['
    loop_starts: List[Tuple[int, int]] = []

    for position, ch in enumerate(source):
        op = _SYMBOLS.get(ch)
        if op is None:
            continue

        if op is Op.LOOP_START:
            loop_starts.append((len(ops), position))
        elif op is Op.LOOP_END:
            if not loop_starts:
                raise ParseError(position, ParseErrorKind.UNEXPECTED_LOOP_END)
            loop_start, _ = loop_starts.pop()
            jump_table[loop_start] = len(ops)

        ops.append(op)
        jump_table.append(loop_start if op is Op.LOOP_END else UNUSED)

    if loop_starts:
        _, position = loop_starts[-1]
        raise ParseError(position, ParseErrorKind.UNCLOSED_LOOP)

    logger.debug(
        "translated %d chars into %d ops (%d loops)",
        len(source), len(ops), ops.count(Op.LOOP_START),
    )
    return Program(ops=tuple(ops), jump_table=tuple(jump_table))

"""Execution state and tape for bfvm.

State Components:
    - ip: Instruction pointer (index of the next op)
    - tape_pointer: Index of the selected tape cell
    - halted: Whether execution has finished (or faulted)
    - step_count: Number of ops executed

ExecutionState follows an immutable-update style: every mutation returns a
new state object, so the engine swaps in a new state only once an op has
completed and a faulting op never leaves a half-applied state behind.

The Tape is the long-lived, mutable part of the machine: a fixed-size,
zero-initialized byte array that is never resized.
"""

from dataclasses import dataclass
from typing import Tuple

from .errors import TapeBoundsError


CELL_MODULUS = 256


@dataclass(frozen=True)
class ExecutionState:
    """Resumable execution state.

    Attributes:
        ip: Instruction pointer
        tape_pointer: Index of the active tape cell
        halted: Whether the engine has stopped
        step_count: Number of ops executed so far
    """
    ip: int = 0
    tape_pointer: int = 0
    halted: bool = False
    step_count: int = 0

    def snapshot(self) -> dict:
        """Create a plain-dict snapshot of this state for tracing."""
        return {
            "ip": self.ip,
            "tape_pointer": self.tape_pointer,
            "halted": self.halted,
            "step_count": self.step_count,
        }

    def validate(self, program_length: int, tape_size: int) -> bool:
        """Validate state integrity.

        Checks:
            - ip is non-negative and at most one past the last op
            - tape_pointer is inside the tape
            - step_count is non-negative

        Returns:
            True if state is valid, False otherwise
        """
        if self.ip < 0 or self.ip > program_length:
            return False
        if not 0 <= self.tape_pointer < tape_size:
            return False
        if self.step_count < 0:
            return False
        return True

    def advance(self) -> "ExecutionState":
        """Create new state with ip incremented by 1."""
        return ExecutionState(
            ip=self.ip + 1,
            tape_pointer=self.tape_pointer,
            halted=self.halted,
            step_count=self.step_count,
        )

    def jump(self, target: int) -> "ExecutionState":
        """Create new state with ip set to target."""
        return ExecutionState(
            ip=target,
            tape_pointer=self.tape_pointer,
            halted=self.halted,
            step_count=self.step_count,
        )

    def move(self, tape_pointer: int) -> "ExecutionState":
        """Create new state selecting a different tape cell."""
        return ExecutionState(
            ip=self.ip,
            tape_pointer=tape_pointer,
            halted=self.halted,
            step_count=self.step_count,
        )

    def set_halted(self, halted: bool = True) -> "ExecutionState":
        return ExecutionState(
            ip=self.ip,
            tape_pointer=self.tape_pointer,
            halted=halted,
            step_count=self.step_count,
        )

    def increment_step(self) -> "ExecutionState":
        return ExecutionState(
            ip=self.ip,
            tape_pointer=self.tape_pointer,
            halted=self.halted,
            step_count=self.step_count + 1,
        )

    def __str__(self) -> str:
        """Human-readable state representation."""
        return (
            f"[Step {self.step_count}] IP={self.ip} PTR={self.tape_pointer}"
            f" {'HALTED' if self.halted else ''}"
        ).rstrip()


def create_initial_state() -> ExecutionState:
    """Create the state of a freshly constructed engine."""
    return ExecutionState(ip=0, tape_pointer=0, halted=False, step_count=0)


class Tape:
    """Fixed-size byte tape.

    Cells hold 0..255. Increment and decrement wrap; direct assignment of an
    out-of-range value is rejected.
    """

    def __init__(self, size: int):
        if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
            raise ValueError(f"tape size must be a positive integer, got {size!r}")
        self._cells = bytearray(size)

    @property
    def size(self) -> int:
        return len(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def check(self, index: int) -> int:
        """Return index unchanged if it addresses a cell.

        Raises:
            TapeBoundsError: If index is outside [0, size)
        """
        if not 0 <= index < len(self._cells):
            raise TapeBoundsError(index, len(self._cells))
        return index

    def __getitem__(self, index: int) -> int:
        return self._cells[self.check(index)]

    def __setitem__(self, index: int, value: int) -> None:
        if not 0 <= value < CELL_MODULUS:
            raise ValueError(f"cell value must be in 0..255, got {value}")
        self._cells[self.check(index)] = value

    def increment(self, index: int) -> int:
        value = (self[index] + 1) % CELL_MODULUS
        self._cells[index] = value
        return value

    def decrement(self, index: int) -> int:
        value = (self[index] - 1) % CELL_MODULUS
        self._cells[index] = value
        return value

    def window(self, center: int, radius: int = 8) -> Tuple[int, Tuple[int, ...]]:
        """Return (start index, cells) around center, clipped to the tape."""
        start = max(0, center - radius)
        end = min(len(self._cells), center + radius + 1)
        return start, tuple(self._cells[start:end])

    def dump(self) -> bytes:
        """Copy of the whole tape."""
        return bytes(self._cells)

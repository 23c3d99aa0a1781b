"""Error hierarchy for bfvm.

Translation failures carry the source position of the offending bracket.
Execution faults carry the instruction pointer of the instruction that
faulted; the engine state is left exactly as it was before that instruction.
"""

from enum import Enum
from typing import Optional


class BFVMError(Exception):
    """Base class for all bfvm errors."""


class ParseErrorKind(Enum):
    """Kinds of translation failure."""
    UNCLOSED_LOOP = "UnclosedLoop"
    UNEXPECTED_LOOP_END = "UnexpectedLoopEnd"


class ParseError(BFVMError):
    """Source text could not be translated.

    Attributes:
        position: Index into the source's character sequence
        kind: ParseErrorKind
    """

    def __init__(self, position: int, kind: ParseErrorKind):
        self.position = position
        self.kind = kind
        super().__init__(f"parse error at {position}: {kind.value}")

    def __eq__(self, other):
        if not isinstance(other, ParseError):
            return NotImplemented
        return (self.position, self.kind) == (other.position, other.kind)

    def __hash__(self):
        return hash((self.position, self.kind))

    def __repr__(self) -> str:
        return f"ParseError(position={self.position}, kind={self.kind.name})"


class ExecutionError(BFVMError):
    """Fault raised while stepping a program.

    Attributes:
        ip: Instruction pointer of the faulting instruction (None if unknown)
    """

    def __init__(self, message: str, ip: Optional[int] = None):
        self.ip = ip
        super().__init__(message)


class TapeBoundsError(ExecutionError):
    """Tape pointer moved outside [0, tape_size)."""

    def __init__(self, pointer: int, tape_size: int, ip: Optional[int] = None):
        self.pointer = pointer
        self.tape_size = tape_size
        where = f" at ip {ip}" if ip is not None else ""
        super().__init__(
            f"tape pointer {pointer} out of bounds for tape of size {tape_size}{where}",
            ip=ip,
        )


class EngineIOError(ExecutionError):
    """A byte port failed; the original error is chained as __cause__."""


class StepLimitExceeded(ExecutionError):
    """run() hit its max_steps limit before the program finished."""

    def __init__(self, limit: int, ip: Optional[int] = None):
        self.limit = limit
        super().__init__(f"Max steps ({limit}) exceeded", ip=ip)


class PortError(BFVMError):
    """Raised by a byte sink or source that cannot complete its operation."""


class EndOfInput(PortError):
    """Byte source has no more bytes to produce."""

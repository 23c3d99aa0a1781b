"""bfvm: Translator and stepping interpreter for an eight-op byte-tape language.

Programs are translated once into a flat op sequence with a precomputed
jump table, then executed one op at a time against a fixed-size byte tape.
All I/O goes through caller-supplied byte ports.

Architecture:
    SOURCE -> TRANSLATE -> PROGRAM -> ENGINE.step() -> REGISTRY -> TAPE/PORTS
                 |            |             |             |
            [bracket     [ops +       [ip, tape      [Verified
             matching]   jump table]   pointer]       primitives]

Modules:
    errors: ParseError, TapeBoundsError, EngineIOError and friends
    ir: Op enum, Program and the translator
    state: ExecutionState dataclass and Tape
    registry: Verified op primitives (one handler per op)
    ports: Byte sink/source protocols and implementations
    engine: ExecutionEngine orchestrator
    cli: Command-line front end
"""

__version__ = "0.1.0"

from .errors import (
    BFVMError,
    EndOfInput,
    EngineIOError,
    ExecutionError,
    ParseError,
    ParseErrorKind,
    PortError,
    StepLimitExceeded,
    TapeBoundsError,
)
from .ir import Op, Program, translate
from .state import ExecutionState, Tape
from .registry import OpRegistry
from .ports import BufferSink, BytesSource, ByteSink, ByteSource
from .engine import DEFAULT_TAPE_SIZE, ExecutionEngine

__all__ = [
    "BFVMError",
    "EndOfInput",
    "EngineIOError",
    "ExecutionError",
    "ParseError",
    "ParseErrorKind",
    "PortError",
    "StepLimitExceeded",
    "TapeBoundsError",
    "Op",
    "Program",
    "translate",
    "ExecutionState",
    "Tape",
    "OpRegistry",
    "BufferSink",
    "BytesSource",
    "ByteSink",
    "ByteSource",
    "DEFAULT_TAPE_SIZE",
    "ExecutionEngine",
]

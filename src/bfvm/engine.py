"""ExecutionEngine: stepping interpreter for translated programs.

Each step performs:
    FETCH (op at ip) -> DISPATCH (registry handler) -> ADVANCE (ip += 1)

The engine has two states. It is Running while ip addresses an op and
Halted once ip reaches the end of the program or an op faults. Halted is
final: step() keeps returning False without touching the tape or the ports.

A fault (TapeBoundsError, EngineIOError) is raised to the caller after the
engine has marked itself Halted. The faulting op is not applied: ip, tape
pointer, tape and step count stay exactly as they were before it.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, TextIO, Union

from .errors import ExecutionError, StepLimitExceeded
from .ir import Op, Program, translate
from .ports import BufferSink, ByteSink, ByteSource, NullSource
from .registry import OpRegistry, get_registry
from .state import ExecutionState, Tape, create_initial_state

logger = logging.getLogger(__name__)

# Standard tape size for the language
DEFAULT_TAPE_SIZE = 30_000


@dataclass
class ExecutionTraceEntry:
    """Single entry in the execution trace.

    Attributes:
        step: Step number (0-indexed)
        ip: Instruction pointer of the executed op
        op: Executed op
        pre_state: State before execution
        post_state: State after execution
        cell_before: Active cell value before execution
        cell_after: Value of the same cell after execution
        error: Error message if the op faulted
    """
    step: int
    ip: int
    op: Op
    pre_state: dict
    post_state: dict
    cell_before: int
    cell_after: int
    error: Optional[str] = None


class ExecutionEngine:
    """Runs a Program against a fixed-size byte tape.

    The sink and source are borrowed from the caller for the lifetime of the
    engine; see bfvm.ports for the contract.

    Attributes:
        program: Translated program (read-only)
        tape: Tape owned by this engine
        sink: Byte sink used by '.'
        source: Byte source used by ','
        registry: OpRegistry with the verified op primitives
        state: Current execution state
        fault: Error that halted the engine, if any
        trace: Execution trace entries (only filled when record_trace=True)
    """

    def __init__(
        self,
        program: Union[Program, str, bytes],
        tape_size: int = DEFAULT_TAPE_SIZE,
        sink: Optional[ByteSink] = None,
        source: Optional[ByteSource] = None,
        record_trace: bool = False,
    ):
        """Initialize the engine.

        Args:
            program: Program, or source text to translate
            tape_size: Number of tape cells (positive)
            sink: Byte sink (defaults to an in-memory BufferSink)
            source: Byte source (defaults to NullSource, which fails on read)
            record_trace: Record an ExecutionTraceEntry per step

        Raises:
            ParseError: If program is source text that does not translate
            ValueError: If tape_size is not positive or program is malformed
        """
        if isinstance(program, (str, bytes, bytearray)):
            program = translate(program)
        if not isinstance(program, Program) or not program.validate():
            raise ValueError("program has an inconsistent jump table")

        self.program = program
        self.tape = Tape(tape_size)
        self.sink = sink if sink is not None else BufferSink()
        self.source = source if source is not None else NullSource()
        self.registry: OpRegistry = get_registry()
        self.state: ExecutionState = create_initial_state()
        self.fault: Optional[ExecutionError] = None
        self.record_trace = record_trace
        self.trace: List[ExecutionTraceEntry] = []

        logger.debug("engine ready: %d ops, tape of %d cells", len(program), tape_size)

    @classmethod
    def from_source(
        cls,
        source_text: Union[str, bytes],
        tape_size: int = DEFAULT_TAPE_SIZE,
        sink: Optional[ByteSink] = None,
        source: Optional[ByteSource] = None,
        record_trace: bool = False,
    ) -> "ExecutionEngine":
        """Translate source_text and build an engine for it.

        Raises:
            ParseError: If translation fails
        """
        return cls(
            translate(source_text),
            tape_size=tape_size,
            sink=sink,
            source=source,
            record_trace=record_trace,
        )

    def step(self) -> bool:
        """Execute a single op.

        Returns:
            True if another op remains to be executed, False once halted

        Raises:
            TapeBoundsError: If the op moves the tape pointer off the tape
            EngineIOError: If a port fails
        """
        if self.state.halted:
            return False

        ip = self.state.ip
        if ip >= len(self.program):
            self._halt(self.state)
            return False

        op = self.program.ops[ip]
        pointer = self.state.tape_pointer
        cell_before = self.tape[pointer]
        pre_state = self.state.snapshot() if self.record_trace else {}

        try:
            new_state = self.registry.execute(self, self.state, op)
        except ExecutionError as e:
            self.fault = e
            self.state = self.state.set_halted(True)
            logger.error("execution fault at ip %d (%s): %s", ip, op.to_char(), e)
            if self.record_trace:
                self.trace.append(ExecutionTraceEntry(
                    step=self.state.step_count,
                    ip=ip,
                    op=op,
                    pre_state=pre_state,
                    post_state=self.state.snapshot(),
                    cell_before=cell_before,
                    cell_after=self.tape[pointer],
                    error=str(e),
                ))
            raise

        if self.record_trace:
            self.trace.append(ExecutionTraceEntry(
                step=self.state.step_count,
                ip=ip,
                op=op,
                pre_state=pre_state,
                post_state=new_state.snapshot(),
                cell_before=cell_before,
                cell_after=self.tape[pointer],
            ))

        if new_state.ip >= len(self.program):
            self._halt(new_state)
            return False

        self.state = new_state
        return True

    def run(self, max_steps: Optional[int] = None) -> List[ExecutionTraceEntry]:
        """Run until the program halts.

        Args:
            max_steps: Stop with StepLimitExceeded after this many steps in
                this call (None runs without limit)

        Returns:
            Execution trace (empty unless record_trace=True)

        Raises:
            StepLimitExceeded: If max_steps ran out first; the engine is left
                Running and may be resumed
        """
        if max_steps is not None and max_steps < 0:
            raise ValueError(f"max_steps must be non-negative, got {max_steps}")

        executed = 0
        while not self.is_halted():
            if max_steps is not None and executed >= max_steps:
                raise StepLimitExceeded(max_steps, ip=self.state.ip)
            if not self.step():
                break
            executed += 1

        return self.trace

    def _halt(self, state: ExecutionState) -> None:
        self.state = state.set_halted(True)
        logger.debug("halted after %d steps", self.state.step_count)

    # =========================================================================
    # Inspection
    # =========================================================================

    def get_ip(self) -> int:
        return self.state.ip

    def get_tape_pointer(self) -> int:
        return self.state.tape_pointer

    def get_step_count(self) -> int:
        return self.state.step_count

    def current_cell(self) -> int:
        """Value of the cell under the tape pointer."""
        return self.tape[self.state.tape_pointer]

    def is_halted(self) -> bool:
        """Check if the engine has no more work.

        True once halted, and also before the first step of an empty program.
        """
        return self.state.halted or self.state.ip >= len(self.program)

    def get_summary(self) -> Dict:
        """Get execution summary.

        Returns:
            Dictionary with execution statistics and final state
        """
        return {
            "steps": self.get_step_count(),
            "halted": self.is_halted(),
            "ip": self.get_ip(),
            "tape_pointer": self.get_tape_pointer(),
            "current_cell": self.current_cell(),
            "program_length": len(self.program),
            "tape_size": self.tape.size,
            "trace_length": len(self.trace),
            "fault": str(self.fault) if self.fault else None,
        }

    def format_trace(self, limit: Optional[int] = None) -> str:
        """Render the recorded trace, one line per step."""
        entries = self.trace if limit is None else self.trace[:limit]
        lines = []
        for entry in entries:
            line = (
                f"[Step {entry.step}] ip={entry.ip} op={entry.op.to_char()}"
                f" ptr={entry.pre_state.get('tape_pointer', '?')}"
                f" -> {entry.post_state.get('tape_pointer', '?')}"
            )
            if entry.cell_before != entry.cell_after:
                line += f" cell {entry.cell_before} -> {entry.cell_after}"
            if entry.pre_state.get("ip", entry.ip) + 1 != entry.post_state.get("ip", entry.ip + 1):
                line += f" jump -> {entry.post_state['ip']}"
            if entry.error:
                line += f" ERROR: {entry.error}"
            lines.append(line)
        if limit is not None and len(self.trace) > limit:
            lines.append(f"... ({len(self.trace) - limit} more entries)")
        return "\n".join(lines)

    def print_trace(self, file: Optional[TextIO] = None) -> None:
        """Print execution trace and final state in human-readable format."""
        out = file if file is not None else sys.stdout
        print("=" * 70, file=out)
        print("EXECUTION TRACE", file=out)
        print("=" * 70, file=out)
        if self.trace:
            print(self.format_trace(), file=out)

        print("\n" + "=" * 70, file=out)
        print("FINAL STATE", file=out)
        print("=" * 70, file=out)
        summary = self.get_summary()
        print(f"  IP: {summary['ip']}", file=out)
        print(f"  Tape pointer: {summary['tape_pointer']}", file=out)
        print(f"  Current cell: {summary['current_cell']}", file=out)
        print(f"  Steps: {summary['steps']}", file=out)
        print(f"  Halted: {summary['halted']}", file=out)
        if summary["fault"]:
            print(f"  Fault: {summary['fault']}", file=out)

"""OpRegistry: Verified op primitives for bfvm.

This module implements the registry pattern for the eight ops: each op is
bound to exactly one handler that transforms execution state in a
predictable, auditable way.

Registry Keys:
    Op.INC_PTR: Select the next tape cell
    Op.DEC_PTR: Select the previous tape cell
    Op.INC_BYTE: Wrapping increment of the active cell
    Op.DEC_BYTE: Wrapping decrement of the active cell
    Op.OUT_BYTE: Send the active cell to the byte sink
    Op.IN_BYTE: Overwrite the active cell from the byte source
    Op.LOOP_START: Jump to the matching loop end if the cell is zero
    Op.LOOP_END: Jump to the matching loop start if the cell is nonzero

Each handler has the shape (engine, ExecutionState) -> ExecutionState.
Handlers may mutate the tape and invoke ports; they never advance ip.
The registry applies the single unconditional ip advance after the handler
returns, so a jump lands on the matching bracket and execution continues
just past it.
"""

from typing import Callable, Dict, Optional, TYPE_CHECKING

from .errors import EngineIOError, PortError, TapeBoundsError
from .ir import Op
from .state import CELL_MODULUS, ExecutionState

if TYPE_CHECKING:
    from .engine import ExecutionEngine

Handler = Callable[["ExecutionEngine", ExecutionState], ExecutionState]


class OpRegistry:
    """Verified registry of op primitives.

    The registry is frozen after initialization; freezing fails unless
    every Op has a handler.

    Attributes:
        _primitives: Dictionary mapping ops to handler functions
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        """Initialize registry with all op primitives."""
        self._primitives: Dict[Op, Handler] = {}
        self._frozen = False
        self._register_all_primitives()
        self.freeze()

    def _register_all_primitives(self) -> None:
        # Pointer movement
        self.register(Op.INC_PTR, self._op_inc_ptr)
        self.register(Op.DEC_PTR, self._op_dec_ptr)

        # Cell arithmetic
        self.register(Op.INC_BYTE, self._op_inc_byte)
        self.register(Op.DEC_BYTE, self._op_dec_byte)

        # I/O
        self.register(Op.OUT_BYTE, self._op_out_byte)
        self.register(Op.IN_BYTE, self._op_in_byte)

        # Control flow
        self.register(Op.LOOP_START, self._op_loop_start)
        self.register(Op.LOOP_END, self._op_loop_end)

    def register(self, op: Op, handler: Handler) -> None:
        """Register a primitive.

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If op already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register primitives: registry is frozen")
        if op in self._primitives:
            raise ValueError(f"Primitive already registered: {op}")
        self._primitives[op] = handler

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications.

        Raises:
            RuntimeError: If any op is missing a handler
        """
        missing = [op.name for op in Op if op not in self._primitives]
        if missing:
            raise RuntimeError(f"No handler registered for: {', '.join(missing)}")
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def get_valid_ops(self) -> set:
        return set(self._primitives.keys())

    def execute(self, engine: "ExecutionEngine", state: ExecutionState, op: Op) -> ExecutionState:
        """Execute one op and advance.

        Args:
            engine: Engine owning the program, tape and ports
            state: State before the op
            op: Op at state.ip

        Returns:
            New state with ip advanced and step count incremented

        Raises:
            KeyError: If op not in registry
            TapeBoundsError: If the op moves the tape pointer off the tape
            EngineIOError: If a port fails
        """
        if op not in self._primitives:
            raise KeyError(f"Unknown op: {op}")

        handler = self._primitives[op]
        new_state = handler(engine, state)

        return new_state.advance().increment_step()

    # =========================================================================
    # Pointer Movement
    # =========================================================================

    def _op_inc_ptr(self, engine: "ExecutionEngine", state: ExecutionState) -> ExecutionState:
        return self._move(engine, state, state.tape_pointer + 1)

    def _op_dec_ptr(self, engine: "ExecutionEngine", state: ExecutionState) -> ExecutionState:
        return self._move(engine, state, state.tape_pointer - 1)

    # =========================================================================
    # Cell Arithmetic
    # =========================================================================

    def _op_inc_byte(self, engine: "ExecutionEngine", state: ExecutionState) -> ExecutionState:
        """+ : 255 wraps to 0."""
        engine.tape.increment(state.tape_pointer)
        return state

    def _op_dec_byte(self, engine: "ExecutionEngine", state: ExecutionState) -> ExecutionState:
        """- : 0 wraps to 255."""
        engine.tape.decrement(state.tape_pointer)
        return state

    # =========================================================================
    # I/O
    # =========================================================================

    def _op_out_byte(self, engine: "ExecutionEngine", state: ExecutionState) -> ExecutionState:
        """. : sink receives the cell value exactly once."""
        value = engine.tape[state.tape_pointer]
        try:
            engine.sink.write_byte(value)
        except (PortError, OSError) as e:
            raise EngineIOError(f"byte sink failed at ip {state.ip}: {e}", ip=state.ip) from e
        return state

    def _op_in_byte(self, engine: "ExecutionEngine", state: ExecutionState) -> ExecutionState:
        """, : cell is overwritten only once the source has produced a byte."""
        try:
            value = engine.source.read_byte()
        except (PortError, OSError) as e:
            raise EngineIOError(f"byte source failed at ip {state.ip}: {e}", ip=state.ip) from e

        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value < CELL_MODULUS:
            raise EngineIOError(
                f"byte source produced {value!r} at ip {state.ip}, expected 0..255",
                ip=state.ip,
            )

        engine.tape[state.tape_pointer] = value
        return state

    # =========================================================================
    # Control Flow
    # =========================================================================

    def _op_loop_start(self, engine: "ExecutionEngine", state: ExecutionState) -> ExecutionState:
        if engine.tape[state.tape_pointer] == 0:
            return state.jump(engine.program.jump_table[state.ip])
        return state

    def _op_loop_end(self, engine: "ExecutionEngine", state: ExecutionState) -> ExecutionState:
        if engine.tape[state.tape_pointer] != 0:
            return state.jump(engine.program.jump_table[state.ip])
        return state

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _move(self, engine: "ExecutionEngine", state: ExecutionState, pointer: int) -> ExecutionState:
        if not 0 <= pointer < engine.tape.size:
            raise TapeBoundsError(pointer, engine.tape.size, ip=state.ip)
        return state.move(pointer)


# Singleton registry instance
_registry: Optional[OpRegistry] = None


def get_registry() -> OpRegistry:
    """Get the singleton op registry instance."""
    global _registry
    if _registry is None:
        _registry = OpRegistry()
    return _registry

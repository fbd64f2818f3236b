import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from constants.constants import EXECUTION_REVERTED, ZERO_ADDRESS
from explorer.enums.call_type import CallType
from explorer.mappers.trace_serializer import TraceEncodeError, TraceSerializer
from explorer.models.call_frame import CallFrame, CallLog
from explorer.service.revert_reason_service import RevertReasonService
from explorer.tracers.block_calls_tracer_config import BlockCallsTracerConfig
from utils.logger_utils import get_logger

logger = get_logger("Block Calls Tracer")


class BlockCallsTracer(object):
    """
    Collects the call tree of every transaction of one block.

    The execution engine drives the ``on_*`` hooks from a single thread, in
    strict depth-first order: ``on_block_start`` once, then per transaction
    ``on_tx_start``, nested ``on_enter``/``on_exit`` pairs interleaved with
    ``on_log``, and ``on_tx_end``. Out-of-order callbacks are absorbed, never
    raised back into the engine. ``stop`` may be called from any thread.
    """

    def __init__(self, config: Optional[BlockCallsTracerConfig] = None):
        self.config = config or BlockCallsTracerConfig()

        self._root_frames: List[CallFrame] = []
        # Open frames of the running transaction, root first, and the depth each was entered at
        self._callstack: Optional[List[CallFrame]] = None
        self._callstack_depths: List[int] = []
        # Depth of a malformed scope that was dropped, its sub-scopes are dropped with it
        self._dropped_depth: Optional[int] = None
        self._root_closed = False
        self._gas_limit = 0
        self._depth = 0

        self._interrupt = threading.Event()
        self._reason: Optional[BaseException] = None

    def hooks(self) -> Dict[str, Callable[..., Any]]:
        return {
            "on_block_start": self.on_block_start,
            "on_tx_start": self.on_tx_start,
            "on_enter": self.on_enter,
            "on_exit": self.on_exit,
            "on_log": self.on_log,
            "on_tx_end": self.on_tx_end,
        }

    @property
    def root_frames(self) -> List[CallFrame]:
        return list(self._root_frames)

    @property
    def open_frame_count(self) -> int:
        return len(self._callstack) if self._callstack is not None else 0

    @property
    def interrupted(self) -> bool:
        return self._interrupt.is_set()

    def on_block_start(self) -> None:
        self._root_frames = []
        self._reset_callstack()
        self._reason = None
        self._interrupt.clear()

    def on_tx_start(self, gas_limit: int) -> None:
        if self._callstack is not None:
            logger.debug("Transaction started before the previous one ended, discarding its call stack")
        # Placeholder root, filled in by on_enter(depth=0)
        self._callstack = [CallFrame(type=CallType.CALL, from_address=ZERO_ADDRESS, gas=gas_limit)]
        self._callstack_depths = [0]
        self._dropped_depth = None
        self._root_closed = False
        self._gas_limit = gas_limit
        self._depth = 0

    def on_enter(
        self,
        depth: int,
        call_type: CallType | int,
        from_address: str | bytes,
        to_address: str | bytes | None,
        input_data: bytes | None,
        gas: int,
        value: Optional[int],
    ) -> None:
        self._depth = depth
        if self.config.only_top_call and depth > 0:
            return
        if self._interrupt.is_set():
            return
        if self._callstack is None:
            logger.debug(f"Ignoring scope entered at depth {depth} outside of a transaction")
            return
        if self._dropped_depth is not None and depth > self._dropped_depth:
            return

        try:
            frame = CallFrame(
                type=call_type if isinstance(call_type, CallType) else CallType.from_opcode(call_type),
                from_address=from_address,
                to_address=to_address,
                # The engine reuses its memory buffers
                input=bytes(input_data or b""),
                gas=gas,
                value=value,
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed call scope at depth {depth}: {e}")
            self._dropped_depth = depth
            return

        if depth == 0:
            # Top-level gas is the transaction gas limit, not what is left for the scope
            frame.gas = self._gas_limit
            self._callstack = [frame]
            self._callstack_depths = [0]
            return

        self._callstack.append(frame)
        self._callstack_depths.append(depth)

    def on_exit(
        self,
        depth: int,
        output: bytes | None,
        gas_used: int,
        error: BaseException | str | None = None,
        reverted: bool = False,
    ) -> None:
        if depth == 0:
            self._dropped_depth = None
            self._capture_end(output, gas_used, error, reverted)
            return

        self._depth = depth - 1
        if self._dropped_depth is not None and depth >= self._dropped_depth:
            if depth == self._dropped_depth:
                self._dropped_depth = None
            return
        if self.config.only_top_call:
            return
        if self._callstack is None or len(self._callstack) <= 1:
            return
        # Scopes entered while interrupted were never pushed
        if self._callstack_depths[-1] != depth:
            return

        frame = self._callstack.pop()
        self._callstack_depths.pop()
        frame.gas_used = gas_used
        _process_output(frame, output, error, reverted)
        self._callstack[-1].calls.append(frame)

    def on_log(self, address: str | bytes, topics: Iterable[str | bytes], data: bytes | None) -> None:
        if not self.config.with_log:
            return
        if self.config.only_top_call and self._depth > 0:
            return
        if self._interrupt.is_set():
            return
        if not self._callstack or self._dropped_depth is not None:
            return

        frame = self._callstack[-1]
        try:
            log = CallLog(
                address=address,
                topics=list(topics),
                data=bytes(data or b""),
                position=len(frame.calls),
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed log at depth {self._depth}: {e}")
            return
        frame.logs.append(log)

    def on_tx_end(self, gas_used: int, error: BaseException | str | None = None) -> None:
        if self._callstack is None:
            logger.debug("Transaction ended without having started")
            return
        # Validation failed before execution, the transaction leaves no trace
        if error is not None:
            self._reset_callstack()
            return

        if len(self._callstack) > 1:
            logger.debug(f"Discarding {len(self._callstack) - 1} call frames that never exited")
        root = self._callstack[0]
        root.gas_used = gas_used
        if self.config.with_log:
            _clear_failed_logs(root)
        self._root_frames.append(root)
        self._reset_callstack()

    def get_result(self) -> Tuple[Optional[bytes], Optional[BaseException]]:
        """
        Returns the encoded call trees of the block and the reason passed to
        ``stop``, if tracing was interrupted.

        An encoding failure is returned as a ``TraceEncodeError`` in place of
        the reason, with no trace bytes. Its message carries the interruption
        reason, if any.
        """
        try:
            trace_data = TraceSerializer.encode(self._root_frames)
        except TraceEncodeError as e:
            if self._reason is None:
                return None, e
            return None, TraceEncodeError(f"{e} (tracing was interrupted: {self._reason})")
        return trace_data, self._reason

    def stop(self, reason: BaseException) -> None:
        if self._interrupt.is_set():
            return
        self._reason = reason
        self._interrupt.set()

    def _capture_end(
        self, output: bytes | None, gas_used: int, error: BaseException | str | None, reverted: bool
    ) -> None:
        if self._callstack is None or len(self._callstack) != 1 or self._root_closed:
            return
        root = self._callstack[0]
        root.gas_used = gas_used
        _process_output(root, output, error, reverted)
        self._root_closed = True

    def _reset_callstack(self) -> None:
        self._callstack = None
        self._callstack_depths = []
        self._dropped_depth = None
        self._root_closed = False


def _process_output(frame: CallFrame, output: bytes | None, error: BaseException | str | None, reverted: bool) -> None:
    output = bytes(output or b"")
    # Errors that did not revert the scope (pre-homestead storage OOG on create) do not count
    if error is not None and not reverted:
        error = None
    if error is None:
        frame.output = output
        return

    message = str(error)
    frame.error = message
    if frame.type.is_create:
        frame.to_address = None
    if message != EXECUTION_REVERTED or not output:
        return
    frame.output = output
    frame.revert_reason = RevertReasonService.unpack_revert(output)


def _clear_failed_logs(root: CallFrame) -> None:
    pending = [(root, False)]
    while pending:
        frame, parent_failed = pending.pop()
        failed = frame.failed or parent_failed
        if failed:
            frame.logs = []
        pending.extend((call, failed) for call in frame.calls)

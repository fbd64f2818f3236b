import re
from typing import Any, Dict, List, Sequence, Tuple, Union

import orjson
from pydantic import ValidationError

from explorer.mappers.call_frame_mapper import CallFrameMapper
from explorer.models.call_frame import CallFrame

# One JSON token, after optional whitespace: punctuation, string, number or literal
_JSON_TOKEN = re.compile(
    r'\s*(?:([\[\]{}:,])|("(?:[^"\\]|\\.)*")|(-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?)|(true|false|null))',
    re.DOTALL,
)

_EXPECT_VALUE = "value"
_EXPECT_VALUE_OR_CLOSE = "value or ]"
_EXPECT_KEY = "key"
_EXPECT_KEY_OR_CLOSE = "key or }"
_EXPECT_COLON = ":"
_EXPECT_COMMA_OR_CLOSE = ", or closing bracket"
_EXPECT_END = "end of data"


class TraceDecodeError(ValueError):
    """Raised when trace bytes are not a well-formed list of per-transaction call stacks."""


class TraceEncodeError(ValueError):
    """Raised when call trees cannot be encoded, for instance on a negative gas or value."""


class TraceSerializer(object):
    """
    Encodes a block's call trees as a JSON array with one entry per executed
    transaction. Each entry is that transaction's call stack, an array holding
    exactly its root frame, with sub-calls nested depth-first under "calls".

    Call trees can nest as deep as the EVM call depth limit, beyond what orjson
    nests. Frames are therefore written one at a time and nested with an
    explicit stack, and decoding falls back to a stack-based reader when
    orjson refuses the nesting.
    """

    @staticmethod
    def encode(root_frames: Sequence[CallFrame]) -> bytes:
        buffer = bytearray(b"[")
        for tx_index, root in enumerate(root_frames):
            if tx_index:
                buffer += b","
            buffer += b"["
            try:
                _write_frame(buffer, root)
            except (TypeError, ValueError) as e:
                raise TraceEncodeError(f"Could not encode call tree of transaction {tx_index}: {e}") from e
            buffer += b"]"
        buffer += b"]"
        return bytes(buffer)

    @staticmethod
    def decode(trace_data: bytes | str) -> List[CallFrame]:
        try:
            callstacks = orjson.loads(trace_data)
        except orjson.JSONDecodeError:
            # Either malformed or nested deeper than orjson accepts
            try:
                callstacks = _load_json(trace_data)
            except ValueError as e:
                raise TraceDecodeError(f"Trace data is not valid JSON: {e}") from e

        if not isinstance(callstacks, list):
            raise TraceDecodeError(f"Trace data must be an array, got {type(callstacks).__name__}")

        return [TraceSerializer._decode_callstack(tx_index, callstack) for tx_index, callstack in enumerate(callstacks)]

    @staticmethod
    def _decode_callstack(tx_index: int, callstack: Any) -> CallFrame:
        if not isinstance(callstack, list) or len(callstack) != 1:
            raise TraceDecodeError(f"Call stack of transaction {tx_index} must be an array holding one root frame")
        try:
            return _read_frame(callstack[0])
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise TraceDecodeError(f"Malformed call frame in transaction {tx_index}: {e!r}") from e


def _write_frame(buffer: bytearray, root: CallFrame) -> None:
    # Items are frames still to write or closing tokens, popped in document order
    pending: List[Union[CallFrame, bytes]] = [root]
    while pending:
        item = pending.pop()
        if isinstance(item, bytes):
            buffer += item
            continue

        frame_json = orjson.dumps(CallFrameMapper.call_frame_to_dict(item))
        if not item.calls:
            buffer += frame_json
            continue

        # Reopen the frame object to append its calls
        buffer += frame_json[:-1]
        buffer += b',"calls":['
        pending.append(b"]}")
        for call_index in range(len(item.calls) - 1, -1, -1):
            pending.append(item.calls[call_index])
            if call_index:
                pending.append(b",")


def _read_frame(root_dict: Dict[str, Any]) -> CallFrame:
    root = CallFrameMapper.dict_to_call_frame(root_dict)
    pending: List[Tuple[CallFrame, Dict[str, Any]]] = [(root, root_dict)]
    while pending:
        frame, frame_dict = pending.pop()
        for call_dict in frame_dict.get("calls", []):
            call = CallFrameMapper.dict_to_call_frame(call_dict)
            frame.calls.append(call)
            pending.append((call, call_dict))
    return root


def _load_json(data: bytes | str) -> Any:
    """
    Parses a JSON document keeping open arrays and objects on an explicit
    stack, so nesting depth is bounded by memory only. Scalars are decoded
    by orjson. Raises ValueError on malformed input.
    """
    text = bytes(data).decode("utf-8") if isinstance(data, (bytes, bytearray, memoryview)) else data
    if not isinstance(text, str):
        raise ValueError(f"Expected bytes or str, got {type(data).__name__}")
    # Open containers with the key awaiting a value, for objects
    stack: List[List[Any]] = []
    result: List[Any] = []
    expect = _EXPECT_VALUE
    position = 0

    def add_value(value: Any) -> str:
        if not stack:
            result.append(value)
            return _EXPECT_END
        container, key = stack[-1]
        if isinstance(container, list):
            container.append(value)
        else:
            container[key] = value
        return _EXPECT_COMMA_OR_CLOSE

    while True:
        match = _JSON_TOKEN.match(text, position)
        if match is None:
            if text[position:].strip():
                raise ValueError(f"Unexpected character at position {position}")
            if expect != _EXPECT_END:
                raise ValueError(f"Unexpected end of data, expected {expect}")
            return result[0]

        position = match.end()
        punctuation, string, number, literal = match.groups()

        if punctuation in ("[", "{"):
            if expect not in (_EXPECT_VALUE, _EXPECT_VALUE_OR_CLOSE):
                raise ValueError(f"Unexpected {punctuation!r} at position {position - 1}, expected {expect}")
            container: Any = [] if punctuation == "[" else {}
            add_value(container)
            stack.append([container, None])
            expect = _EXPECT_VALUE_OR_CLOSE if punctuation == "[" else _EXPECT_KEY_OR_CLOSE
        elif punctuation in ("]", "}"):
            closes_list = punctuation == "]"
            allowed = (_EXPECT_VALUE_OR_CLOSE if closes_list else _EXPECT_KEY_OR_CLOSE, _EXPECT_COMMA_OR_CLOSE)
            if not stack or isinstance(stack[-1][0], list) != closes_list or expect not in allowed:
                raise ValueError(f"Unexpected {punctuation!r} at position {position - 1}, expected {expect}")
            stack.pop()
            expect = _EXPECT_COMMA_OR_CLOSE if stack else _EXPECT_END
        elif punctuation == ",":
            if expect != _EXPECT_COMMA_OR_CLOSE:
                raise ValueError(f"Unexpected ',' at position {position - 1}, expected {expect}")
            expect = _EXPECT_VALUE if isinstance(stack[-1][0], list) else _EXPECT_KEY
        elif punctuation == ":":
            if expect != _EXPECT_COLON:
                raise ValueError(f"Unexpected ':' at position {position - 1}, expected {expect}")
            expect = _EXPECT_VALUE
        elif string is not None and expect in (_EXPECT_KEY, _EXPECT_KEY_OR_CLOSE):
            stack[-1][1] = orjson.loads(string)
            expect = _EXPECT_COLON
        elif expect in (_EXPECT_VALUE, _EXPECT_VALUE_OR_CLOSE):
            expect = add_value(orjson.loads(string or number or literal))
        else:
            raise ValueError(f"Unexpected token at position {match.start()}, expected {expect}")

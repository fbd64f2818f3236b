# MIT License
#
# Copyright (c) 2018 Evgeniy Filatov, evgeniyfilatov@gmail.com
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
# Modified By: Cuong CT, 19/10/2026
# Change Description: Maps callTracer-style frames to and from JSON dicts, one frame at a time.

from typing import Any, Dict

from explorer.enums.call_type import CallType
from explorer.models.call_frame import CallFrame, CallLog
from utils.formatter_utils import bytes_to_hex, dec_to_hex, hex_to_bytes


class CallFrameMapper(object):
    """
    Maps single frames to and from callTracer-style JSON dicts.

    Only a frame's own fields are mapped. Sub-calls are nested by
    TraceSerializer, which walks the tree without recursion.
    """

    @staticmethod
    def call_frame_to_dict(frame: CallFrame) -> Dict[str, Any]:
        frame_dict: Dict[str, Any] = {
            "type": CallType(frame.type).value,
            "from": frame.from_address,
            "gas": dec_to_hex(frame.gas),
            "gasUsed": dec_to_hex(frame.gas_used),
            "input": bytes_to_hex(frame.input),
        }

        if frame.to_address is not None:
            frame_dict["to"] = frame.to_address
        if frame.output:
            frame_dict["output"] = bytes_to_hex(frame.output)
        if frame.error is not None:
            frame_dict["error"] = frame.error
        if frame.revert_reason is not None:
            frame_dict["revertReason"] = frame.revert_reason
        # Zero is encoded as 0x0, only an absent value is omitted
        if frame.value is not None:
            frame_dict["value"] = dec_to_hex(frame.value)
        if frame.logs:
            frame_dict["logs"] = [CallFrameMapper.call_log_to_dict(log) for log in frame.logs]

        return frame_dict

    @staticmethod
    def call_log_to_dict(log: CallLog) -> Dict[str, Any]:
        return {
            "address": log.address,
            "topics": list(log.topics),
            "data": bytes_to_hex(log.data),
            "position": dec_to_hex(log.position),
        }

    @staticmethod
    def dict_to_call_frame(frame_dict: Dict[str, Any]) -> CallFrame:
        """
        Inverse of call_frame_to_dict. The returned frame has no calls yet,
        its "calls" entry is only checked to be an array.

        Raises ValueError/TypeError/KeyError on anything that is not a frame object.
        """
        if not isinstance(frame_dict, dict):
            raise TypeError(f"Call frame must be an object, got {type(frame_dict).__name__}")

        logs = frame_dict.get("logs", [])
        if not isinstance(frame_dict.get("calls", []), list) or not isinstance(logs, list):
            raise TypeError("Call frame 'calls' and 'logs' must be arrays")

        value = frame_dict.get("value")

        return CallFrame(
            type=CallType(frame_dict["type"]),
            from_address=frame_dict["from"],
            to_address=frame_dict.get("to"),
            input=hex_to_bytes(frame_dict.get("input", "0x")),
            output=hex_to_bytes(frame_dict.get("output", "0x")),
            gas=_parse_quantity(frame_dict.get("gas", "0x0")),
            gas_used=_parse_quantity(frame_dict.get("gasUsed", "0x0")),
            value=_parse_quantity(value) if value is not None else None,
            error=frame_dict.get("error"),
            revert_reason=frame_dict.get("revertReason"),
            logs=[CallFrameMapper.dict_to_call_log(log) for log in logs],
        )

    @staticmethod
    def dict_to_call_log(log_dict: Dict[str, Any]) -> CallLog:
        if not isinstance(log_dict, dict):
            raise TypeError(f"Call log must be an object, got {type(log_dict).__name__}")

        topics = log_dict.get("topics", [])
        if not isinstance(topics, list):
            raise TypeError("Call log 'topics' must be an array")

        return CallLog(
            address=log_dict["address"],
            topics=topics,
            data=hex_to_bytes(log_dict.get("data", "0x")),
            position=_parse_quantity(log_dict.get("position", "0x0")),
        )


def _parse_quantity(quantity: Any) -> int:
    if not isinstance(quantity, str) or not quantity.startswith("0x"):
        raise ValueError(f"Invalid hex quantity: {quantity!r}")
    return int(quantity, 16)

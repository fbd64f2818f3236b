from typing import Any, Dict, Optional, Sequence

import orjson
from pydantic import BaseModel

from explorer.models.block import EthBlockRef


class BlockDataMapper(object):
    """Default marshaller for the block_data document when the engine does not supply one."""

    @staticmethod
    def block_to_json(block: EthBlockRef, receipts: Optional[Sequence[Any]], trace_data: Optional[bytes] = None) -> bytes:
        block_dict: Dict[str, Any] = block.model_dump(mode="json", by_alias=True, exclude_none=True)
        block_dict["receipts"] = [BlockDataMapper._to_json_value(receipt) for receipt in receipts or []]
        block_dict["hasTrace"] = bool(trace_data)
        return orjson.dumps(block_dict)

    @staticmethod
    def _to_json_value(item: Any) -> Any:
        if isinstance(item, BaseModel):
            return item.model_dump(mode="json", by_alias=True, exclude_none=True)
        return item

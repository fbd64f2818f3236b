from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.formatter_utils import hex_to_dec


class EthBlockRef(BaseModel):
    """Identity of an imported block plus its executed transaction hashes, in order."""

    model_config = ConfigDict(populate_by_name=True)

    number: int = Field(ge=0)
    hash: str
    parent_hash: Optional[str] = Field(default=None, alias="parentHash")
    timestamp: Optional[int] = None
    transaction_hashes: List[str] = Field(default_factory=list, alias="transactions")

    @field_validator("number", "timestamp", mode="before")
    @classmethod
    def _parse_quantity(cls, value: Any) -> Any:
        # JSON-RPC encodes quantities as hex strings
        if isinstance(value, str) and value.startswith("0x"):
            return hex_to_dec(value)
        return value

    @field_validator("transaction_hashes", mode="before")
    @classmethod
    def _collect_transaction_hashes(cls, value: Any) -> Any:
        # Full transaction objects (eth_getBlockByNumber(..., true)) are reduced to their hash
        if isinstance(value, list):
            return [item.get("hash") if isinstance(item, dict) else item for item in value]
        return value

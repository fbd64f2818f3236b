from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from explorer.enums.call_type import CallType
from utils.formatter_utils import bytes_to_hex, hex_to_bytes, to_normalized_address


class CallLog(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str
    topics: List[str] = Field(default_factory=list)
    data: bytes = b""
    # Number of sub-calls of the owning frame that had completed when the log was emitted
    position: int = 0

    @field_validator("address", mode="before")
    @classmethod
    def _checksum_address(cls, value: Any) -> Any:
        return to_normalized_address(value)

    @field_validator("topics", mode="before")
    @classmethod
    def _normalize_topics(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            return value
        topics = []
        for topic in value:
            raw = bytes(topic) if isinstance(topic, (bytes, bytearray)) else hex_to_bytes(topic)
            if len(raw) != 32:
                raise ValueError(f"Topic must be 32 bytes, got {len(raw)}")
            topics.append(bytes_to_hex(raw))
        return topics


class CallFrame(BaseModel):
    """
    One node of a transaction's call tree.

    ``value`` and ``to_address`` are optional: ``None`` means the attribute is
    absent, which is distinct from a zero value. Addresses are held in their
    EIP-55 checksummed form whatever form they were given in.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: CallType
    from_address: str = Field(alias="from")
    to_address: Optional[str] = Field(default=None, alias="to")
    input: bytes = b""
    output: bytes = b""
    gas: int = 0
    gas_used: int = Field(default=0, alias="gasUsed")
    value: Optional[int] = None
    error: Optional[str] = None
    revert_reason: Optional[str] = Field(default=None, alias="revertReason")
    logs: List[CallLog] = Field(default_factory=list)
    calls: List["CallFrame"] = Field(default_factory=list)

    @field_validator("from_address", "to_address", mode="before")
    @classmethod
    def _checksum_address(cls, value: Any) -> Any:
        return to_normalized_address(value)

    @property
    def failed(self) -> bool:
        return bool(self.error)

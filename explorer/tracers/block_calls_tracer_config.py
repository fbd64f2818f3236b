from pydantic import BaseModel, ConfigDict, Field


class BlockCallsTracerConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    # If true, no sub-call below the root frame is collected
    only_top_call: bool = Field(default=False, alias="onlyTopCall")
    # If true, event logs are collected onto the frame that emitted them
    with_log: bool = Field(default=False, alias="withLog")

    @classmethod
    def from_json(cls, raw: bytes | str | None) -> "BlockCallsTracerConfig":
        if not raw:
            return cls()
        return cls.model_validate_json(raw)

from typing import Optional

from pydantic import BaseModel, ConfigDict

from explorer.enums.entity_type import EntityType


class EthBlockData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    type: EntityType = EntityType.BLOCK_DATA
    number: int
    hash: str
    block_data: str
    trace_data: Optional[str] = None

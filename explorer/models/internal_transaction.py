from pydantic import BaseModel, ConfigDict

from explorer.enums.entity_type import EntityType


class EthInternalTransaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, use_enum_values=True)

    type: EntityType = EntityType.INTERNAL_TRANSACTION

    transaction_hash: str
    block_hash: str
    block_number: int
    # Position of the transaction among the block's executed transactions
    transaction_index: int
    # Dense, per-transaction index over emitted records, in depth-first order
    call_index: int

    from_address: str
    to_address: str
    value: str

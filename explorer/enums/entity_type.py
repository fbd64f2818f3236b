from enum import Enum


class EntityType(str, Enum):
    BLOCK_DATA = "block_data"
    INTERNAL_TRANSACTION = "internal_transaction"

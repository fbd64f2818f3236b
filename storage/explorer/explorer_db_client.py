from typing import List, Optional, Tuple

from sqlalchemy import insert, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from explorer.models.block_data import EthBlockData
from explorer.models.internal_transaction import EthInternalTransaction
from storage.explorer.dialect import SqlDialect
from storage.explorer.errors import ExplorerConfigError
from storage.explorer.models import TABLE_METADATA, BlockData, InternalTransaction, metadata
from utils.logger_utils import get_logger

logger = get_logger("Explorer DB Client")


def parse_db_params(raw_params: str) -> Tuple[SqlDialect, str]:
    """
    Splits an explorer db params document into its dialect and connection string.

    Examples:
        "mysql username:password@tcp(127.0.0.1:3306)/dbname"
        "postgresql user=username password=password dbname=dbname host=127.0.0.1 port=5432 sslmode=disable"
    """
    parts = raw_params.strip().split(None, 1)
    if len(parts) < 2 or not parts[1].strip():
        raise ExplorerConfigError("Explorer db params must be '<postgres|mysql> <connection params>'")
    return SqlDialect.from_prefix(parts[0]), parts[1].strip()


class ExplorerDbClient:
    """Insert-only access to the block_data and internal_transactions tables."""

    def __init__(self, engine: Engine, dialect: Optional[SqlDialect] = None):
        self.engine = engine
        self.dialect = dialect

    @classmethod
    def from_params(cls, raw_params: str) -> "ExplorerDbClient":
        dialect, conn_params = parse_db_params(raw_params)
        try:
            engine = dialect.build_engine(conn_params)
        except (SQLAlchemyError, ImportError, ValueError) as e:
            raise ExplorerConfigError(f"Failed to create {dialect.value} engine: {e}") from e

        client = cls(engine, dialect)
        client.ping()
        logger.info(f"Connected to explorer database ({dialect.value}, paramstyle={dialect.paramstyle})")
        return client

    @classmethod
    def from_params_file(cls, params_file: str) -> "ExplorerDbClient":
        try:
            with open(params_file, "r", encoding="utf-8") as f:
                raw_params = f.read()
        except OSError as e:
            raise ExplorerConfigError(f"Cannot read explorer db params file '{params_file}': {e}") from e
        return cls.from_params(raw_params)

    def ping(self) -> None:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise ExplorerConfigError(f"Explorer database is unreachable: {e}") from e

    def initialize_schema(self, tables: Optional[List[str]] = None) -> None:
        selected = [TABLE_METADATA[name] for name in tables] if tables else None
        metadata.create_all(self.engine, tables=selected, checkfirst=True)
        logger.info(f"Initialized explorer tables: {', '.join(tables) if tables else ', '.join(TABLE_METADATA)}")

    def insert_block_data(self, block_data: EthBlockData) -> None:
        with self.engine.begin() as connection:
            connection.execute(
                insert(BlockData),
                {
                    "number": block_data.number,
                    "hash": block_data.hash,
                    "block_data": block_data.block_data,
                    "trace_data": block_data.trace_data,
                },
            )

    def insert_internal_transaction(self, internal_transaction: EthInternalTransaction) -> None:
        with self.engine.begin() as connection:
            connection.execute(
                insert(InternalTransaction),
                {
                    "tx_hash": internal_transaction.transaction_hash,
                    "block_hash": internal_transaction.block_hash,
                    "block_number": internal_transaction.block_number,
                    "tx_index": internal_transaction.transaction_index,
                    "call_index": internal_transaction.call_index,
                    "from_address": internal_transaction.from_address,
                    "to_address": internal_transaction.to_address,
                    "value": internal_transaction.value,
                },
            )

    def close(self) -> None:
        self.engine.dispose()


def create_explorer_db_client(params_file: Optional[str]) -> Optional[ExplorerDbClient]:
    """Returns None when no params file is configured, which disables block export."""
    if not params_file:
        logger.info("No explorer db params configured, block export is disabled")
        return None
    return ExplorerDbClient.from_params_file(params_file)

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine, inspect, select
from sqlalchemy.dialects import mysql, postgresql
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.schema import CreateIndex, CreateTable

from explorer.models.block_data import EthBlockData
from explorer.models.internal_transaction import EthInternalTransaction
from storage.explorer.dialect import SqlDialect
from storage.explorer.errors import ExplorerConfigError
from storage.explorer.explorer_db_client import ExplorerDbClient, create_explorer_db_client, parse_db_params
from storage.explorer.models import BlockData, InternalTransaction

BLOCK_HASH = "0x" + "ab" * 32
TX_HASH = "0x" + "01" * 32


@pytest.fixture
def client():
    client = ExplorerDbClient(create_engine("sqlite://"))
    client.initialize_schema()
    yield client
    client.close()


def _internal_transaction(call_index=0):
    return EthInternalTransaction(
        transaction_hash=TX_HASH,
        block_hash=BLOCK_HASH,
        block_number=42,
        transaction_index=0,
        call_index=call_index,
        from_address="0x" + "aa" * 20,
        to_address="0x" + "bb" * 20,
        value=str(10**18),
    )


@pytest.mark.parametrize(
    "raw_params, dialect, conn_params",
    [
        ("mysql username:password@tcp(127.0.0.1:3306)/dbname", SqlDialect.MYSQL, "username:password@tcp(127.0.0.1:3306)/dbname"),
        ("postgresql user=u password=p dbname=d host=127.0.0.1 port=5432\n", SqlDialect.POSTGRES, "user=u password=p dbname=d host=127.0.0.1 port=5432"),
        ("postgres   postgresql://u:p@localhost/explorer", SqlDialect.POSTGRES, "postgresql://u:p@localhost/explorer"),
    ],
)
def test_parse_db_params(raw_params, dialect, conn_params):
    assert parse_db_params(raw_params) == (dialect, conn_params)


@pytest.mark.parametrize(
    "raw_params", ["sqlite file.db", "mysql", "", "   postgres   ", "POSTGRES user=u dbname=d", "MySQL u:p@tcp(h:3306)/d"]
)
def test_parse_db_params_rejects_invalid_input(raw_params):
    with pytest.raises(ExplorerConfigError):
        parse_db_params(raw_params)


def test_mysql_dsn_is_converted_to_url():
    url = SqlDialect.MYSQL.build_url("user:secret@tcp(db.internal:3307)/explorer?parseTime=true&charset=utf8mb4")

    assert url.drivername == "mysql+pymysql"
    assert (url.username, url.password, url.host, url.port, url.database) == ("user", "secret", "db.internal", 3307, "explorer")
    assert dict(url.query) == {"charset": "utf8mb4"}


def test_invalid_mysql_dsn_is_rejected():
    with pytest.raises(ExplorerConfigError):
        SqlDialect.MYSQL.build_url("not a dsn")


def test_postgres_url_gets_driver():
    url = SqlDialect.POSTGRES.build_url("postgresql://u:p@localhost:5432/explorer")

    assert url.drivername == "postgresql+psycopg"
    assert url.database == "explorer"


def test_schema_uses_quoted_from_and_to_columns(client):
    columns = {column["name"] for column in inspect(client.engine).get_columns("internal_transactions")}

    assert {"from", "to", "tx_hash", "call_index", "value"} <= columns
    assert [index["name"] for index in inspect(client.engine).get_indexes("block_data")] == ["idx_block_data_number"]


def test_insert_block_data(client):
    client.insert_block_data(EthBlockData(number=42, hash=BLOCK_HASH, block_data='{"number":42}'))

    with client.engine.connect() as connection:
        row = connection.execute(select(BlockData.__table__)).one()

    assert (row.number, row.hash, row.block_data, row.trace_data) == (42, BLOCK_HASH, '{"number":42}', None)


def test_insert_internal_transaction(client):
    client.insert_internal_transaction(_internal_transaction())

    table = InternalTransaction.__table__
    with client.engine.connect() as connection:
        row = connection.execute(select(table.c.from_address, table.c.to_address, table.c.value, table.c.call_index)).one()

    assert tuple(row) == ("0x" + "aa" * 20, "0x" + "bb" * 20, str(10**18), 0)


def test_duplicate_internal_transaction_raises(client):
    client.insert_internal_transaction(_internal_transaction())

    with pytest.raises(IntegrityError):
        client.insert_internal_transaction(_internal_transaction())


def test_initialize_selected_tables():
    client = ExplorerDbClient(create_engine("sqlite://"))

    client.initialize_schema(["block_data"])

    assert inspect(client.engine).get_table_names() == ["block_data"]


def test_ping_failure_is_a_config_error():
    engine = MagicMock()
    engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))

    with pytest.raises(ExplorerConfigError):
        ExplorerDbClient(engine).ping()


def test_from_params_file_requires_readable_file(tmp_path):
    with pytest.raises(ExplorerConfigError):
        ExplorerDbClient.from_params_file(str(tmp_path / "missing.conf"))


def test_from_params_file_rejects_unknown_dialect(tmp_path):
    params_file = tmp_path / "explorer.conf"
    params_file.write_text("oracle user/pass@host")

    with pytest.raises(ExplorerConfigError):
        ExplorerDbClient.from_params_file(str(params_file))


def test_missing_params_file_disables_export():
    assert create_explorer_db_client(None) is None
    assert create_explorer_db_client("") is None


@pytest.mark.parametrize(
    "dialect, params, paramstyle",
    [
        (SqlDialect.MYSQL, "user:secret@tcp(127.0.0.1:3306)/explorer", "format"),
        (SqlDialect.POSTGRES, "postgresql://u:p@localhost/explorer", "pyformat"),
    ],
)
def test_engine_renders_the_dialect_placeholders(dialect, params, paramstyle):
    with patch("storage.explorer.dialect.create_engine") as mock_create_engine:
        dialect.build_engine(params)

    assert mock_create_engine.call_args.kwargs["paramstyle"] == paramstyle
    assert mock_create_engine.call_args.args[0].drivername == dialect.drivername


def test_postgres_keyword_string_is_passed_as_conninfo():
    with patch("storage.explorer.dialect.create_engine") as mock_create_engine:
        SqlDialect.POSTGRES.build_engine("user=u dbname=d host=127.0.0.1")

    assert mock_create_engine.call_args.kwargs["connect_args"] == {"conninfo": "user=u dbname=d host=127.0.0.1"}


def _ddl(element, dialect):
    return str(element.compile(dialect=dialect))


def test_mysql_schema_uses_mediumtext_and_backquotes():
    block_data_ddl = _ddl(CreateTable(BlockData.__table__), mysql.dialect())
    internal_transactions_ddl = _ddl(CreateTable(InternalTransaction.__table__), mysql.dialect())

    assert "block_data MEDIUMTEXT NOT NULL" in block_data_ddl
    assert "trace_data MEDIUMTEXT" in block_data_ddl
    assert "`from` VARCHAR(42) NOT NULL" in internal_transactions_ddl
    assert "`to` VARCHAR(42) NOT NULL" in internal_transactions_ddl
    assert "PRIMARY KEY (tx_hash, call_index)" in internal_transactions_ddl


def test_postgres_schema_uses_text_and_double_quotes():
    block_data_ddl = _ddl(CreateTable(BlockData.__table__), postgresql.dialect())
    internal_transactions_ddl = _ddl(CreateTable(InternalTransaction.__table__), postgresql.dialect())

    assert "block_data TEXT NOT NULL" in block_data_ddl
    assert "MEDIUMTEXT" not in block_data_ddl
    assert '"from" VARCHAR(42) NOT NULL' in internal_transactions_ddl
    assert '"to" VARCHAR(42) NOT NULL' in internal_transactions_ddl
    assert "PRIMARY KEY (tx_hash, call_index)" in internal_transactions_ddl


@pytest.mark.parametrize("dialect", [mysql.dialect(), postgresql.dialect()])
def test_block_number_index_is_ascending(dialect):
    (index,) = BlockData.__table__.indexes

    ddl = _ddl(CreateIndex(index), dialect)

    assert "CREATE INDEX idx_block_data_number ON block_data (number)" in ddl
    assert "DESC" not in ddl

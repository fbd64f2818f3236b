"""
End-to-end flow: engine callbacks -> tracer -> import hook -> export job -> database.
"""

import pytest
from eth_utils import to_checksum_address
from sqlalchemy import create_engine, func, select

from explorer.enums.call_type import CallType
from explorer.hooks.block_import_hook import BlockImportHook
from explorer.jobs.export_block_job import ExportBlockJob
from explorer.models.block import EthBlockRef
from explorer.tracers.block_calls_tracer import BlockCallsTracer
from explorer.tracers.block_calls_tracer_config import BlockCallsTracerConfig
from storage.explorer.explorer_db_client import ExplorerDbClient
from storage.explorer.models import BlockData, InternalTransaction

A = to_checksum_address("0x" + "aa" * 20)
B = to_checksum_address("0x" + "bb" * 20)
C = to_checksum_address("0x" + "cc" * 20)
D = to_checksum_address("0x" + "dd" * 20)
TX_HASHES = ["0x" + "01" * 32, "0x" + "02" * 32]


@pytest.fixture
def db_client():
    client = ExplorerDbClient(create_engine("sqlite://"))
    client.initialize_schema()
    yield client
    client.close()


@pytest.fixture
def hook(db_client):
    tracer = BlockCallsTracer(BlockCallsTracerConfig(with_log=True))
    return BlockImportHook(tracer, ExportBlockJob(db_client))


def _execute_block(hooks):
    hooks["on_block_start"]()

    # Transaction 0: A -> B (5 wei), B -> C (3 wei), C -> D static call
    hooks["on_tx_start"](100_000)
    hooks["on_enter"](0, CallType.CALL, A, B, b"", 100_000, 5)
    hooks["on_enter"](1, CallType.CALL, B, C, b"", 60_000, 3)
    hooks["on_enter"](2, CallType.STATICCALL, C, D, b"", 30_000, None)
    hooks["on_exit"](2, b"", 500, None, False)
    hooks["on_log"](C, ["0x" + "11" * 32], b"")
    hooks["on_exit"](1, b"", 10_000, None, False)
    hooks["on_exit"](0, b"", 40_000, None, False)
    hooks["on_tx_end"](40_000)

    # Transaction 1: plain transfer A -> D
    hooks["on_tx_start"](21_000)
    hooks["on_enter"](0, CallType.CALL, A, D, b"", 21_000, 7)
    hooks["on_exit"](0, b"", 21_000, None, False)
    hooks["on_tx_end"](21_000)


def test_block_export_end_to_end(hook, db_client):
    _execute_block(hook.tracer_hooks())
    block = EthBlockRef(number=100, hash="0x" + "ab" * 32, transactions=TX_HASHES)

    result = hook(block, [])

    assert result.block_inserted
    assert result.internal_transactions_inserted == 3

    table = InternalTransaction.__table__
    with db_client.engine.connect() as connection:
        rows = connection.execute(
            select(table.c.tx_hash, table.c.tx_index, table.c.call_index, table.c.from_address, table.c.to_address, table.c.value)
            .order_by(table.c.tx_index, table.c.call_index)
        ).all()
        trace_data = connection.execute(select(BlockData.__table__.c.trace_data)).scalar_one()

    assert [tuple(row) for row in rows] == [
        (TX_HASHES[0], 0, 0, A, B, "5"),
        (TX_HASHES[0], 0, 1, B, C, "3"),
        (TX_HASHES[1], 1, 0, A, D, "7"),
    ]
    assert '"logs"' in trace_data


def test_block_without_transactions(hook, db_client):
    hook.tracer_hooks()["on_block_start"]()
    block = EthBlockRef(number=101, hash="0x" + "cd" * 32)

    result = hook(block)

    assert result.block_inserted
    with db_client.engine.connect() as connection:
        trace_data = connection.execute(select(BlockData.__table__.c.trace_data)).scalar_one()
        internal_count = connection.execute(select(func.count()).select_from(InternalTransaction.__table__)).scalar_one()
    # An empty block still has a (empty) trace document
    assert trace_data == "[]"
    assert internal_count == 0

from typing import Optional

import click
import orjson

from config.settings import load_settings
from explorer.jobs.export_block_job import ExportBlockJob
from explorer.models.block import EthBlockRef
from storage.explorer.explorer_db_client import ExplorerDbClient
from utils.logger_utils import get_logger

logger = get_logger("Export Block Data")


def _read_bytes(path: Optional[str]) -> Optional[bytes]:
    if not path:
        return None
    with open(path, "rb") as f:
        return f.read()


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("-b", "--block-file", required=True, type=click.Path(exists=True, dir_okay=False), help="JSON block, as returned by eth_getBlockByNumber.")
@click.option("-r", "--receipts-file", default=None, type=click.Path(exists=True, dir_okay=False), help="JSON array of the block's receipts.")
@click.option("-t", "--trace-file", default=None, type=click.Path(exists=True, dir_okay=False), help="Call trace of the block, as produced by the block calls tracer.")
@click.option("-d", "--db-params", "db_params_file", default=None, type=str, help="Path to the explorer db params file. Defaults to EXPLORER_DB_PARAMS.")
def export_block_data(block_file: str, receipts_file: Optional[str], trace_file: Optional[str], db_params_file: Optional[str]):
    """
    Replays the export of one block (block row plus internal transactions) from files.
    """
    db_params_file = db_params_file or load_settings().explorer.db_params_file
    if not db_params_file:
        raise click.UsageError("No explorer db params file given (--db-params or EXPLORER_DB_PARAMS)")

    block_json = orjson.loads(_read_bytes(block_file))
    # Accept a raw JSON-RPC response as well as the bare block object
    block = EthBlockRef.model_validate(block_json.get("result", block_json))
    receipts = orjson.loads(_read_bytes(receipts_file)) if receipts_file else None
    trace_data = _read_bytes(trace_file)

    client = ExplorerDbClient.from_params_file(db_params_file)
    try:
        result = ExportBlockJob(client).export_block(block, receipts, trace_data=trace_data)
    finally:
        client.close()

    logger.info(
        f"Block #{block.number}: block row {'inserted' if result.block_inserted else 'not inserted'}, "
        f"{result.internal_transactions_inserted}/{result.internal_transactions_found} internal transactions inserted"
    )

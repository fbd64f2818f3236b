from typing import Optional, Tuple

import click

from config.settings import load_settings
from storage.explorer.explorer_db_client import ExplorerDbClient
from storage.explorer.models import TABLE_METADATA
from utils.logger_utils import get_logger

logger = get_logger("Init Explorer Schema")


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("-d", "--db-params", "db_params_file", default=None, type=str, help="Path to the explorer db params file. Defaults to EXPLORER_DB_PARAMS.")
@click.option(
    "--tables",
    multiple=True,
    type=click.Choice(list(TABLE_METADATA.keys())),
    help="Specify tables to initialize (e.g., block_data). All tables by default.",
)
def init_explorer_schema(db_params_file: Optional[str], tables: Tuple[str, ...]):
    """
    Creates the block_data and internal_transactions tables if they do not exist.
    """
    db_params_file = db_params_file or load_settings().explorer.db_params_file
    if not db_params_file:
        raise click.UsageError("No explorer db params file given (--db-params or EXPLORER_DB_PARAMS)")

    logger.info("Starting explorer schema initialization...")
    client = ExplorerDbClient.from_params_file(db_params_file)
    try:
        client.initialize_schema(list(tables) or None)
        logger.info("Schema initialization completed successfully.")
    except Exception as e:
        logger.exception(f"Failed to initialize explorer schema: {e}")
        raise
    finally:
        client.close()

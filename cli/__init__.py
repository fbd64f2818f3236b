import click

from cli.export_block_data import export_block_data
from cli.init_explorer_schema import init_explorer_schema


@click.group()
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx):
    pass


# Create explorer tables
cli.add_command(init_explorer_schema, "init_explorer_schema")

# Replay a block export from files
cli.add_command(export_block_data, "export_block_data")

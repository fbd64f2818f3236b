import logging
from unittest.mock import MagicMock, patch

from config.settings import AppSettings, ExplorerSettings, Settings
from explorer.hooks.block_import_hook import BlockImportHook
from explorer.mappers.trace_serializer import TraceEncodeError
from explorer.models.block import EthBlockRef

BLOCK = EthBlockRef(number=1, hash="0x" + "ab" * 32, transactions=[])


def test_forwards_trace_to_export_job():
    tracer = MagicMock()
    tracer.get_result.return_value = (b"[]", None)
    export_job = MagicMock()

    hook = BlockImportHook(tracer, export_job)
    result = hook(BLOCK, ["receipt"])

    export_job.export_block.assert_called_once_with(BLOCK, ["receipt"], trace_data=b"[]", block_data=None)
    assert result is export_job.export_block.return_value


def test_interrupted_trace_is_still_exported(caplog):
    tracer = MagicMock()
    tracer.get_result.return_value = (b"[]", TimeoutError("execution timeout"))
    export_job = MagicMock()

    with caplog.at_level(logging.WARNING):
        BlockImportHook(tracer, export_job)(BLOCK)

    export_job.export_block.assert_called_once()
    assert "was interrupted: execution timeout" in caplog.text


def test_encode_failure_is_logged_as_error_and_block_still_exported(caplog):
    tracer = MagicMock()
    tracer.get_result.return_value = (None, TraceEncodeError("negative gas"))
    export_job = MagicMock()

    with caplog.at_level(logging.WARNING):
        BlockImportHook(tracer, export_job)(BLOCK)

    export_job.export_block.assert_called_once_with(BLOCK, None, trace_data=None, block_data=None)
    assert "Could not encode the trace of block #1" in caplog.text
    assert "was interrupted" not in caplog.text
    assert [record.levelno for record in caplog.records] == [logging.ERROR]



def test_export_errors_never_reach_the_engine(caplog):
    tracer = MagicMock()
    tracer.get_result.return_value = (b"[]", None)
    export_job = MagicMock()
    export_job.export_block.side_effect = RuntimeError("boom")

    with caplog.at_level(logging.ERROR):
        assert BlockImportHook(tracer, export_job)(BLOCK) is None

    assert "Unexpected error exporting block #1" in caplog.text


def test_from_settings_without_db_params_disables_export():
    settings = Settings(app=AppSettings(), explorer=ExplorerSettings(db_params_file=None))

    assert BlockImportHook.from_settings(settings) is None


def test_from_settings_builds_configured_tracer():
    settings = Settings(
        app=AppSettings(),
        explorer=ExplorerSettings(db_params_file="explorer.conf", tracer_only_top_call=True, tracer_with_log=True),
    )

    with patch("explorer.hooks.block_import_hook.create_explorer_db_client") as mock_create:
        hook = BlockImportHook.from_settings(settings)

    mock_create.assert_called_once_with("explorer.conf")
    assert hook.export_job.db_client is mock_create.return_value
    assert hook.tracer.config.only_top_call
    assert hook.tracer.config.with_log
    assert set(hook.tracer_hooks()) == {"on_block_start", "on_tx_start", "on_enter", "on_exit", "on_log", "on_tx_end"}

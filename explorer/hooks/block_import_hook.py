from typing import Any, Callable, Dict, Optional, Sequence

from config.settings import Settings
from explorer.jobs.export_block_job import ExportBlockJob, ExportBlockResult
from explorer.mappers.trace_serializer import TraceEncodeError
from explorer.models.block import EthBlockRef
from explorer.tracers.block_calls_tracer import BlockCallsTracer
from explorer.tracers.block_calls_tracer_config import BlockCallsTracerConfig
from storage.explorer.explorer_db_client import create_explorer_db_client
from utils.logger_utils import get_logger

logger = get_logger("Block Import Hook")


class BlockImportHook(object):
    """
    Connects one block tracer and one export job to an execution engine.

    The engine subscribes ``tracer_hooks()`` before executing a block and
    calls the hook once the block and its receipts are final.
    """

    def __init__(self, tracer: BlockCallsTracer, export_job: ExportBlockJob):
        self.tracer = tracer
        self.export_job = export_job

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["BlockImportHook"]:
        """Returns None when export is not configured. Configuration errors propagate."""
        db_client = create_explorer_db_client(settings.explorer.db_params_file)
        if db_client is None:
            return None

        tracer = BlockCallsTracer(
            BlockCallsTracerConfig(
                only_top_call=settings.explorer.tracer_only_top_call,
                with_log=settings.explorer.tracer_with_log,
            )
        )
        return cls(tracer, ExportBlockJob(db_client))

    def tracer_hooks(self) -> Dict[str, Callable[..., Any]]:
        return self.tracer.hooks()

    def __call__(
        self, block: EthBlockRef, receipts: Optional[Sequence[Any]] = None, block_data: Optional[bytes] = None
    ) -> Optional[ExportBlockResult]:
        try:
            trace_data, reason = self.tracer.get_result()
            if isinstance(reason, TraceEncodeError):
                # The block row is still written, without a trace
                logger.error(f"Could not encode the trace of block #{block.number} ({block.hash}): {reason}")
            elif reason is not None:
                logger.warning(f"Tracing of block #{block.number} ({block.hash}) was interrupted: {reason}")
            return self.export_job.export_block(block, receipts, trace_data=trace_data, block_data=block_data)
        except Exception as e:
            # Block import must never fail because of the export side channel
            logger.exception(f"Unexpected error exporting block #{block.number} ({block.hash}): {e}")
            return None

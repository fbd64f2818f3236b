# MIT License
#
# Copyright (c) 2018 Evgeny Medvedev, evge.medvedev@gmail.com
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
# Modified By: Cuong CT, 19/10/2026
# Change Description: Synchronous best-effort export of one imported block and its internal transactions

from typing import Any, Callable, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from explorer.mappers.block_data_mapper import BlockDataMapper
from explorer.mappers.trace_serializer import TraceDecodeError, TraceSerializer
from explorer.models.block import EthBlockRef
from explorer.models.block_data import EthBlockData
from explorer.service.internal_transaction_service import InternalTransactionService
from storage.explorer.explorer_db_client import ExplorerDbClient
from utils.logger_utils import get_logger

logger = get_logger("Export Block Job")

BlockMarshaller = Callable[[EthBlockRef, Optional[Sequence[Any]], Optional[bytes]], bytes]


class ExportBlockResult(BaseModel):
    block_inserted: bool = False
    internal_transactions_found: int = 0
    internal_transactions_inserted: int = 0


class ExportBlockJob(object):
    """
    Writes an imported block to the explorer database: one block_data row, then
    one internal_transactions row per value transfer found in its call trace.

    Every failure is logged and swallowed, export never fails block import.
    """

    def __init__(self, db_client: ExplorerDbClient, block_marshaller: BlockMarshaller = BlockDataMapper.block_to_json):
        self.db_client = db_client
        self.block_marshaller = block_marshaller
        self.internal_transaction_service = InternalTransactionService()

    def export_block(
        self,
        block: EthBlockRef,
        receipts: Optional[Sequence[Any]] = None,
        trace_data: Optional[bytes] = None,
        block_data: Optional[bytes] = None,
    ) -> ExportBlockResult:
        result = ExportBlockResult()

        if block_data is None:
            try:
                block_data = self.block_marshaller(block, receipts, trace_data)
            except (TypeError, ValueError) as e:
                logger.error(f"Failed to marshal block data for block #{block.number} ({block.hash}): {e}")
                return result

        result.block_inserted = self._insert_block_data(block, block_data, trace_data)

        if not trace_data:
            return result

        try:
            root_frames = TraceSerializer.decode(trace_data)
        except TraceDecodeError as e:
            logger.error(f"Failed to decode trace data for block #{block.number} ({block.hash}): {e}")
            return result

        internal_transactions = self.internal_transaction_service.extract_internal_transactions(
            block.number, block.hash, block.transaction_hashes, root_frames
        )
        result.internal_transactions_found = len(internal_transactions)

        for internal_transaction in internal_transactions:
            try:
                self.db_client.insert_internal_transaction(internal_transaction)
                result.internal_transactions_inserted += 1
            except SQLAlchemyError as e:
                logger.error(
                    f"Failed to insert internal transaction {internal_transaction.transaction_hash} "
                    f"call #{internal_transaction.call_index} of block #{block.number} ({block.hash}): {e}"
                )

        logger.debug(
            f"Exported block #{block.number} with {result.internal_transactions_inserted}"
            f"/{result.internal_transactions_found} internal transactions"
        )
        return result

    def _insert_block_data(self, block: EthBlockRef, block_data: bytes | str, trace_data: Optional[bytes]) -> bool:
        try:
            row = EthBlockData(
                number=block.number,
                hash=block.hash,
                block_data=_to_text(block_data),
                trace_data=_to_text(trace_data) if trace_data else None,
            )
            self.db_client.insert_block_data(row)
            return True
        except (SQLAlchemyError, UnicodeDecodeError) as e:
            logger.error(f"Failed to insert block data for block #{block.number} ({block.hash}): {e}")
            return False


def _to_text(data: bytes | str) -> str:
    return data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data

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
# Change Description: Derive indexed internal transactions from per-transaction call trees

from typing import Iterator, List, Sequence

from explorer.enums.call_type import CallType
from explorer.models.call_frame import CallFrame
from explorer.models.internal_transaction import EthInternalTransaction
from utils.formatter_utils import is_zero_address
from utils.logger_utils import get_logger

logger = get_logger("Internal Transaction Service")


class InternalTransactionService(object):
    @staticmethod
    def extract_internal_transactions(
        block_number: int,
        block_hash: str,
        transaction_hashes: Sequence[str],
        root_frames: Sequence[CallFrame],
    ) -> List[EthInternalTransaction]:
        internal_transactions = []
        for tx_index, root_frame in enumerate(root_frames):
            if tx_index >= len(transaction_hashes):
                logger.warning(
                    f"Block #{block_number} ({block_hash}) has a call tree for transaction {tx_index} "
                    f"but only {len(transaction_hashes)} transaction hashes, skipping it"
                )
                continue
            internal_transactions.extend(
                InternalTransactionService.extract_transaction_transfers(
                    block_number, block_hash, transaction_hashes[tx_index], tx_index, root_frame
                )
            )
        return internal_transactions

    @staticmethod
    def extract_transaction_transfers(
        block_number: int, block_hash: str, transaction_hash: str, tx_index: int, root_frame: CallFrame
    ) -> List[EthInternalTransaction]:
        # call_index only advances on emitted records, so indices are dense per transaction
        transfers = []
        for frame in InternalTransactionService.iterate_frames(root_frame):
            if not InternalTransactionService.is_value_transfer(frame):
                continue
            transfers.append(
                EthInternalTransaction(
                    transaction_hash=transaction_hash,
                    block_hash=block_hash,
                    block_number=block_number,
                    transaction_index=tx_index,
                    call_index=len(transfers),
                    from_address=frame.from_address,
                    to_address=frame.to_address,
                    value=str(frame.value),
                )
            )
        return transfers

    @staticmethod
    def iterate_frames(root_frame: CallFrame) -> Iterator[CallFrame]:
        """Pre-order, depth-first walk: a frame, then each of its calls in stored order."""
        pending = [root_frame]
        while pending:
            frame = pending.pop()
            yield frame
            pending.extend(reversed(frame.calls))

    @staticmethod
    def is_value_transfer(frame: CallFrame) -> bool:
        return (
            frame.type == CallType.CALL
            and not is_zero_address(frame.from_address)
            and frame.to_address is not None
            and not is_zero_address(frame.to_address)
            and frame.value is not None
            and frame.value > 0
        )

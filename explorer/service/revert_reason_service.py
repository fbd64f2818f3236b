from typing import Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from constants.constants import PANIC_REASONS, REVERT_ERROR_SELECTOR, REVERT_PANIC_SELECTOR
from utils.logger_utils import get_logger

logger = get_logger("Revert Reason Service")


class RevertReasonService(object):
    @staticmethod
    def unpack_revert(output: bytes) -> Optional[str]:
        """
        Decodes the reason carried by a revert payload.

        Understands the two ABI-encoded shapes the Solidity compiler emits,
        ``Error(string)`` from require/revert and ``Panic(uint256)`` from
        failed assertions. Returns None for custom errors or garbage.
        """
        if len(output) < 4:
            return None

        selector, payload = output[:4], output[4:]
        try:
            if selector == REVERT_ERROR_SELECTOR:
                (reason,) = decode(["string"], payload)
                return reason
            if selector == REVERT_PANIC_SELECTOR:
                (code,) = decode(["uint256"], payload)
                return PANIC_REASONS.get(code, f"unknown panic code: {code:#x}")
        except (DecodingError, OverflowError, UnicodeDecodeError) as e:
            logger.debug(f"Could not decode revert payload: {e}")
        return None

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
# Modified by: Cuong CT, 19/10/2026
# Change Description: hex/bytes/address helpers for call frame (de)serialization

from typing import Optional

from eth_utils import decode_hex, encode_hex, to_checksum_address, to_int

from constants.constants import ZERO_ADDRESS
from utils.logger_utils import get_logger

logger = get_logger("Formatter Utils")


def hex_to_dec(hex_string: str | None) -> int | None:
    """
    Converts a hex string to decimal integer.
    """
    if hex_string is None:
        return None
    try:
        return to_int(hexstr=hex_string)
    except (ValueError, TypeError):
        logger.warning(f"Invalid hex string for conversion: {hex_string}")
        return None


def dec_to_hex(value: int | None) -> str | None:
    """
    Converts a non-negative integer to a 0x-prefixed quantity, ``0x0`` for zero.
    """
    if value is None:
        return None
    if value < 0:
        raise ValueError(f"Cannot encode negative quantity: {value}")
    return hex(value)


def bytes_to_hex(data: bytes | None) -> str:
    return encode_hex(data or b"")


def hex_to_bytes(hex_string: str) -> bytes:
    if not isinstance(hex_string, str):
        raise TypeError(f"Expected hex string, got {type(hex_string).__name__}")
    return decode_hex(hex_string)


def to_normalized_address(address: str | bytes | None) -> Optional[str]:
    """
    Convert a 20-byte address (raw bytes or hex string) to its checksummed form.
    Raises ValueError for anything that is not a 20-byte address.
    """
    if address is None:
        return None
    if isinstance(address, (bytes, bytearray)):
        if len(address) != 20:
            raise ValueError(f"Address must be 20 bytes, got {len(address)}")
        return to_checksum_address(bytes(address))
    if not isinstance(address, str):
        raise TypeError(f"Unsupported address type: {type(address).__name__}")
    return to_checksum_address(address)


def is_zero_address(address: str | None) -> bool:
    return address is not None and address.lower() == ZERO_ADDRESS

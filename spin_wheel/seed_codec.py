"""
Seed Codec
Hex encoding helpers and the SHA-256 / SHA-512 primitives used by every
other component of the provably fair settlement.
"""

import hashlib
import secrets
from typing import Union

from .config import SERVER_SEED_BYTES
from .errors import EntropySourceError, MalformedInputError

SHA256_HEX_LENGTH = 64
SHA512_HEX_LENGTH = 128


def _to_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def random_seed() -> str:
    """
    Generate a fresh server seed from the operating system's CSPRNG

    Returns:
        str: 32 random bytes as a 64 character lowercase hex string

    Raises:
        EntropySourceError: If the secure random source is unavailable.
            There is no fallback to a weaker generator.
    """
    try:
        return secrets.token_hex(SERVER_SEED_BYTES)
    except (NotImplementedError, OSError) as e:
        raise EntropySourceError(f"Secure random source unavailable: {e}") from e


def hash256(data: Union[bytes, str]) -> str:
    """SHA-256 digest as 64 lowercase hex characters (str input is UTF-8 encoded)"""
    return hashlib.sha256(_to_bytes(data)).hexdigest()


def hash512(data: Union[bytes, str]) -> str:
    """SHA-512 digest as 128 lowercase hex characters (str input is UTF-8 encoded)"""
    return hashlib.sha512(_to_bytes(data)).hexdigest()


def parse_hex(value, expected_bytes=None, field="value") -> bytes:
    """
    Decode a hex string, rejecting anything that is not clean hex

    Args:
        value: Hex string to decode
        expected_bytes: Required decoded length (None = any length)
        field: Name used in the error message

    Returns:
        bytes: Decoded value

    Raises:
        MalformedInputError: On non-string input, odd length, non-hex
            characters or a length other than expected_bytes
    """
    if not isinstance(value, str):
        raise MalformedInputError(f"{field} must be a hex string, got {type(value).__name__}")
    try:
        raw = bytes.fromhex(value)
    except ValueError as e:
        raise MalformedInputError(f"{field} is not valid hex: {e}") from e
    # bytes.fromhex tolerates whitespace between bytes
    if len(raw) * 2 != len(value):
        raise MalformedInputError(f"{field} contains non-hex characters")
    if expected_bytes is not None and len(raw) != expected_bytes:
        raise MalformedInputError(
            f"{field} must be {expected_bytes * 2} hex characters, got {len(value)}"
        )
    return raw


def is_hex_digest(value, length=SHA256_HEX_LENGTH) -> bool:
    """Check that value is a lowercase hex digest of the given length"""
    if not isinstance(value, str) or len(value) != length:
        return False
    return all(c in "0123456789abcdef" for c in value)

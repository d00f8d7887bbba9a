import hashlib
import hmac
from typing import Union

from .errors import SigningError

BytesLike = Union[str, bytes]


def _to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode('utf-8')
    raise TypeError(f"Expected str or bytes, got {type(value).__name__}")


def digest(message: BytesLike) -> bytes:
    """SHA-256 of the UTF-8 encoded message"""
    try:
        return hashlib.sha256(_to_bytes(message)).digest()
    except (TypeError, ValueError) as e:
        raise SigningError(f"SHA-256 digest failed: {e}") from e


def hex_digest(message: BytesLike) -> str:
    return digest(message).hex()


def mac(key: BytesLike, message: BytesLike) -> bytes:
    """
    HMAC-SHA256 of message under key.

    Keys of any length are accepted; hmac pads or hashes them as
    RFC 2104 requires.
    """
    try:
        return hmac.new(_to_bytes(key), _to_bytes(message), hashlib.sha256).digest()
    except (TypeError, ValueError) as e:
        raise SigningError(f"HMAC-SHA256 failed: {e}") from e


def hex_mac(key: BytesLike, message: BytesLike) -> str:
    return mac(key, message).hex()

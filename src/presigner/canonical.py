"""
Canonical request construction for SigV4 query-string signing.

The canonical request is hashed into the string-to-sign, so every byte
here must match what the storage server rebuilds from the incoming URL.
"""
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional
from urllib.parse import quote

from .errors import SigningError

ALGORITHM = 'AWS4-HMAC-SHA256'
UNSIGNED_PAYLOAD = 'UNSIGNED-PAYLOAD'
DEFAULT_PORTS = {'http': 80, 'https': 443}


@dataclass(frozen=True)
class SigningRequest:
    canonical_uri: str
    query_params: Mapping[str, str]
    headers: Mapping[str, str]
    method: str = 'PUT'
    payload_hash: str = field(default=UNSIGNED_PAYLOAD)


def uri_encode(value: str, preserve_slash: bool = False) -> str:
    """
    Percent-encode everything except the RFC 3986 unreserved set
    (A-Z a-z 0-9 - _ . ~). Hex digits are uppercase.
    """
    try:
        return quote(str(value), safe='/' if preserve_slash else '', encoding='utf-8')
    except UnicodeError as e:
        raise SigningError(f"Cannot percent-encode {value!r}: {e}") from e


def canonical_uri(bucket: str, object_key: str) -> str:
    return f"/{bucket}/{uri_encode(object_key, preserve_slash=True)}"


def canonical_query_string(params: Mapping[str, str]) -> str:
    # Sorted on the raw names, not on their encoded form
    return '&'.join(
        f"{uri_encode(name)}={uri_encode(params[name])}"
        for name in sorted(params)
    )


def _normalized_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    return {name.lower(): str(value).strip() for name, value in headers.items()}


def canonical_headers(headers: Mapping[str, str]) -> str:
    normalized = _normalized_headers(headers)
    return ''.join(f"{name}:{normalized[name]}\n" for name in sorted(normalized))


def signed_headers(headers: Mapping[str, str]) -> str:
    return ';'.join(sorted(_normalized_headers(headers)))


def host_header(endpoint: str, port: Optional[int] = None, use_ssl: bool = False) -> str:
    """Endpoint host, with the port appended unless it is the scheme default"""
    scheme = 'https' if use_ssl else 'http'
    if port is None or port == DEFAULT_PORTS[scheme]:
        return endpoint
    return f"{endpoint}:{port}"


def presign_query_params(access_key: str, scope: str, timestamp: str,
                         expires_in: int, signed: str = 'host') -> Dict[str, str]:
    return {
        'X-Amz-Algorithm': ALGORITHM,
        'X-Amz-Credential': f"{access_key}/{scope}",
        'X-Amz-Date': timestamp,
        'X-Amz-Expires': str(expires_in),
        'X-Amz-SignedHeaders': signed,
    }


def build_canonical_request(request: SigningRequest) -> str:
    # canonical_headers already ends with a newline, which together with
    # the join below yields the blank line SigV4 expects
    return '\n'.join([
        request.method,
        request.canonical_uri,
        canonical_query_string(request.query_params),
        canonical_headers(request.headers),
        signed_headers(request.headers),
        request.payload_hash,
    ])

from .hashing import BytesLike, mac

DEFAULT_REGION = 'us-east-1'
SERVICE = 's3'
KEY_PREFIX = 'AWS4'
TERMINATOR = 'aws4_request'


def credential_scope(date_stamp: str, region: str = DEFAULT_REGION, service: str = SERVICE) -> str:
    return f"{date_stamp}/{region}/{service}/{TERMINATOR}"


def derive_signing_key(secret_key: BytesLike, date_stamp: str,
                       region: str = DEFAULT_REGION, service: str = SERVICE) -> bytes:
    """
    Derive the SigV4 signing key scoped to a date, region and service.

    Each HMAC output keys the next step, so the order below is fixed:
    date, region, service, then the aws4_request terminator.
    """
    if isinstance(secret_key, bytes):
        seed = KEY_PREFIX.encode('utf-8') + secret_key
    else:
        seed = KEY_PREFIX + secret_key

    k_date = mac(seed, date_stamp)
    k_region = mac(k_date, region)
    k_service = mac(k_region, service)
    return mac(k_service, TERMINATOR)

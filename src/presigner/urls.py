from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .canonical import (
    SigningRequest,
    canonical_query_string,
    canonical_uri,
    host_header,
    presign_query_params,
    signed_headers,
)
from .config import UploadConfig
from .object_key import build_object_key
from .signer import AMZ_DATE_FORMAT, SigningContext, sign_request


@dataclass(frozen=True)
class PresignedUpload:
    upload_url: str
    public_url: str
    object_key: str
    expires_in: int
    amz_date: str

    def to_response(self) -> dict:
        return {'upload_url': self.upload_url, 'public_url': self.public_url}


def base_url(config: UploadConfig) -> str:
    return f"{config.scheme}://{host_header(config.endpoint, config.port, config.use_ssl)}"


def public_url(config: UploadConfig, object_key: str) -> str:
    """URL the object is served from once uploaded, without signing parameters"""
    return f"{base_url(config)}{canonical_uri(config.bucket, object_key)}"


def presigned_put_url(config: UploadConfig, object_key: str, now: datetime) -> str:
    """
    Sign a PUT of object_key valid for config.expiry_seconds from now.

    X-Amz-Date and the expiry window share the same instant, so the URL
    is valid for exactly the configured number of seconds.
    """
    context = SigningContext.at(now, config.secret_key, config.access_key, config.region)
    headers = {'host': host_header(config.endpoint, config.port, config.use_ssl)}
    request = SigningRequest(
        canonical_uri=canonical_uri(config.bucket, object_key),
        query_params=presign_query_params(
            config.access_key,
            context.scope,
            context.timestamp,
            config.expiry_seconds,
            signed=signed_headers(headers),
        ),
        headers=headers,
    )
    signature = sign_request(context, request)
    query = canonical_query_string(request.query_params)
    return f"{base_url(config)}{request.canonical_uri}?{query}&X-Amz-Signature={signature}"


def generate_presigned_upload(config: UploadConfig, filename: str,
                              now: Optional[datetime] = None) -> PresignedUpload:
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    object_key = build_object_key(filename, now)
    return PresignedUpload(
        upload_url=presigned_put_url(config, object_key, now),
        public_url=public_url(config, object_key),
        object_key=object_key,
        expires_in=config.expiry_seconds,
        amz_date=now.astimezone(timezone.utc).strftime(AMZ_DATE_FORMAT),
    )

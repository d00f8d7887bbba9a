from dataclasses import dataclass
from datetime import datetime, timezone

from .canonical import ALGORITHM, SigningRequest, build_canonical_request
from .errors import SigningError
from .hashing import hex_digest, hex_mac
from .keys import DEFAULT_REGION, SERVICE, credential_scope, derive_signing_key

AMZ_DATE_FORMAT = '%Y%m%dT%H%M%SZ'
DATE_STAMP_FORMAT = '%Y%m%d'


@dataclass(frozen=True)
class SigningContext:
    """Credentials and scope for a single signature"""

    secret_key: str
    access_key: str
    date_stamp: str
    timestamp: str
    region: str = DEFAULT_REGION
    service: str = SERVICE

    def __post_init__(self):
        if self.timestamp[:8] != self.date_stamp:
            raise SigningError(
                f"Date stamp {self.date_stamp} does not match timestamp {self.timestamp}"
            )

    def __repr__(self):
        return (f"SigningContext(access_key={self.access_key!r}, "
                f"timestamp={self.timestamp!r}, region={self.region!r})")

    @classmethod
    def at(cls, instant: datetime, secret_key: str, access_key: str,
           region: str = DEFAULT_REGION, service: str = SERVICE) -> 'SigningContext':
        """Build a context whose date stamp and timestamp come from one instant"""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        instant = instant.astimezone(timezone.utc)
        return cls(
            secret_key=secret_key,
            access_key=access_key,
            date_stamp=instant.strftime(DATE_STAMP_FORMAT),
            timestamp=instant.strftime(AMZ_DATE_FORMAT),
            region=region,
            service=service,
        )

    @property
    def scope(self) -> str:
        return credential_scope(self.date_stamp, self.region, self.service)


def string_to_sign(context: SigningContext, canonical_request: str) -> str:
    return '\n'.join([
        ALGORITHM,
        context.timestamp,
        context.scope,
        hex_digest(canonical_request),
    ])


def sign(context: SigningContext, to_sign: str) -> str:
    """Lowercase hex HMAC of the string-to-sign under the derived key"""
    signing_key = derive_signing_key(
        context.secret_key, context.date_stamp, context.region, context.service
    )
    return hex_mac(signing_key, to_sign)


def sign_request(context: SigningContext, request: SigningRequest) -> str:
    return sign(context, string_to_sign(context, build_canonical_request(request)))

import json
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import boto3

from .errors import ConfigurationError
from .keys import DEFAULT_REGION

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 60 * 5
MAX_EXPIRY_SECONDS = 60 * 60 * 24 * 7
DEFAULT_CORS_ORIGIN = '*'

REQUIRED_VARIABLES = ['MINIO_ENDPOINT', 'MINIO_BUCKET', 'MINIO_ACCESS_KEY', 'MINIO_SECRET_KEY']


@dataclass(frozen=True)
class UploadConfig:
    """Storage endpoint, credentials and response settings for the handler"""

    endpoint: str
    bucket: str
    access_key: str
    secret_key: str
    use_ssl: bool = False
    port: Optional[int] = None
    region: str = DEFAULT_REGION
    expiry_seconds: int = DEFAULT_EXPIRY_SECONDS
    cors_origin: str = DEFAULT_CORS_ORIGIN

    def __repr__(self):
        return (f"UploadConfig(endpoint={self.endpoint!r}, bucket={self.bucket!r}, "
                f"use_ssl={self.use_ssl}, port={self.port}, region={self.region!r}, "
                f"expiry_seconds={self.expiry_seconds})")

    @property
    def scheme(self) -> str:
        return 'https' if self.use_ssl else 'http'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 secrets_client=None) -> 'UploadConfig':
        """
        Build the configuration from environment variables.

        MINIO_SECRET_KEY may be replaced by MINIO_SECRET_KEY_SECRET_NAME,
        naming an AWS Secrets Manager secret that holds the key.

        Raises:
            ConfigurationError: if a required variable is missing or a
                value cannot be used
        """
        if environ is None:
            environ = os.environ

        secret_key = environ.get('MINIO_SECRET_KEY')
        secret_name = environ.get('MINIO_SECRET_KEY_SECRET_NAME')

        missing = [name for name in REQUIRED_VARIABLES if not environ.get(name)]
        if 'MINIO_SECRET_KEY' in missing and secret_name:
            missing.remove('MINIO_SECRET_KEY')
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        if not secret_key:
            secret_key = load_secret_key(secret_name, secrets_client)

        return cls(
            endpoint=environ['MINIO_ENDPOINT'],
            bucket=environ['MINIO_BUCKET'],
            access_key=environ['MINIO_ACCESS_KEY'],
            secret_key=secret_key,
            use_ssl=environ.get('MINIO_USE_SSL') == 'true',
            port=_parse_port(environ.get('MINIO_PORT')),
            region=environ.get('MINIO_REGION') or DEFAULT_REGION,
            expiry_seconds=_parse_expiry(environ.get('EXPIRY_SECONDS')),
            cors_origin=environ.get('CORS_ORIGIN') or DEFAULT_CORS_ORIGIN,
        )


def load_secret_key(secret_name: str, secrets_client=None) -> str:
    """
    Fetch the storage secret key from AWS Secrets Manager.

    The SecretString is either the bare key or a JSON object with a
    'secret_key' field.
    """
    try:
        if secrets_client is None:
            secrets_client = boto3.client('secretsmanager')
        response = secrets_client.get_secret_value(SecretId=secret_name)
    except Exception as e:
        raise ConfigurationError(f"Failed to read secret {secret_name}: {e}") from e

    secret_string = response.get('SecretString')
    if not secret_string:
        raise ConfigurationError(f"Secret {secret_name} has no SecretString")

    try:
        payload = json.loads(secret_string)
    except ValueError:
        return secret_string

    if isinstance(payload, dict):
        if not payload.get('secret_key'):
            raise ConfigurationError(f"Secret {secret_name} has no 'secret_key' field")
        return payload['secret_key']
    return secret_string


def _parse_port(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        port = int(value)
    except ValueError:
        raise ConfigurationError(f"MINIO_PORT must be an integer, got {value!r}")
    if not 0 < port < 65536:
        raise ConfigurationError(f"MINIO_PORT out of range: {port}")
    return port


def _parse_expiry(value: Optional[str]) -> int:
    if not value:
        return DEFAULT_EXPIRY_SECONDS
    try:
        expiry = int(value)
    except ValueError:
        logger.warning("Invalid EXPIRY_SECONDS %r, using %d", value, DEFAULT_EXPIRY_SECONDS)
        return DEFAULT_EXPIRY_SECONDS
    if expiry <= 0:
        logger.warning("Non-positive EXPIRY_SECONDS %d, using %d", expiry, DEFAULT_EXPIRY_SECONDS)
        return DEFAULT_EXPIRY_SECONDS
    if expiry > MAX_EXPIRY_SECONDS:
        raise ConfigurationError(
            f"EXPIRY_SECONDS {expiry} exceeds the SigV4 maximum of {MAX_EXPIRY_SECONDS}"
        )
    return expiry

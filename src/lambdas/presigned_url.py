import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

from presigner.config import UploadConfig
from presigner.errors import (
    MethodNotAllowedError,
    PresignerError,
    RoutingError,
    ValidationError,
)
from presigner.urls import generate_presigned_upload

ROUTE_PATH = '/presignedUrl'
ALLOWED_METHODS = ['GET']

logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

_config: Optional[UploadConfig] = None


def get_config() -> UploadConfig:
    """Build the configuration on first use and keep it for the process lifetime"""
    global _config
    if _config is None:
        _config = UploadConfig.from_env()
        logger.info("Loaded configuration: %r", _config)
    return _config


def reset_config():
    global _config
    _config = None


def _response(status_code: int, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    response_headers = {'Content-Type': 'application/json'}
    if headers:
        response_headers.update(headers)
    return {
        'statusCode': status_code,
        'headers': response_headers,
        'body': json.dumps(body)
    }


def _error_response(error: PresignerError) -> Dict[str, Any]:
    if isinstance(error, MethodNotAllowedError):
        return _response(405, {
            'error': 'Method not allowed',
            'allowed_methods': error.allowed_methods
        }, {'Allow': ', '.join(error.allowed_methods)})
    if isinstance(error, RoutingError):
        return _response(404, {'error': 'Not Found'})
    if isinstance(error, ValidationError):
        return _response(400, {'error': error.message})
    return _response(error.status_code, {
        'error': 'Failed to generate presigned URL',
        'details': error.message
    })


def _request_line(event: Dict[str, Any]):
    """Method and path from an API Gateway proxy event (payload v2.0 or v1.0)"""
    http = (event.get('requestContext') or {}).get('http')
    if http:
        return http.get('method', ''), event.get('rawPath') or http.get('path', '')
    return event.get('httpMethod', ''), event.get('path', '')


def route(event: Dict[str, Any]) -> str:
    """
    Validate method and path, returning the requested filename.

    Raises:
        MethodNotAllowedError: for anything but GET
        RoutingError: for any path other than /presignedUrl
        ValidationError: when the filename parameter is missing, empty or
            not encodable as UTF-8
    """
    method, path = _request_line(event)
    if method.upper() not in ALLOWED_METHODS:
        raise MethodNotAllowedError(method, ALLOWED_METHODS)
    if path != ROUTE_PATH:
        raise RoutingError(f"No route for {path}")

    params = event.get('queryStringParameters') or {}
    filename = params.get('filename')
    if not filename:
        raise ValidationError('Missing filename parameter')
    try:
        filename.encode('utf-8')
    except UnicodeEncodeError:
        raise ValidationError('Invalid filename parameter')
    return filename


def handle_request(event: Dict[str, Any], config: UploadConfig,
                   now: Optional[datetime] = None) -> Dict[str, Any]:
    try:
        filename = route(event)
        upload = generate_presigned_upload(config, filename, now)
    except (RoutingError, ValidationError) as e:
        logger.warning("Rejected request: %s", e.message)
        return _error_response(e)
    except PresignerError as e:
        logger.error("Presigned URL generation failed: %s", e.message)
        return _error_response(e)

    logger.info("Issued upload URL for %s (amz_date=%s, expires_in=%ds)",
                upload.object_key, upload.amz_date, upload.expires_in)
    return _response(200, upload.to_response(), {
        'Access-Control-Allow-Origin': config.cors_origin
    })


def handler(event, context):
    """
    Issue a presigned PUT URL for GET /presignedUrl?filename=<name>.

    The object is stored under {timestamp}_{uuid}{extension}; the response
    carries the signed upload_url and the unsigned public_url.
    """
    request_id = getattr(context, 'aws_request_id', None)
    try:
        config = get_config()
    except PresignerError as e:
        logger.error("[%s] Configuration error: %s", request_id, e.message)
        return _error_response(e)
    except Exception as e:
        logger.exception("[%s] Configuration failed", request_id)
        return _response(500, {
            'error': 'Failed to generate presigned URL',
            'details': str(e)
        })

    try:
        return handle_request(event, config)
    except Exception as e:
        logger.exception("[%s] Unexpected failure", request_id)
        return _response(500, {
            'error': 'Failed to generate presigned URL',
            'details': str(e)
        })

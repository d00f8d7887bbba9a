from typing import List, Optional


class PresignerError(Exception):
    """Base class for failures that end a presigned URL request"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(PresignerError):
    """A required configuration value is absent or unusable"""

    status_code = 500


class ValidationError(PresignerError):
    """The caller sent a missing or malformed parameter"""

    status_code = 400


class RoutingError(PresignerError):
    """The request does not target a known route"""

    status_code = 404


class MethodNotAllowedError(RoutingError):
    status_code = 405

    def __init__(self, method: str, allowed_methods: Optional[List[str]] = None):
        super().__init__(f"Method {method} not allowed")
        self.method = method
        self.allowed_methods = allowed_methods or ["GET"]


class SigningError(PresignerError):
    """A digest or HMAC computation failed"""

    status_code = 500

"""
Error taxonomy for the proxy.

Every failure carries a fixed, client-safe message and an HTTP status. The
message never contains configuration values, secrets or stack traces; callers
log the internal context separately.
"""

INVALID_ROUTE = "Invalid route: No server configured for this path."
SERVER_NOT_FOUND = "Server not found: No configuration available for this route."
SERVICE_UNAVAILABLE = "Service unavailable: Unable to load configuration."
CONFIG_INVALID_REVIEW = "Configuration invalid: Server setup requires review."
CONFIG_INVALID_URL = "Configuration invalid: Backend URL is malformed or insecure."
UNAUTHORIZED = "Unauthorized: Invalid or missing credentials."
BACKEND_UNAVAILABLE = "Backend unavailable: Target server is unreachable."
INTERNAL_SERVER_ERROR = "Internal server error: An unexpected issue occurred."


class ProxyError(Exception):
    """Base class for failures that end a request with a fixed response."""

    status_code: int = 500
    default_message: str = INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RouteUnresolved(ProxyError):
    status_code = 404
    default_message = INVALID_ROUTE


class ServerNotFound(ProxyError):
    status_code = 404
    default_message = SERVER_NOT_FOUND


class ConfigLoadFailure(ProxyError):
    default_message = SERVICE_UNAVAILABLE


class GlobalAuthConfigInvalid(ProxyError):
    """Raised for a malformed global policy. Never treated as "no global auth"."""

    default_message = CONFIG_INVALID_REVIEW


class ConfigInvalid(ProxyError):
    default_message = CONFIG_INVALID_REVIEW


class Unauthorized(ProxyError):
    status_code = 401
    default_message = UNAUTHORIZED


class BackendUnreachable(ProxyError):
    status_code = 502
    default_message = BACKEND_UNAVAILABLE


class InternalError(ProxyError):
    default_message = INTERNAL_SERVER_ERROR


class MissingSecretError(Exception):
    """A strict placeholder referenced a secret that is not defined."""

    def __init__(self, secret_name: str):
        self.secret_name = secret_name
        super().__init__(f"Missing required secret: {secret_name}")


class ConfigValidationError(Exception):
    """
    Validator rejection. ``message`` is safe to return to clients, ``context``
    is for logs only.
    """

    def __init__(self, message: str, context: str = ""):
        self.message = message
        self.context = context
        super().__init__(message)


class ConfigStoreError(Exception):
    """The configuration store could not be read."""

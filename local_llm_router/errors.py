"""
Error taxonomy for the router and its adapters.

Adapters raise these; the router decides which ones cross its boundary.
health_check() never raises any of them.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from local_llm_router.adapters.schema import Provider


class RouterError(Exception):
    """Base class for every error raised by local-llm-router."""

    def __init__(self, message: str, provider: Optional["Provider"] = None):
        super().__init__(message)
        self.provider = provider


class TransportError(RouterError):
    """Backend unreachable: connection refused, DNS failure, or timeout."""
    pass


class UpstreamError(RouterError):
    """Backend answered with a non-2xx HTTP status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        provider: Optional["Provider"] = None,
    ):
        super().__init__(message, provider=provider)
        self.status_code = status_code
        self.body = body


class ProtocolError(RouterError):
    """Backend response body does not match the expected shape."""
    pass


class ModelNotFoundError(RouterError, LookupError):
    """Model id absent from a provider's listing."""

    def __init__(self, model_id: str, provider: Optional["Provider"] = None):
        where = f" on {provider.display_name}" if provider is not None else ""
        super().__init__(f"Model {model_id} not found{where}", provider=provider)
        self.model_id = model_id


class InvalidRequestError(RouterError, ValueError):
    """Request rejected before any network call was made."""
    pass


class InvalidProviderError(RouterError, ValueError):
    """Provider hint does not name a known provider (strict routing only)."""
    pass

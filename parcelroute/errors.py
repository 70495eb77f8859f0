"""
Error taxonomy for the pricing pipeline.

Every error carries a message code plus parameters so the text can be rendered
in any locale (see i18n.py). str(error) gives the English rendering.
"""

from typing import Optional

from .i18n import get_localizer


class DeliveryPricingError(Exception):
    """Base class for all errors raised by the pricing core."""

    code = "internal_error"
    audience = "user"  # "operator" errors are not shown verbatim to customers
    retryable = False
    status_code = 500

    def __init__(self, code: Optional[str] = None, detail: Optional[str] = None, **params):
        if code:
            self.code = code
        self.detail = detail
        self.params = params
        super().__init__(self.localized("en"))

    def localized(self, locale: str) -> str:
        """Render the message in the given locale."""
        return get_localizer(locale).error(self)


class ConfigurationError(DeliveryPricingError):
    """Missing credentials, unknown providers or malformed tier definitions."""

    code = "configuration_error"
    audience = "operator"
    status_code = 503


class ValidationError(DeliveryPricingError):
    """Bad caller input, safe to show to the end user."""

    code = "validation_error"
    status_code = 400


class ProviderError(DeliveryPricingError):
    """A geocoding/routing/model provider failed or answered with garbage."""

    code = "provider_error"
    retryable = True
    status_code = 502


class ProviderAuthError(ProviderError):
    """The provider rejected our credential."""

    code = "provider_auth"
    audience = "operator"
    retryable = False


class DecodeError(ProviderError):
    """Encoded route geometry could not be decoded."""

    code = "polyline_malformed"
    retryable = False

    def __init__(self, position: int, reason: str = "truncated"):
        self.position = position
        super().__init__(position=position, reason=reason)


class RouteNotFoundError(DeliveryPricingError):
    """The provider found no drivable route between the points."""

    code = "route_not_found"
    status_code = 422


class AddressNotFoundError(DeliveryPricingError):
    """A text address resolved to zero candidates."""

    status_code = 404

    def __init__(self, side: str, query: str):
        self.side = side
        self.query = query
        super().__init__(code=f"address_not_found_{side}", query=query)

"""
Provider-independent adapter interfaces.

Each geocoding/routing provider is one strategy class implementing
GeocoderAdapter or RouterAdapter. The base classes own the behaviour that must
be identical across providers: query validation, credential checks, HTTP error
mapping and the router fallback policy.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence

import httpx

from ..config import is_placeholder, require_credential
from ..errors import (
    ConfigurationError,
    ProviderAuthError,
    ProviderError,
    ValidationError,
)
from ..models.geo import AddressCandidate, GeoPoint, RouteResult
from ..utils.geo import estimate_route, haversine_km, path_length_km

logger = logging.getLogger(__name__)


class ProviderClient:
    """Shared async HTTP plumbing for provider adapters."""

    service_name = "provider"
    env_var = ""
    auth_scope = ""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    def _credential(self) -> str:
        return require_credential(self.api_key, self.service_name, self.env_var, self.auth_scope)

    async def _request_json(self, method: str, url: str, **kwargs) -> tuple[int, Any]:
        """
        Perform one request and parse the JSON body.

        Transport failures and unparseable bodies become ProviderError; 401/403
        become ProviderAuthError. Any other status is returned to the caller,
        since some providers report "no route" with a 4xx and a JSON body.
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"[{self.service_name}] timeout: {e!r}")
            raise ProviderError(
                "provider_unavailable", service=self.service_name, detail="request timed out"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"[{self.service_name}] transport error: {e!r}")
            raise ProviderError(
                "provider_unavailable", service=self.service_name, detail=str(e) or type(e).__name__
            ) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code in (401, 403):
            logger.error(f"[{self.service_name}] auth failure {response.status_code}: {data}")
            raise ProviderAuthError(
                service=self.service_name,
                scope=self.auth_scope,
                detail=self._error_message(data) or f"HTTP {response.status_code}",
            )

        if data is None:
            logger.error(f"[{self.service_name}] non-JSON response, HTTP {response.status_code}")
            raise ProviderError("provider_malformed", service=self.service_name)

        return response.status_code, data

    def _error_message(self, data: Any) -> Optional[str]:
        """Extract the provider's own error text from a response body."""
        if not isinstance(data, dict):
            return None
        for key in ("error_message", "message"):
            if isinstance(data.get(key), str):
                return data[key]
        error = data.get("error")
        if isinstance(error, dict):
            return error.get("message")
        if isinstance(error, str):
            return error
        return None

    def _provider_error(self, status: int, data: Any) -> ProviderError:
        message = self._error_message(data) or f"HTTP {status}"
        logger.error(f"[{self.service_name}] error {status}: {message}")
        return ProviderError(service=self.service_name, detail=message)


class GeocoderAdapter(ProviderClient, ABC):
    """Forward and reverse geocoding against one provider."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        language: str = "ru",
        max_results: int = 5,
        min_query_length: int = 3,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key=api_key, timeout=timeout, http_client=http_client)
        self.language = language
        self.max_results = max_results
        self.min_query_length = min_query_length

    def validate_query(self, query: str) -> str:
        query = (query or "").strip()
        if len(query) < self.min_query_length:
            raise ValidationError("query_too_short", min_length=self.min_query_length)
        return query

    async def search(self, query: str) -> list[AddressCandidate]:
        """Resolve free text to candidates, best first. No results -> []."""
        query = self.validate_query(query)
        credential = self._credential()
        candidates = await self._search(query, credential)
        logger.debug(f"[{self.service_name}] '{query}' -> {len(candidates)} candidates")
        return candidates[: self.max_results]

    async def reverse(self, point: GeoPoint) -> Optional[AddressCandidate]:
        """Resolve a point to the nearest address, or None."""
        credential = self._credential()
        return await self._reverse(point, credential)

    def _parse_candidate(
        self, parse: Callable[[Any], Optional[AddressCandidate]], item: Any
    ) -> Optional[AddressCandidate]:
        """Run a result parser; bad fields in a successful body are a malformed response."""
        try:
            return parse(item)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            logger.error(f"[{self.service_name}] unreadable result {item!r}: {e}")
            raise ProviderError("provider_malformed", service=self.service_name) from e

    @abstractmethod
    async def _search(self, query: str, credential: str) -> list[AddressCandidate]:
        ...

    @abstractmethod
    async def _reverse(self, point: GeoPoint, credential: str) -> Optional[AddressCandidate]:
        ...


class GeocoderChain:
    """
    Failover across geocoders.

    Moves to the next provider only on ConfigurationError or ProviderError.
    Validation errors and empty results are answers, not failures.
    """

    def __init__(self, geocoders: Sequence[GeocoderAdapter]):
        if not geocoders:
            raise ValueError("GeocoderChain needs at least one geocoder")
        self.geocoders = list(geocoders)
        self.min_query_length = self.geocoders[0].min_query_length

    async def close(self):
        for geocoder in self.geocoders:
            await geocoder.close()

    async def _first_success(self, method: str, *args):
        last_error: Optional[Exception] = None
        for geocoder in self.geocoders:
            try:
                return await getattr(geocoder, method)(*args)
            except (ConfigurationError, ProviderError) as e:
                logger.warning(f"[GeocoderChain] {geocoder.service_name} failed: {e}")
                last_error = e
        raise last_error

    async def search(self, query: str) -> list[AddressCandidate]:
        return await self._first_success("search", query)

    async def reverse(self, point: GeoPoint) -> Optional[AddressCandidate]:
        return await self._first_success("reverse", point)


class RouterAdapter(ProviderClient, ABC):
    """Driving distance and geometry between two points."""

    requires_credential = True

    def __init__(
        self,
        api_key: Optional[str] = None,
        fallback_estimate: bool = True,
        circuity_factor: float = 1.3,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key=api_key, timeout=timeout, http_client=http_client)
        self.fallback_estimate = fallback_estimate
        self.circuity_factor = circuity_factor

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> RouteResult:
        """
        Route between two points.

        Without a usable credential the straight-line estimate is returned when
        fallback is enabled; otherwise ConfigurationError. Provider failures
        are never papered over with an estimate.
        """
        credential = None
        if self.requires_credential:
            if is_placeholder(self.api_key):
                if self.fallback_estimate:
                    logger.warning(
                        f"[{self.service_name}] no API key configured, "
                        f"using straight-line estimate x{self.circuity_factor}"
                    )
                    return estimate_route(origin, destination, self.circuity_factor)
            credential = self._credential()

        result = await self._route(origin, destination, credential)
        self._sanity_check(origin, destination, result)
        return result

    def _sanity_check(self, origin: GeoPoint, destination: GeoPoint, result: RouteResult):
        straight = haversine_km(origin, destination)
        if result.distance_km + 0.05 < straight:
            # Road shorter than the crow flies: usually swapped lat/lon somewhere
            logger.warning(
                f"[{self.service_name}] routed distance {result.distance_km:.2f} km is shorter "
                f"than straight line {straight:.2f} km"
            )
        if result.geometry:
            drawn = path_length_km(result.geometry)
            if result.distance_km > 0 and abs(drawn - result.distance_km) / result.distance_km > 0.25:
                logger.warning(
                    f"[{self.service_name}] geometry length {drawn:.2f} km disagrees with "
                    f"reported distance {result.distance_km:.2f} km"
                )

    @abstractmethod
    async def _route(
        self, origin: GeoPoint, destination: GeoPoint, credential: Optional[str]
    ) -> RouteResult:
        ...

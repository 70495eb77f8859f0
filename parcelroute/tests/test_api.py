"""
Test the HTTP API with injected fake adapters.
"""

import time

import httpx
from fastapi.testclient import TestClient

from ..clients import GoogleGeocoder
from ..config import Config
from ..main import create_app
from ..processing.pipeline import DeliveryPricingPipeline
from .helpers import MOSCOW_CITY, MOSCOW_KREMLIN, STANDARD_TIERS, FakeGeocoder, FakeRouter, candidate, make_pipeline

ANSWERS = {
    "Красная площадь, 1": [candidate("Россия, Москва, Красная площадь, 1", MOSCOW_KREMLIN)],
    "Пресненская наб., 12": [candidate("Россия, Москва, Пресненская набережная, 12", MOSCOW_CITY)],
}


def _client(locale: str = "ru", **config_overrides) -> TestClient:
    pipeline = make_pipeline(FakeGeocoder(ANSWERS), FakeRouter(4.2), locale=locale, **config_overrides)
    return TestClient(create_app(pipeline=pipeline))


def test_health_and_providers():
    print("\n=== Testing Service Endpoints ===")
    client = _client()

    assert client.get("/api/health").json()["status"] == "ok"
    providers = client.get("/api/providers").json()
    assert providers["geocoder"] == "google"
    assert providers["pricing"] == "tiers"
    assert providers["configured"]["osrm"] is True

    print("✓ Health and providers respond")


def test_price_endpoint():
    """POST /api/price with two addresses."""
    print("\n=== Testing Price Endpoint ===")
    client = _client(locale="en")

    response = client.post(
        "/api/price",
        json={"pickup": {"address": "Красная площадь, 1"}, "dropoff": {"address": "Пресненская наб., 12"}},
    )
    assert response.status_code == 200
    quote = response.json()
    assert quote["price"] == 20
    assert quote["distance_km"] == 4.2
    assert quote["tier"]["range"] == "3-5"
    assert quote["policy"] == "matched"
    assert quote["is_estimate"] is False
    assert quote["pickup"]["point"] == {"lat": MOSCOW_KREMLIN.lat, "lon": MOSCOW_KREMLIN.lon}

    print(f"✓ {quote['explanation']}")


def test_price_with_points_and_tiers():
    client = _client()
    response = client.post(
        "/api/price",
        json={
            "pickup": {"point": {"lat": MOSCOW_KREMLIN.lat, "lon": MOSCOW_KREMLIN.lon}},
            "dropoff": {"point": {"lat": MOSCOW_CITY.lat, "lon": MOSCOW_CITY.lon}},
            "tiers": [{"range": "0-100", "price": 99}],
        },
    )
    assert response.status_code == 200
    assert response.json()["price"] == 99


def test_price_unknown_address_localized():
    """404 with the message in the requested language."""
    client = _client(locale="ru")
    body = {"pickup": {"address": "Ftc"}, "dropoff": {"address": "Пресненская наб., 12"}}

    response = client.post("/api/price", json=body)
    assert response.status_code == 404
    payload = response.json()
    assert payload["error"] == "address_not_found_pickup"
    assert "Ftc" in payload["message"]
    assert "отправления" in payload["message"]
    assert payload["retryable"] is False

    english = client.post("/api/price?lang=en", json=body).json()
    assert english["message"] == "Could not find the pickup address 'Ftc'. Please enter a more specific address."

    header = client.post("/api/price", json=body, headers={"Accept-Language": "en-GB,en;q=0.9"}).json()
    assert header["message"] == english["message"]

    print("✓ Unknown address reported per locale")


def test_price_request_needs_a_location():
    client = _client()
    response = client.post("/api/price", json={"pickup": {}, "dropoff": {"address": "Пресненская наб., 12"}})
    assert response.status_code == 422


def test_misconfigured_provider_hides_details():
    """Missing keys are an operator problem: customers see a generic message."""
    def no_request(request):
        raise AssertionError("no request expected")

    config = Config(default_tiers=tuple(STANDARD_TIERS), default_locale="en")
    geocoder = GoogleGeocoder(
        api_key=None, http_client=httpx.AsyncClient(transport=httpx.MockTransport(no_request))
    )
    pipeline = DeliveryPricingPipeline(config, geocoder=geocoder, router=FakeRouter(4.2))
    client = TestClient(create_app(pipeline=pipeline))

    response = client.get("/api/addresses/search", params={"query": "Красная площадь"})
    assert response.status_code == 503
    payload = response.json()
    assert payload["error"] == "credential_missing"
    assert "GOOGLE_MAPS_API_KEY" not in payload["message"]
    assert "temporarily unavailable" in payload["message"]


def test_malformed_provider_body_is_502():
    """Unreadable coordinates in a 200 response surface as a provider error, not a 500."""
    body = {
        "status": "OK",
        "results": [{"formatted_address": "Tverskaya St", "geometry": {"location": {"lat": None, "lng": 37.6}}}],
    }
    config = Config(default_tiers=tuple(STANDARD_TIERS), default_locale="en")
    geocoder = GoogleGeocoder(
        api_key="real-key",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body))),
    )
    pipeline = DeliveryPricingPipeline(config, geocoder=geocoder, router=FakeRouter(4.2))
    client = TestClient(create_app(pipeline=pipeline))

    response = client.get("/api/addresses/search", params={"query": "Тверская 7"})
    assert response.status_code == 502
    assert response.json()["error"] == "provider_malformed"


def test_search_and_short_query():
    client = _client(locale="en")
    found = client.get("/api/addresses/search", params={"query": "Красная площадь, 1"}).json()
    assert found[0]["kind"] == "house"

    response = client.get("/api/addresses/search", params={"query": "ab"})
    assert response.status_code == 400
    assert "at least 3 characters" in response.json()["message"]


def test_suggest_endpoint():
    client = _client()
    assert client.get("/api/addresses/suggest", params={"query": "Кр"}).json() == []
    suggestions = client.get("/api/addresses/suggest", params={"query": "Красная площадь, 1"}).json()
    assert len(suggestions) == 1


def test_reverse_endpoint():
    client = _client()
    found = client.get("/api/addresses/reverse", params={"lat": MOSCOW_CITY.lat, "lon": MOSCOW_CITY.lon})
    assert found.status_code == 200
    assert found.json()["text"].endswith("12")

    nothing = client.get("/api/addresses/reverse", params={"lat": 0, "lon": 0})
    assert nothing.status_code == 200
    assert nothing.json() is None

    assert client.get("/api/addresses/reverse", params={"lat": 91, "lon": 0}).status_code == 422


def test_tier_endpoints():
    """Default tiers and admin-side validation."""
    print("\n=== Testing Tier Endpoints ===")
    client = _client()

    tiers = client.get("/api/tiers").json()
    assert [t["price"] for t in tiers] == [10, 20, 30, 50]

    ok = client.post("/api/tiers/validate", json=[{"range": "0-3", "price": 10}, {"range": "3-5", "price": 20}])
    assert ok.json() == {"valid": True, "warnings": []}

    overlap = client.post("/api/tiers/validate", json=[{"range": "0-5", "price": 10}, {"range": "3-8", "price": 20}])
    assert overlap.json()["valid"] is True
    assert len(overlap.json()["warnings"]) == 1

    broken = client.post("/api/tiers/validate?lang=en", json=[{"range": "five", "price": 10}])
    assert broken.json()["valid"] is False
    assert "Malformed pricing tier range 'five'" in broken.json()["warnings"][0]

    print("✓ Tier endpoints respond")


def test_suggest_websocket():
    """Server-side debounced suggestions over a WebSocket."""
    print("\n=== Testing Suggestion WebSocket ===")
    client = _client(debounce_ms=0)

    with client.websocket_connect("/api/addresses/suggest/ws") as websocket:
        websocket.send_text("Красная площадь, 1")
        message = websocket.receive_json()
        assert message["query"] == "Красная площадь, 1"
        assert message["suggestions"][0]["text"] == "Россия, Москва, Красная площадь, 1"

        websocket.send_text("Кр")
        assert websocket.receive_json() == {"query": "Кр", "suggestions": []}

    print("✓ WebSocket suggestions delivered")


class CrashingGeocoder(FakeGeocoder):
    """Raises a non-domain error for one query."""

    def __init__(self, answers, crash_on: str):
        super().__init__(answers)
        self.crash_on = crash_on
        self.crashes = 0

    async def search(self, query):
        if query == self.crash_on:
            self.crashes += 1
            raise RuntimeError("geocoder bug")
        return await super().search(query)


def test_suggest_websocket_survives_crash():
    """A failing search sends nothing and the socket keeps answering."""
    geocoder = CrashingGeocoder(ANSWERS, crash_on="Сбой поиска")
    pipeline = make_pipeline(geocoder, FakeRouter(4.2), locale="ru", debounce_ms=0)
    client = TestClient(create_app(pipeline=pipeline))

    with client.websocket_connect("/api/addresses/suggest/ws") as websocket:
        websocket.send_text("Сбой поиска")
        time.sleep(0.1)
        websocket.send_text("Красная площадь, 1")
        message = websocket.receive_json()
        assert message["query"] == "Красная площадь, 1"
        assert len(message["suggestions"]) == 1

    assert geocoder.crashes == 1

    print("✓ Crashed suggestion dropped, socket still usable")


def run_all_tests():
    """Run all API tests."""
    print("\n" + "=" * 60)
    print("HTTP API - TEST SUITE")
    print("=" * 60)

    test_health_and_providers()
    test_price_endpoint()
    test_price_with_points_and_tiers()
    test_price_unknown_address_localized()
    test_price_request_needs_a_location()
    test_misconfigured_provider_hides_details()
    test_malformed_provider_body_is_502()
    test_search_and_short_query()
    test_suggest_endpoint()
    test_reverse_endpoint()
    test_tier_endpoints()
    test_suggest_websocket()
    test_suggest_websocket_survives_crash()

    print("\n" + "=" * 60)
    print("✅ ALL API TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    run_all_tests()

import httpx
import pytest

from journeyplan.core.errors import GeolocationError
from journeyplan.geo.backends.google_backend import GoogleGeocodingResolver
from journeyplan.models.domain import Coordinate, new_journey_plan
from journeyplan.services.stop_locator import StopLocator


def _transport(payload: dict, calls: list, status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


OK_PAYLOAD = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "Dam Square, Amsterdam",
            "geometry": {"location": {"lat": 52.373, "lng": 4.8926}},
        }
    ],
}


@pytest.mark.asyncio
async def test_resolve_parses_first_result_and_caches():
    calls = []
    resolver = GoogleGeocodingResolver(api_key="k", transport=_transport(OK_PAYLOAD, calls))

    first = await resolver.resolve("Dam Square")
    second = await resolver.resolve("Dam Square")

    assert first == Coordinate(52.373, 4.8926, "Dam Square, Amsterdam")
    assert second is first
    assert len(calls) == 1
    assert calls[0].url.params["address"] == "Dam Square"
    assert calls[0].url.params["key"] == "k"


@pytest.mark.asyncio
async def test_reverse_resolve_returns_formatted_address():
    calls = []
    resolver = GoogleGeocodingResolver(api_key="k", transport=_transport(OK_PAYLOAD, calls))

    address = await resolver.reverse_resolve(Coordinate(52.373, 4.8926))

    assert address == "Dam Square, Amsterdam"
    assert calls[0].url.params["latlng"] == "52.373,4.8926"


@pytest.mark.asyncio
async def test_zero_results_is_a_geolocation_error():
    resolver = GoogleGeocodingResolver(
        api_key="k", transport=_transport({"status": "ZERO_RESULTS", "results": []}, [])
    )

    with pytest.raises(GeolocationError):
        await resolver.resolve("nowhere")


@pytest.mark.asyncio
async def test_http_error_is_a_geolocation_error():
    resolver = GoogleGeocodingResolver(api_key="k", transport=_transport({}, [], status_code=500))

    with pytest.raises(GeolocationError):
        await resolver.resolve("Dam Square")


@pytest.mark.asyncio
async def test_missing_api_key_is_a_geolocation_error():
    resolver = GoogleGeocodingResolver(api_key="", transport=_transport(OK_PAYLOAD, []))

    with pytest.raises(GeolocationError):
        await resolver.resolve("Dam Square")


@pytest.mark.asyncio
async def test_result_without_geometry_is_a_geolocation_error():
    payload = {"status": "OK", "results": [{"formatted_address": "Dam Square"}]}
    resolver = GoogleGeocodingResolver(api_key="k", transport=_transport(payload, []))

    with pytest.raises(GeolocationError):
        await resolver.resolve("Dam Square")


@pytest.mark.asyncio
async def test_non_json_body_is_a_geolocation_error():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, text="<html>maintenance</html>")
    )
    resolver = GoogleGeocodingResolver(api_key="k", transport=transport)

    with pytest.raises(GeolocationError):
        await resolver.resolve("Dam Square")
    with pytest.raises(GeolocationError):
        await resolver.reverse_resolve(Coordinate(52.373, 4.8926))


@pytest.mark.asyncio
async def test_malformed_reply_leaves_stop_unlocated():
    payload = {"status": "OK", "results": [{"formatted_address": "Dam Square"}]}
    resolver = GoogleGeocodingResolver(api_key="k", transport=_transport(payload, []))
    plan = new_journey_plan("requester-1")
    stop = plan.stops[0]

    await StopLocator(resolver).set_address(plan, stop.id, "Dam Square")

    assert stop.address_input == "Dam Square"
    assert stop.location is None

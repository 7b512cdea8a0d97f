import pytest
from fastapi.testclient import TestClient

from conftest import FailingGateway
from journeyplan.geo.backends.static_backend import StaticGeolocationResolver
from journeyplan.llm.analyzer import MockAnalysisGateway
from journeyplan.services.journey_service import JourneyService
from journeyplan.storage.repository import InMemoryRepository
from main import create_app


def make_client(gateway=None) -> TestClient:
    service = JourneyService(
        repository=InMemoryRepository(),
        gateway=gateway or MockAnalysisGateway(),
        resolver=StaticGeolocationResolver(),
    )
    return TestClient(create_app(journey_service=service))


@pytest.fixture
def client() -> TestClient:
    return make_client()


def _create(client: TestClient, title: str = "Errand Run") -> dict:
    resp = client.post("/journeys/", json={"title": title})
    assert resp.status_code == 201
    return resp.json()


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert "llm_provider" in body


def test_plan_journey_and_finalize(client):
    plan = _create(client)
    journey_id = plan["id"]
    plan = client.post(f"/journeys/{journey_id}/stops").json()
    plan = client.post(f"/journeys/{journey_id}/stops").json()
    assert [s["name"] for s in plan["stops"]] == ["Origin", "Stop 1", "Stop 2", "Final Destination"]

    origin, stop1, stop2, final = [s["id"] for s in plan["stops"]]
    for stop_id, address in [
        (origin, "Central Station"),
        (stop1, "City Hall"),
        (stop2, "Market Square"),
        (final, "Airport"),
    ]:
        resp = client.put(f"/journeys/{journey_id}/stops/{stop_id}/address", json={"address": address})
        assert resp.json()["location"] is not None

    resp = client.put(
        f"/journeys/{journey_id}/stops/{stop1}/actions",
        json={"type": "pickup_person", "details": {"passenger_count": 2}},
    )
    assert resp.json()["status"] == "configured"
    client.put(
        f"/journeys/{journey_id}/stops/{stop2}/actions",
        json={"type": "assign_task", "details": {"task_details": "clean car"}},
    )
    assert client.get(f"/journeys/{journey_id}").json()["can_finalize"] is True

    resp = client.post(f"/journeys/{journey_id}/finalize")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "planned"
    assert body["draft_count"] == 2
    ride, task = [o["draft"] for o in body["outcomes"]]
    assert ride["action_type"] == "pickup_person"
    assert ride["destination_location"]["address"] == "Market Square"
    assert task["destination_location"]["address"] == "Market Square"

    requests = client.get(f"/journeys/{journey_id}/requests").json()["requests"]
    assert len(requests) == 2

    again = client.post(f"/journeys/{journey_id}/finalize")
    assert again.status_code == 422
    locked = client.post(f"/journeys/{journey_id}/stops")
    assert locked.status_code == 409


def test_finalize_with_unlocated_stops_reports_them(client):
    journey_id = _create(client)["id"]

    resp = client.post(f"/journeys/{journey_id}/finalize")

    assert resp.status_code == 422
    assert resp.json()["offending_stops"] == ["Origin", "Final Destination"]


def test_failed_geocoding_keeps_stop_unlocated(client):
    plan = _create(client)
    stop_id = plan["stops"][0]["id"]

    resp = client.put(
        f"/journeys/{plan['id']}/stops/{stop_id}/address", json={"address": "Atlantis"}
    )

    assert resp.status_code == 200
    assert resp.json()["address_input"] == "Atlantis"
    assert resp.json()["location"] is None


def test_place_stop_from_map_click(client):
    plan = _create(client)
    stop_id = plan["stops"][1]["id"]

    resp = client.put(
        f"/journeys/{plan['id']}/stops/{stop_id}/location", json={"lat": 52.376, "lng": 4.917}
    )

    assert resp.json()["address_input"] == "Harbor"
    assert resp.json()["location"]["address"] == "Harbor"


def test_remove_stop_floor_is_noop(client):
    plan = _create(client)

    resp = client.delete(f"/journeys/{plan['id']}/stops/{plan['stops'][0]['id']}")

    assert resp.status_code == 200
    assert len(resp.json()["stops"]) == 2


def test_unknown_detail_field_is_rejected(client):
    plan = _create(client)

    resp = client.put(
        f"/journeys/{plan['id']}/stops/{plan['stops'][0]['id']}/actions",
        json={"type": "wait", "details": {"passenger_count": 2}},
    )

    assert resp.status_code == 422


def test_detail_value_of_wrong_type_is_rejected(client):
    plan = _create(client)
    stop = plan["stops"][0]

    resp = client.put(
        f"/journeys/{plan['id']}/stops/{stop['id']}/actions",
        json={"type": "assign_task", "details": {"required_skills": "welding"}},
    )

    assert resp.status_code == 422
    assert "required_skills" in resp.json()["detail"]
    assert client.get(f"/journeys/{plan['id']}").json()["stops"][0]["actions"] == []


def test_delete_action_and_unknown_ids(client):
    plan = _create(client)
    journey_id = plan["id"]
    stop_id = plan["stops"][0]["id"]
    action = client.put(
        f"/journeys/{journey_id}/stops/{stop_id}/actions",
        json={"type": "wait", "details": {"duration_minutes": 5}},
    ).json()

    resp = client.delete(f"/journeys/{journey_id}/stops/{stop_id}/actions/{action['id']}")
    assert resp.json()["actions"] == []
    resp = client.delete(f"/journeys/{journey_id}/stops/{stop_id}/actions/{action['id']}")
    assert resp.status_code == 200

    assert client.get("/journeys/missing").status_code == 404
    assert client.delete(f"/journeys/{journey_id}/stops/missing").status_code == 404
    resp = client.put(
        f"/journeys/{journey_id}/stops/missing/address", json={"address": "Harbor"}
    )
    assert resp.status_code == 404
    assert "missing" in resp.json()["detail"]


def test_finalize_reports_local_analysis_when_gateway_fails():
    client = make_client(gateway=FailingGateway())
    plan = _create(client)
    journey_id = plan["id"]
    origin, final = [s["id"] for s in plan["stops"]]
    client.put(f"/journeys/{journey_id}/stops/{origin}/address", json={"address": "Harbor"})
    client.put(f"/journeys/{journey_id}/stops/{final}/address", json={"address": "Airport"})
    client.put(
        f"/journeys/{journey_id}/stops/{origin}/actions",
        json={"type": "pickup_item", "details": {"item_description": "parcel"}},
    )

    body = client.post(f"/journeys/{journey_id}/finalize").json()

    assert body["draft_count"] == 1
    assert body["fallback_count"] == 1
    assert body["outcomes"][0]["refined"] is False
    assert body["outcomes"][0]["draft"]["classification"] == "ride_delivery"

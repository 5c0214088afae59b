# tests/test_health.py
from http import HTTPStatus


def test_health_endpoint_ok(client):
    """
    Basic sanity test to verify that /health responds with 200 OK
    and has the expected JSON shape and types.
    """
    response = client.get("/health")

    assert response.status_code == HTTPStatus.OK
    data = response.json()

    assert data["status"] == "ok"
    assert data["app_name"] == "Facilitator Activity"
    assert isinstance(data["environment"], str)
    assert "timestamp_utc" in data


def test_health_does_not_touch_repositories(client, repos):
    """
    Health must answer even when no data source is configured.
    """
    repos.scans = None

    response = client.get("/health")
    assert response.status_code == HTTPStatus.OK

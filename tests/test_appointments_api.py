# tests/test_appointments_api.py
from datetime import date, datetime, timedelta, timezone
from http import HTTPStatus

from app.repositories.memory import InMemoryBadgeRepository, InMemoryProfileRepository
from app.schemas.appointment import AppointmentRecord, ScanEvent
from app.schemas.badge import BadgeRecord, BadgeRequestRecord
from app.schemas.facilitator import FacilitatorProfileRecord

UTC = timezone.utc
START = datetime(2025, 6, 10, 10, tzinfo=UTC)


def _seed(repos) -> None:
    repos.appointments.add(
        AppointmentRecord(
            id=101,
            host_id=7,
            scheduled_start=START,
            scheduled_end=START + timedelta(hours=1),
            badge_ids=[3, 4],
            attendee_ids=[7, 8],
        )
    )
    repos.appointments.add(AppointmentRecord(id=102, host_id=7))
    repos.badges = InMemoryBadgeRepository(
        badges=[
            BadgeRecord(id=3, label="Shop Safety", capacity=5),
            BadgeRecord(id=4, label="Laser Cutter", capacity=4, prerequisite_ids=[3]),
        ],
        requests=[BadgeRequestRecord(member_id=50, badge_id=3, status="active")],
    )
    repos.profiles = InMemoryProfileRepository([FacilitatorProfileRecord(user_id=7, capacity=3)])


def test_capacity_uses_smallest_limit(client, repos):
    _seed(repos)

    response = client.get("/appointments/101/capacity")
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {
        "appointment_id": 101,
        "capacity": 3,
        "occupied": 2,
        "remaining": 1,
    }


def test_capacity_unknown_appointment_is_404(client, repos):
    _seed(repos)

    response = client.get("/appointments/999/capacity")
    assert response.status_code == HTTPStatus.NOT_FOUND


def test_arrival_classification(client, repos):
    _seed(repos)
    repos.scans.add(ScanEvent(user_id=7, created=START + timedelta(minutes=12)))

    response = client.get("/appointments/101/arrival")
    assert response.status_code == HTTPStatus.OK

    data = response.json()
    assert data["status"] == "late"
    assert data["window"]["end"].startswith("2025-06-10T11:00:00")


def test_arrival_without_schedule_is_conflict(client, repos):
    _seed(repos)

    response = client.get("/appointments/102/arrival")
    assert response.status_code == HTTPStatus.CONFLICT


def test_arrival_without_scan_source_is_unavailable(client, repos):
    _seed(repos)
    repos.scans = None

    response = client.get("/appointments/101/arrival")
    assert response.status_code == HTTPStatus.SERVICE_UNAVAILABLE


def test_badge_eligibility(client, repos):
    _seed(repos)

    allowed = client.get("/badges/4/eligibility/50").json()
    assert allowed["allowed"] is True

    blocked = client.get("/badges/4/eligibility/51").json()
    assert blocked["allowed"] is False
    assert blocked["prerequisites_missing_labels"] == ["Shop Safety"]


def test_badge_eligibility_unknown_badge_is_404(client, repos):
    _seed(repos)

    response = client.get("/badges/99/eligibility/50")
    assert response.status_code == HTTPStatus.NOT_FOUND


def test_backfill_endpoint_records_arrivals(client, repos):
    _seed(repos)
    repos.scans.add(ScanEvent(user_id=7, created=START - timedelta(minutes=5)))

    response = client.post("/arrivals/backfill?start_date=2025-06-10&end_date=2025-06-10")
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {
        "start_date": "2025-06-10",
        "end_date": "2025-06-10",
        "updated": 1,
        "skipped": 0,
        "available": True,
    }


def test_backfill_default_range_spans_configured_days(client, config):
    data = client.post("/arrivals/backfill").json()

    span = date.fromisoformat(data["end_date"]) - date.fromisoformat(data["start_date"])
    assert span.days == config.backfill_days - 1


def test_backfill_rejects_reversed_range(client):
    response = client.post("/arrivals/backfill?start_date=2025-06-10&end_date=2025-06-01")
    assert response.status_code == HTTPStatus.BAD_REQUEST

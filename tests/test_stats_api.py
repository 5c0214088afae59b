# tests/test_stats_api.py
from datetime import datetime, timedelta, timezone
from http import HTTPStatus

from app.repositories.memory import InMemoryProfileRepository
from app.schemas.appointment import AppointmentRecord, ScanEvent
from app.schemas.facilitator import (
    AvailabilityEntry,
    FacilitatorProfileRecord,
    RecurrenceRuleRecord,
)

UTC = timezone.utc


def _appointment(appointment_id: int, start: datetime, **kwargs) -> AppointmentRecord:
    data = {
        "id": appointment_id,
        "host_id": 7,
        "scheduled_start": start,
        "scheduled_end": start + timedelta(hours=1),
    }
    data.update(kwargs)
    return AppointmentRecord(**data)


def _seed(repos) -> None:
    for record in [
        _appointment(1, datetime(2025, 6, 10, 10, tzinfo=UTC), attendee_ids=[8, 9], result="successful"),
        _appointment(2, datetime(2025, 6, 11, 10, tzinfo=UTC), purpose="checkout"),
        _appointment(3, datetime(2025, 6, 11, 14, tzinfo=UTC), status="canceled"),
        _appointment(4, datetime(2025, 3, 1, 10, tzinfo=UTC), host_id=11),
    ]:
        repos.appointments.add(record)
    repos.scans.add(ScanEvent(user_id=7, created=datetime(2025, 6, 10, 9, 45, tzinfo=UTC)))


def test_summary_for_date_range(client, repos):
    """
    Dates are inclusive calendar days; canceled appointments are excluded
    unless requested.
    """
    _seed(repos)

    response = client.get("/stats/summary?start_date=2025-06-01&end_date=2025-06-30")
    assert response.status_code == HTTPStatus.OK

    data = response.json()
    assert data["total_appointments"] == 2
    assert data["total_attendees"] == 4
    assert data["feedback_rate"] == 50.0
    assert data["arrival_available"] is True
    assert data["arrival_rate"] == 50.0
    assert list(data["facilitators"]) == ["7"]
    assert data["facilitators"]["7"]["appointment_day_count"] == 2


def test_summary_include_cancelled_and_purpose_filters(client, repos):
    _seed(repos)

    with_cancelled = client.get(
        "/stats/summary?start_date=2025-06-01&end_date=2025-06-30&include_cancelled=true"
    ).json()
    assert with_cancelled["total_appointments"] == 3
    assert with_cancelled["cancelled_total"] == 1

    by_purpose = client.get("/stats/summary?purpose=checkout&start_date=2025-01-01").json()
    assert by_purpose["total_appointments"] == 1


def test_summary_without_dates_uses_facilitator_terms(client, repos):
    _seed(repos)
    repos.profiles = InMemoryProfileRepository(
        [
            FacilitatorProfileRecord(
                user_id=11,
                hours=[
                    AvailabilityEntry(
                        start=datetime(2025, 5, 1, tzinfo=UTC),
                        end=datetime(2025, 12, 31, tzinfo=UTC),
                    )
                ],
            )
        ]
    )

    data = client.get("/stats/summary").json()

    assert data["facilitators"]["7"]["appointments"] == 2
    assert data["facilitators"]["11"]["appointments"] == 0
    assert data["facilitators"]["11"]["term_start"] is not None


def test_summary_rejects_reversed_range(client):
    response = client.get("/stats/summary?start_date=2025-06-30&end_date=2025-06-01")

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json()["detail"] == "start_date must be on or before end_date."


def test_summary_without_scan_source_omits_arrival(client, repos):
    _seed(repos)
    repos.scans = None

    data = client.get("/stats/summary?start_date=2025-06-01&end_date=2025-06-30").json()

    assert data["arrival_available"] is False
    assert data["arrival_rate"] is None


def test_facilitator_detail_returns_term_and_lifetime(client, repos):
    _seed(repos)

    response = client.get("/stats/facilitators/7")
    assert response.status_code == HTTPStatus.OK

    data = response.json()
    assert data["host_id"] == 7
    assert data["term"]["appointments"] == 2
    assert data["lifetime"]["appointments"] == 2


def test_facilitator_detail_unknown_host_has_empty_blocks(client, repos):
    _seed(repos)

    data = client.get("/stats/facilitators/99").json()

    assert data["term"] is None
    assert data["lifetime"] is None
    assert data["term_range"] is None
    assert data["active_rule_id"] is None


def test_facilitator_detail_reports_selected_term_and_rule(client, repos):
    """
    The term and the active rule both come from the facilitator's
    availability; only recurring entries are candidates for the rule.
    """
    _seed(repos)
    repos.profiles = InMemoryProfileRepository(
        [
            FacilitatorProfileRecord(
                user_id=7,
                hours=[
                    AvailabilityEntry(
                        rule=RecurrenceRuleRecord(
                            id=42,
                            start=datetime(2020, 1, 1, tzinfo=UTC),
                            end=datetime(2035, 12, 31, tzinfo=UTC),
                        )
                    ),
                    AvailabilityEntry(
                        start=datetime(2024, 1, 1, tzinfo=UTC),
                        end=datetime(2035, 12, 31, tzinfo=UTC),
                    ),
                ],
            )
        ]
    )

    data = client.get("/stats/facilitators/7").json()

    assert data["active_rule_id"] == 42
    assert data["term_range"]["start"].startswith("2020-01-01T00:00:00")
    assert data["term_range"]["end"].startswith("2035-12-31T00:00:00")
    assert data["term"]["appointments"] == 2

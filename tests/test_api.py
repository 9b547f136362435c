from datetime import date, timedelta

import pytest
from fastapi import status

from app.models.audit_log import AuditLog

# mesmo "hoje" que o client envia no X-Client-Today
TODAY = date(2025, 3, 10)

BASE = "/api/v1"


def _weekdays(client, pid, windows, **extra):
    return client.put(
        f"{BASE}/schedule/professionals/{pid}/weekdays",
        json={"windows": windows, **extra},
    )


def _period(client, pid, valid_from, windows, **extra):
    return client.put(
        f"{BASE}/schedule/professionals/{pid}/period",
        json={"valid_from": valid_from.isoformat(), "windows": windows, **extra},
    )


MON_9_13 = {"weekday": 1, "start": "09:00", "end": "13:00"}


# ---------- agenda semanal ----------


def test_weekdays_creates_open_period(client, test_professional):
    pid = test_professional.id
    response = _weekdays(client, pid, [MON_9_13])
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["created"] == 1
    assert data["schedule_version"] == 1
    entry = data["entries"][0]
    assert entry["start_time"] == "09:00:00"
    assert entry["weekday_label"] == "Segunda"
    assert entry["valid_from"] == TODAY.isoformat()
    assert entry["valid_to"] is None


def test_weekdays_overlap_is_409_with_labels(client, test_professional):
    pid = test_professional.id
    _weekdays(client, pid, [MON_9_13])

    response = _weekdays(
        client, pid, [{"weekday": 1, "start": "12:00", "end": "15:00"}]
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["code"] == "overlap"
    assert body["labels"] == ["Segunda"]
    assert body["weekdays"] == [1]


def test_weekdays_rejects_inverted_window(client, test_professional):
    response = _weekdays(
        client,
        test_professional.id,
        [{"weekday": 1, "start": "13:00", "end": "09:00"}],
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_stale_version_is_409(client, test_professional):
    pid = test_professional.id
    _weekdays(client, pid, [MON_9_13])
    response = _weekdays(
        client,
        pid,
        [{"weekday": 3, "start": "09:00", "end": "12:00"}],
        expected_version=0,
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "concurrent_edit"


def test_period_before_minimum_start_is_422(client, test_professional):
    pid = test_professional.id
    _weekdays(client, pid, [MON_9_13])

    response = _period(client, pid, TODAY, [MON_9_13])
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    body = response.json()
    assert body["code"] == "invalid_period_start"
    assert body["minimum_start"] == (TODAY + timedelta(days=1)).isoformat()


def test_periods_view(client, test_professional):
    pid = test_professional.id
    _weekdays(client, pid, [MON_9_13])
    new_start = TODAY + timedelta(days=7)
    response = _period(
        client, pid, new_start, [{"weekday": 2, "start": "14:00", "end": "18:00"}]
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["closed_period_to"] == (
        new_start - timedelta(days=1)
    ).isoformat()

    view = client.get(f"{BASE}/schedule/professionals/{pid}/periods").json()
    assert view["today"] == TODAY.isoformat()
    assert view["schedule_version"] == 2
    assert [p["status"] for p in view["periods"]] == ["vigente", "futura"]
    assert view["periods"][1]["summary"] == "Ter 14:00-18:00"
    assert view["minimum_start"] == (new_start + timedelta(days=1)).isoformat()


def test_today_query_param_wins_over_header(client, test_professional):
    pid = test_professional.id
    other = TODAY + timedelta(days=30)
    view = client.get(
        f"{BASE}/schedule/professionals/{pid}/periods",
        params={"today": other.isoformat()},
    ).json()
    assert view["today"] == other.isoformat()

    response = client.get(
        f"{BASE}/schedule/professionals/{pid}/periods", params={"today": "ontem"}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_delete_current_period_is_illegal(client, test_professional):
    pid = test_professional.id
    _weekdays(client, pid, [MON_9_13])
    response = client.delete(
        f"{BASE}/schedule/professionals/{pid}/periods/{TODAY.isoformat()}"
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "illegal_deletion"


def test_delete_future_period_reopens_previous(client, test_professional):
    pid = test_professional.id
    _weekdays(client, pid, [MON_9_13])
    new_start = TODAY + timedelta(days=7)
    _period(client, pid, new_start, [])

    response = client.delete(
        f"{BASE}/schedule/professionals/{pid}/periods/{new_start.isoformat()}"
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["reopened_period_from"] == TODAY.isoformat()

    entries = client.get(f"{BASE}/schedule/professionals/{pid}/entries").json()
    assert [e["valid_to"] for e in entries] == [None]


def test_entry_deactivate_and_delete(client, test_professional):
    pid = test_professional.id
    entry_id = _weekdays(client, pid, [MON_9_13]).json()["entries"][0]["id"]

    response = client.patch(f"{BASE}/schedule/entries/{entry_id}/deactivate")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["active"] is False

    active = client.get(
        f"{BASE}/schedule/professionals/{pid}/entries", params={"only_active": True}
    ).json()
    assert active == []

    response = client.delete(f"{BASE}/schedule/entries/{entry_id}")
    assert response.status_code == status.HTTP_204_NO_CONTENT
    response = client.delete(f"{BASE}/schedule/entries/{entry_id}")
    assert response.status_code == status.HTTP_404_NOT_FOUND


# ---------- datas pontuais e bloqueios ----------


def test_duplicate_exception_is_409(client, test_professional):
    payload = {
        "professional_id": test_professional.id,
        "date": "2025-03-15",
        "start": "08:00",
        "end": "12:00",
    }
    first = client.post(f"{BASE}/exceptions", json=payload)
    assert first.status_code == status.HTTP_201_CREATED
    assert first.json()["start_time"] == "08:00:00"

    response = client.post(f"{BASE}/exceptions", json=payload)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["existing_id"] == first.json()["id"]

    response = client.post(
        f"{BASE}/exceptions", json={**payload, "end": "11:00", "replace": True}
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["end_time"] == "11:00:00"


def test_whole_day_block(client, test_professional):
    response = client.post(
        f"{BASE}/blocks",
        json={
            "professional_id": test_professional.id,
            "date": "2025-03-12",
            "whole_day": True,
            "reason": "Congresso",
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["starts_at"] == "2025-03-12T03:00:00Z"
    assert data["starts_local"].startswith("2025-03-12T00:00:00")

    listed = client.get(
        f"{BASE}/blocks",
        params={
            "professional_id": test_professional.id,
            "date_from": "2025-03-12",
            "date_to": "2025-03-12",
        },
    ).json()
    assert [b["reason"] for b in listed] == ["Congresso"]


def test_block_requires_bounds(client, test_professional):
    response = client.post(
        f"{BASE}/blocks", json={"professional_id": test_professional.id}
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# ---------- disponibilidade ----------


def test_availability_day_and_range(client, test_professional):
    pid = test_professional.id
    _weekdays(client, pid, [MON_9_13])
    client.post(
        f"{BASE}/blocks",
        json={
            "professional_id": pid,
            "starts_at": "2025-03-17T09:00:00",
            "ends_at": "2025-03-17T10:00:00",
        },
    )

    day = client.get(
        f"{BASE}/availability/professionals/{pid}", params={"date": "2025-03-17"}
    ).json()
    assert day["status"] == "weekly"
    assert day["weekday"] == 1
    assert day["windows"][0]["start"] == "09:00:00"
    assert len(day["blocks"]) == 1

    blocked = client.get(
        f"{BASE}/availability/professionals/{pid}",
        params={"date": "2025-03-17", "start": "09:00", "end": "09:30"},
    ).json()
    assert blocked["status"] == "blocked"
    assert blocked["is_available"] is False

    days = client.get(
        f"{BASE}/availability/professionals/{pid}/range",
        params={"date_from": "2025-03-10", "date_to": "2025-03-16"},
    ).json()
    assert len(days) == 7
    assert [d["status"] for d in days if d["is_available"]] == ["weekly"]


def test_availability_bad_window_is_400(client, test_professional):
    response = client.get(
        f"{BASE}/availability/professionals/{test_professional.id}",
        params={"date": "2025-03-17", "start": "10:00"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_availability_unknown_professional_is_404(client):
    response = client.get(
        f"{BASE}/availability/professionals/999", params={"date": "2025-03-17"}
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["code"] == "not_found"


# ---------- ops ----------


def test_healthz_and_version(client):
    assert client.get("/healthz").json()["status"] == "ok"
    assert client.get("/version").json()["facility_tz"] == "America/Sao_Paulo"


def test_availability_range_defaults_to_current_month(client, test_professional):
    days = client.get(
        f"{BASE}/availability/professionals/{test_professional.id}/range"
    ).json()
    assert len(days) == 31
    assert days[0]["date"] == "2025-03-01"
    assert {d["status"] for d in days} == {"no_weekly_schedule"}


def test_request_id_is_echoed_and_audited(client, db_session):
    response = client.post(
        f"{BASE}/professionals",
        json={"name": "Dra. Lima"},
        headers={"X-Request-ID": "req-123"},
    )
    assert response.headers["X-Request-ID"] == "req-123"

    row = db_session.query(AuditLog).one()
    assert row.entity == "professional"
    assert row.request_id == "req-123"


# ---------- horários fora da faixa ----------


@pytest.mark.parametrize("bad", ["24:00", "99:99"])
def test_out_of_range_clocks_are_rejected(client, test_professional, bad):
    pid = test_professional.id
    entry_id = _weekdays(client, pid, [MON_9_13]).json()["entries"][0]["id"]
    exception_id = client.post(
        f"{BASE}/exceptions",
        json={
            "professional_id": pid,
            "date": "2025-03-15",
            "start": "08:00",
            "end": "12:00",
        },
    ).json()["id"]

    response = client.put(f"{BASE}/schedule/entries/{entry_id}", json={"end": bad})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = client.put(f"{BASE}/exceptions/{exception_id}", json={"end": bad})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = _weekdays(client, pid, [{"weekday": 2, "start": "08:00", "end": bad}])
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = client.get(
        f"{BASE}/availability/professionals/{pid}",
        params={"date": "2025-03-17", "start": "08:00", "end": bad},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "inválido" in response.json()["detail"]


def test_weekdays_echoes_effective_period(client, test_professional):
    pid = test_professional.id
    _weekdays(client, pid, [MON_9_13])

    data = _weekdays(
        client,
        pid,
        [{"weekday": 3, "start": "09:00", "end": "12:00"}],
        valid_from=(TODAY + timedelta(days=20)).isoformat(),
    ).json()
    assert data["valid_from"] == TODAY.isoformat()
    assert data["valid_to"] is None


def test_entries_are_listed_monday_first(client, test_professional):
    pid = test_professional.id
    _weekdays(
        client,
        pid,
        [
            {"weekday": 0, "start": "09:00", "end": "12:00"},
            {"weekday": 5, "start": "09:00", "end": "12:00"},
            {"weekday": 1, "start": "09:00", "end": "12:00"},
        ],
    )
    entries = client.get(f"{BASE}/schedule/professionals/{pid}/entries").json()
    assert [e["weekday_label"] for e in entries] == ["Segunda", "Sexta", "Domingo"]


def test_deleting_last_entry_leaves_placeholder(client, test_professional):
    pid = test_professional.id
    entry_id = _weekdays(client, pid, [MON_9_13]).json()["entries"][0]["id"]

    assert client.delete(f"{BASE}/schedule/entries/{entry_id}").status_code == 204

    (entry,) = client.get(f"{BASE}/schedule/professionals/{pid}/entries").json()
    assert entry["is_placeholder"] is True
    response = client.delete(f"{BASE}/schedule/entries/{entry['id']}")
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "illegal_deletion"

"""Tests for the reservation expiry check endpoint."""

import pytest
from unittest.mock import patch
from freezegun import freeze_time

from api.expiry.check import handler
from tes_property.services.storage import JsonFileStorage, MemoryStorage
from tes_property.utils.errors import StorageError
from tests.utils.assertions import assert_valid_response
from tests.utils.factories import create_inquiry_data
from tests.utils.helpers import create_cron_request, write_data_file


def _inquiries():
    return [
        create_inquiry_data(
            inquiry_id=1, status="Deposit Paid", agent_id=1,
            propertyName="Acacia Homes", reservationExpiryDate="2025-12-08T12:00:00+00:00",
        ),
        create_inquiry_data(
            inquiry_id=2, status="Waiting - Property Reserved", agent_id=2,
            propertyName="Molave Place", reservationExpiryDate="2025-12-10T18:00:00+00:00",
        ),
        create_inquiry_data(
            inquiry_id=3, status="Waiting - Property Reserved", agent_id=1,
            reservationExpiryDate="2025-12-20T12:00:00+00:00",
        ),
        create_inquiry_data(
            inquiry_id=4, status="Cancelled", agent_id=1,
            reservationExpiryDate="2025-12-01T12:00:00+00:00",
        ),
    ]


@pytest.fixture(autouse=True)
def json_storage_mode(tmp_path, monkeypatch):
    """The endpoint refuses the default in-memory mode."""
    monkeypatch.setenv("STORAGE_MODE", "json")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))


@pytest.fixture
def storage():
    return MemoryStorage({"inquiries": _inquiries()})


@pytest.mark.unit
@freeze_time("2025-12-09 12:00:00")
def test_expiry_check_lists_warnings(storage):
    with patch("api.expiry.check.get_storage", return_value=storage):
        response = handler(create_cron_request())

    body = assert_valid_response(response, 200)
    assert body["ok"] is True
    assert body["expired"] == 1
    assert [w["inquiry_id"] for w in body["warnings"]] == [1, 2]

    expired, expiring = body["warnings"]
    assert expired["is_expired"] is True
    assert expired["severity"] == "danger"
    assert expired["message"] == 'Reservation for "Acacia Homes" has expired!'
    assert expiring["days_remaining"] == 2
    assert expiring["severity"] == "warning"
    assert expiring["message"] == 'Reservation for "Molave Place" expires in 2 days'


@pytest.mark.unit
@freeze_time("2025-12-09 12:00:00")
def test_expiry_check_filters_by_agent(storage):
    with patch("api.expiry.check.get_storage", return_value=storage):
        response = handler(create_cron_request({"agent_id": "2"}))

    body = assert_valid_response(response, 200)
    assert body["expired"] == 0
    assert [w["inquiry_id"] for w in body["warnings"]] == [2]
    assert body["warnings"][0]["assigned_agent_id"] == 2


@pytest.mark.unit
def test_expiry_check_rejects_bad_agent_id():
    response = handler(create_cron_request({"agent_id": "maria"}))

    body = assert_valid_response(response, 400)
    assert body["error"] == "agent_id must be an integer"


@pytest.mark.unit
def test_expiry_check_storage_failure():
    with patch("api.expiry.check.get_storage", side_effect=StorageError("disk on fire")):
        response = handler(create_cron_request())

    body = assert_valid_response(response, 500)
    assert "disk on fire" in body["error"]


@pytest.mark.unit
@freeze_time("2025-12-09 12:00:00")
def test_expiry_check_reads_json_files(tmp_path, monkeypatch):
    write_data_file(tmp_path, "inquiries.json", _inquiries())
    monkeypatch.setenv("STORAGE_MODE", "json")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))

    body = assert_valid_response(handler(create_cron_request()), 200)

    assert body["expired"] == 1
    assert len(body["warnings"]) == 2


@pytest.mark.unit
def test_expiry_check_no_reservations(tmp_path):
    with patch("api.expiry.check.get_storage", return_value=JsonFileStorage(tmp_path)):
        body = assert_valid_response(handler(create_cron_request()), 200)

    assert body == {"ok": True, "checked_at": body["checked_at"], "expired": 0, "warnings": []}


@pytest.mark.unit
def test_expiry_check_refuses_memory_storage(monkeypatch):
    monkeypatch.setenv("STORAGE_MODE", "memory")

    with patch("api.expiry.check.get_storage") as get_storage:
        response = handler(create_cron_request())

    body = assert_valid_response(response, 500)
    assert body["error"] == "STORAGE_MODE must be json or supabase for the expiry check"
    get_storage.assert_not_called()

"""End-to-end inquiry lifecycle against flat-file storage."""

import pytest
from datetime import datetime, timezone

from tes_property.models.inquiry import InquiryStatus
from tes_property.services.agent_stats import calculate_agent_stats, calculate_global_stats
from tes_property.services.expiry_tracker import scan_for_expiry_warnings
from tes_property.services.inquiry_service import InquiryService
from tes_property.services.scheduling_service import SchedulingService
from tes_property.services.storage import JsonFileStorage
from tests.utils.assertions import assert_valid_inquiry_record
from tests.utils.factories import create_property_data, create_submission_data
from tests.utils.helpers import read_data_file, write_data_file

AGENT_ID = 7
AGENT_NAME = "Maria Santos"


@pytest.fixture
def storage(tmp_path):
    write_data_file(tmp_path, "properties.json", [
        create_property_data(property_id=5, status="Sold", name="Acacia Homes", commission=100000, finalCommission=120000),
    ])
    return JsonFileStorage(tmp_path)


@pytest.mark.integration
def test_inquiry_from_submission_to_sale(storage, tmp_path):
    inquiries = InquiryService(storage)
    calendar = SchedulingService(storage)
    submission = create_submission_data(
        property_id=5,
        propertyName="Acacia Homes",
        customerEmail="juan@example.com",
        customerPhone="0917-555-0101",
    )

    submitted = inquiries.submit_inquiry(submission)
    assert submitted.success, submitted.error
    inquiry_id = submitted.inquiry.id
    assert submitted.inquiry.status == InquiryStatus.NEW

    # Same customer, different phone formatting
    again = inquiries.submit_inquiry({**submission, "customerPhone": "+63 917 555 0101"})
    assert again.success is False
    assert again.duplicate_of.id == inquiry_id

    # Work can't start before an agent is assigned
    assert inquiries.change_status(inquiry_id, InquiryStatus.IN_PROGRESS).success is False

    assert inquiries.assign_agent(inquiry_id, AGENT_ID, AGENT_NAME).inquiry.status == InquiryStatus.ASSIGNED
    assert inquiries.change_status(inquiry_id, "In Progress").success

    viewing = calendar.schedule_event({
        "agent_id": AGENT_ID,
        "agent_name": AGENT_NAME,
        "title": "Viewing - Acacia Homes",
        "date": "2025-12-10",
        "start_time": "10:00",
        "end_time": "11:00",
        "property_id": 5,
        "inquiry_id": inquiry_id,
    })
    assert viewing.success, viewing.error
    assert calendar.schedule_event({
        "agent_id": AGENT_ID,
        "date": "2025-12-10",
        "start_time": "11:00",
        "end_time": "12:00",
    }).success is False

    viewing_date = datetime(2025, 12, 10, 10, 0, tzinfo=timezone.utc)
    scheduled = inquiries.change_status(inquiry_id, InquiryStatus.VIEWING_SCHEDULED, viewing_date=viewing_date)
    assert scheduled.inquiry.viewing_date == viewing_date

    assert inquiries.change_status(inquiry_id, InquiryStatus.VIEWED_INTERESTED).success
    expiry = datetime(2025, 12, 20, 12, 0, tzinfo=timezone.utc)
    paid = inquiries.change_status(
        inquiry_id,
        InquiryStatus.DEPOSIT_PAID,
        deposit_amount=20000,
        reservation_expiry_date=expiry,
    )
    assert paid.success
    assert paid.inquiry.deposit_amount == 20000

    warnings = scan_for_expiry_warnings(storage.list_inquiries(), now=datetime(2025, 12, 19, 12, 0, tzinfo=timezone.utc))
    assert [w.inquiry.id for w in warnings] == [inquiry_id]
    assert warnings[0].days_remaining == 1

    reassigned = inquiries.assign_agent(inquiry_id, 8, "Jose Reyes")
    assert reassigned.success is False
    assert storage.get_inquiry(inquiry_id).assigned_agent_id == AGENT_ID

    closed = inquiries.change_status(inquiry_id, InquiryStatus.SUCCESSFUL)
    assert closed.success
    assert inquiries.change_status(inquiry_id, InquiryStatus.CANCELLED).success is False

    stored = read_data_file(tmp_path, "inquiries.json")
    assert stored["_metadata"]["recordCount"] == 1
    assert_valid_inquiry_record(stored["data"][0])
    assert stored["data"][0]["status"] == "Successful"

    # A finished inquiry no longer blocks a new one
    assert inquiries.submit_inquiry(submission).success

    stats = calculate_agent_stats(AGENT_ID, AGENT_NAME, storage.list_inquiries(), storage.list_properties())
    assert stats.total_inquiries == 1
    assert stats.properties_sold == 1
    assert stats.total_commission == 120000
    assert stats.success_rate == 100.0
    assert stats.deposits_received == 1

    overview = calculate_global_stats(storage.list_inquiries(), storage.list_properties())
    assert overview.total_inquiries == 2
    assert overview.active_inquiries == 1


@pytest.mark.integration
def test_cancelled_inquiry_frees_customer(storage):
    inquiries = InquiryService(storage)
    submission = create_submission_data(property_id=5)

    first = inquiries.submit_inquiry(submission)
    assert inquiries.change_status(first.inquiry.id, InquiryStatus.CANCELLED).success

    second = inquiries.submit_inquiry(submission)
    assert second.success
    assert second.inquiry.id == first.inquiry.id + 1

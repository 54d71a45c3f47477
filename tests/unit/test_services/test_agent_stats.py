"""Tests for agent statistics."""

import pytest
from tes_property.models.property import Property
from tes_property.models.user import User
from tes_property.services.agent_stats import (
    calculate_agent_stats,
    calculate_all_agent_stats,
    calculate_global_stats,
    get_overloaded_agents,
    get_top_agents_by_commission,
)
from tests.utils.factories import create_property_data, create_user_data


@pytest.fixture
def properties():
    return [
        Property.model_validate(create_property_data(property_id=1, status="Sold", commission=100000, finalCommission=120000)),
        Property.model_validate(create_property_data(property_id=2, status="Sold", commission=80000)),
        Property.model_validate(create_property_data(property_id=3, status="Available")),
    ]


@pytest.fixture
def inquiries(make_inquiry):
    return [
        make_inquiry(inquiry_id=1, property_id=1, status="Successful", agent_id=1, assignedAgentName="Ana"),
        make_inquiry(inquiry_id=2, property_id=3, status="Viewing Scheduled", agent_id=1, assignedAgentName="Ana"),
        make_inquiry(inquiry_id=3, property_id=3, status="Cancelled", agent_id=1, assignedAgentName="Ana"),
        make_inquiry(inquiry_id=4, property_id=3, status="Deposit Paid", agent_id=1, assignedAgentName="Ana"),
        make_inquiry(inquiry_id=5, property_id=2, status="Successful", agent_id=2, assignedAgentName="Ben"),
        make_inquiry(inquiry_id=6, property_id=3, status="New"),
    ]


@pytest.mark.unit
def test_calculate_agent_stats(inquiries, properties):
    stats = calculate_agent_stats(1, "Ana", inquiries, properties)

    assert stats.total_inquiries == 4
    assert stats.active_inquiries == 2
    assert stats.properties_sold == 1
    assert stats.total_commission == 120000
    assert stats.avg_commission == 120000
    assert stats.success_rate == pytest.approx(100 / 3)
    assert stats.viewings_scheduled == 3
    assert stats.deposits_received == 2


@pytest.mark.unit
def test_agent_without_inquiries(inquiries, properties):
    stats = calculate_agent_stats(99, "Nobody", inquiries, properties)

    assert stats.total_inquiries == 0
    assert stats.success_rate == 0.0
    assert stats.avg_commission == 0.0


@pytest.mark.unit
def test_commission_falls_back_to_listed(inquiries, properties):
    assert calculate_agent_stats(2, "Ben", inquiries, properties).total_commission == 80000


@pytest.mark.unit
def test_all_agent_stats_skips_admins(inquiries, properties):
    users = [
        User.model_validate(create_user_data(user_id=1, name="Ana")),
        User.model_validate(create_user_data(user_id=2, name="Ben")),
        User.model_validate(create_user_data(user_id=3, role="admin")),
    ]

    stats = calculate_all_agent_stats(users, inquiries, properties)

    assert [s.agent_id for s in stats] == [1, 2]


@pytest.mark.unit
def test_top_agents_by_commission(inquiries, properties):
    top = get_top_agents_by_commission(inquiries, properties, limit=1)

    assert [s.agent_name for s in top] == ["Ana"]


@pytest.mark.unit
def test_overloaded_agents(make_inquiry, properties):
    inquiries = [
        make_inquiry(inquiry_id=i, status="In Progress", agent_id=7, assignedAgentName="Busy")
        for i in range(1, 21)
    ]
    inquiries.append(make_inquiry(inquiry_id=50, status="In Progress", agent_id=8, assignedAgentName="Calm"))

    overloaded = get_overloaded_agents(inquiries, properties)

    assert [s.agent_id for s in overloaded] == [7]


@pytest.mark.unit
def test_global_stats(inquiries, properties):
    stats = calculate_global_stats(inquiries, properties)

    assert stats.total_inquiries == 6
    assert stats.active_inquiries == 3
    assert stats.total_properties == 3
    assert stats.available_properties == 1
    assert stats.properties_sold == 2
    assert stats.total_commission == 200000
    assert stats.success_rate == pytest.approx(40.0)

"""Agent performance statistics derived from inquiries and properties."""

from typing import Iterable

from tes_property.models.inquiry import Inquiry, InquiryStatus
from tes_property.models.property import Property, PropertyStatus
from tes_property.models.results import AgentStats, GlobalStats
from tes_property.models.user import User

OVERLOADED_THRESHOLD = 20

# Statuses at or past the viewing stage
VIEWING_STATUSES = frozenset({
    InquiryStatus.VIEWING_SCHEDULED,
    InquiryStatus.VIEWED_INTERESTED,
    InquiryStatus.VIEWED_NOT_INTERESTED,
    InquiryStatus.VIEWED_UNDECIDED,
    InquiryStatus.DEPOSIT_PAID,
    InquiryStatus.SUCCESSFUL,
})

DEPOSIT_STATUSES = frozenset({InquiryStatus.DEPOSIT_PAID, InquiryStatus.SUCCESSFUL})


def _earned_commission(prop: Property) -> float:
    return prop.final_commission or prop.commission


def _success_rate(successful: int, non_cancelled: int) -> float:
    return (successful / non_cancelled) * 100 if non_cancelled else 0.0


def calculate_agent_stats(
    agent_id: int,
    agent_name: str,
    inquiries: Iterable[Inquiry],
    properties: Iterable[Property]
) -> AgentStats:
    """KPIs for one agent, computed from scratch on every call."""
    agent_inquiries = [i for i in inquiries if i.assigned_agent_id == agent_id]
    successful = [i for i in agent_inquiries if i.status == InquiryStatus.SUCCESSFUL]
    successful_property_ids = {i.property_id for i in successful}

    # Sold properties the agent closed
    sold = [
        p for p in properties
        if p.status == PropertyStatus.SOLD and p.id in successful_property_ids
    ]
    total_commission = sum(_earned_commission(p) for p in sold)
    non_cancelled = [i for i in agent_inquiries if i.status != InquiryStatus.CANCELLED]

    return AgentStats(
        agent_id=agent_id,
        agent_name=agent_name,
        active_inquiries=sum(1 for i in agent_inquiries if i.is_active),
        total_inquiries=len(agent_inquiries),
        properties_sold=len(sold),
        total_commission=total_commission,
        avg_commission=total_commission / len(sold) if sold else 0.0,
        success_rate=_success_rate(len(successful), len(non_cancelled)),
        viewings_scheduled=sum(1 for i in agent_inquiries if i.status in VIEWING_STATUSES),
        deposits_received=sum(1 for i in agent_inquiries if i.status in DEPOSIT_STATUSES),
    )


def calculate_all_agent_stats(
    users: Iterable[User],
    inquiries: Iterable[Inquiry],
    properties: Iterable[Property]
) -> list[AgentStats]:
    inquiries, properties = list(inquiries), list(properties)
    return [
        calculate_agent_stats(u.id, u.name, inquiries, properties)
        for u in users if u.role == "agent"
    ]


def _agents_from_inquiries(inquiries: list[Inquiry]) -> dict[int, str]:
    agents: dict[int, str] = {}
    for inquiry in inquiries:
        if inquiry.assigned_agent_id is not None and inquiry.assigned_agent_name:
            agents[inquiry.assigned_agent_id] = inquiry.assigned_agent_name
    return agents


def get_top_agents_by_commission(
    inquiries: Iterable[Inquiry],
    properties: Iterable[Property],
    limit: int = 5
) -> list[AgentStats]:
    inquiries, properties = list(inquiries), list(properties)
    stats = [
        calculate_agent_stats(agent_id, agent_name, inquiries, properties)
        for agent_id, agent_name in _agents_from_inquiries(inquiries).items()
    ]
    stats.sort(key=lambda s: s.total_commission, reverse=True)
    return stats[:limit]


def get_overloaded_agents(
    inquiries: Iterable[Inquiry],
    properties: Iterable[Property],
    threshold: int = OVERLOADED_THRESHOLD
) -> list[AgentStats]:
    """Agents carrying `threshold` or more active inquiries."""
    inquiries, properties = list(inquiries), list(properties)
    stats = [
        calculate_agent_stats(agent_id, agent_name, inquiries, properties)
        for agent_id, agent_name in _agents_from_inquiries(inquiries).items()
    ]
    return [s for s in stats if s.active_inquiries >= threshold]


def calculate_global_stats(inquiries: Iterable[Inquiry], properties: Iterable[Property]) -> GlobalStats:
    inquiries, properties = list(inquiries), list(properties)
    sold = [p for p in properties if p.status == PropertyStatus.SOLD]
    successful = sum(1 for i in inquiries if i.status == InquiryStatus.SUCCESSFUL)
    non_cancelled = sum(1 for i in inquiries if i.status != InquiryStatus.CANCELLED)

    return GlobalStats(
        total_inquiries=len(inquiries),
        active_inquiries=sum(1 for i in inquiries if i.is_active),
        total_properties=len(properties),
        available_properties=sum(1 for p in properties if p.status == PropertyStatus.AVAILABLE),
        properties_sold=len(sold),
        total_commission=sum(_earned_commission(p) for p in sold),
        success_rate=_success_rate(successful, non_cancelled),
    )

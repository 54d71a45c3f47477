"""Inquiry workflows: every write is preceded by the matching validation check."""

from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from tes_property.models.inquiry import Inquiry, InquiryStatus, InquirySubmission
from tes_property.models.results import BulkUpdateResult, InquiryResult
from tes_property.services.duplicate_detector import detect_duplicate
from tes_property.services.inquiry_state_machine import (
    can_reassign_inquiry,
    coerce_status,
    validate_transition,
)
from tes_property.services.storage import StorageAdapter, camel_keys
from tes_property.utils.logging import (
    get_structured_logger,
    log_timing,
    mask_email,
    sanitize_message_text,
)

logger = get_structured_logger(__name__)

# Fields a caller may set alongside a status change
STATUS_CHANGE_FIELDS = frozenset({"viewing_date", "deposit_amount", "reservation_expiry_date", "notes"})


class InquiryService:
    """Submission, status transitions and agent assignment on top of a storage adapter."""

    def __init__(self, storage: StorageAdapter):
        self.storage = storage

    def submit_inquiry(self, submission: Union[InquirySubmission, dict]) -> InquiryResult:
        """Create a New inquiry unless the customer already has an active one for the property."""
        try:
            if not isinstance(submission, InquirySubmission):
                submission = InquirySubmission.model_validate(submission)
        except ValidationError as e:
            return InquiryResult(success=False, error=f"Invalid inquiry submission: {e.error_count()} error(s)")

        with log_timing("submit_inquiry", logger=logger, property_id=submission.property_id):
            duplicate = detect_duplicate(
                submission.customer_email,
                submission.customer_phone,
                submission.property_id,
                self.storage.list_inquiries()
            )
            if duplicate.is_duplicate:
                existing = duplicate.existing_inquiry
                agent = existing.assigned_agent_name or "not yet assigned"
                return InquiryResult(
                    success=False,
                    duplicate_of=existing,
                    error=(
                        f"You already have an active inquiry for this property "
                        f"(status: {existing.status.value}, agent: {agent})"
                    ),
                )

            inquiry = self.storage.add_inquiry({
                **submission.model_dump(),
                "status": InquiryStatus.NEW,
                "assigned_agent_id": None,
                "assigned_agent_name": None,
            })

        logger.info(
            "Customer submitted new inquiry",
            inquiry_id=inquiry.id,
            property_id=inquiry.property_id,
            customer_email=mask_email(inquiry.customer_email),
            message_preview=sanitize_message_text(inquiry.message, max_length=100)
        )
        return InquiryResult(success=True, inquiry=inquiry)

    def change_status(
        self,
        inquiry_id: int,
        new_status: Union[InquiryStatus, str],
        **fields: Any
    ) -> InquiryResult:
        """
        Move an inquiry along one edge of the lifecycle.

        Extra keyword fields (viewing_date, deposit_amount,
        reservation_expiry_date, notes) are written in the same update.
        """
        inquiry = self.storage.get_inquiry(inquiry_id)
        if inquiry is None:
            return InquiryResult(success=False, error=f"Inquiry {inquiry_id} not found")

        error = self._transition_error(inquiry, new_status)
        if error is None:
            unknown = set(fields) - STATUS_CHANGE_FIELDS
            if unknown:
                error = f"Fields cannot be changed with a status update: {', '.join(sorted(unknown))}"
            else:
                error = self._update_error(inquiry, fields)
        if error:
            logger.warning(
                "Inquiry status change rejected",
                inquiry_id=inquiry_id,
                current_status=inquiry.status.value,
                requested_status=str(getattr(new_status, "value", new_status)),
                reason=error
            )
            return InquiryResult(success=False, inquiry=inquiry, error=error)

        target = coerce_status(new_status)
        if not self.storage.apply_inquiry_update(inquiry_id, {**fields, "status": target.value}):
            return InquiryResult(success=False, inquiry=inquiry, error=f"Failed to update inquiry {inquiry_id}")

        logger.info(
            f"Inquiry status changed from {inquiry.status.value} to {target.value}",
            inquiry_id=inquiry_id,
            old_status=inquiry.status.value,
            new_status=target.value
        )
        return InquiryResult(success=True, inquiry=self.storage.get_inquiry(inquiry_id))

    def assign_agent(self, inquiry_id: int, agent_id: int, agent_name: str) -> InquiryResult:
        """Set or replace the agent; a New inquiry becomes Assigned in the same write."""
        inquiry = self.storage.get_inquiry(inquiry_id)
        if inquiry is None:
            return InquiryResult(success=False, error=f"Inquiry {inquiry_id} not found")

        changes: dict[str, Any] = {"assigned_agent_id": agent_id, "assigned_agent_name": agent_name}
        if inquiry.status == InquiryStatus.NEW:
            changes["status"] = InquiryStatus.ASSIGNED.value

        error = self._assignment_error(inquiry, agent_id, agent_name) or self._update_error(inquiry, changes)
        if error:
            logger.warning("Agent assignment rejected", inquiry_id=inquiry_id, agent_id=agent_id, reason=error)
            return InquiryResult(success=False, inquiry=inquiry, error=error)

        if not self.storage.apply_inquiry_update(inquiry_id, changes):
            return InquiryResult(success=False, inquiry=inquiry, error=f"Failed to update inquiry {inquiry_id}")

        logger.info(
            "Inquiry assigned to agent",
            inquiry_id=inquiry_id,
            agent_id=agent_id,
            previous_agent_id=inquiry.assigned_agent_id
        )
        return InquiryResult(success=True, inquiry=self.storage.get_inquiry(inquiry_id))

    def bulk_change_status(self, inquiry_ids: Iterable[int], new_status: Union[InquiryStatus, str]) -> BulkUpdateResult:
        """Apply one status to many inquiries; each is validated on its own."""
        result = BulkUpdateResult()
        for inquiry_id in inquiry_ids:
            outcome = self.change_status(inquiry_id, new_status)
            if outcome.success:
                result.updated_ids.append(inquiry_id)
            else:
                result.errors[inquiry_id] = outcome.error

        logger.info(
            f"Bulk updated {result.updated_count} inquiries",
            requested_status=str(getattr(new_status, "value", new_status)),
            updated_count=result.updated_count,
            failed_count=result.failed_count
        )
        return result

    def bulk_assign_agent(self, inquiry_ids: Iterable[int], agent_id: int, agent_name: str) -> BulkUpdateResult:
        result = BulkUpdateResult()
        for inquiry_id in inquiry_ids:
            outcome = self.assign_agent(inquiry_id, agent_id, agent_name)
            if outcome.success:
                result.updated_ids.append(inquiry_id)
            else:
                result.errors[inquiry_id] = outcome.error

        logger.info(
            f"Bulk assigned {result.updated_count} inquiries",
            agent_id=agent_id,
            updated_count=result.updated_count,
            failed_count=result.failed_count
        )
        return result

    @staticmethod
    def _transition_error(inquiry: Inquiry, new_status: Union[InquiryStatus, str]) -> Optional[str]:
        target = coerce_status(new_status)
        if target is None:
            return f"Unknown inquiry status '{new_status}'"
        if not validate_transition(inquiry.status, target):
            return f"Cannot change status from '{inquiry.status.value}' to '{target.value}'"
        # Only cancellation may happen before an agent takes the inquiry
        if inquiry.assigned_agent_id is None and target != InquiryStatus.CANCELLED:
            return "Inquiry must be assigned to an agent first"
        return None

    @staticmethod
    def _assignment_error(inquiry: Inquiry, agent_id: Optional[int], agent_name: Optional[str]) -> Optional[str]:
        if agent_id is None or not agent_name:
            return "Agent id and name are both required"
        if inquiry.status == InquiryStatus.CANCELLED:
            return "Cannot assign an agent to a cancelled inquiry"
        if inquiry.assigned_agent_id is not None and not can_reassign_inquiry(inquiry.status):
            return f"Cannot reassign an inquiry with status '{inquiry.status.value}'"
        return None

    @staticmethod
    def _update_error(inquiry: Inquiry, changes: dict[str, Any]) -> Optional[str]:
        """Check the record that `changes` would produce, so bad values never reach storage."""
        try:
            Inquiry.model_validate({**inquiry.to_record(), **camel_keys(changes)})
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            return f"Invalid inquiry update: {', '.join(fields) or 'record'}"
        return None

"""Lead domain manager."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from app.application.dtos.lead_document import CHECK_INS_COLLECTION, LEADS_COLLECTION
from app.application.errors import ValidationError
from app.application.ports.follow_up_check_in_repository import FollowUpCheckInRepository
from app.application.ports.lead_repository import LeadRepository
from app.application.ports.notification_service import NotificationService
from app.application.use_cases.push_entities import EntityPusher
from app.domain.entities.follow_up_check_in import CheckInOutcome, CheckInType, FollowUpCheckIn
from app.domain.entities.lead import Lead, LeadStatus
from app.infrastructure.logging.logger import log_sync, logger


class LeadManager:
    """Local-first lead operations.

    Edits stay local until the next batched sync window; only explicit
    deletes reach the remote store immediately.
    """

    def __init__(
        self,
        lead_repository: LeadRepository,
        check_in_repository: FollowUpCheckInRepository,
        notification_service: NotificationService,
        pusher: EntityPusher,
    ) -> None:
        self._leads = lead_repository
        self._check_ins = check_in_repository
        self._notifications = notification_service
        self._pusher = pusher

    async def get(self, lead_id: UUID) -> Optional[Lead]:
        return await self._leads.get(lead_id)

    async def list_all(self) -> list[Lead]:
        return await self._leads.list_all()

    async def create(self, lead: Lead) -> Lead:
        """
        Validate and store a new lead.

        Args:
            lead: Lead to create

        Returns:
            The stored lead

        Raises:
            ValidationError: If the lead has neither a name nor an address
        """
        try:
            lead.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e

        await self._leads.save(lead)
        if lead.follow_up_date is not None:
            await self._notifications.schedule_follow_up_notification(lead)
        log_sync(self._pusher.current_user_id(), "leads", action="create", lead_id=str(lead.id))
        return lead

    async def update(self, lead: Lead) -> Lead:
        """
        Store an edited lead.

        Raises:
            ValidationError: If the edit removed both name and address
        """
        try:
            lead.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e
        lead.touch()
        await self._leads.save(lead)
        return lead

    async def set_status(self, lead: Lead, status: LeadStatus) -> Lead:
        lead.set_status(status)
        await self._leads.save(lead)
        return lead

    async def set_follow_up_date(self, lead: Lead, follow_up_date: Optional[datetime]) -> Lead:
        """
        Change (or clear) the follow-up date and reschedule its reminder.

        Args:
            lead: Lead to update
            follow_up_date: New follow-up date, None to clear it

        Returns:
            The updated lead
        """
        await self._notifications.cancel_follow_up_notification(lead.id)
        lead.follow_up_date = follow_up_date
        lead.touch()
        await self._leads.save(lead)
        if follow_up_date is not None:
            await self._notifications.schedule_follow_up_notification(lead)
        return lead

    async def delete(self, lead: Lead) -> bool:
        """
        Delete a lead with its check-ins, reminder and remote mirror.

        The remote delete is skipped without a session.

        Args:
            lead: Lead to delete

        Returns:
            True if the lead existed locally
        """
        check_ins = await self._check_ins.list_for_lead(lead.id)
        await self._check_ins.delete_for_lead(lead.id)
        await self._notifications.cancel_follow_up_notification(lead.id)
        deleted = await self._leads.delete(lead.id)

        if self._pusher.current_user_id() is not None:
            await self._pusher.delete_entity(LEADS_COLLECTION, str(lead.id))
            for check_in in check_ins:
                await self._pusher.delete_entity(CHECK_INS_COLLECTION, str(check_in.id))

        logger.info(f"Deleted lead {lead.id} with {len(check_ins)} check-ins")
        return deleted

    async def add_check_in(
        self,
        lead: Lead,
        check_in_type: CheckInType,
        outcome: CheckInOutcome,
        notes: Optional[str] = None,
    ) -> FollowUpCheckIn:
        """
        Record a contact attempt for a lead.

        The lead's last contact date and visit count follow the check-in.

        Returns:
            The stored check-in
        """
        check_in = FollowUpCheckIn(
            lead_id=lead.id,
            check_in_type=check_in_type,
            outcome=outcome,
            notes=notes,
        )
        await self._check_ins.save(check_in)

        lead.last_contact_date = check_in.check_in_date
        lead.visit_count += 1
        lead.touch()
        await self._leads.save(lead)
        return check_in

    async def check_ins_for(self, lead_id: UUID) -> list[FollowUpCheckIn]:
        return await self._check_ins.list_for_lead(lead_id)

    async def backfill_check_in_outcomes(self) -> int:
        """
        Give legacy check-ins without an outcome the default outcome.

        Returns:
            Number of updated check-ins
        """
        updated = 0
        for check_in in await self._check_ins.list_all():
            if check_in.backfill_outcome():
                await self._check_ins.save(check_in)
                updated += 1
        if updated:
            logger.info(f"Backfilled outcome on {updated} check-ins")
        return updated

"""SQLAlchemy-backed follow-up check-in repository adapter."""

from datetime import timezone
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.errors import DataError
from app.application.ports.follow_up_check_in_repository import FollowUpCheckInRepository
from app.domain.entities.follow_up_check_in import CheckInOutcome, CheckInType, FollowUpCheckIn
from app.infrastructure.db import get_db_session
from app.infrastructure.logging.logger import logger

from .models import FollowUpCheckInModel


class SqlFollowUpCheckInRepository(FollowUpCheckInRepository):
    """SQL implementation of check-in repository."""

    def _model_to_entity(self, model: FollowUpCheckInModel) -> FollowUpCheckIn:
        check_in_date = model.check_in_date
        if check_in_date.tzinfo is None:
            check_in_date = check_in_date.replace(tzinfo=timezone.utc)
        try:
            check_in_type = CheckInType(model.check_in_type)
        except ValueError:
            check_in_type = CheckInType.DOOR_KNOCK
        try:
            outcome = CheckInOutcome(model.outcome) if model.outcome else None
        except ValueError:
            outcome = None
        return FollowUpCheckIn(
            id=UUID(model.id),
            lead_id=UUID(model.lead_id),
            check_in_date=check_in_date,
            check_in_type=check_in_type,
            outcome=outcome,
            notes=model.notes,
        )

    async def save(self, check_in: FollowUpCheckIn) -> None:
        """
        Save a check-in (upsert by id).

        Raises:
            DataError: If the database write fails
        """
        db: Session = get_db_session()
        try:
            model = (
                db.query(FollowUpCheckInModel)
                .filter(FollowUpCheckInModel.id == str(check_in.id))
                .first()
            )
            if model is None:
                model = FollowUpCheckInModel(id=str(check_in.id))
                db.add(model)
            model.lead_id = str(check_in.lead_id)
            model.check_in_date = check_in.check_in_date
            model.check_in_type = check_in.check_in_type.value
            model.outcome = check_in.outcome.value if check_in.outcome else None
            model.notes = check_in.notes
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while saving check-in {check_in.id}: {str(e)}")
            raise DataError(f"Failed to save check-in {check_in.id}", cause=e) from e
        finally:
            db.close()

    async def list_for_lead(self, lead_id: UUID) -> list[FollowUpCheckIn]:
        db: Session = get_db_session()
        try:
            models = (
                db.query(FollowUpCheckInModel)
                .filter(FollowUpCheckInModel.lead_id == str(lead_id))
                .order_by(FollowUpCheckInModel.check_in_date.desc())
                .all()
            )
            return [self._model_to_entity(model) for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Database error while listing check-ins of lead {lead_id}: {str(e)}")
            raise DataError(f"Failed to list check-ins of lead {lead_id}", cause=e) from e
        finally:
            db.close()

    async def list_all(self) -> list[FollowUpCheckIn]:
        db: Session = get_db_session()
        try:
            return [self._model_to_entity(m) for m in db.query(FollowUpCheckInModel).all()]
        except SQLAlchemyError as e:
            logger.error(f"Database error while listing check-ins: {str(e)}")
            raise DataError("Failed to list check-ins", cause=e) from e
        finally:
            db.close()

    async def delete_for_lead(self, lead_id: UUID) -> int:
        db: Session = get_db_session()
        try:
            deleted = (
                db.query(FollowUpCheckInModel)
                .filter(FollowUpCheckInModel.lead_id == str(lead_id))
                .delete()
            )
            db.commit()
            return deleted
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while deleting check-ins of lead {lead_id}: {str(e)}")
            raise DataError(f"Failed to delete check-ins of lead {lead_id}", cause=e) from e
        finally:
            db.close()

    async def clear(self) -> None:
        db: Session = get_db_session()
        try:
            db.query(FollowUpCheckInModel).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while clearing check-ins: {str(e)}")
            raise DataError("Failed to clear check-ins", cause=e) from e
        finally:
            db.close()

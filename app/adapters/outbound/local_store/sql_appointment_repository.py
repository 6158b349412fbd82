"""SQLAlchemy-backed appointment repository adapter."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.errors import DataError
from app.application.ports.appointment_repository import AppointmentRepository
from app.domain.entities.appointment import Appointment, AppointmentStatus, AppointmentType
from app.infrastructure.db import get_db_session
from app.infrastructure.logging.logger import logger

from .models import AppointmentModel


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAppointmentRepository(AppointmentRepository):
    """SQL implementation of appointment repository.

    The collection is rewritten as a whole inside one transaction, keeping
    its order in the position column.
    """

    def _model_to_entity(self, model: AppointmentModel) -> Appointment:
        try:
            appointment_type = AppointmentType(model.appointment_type)
        except ValueError:
            appointment_type = AppointmentType.CONSULTATION
        try:
            status = AppointmentStatus(model.status)
        except ValueError:
            status = AppointmentStatus.SCHEDULED
        return Appointment(
            id=UUID(model.id),
            title=model.title,
            notes=model.notes or "",
            start_date=_aware(model.start_date),
            end_date=_aware(model.end_date),
            location=model.location or "",
            lead_id=UUID(model.lead_id) if model.lead_id else None,
            calendar_event_id=model.calendar_event_id,
            appointment_type=appointment_type,
            custom_appointment_type_id=model.custom_appointment_type_id,
            status=status,
        )

    def _entity_to_model(self, appointment: Appointment, position: int) -> AppointmentModel:
        return AppointmentModel(
            id=str(appointment.id),
            position=position,
            title=appointment.title,
            notes=appointment.notes,
            start_date=appointment.start_date,
            end_date=appointment.end_date,
            location=appointment.location,
            lead_id=str(appointment.lead_id) if appointment.lead_id else None,
            calendar_event_id=appointment.calendar_event_id,
            appointment_type=appointment.appointment_type.value,
            custom_appointment_type_id=appointment.custom_appointment_type_id,
            status=appointment.status.value,
        )

    async def load(self) -> list[Appointment]:
        db: Session = get_db_session()
        try:
            models = db.query(AppointmentModel).order_by(AppointmentModel.position).all()
            return [self._model_to_entity(model) for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Database error while loading appointments: {str(e)}")
            raise DataError("Failed to load appointments", cause=e) from e
        finally:
            db.close()

    async def replace_all(self, appointments: list[Appointment]) -> None:
        """
        Persist the full collection atomically.

        Duplicate ids keep their first occurrence.

        Raises:
            DataError: If the transaction fails (nothing is changed)
        """
        db: Session = get_db_session()
        try:
            db.query(AppointmentModel).delete()
            seen: set[UUID] = set()
            for position, appointment in enumerate(appointments):
                if appointment.id in seen:
                    continue
                seen.add(appointment.id)
                db.add(self._entity_to_model(appointment, position))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while saving appointments: {str(e)}")
            raise DataError("Failed to save appointments", cause=e) from e
        finally:
            db.close()

    async def clear(self) -> None:
        db: Session = get_db_session()
        try:
            db.query(AppointmentModel).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while clearing appointments: {str(e)}")
            raise DataError("Failed to clear appointments", cause=e) from e
        finally:
            db.close()

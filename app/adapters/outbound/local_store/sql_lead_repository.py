"""SQLAlchemy-backed lead repository adapter."""

from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.errors import DataError
from app.application.ports.lead_repository import LeadRepository
from app.domain.entities.lead import Lead, LeadStatus
from app.domain.value_objects.geo_coordinate import GeoCoordinate
from app.infrastructure.db import get_db_session
from app.infrastructure.logging.logger import logger

from .models import LeadModel


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite returns naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlLeadRepository(LeadRepository):
    """SQL implementation of lead repository."""

    def _model_to_entity(self, model: LeadModel) -> Lead:
        """
        Convert LeadModel to Lead entity.

        Args:
            model: SQLAlchemy model instance

        Returns:
            Lead entity
        """
        return Lead(
            id=UUID(model.id),
            name=model.name,
            address=model.address,
            phone=model.phone,
            email=model.email,
            coordinate=GeoCoordinate(model.latitude or 0.0, model.longitude or 0.0),
            notes=model.notes,
            price=model.price or 0.0,
            status=LeadStatus.normalize(model.status),
            follow_up_date=_aware(model.follow_up_date),
            service_category_id=model.service_category_id,
            area_id=model.area_id,
            last_contact_date=_aware(model.last_contact_date),
            priority=model.priority or 0,
            source=model.source,
            estimated_value=model.estimated_value or 0.0,
            tags=model.tags,
            visit_count=model.visit_count or 0,
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
        )

    def _entity_to_model(self, lead: Lead, model: Optional[LeadModel] = None) -> LeadModel:
        """
        Copy a lead onto a model (new one for insert, existing one for update).

        Args:
            lead: Lead entity
            model: Existing model instance or None

        Returns:
            LeadModel instance
        """
        if model is None:
            model = LeadModel(id=str(lead.id))
        model.name = lead.name
        model.address = lead.address
        model.phone = lead.phone
        model.email = lead.email
        model.latitude = lead.coordinate.latitude
        model.longitude = lead.coordinate.longitude
        model.notes = lead.notes
        model.price = lead.price
        model.status = lead.status.value
        model.follow_up_date = lead.follow_up_date
        model.service_category_id = lead.service_category_id
        model.area_id = lead.area_id
        model.last_contact_date = lead.last_contact_date
        model.priority = lead.priority
        model.source = lead.source
        model.estimated_value = lead.estimated_value
        model.tags = lead.tags
        model.visit_count = lead.visit_count
        model.created_at = lead.created_at
        model.updated_at = lead.updated_at
        return model

    async def save(self, lead: Lead) -> None:
        """
        Save a lead (upsert by id).

        Args:
            lead: Lead entity to save

        Raises:
            DataError: If the database write fails
        """
        db: Session = get_db_session()
        try:
            model = db.query(LeadModel).filter(LeadModel.id == str(lead.id)).first()
            if model:
                self._entity_to_model(lead, model)
            else:
                db.add(self._entity_to_model(lead))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while saving lead {lead.id}: {str(e)}")
            raise DataError(f"Failed to save lead {lead.id}", cause=e) from e
        finally:
            db.close()

    async def get(self, lead_id: UUID) -> Optional[Lead]:
        db: Session = get_db_session()
        try:
            model = db.query(LeadModel).filter(LeadModel.id == str(lead_id)).first()
            if model is None:
                return None
            return self._model_to_entity(model)
        except SQLAlchemyError as e:
            logger.error(f"Database error while getting lead {lead_id}: {str(e)}")
            raise DataError(f"Failed to load lead {lead_id}", cause=e) from e
        finally:
            db.close()

    async def delete(self, lead_id: UUID) -> bool:
        db: Session = get_db_session()
        try:
            deleted = db.query(LeadModel).filter(LeadModel.id == str(lead_id)).delete()
            db.commit()
            return deleted > 0
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while deleting lead {lead_id}: {str(e)}")
            raise DataError(f"Failed to delete lead {lead_id}", cause=e) from e
        finally:
            db.close()

    async def list_all(self) -> list[Lead]:
        """
        List all leads.

        Returns:
            Leads ordered by creation date
        """
        db: Session = get_db_session()
        try:
            models = db.query(LeadModel).order_by(LeadModel.created_at).all()
            return [self._model_to_entity(model) for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Database error while listing leads: {str(e)}")
            raise DataError("Failed to list leads", cause=e) from e
        finally:
            db.close()

    async def query(self, predicate: Callable[[Lead], bool]) -> list[Lead]:
        return [lead for lead in await self.list_all() if predicate(lead)]

    async def clear(self) -> None:
        db: Session = get_db_session()
        try:
            db.query(LeadModel).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while clearing leads: {str(e)}")
            raise DataError("Failed to clear leads", cause=e) from e
        finally:
            db.close()

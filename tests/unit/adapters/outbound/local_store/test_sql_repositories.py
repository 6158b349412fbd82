"""Unit tests for the SQL local store using SQLite in-memory."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.adapters.outbound.local_store import (
    SqlAppointmentRepository,
    SqlFollowUpCheckInRepository,
    SqlLeadRepository,
)
from app.adapters.outbound.local_store.models import Base
from app.application.errors import DataError
from app.domain.entities.appointment import Appointment, AppointmentStatus, AppointmentType
from app.domain.entities.follow_up_check_in import CheckInOutcome, CheckInType, FollowUpCheckIn
from app.domain.entities.lead import Lead, LeadStatus
from app.domain.value_objects.geo_coordinate import GeoCoordinate

MODULES = (
    "app.adapters.outbound.local_store.sql_lead_repository",
    "app.adapters.outbound.local_store.sql_check_in_repository",
    "app.adapters.outbound.local_store.sql_appointment_repository",
)


@pytest.fixture
def sqlite_engine():
    """Create SQLite in-memory engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def patched_sessions(sqlite_engine, monkeypatch):
    """Point every SQL repository at the test database."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=sqlite_engine)

    def get_test_db_session():
        return SessionLocal()

    for module in MODULES:
        monkeypatch.setattr(f"{module}.get_db_session", get_test_db_session)


@pytest.fixture
def lead_repository(patched_sessions):
    return SqlLeadRepository()


@pytest.fixture
def check_in_repository(patched_sessions):
    return SqlFollowUpCheckInRepository()


@pytest.fixture
def appointment_repository(patched_sessions):
    return SqlAppointmentRepository()


def _appointment(title: str, hours_from_now: int = 24) -> Appointment:
    start = datetime.now(timezone.utc) + timedelta(hours=hours_from_now)
    return Appointment(title=title, start_date=start, end_date=start + timedelta(hours=1))


@pytest.mark.asyncio
async def test_lead_save_and_get_round_trip(lead_repository):
    """Test that every lead field survives the database."""
    follow_up = datetime(2025, 9, 1, 10, 0, tzinfo=timezone.utc)
    lead = Lead(
        name="Ana Lopez",
        address="12 Elm St",
        phone="+15551234567",
        coordinate=GeoCoordinate(40.7, -74.0),
        status=LeadStatus.INTERESTED,
        follow_up_date=follow_up,
        priority=2,
        tags="solar,roof",
        visit_count=3,
    )

    await lead_repository.save(lead)
    stored = await lead_repository.get(lead.id)

    assert stored.name == "Ana Lopez"
    assert stored.coordinate == GeoCoordinate(40.7, -74.0)
    assert stored.status == LeadStatus.INTERESTED
    assert stored.follow_up_date == follow_up
    assert stored.updated_at.tzinfo is not None
    assert stored.visit_count == 3


@pytest.mark.asyncio
async def test_lead_save_upserts(lead_repository):
    """Test that saving an existing id updates the row."""
    lead = Lead(name="Ana")
    await lead_repository.save(lead)
    lead.name = "Ana Maria"
    await lead_repository.save(lead)

    leads = await lead_repository.list_all()

    assert len(leads) == 1
    assert leads[0].name == "Ana Maria"


@pytest.mark.asyncio
async def test_lead_legacy_status_is_normalized(lead_repository, sqlite_engine):
    lead = Lead(name="Ana")
    await lead_repository.save(lead)
    with sqlite_engine.begin() as connection:
        connection.exec_driver_sql("UPDATE leads SET status = 'sold'")

    assert (await lead_repository.get(lead.id)).status == LeadStatus.CONVERTED


@pytest.mark.asyncio
async def test_lead_query_delete_and_clear(lead_repository):
    keep = Lead(name="Keep")
    drop = Lead(address="")
    await lead_repository.save(keep)
    await lead_repository.save(drop)

    invalid = await lead_repository.query(lambda lead: not lead.is_valid())
    assert [lead.id for lead in invalid] == [drop.id]

    assert await lead_repository.delete(drop.id) is True
    assert await lead_repository.delete(drop.id) is False

    await lead_repository.clear()
    assert await lead_repository.list_all() == []


@pytest.mark.asyncio
async def test_check_ins_listed_newest_first(lead_repository, check_in_repository):
    lead = Lead(name="Ana")
    await lead_repository.save(lead)
    older = FollowUpCheckIn(
        lead_id=lead.id, check_in_date=datetime(2025, 8, 1, tzinfo=timezone.utc)
    )
    newer = FollowUpCheckIn(
        lead_id=lead.id,
        check_in_type=CheckInType.PHONE_CALL,
        outcome=CheckInOutcome.CALLBACK,
        check_in_date=datetime(2025, 8, 10, tzinfo=timezone.utc),
    )
    await check_in_repository.save(older)
    await check_in_repository.save(newer)

    check_ins = await check_in_repository.list_for_lead(lead.id)

    assert [c.id for c in check_ins] == [newer.id, older.id]
    assert check_ins[0].outcome == CheckInOutcome.CALLBACK
    assert check_ins[1].outcome is None


@pytest.mark.asyncio
async def test_check_ins_delete_for_lead(lead_repository, check_in_repository):
    lead = Lead(name="Ana")
    other = Lead(name="Ben")
    await lead_repository.save(lead)
    await lead_repository.save(other)
    await check_in_repository.save(FollowUpCheckIn(lead_id=lead.id))
    await check_in_repository.save(FollowUpCheckIn(lead_id=lead.id))
    await check_in_repository.save(FollowUpCheckIn(lead_id=other.id))

    assert await check_in_repository.delete_for_lead(lead.id) == 2

    assert len(await check_in_repository.list_all()) == 1


@pytest.mark.asyncio
async def test_appointments_replace_all_keeps_order(appointment_repository):
    """Test that the collection comes back in the order it was saved."""
    first = _appointment("First", hours_from_now=48)
    second = _appointment("Second", hours_from_now=2)
    second.appointment_type = AppointmentType.REPAIR
    second.status = AppointmentStatus.CONFIRMED

    await appointment_repository.replace_all([first, second])
    loaded = await appointment_repository.load()

    assert [a.title for a in loaded] == ["First", "Second"]
    assert loaded[1].appointment_type == AppointmentType.REPAIR
    assert loaded[1].status == AppointmentStatus.CONFIRMED
    assert loaded[0].start_date.tzinfo is not None


@pytest.mark.asyncio
async def test_appointments_replace_all_drops_duplicate_ids(appointment_repository):
    appointment = _appointment("Visit")

    await appointment_repository.replace_all([appointment, appointment])

    assert len(await appointment_repository.load()) == 1


@pytest.mark.asyncio
async def test_appointments_replace_all_overwrites_previous(appointment_repository):
    await appointment_repository.replace_all([_appointment("Old")])
    await appointment_repository.replace_all([_appointment("New")])

    assert [a.title for a in await appointment_repository.load()] == ["New"]

    await appointment_repository.clear()
    assert await appointment_repository.load() == []


@pytest.mark.asyncio
async def test_database_errors_become_data_errors(monkeypatch):
    """Test that SQLAlchemy failures surface as DataError."""
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))
    monkeypatch.setattr(
        "app.adapters.outbound.local_store.sql_appointment_repository.get_db_session",
        lambda: session,
    )

    with pytest.raises(DataError):
        await SqlAppointmentRepository().load()
    session.close.assert_called_once()

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PERSIST_SNAPSHOTS", "true")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from physiocare.db import Base
from physiocare import models
from physiocare.events import changes
from physiocare.services import directory


@pytest.fixture()
def engine():
	eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
	Base.metadata.create_all(bind=eng)
	yield eng
	eng.dispose()


@pytest.fixture()
def session_factory(engine):
	return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture()
def db(session_factory):
	s = session_factory()
	yield s
	s.close()


@pytest.fixture()
def physio(db):
	return directory.add_physiotherapist(db, name="Dr. Ashok Pt", email="Ashok@PhysioCare.com", experience=8)


@pytest.fixture()
def other_physio(db):
	return directory.add_physiotherapist(db, name="Dr. Devang Pt", email="devang@physiocare.com", experience=5)


@pytest.fixture()
def patient(db, physio):
	return directory.add_patient(db, name="Riya Sharma", email="riya@example.com", injury=models.Injury.GRADE1, current_physiotherapist_id=physio.physiotherapist_id)


@pytest.fixture()
def jane(db, physio):
	return directory.add_patient(db, name="Jane", email="jane@example.com", injury=models.Injury.LIGAMENT_TEAR, current_physiotherapist_id=physio.physiotherapist_id)


@pytest.fixture()
def change_events():
	events = []
	unsubscribe = changes.subscribe(lambda: events.append(1))
	yield events
	unsubscribe()


def assert_views_agree(db, patient_id: int):
	"""History and roster expose the same appointment rows with equal fields."""
	from physiocare.services import queries
	for appt in queries.patient_history(db, patient_id):
		if appt.physiotherapist_id is None:
			continue
		roster = {a.appointment_id: a for a in queries.physiotherapist_roster(db, appt.physiotherapist_id)}
		mirror = roster[appt.appointment_id]
		assert (mirror.date, mirror.time, mirror.is_active) == (appt.date, appt.time, appt.is_active)

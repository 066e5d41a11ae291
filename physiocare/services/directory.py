from sqlalchemy.orm import Session
from sqlalchemy.sql import func as sa_func
from physiocare import models
from physiocare.db import write_transaction
from physiocare.events import changes
from physiocare.logger import get_logger

log = get_logger("directory")


def get_patient(db: Session, patient_id: int) -> models.Patient | None:
	return db.query(models.Patient).filter(models.Patient.patient_id == patient_id).first()


def get_physiotherapist(db: Session, physiotherapist_id: int) -> models.Physiotherapist | None:
	return db.query(models.Physiotherapist).filter(models.Physiotherapist.physiotherapist_id == physiotherapist_id).first()


def get_physiotherapist_by_email(db: Session, email: str) -> models.Physiotherapist | None:
	return db.query(models.Physiotherapist).filter(sa_func.lower(models.Physiotherapist.email) == email.lower()).first()


def get_appointment(db: Session, appointment_id: int) -> models.Appointment | None:
	return db.query(models.Appointment).filter(models.Appointment.appointment_id == appointment_id).first()


def display_name(db: Session, user_id: int) -> str:
	# patients and physiotherapists share one id space in chat
	p = get_patient(db, user_id)
	if p:
		return p.name
	d = get_physiotherapist(db, user_id)
	if d:
		return d.name
	return "Unknown User"


def link_patient(physio: models.Physiotherapist, patient: models.Patient) -> bool:
	"""Add patient to the physiotherapist's patient set; False if already there."""
	if patient in physio.patients:
		return False
	physio.patients.append(patient)
	return True


def add_physiotherapist(db: Session, **fields) -> models.Physiotherapist:
	with write_transaction(db):
		d = models.Physiotherapist(**fields)
		db.add(d)
	log.info("Registered physiotherapist %s", d.physiotherapist_id)
	changes.notify()
	return d


def add_patient(db: Session, **fields) -> models.Patient:
	with write_transaction(db):
		p = models.Patient(**fields)
		db.add(p)
		db.flush()
		if p.current_physiotherapist_id is not None:
			physio = get_physiotherapist(db, p.current_physiotherapist_id)
			if physio:
				link_patient(physio, p)
	log.info("Registered patient %s", p.patient_id)
	changes.notify()
	return p


def assign_patient(db: Session, physiotherapist_id: int, patient_id: int) -> models.Physiotherapist | None:
	physio = get_physiotherapist(db, physiotherapist_id)
	patient = get_patient(db, patient_id)
	if not physio or not patient:
		return None
	with write_transaction(db):
		link_patient(physio, patient)
		patient.current_physiotherapist_id = physio.physiotherapist_id
	changes.notify()
	return physio

from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from physiocare import models
from physiocare.services import directory, lifecycle
from physiocare.services import calendar_utils as cal

DEMO_PHYSIOTHERAPISTS = [
	("Dr. Ashok Pt", "ashok@physiocare.com", 8, 4.6),
	("Dr. Devang Pt", "devang@physiocare.com", 5, 4.2),
]

DEMO_PATIENTS = [
	("Riya Sharma", "riya@example.com", models.Injury.GRADE1),
	("Jane Doe", "jane@example.com", models.Injury.LIGAMENT_TEAR),
	("Arjun Mehta", "arjun@example.com", models.Injury.INVERSION),
]


def upsert_physiotherapist(db: Session, name: str, email: str, experience: int = 0, rating: float | None = None) -> models.Physiotherapist:
	d = directory.get_physiotherapist_by_email(db, email)
	if not d:
		d = directory.add_physiotherapist(db, name=name, email=email, experience=experience, rating=rating)
	return d


def upsert_patient(db: Session, name: str, email: str, injury: models.Injury, physiotherapist_id: int | None = None) -> models.Patient:
	p = db.query(models.Patient).filter(models.Patient.email == email).first()
	if not p:
		p = directory.add_patient(db, name=name, email=email, injury=injury, current_physiotherapist_id=physiotherapist_id)
	return p


def seed(db: Session, now: datetime | None = None) -> dict:
	now = now or datetime.now()
	physios = [upsert_physiotherapist(db, *row) for row in DEMO_PHYSIOTHERAPISTS]
	patients = [upsert_patient(db, name, email, injury, physios[0].physiotherapist_id) for name, email, injury in DEMO_PATIENTS]

	if db.query(models.Appointment).count() == 0:
		tomorrow = now + timedelta(days=1)
		lifecycle.book_appointment(db, patients[0].patient_id, physios[0].physiotherapist_id, now, "4:00 PM", "Follow-up")
		lifecycle.book_appointment(db, patients[2].patient_id, physios[0].physiotherapist_id, tomorrow, "10:30 AM", "Initial Assessment")
		lifecycle.request_appointment(
			db, patients[1].patient_id, patients[1].name,
			cal.format_request_date(now + timedelta(days=2)), "2:00 PM", "Swelling after run",
		)
	return {"physiotherapists": len(physios), "patients": len(patients)}

import enum
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy.orm import Session
from physiocare import models
from physiocare.services import calendar_utils as cal


class DisplayStatus(str, enum.Enum):
	PENDING = "Pending"
	CONFIRMED = "Confirmed"
	CANCELLED = "Cancelled"


def _matches_request(appt: models.Appointment, req: models.AppointmentRequest) -> bool:
	return (
		req.patient_id == appt.patient_id
		and req.date == cal.format_request_date(appt.date)
		and req.time == appt.time
	)


def _matches_reschedule(appt: models.Appointment, req: models.RescheduleRequest) -> bool:
	if req.appointment_id == appt.appointment_id:
		return True
	return (
		req.patient_id == appt.patient_id
		and cal.is_same_day(req.original_date, appt.date)
		and req.original_time == appt.time
	)


def classify_status(
	appt: models.Appointment,
	appointment_requests: Iterable[models.AppointmentRequest],
	reschedule_requests: Iterable[models.RescheduleRequest],
) -> DisplayStatus:
	"""
	Badge for an appointment, in priority order:

	1. a pending booking request for the same patient, day and time -> Pending
	2. inactive with a pending reschedule for it -> Pending, otherwise Cancelled
	3. active -> Confirmed
	"""
	for req in appointment_requests:
		if req.status == models.RequestStatus.PENDING and _matches_request(appt, req):
			return DisplayStatus.PENDING
	if not appt.is_active:
		for req in reschedule_requests:
			if req.status == models.RescheduleStatus.PENDING and _matches_reschedule(appt, req):
				return DisplayStatus.PENDING
		return DisplayStatus.CANCELLED
	return DisplayStatus.CONFIRMED


def appointment_status(db: Session, appt: models.Appointment) -> DisplayStatus:
	requests = db.query(models.AppointmentRequest).filter(
		models.AppointmentRequest.patient_id == appt.patient_id,
		models.AppointmentRequest.status == models.RequestStatus.PENDING,
	).all()
	reschedules = db.query(models.RescheduleRequest).filter(
		models.RescheduleRequest.patient_id == appt.patient_id,
		models.RescheduleRequest.status == models.RescheduleStatus.PENDING,
	).all()
	return classify_status(appt, requests, reschedules)


def patient_history(db: Session, patient_id: int) -> list[models.Appointment]:
	return db.query(models.Appointment).filter(
		models.Appointment.patient_id == patient_id,
	).order_by(models.Appointment.appointment_id).all()


def physiotherapist_roster(db: Session, physiotherapist_id: int) -> list[models.Appointment]:
	return db.query(models.Appointment).filter(
		models.Appointment.physiotherapist_id == physiotherapist_id,
	).order_by(models.Appointment.appointment_id).all()


def _dedup(appts: list[models.Appointment]) -> list[models.Appointment]:
	seen = set()
	out = []
	for a in appts:
		key = (a.patient_id, a.date.date(), a.time)
		if key in seen:
			continue
		seen.add(key)
		out.append(a)
	return out


def today_appointments(db: Session, physiotherapist_id: int, now: datetime | None = None) -> list[models.Appointment]:
	start = cal.start_of_day(now or datetime.now())
	rows = db.query(models.Appointment).filter(
		models.Appointment.physiotherapist_id == physiotherapist_id,
		models.Appointment.state == models.AppointmentState.CONFIRMED,
		models.Appointment.date >= start,
		models.Appointment.date < start + timedelta(days=1),
	).order_by(models.Appointment.date, models.Appointment.appointment_id).all()
	return _dedup(rows)


def upcoming_appointments(db: Session, physiotherapist_id: int, now: datetime | None = None) -> list[models.Appointment]:
	rows = db.query(models.Appointment).filter(
		models.Appointment.physiotherapist_id == physiotherapist_id,
		models.Appointment.state == models.AppointmentState.CONFIRMED,
		models.Appointment.date >= cal.start_of_tomorrow(now),
	).order_by(models.Appointment.date, models.Appointment.appointment_id).all()
	return _dedup(rows)


def upcoming_patient_appointments(db: Session, patient_id: int, now: datetime | None = None) -> list[models.Appointment]:
	return db.query(models.Appointment).filter(
		models.Appointment.patient_id == patient_id,
		models.Appointment.state == models.AppointmentState.CONFIRMED,
		models.Appointment.date > (now or datetime.now()),
	).order_by(models.Appointment.date).all()


def has_active_appointments(db: Session, patient_id: int, now: datetime | None = None) -> bool:
	return len(upcoming_patient_appointments(db, patient_id, now)) > 0


def latest_appointment(db: Session, patient_id: int, now: datetime | None = None) -> models.Appointment | None:
	# most recent confirmed appointment that has already started
	return db.query(models.Appointment).filter(
		models.Appointment.patient_id == patient_id,
		models.Appointment.state == models.AppointmentState.CONFIRMED,
		models.Appointment.date <= (now or datetime.now()),
	).order_by(models.Appointment.date.desc()).first()


def pending_requests(db: Session, physiotherapist_id: int | None = None) -> list[models.AppointmentRequest]:
	q = db.query(models.AppointmentRequest).filter(models.AppointmentRequest.status == models.RequestStatus.PENDING)
	if physiotherapist_id is not None:
		# requests from patients in this physiotherapist's care
		q = q.join(models.Patient, models.Patient.patient_id == models.AppointmentRequest.patient_id).filter(
			models.Patient.current_physiotherapist_id == physiotherapist_id,
		)
	return q.order_by(models.AppointmentRequest.request_id).all()


def relevant_appointment(db: Session, patient_id: int, now: datetime | None = None) -> models.Appointment | None:
	"""
	The appointment a patient's home view should show.

	An appointment moved by an accepted reschedule wins, then the placeholder
	of a pending booking request, then the earliest upcoming confirmed one.
	"""
	now = now or datetime.now()
	accepted = db.query(models.RescheduleRequest).filter(
		models.RescheduleRequest.patient_id == patient_id,
		models.RescheduleRequest.status == models.RescheduleStatus.ACCEPTED,
	).order_by(models.RescheduleRequest.request_id.desc()).all()
	for req in accepted:
		appt = db.query(models.Appointment).filter(models.Appointment.appointment_id == req.appointment_id).first()
		if appt and appt.is_active and appt.date >= now:
			return appt

	for req in pending_requests_for_patient(db, patient_id):
		if req.appointment_id is None:
			continue
		appt = db.query(models.Appointment).filter(models.Appointment.appointment_id == req.appointment_id).first()
		if appt and not appt.is_active:
			return appt

	upcoming = db.query(models.Appointment).filter(
		models.Appointment.patient_id == patient_id,
		models.Appointment.state == models.AppointmentState.CONFIRMED,
		models.Appointment.date >= now,
	).order_by(models.Appointment.date).first()
	return upcoming


def pending_requests_for_patient(db: Session, patient_id: int) -> list[models.AppointmentRequest]:
	return db.query(models.AppointmentRequest).filter(
		models.AppointmentRequest.patient_id == patient_id,
		models.AppointmentRequest.status == models.RequestStatus.PENDING,
	).order_by(models.AppointmentRequest.request_id).all()

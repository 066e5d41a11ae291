from datetime import date, datetime

from sqlalchemy.orm import Session
from physiocare import models
from physiocare.db import write_transaction
from physiocare.errors import Outcome, Reason
from physiocare.events import changes
from physiocare.logger import get_logger
from physiocare.services import calendar_utils as cal
from physiocare.services.directory import get_appointment
from physiocare.services.lifecycle import apply_cancel, apply_move
from physiocare.services.storage import snapshot_collections

log = get_logger("reschedule")

DECLINED_REASON = "Proposed reschedule was declined"


def _pending_for(db: Session, appointment_id: int) -> models.RescheduleRequest | None:
	return db.query(models.RescheduleRequest).filter(
		models.RescheduleRequest.appointment_id == appointment_id,
		models.RescheduleRequest.status == models.RescheduleStatus.PENDING,
	).first()


def _propose(
	db: Session,
	appointment_id: int,
	patient_id: int | None,
	original_date: datetime | None,
	original_time: str | None,
	suggested_new_date: datetime | None,
	suggested_new_time: str | None,
) -> Outcome:
	appt = get_appointment(db, appointment_id)
	if not appt:
		return Outcome.failure(Reason.NOT_FOUND, f"Appointment {appointment_id} not found")
	# the appointment is the source of truth; caller-supplied copies must agree with it
	if patient_id is not None and patient_id != appt.patient_id:
		return Outcome.failure(Reason.INVALID_STATE, f"Appointment {appointment_id} does not belong to patient {patient_id}")
	if original_date is not None and not cal.is_same_day(original_date, appt.date):
		return Outcome.failure(Reason.INVALID_STATE, f"Appointment {appointment_id} is not on {original_date:%Y-%m-%d}")
	if original_time is not None and cal.normalize_time(original_time) != appt.time:
		return Outcome.failure(Reason.INVALID_STATE, f"Appointment {appointment_id} is not at {original_time}")
	existing = _pending_for(db, appointment_id)
	if existing:
		return Outcome.failure(Reason.RESCHEDULE_PENDING, f"Appointment {appointment_id} already has a pending reschedule", existing)
	if not appt.can_transition_to(models.AppointmentState.RESCHEDULE_PROPOSED):
		return Outcome.failure(Reason.INVALID_STATE, f"Appointment {appointment_id} is {appt.state.value}")
	if suggested_new_time:
		suggested_new_time = cal.normalize_time(suggested_new_time)

	req = models.RescheduleRequest(
		appointment_id=appointment_id,
		patient_id=appt.patient_id,
		original_date=appt.date,
		original_time=appt.time,
		status=models.RescheduleStatus.PENDING,
		suggested_new_date=suggested_new_date,
		suggested_new_time=suggested_new_time,
	)
	db.add(req)
	# inactive while the patient decides
	appt.state = models.AppointmentState.RESCHEDULE_PROPOSED
	db.flush()
	snapshot_collections(db)
	log.info("Reschedule %s proposed for appointment %s", req.request_id, appointment_id)
	return Outcome.success(req, changed=True)


def propose_reschedule(
	db: Session,
	appointment_id: int,
	patient_id: int | None = None,
	original_date: datetime | None = None,
	original_time: str | None = None,
	suggested_new_date: datetime | None = None,
	suggested_new_time: str | None = None,
) -> Outcome:
	try:
		with write_transaction(db):
			outcome = _propose(db, appointment_id, patient_id, original_date, original_time, suggested_new_date, suggested_new_time)
	except cal.DateParseError as exc:
		return Outcome.failure(Reason.PARSE_FAILURE, str(exc))
	if outcome.ok:
		changes.notify()
	return outcome


def _respond(db: Session, request_id: int, new_date: date | datetime, new_time: str, accept: bool) -> Outcome:
	req = db.query(models.RescheduleRequest).filter(models.RescheduleRequest.request_id == request_id).first()
	if not req:
		return Outcome.failure(Reason.NOT_FOUND, f"Reschedule request {request_id} not found")
	if req.status != models.RescheduleStatus.PENDING:
		return Outcome.failure(Reason.INVALID_STATE, f"Reschedule request {request_id} is already {req.status.value}")
	appt = get_appointment(db, req.appointment_id)
	if not appt:
		return Outcome.failure(Reason.NOT_FOUND, f"Appointment {req.appointment_id} not found")

	if accept:
		moved = apply_move(db, appt, new_date, new_time)
		if not moved.ok:
			return moved
		req.status = models.RescheduleStatus.ACCEPTED
		req.suggested_new_date = appt.date
		req.suggested_new_time = appt.time
		log.info("Reschedule %s accepted, appointment %s now %s %s", request_id, appt.appointment_id, appt.date, appt.time)
	else:
		# marked first so the cancel keeps this request as history
		req.status = models.RescheduleStatus.REJECTED
		db.flush()
		apply_cancel(db, appt.appointment_id, DECLINED_REASON)
		log.info("Reschedule %s rejected, appointment %s cancelled", request_id, appt.appointment_id)
	db.flush()
	snapshot_collections(db)
	return Outcome.success(req, changed=True)


def respond_to_reschedule(db: Session, request_id: int, new_date: date | datetime, new_time: str, accept: bool) -> Outcome:
	with write_transaction(db):
		outcome = _respond(db, request_id, new_date, new_time, accept)
	if outcome.ok:
		changes.notify()
	return outcome


def pending_reschedules_for_patient(db: Session, patient_id: int) -> list[models.RescheduleRequest]:
	return db.query(models.RescheduleRequest).filter(
		models.RescheduleRequest.patient_id == patient_id,
		models.RescheduleRequest.status == models.RescheduleStatus.PENDING,
	).order_by(models.RescheduleRequest.request_id).all()

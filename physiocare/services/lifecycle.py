from datetime import date, datetime, timedelta

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from physiocare import models
from physiocare.config import settings
from physiocare.db import write_transaction
from physiocare.errors import Outcome, Reason
from physiocare.events import changes
from physiocare.logger import get_logger
from physiocare.services import calendar_utils as cal
from physiocare.services.directory import get_patient, get_physiotherapist, get_appointment, link_patient
from physiocare.services.messaging import add_message
from physiocare.services.storage import snapshot_collections

log = get_logger("lifecycle")


def _slot_query(db: Session, patient_id: int, when: datetime, time_str: str):
	day_start = cal.start_of_day(when)
	return db.query(models.Appointment).filter(
		models.Appointment.patient_id == patient_id,
		models.Appointment.time == time_str,
		models.Appointment.date >= day_start,
		models.Appointment.date < day_start + timedelta(days=1),
	)


def _delete_appointment(db: Session, appt: models.Appointment, drop_requests: bool = True) -> None:
	# resolved reschedule requests stay behind as history
	db.query(models.RescheduleRequest).filter(
		models.RescheduleRequest.appointment_id == appt.appointment_id,
		models.RescheduleRequest.status == models.RescheduleStatus.PENDING,
	).delete()
	if drop_requests:
		db.query(models.AppointmentRequest).filter(or_(
			models.AppointmentRequest.appointment_id == appt.appointment_id,
			and_(
				models.AppointmentRequest.patient_id == appt.patient_id,
				models.AppointmentRequest.date == cal.format_request_date(appt.date),
				models.AppointmentRequest.time == appt.time,
			),
		)).delete()
	db.delete(appt)
	db.flush()


def _remove_pending_requests(db: Session, patient_id: int, when: datetime, time_str: str) -> int:
	return db.query(models.AppointmentRequest).filter(
		models.AppointmentRequest.patient_id == patient_id,
		models.AppointmentRequest.date == cal.format_request_date(when),
		models.AppointmentRequest.time == time_str,
		models.AppointmentRequest.status == models.RequestStatus.PENDING,
	).delete()


def cancellation_message(appt: models.Appointment, reason: str | None = None) -> str:
	msg = (
		f"Appointment Cancellation: {appt.patient_name} has cancelled the appointment "
		f"scheduled for {cal.format_message_date(appt.date)} at {appt.time}"
	)
	if reason:
		msg += f"\n\nReason: {reason}"
	return msg


def apply_booking(
	db: Session,
	patient_id: int,
	physiotherapist_id: int,
	day: date | datetime,
	time_str: str,
	summary: str,
	idempotency_key: str | None = None,
) -> Outcome:
	if idempotency_key:
		replay = db.query(models.Appointment).filter(models.Appointment.idempotency_key == idempotency_key).first()
		if replay:
			log.info("Replayed booking %s for key %s", replay.appointment_id, idempotency_key)
			return Outcome.success(replay)
	if not get_patient(db, patient_id):
		return Outcome.failure(Reason.NOT_FOUND, f"Patient {patient_id} not found")
	if not get_physiotherapist(db, physiotherapist_id):
		return Outcome.failure(Reason.NOT_FOUND, f"Physiotherapist {physiotherapist_id} not found")
	try:
		when = cal.combine_slot(day, time_str)
	except cal.DateParseError as exc:
		return Outcome.failure(Reason.PARSE_FAILURE, str(exc))
	time_str = cal.format_display_time(when)

	existing = _slot_query(db, patient_id, when, time_str).filter(
		models.Appointment.physiotherapist_id == physiotherapist_id,
		models.Appointment.state.in_(models.LIVE_STATES),
	).first()
	if existing:
		log.warning("Duplicate booking ignored: patient %s already has %s at %s", patient_id, existing.appointment_id, when)
		return Outcome.failure(Reason.DUPLICATE_BOOKING, "Appointment already booked for this slot", existing)

	# supersede whatever else the patient holds in this slot (placeholders, cancelled bookings)
	for old in _slot_query(db, patient_id, when, time_str).all():
		log.info("Booking supersedes appointment %s", old.appointment_id)
		_delete_appointment(db, old, drop_requests=False)

	appt = models.Appointment(
		patient_id=patient_id,
		physiotherapist_id=physiotherapist_id,
		date=when,
		time=time_str,
		diagnosis=summary,
		state=models.AppointmentState.CONFIRMED,
		idempotency_key=idempotency_key,
	)
	db.add(appt)
	db.flush()
	_remove_pending_requests(db, patient_id, when, time_str)
	log.info("Booked appointment %s for patient %s with physiotherapist %s at %s", appt.appointment_id, patient_id, physiotherapist_id, when)
	return Outcome.success(appt, changed=True)


def apply_cancel(db: Session, appointment_id: int, reason: str | None = None, notify_physiotherapist: bool = True) -> Outcome:
	appt = get_appointment(db, appointment_id)
	if not appt:
		log.warning("Appointment %s not found for cancellation", appointment_id)
		return Outcome.failure(Reason.NOT_FOUND, f"Appointment {appointment_id} not found")
	# load the patient before the row goes away
	text = cancellation_message(appt, reason)
	if notify_physiotherapist and appt.physiotherapist_id is not None:
		try:
			add_message(db, appt.patient_id, appt.physiotherapist_id, text, appt.patient_name)
		except Exception:
			log.exception("Cancellation notice for appointment %s not sent", appointment_id)
	_delete_appointment(db, appt)
	log.info("Cancelled appointment %s", appointment_id)
	return Outcome.success(appt)


def apply_move(db: Session, appt: models.Appointment, new_date: date | datetime, new_time: str, new_diagnosis: str | None = None) -> Outcome:
	if not appt.can_transition_to(models.AppointmentState.CONFIRMED):
		return Outcome.failure(Reason.INVALID_STATE, f"Appointment {appt.appointment_id} cannot be confirmed from {appt.state.value}")
	try:
		when = cal.combine_slot(new_date, new_time)
	except cal.DateParseError as exc:
		return Outcome.failure(Reason.PARSE_FAILURE, str(exc))
	appt.date = when
	appt.time = cal.format_display_time(when)
	appt.state = models.AppointmentState.CONFIRMED
	if new_diagnosis is not None:
		appt.diagnosis = new_diagnosis
	db.flush()
	return Outcome.success(appt)


def book_appointment(
	db: Session,
	patient_id: int,
	physiotherapist_id: int,
	day: date | datetime,
	time_str: str,
	summary: str = "",
	idempotency_key: str | None = None,
) -> Outcome:
	with write_transaction(db):
		outcome = apply_booking(db, patient_id, physiotherapist_id, day, time_str, summary, idempotency_key)
		if outcome.changed:
			snapshot_collections(db)
	if outcome.changed:
		changes.notify()
	return outcome


def _request(db: Session, patient_id: int, patient_name: str, date_str: str, time_str: str, notes: str) -> Outcome:
	patient = get_patient(db, patient_id)
	if not patient:
		return Outcome.failure(Reason.NOT_FOUND, f"Patient {patient_id} not found")
	try:
		when = cal.parse_request_datetime(date_str, time_str)
	except cal.DateParseError as exc:
		return Outcome.failure(Reason.PARSE_FAILURE, str(exc))
	time_str = cal.format_display_time(when)

	placeholder = models.Appointment(
		patient_id=patient_id,
		physiotherapist_id=patient.current_physiotherapist_id,
		date=when,
		time=time_str,
		diagnosis=notes,
		state=models.AppointmentState.REQUESTED,
	)
	db.add(placeholder)
	db.flush()
	req = models.AppointmentRequest(
		patient_id=patient_id,
		patient_name=patient_name or patient.name,
		date=cal.format_request_date(when),
		time=time_str,
		status=models.RequestStatus.PENDING,
		injury=patient.injury or models.Injury.OTHER,
		notes=notes,
		appointment_id=placeholder.appointment_id,
	)
	db.add(req)
	db.flush()
	snapshot_collections(db)
	log.info("Patient %s requested %s at %s (request %s)", patient_id, req.date, req.time, req.request_id)
	return Outcome.success(req, changed=True)


def request_appointment(db: Session, patient_id: int, patient_name: str, date_str: str, time_str: str, notes: str = "") -> Outcome:
	with write_transaction(db):
		outcome = _request(db, patient_id, patient_name, date_str, time_str, notes)
	if outcome.ok:
		changes.notify()
	return outcome


def _drop_placeholder(db: Session, req: models.AppointmentRequest) -> None:
	if req.appointment_id is None:
		return
	placeholder = get_appointment(db, req.appointment_id)
	if placeholder and placeholder.state == models.AppointmentState.REQUESTED:
		_delete_appointment(db, placeholder, drop_requests=False)


def _approve(db: Session, request_id: int, physiotherapist_id: int, idempotency_key: str | None) -> Outcome:
	req = db.query(models.AppointmentRequest).filter(models.AppointmentRequest.request_id == request_id).first()
	if not req:
		return Outcome.failure(Reason.NOT_FOUND, f"Appointment request {request_id} not found")
	if req.status != models.RequestStatus.PENDING:
		return Outcome.failure(Reason.INVALID_STATE, f"Appointment request {request_id} is already {req.status.value}")
	try:
		day = cal.parse_request_date(req.date)
	except cal.DateParseError as exc:
		return Outcome.failure(Reason.PARSE_FAILURE, str(exc))
	physio = get_physiotherapist(db, physiotherapist_id)
	if not physio:
		return Outcome.failure(Reason.NOT_FOUND, f"Physiotherapist {physiotherapist_id} not found")

	# approved first so booking does not sweep this request away with the pending ones
	req.status = models.RequestStatus.APPROVED
	db.flush()
	outcome = apply_booking(db, req.patient_id, physiotherapist_id, day, req.time, req.notes or settings.default_summary, idempotency_key)
	if not outcome.ok and outcome.reason != Reason.DUPLICATE_BOOKING:
		req.status = models.RequestStatus.PENDING
		db.flush()
		return outcome

	_drop_placeholder(db, req)
	patient = get_patient(db, req.patient_id)
	if patient and link_patient(physio, patient):
		log.info("Patient %s added to physiotherapist %s", patient.patient_id, physiotherapist_id)
	snapshot_collections(db)
	log.info("Approved appointment request %s", request_id)
	return Outcome.success(outcome.value, changed=outcome.changed)


def approve_request(db: Session, request_id: int, physiotherapist_id: int, idempotency_key: str | None = None) -> Outcome:
	with write_transaction(db):
		outcome = _approve(db, request_id, physiotherapist_id, idempotency_key)
	if outcome.ok:
		changes.notify()
	return outcome


def _reject(db: Session, request_id: int) -> Outcome:
	req = db.query(models.AppointmentRequest).filter(models.AppointmentRequest.request_id == request_id).first()
	if not req:
		return Outcome.failure(Reason.NOT_FOUND, f"Appointment request {request_id} not found")
	if req.status != models.RequestStatus.PENDING:
		return Outcome.failure(Reason.INVALID_STATE, f"Appointment request {request_id} is already {req.status.value}")
	req.status = models.RequestStatus.REJECTED
	if req.appointment_id is not None:
		placeholder = get_appointment(db, req.appointment_id)
		if placeholder and placeholder.can_transition_to(models.AppointmentState.CANCELLED):
			placeholder.state = models.AppointmentState.CANCELLED
	db.flush()
	snapshot_collections(db)
	log.info("Rejected appointment request %s", request_id)
	return Outcome.success(req)


def reject_request(db: Session, request_id: int) -> Outcome:
	with write_transaction(db):
		outcome = _reject(db, request_id)
	if outcome.ok:
		changes.notify()
	return outcome


def cancel_appointment(db: Session, appointment_id: int, reason: str | None = None, notify_physiotherapist: bool = True) -> Outcome:
	with write_transaction(db):
		outcome = apply_cancel(db, appointment_id, reason, notify_physiotherapist)
		if outcome.ok:
			snapshot_collections(db)
	if outcome.ok:
		changes.notify()
	return outcome


def _soft_cancel(db: Session, appointment_id: int) -> Outcome:
	appt = get_appointment(db, appointment_id)
	if not appt:
		return Outcome.failure(Reason.NOT_FOUND, f"Appointment {appointment_id} not found")
	if appt.state == models.AppointmentState.CANCELLED:
		return Outcome.success(appt)
	if not appt.can_transition_to(models.AppointmentState.CANCELLED):
		return Outcome.failure(Reason.INVALID_STATE, f"Appointment {appointment_id} cannot be cancelled from {appt.state.value}")
	appt.state = models.AppointmentState.CANCELLED
	db.flush()
	snapshot_collections(db)
	log.info("Deactivated appointment %s", appointment_id)
	return Outcome.success(appt, changed=True)


def soft_cancel_appointment(db: Session, appointment_id: int) -> Outcome:
	with write_transaction(db):
		outcome = _soft_cancel(db, appointment_id)
	if outcome.changed:
		changes.notify()
	return outcome


def reschedule_appointment(db: Session, appointment_id: int, new_date: date | datetime, new_time: str, new_diagnosis: str | None = None) -> Outcome:
	with write_transaction(db):
		appt = get_appointment(db, appointment_id)
		if not appt:
			outcome = Outcome.failure(Reason.NOT_FOUND, f"Appointment {appointment_id} not found")
		elif appt.state == models.AppointmentState.RESCHEDULE_PROPOSED:
			# the patient's answer to the open proposal decides the new slot
			outcome = Outcome.failure(Reason.INVALID_STATE, f"Appointment {appointment_id} has a reschedule awaiting the patient")
		else:
			outcome = apply_move(db, appt, new_date, new_time, new_diagnosis)
			if outcome.ok:
				snapshot_collections(db)
				log.info("Moved appointment %s to %s %s", appointment_id, appt.date, appt.time)
	if outcome.ok:
		changes.notify()
	return outcome

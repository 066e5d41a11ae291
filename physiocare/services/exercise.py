from datetime import datetime, timedelta

from sqlalchemy.orm import Session
from physiocare import models
from physiocare.db import write_transaction
from physiocare.events import changes
from physiocare.logger import get_logger
from physiocare.services import calendar_utils as cal
from physiocare.services.directory import get_patient
from physiocare.services.storage import snapshot_collections

log = get_logger("exercise")


def assign_exercises(db: Session, patient_id: int, exercise_ids: list[int]) -> models.Patient | None:
	patient = get_patient(db, patient_id)
	if not patient:
		return None
	with write_transaction(db):
		merged = list(patient.exercise_ids or [])
		for eid in exercise_ids:
			if eid not in merged:
				merged.append(eid)
		# reassign so the JSON column is marked dirty
		patient.exercise_ids = merged
	changes.notify()
	return patient


def log_exercise(
	db: Session,
	patient_id: int,
	exercise_id: int,
	reps: int,
	sets: int,
	pain_level: int,
	exertion_level: int | None = None,
	completed: bool = True,
	comment: str | None = None,
	when: datetime | None = None,
) -> models.ExerciseLog | None:
	if not get_patient(db, patient_id):
		return None
	with write_transaction(db):
		entry = models.ExerciseLog(
			patient_id=patient_id,
			exercise_id=exercise_id,
			date=when or datetime.now(),
			reps=reps,
			sets=sets,
			pain_level=pain_level,
			exertion_level=exertion_level,
			completed=completed,
			comment=comment,
		)
		db.add(entry)
		db.flush()
		snapshot_collections(db)
	log.info("Logged exercise %s for patient %s", exercise_id, patient_id)
	changes.notify()
	return entry


def exercise_logs(db: Session, patient_id: int) -> list[models.ExerciseLog]:
	return db.query(models.ExerciseLog).filter(
		models.ExerciseLog.patient_id == patient_id,
	).order_by(models.ExerciseLog.date, models.ExerciseLog.log_id).all()


def today_progress(db: Session, patient_id: int, now: datetime | None = None) -> dict | None:
	patient = get_patient(db, patient_id)
	if not patient:
		return None
	now = now or datetime.now()
	todays = [l for l in exercise_logs(db, patient_id) if cal.is_same_day(l.date, now)]
	total = len(patient.exercise_ids or [])
	completed = len({l.exercise_id for l in todays})
	avg_pain = sum(l.pain_level for l in todays) / len(todays) if todays else 0.0
	return {
		"patient_id": patient_id,
		"completed": completed,
		"total": total,
		"percentage": (completed / total * 100.0) if total else 0.0,
		"average_pain": avg_pain,
	}


def _logs_between(db: Session, patient_id: int, start: datetime, end: datetime) -> list[models.ExerciseLog]:
	return db.query(models.ExerciseLog).filter(
		models.ExerciseLog.patient_id == patient_id,
		models.ExerciseLog.date >= start,
		models.ExerciseLog.date <= end,
	).order_by(models.ExerciseLog.date, models.ExerciseLog.log_id).all()


def adherence(db: Session, patient_id: int, start: datetime, end: datetime) -> float | None:
	"""
	Percentage of expected sessions completed between start and end.

	Each assigned exercise is expected once per day; repeats of the same
	exercise on one day count once. No assigned exercises means 0.
	"""
	patient = get_patient(db, patient_id)
	if not patient:
		return None
	assigned = patient.exercise_ids or []
	if not assigned:
		return 0.0
	expected = len(assigned) * max(1, (end - start).days)
	done = {(l.exercise_id, l.date.date()) for l in _logs_between(db, patient_id, start, end) if l.completed}
	return len(done) / expected * 100.0


def average_pain(db: Session, patient_id: int, start: datetime, end: datetime) -> float:
	logs = _logs_between(db, patient_id, start, end)
	if not logs:
		return 0.0
	return sum(l.pain_level for l in logs) / len(logs)


def weekly_logs(db: Session, patient_id: int, weeks_ago: int = 0, now: datetime | None = None) -> list[models.ExerciseLog]:
	# weeks start on Monday
	today = cal.start_of_day(now or datetime.now())
	start = today - timedelta(days=today.weekday(), weeks=weeks_ago)
	end = start + timedelta(days=7)
	return db.query(models.ExerciseLog).filter(
		models.ExerciseLog.patient_id == patient_id,
		models.ExerciseLog.date >= start,
		models.ExerciseLog.date < end,
	).order_by(models.ExerciseLog.date, models.ExerciseLog.log_id).all()

from pydantic import TypeAdapter
from sqlalchemy.orm import Session
from physiocare import models
from physiocare.config import settings
from physiocare.logger import get_logger
from physiocare.schemas import AppointmentRecord, ExerciseLogRecord

log = get_logger("storage")

_appointments_adapter = TypeAdapter(list[AppointmentRecord])
_logs_adapter = TypeAdapter(list[ExerciseLogRecord])


def save_blob(db: Session, name: str, blob: str) -> None:
	row = db.get(models.StoredBlob, name)
	if row:
		row.data = blob
	else:
		db.add(models.StoredBlob(name=name, data=blob))
		db.flush()


def load_blob(db: Session, name: str) -> str | None:
	row = db.get(models.StoredBlob, name)
	return row.data if row else None


def snapshot_collections(db: Session) -> None:
	"""Serialize appointments and exercise logs; runs inside the caller's transaction."""
	if not settings.persist_snapshots:
		return
	db.flush()
	appts = db.query(models.Appointment).order_by(models.Appointment.appointment_id).all()
	save_blob(db, settings.appointments_blob_key, _appointments_adapter.dump_json(
		[AppointmentRecord.model_validate(a) for a in appts]
	).decode())
	logs = db.query(models.ExerciseLog).order_by(models.ExerciseLog.log_id).all()
	save_blob(db, settings.exercise_logs_blob_key, _logs_adapter.dump_json(
		[ExerciseLogRecord.model_validate(l) for l in logs]
	).decode())


def restore_collections(db: Session) -> dict:
	"""Reload collections from their blobs when the tables are empty."""
	restored = {"appointments": 0, "exercise_logs": 0}
	if db.query(models.Appointment).count() == 0:
		blob = load_blob(db, settings.appointments_blob_key)
		if blob:
			for rec in _appointments_adapter.validate_json(blob):
				db.add(models.Appointment(**rec.model_dump()))
				restored["appointments"] += 1
	if db.query(models.ExerciseLog).count() == 0:
		blob = load_blob(db, settings.exercise_logs_blob_key)
		if blob:
			for rec in _logs_adapter.validate_json(blob):
				db.add(models.ExerciseLog(**rec.model_dump()))
				restored["exercise_logs"] += 1
	db.commit()
	if any(restored.values()):
		log.info("Restored collections from storage: %s", restored)
	return restored

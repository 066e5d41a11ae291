from fastapi import APIRouter, Depends, HTTPException, Body
from sqlalchemy.orm import Session
from typing import List, Optional
import datetime as dt
from physiocare.db import get_db
from physiocare import models
from physiocare.schemas import (
	PatientIn, PatientOut, AppointmentOut, RescheduleRequestOut, AppointmentRequestOut,
	ExerciseLogIn, ExerciseLogOut, TodayProgressOut, RangeProgressOut,
)
from physiocare.services import directory, queries, exercise
from physiocare.services.reschedule import pending_reschedules_for_patient

router = APIRouter(prefix="/patients", tags=["patients"])

def _patient_or_404(db: Session, patient_id: int) -> models.Patient:
	p = directory.get_patient(db, patient_id)
	if not p:
		raise HTTPException(status_code=404, detail="Patient not found")
	return p

@router.get("", response_model=List[PatientOut])
def list_patients(db: Session = Depends(get_db)):
	return db.query(models.Patient).all()

@router.post("", response_model=PatientOut)
def create_patient(payload: PatientIn, db: Session = Depends(get_db)):
	if payload.current_physiotherapist_id is not None and not directory.get_physiotherapist(db, payload.current_physiotherapist_id):
		raise HTTPException(status_code=404, detail="Physiotherapist not found")
	return directory.add_patient(db, **payload.model_dump())

@router.get("/{patient_id}", response_model=PatientOut)
def get_patient(patient_id: int, db: Session = Depends(get_db)):
	return _patient_or_404(db, patient_id)

@router.get("/{patient_id}/appointments", response_model=List[AppointmentOut])
def appointment_history(patient_id: int, db: Session = Depends(get_db)):
	_patient_or_404(db, patient_id)
	return queries.patient_history(db, patient_id)

@router.get("/{patient_id}/appointments/upcoming", response_model=List[AppointmentOut])
def upcoming(patient_id: int, db: Session = Depends(get_db)):
	_patient_or_404(db, patient_id)
	return queries.upcoming_patient_appointments(db, patient_id)

@router.get("/{patient_id}/appointments/relevant", response_model=Optional[AppointmentOut])
def relevant(patient_id: int, db: Session = Depends(get_db)):
	_patient_or_404(db, patient_id)
	return queries.relevant_appointment(db, patient_id)

@router.get("/{patient_id}/appointments/latest", response_model=Optional[AppointmentOut])
def latest(patient_id: int, db: Session = Depends(get_db)):
	_patient_or_404(db, patient_id)
	return queries.latest_appointment(db, patient_id)

@router.get("/{patient_id}/requests", response_model=List[AppointmentRequestOut])
def pending_requests(patient_id: int, db: Session = Depends(get_db)):
	_patient_or_404(db, patient_id)
	return queries.pending_requests_for_patient(db, patient_id)

@router.get("/{patient_id}/reschedule-requests", response_model=List[RescheduleRequestOut])
def pending_reschedules(patient_id: int, db: Session = Depends(get_db)):
	_patient_or_404(db, patient_id)
	return pending_reschedules_for_patient(db, patient_id)

@router.post("/{patient_id}/exercises", response_model=PatientOut)
def assign_exercises(patient_id: int, exercise_ids: List[int] = Body(..., embed=True), db: Session = Depends(get_db)):
	p = exercise.assign_exercises(db, patient_id, exercise_ids)
	if not p:
		raise HTTPException(status_code=404, detail="Patient not found")
	return p

@router.post("/{patient_id}/exercise-logs", response_model=ExerciseLogOut)
def log_exercise(patient_id: int, payload: ExerciseLogIn, db: Session = Depends(get_db)):
	entry = exercise.log_exercise(db, patient_id, **payload.model_dump())
	if not entry:
		raise HTTPException(status_code=404, detail="Patient not found")
	return entry

@router.get("/{patient_id}/exercise-logs", response_model=List[ExerciseLogOut])
def exercise_logs(patient_id: int, db: Session = Depends(get_db)):
	_patient_or_404(db, patient_id)
	return exercise.exercise_logs(db, patient_id)

@router.get("/{patient_id}/progress/today", response_model=TodayProgressOut)
def today_progress(patient_id: int, db: Session = Depends(get_db)):
	progress = exercise.today_progress(db, patient_id)
	if progress is None:
		raise HTTPException(status_code=404, detail="Patient not found")
	return progress

@router.get("/{patient_id}/progress", response_model=RangeProgressOut)
def range_progress(patient_id: int, start: dt.datetime, end: dt.datetime, db: Session = Depends(get_db)):
	score = exercise.adherence(db, patient_id, start, end)
	if score is None:
		raise HTTPException(status_code=404, detail="Patient not found")
	return {
		"patient_id": patient_id,
		"start": start,
		"end": end,
		"adherence": score,
		"average_pain": exercise.average_pain(db, patient_id, start, end),
	}

@router.get("/{patient_id}/exercise-logs/weekly", response_model=List[ExerciseLogOut])
def weekly_logs(patient_id: int, weeks_ago: int = 0, db: Session = Depends(get_db)):
	_patient_or_404(db, patient_id)
	return exercise.weekly_logs(db, patient_id, weeks_ago)

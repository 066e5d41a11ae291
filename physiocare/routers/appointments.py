from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
from sqlalchemy.orm import Session
from physiocare.db import get_db
from physiocare.schemas import AppointmentOut, AppointmentStatusOut, BookingIn, CancelIn, DirectRescheduleIn
from physiocare.services import lifecycle, queries
from physiocare.services.directory import get_appointment
from physiocare.routers.common import raise_for_outcome

router = APIRouter(prefix="/appointments", tags=["appointments"])

@router.post("/book", response_model=AppointmentOut)

def book(payload: BookingIn, db: Session = Depends(get_db)):
	outcome = lifecycle.book_appointment(
		db,
		payload.patient_id,
		payload.physiotherapist_id,
		payload.date,
		payload.time,
		payload.summary,
		payload.idempotency_key,
	)
	return raise_for_outcome(outcome)

@router.get("/{appointment_id}", response_model=AppointmentOut)

def get(appointment_id: int, db: Session = Depends(get_db)):
	appt = get_appointment(db, appointment_id)
	if not appt:
		raise HTTPException(status_code=404, detail="Appointment not found")
	return appt

@router.get("/{appointment_id}/status", response_model=AppointmentStatusOut)

def status(appointment_id: int, db: Session = Depends(get_db)):
	appt = get_appointment(db, appointment_id)
	if not appt:
		raise HTTPException(status_code=404, detail="Appointment not found")
	return {"appointment_id": appointment_id, "status": queries.appointment_status(db, appt).value}

@router.post("/{appointment_id}/cancel", response_model=AppointmentOut)

def cancel(appointment_id: int, payload: Optional[CancelIn] = None, db: Session = Depends(get_db)):
	payload = payload or CancelIn()
	outcome = lifecycle.cancel_appointment(db, appointment_id, payload.reason, payload.notify_physiotherapist)
	return raise_for_outcome(outcome)

@router.post("/{appointment_id}/deactivate", response_model=AppointmentOut)

def deactivate(appointment_id: int, db: Session = Depends(get_db)):
	return raise_for_outcome(lifecycle.soft_cancel_appointment(db, appointment_id))

@router.post("/{appointment_id}/reschedule", response_model=AppointmentOut)

def reschedule(appointment_id: int, payload: DirectRescheduleIn, db: Session = Depends(get_db)):
	outcome = lifecycle.reschedule_appointment(db, appointment_id, payload.new_date, payload.new_time, payload.new_diagnosis)
	return raise_for_outcome(outcome)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from physiocare.db import get_db
from physiocare.schemas import AppointmentRequestIn, AppointmentRequestOut, ApproveIn, AppointmentOut
from physiocare.services import lifecycle, queries
from physiocare.routers.common import raise_for_outcome

router = APIRouter(prefix="/requests", tags=["requests"])

@router.get("", response_model=List[AppointmentRequestOut])
def list_pending(db: Session = Depends(get_db)):
	return queries.pending_requests(db)

@router.post("", response_model=AppointmentRequestOut)

def create_request(payload: AppointmentRequestIn, db: Session = Depends(get_db)):
	outcome = lifecycle.request_appointment(db, payload.patient_id, payload.patient_name, payload.date, payload.time, payload.notes)
	return raise_for_outcome(outcome)

@router.post("/{request_id}/approve", response_model=AppointmentOut)

def approve(request_id: int, payload: ApproveIn, db: Session = Depends(get_db)):
	outcome = lifecycle.approve_request(db, request_id, payload.physiotherapist_id, payload.idempotency_key)
	return raise_for_outcome(outcome)

@router.post("/{request_id}/reject", response_model=AppointmentRequestOut)

def reject(request_id: int, db: Session = Depends(get_db)):
	return raise_for_outcome(lifecycle.reject_request(db, request_id))

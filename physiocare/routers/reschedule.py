from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from physiocare.db import get_db
from physiocare.schemas import RescheduleProposalIn, RescheduleResponseIn, RescheduleRequestOut
from physiocare.services import reschedule as negotiation
from physiocare.routers.common import raise_for_outcome

router = APIRouter(prefix="/reschedule", tags=["reschedule"])

@router.post("", response_model=RescheduleRequestOut)

def propose(payload: RescheduleProposalIn, db: Session = Depends(get_db)):
	outcome = negotiation.propose_reschedule(
		db,
		payload.appointment_id,
		patient_id=payload.patient_id,
		original_date=payload.original_date,
		original_time=payload.original_time,
		suggested_new_date=payload.suggested_new_date,
		suggested_new_time=payload.suggested_new_time,
	)
	return raise_for_outcome(outcome)

@router.post("/{request_id}/respond", response_model=RescheduleRequestOut)

def respond(request_id: int, payload: RescheduleResponseIn, db: Session = Depends(get_db)):
	outcome = negotiation.respond_to_reschedule(db, request_id, payload.new_date, payload.new_time, payload.accept)
	return raise_for_outcome(outcome)

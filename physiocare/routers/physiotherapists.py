from fastapi import APIRouter, Depends, HTTPException, Body
from sqlalchemy.orm import Session
from typing import List
from physiocare.db import get_db
from physiocare import models
from physiocare.schemas import PhysiotherapistIn, PhysiotherapistOut, AppointmentOut, AppointmentRequestOut
from physiocare.services import directory, queries

router = APIRouter(prefix="/physiotherapists", tags=["physiotherapists"])

def _physio_or_404(db: Session, physiotherapist_id: int) -> models.Physiotherapist:
	d = directory.get_physiotherapist(db, physiotherapist_id)
	if not d:
		raise HTTPException(status_code=404, detail="Physiotherapist not found")
	return d

@router.get("", response_model=List[PhysiotherapistOut])
def list_physiotherapists(db: Session = Depends(get_db)):
	return db.query(models.Physiotherapist).all()

@router.post("", response_model=PhysiotherapistOut)
def create_physiotherapist(payload: PhysiotherapistIn, db: Session = Depends(get_db)):
	return directory.add_physiotherapist(db, **payload.model_dump())

@router.get("/lookup/by_email/{email}", response_model=PhysiotherapistOut)
def get_by_email(email: str, db: Session = Depends(get_db)):
	d = directory.get_physiotherapist_by_email(db, email)
	if not d:
		raise HTTPException(status_code=404, detail="Physiotherapist not found")
	return d

@router.get("/{physiotherapist_id}", response_model=PhysiotherapistOut)
def get_physiotherapist(physiotherapist_id: int, db: Session = Depends(get_db)):
	return _physio_or_404(db, physiotherapist_id)

@router.post("/{physiotherapist_id}/patients", response_model=PhysiotherapistOut)
def assign_patient(physiotherapist_id: int, patient_id: int = Body(..., embed=True), db: Session = Depends(get_db)):
	d = directory.assign_patient(db, physiotherapist_id, patient_id)
	if not d:
		raise HTTPException(status_code=404, detail="Physiotherapist or patient not found")
	return d

@router.get("/{physiotherapist_id}/appointments", response_model=List[AppointmentOut])
def roster(physiotherapist_id: int, db: Session = Depends(get_db)):
	_physio_or_404(db, physiotherapist_id)
	return queries.physiotherapist_roster(db, physiotherapist_id)

@router.get("/{physiotherapist_id}/appointments/today", response_model=List[AppointmentOut])
def today(physiotherapist_id: int, db: Session = Depends(get_db)):
	_physio_or_404(db, physiotherapist_id)
	return queries.today_appointments(db, physiotherapist_id)

@router.get("/{physiotherapist_id}/appointments/upcoming", response_model=List[AppointmentOut])
def upcoming(physiotherapist_id: int, db: Session = Depends(get_db)):
	_physio_or_404(db, physiotherapist_id)
	return queries.upcoming_appointments(db, physiotherapist_id)

@router.get("/{physiotherapist_id}/requests", response_model=List[AppointmentRequestOut])
def pending_requests(physiotherapist_id: int, db: Session = Depends(get_db)):
	_physio_or_404(db, physiotherapist_id)
	return queries.pending_requests(db, physiotherapist_id)

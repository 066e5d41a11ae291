from fastapi import APIRouter, Depends, Body
from sqlalchemy.orm import Session
from typing import List
from physiocare.db import get_db
from physiocare.schemas import ChatMessageIn, ChatMessageOut
from physiocare.services import messaging

router = APIRouter(prefix="/chat", tags=["chat"])

@router.post("", response_model=ChatMessageOut)
def send(payload: ChatMessageIn, db: Session = Depends(get_db)):
	return messaging.send_message(db, payload.sender_id, payload.receiver_id, payload.message, payload.sender_name)

@router.get("/{user_id}/partners", response_model=List[int])
def partners(user_id: int, db: Session = Depends(get_db)):
	return messaging.chat_partners(db, user_id)

@router.get("/{user_id}/with/{other_id}", response_model=List[ChatMessageOut])
def conversation(user_id: int, other_id: int, db: Session = Depends(get_db)):
	return messaging.get_conversation(db, user_id, other_id)

@router.post("/{user_id}/read")
def mark_read(user_id: int, sender_id: int = Body(..., embed=True), db: Session = Depends(get_db)):
	return {"updated": messaging.mark_read(db, sender_id, user_id)}

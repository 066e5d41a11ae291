from datetime import datetime

from sqlalchemy import or_, and_
from sqlalchemy.orm import Session
from physiocare import models
from physiocare.db import write_transaction
from physiocare.events import changes
from physiocare.logger import get_logger
from physiocare.services.directory import display_name

log = get_logger("messaging")


def add_message(db: Session, sender_id: int, receiver_id: int, text: str, sender_name: str = "") -> models.ChatMessage:
	# no commit: callers decide the transaction
	msg = models.ChatMessage(
		sender_id=sender_id,
		receiver_id=receiver_id,
		sender_name=sender_name or display_name(db, sender_id),
		message=text,
		timestamp=datetime.now(),
		is_read=False,
	)
	db.add(msg)
	return msg


def send_message(db: Session, sender_id: int, receiver_id: int, text: str, sender_name: str = "") -> models.ChatMessage:
	with write_transaction(db):
		msg = add_message(db, sender_id, receiver_id, text, sender_name)
	changes.notify()
	return msg


def get_conversation(db: Session, user_a: int, user_b: int) -> list[models.ChatMessage]:
	return db.query(models.ChatMessage).filter(or_(
		and_(models.ChatMessage.sender_id == user_a, models.ChatMessage.receiver_id == user_b),
		and_(models.ChatMessage.sender_id == user_b, models.ChatMessage.receiver_id == user_a),
	)).order_by(models.ChatMessage.timestamp, models.ChatMessage.message_id).all()


def mark_read(db: Session, sender_id: int, receiver_id: int) -> int:
	unread = db.query(models.ChatMessage).filter(
		models.ChatMessage.sender_id == sender_id,
		models.ChatMessage.receiver_id == receiver_id,
		models.ChatMessage.is_read == False,
	).all()
	if not unread:
		return 0
	with write_transaction(db):
		for m in unread:
			m.is_read = True
	changes.notify()
	return len(unread)


def chat_partners(db: Session, user_id: int) -> list[int]:
	rows = db.query(models.ChatMessage).filter(or_(
		models.ChatMessage.sender_id == user_id,
		models.ChatMessage.receiver_id == user_id,
	)).all()
	partners = {m.receiver_id if m.sender_id == user_id else m.sender_id for m in rows}
	return sorted(partners)

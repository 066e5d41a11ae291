import threading
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from physiocare.config import settings

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

Base = declarative_base()

# One writer at a time across every lifecycle / reschedule transition.
_write_lock = threading.RLock()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


@contextmanager
def write_transaction(db: Session):
	"""
	Run a block of mutations as one transition.

	Holds the process-wide writer lock, commits when the block finishes and
	rolls back if it raises, so the history and roster views are never
	observed half-updated.
	"""
	with _write_lock:
		try:
			yield db
			db.commit()
		except Exception:
			db.rollback()
			raise

import enum

from sqlalchemy import Column, Integer, String, Boolean, Text, Float, ForeignKey, DateTime, JSON, Table, Enum, func
from sqlalchemy.orm import relationship
from physiocare.db import Base


class Injury(str, enum.Enum):
	GRADE1 = "grade1"
	GRADE2 = "grade2"
	GRADE3 = "grade3"
	LIGAMENT_TEAR = "ligament_tear"
	INVERSION = "inversion"
	OTHER = "other"


class AppointmentState(str, enum.Enum):
	REQUESTED = "requested"
	CONFIRMED = "confirmed"
	RESCHEDULE_PROPOSED = "reschedule_proposed"
	CANCELLED = "cancelled"


ALLOWED_TRANSITIONS = {
	# a placeholder is confirmed only by approval, which books a new appointment
	AppointmentState.REQUESTED: {AppointmentState.CANCELLED},
	AppointmentState.CONFIRMED: {AppointmentState.CONFIRMED, AppointmentState.RESCHEDULE_PROPOSED, AppointmentState.CANCELLED},
	AppointmentState.RESCHEDULE_PROPOSED: {AppointmentState.CONFIRMED, AppointmentState.CANCELLED},
	AppointmentState.CANCELLED: {AppointmentState.CONFIRMED},
}

# states that hold a slot for the duplicate-booking guard
LIVE_STATES = (AppointmentState.CONFIRMED, AppointmentState.RESCHEDULE_PROPOSED)


class RequestStatus(str, enum.Enum):
	PENDING = "pending"
	APPROVED = "approved"
	REJECTED = "rejected"


class RescheduleStatus(str, enum.Enum):
	PENDING = "pending"
	ACCEPTED = "accepted"
	REJECTED = "rejected"


physiotherapist_patients = Table(
	"physiotherapist_patients",
	Base.metadata,
	Column("physiotherapist_id", Integer, ForeignKey("physiotherapists.physiotherapist_id"), primary_key=True),
	Column("patient_id", Integer, ForeignKey("patients.patient_id"), primary_key=True),
)


class Physiotherapist(Base):
	__tablename__ = "physiotherapists"
	physiotherapist_id = Column(Integer, primary_key=True)
	name = Column(String, nullable=False)
	email = Column(String)
	phone = Column(String)
	experience = Column(Integer, default=0)
	rating = Column(Float)
	details = Column(Text)
	created_at = Column(DateTime, server_default=func.now())

	patients = relationship("Patient", secondary=physiotherapist_patients, order_by="Patient.patient_id")

	@property
	def patient_ids(self) -> list[int]:
		return [p.patient_id for p in self.patients]


class Patient(Base):
	__tablename__ = "patients"
	patient_id = Column(Integer, primary_key=True)
	name = Column(String, nullable=False)
	email = Column(String)
	phone = Column(String)
	injury = Column(Enum(Injury, native_enum=False, length=32))
	injury_description = Column(Text)
	current_physiotherapist_id = Column(Integer, ForeignKey("physiotherapists.physiotherapist_id"))
	exercise_ids = Column(JSON, default=list)
	created_at = Column(DateTime, server_default=func.now())

	current_physiotherapist = relationship("Physiotherapist", foreign_keys=[current_physiotherapist_id])


class Appointment(Base):
	__tablename__ = "appointments"
	appointment_id = Column(Integer, primary_key=True)
	patient_id = Column(Integer, ForeignKey("patients.patient_id"), nullable=False)
	physiotherapist_id = Column(Integer, ForeignKey("physiotherapists.physiotherapist_id"))
	date = Column(DateTime, nullable=False)
	time = Column(String, nullable=False)
	diagnosis = Column(Text)
	state = Column(Enum(AppointmentState, native_enum=False, length=32), nullable=False, default=AppointmentState.CONFIRMED)
	idempotency_key = Column(String, unique=True)
	created_at = Column(DateTime, server_default=func.now())

	patient = relationship("Patient")
	physiotherapist = relationship("Physiotherapist")

	@property
	def is_active(self) -> bool:
		return self.state == AppointmentState.CONFIRMED

	@property
	def patient_name(self) -> str:
		return self.patient.name if self.patient else "Unknown Patient"

	def can_transition_to(self, state: AppointmentState) -> bool:
		return state in ALLOWED_TRANSITIONS.get(self.state, set())


class AppointmentRequest(Base):
	__tablename__ = "appointment_requests"
	request_id = Column(Integer, primary_key=True)
	patient_id = Column(Integer, ForeignKey("patients.patient_id"), nullable=False)
	patient_name = Column(String, nullable=False)
	date = Column(String, nullable=False)  # "dd MMM, yyyy"
	time = Column(String, nullable=False)
	status = Column(Enum(RequestStatus, native_enum=False, length=16), nullable=False, default=RequestStatus.PENDING)
	injury = Column(Enum(Injury, native_enum=False, length=32))
	notes = Column(Text, default="")
	# placeholder appointment created alongside the request; no FK, it may be superseded
	appointment_id = Column(Integer)
	created_at = Column(DateTime, server_default=func.now())


class RescheduleRequest(Base):
	__tablename__ = "reschedule_requests"
	request_id = Column(Integer, primary_key=True)
	appointment_id = Column(Integer, nullable=False)
	patient_id = Column(Integer, ForeignKey("patients.patient_id"), nullable=False)
	original_date = Column(DateTime, nullable=False)
	original_time = Column(String, nullable=False)
	status = Column(Enum(RescheduleStatus, native_enum=False, length=16), nullable=False, default=RescheduleStatus.PENDING)
	suggested_new_date = Column(DateTime)
	suggested_new_time = Column(String)
	created_at = Column(DateTime, server_default=func.now())


class ChatMessage(Base):
	__tablename__ = "chat_messages"
	message_id = Column(Integer, primary_key=True)
	sender_id = Column(Integer, nullable=False)
	receiver_id = Column(Integer, nullable=False)
	sender_name = Column(String, default="")
	message = Column(Text, nullable=False)
	timestamp = Column(DateTime, nullable=False)
	is_read = Column(Boolean, default=False)


class ExerciseLog(Base):
	__tablename__ = "exercise_logs"
	log_id = Column(Integer, primary_key=True)
	patient_id = Column(Integer, ForeignKey("patients.patient_id"), nullable=False)
	exercise_id = Column(Integer, nullable=False)
	date = Column(DateTime, nullable=False)
	reps = Column(Integer, nullable=False)
	sets = Column(Integer, nullable=False)
	pain_level = Column(Integer, nullable=False)
	exertion_level = Column(Integer)
	completed = Column(Boolean, default=True)
	comment = Column(Text)


class StoredBlob(Base):
	__tablename__ = "stored_blobs"
	name = Column(String, primary_key=True)
	data = Column(Text, nullable=False)
	updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

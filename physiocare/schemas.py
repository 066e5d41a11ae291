from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
import datetime as dt
from physiocare.models import Injury, AppointmentState, RequestStatus, RescheduleStatus

class PhysiotherapistIn(BaseModel):
	name: str
	email: Optional[EmailStr] = None
	phone: Optional[str] = None
	experience: int = 0
	rating: Optional[float] = Field(default=None, ge=1.0, le=5.0)
	details: Optional[str] = None

class PhysiotherapistOut(PhysiotherapistIn):
	physiotherapist_id: int
	patient_ids: List[int] = []

	class Config:
		from_attributes = True

class PatientIn(BaseModel):
	name: str
	email: Optional[EmailStr] = None
	phone: Optional[str] = None
	injury: Optional[Injury] = None
	injury_description: Optional[str] = None
	current_physiotherapist_id: Optional[int] = None

class PatientOut(PatientIn):
	patient_id: int
	exercise_ids: List[int] = []

	class Config:
		from_attributes = True

class BookingIn(BaseModel):
	patient_id: int
	physiotherapist_id: int
	date: dt.date
	time: str = Field(examples=["9:00 AM"])
	summary: str = ""
	idempotency_key: Optional[str] = None

class AppointmentOut(BaseModel):
	appointment_id: int
	patient_id: int
	physiotherapist_id: Optional[int] = None
	patient_name: str
	date: dt.datetime
	time: str
	diagnosis: Optional[str] = None
	state: AppointmentState
	is_active: bool

	class Config:
		from_attributes = True

class AppointmentStatusOut(BaseModel):
	appointment_id: int
	status: str

class CancelIn(BaseModel):
	reason: Optional[str] = None
	notify_physiotherapist: bool = True

class DirectRescheduleIn(BaseModel):
	new_date: dt.date
	new_time: str
	new_diagnosis: Optional[str] = None

class AppointmentRequestIn(BaseModel):
	patient_id: int
	patient_name: str = ""
	date: str = Field(examples=["10 Apr, 2025"])
	time: str = Field(examples=["2:00 PM"])
	notes: str = ""

class AppointmentRequestOut(BaseModel):
	request_id: int
	patient_id: int
	patient_name: str
	date: str
	time: str
	status: RequestStatus
	injury: Optional[Injury] = None
	notes: Optional[str] = None
	appointment_id: Optional[int] = None

	class Config:
		from_attributes = True

class ApproveIn(BaseModel):
	physiotherapist_id: int
	idempotency_key: Optional[str] = None

class RescheduleProposalIn(BaseModel):
	appointment_id: int
	patient_id: Optional[int] = None
	original_date: Optional[dt.datetime] = None
	original_time: Optional[str] = None
	suggested_new_date: Optional[dt.datetime] = None
	suggested_new_time: Optional[str] = None

class RescheduleResponseIn(BaseModel):
	new_date: dt.date
	new_time: str
	accept: bool

class RescheduleRequestOut(BaseModel):
	request_id: int
	appointment_id: int
	patient_id: int
	original_date: dt.datetime
	original_time: str
	status: RescheduleStatus
	suggested_new_date: Optional[dt.datetime] = None
	suggested_new_time: Optional[str] = None

	class Config:
		from_attributes = True

class ChatMessageIn(BaseModel):
	sender_id: int
	receiver_id: int
	message: str
	sender_name: str = ""

class ChatMessageOut(ChatMessageIn):
	message_id: int
	timestamp: dt.datetime
	is_read: bool

	class Config:
		from_attributes = True

class ExerciseLogIn(BaseModel):
	exercise_id: int
	reps: int = Field(ge=0)
	sets: int = Field(ge=0)
	pain_level: int = Field(ge=0, le=10)
	exertion_level: Optional[int] = Field(default=None, ge=0, le=10)
	completed: bool = True
	comment: Optional[str] = None

class ExerciseLogOut(ExerciseLogIn):
	log_id: int
	patient_id: int
	date: dt.datetime

	class Config:
		from_attributes = True

class TodayProgressOut(BaseModel):
	patient_id: int
	completed: int
	total: int
	percentage: float
	average_pain: float

class RangeProgressOut(BaseModel):
	patient_id: int
	start: dt.datetime
	end: dt.datetime
	adherence: float
	average_pain: float

# Serialized forms written to the key-value store.

class AppointmentRecord(BaseModel):
	appointment_id: int
	patient_id: int
	physiotherapist_id: Optional[int] = None
	date: dt.datetime
	time: str
	diagnosis: Optional[str] = None
	state: AppointmentState
	idempotency_key: Optional[str] = None

	class Config:
		from_attributes = True

class ExerciseLogRecord(ExerciseLogOut):
	pass

import enum
from dataclasses import dataclass
from typing import Any


class Reason(str, enum.Enum):
	NOT_FOUND = "not_found"
	DUPLICATE_BOOKING = "duplicate_booking"
	PARSE_FAILURE = "parse_failure"
	INVALID_STATE = "invalid_state"
	RESCHEDULE_PENDING = "reschedule_pending"


@dataclass
class Outcome:
	"""Result of a scheduling transition: success flag plus a reason code for the caller to render."""
	ok: bool
	reason: Reason | None = None
	detail: str | None = None
	value: Any = None
	changed: bool = False

	@classmethod
	def success(cls, value: Any = None, changed: bool = False) -> "Outcome":
		return cls(ok=True, value=value, changed=changed)

	@classmethod
	def failure(cls, reason: Reason, detail: str, value: Any = None) -> "Outcome":
		return cls(ok=False, reason=reason, detail=detail, value=value)


HTTP_STATUS = {
	Reason.NOT_FOUND: 404,
	Reason.DUPLICATE_BOOKING: 409,
	Reason.PARSE_FAILURE: 422,
	Reason.INVALID_STATE: 409,
	Reason.RESCHEDULE_PENDING: 409,
}

from fastapi import HTTPException
from physiocare.errors import Outcome, HTTP_STATUS


def raise_for_outcome(outcome: Outcome):
	if outcome.ok:
		return outcome.value
	raise HTTPException(status_code=HTTP_STATUS.get(outcome.reason, 400), detail={"reason": outcome.reason.value, "message": outcome.detail})

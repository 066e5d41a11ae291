from datetime import date, datetime
from physiocare import models
from physiocare.errors import Reason
from physiocare.services import lifecycle, queries, messaging, reschedule
from physiocare.services.queries import DisplayStatus
from conftest import assert_views_agree


def test_book_creates_confirmed_appointment_in_both_views(db, patient, physio, change_events):
	outcome = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM", "Checkup")
	assert outcome.ok and outcome.changed
	appt = outcome.value
	assert appt.is_active
	assert appt.date == datetime(2025, 4, 10, 9, 0)
	assert [a.appointment_id for a in queries.patient_history(db, patient.patient_id)] == [appt.appointment_id]
	assert [a.appointment_id for a in queries.physiotherapist_roster(db, physio.physiotherapist_id)] == [appt.appointment_id]
	assert_views_agree(db, patient.patient_id)
	assert change_events


def test_book_twice_is_a_no_op(db, patient, physio):
	first = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM", "Checkup")
	second = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "09:00 am", "Checkup")
	assert not second.ok
	assert second.reason == Reason.DUPLICATE_BOOKING
	assert second.value.appointment_id == first.value.appointment_id
	assert len(queries.patient_history(db, patient.patient_id)) == 1


def test_book_supersedes_cancelled_booking_in_same_slot(db, patient, physio):
	first = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM", "Checkup").value
	lifecycle.soft_cancel_appointment(db, first.appointment_id)
	again = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM", "Checkup")
	assert again.ok and again.changed
	history = queries.patient_history(db, patient.patient_id)
	assert [a.appointment_id for a in history] == [again.value.appointment_id]


def test_book_idempotency_key_replays(db, patient, physio):
	first = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM", idempotency_key="k-1")
	replay = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 11), "9:00 AM", idempotency_key="k-1")
	assert replay.ok and not replay.changed
	assert replay.value.appointment_id == first.value.appointment_id


def test_book_rejects_unknown_people_and_bad_time(db, patient, physio):
	assert lifecycle.book_appointment(db, 999, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM").reason == Reason.NOT_FOUND
	assert lifecycle.book_appointment(db, patient.patient_id, 999, date(2025, 4, 10), "9:00 AM").reason == Reason.NOT_FOUND
	assert lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "nine").reason == Reason.PARSE_FAILURE
	assert queries.patient_history(db, patient.patient_id) == []


def test_request_creates_placeholder_and_pending_request(db, jane):
	outcome = lifecycle.request_appointment(db, jane.patient_id, "Jane", "10 Apr, 2025", "2:00 PM", "Swelling")
	assert outcome.ok
	req = outcome.value
	assert req.status == models.RequestStatus.PENDING
	assert req.injury == models.Injury.LIGAMENT_TEAR
	history = queries.patient_history(db, jane.patient_id)
	assert len(history) == 1
	placeholder = history[0]
	assert placeholder.appointment_id == req.appointment_id
	assert placeholder.state == models.AppointmentState.REQUESTED
	assert not placeholder.is_active
	assert queries.appointment_status(db, placeholder) == DisplayStatus.PENDING


def test_request_with_bad_date_creates_nothing(db, jane):
	outcome = lifecycle.request_appointment(db, jane.patient_id, "Jane", "2025-04-10", "2:00 PM")
	assert outcome.reason == Reason.PARSE_FAILURE
	assert queries.patient_history(db, jane.patient_id) == []
	assert queries.pending_requests(db) == []


def test_scenario_b_request_then_approve(db, jane, physio, other_physio):
	req = lifecycle.request_appointment(db, jane.patient_id, "Jane", "10 Apr, 2025", "2:00 PM").value
	outcome = lifecycle.approve_request(db, req.request_id, other_physio.physiotherapist_id)
	assert outcome.ok
	appt = outcome.value
	assert appt.physiotherapist_id == other_physio.physiotherapist_id
	assert appt.diagnosis == "Initial Assessment"
	assert queries.appointment_status(db, appt) == DisplayStatus.CONFIRMED
	# placeholder superseded; one appointment left
	assert [a.appointment_id for a in queries.patient_history(db, jane.patient_id)] == [appt.appointment_id]
	assert queries.pending_requests(db) == []
	db.refresh(req)
	assert req.status == models.RequestStatus.APPROVED
	assert jane.patient_id in other_physio.patient_ids
	assert_views_agree(db, jane.patient_id)


def test_approve_with_current_physio_does_not_count_placeholder_as_duplicate(db, jane, physio):
	req = lifecycle.request_appointment(db, jane.patient_id, "Jane", "10 Apr, 2025", "2:00 PM").value
	outcome = lifecycle.approve_request(db, req.request_id, physio.physiotherapist_id)
	assert outcome.ok and outcome.changed
	history = queries.patient_history(db, jane.patient_id)
	assert len(history) == 1 and history[0].is_active


def test_approve_twice_is_invalid(db, jane, physio):
	req = lifecycle.request_appointment(db, jane.patient_id, "Jane", "10 Apr, 2025", "2:00 PM").value
	lifecycle.approve_request(db, req.request_id, physio.physiotherapist_id)
	again = lifecycle.approve_request(db, req.request_id, physio.physiotherapist_id)
	assert again.reason == Reason.INVALID_STATE
	assert lifecycle.approve_request(db, 4242, physio.physiotherapist_id).reason == Reason.NOT_FOUND


def test_reject_leaves_placeholder_cancelled(db, jane):
	req = lifecycle.request_appointment(db, jane.patient_id, "Jane", "10 Apr, 2025", "2:00 PM").value
	outcome = lifecycle.reject_request(db, req.request_id)
	assert outcome.ok
	assert outcome.value.status == models.RequestStatus.REJECTED
	placeholder = queries.patient_history(db, jane.patient_id)[0]
	assert queries.appointment_status(db, placeholder) == DisplayStatus.CANCELLED


def test_scenario_c_cancel_one_of_two_same_day(db, patient, physio, change_events):
	morning = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM", "AM").value
	evening = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "5:00 PM", "PM").value
	before = len(change_events)
	outcome = lifecycle.cancel_appointment(db, morning.appointment_id, reason="Feeling better")
	assert outcome.ok
	assert len(change_events) == before + 1
	history = queries.patient_history(db, patient.patient_id)
	roster = queries.physiotherapist_roster(db, physio.physiotherapist_id)
	assert [a.appointment_id for a in history] == [evening.appointment_id]
	assert [a.appointment_id for a in roster] == [evening.appointment_id]
	assert history[0].is_active and history[0].time == "5:00 PM"
	assert_views_agree(db, patient.patient_id)


def test_cancel_notifies_physiotherapist(db, patient, physio):
	appt = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM").value
	lifecycle.cancel_appointment(db, appt.appointment_id, reason="Travelling")
	convo = messaging.get_conversation(db, patient.patient_id, physio.physiotherapist_id)
	assert len(convo) == 1
	assert convo[0].sender_name == "Riya Sharma"
	assert convo[0].message.startswith("Appointment Cancellation: Riya Sharma has cancelled the appointment scheduled for 10 Apr 2025 at 9:00 AM")
	assert convo[0].message.endswith("Reason: Travelling")


def test_cancel_without_notice_and_missing(db, patient, physio):
	appt = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM").value
	assert lifecycle.cancel_appointment(db, appt.appointment_id, notify_physiotherapist=False).ok
	assert messaging.get_conversation(db, patient.patient_id, physio.physiotherapist_id) == []
	missing = lifecycle.cancel_appointment(db, appt.appointment_id)
	assert not missing.ok and missing.reason == Reason.NOT_FOUND


def test_cancel_removes_matching_requests(db, jane):
	req = lifecycle.request_appointment(db, jane.patient_id, "Jane", "10 Apr, 2025", "2:00 PM").value
	assert lifecycle.cancel_appointment(db, req.appointment_id, notify_physiotherapist=False).ok
	assert queries.pending_requests(db) == []
	assert db.query(models.AppointmentRequest).count() == 0


def test_soft_cancel_keeps_record(db, patient, physio):
	appt = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM").value
	outcome = lifecycle.soft_cancel_appointment(db, appt.appointment_id)
	assert outcome.ok
	kept = queries.patient_history(db, patient.patient_id)
	assert len(kept) == 1 and not kept[0].is_active
	assert queries.appointment_status(db, kept[0]) == DisplayStatus.CANCELLED
	assert_views_agree(db, patient.patient_id)
	assert lifecycle.soft_cancel_appointment(db, 31337).reason == Reason.NOT_FOUND


def test_direct_reschedule_moves_and_confirms(db, patient, physio):
	appt = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM").value
	lifecycle.soft_cancel_appointment(db, appt.appointment_id)
	outcome = lifecycle.reschedule_appointment(db, appt.appointment_id, date(2025, 4, 12), "11:30 AM", "Review")
	assert outcome.ok
	moved = outcome.value
	assert moved.is_active and moved.date == datetime(2025, 4, 12, 11, 30) and moved.diagnosis == "Review"
	assert lifecycle.reschedule_appointment(db, 999, date(2025, 4, 12), "11:30 AM").reason == Reason.NOT_FOUND


def test_direct_reschedule_refuses_requested_placeholder(db, jane, physio):
	req = lifecycle.request_appointment(db, jane.patient_id, "Jane", "10 Apr, 2025", "2:00 PM").value
	moved = lifecycle.reschedule_appointment(db, req.appointment_id, date(2025, 4, 12), "3:00 PM")
	assert moved.reason == Reason.INVALID_STATE
	assert [r.request_id for r in queries.pending_requests(db)] == [req.request_id]

	assert lifecycle.approve_request(db, req.request_id, physio.physiotherapist_id).ok
	history = queries.patient_history(db, jane.patient_id)
	assert [(a.date, a.state) for a in history] == [(datetime(2025, 4, 10, 14, 0), models.AppointmentState.CONFIRMED)]


def test_direct_reschedule_refuses_open_proposal(db, patient, physio):
	appt = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM").value
	proposal = reschedule.propose_reschedule(db, appt.appointment_id).value
	moved = lifecycle.reschedule_appointment(db, appt.appointment_id, date(2025, 4, 12), "3:00 PM")
	assert moved.reason == Reason.INVALID_STATE
	assert appt.state == models.AppointmentState.RESCHEDULE_PROPOSED
	assert appt.date == datetime(2025, 4, 10, 9, 0)

	# the open proposal can still be answered normally
	assert reschedule.respond_to_reschedule(db, proposal.request_id, date(2025, 4, 11), "10:00 AM", accept=True).ok
	assert appt.is_active and appt.date == datetime(2025, 4, 11, 10, 0)


def test_soft_cancel_follows_transition_table(db, patient, physio, monkeypatch):
	appt = lifecycle.book_appointment(db, patient.patient_id, physio.physiotherapist_id, date(2025, 4, 10), "9:00 AM").value
	monkeypatch.setitem(models.ALLOWED_TRANSITIONS, models.AppointmentState.CONFIRMED, {models.AppointmentState.CONFIRMED})
	outcome = lifecycle.soft_cancel_appointment(db, appt.appointment_id)
	assert outcome.reason == Reason.INVALID_STATE
	assert appt.is_active


def test_reject_follows_transition_table(db, jane, monkeypatch):
	req = lifecycle.request_appointment(db, jane.patient_id, "Jane", "10 Apr, 2025", "2:00 PM").value
	monkeypatch.setitem(models.ALLOWED_TRANSITIONS, models.AppointmentState.REQUESTED, set())
	assert lifecycle.reject_request(db, req.request_id).ok
	placeholder = queries.patient_history(db, jane.patient_id)[0]
	assert placeholder.state == models.AppointmentState.REQUESTED

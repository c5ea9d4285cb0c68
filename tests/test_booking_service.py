"""Tests for the booking service: atomic creation, retries, and status changes."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from booking_engine.errors import (
    RecordNotFoundError,
    ServiceUnavailableError,
    SlotConflictError,
    SlotNotOfferedError,
)
from booking_engine.notifications import EventType
from booking_engine.schemas.appointment_schema import AppointmentStatus, CancelledBy
from booking_engine.scheduling.state_machine import InvalidTransitionError, TerminalStateError
from tests.conftest import MONDAY, SUNDAY, TUESDAY, make_request, make_service


class TestSlotListing:
    def test_lists_slots(self, booking_service):
        slots = booking_service.get_available_slots("biz-1", "svc-cut", MONDAY)
        assert slots[0] == "09:00"
        assert len(slots) == 31

    def test_booked_slot_disappears(self, booking_service):
        booking_service.create_appointment(make_request("10:00"))
        slots = booking_service.get_available_slots("biz-1", "svc-cut", MONDAY)
        assert "10:00" not in slots
        assert "10:15" not in slots
        assert "09:30" in slots

    def test_unknown_service(self, booking_service):
        with pytest.raises(ServiceUnavailableError):
            booking_service.get_available_slots("biz-1", "svc-missing", MONDAY)

    def test_inactive_service(self, booking_service):
        booking_service.catalog.add(make_service("svc-old", is_active=False))
        with pytest.raises(ServiceUnavailableError, match="not currently bookable"):
            booking_service.get_available_slots("biz-1", "svc-old", MONDAY)

    def test_service_of_another_business(self, booking_service):
        booking_service.catalog.add(make_service("svc-other", business_id="biz-2"))
        with pytest.raises(ServiceUnavailableError):
            booking_service.get_available_slots("biz-1", "svc-other", MONDAY)

    def test_business_without_hours(self, booking_service):
        booking_service.catalog.add(make_service("svc-x", business_id="biz-2"))
        with pytest.raises(RecordNotFoundError):
            booking_service.get_available_slots("biz-2", "svc-x", MONDAY)

    def test_available_dates(self, booking_service):
        dates = booking_service.get_available_dates("biz-1", "svc-cut", limit=2)
        assert [d["date"] for d in dates] == ["2026-10-19", "2026-10-20"]


class TestCreateAppointment:
    def test_creates_pending_appointment(self, booking_service, notifier):
        appointment = booking_service.create_appointment(make_request("10:00"))
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.duration == 30
        assert booking_service.appointments.get(appointment.id) == appointment
        assert notifier.types() == [EventType.NEW_BOOKING]

    def test_conflict_on_write(self, booking_service, notifier):
        first = booking_service.create_appointment(make_request("10:00"))
        with pytest.raises(SlotConflictError) as exc_info:
            booking_service.create_appointment(make_request("10:15", customer_id="cust-2"))
        assert exc_info.value.retryable
        assert exc_info.value.conflicting_ids == [first.id]
        assert len(booking_service.appointments.on_date("biz-1", MONDAY)) == 1
        assert notifier.types() == [EventType.NEW_BOOKING]

    def test_adjacent_bookings_allowed(self, booking_service):
        booking_service.create_appointment(make_request("10:00"))
        booking_service.create_appointment(make_request("10:30", customer_id="cust-2"))
        assert len(booking_service.appointments.on_date("biz-1", MONDAY)) == 2

    def test_off_grid_time_not_offered(self, booking_service):
        with pytest.raises(SlotNotOfferedError):
            booking_service.create_appointment(make_request("10:07"))

    def test_closed_day_not_offered(self, booking_service):
        with pytest.raises(SlotNotOfferedError) as exc_info:
            booking_service.create_appointment(make_request("10:00", scheduled_date=SUNDAY))
        assert not exc_info.value.retryable

    def test_outside_hours_not_offered(self, booking_service):
        with pytest.raises(SlotNotOfferedError):
            booking_service.create_appointment(make_request("16:45"))

    def test_cancel_frees_slot(self, booking_service):
        first = booking_service.create_appointment(make_request("10:00"))
        booking_service.cancel(first.id, cancelled_by=CancelledBy.CUSTOMER)
        second = booking_service.create_appointment(make_request("10:00", customer_id="cust-2"))
        assert second.scheduled_time == "10:00"

    def test_notifier_failure_keeps_booking(self, booking_service, caplog):
        class BrokenNotifier:
            def notify(self, event):
                raise RuntimeError("mail server down")

        booking_service.notifier = BrokenNotifier()
        appointment = booking_service.create_appointment(make_request("10:00"))
        assert booking_service.appointments.get(appointment.id).status == AppointmentStatus.PENDING
        assert "Notification new_booking failed" in caplog.text


class TestConcurrentBooking:
    def test_only_one_of_many_racers_wins(self, booking_service):
        racers = 8
        barrier = threading.Barrier(racers)

        def attempt(customer_no: int):
            barrier.wait()
            try:
                return booking_service.create_appointment(
                    make_request("11:00", customer_id=f"cust-{customer_no}")
                )
            except SlotConflictError as exc:
                return exc

        with ThreadPoolExecutor(max_workers=racers) as pool:
            results = list(pool.map(attempt, range(racers)))

        winners = [r for r in results if not isinstance(r, SlotConflictError)]
        losers = [r for r in results if isinstance(r, SlotConflictError)]
        assert len(winners) == 1
        assert len(losers) == racers - 1
        assert len(booking_service.appointments.on_date("biz-1", MONDAY)) == 1
        assert booking_service._locks == {}

    def test_different_dates_do_not_contend(self, booking_service):
        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [
                pool.submit(booking_service.create_appointment, make_request("11:00", scheduled_date=day))
                for day in (MONDAY, TUESDAY)
            ]
            appointments = [f.result() for f in futures]
        assert {a.scheduled_date for a in appointments} == {MONDAY, TUESDAY}


class TestBookWithRetry:
    def test_retries_with_chosen_time(self, booking_service):
        booking_service.create_appointment(make_request("10:00"))
        offered = []

        def choose(slots):
            offered.append(slots)
            return slots[0]

        appointment = booking_service.book_with_retry(
            make_request("10:00", customer_id="cust-2"), choose
        )
        assert appointment.scheduled_time == "09:00"
        assert "10:00" not in offered[0]

    def test_caller_can_give_up(self, booking_service):
        booking_service.create_appointment(make_request("10:00"))
        with pytest.raises(SlotConflictError):
            booking_service.book_with_retry(
                make_request("10:00", customer_id="cust-2"), lambda slots: None
            )

    def test_bounded_attempts(self, booking_service):
        booking_service.create_appointment(make_request("10:00"))
        calls = []

        def stubborn(slots):
            calls.append(slots)
            return "10:00"

        with pytest.raises(SlotConflictError):
            booking_service.book_with_retry(
                make_request("10:00", customer_id="cust-2"), stubborn, max_attempts=3
            )
        assert len(calls) == 2

    @pytest.mark.parametrize("attempts", [0, -1])
    def test_non_positive_attempts_rejected(self, booking_service, attempts):
        with pytest.raises(ValueError, match="max_attempts"):
            booking_service.book_with_retry(
                make_request("10:00"), lambda slots: None, max_attempts=attempts
            )
        assert booking_service.appointments.on_date("biz-1", MONDAY) == []

    def test_no_retry_when_free(self, booking_service):
        appointment = booking_service.book_with_retry(make_request("10:00"), lambda slots: None)
        assert appointment.scheduled_time == "10:00"


class TestStatusChanges:
    def test_full_lifecycle_notifies(self, booking_service, notifier):
        appointment = booking_service.create_appointment(make_request("10:00"))
        booking_service.confirm(appointment.id)
        done = booking_service.complete(appointment.id)
        assert done.status == AppointmentStatus.COMPLETED
        assert notifier.types() == [
            EventType.NEW_BOOKING, EventType.CONFIRMED, EventType.COMPLETED,
        ]

    def test_terminal_appointment_rejected(self, booking_service, notifier):
        appointment = booking_service.create_appointment(make_request("10:00"))
        booking_service.confirm(appointment.id)
        booking_service.complete(appointment.id)
        with pytest.raises(TerminalStateError):
            booking_service.cancel(appointment.id)
        assert booking_service.appointments.get(appointment.id).status == AppointmentStatus.COMPLETED
        assert len(notifier.events) == 3

    def test_customer_cancellation_event(self, booking_service, notifier):
        appointment = booking_service.create_appointment(make_request("10:00"))
        cancelled = booking_service.cancel(
            appointment.id, cancelled_by=CancelledBy.CUSTOMER, reason="Running late"
        )
        assert cancelled.cancel_reason == "Running late"
        assert notifier.types()[-1] == EventType.CUSTOMER_CANCELLED

    def test_business_cancellation_event(self, booking_service, notifier):
        appointment = booking_service.create_appointment(make_request("10:00"))
        booking_service.cancel(appointment.id)
        assert notifier.types()[-1] == EventType.CANCELLED

    def test_no_show(self, booking_service, notifier):
        appointment = booking_service.create_appointment(make_request("10:00"))
        booking_service.confirm(appointment.id)
        assert booking_service.mark_no_show(appointment.id).status == AppointmentStatus.NO_SHOW
        assert notifier.types()[-1] == EventType.NO_SHOW

    def test_set_status(self, booking_service):
        appointment = booking_service.create_appointment(make_request("10:00"))
        confirmed = booking_service.set_status(appointment.id, AppointmentStatus.CONFIRMED)
        assert confirmed.status == AppointmentStatus.CONFIRMED
        with pytest.raises(InvalidTransitionError):
            booking_service.set_status(appointment.id, AppointmentStatus.PENDING)

    def test_unknown_appointment(self, booking_service):
        with pytest.raises(RecordNotFoundError):
            booking_service.confirm("APT-NOPE")

    def test_business_notes(self, booking_service):
        appointment = booking_service.create_appointment(make_request("10:00"))
        noted = booking_service.update_business_notes(appointment.id, "Regular client")
        assert noted.business_notes == "Regular client"
        assert booking_service.appointments.get(appointment.id).business_notes == "Regular client"


class TestListings:
    def test_upcoming_and_past(self, booking_service):
        first = booking_service.create_appointment(make_request("10:00"))
        second = booking_service.create_appointment(make_request("11:00", customer_id="cust-2"))
        booking_service.cancel(second.id)
        upcoming, past = booking_service.upcoming_and_past("biz-1")
        assert [a.id for a in upcoming] == [first.id]
        assert [a.id for a in past] == [second.id]

    def test_customer_appointments(self, booking_service):
        booking_service.create_appointment(make_request("10:00", customer_id="cust-7"))
        booking_service.create_appointment(make_request("09:00", customer_id="cust-7"))
        booking_service.create_appointment(make_request("12:00", customer_id="cust-8"))
        mine = booking_service.list_customer_appointments("cust-7")
        assert [a.scheduled_time for a in mine] == ["09:00", "10:00"]

    def test_cancelled_hidden_from_calendar_bucket(self, booking_service):
        appointment = booking_service.create_appointment(make_request("10:00"))
        booking_service.cancel(appointment.id)
        assert booking_service.appointments.on_date("biz-1", MONDAY) == []
        assert len(booking_service.appointments.on_date("biz-1", MONDAY, include_cancelled=True)) == 1


class TestLockRegistry:
    def test_released_after_each_write(self, booking_service):
        for day in (MONDAY, TUESDAY):
            appointment = booking_service.create_appointment(make_request("10:00", scheduled_date=day))
            booking_service.confirm(appointment.id)
            booking_service.update_business_notes(appointment.id, "VIP")
        assert booking_service._locks == {}

    def test_released_after_conflict(self, booking_service):
        booking_service.create_appointment(make_request("10:00"))
        with pytest.raises(SlotConflictError):
            booking_service.create_appointment(make_request("10:00", customer_id="cust-2"))
        assert booking_service._locks == {}

    def test_released_after_rejected_transition(self, booking_service):
        appointment = booking_service.create_appointment(make_request("10:00"))
        with pytest.raises(InvalidTransitionError):
            booking_service.complete(appointment.id)
        assert booking_service._locks == {}

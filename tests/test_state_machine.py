"""Tests for the booking lifecycle and who may drive it."""

from datetime import date, datetime

import pytest
from conftest import jan

from app.domain.hosting import state_machine
from app.domain.hosting.errors import ForbiddenError, InvalidStateError
from app.domain.hosting.schemas import BookingDecision, BookingUpdate
from app.models_hosting import BookingStatus, HostingBooking

S = BookingStatus
NOW = datetime(2030, 1, 1, 12, 0)


def booking(status=S.PENDING_APPROVAL, **fields):
    defaults = {
        "owner_id": "owner-1",
        "check_in_date": date(2030, 1, 5),
        "check_out_date": date(2030, 1, 10),
    }
    defaults.update(fields)
    return HostingBooking(status=status.value, **defaults)


# ── Transition table ──────────────────────────────────────────


class TestTransitionTable:
    EXPECTED = {
        S.PENDING_APPROVAL: {S.APPROVED, S.REJECTED, S.CANCELLED},
        S.APPROVED: {S.CONFIRMED, S.CANCELLED},
        S.CONFIRMED: {S.IN_PROGRESS, S.CANCELLED},
        S.IN_PROGRESS: {S.COMPLETED, S.CANCELLED},
        S.COMPLETED: set(),
        S.REJECTED: set(),
        S.CANCELLED: set(),
    }

    @pytest.mark.parametrize("status", list(BookingStatus))
    def test_reachable_statuses(self, status):
        assert set(state_machine.allowed_transitions(status)) == self.EXPECTED[status]

    @pytest.mark.parametrize("status", [S.COMPLETED, S.REJECTED, S.CANCELLED])
    def test_terminal_statuses_are_final(self, status):
        assert state_machine.is_terminal(status)
        for target in BookingStatus:
            assert not state_machine.can_transition(status, target)

    @pytest.mark.parametrize("status", [S.COMPLETED, S.REJECTED, S.CANCELLED])
    def test_cancel_terminal_booking_fails(self, status):
        with pytest.raises(InvalidStateError):
            state_machine.cancel(booking(status), "owner-1", NOW)


# ── Transition helpers ──────────────────────────────────────────


class TestApproveReject:
    def test_approve_stamps_time_and_clears_rejection(self):
        b = booking(rejection_reason="stale", rejected_at=NOW)
        state_machine.approve(b, NOW)
        assert b.status == "approved"
        assert b.approved_at == NOW
        assert b.rejected_at is None
        assert b.rejection_reason is None

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_requires_reason(self, reason):
        b = booking()
        with pytest.raises(InvalidStateError) as exc:
            state_machine.reject(b, reason, NOW)
        assert "reason is required" in exc.value.detail
        assert b.status == "pending_approval"

    def test_reject_stamps_time_and_clears_approval(self):
        b = booking(approved_at=NOW)
        state_machine.reject(b, "Fully booked", NOW)
        assert b.status == "rejected"
        assert b.rejected_at == NOW
        assert b.rejection_reason == "Fully booked"
        assert b.approved_at is None

    def test_approve_twice_fails(self):
        b = booking(S.APPROVED)
        with pytest.raises(InvalidStateError):
            state_machine.approve(b, NOW)


class TestLaterTransitions:
    def test_confirm_marks_paid(self):
        b = booking(S.APPROVED, payment_status="pending")
        state_machine.confirm(b)
        assert b.status == "confirmed"
        assert b.payment_status == "paid"

    def test_confirm_requires_approval(self):
        with pytest.raises(InvalidStateError):
            state_machine.confirm(booking(S.PENDING_APPROVAL))

    def test_start_and_complete(self):
        b = booking(S.CONFIRMED)
        state_machine.start(b, NOW)
        state_machine.complete(b, NOW)
        assert b.status == "completed"
        assert b.started_at == NOW and b.completed_at == NOW

    def test_cancel_records_who(self):
        b = booking(S.IN_PROGRESS)
        state_machine.cancel(b, "host-user", NOW)
        assert b.status == "cancelled"
        assert b.cancelled_by == "host-user"

    @pytest.mark.parametrize("status", [S.CONFIRMED, S.IN_PROGRESS, S.COMPLETED, S.CANCELLED])
    def test_only_unconfirmed_bookings_are_editable(self, status):
        with pytest.raises(InvalidStateError):
            state_machine.ensure_editable(booking(status))


# ── Roles ──────────────────────────────────────────


class TestAuthorize:
    def test_host_actions(self):
        b = booking()
        state_machine.authorize("approve", b, "host-user", "host-user")
        with pytest.raises(ForbiddenError):
            state_machine.authorize("approve", b, "host-user", "owner-1")

    def test_owner_actions(self):
        b = booking(S.APPROVED)
        state_machine.authorize("confirm", b, "host-user", "owner-1")
        with pytest.raises(ForbiddenError):
            state_machine.authorize("confirm", b, "host-user", "host-user")

    def test_either_party_may_cancel(self):
        b = booking()
        state_machine.authorize("cancel", b, "host-user", "owner-1")
        state_machine.authorize("cancel", b, "host-user", "host-user")
        with pytest.raises(ForbiddenError):
            state_machine.authorize("cancel", b, "host-user", "stranger")


# ── Derived predicates ──────────────────────────────────────────


class TestPredicates:
    def test_duration_days(self):
        assert state_machine.duration_days(booking()) == 5

    def test_overdue_and_upcoming(self):
        b = booking(S.IN_PROGRESS)
        assert state_machine.is_overdue(b, date(2030, 1, 11))
        assert not state_machine.is_overdue(b, date(2030, 1, 9))
        assert state_machine.is_upcoming(booking(S.CONFIRMED), date(2030, 1, 4))
        assert not state_machine.is_overdue(booking(S.COMPLETED), date(2030, 2, 1))

    def test_open_stay_is_overdue_on_check_out_day(self):
        assert state_machine.is_overdue(booking(S.IN_PROGRESS), date(2030, 1, 10))
        assert state_machine.is_overdue(booking(S.CONFIRMED), date(2030, 1, 10))
        assert not state_machine.is_overdue(booking(S.CANCELLED), date(2030, 1, 10))

    def test_can_be_reviewed(self):
        assert state_machine.can_be_reviewed(booking(S.COMPLETED), has_review=False)
        assert not state_machine.can_be_reviewed(booking(S.COMPLETED), has_review=True)
        assert not state_machine.can_be_reviewed(booking(S.IN_PROGRESS), has_review=False)


# ── Through the service ──────────────────────────────────────────


class TestServiceTransitions:
    def test_full_lifecycle(self, book, pet):
        b = book(pet, jan(5), jan(10), status="completed")
        assert b.status == "completed"
        assert b.payment_status == "paid"
        assert b.approved_at is not None

    def test_rejecting_without_reason_fails(self, service, book, host_user, pet):
        b = book(pet, jan(5), jan(10))
        with pytest.raises(InvalidStateError):
            service.decide_booking(b.id, BookingDecision(approve=False), host_user)
        assert service.get_booking(b.id, host_user).status == "pending_approval"

    def test_forbidden_is_checked_before_state(self, service, book, make_user, pet):
        b = book(pet, jan(5), jan(10), status="confirmed")
        with pytest.raises(ForbiddenError):
            service.decide_booking(b.id, BookingDecision(approve=True), make_user())

    def test_owner_cannot_approve(self, service, book, owner, pet):
        b = book(pet, jan(5), jan(10))
        with pytest.raises(ForbiddenError):
            service.decide_booking(b.id, BookingDecision(approve=True), owner)

    def test_host_cannot_confirm(self, service, book, host_user, pet):
        b = book(pet, jan(5), jan(10), status="approved")
        with pytest.raises(ForbiddenError):
            service.confirm_booking(b.id, host_user)

    def test_update_after_confirmation_fails(self, service, book, owner, pet):
        b = book(pet, jan(5), jan(10), status="confirmed")
        with pytest.raises(InvalidStateError):
            service.update_booking(b.id, BookingUpdate(specialInstructions="Extra walk"), owner)

    def test_confirmed_price_is_frozen(self, service, host, host_user, book, owner, pet):
        from app.domain.hosting.schemas import HostUpdate

        b = book(pet, jan(5), jan(12), status="confirmed")
        service.update_host(host.id, HostUpdate(baseDailyRate=99), host_user)
        assert float(service.get_booking(b.id, owner).total_price) == pytest.approx(283.50)

    def test_cancel_twice_fails(self, service, book, owner, pet):
        b = book(pet, jan(5), jan(10))
        service.cancel_booking(b.id, owner)
        with pytest.raises(InvalidStateError):
            service.cancel_booking(b.id, owner)

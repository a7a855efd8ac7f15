"""
Unit tests for the pickup status machine.

Decisions are pure functions of (actor, record), so no app or store is needed.
"""

import pytest

from backend.app.db.pickup_store import REMOVE, Set
from backend.app.domain.pickups.decisions import Allow, Deny, DenyReason
from backend.app.domain.pickups.state_machine import (
    SOFT_DELETABLE_STATUSES,
    Transition,
    can_transition,
    check_invariants,
    decide_accept,
    decide_cancel_acceptance,
    decide_delete,
    decide_update,
)
from backend.app.models.enums import UserRole
from backend.app.models.pickup import PickupStatus
from backend.tests.factories import ADMIN, DRIVER, NOW, OTHER_DRIVER, OWNER, STRANGER, make_pickup


def test_transition_table_roles():
    assert can_transition(Transition.ACCEPT, PickupStatus.AVAILABLE, UserRole.DRIVER)
    assert not can_transition(Transition.ACCEPT, PickupStatus.AVAILABLE, UserRole.USER)
    assert not can_transition(Transition.ACCEPT, PickupStatus.PENDING, UserRole.DRIVER)
    assert can_transition(Transition.HARD_DELETE, PickupStatus.DELETED, UserRole.ADMIN)
    assert not can_transition(Transition.HARD_DELETE, PickupStatus.PENDING, UserRole.USER)
    assert can_transition(Transition.SET_STATUS, PickupStatus.COMPLETED, UserRole.ADMIN)
    assert not can_transition(Transition.SET_STATUS, PickupStatus.DELETED, UserRole.ADMIN)
    assert not can_transition(Transition.SET_STATUS, PickupStatus.PENDING, UserRole.USER)


def test_status_override_follows_transition_table():
    pickup = make_pickup(PickupStatus.PENDING)

    decision = decide_update(ADMIN, pickup, {}, PickupStatus.CANCELLED)
    assert decision.changes == {"status": Set(PickupStatus.CANCELLED)}

    decision = decide_update(OWNER, pickup, {}, PickupStatus.CANCELLED)
    assert decision == Deny(DenyReason.FORBIDDEN, "Users cannot set pickup status to cancelled")


class TestAccept:
    def test_driver_accepts_available(self):
        decision = decide_accept(DRIVER, make_pickup(PickupStatus.AVAILABLE))
        assert isinstance(decision, Allow)
        assert decision.changes == {
            "status": Set(PickupStatus.ACCEPTED),
            "driver_id": Set(DRIVER.id),
        }
        assert decision.expected_status == frozenset({PickupStatus.AVAILABLE})

    @pytest.mark.parametrize("status", [
        PickupStatus.PENDING,
        PickupStatus.ACCEPTED,
        PickupStatus.IN_PROGRESS,
        PickupStatus.COMPLETED,
        PickupStatus.CANCELLED,
    ])
    def test_non_available_is_conflict(self, status):
        driver_id = "driver-9" if status in (
            PickupStatus.ACCEPTED, PickupStatus.IN_PROGRESS, PickupStatus.COMPLETED
        ) else None
        decision = decide_accept(DRIVER, make_pickup(status, driver_id=driver_id))
        assert decision == Deny(DenyReason.CONFLICT, "Pickup not available")

    def test_deleted_is_not_found(self):
        decision = decide_accept(ADMIN, make_pickup(PickupStatus.DELETED))
        assert decision.reason == DenyReason.NOT_FOUND

    def test_user_cannot_accept(self):
        decision = decide_accept(OWNER, make_pickup(PickupStatus.AVAILABLE))
        assert decision.reason == DenyReason.FORBIDDEN


class TestCancelAcceptance:
    @pytest.mark.parametrize("actor", [DRIVER, OWNER, ADMIN])
    def test_involved_actor_cancels(self, actor):
        pickup = make_pickup(PickupStatus.ACCEPTED, driver_id=DRIVER.id)
        decision = decide_cancel_acceptance(actor, pickup)
        assert isinstance(decision, Allow)
        assert decision.changes == {"status": Set(PickupStatus.CANCELLED), "driver_id": REMOVE}
        assert decision.expected_status == frozenset({PickupStatus.ACCEPTED})

    @pytest.mark.parametrize("actor", [OTHER_DRIVER, STRANGER])
    def test_uninvolved_actor_forbidden(self, actor):
        pickup = make_pickup(PickupStatus.ACCEPTED, driver_id=DRIVER.id)
        assert decide_cancel_acceptance(actor, pickup).reason == DenyReason.FORBIDDEN

    def test_wrong_status_names_current_status(self):
        decision = decide_cancel_acceptance(OWNER, make_pickup(PickupStatus.AVAILABLE))
        assert decision == Deny(
            DenyReason.CONFLICT, "Pickup can't be cancelled, current status is: available"
        )


class TestUpdate:
    def test_owner_publishes_pending(self):
        decision = decide_update(OWNER, make_pickup(PickupStatus.PENDING), {}, PickupStatus.AVAILABLE)
        assert isinstance(decision, Allow)
        assert decision.changes == {"status": Set(PickupStatus.AVAILABLE)}
        assert decision.expected_status == frozenset({PickupStatus.PENDING})

    def test_owner_edits_fields(self):
        decision = decide_update(OWNER, make_pickup(PickupStatus.AVAILABLE), {"location": "1 Elm"})
        assert decision.changes == {"location": Set("1 Elm")}

    def test_owner_cannot_set_other_statuses(self):
        decision = decide_update(OWNER, make_pickup(PickupStatus.PENDING), {}, PickupStatus.COMPLETED)
        assert decision.reason == DenyReason.FORBIDDEN

    def test_publish_from_cancelled_is_conflict(self):
        decision = decide_update(OWNER, make_pickup(PickupStatus.CANCELLED), {}, PickupStatus.AVAILABLE)
        assert decision.reason == DenyReason.CONFLICT

    @pytest.mark.parametrize("status", [PickupStatus.ACCEPTED, PickupStatus.COMPLETED])
    def test_owner_cannot_modify_accepted_or_completed(self, status):
        decision = decide_update(OWNER, make_pickup(status, driver_id=DRIVER.id), {"location": "x"})
        assert decision == Deny(DenyReason.FORBIDDEN, "Cannot modify an accepted or completed pickup")

    def test_stranger_forbidden(self):
        decision = decide_update(STRANGER, make_pickup(PickupStatus.PENDING), {"location": "x"})
        assert decision.reason == DenyReason.FORBIDDEN

    def test_deleted_is_not_found_even_for_admin(self):
        decision = decide_update(ADMIN, make_pickup(PickupStatus.DELETED), {"location": "x"})
        assert decision.reason == DenyReason.NOT_FOUND

    def test_status_deleted_is_bad_request(self):
        decision = decide_update(ADMIN, make_pickup(PickupStatus.PENDING), {}, PickupStatus.DELETED)
        assert decision.reason == DenyReason.BAD_REQUEST

    def test_admin_moves_accepted_to_in_progress_keeping_driver(self):
        pickup = make_pickup(PickupStatus.ACCEPTED, driver_id=DRIVER.id)
        decision = decide_update(ADMIN, pickup, {}, PickupStatus.IN_PROGRESS)
        assert decision.changes == {"status": Set(PickupStatus.IN_PROGRESS)}

    def test_admin_reopening_clears_driver(self):
        pickup = make_pickup(PickupStatus.ACCEPTED, driver_id=DRIVER.id)
        decision = decide_update(ADMIN, pickup, {}, PickupStatus.AVAILABLE)
        assert decision.changes == {"status": Set(PickupStatus.AVAILABLE), "driver_id": REMOVE}

    def test_admin_cannot_assign_status_without_driver(self):
        decision = decide_update(ADMIN, make_pickup(PickupStatus.AVAILABLE), {}, PickupStatus.COMPLETED)
        assert decision.reason == DenyReason.CONFLICT


class TestDelete:
    @pytest.mark.parametrize("status", sorted(SOFT_DELETABLE_STATUSES, key=lambda s: s.value))
    def test_soft_delete_allowed(self, status):
        driver_id = DRIVER.id if status == PickupStatus.ACCEPTED else None
        decision = decide_delete(OWNER, make_pickup(status, driver_id=driver_id))
        assert isinstance(decision, Allow)
        assert decision.expected_status == SOFT_DELETABLE_STATUSES

    @pytest.mark.parametrize("status", [
        PickupStatus.PENDING, PickupStatus.IN_PROGRESS, PickupStatus.COMPLETED,
    ])
    def test_soft_delete_rejected_with_status(self, status):
        driver_id = None if status == PickupStatus.PENDING else DRIVER.id
        decision = decide_delete(ADMIN, make_pickup(status, driver_id=driver_id))
        assert decision == Deny(DenyReason.FORBIDDEN, f"Cannot delete pickup with status {status.value}")

    def test_soft_delete_of_deleted_is_not_found(self):
        assert decide_delete(OWNER, make_pickup(PickupStatus.DELETED)).reason == DenyReason.NOT_FOUND

    def test_hard_delete_requires_admin(self):
        assert decide_delete(OWNER, make_pickup(PickupStatus.AVAILABLE), hard=True).reason == DenyReason.FORBIDDEN
        assert isinstance(decide_delete(ADMIN, make_pickup(PickupStatus.DELETED), hard=True), Allow)


def test_invariant_checker():
    assert list(check_invariants(make_pickup(PickupStatus.ACCEPTED, driver_id=DRIVER.id))) == []
    assert list(check_invariants(make_pickup(PickupStatus.ACCEPTED)))
    assert list(check_invariants(make_pickup(PickupStatus.CANCELLED, driver_id=DRIVER.id)))
    assert list(check_invariants(make_pickup(PickupStatus.AVAILABLE, deleted_at=NOW)))

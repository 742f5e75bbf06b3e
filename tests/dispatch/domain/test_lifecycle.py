import itertools

import pytest
from dispatch.errors import StateTransitionError
from dispatch.order.lifecycle import (
    ASSIGNABLE_STATUSES,
    TERMINAL_STATUSES,
    ActorRole,
    OrderStatus,
    allowed_targets,
    can_transition,
    check_transition,
)

S = OrderStatus

DRIVER_TABLE = {
    S.DRIVER_ASSIGNED: {S.ACCEPTED_BY_DRIVER, S.REJECTED_BY_DRIVER, S.CANCELLED_BY_DRIVER},
    S.ACCEPTED_BY_DRIVER: {S.DRIVER_AT_PICKUP, S.CANCELLED_BY_DRIVER},
    S.DRIVER_AT_PICKUP: {S.PICKED_UP, S.CANCELLED_BY_DRIVER},
    S.PICKED_UP: {S.IN_TRANSIT, S.DRIVER_AT_DROPOFF, S.CANCELLED_BY_DRIVER},
    S.IN_TRANSIT: {S.DRIVER_AT_DROPOFF, S.CANCELLED_BY_DRIVER},
    S.DRIVER_AT_DROPOFF: {S.DELIVERED, S.FAILED_DELIVERY, S.CANCELLED_BY_DRIVER},
    S.FAILED_DELIVERY: {S.DRIVER_AT_DROPOFF},
}


class TestDriverTransitions:
    @pytest.mark.parametrize("current,target", list(itertools.product(OrderStatus, OrderStatus)))
    def test_allowed_iff_in_table(self, current, target):
        expected = target in DRIVER_TABLE.get(current, set())

        assert can_transition(current, target, ActorRole.DRIVER) is expected

    def test_failed_delivery_retries_at_dropoff(self):
        assert allowed_targets(S.FAILED_DELIVERY, ActorRole.DRIVER) == {S.DRIVER_AT_DROPOFF}


class TestMitraTransitions:
    @pytest.mark.parametrize("current", list(OrderStatus))
    def test_only_assignable_states_can_be_assigned(self, current):
        assert can_transition(current, S.DRIVER_ASSIGNED, ActorRole.MITRA) is (current in ASSIGNABLE_STATUSES)

    def test_mitra_cannot_reassign_an_assigned_order(self):
        assert not can_transition(S.DRIVER_ASSIGNED, S.DRIVER_ASSIGNED, ActorRole.MITRA)

    def test_mitra_cannot_drive_the_delivery(self):
        assert allowed_targets(S.PICKED_UP, ActorRole.MITRA) == frozenset()


class TestOtherRoles:
    @pytest.mark.parametrize("role", [ActorRole.CUSTOMER, ActorRole.SYSTEM])
    def test_no_transitions(self, role):
        assert all(not allowed_targets(status, role) for status in OrderStatus)


class TestTerminalStates:
    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    @pytest.mark.parametrize("role", list(ActorRole))
    def test_terminal_states_have_no_exits(self, terminal, role):
        assert allowed_targets(terminal, role) == frozenset()


class TestCheckTransition:
    def test_legal_transition_passes(self):
        check_transition(S.DRIVER_AT_DROPOFF, S.DELIVERED, ActorRole.DRIVER)

    def test_illegal_transition_names_both_statuses(self):
        with pytest.raises(StateTransitionError) as exc_info:
            check_transition(S.DELIVERED, S.IN_TRANSIT, ActorRole.DRIVER)

        error = exc_info.value
        assert error.code == "INVALID_STATUS_TRANSITION"
        assert error.current_status == "DELIVERED"
        assert error.attempted_status == "IN_TRANSIT"
        assert error.details == {"current_status": "DELIVERED", "attempted_status": "IN_TRANSIT"}

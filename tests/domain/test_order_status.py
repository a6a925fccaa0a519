"""Tests for the order status machine."""

import pytest

from storefront.domain import order_status
from storefront.domain.errors import IllegalTransition, InvalidState
from storefront.domain.order_status import OrderStatus

S = OrderStatus

LEGAL = {
    (S.CREATED, S.CONFIRMED),
    (S.CREATED, S.CANCELLED),
    (S.CONFIRMED, S.PACKED),
    (S.CONFIRMED, S.CANCELLED),
    (S.PACKED, S.SHIPPED),
    (S.PACKED, S.CANCELLED),
    (S.SHIPPED, S.OUT_FOR_DELIVERY),
    (S.SHIPPED, S.RETURN_REQUESTED),
    (S.OUT_FOR_DELIVERY, S.DELIVERED),
    (S.OUT_FOR_DELIVERY, S.RETURN_REQUESTED),
    (S.DELIVERED, S.RETURN_REQUESTED),
    (S.RETURN_REQUESTED, S.REFUNDED),
}


class TestTransitions:
    def test_initial_status_is_created(self):
        assert order_status.INITIAL_STATUS == S.CREATED

    @pytest.mark.parametrize("current", list(S))
    def test_only_listed_moves_are_legal(self, current):
        for target in S:
            assert order_status.can_transition(current, target) == ((current, target) in LEGAL)

    def test_created_cannot_skip_to_packed(self):
        with pytest.raises(IllegalTransition) as exc:
            order_status.assert_transition(S.CREATED, S.PACKED)
        assert exc.value.current == "CREATED"
        assert exc.value.target == "PACKED"

    def test_same_status_is_rejected_as_invalid_state(self):
        with pytest.raises(InvalidState):
            order_status.assert_transition(S.SHIPPED, S.SHIPPED)

    def test_legal_move_passes(self):
        order_status.assert_transition(S.PACKED, S.SHIPPED)

    def test_accepts_plain_strings(self):
        assert order_status.can_transition("DELIVERED", "RETURN_REQUESTED")


class TestTerminalAndCancellable:
    def test_terminal_states(self):
        terminal = {s for s in S if order_status.is_terminal(s)}
        assert terminal == {S.CANCELLED, S.REFUNDED}

    def test_cancellable_only_before_shipping(self):
        cancellable = {s for s in S if order_status.is_cancellable(s)}
        assert cancellable == {S.CREATED, S.CONFIRMED, S.PACKED}

    def test_allowed_transitions_of_shipped(self):
        assert order_status.allowed_transitions(S.SHIPPED) == {S.OUT_FOR_DELIVERY, S.RETURN_REQUESTED}

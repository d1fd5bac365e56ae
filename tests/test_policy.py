"""Tests for the authorization policy."""

import pytest

from orderflow.errors import Forbidden
from orderflow.identity import Actor, Role
from orderflow.policy import Action, ResourceKind, ResourceOwners, allow, authorize

MEMBER = Actor("m-1", Role.MEMBER)
GUEST = Actor("g-1", Role.GUEST)
SELLER = Actor("s-1", Role.SELLER)
ADMIN = Actor("a-1", Role.ADMIN)


class TestAdmin:
    @pytest.mark.parametrize("kind", list(ResourceKind))
    @pytest.mark.parametrize("action", list(Action))
    def test_always_allowed(self, kind, action):
        assert allow(ADMIN, action, ResourceOwners(kind))


class TestSeller:
    def test_seller_of_record(self):
        owners = ResourceOwners(ResourceKind.ORDER, member_id="m-1", seller_ids=frozenset({"s-1"}))
        assert allow(SELLER, Action.READ, owners)
        assert allow(SELLER, Action.UPDATE, owners)

    def test_unlinked_seller(self):
        owners = ResourceOwners(ResourceKind.ORDER, member_id="m-1", seller_ids=frozenset({"s-2"}))
        assert not allow(SELLER, Action.READ, owners)

    def test_ledger_write(self):
        owners = ResourceOwners(ResourceKind.LEDGER, member_id="m-1", seller_ids=frozenset({"s-1"}))
        assert allow(SELLER, Action.DELETE, owners)

    @pytest.mark.parametrize("action", [Action.CREATE, Action.UPDATE, Action.DELETE])
    def test_cart_is_read_only(self, action):
        owners = ResourceOwners(ResourceKind.CART, member_id="m-1", seller_ids=frozenset({"s-1"}))
        assert allow(SELLER, Action.READ, owners)
        assert not allow(SELLER, action, owners)


class TestMember:
    def test_own_cart_and_order(self):
        assert allow(MEMBER, Action.UPDATE, ResourceOwners(ResourceKind.CART, member_id="m-1"))
        assert allow(MEMBER, Action.READ, ResourceOwners(ResourceKind.ORDER, member_id="m-1"))

    def test_foreign_order(self):
        assert not allow(MEMBER, Action.READ, ResourceOwners(ResourceKind.ORDER, member_id="m-2"))

    def test_ledger_is_read_only(self):
        owners = ResourceOwners(ResourceKind.LEDGER, member_id="m-1")
        assert allow(MEMBER, Action.READ, owners)
        assert not allow(MEMBER, Action.CREATE, owners)
        assert not allow(MEMBER, Action.UPDATE, owners)
        assert not allow(MEMBER, Action.DELETE, owners)

    def test_order_items_are_read_only(self):
        owners = ResourceOwners(ResourceKind.ORDER_ITEM, member_id="m-1")
        assert allow(MEMBER, Action.READ, owners)
        assert not allow(MEMBER, Action.CREATE, owners)
        assert not allow(MEMBER, Action.UPDATE, owners)


class TestGuest:
    def test_own_cart(self):
        assert allow(GUEST, Action.UPDATE, ResourceOwners(ResourceKind.CART, guest_id="g-1"))

    def test_other_cart(self):
        assert not allow(GUEST, Action.READ, ResourceOwners(ResourceKind.CART, guest_id="g-2"))

    @pytest.mark.parametrize("kind", [ResourceKind.ORDER, ResourceKind.LEDGER])
    def test_never_orders_or_ledger(self, kind):
        assert not allow(GUEST, Action.READ, ResourceOwners(kind, guest_id="g-1"))


def test_authorize_raises_forbidden():
    with pytest.raises(Forbidden):
        authorize(GUEST, Action.READ, ResourceOwners(ResourceKind.ORDER))


def test_authorize_passes_silently():
    authorize(ADMIN, Action.DELETE, ResourceOwners(ResourceKind.LEDGER))

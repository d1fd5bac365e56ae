"""Pytest fixtures for orderflow tests."""

import pytest

from orderflow import Settings, open_workflow
from orderflow.cart import CartOwner
from orderflow.identity import Role

from helpers import Shop, ok


@pytest.fixture
async def wf():
    """Fresh in-memory workflow per test."""
    async with await open_workflow(Settings()) as workflow:
        yield workflow


# ═══════════════════════════════════════════════════════════════════════════════
# Actors
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
async def member(wf):
    return ok(await wf.identity.register(Role.MEMBER, "Mina"))


@pytest.fixture
async def other_member(wf):
    return ok(await wf.identity.register(Role.MEMBER, "Oskar"))


@pytest.fixture
async def guest(wf):
    return ok(await wf.identity.register(Role.GUEST))


@pytest.fixture
async def other_guest(wf):
    return ok(await wf.identity.register(Role.GUEST))


@pytest.fixture
async def seller(wf):
    return ok(await wf.identity.register(Role.SELLER, "Acme"))


@pytest.fixture
async def other_seller(wf):
    return ok(await wf.identity.register(Role.SELLER, "Globex"))


@pytest.fixture
async def admin(wf):
    return ok(await wf.identity.register(Role.ADMIN, "root"))


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
async def shop(wf, seller, other_seller):
    reg = wf.catalog.registry

    channel = ok(await reg.open_channel("web", "Web store"))
    section = ok(await reg.open_section(channel.id, "shoes", "Shoes"))
    other_channel = ok(await reg.open_channel("app", "Mobile app"))
    other_section = ok(await reg.open_section(other_channel.id, "bags", "Bags"))

    sale = ok(await reg.open_sale(seller.actor_id, channel.id, "Runner", section.id))
    snapshot = ok(await reg.freeze_snapshot(sale.id, price=9900))
    group = ok(await reg.add_option_group(sale.id, "size"))
    option = ok(await reg.add_option(group.id, "42"))

    other_sale = ok(await reg.open_sale(other_seller.actor_id, channel.id, "Tote"))
    other_snapshot = ok(await reg.freeze_snapshot(other_sale.id, price=4500))
    other_group = ok(await reg.add_option_group(other_sale.id, "color"))
    other_option = ok(await reg.add_option(other_group.id, "black"))

    return Shop(
        channel=channel,
        section=section,
        other_channel=other_channel,
        other_section=other_section,
        sale=sale,
        snapshot=snapshot,
        group=group,
        option=option,
        other_sale=other_sale,
        other_snapshot=other_snapshot,
        other_group=other_group,
        other_option=other_option,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Carts & Orders
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
async def cart(wf, member):
    return ok(await wf.carts.create_cart(member, CartOwner(member_id=member.actor_id)))


@pytest.fixture
async def order(wf, admin, member, shop):
    """Pending order for `member` with one line from `seller`'s sale."""
    placed = ok(await wf.orders.create_order(
        admin, member.actor_id, shop.channel.id, "ORD-0001", 9900, shop.section.id
    ))
    ok(await wf.orders.add_item(admin, placed.id, shop.snapshot.id, 1, 9900))
    return placed

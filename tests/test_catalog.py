"""Tests for catalog resolution and the seeding registry."""

from orderflow import ErrorKind
from orderflow.catalog import Placement, SaleStatus

from helpers import err, ok


class TestResolveSaleSnapshot:
    async def test_by_snapshot_id(self, wf, seller, shop):
        ref = ok(await wf.catalog.resolver.resolve_sale_snapshot(shop.snapshot.id))

        assert ref.snapshot_id == shop.snapshot.id
        assert ref.sale_id == shop.sale.id
        assert ref.seller_id == seller.actor_id
        assert ref.price == 9900
        assert ref.title == "Runner"

    async def test_sale_id_resolves_to_latest_snapshot(self, wf, shop):
        newer = ok(await wf.catalog.registry.freeze_snapshot(shop.sale.id, price=8900, title="Runner v2"))

        ref = ok(await wf.catalog.resolver.resolve_sale_snapshot(shop.sale.id))

        assert ref.snapshot_id == newer.id
        assert ref.price == 8900

    async def test_unknown_reference(self, wf, shop):
        e = err(await wf.catalog.resolver.resolve_sale_snapshot("missing"))
        assert e.kind is ErrorKind.NOT_FOUND

    async def test_inactive_sale(self, wf, shop):
        ok(await wf.catalog.registry.set_sale_status(shop.sale.id, SaleStatus.PAUSED))

        e = err(await wf.catalog.resolver.resolve_sale_snapshot(shop.snapshot.id))
        assert e.kind is ErrorKind.NOT_FOUND


class TestResolveOption:
    async def test_option_in_group(self, wf, shop):
        ref = ok(await wf.catalog.resolver.resolve_option(shop.group.id, shop.option.id))

        assert ref.sale_id == shop.sale.id
        assert (ref.group_name, ref.name) == ("size", "42")

    async def test_option_from_another_group(self, wf, shop):
        e = err(await wf.catalog.resolver.resolve_option(shop.group.id, shop.other_option.id))
        assert e.kind is ErrorKind.NOT_FOUND

    async def test_retired_option(self, wf, shop):
        ok(await wf.catalog.registry.retire_option(shop.option.id))

        e = err(await wf.catalog.resolver.resolve_option(shop.group.id, shop.option.id))
        assert e.kind is ErrorKind.NOT_FOUND


class TestResolvePlacement:
    async def test_channel_and_section(self, wf, shop):
        placement = ok(await wf.catalog.resolver.resolve_placement(shop.channel.id, shop.section.id))
        assert placement == Placement(shop.channel.id, shop.section.id)

    async def test_channel_only(self, wf, shop):
        placement = ok(await wf.catalog.resolver.resolve_placement(shop.channel.id))
        assert placement.section_id is None

    async def test_section_of_another_channel(self, wf, shop):
        e = err(await wf.catalog.resolver.resolve_placement(shop.channel.id, shop.other_section.id))
        assert e.kind is ErrorKind.NOT_FOUND


class TestRegistry:
    async def test_duplicate_channel_code(self, wf, shop):
        e = err(await wf.catalog.registry.open_channel("web", "Again"))
        assert e.kind is ErrorKind.CONFLICT

    async def test_sale_requires_seller_role(self, wf, member, shop):
        e = err(await wf.catalog.registry.open_sale(member.actor_id, shop.channel.id, "Nope"))
        assert e.kind is ErrorKind.NOT_FOUND

    async def test_snapshot_price_not_negative(self, wf, shop):
        e = err(await wf.catalog.registry.freeze_snapshot(shop.sale.id, price=-1))
        assert e.kind is ErrorKind.INVALID_ARGUMENT

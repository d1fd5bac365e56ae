"""Tests for identity resolution."""

from orderflow import ErrorKind
from orderflow.identity import Actor, Claims, Role

from helpers import err, ok


class TestCurrentActor:
    async def test_valid_claims(self, wf, member):
        actor = ok(await wf.identity.current_actor(Claims(member.actor_id, "member")))
        assert actor == Actor(member.actor_id, Role.MEMBER)

    async def test_missing_claims(self, wf):
        e = err(await wf.identity.current_actor(None))
        assert e.kind is ErrorKind.UNAUTHENTICATED

    async def test_unknown_role(self, wf, member):
        e = err(await wf.identity.current_actor(Claims(member.actor_id, "superuser")))
        assert e.kind is ErrorKind.UNAUTHENTICATED

    async def test_unknown_subject(self, wf):
        e = err(await wf.identity.current_actor(Claims("no-such-actor", "member")))
        assert e.kind is ErrorKind.UNAUTHENTICATED

    async def test_role_mismatch(self, wf, member):
        e = err(await wf.identity.current_actor(Claims(member.actor_id, "admin")))
        assert e.kind is ErrorKind.UNAUTHENTICATED

    async def test_deactivated_actor(self, wf, member):
        ok(await wf.identity.deactivate(member.actor_id))

        e = err(await wf.identity.current_actor(Claims(member.actor_id, "member")))
        assert e.kind is ErrorKind.UNAUTHENTICATED


class TestRegistry:
    async def test_register_assigns_uuid(self, wf):
        actor = ok(await wf.identity.register(Role.SELLER))
        assert actor.role is Role.SELLER
        assert len(actor.actor_id) == 36

    async def test_deactivate_unknown(self, wf):
        e = err(await wf.identity.deactivate("missing"))
        assert e.kind is ErrorKind.NOT_FOUND

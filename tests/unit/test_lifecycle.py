"""
Unit tests for connection teardown.
"""

import pytest


class TestCleanup:

    @pytest.mark.asyncio
    async def test_partner_is_notified_once_and_unpaired(self, lifecycle, registry, connect):
        connect("a")
        b = connect("b")
        registry.bind("a", "b")

        removed = await lifecycle.cleanup("a")

        assert removed.id == "a"
        assert removed.partner_id == "b"
        assert b.sent == ["DISCONNECTED"]
        assert registry.get("b").partner_id is None
        assert "a" not in registry

    @pytest.mark.asyncio
    async def test_second_cleanup_is_a_no_op(self, lifecycle, registry, connect):
        connect("a")
        b = connect("b")
        registry.bind("a", "b")
        await lifecycle.cleanup("a")

        assert await lifecycle.cleanup("a") is None
        assert b.sent == ["DISCONNECTED"]

    @pytest.mark.asyncio
    async def test_unpaired_cleanup_notifies_nobody(self, lifecycle, connect, journal):
        connect("a")
        connect("b")
        await lifecycle.cleanup("a")
        assert journal == []

    @pytest.mark.asyncio
    async def test_unredeemed_code_is_released(self, lifecycle, coordinator, registry, connect):
        connect("host")
        code = await coordinator.handle_open("host")
        await lifecycle.cleanup("host")

        assert registry.snapshot().outstanding_codes == 0
        joiner = connect("joiner")
        assert not await coordinator.handle_join("joiner", code)
        assert joiner.sent == ["ERROR:Invalid or expired code"]

    @pytest.mark.asyncio
    async def test_failed_notification_still_cleans_up(self, lifecycle, registry, connect):
        connect("a")
        connect("b", fail=True)
        registry.bind("a", "b")

        await lifecycle.cleanup("a")

        assert "a" not in registry
        assert registry.get("b").partner_id is None

    @pytest.mark.asyncio
    async def test_both_sides_leaving(self, lifecycle, registry, connect):
        a = connect("a")
        b = connect("b")
        registry.bind("a", "b")

        await lifecycle.cleanup("a")
        await lifecycle.cleanup("b")

        assert b.sent == ["DISCONNECTED"]
        assert a.sent == []
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_survivor_can_pair_again(self, lifecycle, coordinator, registry, connect):
        connect("host")
        code = await coordinator.handle_open("host")
        connect("first")
        await coordinator.handle_join("first", code)
        await lifecycle.cleanup("first")

        new_code = await coordinator.handle_open("host")
        second = connect("second")
        assert await coordinator.handle_join("second", new_code)
        assert second.sent == ["CONNECTED"]
        assert registry.get("host").partner_id == "second"


@pytest.mark.asyncio
async def test_partner_symmetry_holds_through_a_session(lifecycle, coordinator, relay, registry, connect):
    """Every registered partner_id points back, at each step of a session."""

    def assert_symmetric():
        for name in ("host", "joiner", "third"):
            connection = registry.get(name)
            if connection is None or connection.partner_id is None:
                continue
            partner = registry.get(connection.partner_id)
            assert partner is None or partner.partner_id == name

    connect("host")
    connect("joiner")
    connect("third")
    code = await coordinator.handle_open("host")
    assert_symmetric()
    await coordinator.handle_join("joiner", code)
    assert_symmetric()
    await relay.relay("host", "hi")
    await coordinator.handle_join("third", code)
    assert_symmetric()
    await lifecycle.cleanup("joiner")
    assert_symmetric()
    await lifecycle.cleanup("host")
    assert_symmetric()

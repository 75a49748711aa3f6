import asyncio
import json

import pytest

from chanbot.access import AccessControl, AccessLevel, ChannelAccess, build_access_table
from chanbot.config.store import ConfigStore
from chanbot.irc.resolver import AccountLookup
from tests.fixtures.irc_fixtures import (
    MemoryStore,
    StubResolver,
    make_config_data,
    wait_for_line,
)


def test_levels_are_ordered_and_keyed():
    assert (
        AccessLevel.NOT_REGISTERED
        < AccessLevel.NORMAL
        < AccessLevel.MOD
        < AccessLevel.ADMIN
        < AccessLevel.OWNER
    )
    assert AccessLevel.MOD.config_key == "access_mod"
    assert AccessLevel.NORMAL.config_key is None
    assert AccessLevel.NOT_REGISTERED.label == "not-registered"


@pytest.mark.parametrize(
    "text,level",
    [("admin", AccessLevel.ADMIN), ("Moderator", AccessLevel.MOD), ("user", AccessLevel.NORMAL)],
)
def test_level_parse(text, level):
    assert AccessLevel.parse(text) is level


def test_level_parse_rejects_unknown():
    with pytest.raises(ValueError):
        AccessLevel.parse("emperor")


def test_build_table_prefers_higher_tier():
    table = build_access_table({"access_mod": ["Dup"], "access_owner": ["dup"]})
    assert table == {"dup": AccessLevel.OWNER}


class TestAccessTable:
    def setup_method(self):
        self.store = MemoryStore({"access_mod": ["bob"], "access_admin": ["carol"]})
        self.access = AccessControl(self.store)

    @pytest.mark.asyncio
    async def test_resolve_account_defaults_to_normal(self):
        assert await self.access.resolve("nobody", is_nick=False) is AccessLevel.NORMAL
        assert await self.access.resolve("BOB", is_nick=False) is AccessLevel.MOD

    @pytest.mark.asyncio
    async def test_update_normal_removes_record(self):
        assert self.access.update("Bob", AccessLevel.NORMAL) is True
        assert "bob" not in self.access.records
        assert self.store.lists["access_mod"] == []
        assert await self.access.resolve("bob", is_nick=False) is AccessLevel.NORMAL

    def test_update_moves_between_tiers(self):
        assert self.access.update("Carol", AccessLevel.OWNER)
        assert self.store.lists["access_admin"] == []
        assert self.store.lists["access_owner"] == ["carol"]
        assert self.access.level_of("carol") is AccessLevel.OWNER

    def test_update_rejects_not_registered(self):
        assert self.access.update("bob", AccessLevel.NOT_REGISTERED) is False
        assert self.access.level_of("bob") is AccessLevel.MOD

    def test_update_same_level_keeps_lists(self):
        assert self.access.update("bob", AccessLevel.MOD)
        assert self.store.lists["access_mod"] == ["bob"]

    def test_failed_save_leaves_table_unchanged(self):
        def broken_add(key, value):
            raise OSError("disk full")

        self.store.add_to_list = broken_add
        with pytest.raises(OSError):
            self.access.update("bob", AccessLevel.ADMIN)
        assert self.access.level_of("bob") is AccessLevel.MOD
        assert self.store.lists["access_mod"] == ["bob"]


class TestNickResolution:
    def setup_method(self):
        self.resolver = StubResolver(
            {
                "Bob": AccountLookup.resolved("BobAccount"),
                "Ghost": AccountLookup.fault("disconnected"),
            }
        )
        store = MemoryStore({"access_admin": ["bobaccount"]})
        self.access = AccessControl(store, self.resolver)

    @pytest.mark.asyncio
    async def test_logged_in_nick_uses_account(self):
        assert await self.access.resolve("Bob") is AccessLevel.ADMIN

    @pytest.mark.asyncio
    async def test_unresolved_nick_is_not_registered(self):
        assert await self.access.resolve("Stranger") is AccessLevel.NOT_REGISTERED

    @pytest.mark.asyncio
    async def test_fault_is_not_registered(self):
        assert await self.access.resolve("Ghost") is AccessLevel.NOT_REGISTERED


def test_update_persists_to_config_file(tmp_path):
    path = tmp_path / "chanbot.conf"
    path.write_text(json.dumps(make_config_data(access_mod=["bob"])))
    store = ConfigStore(path)
    store.load()
    access = AccessControl(store)

    assert access.update("Dave", AccessLevel.ADMIN)
    assert access.update("bob", AccessLevel.NORMAL)

    saved = json.loads(path.read_text())
    assert saved["access_admin"] == ["adminer", "dave"]
    assert saved["access_mod"] == []


class TestChannelAccess:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "names,expected",
        [
            ("@bob +alice carol", ChannelAccess.VOICE),
            ("~Alice bob", ChannelAccess.OP),
            ("&alice", ChannelAccess.OP),
            ("%alice", ChannelAccess.VOICE),
            ("bob alice", ChannelAccess.NONE),
        ],
    )
    async def test_names_prefix_mapping(self, supervisor, writer, memory_store, names, expected):
        access = AccessControl(memory_store, supervisor.resolver, supervisor)
        task = asyncio.create_task(access.channel_access("Alice", "#chan"))
        assert await wait_for_line(writer, "NAMES") == "NAMES #chan"
        await supervisor.handle_line(f"irc.example.net 353 testbot = #chan :{names}")
        assert await task is expected

    @pytest.mark.asyncio
    async def test_end_of_names_without_match(self, supervisor, writer, memory_store):
        access = AccessControl(memory_store, supervisor.resolver, supervisor)
        task = asyncio.create_task(access.channel_access("alice", "#chan"))
        await wait_for_line(writer, "NAMES")
        await supervisor.handle_line("irc.example.net 353 testbot = #other :@alice")
        await supervisor.handle_line("irc.example.net 353 testbot = #chan :@bob carol")
        await supervisor.handle_line("irc.example.net 366 testbot #chan :End of /NAMES list.")
        assert await task is ChannelAccess.NONE

    @pytest.mark.asyncio
    async def test_transport_fault_is_none(self, supervisor, memory_store):
        supervisor.session.detach()
        access = AccessControl(memory_store, supervisor.resolver, supervisor)
        assert await access.channel_access("alice", "#chan") is ChannelAccess.NONE

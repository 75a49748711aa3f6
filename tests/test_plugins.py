import asyncio
import json

import pytest
import pytest_asyncio

from chanbot.access import AccessLevel
from chanbot.bot import IRCBot
from chanbot.config.store import ConfigStore
from chanbot.errors import MissingConfiguration
from chanbot.irc.models import ConnectionState, ControlKind
from chanbot.irc.parser import parse_message
from chanbot.irc.resolver import AccountLookup
from chanbot.plugins import load_plugin_class
from chanbot.plugins.core import CorePlugin
from tests.fixtures.irc_fixtures import FakeWriter, StubResolver, make_config_data
from tests.fixtures.plugin_fixtures import RecorderPlugin

RECORDER = "tests.fixtures.plugin_fixtures:RecorderPlugin"


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "chanbot.conf"
    path.write_text(json.dumps(make_config_data(plugins=["core", RECORDER])))
    return path


@pytest_asyncio.fixture
async def bot(config_path):
    store = ConfigStore(config_path)
    store.load()
    bot = IRCBot(store)
    bot.supervisor.session.attach(asyncio.StreamReader(), FakeWriter())  # type: ignore[arg-type]
    bot.supervisor.state = ConnectionState.RUNNING
    bot.access.resolver = StubResolver(
        {
            "Owner": AccountLookup.resolved("owner"),
            "Adminer": AccountLookup.resolved("adminer"),
            "Modder": AccountLookup.resolved("modder"),
        }
    )
    bot.plugins.load_all()
    bot.plugins.enable_all()
    yield bot
    bot.plugins.disable_all()


def sent(bot) -> list[str]:
    return bot.supervisor.session.writer.lines


async def say(bot, nick: str, text: str, target: str = "#chan") -> bool:
    return await bot.router.handle(parse_message(f"{nick}!{nick.lower()}@host PRIVMSG {target} :{text}"))


def test_load_builtin_and_dotted_plugins():
    assert load_plugin_class("Core") is CorePlugin
    assert load_plugin_class(RECORDER) is RecorderPlugin


@pytest.mark.parametrize(
    "spec",
    ["unknown", "no.such.module:Thing", "tests.fixtures.plugin_fixtures:NotAPlugin", "os:path"],
)
def test_bad_plugin_specs(spec):
    with pytest.raises(MissingConfiguration):
        load_plugin_class(spec)


@pytest.mark.asyncio
async def test_plugins_enabled_and_commands_registered(bot):
    assert len(bot.plugins) == 2
    assert bot.commands.lookup("core", "join").access is AccessLevel.ADMIN
    assert await say(bot, "Alice", "!recorder hello")
    assert sent(bot) == ["PRIVMSG #chan :hello Alice"]


@pytest.mark.asyncio
async def test_disable_removes_commands_and_saves(bot):
    recorder = bot.plugins.get("recorder")
    bot.plugins.disable_all()
    assert recorder.saves == 1
    assert bot.commands.lookup("recorder", "hello") is None
    assert len(bot.commands) == 0


@pytest.mark.asyncio
async def test_reconnect_hook_saves_enabled_plugins(bot):
    bot.supervisor.on_reconnect()
    assert bot.plugins.get("recorder").saves == 1


@pytest.mark.asyncio
async def test_ping(bot):
    assert await say(bot, "Alice", "!core ping")
    assert sent(bot) == ["PRIVMSG #chan :Alice: pong"]


@pytest.mark.asyncio
async def test_join_requires_admin(bot):
    await say(bot, "Modder", "!core join #new")
    assert sent(bot) == ["NOTICE Modder :Permission denied: 'core join' requires admin."]
    await say(bot, "Owner", "!core join #new")
    assert sent(bot)[-1] == "JOIN #new"


@pytest.mark.asyncio
async def test_part_defaults_to_current_channel(bot):
    await say(bot, "Adminer", "!core part")
    assert sent(bot) == ["PART #chan :"]


@pytest.mark.asyncio
async def test_mute_silences_channel(bot):
    await say(bot, "Modder", "!core mute")
    assert bot.is_muted("#chan")
    await say(bot, "Alice", "!core ping")
    assert not any(line.startswith("PRIVMSG #chan") for line in sent(bot))
    assert sent(bot) == ["NOTICE Modder :#chan is now muted"]


@pytest.mark.asyncio
async def test_access_in_private(bot):
    await say(bot, "Owner", "testbot core access", target="testbot")
    assert sent(bot) == ["NOTICE Owner :Owner: owner"]


@pytest.mark.asyncio
async def test_setaccess_respects_caller_tier(bot, config_path):
    await say(bot, "Adminer", "!core setaccess Dave mod")
    assert bot.access.level_of("dave") is AccessLevel.MOD
    await say(bot, "Adminer", "!core setaccess dave admin")
    assert bot.access.level_of("dave") is AccessLevel.MOD
    assert sent(bot)[-1] == "NOTICE Adminer :Permission denied: cannot set dave to admin"
    await say(bot, "Owner", "!core setaccess dave owner")
    saved = json.loads(config_path.read_text())
    assert "dave" in saved["access_owner"]
    assert "dave" not in saved["access_mod"]


@pytest.mark.asyncio
async def test_setaccess_rejects_bad_level(bot):
    await say(bot, "Owner", "!core setaccess dave emperor")
    assert sent(bot) == ["NOTICE Owner :Unknown access level 'emperor'"]


@pytest.mark.asyncio
async def test_quit_requests_disconnect(bot):
    await say(bot, "Owner", "!core quit maintenance window")
    signal = bot.supervisor._control.get_nowait()
    assert signal.kind is ControlKind.DISCONNECT
    assert signal.reason == "maintenance window"


@pytest.mark.asyncio
async def test_nick_and_raw(bot):
    await say(bot, "Owner", "!core nick chanbot2")
    await say(bot, "Owner", "!core raw MODE #chan +v alice")
    assert sent(bot) == ["NICK chanbot2", "MODE #chan +v alice"]
    assert bot.nick == "chanbot2"
    assert bot.plugin_data_dir.endswith("irc.example.net.6667.chanbot2")


@pytest.mark.asyncio
async def test_help_lists_commands(bot):
    await say(bot, "Alice", "!core help recorder")
    assert sent(bot) == ["NOTICE Alice :!recorder hello"]


@pytest.mark.asyncio
async def test_config_reload_refreshes_access(bot, config_path):
    store = bot.store
    config_path.write_text(json.dumps(make_config_data(access_owner=["newowner"], cmd_prefix="?")))
    config = store.reload()
    bot.on_config_reload(config)
    assert bot.access.level_of("newowner") is AccessLevel.OWNER
    assert bot.access.level_of("owner") is AccessLevel.NORMAL
    assert bot.router.prefix == "?"

import asyncio
import os

import pytest
import pytest_asyncio

# Test-friendly tunables; must be set before chanbot.constants is imported
os.environ.setdefault("RECONNECT_MAX_ATTEMPTS", "2")
os.environ.setdefault("RECONNECT_BACKOFF_BASE", "0")
os.environ.setdefault("RECONNECT_BACKOFF_MAX", "0")
os.environ.setdefault("WELCOME_READ_TIMEOUT", "0.2")
os.environ.setdefault("EXCHANGE_TIMEOUT", "2")
os.environ.setdefault("RELOAD_WATCH_DELAY", "0")

from chanbot.config.model import BotConfig  # noqa: E402
from chanbot.irc.models import ConnectionState  # noqa: E402
from chanbot.irc.supervisor import ConnectionSupervisor  # noqa: E402
from tests.fixtures.irc_fixtures import FakeWriter, MemoryStore, make_config_data  # noqa: E402


@pytest.fixture
def config_data() -> dict:
    return make_config_data()


@pytest.fixture
def bot_config(config_data) -> BotConfig:
    return BotConfig.from_dict(config_data)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore(
        {"access_mod": ["modder"], "access_admin": ["adminer"], "access_owner": ["owner"]}
    )


@pytest.fixture
def writer() -> FakeWriter:
    return FakeWriter()


@pytest_asyncio.fixture
async def supervisor(bot_config, writer):
    """A supervisor in RUNNING state whose stream is in memory."""
    sup = ConnectionSupervisor(bot_config)
    sup.session.attach(asyncio.StreamReader(), writer)  # type: ignore[arg-type]
    sup.state = ConnectionState.RUNNING
    yield sup
    sup.watchdog.stop()
    await sup._cancel_tasks()  # type: ignore[attr-defined]

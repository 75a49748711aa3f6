import asyncio
import json
import os
from pathlib import Path

import pytest

from chanbot.config import BotConfig, ConfigRepository, ConfigStore, ConfigWatcher
from chanbot.config.watcher import ConfigFileHandler
from chanbot.errors import MissingConfiguration
from tests.fixtures.irc_fixtures import make_config_data


def write_config(path: Path, **overrides) -> dict:
    data = make_config_data(**overrides)
    path.write_text(json.dumps(data))
    return data


class TestBotConfig:
    def test_defaults(self):
        config = BotConfig.from_dict(make_config_data())
        assert config.plugin_dir == "plugins"
        assert config.plugins == ["core"]
        assert config.cmd_prefix == "!"

    @pytest.mark.parametrize(
        "key", ["host", "port", "nick", "user", "desc", "channels", "access_mod", "access_admin", "access_owner"]
    )
    def test_missing_required_key(self, key):
        data = make_config_data()
        del data[key]
        with pytest.raises(MissingConfiguration) as exc:
            BotConfig.from_dict(data)
        assert key in str(exc.value)

    def test_plugins_must_contain_core(self):
        with pytest.raises(MissingConfiguration):
            BotConfig.from_dict(make_config_data(plugins=["extras:Plugin"]))

    def test_plugin_specs_keep_case(self):
        config = BotConfig.from_dict(make_config_data(plugins=["Core", "my.pkg:Greeter"]))
        assert config.plugins == ["Core", "my.pkg:Greeter"]

    def test_access_lists_are_normalised(self):
        config = BotConfig.from_dict(make_config_data(access_mod=[" Bob ", "bob", "", "Eve"]))
        assert config.access_mod == ["bob", "eve"]

    def test_channels_deduped(self):
        config = BotConfig.from_dict(make_config_data(channels=["#a", " #a ", "#b"]))
        assert config.channels == ["#a", "#b"]

    def test_invalid_port(self):
        with pytest.raises(MissingConfiguration):
            BotConfig.from_dict(make_config_data(port=0))


class TestConfigRepository:
    def test_missing_and_invalid_files_load_empty(self, tmp_path):
        assert ConfigRepository(tmp_path / "none.conf").load_raw() == {}
        bad = tmp_path / "bad.conf"
        bad.write_text("{not json")
        assert ConfigRepository(bad).load_raw() == {}

    def test_save_skips_unchanged_data(self, tmp_path):
        path = tmp_path / "chanbot.conf"
        data = write_config(path)
        repo = ConfigRepository(path)
        repo.load_raw()
        assert repo.save(data) is False
        data["nick"] = "other"
        assert repo.save(data) is True
        assert json.loads(path.read_text())["nick"] == "other"

    def test_backups_are_rotated(self, tmp_path):
        path = tmp_path / "chanbot.conf"
        data = write_config(path)
        repo = ConfigRepository(path)
        for i in range(6):
            data["desc"] = f"rev {i}"
            repo.save(data)
        backups = list(tmp_path.glob("chanbot.conf.bak.*"))
        assert len(backups) == ConfigRepository.MAX_BACKUPS
        assert not (tmp_path / "chanbot.lock").exists()


class TestConfigStore:
    def test_load_missing_file_raises(self, tmp_path):
        with pytest.raises(MissingConfiguration):
            ConfigStore(tmp_path / "absent.conf").load()

    def test_config_before_load_raises(self, tmp_path):
        with pytest.raises(MissingConfiguration):
            _ = ConfigStore(tmp_path / "absent.conf").config

    def test_list_edits_save_immediately(self, tmp_path):
        path = tmp_path / "chanbot.conf"
        write_config(path)
        store = ConfigStore(path)
        store.load()
        hooks: list[str] = []
        store.before_save = lambda: hooks.append("before")
        store.after_save = lambda: hooks.append("after")

        assert store.add_to_list("access_mod", "zed") is True
        assert store.add_to_list("access_mod", "zed") is False
        assert store.remove_from_list("access_owner", "nobody") is False
        assert hooks == ["before", "after"]
        assert json.loads(path.read_text())["access_mod"] == ["modder", "zed"]

    def test_reload_keeps_config_on_invalid_file(self, tmp_path):
        path = tmp_path / "chanbot.conf"
        write_config(path)
        store = ConfigStore(path)
        store.load()
        path.write_text(json.dumps({"host": "only"}))
        assert store.reload() is None
        assert store.config.host == "irc.example.net"

    def test_get_list_rejects_scalar_keys(self, tmp_path):
        path = tmp_path / "chanbot.conf"
        write_config(path)
        store = ConfigStore(path)
        store.load()
        with pytest.raises(KeyError):
            store.get_list("host")


class TestConfigWatcher:
    @pytest.mark.asyncio
    async def test_reload_is_scheduled_on_loop(self, tmp_path):
        path = tmp_path / "chanbot.conf"
        write_config(path)
        store = ConfigStore(path)
        store.load()
        reloaded: list[BotConfig] = []
        watcher = ConfigWatcher(store, reloaded.append, asyncio.get_running_loop())

        write_config(path, access_owner=["newowner"])
        watcher.on_config_changed()
        await asyncio.sleep(0)
        assert reloaded and reloaded[0].access_owner == ["newowner"]

    @pytest.mark.asyncio
    async def test_paused_watcher_ignores_own_saves(self, tmp_path):
        path = tmp_path / "chanbot.conf"
        write_config(path)
        store = ConfigStore(path)
        store.load()
        watcher = ConfigWatcher(store, lambda config: None, asyncio.get_running_loop())
        handler = ConfigFileHandler(str(path), watcher)
        calls: list[bool] = []
        watcher.on_config_changed = lambda: calls.append(True)  # type: ignore[method-assign]

        watcher.pause_watching()
        handler._handle_event(str(path))
        assert calls == []
        watcher.paused = False
        handler._handle_event(str(path))
        assert calls == []

        os.utime(path, (handler.last_modified + 5, handler.last_modified + 5))
        handler._handle_event(str(path))
        handler._handle_event(str(tmp_path / "other.conf"))
        assert calls == [True]
        watcher.stop()

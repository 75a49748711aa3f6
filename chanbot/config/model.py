from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..constants import DEFAULT_COMMAND_PREFIX, DEFAULT_PLUGIN_DIR
from ..errors import MissingConfiguration


def _normalize_names(names: list[str] | Any) -> list[str]:
    """Lowercase, strip and dedupe a list of account names, keeping order."""
    if not isinstance(names, list):
        raise ValueError("must be a list")
    cleaned = (str(n).strip().lower() for n in names if n is not None)
    return list(dict.fromkeys(n for n in cleaned if n))


class BotConfig(BaseModel):
    """Connection, identity and access configuration for one bot.

    Attributes:
        host: IRC server host name.
        port: IRC server port.
        nick: Nick to register with.
        user: Username sent in USER.
        desc: Realname / description sent in USER.
        channels: Channels joined after the welcome numeric.
        access_mod: Accounts holding the moderator tier.
        access_admin: Accounts holding the administrator tier.
        access_owner: Accounts holding the owner tier.
        plugin_dir: Base directory for plugin data.
        plugins: Plugins to enable; must contain ``core``.
        cmd_prefix: Prefix marking a command invocation.
    """

    model_config = ConfigDict(extra="allow")

    host: str = Field(min_length=1)
    port: int = Field(gt=0, lt=65536)
    nick: str = Field(min_length=1)
    user: str = Field(min_length=1)
    desc: str
    channels: list[str]
    access_mod: list[str]
    access_admin: list[str]
    access_owner: list[str]
    plugin_dir: str = DEFAULT_PLUGIN_DIR
    plugins: list[str] = Field(default_factory=lambda: ["core"])
    cmd_prefix: str = Field(default=DEFAULT_COMMAND_PREFIX, min_length=1)

    @field_validator("channels", mode="before")
    @classmethod
    def validate_channels(cls, v: Any) -> list[str]:
        """Strip whitespace, drop empties and dedupe; channel names keep their sigil."""
        if not isinstance(v, list):
            raise ValueError("channels must be a list")
        stripped = (c.strip() for c in v if isinstance(c, str))
        return list(dict.fromkeys(c for c in stripped if c))

    @field_validator("access_mod", "access_admin", "access_owner", mode="before")
    @classmethod
    def validate_access_list(cls, v: Any) -> list[str]:
        return _normalize_names(v)

    @field_validator("plugins", mode="before")
    @classmethod
    def validate_plugins(cls, v: Any) -> list[str]:
        """Plugin specs keep their case: ``module:Class`` names are imported."""
        if not isinstance(v, list):
            raise ValueError("must be a list")
        stripped = (str(p).strip() for p in v if p is not None)
        names = list(dict.fromkeys(p for p in stripped if p))
        if "core" not in (n.lower() for n in names):
            raise ValueError("plugin list needs to contain the core plugin")
        return names

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BotConfig:
        """Validate raw configuration data.

        Raises:
            MissingConfiguration: If a required key is missing or a value is invalid.
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
            raise MissingConfiguration(
                f"Invalid configuration ({problems})",
                data={"errors": e.errors(include_url=False)},
            ) from e

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()

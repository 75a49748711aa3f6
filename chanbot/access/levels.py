"""Bot privilege tiers and channel membership levels."""

from __future__ import annotations

from enum import Enum, IntEnum


class AccessLevel(IntEnum):
    """Ordered bot privilege tiers; comparisons follow privilege."""

    NOT_REGISTERED = 0
    NORMAL = 1
    MOD = 2
    ADMIN = 3
    OWNER = 4

    @property
    def config_key(self) -> str | None:
        """Config list holding accounts of this tier, or None if never persisted."""
        return ACCESS_CONFIG_KEYS.get(self)

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")

    @classmethod
    def parse(cls, value: str) -> AccessLevel:
        """Parse user input such as ``admin``, ``Mod`` or ``not-registered``.

        Raises:
            ValueError: If ``value`` names no tier.
        """
        key = value.strip().upper().replace("-", "_")
        key = _ALIASES.get(key, key)
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown access level '{value}'") from None


ACCESS_CONFIG_KEYS: dict[AccessLevel, str] = {
    AccessLevel.MOD: "access_mod",
    AccessLevel.ADMIN: "access_admin",
    AccessLevel.OWNER: "access_owner",
}

_ALIASES = {
    "MODERATOR": "MOD",
    "ADMINISTRATOR": "ADMIN",
    "USER": "NORMAL",
}


class ChannelAccess(Enum):
    NONE = "none"
    VOICE = "voice"
    OP = "op"


# Leading NAMES prefixes mapped to the channel level they grant
MODE_PREFIXES: dict[str, ChannelAccess] = {
    "~": ChannelAccess.OP,
    "&": ChannelAccess.OP,
    "@": ChannelAccess.OP,
    "%": ChannelAccess.VOICE,
    "+": ChannelAccess.VOICE,
}

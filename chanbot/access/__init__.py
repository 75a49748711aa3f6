"""Access control: privilege tiers, channel levels and the mute set."""

from .control import AccessControl, AccessStore, build_access_table
from .levels import ACCESS_CONFIG_KEYS, AccessLevel, ChannelAccess
from .mute import MuteSet

__all__ = [
    "ACCESS_CONFIG_KEYS",
    "AccessControl",
    "AccessLevel",
    "AccessStore",
    "ChannelAccess",
    "MuteSet",
    "build_access_table",
]

"""chanbot - an asyncio IRC channel bot with account-based access control."""

__version__ = "1.0.0"

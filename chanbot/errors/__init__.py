"""Error hierarchy and error logging helpers."""

from .internal import (  # noqa: F401
    ExchangeAborted,
    InternalError,
    MalformedLine,
    MissingConfiguration,
    TransportFault,
)

__all__ = [
    "InternalError",
    "TransportFault",
    "ExchangeAborted",
    "MalformedLine",
    "MissingConfiguration",
]

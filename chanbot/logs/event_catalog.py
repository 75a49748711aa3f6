"""Human-readable text for ``(domain, action)`` log events.

Templates live in ``event_templates.json`` next to this module, grouped as
``{"domain": {"action": "template with {fields}"}}``.
"""

from __future__ import annotations

import json
from pathlib import Path

TEMPLATE_FILE = Path(__file__).with_name("event_templates.json")

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def _flatten(raw: object) -> dict[tuple[str, str], str]:
    if not isinstance(raw, dict):
        raise ValueError("template file must hold an object of domains")
    return {
        (domain, action): template
        for domain, actions in raw.items()
        if isinstance(actions, dict)
        for action, template in actions.items()
        if isinstance(template, str)
    }


def reload_event_templates(path: Path = TEMPLATE_FILE) -> None:
    """Re-read the template file, updating EVENT_TEMPLATES in place.

    A broken file leaves a single ``app.load_error`` entry so the failure
    shows up in the log instead of crashing the bot.
    """
    try:
        templates = _flatten(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        templates = {("app", "load_error"): f"Event templates unavailable: {e}"[:200]}
    EVENT_TEMPLATES.clear()
    EVENT_TEMPLATES.update(templates)


reload_event_templates()

__all__ = ["EVENT_TEMPLATES", "TEMPLATE_FILE", "reload_event_templates"]

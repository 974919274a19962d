"""Registry notification decoding."""

from __future__ import annotations

import json
from typing import Any

from pushrelay.webhooks.models import RegistryEvent, RegistryNotification


class NotificationError(ValueError):
    """The inbound body is not a registry notification."""


def decode_notification(body: bytes | str) -> RegistryNotification:
    """Decode a raw request body into a RegistryNotification.

    Raises NotificationError for malformed JSON or an unexpected shape.
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as exc:
        raise NotificationError(f"invalid JSON: {exc}") from exc
    return parse_notification(payload)


def parse_notification(payload: Any) -> RegistryNotification:
    """Build a RegistryNotification from an already-decoded JSON value.

    Registry payloads carry many more fields (digest, media type, actor,
    request); only action, repository and tag are kept.
    """
    if not isinstance(payload, dict):
        raise NotificationError("notification must be a JSON object")
    raw_events = payload.get("events")
    if not isinstance(raw_events, list):
        raise NotificationError("notification has no 'events' list")

    events = [_parse_event(i, raw) for i, raw in enumerate(raw_events)]
    return RegistryNotification(events=events)


def _parse_event(index: int, raw: Any) -> RegistryEvent:
    if not isinstance(raw, dict):
        raise NotificationError(f"event {index} is not an object")
    action = raw.get("action")
    target = raw.get("target")
    if not isinstance(action, str):
        raise NotificationError(f"event {index} has no string 'action'")
    if not isinstance(target, dict):
        raise NotificationError(f"event {index} has no 'target' object")
    repository = target.get("repository")
    if not isinstance(repository, str):
        raise NotificationError(f"event {index} has no string 'target.repository'")
    tag = target.get("tag")
    if tag is not None and not isinstance(tag, str):
        raise NotificationError(f"event {index} has a non-string 'target.tag'")
    return RegistryEvent(action=action, repository=repository, tag=tag)

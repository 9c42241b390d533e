"""Inbound deep-link triggers."""

from enum import StrEnum
from urllib.parse import urlsplit


class DeepLinkAction(StrEnum):
    """Actions external code can trigger by URL."""

    OPEN_CAMERA = "open_camera"


_HOST_ACTIONS = {"camera": DeepLinkAction.OPEN_CAMERA}


def parse_deep_link(url: str, scheme: str) -> DeepLinkAction | None:
    """Return the action for a `<scheme>://<host>` URL, or None if unknown."""
    parts = urlsplit(url.strip())
    if parts.scheme.lower() != scheme.lower():
        return None
    return _HOST_ACTIONS.get(parts.netloc.lower())

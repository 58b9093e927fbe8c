"""
Roles, capabilities and the caller identity.

Role gating is decided here and nowhere else: handlers ask for a capability,
never compare role strings themselves.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet

from music_library.errors import ForbiddenError


class Role(str, enum.Enum):
    ARTIST = "artist"
    LISTENER = "listener"


class Capability(str, enum.Enum):
    MANAGE_ALBUMS = "albums:manage"


ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.ARTIST: frozenset({Capability.MANAGE_ALBUMS}),
    Role.LISTENER: frozenset(),
}


def normalize_role(role: str) -> str:
    """Lower-case and trim a role string; blank means listener."""
    cleaned = (role or "").strip().lower()
    return cleaned or Role.LISTENER.value


# PUBLIC_INTERFACE
def capabilities_for(role: str) -> FrozenSet[Capability]:
    """Return the capability set of a role string. Unknown roles get none."""
    try:
        return ROLE_CAPABILITIES[Role(normalize_role(role))]
    except ValueError:
        return frozenset()


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, as resolved by the access guard."""

    user_id: int
    role: str

    def can(self, capability: Capability) -> bool:
        return capability in capabilities_for(self.role)


# PUBLIC_INTERFACE
def require_capability(identity: Identity, capability: Capability, action: str) -> None:
    """
    Raise ForbiddenError unless `identity` holds `capability`.

    `action` completes the message, e.g. "create albums" -> "Only artists can create albums."
    """
    if identity.can(capability):
        return
    granted = sorted(role.value for role, caps in ROLE_CAPABILITIES.items() if capability in caps)
    holders = " or ".join(f"{name}s" for name in granted) or "no role"
    raise ForbiddenError(f"Only {holders} can {action}.")

"""
Roster draft normalization.

The roster agent returns loosely shaped JSON: camelCase or snake_case
keys, a single "name" field instead of a split name, a bare object
instead of a list. Each entry is wrapped in a RosterDraft and read only
through resolve_field() with a fixed key priority list.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from signal_scout.scout.config import CANONICAL_ROLES, MAX_ROSTER_SIZE
from signal_scout.scout.types import RosterMember

logger = logging.getLogger(__name__)

FIRST_NAME_KEYS = ("firstName", "first_name")
LAST_NAME_KEYS = ("lastName", "last_name")
FULL_NAME_KEYS = ("name", "full_name", "fullName")
TITLE_KEYS = ("jobTitle", "job_title", "role")
NORMALIZED_ROLE_KEYS = ("normalizedRole", "normalized_role")
AVATAR_KEYS = ("avatarUrl", "avatar_url")


@dataclass
class RosterDraft:
    """One roster agent entry before normalization, in block order."""
    index: int
    raw: Dict[str, Any] = field(default_factory=dict)

    def resolve_field(self, keys: Sequence[str]) -> Optional[str]:
        """First non-blank string value among the given keys, stripped."""
        for key in keys:
            value = self.raw.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    @property
    def avatar_url(self) -> Optional[str]:
        return self.resolve_field(AVATAR_KEYS)


def drafts_from_response(parsed: Optional[Dict[str, Any]]) -> List[RosterDraft]:
    """
    Pull roster entries out of the agent's JSON.

    Accepts {"roster": [...]} or {"roster": {...}}; non-object entries
    become empty drafts so block indexes stay aligned.
    """
    if not parsed:
        return []
    roster = parsed.get("roster")
    if isinstance(roster, dict):
        entries = [roster]
    elif isinstance(roster, list):
        entries = roster
    else:
        return []

    return [
        RosterDraft(index=i, raw=entry if isinstance(entry, dict) else {})
        for i, entry in enumerate(entries[:MAX_ROSTER_SIZE])
    ]


def pick_name(draft: RosterDraft) -> Tuple[str, str]:
    """
    (first, last) from a split name, else from the first word of a full name.

    Returns ("", "") when no name can be found.
    """
    first = draft.resolve_field(FIRST_NAME_KEYS)
    if first:
        return first, draft.resolve_field(LAST_NAME_KEYS) or ""

    full = draft.resolve_field(FULL_NAME_KEYS)
    if full:
        parts = full.split()
        return parts[0], " ".join(parts[1:])

    return "", ""


def normalize_role_fallback(title: Optional[str]) -> Optional[str]:
    """Map a raw title onto a canonical role, or return it trimmed."""
    if not title or not title.strip():
        return None
    lowered = title.lower().strip()
    for canonical, variants in CANONICAL_ROLES.items():
        if any(variant in lowered for variant in variants):
            return canonical
    return title.strip()


def resolve_job_title(draft: RosterDraft) -> Optional[str]:
    """Agent's normalized role when a raw title exists, else the local mapping."""
    raw_title = draft.resolve_field(TITLE_KEYS)
    if not raw_title:
        return None
    return draft.resolve_field(NORMALIZED_ROLE_KEYS) or normalize_role_fallback(raw_title) or raw_title


def normalize_roster(
    drafts: List[RosterDraft],
    avatars: Sequence[Optional[str]],
) -> List[RosterMember]:
    """
    Build final roster members.

    Args:
        drafts: Agent entries in block order
        avatars: Avatar for each draft index, already vetted

    Returns:
        Members with a non-empty first name, at most MAX_ROSTER_SIZE
    """
    members = []
    skipped = 0
    for draft in drafts[:MAX_ROSTER_SIZE]:
        first, last = pick_name(draft)
        if not first:
            skipped += 1
            continue
        avatar = avatars[draft.index] if draft.index < len(avatars) else None
        members.append(RosterMember(
            first_name=first,
            last_name=last,
            job_title=resolve_job_title(draft),
            avatar_url=avatar,
            email=None,
        ))

    if skipped:
        logger.debug(f"[Roster] Dropped {skipped} entries without a first name")
    return members

"""
Master merge: reconciles harvested evidence with agent output.

Trust policy for contact facts: an email or phone proposed by JSON-LD or
the contact agent is only accepted when the page itself yielded a mailto,
tel, or regex-matched email/phone. Otherwise both fields are null.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from signal_scout.scout.config import (
    ACHROMATIC_MAX_AVERAGE,
    ACHROMATIC_MIN_AVERAGE,
    ACHROMATIC_MIN_SPREAD,
    DEFAULT_BRAND_COLOR,
    MAX_TAG_LENGTH,
)
from signal_scout.scout.harvesters import digits_only, is_valid_phone, parse_json_ld_address
from signal_scout.scout.html_cleaner import to_absolute_url
from signal_scout.scout.types import (
    Address,
    EntityType,
    PageEvidence,
    RosterMember,
    ScoutResult,
)

logger = logging.getLogger(__name__)

HEX_PATTERN = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)
ADDRESS_FIELDS = ("street", "city", "state", "postal_code", "country")


def _string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# =============================================================================
# CONTACT
# =============================================================================


def pick_support_email(evidence: PageEvidence, contact: Dict[str, Any]) -> Optional[str]:
    """Harvested email, then JSON-LD, then the contact agent; None without scraped evidence."""
    if not evidence.has_scraped_contact:
        return None
    candidates = [
        evidence.mailtos[0] if evidence.mailtos else None,
        next((cp.email for cp in evidence.contact_points if cp.email), None),
        _string(evidence.json_ld.get("email")),
        _string(contact.get("supportEmail")),
    ]
    return next((c for c in candidates if c), None)


def pick_phone(evidence: PageEvidence, contact: Dict[str, Any]) -> Optional[str]:
    """First valid phone in evidence order; None without scraped evidence."""
    if not evidence.has_scraped_contact:
        return None
    candidates = [
        evidence.tels[0] if evidence.tels else None,
        next((cp.phone for cp in evidence.contact_points if cp.phone), None),
        _string(evidence.json_ld.get("telephone")),
        _string(contact.get("phone")),
    ]
    return next((c for c in candidates if c and is_valid_phone(digits_only(c))), None)


def address_from_agent(value: Any) -> Optional[Address]:
    if not isinstance(value, dict):
        return None
    address = Address(**{f: _string(value.get(f)) for f in ADDRESS_FIELDS})
    return None if address.is_empty() else address


def address_seen_in_text(address: Address, text: str) -> bool:
    """True when at least one address component occurs in the given text."""
    haystack = (text or "").lower()
    return any(
        part.lower() in haystack
        for part in (getattr(address, f) for f in ADDRESS_FIELDS)
        if part
    )


def pick_address(evidence: PageEvidence, contact: Dict[str, Any]) -> Optional[Address]:
    """JSON-LD address first; an agent address only if the page text supports it."""
    address = parse_json_ld_address(evidence.json_ld.get("address"))
    if address:
        return address

    proposed = address_from_agent(contact.get("address"))
    if proposed is None:
        return None
    if not address_seen_in_text(proposed, f"{evidence.footer_text} {evidence.clean_text}"):
        logger.info("[MasterMerge] Discarding agent address with no support in page text")
        return None
    return proposed


# =============================================================================
# IDENTITY
# =============================================================================


def to_hex(value: Optional[str]) -> str:
    """
    Normalize a colour to lowercase #rrggbb.

    Accepts "abc", "#abc", "aabbcc" and "#aabbcc"; returns '' for
    anything else.
    """
    raw = (value or "").strip()
    if not raw:
        return ""
    if not raw.startswith("#"):
        raw = "#" + raw
    if not HEX_PATTERN.match(raw):
        return ""
    raw = raw.lower()
    if len(raw) == 4:
        raw = "#" + "".join(ch * 2 for ch in raw[1:])
    return raw


def is_achromatic(color: str) -> bool:
    """Near-black, near-white or low-saturation colours (and unparseable input)."""
    hex_color = to_hex(color)
    if not hex_color:
        return True
    r, g, b = (int(hex_color[i:i + 2], 16) for i in (1, 3, 5))
    average = (r + g + b) / 3
    spread = max(r, g, b) - min(r, g, b)
    return (
        average < ACHROMATIC_MIN_AVERAGE
        or average > ACHROMATIC_MAX_AVERAGE
        or spread < ACHROMATIC_MIN_SPREAD
    )


def pick_brand_color(
    agent_color: Optional[str],
    theme_color: Optional[str],
    default: str = DEFAULT_BRAND_COLOR,
) -> str:
    for candidate in (agent_color, theme_color):
        hex_color = to_hex(candidate)
        if hex_color and not is_achromatic(hex_color):
            return hex_color
    return default


def json_ld_logo(json_ld: Dict[str, Any]) -> Optional[str]:
    logo = json_ld.get("logo")
    if isinstance(logo, dict):
        return _string(logo.get("url"))
    return _string(logo)


def pick_logo(evidence: PageEvidence) -> Optional[str]:
    """Share image, then JSON-LD logo, then icon; always absolute."""
    for candidate in (evidence.meta.image, json_ld_logo(evidence.json_ld), evidence.meta.icon):
        if candidate:
            return to_absolute_url(evidence.url, candidate) or None
    return None


def pick_name(evidence: PageEvidence, identity: Dict[str, Any]) -> Optional[str]:
    return (
        _string(identity.get("name"))
        or _string(evidence.json_ld.get("name"))
        or evidence.meta.title
        or evidence.h1_text
        or None
    )


def pick_entity_type(identity: Dict[str, Any]) -> EntityType:
    if identity.get("entityType") == EntityType.SINGLE_OPERATOR.value:
        return EntityType.SINGLE_OPERATOR
    return EntityType.ORGANIZATION


# =============================================================================
# TAGS
# =============================================================================


def resolve_tags(proposed: Iterable[Any], existing: Sequence[str]) -> List[str]:
    """
    Reconcile agent tags with the caller's tag vocabulary.

    Matching is case-insensitive and the existing casing wins; duplicates,
    blanks and tags over MAX_TAG_LENGTH are dropped.
    """
    canonical = {t.strip().lower(): t for t in existing if isinstance(t, str) and t.strip()}
    seen = set()
    resolved = []
    for tag in proposed:
        if not isinstance(tag, str):
            continue
        tag = tag.strip()
        if not tag or len(tag) > MAX_TAG_LENGTH:
            continue
        chosen = canonical.get(tag.lower(), tag)
        if chosen.lower() in seen:
            continue
        seen.add(chosen.lower())
        resolved.append(chosen)
    return resolved


# =============================================================================
# MERGE
# =============================================================================


def absolutize_roster(members: Sequence[RosterMember], base_url: str) -> Optional[List[RosterMember]]:
    """Absolute avatar URLs; None when there is nobody to report."""
    if not members:
        return None
    return [
        m.model_copy(update={
            "avatar_url": to_absolute_url(base_url, m.avatar_url) or None if m.avatar_url else None,
        })
        for m in members
    ]


def merge_results(
    evidence: PageEvidence,
    contact: Dict[str, Any],
    identity: Dict[str, Any],
    classification: Dict[str, Any],
    roster: Sequence[RosterMember],
    existing_tags: Sequence[str] = (),
    roster_base_url: Optional[str] = None,
) -> ScoutResult:
    """
    Build the final ScoutResult.

    Args:
        evidence: Harvested seed-page evidence
        contact: Contact agent output ({} on failure)
        identity: Identity agent output ({} on failure)
        classification: Classification agent output ({} on failure)
        roster: Normalized roster members
        existing_tags: Caller's tag vocabulary
        roster_base_url: Page the roster came from, for resolving avatars
    """
    if not evidence.has_scraped_contact and (
        contact.get("supportEmail") or contact.get("phone")
        or evidence.json_ld.get("email") or evidence.json_ld.get("telephone")
        or evidence.contact_points
    ):
        logger.info("[MasterMerge] No scraped contact evidence; discarding proposed email/phone")

    tags = classification.get("tags")
    result = ScoutResult(
        name=pick_name(evidence, identity),
        doing_business_as=_string(identity.get("doingBusinessAs")),
        entity_type=pick_entity_type(identity),
        brand_color=pick_brand_color(_string(identity.get("brandColor")), evidence.meta.theme_color),
        logo_url=pick_logo(evidence),
        website=evidence.url,
        support_email=pick_support_email(evidence, contact),
        phone=pick_phone(evidence, contact),
        address=pick_address(evidence, contact),
        tags=resolve_tags(tags, existing_tags) if isinstance(tags, list) else [],
        roster=absolutize_roster(roster, roster_base_url or evidence.url),
    )

    logger.info(
        f"[MasterMerge] {evidence.url}: name={result.name!r}, "
        f"{len(result.tags)} tags, {len(result.roster or [])} roster members"
    )
    return result

"""
Signal Scout - entity intelligence extraction from public websites.

Given a website URL, produces a best-effort profile of the organization
behind it: brand identity, contact details, capability tags and a roster
of named people.

Usage:
    from signal_scout import extract_entity

    outcome = await extract_entity("neonvelvet.com", existing_tags=["Catering"])
    if outcome.success:
        print(outcome.data.model_dump(by_alias=True))
"""

from signal_scout.scout.pipeline import EntityScout, extract_entity
from signal_scout.scout.types import (
    ScoutResult,
    ScoutSuccess,
    ScoutFailure,
    ScoutOutcome,
    RosterMember,
)

__all__ = [
    "EntityScout",
    "extract_entity",
    "ScoutResult",
    "ScoutSuccess",
    "ScoutFailure",
    "ScoutOutcome",
    "RosterMember",
]

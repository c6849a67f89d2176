"""
Scout - entity extraction from a single website.

Key Components:
- types.py: Pydantic models for pipeline intermediates and the result envelope
- config.py: Keyword weights, selectors, thresholds, role table, prompts
- html_cleaner.py: HTML parsing, text collapsing, URL resolution
- harvesters.py: Deterministic mailto/tel/email/phone/JSON-LD/meta harvest
- page_finder.py: Bloodhound team page discovery
- cluster_scanner.py: One-person block extraction
- agents.py: Contact, identity, classification and roster agents
- roster.py: Roster draft normalization
- avatar_assigner.py: Avatar assignment (body fallback disabled by default)
- master_merge.py: Trust policy and final result assembly
- pipeline.py: EntityScout orchestrator

Usage:
    from signal_scout.scout import EntityScout

    scout = EntityScout()
    outcome = await scout.scout("https://neonvelvet.com", existing_tags=["Catering"], debug=True)
"""

from signal_scout.scout.pipeline import EntityScout, extract_entity
from signal_scout.scout.types import (
    AvatarFallbackStrategy,
    EntityType,
    ScoutDebug,
    ScoutResult,
    ScoutSuccess,
    ScoutFailure,
)

__all__ = [
    "EntityScout",
    "extract_entity",
    "AvatarFallbackStrategy",
    "EntityType",
    "ScoutDebug",
    "ScoutResult",
    "ScoutSuccess",
    "ScoutFailure",
]

"""
Scout pipeline orchestrator.

One sequential stage feeds one fan-out/join stage:

    fetch seed -> harvest
        |-> contact agent
        |-> identity agent
        |-> classification agent
        |-> roster hunter: Bloodhound -> cluster scanner -> roster agent -> avatars
    join -> master merge -> ScoutOutcome

Only a failed seed fetch (or missing LLM configuration) produces a
ScoutFailure; every other problem degrades the affected fields.
"""

import asyncio
import json
import logging
import re
from typing import List, Optional, Sequence

import httpx

from signal_scout.agentic.llm_client import LLMClient, get_llm_client
from signal_scout.core.api_errors import ConfigurationError, FetchError
from signal_scout.core.config import Settings, get_settings
from signal_scout.core.http_client import PageFetcher
from signal_scout.scout.agents import ScoutAgents
from signal_scout.scout.avatar_assigner import (
    assign_avatars,
    block_avatars,
    build_avatar_debug,
    is_body_fallback,
)
from signal_scout.scout.cluster_scanner import scan_blocks
from signal_scout.scout.harvesters import harvest_page
from signal_scout.scout.master_merge import merge_results
from signal_scout.scout.page_finder import PageFinder
from signal_scout.scout.roster import drafts_from_response, normalize_roster
from signal_scout.scout.types import (
    AvatarFallbackStrategy,
    RosterOutcome,
    ScoutDebug,
    ScoutFailure,
    ScoutOutcome,
    ScoutSuccess,
)

logger = logging.getLogger(__name__)

SEED_FETCH_ERROR = "Could not access site."
UNEXPECTED_ERROR = "Signal lost. Target scrambled."
PREVIEW_CHARS = 120


def normalize_url(url: str) -> str:
    """Trim and prefix https:// when no scheme is present."""
    url = (url or "").strip()
    if url and not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", url):
        url = f"https://{url}"
    return url


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    return text if len(text) <= limit else text[:limit - 3] + "..."


class EntityScout:
    """
    Extracts a ScoutResult for a website.

    Holds no state between runs; one instance may serve many concurrent
    scout() calls.

    Usage:
        scout = EntityScout()
        outcome = await scout.scout("neonvelvet.com", existing_tags=["Catering"])
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        avatar_strategy: AvatarFallbackStrategy = AvatarFallbackStrategy.NONE,
    ):
        """
        Args:
            llm_client: Completion client (built from settings when omitted)
            settings: Settings instance (defaults to get_settings())
            transport: Optional httpx transport for every page fetch
            avatar_strategy: Body-fallback avatar strategy
        """
        self.settings = settings or get_settings()
        self.llm_client = llm_client
        self.transport = transport
        self.avatar_strategy = AvatarFallbackStrategy(avatar_strategy)

    def _resolve_llm_client(self) -> LLMClient:
        if self.llm_client is not None:
            return self.llm_client
        self.settings.require_llm_api_key()
        client = get_llm_client(settings=self.settings)
        if client is None:
            raise ConfigurationError(
                "LLM API key not configured. Add OPENAI_API_KEY (or ANTHROPIC_API_KEY) "
                "to your .env file or environment variables.",
                source="config",
            )
        return client

    def _build_agents(self, client: LLMClient) -> ScoutAgents:
        # Model names in settings are OpenAI models; other providers keep their defaults
        if client.provider == "openai":
            return ScoutAgents(
                client,
                agent_model=self.settings.scout_agent_model,
                roster_model=self.settings.scout_roster_model,
            )
        return ScoutAgents(client)

    async def _hunt_roster(
        self,
        fetcher: PageFetcher,
        agents: ScoutAgents,
        seed_url: str,
        seed_html: str,
    ) -> RosterOutcome:
        """Bloodhound -> cluster scanner -> roster agent -> avatar assignment."""
        team_page = await PageFinder(fetcher).locate(seed_url, seed_html)
        scan = scan_blocks(team_page.html, team_page.url)
        outcome = RosterOutcome(
            team_page_url=team_page.url,
            scan=scan,
            block_avatars=block_avatars(scan.blocks),
        )
        if not scan.blocks:
            return outcome

        drafts = drafts_from_response(await agents.roster(scan.blocks, team_page.url))
        avatars = assign_avatars(scan, drafts, self.avatar_strategy)
        outcome.members = normalize_roster(drafts, avatars)
        logger.info(
            f"[EntityScout] Roster: {len(drafts)} drafts -> {len(outcome.members)} members "
            f"from {team_page.url}"
        )
        return outcome

    async def _hunt_roster_soft(
        self,
        fetcher: PageFetcher,
        agents: ScoutAgents,
        seed_url: str,
        seed_html: str,
    ) -> RosterOutcome:
        try:
            return await self._hunt_roster(fetcher, agents, seed_url, seed_html)
        except Exception as e:
            logger.warning(f"[EntityScout] Roster hunt failed: {type(e).__name__}: {e}", exc_info=True)
            return RosterOutcome(team_page_url=seed_url)

    def _build_debug(self, seed_url: str, roster: RosterOutcome) -> ScoutDebug:
        scan = roster.scan
        body_fallback = is_body_fallback(scan.blocks, roster.block_avatars)
        team_page_found = roster.team_page_url != seed_url

        notes: List[str] = []
        if not team_page_found:
            notes.append("No team page fetched; scanned the seed page.")
        if not scan.blocks:
            notes.append("No candidate blocks found.")
        if body_fallback:
            notes.append("Body fallback: avatar assignment disabled.")
        if scan.blocks and not roster.members:
            notes.append("Team page found, nobody extracted.")

        return ScoutDebug(
            team_page_url=roster.team_page_url,
            team_page_found=team_page_found,
            block_count=len(scan.blocks),
            blocks_with_image=sum(1 for a in roster.block_avatars if a),
            block_avatars=roster.block_avatars,
            block_previews=[preview(b.text) for b in scan.blocks],
            body_fallback=body_fallback,
            roster_count=len(roster.members),
            notes=notes,
            **build_avatar_debug(scan, roster.members, self.avatar_strategy),
        )

    async def _run(self, url: str, existing_tags: Sequence[str], debug: bool) -> ScoutOutcome:
        try:
            client = self._resolve_llm_client()
        except ConfigurationError as e:
            logger.error(f"[EntityScout] {e.message}")
            return ScoutFailure(error=e.message)

        async with PageFetcher(
            timeout=self.settings.scout_fetch_timeout,
            user_agent=self.settings.scout_user_agent,
            transport=self.transport,
        ) as fetcher:
            try:
                html = await fetcher.fetch(url)
            except FetchError as e:
                logger.warning(f"[EntityScout] Seed fetch failed for {url}: {e}")
                return ScoutFailure(error=SEED_FETCH_ERROR, detail=str(e))

            evidence = harvest_page(html, url)
            agents = self._build_agents(client)

            contact, identity, classification, roster = await asyncio.gather(
                agents.contact(evidence),
                agents.identity(evidence),
                agents.classification(evidence),
                self._hunt_roster_soft(fetcher, agents, url, html),
            )

        result = merge_results(
            evidence,
            contact=contact,
            identity=identity,
            classification=classification,
            roster=roster.members,
            existing_tags=existing_tags,
            roster_base_url=roster.team_page_url,
        )

        debug_payload = None
        if debug:
            debug_payload = self._build_debug(url, roster)
            logger.info(
                "[EntityScout] Debug: "
                + json.dumps(debug_payload.model_dump(by_alias=True, exclude_none=True), indent=2)
            )

        return ScoutSuccess(data=result, debug=debug_payload)

    async def scout(
        self,
        url: str,
        existing_tags: Optional[Sequence[str]] = None,
        debug: Optional[bool] = None,
    ) -> ScoutOutcome:
        """
        Run the full pipeline for one URL.

        Args:
            url: Website URL; https:// is assumed when no scheme is given
            existing_tags: Caller's tag vocabulary for case-insensitive reconciliation
            debug: Attach diagnostics (defaults to the SCOUT_DEBUG setting)

        Returns:
            ScoutSuccess or ScoutFailure; never raises
        """
        target = normalize_url(url)
        if debug is None:
            debug = self.settings.scout_debug
        logger.info(f"[EntityScout] Scouting {target}")

        try:
            return await self._run(target, list(existing_tags or []), debug)
        except Exception as e:
            logger.exception(f"[EntityScout] Unexpected failure scouting {target}")
            return ScoutFailure(error=str(e) or UNEXPECTED_ERROR, detail=type(e).__name__)


async def extract_entity(
    url: str,
    existing_tags: Optional[Sequence[str]] = None,
    debug: Optional[bool] = None,
    *,
    llm_client: Optional[LLMClient] = None,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    avatar_strategy: AvatarFallbackStrategy = AvatarFallbackStrategy.NONE,
) -> ScoutOutcome:
    """
    Scout a website and return a ScoutOutcome.

    Convenience wrapper around EntityScout.scout().
    """
    scout = EntityScout(
        llm_client=llm_client,
        settings=settings,
        transport=transport,
        avatar_strategy=avatar_strategy,
    )
    return await scout.scout(url, existing_tags=existing_tags, debug=debug)

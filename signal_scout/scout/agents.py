"""
Extraction agents.

Four narrow, JSON-only completion calls: contact, identity,
classification and roster. Each one fails soft: an SDK error, an empty
reply or unparseable JSON yields {} for that agent and is logged, never
raised.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from signal_scout.agentic.llm_client import LLMClient
from signal_scout.core.api_errors import AgentResponseError
from signal_scout.scout.config import (
    CLASSIFICATION_SYSTEM_PROMPT,
    CLASSIFICATION_TEXT_LIMIT,
    CONTACT_SYSTEM_PROMPT,
    CONTACT_TEXT_LIMIT,
    CONTACT_USER_PROMPT,
    FOOTER_FALLBACK_LIMIT,
    IDENTITY_BODY_LIMIT,
    IDENTITY_SYSTEM_PROMPT,
    IDENTITY_USER_PROMPT,
    ROSTER_PROMPT_LIMIT,
    ROSTER_SYSTEM_PROMPT,
    ROSTER_USER_PROMPT,
)
from signal_scout.scout.types import CandidateBlock, PageEvidence

logger = logging.getLogger(__name__)


def _listed(values: Sequence[str]) -> str:
    return ", ".join(values) if values else "none"


def json_ld_summary(json_ld: Dict[str, Any]) -> str:
    """The identity-relevant slice of the organization record."""
    return json.dumps({
        "name": json_ld.get("name"),
        "email": json_ld.get("email"),
        "telephone": json_ld.get("telephone"),
        "address": json_ld.get("address"),
    })


def number_blocks(blocks: Sequence[CandidateBlock]) -> str:
    """BLOCK 1: ... separated by --- lines; image markers kept verbatim."""
    return "\n---\n".join(f"BLOCK {i + 1}: {block.text}" for i, block in enumerate(blocks))


class ScoutAgents:
    """
    Runs the extraction agents against one LLM client.

    Model overrides are optional; without them the client's default
    model is used for every agent.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        agent_model: Optional[str] = None,
        roster_model: Optional[str] = None,
    ):
        self.llm_client = llm_client
        self.agent_model = agent_model
        self.roster_model = roster_model

    async def _ask(
        self,
        agent: str,
        system_prompt: str,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        response = await self.llm_client.complete(
            prompt=prompt,
            system_prompt=system_prompt,
            json_mode=True,
            model=model,
            temperature=temperature,
        )
        if not response.content or not response.content.strip():
            raise AgentResponseError("Empty completion", agent=agent)

        parsed = response.parse_json()
        if parsed is None:
            raise AgentResponseError(
                "Completion was not a JSON object",
                agent=agent,
                raw_content=response.content,
            )
        return parsed

    async def _ask_soft(self, agent: str, *args, **kwargs) -> Dict[str, Any]:
        try:
            result = await self._ask(agent, *args, **kwargs)
            logger.debug(f"[ScoutAgents] {agent} returned keys {sorted(result)}")
            return result
        except AgentResponseError as e:
            logger.warning(f"[ScoutAgents] {agent} agent gave no usable output: {e}")
            return {}
        except Exception as e:
            logger.warning(f"[ScoutAgents] {agent} agent call failed: {type(e).__name__}: {e}")
            return {}

    async def contact(self, evidence: PageEvidence) -> Dict[str, Any]:
        """supportEmail, phone and address from harvested contacts and footer text."""
        contact_text = (
            evidence.footer_text or evidence.clean_text[:FOOTER_FALLBACK_LIMIT]
        )[:CONTACT_TEXT_LIMIT]
        prompt = CONTACT_USER_PROMPT.format(
            url=evidence.url,
            emails=_listed(evidence.mailtos),
            phones=_listed(evidence.tels),
            json_ld_contact=json.dumps(evidence.contact_point_records) if evidence.contact_point_records else "none",
            contact_text=contact_text,
        )
        return await self._ask_soft("contact", CONTACT_SYSTEM_PROMPT, prompt, model=self.agent_model)

    async def identity(self, evidence: PageEvidence) -> Dict[str, Any]:
        """name, doingBusinessAs, entityType and brandColor."""
        prompt = IDENTITY_USER_PROMPT.format(
            url=evidence.url,
            title=evidence.meta.title,
            h1=evidence.h1_text,
            copyright=evidence.copyright_text,
            json_ld_summary=json_ld_summary(evidence.json_ld),
            body_sample=evidence.clean_text[:IDENTITY_BODY_LIMIT],
        )
        return await self._ask_soft("identity", IDENTITY_SYSTEM_PROMPT, prompt, model=self.agent_model)

    async def classification(self, evidence: PageEvidence) -> Dict[str, Any]:
        """3-8 capability/industry tags."""
        sample = f"{evidence.meta.description}\n\n{evidence.clean_text}"[:CLASSIFICATION_TEXT_LIMIT]
        if not sample.strip():
            sample = "No content."
        return await self._ask_soft(
            "classification", CLASSIFICATION_SYSTEM_PROMPT, sample, model=self.agent_model
        )

    async def roster(self, blocks: List[CandidateBlock], source_url: str) -> Dict[str, Any]:
        """
        One roster draft per block.

        No call is made when there are no blocks.
        """
        if not blocks:
            return {"roster": []}
        prompt = ROSTER_USER_PROMPT.format(
            url=source_url,
            blocks=number_blocks(blocks)[:ROSTER_PROMPT_LIMIT],
        )
        return await self._ask_soft(
            "roster", ROSTER_SYSTEM_PROMPT, prompt, model=self.roster_model, temperature=0.0
        )

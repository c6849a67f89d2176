"""
Pytest configuration and shared fixtures.
"""
import json
import re
from typing import Any, Dict, List, Optional

import httpx
import pytest

from signal_scout.agentic.llm_client import LLMResponse
from signal_scout.core.config import Settings, reset_settings
from signal_scout.scout.config import (
    CLASSIFICATION_SYSTEM_PROMPT,
    CONTACT_SYSTEM_PROMPT,
    IDENTITY_SYSTEM_PROMPT,
    ROSTER_SYSTEM_PROMPT,
)


AGENT_BY_PROMPT = {
    CONTACT_SYSTEM_PROMPT: "contact",
    IDENTITY_SYSTEM_PROMPT: "identity",
    CLASSIFICATION_SYSTEM_PROMPT: "classification",
    ROSTER_SYSTEM_PROMPT: "roster",
}


@pytest.fixture(scope="function")
def clean_env(monkeypatch):
    """
    Clean environment for testing.

    Removes all scout-related env vars to ensure clean state.
    """
    env_vars = [
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "LLM_PROVIDER",
        "SCOUT_AGENT_MODEL",
        "SCOUT_ROSTER_MODEL",
        "SCOUT_MAX_TOKENS",
        "SCOUT_FETCH_TIMEOUT",
        "SCOUT_USER_AGENT",
        "SCOUT_DEBUG",
        "LOG_LEVEL",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)

    # Reset settings singleton
    reset_settings()

    yield

    # Reset again after test
    reset_settings()


@pytest.fixture
def test_settings(clean_env):
    """Settings with no .env file and no keys."""
    return Settings(_env_file=None)


class FakeLLMClient:
    """
    Stand-in for LLMClient that answers each agent from a script.

    Script values may be a dict (sent as JSON), a raw string, an
    exception instance to raise, or a callable taking the user prompt.
    """

    def __init__(self, script: Optional[Dict[str, Any]] = None, provider: str = "openai"):
        self.script = script or {}
        self.provider = provider
        self.calls: List[Dict[str, Any]] = []

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        agent = AGENT_BY_PROMPT.get(system_prompt, "unknown")
        self.calls.append({
            "agent": agent,
            "prompt": prompt,
            "json_mode": json_mode,
            "model": model,
            "temperature": temperature,
        })

        answer = self.script.get(agent, {})
        if callable(answer) and not isinstance(answer, BaseException):
            answer = answer(prompt)
        if isinstance(answer, BaseException):
            raise answer
        content = answer if isinstance(answer, str) else json.dumps(answer)
        return LLMResponse(
            content=content,
            input_tokens=10,
            output_tokens=10,
            total_tokens=20,
            model=model or "gpt-4o-mini",
            cost_usd=0.0,
        )

    def calls_for(self, agent: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["agent"] == agent]


BLOCK_PATTERN = re.compile(r"^BLOCK \d+: (?:\[HAS_IMAGE_URL: ([^\]]+)\] )?(\S+) (\S+) ?(.*)$")


def echo_roster(prompt: str) -> Dict[str, Any]:
    """Roster agent stand-in: one entry per numbered block, marker copied."""
    roster = []
    for chunk in prompt.split("\n---\n"):
        line = chunk.strip().splitlines()[-1] if chunk.strip() else ""
        match = BLOCK_PATTERN.match(line)
        if not match:
            continue
        avatar, first, last, title = match.groups()
        roster.append({
            "firstName": first,
            "lastName": last,
            "jobTitle": title or None,
            "avatarUrl": avatar,
        })
    return {"roster": roster}


@pytest.fixture
def roster_echo():
    return echo_roster


@pytest.fixture
def fake_llm():
    """Factory for scripted fake LLM clients."""
    def _make(script: Optional[Dict[str, Any]] = None, provider: str = "openai") -> FakeLLMClient:
        return FakeLLMClient(script, provider=provider)
    return _make


def make_transport(pages: Dict[str, Any]) -> httpx.MockTransport:
    """
    MockTransport serving HTML by URL.

    Values are HTML strings or integer status codes; unknown URLs 404.
    Requested URLs are recorded on transport.requested.
    """
    requested: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        requested.append(url)
        page = pages.get(url)
        if page is None:
            return httpx.Response(404, text="Not found")
        if isinstance(page, int):
            return httpx.Response(page, text="")
        return httpx.Response(200, text=page, headers={"Content-Type": "text/html"})

    transport = httpx.MockTransport(handler)
    transport.requested = requested
    return transport


@pytest.fixture
def mock_site():
    """Factory for MockTransport-backed sites."""
    return make_transport


# ---------------------------------------------------------------------------
# HTML fixtures
# ---------------------------------------------------------------------------

TEAM_PAGE_HTML = """
<html><head><title>Our Team | Neon Velvet</title></head>
<body>
  <nav><a href="/">Home</a></nav>
  <section class="team">
    <div class="team-member">
      <img src="/img/jane.jpg" alt="">
      <h3>Jane Carter</h3>
      <p>Chief Executive Officer</p>
    </div>
    <div class="team-member">
      <img src="/img/omar.jpg" alt="">
      <h3>Omar Haddad</h3>
      <p>Lighting Director</p>
    </div>
    <div class="team-member">
      <img src="/img/lee.jpg" alt="">
      <h3>Lee Park</h3>
      <p>Senior Producer</p>
    </div>
  </section>
</body></html>
"""

SEED_PAGE_HTML = """
<html>
<head>
  <title>Neon Velvet | Event Production</title>
  <meta property="og:description" content="Full-service event production and lighting.">
  <meta property="og:image" content="/assets/share.png">
  <meta name="theme-color" content="#ff0066">
  <script type="application/ld+json">
  {"@context": "https://schema.org", "@type": "Organization", "name": "Neon Velvet",
   "telephone": "0155240003",
   "address": {"@type": "PostalAddress", "streetAddress": "12 Market St",
               "addressLocality": "San Francisco", "addressRegion": "CA",
               "postalCode": "94103", "addressCountry": "US"}}
  </script>
</head>
<body>
  <nav>
    <a href="/">Home</a>
    <a href="/services">Services</a>
    <a href="/our-team">Meet the Team</a>
    <a href="https://other.example.net/team">Partner team</a>
  </nav>
  <h1>Lighting that moves people</h1>
  <p>We design and run event production for brands across the Bay Area.</p>
  <footer>
    <a href="mailto:hello@neonvelvet.com">hello@neonvelvet.com</a>
    <a href="tel:+14155550123">(415) 555-0123</a>
    <p>&copy; 2024 NV Productions LLC. All rights reserved.</p>
  </footer>
</body>
</html>
"""

BARE_SEED_HTML = """
<html>
<head><title>Solo Sound</title></head>
<body>
  <a href="/services">Services</a>
  <a href="/gallery">Gallery</a>
  <main>
    <p>Solo Sound is a wedding DJ and MC service run by Sam Rivera. Sam has played
    more than four hundred weddings across Northern California and loves a full
    dance floor. Booking now for next season.</p>
    <img src="/uploads/hero.jpg" alt="">
    <img src="/uploads/200/sam.jpg" alt="">
  </main>
</body>
</html>
"""


@pytest.fixture
def team_page_html():
    return TEAM_PAGE_HTML


@pytest.fixture
def seed_page_html():
    return SEED_PAGE_HTML


@pytest.fixture
def bare_seed_html():
    return BARE_SEED_HTML

"""
Bloodhound: team page discovery for a seed page.

Finds the page most likely to list people by:
1. Scoring same-origin links by keyword weight (link text + path)
2. Falling back to conventional paths when nothing scores
3. Following one more hop when the chosen page is a generic "about" page

Any failure here reverts to the seed page; the pipeline never fails on
a sub-page.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from signal_scout.core.api_errors import FetchError
from signal_scout.core.http_client import PageFetcher
from signal_scout.scout.config import (
    BLOODHOUND_KEYWORDS,
    FALLBACK_PATH_SCORE,
    FALLBACK_TEAM_PATHS,
    MIN_FOLLOW_SCORE,
    SECOND_HOP_WORDS,
    SKIP_HREF_PREFIXES,
)
from signal_scout.scout.html_cleaner import (
    element_text,
    origin_of,
    parse_html,
    strip_fragment,
    to_absolute_url,
)
from signal_scout.scout.types import TeamPage

logger = logging.getLogger(__name__)


@dataclass
class LinkCandidate:
    """A same-origin link and its best keyword score."""
    url: str
    score: int
    text: str = ""


def score_link(
    text: str,
    path: str,
    keywords: Sequence[Tuple[str, int]] = BLOODHOUND_KEYWORDS,
) -> int:
    """
    Sum keyword weights matched in the link text and in the URL path.

    Multi-word keywords match the path either hyphenated ("our-people")
    or run together ("ourpeople").
    """
    text = (text or "").lower()
    path = (path or "").lower()
    score = 0
    for word, weight in keywords:
        if word in text:
            score += weight
        if word.replace(" ", "-") in path or word.replace(" ", "") in path:
            score += weight
    return score


def _same_origin(url: str, base_url: str) -> bool:
    return origin_of(url) == origin_of(base_url)


def _same_page(url1: str, url2: str) -> bool:
    return strip_fragment(url1).rstrip("/") == strip_fragment(url2).rstrip("/")


def find_candidate_links(
    soup: BeautifulSoup,
    page_url: str,
    keywords: Sequence[Tuple[str, int]] = BLOODHOUND_KEYWORDS,
) -> List[LinkCandidate]:
    """
    Score every same-origin anchor on a page.

    Returns:
        Candidates with a positive score, one per target URL (max score
        kept), in order of first appearance in the document.
    """
    candidates: dict = {}

    for a in soup.find_all("a", href=True):
        href = a.get("href", "").strip()
        if not href or href.lower().startswith(SKIP_HREF_PREFIXES):
            continue

        full_url = to_absolute_url(page_url, href)
        if not full_url or not _same_origin(full_url, page_url):
            continue
        full_url = strip_fragment(full_url)

        text = element_text(a)
        score = score_link(text, urlparse(full_url).path, keywords)
        if score <= 0:
            continue

        existing = candidates.get(full_url)
        if existing is None:
            candidates[full_url] = LinkCandidate(url=full_url, score=score, text=text)
        elif score > existing.score:
            existing.score = score

    return list(candidates.values())


def select_best(candidates: List[LinkCandidate]) -> Optional[LinkCandidate]:
    """Highest score wins; ties go to the first candidate in document order."""
    best = None
    for candidate in candidates:
        if best is None or candidate.score > best.score:
            best = candidate
    return best


def fallback_candidates(seed_url: str) -> List[LinkCandidate]:
    origin = origin_of(seed_url)
    return [
        LinkCandidate(url=f"{origin}{path}", score=FALLBACK_PATH_SCORE)
        for path in FALLBACK_TEAM_PATHS
    ]


def is_generic_about_path(url: str) -> bool:
    path = urlparse(url).path.lower()
    return "about" in path and "team" not in path and "leadership" not in path


def find_second_hop(soup: BeautifulSoup, about_url: str, seed_url: str) -> Optional[LinkCandidate]:
    """
    Best link on an about page that names team, leadership or people.
    """
    candidates = []
    for candidate in find_candidate_links(soup, about_url):
        haystack = f"{candidate.text} {urlparse(candidate.url).path}".lower()
        if not any(word in haystack for word in SECOND_HOP_WORDS):
            continue
        if _same_page(candidate.url, about_url) or _same_page(candidate.url, seed_url):
            continue
        candidates.append(candidate)
    return select_best(candidates)


class PageFinder:
    """
    Locates the team page for a seed URL.

    Uses the caller's PageFetcher so every sub-page request shares the
    run's deadline.
    """

    def __init__(self, fetcher: PageFetcher):
        self.fetcher = fetcher

    async def _try_fetch(self, url: str) -> Optional[str]:
        try:
            return await self.fetcher.fetch(url)
        except FetchError as e:
            logger.info(f"[Bloodhound] Sub-page fetch failed for {url}: {e}")
            return None

    async def _expand_about_page(self, page: TeamPage, seed_url: str) -> TeamPage:
        if not is_generic_about_path(page.url):
            return page

        hop = find_second_hop(parse_html(page.html), page.url, seed_url)
        if hop is None:
            return page

        logger.info(f"[Bloodhound] Second hop from {page.url} to {hop.url} (score {hop.score})")
        html = await self._try_fetch(hop.url)
        if html is None:
            return page
        return TeamPage(url=hop.url, html=html, score=hop.score, hops=2)

    async def locate(self, seed_url: str, seed_html: str) -> TeamPage:
        """
        Find the best team page reachable from the seed page.

        Args:
            seed_url: Normalized seed URL
            seed_html: Markup already fetched for the seed

        Returns:
            TeamPage for the chosen page, or for the seed itself when
            nothing better could be fetched
        """
        seed_page = TeamPage(url=seed_url, html=seed_html, score=0, hops=0)
        candidates = find_candidate_links(parse_html(seed_html), seed_url)

        if candidates:
            best = select_best(candidates)
            logger.info(
                f"[Bloodhound] {len(candidates)} scored links on {seed_url}, "
                f"best {best.url} ({best.score})"
            )
        else:
            best = select_best(fallback_candidates(seed_url))
            logger.info(f"[Bloodhound] No scored links on {seed_url}, trying {best.url}")

        # One attempt only; a failure keeps the seed page
        if best.score >= MIN_FOLLOW_SCORE and not _same_page(best.url, seed_url):
            html = await self._try_fetch(best.url)
            if html is not None:
                page = TeamPage(url=best.url, html=html, score=best.score, hops=1)
                return await self._expand_about_page(page, seed_url)

        logger.info(f"[Bloodhound] Using seed page {seed_url}")
        return seed_page


async def locate_team_page(fetcher: PageFetcher, seed_url: str, seed_html: str) -> TeamPage:
    """Convenience wrapper around PageFinder.locate()."""
    return await PageFinder(fetcher).locate(seed_url, seed_html)

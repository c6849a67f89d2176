"""
Cluster scanner: splits a team page into one-person text blocks.

Passes run in order and feed one deduplicated set keyed by a text
fingerprint (first 60 + last 20 characters). When two passes produce the
same block, the variant carrying an image wins.

1. Structural selectors (member/profile/card/person/...), innermost only
2. Image-centric: an image's parent when it reads like a name card
3. Container-aware: children of team/staff/leadership/about/people sections
4. Last resort: single-image elements inside those sections
5. Body fallback: the whole page text as one oversized block
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from signal_scout.scout.config import (
    BODY_FALLBACK_MAX_CHARS,
    BODY_FALLBACK_MIN_CHARS,
    CONTAINER_BLOCK_TEXT_RANGE,
    CONTAINER_CHILD_MIN_TEXT,
    CONTAINER_NESTED_TEXT_RANGE,
    FINGERPRINT_PREFIX,
    FINGERPRINT_SUFFIX,
    HEADING_TAGS,
    IMAGE_MARKER,
    IMAGE_PARENT_TEXT_RANGE,
    LAST_RESORT_CONTAINER_SELECTOR,
    LAST_RESORT_MAX_CHILDREN,
    LAST_RESORT_TEXT_RANGE,
    MAX_BLOCKS,
    PERSON_BLOCK_SELECTOR,
    STRUCTURAL_TEXT_RANGE,
    TEAM_CONTAINER_SELECTOR,
)
from signal_scout.scout.html_cleaner import (
    NOISE_TAGS,
    element_text,
    get_img_src,
    parse_html,
    remove_elements,
)
from signal_scout.scout.types import CandidateBlock, ScanResult

logger = logging.getLogger(__name__)

FULL_NAME_PATTERN = re.compile(r"\b[A-Z][a-z]+\s+[A-Z][a-z]+\b")

# (text, image url)
Match = Tuple[str, Optional[str]]


def fingerprint(text: str) -> str:
    return text[:FINGERPRINT_PREFIX] + text[-FINGERPRINT_SUFFIX:]


def _in_range(text: str, bounds: Tuple[int, int]) -> bool:
    return bounds[0] <= len(text) <= bounds[1]


def _has_heading(element: Tag) -> bool:
    return element.find(HEADING_TAGS) is not None


class BlockSet:
    """Fingerprint-keyed blocks in first-seen order, preferring image variants."""

    def __init__(self):
        self._blocks: Dict[str, CandidateBlock] = {}

    def add(self, text: str, image_url: Optional[str]) -> None:
        key = fingerprint(text)
        existing = self._blocks.get(key)
        if existing is not None and (existing.image_url or not image_url):
            return
        marked = f"{IMAGE_MARKER.format(url=image_url)} {text}" if image_url else text
        self._blocks[key] = CandidateBlock(text=marked, image_url=image_url)

    def __len__(self) -> int:
        return len(self._blocks)

    def blocks(self) -> List[CandidateBlock]:
        return list(self._blocks.values())


def structural_pass(soup: BeautifulSoup, page_url: str) -> List[Match]:
    """Innermost person-like elements with at most one image, shortest first."""
    matches = []
    for element in soup.select(PERSON_BLOCK_SELECTOR):
        if element.select(PERSON_BLOCK_SELECTOR):
            continue
        images = element.find_all("img")
        if len(images) > 1:
            continue
        text = element_text(element)
        if not _in_range(text, STRUCTURAL_TEXT_RANGE):
            continue
        matches.append((text, get_img_src(images[0] if images else None, page_url)))

    matches.sort(key=lambda m: len(m[0]))
    return matches


def image_parent_pass(soup: BeautifulSoup, page_url: str) -> List[Match]:
    """Parents of lone images whose text has a heading or a 'Firstname Lastname'."""
    matches = []
    for img in soup.find_all("img"):
        parent = img.parent
        if parent is None or len(parent.find_all("img")) > 1:
            continue
        text = element_text(parent)
        if not _in_range(text, IMAGE_PARENT_TEXT_RANGE):
            continue
        if _has_heading(parent) or FULL_NAME_PATTERN.search(text):
            matches.append((text, get_img_src(img, page_url)))
    return matches


def _drop_enclosing(matches: List[Match]) -> List[Match]:
    """Shortest first, skipping any text that contains a shorter candidate's text."""
    ordered = sorted(matches, key=lambda m: len(m[0]))
    kept = []
    for text, image_url in ordered:
        encloses = any(len(other) < len(text) and other in text for other, _ in ordered)
        if not encloses:
            kept.append((text, image_url))
    return kept


def container_pass(soup: BeautifulSoup, page_url: str) -> List[Match]:
    """Per-person children inside team-like sections."""
    matches = []
    for container in soup.select(TEAM_CONTAINER_SELECTOR):
        children = [
            child for child in container.find_all(["div", "article", "li", "section"], recursive=False)
            if len(child.find_all("img")) == 1
            and (_has_heading(child) or len(element_text(child)) > CONTAINER_CHILD_MIN_TEXT)
        ]

        if len(children) < 2:
            children = [
                child for child in container.find_all(["div", "article", "li"])
                if not child.select(PERSON_BLOCK_SELECTOR)
                and len(child.find_all("img")) == 1
                and _in_range(element_text(child), CONTAINER_NESTED_TEXT_RANGE)
            ]

        candidates = []
        for child in children:
            text = element_text(child)
            if not _in_range(text, CONTAINER_BLOCK_TEXT_RANGE):
                continue
            candidates.append((text, get_img_src(child.find("img"), page_url)))

        matches.extend(_drop_enclosing(candidates))
    return matches


def last_resort_pass(soup: BeautifulSoup, page_url: str) -> List[Match]:
    """Single-image elements with modest text and few structural children."""
    matches = []
    for container in soup.select(LAST_RESORT_CONTAINER_SELECTOR):
        for element in container.find_all(["div", "section", "article"]):
            images = element.find_all("img")
            if len(images) != 1:
                continue
            text = element_text(element)
            if not _in_range(text, LAST_RESORT_TEXT_RANGE):
                continue
            if len(element.find_all(["div", "section", "article"], recursive=False)) > LAST_RESORT_MAX_CHILDREN:
                continue
            matches.append((text, get_img_src(images[0], page_url)))
    return matches


def body_fallback_block(soup: BeautifulSoup) -> Optional[CandidateBlock]:
    """The whole page text, minus navigation and footer, as one block."""
    remove_elements(soup, ["nav", "footer"])
    body = soup.body or soup
    text = element_text(body)
    if len(text) <= BODY_FALLBACK_MIN_CHARS:
        return None
    return CandidateBlock(text=text[:BODY_FALLBACK_MAX_CHARS], from_body=True)


def page_image_urls(soup: BeautifulSoup, page_url: str) -> List[str]:
    """Every resolvable image URL on the page, document order, no repeats."""
    urls = []
    for img in soup.find_all("img"):
        url = get_img_src(img, page_url)
        if url and url not in urls:
            urls.append(url)
    return urls


def scan_blocks(html: str, page_url: str) -> ScanResult:
    """
    Partition a page into candidate person blocks.

    Args:
        html: Markup of the page Bloodhound selected
        page_url: URL of that page, used to resolve image URLs

    Returns:
        ScanResult with at most MAX_BLOCKS blocks
    """
    soup = parse_html(html)
    remove_elements(soup, NOISE_TAGS)
    images = page_image_urls(soup, page_url)

    found = BlockSet()
    for scan in (structural_pass, image_parent_pass, container_pass):
        for text, image_url in scan(soup, page_url):
            found.add(text, image_url)

    if not found:
        for text, image_url in last_resort_pass(soup, page_url):
            found.add(text, image_url)

    if found:
        blocks = found.blocks()[:MAX_BLOCKS]
        logger.info(
            f"[ClusterScanner] {page_url}: {len(blocks)} blocks, "
            f"{sum(1 for b in blocks if b.image_url)} with images"
        )
        return ScanResult(blocks=blocks, body_fallback=False, page_image_urls=images)

    fallback = body_fallback_block(soup)
    if fallback is None:
        logger.info(f"[ClusterScanner] {page_url}: no blocks and too little body text")
        return ScanResult(blocks=[], body_fallback=False, page_image_urls=images)

    logger.info(f"[ClusterScanner] {page_url}: no structured blocks, using body fallback")
    return ScanResult(blocks=[fallback], body_fallback=True, page_image_urls=images)

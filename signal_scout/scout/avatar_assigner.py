"""
Avatar assignment for roster members.

Structured blocks: each roster entry takes the image of its own block,
either copied by the roster agent from the block's image marker or
parsed from the block directly.

Body fallback (one oversized block, no image markers): avatars are not
assigned. Image order in the document does not follow the order in which
names were read out of the text, so index-based assignment puts the wrong
face on the wrong person. AvatarFallbackStrategy exists so the other
options can be exercised deliberately; the default is NONE.
"""

import logging
import re
from typing import List, Optional, Sequence

from signal_scout.scout.config import IMG_SCAN_MIN_CHARS, MAX_ROSTER_SIZE, OVERSIZED_BLOCK_CHARS
from signal_scout.scout.roster import RosterDraft
from signal_scout.scout.types import AvatarFallbackStrategy, CandidateBlock, RosterMember, ScanResult

logger = logging.getLogger(__name__)

MARKER_PATTERN = re.compile(r"\[HAS_IMAGE_URL:\s*([^\]]+)\]")
IMG_SRC_PATTERN = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)
SIZE_PATH_200 = re.compile(r"/200/")
SKIP_LEADING_COUNT = 2


def _is_image_url(url: str) -> bool:
    return bool(re.match(r"^https?://", url, re.IGNORECASE)) or url.startswith("//")


def _absolute(url: str) -> str:
    return "https:" + url if url.startswith("//") else url


def parse_avatar_from_block(block: str, allow_inline: bool = True) -> Optional[str]:
    """
    Image URL for one block: its marker, else an inline <img src> when
    the block is not oversized and inline images are allowed.
    """
    match = MARKER_PATTERN.search(block)
    if match:
        url = match.group(1).strip()
        if url and _is_image_url(url):
            return _absolute(url)

    if not allow_inline or len(block) > OVERSIZED_BLOCK_CHARS:
        return None

    match = IMG_SRC_PATTERN.search(block)
    if match:
        url = match.group(1).strip()
        if url and _is_image_url(url):
            return _absolute(url)
    return None


def parse_all_img_urls(block: str) -> List[str]:
    """All inline <img src> URLs in a long block, document order."""
    if len(block) < IMG_SCAN_MIN_CHARS:
        return []
    urls = []
    for match in IMG_SRC_PATTERN.finditer(block):
        url = match.group(1).strip()
        if url and _is_image_url(url):
            urls.append(_absolute(url))
    return urls


def block_avatars(blocks: Sequence[CandidateBlock]) -> List[Optional[str]]:
    return [parse_avatar_from_block(b.text, allow_inline=not b.from_body) for b in blocks]


def is_body_fallback(blocks: Sequence[CandidateBlock], avatars: Optional[Sequence[Optional[str]]] = None) -> bool:
    """One body or oversized block and no image evidence in it."""
    if len(blocks) != 1:
        return False
    block = blocks[0]
    if not (block.from_body or len(block.text) > OVERSIZED_BLOCK_CHARS):
        return False
    if avatars is None:
        avatars = block_avatars(blocks)
    return not any(avatars)


def fallback_image_urls(scan: ScanResult) -> List[str]:
    """Every image seen for the body-fallback block: inline tags, then page images."""
    urls: List[str] = []
    if scan.blocks:
        urls.extend(parse_all_img_urls(scan.blocks[0].text))
    for url in scan.page_image_urls:
        if url not in urls:
            urls.append(url)
    return urls


def avatar_pool_for_body_fallback(
    image_urls: Sequence[str],
    roster_size: int,
    strategy: AvatarFallbackStrategy = AvatarFallbackStrategy.NONE,
) -> List[str]:
    """
    Positional avatar pool for the body-fallback path.

    NONE always returns []. SKIP_LEADING drops up to two leading images
    (logos, hero art). SIZE_PATH_200 keeps CMS headshot URLs containing
    /200/ and only when there are enough of them for everyone.
    """
    strategy = AvatarFallbackStrategy(strategy)
    if strategy is AvatarFallbackStrategy.NONE or not image_urls:
        return []

    urls = list(image_urls)
    if strategy is AvatarFallbackStrategy.SKIP_LEADING:
        skip = min(SKIP_LEADING_COUNT, max(0, len(urls) - roster_size))
        return urls[skip:skip + roster_size]

    headshots = [u for u in urls if SIZE_PATH_200.search(u)]
    return headshots[:roster_size] if len(headshots) >= roster_size else []


def assign_avatars(
    scan: ScanResult,
    drafts: Sequence[RosterDraft],
    strategy: AvatarFallbackStrategy = AvatarFallbackStrategy.NONE,
) -> List[Optional[str]]:
    """
    Avatar for each roster draft index.

    An agent-supplied URL is kept only when it is one of the block marker
    URLs; otherwise the block at the same index is parsed directly.

    Returns:
        One entry per draft (capped at MAX_ROSTER_SIZE)
    """
    blocks = scan.blocks
    avatars_by_block = block_avatars(blocks)
    marker_urls = {url for url in avatars_by_block if url}
    drafts = list(drafts)[:MAX_ROSTER_SIZE]

    pool: List[str] = []
    if is_body_fallback(blocks, avatars_by_block):
        pool = avatar_pool_for_body_fallback(fallback_image_urls(scan), len(drafts), strategy)
        logger.info(
            f"[AvatarAssigner] Body fallback: {len(pool)} pooled avatars "
            f"(strategy={AvatarFallbackStrategy(strategy).value})"
        )

    assigned: List[Optional[str]] = []
    for i, draft in enumerate(drafts):
        avatar = None
        copied = draft.avatar_url
        if copied and _absolute(copied) in marker_urls:
            avatar = _absolute(copied)
        if avatar is None and i < len(avatars_by_block):
            avatar = avatars_by_block[i]
        if avatar is None and i < len(pool):
            avatar = pool[i]
        assigned.append(avatar)
    return assigned


def build_avatar_debug(
    scan: ScanResult,
    roster: Sequence[RosterMember],
    strategy: AvatarFallbackStrategy = AvatarFallbackStrategy.NONE,
) -> dict:
    """Body-fallback diagnostics: every image found, the pool, roster order."""
    if not is_body_fallback(scan.blocks):
        return {}
    image_urls = fallback_image_urls(scan)
    return {
        "all_img_urls": image_urls,
        "avatar_pool": avatar_pool_for_body_fallback(image_urls, len(roster), strategy),
        "roster_order": [f"{m.first_name} {m.last_name}".strip() for m in roster],
    }

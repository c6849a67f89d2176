"""
HTML helpers shared by the harvesters, Bloodhound and the cluster scanner.

Text is always collapsed to single spaces; URLs are always made absolute
against the page they were found on.
"""

import re
from typing import Iterable, Optional
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from signal_scout.scout.config import IMAGE_URL_ATTRIBUTES

# Elements that never carry visible page text
NOISE_TAGS = ["script", "style", "noscript", "iframe", "svg", "path", "template"]


def parse_html(html: str) -> BeautifulSoup:
    """Parse markup with the stdlib-backed parser bs4 ships with."""
    return BeautifulSoup(html or "", "html.parser")


def remove_elements(soup: BeautifulSoup, names: Iterable[str]) -> None:
    """Remove every element with one of the given tag names."""
    for element in soup.find_all(list(names)):
        element.decompose()


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace to one space and trim."""
    return re.sub(r"\s+", " ", text or "").strip()


def element_text(element: Tag) -> str:
    """Visible text of an element, whitespace collapsed."""
    return collapse_whitespace(element.get_text(" "))


def to_absolute_url(base_url: str, relative_url: Optional[str]) -> str:
    """
    Resolve a possibly relative URL against the page URL.

    Returns '' for empty input or anything that is not http(s) after
    resolution.
    """
    if not relative_url or not relative_url.strip():
        return ""
    raw = relative_url.strip()
    if raw.startswith("//"):
        raw = "https:" + raw
    try:
        url = urljoin(base_url, raw)
    except ValueError:
        return ""
    if not re.match(r"^https?://", url, re.IGNORECASE):
        return ""
    return url


def strip_fragment(url: str) -> str:
    return urldefrag(url)[0]


def origin_of(url: str) -> str:
    """scheme://host[:port] in lower case."""
    parsed = urlparse(url)
    return f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"


def get_img_src(img: Optional[Tag], base_url: str) -> Optional[str]:
    """
    Absolute URL for an image element.

    Tries src, then the common lazy-loading attributes, then the first
    srcset candidate.
    """
    if img is None:
        return None

    for attr in IMAGE_URL_ATTRIBUTES:
        url = to_absolute_url(base_url, img.get(attr))
        if url:
            return url

    srcset = img.get("srcset")
    if srcset:
        first = srcset.split(",")[0].strip().split()
        if first:
            url = to_absolute_url(base_url, first[0])
            if url:
                return url
    return None

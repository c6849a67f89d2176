"""
Deterministic harvesters for the seed page.

Regex and DOM scans only, no LLM:
- mailto: links and bare email addresses
- tel: links and bare North-American phone numbers
- JSON-LD Organization / ContactPoint records
- Head metadata, H1, footer and copyright text

The master merge trusts contact facts only when these scans found
independent evidence on the page.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote

from bs4 import BeautifulSoup

from signal_scout.scout.config import (
    MAX_EMAIL_LENGTH,
    ORGANIZATION_TYPES,
    PLACEHOLDER_EMAIL_DOMAINS,
    PLACEHOLDER_PHONE_SEQUENCES,
    PRIORITY_EMAIL_PREFIXES,
)
from signal_scout.scout.html_cleaner import (
    NOISE_TAGS,
    collapse_whitespace,
    element_text,
    parse_html,
    remove_elements,
)
from signal_scout.scout.types import Address, ContactPoint, PageEvidence, PageMeta

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b")
MAILTO_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(
    r"(?<!\d)(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}\b"
)
COPYRIGHT_PATTERN = re.compile(
    r"©\s*(?:\d{4}\s*[-–]\s*)?\d{4}\s*([A-Za-z0-9\s.,&'-]+)"
)
ASSET_SUFFIX = re.compile(r"\.(png|jpe?g|gif|svg|webp|avif|ico|css|js)$", re.IGNORECASE)
PLACEHOLDER_DOMAIN = re.compile(
    "@(" + "|".join(re.escape(d) for d in PLACEHOLDER_EMAIL_DOMAINS) + ")$",
    re.IGNORECASE,
)


def digits_only(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def is_valid_phone(value: str) -> bool:
    """
    Reject placeholder phone numbers.

    A valid number has at least 10 digits, does not start with 0, is not
    one repeated digit, has fewer than (length - 1) zeros and does not end
    in a well-known sequential placeholder.
    """
    d = digits_only(value)
    if len(d) < 10:
        return False
    if d.startswith("0"):
        return False
    if len(set(d)) == 1:
        return False
    if d.count("0") >= len(d) - 1:
        return False
    if d[-10:] in PLACEHOLDER_PHONE_SEQUENCES:
        return False
    return True


def _email_priority(address: str) -> int:
    for i, prefix in enumerate(PRIORITY_EMAIL_PREFIXES):
        if address.lower().startswith(prefix + "@"):
            return i
    return len(PRIORITY_EMAIL_PREFIXES)


def harvest_emails(soup: BeautifulSoup, html: str) -> List[str]:
    """
    Collect email addresses: mailto links first, then bare addresses in markup.

    Placeholder domains and image asset names (logo@2x.png) are dropped.
    Result is ordered so canonical inbox prefixes (info@, hello@, ...) come first.
    """
    emails: List[str] = []
    seen = set()

    for a in soup.select('a[href^="mailto:"], a[href^="MAILTO:"]'):
        href = a.get("href", "")
        address = unquote(re.sub(r"^mailto:", "", href, flags=re.IGNORECASE))
        address = re.split(r"[?&]", address)[0].strip()
        if address and MAILTO_SHAPE.match(address) and address.lower() not in seen:
            seen.add(address.lower())
            emails.append(address)

    for match in EMAIL_PATTERN.finditer(html or ""):
        email = match.group(0).lower()
        if email in seen:
            continue
        if PLACEHOLDER_DOMAIN.search(email) or ASSET_SUFFIX.search(email):
            continue
        if len(email) > MAX_EMAIL_LENGTH:
            continue
        seen.add(email)
        emails.append(email)

    emails.sort(key=_email_priority)
    return emails


def harvest_phones(soup: BeautifulSoup, html: str) -> List[str]:
    """
    Collect valid phone numbers: tel links first, then bare numbers in markup.

    Numbers are de-duplicated on their last ten digits so "+1 415..." and
    "(415) ..." count once.
    """
    phones: List[str] = []
    seen_digits = set()

    for a in soup.select('a[href^="tel:"], a[href^="TEL:"]'):
        raw = re.sub(r"^tel:", "", a.get("href", ""), flags=re.IGNORECASE).strip()
        digits = digits_only(raw)
        if is_valid_phone(digits) and digits[-10:] not in seen_digits:
            seen_digits.add(digits[-10:])
            phones.append(raw)

    for match in PHONE_PATTERN.finditer(html or ""):
        digits = digits_only(match.group(0))
        if is_valid_phone(digits) and digits[-10:] not in seen_digits:
            seen_digits.add(digits[-10:])
            phones.append(match.group(0).strip())

    return phones


def _types_of(record: Dict[str, Any]) -> List[str]:
    value = record.get("@type")
    if isinstance(value, list):
        return [str(t) for t in value]
    return [str(value)] if value else []


def parse_json_ld(soup: BeautifulSoup) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Harvest JSON-LD blocks.

    Returns:
        (merged organization record, list of ContactPoint records)
    """
    organization: Dict[str, Any] = {}
    contact_points: List[Dict[str, Any]] = []

    def collect_contact_points(obj: Any) -> None:
        if not isinstance(obj, dict):
            return
        if "ContactPoint" in _types_of(obj):
            contact_points.append(obj)
        nested = obj.get("contactPoint")
        if nested:
            for item in nested if isinstance(nested, list) else [nested]:
                collect_contact_points(item)

    def visit(node: Any) -> None:
        if isinstance(node, list):
            for item in node:
                visit(item)
            return
        if not isinstance(node, dict):
            return
        if any(t in ORGANIZATION_TYPES for t in _types_of(node)):
            organization.update(node)
        collect_contact_points(node)
        graph = node.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                visit(item)

    for script in soup.find_all("script", type="application/ld+json"):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            visit(json.loads(raw))
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping malformed JSON-LD block: {e}")

    return organization, contact_points


def extract_contact_points(records: List[Dict[str, Any]]) -> List[ContactPoint]:
    points = []
    for record in records:
        email = record.get("email") if isinstance(record.get("email"), str) else None
        phone = record.get("telephone") if isinstance(record.get("telephone"), str) else None
        if email or phone:
            points.append(ContactPoint(email=email, phone=phone))
    return points


def _first_string(record: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_json_ld_address(value: Any) -> Optional[Address]:
    """Parse a JSON-LD address given as a string or a PostalAddress object."""
    if not value:
        return None

    if isinstance(value, str):
        parts = [p.strip() for p in re.split(r"[,\n]", value) if p.strip()]
        if len(parts) < 2:
            return None
        return Address(street=parts[0], city=parts[1], country=parts[-1])

    if isinstance(value, list):
        for item in value:
            address = parse_json_ld_address(item)
            if address:
                return address
        return None

    if isinstance(value, dict):
        country = value.get("addressCountry")
        if isinstance(country, dict):
            country = country.get("name")
        address = Address(
            street=_first_string(value, "streetAddress", "street"),
            city=_first_string(value, "addressLocality", "city"),
            state=_first_string(value, "addressRegion", "state"),
            postal_code=_first_string(value, "postalCode", "postal_code"),
            country=country.strip() if isinstance(country, str) and country.strip()
            else _first_string(value, "country"),
        )
        return None if address.is_empty() else address

    return None


def _meta_content(soup: BeautifulSoup, selector: str) -> Optional[str]:
    tag = soup.select_one(selector)
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def harvest_meta(soup: BeautifulSoup) -> PageMeta:
    """Title, description, share image, theme colour and icon from the head."""
    title_tag = soup.find("title")
    icon_tag = soup.select_one('link[rel~="apple-touch-icon"]') or soup.select_one('link[rel~="icon"]')
    icon = (icon_tag.get("href") or "").strip() if icon_tag else ""

    return PageMeta(
        title=_meta_content(soup, 'meta[property="og:title"]')
        or (collapse_whitespace(title_tag.get_text()) if title_tag else ""),
        description=_meta_content(soup, 'meta[property="og:description"]')
        or _meta_content(soup, 'meta[name="description"]')
        or "",
        image=_meta_content(soup, 'meta[property="og:image"]'),
        theme_color=_meta_content(soup, 'meta[name="theme-color"]'),
        icon=icon or None,
    )


def harvest_page(html: str, url: str) -> PageEvidence:
    """
    Run every deterministic harvester over the seed page.

    Args:
        html: Raw markup of the seed page
        url: Normalized seed URL

    Returns:
        PageEvidence consumed by the agents and the master merge
    """
    soup = parse_html(html)

    organization, contact_point_records = parse_json_ld(soup)
    meta = harvest_meta(soup)

    # Structured data is not independent evidence of a contact
    for script in soup.find_all("script", type="application/ld+json"):
        script.decompose()
    markup = str(soup)
    mailtos = harvest_emails(soup, markup)
    tels = harvest_phones(soup, markup)

    remove_elements(soup, NOISE_TAGS)

    body = soup.body or soup
    footer = soup.find("footer")
    footer_text = element_text(footer) if footer else ""
    copyright_match = COPYRIGHT_PATTERN.search(footer_text)
    h1 = soup.find("h1")

    evidence = PageEvidence(
        url=url,
        meta=meta,
        json_ld=organization,
        contact_point_records=contact_point_records,
        contact_points=extract_contact_points(contact_point_records),
        mailtos=mailtos,
        tels=tels,
        clean_text=element_text(body),
        footer_text=footer_text,
        copyright_text=collapse_whitespace(copyright_match.group(1)) if copyright_match else "",
        h1_text=element_text(h1) if h1 else "",
    )

    logger.info(
        f"[Harvesters] {url}: {len(mailtos)} emails, {len(tels)} phones, "
        f"{len(contact_point_records)} contact points, "
        f"json-ld org={'yes' if organization else 'no'}"
    )
    return evidence

"""
Configuration for the scout pipeline.

Contains:
- Bloodhound keyword weights, fallback paths and thresholds
- Cluster scanner selectors and size limits
- Contact harvesting filters
- Role canonicalization table
- Agent prompts
- Brand colour defaults
"""

from typing import Dict, List, Tuple


# =============================================================================
# BLOODHOUND (team page locator)
# =============================================================================

# (keyword, weight) matched against link text and link path, case-insensitive
BLOODHOUND_KEYWORDS: List[Tuple[str, int]] = [
    ("leadership", 10),
    ("team", 9),
    ("our people", 8),
    ("crew", 7),
    ("staff", 6),
    ("who we are", 6),
    ("people", 5),
    ("about", 3),
]

# Used when no link on the seed page scores; all tie, so only the first is fetched
FALLBACK_TEAM_PATHS: List[str] = ["/team", "/about", "/our-team", "/people", "/leadership"]
FALLBACK_PATH_SCORE = 5

# A candidate is only fetched when its score reaches this
MIN_FOLLOW_SCORE = 5

# Second hop: only from a generic about page, only to links mentioning these
SECOND_HOP_WORDS: List[str] = ["team", "leadership", "people"]

SKIP_HREF_PREFIXES: Tuple[str, ...] = ("#", "mailto", "tel", "javascript:")


# =============================================================================
# CLUSTER SCANNER
# =============================================================================

PERSON_BLOCK_SELECTOR = ", ".join([
    'div[class*="member"]',
    'div[class*="profile"]',
    'div[class*="card"]',
    'div[class*="person"]',
    'div[class*="employee"]',
    'div[class*="bio"]',
    'div[class*="se-"]',
    'div[class*="about"]',
    'div[class*="people"]',
    'article[class*="member"]',
    'article[class*="profile"]',
    'li[class*="member"]',
    'li[class*="profile"]',
])

TEAM_CONTAINER_SELECTOR = ", ".join([
    '[class*="team"]',
    '[class*="staff"]',
    '[class*="leadership"]',
    '[class*="about"]',
    '[class*="people"]',
])

LAST_RESORT_CONTAINER_SELECTOR = ", ".join([
    '[class*="team"]',
    '[class*="staff"]',
    '[class*="about"]',
    '[class*="people"]',
])

HEADING_TAGS: List[str] = ["h2", "h3", "h4", "h5", "strong"]

# (min, max) characters of collapsed text per pass
STRUCTURAL_TEXT_RANGE = (12, 900)
IMAGE_PARENT_TEXT_RANGE = (8, 450)
CONTAINER_CHILD_MIN_TEXT = 15
CONTAINER_NESTED_TEXT_RANGE = (10, 500)
CONTAINER_BLOCK_TEXT_RANGE = (8, 550)
LAST_RESORT_TEXT_RANGE = (15, 400)
LAST_RESORT_MAX_CHILDREN = 6

BODY_FALLBACK_MIN_CHARS = 100
BODY_FALLBACK_MAX_CHARS = 12000

MAX_BLOCKS = 50

# Block fingerprint: first N + last M characters of the text
FINGERPRINT_PREFIX = 60
FINGERPRINT_SUFFIX = 20

IMAGE_MARKER = "[HAS_IMAGE_URL: {url}]"

IMAGE_URL_ATTRIBUTES: List[str] = ["src", "data-src", "data-lazy-src", "data-original"]


# =============================================================================
# AVATARS
# =============================================================================

# A single block longer than this with no image marker is the body fallback
OVERSIZED_BLOCK_CHARS = 4000
# Raw <img> scanning only looks at blocks at least this long
IMG_SCAN_MIN_CHARS = 500

MAX_ROSTER_SIZE = 20


# =============================================================================
# CONTACT HARVESTING
# =============================================================================

PLACEHOLDER_EMAIL_DOMAINS: List[str] = [
    "example.com",
    "domain.com",
    "email.com",
    "test.com",
    "yourdomain.com",
    "example.org",
]

PRIORITY_EMAIL_PREFIXES: List[str] = [
    "info", "hello", "contact", "booking", "sales", "support", "team",
]

MAX_EMAIL_LENGTH = 80

PLACEHOLDER_PHONE_SEQUENCES: List[str] = ["0123456789", "1234567890", "9876543210"]

ORGANIZATION_TYPES: List[str] = ["Organization", "LocalBusiness", "Corporation"]


# =============================================================================
# ROLES & TAGS
# =============================================================================

CANONICAL_ROLES: Dict[str, List[str]] = {
    "CEO": ["ceo", "chief executive", "chief exec", "principal", "founder", "owner"],
    "COO": ["coo", "chief operating", "operations director"],
    "President": ["president"],
    "VP": ["vice president", " vp ", "evp", "svp"],
    "Director": ["director", "head of"],
    "Producer": ["producer", "executive producer", "lead producer", "sr. producer", "senior producer"],
    "Manager": ["manager", "managing"],
    "Coordinator": ["coordinator", "coordinating"],
    "Designer": ["designer", "creative director"],
    "Engineer": ["engineer", "technical director", " td "],
    "Lead": ["team lead", "project lead", "lead "],
    "Specialist": ["specialist", "senior ", "sr. "],
}

MAX_TAG_LENGTH = 120


# =============================================================================
# BRAND COLOUR
# =============================================================================

# Exempt from the achromatic filter below, which only screens extracted colours
DEFAULT_BRAND_COLOR = "#1a1a2e"

# A colour is achromatic when its channel average is outside this band
# or its channel spread is below the saturation floor
ACHROMATIC_MIN_AVERAGE = 40
ACHROMATIC_MAX_AVERAGE = 220
ACHROMATIC_MIN_SPREAD = 30


# =============================================================================
# AGENT PROMPTS
# =============================================================================

CONTACT_TEXT_LIMIT = 6000
IDENTITY_BODY_LIMIT = 6000
CLASSIFICATION_TEXT_LIMIT = 5000
ROSTER_PROMPT_LIMIT = 22000
FOOTER_FALLBACK_LIMIT = 8000

CONTACT_SYSTEM_PROMPT = """You extract contact information ONLY. Return JSON with: supportEmail, phone, address (object: street, city, state, postal_code, country).

RULES:
- supportEmail: Primary contact email. Prefer info@, hello@, contact@, booking@. Return null if none found.
- phone: Main business phone. Formats: (555) 123-4567, 555-123-4567, +1 555 123 4567. NEVER return placeholders (0000000001, 1111111111, 1234567890). Return null if only placeholders.
- address: Parse into street, city, state, postal_code, country. Return null if cannot parse."""

CONTACT_USER_PROMPT = """URL: {url}

SCRAPED (use if valid):
Emails: {emails}
Phones: {phones}
JSON-LD contactPoint: {json_ld_contact}

Text (footer + contact areas):
{contact_text}"""

IDENTITY_SYSTEM_PROMPT = """You extract identity ONLY. Return JSON with: name, doingBusinessAs, entityType, brandColor.

RULES:
- name: Primary brand (e.g. "Neon Velvet"). NOT generic descriptors like "Bay Area Events".
- doingBusinessAs: Legal entity from copyright/footer (e.g. "NV Productions LLC").
- entityType: "organization" or "single_operator".
- brandColor: Action color (buttons, links). Hex format. IGNORE black/white/grey. Return null if only achromatic."""

IDENTITY_USER_PROMPT = """URL: {url}
Title: {title}
H1: {h1}
Copyright: {copyright}
JSON-LD (relevant): {json_ld_summary}

Body sample:
{body_sample}"""

CLASSIFICATION_SYSTEM_PROMPT = """You extract capability/industry tags ONLY. Return JSON with: tags (array of strings).

Examples: Production, Lighting, Catering, AV, Union, Event Planning, Venue, Vendor.
Return 3-8 relevant tags. Empty array if none found."""

ROSTER_SYSTEM_PROMPT = """Extract team members from website blocks. Each block typically has one person (name + optional title).

For each person:
- firstName, lastName (split full name)
- jobTitle: the role/title text from the block, or null if none
- normalizedRole: map to CEO, COO, President, VP, Director, Producer, Manager, Coordinator, Designer, Engineer, Specialist when jobTitle exists
- avatarUrl: when a block contains [HAS_IMAGE_URL: url], copy that exact url here. Otherwise null.

Output one entry per block in block order. Include everyone who looks like a real person (not "Support Team" or testimonials).
Return JSON: { "roster": [{ "firstName", "lastName", "jobTitle", "normalizedRole", "avatarUrl" }] }"""

ROSTER_USER_PROMPT = """Source: {url}

{blocks}"""

"""
Pydantic models for scout extraction results.

Everything here lives for one scout run only. Output models serialise
with camelCase aliases so `model_dump(by_alias=True)` produces the shape
consumers expect (firstName, avatarUrl, supportEmail, ...).
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EntityType(str, Enum):
    """Whether the site speaks for a company or a one-person business."""
    ORGANIZATION = "organization"
    SINGLE_OPERATOR = "single_operator"


class AvatarFallbackStrategy(str, Enum):
    """
    How to pick avatars on the body-fallback path.

    NONE is the production setting: document order of images does not
    follow the order in which names were extracted, so guessing by
    position attaches the wrong photo to the wrong person.
    """
    NONE = "none"
    SKIP_LEADING = "skip_leading"
    SIZE_PATH_200 = "size_path_200"


class CamelModel(BaseModel):
    """Base for output models: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# =============================================================================
# PIPELINE INTERMEDIATES
# =============================================================================


class CandidateBlock(BaseModel):
    """
    Cleaned text for one probable person, with the image found in its subtree.

    `text` is what the roster agent sees; it carries the image marker when
    an image was found.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    image_url: Optional[str] = None
    from_body: bool = Field(False, description="Whole-page text used because no per-person block matched")


class ScanResult(BaseModel):
    """Output of the cluster scanner for one page."""
    blocks: List[CandidateBlock] = Field(default_factory=list)
    body_fallback: bool = False
    page_image_urls: List[str] = Field(default_factory=list)


class TeamPage(BaseModel):
    """The page Bloodhound settled on."""
    url: str
    html: str
    score: int = 0
    hops: int = 0


class ContactPoint(BaseModel):
    """Evidence-bearing contact pair from harvesters or structured data."""
    email: Optional[str] = None
    phone: Optional[str] = None


class Address(BaseModel):
    """Postal address, partially populated."""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    def is_empty(self) -> bool:
        return not any([self.street, self.city, self.state, self.postal_code, self.country])


class PageMeta(BaseModel):
    """Head metadata harvested from the seed page."""
    title: str = ""
    description: str = ""
    image: Optional[str] = None
    theme_color: Optional[str] = None
    icon: Optional[str] = None


class PageEvidence(BaseModel):
    """Everything the deterministic harvesters found on the seed page."""
    url: str
    meta: PageMeta = Field(default_factory=PageMeta)
    json_ld: Dict[str, Any] = Field(default_factory=dict)
    contact_point_records: List[Dict[str, Any]] = Field(default_factory=list)
    contact_points: List[ContactPoint] = Field(default_factory=list)
    mailtos: List[str] = Field(default_factory=list)
    tels: List[str] = Field(default_factory=list)
    clean_text: str = ""
    footer_text: str = ""
    copyright_text: str = ""
    h1_text: str = ""

    @property
    def has_scraped_contact(self) -> bool:
        """True when a real mailto/tel link or regex match was found."""
        return bool(self.mailtos or self.tels)


class RosterOutcome(BaseModel):
    """Roster sub-pipeline output before the master merge."""
    team_page_url: str
    scan: ScanResult = Field(default_factory=ScanResult)
    members: List["RosterMember"] = Field(default_factory=list)
    block_avatars: List[Optional[str]] = Field(default_factory=list)
    avatar_pool: List[str] = Field(default_factory=list)


# =============================================================================
# FINAL RESULT
# =============================================================================


class RosterMember(CamelModel):
    """A normalized roster entry. first_name is never empty."""
    first_name: str = Field(..., min_length=1)
    last_name: str = ""
    job_title: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None


class ScoutResult(CamelModel):
    """Structured profile of the organization behind a website."""
    name: Optional[str] = None
    doing_business_as: Optional[str] = None
    entity_type: EntityType = EntityType.ORGANIZATION
    brand_color: str
    logo_url: Optional[str] = None
    website: str
    support_email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    tags: List[str] = Field(default_factory=list)
    roster: Optional[List[RosterMember]] = None


class ScoutDebug(CamelModel):
    """Diagnostics for a scout run, returned only when debug is requested."""
    team_page_url: str
    team_page_found: bool = False
    block_count: int = 0
    blocks_with_image: int = 0
    block_avatars: List[Optional[str]] = Field(default_factory=list)
    block_previews: List[str] = Field(default_factory=list)
    body_fallback: bool = False
    roster_count: int = 0
    notes: List[str] = Field(default_factory=list)
    all_img_urls: Optional[List[str]] = None
    avatar_pool: Optional[List[str]] = None
    roster_order: Optional[List[str]] = None


class ScoutSuccess(CamelModel):
    success: Literal[True] = True
    data: ScoutResult
    debug: Optional[ScoutDebug] = None


class ScoutFailure(CamelModel):
    success: Literal[False] = False
    error: str
    detail: Optional[str] = None


ScoutOutcome = Union[ScoutSuccess, ScoutFailure]


RosterOutcome.model_rebuild()

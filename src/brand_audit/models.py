"""Data models for brand audit results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


SECTION_NAMES: tuple[str, ...] = (
    "Branding",
    "Design",
    "Messaging",
    "Usability",
    "Content Strategy",
    "Digital Presence",
    "Customer Experience",
    "Competitor Analysis",
    "Conversion Optimization",
    "Consistency & Compliance",
)

SECTION_WEIGHTS: tuple[float, ...] = (
    0.12,  # Branding
    0.15,  # Design
    0.12,  # Messaging
    0.10,  # Usability
    0.10,  # Content Strategy
    0.10,  # Digital Presence
    0.08,  # Customer Experience
    0.08,  # Competitor Analysis
    0.08,  # Conversion Optimization
    0.07,  # Consistency & Compliance
)

if len(SECTION_WEIGHTS) != len(SECTION_NAMES) or abs(sum(SECTION_WEIGHTS) - 1.0) > 0.001:
    raise RuntimeError(f"Section weights must sum to 1.0, got {sum(SECTION_WEIGHTS)}")


class Priority(Enum):
    """How urgently a section needs work."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Difficulty(Enum):
    """Estimated implementation effort for a section's recommendations."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Trend(Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    NO_CHANGE = "no change"


@dataclass(frozen=True)
class SubScore:
    """A named criterion inside a section."""
    name: str
    score: float
    max_score: int = 100


@dataclass(frozen=True)
class Section:
    """One of the ten scored audit categories."""
    name: str
    score: float  # 0-100, one decimal
    weight: float
    sub_scores: tuple[SubScore, ...] = ()
    issues: int = 0
    recommendations: int = 0
    details: str = ""
    priority: Priority = Priority.MEDIUM
    difficulty: Difficulty = Difficulty.MEDIUM
    max_score: int = 100


@dataclass
class NavigationSummary:
    menu_items: list[str] = field(default_factory=list)
    has_search: bool = False
    has_language_selector: bool = False
    has_breadcrumbs: bool = False


@dataclass
class ContentStructure:
    heading_levels: list[str] = field(default_factory=list)  # e.g. ["h1", "h2", "h2"]
    has_contact_info: bool = False
    has_about_page: bool = False
    has_blog: bool = False
    has_products: bool = False


@dataclass
class SiteStructure:
    """Pages, navigation and content layout found on one page."""
    discovered_pages: list[str] = field(default_factory=list)
    navigation: NavigationSummary = field(default_factory=NavigationSummary)
    content_structure: ContentStructure = field(default_factory=ContentStructure)
    page_count: int = 0  # unique same-origin pages before capping


@dataclass
class FormSignals:
    count: int = 0
    has_labels: bool = False
    has_validation: bool = False
    has_contact_form: bool = False


@dataclass
class AccessibilitySignals:
    images_with_alt: int = 0
    images_total: int = 0
    has_skip_links: bool = False
    has_aria_labels: bool = False
    heading_structure_valid: bool = False  # exactly one h1

    @property
    def alt_text_coverage(self) -> float:
        """Share of images with an alt attribute (1.0 when there are none)."""
        if self.images_total == 0:
            return 1.0
        return round(self.images_with_alt / self.images_total, 3)

    @property
    def missing_alt_text(self) -> int:
        return self.images_total - self.images_with_alt


@dataclass
class InteractivitySignals:
    buttons: int = 0
    dropdowns: int = 0
    modals: int = 0
    carousels: int = 0


@dataclass
class MediaSignals:
    images: int = 0
    videos: int = 0
    has_lazy_loading: bool = False


@dataclass
class SocialSignals:
    social_links: int = 0
    has_social_sharing: bool = False


@dataclass
class UXFeatures:
    """Forms, accessibility, interactivity, media and social signals."""
    forms: FormSignals = field(default_factory=FormSignals)
    accessibility: AccessibilitySignals = field(default_factory=AccessibilitySignals)
    interactivity: InteractivitySignals = field(default_factory=InteractivitySignals)
    media: MediaSignals = field(default_factory=MediaSignals)
    social: SocialSignals = field(default_factory=SocialSignals)


@dataclass
class BusinessContext:
    """Best guess at what kind of business the site belongs to."""
    category: str = "general"
    confidence: float = 0.0
    business_type: str = "b2c"


@dataclass
class PageSignals:
    """Everything one analysis pass extracts from a page."""
    title: str
    description: str
    text: str
    site_structure: SiteStructure
    ux_features: UXFeatures
    business_context: BusinessContext = field(default_factory=BusinessContext)


@dataclass
class SectionInput:
    """A section score before assembly, as produced by a scorer."""
    score: float
    sub_scores: tuple[SubScore, ...] = ()
    issues: Optional[int] = None
    recommendations: Optional[int] = None
    details: str = ""


@dataclass
class SectionScores:
    """Scorer output: exactly one entry per catalog section, in catalog order."""
    overall_score: float
    sections: list[SectionInput]
    reported_overall: Optional[float] = None  # overall as stated by an external model


@dataclass(frozen=True)
class Audit:
    """Complete brand audit for a URL."""
    id: str
    url: str
    title: str
    created_at: datetime
    overall_score: float
    sections: tuple[Section, ...]
    summary: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only copy of whatever mapping was passed in
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def section_names(self) -> tuple[str, ...]:
        return tuple(s.name for s in self.sections)

    @property
    def deterministic(self) -> bool:
        return bool(self.metadata.get("deterministic"))

    @property
    def priorities(self) -> list[Section]:
        """High-priority sections, lowest score first."""
        return sorted(
            (s for s in self.sections if s.priority == Priority.HIGH),
            key=lambda s: s.score,
        )


@dataclass(frozen=True)
class ScoreDelta:
    """Change of one score between two adjacent audits."""
    previous: float
    current: float
    delta: float
    trend: Trend

    @property
    def label(self) -> str:
        if self.trend == Trend.NO_CHANGE:
            return Trend.NO_CHANGE.value
        return f"{self.delta:+.1f}"


@dataclass
class ComparisonResult:
    """Positional comparison of 1-3 audits, in input order."""
    audits: list[Audit]
    section_deltas: dict[int, list[ScoreDelta]] = field(default_factory=dict)
    overall_trends: list[Optional[ScoreDelta]] = field(default_factory=list)

    @property
    def section_names(self) -> tuple[str, ...]:
        return self.audits[0].section_names if self.audits else ()

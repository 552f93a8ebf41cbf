"""
Core data models for the scoring engine.
All modules import from here; nothing else is cross-imported at this level.

NOTE: `from __future__ import annotations` is intentionally omitted here.
Python 3.13.0 has a regression (bpo-121814) where that import causes a crash
in the dataclasses decorator when the module is not yet fully registered in
sys.modules. Python 3.9+ supports generic aliases (list[str], dict[str, Any])
natively, so the future import is unnecessary. The loaders below also read
`field.type` at runtime, which needs real types rather than strings.
"""

import enum
import logging
import typing
from dataclasses import asdict, dataclass, field, fields
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, Optional

logger = logging.getLogger(__name__)


# ── Severity / effort ─────────────────────────────────────────────────────────
class Severity:
    CRITICAL = "Critical"
    HIGH     = "High"
    MEDIUM   = "Medium"
    LOW      = "Low"

    ALL = [CRITICAL, HIGH, MEDIUM, LOW]

    # Accessibility audits report Serious/Moderate/Minor
    ALIASES = {
        "critical": CRITICAL,
        "serious":  HIGH,
        "high":     HIGH,
        "moderate": MEDIUM,
        "medium":   MEDIUM,
        "minor":    LOW,
        "low":      LOW,
    }

    RANK = {CRITICAL: 0, HIGH: 1, MEDIUM: 2, LOW: 3}

    ICONS = {
        CRITICAL: "🔴",
        HIGH:     "🟠",
        MEDIUM:   "🟡",
        LOW:      "🔵",
    }

    @classmethod
    def normalize(cls, value: Any) -> str:
        """Map any known spelling to a canonical severity; unknown values become Low."""
        return cls.ALIASES.get(str(value or "").strip().lower(), cls.LOW)


class Effort:
    LOW      = "Low"
    MODERATE = "Moderate"
    HIGH     = "High"

    ALL = [LOW, MODERATE, HIGH]
    RANK = {LOW: 0, MODERATE: 1, HIGH: 2}

    @classmethod
    def normalize(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        if text in ("high", "hard"):
            return cls.HIGH
        if text in ("moderate", "medium"):
            return cls.MODERATE
        return cls.LOW


# ── Categories ────────────────────────────────────────────────────────────────
class Category:
    ACCESSIBILITY = "accessibility"
    CONTENT       = "content"
    SEO           = "seo"
    SECURITY      = "security"
    AGENT         = "agent_suitability"
    PERFORMANCE   = "performance"
    TABLE_DATA    = "table_data"

    ALL = [ACCESSIBILITY, CONTENT, SEO, SECURITY, AGENT, PERFORMANCE, TABLE_DATA]

    LABELS = {
        ACCESSIBILITY: "Accessibility",
        CONTENT:       "Content",
        SEO:           "SEO",
        SECURITY:      "Security",
        AGENT:         "Agent Suitability",
        PERFORMANCE:   "Performance",
        TABLE_DATA:    "Table Data",
    }

    @classmethod
    def label(cls, category: str) -> str:
        return cls.LABELS.get(category, category.replace("_", " ").title())


class IssueKind(enum.Enum):
    """Closed set of issue families. Every member must have an importance entry
    in reporting.feedback.IMPORTANCE_BY_KIND."""

    # agent suitability
    MISSING_LANDMARK = "missing_landmark"
    FORM_FIELDS = "form_fields"
    MISSING_STRUCTURED_DATA = "missing_structured_data"
    MISSING_AGENT_MANIFEST = "missing_agent_manifest"
    CRAWLER_RESTRICTION = "crawler_restriction"
    MISSING_AI_TXT = "missing_ai_txt"
    RENDERED_STATE = "rendered_state"
    AGENT_VISIBILITY = "agent_visibility"
    ERROR_PERSISTENCE = "error_persistence"
    BOT_PROTECTION = "bot_protection"
    API_DISCOVERY = "api_discovery"
    TABLE_SEMANTICS = "table_semantics"
    # accessibility
    ACCESSIBILITY = "accessibility"
    # content
    HEADING_STRUCTURE = "heading_structure"
    FRESHNESS = "freshness"
    MEDIA = "media"
    THIN_CONTENT = "thin_content"
    # seo
    TITLE = "title"
    META_DESCRIPTION = "meta_description"
    URL_STRUCTURE = "url_structure"
    INTERNAL_LINKS = "internal_links"
    IMAGE_ALT = "image_alt"
    MOBILE = "mobile"
    SOCIAL_TAGS = "social_tags"
    # security
    TRANSPORT = "transport"
    SECURITY_HEADERS = "security_headers"
    COOKIES = "cookies"
    CSP = "csp"
    XSS = "xss"
    MIXED_CONTENT = "mixed_content"
    VULNERABLE_PATTERN = "vulnerable_pattern"
    # performance
    PAGE_SPEED = "page_speed"
    LAYOUT_SHIFT = "layout_shift"


class Importance(enum.Enum):
    ESSENTIAL = "essential"
    NICE_TO_HAVE = "nice_to_have"


# ── Signal sub-records ────────────────────────────────────────────────────────
@dataclass(frozen=True)
class SemanticSignals:
    has_main: bool = False
    has_nav: bool = False
    has_header: bool = False
    has_footer: bool = False
    has_article: bool = False
    has_section: bool = False
    nav_count: int = 0
    article_count: int = 0
    section_count: int = 0
    div_count: int = 0


@dataclass(frozen=True)
class FormSignals:
    form_count: int = 0
    total_inputs: int = 0
    standard_named_fields: int = 0
    fields_with_labels: int = 0
    # inputs that can carry autocomplete (hidden/submit/button excluded)
    autocomplete_eligible_fields: int = 0
    fields_with_autocomplete: int = 0


@dataclass(frozen=True)
class MetadataSignals:
    structured_data_blocks: tuple[str, ...] = ()   # raw JSON-LD payloads
    has_microdata: bool = False
    has_llms_txt_reference: bool = False
    has_llms_txt_meta: bool = False
    has_ai_txt_reference: bool = False
    robots_meta: str = ""


@dataclass(frozen=True)
class ContentSignals:
    title: str = ""
    meta_description: str = ""
    h1_text: str = ""
    h1_count: int = 0
    h2_count: int = 0
    h3_count: int = 0
    h4_count: int = 0
    h5_count: int = 0
    h6_count: int = 0
    word_count: int = 0
    image_count: int = 0
    images_with_alt: int = 0
    video_count: int = 0
    interactive_count: int = 0
    internal_link_count: int = 0
    external_link_count: int = 0
    has_viewport_meta: bool = False
    og_tag_count: int = 0
    twitter_tag_count: int = 0
    last_modified: Optional[str] = None   # ISO-8601 date or datetime


@dataclass(frozen=True)
class SecuritySignals:
    headers: dict[str, str] = field(default_factory=dict)
    cookies: tuple[str, ...] = ()          # raw Set-Cookie values

    def __post_init__(self):
        headers = self.headers
        if not isinstance(headers, Mapping):
            if headers:
                logger.debug("Ignoring non-mapping headers: %r", type(headers).__name__)
            headers = {}
        normalized = {str(k).lower(): str(v) for k, v in headers.items()}
        object.__setattr__(self, "headers", normalized)


@dataclass(frozen=True)
class RenderedSignals:
    has_data_state: bool = False
    has_validation_state: bool = False
    has_loading_indicators: bool = False
    has_role_alert: bool = False
    has_aria_live: bool = False
    has_aria_invalid: bool = False
    has_agent_visibility_control: bool = False

    @property
    def has_persistent_errors(self) -> bool:
        return self.has_role_alert and self.has_aria_live


@dataclass(frozen=True)
class TableSignals:
    table_count: int = 0
    tables_with_caption: int = 0
    tables_with_scope: int = 0
    total_cells: int = 0
    cells_with_data_attributes: int = 0


@dataclass(frozen=True)
class AccessSignals:
    has_bot_protection: bool = False
    captcha_type: str = "None"
    has_api_docs: bool = False
    has_open_api_spec: bool = False
    has_rest_indicators: bool = False
    has_graphql_indicators: bool = False


@dataclass(frozen=True)
class PerformanceSignals:
    load_time: Optional[float] = None     # ms
    lcp: Optional[float] = None           # ms
    fcp: Optional[float] = None           # ms
    cls: Optional[float] = None
    ttfb: Optional[float] = None          # ms

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass(frozen=True)
class AuditFinding:
    """One accessibility-audit result as reported by the audit runner."""
    code: str = ""
    message: str = ""
    severity: str = ""        # Critical / Serious / Moderate / Minor
    context: str = ""
    remediation: str = ""


# ── Core page signal record ───────────────────────────────────────────────────
@dataclass(frozen=True)
class SignalRecord:
    url: str
    html_source: str = "served"           # "served" or "rendered"
    html: str = ""

    semantic: SemanticSignals = field(default_factory=SemanticSignals)
    forms: FormSignals = field(default_factory=FormSignals)
    metadata: MetadataSignals = field(default_factory=MetadataSignals)
    content: ContentSignals = field(default_factory=ContentSignals)
    security: SecuritySignals = field(default_factory=SecuritySignals)
    rendered: RenderedSignals = field(default_factory=RenderedSignals)
    tables: TableSignals = field(default_factory=TableSignals)
    access: AccessSignals = field(default_factory=AccessSignals)

    # None means "not measured", distinct from "measured, nothing found"
    accessibility_issues: Optional[tuple[AuditFinding, ...]] = None
    performance: Optional[PerformanceSignals] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SignalRecord":
        """Build a record from a plain mapping. Unknown keys are ignored and
        missing keys fall back to the field defaults."""
        data = data or {}
        findings = data.get("accessibility_issues")
        perf = data.get("performance")
        return cls(
            url=str(data.get("url") or ""),
            html_source=str(data.get("html_source") or "served"),
            html=str(data.get("html") or ""),
            semantic=_build(SemanticSignals, data.get("semantic")),
            forms=_build(FormSignals, data.get("forms")),
            metadata=_build(MetadataSignals, data.get("metadata")),
            content=_build(ContentSignals, data.get("content")),
            security=_build(SecuritySignals, data.get("security")),
            rendered=_build(RenderedSignals, data.get("rendered")),
            tables=_build(TableSignals, data.get("tables")),
            access=_build(AccessSignals, data.get("access")),
            accessibility_issues=(
                tuple(_build(AuditFinding, f) for f in findings)
                if isinstance(findings, (list, tuple)) else None
            ),
            performance=_build(PerformanceSignals, perf) if isinstance(perf, Mapping) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _build(cls, data: Any):
    """Build a sub-record, skipping fields whose value has the wrong shape."""
    if not isinstance(data, Mapping):
        if data is not None:
            logger.debug("Ignoring malformed %s: %r", cls.__name__, type(data).__name__)
        return cls()
    kwargs = {}
    for f in fields(cls):
        if f.name not in data or data[f.name] is None:
            continue
        value = data[f.name]
        origin = typing.get_origin(f.type)
        if origin is tuple:
            # a lone string is one entry, not a sequence of characters
            if isinstance(value, str):
                value = (value,)
            elif isinstance(value, (list, tuple)):
                value = tuple(value)
            else:
                logger.debug("Ignoring malformed %s.%s", cls.__name__, f.name)
                continue
        elif origin is dict and not isinstance(value, Mapping):
            logger.debug("Ignoring malformed %s.%s", cls.__name__, f.name)
            continue
        kwargs[f.name] = value
    return cls(**kwargs)


# ── Run context ───────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ScoringContext:
    """Explicit per-run inputs: clock, logger and optional collaborators."""
    now: datetime
    logger: logging.Logger
    uniqueness: Optional[Callable[["SignalRecord"], float]] = None
    grammar: Optional[Callable[["SignalRecord"], float]] = None

    @classmethod
    def create(
        cls,
        now: Optional[datetime] = None,
        logger: Optional[logging.Logger] = None,
        uniqueness: Optional[Callable[["SignalRecord"], float]] = None,
        grammar: Optional[Callable[["SignalRecord"], float]] = None,
    ) -> "ScoringContext":
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return cls(
            now=now,
            logger=logger or logging.getLogger("scorecard"),
            uniqueness=uniqueness,
            grammar=grammar,
        )

    @property
    def run_date(self) -> date:
        return self.now.date()


# ── Issue model ───────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Issue:
    url: str
    category: str
    kind: IssueKind
    severity: str           # Severity.*
    message: str
    recommendation: str
    effort: str = Effort.LOW
    source_reference: str = ""
    detail: str = ""        # specific value / context that triggered the issue

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "category": self.category,
            "kind": self.kind.value,
            "severity": self.severity,
            "message": self.message,
            "recommendation": self.recommendation,
            "effort": self.effort,
            "sourceReference": self.source_reference,
            "detail": self.detail,
        }


# ── Scores ────────────────────────────────────────────────────────────────────
def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def format_score(value: Any) -> str:
    """Fixed two-decimal rendering used by every downstream writer."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "0.00"
    return f"{value:.2f}"


@dataclass(frozen=True)
class CategoryScore:
    category: str
    score: float
    subscores: dict[str, float] = field(default_factory=dict)
    issues: tuple[Issue, ...] = ()
    details: dict[str, Any] = field(default_factory=dict)   # non-numeric extras

    def __post_init__(self):
        object.__setattr__(self, "score", clamp_score(self.score))
        object.__setattr__(self, "issues", tuple(self.issues))

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "score": format_score(self.score),
            "subscores": {k: format_score(v) for k, v in self.subscores.items()},
            "issues": [i.to_dict() for i in self.issues],
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class PageReport:
    url: str
    categories: dict[str, CategoryScore] = field(default_factory=dict)
    errors: tuple[str, ...] = ()

    @property
    def issues(self) -> list[Issue]:
        out: list[Issue] = []
        for score in self.categories.values():
            out.extend(score.issues)
        return out

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def score(self, category: str) -> Optional[float]:
        cat = self.categories.get(category)
        return cat.score if cat else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "categories": {name: s.to_dict() for name, s in self.categories.items()},
            "errors": list(self.errors),
        }


# ── Site aggregate ────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class CategorySummary:
    category: str
    average: float
    status: str
    page_count: int = 0
    issues_by_severity: dict[str, int] = field(default_factory=dict)
    subscores: dict[str, float] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return self.page_count > 0

    @property
    def total_issues(self) -> int:
        return sum(self.issues_by_severity.values())


@dataclass(frozen=True)
class SiteAggregate:
    page_count: int
    categories: dict[str, CategorySummary] = field(default_factory=dict)
    pages_with_errors: int = 0

    def metrics(self) -> dict[str, float]:
        """Flat numeric view used by the trend comparator."""
        out: dict[str, float] = {
            "page_count": float(self.page_count),
            "pages_with_errors": float(self.pages_with_errors),
        }
        for name, summary in self.categories.items():
            if not summary.has_data:
                continue
            out[f"{name}.score"] = summary.average
            out[f"{name}.issues"] = float(summary.total_issues)
            for sub, value in summary.subscores.items():
                out[f"{name}.{sub}"] = value
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "pageCount": self.page_count,
            "pagesWithErrors": self.pages_with_errors,
            "categories": {
                name: {
                    "average": s.average,
                    "status": s.status,
                    "pageCount": s.page_count,
                    "issuesBySeverity": dict(s.issues_by_severity),
                    "subscores": dict(s.subscores),
                }
                for name, s in self.categories.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SiteAggregate":
        if not isinstance(data, Mapping) or "categories" not in data:
            raise ValueError("Serialized aggregate must contain a 'categories' mapping")
        raw_categories = data.get("categories") or {}
        if not isinstance(raw_categories, Mapping):
            raise ValueError("Serialized aggregate 'categories' must be a mapping")
        categories = {}
        for name, raw in raw_categories.items():
            if not isinstance(raw, Mapping):
                raise ValueError(f"Serialized category {name!r} must be a mapping")
            for key in ("issuesBySeverity", "subscores"):
                if raw.get(key) is not None and not isinstance(raw.get(key), Mapping):
                    raise ValueError(f"Serialized category {name!r}: {key!r} must be a mapping")
            categories[name] = CategorySummary(
                category=name,
                average=float(raw.get("average", 0.0)),
                status=str(raw.get("status", "")),
                page_count=int(raw.get("pageCount", 0)),
                issues_by_severity={k: int(v) for k, v in (raw.get("issuesBySeverity") or {}).items()},
                subscores={k: float(v) for k, v in (raw.get("subscores") or {}).items()},
            )
        return cls(
            page_count=int(data.get("pageCount", 0)),
            categories=categories,
            pages_with_errors=int(data.get("pagesWithErrors", 0)),
        )


# ── Trend ─────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class TrendDelta:
    metric: str
    previous: float
    current: float
    delta: float
    percent_change: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "previous": self.previous,
            "current": self.current,
            "delta": self.delta,
            "percentChange": self.percent_change,
        }


# ── Feedback ──────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Recommendation:
    category: str
    priority: str           # Severity.*
    effort: str             # Effort.*
    recommendation: str
    message: str
    importance: Importance
    source_reference: str = ""
    affected_pages: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "priority": self.priority,
            "effort": self.effort,
            "recommendation": self.recommendation,
            "issue": self.message,
            "importance": self.importance.value,
            "sourceReference": self.source_reference,
            "affectedPages": self.affected_pages,
        }


@dataclass(frozen=True)
class Finding:
    category: str
    severity: str
    finding: str
    affected_pages: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "severity": self.severity,
            "finding": self.finding,
            "affectedPages": self.affected_pages,
        }


@dataclass(frozen=True)
class Feedback:
    essential: tuple[Issue, ...] = ()
    nice_to_have: tuple[Issue, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()


# ── Executive summary ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class CategoryBlock:
    category: str
    status: str
    score: float
    page_count: int = 0
    issues_by_severity: dict[str, int] = field(default_factory=dict)
    trend: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        out = {
            "category": Category.label(self.category),
            "status": self.status,
            "score": format_score(self.score),
            "pagesAnalyzed": self.page_count,
            "issuesBySeverity": dict(self.issues_by_severity),
        }
        if self.trend is not None:
            out["trend"] = {
                "delta": format_score(self.trend["delta"]),
                "percentChange": format_score(self.trend["percent_change"]),
                "direction": self.trend["direction"],
            }
        return out


@dataclass(frozen=True)
class Comparison:
    deltas: tuple[TrendDelta, ...] = ()
    improvements: tuple[str, ...] = ()
    regressions: tuple[str, ...] = ()
    page_count_change: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "deltas": [d.to_dict() for d in self.deltas],
            "improvements": list(self.improvements),
            "regressions": list(self.regressions),
            "urlCountChange": self.page_count_change,
        }


@dataclass(frozen=True)
class ExecutiveSummary:
    generated_at: datetime
    site: str
    overview: dict[str, Any]
    categories: dict[str, CategoryBlock]
    key_findings: tuple[Finding, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    comparison: Optional[Comparison] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat(),
            "site": self.site,
            "overview": dict(self.overview),
            "perCategorySummary": {name: b.to_dict() for name, b in self.categories.items()},
            "keyFindings": [f.to_dict() for f in self.key_findings],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "comparison": self.comparison.to_dict() if self.comparison else None,
        }


# ── Top-level run result ──────────────────────────────────────────────────────
@dataclass(frozen=True)
class AuditRun:
    pages: tuple[PageReport, ...]
    aggregate: SiteAggregate
    feedback: Feedback
    summary: ExecutiveSummary
    comparison: Optional[tuple[TrendDelta, ...]] = None

    @property
    def failed_pages(self) -> list[PageReport]:
        return [p for p in self.pages if p.has_errors]

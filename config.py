"""
Global configuration constants for the scoring engine.
All tunable thresholds and point tables live here.
"""

# ── Run defaults ──────────────────────────────────────────────────────────────
DEFAULT_MAX_WORKERS = 8
DEFAULT_TOP_FINDINGS = 10
SCHEMA_VERSION = "1.0.0"

# ── Accessibility ─────────────────────────────────────────────────────────────
# Deduction per finding is weight * ACCESSIBILITY_DEDUCTION_MULTIPLIER
ACCESSIBILITY_SEVERITY_WEIGHTS: dict[str, int] = {
    "Critical": 5,
    "Serious":  3,
    "Moderate": 2,
    "Minor":    1,
}
ACCESSIBILITY_DEFAULT_WEIGHT = 1
ACCESSIBILITY_DEDUCTION_MULTIPLIER = 2

WCAG_GUIDELINES: dict[str, str] = {
    "1.1": "Text Alternatives",
    "1.2": "Time-based Media",
    "1.3": "Adaptable",
    "1.4": "Distinguishable",
    "2.1": "Keyboard Accessible",
    "2.2": "Enough Time",
    "2.3": "Seizures and Physical Reactions",
    "2.4": "Navigable",
    "2.5": "Input Modalities",
    "3.1": "Readable",
    "3.2": "Predictable",
    "3.3": "Input Assistance",
    "4.1": "Compatible",
}

WCAG_MANUAL_CHECKS: dict[str, list[str]] = {
    "1.1": ["Verify all non-text content has appropriate text alternatives"],
    "1.2": ["Check time-based media has captions and transcripts"],
    "1.3": ["Verify content structure and relationships are programmatically determinable"],
    "1.4": ["Check color contrast and text resizing"],
    "2.1": ["Verify all functionality is available via keyboard"],
    "2.2": ["Check timing is adjustable or can be turned off"],
    "2.3": ["Verify no content flashes more than 3 times per second"],
    "2.4": ["Check navigation and focus order"],
    "2.5": ["Verify pointer gestures have alternative input methods"],
    "3.1": ["Check language of page and parts"],
    "3.2": ["Verify consistent navigation and identification"],
    "3.3": ["Check error prevention and recovery"],
    "4.1": ["Verify compatibility with assistive technologies"],
}

# ── Content ───────────────────────────────────────────────────────────────────
HEADING_MISSING_H1_PENALTY = 30
HEADING_MULTIPLE_H1_PENALTY = 15
HEADING_ORPHAN_PENALTIES = {2: 20, 3: 15, 4: 10}   # tier -> penalty when parent tier absent
HEADING_EXCESS_LIMITS = {2: 10, 3: 15}             # tier -> max count before penalty
HEADING_EXCESS_PENALTY = 10

# (max age in days, score); anything older falls through to the decay formula
FRESHNESS_STEPS: list[tuple[int, float]] = [
    (7,   100.0),
    (30,   90.0),
    (90,   75.0),
    (180,  60.0),
    (365,  40.0),
]
FRESHNESS_DECAY_BASE = 30.0
FRESHNESS_DECAY_DAYS_PER_POINT = 100.0

# kind -> (points per item, cap)
MEDIA_POINTS: dict[str, tuple[int, int]] = {
    "images":      (5, 30),
    "videos":      (10, 40),
    "interactive": (5, 30),
}

CONTENT_WEIGHTS: dict[str, float] = {
    "headings":   0.30,
    "freshness":  0.25,
    "uniqueness": 0.15,
    "grammar":    0.15,
    "media":      0.15,
}

THIN_CONTENT_WORD_COUNT = 300

# ── SEO ───────────────────────────────────────────────────────────────────────
SEO_WEIGHTS: dict[str, int] = {
    "title":            10,
    "meta_description":  8,
    "url_structure":     7,
    "h1":                6,
    "content_length":    8,
    "content_quality":   9,
    "internal_linking":  7,
    "image_alt":         6,
    "page_speed":        9,
    "mobile":            8,
    "https":             7,
    "structured_data":   6,
    "social_tags":       5,
}

TITLE_MIN_CHARS = 30
TITLE_MAX_CHARS = 60
DESCRIPTION_MIN_CHARS = 70
DESCRIPTION_MAX_CHARS = 155
H1_MAX_LENGTH = 70
CONTENT_MIN_WORDS = 300
CONTENT_MAX_WORDS = 1500
INTERNAL_LINKS_MIN = 2
INTERNAL_LINKS_MAX = 20
PAGE_SPEED_FAST_MS = 1000
PAGE_SPEED_SLOW_MS = 5000
URL_SEGMENT_MAX_CHARS = 20
URL_MAX_SEGMENTS = 4

# ── Security ──────────────────────────────────────────────────────────────────
SECURITY_HEADER_POINTS: dict[str, int] = {
    "strict-transport-security": 20,
    "content-security-policy":   20,
    "x-frame-options":           15,
    "x-content-type-options":    15,
    "referrer-policy":           15,
    "permissions-policy":        15,
}

COOKIE_PENALTIES: dict[str, int] = {
    "secure":   20,
    "httponly": 20,
    "samesite": 15,
    "expiry":   10,
}

CSP_REQUIRED_DIRECTIVES = [
    "default-src",
    "script-src",
    "style-src",
    "img-src",
    "connect-src",
    "form-action",
    "frame-ancestors",
]
CSP_UNSAFE_PENALTY = 20

XSS_HEADER_MISSING_PENALTY = 50
XSS_HEADER_WEAK_PENALTY = 25
XSS_CSP_MISSING_PENALTY = 25
XSS_CSP_NO_SCRIPT_SRC_PENALTY = 15
XSS_CSP_UNSAFE_INLINE_PENALTY = 15
XSS_STRONG_VALUE = "1; mode=block"

VULNERABILITY_PENALTY = 10

SECURITY_WEIGHTS: dict[str, float] = {
    "https":           0.30,
    "headers":         0.20,
    "cookies":         0.15,
    "csp":             0.15,
    "xss":             0.10,
    "vulnerabilities": 0.10,
}

# ── Agent suitability ─────────────────────────────────────────────────────────
# Canonical served-score table; sums to 100 (the restrictive-robots penalty is
# the only negative entry and is applied on top).
SEMANTIC_POINTS: dict[str, int] = {
    "main":               6,
    "nav":                5,
    "header":             3,
    "footer":             3,
    "article_or_section": 3,
}
FORM_NAMING_POINTS = 15
FORM_LABEL_POINTS = 10
AUTOCOMPLETE_POINTS = 15
STRUCTURED_DATA_POINTS = 15
AGENT_MANIFEST_POINTS = 10
AI_TXT_POINTS = 5
TABLE_MARKUP_POINTS = 10
CRAWLER_RESTRICTION_PENALTY = 5

RENDERED_BONUS_POINTS: dict[str, int] = {
    "data_state":         7,
    "validation_state":   5,
    "loading_indicators": 3,
    "persistent_errors": 10,
    "aria_invalid":       5,
}
RENDERED_BONUS_CAP = 30

STANDARD_NAME_RATIO_MIN = 0.5
LABEL_RATIO_MIN = 0.8
AUTOCOMPLETE_RATIO_MIN = 0.5
API_DISCOVERABILITY_POINTS: dict[str, int] = {
    "api_docs":     25,
    "open_api":     25,
    "rest":         15,
    "graphql":      15,
}
API_DISCOVERABILITY_MIN = 25

RESTRICTIVE_ROBOTS_DIRECTIVES = ("noindex", "nofollow", "noarchive")

# ── Performance ───────────────────────────────────────────────────────────────
# metric -> [(exclusive upper bound, points), ...]; best band first
PERFORMANCE_BANDS: dict[str, list[tuple[float, int]]] = {
    "load_time": [(1000, 25), (2000, 20), (3000, 15)],
    "lcp":       [(2500, 25), (4000, 15)],
    "fcp":       [(1800, 25), (3000, 15)],
    "cls":       [(0.1, 25), (0.25, 15)],
}
PERFORMANCE_POINTS_PER_METRIC = 25
SLOW_LOAD_TIME_MS = 3000
SLOW_LCP_MS = 2500
SLOW_FCP_MS = 3000
POOR_CLS = 0.25

# ── Table data ────────────────────────────────────────────────────────────────
TABLE_DATA_WEIGHTS: dict[str, int] = {
    "captions":         40,
    "scope":            40,
    "machine_readable": 20,
}

# ── Status buckets ────────────────────────────────────────────────────────────
# category -> [(minimum score, label), ...] checked top-down; last label is the floor
DEFAULT_STATUS_THRESHOLDS: list[tuple[float, str]] = [
    (90, "Excellent"),
    (70, "Good"),
    (50, "Fair"),
    (0,  "Needs Improvement"),
]

STATUS_THRESHOLDS: dict[str, list[tuple[float, str]]] = {
    "accessibility": [
        (90, "Excellent"),
        (70, "Good"),
        (50, "Fair"),
        (0,  "Critical"),
    ],
    "seo": [
        (90, "Excellent"),
        (80, "Very Good"),
        (70, "Good"),
        (60, "Fair"),
        (0,  "Needs Improvement"),
    ],
    "performance": [
        (75, "Excellent"),
        (50, "Good"),
        (25, "Fair"),
        (0,  "Needs Improvement"),
    ],
    "agent_suitability": [
        (70, "Good"),
        (50, "Fair"),
        (0,  "Needs Improvement"),
    ],
}

NO_DATA_STATUS = "No data"

# ── Trend polarity ────────────────────────────────────────────────────────────
HIGHER_IS_BETTER = "higher_is_better"
LOWER_IS_BETTER = "lower_is_better"
NEUTRAL = "neutral"

# Exact metric names; anything not listed falls back to suffix rules in
# reporting.summary.metric_polarity
METRIC_POLARITY: dict[str, str] = {
    "page_count":                      NEUTRAL,
    "pages_with_errors":               LOWER_IS_BETTER,
    "performance.load_time":           LOWER_IS_BETTER,
    "performance.lcp":                 LOWER_IS_BETTER,
    "performance.fcp":                 LOWER_IS_BETTER,
    "performance.cls":                 LOWER_IS_BETTER,
    "performance.ttfb":                LOWER_IS_BETTER,
    "security.vulnerabilities":        LOWER_IS_BETTER,
    "security.mixed_content":          LOWER_IS_BETTER,
    "accessibility.total_issues":      LOWER_IS_BETTER,
    "accessibility.critical":          LOWER_IS_BETTER,
    "accessibility.serious":           LOWER_IS_BETTER,
    "accessibility.moderate":          LOWER_IS_BETTER,
    "accessibility.minor":             LOWER_IS_BETTER,
    "accessibility.level_a":           LOWER_IS_BETTER,
    "accessibility.level_aa":          LOWER_IS_BETTER,
    "accessibility.level_aaa":         LOWER_IS_BETTER,
    "accessibility.aria_issues":       LOWER_IS_BETTER,
    "accessibility.contrast_issues":   LOWER_IS_BETTER,
    "accessibility.keyboard_issues":   LOWER_IS_BETTER,
    "content.word_count":              NEUTRAL,
}

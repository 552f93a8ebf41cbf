"""
Reference extraction: builds a SignalRecord from already-fetched page data.

Everything structural goes through the DocumentQuery capability; only the
security pattern scans read the raw HTML (kept on the record).
"""
from __future__ import annotations

import logging
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, Mapping, Optional, Union
from urllib.parse import urljoin, urlparse

import tldextract

from models import (
    AccessSignals, AuditFinding, ContentSignals, FormSignals, MetadataSignals, PerformanceSignals,
    RenderedSignals, SecuritySignals, SemanticSignals, SignalRecord, TableSignals,
)
from extraction.document import DocumentQuery, SoupDocument

logger = logging.getLogger(__name__)

# bundled public-suffix snapshot only; extraction never touches the network
_tld = tldextract.TLDExtract(suffix_list_urls=())

STANDARD_FIELD_NAMES = frozenset([
    "email", "firstName", "first_name", "lastName", "last_name",
    "fullName", "full_name", "phone", "telephone",
    "postcode", "postal_code", "address1", "street_address",
    "address2", "city", "county", "state", "country", "country_code",
    "cardNumber", "card_number", "expiryDate", "expiry",
    "cvv", "cvc", "password", "username",
    "dateOfBirth", "date_of_birth", "company", "company_name", "quantity",
])

_FIELDS = "input, select, textarea"
_AUTOCOMPLETE_FIELDS = "input:not([type=hidden]):not([type=submit]):not([type=button]), select, textarea"
_AUTOCOMPLETE_SET = (
    "input[autocomplete]:not([type=hidden]):not([type=submit]):not([type=button]), "
    "select[autocomplete], textarea[autocomplete]"
)
_TABLE_DATA_ATTRS = ("data-price", "data-currency", "data-quantity", "data-in-stock",
                     "data-product-id", "data-rating")


def extract_signals(
    url: str,
    html: str,
    headers: Optional[Mapping[str, str]] = None,
    cookies: Optional[Iterable[str]] = None,
    accessibility_issues: Optional[Iterable[Union[AuditFinding, Mapping[str, Any]]]] = None,
    performance: Optional[Union[PerformanceSignals, Mapping[str, Any]]] = None,
    last_modified: Optional[str] = None,
    html_source: str = "served",
    log: Optional[logging.Logger] = None,
) -> SignalRecord:
    """
    Build the signal record for one page.

    headers:       response headers (any case)
    cookies:       raw Set-Cookie values
    last_modified: ISO date; falls back to the Last-Modified header, then
                   article:modified_time metadata
    """
    log = log or logger
    doc = SoupDocument(html)
    headers = {str(k).lower(): str(v) for k, v in (headers or {}).items()}

    findings = None
    if accessibility_issues is not None:
        findings = tuple(
            f if isinstance(f, AuditFinding) else AuditFinding(
                code=str(f.get("code", "")),
                message=str(f.get("message", "")),
                severity=str(f.get("severity", f.get("type", ""))),
                context=str(f.get("context", "")),
                remediation=str(f.get("remediation", "")),
            )
            for f in accessibility_issues
        )

    if isinstance(performance, Mapping):
        performance = PerformanceSignals(**{
            k: float(v) for k, v in performance.items()
            if k in ("load_time", "lcp", "fcp", "cls", "ttfb") and v is not None
        })

    modified = last_modified or _header_date(headers.get("last-modified"), log) \
        or doc.attribute('meta[property="article:modified_time"]', "content")

    return SignalRecord(
        url=url,
        html_source=html_source,
        html=html or "",
        semantic=semantic_signals(doc),
        forms=form_signals(doc),
        metadata=metadata_signals(doc),
        content=content_signals(doc, url, modified),
        security=SecuritySignals(headers=headers, cookies=tuple(cookies or ())),
        rendered=rendered_signals(doc),
        tables=table_signals(doc),
        access=access_signals(doc),
        accessibility_issues=findings,
        performance=performance,
    )


# ── Semantic markup ───────────────────────────────────────────────────────────

def semantic_signals(doc: DocumentQuery) -> SemanticSignals:
    return SemanticSignals(
        has_main=doc.exists("main"),
        has_nav=doc.exists("nav"),
        has_header=doc.exists("header"),
        has_footer=doc.exists("footer"),
        has_article=doc.exists("article"),
        has_section=doc.exists("section"),
        nav_count=doc.count("nav"),
        article_count=doc.count("article"),
        section_count=doc.count("section"),
        div_count=doc.count("div"),
    )


# ── Forms ─────────────────────────────────────────────────────────────────────

def form_signals(doc: DocumentQuery) -> FormSignals:
    names = doc.attributes(_FIELDS, "name")
    ids = doc.attributes(_FIELDS, "id")
    aria = doc.attributes(_FIELDS, "aria-label")
    label_targets = {v for v in doc.attributes("label[for]", "for") if v}

    standard = 0
    labelled = 0
    for name, id_, aria_label in zip(names, ids, aria):
        if name in STANDARD_FIELD_NAMES or id_ in STANDARD_FIELD_NAMES:
            standard += 1
        if aria_label or (id_ and id_ in label_targets):
            labelled += 1

    return FormSignals(
        form_count=doc.count("form"),
        total_inputs=len(names),
        standard_named_fields=standard,
        fields_with_labels=labelled,
        autocomplete_eligible_fields=doc.count(_AUTOCOMPLETE_FIELDS),
        fields_with_autocomplete=doc.count(_AUTOCOMPLETE_SET),
    )


# ── Machine-readable metadata ─────────────────────────────────────────────────

def metadata_signals(doc: DocumentQuery) -> MetadataSignals:
    return MetadataSignals(
        structured_data_blocks=tuple(
            t for t in doc.texts('script[type="application/ld+json"]') if t
        ),
        has_microdata=doc.exists('[itemscope][itemtype*="schema.org"]'),
        has_llms_txt_reference=doc.exists('link[href*="llms.txt"], a[href*="llms.txt"]'),
        has_llms_txt_meta=doc.exists('meta[name="llms-txt"], meta[property="llms:txt"]'),
        has_ai_txt_reference=doc.exists('link[href*="ai.txt"], a[href*="ai.txt"]'),
        robots_meta=doc.attribute('meta[name="robots"]', "content") or "",
    )


# ── Content ───────────────────────────────────────────────────────────────────

def content_signals(doc: DocumentQuery, url: str, last_modified: Optional[str]) -> ContentSignals:
    text = doc.visible_text()
    alts = doc.attributes("img", "alt")
    internal, external = _classify_links(url, doc.attributes("a[href]", "href"))

    return ContentSignals(
        title=doc.text("title"),
        meta_description=doc.attribute('meta[name="description"]', "content") or "",
        h1_text=doc.text("h1"),
        h1_count=doc.count("h1"),
        h2_count=doc.count("h2"),
        h3_count=doc.count("h3"),
        h4_count=doc.count("h4"),
        h5_count=doc.count("h5"),
        h6_count=doc.count("h6"),
        word_count=len(text.split()) if text else 0,
        image_count=len(alts),
        images_with_alt=sum(1 for a in alts if a and a.strip()),
        video_count=doc.count("video") + doc.count('iframe[src*="youtube"], iframe[src*="vimeo"]'),
        interactive_count=doc.count("canvas, svg, details, [role=tablist], [role=slider]"),
        internal_link_count=internal,
        external_link_count=external,
        has_viewport_meta=doc.exists('meta[name="viewport"]'),
        og_tag_count=doc.count('meta[property^="og:"]'),
        twitter_tag_count=doc.count('meta[name^="twitter:"], meta[property^="twitter:"]'),
        last_modified=last_modified,
    )


def _classify_links(page_url: str, hrefs: list[Optional[str]]) -> tuple[int, int]:
    site = _tld(urlparse(page_url).netloc)
    seen: set[str] = set()
    internal = external = 0
    for href in hrefs:
        href = (href or "").strip()
        if not href or href.startswith(("mailto:", "tel:", "javascript:", "#")):
            continue
        abs_url = urljoin(page_url, href).split("#", 1)[0]
        if abs_url in seen:
            continue
        seen.add(abs_url)
        parsed = urlparse(abs_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            continue
        if _tld(parsed.netloc).registered_domain == site.registered_domain:
            internal += 1
        else:
            external += 1
    return internal, external


def _header_date(value: Optional[str], log: logging.Logger) -> Optional[str]:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value).isoformat()
    except (TypeError, ValueError):
        log.debug("Unparseable Last-Modified header: %r", value)
        return None


# ── Rendered state ────────────────────────────────────────────────────────────

def rendered_signals(doc: DocumentQuery) -> RenderedSignals:
    return RenderedSignals(
        has_data_state=doc.exists("[data-state]"),
        has_validation_state=doc.exists("[data-validation-state]"),
        has_loading_indicators=doc.exists('[data-loading], [data-state="loading"]'),
        has_role_alert=doc.exists('[role="alert"]'),
        has_aria_live=doc.exists("[aria-live]"),
        has_aria_invalid=doc.exists('[aria-invalid="true"]'),
        has_agent_visibility_control=doc.exists("[data-agent-visible]"),
    )


# ── Tables ────────────────────────────────────────────────────────────────────

def table_signals(doc: DocumentQuery) -> TableSignals:
    data_cells = ", ".join(f"td[{attr}]" for attr in _TABLE_DATA_ATTRS)
    return TableSignals(
        table_count=doc.count("table"),
        tables_with_caption=doc.count("table:has(> caption)"),
        tables_with_scope=doc.count("table:has(th[scope])"),
        total_cells=doc.count("td"),
        cells_with_data_attributes=doc.count(data_cells),
    )


# ── Access / APIs ─────────────────────────────────────────────────────────────

def access_signals(doc: DocumentQuery) -> AccessSignals:
    recaptcha = doc.exists('.g-recaptcha, [data-sitekey], script[src*="recaptcha"]')
    hcaptcha = doc.exists('.h-captcha, script[src*="hcaptcha"]')
    turnstile = doc.exists('.cf-turnstile, script[src*="challenges.cloudflare.com/turnstile"]')
    challenge = doc.exists('#challenge-form, #cf-challenge-running')
    text = doc.visible_text().lower()
    keyword = "captcha" in text or "verify you are human" in text

    if recaptcha:
        captcha_type = "reCAPTCHA"
    elif hcaptcha:
        captcha_type = "hCaptcha"
    elif turnstile:
        captcha_type = "Turnstile"
    elif keyword:
        captcha_type = "Unknown"
    else:
        captcha_type = "None"

    sources = [s or "" for s in doc.attributes("script[src]", "src")]
    sources += [h or "" for h in doc.attributes("link[href]", "href")]
    spec_links = [
        h or "" for h in doc.attributes('link[rel="alternate"][type="application/json"]', "href")
    ]

    return AccessSignals(
        has_bot_protection=recaptcha or hcaptcha or turnstile or keyword or challenge,
        captcha_type=captcha_type,
        has_api_docs=doc.exists(
            'a[href*="/api"], a[href*="/docs"], a[href*="/swagger"], a[href*="/openapi"]'
        ),
        has_open_api_spec=any("openapi" in h or "swagger" in h for h in spec_links),
        has_rest_indicators=any("/api/" in s or "/rest/" in s for s in sources),
        has_graphql_indicators=any("graphql" in s for s in sources),
    )

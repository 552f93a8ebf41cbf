"""
Agent-suitability scorer.

"Served" score: what an agent can use from the raw delivered markup
(semantic landmarks, form metadata, structured data, discovery manifests).
"Rendered" score: served score plus a capped bonus for state signals that
only appear after script execution.
"""
from __future__ import annotations

import json
from typing import Any, Optional

from models import Category, CategoryScore, Effort, IssueKind, ScoringContext, SignalRecord
from scorers.base import BaseScorer, ratio
from config import (
    AGENT_MANIFEST_POINTS, AI_TXT_POINTS, API_DISCOVERABILITY_MIN, API_DISCOVERABILITY_POINTS,
    AUTOCOMPLETE_POINTS, AUTOCOMPLETE_RATIO_MIN, CRAWLER_RESTRICTION_PENALTY, FORM_LABEL_POINTS,
    FORM_NAMING_POINTS, LABEL_RATIO_MIN, RENDERED_BONUS_CAP, RENDERED_BONUS_POINTS,
    RESTRICTIVE_ROBOTS_DIRECTIVES, SEMANTIC_POINTS, STANDARD_NAME_RATIO_MIN,
    STRUCTURED_DATA_POINTS, TABLE_MARKUP_POINTS,
)

_SEMANTIC_REF = "Semantic HTML Structure"
_FORMS_REF = "Form Field Naming"


class AgentSuitabilityScorer(BaseScorer):
    category = Category.AGENT

    def score(self, record: SignalRecord, context: ScoringContext) -> Optional[CategoryScore]:
        breakdown = served_breakdown(record, context)
        served = max(0.0, min(100.0, sum(breakdown.values())))
        bonus = rendered_bonus(record)
        rendered = min(100.0, served + bonus)
        api_score = api_discoverability(record)

        subscores = {
            "served": served,
            "rendered": rendered,
            "rendered_bonus": bonus,
            "api_discoverability": api_score,
        }
        subscores.update({f"points_{k}": v for k, v in breakdown.items()})

        return CategoryScore(
            category=self.category,
            score=served,
            subscores=subscores,
            issues=tuple(self._issues(record, api_score, context)),
            details={"html_source": record.html_source, "captcha_type": record.access.captcha_type},
        )

    def _issues(self, record: SignalRecord, api_score: float, context: ScoringContext) -> list:
        url = record.url
        sem = record.semantic
        forms = record.forms
        meta = record.metadata
        issues = []

        # ── Essential, served ──────────────────────────────────────────────────
        if not sem.has_main:
            issues.append(self.critical(
                url, IssueKind.MISSING_LANDMARK,
                "No <main> element - agents cannot identify primary content.",
                "Add <main> element around primary page content.",
                ref=_SEMANTIC_REF,
            ))
        if not sem.has_nav:
            issues.append(self.critical(
                url, IssueKind.MISSING_LANDMARK,
                "No <nav> element - agents cannot identify navigation.",
                "Wrap navigation menus in <nav> elements.",
                ref=_SEMANTIC_REF,
            ))

        if forms.total_inputs > 0:
            names = ratio(forms.standard_named_fields, forms.total_inputs)
            if names < STANDARD_NAME_RATIO_MIN:
                issues.append(self.critical(
                    url, IssueKind.FORM_FIELDS,
                    "Most form fields do not use standard names.",
                    "Use standard field names: email, firstName, lastName, phone, etc.",
                    ref=_FORMS_REF,
                    detail=f"{round(names * 100)}% standard names",
                ))
            labels = ratio(forms.fields_with_labels, forms.total_inputs)
            if labels < LABEL_RATIO_MIN:
                issues.append(self.high(
                    url, IssueKind.FORM_FIELDS,
                    "Form fields are missing labels.",
                    "Add <label> or aria-label to all form fields.",
                    ref="Form Accessibility",
                    detail=f"{round((1 - labels) * 100)}% unlabeled",
                ))
        if forms.autocomplete_eligible_fields > 0:
            auto = ratio(forms.fields_with_autocomplete, forms.autocomplete_eligible_fields)
            if auto < AUTOCOMPLETE_RATIO_MIN:
                issues.append(self.high(
                    url, IssueKind.FORM_FIELDS,
                    "Form fields lack autocomplete attributes.",
                    'Add autocomplete attributes to form fields (e.g., autocomplete="email", "name", "tel").',
                    ref="Form Autocomplete",
                    detail=f"{round(auto * 100)}% with autocomplete",
                ))

        if not has_schema_org(meta.structured_data_blocks, context) and not meta.has_microdata:
            issues.append(self.critical(
                url, IssueKind.MISSING_STRUCTURED_DATA,
                "No Schema.org structured data.",
                "Add JSON-LD with Schema.org vocabulary for key content.",
                ref="Structured Data",
            ))
        if not (meta.has_llms_txt_reference or meta.has_llms_txt_meta):
            issues.append(self.critical(
                url, IssueKind.MISSING_AGENT_MANIFEST,
                "No llms.txt file detected.",
                "Add llms.txt file at site root for LLM agent discovery (see llmstxt.org).",
                ref="llms.txt Specification",
            ))
        if has_crawler_restrictions(meta.robots_meta):
            issues.append(self.high(
                url, IssueKind.CRAWLER_RESTRICTION,
                "Page has robot restrictions (noindex/nofollow) that may block agents.",
                "Review robots meta tags - consider allowing agent access where appropriate.",
                ref="Robot Restrictions",
                detail=meta.robots_meta,
            ))
        if not meta.has_ai_txt_reference:
            issues.append(self.low(
                url, IssueKind.MISSING_AI_TXT,
                "No ai.txt file detected for AI-specific instructions.",
                "Consider adding ai.txt file for AI agent-specific guidance.",
                ref="ai.txt File",
            ))

        # ── Rendered snapshots only ────────────────────────────────────────────
        if record.html_source == "rendered":
            r = record.rendered
            if not r.has_data_state:
                issues.append(self.medium(
                    url, IssueKind.RENDERED_STATE,
                    "No data-state attributes for dynamic content.",
                    "Add data-state to loading indicators and dynamic content.",
                    effort=Effort.MODERATE,
                    ref="Explicit State Attributes",
                ))
            if not r.has_agent_visibility_control:
                issues.append(self.medium(
                    url, IssueKind.AGENT_VISIBILITY,
                    "No data-agent-visible attributes found.",
                    "Consider using data-agent-visible to explicitly control agent visibility.",
                    ref="Agent Visibility Control",
                ))
            if not r.has_persistent_errors:
                issues.append(self.high(
                    url, IssueKind.ERROR_PERSISTENCE,
                    "Error messages may not persist.",
                    'Use role="alert" and aria-live for persistent errors.',
                    effort=Effort.MODERATE,
                    ref="Error Handling",
                ))

        # ── Nice to have ───────────────────────────────────────────────────────
        if record.access.has_bot_protection:
            issues.append(self.medium(
                url, IssueKind.BOT_PROTECTION,
                "Bot protection detected.",
                "Bot protection may prevent agent access - consider alternative verification for agents.",
                effort=Effort.HIGH,
                ref="CAPTCHA and Bot Protection",
                detail=record.access.captcha_type,
            ))
        if api_score < API_DISCOVERABILITY_MIN:
            issues.append(self.medium(
                url, IssueKind.API_DISCOVERY,
                "Low API endpoint discoverability.",
                "Add API documentation links and OpenAPI/Swagger specifications for agent access.",
                effort=Effort.MODERATE,
                ref="API Discoverability",
            ))
        t = record.tables
        if t.table_count > 0 and t.tables_with_scope == 0:
            issues.append(self.low(
                url, IssueKind.TABLE_SEMANTICS,
                "Tables missing scope attributes.",
                'Add scope="col" and scope="row" to table headers.',
                ref="Table Semantics",
            ))
        return issues


def served_breakdown(record: SignalRecord, context: ScoringContext) -> dict[str, float]:
    """Point contributions of every served-markup signal (before clamping)."""
    sem = record.semantic
    forms = record.forms
    meta = record.metadata
    t = record.tables

    semantic = 0.0
    if sem.has_main:
        semantic += SEMANTIC_POINTS["main"]
    if sem.has_nav:
        semantic += SEMANTIC_POINTS["nav"]
    if sem.has_header:
        semantic += SEMANTIC_POINTS["header"]
    if sem.has_footer:
        semantic += SEMANTIC_POINTS["footer"]
    if sem.has_article or sem.has_section:
        semantic += SEMANTIC_POINTS["article_or_section"]

    recognised = has_schema_org(meta.structured_data_blocks, context) or meta.has_microdata
    if t.table_count == 0:
        tables = TABLE_MARKUP_POINTS
    else:
        tables = TABLE_MARKUP_POINTS if (t.tables_with_caption and t.tables_with_scope) else 0

    return {
        "semantic": semantic,
        "form_naming": ratio(forms.standard_named_fields, forms.total_inputs) * FORM_NAMING_POINTS,
        "form_labels": ratio(forms.fields_with_labels, forms.total_inputs) * FORM_LABEL_POINTS,
        "autocomplete": (
            ratio(forms.fields_with_autocomplete, forms.autocomplete_eligible_fields) * AUTOCOMPLETE_POINTS
        ),
        "structured_data": float(STRUCTURED_DATA_POINTS if recognised else 0),
        "manifest": float(
            AGENT_MANIFEST_POINTS if (meta.has_llms_txt_reference or meta.has_llms_txt_meta) else 0
        ),
        "ai_txt": float(AI_TXT_POINTS if meta.has_ai_txt_reference else 0),
        "tables": float(tables),
        "crawler_restriction": float(
            -CRAWLER_RESTRICTION_PENALTY if has_crawler_restrictions(meta.robots_meta) else 0
        ),
    }


def rendered_bonus(record: SignalRecord) -> float:
    r = record.rendered
    present = {
        "data_state": r.has_data_state,
        "validation_state": r.has_validation_state,
        "loading_indicators": r.has_loading_indicators,
        "persistent_errors": r.has_persistent_errors,
        "aria_invalid": r.has_aria_invalid,
    }
    bonus = sum(RENDERED_BONUS_POINTS[k] for k, on in present.items() if on)
    return float(min(RENDERED_BONUS_CAP, bonus))


def api_discoverability(record: SignalRecord) -> float:
    a = record.access
    present = {
        "api_docs": a.has_api_docs,
        "open_api": a.has_open_api_spec,
        "rest": a.has_rest_indicators,
        "graphql": a.has_graphql_indicators,
    }
    return float(sum(API_DISCOVERABILITY_POINTS[k] for k, on in present.items() if on))


def has_crawler_restrictions(robots_meta: str) -> bool:
    lowered = (robots_meta or "").lower()
    return any(d in lowered for d in RESTRICTIVE_ROBOTS_DIRECTIVES)


def has_schema_org(blocks, context: Optional[ScoringContext] = None) -> bool:
    """True when any JSON-LD block declares a schema.org @context.

    Malformed blocks are skipped."""
    for raw in blocks or ():
        try:
            data = json.loads(raw) if isinstance(raw, str) else raw
        except (TypeError, ValueError):
            if context is not None:
                context.logger.debug("Skipping malformed JSON-LD block")
            continue
        if any("schema.org" in str(ctx) for ctx in _contexts(data)):
            return True
    return False


def _contexts(node: Any):
    if isinstance(node, list):
        for item in node:
            yield from _contexts(item)
    elif isinstance(node, dict):
        if "@context" in node:
            yield node["@context"]
        graph = node.get("@graph")
        if isinstance(graph, list):
            yield from _contexts(graph)

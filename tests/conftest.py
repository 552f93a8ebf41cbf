import logging
from datetime import datetime, timezone

import pytest

from models import ScoringContext, SignalRecord

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def context(now):
    return ScoringContext.create(now=now, logger=logging.getLogger("tests"))


@pytest.fixture
def make_record():
    """Build a SignalRecord from plain section dicts; omitted sections take defaults."""
    def _make(url="https://example.com/products/blue-widget", **sections):
        return SignalRecord.from_dict({"url": url, **sections})
    return _make


@pytest.fixture
def agent_ready_record(make_record):
    """Landmarks, schema.org JSON-LD and an llms.txt reference; no forms or tables."""
    return make_record(
        semantic={
            "has_main": True, "has_nav": True, "has_header": True,
            "has_footer": True, "has_section": True,
        },
        metadata={
            "structured_data_blocks": ['{"@context": "https://schema.org", "@type": "Organization"}'],
            "has_llms_txt_reference": True,
        },
    )


@pytest.fixture
def everything_true_record(make_record):
    return make_record(
        html_source="rendered",
        html='<a href="x" target="_blank">x</a><script>eval(1); localStorage.x</script>',
        semantic={k: True for k in ("has_main", "has_nav", "has_header", "has_footer",
                                    "has_article", "has_section")},
        forms={"form_count": 1, "total_inputs": 3, "standard_named_fields": 3,
               "fields_with_labels": 3, "autocomplete_eligible_fields": 3,
               "fields_with_autocomplete": 3},
        metadata={
            "structured_data_blocks": ['{"@context": "https://schema.org"}'],
            "has_microdata": True, "has_llms_txt_reference": True, "has_llms_txt_meta": True,
            "has_ai_txt_reference": True, "robots_meta": "noindex, nofollow, noarchive",
        },
        content={"title": "x" * 45, "meta_description": "y" * 100, "h1_text": "Widgets",
                 "h1_count": 1, "h2_count": 40, "h3_count": 40, "h4_count": 3,
                 "word_count": 5000, "image_count": 50, "images_with_alt": 50,
                 "video_count": 50, "interactive_count": 50, "internal_link_count": 100,
                 "external_link_count": 100, "has_viewport_meta": True, "og_tag_count": 5,
                 "twitter_tag_count": 5, "last_modified": NOW.isoformat()},
        security={"headers": {
            "Strict-Transport-Security": "max-age=1", "Content-Security-Policy": "default-src 'self'",
            "X-Frame-Options": "DENY", "X-Content-Type-Options": "nosniff",
            "Referrer-Policy": "no-referrer", "Permissions-Policy": "()",
            "X-XSS-Protection": "1; mode=block",
        }, "cookies": ["a=1; Secure; HttpOnly; SameSite=Lax; Max-Age=1"]},
        rendered={k: True for k in ("has_data_state", "has_validation_state",
                                    "has_loading_indicators", "has_role_alert", "has_aria_live",
                                    "has_aria_invalid", "has_agent_visibility_control")},
        tables={"table_count": 2, "tables_with_caption": 2, "tables_with_scope": 2,
                "total_cells": 10, "cells_with_data_attributes": 10},
        access={"has_bot_protection": True, "captcha_type": "reCAPTCHA", "has_api_docs": True,
                "has_open_api_spec": True, "has_rest_indicators": True,
                "has_graphql_indicators": True},
        accessibility_issues=[{"code": "WCAG2A.Principle1.Guideline1_1.1_1_1", "severity": "Critical"}] * 30,
        performance={"load_time": 0.0, "lcp": 0.0, "fcp": 0.0, "cls": 0.0, "ttfb": 0.0},
    )

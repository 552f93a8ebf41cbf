import pytest

from extraction.document import SoupDocument
from extraction.signals import extract_signals
from scorers.agent import AgentSuitabilityScorer

SAMPLE_HTML = """
<html><head>
<title>Blue Widget | Example</title>
<meta name="description" content="A blue widget.">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta property="og:title" content="Blue Widget">
<meta name="robots" content="index, follow">
<script type="application/ld+json">{"@context": "https://schema.org", "@type": "Product"}</script>
<link rel="alternate" type="application/json" href="/openapi.json">
<link rel="help" href="/llms.txt">
</head><body>
<header>Example Store</header>
<nav>
  <a href="/">Home</a> <a href="/about#team">About</a> <a href="https://other.org/">Partner</a>
  <a href="mailto:sales@example.com">Mail</a> <a href="/about">About again</a>
</nav>
<main>
  <h1>Blue Widget</h1>
  <h2>Specifications</h2>
  <img src="a.png" alt="Front view"><img src="b.png">
  <form>
    <label for="email">Email</label><input id="email" name="email" autocomplete="email">
    <input name="nickname" aria-label="Nickname">
    <input type="hidden" name="token">
    <input type="submit" value="Send">
  </form>
  <table>
    <caption>Prices</caption>
    <tr><th scope="col">Price</th></tr>
    <tr><td data-price="9.99">9.99</td><td>n/a</td></tr>
  </table>
  <div role="alert" aria-live="polite"></div>
</main>
<footer>Contact us</footer>
</body></html>
"""


@pytest.fixture
def record():
    return extract_signals(
        "https://example.com/products/blue-widget",
        SAMPLE_HTML,
        headers={"Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT", "X-Frame-Options": "DENY"},
        cookies=["sid=1; Secure"],
    )


def test_forms(record):
    f = record.forms
    assert f.form_count == 1
    assert f.total_inputs == 4
    assert f.standard_named_fields == 1
    assert f.fields_with_labels == 2
    assert f.autocomplete_eligible_fields == 2
    assert f.fields_with_autocomplete == 1


def test_semantic_landmarks(record):
    s = record.semantic
    assert (s.has_main, s.has_nav, s.has_header, s.has_footer) == (True, True, True, True)
    assert not s.has_article and not s.has_section


def test_links_are_deduplicated_and_classified(record):
    assert record.content.internal_link_count == 2
    assert record.content.external_link_count == 1


def test_content(record):
    c = record.content
    assert c.title == "Blue Widget | Example"
    assert c.h1_text == "Blue Widget"
    assert (c.h1_count, c.h2_count) == (1, 1)
    assert (c.image_count, c.images_with_alt) == (2, 1)
    assert c.has_viewport_meta
    assert c.og_tag_count == 1
    assert c.last_modified == "2015-10-21T07:28:00+00:00"


def test_metadata(record):
    m = record.metadata
    assert len(m.structured_data_blocks) == 1
    assert '"@type": "Product"' in m.structured_data_blocks[0]
    assert m.has_llms_txt_reference
    assert not m.has_ai_txt_reference
    assert m.robots_meta == "index, follow"


def test_tables(record):
    t = record.tables
    assert (t.table_count, t.tables_with_caption, t.tables_with_scope) == (1, 1, 1)
    assert t.total_cells == 2
    assert t.cells_with_data_attributes == 1


def test_rendered_and_access(record):
    assert record.rendered.has_persistent_errors
    assert record.access.has_open_api_spec
    assert not record.access.has_bot_protection
    assert record.access.captcha_type == "None"


def test_security_inputs(record):
    assert record.security.headers["x-frame-options"] == "DENY"
    assert record.security.cookies == ("sid=1; Secure",)
    assert record.accessibility_issues is None
    assert record.performance is None


def test_agent_score_from_extracted_record(record, context):
    """landmarks 17 + forms 3.75 + 5 + 7.5 + schema.org 15 + llms.txt 10 + tables 10"""
    assert AgentSuitabilityScorer().score(record, context).score == pytest.approx(68.25)


def test_explicit_inputs_win():
    record = extract_signals(
        "https://example.com/",
        '<meta property="article:modified_time" content="2024-01-01">',
        last_modified="2025-06-30",
        accessibility_issues=[{"code": "WCAG2AA.1.4.3", "type": "serious", "message": "Low contrast"}],
        performance={"lcp": 1200, "cls": None},
    )
    assert record.content.last_modified == "2025-06-30"
    assert record.accessibility_issues[0].severity == "serious"
    assert record.performance.lcp == 1200.0
    assert record.performance.cls is None


def test_modified_time_metadata_fallback():
    record = extract_signals(
        "https://example.com/",
        '<html><head><meta property="article:modified_time" content="2024-01-01"></head></html>',
        headers={"Last-Modified": "not a date"},
    )
    assert record.content.last_modified == "2024-01-01"


def test_captcha_detection():
    record = extract_signals("https://example.com/", '<div class="g-recaptcha" data-sitekey="k"></div>')
    assert record.access.has_bot_protection
    assert record.access.captcha_type == "reCAPTCHA"


def test_document_query_attributes():
    doc = SoupDocument('<a href="/x" class="a b">x</a><a>y</a>')
    assert doc.attributes("a", "href") == ["/x", None]
    assert doc.attribute("a", "class") == "a b"
    assert doc.count("a") == 2
    assert doc.text("p") == ""

import pytest

from models import IssueKind, Severity
from scorers.security import (
    SecurityScorer, cookie_score_for, count_mixed_content, csp_score, parse_cookie_attributes,
    vulnerability_families, xss_score,
)

scorer = SecurityScorer()

STRONG_HEADERS = {
    "strict-transport-security": "max-age=31536000",
    "content-security-policy": "default-src 'self'; script-src 'self'",
    "x-frame-options": "DENY",
    "x-content-type-options": "nosniff",
    "referrer-policy": "no-referrer",
    "permissions-policy": "camera=()",
    "x-xss-protection": "1; mode=block",
}


@pytest.mark.parametrize("header,expected", [
    (None, 0),
    ("default-src 'self'", 16),
    ("default-src 'self'; script-src 'self' 'unsafe-inline'", 10),
    ("default-src 'self'; script-src 'self'; style-src 'self'; img-src *; connect-src 'self'; "
     "form-action 'self'; frame-ancestors 'none'", 100),
])
def test_csp_score(header, expected):
    assert csp_score(header) == expected


def test_cookie_attributes():
    assert parse_cookie_attributes("sid=abc; Secure; HttpOnly; SameSite=Lax") == {
        "secure", "httponly", "samesite",
    }


def test_cookie_scores():
    assert cookie_score_for([])[0] == 100
    assert cookie_score_for(["sid=abc; Secure; HttpOnly; SameSite=Lax; Max-Age=60"])[0] == 100
    score, missing = cookie_score_for(["sid=abc"])
    assert score == 35
    assert missing == {"secure": 1, "httponly": 1, "samesite": 1, "expiry": 1}
    assert cookie_score_for(["a=1", "b=2"])[0] == 0


def test_xss_score():
    assert xss_score({}) == 25
    assert xss_score({"x-xss-protection": "1; mode=block",
                      "content-security-policy": "script-src 'self'"}) == 100
    assert xss_score({"x-xss-protection": "0",
                      "content-security-policy": "default-src 'self'"}) == 60


def test_vulnerability_families_count_once():
    html = '<a href="/a" target="_blank">a</a><a href="/b" target="_blank">b</a><script>eval(x)</script>'
    assert vulnerability_families(html) == ["eval", "target_blank"]
    assert vulnerability_families("") == []


def test_mixed_content_only_on_https(make_record, context):
    html = '<img src="http://cdn.example.com/a.png"><link href="http://cdn.example.com/s.css">'
    assert count_mixed_content(html) == 2
    secure = scorer.score(make_record(html=html), context)
    plain = scorer.score(make_record(url="http://example.com/", html=html), context)
    assert secure.subscores["mixed_content"] == 2
    assert plain.subscores["mixed_content"] == 0
    assert any(i.kind is IssueKind.MIXED_CONTENT for i in secure.issues)


def test_bare_http_page(make_record, context):
    """cookies 100 * 0.15 + xss 25 * 0.10 + no patterns 100 * 0.10"""
    result = scorer.score(make_record(url="http://example.com/"), context)
    assert result.score == pytest.approx(27.5)
    transport = [i for i in result.issues if i.kind is IssueKind.TRANSPORT]
    assert transport[0].severity == Severity.CRITICAL


def test_fully_hardened_page(make_record, context):
    record = make_record(security={
        "headers": STRONG_HEADERS,
        "cookies": ["sid=abc; Secure; HttpOnly; SameSite=Strict; Expires=Wed, 21 Oct 2026 07:28:00 GMT"],
    })
    result = scorer.score(record, context)
    # CSP declares two of the seven recommended directives
    assert result.subscores["csp"] == 100 - 5 * 14
    assert result.subscores["headers"] == 100
    assert result.subscores["xss"] == 100


def test_header_names_are_case_insensitive(make_record, context):
    record = make_record(security={"headers": {"X-Frame-Options": "DENY", "REFERRER-POLICY": "same-origin"}})
    result = scorer.score(record, context)
    assert result.subscores["headers"] == 30
    missing = {i.source_reference for i in result.issues if i.kind is IssueKind.SECURITY_HEADERS}
    assert "X-Frame-Options" not in missing
    assert "Referrer-Policy" not in missing


def test_single_cookie_string_is_one_cookie(make_record, context):
    record = make_record(security={"cookies": "sid=abc; Secure; HttpOnly; SameSite=Lax; Max-Age=60"})
    result = scorer.score(record, context)
    assert result.subscores["cookies"] == 100
    assert not [i for i in result.issues if i.kind is IssueKind.COOKIES]

"""
Security scorer: HTTPS, response headers, cookie flags, CSP quality,
XSS protection, risky markup patterns and mixed content.
"""
from __future__ import annotations

import re
from typing import Optional

from models import Category, CategoryScore, Effort, IssueKind, ScoringContext, SignalRecord
from scorers.base import BaseScorer
from config import (
    COOKIE_PENALTIES, CSP_REQUIRED_DIRECTIVES, CSP_UNSAFE_PENALTY, SECURITY_HEADER_POINTS,
    SECURITY_WEIGHTS, VULNERABILITY_PENALTY, XSS_CSP_MISSING_PENALTY,
    XSS_CSP_NO_SCRIPT_SRC_PENALTY, XSS_CSP_UNSAFE_INLINE_PENALTY, XSS_HEADER_MISSING_PENALTY,
    XSS_HEADER_WEAK_PENALTY, XSS_STRONG_VALUE,
)

# family name -> pattern; each family counts at most once per page
VULNERABILITY_PATTERNS: dict[str, re.Pattern] = {
    "password_field":     re.compile(r"<input[^>]*type=[\"']password[\"'][^>]*>", re.I),
    "inline_handler":     re.compile(r"onclick=[\"'][^\"']*[\"']", re.I),
    "javascript_url":     re.compile(r"javascript:void", re.I),
    "eval":               re.compile(r"eval\s*\("),
    "document_write":     re.compile(r"document\.write\s*\("),
    "form":               re.compile(r"<form[^>]*>", re.I),
    "target_blank":       re.compile(r"<a[^>]*target=[\"']_blank[\"'][^>]*>", re.I),
    "inner_html":         re.compile(r"innerHTML\s*="),
    "local_storage":      re.compile(r"localStorage\."),
    "session_storage":    re.compile(r"sessionStorage\."),
}

_MIXED_CONTENT_PATTERNS = [
    re.compile(r"src=[\"']http://", re.I),
    re.compile(r"href=[\"']http://", re.I),
    re.compile(r"url\([\"']?http://", re.I),
    re.compile(r"@import\s+[\"']http://", re.I),
]

_HEADER_LABELS = {
    "strict-transport-security": "Strict-Transport-Security",
    "content-security-policy":   "Content-Security-Policy",
    "x-frame-options":           "X-Frame-Options",
    "x-content-type-options":    "X-Content-Type-Options",
    "referrer-policy":           "Referrer-Policy",
    "permissions-policy":        "Permissions-Policy",
}

_HIGH_PRIORITY_HEADERS = {"strict-transport-security", "content-security-policy"}


class SecurityScorer(BaseScorer):
    category = Category.SECURITY

    def score(self, record: SignalRecord, context: ScoringContext) -> Optional[CategoryScore]:
        url = record.url
        headers = record.security.headers
        is_https = url.lower().startswith("https://")
        issues = []

        # ── HTTPS ──────────────────────────────────────────────────────────────
        https = 100.0 if is_https else 0.0
        if not is_https:
            issues.append(self.critical(
                url, IssueKind.TRANSPORT,
                "Page is not served over HTTPS.",
                "Serve every page over HTTPS and redirect HTTP to HTTPS.",
                effort=Effort.MODERATE,
            ))

        # ── Headers ────────────────────────────────────────────────────────────
        header_score = float(sum(p for h, p in SECURITY_HEADER_POINTS.items() if h in headers))
        for name in SECURITY_HEADER_POINTS:
            if name in headers:
                continue
            label = _HEADER_LABELS.get(name, name)
            make = self.high if name in _HIGH_PRIORITY_HEADERS else self.medium
            issues.append(make(
                url, IssueKind.SECURITY_HEADERS,
                f"Missing {label} header.",
                f"Configure the server to send a {label} header.",
                ref=label,
            ))

        # ── Cookies ────────────────────────────────────────────────────────────
        cookie_score, missing_flags = cookie_score_for(record.security.cookies)
        for flag, count in missing_flags.items():
            if count:
                issues.append(self.medium(
                    url, IssueKind.COOKIES,
                    f"Cookies set without the {_cookie_flag_label(flag)} attribute.",
                    f"Add {_cookie_flag_label(flag)} to every Set-Cookie header.",
                    detail=f"{count} cookie(s)",
                ))

        # ── CSP ────────────────────────────────────────────────────────────────
        csp_header = headers.get("content-security-policy")
        csp = csp_score(csp_header)
        if csp_header is not None:
            lowered = csp_header.lower()
            for unsafe in ("'unsafe-inline'", "'unsafe-eval'"):
                if unsafe in lowered:
                    issues.append(self.medium(
                        url, IssueKind.CSP,
                        f"Content-Security-Policy allows {unsafe}.",
                        "Replace inline scripts with nonces or hashes and drop the unsafe keyword.",
                        effort=Effort.MODERATE,
                    ))
            missing = [d for d in CSP_REQUIRED_DIRECTIVES if d not in parse_csp(csp_header)]
            if missing:
                issues.append(self.low(
                    url, IssueKind.CSP,
                    "Content-Security-Policy is missing recommended directives.",
                    "Declare each recommended CSP directive explicitly.",
                    detail=", ".join(missing),
                ))

        # ── XSS ────────────────────────────────────────────────────────────────
        xss = xss_score(headers)
        xss_header = headers.get("x-xss-protection")
        if xss_header is not None and xss_header.strip().lower() != XSS_STRONG_VALUE:
            issues.append(self.low(
                url, IssueKind.XSS,
                "X-XSS-Protection is not set to block mode.",
                f"Send 'X-XSS-Protection: {XSS_STRONG_VALUE}' for legacy browsers.",
            ))

        # ── Vulnerable patterns ────────────────────────────────────────────────
        families = vulnerability_families(record.html)
        for family in families:
            issues.append(self.medium(
                url, IssueKind.VULNERABLE_PATTERN,
                f"Potentially unsafe markup pattern: {family.replace('_', ' ')}.",
                "Review the pattern and apply the safe alternative (CSRF tokens, rel=noopener, textContent, etc.).",
                effort=Effort.MODERATE,
                ref=family,
            ))

        # ── Mixed content ──────────────────────────────────────────────────────
        mixed = count_mixed_content(record.html) if is_https else 0
        if mixed:
            issues.append(self.high(
                url, IssueKind.MIXED_CONTENT,
                "HTTPS page loads resources over HTTP.",
                "Update every resource URL to HTTPS.",
                detail=f"{mixed} insecure reference(s)",
            ))

        subscores = {
            "https": https,
            "headers": header_score,
            "cookies": cookie_score,
            "csp": csp,
            "xss": xss,
            "vulnerabilities": float(len(families)),
            "mixed_content": float(mixed),
        }
        components = {
            "https": https,
            "headers": header_score,
            "cookies": cookie_score,
            "csp": csp,
            "xss": xss,
            "vulnerabilities": max(0.0, 100.0 - len(families) * VULNERABILITY_PENALTY),
        }
        total = sum(components[name] * weight for name, weight in SECURITY_WEIGHTS.items())

        return CategoryScore(
            category=self.category,
            score=total,
            subscores=subscores,
            issues=tuple(issues),
            details={"vulnerability_families": families},
        )


def _cookie_flag_label(flag: str) -> str:
    return {
        "secure": "Secure",
        "httponly": "HttpOnly",
        "samesite": "SameSite",
        "expiry": "Expires/Max-Age",
    }[flag]


def parse_cookie_attributes(raw: str) -> set[str]:
    """Lower-cased attribute names from one Set-Cookie value (name=value excluded)."""
    parts = [p.strip() for p in str(raw or "").split(";")]
    return {p.split("=", 1)[0].strip().lower() for p in parts[1:] if p}


def cookie_score_for(cookies) -> tuple[float, dict[str, int]]:
    missing = {flag: 0 for flag in COOKIE_PENALTIES}
    if not cookies:
        return 100.0, missing
    score = 100.0
    for raw in cookies:
        attrs = parse_cookie_attributes(raw)
        present = {
            "secure":   "secure" in attrs,
            "httponly": "httponly" in attrs,
            "samesite": "samesite" in attrs,
            "expiry":   "expires" in attrs or "max-age" in attrs,
        }
        for flag, ok in present.items():
            if not ok:
                score -= COOKIE_PENALTIES[flag]
                missing[flag] += 1
    return max(0.0, score), missing


def parse_csp(header: Optional[str]) -> dict[str, str]:
    directives: dict[str, str] = {}
    for chunk in str(header or "").split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, _, value = chunk.partition(" ")
        directives[name.lower()] = value.strip()
    return directives


def csp_score(header: Optional[str]) -> float:
    if header is None:
        return 0.0
    directives = parse_csp(header)
    per_directive = 100 // len(CSP_REQUIRED_DIRECTIVES)
    score = 100.0
    score -= per_directive * sum(1 for d in CSP_REQUIRED_DIRECTIVES if d not in directives)
    lowered = header.lower()
    if "'unsafe-inline'" in lowered:
        score -= CSP_UNSAFE_PENALTY
    if "'unsafe-eval'" in lowered:
        score -= CSP_UNSAFE_PENALTY
    return max(0.0, score)


def xss_score(headers: dict[str, str]) -> float:
    score = 100.0
    protection = headers.get("x-xss-protection")
    if protection is None:
        score -= XSS_HEADER_MISSING_PENALTY
    elif protection.strip().lower() != XSS_STRONG_VALUE:
        score -= XSS_HEADER_WEAK_PENALTY

    csp = headers.get("content-security-policy")
    if csp is None:
        score -= XSS_CSP_MISSING_PENALTY
    else:
        if "script-src" not in parse_csp(csp):
            score -= XSS_CSP_NO_SCRIPT_SRC_PENALTY
        if "'unsafe-inline'" in csp.lower():
            score -= XSS_CSP_UNSAFE_INLINE_PENALTY
    return max(0.0, score)


def vulnerability_families(html: str) -> list[str]:
    if not html:
        return []
    return [name for name, pattern in VULNERABILITY_PATTERNS.items() if pattern.search(html)]


def count_mixed_content(html: str) -> int:
    if not html:
        return 0
    return sum(len(p.findall(html)) for p in _MIXED_CONTENT_PATTERNS)

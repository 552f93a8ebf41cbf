from models import Effort, Importance, Issue, IssueKind, PageReport, CategoryScore, Severity
from reporting.feedback import IMPORTANCE_BY_KIND, importance_of, prioritize, prioritize_issues


def _issue(url, message, severity=Severity.MEDIUM, effort=Effort.LOW,
           kind=IssueKind.TITLE, category="seo"):
    return Issue(url=url, category=category, kind=kind, severity=severity,
                 message=message, recommendation=f"Fix: {message}", effort=effort)


def test_every_issue_kind_has_an_importance():
    assert set(IMPORTANCE_BY_KIND) == set(IssueKind)


def test_duplicates_merge_and_count_pages():
    feedback = prioritize_issues([
        _issue("https://example.com/a", "Missing title"),
        _issue("https://example.com/b", "Missing title"),
        _issue("https://example.com/b", "Missing title"),
        _issue("https://example.com/b", "Missing title", category="content"),
    ])
    assert len(feedback.recommendations) == 2
    assert feedback.recommendations[0].affected_pages == 2
    assert feedback.recommendations[1].affected_pages == 1


def test_ordering_by_severity_then_effort():
    feedback = prioritize_issues([
        _issue("u", "low one", Severity.LOW),
        _issue("u", "high hard", Severity.HIGH, Effort.HIGH),
        _issue("u", "high easy", Severity.HIGH, Effort.LOW),
        _issue("u", "critical hard", Severity.CRITICAL, Effort.HIGH),
    ])
    assert [r.message for r in feedback.recommendations] == [
        "critical hard", "high easy", "high hard", "low one",
    ]


def test_ties_keep_first_seen_order():
    messages = [f"issue {n}" for n in range(6)]
    feedback = prioritize_issues([_issue("u", m) for m in messages])
    assert [r.message for r in feedback.recommendations] == messages


def test_importance_split():
    landmark = _issue("u", "No main", Severity.CRITICAL, kind=IssueKind.MISSING_LANDMARK,
                      category="agent_suitability")
    ai_txt = _issue("u", "No ai.txt", Severity.LOW, kind=IssueKind.MISSING_AI_TXT,
                    category="agent_suitability")
    feedback = prioritize_issues([ai_txt, landmark])
    assert feedback.essential == (landmark,)
    assert feedback.nice_to_have == (ai_txt,)
    assert feedback.recommendations[0].importance is Importance.ESSENTIAL


def test_serious_accessibility_findings_are_essential():
    serious = _issue("u", "Contrast", Severity.HIGH, kind=IssueKind.ACCESSIBILITY, category="accessibility")
    minor = _issue("u", "Minor", Severity.LOW, kind=IssueKind.ACCESSIBILITY, category="accessibility")
    assert importance_of(serious) is Importance.ESSENTIAL
    assert importance_of(minor) is Importance.NICE_TO_HAVE


def test_prioritize_reads_page_reports():
    issue = _issue("https://example.com/a", "Missing title")
    page = PageReport(url="https://example.com/a", categories={
        "seo": CategoryScore(category="seo", score=50, issues=(issue,)),
    })
    feedback = prioritize([page])
    assert feedback.recommendations[0].recommendation == "Fix: Missing title"
    assert prioritize([]).recommendations == ()

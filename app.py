"""
Site Scorecard: Streamlit Application
Scores extracted page signals, aggregates them site-wide and tracks trends.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime

import streamlit as st

from models import AuditRun, Category, Issue, ScoringContext, Severity, SiteAggregate
from scorers.orchestrator import run_audit
from reporting.exporter import (
    category_summary_df, issues_to_df, pages_to_df, recommendations_to_df, to_csv_bytes, trend_to_df,
)
from reporting.summary import summary_to_markdown
from ui.charts import (
    category_scores_bar,
    issues_by_severity_donut,
    page_score_histogram,
    score_gauge,
    trend_delta_bar,
)
from config import DEFAULT_MAX_WORKERS, DEFAULT_TOP_FINDINGS

logger = logging.getLogger("scorecard.app")

# ── Page config ────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Site Scorecard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── Custom CSS ─────────────────────────────────────────────────────────────────
st.markdown("""
<style>
.block-container { padding-top: 1rem; }

.metric-card {
    background: #1A1D27;
    border-radius: 10px;
    padding: 1rem 1.2rem;
    margin-bottom: 0.5rem;
    border-left: 4px solid;
}
.metric-card.critical { border-color: #FF4B4B; }
.metric-card.high     { border-color: #FF8800; }
.metric-card.medium   { border-color: #FFA500; }
.metric-card.low      { border-color: #4B9EFF; }
.metric-card.success  { border-color: #00C851; }
.metric-card.neutral  { border-color: #6C63FF; }

.metric-val  { font-size: 2rem; font-weight: 700; margin: 0; }
.metric-lbl  { font-size: 0.8rem; color: #888; text-transform: uppercase; letter-spacing: 0.05em; }

.modebar { display: none !important; }

.sidebar-logo { font-size: 1.5rem; font-weight: 800; color: #6C63FF; margin-bottom: 0.5rem; }
</style>
""", unsafe_allow_html=True)


# ── State helpers ──────────────────────────────────────────────────────────────

def _clear_results():
    st.session_state.pop("audit_run", None)


def _has_result() -> bool:
    return st.session_state.get("audit_run") is not None


# ── Sidebar ────────────────────────────────────────────────────────────────────

def render_sidebar() -> dict | None:
    with st.sidebar:
        st.markdown('<div class="sidebar-logo">📊 Site Scorecard</div>', unsafe_allow_html=True)
        st.caption("Accessibility, content, SEO, security and agent-suitability scoring")
        st.divider()

        st.subheader("Input")
        signals_file = st.file_uploader(
            "Page signals (JSON)",
            type=["json"],
            help="A JSON list of page signal records.",
        )
        previous_file = st.file_uploader(
            "Previous aggregate (JSON, optional)",
            type=["json"],
            help="The aggregate exported by an earlier run, for trend comparison.",
        )

        st.subheader("Settings")
        max_workers = st.slider("Concurrent workers", 1, 32, DEFAULT_MAX_WORKERS, 1)
        top_n = st.slider("Key findings", 3, 50, DEFAULT_TOP_FINDINGS, 1)

        st.divider()
        if _has_result():
            if st.button("🔄 New Run", type="primary", use_container_width=True):
                _clear_results()
                st.rerun()
            st.divider()

        start = st.button("Score Site", type="primary", use_container_width=True)

    if start and signals_file is not None:
        return {
            "signals": signals_file.getvalue(),
            "previous": previous_file.getvalue() if previous_file is not None else None,
            "max_workers": max_workers,
            "top_n": top_n,
        }
    return None


# ── Run ────────────────────────────────────────────────────────────────────────

def start_run(params: dict) -> None:
    progress_bar = st.progress(0)
    status_text = st.empty()

    def on_progress(update: dict):
        progress_bar.progress(min(update.get("pct", 0), 100))
        status_text.markdown(f"**{update.get('message', '')}**")

    with st.status("Scoring…", expanded=True) as status_widget:
        try:
            records = json.loads(params["signals"])
            if not isinstance(records, list):
                raise ValueError("Signals file must contain a JSON list")
            previous = None
            if params["previous"]:
                previous = SiteAggregate.from_dict(json.loads(params["previous"]))
            st.write(f"Loaded **{len(records)}** page records.")

            run = run_audit(
                records,
                previous=previous,
                context=ScoringContext.create(logger=logger),
                max_workers=params["max_workers"],
                top_n=params["top_n"],
                progress_callback=on_progress,
            )
        except (ValueError, TypeError) as exc:
            status_widget.update(label="Run failed", state="error")
            st.error(f"Could not score the site: {exc}")
            return

        status_widget.update(label="Scoring complete!", state="complete")

    progress_bar.empty()
    status_text.empty()
    st.session_state.audit_run = run
    st.rerun()


# ── Dashboard: Overview ────────────────────────────────────────────────────────

def render_overview(run: AuditRun) -> None:
    site = run.aggregate
    with_data = [s.average for s in site.categories.values() if s.has_data]
    average = sum(with_data) / len(with_data) if with_data else 0.0

    totals = {sev: 0 for sev in Severity.ALL}
    for s in site.categories.values():
        for sev, n in s.issues_by_severity.items():
            totals[sev] = totals.get(sev, 0) + n

    col_gauge, col_stats = st.columns([1, 2])
    with col_gauge:
        st.plotly_chart(score_gauge(average), use_container_width=True)

    with col_stats:
        c1, c2, c3 = st.columns(3)
        _metric_card(c1, "Pages Scored", site.page_count, "neutral")
        _metric_card(c2, "Pages With Errors", site.pages_with_errors,
                     "critical" if site.pages_with_errors else "success")
        _metric_card(c3, "Essential Issues", len(run.feedback.essential), "high")

        cols = st.columns(4)
        for col, sev in zip(cols, Severity.ALL):
            _metric_card(col, f"{sev} Issues", totals[sev], sev.lower())

    st.divider()
    c_left, c_right = st.columns(2)
    with c_left:
        st.plotly_chart(category_scores_bar(site), use_container_width=True)
    with c_right:
        st.plotly_chart(issues_by_severity_donut(site), use_container_width=True)

    st.divider()
    st.subheader("Category Summary")
    st.dataframe(category_summary_df(site), use_container_width=True, hide_index=True)

    st.subheader("Key Findings")
    if not run.summary.key_findings:
        st.success("No issues found!")
    for f in run.summary.key_findings:
        icon = Severity.ICONS.get(f.severity, "•")
        st.markdown(
            f"{icon} **{f.severity}** · {Category.label(f.category)}: {f.finding} "
            f"_({f.affected_pages} page(s))_"
        )


# ── Dashboard: Recommendations ─────────────────────────────────────────────────

def render_recommendations(run: AuditRun) -> None:
    df = recommendations_to_df(run.feedback)
    if df.empty:
        st.success("Nothing to recommend.")
        return

    importance = st.multiselect(
        "Importance",
        options=["Essential", "Nice To Have"],
        default=["Essential", "Nice To Have"],
    )
    priorities = st.multiselect("Priority", options=Severity.ALL, default=Severity.ALL)
    filtered = df[df["Importance"].isin(importance) & df["Priority"].isin(priorities)]
    st.caption(f"Showing {len(filtered)} of {len(df)} recommendations")
    st.dataframe(
        filtered,
        use_container_width=True,
        height=600,
        hide_index=True,
        column_config={
            "Issue":          st.column_config.TextColumn("Issue", width="large"),
            "Recommendation": st.column_config.TextColumn("Recommendation", width="large"),
            "Affected Pages": st.column_config.NumberColumn("Affected Pages", format="%d"),
        },
    )


# ── Dashboard: Pages ──────────────────────────────────────────────────────────

def render_pages(run: AuditRun) -> None:
    pages = list(run.pages)
    if not pages:
        st.info("No pages scored.")
        return

    category = st.selectbox(
        "Score distribution for", options=Category.ALL, format_func=Category.label,
    )
    st.plotly_chart(page_score_histogram(pages, category), use_container_width=True)

    df = pages_to_df(pages)
    search = st.text_input("Search URL", placeholder="Filter by URL…")
    if search:
        df = df[df["URL"].str.contains(search, case=False, na=False)]
    st.dataframe(df, use_container_width=True, height=500, hide_index=True)

    st.divider()
    st.subheader("Page Detail")
    urls = [p.url for p in pages]
    selected = st.selectbox("Select a page to inspect:", options=[""] + urls)
    if selected:
        page = pages[urls.index(selected)]
        cols = st.columns(max(1, len(page.categories)))
        for col, (name, score) in zip(cols, page.categories.items()):
            with col:
                st.metric(Category.label(name), f"{score.score:.2f}")
        for err in page.errors:
            st.error(f"Scorer failure: {err}")
        _render_issue_table(page.issues)


# ── Dashboard: Trends ─────────────────────────────────────────────────────────

def render_trends(run: AuditRun) -> None:
    comparison = run.summary.comparison
    if comparison is None:
        st.info("Upload a previous aggregate to compare runs.")
        return

    st.plotly_chart(trend_delta_bar(list(comparison.deltas)), use_container_width=True)
    st.markdown(f"**Page count change:** {comparison.page_count_change:+d}")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Improvements")
        for text in comparison.improvements or ["None"]:
            st.markdown(f"- {text}")
    with col2:
        st.subheader("Regressions")
        for text in comparison.regressions or ["None"]:
            st.markdown(f"- {text}")

    st.divider()
    st.dataframe(trend_to_df(list(comparison.deltas)), use_container_width=True, hide_index=True)


# ── Dashboard: Export ─────────────────────────────────────────────────────────

def render_export(run: AuditRun) -> None:
    st.subheader("Export Data")
    stamp = datetime.now().strftime("%Y%m%d_%H%M")
    site = run.summary.site or "site"

    issues = [i for p in run.pages for i in p.issues]
    col1, col2, col3 = st.columns(3)
    with col1:
        st.download_button(
            "Download Page Scores (CSV)",
            data=to_csv_bytes(pages_to_df(list(run.pages))),
            file_name=f"pages_{site}_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )
        st.download_button(
            "Download All Issues (CSV)",
            data=to_csv_bytes(issues_to_df(issues)),
            file_name=f"issues_{site}_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )
    with col2:
        st.download_button(
            "Download Recommendations (CSV)",
            data=to_csv_bytes(recommendations_to_df(run.feedback)),
            file_name=f"recommendations_{site}_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )
        st.download_button(
            "Download Executive Summary (Markdown)",
            data=summary_to_markdown(run.summary).encode("utf-8"),
            file_name=f"summary_{site}_{stamp}.md",
            mime="text/markdown",
            use_container_width=True,
        )
    with col3:
        st.download_button(
            "Download Executive Summary (JSON)",
            data=json.dumps(run.summary.to_dict(), indent=2).encode("utf-8"),
            file_name=f"summary_{site}_{stamp}.json",
            mime="application/json",
            use_container_width=True,
        )
        st.download_button(
            "Download Aggregate (JSON)",
            data=json.dumps(run.aggregate.to_dict(), indent=2).encode("utf-8"),
            file_name=f"aggregate_{site}_{stamp}.json",
            mime="application/json",
            use_container_width=True,
            help="Upload this file as the previous aggregate on the next run.",
        )


# ── Helpers ────────────────────────────────────────────────────────────────────

def _metric_card(col, label: str, value, card_class: str = "neutral") -> None:
    with col:
        st.markdown(
            f'<div class="metric-card {card_class}">'
            f'<div class="metric-lbl">{label}</div>'
            f'<div class="metric-val">{value}</div>'
            f'</div>',
            unsafe_allow_html=True,
        )


def _render_issue_table(issues: list[Issue]) -> None:
    if not issues:
        st.success("No issues on this page.")
        return

    df = issues_to_df(issues)[["Severity", "Category", "Issue", "Message", "Detail", "Recommendation"]]
    st.dataframe(
        df,
        use_container_width=True,
        height=min(600, len(df) * 36 + 60),
        hide_index=True,
        column_config={
            "Severity":       st.column_config.TextColumn("Severity", width="small"),
            "Message":        st.column_config.TextColumn("Message", width="large"),
            "Recommendation": st.column_config.TextColumn("Recommendation", width="large"),
        },
    )


# ── Landing / empty state ──────────────────────────────────────────────────────

def render_landing() -> None:
    st.markdown("""
    <div style="text-align:center; padding: 4rem 2rem;">
        <div style="font-size:4rem">📊</div>
        <h1 style="font-size:2.5rem; font-weight:800; color:#6C63FF; margin:0.5rem 0">Site Scorecard</h1>
        <p style="font-size:1.1rem; color:#888; max-width:600px; margin:0 auto 2rem">
            Upload extracted page signals to get per-category scores, a site-wide summary,
            prioritized recommendations and run-over-run trends.
        </p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2, col3, col4 = st.columns(4)
    _feature_card(col1, "♿", "Accessibility", "WCAG findings weighted by severity and guideline")
    _feature_card(col2, "🤖", "Agent Suitability", "Landmarks, form metadata, structured data, llms.txt")
    _feature_card(col3, "🔐", "Security", "Headers, cookies, CSP, risky patterns, mixed content")
    _feature_card(col4, "📈", "Trends", "Compare against the previous run's aggregate")


def _feature_card(col, icon: str, title: str, desc: str) -> None:
    with col:
        st.markdown(
            f'<div class="metric-card neutral" style="text-align:center">'
            f'<div style="font-size:2rem">{icon}</div>'
            f'<div style="font-weight:700;margin:0.5rem 0">{title}</div>'
            f'<div style="font-size:0.85rem;color:#888">{desc}</div>'
            f'</div>',
            unsafe_allow_html=True,
        )


# ── Main ───────────────────────────────────────────────────────────────────────

def main():
    params = render_sidebar()

    if params is not None:
        _clear_results()
        start_run(params)
        return

    if not _has_result():
        render_landing()
        return

    run: AuditRun = st.session_state.audit_run
    o = run.summary.overview
    st.title(f"Scorecard: {run.summary.site or 'site'}")
    st.caption(
        f"{o['pagesAnalyzed']} pages · analysed {o['analysisDate']} · "
        f"average score **{o['averageScore']}** · "
        f"{len(run.feedback.recommendations)} recommendation(s)"
    )

    tabs = st.tabs(["Overview", "Recommendations", "Pages", "Trends", "Export"])
    with tabs[0]:
        render_overview(run)
    with tabs[1]:
        render_recommendations(run)
    with tabs[2]:
        render_pages(run)
    with tabs[3]:
        render_trends(run)
    with tabs[4]:
        render_export(run)


if __name__ == "__main__":
    main()

"""Streamlit UI for the GhostBuster job-posting auditor."""
from __future__ import annotations

import html
import sys
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from ghostbuster.controller import (
    AUDIT_INPUT,
    AUDIT_RESULT,
    DIRECTORY,
    HISTORY,
    HOME,
    DashboardController,
)
from ghostbuster.directory import load_companies, search_companies
from ghostbuster.generator import get_generator
from ghostbuster.log import get_logger
from ghostbuster.models import EMPLOYMENT_TYPES, INDUSTRIES, AuditRequest, CompanyProfile
from ghostbuster.report import history_frame, history_stats, result_markdown
from ghostbuster.risk import format_percent, risk_tier
from ghostbuster.stores import get_history_store, new_identity

log = get_logger(__name__)

st.set_page_config(page_title="GhostBuster", page_icon="👻", layout="wide")

_GLASS_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #eef2ff 0%, #f5f3ff 45%, #f8fafc 100%);
}
[data-testid="stSidebar"] {
    background: rgba(255,255,255,0.6);
    backdrop-filter: blur(16px);
    -webkit-backdrop-filter: blur(16px);
    border-right: 1px solid rgba(255,255,255,0.3);
}
[data-testid="stMetric"],
[data-testid="stForm"],
[data-testid="stExpander"] {
    background: rgba(255,255,255,0.65);
    backdrop-filter: blur(10px);
    -webkit-backdrop-filter: blur(10px);
    border-radius: 12px;
    border: 1px solid rgba(255,255,255,0.4);
    box-shadow: 0 4px 16px rgba(0,0,0,0.05);
}
[data-testid="stMetric"] { padding: 0.75rem 1rem; }
.hero {
    padding: 2.5rem 2rem; border-radius: 20px; text-align: center; color: #fff;
    background: linear-gradient(135deg, #4338ca 0%, #6b21a8 100%);
    box-shadow: 0 12px 32px rgba(67,56,202,0.25);
}
.hero h1 { color: #fff; font-size: 2.6rem; font-weight: 900; margin-bottom: 0.5rem; }
.hero p { color: #e0e7ff; font-size: 1.1rem; max-width: 40rem; margin: 0 auto; }
.score-card {
    padding: 1.5rem; border-radius: 16px; border: 2px solid;
    display: flex; justify-content: space-between; align-items: center; gap: 1rem;
}
.score-big { font-size: 3.5rem; font-weight: 900; line-height: 1; text-align: center; }
.score-label { font-size: 0.8rem; font-weight: 700; text-transform: uppercase; letter-spacing: 0.05em; }
.risk-badge {
    display: inline-block; padding: 0.35rem 0.8rem; border-radius: 8px; font-weight: 700;
}
.company-logo {
    width: 2.5rem; height: 2.5rem; border-radius: 10px; color: #fff; font-weight: 800;
    display: inline-flex; align-items: center; justify-content: center; margin-right: 0.6rem;
}
h1, h2, h3 { color: #1a1a2e; }
</style>
"""

# ── Helpers ──────────────────────────────────────────────────────────────


def _controller() -> DashboardController:
    ctl = st.session_state.get("controller")
    if ctl is None:
        identity = st.session_state.setdefault("identity", new_identity())
        ctl = DashboardController(
            generator=get_generator(),
            store=get_history_store(identity=identity),
        )
        st.session_state["controller"] = ctl
        log.info("New dashboard session %s", identity)
    return ctl


def _enter(view: str) -> DashboardController:
    """Move the controller to the page being rendered, if it isn't there yet."""
    ctl = _controller()
    current = ctl.state.view
    on_page = AUDIT_INPUT if current == AUDIT_RESULT else current
    if on_page != view:
        ctl.navigate(view)
    return ctl


@st.cache_data
def _companies() -> list[CompanyProfile]:
    return load_companies()


def _badge(score: float, suffix: str = "") -> str:
    tier = risk_tier(score)
    return (
        f'<span class="risk-badge" style="color:{tier.color};background:{tier.background}">'
        f'{format_percent(score)}{suffix}</span>'
    )


def _check(label: str, ok: bool) -> str:
    icon = "✅" if ok else "⬜"
    return f"{icon}  {label}"


# ── Page: Dashboard ──────────────────────────────────────────────────────


def page_home() -> None:
    _enter(HOME)

    st.markdown(
        '<div class="hero"><h1>Stop Chasing Ghost Jobs.</h1>'
        "<p>Our AI analyzes job market signals to verify if a listing is legitimate, "
        "stale, or just for compliance. Don't waste time on applications that go nowhere.</p></div>",
        unsafe_allow_html=True,
    )
    st.write("")
    if st.button("Start Free Audit", type="primary", use_container_width=True):
        st.switch_page(PAGES[AUDIT_INPUT])

    st.divider()
    c1, c2, c3 = st.columns(3)
    with c1:
        st.subheader("Risk Scoring")
        st.caption('Get a 0-100% probability score on whether a job is active or a "ghost".')
    with c2:
        st.subheader("Staleness Detection")
        st.caption("Identify jobs that have been reposted for months without hiring.")
    with c3:
        st.subheader("Market Intelligence")
        st.caption("See which companies are actually hiring versus just collecting resumes.")

    companies = _companies()
    if companies:
        st.divider()
        avg = sum(c.ghost_risk for c in companies) / len(companies)
        m1, m2, m3 = st.columns(3)
        m1.metric("Companies Tracked", len(companies))
        m2.metric("Open Listings", sum(c.metrics.jobs_count for c in companies))
        m3.metric("Average Ghost Risk", format_percent(avg))


# ── Page: Audit ──────────────────────────────────────────────────────────


def _render_result(ctl: DashboardController) -> None:
    outcome = ctl.state.result
    result = outcome.result
    tier = risk_tier(result.score)

    st.markdown(
        f'<div class="score-card" style="border-color:{tier.color};background:{tier.background}">'
        f'<div><h3>Ghost Job Risk Assessment</h3>'
        f'<div style="color:#475569">{html.escape(outcome.request.title)}'
        f'{" @ " + html.escape(outcome.request.company) if outcome.request.company else ""}</div>'
        f'<p style="color:#334155;margin-top:0.5rem">{html.escape(result.analysis)}</p></div>'
        f'<div><div class="score-big" style="color:{tier.color}">{format_percent(result.score)}</div>'
        f'<div class="score-label" style="color:{tier.color}">{tier.verdict}</div></div>'
        f"</div>",
        unsafe_allow_html=True,
    )

    if result.fallback_applied:
        st.warning("The AI reply had no usable score, so a neutral 50% was assumed.")

    if result.factors:
        st.subheader("Risk Factors")
        cols = st.columns(2)
        for i, factor in enumerate(result.factors):
            with cols[i % 2].container(border=True):
                st.markdown(f"**{factor.name or 'Unnamed factor'}**")
                if factor.reason:
                    st.caption(factor.reason)
                st.progress(factor.impact, text=f"Impact {format_percent(factor.impact)}")

    c1, c2 = st.columns(2)
    c1.download_button(
        "Download Report",
        data=result_markdown(outcome.request, result),
        file_name="ghost_audit.md",
        mime="text/markdown",
        use_container_width=True,
    )
    if c2.button("Analyze Another Post", use_container_width=True):
        ctl.dismiss_result()
        st.rerun()


@st.fragment(run_every=1.0)
def _await_audit() -> None:
    if not _controller().state.pending:
        st.rerun()
    st.info("⏳ Analyzing signals… waiting for the AI service.")


def _render_form(ctl: DashboardController) -> None:
    state = ctl.state

    st.header("New Job Audit")
    st.write("Paste job details below to uncover hidden red flags and calculate the Ghost Score.")

    if state.error:
        c1, c2 = st.columns([6, 1])
        c1.error(state.error)
        if c2.button("Dismiss", key="dismiss_error"):
            ctl.dismiss_error()
            st.rerun()

    with st.form("audit_form"):
        c1, c2 = st.columns(2)
        with c1:
            title = st.text_input("Job Title *", placeholder="e.g. Senior Product Manager")
        with c2:
            company = st.text_input("Company Name", placeholder="e.g. Acme Corp")

        requirements = st.text_area(
            "Job Description / Requirements *",
            height=200,
            placeholder="Paste the full job description here including responsibilities and qualifications...",
        )
        st.caption("Include as much detail as possible for better accuracy.")

        c1, c2, c3 = st.columns(3)
        with c1:
            location = st.text_input("Location", placeholder="e.g. Remote, New York")
        with c2:
            employment_type = st.selectbox("Employment Type", EMPLOYMENT_TYPES)
        with c3:
            industry = st.selectbox("Industry", INDUSTRIES)

        submitted = st.form_submit_button(
            "Analyzing Signals…" if state.pending else "Analyze Job Posting",
            type="primary",
            use_container_width=True,
            disabled=state.pending,
        )

    if state.validation_error:
        st.error(state.validation_error)

    if submitted:
        ctl.submit_async(AuditRequest(
            title=title,
            requirements=requirements,
            company=company,
            location=location,
            employment_type=employment_type,
            industry=industry,
        ))
        st.rerun()

    if state.pending:
        c1, c2 = st.columns([6, 1])
        with c1:
            _await_audit()
        if c2.button("Cancel", key="cancel_audit"):
            ctl.cancel()
            st.rerun()


def page_audit() -> None:
    ctl = _enter(AUDIT_INPUT)
    if ctl.state.view == AUDIT_RESULT:
        _render_result(ctl)
    else:
        _render_form(ctl)


# ── Page: Company Index ──────────────────────────────────────────────────


def _company_card(company: CompanyProfile) -> None:
    m = company.metrics
    tier = risk_tier(company.ghost_risk)
    with st.container(border=True):
        head, badge = st.columns([4, 1])
        with head:
            st.markdown(
                f'<span class="company-logo" style="background:{company.logo_color}">'
                f"{html.escape(company.name[:1])}</span>"
                f"<strong style='font-size:1.2rem'>{html.escape(company.name)}</strong>",
                unsafe_allow_html=True,
            )
            st.caption(f"📍 {company.location}  ·  👥 {company.employees}  ·  🔗 {company.website}")
        with badge:
            st.markdown(_badge(company.ghost_risk), unsafe_allow_html=True)
            st.caption(tier.label)

        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Active Jobs", m.jobs_count, delta=f"{m.trend * 100:+.0f}%")
        c2.metric("Avg Posting Age", f"{m.avg_age_days} days")
        c3.metric("Remote", f"{m.remote_percent:.0f}%")
        c4.metric("Salary Range", f"{m.salary_min} – {m.salary_max}")

        left, right = st.columns(2)
        with left:
            st.caption("Listing Sources")
            for source in m.sources:
                st.progress(min(source.value, 100) / 100, text=f"{source.name} {source.value:.0f}%")
        with right:
            st.caption("Posting Volume")
            if m.sparkline:
                st.line_chart(m.sparkline, height=120)


def page_directory() -> None:
    _enter(DIRECTORY)

    st.header("Company Accountability Index")
    st.caption("Tracking of hiring behavior in India.")

    query = st.text_input("Search companies…", placeholder="Name or city")
    companies = search_companies(_companies(), query)
    if not companies:
        st.info("No companies match your search.")
        return
    for company in companies:
        _company_card(company)


# ── Page: History ────────────────────────────────────────────────────────


def page_history() -> None:
    ctl = _enter(HISTORY)

    st.header("Your Audit History")
    if not ctl.store.enabled():
        st.caption("History sync is not configured — audits are not saved in local-only mode.")
    _history_feed()


@st.fragment(run_every=2.0)
def _history_feed() -> None:
    entries = _controller().state.history
    if not entries:
        st.info("No audits found. Start by auditing a job post.")
        return

    stats = history_stats(entries)
    c1, c2, c3 = st.columns(3)
    c1.metric("Recent Audits", stats["count"])
    c2.metric("Average Risk", format_percent(stats["average"]))
    c3.metric("High Risk", stats["high_risk"])

    st.dataframe(
        history_frame(entries),
        use_container_width=True,
        column_config={
            "job_title": st.column_config.TextColumn("Job Title"),
            "company": st.column_config.TextColumn("Company"),
            "score": st.column_config.ProgressColumn("Ghost Risk", min_value=0, max_value=1, format="%.2f"),
            "risk": st.column_config.TextColumn("Tier"),
            "summary": st.column_config.TextColumn("Summary", width="large"),
            "audited": st.column_config.TextColumn("Audited"),
        },
        hide_index=True,
    )


# ── Main ─────────────────────────────────────────────────────────────────


def _inject_css() -> None:
    st.markdown(_GLASS_CSS, unsafe_allow_html=True)


def _sidebar_status() -> None:
    ctl = _controller()
    with st.sidebar:
        st.markdown("## 👻 Ghost**Buster**")
        st.divider()
        st.markdown("**Status**")
        st.markdown(_check("AI service key", ctl.generator.enabled()))
        st.markdown(_check("History sync", ctl.store.enabled()))
        st.caption(f"Session: `{ctl.store.identity or st.session_state.get('identity', '')}`")


def _wrap(page):
    def _run() -> None:
        _inject_css()
        _sidebar_status()
        page()

    _run.__name__ = page.__name__
    return _run


PAGES = {
    HOME: st.Page(_wrap(page_home), title="Dashboard", icon="📊", url_path="dashboard", default=True),
    AUDIT_INPUT: st.Page(_wrap(page_audit), title="Audit Post", icon="🛡️", url_path="audit"),
    DIRECTORY: st.Page(_wrap(page_directory), title="Company Index", icon="🏢", url_path="companies"),
    HISTORY: st.Page(_wrap(page_history), title="History", icon="🕘", url_path="history"),
}

nav = st.navigation(list(PAGES.values()))
nav.run()

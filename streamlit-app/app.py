"""
Link Audit - Main Dashboard
Harvests the links of a page, asks for confirmation, and checks whether the
linked tours, cruises, ships and destinations still exist.
"""

import subprocess
import sys
import time as _time
from dataclasses import replace

import streamlit as st

import job_manager as jm
from config import (
    CUSTOM_CSS, APP_TITLE, APP_ICON, TAGLINE, BRAND_ORANGE,
    STATUS_AVAILABLE, STATUS_MAINTENANCE, STATUS_UNAVAILABLE, STATUS_SKIPPED,
    get_metric_html, get_status_html,
)
from link_audit.config import AuditConfig
from link_audit.export import (
    CSV_FILE_NAME, JSON_FILE_NAME, availability_label, checked_link_row,
    counts_by_status, report_to_csv, report_to_json,
)
from link_audit.log import setup_logger
from link_audit.patterns import readable_link_type

setup_logger()

# Page configuration
st.set_page_config(
    page_title=APP_TITLE,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# Inject custom CSS
st.markdown(CUSTOM_CSS, unsafe_allow_html=True)


def ensure_playwright_installed():
    """Ensure Playwright browsers are installed."""
    try:
        from playwright.sync_api import sync_playwright
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True)
            browser.close()
        return True
    except Exception as e:
        error_str = str(e)
        if "Executable doesn't exist" in error_str or "browserType.launch" in error_str:
            st.info("🔧 Eerste keer setup: Playwright browsers installeren...")
            result = subprocess.run(
                [sys.executable, "-m", "playwright", "install", "chromium"],
                capture_output=True,
                text=True
            )
            if result.returncode == 0:
                return True
            st.error(f"Playwright installatie mislukt: {result.stderr}")
            return False
        st.error(f"Playwright fout: {e}")
        return False


# Sidebar with recent audits
with st.sidebar:
    st.markdown(f"""
    <div style="text-align: center; padding: 1rem;">
        <h2 style="color: {BRAND_ORANGE}; margin: 0;">{APP_ICON} {APP_TITLE}</h2>
    </div>
    """, unsafe_allow_html=True)
    st.markdown("---")

    jm.cleanup_old_jobs()
    st.markdown("### 🕘 Recente audits")
    jobs = sorted(jm.get_all_jobs(), key=lambda j: j.start_time, reverse=True)
    if not jobs:
        st.caption("Nog geen audits gestart.")
    for job in jobs:
        if st.button(f"{job.page_url} ({job.status})", key=f"job_{job.job_id}", use_container_width=True):
            st.session_state['audit_job'] = job.job_id
            st.rerun()

# Header
st.markdown(f"""
<div class="main-header">
    <h1>{APP_ICON} {APP_TITLE}</h1>
    <p class="tagline">{TAGLINE}</p>
</div>
""", unsafe_allow_html=True)

# ── Start form ───────────────────────────────────────────────────────────

col_url, col_conc = st.columns([4, 1])
with col_url:
    page_url = st.text_input(
        "Pagina URL",
        placeholder="https://www.example-travel.com/iceland",
        help="De pagina waarvan de links in de .al-main sectie worden gecontroleerd"
    )
with col_conc:
    max_concurrent = st.number_input("Gelijktijdig", min_value=1, max_value=10, value=3)

if st.button("🔍 Links verzamelen", type="primary", disabled=not page_url, use_container_width=True):
    try:
        config = replace(AuditConfig.from_env(page_url), max_concurrent=int(max_concurrent))
    except ValueError as e:
        st.error(f"Ongeldige URL: {e}")
        st.stop()
    if not ensure_playwright_installed():
        st.error("Browser kon niet worden gestart. Probeer het later opnieuw.")
        st.stop()
    st.session_state['audit_job'] = jm.start_audit(config)
    st.rerun()

job_id = st.session_state.get('audit_job')
job = jm.get_job(job_id) if job_id else None

if job is None:
    st.info("""
    **Hoe werkt het?**
    1. Voer de URL in van de pagina die je wilt controleren
    2. Klik op 'Links verzamelen'
    3. Bekijk hoeveel links gecontroleerd worden en bevestig
    4. Elke link wordt in een eigen browser context geladen (dit kan enkele minuten duren)
    """)
    st.stop()

st.markdown("---")
st.markdown(f"### Audit: {job.page_url}")

# ── Confirmation ─────────────────────────────────────────────────────────

if job.status == "awaiting_confirmation" and job.counts is not None:
    counts = job.counts
    st.warning(f"Dit controleert de beschikbaarheid van **{counts.total}** links:")
    st.markdown("\n".join(f"- {line}" for line in counts.as_lines()))
    st.caption("Dit kan enkele minuten duren en opent meerdere browser contexts.")
    col_yes, col_no = st.columns(2)
    with col_yes:
        if st.button("✅ Start controle", use_container_width=True):
            jm.confirm_job(job.job_id)
            st.rerun()
    with col_no:
        if st.button("✗ Annuleren", use_container_width=True):
            jm.cancel_job(job.job_id)
            st.rerun()

# ── Progress ─────────────────────────────────────────────────────────────

if job.status in ("pending", "running"):
    st.progress(jm.calc_progress(job))
    remaining = jm.calc_remaining(job)
    elapsed = int(_time.time() - job.start_time)
    e_mins, e_secs = divmod(elapsed, 60)
    if remaining is None:
        remaining_text = "berekenen..."
    else:
        mins, secs = divmod(remaining, 60)
        remaining_text = f"{mins}:{secs:02d}"
    st.markdown(f"""<div style="text-align:center;color:#6B7280;font-size:0.9rem;
        margin:0.5rem 0;">Geschatte resterende tijd: <strong>{remaining_text}</strong>
        &nbsp;·&nbsp; Verstreken: {e_mins}:{e_secs:02d}</div>""",
        unsafe_allow_html=True)

with st.expander("Voortgang details", expanded=job.status == "failed"):
    st.code("\n".join(job.logs[-25:]), language=None)

if job.status == "failed":
    st.error(f"Er ging iets mis: {job.error}")

if job.status in ("pending", "running", "awaiting_confirmation"):
    _time.sleep(2)
    st.rerun()

# ── Results ──────────────────────────────────────────────────────────────

report = job.report
if report is None:
    st.stop()

st.markdown("## 📋 Links per sectie")
for section_type, count in report.summary.section_types.items():
    with st.expander(f"{section_type}: {count} links"):
        for group in report.sections.get(section_type, []):
            st.markdown(f"**{group.title}**")
            st.dataframe(
                [
                    {"Type": readable_link_type(link.url_pattern), "Tekst": link.text, "URL": link.href}
                    for link in group.links
                ],
                use_container_width=True,
            )

availability = report.availability
if availability is not None:
    st.markdown("## ✅ Beschikbaarheid")
    by_status = counts_by_status(availability.details)
    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        st.markdown(get_metric_html(availability.checked_links, "Gecontroleerd"), unsafe_allow_html=True)
    with col2:
        st.markdown(get_metric_html(availability.available, "Beschikbaar", STATUS_AVAILABLE), unsafe_allow_html=True)
    with col3:
        st.markdown(get_metric_html(availability.unavailable, "Niet beschikbaar", STATUS_UNAVAILABLE),
                    unsafe_allow_html=True)
    with col4:
        st.markdown(get_metric_html(by_status.get("Maintenance", 0), "Onderhoud", STATUS_MAINTENANCE),
                    unsafe_allow_html=True)
    with col5:
        st.markdown(get_metric_html(availability.unknown, "Overgeslagen", STATUS_SKIPPED), unsafe_allow_html=True)

    st.markdown("<br>", unsafe_allow_html=True)

    status_filter = st.selectbox(
        "Status",
        ["Alle", "Problemen", "Yes", "No", "Broken 404", "Maintenance", "Timeout", "Skipped (Special)", "Unknown"],
    )
    details = availability.details
    if status_filter == "Problemen":
        details = [c for c in details if availability_label(c) in ("No", "Broken 404", "Maintenance", "Timeout")]
    elif status_filter != "Alle":
        details = [c for c in details if availability_label(c) == status_filter]

    problems = [c for c in details if c.result.available is False][:10]
    for checked in problems:
        st.markdown(
            f"{get_status_html(availability_label(checked))} **{checked.link.text}** "
            f"<span style='color:#6B7280'>{checked.link.href}</span>",
            unsafe_allow_html=True,
        )

    st.dataframe([checked_link_row(c) for c in details], use_container_width=True)

# Downloads
st.markdown("### 📥 Export")
col_json, col_csv = st.columns(2)
with col_json:
    st.download_button(
        label="📥 Download JSON",
        data=report_to_json(report),
        file_name=JSON_FILE_NAME,
        mime="application/json",
        key="dl_json"
    )
with col_csv:
    st.download_button(
        label="📥 Download CSV",
        data=report_to_csv(report),
        file_name=CSV_FILE_NAME,
        mime="text/csv",
        key="dl_csv",
        disabled=availability is None,
    )

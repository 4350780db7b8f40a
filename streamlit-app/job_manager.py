"""
Job Manager for Link Audits
Runs audits in background threads so the Streamlit UI stays responsive.
Module-level state is shared across all Streamlit sessions within the same process.

An audit job harvests the page first, then waits for the user to confirm the
check (unless it was started confirmed) before any link page is loaded.
"""

import asyncio
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, List

from link_audit.audit import HarvestOutcome, check_harvest, harvest_page
from link_audit.browser_controller import BrowserController
from link_audit.config import AuditConfig
from link_audit.dispatcher import ProgressStatus
from link_audit.report import CheckCounts
from link_audit.schemas import Report

# ── Job data structures ──────────────────────────────────────────────────

@dataclass
class AuditJob:
    job_id: str
    config: AuditConfig
    status: str = "pending"           # pending | running | awaiting_confirmation | completed | cancelled | failed
    current_phase: str = "harvest"
    logs: List[str] = field(default_factory=list)
    report: Optional[Report] = None
    counts: Optional[CheckCounts] = None
    progress_status: Optional[ProgressStatus] = None
    error: Optional[str] = None
    start_time: float = 0.0
    end_time: float = 0.0
    phase_start_time: float = 0.0
    confirm_event: threading.Event = field(default_factory=threading.Event, repr=False)
    cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)
    thread: Optional[threading.Thread] = field(default=None, repr=False)

    @property
    def page_url(self) -> str:
        return self.config.absolute_url(self.config.page_path)


# ── Module-level singleton store ─────────────────────────────────────────
# Shared across Streamlit sessions in the same process.

_jobs: Dict[str, AuditJob] = {}
_lock = threading.Lock()

FINISHED_STATUSES = ("completed", "cancelled", "failed")

# Seconds between checks of the confirmation flags
CONFIRMATION_POLL_INTERVAL = 0.5


def get_job(job_id: str) -> Optional[AuditJob]:
    with _lock:
        return _jobs.get(job_id)


def get_all_jobs() -> List[AuditJob]:
    with _lock:
        return list(_jobs.values())


def get_active_jobs() -> List[AuditJob]:
    with _lock:
        return [j for j in _jobs.values() if j.status not in FINISHED_STATUSES]


def get_completed_jobs() -> List[AuditJob]:
    with _lock:
        return [j for j in _jobs.values() if j.status in FINISHED_STATUSES]


def remove_job(job_id: str):
    with _lock:
        _jobs.pop(job_id, None)


def cleanup_old_jobs(max_age_secs: int = 3600):
    """Remove finished jobs older than max_age_secs."""
    now = time.time()
    with _lock:
        to_remove = [
            jid for jid, j in _jobs.items()
            if j.status in FINISHED_STATUSES
            and j.end_time > 0
            and (now - j.end_time) > max_age_secs
        ]
        for jid in to_remove:
            del _jobs[jid]


def confirm_job(job_id: str) -> bool:
    """Give the go-ahead for the availability check of a harvested job."""
    job = get_job(job_id)
    if job is None or job.status in FINISHED_STATUSES:
        return False
    job.confirm_event.set()
    return True


def cancel_job(job_id: str) -> bool:
    """Decline the availability check; the harvested report is kept."""
    job = get_job(job_id)
    if job is None or job.status in FINISHED_STATUSES:
        return False
    job.cancel_event.set()
    return True


# ── PHASES ───────────────────────────────────────────────────────────────

PHASES = [
    {"id": "harvest",      "label": "Links verzamelen",   "pct_start": 0,  "pct_end": 10,  "est_secs": 10},
    {"id": "confirmation", "label": "Bevestiging",        "pct_start": 10, "pct_end": 10,  "est_secs": 0},
    {"id": "check",        "label": "Links controleren",  "pct_start": 10, "pct_end": 100, "est_secs": 0},
]


def _get_phase(phase_id: str) -> dict:
    for p in PHASES:
        if p["id"] == phase_id:
            return p
    return PHASES[0]


def calc_progress(job: AuditJob) -> int:
    """Calculate progress % for a job.

    Harvesting is interpolated against its time estimate; the check phase
    follows the number of links completed.
    """
    if job.status == "completed":
        return 100
    if job.status == "failed":
        return 0
    phase = _get_phase(job.current_phase)
    if job.current_phase == "check" and job.progress_status is not None:
        ratio = job.progress_status.percentage / 100
    elif phase["est_secs"]:
        elapsed_in_phase = time.time() - job.phase_start_time if job.phase_start_time > 0 else 0
        ratio = min(1.0, elapsed_in_phase / phase["est_secs"])
    else:
        ratio = 0.0
    pct = phase["pct_start"] + ratio * (phase["pct_end"] - phase["pct_start"])
    return min(int(pct), 99)


def calc_remaining(job: AuditJob) -> Optional[int]:
    """Estimate remaining seconds, None while no estimate is available."""
    if job.status in FINISHED_STATUSES:
        return 0
    if job.current_phase == "check":
        if job.progress_status is None or job.progress_status.remaining is None:
            return None
        return int(job.progress_status.remaining)
    if job.current_phase == "confirmation":
        return None
    in_phase = time.time() - job.phase_start_time if job.phase_start_time > 0 else 0
    return int(max(0, _get_phase(job.current_phase)["est_secs"] - in_phase))


# ── Audit runner (background thread) ─────────────────────────────────────

def start_audit(
    config: AuditConfig,
    browser_factory: Optional[Callable[[], BrowserController]] = None,
) -> str:
    """Start an audit job in a background thread. Returns job_id.

    A config that is already confirmed checks the links straight after
    harvesting; otherwise the job waits for confirm_job() or cancel_job().
    """
    job_id = uuid.uuid4().hex[:8]
    job = AuditJob(
        job_id=job_id,
        config=config,
        start_time=time.time(),
        phase_start_time=time.time(),
    )
    if config.confirmed:
        job.confirm_event.set()

    with _lock:
        _jobs[job_id] = job

    factory = browser_factory or (lambda: BrowserController(headless=config.headless))
    thread = threading.Thread(
        target=_run_audit_thread,
        args=(job_id, factory),
        daemon=True,
        name=f"audit-{job_id}",
    )
    job.thread = thread
    thread.start()
    return job_id


def _run_audit_thread(job_id: str, browser_factory: Callable[[], BrowserController]):
    """Execute a full audit in a background thread with its own event loop."""
    job = _jobs[job_id]
    job.status = "running"

    # Create a fresh event loop for this thread
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    try:
        job.report = loop.run_until_complete(
            _run_audit_async(job, browser_factory)
        )
        if job.status != "cancelled":
            job.status = "completed"
            _add_log(job, "Audit voltooid!")

    except Exception as e:
        import traceback
        job.error = str(e)
        job.status = "failed"
        _add_log(job, f"FOUT: {e}")
        _add_log(job, traceback.format_exc())

    finally:
        job.end_time = time.time()
        loop.close()


def _add_log(job: AuditJob, msg: str):
    """Thread-safe log append."""
    ts = time.strftime('%H:%M:%S')
    job.logs.append(f"[{ts}] {msg}")
    # Keep last 200 lines
    if len(job.logs) > 200:
        job.logs = job.logs[-200:]


def _set_phase(job: AuditJob, phase_id: str):
    job.current_phase = phase_id
    job.phase_start_time = time.time()


async def _wait_for_confirmation(job: AuditJob) -> bool:
    while not job.confirm_event.is_set():
        if job.cancel_event.is_set():
            return False
        await asyncio.sleep(CONFIRMATION_POLL_INTERVAL)
    return True


async def _run_audit_async(job: AuditJob, browser_factory: Callable[[], BrowserController]) -> Report:
    """Harvest, wait for confirmation, then check in the same browser."""

    def on_status(msg: str):
        _add_log(job, msg)

    def on_progress(status: ProgressStatus):
        job.progress_status = status

    async with browser_factory() as browser:
        _add_log(job, f"Links verzamelen van: {job.page_url}")
        outcome: HarvestOutcome = await harvest_page(browser, job.config)
        job.report = outcome.report
        job.counts = outcome.counts
        _add_log(job, f"{outcome.report.summary.total_links} links gevonden, {job.counts.total} te controleren")

        if not outcome.links_to_check:
            _add_log(job, "Geen links om te controleren.")
            return outcome.report

        _set_phase(job, "confirmation")
        job.status = "awaiting_confirmation"
        if not await _wait_for_confirmation(job):
            job.status = "cancelled"
            _add_log(job, "Controle geannuleerd, alleen de linklijst is bewaard.")
            return outcome.report

        _set_phase(job, "check")
        job.status = "running"
        _add_log(job, f"Start controle van {job.counts.total} links")
        return await check_harvest(
            browser, job.config.with_confirmation(), outcome,
            on_status=on_status, on_progress=on_progress,
        )

"""
Daily trigger for the reminder job.

Runs fire at a fixed UTC time of day and at most once per UTC date; the
claim is stored in the run ledger so restarts don't re-queue digests.
"""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from core.ports import RunLedger
from core.reminders import DealReminderJob, ReminderRunReport
from models.deal import utc_today

logger = logging.getLogger(__name__)


def parse_run_time(text: str) -> time:
    """'HH:MM' in UTC."""
    try:
        hours, minutes = (int(part) for part in text.strip().split(":"))
        return time(hours, minutes, tzinfo=timezone.utc)
    except ValueError as e:
        raise ValueError(f"Invalid run time {text!r}, expected HH:MM") from e


def scheduled_at(now: datetime, run_at: time) -> datetime:
    """Today's scheduled run instant (UTC)."""
    today = utc_today(now)
    return datetime.combine(today, run_at.replace(tzinfo=None), tzinfo=timezone.utc)


def next_run_at(now: datetime, run_at: time) -> datetime:
    slot = scheduled_at(now, run_at)
    if now.astimezone(timezone.utc) < slot:
        return slot
    return slot + timedelta(days=1)


def is_due(now: datetime, run_at: time) -> bool:
    return now.astimezone(timezone.utc) >= scheduled_at(now, run_at)


async def run_daily(job: DealReminderJob, runs: RunLedger, force: bool = False) -> Optional[ReminderRunReport]:
    """
    Runs the job unless today's UTC date was already claimed.

    force skips the guard (manual re-send); it still records the claim.
    Returns None when the run was skipped.
    """
    today = utc_today(job.clock())
    claimed = await runs.claim_run(today)
    if not claimed and not force:
        logger.info(f"⏭️ Reminders already ran for {today.isoformat()}, skipping.")
        return None
    if not claimed:
        logger.warning(f"⚠️ Forced reminder run for {today.isoformat()} (already ran today).")
    return await job.run()

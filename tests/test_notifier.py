import asyncio
from datetime import datetime, timezone

from core.reminders import ReminderRunReport
from services.notifier import TelegramNotifier, format_run_report


def test_run_report_lists_counters() -> None:
    report = ReminderRunReport(deals_scanned=12, invalid_due_dates=1, due_soon=4, emails_queued=3, failed_writes=0)

    text = format_run_report(report, datetime(2024, 8, 12, 8, 0, tzinfo=timezone.utc))

    assert "2024-08-12 08:00 UTC" in text
    assert "<b>Emails queued:</b> 3" in text
    assert "<b>Invalid due dates:</b> 1" in text


def test_notifier_without_token_is_a_no_op(monkeypatch) -> None:
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
    notifier = TelegramNotifier()

    assert not notifier.enabled
    asyncio.run(notifier.send_run_report(ReminderRunReport(), datetime.now(timezone.utc)))
    asyncio.run(notifier.stop())

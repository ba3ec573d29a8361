import asyncio
import os
from datetime import datetime, timezone

from dotenv import load_dotenv
from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import ContextTypes

from config.logger import logger
from core.database import Database
from core.reminders import DealReminderJob
from core.schedule import is_due, next_run_at, parse_run_time, run_daily
from services.notifier import TelegramNotifier, format_run_report

load_dotenv()

# --- Global settings ---
ADMIN_CHAT_ID = os.getenv("ADMIN_CHAT_ID")
DB_PATH = os.getenv("COLLABFLOW_DB_PATH", "data/collabflow.db")
REMINDER_RUN_AT = parse_run_time(os.getenv("REMINDER_RUN_AT", "08:00"))

# Filled by run_scheduler() once the event loop is running
STATE = {"db": None, "run_event": None, "force": False, "last_at": None, "last_report": None}


# --- Telegram handlers ---

def is_admin(update: Update):
    if not ADMIN_CHAT_ID: return True
    return str(update.effective_chat.id) == str(ADMIN_CHAT_ID)


async def handle_run(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/run respects the once-per-day guard; /run force re-sends anyway."""
    if not is_admin(update): return
    STATE["force"] = bool(context.args) and context.args[0].lower() == "force"
    label = "Forcing a reminder run" if STATE["force"] else "Requesting a reminder run"
    await update.message.reply_text(f"⏰ <b>{label}...</b>", parse_mode=ParseMode.HTML)
    STATE["run_event"].set()


async def handle_status(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not is_admin(update): return
    db = STATE["db"]
    deals_count = await asyncio.to_thread(db.get_total_count, "deals")
    mail_count = await asyncio.to_thread(db.get_total_count, "mail")
    last_date = await asyncio.to_thread(db.last_run_date)

    if STATE["last_report"] is None:
        last = f"Last run date: {last_date or 'never'}\n"
    else:
        last = format_run_report(STATE["last_report"], STATE["last_at"])
    report = (
        "🤖 <b>CollabFlow Reminders Online</b>\n\n"
        f"📁 <b>Deals:</b> {deals_count}\n"
        f"📬 <b>Mail queue:</b> {mail_count}\n"
        f"🕗 <b>Daily run:</b> {REMINDER_RUN_AT:%H:%M} UTC\n\n"
        f"{last}"
    )
    await update.message.reply_text(report, parse_mode=ParseMode.HTML)


# --- Scheduler loop ---

async def run_reminders(db: Database, notifier: TelegramNotifier, force: bool = False):
    now = datetime.now(timezone.utc)
    job = DealReminderJob(deals=db, users=db, mail=db, clock=lambda: now)
    report = await run_daily(job, db, force=force)
    if report is None:
        return None
    STATE["last_at"], STATE["last_report"] = now, report
    await notifier.send_run_report(report, now)
    return report


async def run_scheduler():
    logger.info("🔥 Starting CollabFlow reminder scheduler...")

    db = Database(DB_PATH)
    notifier = TelegramNotifier()
    run_event = asyncio.Event()
    STATE["db"], STATE["run_event"] = db, run_event

    telegram_handlers = {
        'run': handle_run,
        'status': handle_status,
    }
    # Background listener (non-blocking)
    listener = asyncio.create_task(notifier.start_listening(telegram_handlers))

    try:
        # Catch up if today's slot already passed and hasn't run (guard skips otherwise)
        if is_due(datetime.now(timezone.utc), REMINDER_RUN_AT):
            try:
                await run_reminders(db, notifier)
            except Exception as e:
                logger.error(f"❌ Reminder run failed: {e}", exc_info=True)

        while True:
            wake_at = next_run_at(datetime.now(timezone.utc), REMINDER_RUN_AT)
            timeout = max((wake_at - datetime.now(timezone.utc)).total_seconds(), 0)
            logger.info(f"💤 Next reminder run at {wake_at:%Y-%m-%d %H:%M} UTC")
            try:
                await asyncio.wait_for(run_event.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                pass

            force = STATE["force"]
            run_event.clear()
            STATE["force"] = False
            try:
                await run_reminders(db, notifier, force=force)
            except Exception as e:
                logger.error(f"❌ Reminder run failed: {e}", exc_info=True)
    finally:
        listener.cancel()
        await notifier.stop()


if __name__ == "__main__":
    try:
        asyncio.run(run_scheduler())
    except KeyboardInterrupt:
        logger.info("Scheduler stopped by user.")

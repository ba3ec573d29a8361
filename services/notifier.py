import logging
import os

from dotenv import load_dotenv
from telegram.constants import ParseMode
from telegram.ext import Application, CommandHandler
from telegram.request import HTTPXRequest

from core.reminders import ReminderRunReport

load_dotenv()

logger = logging.getLogger(__name__)


def format_run_report(report: ReminderRunReport, when) -> str:
    return (
        "📊 <b>Deal Reminder Run</b>\n\n"
        f"🕒 <b>At:</b> {when:%Y-%m-%d %H:%M} UTC\n"
        f"🔎 <b>Active deals scanned:</b> {report.deals_scanned}\n"
        f"⏳ <b>Due soon:</b> {report.due_soon}\n"
        f"📧 <b>Emails queued:</b> {report.emails_queued}\n"
        f"⚠️ <b>Invalid due dates:</b> {report.invalid_due_dates}\n"
        f"❌ <b>Failed writes:</b> {report.failed_writes}\n"
    )


class TelegramNotifier:
    """Optional admin channel: run reports plus /run and /status commands."""

    def __init__(self):
        self.token = os.getenv("TELEGRAM_BOT_TOKEN")
        self.chat_id = os.getenv("ADMIN_CHAT_ID")
        self.app = None

        if self.token:
            trequest = HTTPXRequest(connection_pool_size=8, read_timeout=30, connect_timeout=30)
            self.app = (
                Application.builder()
                .token(self.token)
                .request(trequest)
                .build()
            )

    @property
    def enabled(self) -> bool:
        return self.app is not None and bool(self.chat_id)

    async def send_run_report(self, report: ReminderRunReport, when):
        if not self.enabled:
            return
        try:
            await self.app.bot.send_message(
                chat_id=self.chat_id,
                text=format_run_report(report, when),
                parse_mode=ParseMode.HTML,
            )
        except Exception as e:
            logger.error(f"Error sending run report to Telegram: {e}")

    async def start_listening(self, command_handlers: dict):
        if not self.app:
            return
        for cmd, handler in command_handlers.items():
            self.app.add_handler(CommandHandler(cmd, handler))

        logger.info("Telegram admin channel listening for commands...")
        await self.app.initialize()
        await self.app.start()
        await self.app.updater.start_polling()

    async def stop(self):
        if not self.app or not self.app.running:
            return
        await self.app.updater.stop()
        await self.app.stop()
        await self.app.shutdown()

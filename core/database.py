import asyncio
import json
import os
import sqlite3
import uuid
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from models.deal import Deal, DealStatus
from models.mail import Feedback, OutboundEmail
from models.user import NotificationSettings, UserProfile


class Database:
    """
    Local document store for the deals, users, mail and feedback collections.

    Implements the DealReader, UserReader and MailWriter ports. Blocking
    sqlite calls run in a worker thread so the async job never stalls.
    """

    def __init__(self, db_path="data/collabflow.db"):
        self.db_path = db_path
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._create_tables()

    def _connect(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _create_tables(self):
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS deals (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    brand_name TEXT,
                    campaign_name TEXT,
                    status TEXT,
                    deliverables TEXT,
                    due_date TEXT,
                    payment REAL,
                    paid INTEGER DEFAULT 0
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT,
                    display_name TEXT,
                    niche TEXT,
                    notification_settings TEXT
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS mail (
                    id TEXT PRIMARY KEY,
                    recipients TEXT,
                    subject TEXT,
                    html TEXT,
                    created_at DATETIME
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS reminder_runs (
                    run_date TEXT PRIMARY KEY,
                    started_at DATETIME
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS feedback (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    email TEXT,
                    feedback TEXT,
                    submitted_at DATETIME
                )
            """)
            conn.commit()

    # --- Deals ---

    def add_deal(self, deal: Deal):
        """Adds or replaces a deal."""
        due_date = deal.due_date
        if isinstance(due_date, (datetime, date)):
            due_date = due_date.isoformat()
        elif due_date is not None and not isinstance(due_date, (str, int, float)):
            due_date = json.dumps(due_date, default=str)

        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO deals (id, user_id, brand_name, campaign_name, status, deliverables, due_date, payment, paid) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (deal.id, deal.user_id, deal.brand_name, deal.campaign_name, deal.status.value,
                 deal.deliverables, due_date, deal.payment, int(deal.paid))
            )
            conn.commit()

    def _fetch_deals_by_status(self, statuses: List[str]) -> List[Deal]:
        if not statuses:
            return []
        placeholders = ", ".join("?" for _ in statuses)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM deals WHERE status IN ({placeholders}) ORDER BY rowid",
                statuses,
            ).fetchall()
        return [
            Deal(
                id=row["id"],
                user_id=row["user_id"],
                brand_name=row["brand_name"] or "",
                campaign_name=row["campaign_name"] or "",
                status=row["status"],
                deliverables=row["deliverables"] or "",
                due_date=row["due_date"],
                payment=row["payment"] or 0.0,
                paid=bool(row["paid"]),
            )
            for row in rows
        ]

    async def list_deals_by_status(self, statuses: Iterable[DealStatus]) -> List[Deal]:
        values = [DealStatus(s).value for s in statuses]
        return await asyncio.to_thread(self._fetch_deals_by_status, values)

    # --- Users ---

    def upsert_user(self, user: UserProfile):
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO users (id, email, display_name, niche, notification_settings) VALUES (?, ?, ?, ?, ?)",
                (user.id, user.email, user.display_name, user.niche,
                 user.notification_settings.model_dump_json())
            )
            conn.commit()

    def _fetch_user(self, user_id: str) -> Optional[UserProfile]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None

        settings = NotificationSettings()
        if row["notification_settings"]:
            settings = NotificationSettings.model_validate(json.loads(row["notification_settings"]))

        return UserProfile(
            id=row["id"],
            email=row["email"],
            display_name=row["display_name"],
            niche=row["niche"],
            notification_settings=settings,
        )

    async def get_user(self, user_id: str) -> Optional[UserProfile]:
        return await asyncio.to_thread(self._fetch_user, user_id)

    # --- Mail queue ---

    def _insert_mail(self, email: OutboundEmail) -> str:
        mail_id = uuid.uuid4().hex
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO mail (id, recipients, subject, html, created_at) VALUES (?, ?, ?, ?, ?)",
                (mail_id, json.dumps(email.to), email.subject, email.html, datetime.now().isoformat())
            )
            conn.commit()
        return mail_id

    async def add_mail(self, email: OutboundEmail) -> str:
        return await asyncio.to_thread(self._insert_mail, email)

    def list_mail(self) -> List[dict]:
        """Queued mail documents, oldest first."""
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM mail ORDER BY created_at, rowid").fetchall()
        return [
            {"id": row["id"], **OutboundEmail(
                to=json.loads(row["recipients"]), subject=row["subject"], html=row["html"]
            ).to_document()}
            for row in rows
        ]

    # --- Feedback ---

    def add_feedback(self, feedback: Feedback) -> str:
        feedback_id = uuid.uuid4().hex
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO feedback (id, user_id, email, feedback, submitted_at) VALUES (?, ?, ?, ?, ?)",
                (feedback_id, feedback.user_id, feedback.email, feedback.feedback, feedback.submitted_at.isoformat())
            )
            conn.commit()
        return feedback_id

    def get_total_count(self, collection: str = "deals") -> int:
        if collection not in ("deals", "users", "mail", "feedback"):
            raise ValueError(f"Unknown collection: {collection}")
        with self._connect() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {collection}").fetchone()[0]

    # --- Reminder runs ---

    def _insert_run(self, run_date: date) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO reminder_runs (run_date, started_at) VALUES (?, ?)",
                (run_date.isoformat(), datetime.now(timezone.utc).isoformat())
            )
            conn.commit()
            return cursor.rowcount == 1

    async def claim_run(self, run_date: date) -> bool:
        """Records the day's run. False if that UTC day was already claimed."""
        return await asyncio.to_thread(self._insert_run, run_date)

    def last_run_date(self) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT MAX(run_date) FROM reminder_runs").fetchone()
        return row[0]

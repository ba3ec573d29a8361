from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


class OutboundEmail(BaseModel):
    to: List[str]
    subject: str
    html: str

    def to_document(self) -> dict:
        """Document shape picked up by the mail delivery extension."""
        return {
            "to": list(self.to),
            "message": {"subject": self.subject, "html": self.html},
        }


class Feedback(BaseModel):
    feedback: str = Field(min_length=10)
    user_id: Optional[str] = None
    email: Optional[str] = None
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

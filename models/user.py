from typing import Optional

from pydantic import BaseModel, Field


class EmailNotificationSettings(BaseModel):
    deal_reminders: bool = False
    payment_updates: bool = False
    feature_news: bool = False


class NotificationSettings(BaseModel):
    email: EmailNotificationSettings = Field(default_factory=EmailNotificationSettings)


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    niche: Optional[str] = None
    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)

    @property
    def wants_deal_reminders(self) -> bool:
        return self.notification_settings.email.deal_reminders

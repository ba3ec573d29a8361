from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Platform(str, Enum):
    INSTAGRAM = "Instagram"
    TIKTOK = "TikTok"
    YOUTUBE = "YouTube"
    GENERAL = "General"


# --- Pitch email ---

class PitchEmailRequest(BaseModel):
    follower_count: int
    engagement_rate: float  # decimal, e.g. 0.045
    average_likes: int
    average_comments: int
    niche: str
    brand_name: str
    past_collaboration_examples: str = ""


class PitchEmail(BaseModel):
    pitch_email: str


# --- Contracts ---

class ContractDetails(BaseModel):
    brand_name: str
    start_date: str = Field(description="YYYY-MM-DD")
    end_date: str = Field(description="YYYY-MM-DD")
    deliverables: str
    payment: float


# --- Post performance ---

class PostMetrics(BaseModel):
    likes: int
    comments: int
    shares: int
    saves: int


class PostPerformanceRequest(BaseModel):
    post_description: str
    metrics: PostMetrics
    niche: str
    platform: str


class PostPerformanceAnalysis(BaseModel):
    analysis: str
    suggestions: List[str]
    rating: float = Field(ge=1, le=10)


class ExtractedPostMetrics(BaseModel):
    """Everything is optional: the model only reports what it can read."""
    post_title: Optional[str] = None
    likes: Optional[int] = None
    comments: Optional[int] = None
    shares: Optional[int] = None
    saves: Optional[int] = None


# --- Content ideas & scheduling ---

class ContentIdeasRequest(BaseModel):
    campaign_name: str
    brand_name: str
    deliverables: str
    niche: str


class ContentIdeas(BaseModel):
    ideas: List[str]


class PostTimeRequest(BaseModel):
    niche: str
    platform: Platform


class PostTimeSuggestion(BaseModel):
    suggestion: str


# --- Briefing ---

class BriefingTask(BaseModel):
    id: str
    title: str
    completed: bool = False


class BriefingDeal(BaseModel):
    id: str
    campaign_name: str
    brand_name: str
    status: str
    due_date: str
    payment: float
    tasks: List[BriefingTask] = Field(default_factory=list)

    @property
    def completed_task_count(self) -> int:
        return sum(1 for task in self.tasks if task.completed)


class BriefingRequest(BaseModel):
    user_name: str
    deals: List[BriefingDeal] = Field(default_factory=list)


class Briefing(BaseModel):
    greeting: str
    summary_points: List[str]


# --- Feedback ---

class FeedbackReceipt(BaseModel):
    success: bool
    message: str

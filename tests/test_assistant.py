import asyncio
import base64
import json

import pytest
from google.genai import types
from pydantic import ValidationError

from models.assistant import (
    BriefingDeal,
    BriefingRequest,
    BriefingTask,
    ContentIdeasRequest,
    PitchEmailRequest,
    PostMetrics,
    PostPerformanceRequest,
    PostTimeRequest,
)
from models.mail import Feedback
from services.assistant import AssistantError, CollabAssistant
from utils.data_uri import parse_data_uri

PDF_URI = "data:application/pdf;base64," + base64.b64encode(b"%PDF-1.4 fake contract").decode()
PNG_URI = "data:image/png;base64," + base64.b64encode(b"\x89PNG fake screenshot").decode()


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModels:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error:
            raise self.error
        text = self.payload if isinstance(self.payload, str) else json.dumps(self.payload)
        return FakeResponse(text)


class FakeClient:
    def __init__(self, payload=None, error=None):
        self.models = FakeModels(payload, error)
        self.aio = self


def make_assistant(payload=None, error=None):
    client = FakeClient(payload, error)
    return CollabAssistant(client=client, model_name="gemini-test"), client.models


def test_pitch_email_prompt_and_schema() -> None:
    assistant, models = make_assistant({"pitch_email": "Hi Glossier team, ..."})
    request = PitchEmailRequest(
        follower_count=120000,
        engagement_rate=0.045,
        average_likes=5400,
        average_comments=310,
        niche="Beauty",
        brand_name="Glossier",
        past_collaboration_examples="Sephora haul, 2x conversions",
    )

    result = asyncio.run(assistant.generate_pitch_email(request))

    assert result.pitch_email.startswith("Hi Glossier")
    call = models.calls[0]
    assert call["model"] == "gemini-test"
    assert "Brand Name: Glossier" in call["contents"]
    assert "Follower Count: 120000" in call["contents"]
    assert call["config"]["response_mime_type"] == "application/json"


def test_contract_extraction_sends_pdf_part() -> None:
    payload = {
        "brand_name": "Nike",
        "start_date": "2024-09-01",
        "end_date": "2024-12-01",
        "deliverables": "2 Instagram posts, 1 Story",
        "payment": 4500,
    }
    assistant, models = make_assistant(payload)

    result = asyncio.run(assistant.extract_contract_details(PDF_URI))

    assert result.brand_name == "Nike"
    assert result.payment == 4500.0
    part = models.calls[0]["contents"][0]
    assert isinstance(part, types.Part)
    assert part.inline_data.mime_type == "application/pdf"
    assert part.inline_data.data == b"%PDF-1.4 fake contract"


def test_malformed_data_uri_fails_before_calling_model() -> None:
    assistant, models = make_assistant({})

    with pytest.raises(ValueError):
        asyncio.run(assistant.extract_post_metrics("https://example.com/shot.png"))
    assert models.calls == []


def test_post_metrics_allow_missing_fields() -> None:
    assistant, _ = make_assistant({"likes": 1204, "comments": 57})

    result = asyncio.run(assistant.extract_post_metrics(PNG_URI))

    assert result.likes == 1204
    assert result.shares is None
    assert result.post_title is None


def test_performance_rating_out_of_range_raises() -> None:
    assistant, _ = make_assistant({"analysis": "Great", "suggestions": ["a", "b", "c"], "rating": 14})
    request = PostPerformanceRequest(
        post_description="GRWM reel",
        metrics=PostMetrics(likes=900, comments=40, shares=12, saves=30),
        niche="Fashion & Lifestyle",
        platform="Instagram",
    )

    with pytest.raises(AssistantError):
        asyncio.run(assistant.analyze_post_performance(request))


def test_api_error_is_wrapped() -> None:
    assistant, _ = make_assistant(error=RuntimeError("quota exceeded"))
    request = ContentIdeasRequest(campaign_name="Fall", brand_name="Zara", deliverables="1 Reel", niche="Fashion")

    with pytest.raises(AssistantError) as excinfo:
        asyncio.run(assistant.generate_content_ideas(request))
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_post_time_uses_platform_name() -> None:
    assistant, models = make_assistant({"suggestion": "Weekday mornings."})

    result = asyncio.run(assistant.suggest_post_time(PostTimeRequest(niche="Fitness", platform="TikTok")))

    assert result.suggestion == "Weekday mornings."
    assert 'post on TikTok for the "Fitness" niche' in models.calls[0]["contents"]


def test_briefing_without_deals_skips_model() -> None:
    assistant, models = make_assistant({})

    result = asyncio.run(assistant.generate_briefing(BriefingRequest(user_name="Maya")))

    assert result.greeting == "Hi Maya!"
    assert result.summary_points == [CollabAssistant.QUIET_DAY_POINT]
    assert models.calls == []


def test_briefing_prompt_counts_completed_tasks() -> None:
    assistant, models = make_assistant({"greeting": "Morning Maya!", "summary_points": ["Ship the reel."]})
    deal = BriefingDeal(
        id="d1",
        campaign_name="Fall Drop",
        brand_name="Glossier",
        status="In Progress",
        due_date="2024-08-13",
        payment=2500,
        tasks=[
            BriefingTask(id="t1", title="Draft script", completed=True),
            BriefingTask(id="t2", title="Film reel"),
        ],
    )

    result = asyncio.run(assistant.generate_briefing(BriefingRequest(user_name="Maya", deals=[deal]), today="2024-08-12"))

    prompt = models.calls[0]["contents"]
    assert result.summary_points == ["Ship the reel."]
    assert "Tasks: 2 total, 1 completed." in prompt
    assert "Film reel (Incomplete)" in prompt
    assert "Today's date is 2024-08-12." in prompt


def test_disabled_assistant_raises(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    assistant = CollabAssistant()

    assert not assistant.enabled
    with pytest.raises(AssistantError):
        asyncio.run(assistant.suggest_post_time(PostTimeRequest(niche="Food", platform="YouTube")))


def test_feedback_receipt_and_validation() -> None:
    assistant, models = make_assistant({})

    receipt = asyncio.run(assistant.submit_feedback(Feedback(feedback="Please add a calendar view", user_id="u1")))

    assert receipt.success is True
    assert models.calls == []
    with pytest.raises(ValidationError):
        Feedback(feedback="short")


def test_parse_data_uri() -> None:
    mime, raw = parse_data_uri(PNG_URI)
    assert mime == "image/png"
    assert raw.startswith(b"\x89PNG")

    with pytest.raises(ValueError):
        parse_data_uri("data:image/png;base64,@@@")
    with pytest.raises(ValueError):
        parse_data_uri("data:image/png;base64,")

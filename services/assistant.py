import logging
import os
from typing import Optional, Type, TypeVar

from dotenv import load_dotenv
from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

from models.assistant import (
    Briefing,
    BriefingRequest,
    ContentIdeas,
    ContentIdeasRequest,
    ContractDetails,
    ExtractedPostMetrics,
    FeedbackReceipt,
    PitchEmail,
    PitchEmailRequest,
    PostPerformanceAnalysis,
    PostPerformanceRequest,
    PostTimeRequest,
    PostTimeSuggestion,
)
from models.deal import utc_today
from models.mail import Feedback
from utils.data_uri import parse_data_uri

load_dotenv()

logger = logging.getLogger(__name__)

OutputT = TypeVar("OutputT", bound=BaseModel)


class AssistantError(Exception):
    pass


class CollabAssistant:
    # One template per flow; the model only fills the output schema
    PROMPTS = {
        'pitch_email': """You are an expert marketing assistant specialized in writing personalized pitch emails for social media influencers to send to brands for potential collaborations.

Based on the influencer's stats and niche, generate a compelling but concise pitch email tailored to the specified brand, highlighting relevant metrics and past successes.

Influencer Niche: {niche}
Brand Name: {brand_name}
Follower Count: {follower_count}
Engagement Rate: {engagement_rate}
Average Likes: {average_likes}
Average Comments: {average_comments}
Past Collaboration Examples: {past_collaboration_examples}

Pick the most impressive and relevant metrics to show the influencer's value to the brand.
Include a call to action. Keep the email to 3-4 short paragraphs.
Do not include a subject line.""",

        'contract_details': """You are an expert legal assistant specializing in contract analysis. Carefully read the attached contract and extract:

- The Brand Name (the company the influencer is collaborating with)
- The Start Date of the agreement
- The End Date of the agreement
- The key Deliverables (e.g., "2 Instagram posts, 1 Story")
- The total Payment amount promised to the influencer

Dates must be in YYYY-MM-DD format.""",

        'post_performance': """You are an expert social media analyst. Analyze the performance of a post based on its description and the metrics below.

Post Details:
- Platform: {platform}
- Niche: {niche}
- Description: {post_description}

Metrics:
- Likes: {likes}
- Comments: {comments}
- Shares: {shares}
- Saves: {saves}

1. Analysis: a 1-2 sentence summary of the performance and what likely went well.
2. Suggestions: exactly 3 specific, actionable and short suggestions for future content.
3. Rating: an overall performance rating from 1 to 10, where 10 is outstanding.

Be encouraging but concrete. Keep all text as brief as possible.""",

        'content_ideas': """You are an expert social media strategist. Generate creative and engaging content ideas for an influencer campaign.

Campaign Details:
- Brand: {brand_name}
- Campaign: {campaign_name}
- Niche: {niche}
- Deliverables: {deliverables}

Generate 3 distinct content ideas tailored to the niche and the required deliverables.""",

        'post_time': """You are an expert social media analyst. Based on general industry knowledge, suggest the best days and times to post on {platform} for the "{niche}" niche.

Give a concise summary. For example: 'For the fashion niche on Instagram, try posting on Wednesdays and Fridays between 11 AM - 1 PM. Weekend evenings also see high engagement.'""",

        'post_metrics': """You are an expert data extractor. Analyze the attached screenshot of a social media post and extract its performance metrics.

1. Likes: the number next to the heart icon. "Liked by [username] and [number] others" means [number] + 1.
2. Comments: the number next to the comment bubble. "[username] and [number] others commented" means [number] + 1; "View all [number] comments" means [number].
3. Shares & Saves: numbers next to a share icon (paper plane) or save icon (bookmark).
4. Post title: the main text or caption of the post.

Only report what you can confidently read. Leave out anything that is not visible.""",

        'briefing': """You are an expert-level virtual assistant for a social media influencer named {user_name}.
Analyze their current brand deals and write a concise, encouraging and actionable "Daily Briefing".

Today's date is {today}.

Deals:
{deals}

1. Greeting: a friendly, personalized greeting for {user_name}.
2. Prioritize: find the most urgent and important items for the coming day and week (approaching due dates, high payments, incomplete tasks).
3. Summary points: 3-4 bullet points, each a single actionable sentence with context, not just a list of deals.
4. Tone: encouraging, professional and helpful.""",
    }

    QUIET_DAY_POINT = "It's a quiet day! You have no active deals. A great time to plan new content or pitch to brands."

    def __init__(self, client=None, model_name: Optional[str] = None):
        self.model_name = model_name or os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.client = client
        if self.client is not None:
            return

        self.api_key = os.getenv("GEMINI_API_KEY")
        if not self.api_key:
            logger.warning("⚠️ GEMINI_API_KEY not found. AI assistant disabled.")
            return

        self.client = genai.Client(api_key=self.api_key)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def _generate(self, flow: str, contents, output_model: Type[OutputT], temperature: float = 0.7) -> OutputT:
        if not self.client:
            raise AssistantError(f"{flow}: GEMINI_API_KEY not configured")

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=contents,
                config={
                    'temperature': temperature,
                    'response_mime_type': 'application/json',
                    'response_schema': output_model,
                }
            )
        except Exception as e:
            logger.error(f"❌ AI error in {flow}: {e}")
            raise AssistantError(f"{flow}: model call failed") from e

        text = (response.text or "").strip()
        try:
            return output_model.model_validate_json(text)
        except ValidationError as e:
            logger.error(f"❌ {flow} returned output that does not match {output_model.__name__}: {text[:200]}")
            raise AssistantError(f"{flow}: invalid model output") from e

    @staticmethod
    def _media_part(data_uri: str) -> types.Part:
        mime_type, raw = parse_data_uri(data_uri)
        return types.Part.from_bytes(data=raw, mime_type=mime_type)

    async def generate_pitch_email(self, request: PitchEmailRequest) -> PitchEmail:
        prompt = self.PROMPTS['pitch_email'].format(**request.model_dump())
        return await self._generate("generate_pitch_email", prompt, PitchEmail)

    async def extract_contract_details(self, contract_data_uri: str) -> ContractDetails:
        part = self._media_part(contract_data_uri)
        return await self._generate(
            "extract_contract_details", [part, self.PROMPTS['contract_details']], ContractDetails, temperature=0.0
        )

    async def analyze_post_performance(self, request: PostPerformanceRequest) -> PostPerformanceAnalysis:
        prompt = self.PROMPTS['post_performance'].format(
            platform=request.platform,
            niche=request.niche,
            post_description=request.post_description,
            **request.metrics.model_dump(),
        )
        return await self._generate("analyze_post_performance", prompt, PostPerformanceAnalysis)

    async def generate_content_ideas(self, request: ContentIdeasRequest) -> ContentIdeas:
        prompt = self.PROMPTS['content_ideas'].format(**request.model_dump())
        return await self._generate("generate_content_ideas", prompt, ContentIdeas, temperature=0.9)

    async def suggest_post_time(self, request: PostTimeRequest) -> PostTimeSuggestion:
        prompt = self.PROMPTS['post_time'].format(platform=request.platform.value, niche=request.niche)
        return await self._generate("suggest_post_time", prompt, PostTimeSuggestion)

    async def extract_post_metrics(self, screenshot_data_uri: str) -> ExtractedPostMetrics:
        part = self._media_part(screenshot_data_uri)
        return await self._generate(
            "extract_post_metrics", [part, self.PROMPTS['post_metrics']], ExtractedPostMetrics, temperature=0.0
        )

    async def generate_briefing(self, request: BriefingRequest, today: Optional[str] = None) -> Briefing:
        """Daily briefing over the user's deals. No model call when there are no deals."""
        if not request.deals:
            return Briefing(greeting=f"Hi {request.user_name}!", summary_points=[self.QUIET_DAY_POINT])

        lines = []
        for deal in request.deals:
            lines.append(f'- Campaign: "{deal.campaign_name}" with {deal.brand_name}')
            lines.append(f"  - Status: {deal.status}")
            lines.append(f"  - Due Date: {deal.due_date}")
            lines.append(f"  - Payment: ${deal.payment:,.2f}")
            lines.append(f"  - Tasks: {len(deal.tasks)} total, {deal.completed_task_count} completed.")
            for task in deal.tasks:
                state = "Completed" if task.completed else "Incomplete"
                lines.append(f"    - {task.title} ({state})")

        if today is None:
            today = utc_today().isoformat()

        prompt = self.PROMPTS['briefing'].format(user_name=request.user_name, today=today, deals="\n".join(lines))
        return await self._generate("generate_briefing", prompt, Briefing)

    async def submit_feedback(self, feedback: Feedback) -> FeedbackReceipt:
        logger.info(f"💬 New user feedback received from {feedback.user_id or feedback.email or 'anonymous'}: {feedback.feedback}")
        return FeedbackReceipt(success=True, message="Feedback received. Thank you!")

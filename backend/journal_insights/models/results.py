"""Structured results produced by the generation backend, one schema per insight type.

Payloads are persisted with camelCase keys (``by_alias=True``), which is the
shape the display layer reads.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InsightResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> str:
        """Canonical payload form stored in the insight store"""
        return self.model_dump_json(by_alias=True)


class WeeklySummaryResult(InsightResult):
    main_summary: str
    key_themes: List[str] = Field(default_factory=list)
    mood_trend: str = ""
    notable_quote: str = ""


class MoodTrendResult(InsightResult):
    overall_trend: str
    dominant_mood: str
    mood_shifts: List[str] = Field(default_factory=list)
    analysis: str = ""


class RecommendationItem(InsightResult):
    title: str
    description: str
    category: str = "Reflection"
    rationale: str = ""


class RecommendationResult(InsightResult):
    recommendations: List[RecommendationItem] = Field(default_factory=list)


class AIReflectionResult(InsightResult):
    insight_message: str
    reflection_prompts: List[str] = Field(default_factory=list)


class DailyReflectionResult(InsightResult):
    snapshot_text: str
    reflection_prompts: List[str] = Field(default_factory=list)


class ForecastResult(InsightResult):
    mood_prediction_text: Optional[str] = None
    general_trends: List[str] = Field(default_factory=list)
    preemptive_action_plan: List[str] = Field(default_factory=list)


class NarrativeResult(InsightResult):
    story_snippet: str
    narrative_text: str


class MoodDataPoint(InsightResult):
    date: str
    mood_value: float
    mood_label: str = ""


class FeelInsightResult(InsightResult):
    mood_snapshot_text: str
    dominant_mood: str = ""
    mood_trend_chart_data: List[MoodDataPoint] = Field(default_factory=list)


class ThinkInsightResult(InsightResult):
    theme_overview_text: str
    value_reflection_text: str


class ActInsightResult(InsightResult):
    action_forecast_text: str
    personalized_recommendations: List[RecommendationItem] = Field(default_factory=list)


class LearnInsightResult(InsightResult):
    takeaway_text: str
    before_after_text: str = ""
    next_step_text: str = ""


class WeekInReviewResult(InsightResult):
    summary_text: str
    key_themes: List[str] = Field(default_factory=list)
    mood_trend: str = ""
    recurring_themes_text: str = ""
    action_highlights_text: str = ""
    takeaway_text: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

"""Per-type prompt templates, result schemas and result checks."""
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, Optional, Type

from journal_insights.models.results import (
    ActInsightResult,
    AIReflectionResult,
    DailyReflectionResult,
    FeelInsightResult,
    ForecastResult,
    InsightResult,
    LearnInsightResult,
    MoodTrendResult,
    NarrativeResult,
    RecommendationResult,
    ThinkInsightResult,
    WeeklySummaryResult,
    WeekInReviewResult,
)
from .prompts import GenerationContext, PromptBuilder, render_json_prompt

PromptFn = Callable[[GenerationContext, PromptBuilder], str]


@dataclass(frozen=True)
class InsightStrategy:
    """How one insight type talks to the backend.

    ``validate`` raises ``ValueError`` for a result that decoded but is not
    usable; ``finalize`` may enrich the result from the run context before it
    is persisted.
    """
    result_model: Type[InsightResult]
    build_prompt: PromptFn
    validate: Optional[Callable[[InsightResult], None]] = None
    finalize: Optional[Callable[[InsightResult, GenerationContext], InsightResult]] = None


def _entries(context: GenerationContext, builder: PromptBuilder) -> str:
    return builder.entries_context(
        context.entries,
        context.policy.entry_text_limit,
        chronological=context.policy.chronological,
    )


def _dependency(context: GenerationContext, identifier: str) -> str:
    return PromptBuilder.dependency_context(context.dependencies.get(identifier))


RECOMMENDATION_ITEM_SHAPE = {
    "title": "A short, catchy title for the recommendation (e.g., 'Mindful Morning Moment').",
    "description": "A concise (1-2 sentence) description of the recommended action.",
    "category": "Categorize as 'Mindfulness', 'Activity', 'Social', 'Self-Care', or 'Reflection'.",
    "rationale": "A brief (1 sentence) explanation of why this might be helpful based on the snippets.",
}


def weekly_summary_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "Analyze the following filtered journal entry snippets from the past week.",
        [("Journal entries", _entries(context, builder))],
        "Based ONLY on these snippets, provide a concise summary of the user's main activities, "
        "recurring themes, and overall mood trends for the week.",
        {
            "mainSummary": "A 2-3 sentence overview of the week's activities and feelings.",
            "keyThemes": ["1-3 key themes, e.g., 'Work Stress', 'Family Time'"],
            "moodTrend": "The general mood trend, e.g., 'Generally positive with a dip mid-week'.",
            "notableQuote": "A short quote (max 15 words) from one snippet, or an empty string.",
        },
    )


def mood_trend_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "Analyze the mood patterns in the following journal entry snippets (oldest first).",
        [("Journal entries", _entries(context, builder))],
        "Based ONLY on these snippets, identify the overall mood trend, dominant mood, and any notable shifts.",
        {
            "overallTrend": "One of 'Improving', 'Declining', 'Stable', or 'Fluctuating'.",
            "dominantMood": "The most frequent mood name, or 'Mixed' if none dominates.",
            "moodShifts": ["Brief notable shifts (max 10 words each); empty array if none."],
            "analysis": "A 1-2 sentence interpretation of the observed mood patterns.",
        },
    )


def recommendation_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "Analyze the following journal entry snippets for potential areas of growth or support.",
        [("Journal entries", _entries(context, builder))],
        "Based ONLY on these snippets, generate 2-3 actionable and personalized recommendations "
        "focused on well-being, mindfulness, or self-improvement.",
        {"recommendations": [RECOMMENDATION_ITEM_SHAPE]},
        extra_rules="Generate between 2 and 3 recommendation items in the array.",
    )


def ai_reflection_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "You are a warm, insightful journaling companion. Read the user's most recent entries.",
        [("Recent journal entries", _entries(context, builder))],
        "Write one short insight message that reflects something meaningful in these entries, "
        "and suggest open-ended reflection prompts that invite deeper thinking.",
        {
            "insightMessage": "A 2-3 sentence supportive observation about the recent entries.",
            "reflectionPrompts": ["2-3 open-ended questions for the user to reflect on."],
        },
    )


def daily_reflection_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    latest = builder.entries_context(context.entries, None, include_time=True)
    weekly_entries = context.context_window.entries if context.context_window else []
    weekly = builder.entries_context(weekly_entries, context.policy.entry_text_limit)
    return render_json_prompt(
        "You are a reflective journaling companion preparing today's reflection.",
        [("Entries from the last 24 hours", latest), ("Entries from the last 7 days", weekly)],
        "Focus on the last 24 hours and use the weekly entries only for awareness of ongoing themes. "
        "Write a short snapshot of the day and suggest reflection prompts.",
        {
            "snapshotText": "A 2-3 sentence snapshot of the user's day.",
            "reflectionPrompts": ["2-3 gentle, specific reflection questions."],
        },
    )


def forecast_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "You forecast the user's coming days from their recent journaling and existing insights.",
        [
            ("Recent journal entries", _entries(context, builder)),
            ("Latest mood trend insight (JSON)", _dependency(context, "moodTrend")),
            ("Latest recommendations insight (JSON)", _dependency(context, "recommendation")),
        ],
        "Predict the likely mood direction, note general trends, and propose a short preemptive "
        "action plan. Treat 'Not available' insights as missing context.",
        {
            "moodPredictionText": "1-2 sentences on the expected mood in the coming days.",
            "generalTrends": ["Emerging patterns in journaling or topics."],
            "preemptiveActionPlan": ["Concrete small actions to prepare for the forecast."],
        },
    )


def journey_narrative_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "You narrate the user's recent journaling journey as an encouraging story.",
        [("Recent journal entries", _entries(context, builder))],
        "Describe how the user's journey has unfolded across these entries, highlighting consistency and growth.",
        {
            "storySnippet": "A one-sentence teaser of the journey (max 20 words).",
            "narrativeText": "A 3-5 sentence narrative of the recent journey.",
        },
    )


def feel_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "Analyze the emotional landscape of the following journal entries from the last two weeks.",
        [("Journal entries", _entries(context, builder))],
        "Describe the user's current emotional snapshot, the dominant mood, and chart points for the mood trend.",
        {
            "moodSnapshotText": "2-3 sentences describing the recent emotional state.",
            "dominantMood": "The most prominent mood name.",
            "moodTrendChartData": [
                {"date": "YYYY-MM-DD", "moodValue": "Number from 1 (low) to 5 (high).", "moodLabel": "Mood name."}
            ],
        },
    )


def think_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "Analyze the thinking patterns and recurring themes in the following journal entries.",
        [("Journal entries", _entries(context, builder))],
        "Summarize the dominant themes and reflect on the values they reveal.",
        {
            "themeOverviewText": "2-3 sentences on the recurring themes.",
            "valueReflectionText": "2-3 sentences on the values these themes suggest.",
        },
    )


def act_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "You turn recent journaling into practical next actions.",
        [
            ("Journal entries from the last 7 days", _entries(context, builder)),
            ("Latest Feel insight (JSON)", _dependency(context, "feelInsights")),
            ("Latest Think insight (JSON)", _dependency(context, "thinkInsights")),
        ],
        "Forecast where the user's actions are heading and give personalized recommendations.",
        {
            "actionForecastText": "2-3 sentences on the likely direction of the user's actions.",
            "personalizedRecommendations": [RECOMMENDATION_ITEM_SHAPE],
        },
    )


def learn_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "Identify what the user has been learning in the following journal entries.",
        [("Journal entries", _entries(context, builder))],
        "Extract a key takeaway, contrast before and after, and suggest one next step.",
        {
            "takeawayText": "The single most important lesson (1-2 sentences).",
            "beforeAfterText": "How the user's perspective shifted (1-2 sentences).",
            "nextStepText": "One concrete next step.",
        },
    )


def week_in_review_prompt(context: GenerationContext, builder: PromptBuilder) -> str:
    return render_json_prompt(
        "You write the user's Week in Review for the previous calendar week (Sunday to Saturday).",
        [
            ("Journal entries from the reviewed week (oldest first)", _entries(context, builder)),
            ("Latest Feel insight (JSON)", _dependency(context, "feelInsights")),
            ("Latest Think insight (JSON)", _dependency(context, "thinkInsights")),
            ("Latest Act insight (JSON)", _dependency(context, "actInsights")),
            ("Latest Learn insight (JSON)", _dependency(context, "learnInsights")),
        ],
        "Summarize the week, its key themes and mood trend, recurring themes, action highlights, "
        "and the main takeaway.",
        {
            "summaryText": "A 3-4 sentence overview of the week.",
            "keyThemes": ["1-3 key themes"],
            "moodTrend": "The mood trend over the week.",
            "recurringThemesText": "1-2 sentences on recurring themes.",
            "actionHighlightsText": "1-2 sentences on notable actions.",
            "takeawayText": "The week's main takeaway.",
        },
    )


def require_recommendations(result: InsightResult) -> None:
    if not result.recommendations:
        raise ValueError("Backend returned no recommendations")


def stamp_review_week(result: InsightResult, context: GenerationContext) -> InsightResult:
    covered = context.window.covered_range
    if covered is None:
        return result
    # end_date is the last day of the reviewed week (its Saturday)
    return result.model_copy(update={
        "start_date": covered.start,
        "end_date": covered.end - timedelta(days=1),
    })


DEFAULT_STRATEGIES: Dict[str, InsightStrategy] = {
    "weeklySummary": InsightStrategy(WeeklySummaryResult, weekly_summary_prompt),
    "moodTrend": InsightStrategy(MoodTrendResult, mood_trend_prompt),
    "recommendation": InsightStrategy(
        RecommendationResult, recommendation_prompt, validate=require_recommendations
    ),
    "aiReflection": InsightStrategy(AIReflectionResult, ai_reflection_prompt),
    "dailyReflection": InsightStrategy(DailyReflectionResult, daily_reflection_prompt),
    "forecast": InsightStrategy(ForecastResult, forecast_prompt),
    "journeyNarrative": InsightStrategy(NarrativeResult, journey_narrative_prompt),
    "feelInsights": InsightStrategy(FeelInsightResult, feel_prompt),
    "thinkInsights": InsightStrategy(ThinkInsightResult, think_prompt),
    "actInsights": InsightStrategy(ActInsightResult, act_prompt),
    "learnInsights": InsightStrategy(LearnInsightResult, learn_prompt),
    "weekInReview": InsightStrategy(WeekInReviewResult, week_in_review_prompt, finalize=stamp_review_week),
}

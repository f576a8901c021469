"""Static table of insight type policies, validated once at construction."""
from datetime import time
from typing import Dict, Iterable, List

from .errors import DependencyCycleError, UnknownInsightType
from .policy import (
    FixedPriorWeek,
    InsightTypePolicy,
    IntervalUnit,
    RecencyCount,
    RecencyDuration,
    RegenerationInterval,
    RollingRank,
    WeeklyActivityWindow,
)


class InsightTypeRegistry:
    """Read-only lookup of ``InsightTypePolicy`` by identifier.

    Construction rejects duplicate identifiers, dependencies on unregistered
    types, and dependency cycles, so the orchestrator never has to detect them
    at run time.
    """

    def __init__(self, policies: Iterable[InsightTypePolicy]):
        self._policies: Dict[str, InsightTypePolicy] = {}
        for policy in policies:
            if policy.identifier in self._policies:
                raise ValueError(f"Duplicate insight type: {policy.identifier}")
            self._policies[policy.identifier] = policy

        for policy in self._policies.values():
            missing = policy.dependency_identifiers - self._policies.keys()
            if missing:
                raise ValueError(
                    f"{policy.identifier} depends on unregistered types: {sorted(missing)}"
                )

        self._layers = self._build_layers()

    def policy(self, identifier: str) -> InsightTypePolicy:
        try:
            return self._policies[identifier]
        except KeyError:
            raise UnknownInsightType(identifier) from None

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._policies

    def identifiers(self) -> List[str]:
        return list(self._policies)

    def topological_layers(self) -> List[List[str]]:
        """Identifiers grouped so every dependency sits in an earlier layer"""
        return [list(layer) for layer in self._layers]

    def _build_layers(self) -> List[List[str]]:
        remaining = {
            identifier: set(policy.dependency_identifiers)
            for identifier, policy in self._policies.items()
        }
        layers: List[List[str]] = []
        while remaining:
            ready = sorted(identifier for identifier, deps in remaining.items() if not deps)
            if not ready:
                raise DependencyCycleError(
                    f"Dependency cycle among insight types: {sorted(remaining)}"
                )
            layers.append(ready)
            for identifier in ready:
                del remaining[identifier]
            for deps in remaining.values():
                deps.difference_update(ready)
        return layers


# Sunday 03:00 through the end of Monday
WEEK_IN_REVIEW_WINDOW = WeeklyActivityWindow(
    start_weekday=6, start_time=time(3, 0),
    end_weekday=1, end_time=time(0, 0),
)


def default_policies() -> List[InsightTypePolicy]:
    return [
        InsightTypePolicy(
            identifier="weeklySummary",
            regeneration_interval=RegenerationInterval.days(1),
            minimum_entry_count=1,
            window=RecencyDuration(7, IntervalUnit.DAYS),
            entry_text_limit=200,
            user_message="Generate the weekly summary based on the provided context.",
        ),
        InsightTypePolicy(
            identifier="moodTrend",
            regeneration_interval=RegenerationInterval.days(1),
            minimum_entry_count=3,
            window=RecencyDuration(21, IntervalUnit.DAYS),
            chronological=True,
            user_message="Generate the mood trend analysis based on the provided context.",
        ),
        InsightTypePolicy(
            identifier="recommendation",
            regeneration_interval=RegenerationInterval.days(3),
            minimum_entry_count=3,
            window=RecencyCount(15),
            user_message="Generate recommendations based on the provided journal context.",
        ),
        InsightTypePolicy(
            identifier="aiReflection",
            regeneration_interval=RegenerationInterval.hours(6),
            minimum_entry_count=1,
            window=RecencyCount(3),
            entry_text_limit=200,
            user_message="Generate an insight message and reflection prompts based on the context.",
        ),
        InsightTypePolicy(
            identifier="dailyReflection",
            regeneration_interval=RegenerationInterval.hours(1),
            minimum_entry_count=1,
            window=RecencyDuration(24, IntervalUnit.HOURS),
            context_window=RecencyDuration(7, IntervalUnit.DAYS),
            user_message=(
                "Generate the daily reflection snapshot and prompts based on the latest "
                "entry context, using the weekly context for awareness."
            ),
        ),
        InsightTypePolicy(
            identifier="forecast",
            regeneration_interval=RegenerationInterval.days(1),
            minimum_entry_count=3,
            window=RecencyCount(10),
            dependency_identifiers=frozenset({"moodTrend", "recommendation"}),
            user_message="Generate the forecast based on the provided context.",
        ),
        InsightTypePolicy(
            identifier="journeyNarrative",
            regeneration_interval=RegenerationInterval.days(1),
            minimum_entry_count=1,
            window=RecencyCount(7),
            user_message="Generate the journey narrative based on the context.",
        ),
        InsightTypePolicy(
            identifier="feelInsights",
            regeneration_interval=RegenerationInterval.days(1),
            minimum_entry_count=3,
            window=RecencyDuration(14, IntervalUnit.DAYS),
            user_message="Generate the Feel insight (Mood Trend, Snapshot, Dominant Mood) based on the context.",
        ),
        InsightTypePolicy(
            identifier="thinkInsights",
            regeneration_interval=RegenerationInterval.days(3),
            minimum_entry_count=3,
            window=RollingRank(lookback_days=14, cap=30, floor=3),
            entry_text_limit=200,
            user_message="Generate the Think insight (Theme Overview and Value Reflection) based on the context.",
        ),
        InsightTypePolicy(
            identifier="actInsights",
            regeneration_interval=RegenerationInterval.days(1),
            minimum_entry_count=2,
            window=RecencyDuration(7, IntervalUnit.DAYS),
            dependency_identifiers=frozenset({"feelInsights", "thinkInsights"}),
            user_message=(
                "Generate the Act insight (Action Forecast and Personalized Recommendations) "
                "based on the context."
            ),
        ),
        InsightTypePolicy(
            identifier="learnInsights",
            regeneration_interval=RegenerationInterval.days(7),
            minimum_entry_count=3,
            window=RecencyDuration(14, IntervalUnit.DAYS),
            user_message="Generate the Learn insight (Takeaway, Before/After, Next Step) based on the context.",
        ),
        InsightTypePolicy(
            identifier="weekInReview",
            regeneration_interval=RegenerationInterval.days(7),
            minimum_entry_count=3,
            window=FixedPriorWeek(),
            dependency_identifiers=frozenset(
                {"feelInsights", "thinkInsights", "actInsights", "learnInsights"}
            ),
            activity_window=WEEK_IN_REVIEW_WINDOW,
            chronological=True,
            user_message="Generate the Week in Review insight based on the provided weekly context.",
        ),
    ]


def default_registry() -> InsightTypeRegistry:
    return InsightTypeRegistry(default_policies())

"""Tests for the insight type registry"""
import pytest

from journal_insights.insights.errors import DependencyCycleError, UnknownInsightType
from journal_insights.insights.policy import (
    FixedPriorWeek,
    InsightTypePolicy,
    RecencyCount,
    RegenerationInterval,
    RollingRank,
)
from journal_insights.insights.registry import InsightTypeRegistry, default_registry
from journal_insights.insights.strategies import DEFAULT_STRATEGIES


def policy(identifier, *deps):
    return InsightTypePolicy(
        identifier=identifier,
        regeneration_interval=RegenerationInterval.days(1),
        minimum_entry_count=1,
        window=RecencyCount(5),
        dependency_identifiers=frozenset(deps),
    )


class TestInsightTypeRegistry:

    def test_lookup(self):
        registry = InsightTypeRegistry([policy("a"), policy("b", "a")])
        assert registry.policy("b").dependency_identifiers == frozenset({"a"})
        assert "a" in registry
        assert "zzz" not in registry

    def test_unknown_identifier(self):
        registry = InsightTypeRegistry([policy("a")])
        with pytest.raises(UnknownInsightType) as exc_info:
            registry.policy("missing")
        assert exc_info.value.identifier == "missing"
        assert "missing" in str(exc_info.value)

    def test_duplicate_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            InsightTypeRegistry([policy("a"), policy("a")])

    def test_unregistered_dependency_rejected(self):
        with pytest.raises(ValueError, match="unregistered"):
            InsightTypeRegistry([policy("a", "ghost")])

    def test_cycle_rejected(self):
        with pytest.raises(DependencyCycleError):
            InsightTypeRegistry([policy("a", "c"), policy("b", "a"), policy("c", "b")])

    def test_self_dependency_is_a_cycle(self):
        with pytest.raises(DependencyCycleError):
            InsightTypeRegistry([policy("a", "a")])

    def test_topological_layers(self):
        registry = InsightTypeRegistry([
            policy("review", "act", "feel"),
            policy("act", "feel", "think"),
            policy("feel"),
            policy("think"),
        ])
        assert registry.topological_layers() == [["feel", "think"], ["act"], ["review"]]

    def test_negative_minimum_rejected(self):
        with pytest.raises(ValueError):
            InsightTypePolicy(
                identifier="bad",
                regeneration_interval=RegenerationInterval.days(1),
                minimum_entry_count=-1,
                window=RecencyCount(1),
            )


class TestDefaultRegistry:

    def test_all_types_registered(self):
        registry = default_registry()
        assert set(registry.identifiers()) == {
            "weeklySummary", "moodTrend", "recommendation", "aiReflection", "dailyReflection",
            "forecast", "journeyNarrative", "feelInsights", "thinkInsights", "actInsights",
            "learnInsights", "weekInReview",
        }

    def test_every_type_has_a_strategy(self):
        assert set(default_registry().identifiers()) == set(DEFAULT_STRATEGIES)

    def test_dependencies_come_first(self):
        layers = default_registry().topological_layers()
        position = {identifier: i for i, layer in enumerate(layers) for identifier in layer}
        assert position["forecast"] > position["moodTrend"]
        assert position["forecast"] > position["recommendation"]
        assert position["actInsights"] > position["thinkInsights"]
        assert position["weekInReview"] > position["actInsights"]

    def test_week_in_review_policy(self):
        review = default_registry().policy("weekInReview")
        assert isinstance(review.window, FixedPriorWeek)
        assert review.activity_window is not None
        assert review.regeneration_interval == RegenerationInterval.days(7)
        assert review.chronological

    def test_think_policy_uses_rolling_rank(self):
        think = default_registry().policy("thinkInsights")
        assert think.window == RollingRank(lookback_days=14, cap=30, floor=3)
        assert think.entry_text_limit == 200

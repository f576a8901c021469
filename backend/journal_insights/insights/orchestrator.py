"""
Generation orchestrator: one parameterized pipeline shared by every insight type
"""
import asyncio
import functools
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Callable, Dict, Mapping, NamedTuple, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from journal_insights.core.config import settings
from journal_insights.models.domain import InsightRecord
from journal_insights.models.results import InsightResult
from .dependencies import DependencyResolver
from .errors import (
    BackendError,
    BackendTransport,
    DecodingFailed,
    InsightError,
    PersistenceFailed,
    PromptBuildFailed,
    StoreReadFailed,
)
from .prompts import GenerationContext, PromptBuilder
from .registry import InsightTypeRegistry, default_registry
from .staleness import Decision, should_generate
from .strategies import DEFAULT_STRATEGIES, InsightStrategy
from .stores import EntryStore, InsightStore
from .windows import select_window

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    SKIPPED = "skipped"
    GENERATED = "generated"
    FAILED = "failed"


class RunState(str, Enum):
    IDLE = "idle"
    CHECKING_STALENESS = "checking_staleness"
    FETCHING = "fetching"
    BUILDING_CONTEXT = "building_context"
    GENERATING = "generating"
    DECODING = "decoding"
    PERSISTING = "persisting"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class RunOutcome:
    identifier: str
    status: RunStatus
    reason: Optional[Decision] = None
    error: Optional[InsightError] = None
    record: Optional[InsightRecord] = None

    @classmethod
    def skipped(cls, identifier: str, reason: Decision) -> "RunOutcome":
        return cls(identifier, RunStatus.SKIPPED, reason=reason)

    @classmethod
    def generated(cls, identifier: str, record: InsightRecord) -> "RunOutcome":
        return cls(identifier, RunStatus.GENERATED, record=record)

    @classmethod
    def failed(cls, identifier: str, error: InsightError) -> "RunOutcome":
        return cls(identifier, RunStatus.FAILED, error=error)


class _InFlight(NamedTuple):
    task: asyncio.Task
    forced: bool


def _caused_by(error: InsightError, cause: BaseException) -> InsightError:
    error.__cause__ = cause
    return error


class GenerationOrchestrator:
    """Decides, generates and persists insights, one run in flight per type.

    A call to ``run`` for a type whose previous run is still in flight joins
    that run and receives the same outcome, so the backend is never called
    twice concurrently for one type. The exception is a forced call arriving
    during an unforced run: it is queued to run once the current run settles,
    and later calls join the forced run. Runs for different types are independent;
    a dependent type reads whatever its dependencies last persisted.
    """

    def __init__(
        self,
        entry_store: EntryStore,
        insight_store: InsightStore,
        backend,
        registry: Optional[InsightTypeRegistry] = None,
        strategies: Optional[Mapping[str, InsightStrategy]] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        tz: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.entry_store = entry_store
        self.insight_store = insight_store
        self.backend = backend
        self.registry = registry or default_registry()
        self.strategies = dict(strategies or DEFAULT_STRATEGIES)

        missing = [i for i in self.registry.identifiers() if i not in self.strategies]
        if missing:
            raise ValueError(f"No strategy registered for insight types: {missing}")

        self.tz = tz or ZoneInfo(settings.INSIGHTS_TIMEZONE)
        self.prompt_builder = prompt_builder or PromptBuilder(tz=self.tz)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.dependency_resolver = DependencyResolver(insight_store)

        self._in_flight: Dict[str, _InFlight] = {}
        self._states: Dict[str, RunState] = {}

    def state(self, identifier: str) -> RunState:
        self.registry.policy(identifier)
        return self._states.get(identifier, RunState.IDLE)

    def is_running(self, identifier: str) -> bool:
        return identifier in self._in_flight

    async def run(self, identifier: str, force_generation: bool = False) -> RunOutcome:
        """Run the pipeline for one insight type (or join the run already in flight)"""
        self.registry.policy(identifier)

        in_flight = self._in_flight.get(identifier)
        if in_flight is None or (force_generation and not in_flight.forced):
            # A forced call never settles for an unforced outcome; it runs after the current run
            previous = in_flight.task if in_flight is not None else None
            task = asyncio.ensure_future(self._execute_after(previous, identifier, force_generation))
            self._in_flight[identifier] = _InFlight(task, force_generation)
            task.add_done_callback(functools.partial(self._release, identifier))
        else:
            task = in_flight.task
            logger.info("[%s] Generation already in flight, joining it", identifier)

        # Caller cancellation must not abort the shared run
        return await asyncio.shield(task)

    async def run_all(self, force_generation: bool = False) -> Dict[str, RunOutcome]:
        """Run every registered type, dependencies before their dependents"""
        outcomes: Dict[str, RunOutcome] = {}
        for layer in self.registry.topological_layers():
            results = await asyncio.gather(
                *(self.run(identifier, force_generation) for identifier in layer)
            )
            outcomes.update(zip(layer, results))
        return outcomes

    def _release(self, identifier: str, task: asyncio.Task) -> None:
        in_flight = self._in_flight.get(identifier)
        if in_flight is not None and in_flight.task is task:
            del self._in_flight[identifier]
            self._states.pop(identifier, None)

    async def _execute_after(
        self, previous: Optional[asyncio.Task], identifier: str, force_generation: bool
    ) -> RunOutcome:
        if previous is not None:
            logger.info("[%s] Forced generation queued behind the run in flight", identifier)
            await asyncio.wait([previous])
        return await self._execute(identifier, force_generation)

    def _transition(self, identifier: str, state: RunState) -> None:
        self._states[identifier] = state
        logger.debug("[%s] -> %s", identifier, state.value)

    def _fail(self, identifier: str, error: InsightError) -> RunOutcome:
        self._transition(identifier, RunState.FAILED)
        logger.warning("[%s] Generation failed (%s): %s", identifier, type(error).__name__, error)
        return RunOutcome.failed(identifier, error)

    async def _execute(self, identifier: str, force_generation: bool) -> RunOutcome:
        policy = self.registry.policy(identifier)
        strategy = self.strategies[identifier]
        now = self.clock()

        self._transition(identifier, RunState.CHECKING_STALENESS)
        try:
            last_record = await self.insight_store.latest(identifier)
        except Exception as e:
            return self._fail(identifier, _caused_by(StoreReadFailed(f"Could not load latest record: {e}"), e))

        self._transition(identifier, RunState.FETCHING)
        try:
            entries = await self.entry_store.list_all()
        except Exception as e:
            return self._fail(identifier, _caused_by(StoreReadFailed(f"Could not load journal entries: {e}"), e))
        window = select_window(entries, policy.window, now, self.tz)

        decision = should_generate(
            now, last_record, policy, window.entries, force_generation, self.tz,
            covered_range=window.covered_range,
        )
        if decision.is_skip:
            return await self._skip(identifier, decision, now)

        logger.info("[%s] Generating from %d entries (force=%s)", identifier, len(window), force_generation)

        self._transition(identifier, RunState.BUILDING_CONTEXT)
        try:
            dependencies = await self.dependency_resolver.resolve(policy.dependency_identifiers)
            context_window = (
                select_window(entries, policy.context_window, now, self.tz)
                if policy.context_window is not None else None
            )
            context = GenerationContext(
                policy=policy,
                now=now,
                window=window,
                context_window=context_window,
                dependencies=dependencies,
            )
            context = replace(context, system_prompt=strategy.build_prompt(context, self.prompt_builder))
        except Exception as e:
            return self._fail(identifier, _caused_by(PromptBuildFailed(f"Could not build prompt: {e}"), e))

        self._transition(identifier, RunState.GENERATING)
        try:
            result = await self.backend.generate_structured(
                context.system_prompt, policy.user_message, strategy.result_model
            )
        except BackendError as e:
            return self._fail(identifier, e)
        except Exception as e:
            return self._fail(identifier, _caused_by(BackendTransport(f"Unexpected backend error: {e}"), e))

        self._transition(identifier, RunState.DECODING)
        try:
            payload = self._decode(strategy, result, context)
        except (ValueError, TypeError) as e:
            return self._fail(identifier, _caused_by(DecodingFailed(str(e)), e))

        self._transition(identifier, RunState.PERSISTING)
        try:
            record = await self.insight_store.save(identifier, now, payload, window.covered_range)
        except Exception as e:
            logger.error(
                "[%s] Generated result lost: could not persist after a successful backend call", identifier
            )
            return self._fail(identifier, _caused_by(PersistenceFailed(str(e)), e))

        self._transition(identifier, RunState.DONE)
        logger.info("[%s] Insight saved", identifier)
        return RunOutcome.generated(identifier, record)

    async def _skip(self, identifier: str, decision: Decision, now: datetime) -> RunOutcome:
        if decision is Decision.SKIP_NO_NEW_DATA:
            # Bump the timestamp so the type is not re-checked until the interval passes again
            try:
                await self.insight_store.touch_timestamp(identifier, now)
            except Exception as e:
                return self._fail(identifier, _caused_by(PersistenceFailed(f"Could not touch timestamp: {e}"), e))

        self._transition(identifier, RunState.SKIPPED)
        logger.info("[%s] Skipping generation: %s", identifier, decision.value)
        return RunOutcome.skipped(identifier, decision)

    @staticmethod
    def _decode(strategy: InsightStrategy, result, context: GenerationContext) -> str:
        model = strategy.result_model
        if isinstance(result, model):
            decoded: InsightResult = result
        elif isinstance(result, BaseModel):
            decoded = model.model_validate(result.model_dump())
        elif isinstance(result, (str, bytes)):
            decoded = model.model_validate_json(result)
        else:
            decoded = model.model_validate(result)

        if strategy.validate is not None:
            strategy.validate(decoded)
        if strategy.finalize is not None:
            decoded = strategy.finalize(decoded, context)
        return decoded.to_payload()

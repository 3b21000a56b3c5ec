"""
Generation Orchestrator for the Slide Deck Generator

Runs the two-phase pipeline for one deck request:

    CACHE_CHECK -> PLANNING -> DISPATCHING -> AGGREGATING -> DONE

1. Session cache lookup (a hit returns immediately, no upstream calls)
2. Topic planning, exactly once per request
3. Bounded worker pool rendering slides; each worker claims the next
   unclaimed prompt index until none remain
4. Aggregation into a position-ordered deck, caching complete decks

Per-slide failures are absorbed into the outcome. Only a deck with zero
slides raises (EmptyDeckError).
"""

import asyncio
import inspect
import itertools
import time
from enum import Enum
from typing import Any, Callable, List, Optional

from src.core.exceptions import EmptyDeckError, RenderError
from src.core.session_cache import SessionCache
from src.core.slide_renderer import SlideRenderer
from src.core.topic_planner import TopicPlanner
from src.models.deck import (
    DeckRequest,
    GenerationIssue,
    GenerationOutcome,
    IssueKind,
    PlanResult,
    SlideArtifact,
)
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_POOL_WIDTH = 2

# Called as on_progress(completed, total); may be sync or async
ProgressCallback = Callable[[int, int], Any]


class GenerationState(str, Enum):
    """Lifecycle of one generate call."""
    IDLE = "idle"
    CACHE_CHECK = "cache_check"
    CACHE_HIT = "cache_hit"
    PLANNING = "planning"
    DISPATCHING = "dispatching"
    AGGREGATING = "aggregating"
    DONE = "done"
    EMPTY_FAILURE = "empty_failure"


class DispatchRun:
    """
    Mutable state of a single dispatch.

    Owned by one generate call; workers of that call are the only writers and
    nothing reads the slots until every worker has finished.
    """

    def __init__(self, request: DeckRequest, on_progress: Optional[ProgressCallback] = None):
        self.request = request
        self.on_progress = on_progress
        self.state = GenerationState.IDLE
        self.plan: Optional[PlanResult] = None
        self.slots: List[Optional[SlideArtifact]] = []
        self.failures: List[RenderError] = []
        self.claimed: List[int] = []
        self.completed = 0
        self._cursor = itertools.count()

    def load(self, plan: PlanResult) -> None:
        """Allocate one empty slot per prompt."""
        self.plan = plan
        self.slots = [None] * len(plan.prompts)

    @property
    def total(self) -> int:
        return len(self.slots)

    def claim_next(self) -> Optional[int]:
        """Fetch-and-increment the shared cursor; None once every index is claimed."""
        index = next(self._cursor)
        if index >= self.total:
            return None
        self.claimed.append(index)
        return index

    async def mark_completed(self) -> None:
        self.completed += 1
        if self.on_progress is None:
            return
        result = self.on_progress(self.completed, self.total)
        if inspect.isawaitable(result):
            await result


class GenerationOrchestrator:
    """
    Turns a DeckRequest into a GenerationOutcome.

    Usage:
        orchestrator = GenerationOrchestrator(planner, renderer, SessionCache())
        outcome = await orchestrator.generate_deck("Figma", "Product design teams")
    """

    def __init__(
        self,
        planner: TopicPlanner,
        renderer: SlideRenderer,
        cache: Optional[SessionCache] = None,
        pool_width: int = DEFAULT_POOL_WIDTH
    ):
        if pool_width < 1:
            raise ValueError("pool_width must be at least 1")
        self.planner = planner
        self.renderer = renderer
        self.cache = cache if cache is not None else SessionCache()
        self.pool_width = pool_width

    def _transition(self, run: DispatchRun, state: GenerationState) -> None:
        logger.debug(f"[{run.request.product_name}] {run.state.value} -> {state.value}")
        run.state = state

    async def generate_deck(
        self,
        product_name: str,
        audience: str = "",
        on_progress: Optional[ProgressCallback] = None
    ) -> GenerationOutcome:
        """Convenience wrapper building the DeckRequest from raw strings."""
        request = DeckRequest(product_name=product_name, audience=audience)
        return await self.generate(request, on_progress=on_progress)

    async def generate(
        self,
        request: DeckRequest,
        on_progress: Optional[ProgressCallback] = None
    ) -> GenerationOutcome:
        """
        Generate (or fetch from cache) the deck for a request.

        Args:
            request: Normalized deck request
            on_progress: Optional callable receiving (completed, total) after
                every slide finishes, successfully or not

        Returns:
            GenerationOutcome with slides in ascending position order

        Raises:
            EmptyDeckError: If no slide could be rendered
        """
        run = DispatchRun(request, on_progress)
        key = request.cache_key

        self._transition(run, GenerationState.CACHE_CHECK)
        cached = self.cache.get(key)
        if cached is not None:
            self._transition(run, GenerationState.CACHE_HIT)
            logger.info(f"Serving cached deck for '{request.product_name}' ({len(cached.deck)} slides)")
            self._transition(run, GenerationState.DONE)
            return cached

        start_time = time.time()
        self._transition(run, GenerationState.PLANNING)
        plan = await self.planner.plan(request.product_name, request.audience)
        run.load(plan)

        await self._dispatch(run)

        self._transition(run, GenerationState.AGGREGATING)
        outcome = self._aggregate(run)

        if outcome.is_complete:
            self.cache.put(key, outcome)

        self._transition(run, GenerationState.DONE)
        elapsed = time.time() - start_time
        logger.info(
            f"Deck for '{request.product_name}' complete in {elapsed:.1f}s: "
            f"{len(outcome.deck)}/{outcome.total_requested} slides, "
            f"{outcome.partial_failure_count} failed, fallback={plan.used_fallback}"
        )
        return outcome

    async def _dispatch(self, run: DispatchRun) -> None:
        self._transition(run, GenerationState.DISPATCHING)
        width = min(self.pool_width, run.total)
        workers = [asyncio.create_task(self._worker(run, worker_id)) for worker_id in range(width)]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            # A raising progress callback (or cancellation) stops the whole pool
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

    async def _worker(self, run: DispatchRun, worker_id: int) -> None:
        while True:
            index = run.claim_next()
            if index is None:
                return

            prompt = run.plan.prompts[index]
            try:
                run.slots[index] = await self.renderer.render(prompt)
            except RenderError as e:
                logger.warning(f"Worker {worker_id}: slide {prompt.position} failed: {e.message}")
                run.failures.append(e)

            await run.mark_completed()

    def _aggregate(self, run: DispatchRun) -> GenerationOutcome:
        deck = tuple(slot for slot in run.slots if slot is not None)

        if not deck:
            self._transition(run, GenerationState.EMPTY_FAILURE)
            logger.error(f"No slides were generated for '{run.request.product_name}' "
                         f"({len(run.failures)} failures)")
            raise EmptyDeckError(run.failures)

        issues = []
        if run.plan.used_fallback:
            issues.append(GenerationIssue(
                kind=IssueKind.FALLBACK_TOPICS,
                message=run.plan.fallback_reason or "Fallback topics were used"
            ))
        for failure in run.failures:
            issues.append(GenerationIssue(
                kind=IssueKind.SLIDE_FAILED,
                message=failure.message,
                position=failure.position
            ))

        return GenerationOutcome(
            deck=deck,
            total_requested=run.total,
            fallback_notice=run.plan.fallback_reason if run.plan.used_fallback else None,
            partial_failure_count=len(run.failures),
            first_failure_message=run.failures[0].message if run.failures else None,
            issues=tuple(issues)
        )

#!/usr/bin/env python3
"""
Generation Orchestrator Tests

Exercises the planning -> dispatch -> aggregation pipeline against the
in-process FakeUpstream: ordering under out-of-order completion, single
claims per index, partial failures, the empty-deck failure and the session
cache fast path.

Usage:
    pytest test_orchestrator.py -v
"""

import asyncio
import random

import pytest

from conftest import FIGMA_TOPICS, FakeUpstream
from src.core.exceptions import EmptyDeckError, RenderError
from src.core.orchestrator import DispatchRun, GenerationOrchestrator
from src.core.session_cache import SessionCache
from src.core.slide_renderer import SlideRenderer
from src.core.topic_planner import FALLBACK_REASON_UPSTREAM, TopicPlanner
from src.models.deck import DeckRequest, IssueKind, PlanResult, SlidePrompt


def build_orchestrator(upstream, pool_width=2, topic_count=5, cache=None):
    return GenerationOrchestrator(
        TopicPlanner(upstream, topic_count=topic_count),
        SlideRenderer(upstream),
        cache if cache is not None else SessionCache(),
        pool_width=pool_width
    )


def topics(count):
    return ", ".join(f"Topic {i}" for i in range(1, count + 1))


def test_renderer_returns_artifact():
    upstream = FakeUpstream(image=b"jpeg")
    slide = asyncio.run(SlideRenderer(upstream).render(SlidePrompt(position=2, text="Presentation slide about x")))

    assert slide.position == 2
    assert slide.image_bytes == b"jpeg"
    assert slide.alt_text == "Presentation slide about x"
    assert slide.mime_type == "image/jpeg"


def test_renderer_raises_on_error_and_empty_payload():
    renderer = SlideRenderer(FakeUpstream(fail_on=["boom"], empty_on=["blank"]))

    with pytest.raises(RenderError) as exc_info:
        asyncio.run(renderer.render(SlidePrompt(position=1, text="boom")))
    assert exc_info.value.position == 1
    assert str(exc_info.value) == "Slide 1 failed: RuntimeError: quota exceeded"

    with pytest.raises(RenderError) as exc_info:
        asyncio.run(renderer.render(SlidePrompt(position=4, text="blank")))
    assert exc_info.value.message == "No image data returned"


def test_figma_partial_failure():
    upstream = FakeUpstream(fail_on=['"Design systems"'])
    orchestrator = build_orchestrator(upstream, pool_width=2)

    outcome = asyncio.run(orchestrator.generate_deck("Figma", "Product design teams"))

    assert outcome.positions == (0, 1, 2, 4, 5)
    assert outcome.total_requested == 6
    assert outcome.partial_failure_count == 1
    assert not outcome.is_complete
    assert "RuntimeError: quota exceeded" in outcome.first_failure_message
    assert outcome.fallback_notice is None

    slide_issues = [i for i in outcome.issues if i.kind == IssueKind.SLIDE_FAILED.value]
    assert len(slide_issues) == 1
    assert slide_issues[0].position == 3

    assert upstream.plan_calls == 1
    assert upstream.render_calls == 6
    assert upstream.max_in_flight <= 2


def test_ordering_with_shuffled_completion_times():
    rng = random.Random(7)
    for subject_count in (1, 3, 5, 8):
        for width in range(1, subject_count + 3):
            delays = {f'"Topic {i}"': rng.uniform(0, 0.01) for i in range(1, subject_count + 1)}
            failing = [f'"Topic {i}"' for i in range(1, subject_count + 1) if rng.random() < 0.3]
            upstream = FakeUpstream(topics=topics(subject_count), delays=delays, fail_on=failing)
            orchestrator = build_orchestrator(upstream, pool_width=width, topic_count=subject_count)

            outcome = asyncio.run(orchestrator.generate_deck("Acme", "Ops"))

            failed_positions = {int(key.strip('"').split()[-1]) for key in failing}
            expected = tuple(p for p in range(subject_count + 1) if p not in failed_positions)
            assert outcome.positions == expected
            assert outcome.partial_failure_count == len(failed_positions)
            assert upstream.max_in_flight <= width


def test_slides_land_in_their_own_slot():
    # Cover is slowest, last topic fastest: completion order is reversed
    delays = {"Title slide": 0.03, '"Topic 1"': 0.02, '"Topic 2"': 0.01}
    upstream = FakeUpstream(topics=topics(3), delays=delays)
    orchestrator = build_orchestrator(upstream, pool_width=4, topic_count=3)

    outcome = asyncio.run(orchestrator.generate_deck("Acme"))

    assert outcome.positions == (0, 1, 2, 3)
    assert outcome.deck[0].alt_text.startswith("Title slide")
    for position in (1, 2, 3):
        assert f'"Topic {position}"' in outcome.deck[position].alt_text


def test_failures_keep_surviving_order():
    delays = {'"Topic 4"': 0.01, "Title slide": 0.02}
    upstream = FakeUpstream(topics=topics(5), delays=delays, fail_on=['"Topic 1"'], empty_on=['"Topic 4"'])
    orchestrator = build_orchestrator(upstream, pool_width=3)

    outcome = asyncio.run(orchestrator.generate_deck("Acme"))

    assert outcome.positions == (0, 2, 3, 5)
    assert outcome.partial_failure_count == 2
    failed = sorted(i.position for i in outcome.issues if i.kind == IssueKind.SLIDE_FAILED.value)
    assert failed == [1, 4]


def test_each_index_claimed_exactly_once():
    prompts = tuple(SlidePrompt(position=i, text=f"slide {i}") for i in range(7))
    run = DispatchRun(DeckRequest(product_name="Acme"))
    run.load(PlanResult(prompts=prompts))

    claims = []
    while True:
        index = run.claim_next()
        if index is None:
            break
        claims.append(index)

    assert claims == list(range(7))
    assert run.claim_next() is None


def test_no_double_claim_across_workers():
    for width in (1, 2, 3, 8):
        upstream = FakeUpstream(topics=topics(6), delays={'"Topic 2"': 0.01, '"Topic 5"': 0.005})
        orchestrator = build_orchestrator(upstream, pool_width=width, topic_count=6)

        captured = {}
        original = orchestrator._dispatch

        async def dispatch(run):
            await original(run)
            captured["claimed"] = list(run.claimed)

        orchestrator._dispatch = dispatch
        asyncio.run(orchestrator.generate_deck("Acme"))

        assert sorted(captured["claimed"]) == list(range(7))
        assert len(upstream.render_prompts) == len(set(upstream.render_prompts)) == 7


def test_pool_wider_than_prompts():
    upstream = FakeUpstream(topics="Only topic")
    orchestrator = build_orchestrator(upstream, pool_width=10)

    outcome = asyncio.run(orchestrator.generate_deck("Acme"))

    assert outcome.positions == (0, 1)
    assert upstream.max_in_flight <= 2


def test_progress_reported_after_every_slide():
    upstream = FakeUpstream(fail_on=['"Prototyping"'])
    orchestrator = build_orchestrator(upstream)
    reports = []

    async def on_progress(completed, total):
        reports.append((completed, total))

    asyncio.run(orchestrator.generate_deck("Figma", on_progress=on_progress))

    assert reports == [(n, 6) for n in range(1, 7)]


def test_sync_progress_callback():
    reports = []
    orchestrator = build_orchestrator(FakeUpstream())

    asyncio.run(orchestrator.generate_deck("Figma", on_progress=lambda done, total: reports.append(done)))

    assert reports == [1, 2, 3, 4, 5, 6]


def test_raising_progress_callback_stops_every_worker():
    # Cover is still rendering when the first topic slide reports progress
    upstream = FakeUpstream(delays={"Title slide": 0.05})
    cache = SessionCache()
    orchestrator = build_orchestrator(upstream, cache=cache)

    def on_progress(completed, total):
        raise RuntimeError("progress sink closed")

    async def generate_and_collect_leftovers():
        with pytest.raises(RuntimeError, match="progress sink closed"):
            await orchestrator.generate_deck("Figma", on_progress=on_progress)
        return [task for task in asyncio.all_tasks() if task is not asyncio.current_task()]

    leftovers = asyncio.run(generate_and_collect_leftovers())

    assert leftovers == []
    assert upstream.in_flight == 0
    assert upstream.render_calls == 2
    assert len(cache) == 0


def test_cache_fast_path():
    upstream = FakeUpstream()
    orchestrator = build_orchestrator(upstream)

    first = asyncio.run(orchestrator.generate_deck("Figma", "Product design teams"))
    second = asyncio.run(orchestrator.generate_deck("Figma", "Product design teams"))

    assert second == first
    assert upstream.plan_calls == 1
    assert upstream.render_calls == 6


def test_cache_hit_reports_no_progress():
    orchestrator = build_orchestrator(FakeUpstream())
    asyncio.run(orchestrator.generate_deck("Figma"))

    reports = []
    asyncio.run(orchestrator.generate_deck("Figma", on_progress=lambda *args: reports.append(args)))

    assert reports == []


def test_cache_key_normalizes_whitespace_and_case():
    upstream = FakeUpstream()
    cache = SessionCache()
    orchestrator = build_orchestrator(upstream, cache=cache)

    first = asyncio.run(orchestrator.generate_deck("  Figma ", "Design Teams"))
    second = asyncio.run(orchestrator.generate_deck("figma", "design teams"))

    assert second == first
    assert upstream.plan_calls == 1
    assert len(cache) == 1
    assert ("figma", "design teams") in cache


def test_different_audience_is_a_different_deck():
    upstream = FakeUpstream()
    orchestrator = build_orchestrator(upstream)

    asyncio.run(orchestrator.generate_deck("Figma", "Designers"))
    asyncio.run(orchestrator.generate_deck("Figma", "Engineers"))

    assert upstream.plan_calls == 2


def test_cache_bypass_on_partial_failure():
    upstream = FakeUpstream(fail_on=['"Versioning"'])
    cache = SessionCache()
    orchestrator = build_orchestrator(upstream, cache=cache)

    first = asyncio.run(orchestrator.generate_deck("Figma"))
    assert first.partial_failure_count == 1
    assert len(cache) == 0

    upstream.fail_on = []
    second = asyncio.run(orchestrator.generate_deck("Figma"))

    assert upstream.plan_calls == 2
    assert upstream.render_calls == 12
    assert second.is_complete
    assert len(cache) == 1


def test_empty_deck_raises_and_is_not_cached():
    upstream = FakeUpstream(fail_on=["Presentation slide", "Title slide"])
    cache = SessionCache()
    orchestrator = build_orchestrator(upstream, cache=cache)

    with pytest.raises(EmptyDeckError) as exc_info:
        asyncio.run(orchestrator.generate_deck("Figma"))

    assert str(exc_info.value) == "No slides were generated"
    assert len(exc_info.value.failures) == 6
    assert len(cache) == 0


def test_empty_payloads_count_as_failures():
    upstream = FakeUpstream(empty_on=["slide"])
    orchestrator = build_orchestrator(upstream)

    with pytest.raises(EmptyDeckError):
        asyncio.run(orchestrator.generate_deck("Figma"))


def test_fallback_topics_reported_as_notice():
    upstream = FakeUpstream(topic_error=RuntimeError("text model down"))
    orchestrator = build_orchestrator(upstream)

    outcome = asyncio.run(orchestrator.generate_deck("Figma"))

    assert outcome.is_complete
    assert outcome.fallback_notice == FALLBACK_REASON_UPSTREAM
    assert outcome.issues[0].kind == IssueKind.FALLBACK_TOPICS.value
    assert len(outcome.deck) == 6


def test_concurrent_requests_are_isolated():
    upstream = FakeUpstream(topics=FIGMA_TOPICS, delays={"Figma": 0.005})
    orchestrator = build_orchestrator(upstream)

    async def both():
        return await asyncio.gather(
            orchestrator.generate_deck("Figma"),
            orchestrator.generate_deck("Acme"),
        )

    figma, acme = asyncio.run(both())

    assert figma.positions == acme.positions == (0, 1, 2, 3, 4, 5)
    assert all("Figma" in slide.alt_text for slide in figma.deck)
    assert all("Acme" in slide.alt_text for slide in acme.deck)


def test_blank_product_is_rejected():
    orchestrator = build_orchestrator(FakeUpstream())
    with pytest.raises(ValueError):
        asyncio.run(orchestrator.generate_deck("   "))


def test_pool_width_must_be_positive():
    upstream = FakeUpstream()
    with pytest.raises(ValueError):
        GenerationOrchestrator(TopicPlanner(upstream), SlideRenderer(upstream), pool_width=0)


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-v"]))

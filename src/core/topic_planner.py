"""
Topic Planner for the Slide Deck Generator

Derives an ordered list of slide subjects for a (product, audience) pair from
one upstream text request and renders the image prompts for the deck:
one cover prompt followed by one prompt per subject.

Malformed or missing upstream output never escapes this module; it is
replaced by a curated fallback outline and reported on the PlanResult.
"""

import re
from typing import List, Optional, Sequence

from src.core.exceptions import PlanningError
from src.models.deck import PlanResult, SlidePrompt
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_TOPIC_COUNT = 5

# House style appended to every image prompt
PROMPT_STYLE = (
    "professional business presentation slide, infographic style, clean vector art, "
    "vibrant corporate color palette (blues, teals, grays), professional icons, "
    "minimalist design, on a clean white background. "
    "Contains space for a title and short descriptive text."
)

FALLBACK_SUBJECTS = (
    "Product overview",
    "Key features",
    "Customer benefits",
    "Primary use case",
    "Getting started",
)

FALLBACK_REASON_UNPARSEABLE = (
    "We couldn't infer specific topics for \"{product}\", "
    "so a standard product outline was used."
)
FALLBACK_REASON_UPSTREAM = (
    "The topic planning service was unavailable, "
    "so a standard product outline was used."
)

_SEPARATORS = re.compile(r"[,\n]+")
_LIST_MARKER = re.compile(r"^(?:[-*•]+|\d+[.)])\s*")
_QUOTES = "\"'`“”‘’"


def audience_clause(audience: str) -> str:
    """Sentence naming the audience, or an empty string when there is none."""
    audience = (audience or "").strip()
    return f"The target audience is {audience}." if audience else ""


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def parse_subjects(raw_text: str) -> List[str]:
    """
    Split a topic list returned by the text model into clean subjects.

    Splits on commas and newlines, trims, drops list markers and wrapping
    quotes, discards empties and de-duplicates case-insensitively in
    first-seen order.
    """
    subjects: List[str] = []
    seen = set()
    for chunk in _SEPARATORS.split(raw_text or ""):
        subject = _LIST_MARKER.sub("", chunk.strip())
        subject = subject.strip().strip(_QUOTES).strip()
        if not subject:
            continue
        key = subject.lower()
        if key in seen:
            continue
        seen.add(key)
        subjects.append(subject)
    return subjects


class TopicPlanner:
    """
    Plans the slide topics of a deck.

    Usage:
        planner = TopicPlanner(upstream=gemini_client)
        plan = await planner.plan("Figma", "Product design teams")
    """

    def __init__(self, upstream, topic_count: int = DEFAULT_TOPIC_COUNT):
        """
        Args:
            upstream: Object exposing ``async plan_topics(instruction) -> str``
            topic_count: Maximum number of topic slides (cover excluded)
        """
        if topic_count < 1:
            raise ValueError("topic_count must be at least 1")
        self.upstream = upstream
        self.topic_count = topic_count

    def build_instruction(self, product_name: str, audience: str) -> str:
        return _join(
            f"List {self.topic_count} key topics for an introductory presentation about \"{product_name}\".",
            "The topics should be distinct and cover its purpose, key features, benefits, and primary use case.",
            audience_clause(audience),
            "Just the list, comma separated.",
        )

    def cover_prompt(self, product_name: str, audience: str) -> str:
        return _join(
            f"Title slide for a presentation about \"{product_name}\".",
            "It should feature a clean, abstract logo representing technology and data,",
            f"and the title \"{product_name}: An Overview\".",
            audience_clause(audience),
            PROMPT_STYLE,
        )

    def slide_prompt(self, subject: str, product_name: str, audience: str) -> str:
        return _join(
            f"Presentation slide about \"{subject}\" for the product \"{product_name}\".",
            audience_clause(audience),
            PROMPT_STYLE,
        )

    async def _infer_subjects(self, product_name: str, audience: str) -> List[str]:
        instruction = self.build_instruction(product_name, audience)
        try:
            raw_text = await self.upstream.plan_topics(instruction)
        except Exception as e:
            raise PlanningError(f"Topic request failed: {e}", upstream_failed=True) from e

        subjects = parse_subjects(raw_text)
        if not subjects:
            raise PlanningError(f"No usable topics in response: {raw_text!r:.120}")
        return subjects

    def build_plan(
        self,
        product_name: str,
        audience: str,
        subjects: Sequence[str],
        used_fallback: bool = False,
        fallback_reason: Optional[str] = None
    ) -> PlanResult:
        """Render the cover prompt and one prompt per subject."""
        subjects = list(subjects)[:self.topic_count]
        prompts = [SlidePrompt(position=0, text=self.cover_prompt(product_name, audience))]
        for position, subject in enumerate(subjects, start=1):
            prompts.append(SlidePrompt(
                position=position,
                text=self.slide_prompt(subject, product_name, audience),
                subject=subject
            ))
        return PlanResult(
            prompts=tuple(prompts),
            used_fallback=used_fallback,
            fallback_reason=fallback_reason
        )

    async def plan(self, product_name: str, audience: str = "") -> PlanResult:
        """
        Plan the deck for a product and audience.

        Never raises for upstream problems: an exception or unusable text from
        the text model produces a fallback plan with ``used_fallback=True``.

        Returns:
            PlanResult with len(subjects) + 1 prompts, cover first
        """
        product_name = product_name.strip()
        audience = (audience or "").strip()

        try:
            subjects = await self._infer_subjects(product_name, audience)
        except PlanningError as e:
            if e.upstream_failed:
                reason = FALLBACK_REASON_UPSTREAM
            else:
                reason = FALLBACK_REASON_UNPARSEABLE.format(product=product_name)
            logger.warning(f"Topic planning fell back to curated subjects for '{product_name}': {e.message}")
            return self.build_plan(
                product_name, audience, FALLBACK_SUBJECTS,
                used_fallback=True, fallback_reason=reason
            )

        logger.info(f"Planned {min(len(subjects), self.topic_count)} topics for '{product_name}': {subjects[:self.topic_count]}")
        return self.build_plan(product_name, audience, subjects)

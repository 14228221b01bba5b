"""Ordered extraction attempts with an explicit acceptance predicate per attempt.

Strategy selection is data: a plan is a tuple of :class:`ExtractionAttempt`
values tried in order until one is accepted. A strategy that raises and a
strategy that returns unusable text are both recorded as rejected outcomes, so
the policy can be tested with stub strategies independent of any parser.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Sequence

from .errors import ExtractionCancelled
from .limits import MIN_TEXT_CHARS
from .models import StrategyUsed

logger = logging.getLogger(__name__)

Strategy = Callable[[bytes, threading.Event], str]
Acceptance = Callable[[str], bool]


def has_min_text(text: str, minimum: int = MIN_TEXT_CHARS) -> bool:
    return len((text or "").strip()) >= minimum


def accept_any(text: str) -> bool:
    _ = text
    return True


def raise_if_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise ExtractionCancelled("extraction abandoned")


@dataclass(frozen=True)
class ExtractionAttempt:
    strategy: StrategyUsed
    run: Strategy
    accept: Acceptance = has_min_text
    stage: str = ""
    progress: int = 0


@dataclass(frozen=True)
class AttemptOutcome:
    strategy: StrategyUsed
    text: str = ""
    error: str | None = None
    accepted: bool = False

    @property
    def raised(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class PlanResult:
    outcomes: tuple[AttemptOutcome, ...]

    @property
    def accepted(self) -> AttemptOutcome | None:
        for outcome in self.outcomes:
            if outcome.accepted:
                return outcome
        return None

    @property
    def last(self) -> AttemptOutcome | None:
        return self.outcomes[-1] if self.outcomes else None


def run_plan(
    attempts: Sequence[ExtractionAttempt],
    content: bytes,
    *,
    cancel: threading.Event | None = None,
    on_attempt: Callable[[ExtractionAttempt], None] | None = None,
) -> PlanResult:
    outcomes: list[AttemptOutcome] = []
    for attempt in attempts:
        raise_if_cancelled(cancel)
        if on_attempt is not None:
            on_attempt(attempt)
        try:
            text = attempt.run(content, cancel or threading.Event())
        except ExtractionCancelled:
            raise
        except Exception as exc:  # noqa: BLE001 - a failing strategy hands over to the next one
            logger.warning("extraction_attempt_failed strategy=%s error=%s", attempt.strategy, exc)
            outcomes.append(AttemptOutcome(strategy=attempt.strategy, error=str(exc) or type(exc).__name__))
            continue

        accepted = bool(attempt.accept(text))
        outcomes.append(AttemptOutcome(strategy=attempt.strategy, text=text, accepted=accepted))
        if accepted:
            logger.info("extraction_attempt_accepted strategy=%s chars=%s", attempt.strategy, len(text))
            break
        logger.info("extraction_attempt_rejected strategy=%s chars=%s", attempt.strategy, len(text))
    return PlanResult(outcomes=tuple(outcomes))

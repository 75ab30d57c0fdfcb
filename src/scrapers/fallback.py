# src/scrapers/fallback.py

"""Run an ordered list of strategies until one yields usable data."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from src.models.errors import (
    BarcodeMismatch,
    UpstreamEmpty,
    UpstreamError,
)

T = TypeVar("T")

Strategy = tuple[str, Callable[[], T | None]]


@dataclass
class FallbackOutcome(Generic[T]):
    """What a strategy chain produced and what went wrong on the way."""

    value: T | None = None
    strategy: str | None = None
    attempts: list[str] = field(
        default_factory=lambda: list[str]()
    )
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )
    hard_errors: int = 0

    @property
    def succeeded(self) -> bool:
        return self.strategy is not None

    @property
    def hard_failed(self) -> bool:
        """Every attempted strategy errored (as opposed to came back empty)."""
        return (
            not self.succeeded
            and bool(self.attempts)
            and self.hard_errors == len(self.attempts)
        )


def first_success(
    strategies: Sequence[Strategy[T]],
    logger: logging.Logger,
    label: str,
) -> FallbackOutcome[T]:
    """Return the first non-empty strategy result.

    ``UpstreamEmpty`` and ``BarcodeMismatch`` count as "no data" and
    other ``UpstreamError`` subclasses as hard errors; either way the
    next strategy runs.  Anything else propagates.
    """
    outcome: FallbackOutcome[T] = FallbackOutcome()
    for name, run in strategies:
        outcome.attempts.append(name)
        try:
            value = run()
        except (UpstreamEmpty, BarcodeMismatch) as exc:
            outcome.errors.append(str(exc))
            logger.info("%s: %s gave no usable data: %s", label, name, exc)
            continue
        except UpstreamError as exc:
            outcome.hard_errors += 1
            outcome.errors.append(str(exc))
            logger.warning("%s: %s failed: %s", label, name, exc)
            continue

        if value:
            outcome.value = value
            outcome.strategy = name
            logger.info("%s: %s succeeded", label, name)
            return outcome
        logger.info("%s: %s returned nothing", label, name)

    logger.info(
        "%s: all %d strategies exhausted", label, len(outcome.attempts)
    )
    return outcome

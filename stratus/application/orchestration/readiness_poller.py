"""
Readiness Poller

Architectural Intent:
- Bounded wait for a freshly created VM to accept SSH (or for nginx to be
  active) before configuration starts
- The probe is any async callable returning bool; exceptions raised by the
  probe count as a failed attempt
- Sleep is injectable so tests run without real delays

Bounds:
- At most max_attempts probes, interval seconds apart
- No sleep after the last failed attempt, so the total wait never exceeds
  max_attempts * interval
- Timing out is an outcome, not an error; the caller decides severity
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class ReadinessOutcome(Enum):
    READY = "ready"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ReadinessResult:
    outcome: ReadinessOutcome
    attempts: int

    @property
    def ready(self) -> bool:
        return self.outcome == ReadinessOutcome.READY


async def wait_until_ready(
    target: str,
    probe: Callable[[], Awaitable[bool]],
    interval: float = 5,
    max_attempts: int = 60,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ReadinessResult:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if interval < 0:
        raise ValueError("interval cannot be negative")

    for attempt in range(1, max_attempts + 1):
        try:
            ok = await probe()
        except Exception as e:
            logger.debug("Probe of %s raised on attempt %d: %s", target, attempt, e)
            ok = False

        if ok:
            logger.info("%s ready after %d attempt(s)", target, attempt)
            return ReadinessResult(ReadinessOutcome.READY, attempt)

        logger.info("Waiting for %s... (attempt %d/%d)", target, attempt, max_attempts)
        if attempt < max_attempts:
            await sleep(interval)

    logger.warning("%s did not become ready after %d attempts", target, max_attempts)
    return ReadinessResult(ReadinessOutcome.TIMEOUT, max_attempts)

"""
Polling for remote jobs (file conversion, grammar checks).

A job is submitted elsewhere; PollingJob then calls a status check repeatedly:
- first error wins: an error in a poll result fails the job (JobFailed)
- first success wins: a done poll result returns its value
- between polls it sleeps `interval`, growing by `backoff` up to `max_interval`
- `timeout` (seconds) and `max_attempts` bound the wait (JobTimeout)
- a set `cancel_event` stops before the next poll (JobCancelled)

States: submitted -> polling -> done | failed | timed_out | cancelled

PollSettings() defaults to the plain one-second poll with no bound.
"""
from __future__ import annotations

import json
import logging
import math
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

from .errors import JobCancelled, JobFailed, JobTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JobState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass
class PollSettings:
    interval: float = 1.0
    backoff: float = 1.0
    max_interval: float = 30.0
    timeout: Optional[float] = None
    max_attempts: Optional[int] = None

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError("interval must be >= 0")
        if self.backoff < 1.0:
            raise ValueError("backoff must be >= 1.0")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.timeout is not None and self.timeout < 0:
            raise ValueError("timeout must be >= 0")

    def delay(self, attempt: int) -> float:
        """Sleep before poll number `attempt + 1` (attempt counts from 1)."""
        cap = max(self.max_interval, self.interval)
        if self.interval <= 0 or self.backoff == 1.0:
            return min(self.interval, cap)
        # past this many steps the cap applies; keeps the power finite
        if attempt - 1 >= math.log(cap / self.interval, self.backoff):
            return cap
        return min(self.interval * self.backoff ** (attempt - 1), cap)

    @classmethod
    def load(cls, params_file: Path) -> "PollSettings":
        raw = json.loads(Path(params_file).read_text(encoding="utf-8"))
        raw = raw.get("polling", raw)
        timeout = raw.get("timeout")
        max_attempts = raw.get("max_attempts")
        return cls(
            interval=float(raw.get("interval", cls.interval)),
            backoff=float(raw.get("backoff", cls.backoff)),
            max_interval=float(raw.get("max_interval", cls.max_interval)),
            timeout=float(timeout) if timeout is not None else None,
            max_attempts=int(max_attempts) if max_attempts is not None else None,
        )


@dataclass
class PollResult(Generic[T]):
    done: bool = False
    value: Optional[T] = None
    error: Any = None


class PollingJob(Generic[T]):
    def __init__(
        self,
        check: Callable[[], PollResult[T]],
        *,
        name: str = "job",
        settings: Optional[PollSettings] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.check = check
        self.name = name
        self.settings = settings or PollSettings()
        self.cancel_event = cancel_event
        self._sleep = sleep
        self._clock = clock
        self.state = JobState.SUBMITTED
        self.attempts = 0
        self.result: Optional[T] = None

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def run(self) -> T:
        s = self.settings
        start = self._clock()
        self.state = JobState.POLLING
        while True:
            if self._cancelled():
                self.state = JobState.CANCELLED
                raise JobCancelled(self.name)

            self.attempts += 1
            try:
                res = self.check()
            except Exception:
                self.state = JobState.FAILED
                raise
            if res.error:
                self.state = JobState.FAILED
                logger.warning("[%s] Job failed after %d polls: %s", self.name, self.attempts, res.error)
                raise JobFailed(self.name, res.error)
            if res.done:
                self.state = JobState.DONE
                self.result = res.value
                logger.info("[%s] Job finished after %d polls", self.name, self.attempts)
                return res.value  # type: ignore[return-value]

            elapsed = self._clock() - start
            delay = s.delay(self.attempts)
            out_of_attempts = s.max_attempts is not None and self.attempts >= s.max_attempts
            out_of_time = s.timeout is not None and elapsed + delay > s.timeout
            if out_of_attempts or out_of_time:
                self.state = JobState.TIMED_OUT
                raise JobTimeout(self.name, self.attempts, elapsed)

            logger.debug("[%s] Not finished (poll %d); next poll in %.1fs", self.name, self.attempts, delay)
            if self.cancel_event is not None:
                # wake up early if cancelled while waiting
                if self.cancel_event.wait(delay):
                    self.state = JobState.CANCELLED
                    raise JobCancelled(self.name)
            else:
                self._sleep(delay)

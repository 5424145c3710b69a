"""Rate-limit aware retries and batched execution for external calls."""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..schemas import BatchReport

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class RateLimitError(RuntimeError):
    """The remote service rejected a call because of a quota (HTTP 429)."""


def is_rate_limit_error(exc: BaseException) -> bool:
    if isinstance(exc, RateLimitError):
        return True
    for holder in (exc, getattr(exc, "response", None)):
        status = getattr(holder, "status_code", None) or getattr(holder, "status", None)
        if status == 429:
            return True
    return False


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    delay = state.next_action.sleep if state.next_action else 0.0
    logger.warning(f"Rate limited (attempt {state.attempt_number}), retrying in {delay:.1f}s: {exc}")


@dataclasses.dataclass
class RetryPolicy:
    """Exponential backoff on rate-limit errors; other errors propagate at once.

    ``sleep`` is injectable so tests can run without waiting.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 32.0
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def from_config(cls, cfg: Dict, sleep: Optional[Callable[[float], None]] = None) -> "RetryPolicy":
        retry_cfg = cfg.get("retry", {})
        policy = cls(
            max_retries=int(retry_cfg.get("max_retries", 3)),
            base_delay=float(retry_cfg.get("base_delay", 1.0)),
            max_delay=float(retry_cfg.get("max_delay", 32.0)),
        )
        if sleep is not None:
            policy.sleep = sleep
        return policy

    def retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=retry_if_exception(is_rate_limit_error),
            sleep=self.sleep,
            before_sleep=_log_retry,
            reraise=True,
        )

    def call(self, fn: Callable[..., R], *args, **kwargs) -> R:
        return self.retrying()(fn, *args, **kwargs)


def run_in_batches(
    items: Sequence[T],
    batch_size: int,
    fn: Callable[[List[T]], object],
    policy: Optional[RetryPolicy] = None,
    delay: float = 0.0,
    label: str = "batch",
) -> BatchReport:
    """Run ``fn`` over fixed-size batches.

    Each batch runs under ``policy``. A batch that still fails (including a
    rate-limited batch that exhausted its retries) is logged and recorded in
    the report, and the remaining batches still run.
    """
    policy = policy or RetryPolicy()
    report = BatchReport(label=label, total=len(items))
    total_batches = (len(items) + batch_size - 1) // batch_size

    for start in range(0, len(items), batch_size):
        batch = list(items[start:start + batch_size])
        batch_num = start // batch_size + 1
        try:
            policy.call(fn, batch)
            report.succeeded += len(batch)
            logger.debug(f"{label}: batch {batch_num}/{total_batches} done")
        except Exception as e:
            kind = "rate limit retries exhausted" if is_rate_limit_error(e) else "failed"
            logger.error(
                f"{label}: batch {batch_num}/{total_batches} "
                f"(items {start}-{start + len(batch)}) {kind}: {e}"
            )
            report.failed_batches.append(batch_num)
            report.errors.append(f"batch {batch_num}: {e}")

        if delay > 0 and start + batch_size < len(items):
            policy.sleep(delay)

    return report

import pytest

from docs_retrieval.indexing.retry import RateLimitError, RetryPolicy, is_rate_limit_error, run_in_batches


class HttpError(Exception):
    def __init__(self, status_code):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class Flaky:
    def __init__(self, failures, exc):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    def __call__(self, batch):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return batch


def test_is_rate_limit_error():
    assert is_rate_limit_error(RateLimitError("quota"))
    assert is_rate_limit_error(HttpError(429))
    assert not is_rate_limit_error(HttpError(500))
    assert not is_rate_limit_error(ValueError("bad"))


def test_rate_limit_is_retried_with_doubling_backoff(no_sleep_policy):
    fn = Flaky(2, RateLimitError("slow down"))

    assert no_sleep_policy.call(fn, [1]) == [1]
    assert fn.calls == 3
    assert no_sleep_policy.sleeps == [1.0, 2.0]


def test_other_errors_are_not_retried(no_sleep_policy):
    fn = Flaky(1, HttpError(500))
    with pytest.raises(HttpError):
        no_sleep_policy.call(fn, [1])
    assert fn.calls == 1


def test_retries_are_bounded(no_sleep_policy):
    fn = Flaky(10, RateLimitError("slow down"))
    with pytest.raises(RateLimitError):
        no_sleep_policy.call(fn, [1])
    assert fn.calls == 4


def test_backoff_is_capped():
    sleeps = []
    policy = RetryPolicy(max_retries=5, base_delay=1.0, max_delay=4.0, sleep=sleeps.append)
    with pytest.raises(RateLimitError):
        policy.call(Flaky(10, RateLimitError("x")), [])
    assert sleeps == [1.0, 2.0, 4.0, 4.0, 4.0]


def test_run_in_batches_reports_failed_batches(no_sleep_policy):
    seen = []

    def fn(batch):
        if 3 in batch:
            raise RuntimeError("boom")
        seen.append(batch)

    report = run_in_batches([1, 2, 3, 4, 5], 2, fn, policy=no_sleep_policy, delay=0.5, label="upsert")

    assert seen == [[1, 2], [5]]
    assert report.total == 5
    assert report.succeeded == 3
    assert report.failed_batches == [2]
    assert "boom" in report.errors[0]
    assert not report.ok
    # inter-batch delay between the three batches
    assert no_sleep_policy.sleeps == [0.5, 0.5]


def test_exhausted_rate_limit_batch_is_reported(no_sleep_policy):
    report = run_in_batches([1], 10, Flaky(10, RateLimitError("quota")), policy=no_sleep_policy)
    assert report.failed_batches == [1]
    assert report.succeeded == 0


def test_policy_from_config():
    policy = RetryPolicy.from_config({"retry": {"max_retries": 1, "base_delay": 0.1, "max_delay": 2}})
    assert policy.max_retries == 1
    assert policy.base_delay == 0.1
    assert policy.max_delay == 2.0

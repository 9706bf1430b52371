"""Tests for RetryBudget."""

from __future__ import annotations

from webex_transport.config import RetryPolicy
from webex_transport.retry import RetryBudget


def test_server_delay_is_honored():
    budget = RetryBudget(RetryPolicy(max_attempts=3))
    budget.start_attempt()

    assert budget.next_delay(2.5) == 2.5
    assert budget.waited == 2.5


def test_server_delay_is_never_capped_by_max_delay():
    budget = RetryBudget(RetryPolicy(max_delay=1.0, max_total_wait=100.0))
    budget.start_attempt()

    assert budget.next_delay(10.0) == 10.0


def test_exponential_backoff():
    budget = RetryBudget(RetryPolicy(max_attempts=4, base_delay=0.5, backoff_factor=3.0))

    delays = []
    for _ in range(3):
        budget.start_attempt()
        delays.append(budget.next_delay())

    assert delays == [0.5, 1.5, 4.5]


def test_backoff_capped_by_max_delay():
    policy = RetryPolicy(max_attempts=10, base_delay=1.0, max_delay=3.0, max_total_wait=100.0)
    budget = RetryBudget(policy)

    for _ in range(4):
        budget.start_attempt()
        delay = budget.next_delay()

    assert delay == 3.0


def test_exhausted_after_max_attempts():
    budget = RetryBudget(RetryPolicy(max_attempts=2))

    budget.start_attempt()
    assert budget.next_delay() is not None
    budget.start_attempt()
    assert budget.remaining == 0
    assert budget.next_delay() is None


def test_single_attempt_policy_never_retries():
    budget = RetryBudget(RetryPolicy(max_attempts=1))
    budget.start_attempt()

    assert budget.next_delay(0.1) is None


def test_total_wait_cap():
    budget = RetryBudget(RetryPolicy(max_attempts=5, max_total_wait=5.0))

    budget.start_attempt()
    assert budget.next_delay(3.0) == 3.0
    budget.start_attempt()
    assert budget.next_delay(3.0) is None
    assert budget.waited == 3.0


def test_budgets_are_independent():
    policy = RetryPolicy(max_attempts=2)
    first = RetryBudget(policy)
    second = RetryBudget(policy)

    first.start_attempt()
    first.start_attempt()

    assert first.remaining == 0
    assert second.remaining == 2

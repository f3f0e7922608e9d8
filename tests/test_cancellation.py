"""Tests for agent_task_core.cancellation — set-once token and deadline timer."""

from __future__ import annotations

import asyncio

import pytest

from agent_task_core.cancellation import DEADLINE_REASON, CancellationToken


def test_new_token_is_active() -> None:
    """A fresh token is neither fired nor armed."""
    token = CancellationToken()
    assert not token.cancelled
    assert not token.armed
    assert token.reason is None


def test_cancel_fires_exactly_once() -> None:
    """Only the first cancel() call fires the token and sets the reason."""
    token = CancellationToken()

    assert token.cancel("first") is True
    assert token.cancel("second") is False
    assert token.cancelled
    assert token.reason == "first"


@pytest.mark.asyncio
async def test_armed_deadline_fires() -> None:
    """arm() schedules cancellation with the deadline reason."""
    token = CancellationToken()
    token.arm(0.01)
    assert token.armed

    await asyncio.wait_for(token.wait(), timeout=1.0)

    assert token.cancelled
    assert token.reason == DEADLINE_REASON
    assert not token.armed


@pytest.mark.asyncio
async def test_disarm_prevents_firing() -> None:
    """A disarmed timer never fires."""
    token = CancellationToken()
    token.arm(0.01)
    token.disarm()

    await asyncio.sleep(0.05)

    assert not token.cancelled
    assert not token.armed


@pytest.mark.asyncio
async def test_manual_cancel_disarms_timer() -> None:
    """Cancelling by hand clears the pending deadline."""
    token = CancellationToken()
    token.arm(10)

    token.cancel("caller")

    assert not token.armed
    assert token.reason == "caller"


@pytest.mark.asyncio
async def test_arm_after_cancel_is_noop() -> None:
    """A fired token cannot be re-armed."""
    token = CancellationToken()
    token.cancel()
    token.arm(0.01)

    assert not token.armed


@pytest.mark.asyncio
async def test_rearm_replaces_timer() -> None:
    """Re-arming keeps only the latest deadline."""
    token = CancellationToken()
    token.arm(0.01)
    token.arm(10)

    await asyncio.sleep(0.05)

    assert not token.cancelled
    token.disarm()


@pytest.mark.asyncio
async def test_wait_unblocks_all_waiters() -> None:
    """Every waiter wakes when the token fires."""
    token = CancellationToken()
    waiters = [asyncio.create_task(token.wait()) for _ in range(3)]

    token.cancel()

    await asyncio.wait_for(asyncio.gather(*waiters), timeout=1.0)

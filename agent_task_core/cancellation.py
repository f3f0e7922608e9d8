"""Set-once cancellation token with an optional deadline timer.

One token belongs to one invocation. The executor arms the deadline when
streaming starts and disarms it on natural completion; the agent session
awaits the same token to know when to stop producing events.
"""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)

DEADLINE_REASON = "deadline"


class CancellationToken:
    """Cooperative cancellation signal, settable exactly once.

    The underlying ``asyncio.Event`` binds to the running loop lazily, so a
    token can be created outside the loop (e.g. by the request builder).
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None
        self._reason: str | None = None

    def __repr__(self) -> str:
        state = f"cancelled reason={self._reason!r}" if self.cancelled else "active"
        return f"<CancellationToken {state} armed={self.armed}>"

    @property
    def cancelled(self) -> bool:
        """Whether the token has fired."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Reason passed to the first ``cancel()`` call, if any."""
        return self._reason

    @property
    def armed(self) -> bool:
        """Whether a deadline timer is pending."""
        return self._timer is not None

    def cancel(self, reason: str = "cancelled") -> bool:
        """Fire the token.

        Args:
            reason: Short label recorded for diagnostics.

        Returns:
            True if this call fired the token, False if it had already fired.
        """
        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        self.disarm()
        logger.debug("Cancellation token fired: %s", reason)
        return True

    def arm(self, seconds: float) -> None:
        """Schedule ``cancel(DEADLINE_REASON)`` after ``seconds``.

        Must be called from within a running event loop. Re-arming replaces
        any pending timer; arming a fired token is a no-op.
        """
        if self.cancelled:
            return
        self.disarm()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, self.cancel, DEADLINE_REASON)

    def disarm(self) -> None:
        """Cancel the pending deadline timer, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait(self) -> None:
        """Suspend until the token fires."""
        await self._event.wait()

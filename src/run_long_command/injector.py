import asyncio
import logging
from collections.abc import Awaitable, Callable

from run_long_command.config import NotifierConfig
from run_long_command.idle import IdleDetector
from run_long_command.tmux import TmuxInterface, escape_key

logger = logging.getLogger(__name__)


class SessionInjector:
    """Types a notice into the agent's pane as if a user had entered it.

    Only one notice is typed at a time. Concurrent callers queue on a lock
    (first come, first served) so their keystrokes never interleave.
    """

    def __init__(
        self,
        tmux: TmuxInterface,
        config: NotifierConfig | None = None,
        idle_detector: IdleDetector | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.tmux = tmux
        self.config = config or NotifierConfig()
        self.idle_detector = idle_detector or IdleDetector(
            tmux, self.config, sleep=sleep
        )
        self._sleep = sleep
        self._lock = asyncio.Lock()

    async def _send(self, target: str, keys: str, literal: bool = False):
        await asyncio.to_thread(self.tmux.send_keys, target, keys, literal)

    async def inject(self, text: str, target: str | None = None) -> bool:
        """Delivers ``text`` to the pane. Returns False if delivery failed."""
        target = target or self.config.target
        async with self._lock:
            try:
                await self._type_message(target, text)
            except Exception:
                logger.exception("Failed to deliver notice to tmux pane %s", target)
                return False
        logger.info("Delivered notice to %s: %s", target, text)
        return True

    async def _type_message(self, target: str, text: str):
        await self.idle_detector.wait_for_idle(target)

        # Drop whatever is half-typed: leave any mode, then clear the line
        await self._send(target, "Escape")
        await self._sleep(self.config.escape_delay)
        await self._send(target, "C-u")
        await self._sleep(self.config.clear_delay)

        # One key per send so the receiving app's input handling keeps up
        for char in text:
            await self._send(target, escape_key(char), literal=True)
            await self._sleep(self.config.key_delay)

        await self._sleep(self.config.submit_delay)
        await self._send(target, "Enter")
        # The first Enter can be swallowed by a completion popup
        await self._sleep(self.config.submit_delay)
        await self._send(target, "Enter")

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from run_long_command.config import NotifierConfig
from run_long_command.errors import TmuxError
from run_long_command.tmux import TmuxInterface

logger = logging.getLogger(__name__)


class IdleDetector:
    """Waits until a tmux pane stops changing before anything is typed into it.

    The pane is captured every ``poll_interval`` seconds. It counts as idle once
    ``required_stable_checks`` captures in a row are identical to the previous
    one. Waiting is capped at ``max_idle_wait`` seconds so a pane that never
    settles (spinners, clocks) still gets its notice.
    """

    def __init__(
        self,
        tmux: TmuxInterface,
        config: NotifierConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.tmux = tmux
        self.config = config or NotifierConfig()
        self._sleep = sleep
        self._clock = clock

    async def _capture(self, target: str) -> str | None:
        try:
            return await asyncio.to_thread(self.tmux.capture_pane, target)
        except (TmuxError, OSError) as e:
            logger.debug("Capture of %s failed, retrying next tick: %s", target, e)
            return None

    async def wait_for_idle(self, target: str) -> bool:
        """Returns True once the pane has settled, False if the ceiling was hit."""
        last_content = None
        stable_checks = 0
        start = self._clock()

        while self._clock() - start < self.config.max_idle_wait:
            await self._sleep(self.config.poll_interval)

            content = await self._capture(target)
            if content is None:
                continue

            if content == last_content:
                stable_checks += 1
            else:
                # Scrolling, typing or a redraw
                stable_checks = 0
                last_content = content

            if stable_checks >= self.config.required_stable_checks:
                return True

        logger.warning(
            "Pane %s did not settle within %ss, sending anyway",
            target,
            self.config.max_idle_wait,
        )
        return False

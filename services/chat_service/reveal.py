"""
Reveal scheduler - paced, client-side disclosure of an already received reply.
"""

import asyncio
from typing import AsyncGenerator, Callable, Optional

from utils.logging_config import get_logger


async def iter_partials(full_text: str, step_delay: float) -> AsyncGenerator[str, None]:
    """
    Yield successive prefixes of `full_text`, one character longer each time.

    The delay is applied before every prefix after the first. Consumers stop
    the reveal by leaving the loop; nothing is yielded for an empty string.
    """
    for end in range(1, len(full_text) + 1):
        if end > 1 and step_delay > 0:
            await asyncio.sleep(step_delay)
        yield full_text[:end]


class RevealScheduler:
    """
    Drives `iter_partials` into callbacks.

    One reveal per session at a time; the owner abandons a reveal by returning
    False from `should_continue`, which closes the underlying sequence.
    """

    def __init__(self, step_delay: float = 0.02):
        self.step_delay = step_delay
        self.logger = get_logger(__name__)

    async def reveal(
        self,
        full_text: str,
        on_partial: Callable[[str], None],
        on_done: Optional[Callable[[], None]] = None,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """
        Reveal `full_text` through `on_partial`.

        Returns:
            True if the full text was delivered, False if the reveal was abandoned
        """
        partials = iter_partials(full_text, self.step_delay)
        emitted = 0
        try:
            async for partial in partials:
                if should_continue is not None and not should_continue():
                    self.logger.debug(f"Reveal abandoned after {emitted} characters")
                    return False
                on_partial(partial)
                emitted += 1
        finally:
            await partials.aclose()

        if on_done is not None:
            on_done()
        return True

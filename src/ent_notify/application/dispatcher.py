"""Best-effort side-effect dispatch.

The reconciler separates "must succeed" work (account mutation + ledger
append, committed in one transaction) from "may fail" work (emails,
referral rewards, cache invalidation). The latter is returned as a list of
`SideEffect`s and run here AFTER the commit. A failing side effect is logged
at WARNING and never changes the event's outcome or stops the remaining
effects.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SideEffect:
    name: str                                  # e.g. "email:subscription-welcome"
    action: Callable[[], Awaitable[None]]
    event_id: str | None = None


class BestEffortDispatcher:
    async def run(self, effects: list[SideEffect]) -> int:
        """Run every effect in order. Returns the number that failed."""
        failed = 0
        for effect in effects:
            try:
                await effect.action()
            except Exception as exc:  # noqa: BLE001 -- best-effort by contract
                failed += 1
                logger.warning(
                    "Side effect %s failed (event=%s): %s",
                    effect.name,
                    effect.event_id,
                    exc,
                    exc_info=True,
                )
        return failed

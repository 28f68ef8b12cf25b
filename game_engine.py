# game_engine.py
import asyncio
import dataclasses
import enum
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple

from presenter import RenderModel, render
from sessions import SLOT_COUNT, ClickGuard, GameSession, SessionStore

logger = logging.getLogger(__name__)

PENALTY_DELAY_MS = 2000

Deliver = Callable[[RenderModel], Awaitable[None]]


class Outcome(enum.Enum):
    IGNORED = "ignored"
    ADVANCED = "advanced"
    COMPLETED = "completed"
    MISTAKE = "mistake"


@dataclass(frozen=True)
class ClickResult:
    outcome: Outcome
    session: Optional[GameSession]
    elapsed: Optional[float] = None


# ----------------- Pure transitions -----------------
def apply_click(session: GameSession, slot: int, now: float) -> ClickResult:
    if session.complete or not 0 <= slot < SLOT_COUNT:
        return ClickResult(Outcome.IGNORED, session)
    value = session.value_at(slot)
    # Revealed slots are not special-cased: their value is below next_target, so they count as mistakes.
    if value != session.next_target:
        return ClickResult(Outcome.MISTAKE, dataclasses.replace(session, mistake=value))
    advanced = dataclasses.replace(
        session,
        revealed=session.revealed | {value},
        next_target=session.next_target + 1,
    )
    if advanced.complete:
        return ClickResult(Outcome.COMPLETED, advanced, elapsed=max(0.0, now - session.started_at))
    return ClickResult(Outcome.ADVANCED, advanced)


def reset_after_penalty(session: GameSession) -> GameSession:
    return dataclasses.replace(session, revealed=frozenset(), next_target=1, mistake=None)


# ----------------- GameEngine -----------------
class GameEngine:
    def __init__(
        self,
        store: SessionStore,
        guard: ClickGuard,
        penalty_delay: float = PENALTY_DELAY_MS / 1000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.guard = guard
        self.penalty_delay = penalty_delay
        self._clock = clock
        self._sleep = sleep

    def start_game(self, player: int) -> RenderModel:
        session = self.store.create(player)
        logger.info("New board for player %s", player)
        return render(session)

    def abandon(self, player: int) -> bool:
        return self.store.clear(player)

    def bind_message(self, player: int, chat_id: int, message_id: int) -> None:
        """Remember which message shows the player's current board."""
        session = self.store.get(player)
        if session is not None:
            self.store.replace(player, dataclasses.replace(session, message=(chat_id, message_id)))

    async def handle_click(
        self, player: int, slot: int, deliver: Deliver, message: Optional[Tuple[int, int]] = None
    ) -> ClickResult:
        """Validate one click and push the resulting board(s) through ``deliver``.

        The caller must hold the click guard for ``player`` until this returns,
        which for a mistake includes the whole penalty delay. When ``message``
        is given, the click only counts if it came from the message bound to
        the player's current board.
        """
        session = self.store.get(player)
        if session is None:
            logger.debug("Click from player %s without a session", player)
            return ClickResult(Outcome.IGNORED, None)
        if message is not None and session.message != message:
            logger.debug("Click from player %s on message %s, board is on %s", player, message, session.message)
            return ClickResult(Outcome.IGNORED, session)

        result = apply_click(session, slot, self._clock())
        if result.outcome is Outcome.IGNORED:
            return result

        self.store.replace(player, result.session)
        await deliver(render(result.session, result.elapsed))
        if result.outcome is Outcome.COMPLETED:
            logger.info("Player %s finished in %.2fs", player, result.elapsed)
        if result.outcome is not Outcome.MISTAKE:
            return result

        logger.debug("Player %s tapped %s, expected %s", player, result.session.mistake, result.session.next_target)
        await self._sleep(self.penalty_delay)

        current = self.store.get(player)
        if current is not result.session:
            # A new game was started (or the board abandoned) during the delay.
            return result
        reset = reset_after_penalty(current)
        self.store.replace(player, reset)
        await deliver(render(reset))
        return result

    async def submit_click(
        self, player: int, slot: int, deliver: Deliver, message: Optional[Tuple[int, int]] = None
    ) -> Optional[ClickResult]:
        """Guarded entry point: returns None when a click for ``player`` is already in flight."""
        if not self.guard.try_acquire(player):
            logger.debug("Dropped click from busy player %s", player)
            return None
        try:
            return await self.handle_click(player, slot, deliver, message)
        finally:
            self.guard.release(player)

# sessions.py
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Optional, Set, Tuple

# ------- Board constants -------
GRID_SIZE = 3
SLOT_COUNT = GRID_SIZE * GRID_SIZE   # 9 slots, values 1..9
LAST_VALUE = SLOT_COUNT
# -------------------------------


# ----------------- Board Generator -----------------
def generate_board(rng: random.Random = None) -> Tuple[int, ...]:
    """Uniformly random permutation of the slot ids 0..8.

    Value ``v`` is placed in slot ``board[v - 1]``.
    """
    rng = rng or random
    slots = list(range(SLOT_COUNT))
    rng.shuffle(slots)
    return tuple(slots)


# ----------------- GameSession -----------------
@dataclass(frozen=True)
class GameSession:
    board: Tuple[int, ...]
    started_at: float
    next_target: int = 1
    revealed: FrozenSet[int] = field(default_factory=frozenset)
    mistake: Optional[int] = None
    # (chat_id, message_id) of the message showing this board
    message: Optional[Tuple[int, int]] = None

    @property
    def complete(self) -> bool:
        return self.next_target > LAST_VALUE

    def value_at(self, slot: int) -> int:
        return self.board.index(slot) + 1

    def slot_of(self, value: int) -> int:
        return self.board[value - 1]


# ----------------- Session Store -----------------
class SessionStore:
    """In-memory sessions keyed by player id. The backing dict never leaves the store."""

    def __init__(self, rng: random.Random = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._sessions: Dict[int, GameSession] = {}
        self._rng = rng or random.Random()
        self._clock = clock

    def create(self, player: int) -> GameSession:
        session = GameSession(board=generate_board(self._rng), started_at=self._clock())
        self._sessions[player] = session
        return session

    def get(self, player: int) -> Optional[GameSession]:
        return self._sessions.get(player)

    def replace(self, player: int, session: GameSession) -> None:
        self._sessions[player] = session

    def clear(self, player: int) -> bool:
        return self._sessions.pop(player, None) is not None

    def __contains__(self, player: int) -> bool:
        return player in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


# ----------------- Click Guard -----------------
class ClickGuard:
    """Players whose click is currently being handled (penalty delay included)."""

    def __init__(self) -> None:
        self._busy: Set[int] = set()

    def try_acquire(self, player: int) -> bool:
        if player in self._busy:
            return False
        self._busy.add(player)
        return True

    def release(self, player: int) -> None:
        self._busy.discard(player)

    def is_held(self, player: int) -> bool:
        return player in self._busy

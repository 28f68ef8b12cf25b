# presenter.py
import enum
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sessions import GRID_SIZE, LAST_VALUE, SLOT_COUNT, GameSession

MASK = "·"
PAYLOAD_PREFIX = "slot:"


class ButtonColor(enum.Enum):
    NEUTRAL = "neutral"
    FOUND = "found"
    WRONG = "wrong"


@dataclass(frozen=True)
class ButtonSpec:
    label: str
    color: ButtonColor
    payload: str


@dataclass(frozen=True)
class RenderModel:
    text: str
    rows: Tuple[Tuple[ButtonSpec, ...], ...] = ()

    @property
    def has_buttons(self) -> bool:
        return bool(self.rows)


# ------- Copy kept in one place (no hard-coded strings in handlers) -------
RULE_BRIEF = f"Tap the hidden numbers 1 to {LAST_VALUE} in ascending order, as fast as you can."
PENALTY_BRIEF = "A wrong tap shows your mistake for 2 seconds and starts you over from 1."


class MessageBuilder:
    @staticmethod
    def help_text() -> str:
        return (
            "/new - start a new board (replaces the current one)\n"
            "/stop - abandon the current board\n"
            "/best - your best time\n"
            "/leaderboard - fastest players\n\n"
            f"{RULE_BRIEF}\n"
            f"{PENALTY_BRIEF}"
        )

    @staticmethod
    def welcome() -> str:
        return f"Hi! Let's hunt some numbers.\n{RULE_BRIEF}\n{PENALTY_BRIEF}"

    @staticmethod
    def prompt(session: GameSession) -> str:
        found = len(session.revealed)
        if found == 0:
            return f"🔢 Find {session.next_target}!"
        return f"🔢 Find {session.next_target}! ({found}/{LAST_VALUE} found)"

    @staticmethod
    def mistake(session: GameSession) -> str:
        return (
            f"❌ {session.mistake} is wrong, you should find {session.next_target}.\n"
            f"Starting over in 2 seconds..."
        )

    @staticmethod
    def completion(elapsed: float) -> str:
        return f"🎉 All {LAST_VALUE} found in {format_elapsed(elapsed)}!\nSend /new to play again."

    @staticmethod
    def personal_best(elapsed: float) -> str:
        return f"🏆 New personal best: {format_elapsed(elapsed)}!"

    @staticmethod
    def best_time(elapsed: Optional[float]) -> str:
        if elapsed is None:
            return "You haven't finished a board yet. Send /new to play."
        return f"Your best time: {format_elapsed(elapsed)}"

    @staticmethod
    def leaderboard(rows: List[Tuple[str, float]]) -> str:
        if not rows:
            return "No finished boards yet."
        text = "🏆 Leaderboard\n"
        for i, (username, elapsed) in enumerate(rows, start=1):
            text += f"{i}. {username} — {format_elapsed(elapsed)}\n"
        return text

    @staticmethod
    def abandoned(had_game: bool) -> str:
        return "Board abandoned." if had_game else "You have no board in progress."


def format_elapsed(elapsed: float) -> str:
    total = max(0, int(elapsed))
    minutes, seconds = divmod(total, 60)
    if minutes:
        return f"{minutes} min {seconds} s"
    return f"{seconds} s"


# ----------------- Button payloads -----------------
def encode_slot_payload(slot: int) -> str:
    return f"{PAYLOAD_PREFIX}{slot}"


def decode_slot_payload(data: Optional[str]) -> Optional[int]:
    if not data or not data.startswith(PAYLOAD_PREFIX):
        return None
    raw = data[len(PAYLOAD_PREFIX):]
    if not raw.isdecimal():
        return None
    slot = int(raw)
    if slot >= SLOT_COUNT:
        return None
    return slot


# ----------------- Render -----------------
def render_button(session: GameSession, slot: int) -> ButtonSpec:
    value = session.value_at(slot)
    if value == session.mistake:
        return ButtonSpec(str(value), ButtonColor.WRONG, encode_slot_payload(slot))
    if value in session.revealed:
        return ButtonSpec(str(value), ButtonColor.FOUND, encode_slot_payload(slot))
    return ButtonSpec(MASK, ButtonColor.NEUTRAL, encode_slot_payload(slot))


def render_completion(elapsed: float) -> RenderModel:
    return RenderModel(text=MessageBuilder.completion(elapsed))


def render(session: GameSession, elapsed: Optional[float] = None) -> RenderModel:
    """Text and 3x3 button grid for a session.

    A complete session has no buttons; ``elapsed`` defaults to zero when the
    caller does not know it.
    """
    if session.complete:
        return render_completion(elapsed or 0.0)
    buttons = [render_button(session, slot) for slot in range(SLOT_COUNT)]
    rows = tuple(tuple(buttons[i:i + GRID_SIZE]) for i in range(0, SLOT_COUNT, GRID_SIZE))
    text = MessageBuilder.mistake(session) if session.mistake is not None else MessageBuilder.prompt(session)
    return RenderModel(text=text, rows=rows)

from __future__ import annotations

import pytest

from presenter import (
    MASK,
    ButtonColor,
    MessageBuilder,
    decode_slot_payload,
    encode_slot_payload,
    format_elapsed,
    render,
)
from sessions import GameSession

BOARD = (4, 0, 8, 1, 7, 2, 6, 3, 5)  # value v sits in slot BOARD[v - 1]


def _flat(model):
    return [b for row in model.rows for b in row]


def test_fresh_board_is_fully_masked() -> None:
    model = render(GameSession(board=BOARD, started_at=0.0))

    assert len(model.rows) == 3
    assert all(len(row) == 3 for row in model.rows)
    buttons = _flat(model)
    assert [b.label for b in buttons] == [MASK] * 9
    assert {b.color for b in buttons} == {ButtonColor.NEUTRAL}
    assert model.text == "🔢 Find 1!"


def test_buttons_follow_slot_order_and_carry_slot_payload() -> None:
    buttons = _flat(render(GameSession(board=BOARD, started_at=0.0)))
    assert [decode_slot_payload(b.payload) for b in buttons] == list(range(9))


def test_revealed_values_are_shown_as_found() -> None:
    session = GameSession(board=BOARD, started_at=0.0, next_target=3, revealed=frozenset({1, 2}))
    buttons = _flat(render(session))

    # value 1 in slot 4, value 2 in slot 0
    assert buttons[4].label == "1" and buttons[4].color is ButtonColor.FOUND
    assert buttons[0].label == "2" and buttons[0].color is ButtonColor.FOUND
    masked = [b for i, b in enumerate(buttons) if i not in (0, 4)]
    assert all(b.label == MASK and b.color is ButtonColor.NEUTRAL for b in masked)
    assert "Find 3" in render(session).text
    assert "2/9" in render(session).text


def test_mistake_is_highlighted_and_prompt_keeps_target() -> None:
    session = GameSession(board=BOARD, started_at=0.0, next_target=2, revealed=frozenset({1}), mistake=5)
    model = render(session)
    buttons = _flat(model)

    wrong = buttons[session.slot_of(5)]
    assert wrong.label == "5"
    assert wrong.color is ButtonColor.WRONG
    assert buttons[session.slot_of(1)].color is ButtonColor.FOUND
    assert sum(b.color is ButtonColor.WRONG for b in buttons) == 1
    assert "5 is wrong" in model.text
    assert "find 2" in model.text


def test_completed_session_has_no_buttons() -> None:
    session = GameSession(board=BOARD, started_at=0.0, next_target=10, revealed=frozenset(range(1, 10)))
    model = render(session, elapsed=75.4)

    assert model.rows == ()
    assert not model.has_buttons
    assert "1 min 15 s" in model.text


@pytest.mark.parametrize(
    "elapsed, expected",
    [(0, "0 s"), (9.9, "9 s"), (60, "1 min 0 s"), (125, "2 min 5 s"), (-3, "0 s")],
)
def test_format_elapsed(elapsed, expected) -> None:
    assert format_elapsed(elapsed) == expected


@pytest.mark.parametrize(
    "data", [None, "", "slot:", "slot:x", "slot:-1", "slot:9", "other:3", "slot:1.5", "slot:²", "slot:⑤"]
)
def test_decode_rejects_malformed_payloads(data) -> None:
    assert decode_slot_payload(data) is None


def test_payload_encoding() -> None:
    assert encode_slot_payload(7) == "slot:7"
    assert decode_slot_payload("slot:0") == 0


def test_leaderboard_text() -> None:
    assert MessageBuilder.leaderboard([]) == "No finished boards yet."
    text = MessageBuilder.leaderboard([("ann", 12.0), ("bob", 70.0)])
    assert "1. ann — 12 s" in text
    assert "2. bob — 1 min 10 s" in text

"""Board rules for xoarena: the 3x3 grid, winning lines and the evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TypeGuard

Player = str  # "X" or "O"
Cell = Optional[Player]  # None for an empty cell
Board = List[Cell]

SYMBOLS: Tuple[Player, Player] = ("X", "O")
BOARD_SIZE = 9

# Rows, then columns, then the two diagonals. Order decides which line is
# reported when more than one is complete.
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


@dataclass(frozen=True)
class Win:
    player: Player
    combo: Tuple[int, int, int]


def empty_board() -> Board:
    return [None] * BOARD_SIZE


def other(player: Player) -> Player:
    return "O" if player == "X" else "X"


def is_full(board: Sequence[Cell]) -> bool:
    return all(board)


def evaluate(board: Sequence[Cell]) -> Optional[Win]:
    """Return the first complete line on ``board``, or ``None``."""

    for a, b, c in WINNING_LINES:
        v = board[a]
        if v and v == board[b] == board[c]:
            return Win(player=v, combo=(a, b, c))
    return None


def is_draw(board: Sequence[Cell]) -> bool:
    return is_full(board) and evaluate(board) is None


def available_moves(board: Sequence[Cell]) -> List[int]:
    return [i for i, c in enumerate(board) if not c]


def is_valid_index(index: object) -> TypeGuard[int]:
    # bool is an int subclass; True must not address cell 1
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < BOARD_SIZE

"""Offline matches played on one device: hotseat or against the computer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .ai import MinimaxAI
from .game import Board, Player, empty_board, evaluate, is_full, is_valid_index, other


class LocalMode(str, Enum):
    HOTSEAT = "hotseat"
    COMPUTER = "computer"


HUMAN_SYMBOL: Player = "X"


def _new_scores() -> Dict[str, int]:
    return {"X": 0, "O": 0, "D": 0}


@dataclass
class LocalMatch:
    """A board, whose turn it is, and a running tally of results."""

    mode: LocalMode = LocalMode.HOTSEAT
    board: Board = field(default_factory=empty_board)
    turn: Player = "X"
    winner: Optional[Player] = None
    combo: Optional[Tuple[int, int, int]] = None
    drawn: bool = False
    scores: Dict[str, int] = field(default_factory=_new_scores)
    ai: Optional[MinimaxAI] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.mode = LocalMode(self.mode)
        if self.mode is LocalMode.COMPUTER and self.ai is None:
            self.ai = MinimaxAI(player=other(HUMAN_SYMBOL))

    @property
    def finished(self) -> bool:
        return self.winner is not None or self.drawn

    @property
    def computer_to_move(self) -> bool:
        return (
            self.ai is not None
            and not self.finished
            and self.turn == self.ai.player
        )

    def play(self, index: int) -> None:
        """Place the current player's mark at ``index`` and advance the game."""

        if self.finished:
            raise ValueError("Game already finished")
        if not is_valid_index(index):
            raise ValueError("Cell index out of range")
        if self.board[index]:
            raise ValueError("Cell already occupied")

        self.board[index] = self.turn
        win = evaluate(self.board)
        if win is not None:
            self.winner, self.combo = win.player, win.combo
            self.scores[win.player] += 1
            return
        if is_full(self.board):
            self.drawn = True
            self.scores["D"] += 1
            return
        self.turn = other(self.turn)

    def play_computer(self) -> int:
        ai = self.ai
        if ai is None or not self.computer_to_move:
            raise ValueError("It is not the computer's turn")
        index = ai.choose(self.board)
        self.play(index)
        return index

    def reset(self) -> None:
        """Start a new game; X opens and the tally carries over."""

        self.board = empty_board()
        self.turn = "X"
        self.winner = None
        self.combo = None
        self.drawn = False

    def new_session(self) -> None:
        self.reset()
        self.scores = _new_scores()

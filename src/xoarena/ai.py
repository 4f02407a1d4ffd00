"""Full-depth minimax opponent for the local "vs computer" mode."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple
import math

from .game import Board, Cell, Player, available_moves, evaluate, other

WIN_SCORE = 10


@dataclass
class MinimaxAI:
    """Exhaustive minimax over the 3x3 board.

    Every continuation is searched to the end; there is no depth limit and no
    pruning. Results are cached per (position, side to move), which leaves
    the chosen move unchanged.

      - MinimaxAI(player="O")
      - choose(board) -> cell index
    """

    player: Player
    _tt: Dict[Tuple[Tuple[Cell, ...], Player], Tuple[int, Optional[int]]] = field(
        default_factory=dict, repr=False
    )

    # ---- public API ----

    def choose(self, board: Sequence[Cell]) -> int:
        if evaluate(board) is not None:
            raise ValueError("Game already finished")
        if not available_moves(board):
            raise ValueError("No valid moves available")

        _, move = self._minimax(list(board), self.player)
        if move is None:
            raise RuntimeError("No valid moves available")
        return move

    # ---- core search ----

    def _minimax(self, board: Board, to_move: Player) -> Tuple[int, Optional[int]]:
        win = evaluate(board)
        if win is not None:
            return (WIN_SCORE if win.player == self.player else -WIN_SCORE), None
        moves = available_moves(board)
        if not moves:
            return 0, None

        key = (tuple(board), to_move)
        hit = self._tt.get(key)
        if hit is not None:
            return hit

        maximizing = to_move == self.player
        value = -math.inf if maximizing else math.inf
        best_move: Optional[int] = None
        for move in moves:
            board[move] = to_move
            score, _ = self._minimax(board, other(to_move))
            board[move] = None
            # strict comparison keeps the lowest index on ties
            if (score > value) if maximizing else (score < value):
                value, best_move = score, move

        result = (int(value), best_move)
        self._tt[key] = result
        return result


def best_move(board: Sequence[Cell], ai_symbol: Player) -> int:
    return MinimaxAI(player=ai_symbol).choose(board)

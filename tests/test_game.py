"""Unit tests for the board evaluator."""

import pytest

from xoarena.game import (
    WINNING_LINES,
    available_moves,
    empty_board,
    evaluate,
    is_draw,
    is_valid_index,
)


def test_empty_board_has_no_winner():
    board = empty_board()
    assert len(board) == 9
    assert evaluate(board) is None
    assert not is_draw(board)
    assert available_moves(board) == list(range(9))


@pytest.mark.parametrize("line", WINNING_LINES)
@pytest.mark.parametrize("symbol", ["X", "O"])
def test_every_line_is_detected(line, symbol):
    board = empty_board()
    for index in line:
        board[index] = symbol
    win = evaluate(board)
    assert win is not None
    assert win.player == symbol
    assert win.combo == line


def test_mixed_line_is_not_a_win():
    board = ["X", "X", "O", None, None, None, None, None, None]
    assert evaluate(board) is None


def test_rows_are_reported_before_columns():
    board = ["X", "X", "X", "X", None, None, "X", None, None]
    assert evaluate(board).combo == (0, 1, 2)


def test_columns_are_reported_before_diagonals():
    board = ["X", "O", None, "X", "X", "O", "X", "O", "X"]
    assert evaluate(board).combo == (0, 3, 6)


def test_full_board_without_line_is_a_draw():
    board = ["X", "O", "X", "X", "O", "O", "O", "X", "X"]
    assert evaluate(board) is None
    assert is_draw(board)


def test_full_board_with_line_is_not_a_draw():
    board = ["X", "X", "X", "O", "O", "X", "O", "X", "O"]
    assert not is_draw(board)


@pytest.mark.parametrize("index", [-1, 9, 1.0, "4", None, True])
def test_invalid_indices(index):
    assert not is_valid_index(index)

"""xoarena package exposing the match rules, the computer opponent, and the web application."""

from .ai import MinimaxAI, best_move
from .coordinator import MatchCoordinator
from .game import evaluate, is_draw
from .rooms import RoomRegistry, to_public_view
from .server import app, create_app

__all__ = [
    "MatchCoordinator",
    "MinimaxAI",
    "RoomRegistry",
    "app",
    "best_move",
    "create_app",
    "evaluate",
    "is_draw",
    "to_public_view",
]

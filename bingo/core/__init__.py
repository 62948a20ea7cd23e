"""Core game logic: board, state, rules, and move generation."""

from .board import *
from .state import GameState, Phase, Tile
from .rules import Rejection, Result
from .moves import Move, MoveKind, MoveGenerator

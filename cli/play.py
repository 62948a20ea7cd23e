#!/usr/bin/env python3
"""
Terminal-based double-sided bingo client.

Play against the AI or watch AI vs AI games.
"""

from __future__ import annotations
import argparse
import asyncio
import logging
import random
import sys
import time
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from bingo.core.board import (
    ROWS, COLS, COLOR_LETTERS, PairType, Color, pair_faces
)
from bingo.core.moves import MoveKind, get_legal_moves, move_to_notation, notation_to_move
from bingo.core.state import GameState
from bingo.ai.search import MinimaxSearch, SearchConfig
from bingo.controller import GameController

# ANSI color codes
ANSI = {
    Color.RED: '\033[91m',
    Color.YELLOW: '\033[93m',
    Color.BLUE: '\033[94m',
}
DIM = '\033[2m'
RESET = '\033[0m'


def print_board(state: GameState) -> None:
    """Print the board.

    Each tile shows its front letter in color, its hidden back letter in
    lowercase, and its owner.
    """
    print()
    print("  +" + "-" * (COLS * 5 + 1) + "+")
    for row in range(ROWS):
        line = f"{row + 1} |"
        for col in range(COLS):
            tile = state.tile_at(row, col)
            if tile is None:
                line += f"  {DIM}..{RESET} "
            else:
                front = f"{ANSI[tile.front]}{COLOR_LETTERS[tile.front]}{RESET}"
                line += f" {front}{COLOR_LETTERS[tile.back].lower()}{tile.owner} "
        line += " |"
        print(line)
    print("  +" + "-" * (COLS * 5 + 1) + "+")
    print("     " + "    ".join("abcd"[:COLS]))
    print()
    for player in (1, 2):
        target = state.target_of(player)
        stock = "  ".join(
            f"{''.join(COLOR_LETTERS[c] for c in pair_faces(p))}x{state.stock_of(player, p)}"
            for p in PairType
        )
        print(f"  Player {player}: target {ANSI[target]}{target.name}{RESET}   stock {stock}")
    print(f"  Placed {state.move_count}/14 ({state.phase.value})")
    print()


def show_legal_moves(state: GameState) -> None:
    """Display all generated moves, grouped by kind."""
    moves = get_legal_moves(state)
    if not moves:
        print("No legal moves!")
        return

    for kind, label in ((MoveKind.PLACE, "Place"), (MoveKind.SHIFT, "Move"), (MoveKind.FLIP, "Flip")):
        group = [move_to_notation(m) for m in moves if m.kind == kind]
        if group:
            print(f"{label}:", ", ".join(group))


def print_help() -> None:
    print("Place a tile:  YR@a1  (front letter, back letter, cell)")
    print("               tiles are YR, BY, RB; reverse the letters to place flipped")
    print("Move a tile:   a1-a2  (one step up, down, left or right)")
    print("Flip a tile:   ~b2")
    print("'m' for moves, 'q' to quit")


def play_human_vs_ai(
    human_player: int = 1,
    depth: int | None = None,
    seed: int | None = None
) -> None:
    """Play a game: human vs AI."""
    player_types = ["ai", "ai"]
    player_types[human_player - 1] = "human"
    controller = GameController(
        player_types=player_types,
        search=MinimaxSearch(config=SearchConfig(fixed_depth=depth)),
        rng=random.Random(seed)
    )
    state = controller.state

    print("\n=== Double Bingo ===")
    print(f"You are player {human_player}. Your target: {state.target_of(human_player).name}")
    print("Complete a row, column or diagonal showing your color to win.")
    print_help()

    while not controller.state.is_terminal():
        state = controller.state
        print_board(state)

        if not controller.is_ai_turn():
            print(f"Your turn (Player {state.turn})")
            try:
                user_input = input("> ").strip()
            except EOFError:
                return

            if user_input in ('q', 'quit', 'exit'):
                print("Thanks for playing!")
                return
            if user_input in ('h', 'help', '?'):
                print_help()
                continue
            if user_input in ('m', 'moves'):
                show_legal_moves(state)
                continue

            try:
                move = notation_to_move(user_input)
            except (ValueError, IndexError):
                print(f"Invalid format: {user_input}. Type 'h' for help")
                continue

            result = controller.apply(move)
            if not result.ok:
                print(f"Illegal move: {result.message}")
                continue
            print(f"You played: {move_to_notation(move)}")
        else:
            print("AI thinking...")
            result = asyncio.run(controller.request_ai_move())
            search = controller.last_search
            if search is not None and search.move is not None:
                print("AI analysis:")
                for m in search.analyze(top_k=3):
                    print(f"  {m['notation']}: value={m['value']:.1f}")
                print(f"AI plays: {move_to_notation(search.move)} "
                      f"({search.nodes} nodes, {search.time_ms} ms)")
            else:
                print(f"AI passes: {result.message}")

    # Game over
    print_board(controller.state)
    winner = controller.state.winner
    if winner == human_player:
        print("Congratulations! You win!")
    else:
        print("AI wins. Better luck next time!")


def watch_ai_vs_ai(
    depth: int | None = None,
    seed: int | None = None,
    delay: float = 1.0,
    max_turns: int = 200
) -> None:
    """Watch AI play against itself."""
    controller = GameController(
        player_types=("ai", "ai"),
        search=MinimaxSearch(config=SearchConfig(fixed_depth=depth)),
        rng=random.Random(seed)
    )

    print("\n=== AI vs AI ===")

    turns = 0
    while not controller.state.is_terminal() and turns < max_turns:
        print_board(controller.state)
        print(f"Turn {turns + 1}, Player {controller.state.turn}")

        result = asyncio.run(controller.request_ai_move())
        search = controller.last_search
        if search is not None and search.move is not None:
            print(f"Plays: {move_to_notation(search.move)} (value={search.value:.1f})\n")
        else:
            print(f"Passes: {result.message}\n")

        turns += 1
        time.sleep(delay)

    print_board(controller.state)
    winner = controller.state.winner
    print(f"Game over after {turns} turns. Winner: Player {winner if winner is not None else 'None'}")


def main():
    parser = argparse.ArgumentParser(description='Double Bingo Terminal Client')
    parser.add_argument('--depth', type=int, default=None,
                        help='Fixed search depth (default: 3, then 4 after 10 placements)')
    parser.add_argument('--seed', type=int, default=None, help='Seed for target colors')
    parser.add_argument('--watch', action='store_true', help='Watch AI vs AI')
    parser.add_argument('--delay', type=float, default=1.0, help='Seconds between AI moves when watching')
    parser.add_argument('--play-as', type=int, choices=[1, 2], default=1,
                        help='Play as player 1 or 2')
    parser.add_argument('--verbose', action='store_true', help='Log search statistics')

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    if args.watch:
        watch_ai_vs_ai(args.depth, args.seed, args.delay)
    else:
        play_human_vs_ai(args.play_as, args.depth, args.seed)


if __name__ == '__main__':
    main()

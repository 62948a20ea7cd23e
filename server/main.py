"""
FastAPI server for the double-sided bingo engine.

Provides REST and WebSocket APIs for game management and AI play.
"""

from __future__ import annotations
import argparse
import asyncio
import logging
import random
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from bingo import __version__
from bingo.core.board import algebraic_to_cell, cell_to_algebraic, pair_from_name
from bingo.core.moves import Move, MoveKind, get_legal_moves, move_to_notation, notation_to_move
from bingo.core.rules import Rejection, Result
from bingo.ai.search import MinimaxSearch, SearchConfig
from bingo.controller import GameController


# --- Pydantic Models ---

class CreateGameRequest(BaseModel):
    player1_type: str = "human"
    player2_type: str = "ai"
    search_depth: Optional[int] = Field(default=None, ge=1, le=6)
    seed: Optional[int] = None


class CreateGameResponse(BaseModel):
    game_id: str


class CellState(BaseModel):
    cell: str
    row: int
    col: int
    front: Optional[str] = None
    back: Optional[str] = None
    owner: Optional[int] = None


class GameStateResponse(BaseModel):
    game_id: str
    cells: list[CellState]
    stock: dict[str, dict[str, int]]
    targets: dict[str, str]
    phase: str
    turn: int
    move_count: int
    status: str
    winner: Optional[int]
    player_types: list[str]
    ai_pending: bool
    legal_moves: list[str]


class PlaceRequest(BaseModel):
    cell: str
    pair_type: str
    flipped: bool = False


class MoveRequest(BaseModel):
    src: str
    dst: str


class FlipRequest(BaseModel):
    cell: str


class TopMove(BaseModel):
    move: str
    value: float


class AIMoveResponse(BaseModel):
    move: Optional[str]
    passed: bool
    value: float
    depth: int
    nodes: int
    time_ms: int
    immediate_win: bool
    top_moves: list[TopMove]
    game_state: GameStateResponse


class LegalMove(BaseModel):
    move: str
    type: str


class LegalMovesResponse(BaseModel):
    moves: list[LegalMove]


class MoveConversionResponse(BaseModel):
    notation: str
    type: str
    cell: str
    target: Optional[str] = None
    pair_type: Optional[str] = None
    flipped: bool = False


class HealthResponse(BaseModel):
    status: str
    version: str


# --- Game Storage ---

class Game:
    """Represents an active game session."""

    def __init__(
        self,
        game_id: str,
        player1_type: str = "human",
        player2_type: str = "ai",
        search_depth: Optional[int] = None,
        seed: Optional[int] = None
    ):
        self.game_id = game_id
        self.controller = GameController(
            player_types=(player1_type, player2_type),
            search=MinimaxSearch(config=SearchConfig(fixed_depth=search_depth)),
            rng=random.Random(seed)
        )
        self.websockets: list[WebSocket] = []

    def to_response(self) -> GameStateResponse:
        """Convert to API response."""
        controller = self.controller
        snapshot = controller.get_state().to_dict()

        return GameStateResponse(
            game_id=self.game_id,
            cells=[CellState(**cell) for cell in snapshot["cells"]],
            stock=snapshot["stock"],
            targets=snapshot["targets"],
            phase=snapshot["phase"],
            turn=snapshot["turn"],
            move_count=snapshot["move_count"],
            status="finished" if controller.state.is_terminal() else "playing",
            winner=snapshot["winner"],
            player_types=controller.player_types,
            ai_pending=controller.ai_pending,
            legal_moves=[move_to_notation(m) for m in get_legal_moves(controller.state)]
        )


# Global game storage
games: dict[str, Game] = {}

# AI turns started from WebSocket messages
background_tasks: set[asyncio.Task] = set()


def get_game(game_id: str) -> Game:
    if game_id not in games:
        raise HTTPException(status_code=404, detail="Game not found")
    return games[game_id]


def parse_cell(s: str) -> tuple[int, int]:
    try:
        return algebraic_to_cell(s)
    except (ValueError, IndexError):
        raise HTTPException(status_code=400, detail=f"Invalid cell: {s}")


CONFLICT_REJECTIONS = {Rejection.GAME_ALREADY_WON, Rejection.AI_PENDING, Rejection.NOT_HUMAN_TURN}


def raise_for_rejection(result: Result) -> None:
    """Turn a rejected Result into an HTTP error."""
    if result.ok:
        return
    status_code = 409 if result.rejection in CONFLICT_REJECTIONS else 400
    raise HTTPException(
        status_code=status_code,
        detail={"code": result.rejection.value, "message": result.message}
    )


# --- App Setup ---

app = FastAPI(
    title="Double Bingo Engine",
    description="Game engine API for double-sided bingo",
    version=__version__
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- REST Endpoints ---

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="ok", version=__version__)


@app.post("/games", response_model=CreateGameResponse)
async def create_game(request: CreateGameRequest = None):
    """Create a new game."""
    if request is None:
        request = CreateGameRequest()

    game_id = str(uuid.uuid4())[:8]
    try:
        game = Game(
            game_id=game_id,
            player1_type=request.player1_type,
            player2_type=request.player2_type,
            search_depth=request.search_depth,
            seed=request.seed
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    games[game_id] = game

    targets = game.controller.state.targets
    logging.info(f"Created game {game_id} ({request.player1_type} vs {request.player2_type}, "
                 f"targets {targets[0].name}/{targets[1].name})")

    return CreateGameResponse(game_id=game_id)


@app.get("/games/{game_id}", response_model=GameStateResponse)
async def get_game_state(game_id: str):
    """Get current game state."""
    return get_game(game_id).to_response()


async def apply_human_move(game: Game, move: Move) -> GameStateResponse:
    result = game.controller.apply(move)
    raise_for_rejection(result)

    response = game.to_response()
    await broadcast_state(game, response)
    return response


@app.post("/games/{game_id}/place", response_model=GameStateResponse)
async def place_tile(game_id: str, request: PlaceRequest):
    """Place a tile from the current player's stock."""
    game = get_game(game_id)
    cell = parse_cell(request.cell)
    try:
        pair_type = pair_from_name(request.pair_type)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid pair type: {request.pair_type}")
    return await apply_human_move(game, Move.place(cell, pair_type, request.flipped))


@app.post("/games/{game_id}/move", response_model=GameStateResponse)
async def move_tile(game_id: str, request: MoveRequest):
    """Slide a tile one step."""
    game = get_game(game_id)
    move = Move.shift(parse_cell(request.src), parse_cell(request.dst))
    return await apply_human_move(game, move)


@app.post("/games/{game_id}/flip", response_model=GameStateResponse)
async def flip_tile(game_id: str, request: FlipRequest):
    """Turn a tile over."""
    game = get_game(game_id)
    return await apply_human_move(game, Move.flip(parse_cell(request.cell)))


@app.post("/games/{game_id}/ai", response_model=AIMoveResponse)
async def get_ai_move(game_id: str):
    """Get AI to calculate and play a move for the player to act."""
    game = get_game(game_id)
    controller = game.controller

    result = await controller.request_ai_move()
    if result.rejection != Rejection.NO_LEGAL_MOVE:
        raise_for_rejection(result)

    search = controller.last_search
    top_moves = [TopMove(move=m['notation'], value=m['value']) for m in search.analyze(top_k=5)]

    game_response = game.to_response()
    await broadcast_state(game, game_response)

    return AIMoveResponse(
        move=move_to_notation(search.move) if search.move else None,
        passed=search.move is None,
        value=search.value,
        depth=search.depth,
        nodes=search.nodes,
        time_ms=search.time_ms,
        immediate_win=search.immediate_win,
        top_moves=top_moves,
        game_state=game_response
    )


@app.post("/games/{game_id}/reset", response_model=GameStateResponse)
async def reset_game(game_id: str):
    """Start the game over, discarding any pending AI move."""
    game = get_game(game_id)
    game.controller.new_game()
    logging.info(f"Reset game {game_id}")

    response = game.to_response()
    await broadcast_state(game, response)
    return response


@app.get("/games/{game_id}/legal-moves", response_model=LegalMovesResponse)
async def get_legal_moves_endpoint(game_id: str):
    """Get all generated moves for the player to act."""
    game = get_game(game_id)
    moves = get_legal_moves(game.controller.state)
    return LegalMovesResponse(moves=[
        LegalMove(move=move_to_notation(m), type=m.kind.value) for m in moves
    ])


@app.get("/util/move", response_model=MoveConversionResponse)
async def convert_move(notation: str):
    """Parse move notation."""
    try:
        move = notation_to_move(notation)
    except (ValueError, IndexError):
        raise HTTPException(status_code=400, detail=f"Invalid move notation: {notation}")

    return MoveConversionResponse(
        notation=move_to_notation(move),
        type=move.kind.value,
        cell=cell_to_algebraic(move.cell),
        target=cell_to_algebraic(move.target) if move.target else None,
        pair_type=move.pair_type.name.lower() if move.kind == MoveKind.PLACE else None,
        flipped=move.flipped
    )


# --- WebSocket ---

async def broadcast_state(game: Game, state: GameStateResponse):
    """Broadcast state update to all connected clients."""
    message = {
        "type": "state",
        "data": state.model_dump()
    }
    disconnected = []
    for ws in game.websockets:
        try:
            await ws.send_json(message)
        except Exception:
            disconnected.append(ws)

    for ws in disconnected:
        game.websockets.remove(ws)


async def broadcast_game_over(game: Game):
    winner = game.controller.state.winner
    message = {
        "type": "game_over",
        "data": {"winner": winner, "target": game.controller.state.target_of(winner).name.lower()}
    }
    for ws in list(game.websockets):
        try:
            await ws.send_json(message)
        except Exception:
            game.websockets.remove(ws)


async def send_error(ws: WebSocket, message: str, code: str):
    """Send error message to client."""
    await ws.send_json({
        "type": "error",
        "data": {"message": message, "code": code}
    })


async def play_ai_turn(game: Game):
    """Run one AI turn and push the outcome to every client."""
    result = await game.controller.request_ai_move()
    if result.rejection == Rejection.CANCELLED:
        return
    await broadcast_state(game, game.to_response())
    if game.controller.state.is_terminal():
        await broadcast_game_over(game)


def spawn_ai_turn(game: Game) -> None:
    task = asyncio.create_task(play_ai_turn(game))
    background_tasks.add(task)
    task.add_done_callback(background_tasks.discard)


def parse_ws_move(msg_type: str, data: dict) -> Move:
    """Build a Move from a WebSocket payload; raises ValueError if malformed."""
    if "notation" in data:
        return notation_to_move(data["notation"])
    if msg_type == "place":
        return Move.place(algebraic_to_cell(data["cell"]), pair_from_name(data["pair_type"]),
                          bool(data.get("flipped", False)))
    if msg_type == "move":
        return Move.shift(algebraic_to_cell(data["src"]), algebraic_to_cell(data["dst"]))
    return Move.flip(algebraic_to_cell(data["cell"]))


@app.websocket("/games/{game_id}/ws")
async def websocket_endpoint(websocket: WebSocket, game_id: str):
    """WebSocket endpoint for real-time game updates."""
    if game_id not in games:
        await websocket.close(code=4004, reason="Game not found")
        return

    game = games[game_id]
    controller = game.controller
    await websocket.accept()
    game.websockets.append(websocket)

    # Send initial state
    await websocket.send_json({
        "type": "state",
        "data": game.to_response().model_dump()
    })

    try:
        while True:
            data = await websocket.receive_json()
            msg_type = data.get("type")
            payload = data.get("data", {})

            if msg_type in ("place", "move", "flip"):
                try:
                    move = parse_ws_move(msg_type, payload)
                except (KeyError, ValueError, IndexError):
                    await send_error(websocket, "Malformed move", "INVALID_REQUEST")
                    continue

                result = controller.apply(move)
                if not result.ok:
                    await send_error(websocket, result.message, result.rejection.value.upper())
                    continue

                await broadcast_state(game, game.to_response())
                if controller.state.is_terminal():
                    await broadcast_game_over(game)
                elif controller.should_ai_move():
                    spawn_ai_turn(game)

            elif msg_type == "ai_move":
                if controller.ai_pending:
                    await send_error(websocket, "AI is still thinking", "AI_PENDING")
                    continue
                if controller.state.is_terminal():
                    await send_error(websocket, "Game already finished", "GAME_ALREADY_WON")
                    continue
                spawn_ai_turn(game)

            elif msg_type == "reset":
                controller.new_game()
                await broadcast_state(game, game.to_response())
                if controller.should_ai_move():
                    spawn_ai_turn(game)

            else:
                await send_error(websocket, f"Unknown message type: {msg_type}", "INVALID_REQUEST")

    except WebSocketDisconnect:
        pass
    finally:
        if websocket in game.websockets:
            game.websockets.remove(websocket)


# --- Entry Point ---

def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the server."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


def main():
    parser = argparse.ArgumentParser(description='Double Bingo engine server')
    parser.add_argument('--host', type=str, default='0.0.0.0')
    parser.add_argument('--port', type=int, default=8000)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_server(args.host, args.port)


if __name__ == "__main__":
    main()

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set, Tuple

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from dominoduel.ai.agent import AIAgent, Difficulty
from dominoduel.ai.heuristic import score_breakdown
from dominoduel.ai.search import select_medium
from dominoduel.engine import (
    DEFAULT_SIDE,
    Move,
    Side,
    legal_moves,
    list_legal_moves,
    parse_tile,
    serialize_move,
)
from dominoduel.game import (
    GameState,
    Seat,
    StartRule,
    deal,
    draw_tile,
    next_round,
    pass_turn,
    play_tile,
    serialize_state,
)

logger = logging.getLogger(__name__)


class CreateMatchRequest(BaseModel):
    difficulty: Difficulty = Difficulty.MEDIUM
    seed: Optional[int] = None
    starting_player: StartRule = StartRule.DOUBLE


class MoveRequest(BaseModel):
    tile: str
    side: Optional[Side] = None


class DifficultyRequest(BaseModel):
    difficulty: Difficulty


class RoundRequest(BaseModel):
    seed: Optional[int] = None
    starting_player: StartRule = StartRule.DOUBLE


class MatchResponse(BaseModel):
    id: str
    difficulty: Difficulty
    description: str
    state: Dict


def state_version(state: GameState) -> Tuple[str, int]:
    """Changes whenever an action is applied or a new round is dealt."""
    return state.round_id, len(state.history)


@dataclass
class Match:
    id: str
    agent: AIAgent
    state: GameState
    thinking: bool = False


class Hub:
    def __init__(self) -> None:
        self.connections: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, match_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self.connections[match_id].add(websocket)

    async def disconnect(self, match_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self.connections[match_id].discard(websocket)

    async def broadcast(self, match_id: str, payload: Dict) -> None:
        async with self._lock:
            recipients = list(self.connections.get(match_id, set()))
        for ws in recipients:
            try:
                await ws.send_json(payload)
            except WebSocketDisconnect:
                await self.disconnect(match_id, ws)
            except Exception:
                logger.debug("Dropping websocket for match %s", match_id, exc_info=True)
                await self.disconnect(match_id, ws)


def create_app(agent_factory: Optional[Callable[[], AIAgent]] = None) -> FastAPI:
    app = FastAPI(title="Domino Duel API")
    hub = Hub()
    matches: Dict[str, Match] = {}
    make_agent = agent_factory or AIAgent.from_env

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def serialize_match(match: Match) -> Dict:
        info = match.agent.describe()
        return {
            "id": match.id,
            "difficulty": info["difficulty"],
            "description": info["description"],
            "state": serialize_state(match.state, reveal_ai=not match.state.active),
        }

    def require_match(match_id: str) -> Match:
        match = matches.get(match_id)
        if match is None:
            raise HTTPException(status_code=404, detail="Match not found")
        return match

    async def publish(match: Match) -> MatchResponse:
        payload = serialize_match(match)
        asyncio.create_task(hub.broadcast(match.id, payload))
        return MatchResponse(**payload)

    def require_idle(match: Match) -> None:
        if match.thinking:
            raise HTTPException(status_code=409, detail="The AI is still thinking")

    async def run_ai_turns(match: Match, max_plies: Optional[int] = None) -> None:
        # The AI keeps acting until it is the player's turn or the round ends.
        # Only one loop runs per match; a round dealt meanwhile is picked up
        # by the loop that is already running.
        if match.thinking:
            return
        match.thinking = True
        try:
            plies = 0
            while match.state.active and match.state.turn is Seat.AI:
                if max_plies is not None and plies >= max_plies:
                    break
                state = match.state
                version = state_version(state)
                move = await match.agent.think(state.board, state.hand(Seat.AI), len(state.stock))
                if state_version(match.state) != version:
                    logger.warning(
                        "Discarding AI decision for round %s of match %s", state.round_id, match.id
                    )
                    continue
                if move is not None:
                    match.state = play_tile(match.state, Seat.AI, move, round_id=state.round_id)
                elif match.state.stock:
                    match.state, _ = draw_tile(match.state, Seat.AI, round_id=state.round_id)
                else:
                    match.state = pass_turn(match.state, Seat.AI, round_id=state.round_id)
                plies += 1
        finally:
            match.thinking = False

    def resolve_move(state: GameState, body: MoveRequest) -> Move:
        try:
            tile = parse_tile(body.tile)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if tile not in state.hand(Seat.PLAYER):
            raise HTTPException(status_code=400, detail=f"{tile.label} is not in your hand")
        if body.side is not None:
            return Move(tile=tile, side=body.side)
        if state.board.is_empty:
            return Move(tile=tile, side=DEFAULT_SIDE)
        sides = legal_moves(state.board, (tile,)).get(tile, [])
        if len(sides) > 1:
            raise HTTPException(status_code=400, detail=f"{tile.label} fits both ends; choose a side")
        if not sides:
            raise HTTPException(status_code=400, detail=f"{tile.label} does not fit either end")
        return Move(tile=tile, side=sides[0])

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/match", response_model=MatchResponse)
    async def create_match(req: CreateMatchRequest) -> MatchResponse:
        agent = make_agent()
        agent.set_difficulty(req.difficulty)
        match = Match(
            id=uuid.uuid4().hex[:8],
            agent=agent,
            state=deal(seed=req.seed, starting_player=req.starting_player),
        )
        matches[match.id] = match
        await run_ai_turns(match)
        return await publish(match)

    @app.get("/match/{match_id}", response_model=MatchResponse)
    async def get_match(match_id: str) -> MatchResponse:
        match = require_match(match_id)
        return MatchResponse(**serialize_match(match))

    @app.get("/match/{match_id}/legal")
    async def get_legal(match_id: str) -> Dict:
        match = require_match(match_id)
        state = match.state
        hand = state.hand(Seat.PLAYER)
        playable = legal_moves(state.board, hand) if state.active else {}
        moves: List[Dict] = [
            {"tile": tile.label, "sides": [side.value for side in sides]}
            for tile, sides in playable.items()
        ]
        your_turn = state.active and state.turn is Seat.PLAYER
        return {
            "id": match.id,
            "round_id": state.round_id,
            "turn": state.turn.value,
            "moves": moves,
            "can_draw": your_turn and not moves and bool(state.stock),
            "can_pass": your_turn and not moves and not state.stock,
        }

    @app.get("/match/{match_id}/hint")
    async def get_hint(match_id: str) -> Dict:
        match = require_match(match_id)
        state = match.state
        hand = state.hand(Seat.PLAYER)
        moves = list_legal_moves(state.board, hand)
        best = select_medium(state.board, hand, moves, match.agent.config.weights)
        if best is None:
            return {"id": match.id, "move": None, "terms": None}
        terms = score_breakdown(state.board, hand, best.tile, best.side, match.agent.config.weights)
        return {"id": match.id, "move": serialize_move(best), "terms": terms}

    @app.post("/match/{match_id}/move", response_model=MatchResponse)
    async def play_move(match_id: str, body: MoveRequest) -> MatchResponse:
        match = require_match(match_id)
        require_idle(match)
        move = resolve_move(match.state, body)
        try:
            match.state = play_tile(match.state, Seat.PLAYER, move)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        await run_ai_turns(match)
        return await publish(match)

    @app.post("/match/{match_id}/draw", response_model=MatchResponse)
    async def draw(match_id: str) -> MatchResponse:
        match = require_match(match_id)
        require_idle(match)
        try:
            match.state, _ = draw_tile(match.state, Seat.PLAYER)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        await run_ai_turns(match)
        return await publish(match)

    @app.post("/match/{match_id}/pass", response_model=MatchResponse)
    async def pass_(match_id: str) -> MatchResponse:
        match = require_match(match_id)
        require_idle(match)
        try:
            match.state = pass_turn(match.state, Seat.PLAYER)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        await run_ai_turns(match)
        return await publish(match)

    @app.post("/match/{match_id}/ai-step", response_model=MatchResponse)
    async def step_ai(match_id: str) -> MatchResponse:
        match = require_match(match_id)
        require_idle(match)
        if not match.state.active or match.state.turn is not Seat.AI:
            raise HTTPException(status_code=400, detail="It is not the AI's turn")
        await run_ai_turns(match, max_plies=1)
        return await publish(match)

    @app.put("/match/{match_id}/difficulty", response_model=MatchResponse)
    async def set_difficulty(match_id: str, body: DifficultyRequest) -> MatchResponse:
        match = require_match(match_id)
        match.agent.set_difficulty(body.difficulty)
        return await publish(match)

    @app.post("/match/{match_id}/round", response_model=MatchResponse)
    async def new_round(match_id: str, body: Optional[RoundRequest] = None) -> MatchResponse:
        match = require_match(match_id)
        body = body or RoundRequest()
        match.state = next_round(match.state, seed=body.seed, starting_player=body.starting_player)
        await run_ai_turns(match)
        return await publish(match)

    @app.websocket("/ws/match/{match_id}")
    async def ws_match(websocket: WebSocket, match_id: str) -> None:
        await hub.connect(match_id, websocket)
        try:
            match = matches.get(match_id)
            if match:
                await websocket.send_json(serialize_match(match))
            while True:
                # Inbound messages are ignored; actions go through HTTP.
                await websocket.receive_text()
        except WebSocketDisconnect:
            await hub.disconnect(match_id, websocket)
        except Exception:
            await hub.disconnect(match_id, websocket)

    return app

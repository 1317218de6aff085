"""MCP tool server for Domino Duel.

Expose match operations so an external MCP client can take the human seat
against the built-in AI.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Optional

import httpx
from mcp.server.fastmcp import FastMCP

API_BASE = os.getenv("DOMINO_API_URL", "http://127.0.0.1:8000").rstrip("/")
VALID_DIFFICULTIES = {"easy", "medium", "hard"}
VALID_SIDES = {"left", "right"}

mcp = FastMCP("domino-duel")


def _request(
    method: str,
    path: str,
    json: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    with httpx.Client(timeout=20.0) as client:
        response = client.request(method, f"{API_BASE}{path}", json=json, params=params)
    if response.is_error:
        detail = response.text
        try:
            payload = response.json()
            detail = payload.get("detail", detail)
        except ValueError:
            pass
        raise ValueError(f"{method} {path} failed ({response.status_code}): {detail}")
    return response.json()


def _difficulty(value: str) -> str:
    value = value.lower().strip()
    if value not in VALID_DIFFICULTIES:
        raise ValueError(f"Unsupported difficulty '{value}'. Valid: {sorted(VALID_DIFFICULTIES)}")
    return value


@mcp.tool(description="Check whether the Domino Duel HTTP API is running.")
def health() -> Dict[str, Any]:
    return _request("GET", "/health")


@mcp.tool(
    description=(
        "Create a match against the AI. Difficulty: easy (random), medium "
        "(heuristic) or hard (timed lookahead). Optionally pass a deal seed."
    )
)
def create_match(difficulty: str = "medium", seed: Optional[int] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"difficulty": _difficulty(difficulty)}
    if seed is not None:
        payload["seed"] = seed
    return _request("POST", "/match", json=payload)


@mcp.tool(description="Fetch the current state of a match by id.")
def get_match(match_id: str) -> Dict[str, Any]:
    return _request("GET", f"/match/{match_id}")


@mcp.tool(description="List the tiles in your hand that can be played and on which ends.")
def legal_moves(match_id: str) -> Dict[str, Any]:
    return _request("GET", f"/match/{match_id}/legal")


@mcp.tool(
    description=(
        "Play a tile, e.g. tile='3-5' side='left'. Side may be omitted when the "
        "tile fits only one end."
    )
)
def play_move(match_id: str, tile: str, side: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"tile": tile.strip()}
    if side is not None:
        side = side.lower().strip()
        if side not in VALID_SIDES:
            raise ValueError(f"Unsupported side '{side}'. Valid: {sorted(VALID_SIDES)}")
        payload["side"] = side
    return _request("POST", f"/match/{match_id}/move", json=payload)


@mcp.tool(description="Draw from the stock when no tile in hand can be played.")
def draw(match_id: str) -> Dict[str, Any]:
    return _request("POST", f"/match/{match_id}/draw")


@mcp.tool(description="Pass when nothing can be played and the stock is empty.")
def pass_turn(match_id: str) -> Dict[str, Any]:
    return _request("POST", f"/match/{match_id}/pass")


@mcp.tool(description="Change the AI difficulty for a match.")
def set_difficulty(match_id: str, difficulty: str) -> Dict[str, Any]:
    return _request(
        "PUT",
        f"/match/{match_id}/difficulty",
        json={"difficulty": _difficulty(difficulty)},
    )


@mcp.tool(description="Deal the next round of a match, keeping the scores.")
def next_round(match_id: str, seed: Optional[int] = None) -> Dict[str, Any]:
    payload = {"seed": seed} if seed is not None else {}
    return _request("POST", f"/match/{match_id}/round", json=payload)


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()

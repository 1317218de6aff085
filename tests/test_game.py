from __future__ import annotations

from dataclasses import replace

import pytest

from dominoduel.engine import Board, Move, Side, Tile
from dominoduel.game import (
    DRAW,
    TILES_PER_HAND,
    GameRuleError,
    Seat,
    StaleRoundError,
    StartRule,
    deal,
    draw_tile,
    next_round,
    partition_ok,
    pass_turn,
    play_tile,
    serialize_state,
)


def board_with_ends(left: int, right: int) -> Board:
    return Board().place(Tile(left, right), Side.LEFT)


def position(board: Board, player, ai, stock=(), turn: Seat = Seat.PLAYER):
    base = deal(seed=0)
    return replace(
        base,
        board=board,
        hands={Seat.PLAYER: tuple(player), Seat.AI: tuple(ai)},
        stock=tuple(stock),
        turn=turn,
    )


@pytest.mark.parametrize("seed", range(20))
def test_deal_partitions_the_full_set(seed: int) -> None:
    state = deal(seed=seed)
    assert len(state.hand(Seat.PLAYER)) == TILES_PER_HAND
    assert len(state.hand(Seat.AI)) == TILES_PER_HAND
    assert len(state.stock) == 14
    assert state.board.is_empty
    assert partition_ok(state)
    assert state.active


@pytest.mark.parametrize("seed", range(20))
def test_highest_double_leads(seed: int) -> None:
    state = deal(seed=seed)

    def top_double(seat: Seat) -> int:
        return max((t.a for t in state.hand(seat) if t.is_double), default=-1)

    expected = Seat.AI if top_double(Seat.AI) > top_double(Seat.PLAYER) else Seat.PLAYER
    assert state.turn is expected


def test_same_seed_deals_the_same_hands() -> None:
    first, second = deal(seed=11), deal(seed=11)
    assert first.hands == second.hands
    assert first.stock == second.stock
    assert first.round_id != second.round_id


def test_play_moves_tile_to_board_and_passes_turn() -> None:
    state = position(board_with_ends(3, 6), [Tile(3, 1), Tile(0, 0)], [Tile(6, 4), Tile(5, 5)])
    after = play_tile(state, Seat.PLAYER, Move(Tile(3, 1), Side.LEFT))
    assert after.board.ends() == (1, 6)
    assert after.hand(Seat.PLAYER) == (Tile(0, 0),)
    assert after.turn is Seat.AI
    assert state.hand(Seat.PLAYER) == (Tile(3, 1), Tile(0, 0))


def test_play_rejects_wrong_turn_and_foreign_tiles() -> None:
    state = position(board_with_ends(3, 6), [Tile(3, 1)], [Tile(6, 2)])
    with pytest.raises(GameRuleError):
        play_tile(state, Seat.AI, Move(Tile(6, 2), Side.RIGHT))
    with pytest.raises(GameRuleError):
        play_tile(state, Seat.PLAYER, Move(Tile(6, 2), Side.RIGHT))


def test_stale_round_id_is_rejected() -> None:
    state = position(board_with_ends(3, 6), [Tile(3, 1), Tile(1, 1)], [Tile(6, 2)])
    with pytest.raises(StaleRoundError):
        play_tile(state, Seat.PLAYER, Move(Tile(3, 1), Side.LEFT), round_id="not-this-round")
    after = play_tile(state, Seat.PLAYER, Move(Tile(3, 1), Side.LEFT), round_id=state.round_id)
    assert after.turn is Seat.AI


def test_going_out_scores_opponent_pips() -> None:
    state = position(board_with_ends(3, 6), [Tile(6, 2)], [Tile(4, 5), Tile(1, 0)])
    after = play_tile(state, Seat.PLAYER, Move(Tile(6, 2), Side.RIGHT))
    assert after.winner is Seat.PLAYER
    assert after.scores[Seat.PLAYER] == 10
    assert after.wins[Seat.PLAYER] == 1
    assert not after.active
    with pytest.raises(GameRuleError):
        pass_turn(after, Seat.AI)


def test_draw_keeps_turn_when_tile_is_playable() -> None:
    state = position(board_with_ends(3, 6), [Tile(0, 1)], [Tile(4, 4)], stock=[Tile(2, 2), Tile(6, 5)])
    after, drawn = draw_tile(state, Seat.PLAYER)
    assert drawn == Tile(6, 5)
    assert after.turn is Seat.PLAYER
    assert after.hand(Seat.PLAYER) == (Tile(0, 1), Tile(6, 5))
    assert after.stock == (Tile(2, 2),)


def test_draw_passes_turn_when_tile_is_unplayable() -> None:
    state = position(board_with_ends(3, 6), [Tile(0, 1)], [Tile(4, 4)], stock=[Tile(2, 2), Tile(1, 5)])
    after, drawn = draw_tile(state, Seat.PLAYER)
    assert drawn == Tile(1, 5)
    assert after.turn is Seat.AI
    assert Tile(1, 5) in after.hand(Seat.PLAYER)


def test_draw_is_refused_while_a_play_exists() -> None:
    state = position(board_with_ends(3, 6), [Tile(3, 1)], [Tile(4, 4)], stock=[Tile(2, 2)])
    with pytest.raises(GameRuleError):
        draw_tile(state, Seat.PLAYER)


def test_pass_requires_empty_stock() -> None:
    blocked = position(board_with_ends(3, 6), [Tile(0, 1)], [Tile(6, 4)], stock=[Tile(2, 2)])
    with pytest.raises(GameRuleError):
        pass_turn(blocked, Seat.PLAYER)
    drained = replace(blocked, stock=())
    after = pass_turn(drained, Seat.PLAYER)
    assert after.turn is Seat.AI
    assert after.active


def test_locked_table_goes_to_lower_pip_count() -> None:
    state = position(board_with_ends(3, 6), [Tile(0, 1)], [Tile(4, 5), Tile(2, 2)])
    after = pass_turn(state, Seat.PLAYER)
    assert after.winner is Seat.PLAYER
    assert after.scores[Seat.PLAYER] == 13 - 1


def test_locked_table_with_equal_pips_is_a_draw() -> None:
    state = position(board_with_ends(3, 6), [Tile(0, 4)], [Tile(2, 2)])
    after = pass_turn(state, Seat.PLAYER)
    assert after.winner == DRAW
    assert after.scores == {Seat.PLAYER: 0, Seat.AI: 0}
    assert after.wins == {Seat.PLAYER: 0, Seat.AI: 0}


def test_next_round_keeps_scores_and_changes_round_id() -> None:
    state = position(board_with_ends(3, 6), [Tile(6, 2)], [Tile(4, 5)])
    finished = play_tile(state, Seat.PLAYER, Move(Tile(6, 2), Side.RIGHT))
    fresh = next_round(finished, seed=5)
    assert fresh.round_number == finished.round_number + 1
    assert fresh.round_id != finished.round_id
    assert fresh.scores == finished.scores
    assert fresh.wins == finished.wins
    assert fresh.active
    assert partition_ok(fresh)


def test_serialized_state_hides_ai_hand() -> None:
    state = deal(seed=2)
    hidden = serialize_state(state)
    assert hidden["ai_hand"] is None
    assert hidden["ai_hand_size"] == TILES_PER_HAND
    assert hidden["stock_size"] == 14
    assert hidden["turn"] == state.turn.value
    revealed = serialize_state(state, reveal_ai=True)
    assert len(revealed["ai_hand"]) == TILES_PER_HAND


@pytest.mark.parametrize("rule,leader", [("player", Seat.PLAYER), ("ai", Seat.AI)])
def test_fixed_start_rule_picks_the_leader(rule: str, leader: Seat) -> None:
    for seed in range(5):
        assert deal(seed=seed, starting_player=rule).turn is leader


def test_random_start_rule_is_seeded() -> None:
    leaders = {deal(seed=seed, starting_player=StartRule.RANDOM).turn for seed in range(40)}
    assert leaders == {Seat.PLAYER, Seat.AI}
    assert deal(seed=7, starting_player="random").turn is deal(seed=7, starting_player="random").turn


def test_next_round_accepts_a_start_rule() -> None:
    fresh = next_round(deal(seed=1), seed=3, starting_player=StartRule.AI)
    assert fresh.turn is Seat.AI
    assert fresh.history[0] == "round 2 dealt, ai leads"


def test_unknown_start_rule_is_rejected() -> None:
    with pytest.raises(ValueError):
        deal(seed=1, starting_player="youngest")

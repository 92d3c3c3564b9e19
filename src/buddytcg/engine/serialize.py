from __future__ import annotations

from typing import TYPE_CHECKING

from .actions import (
    Action,
    AttackAction,
    ChickenNuggetAction,
    EndTurnAction,
    EvolveAction,
    PlayCardAction,
    PromoteAction,
    ReadyAction,
    RetreatAction,
)
from .cards import CardInstance

if TYPE_CHECKING:
    from .match import MatchState, PlayerState


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, ReadyAction):
        return {"type": "ready", "player": a.player}
    if isinstance(a, PlayCardAction):
        return {"type": "play", "player": a.player, "hand_index": a.hand_index}
    if isinstance(a, EvolveAction):
        return {
            "type": "evolve",
            "player": a.player,
            "hand_index": a.hand_index,
            "target_index": a.target_index,
        }
    if isinstance(a, ChickenNuggetAction):
        return {
            "type": "chicken_nugget",
            "player": a.player,
            "hand_index": a.hand_index,
            "target_index": a.target_index,
        }
    if isinstance(a, AttackAction):
        return {"type": "attack", "player": a.player}
    if isinstance(a, PromoteAction):
        return {"type": "promote", "player": a.player, "bench_index": a.bench_index}
    if isinstance(a, RetreatAction):
        return {"type": "retreat", "player": a.player, "bench_index": a.bench_index}
    if isinstance(a, EndTurnAction):
        return {"type": "end_turn", "player": a.player}
    # should be unreachable
    return {"type": "unknown"}


def card_to_dict(c: CardInstance | None, *, include_uid: bool = True) -> dict[str, object] | None:
    if c is None:
        return None
    out: dict[str, object] = {
        "card_id": c.id,
        "hp": c.hp,
        "max_hp": c.max_hp,
        "turn_placed": c.turn_placed,
    }
    if include_uid:
        out["uid"] = c.uid
    return out


def _player_to_dict(p: PlayerState, include_uid: bool) -> dict[str, object]:
    return {
        "deck": [c.id for c in p.deck],
        "hand": [card_to_dict(c, include_uid=include_uid) for c in p.hand],
        "active": card_to_dict(p.active, include_uid=include_uid),
        "bench": [card_to_dict(c, include_uid=include_uid) for c in p.bench],
        "points": p.points,
        "has_played_supporter": p.has_played_supporter,
    }


def snapshot(state: MatchState, *, include_uids: bool = True) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state.

    Card uids come from a process-wide counter; pass `include_uids=False` to
    compare snapshots of two separately dealt matches.
    """
    return {
        "seed": state.seed,
        "phase": state.phase,
        "current_player": state.current_player,
        "turn_count": state.turn_count,
        "game_over": state.game_over,
        "winner": state.winner,
        "setup_ready": {str(k): v for k, v in state.setup_ready.items()},
        "players": {str(n): _player_to_dict(p, include_uids) for n, p in state.players.items()},
        "action_log": [action_to_dict(a) for a in state.action_log],
    }

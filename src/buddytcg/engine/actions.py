from __future__ import annotations

from dataclasses import dataclass

from .types import ACTIVE_SLOT


@dataclass(frozen=True)
class ReadyAction:
    player: int


@dataclass(frozen=True)
class PlayCardAction:
    player: int
    hand_index: int


@dataclass(frozen=True)
class EvolveAction:
    player: int
    hand_index: int
    target_index: int = ACTIVE_SLOT


@dataclass(frozen=True)
class ChickenNuggetAction:
    player: int
    hand_index: int
    target_index: int = ACTIVE_SLOT


@dataclass(frozen=True)
class AttackAction:
    player: int


@dataclass(frozen=True)
class PromoteAction:
    player: int
    bench_index: int


@dataclass(frozen=True)
class RetreatAction:
    player: int
    bench_index: int


@dataclass(frozen=True)
class EndTurnAction:
    player: int


Action = (
    ReadyAction
    | PlayCardAction
    | EvolveAction
    | ChickenNuggetAction
    | AttackAction
    | PromoteAction
    | RetreatAction
    | EndTurnAction
)

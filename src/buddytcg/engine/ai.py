from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Sequence

from .actions import (
    AttackAction,
    ChickenNuggetAction,
    EndTurnAction,
    EvolveAction,
    PlayCardAction,
    PromoteAction,
    ReadyAction,
)
from .cards import CardInstance
from .events import TURN_STARTED, Event, EventBus
from .match import MatchState, PlayerState, get_player, step
from .types import ACTIVE_SLOT, NoBasicCreatureError

Strategy = Literal["naive", "greedy"]
Chooser = Callable[[Sequence[CardInstance | None], Callable[[CardInstance], bool]], int | None]

logger = logging.getLogger(__name__)


def choose_first(cards: Sequence[CardInstance | None], accept: Callable[[CardInstance], bool]) -> int | None:
    for i, c in enumerate(cards):
        if c is not None and accept(c):
            return i
    return None


def choose_strongest(
    cards: Sequence[CardInstance | None], accept: Callable[[CardInstance], bool]
) -> int | None:
    """Index of the accepted card with the most current hp; ties go to the first one."""
    best: int | None = None
    best_hp = -1
    for i, c in enumerate(cards):
        if c is None or not accept(c):
            continue
        hp = c.hp or 0
        if hp > best_hp:
            best_hp = hp
            best = i
    return best


CHOOSERS: dict[Strategy, Chooser] = {
    "naive": choose_first,
    "greedy": choose_strongest,
}


@dataclass(frozen=True)
class AISpec:
    """AI tuning parameters.

    strategy:
      naive  = first qualifying Buddy in hand/bench order
      greedy = qualifying Buddy with the highest current hp
    """

    strategy: Strategy = "naive"


@dataclass(frozen=True)
class EvolutionOpportunity:
    hand_index: int
    target_index: int  # -1 for active, 0.. for bench


class AIController:
    """Plays one side of a match through the public engine operations only."""

    def __init__(self, state: MatchState, player: int, spec: AISpec | None = None) -> None:
        self.state = state
        self.player = player
        self.spec = spec or AISpec()
        self._choose = CHOOSERS[self.spec.strategy]
        self._bus: EventBus | None = None

    @property
    def ps(self) -> PlayerState:
        return get_player(self.state, self.player)

    def _choose_active_index(self, hand: Sequence[CardInstance]) -> int | None:
        return self._choose(hand, lambda c: c.is_basic)

    def _choose_promotion_index(self, bench: Sequence[CardInstance | None]) -> int | None:
        return self._choose(bench, lambda c: True)

    @staticmethod
    def _bench_indices(hand: Sequence[CardInstance]) -> list[int]:
        # Highest index first so removing one card never shifts the next.
        return sorted((i for i, c in enumerate(hand) if c.is_basic), reverse=True)

    def _targets(self) -> list[tuple[int, CardInstance | None]]:
        ps = self.ps
        return [(ACTIVE_SLOT, ps.active)] + list(enumerate(ps.bench))

    def find_evolution_opportunities(self) -> list[EvolutionOpportunity]:
        if self.state.turn_count <= 1:
            return []
        hand = self.ps.hand
        out: list[EvolutionOpportunity] = []
        for index, card in self._targets():
            if card is None or card.turn_placed == self.state.turn_count:
                continue
            for h_index, h_card in enumerate(hand):
                if h_card.evolves_from == card.id:
                    out.append(EvolutionOpportunity(hand_index=h_index, target_index=index))
                    break
        return out

    def find_chicken_nugget_opportunities(self) -> list[EvolutionOpportunity]:
        if self.state.turn_count <= 1:
            return []
        hand = self.ps.hand
        nugget_indices = [i for i, c in enumerate(hand) if c.special == "chicken_nugget"]
        if not nugget_indices:
            return []
        out: list[EvolutionOpportunity] = []
        for index, card in self._targets():
            if card is None or not card.is_basic or card.turn_placed == self.state.turn_count:
                continue
            has_stage2 = any(
                h.evolves_from_basic == card.id and i not in nugget_indices for i, h in enumerate(hand)
            )
            if not has_stage2:
                continue
            out.extend(EvolutionOpportunity(hand_index=n, target_index=index) for n in nugget_indices)
        return out

    def setup(self) -> None:
        active_index = self._choose_active_index(self.ps.hand)
        if active_index is None:
            logger.error("AI P%s has no basic Buddy to place!", self.player)
            raise NoBasicCreatureError(f"AI player {self.player} has no basic Buddy to place.")
        step(self.state, PlayCardAction(player=self.player, hand_index=active_index))

        for index in self._bench_indices(self.ps.hand):
            step(self.state, PlayCardAction(player=self.player, hand_index=index))

        step(self.state, ReadyAction(player=self.player))

    def execute_turn(self) -> None:
        state = self.state
        if state.game_over or state.current_player != self.player:
            return
        ps = self.ps

        if ps.active is None:
            promotion_index = self._choose_promotion_index(ps.bench)
            if promotion_index is None:
                step(state, EndTurnAction(player=self.player))
                return
            step(state, PromoteAction(player=self.player, bench_index=promotion_index))

        if not ps.has_played_supporter:
            supporter_index = next((i for i, c in enumerate(ps.hand) if c.is_supporter), None)
            if supporter_index is not None:
                step(state, PlayCardAction(player=self.player, hand_index=supporter_index))

        for i in range(len(ps.hand) - 1, -1, -1):
            card = ps.hand[i]
            if card.is_item and card.special != "chicken_nugget":
                step(state, PlayCardAction(player=self.player, hand_index=i))

        # A Nugget jump to stage 2 beats a single evolution.
        nugget_opps = self.find_chicken_nugget_opportunities()
        if nugget_opps:
            opp = nugget_opps[0]
            logger.debug("AI P%s plays Chicken Nugget on %s", self.player, opp.target_index)
            step(
                state,
                ChickenNuggetAction(player=self.player, hand_index=opp.hand_index, target_index=opp.target_index),
            )

        evolution_opps = self.find_evolution_opportunities()
        if evolution_opps:
            opp = evolution_opps[0]
            logger.debug("AI P%s evolves %s", self.player, opp.target_index)
            step(state, EvolveAction(player=self.player, hand_index=opp.hand_index, target_index=opp.target_index))

        for index in self._bench_indices(ps.hand):
            step(state, PlayCardAction(player=self.player, hand_index=index))

        if ps.active is not None and step(state, AttackAction(player=self.player)):
            return
        step(state, EndTurnAction(player=self.player))

    def _on_turn_started(self, payload: Event) -> None:
        if payload.get("current_player") == self.player:
            self.execute_turn()

    def attach(self, bus: EventBus | None = None) -> None:
        """Run `execute_turn` whenever this player's turn starts."""
        self.detach()
        self._bus = bus or self.state.bus
        self._bus.subscribe(TURN_STARTED, self._on_turn_started)

    def detach(self) -> None:
        if self._bus is not None:
            self._bus.unsubscribe(TURN_STARTED, self._on_turn_started)
            self._bus = None


def make_controller(state: MatchState, player: int, strategy: Strategy = "naive") -> AIController:
    return AIController(state, player, AISpec(strategy=strategy))

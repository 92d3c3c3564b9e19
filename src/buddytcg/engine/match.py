from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Iterable, Literal

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
from .cards import CardInstance, create_deck, draw, shuffle
from .events import (
    GAME_ENDED,
    GAME_INITIALIZED,
    GAME_STATE_UPDATED,
    TURN_STARTED,
    EventBus,
)
from .serialize import snapshot
from .types import ACTIVE_SLOT, CardCatalog, DeckConfig, NoBasicCreatureError

Phase = Literal["setup", "playing"]
Event = dict[str, object]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchConfig:
    hand_size: int = 5
    bench_slots: int = 3
    points_to_win: int = 3
    supporter_draw: int = 2
    max_mulligans: int = 100


@dataclass
class PlayerState:
    deck: list[CardInstance]
    hand: list[CardInstance]
    bench: list[CardInstance | None]
    active: CardInstance | None = None
    points: int = 0
    has_played_supporter: bool = False

    def has_bench(self) -> bool:
        return any(c is not None for c in self.bench)


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None

    def __bool__(self) -> bool:
        return self.ok


@dataclass
class MatchState:
    catalog: CardCatalog
    deck_config: DeckConfig
    config: MatchConfig
    seed: int
    rng: random.Random
    bus: EventBus
    players: dict[int, PlayerState]
    phase: Phase = "setup"
    current_player: int = 1
    turn_count: int = 0
    game_over: bool = False
    winner: int | None = None
    setup_ready: dict[int, bool] = field(default_factory=lambda: {1: False, 2: False})
    action_log: list[Action] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)

    def can_act(self, player: int) -> bool:
        return player == self.current_player and self.phase == "playing" and not self.game_over


def opponent(player: int) -> int:
    return 2 if player == 1 else 1


def get_player(state: MatchState, player: int) -> PlayerState:
    return state.players[player]


def board_card(ps: PlayerState, index: int) -> CardInstance | None:
    """Card at a board index: -1 is the active slot, 0.. are bench slots."""
    if index == ACTIVE_SLOT:
        return ps.active
    if 0 <= index < len(ps.bench):
        return ps.bench[index]
    return None


def _set_board_card(ps: PlayerState, index: int, card: CardInstance) -> None:
    if index == ACTIVE_SLOT:
        ps.active = card
    else:
        ps.bench[index] = card


def _reject(op: str, msg: str) -> StepResult:
    logger.debug("%s rejected: %s", op, msg)
    return StepResult(ok=False, events=[], error=msg)


def _accept(state: MatchState, mark: int) -> StepResult:
    return StepResult(ok=True, events=state.event_log[mark:])


def _notify(state: MatchState, name: str, detail: Event) -> None:
    state.event_log.append({"type": name, **detail})
    state.bus.publish(name, detail)


def _update(state: MatchState) -> None:
    state.event_log.append({"type": GAME_STATE_UPDATED, "turn": state.turn_count})
    # Snapshots are only built for listeners.
    if state.bus.has_subscribers(GAME_STATE_UPDATED):
        state.bus.publish(GAME_STATE_UPDATED, snapshot(state))


def _draw_opening_hand(state: MatchState, player: int) -> None:
    ps = state.players[player]
    for _ in range(state.config.max_mulligans):
        ps.deck.extend(ps.hand)
        ps.hand.clear()
        ps.deck = shuffle(ps.deck, state.rng)
        draw(ps, state.config.hand_size)
        if any(c.is_basic for c in ps.hand):
            return
    logger.error(
        "Player %s found no basic Buddy after %s opening hands", player, state.config.max_mulligans
    )
    raise NoBasicCreatureError(
        f"Player {player} has no basic Buddy after {state.config.max_mulligans} opening hands."
    )


def _start_turn(state: MatchState, player: int) -> None:
    state.current_player = player
    state.turn_count += 1
    ps = state.players[player]
    ps.has_played_supporter = False
    # The very first turn of the match skips the draw.
    if state.turn_count > 1:
        draw(ps, 1)
    _notify(state, TURN_STARTED, {"current_player": player})
    _update(state)


def _end_game(state: MatchState, winner: int) -> None:
    state.game_over = True
    state.winner = winner
    logger.info("Match over on turn %s: player %s wins", state.turn_count, winner)
    _notify(state, GAME_ENDED, {"winner": winner})
    _update(state)


def initialize_game(
    state: MatchState, deck0: DeckConfig | None = None, deck1: DeckConfig | None = None
) -> StepResult:
    """Build both decks and draw opening hands that each hold a basic Buddy."""
    mark = len(state.event_log)
    for player, deck_config in ((1, deck0), (2, deck1)):
        cfg = deck_config or state.deck_config
        state.players[player].deck = create_deck(state.catalog, cfg, state.rng)
    for player in (1, 2):
        _draw_opening_hand(state, player)
    _notify(state, GAME_INITIALIZED, {"seed": state.seed})
    return _accept(state, mark)


def set_player_ready(state: MatchState, player: int) -> StepResult:
    if state.phase != "setup":
        return _reject("ready", "Setup is over.")
    if state.players[player].active is None:
        return _reject("ready", "Place an active Buddy first.")
    mark = len(state.event_log)
    state.setup_ready[player] = True
    if state.setup_ready[1] and state.setup_ready[2]:
        state.phase = "playing"
        logger.info("Both players ready; match %s begins", state.seed)
        _start_turn(state, 1)
    else:
        _update(state)
    return _accept(state, mark)


def end_turn(state: MatchState) -> StepResult:
    if state.game_over:
        return _reject("end_turn", "Match already ended.")
    mark = len(state.event_log)
    _start_turn(state, opponent(state.current_player))
    return _accept(state, mark)


def _play_supporter(state: MatchState, ps: PlayerState, hand_index: int) -> str | None:
    if state.phase == "setup":
        return "Supporters cannot be played during setup."
    if ps.has_played_supporter:
        return "Already played a supporter this turn."
    # Drawn cards land at the end of the hand, so hand_index still points at the supporter.
    draw(ps, state.config.supporter_draw)
    ps.hand.pop(hand_index)
    ps.has_played_supporter = True
    return None


def _play_coach_whistle(state: MatchState, ps: PlayerState, hand_index: int) -> str | None:
    if state.phase == "setup":
        return "Items cannot be played during setup."
    ps.hand.pop(hand_index)
    basic_indices = [i for i, c in enumerate(ps.deck) if c.is_basic]
    if basic_indices:
        pick = state.rng.choice(basic_indices)
        ps.hand.append(ps.deck.pop(pick))
    ps.deck = shuffle(ps.deck, state.rng)
    return None


def _play_basic(state: MatchState, ps: PlayerState, hand_index: int) -> str | None:
    card = ps.hand[hand_index]
    if ps.active is None:
        ps.active = card
    else:
        try:
            slot = ps.bench.index(None)
        except ValueError:
            return "Bench is full."
        ps.bench[slot] = card
    ps.hand.pop(hand_index)
    card.turn_placed = state.turn_count
    return None


def play_card(state: MatchState, player: int, hand_index: int) -> StepResult:
    """Play a card from hand; dispatches on the card's kind.

    Precedence: supporter, Coach Whistle, Chicken Nugget (never from here;
    see `play_chicken_nugget`), basic Buddy. Evolutions go through `evolve`.
    """
    if state.game_over:
        return _reject("play_card", "Match already ended.")
    if state.phase == "playing" and player != state.current_player:
        return _reject("play_card", "Not your turn.")
    ps = state.players[player]
    if hand_index < 0 or hand_index >= len(ps.hand):
        return _reject("play_card", "Invalid hand index.")

    card = ps.hand[hand_index]
    mark = len(state.event_log)
    if card.kind == "supporter":
        err = _play_supporter(state, ps, hand_index)
    elif card.special == "coach_whistle":
        err = _play_coach_whistle(state, ps, hand_index)
    elif card.special == "chicken_nugget":
        err = "Chicken Nugget needs a target; use play_chicken_nugget."
    elif card.kind == "basic":
        err = _play_basic(state, ps, hand_index)
    elif card.kind == "evolution":
        err = "Evolution cards must target a Buddy; use evolve."
    else:
        err = f"Card {card.id} has no play rule."

    if err is not None:
        return _reject("play_card", err)
    _update(state)
    return _accept(state, mark)


def _placed_before_this_turn(state: MatchState, card: CardInstance) -> bool:
    return (card.turn_placed or 0) < state.turn_count


def _perform_evolution(
    state: MatchState, ps: PlayerState, evolved: CardInstance, target: CardInstance, target_index: int
) -> None:
    evolved.hp = (evolved.max_hp or 0) - target.damage_taken
    evolved.turn_placed = state.turn_count
    _set_board_card(ps, target_index, evolved)
    _update(state)


def evolve(state: MatchState, player: int, hand_index: int, target_index: int) -> StepResult:
    if not state.can_act(player):
        return _reject("evolve", "Not your turn.")
    if state.turn_count <= 1:
        return _reject("evolve", "No evolving on the first turn.")
    ps = state.players[player]
    target = board_card(ps, target_index)
    if target is None:
        return _reject("evolve", "No Buddy in that slot.")
    if hand_index < 0 or hand_index >= len(ps.hand):
        return _reject("evolve", "Invalid hand index.")
    card = ps.hand[hand_index]
    if card.evolves_from is None or card.evolves_from != target.id:
        return _reject("evolve", f"{card.id} does not evolve from {target.id}.")
    if not _placed_before_this_turn(state, target):
        return _reject("evolve", "That Buddy entered play this turn.")

    mark = len(state.event_log)
    ps.hand.pop(hand_index)
    _perform_evolution(state, ps, card, target, target_index)
    return _accept(state, mark)


def play_chicken_nugget(state: MatchState, player: int, hand_index: int, target_index: int) -> StepResult:
    """Evolve a basic Buddy straight to its stage 2, consuming the Nugget and the stage 2 card."""
    if not state.can_act(player):
        return _reject("chicken_nugget", "Not your turn.")
    if state.turn_count <= 1:
        return _reject("chicken_nugget", "No evolving on the first turn.")
    ps = state.players[player]
    if hand_index < 0 or hand_index >= len(ps.hand) or ps.hand[hand_index].special != "chicken_nugget":
        return _reject("chicken_nugget", "Hand index is not a Chicken Nugget.")
    target = board_card(ps, target_index)
    if target is None or not target.is_basic:
        return _reject("chicken_nugget", "Target must be a basic Buddy.")
    if not _placed_before_this_turn(state, target):
        return _reject("chicken_nugget", "That Buddy entered play this turn.")
    stage2_index = next(
        (i for i, c in enumerate(ps.hand) if i != hand_index and c.evolves_from_basic == target.id),
        None,
    )
    if stage2_index is None:
        return _reject("chicken_nugget", f"No stage 2 for {target.id} in hand.")

    mark = len(state.event_log)
    evolved = ps.hand[stage2_index]
    for i in sorted((hand_index, stage2_index), reverse=True):
        ps.hand.pop(i)
    _perform_evolution(state, ps, evolved, target, target_index)
    return _accept(state, mark)


def attack(state: MatchState) -> StepResult:
    """The current player's active attacks the opponent's active, then the turn passes."""
    player = state.current_player
    if not state.can_act(player):
        return _reject("attack", "Cannot attack now.")
    ps = state.players[player]
    opp = state.players[opponent(player)]
    attacker = ps.active
    defender = opp.active
    if attacker is None or defender is None:
        return _reject("attack", "Both players need an active Buddy.")

    mark = len(state.event_log)
    defender.hp = (defender.hp or 0) - attacker.attack_damage
    state.event_log.append(
        {"type": "attack", "player": player, "damage": attacker.attack_damage, "defender": defender.id}
    )
    if defender.hp <= 0:
        ps.points += 2 if defender.is_ex else 1
        opp.active = None
        state.event_log.append({"type": "knockout", "player": opponent(player), "card_id": defender.id})
        # Points are checked before the bench; either way the attacker wins.
        if ps.points >= state.config.points_to_win or not opp.has_bench():
            _end_game(state, player)
            return _accept(state, mark)
    _start_turn(state, opponent(player))
    return _accept(state, mark)


def promote(state: MatchState, player: int, bench_index: int) -> StepResult:
    if state.game_over:
        return _reject("promote", "Match already ended.")
    ps = state.players[player]
    if ps.active is not None:
        return _reject("promote", "Active slot is occupied.")
    if not 0 <= bench_index < len(ps.bench) or ps.bench[bench_index] is None:
        return _reject("promote", "No Buddy in that bench slot.")
    mark = len(state.event_log)
    ps.active = ps.bench[bench_index]
    ps.bench[bench_index] = None
    _update(state)
    return _accept(state, mark)


def retreat(state: MatchState, player: int, bench_index: int) -> StepResult:
    if not state.can_act(player):
        return _reject("retreat", "Not your turn.")
    ps = state.players[player]
    if ps.active is None:
        return _reject("retreat", "No active Buddy.")
    if not 0 <= bench_index < len(ps.bench) or ps.bench[bench_index] is None:
        return _reject("retreat", "No Buddy in that bench slot.")
    mark = len(state.event_log)
    ps.active, ps.bench[bench_index] = ps.bench[bench_index], ps.active
    _update(state)
    return _accept(state, mark)


def step(state: MatchState, action: Action) -> StepResult:
    """Apply a single action to the match state.

    This mutates `state` in-place but remains deterministic for a given
    (seed, deck config, action sequence).
    """
    # Log first so a replay sees every attempted action
    state.action_log.append(action)

    if isinstance(action, ReadyAction):
        return set_player_ready(state, action.player)
    if isinstance(action, PlayCardAction):
        return play_card(state, action.player, action.hand_index)
    if isinstance(action, EvolveAction):
        return evolve(state, action.player, action.hand_index, action.target_index)
    if isinstance(action, ChickenNuggetAction):
        return play_chicken_nugget(state, action.player, action.hand_index, action.target_index)
    if isinstance(action, AttackAction):
        if action.player != state.current_player:
            return _reject("attack", "Not your turn.")
        return attack(state)
    if isinstance(action, PromoteAction):
        return promote(state, action.player, action.bench_index)
    if isinstance(action, RetreatAction):
        return retreat(state, action.player, action.bench_index)
    if isinstance(action, EndTurnAction):
        if action.player != state.current_player:
            return _reject("end_turn", "Not your turn.")
        return end_turn(state)
    return _reject("step", "Unknown action.")


def new_match(
    catalog: CardCatalog,
    deck_config: DeckConfig,
    seed: int,
    config: MatchConfig | None = None,
    bus: EventBus | None = None,
) -> MatchState:
    """Create an isolated match in the setup phase; call `initialize_game` to deal."""
    cfg = config or MatchConfig()
    players = {
        p: PlayerState(deck=[], hand=[], bench=[None for _ in range(cfg.bench_slots)]) for p in (1, 2)
    }
    return MatchState(
        catalog=catalog,
        deck_config=deck_config,
        config=cfg,
        seed=seed,
        rng=random.Random(seed),
        bus=bus or EventBus(),
        players=players,
    )


def replay(
    catalog: CardCatalog,
    deck_config: DeckConfig,
    seed: int,
    actions: Iterable[Action],
    config: MatchConfig | None = None,
) -> MatchState:
    state = new_match(catalog, deck_config, seed=seed, config=config)
    initialize_game(state)
    for a in actions:
        step(state, a)
        if state.game_over:
            break
    return state

"""Headless rules engine for BuddyTCG.

IMPORTANT: This package must never import from `buddytcg.services`,
`buddytcg.simulation` or `buddytcg.cli`.
"""

from .actions import (
    AttackAction,
    ChickenNuggetAction,
    EndTurnAction,
    EvolveAction,
    PlayCardAction,
    PromoteAction,
    ReadyAction,
    RetreatAction,
)
from .ai import AIController, AISpec
from .cards import CardInstance, create_card, create_deck
from .events import EventBus
from .match import (
    MatchConfig,
    MatchState,
    PlayerState,
    StepResult,
    attack,
    board_card,
    end_turn,
    evolve,
    get_player,
    initialize_game,
    new_match,
    play_card,
    play_chicken_nugget,
    promote,
    replay,
    retreat,
    set_player_ready,
    step,
)
from .types import (
    CardCatalog,
    CardTemplate,
    DeckConfig,
    DeckEntry,
    GameSetupError,
    NoBasicCreatureError,
    UnknownCardError,
)

__all__ = [
    "AIController",
    "AISpec",
    "AttackAction",
    "CardCatalog",
    "CardInstance",
    "CardTemplate",
    "ChickenNuggetAction",
    "DeckConfig",
    "DeckEntry",
    "EndTurnAction",
    "EventBus",
    "EvolveAction",
    "GameSetupError",
    "MatchConfig",
    "MatchState",
    "NoBasicCreatureError",
    "PlayCardAction",
    "PlayerState",
    "PromoteAction",
    "ReadyAction",
    "RetreatAction",
    "StepResult",
    "UnknownCardError",
    "attack",
    "board_card",
    "create_card",
    "create_deck",
    "end_turn",
    "evolve",
    "get_player",
    "initialize_game",
    "new_match",
    "play_card",
    "play_chicken_nugget",
    "promote",
    "replay",
    "retreat",
    "set_player_ready",
    "step",
]

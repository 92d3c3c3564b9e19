from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

CardKind = Literal["basic", "evolution", "supporter", "item"]
ItemSpecial = Literal["coach_whistle", "chicken_nugget"]

ACTIVE_SLOT = -1


class UnknownCardError(KeyError):
    """Raised when a template id is missing from the catalog."""

    def __init__(self, card_id: str) -> None:
        super().__init__(card_id)
        self.card_id = card_id

    def __str__(self) -> str:
        return f"Card with id {self.card_id} not found."


class GameSetupError(RuntimeError):
    pass


class NoBasicCreatureError(GameSetupError):
    """A player cannot field a basic Buddy; the deck list is broken."""


@dataclass(frozen=True)
class CardTemplate:
    id: str
    name: str
    kind: CardKind
    hp: int | None = None
    attack_name: str | None = None
    attack_damage: int = 0
    evolves_from: str | None = None
    evolves_from_basic: str | None = None
    is_ex: bool = False
    rule: str | None = None
    special: ItemSpecial | None = None

    @property
    def is_basic(self) -> bool:
        return self.kind == "basic"

    @property
    def is_supporter(self) -> bool:
        return self.kind == "supporter"

    @property
    def is_item(self) -> bool:
        return self.kind == "item"


@dataclass(frozen=True)
class CardCatalog:
    """Immutable template table used by the engine."""

    cards: dict[str, CardTemplate]

    def get(self, card_id: str) -> CardTemplate:
        try:
            return self.cards[card_id]
        except KeyError:
            raise UnknownCardError(card_id) from None

    def all_ids(self) -> Sequence[str]:
        return list(self.cards.keys())


@dataclass(frozen=True)
class DeckEntry:
    card_id: str
    count: int


@dataclass(frozen=True)
class DeckConfig:
    name: str
    cards: tuple[DeckEntry, ...]

    def size(self) -> int:
        return sum(e.count for e in self.cards)

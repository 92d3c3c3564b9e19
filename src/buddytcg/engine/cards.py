from __future__ import annotations

import itertools
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence, TypeVar

from .types import CardCatalog, CardKind, CardTemplate, DeckConfig

if TYPE_CHECKING:
    from .match import PlayerState

T = TypeVar("T")

# Shared by every match in the process so uids never repeat.
_uid_counter = itertools.count()


@dataclass(eq=False)
class CardInstance:
    """A uniquely identified copy of a template living in exactly one zone."""

    template: CardTemplate
    hp: int | None
    max_hp: int | None
    uid: str
    turn_placed: int | None = None

    @property
    def id(self) -> str:
        return self.template.id

    @property
    def name(self) -> str:
        return self.template.name

    @property
    def kind(self) -> CardKind:
        return self.template.kind

    @property
    def attack_damage(self) -> int:
        return self.template.attack_damage

    @property
    def evolves_from(self) -> str | None:
        return self.template.evolves_from

    @property
    def evolves_from_basic(self) -> str | None:
        return self.template.evolves_from_basic

    @property
    def is_basic(self) -> bool:
        return self.template.is_basic

    @property
    def is_ex(self) -> bool:
        return self.template.is_ex

    @property
    def is_supporter(self) -> bool:
        return self.template.is_supporter

    @property
    def is_item(self) -> bool:
        return self.template.is_item

    @property
    def special(self) -> str | None:
        return self.template.special

    @property
    def damage_taken(self) -> int:
        return (self.max_hp or 0) - (self.hp or 0)


def create_card(catalog: CardCatalog, card_id: str) -> CardInstance:
    template = catalog.get(card_id)
    return CardInstance(
        template=template,
        hp=template.hp,
        max_hp=template.hp,
        uid=str(next(_uid_counter)),
    )


def shuffle(items: Sequence[T], rng: random.Random) -> list[T]:
    out = list(items)
    rng.shuffle(out)
    return out


def create_deck(catalog: CardCatalog, deck_config: DeckConfig, rng: random.Random) -> list[CardInstance]:
    deck = [create_card(catalog, e.card_id) for e in deck_config.cards for _ in range(e.count)]
    return shuffle(deck, rng)


def draw(ps: PlayerState, count: int) -> list[CardInstance]:
    # The end of the deck list is the top.
    if count <= 0 or not ps.deck:
        return []
    drawn = ps.deck[-count:]
    del ps.deck[-count:]
    ps.hand.extend(drawn)
    return drawn

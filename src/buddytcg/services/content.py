from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from buddytcg.engine.types import (
    CardCatalog,
    CardKind,
    CardTemplate,
    DeckConfig,
    DeckEntry,
    ItemSpecial,
)


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def _load_schema(path: Path) -> object:
    return _load_json(path)


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _optional_str(obj: Mapping[str, object], key: str) -> str | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _optional_int(obj: Mapping[str, object], key: str) -> int | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _flag(obj: Mapping[str, object], key: str) -> bool:
    return obj.get(key) is True


def _parse_kind(raw: Mapping[str, object], card_id: str) -> CardKind:
    """Map the catalog's capability flags onto exactly one card kind."""
    is_basic = _flag(raw, "is_basic")
    is_trainer = _flag(raw, "is_trainer")
    is_supporter = _flag(raw, "is_supporter")
    is_item = _flag(raw, "is_item")

    if is_trainer:
        if is_basic or is_supporter == is_item:
            raise ContentError(f"{card_id}: a trainer must be exactly one of supporter or item")
        return "supporter" if is_supporter else "item"
    if is_supporter or is_item:
        raise ContentError(f"{card_id}: supporters and items must be trainers")
    if raw.get("hp") is None:
        raise ContentError(f"{card_id}: Buddies need hp")
    if is_basic:
        return "basic"
    if raw.get("evolves_from") is None:
        raise ContentError(f"{card_id}: a non-basic Buddy must declare evolves_from")
    return "evolution"


def _parse_card(raw: Mapping[str, object]) -> CardTemplate:
    card_id = _require_str(raw, "id")
    kind = _parse_kind(raw, card_id)
    special = _optional_str(raw, "special")
    if special is not None and kind != "item":
        raise ContentError(f"{card_id}: only items can have a special rule")
    return CardTemplate(
        id=card_id,
        name=_require_str(raw, "name"),
        kind=kind,
        hp=_optional_int(raw, "hp"),
        attack_name=_optional_str(raw, "attack_name"),
        attack_damage=_optional_int(raw, "attack_damage") or 0,
        evolves_from=_optional_str(raw, "evolves_from"),
        evolves_from_basic=_optional_str(raw, "evolves_from_basic"),
        is_ex=_flag(raw, "is_ex"),
        rule=_optional_str(raw, "rule"),
        special=special,  # type: ignore[arg-type]  # schema restricts values
    )


def _check_references(cards: Mapping[str, CardTemplate]) -> None:
    for card in cards.values():
        for ref in (card.evolves_from, card.evolves_from_basic):
            if ref is not None and ref not in cards:
                raise ContentError(f"{card.id}: evolves from unknown card {ref}")
        if card.evolves_from_basic is not None and not cards[card.evolves_from_basic].is_basic:
            raise ContentError(f"{card.id}: evolves_from_basic must name a basic Buddy")


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_catalog(self) -> CardCatalog:
        cards_path = self._data_dir / "cards.json"
        schema = _load_schema(self._schema_dir / "cards.schema.json")
        raw = _load_json(cards_path)
        validate_json(raw, schema, context=str(cards_path))

        if not isinstance(raw, dict):
            raise ContentError("cards.json must be an object")
        raw_cards = raw.get("cards")
        if not isinstance(raw_cards, list):
            raise ContentError("cards.json.cards must be a list")

        cards: dict[str, CardTemplate] = {}
        for item in raw_cards:
            if not isinstance(item, dict):
                continue
            card = _parse_card(item)
            if card.id in cards:
                raise ContentError(f"Duplicate card id: {card.id}")
            cards[card.id] = card
        _check_references(cards)
        return CardCatalog(cards=cards)

    def load_decks(self, catalog: CardCatalog | None = None) -> dict[str, DeckConfig]:
        """Load deck lists; with a catalog, every card id is checked against it."""
        path = self._data_dir / "decks.json"
        schema = _load_schema(self._schema_dir / "decks.schema.json")
        raw = _load_json(path)
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("decks.json must be an object")
        raw_decks = raw.get("decks")
        if not isinstance(raw_decks, list):
            raise ContentError("decks.json.decks must be a list")

        decks: dict[str, DeckConfig] = {}
        for d in raw_decks:
            if not isinstance(d, dict):
                continue
            name = _require_str(d, "name")
            entries: list[DeckEntry] = []
            raw_entries = d.get("cards", [])
            if isinstance(raw_entries, list):
                for e in raw_entries:
                    if not isinstance(e, dict):
                        continue
                    card_id = _require_str(e, "id")
                    if catalog is not None and card_id not in catalog.cards:
                        raise ContentError(f"Deck {name!r} references unknown card {card_id}")
                    entries.append(DeckEntry(card_id=card_id, count=_require_int(e, "count")))
            decks[name] = DeckConfig(name=name, cards=tuple(entries))
        return decks

    def default_deck(self, catalog: CardCatalog | None = None) -> DeckConfig:
        # First deck in the file is the default
        return next(iter(self.load_decks(catalog).values()))

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        catalog = self.load_catalog()
        _ = self.load_decks(catalog)

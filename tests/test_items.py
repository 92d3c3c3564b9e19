from __future__ import annotations

from collections import Counter

from buddytcg.engine.cards import create_card
from buddytcg.engine.match import initialize_game, new_match, play_card, set_player_ready
from buddytcg.paths import get_paths
from buddytcg.services.content import ContentService


def _load_content():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    catalog = content.load_catalog()
    return catalog, content.default_deck(catalog)


def _playing_match(seed: int = 5):
    catalog, deck = _load_content()
    state = new_match(catalog, deck, seed=seed)
    initialize_game(state)
    for p in (1, 2):
        hand = state.players[p].hand
        play_card(state, p, next(i for i, c in enumerate(hand) if c.is_basic))
        set_player_ready(state, p)
    return state


def test_coach_whistle_draws_exactly_one_basic() -> None:
    state = _playing_match()
    catalog = state.catalog
    p1 = state.players[1]
    p1.hand = [create_card(catalog, "base-007")]
    p1.deck = [
        create_card(catalog, "base-001"),
        create_card(catalog, "base-003"),
        create_card(catalog, "base-002"),
        create_card(catalog, "base-004"),
    ]

    assert play_card(state, 1, 0)
    assert all(c.id != "base-007" for c in p1.hand)
    assert len(p1.hand) == 1
    drawn = p1.hand[0]
    assert drawn.is_basic
    assert drawn.id in ("base-001", "base-003")

    assert len(p1.deck) == 3
    remaining = Counter(c.id for c in p1.deck)
    assert remaining["base-002"] == 1
    assert remaining["base-004"] == 1
    assert remaining["base-001"] + remaining["base-003"] == 1


def test_coach_whistle_with_no_basics_is_still_spent() -> None:
    state = _playing_match()
    catalog = state.catalog
    p1 = state.players[1]
    p1.hand = [create_card(catalog, "base-007")]
    p1.deck = [create_card(catalog, "base-002"), create_card(catalog, "base-004")]

    assert play_card(state, 1, 0)
    assert p1.hand == []
    assert sorted(c.id for c in p1.deck) == ["base-002", "base-004"]


def test_coach_whistle_rejected_during_setup() -> None:
    catalog, deck = _load_content()
    state = new_match(catalog, deck, seed=9)
    initialize_game(state)
    p1 = state.players[1]
    p1.hand.append(create_card(catalog, "base-007"))
    hand_before = [c.uid for c in p1.hand]
    deck_before = [c.uid for c in p1.deck]

    assert not play_card(state, 1, len(p1.hand) - 1)
    assert [c.uid for c in p1.hand] == hand_before
    assert [c.uid for c in p1.deck] == deck_before


def test_coach_whistle_uses_match_rng() -> None:
    picks = set()
    for seed in range(30):
        state = _playing_match(seed)
        catalog = state.catalog
        p1 = state.players[1]
        p1.hand = [create_card(catalog, "base-007")]
        p1.deck = [create_card(catalog, "base-001"), create_card(catalog, "base-003")]
        play_card(state, 1, 0)
        picks.add(p1.hand[0].id)
    assert picks == {"base-001", "base-003"}

from __future__ import annotations

import json

from buddytcg.engine.cards import create_card
from buddytcg.engine.events import (
    GAME_ENDED,
    GAME_INITIALIZED,
    GAME_STATE_UPDATED,
    TURN_STARTED,
    EventBus,
)
from buddytcg.engine.match import attack, end_turn, initialize_game, new_match, play_card, set_player_ready
from buddytcg.paths import get_paths
from buddytcg.services.content import ContentService


class EventRecorder:
    """Keeps every event published on a bus, in order."""

    def __init__(self, bus: EventBus, *names: str) -> None:
        self.events: list[tuple[str, object]] = []
        for name in names or (GAME_INITIALIZED, GAME_STATE_UPDATED, TURN_STARTED, GAME_ENDED):
            bus.subscribe(name, lambda payload, name=name: self.events.append((name, payload)))

    def names(self) -> list[str]:
        return [n for n, _ in self.events]

    def clear(self) -> None:
        self.events.clear()


def _load_content():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    catalog = content.load_catalog()
    return catalog, content.default_deck(catalog)


def test_bus_delivers_in_order_and_unsubscribes() -> None:
    bus = EventBus()
    seen: list[tuple[str, object]] = []

    def first(payload):
        seen.append(("first", payload["n"]))

    def second(payload):
        seen.append(("second", payload["n"]))

    bus.subscribe("tick", first)
    bus.subscribe("tick", second)
    assert bus.has_subscribers("tick")
    assert not bus.has_subscribers("tock")

    bus.publish("tick", {"n": 1})
    bus.publish("tock", {"n": 99})
    bus.unsubscribe("tick", first)
    bus.publish("tick", {"n": 2})

    assert seen == [("first", 1), ("second", 1), ("second", 2)]
    # Unknown handlers are ignored
    bus.unsubscribe("tick", first)
    bus.unsubscribe("nothing", first)


def test_match_lifecycle_events() -> None:
    catalog, deck = _load_content()
    bus = EventBus()
    rec = EventRecorder(bus)
    state = new_match(catalog, deck, seed=2, bus=bus)

    initialize_game(state)
    assert rec.names() == [GAME_INITIALIZED]
    rec.clear()

    for p in (1, 2):
        idx = next(i for i, c in enumerate(state.players[p].hand) if c.is_basic)
        play_card(state, p, idx)
    assert rec.names() == [GAME_STATE_UPDATED, GAME_STATE_UPDATED]
    rec.clear()

    set_player_ready(state, 1)
    assert rec.names() == [GAME_STATE_UPDATED]
    rec.clear()

    set_player_ready(state, 2)
    assert rec.names() == [TURN_STARTED, GAME_STATE_UPDATED]
    assert rec.events[0][1] == {"current_player": 1}
    update = rec.events[1][1]
    assert update["turn_count"] == 1
    assert update["phase"] == "playing"
    # Snapshots are plain JSON
    json.dumps(update)


def test_rejected_moves_publish_nothing() -> None:
    catalog, deck = _load_content()
    bus = EventBus()
    state = new_match(catalog, deck, seed=2, bus=bus)
    initialize_game(state)
    rec = EventRecorder(bus)

    res = set_player_ready(state, 1)  # no active yet
    assert not res
    assert res.events == []
    assert not play_card(state, 1, 42)
    assert rec.events == []


def test_game_ended_carries_winner() -> None:
    catalog, deck = _load_content()
    bus = EventBus()
    state = new_match(catalog, deck, seed=4, bus=bus)
    initialize_game(state)
    for p in (1, 2):
        idx = next(i for i, c in enumerate(state.players[p].hand) if c.is_basic)
        play_card(state, p, idx)
        set_player_ready(state, p)
    winners: list[object] = []
    bus.subscribe(GAME_ENDED, lambda payload: winners.append(payload["winner"]))

    state.players[1].active = create_card(catalog, "base-001")
    state.players[2].active.hp = 5
    res = attack(state)

    assert res
    assert winners == [1]
    assert [e["type"] for e in res.events] == ["attack", "knockout", GAME_ENDED, GAME_STATE_UPDATED]
    assert not end_turn(state)
    assert winners == [1]


def test_turn_started_payload_names_new_player() -> None:
    catalog, deck = _load_content()
    bus = EventBus()
    state = new_match(catalog, deck, seed=6, bus=bus)
    initialize_game(state)
    for p in (1, 2):
        idx = next(i for i, c in enumerate(state.players[p].hand) if c.is_basic)
        play_card(state, p, idx)
        set_player_ready(state, p)
    rec = EventRecorder(bus, TURN_STARTED)

    end_turn(state)
    end_turn(state)
    assert [payload["current_player"] for _, payload in rec.events] == [2, 1]


def test_each_match_owns_its_bus() -> None:
    catalog, deck = _load_content()
    a = new_match(catalog, deck, seed=1)
    b = new_match(catalog, deck, seed=1)
    assert a.bus is not b.bus
    rec = EventRecorder(a.bus)
    initialize_game(b)
    assert rec.events == []

"""Batch AI-vs-AI tournaments and their statistics."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from buddytcg.engine.ai import Strategy, make_controller
from buddytcg.engine.cards import CardInstance
from buddytcg.engine.match import MatchConfig, initialize_game, new_match
from buddytcg.engine.types import CardCatalog, DeckConfig, GameSetupError
from buddytcg.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TournamentConfig:
    total_matches: int = 2000
    p1_ai: Strategy = "greedy"
    p2_ai: Strategy = "naive"
    seed: int = 0
    # Guards against matches where neither side can make progress
    max_turn_loops: int = 200
    progress_every: int = 100


@dataclass
class CardUsage:
    name: str
    total_drawn: int = 0
    total_played: int = 0

    @property
    def use_rate(self) -> float:
        if self.total_drawn <= 0:
            return 0.0
        return self.total_played / self.total_drawn * 100.0


@dataclass
class MatchOutcome:
    seed: int
    winner: int | None
    turns: int
    drawn: dict[int, Counter[str]]
    played: dict[int, Counter[str]]
    error: str | None = None


def count_cards(cards: Iterable[CardInstance | None]) -> Counter[str]:
    return Counter(c.id for c in cards if c is not None)


def run_match(
    catalog: CardCatalog,
    deck_config: DeckConfig,
    seed: int,
    p1_ai: Strategy = "greedy",
    p2_ai: Strategy = "naive",
    max_turn_loops: int = 200,
    config: MatchConfig | None = None,
) -> MatchOutcome:
    """Play one AI-vs-AI match on a fresh, isolated state."""
    state = new_match(catalog, deck_config, seed=seed, config=config)
    try:
        initialize_game(state)
        # Opening hands count as drawn
        holdings = {p: count_cards(state.players[p].deck) + count_cards(state.players[p].hand) for p in (1, 2)}
        ais = {1: make_controller(state, 1, p1_ai), 2: make_controller(state, 2, p2_ai)}
        ais[1].setup()
        ais[2].setup()
    except GameSetupError as e:
        logger.error("Match %s failed during setup: %s", seed, e)
        return MatchOutcome(
            seed=seed,
            winner=None,
            turns=0,
            drawn={1: Counter(), 2: Counter()},
            played={1: Counter(), 2: Counter()},
            error=str(e),
        )

    loops = 0
    while not state.game_over and loops < max_turn_loops:
        loops += 1
        ais[state.current_player].execute_turn()
    if not state.game_over:
        logger.warning("Match %s hit the %s turn-loop cap; scored as a tie", seed, max_turn_loops)

    drawn: dict[int, Counter[str]] = {}
    played: dict[int, Counter[str]] = {}
    for p in (1, 2):
        ps = state.players[p]
        deck_end = count_cards(ps.deck)
        hand_end = count_cards(ps.hand)
        drawn[p] = Counter({cid: n - deck_end[cid] for cid, n in holdings[p].items()})
        played[p] = Counter({cid: n - hand_end[cid] for cid, n in drawn[p].items()})
    return MatchOutcome(seed=seed, winner=state.winner, turns=state.turn_count, drawn=drawn, played=played)


@dataclass
class TournamentStats:
    config: TournamentConfig
    p1_wins: int = 0
    p2_wins: int = 0
    ties: int = 0
    total_turns: int = 0
    shortest_game: int | None = None
    longest_game: int = 0
    card_usage: dict[int, dict[str, CardUsage]] = field(default_factory=dict)

    @classmethod
    def for_catalog(cls, config: TournamentConfig, catalog: CardCatalog) -> "TournamentStats":
        usage = {p: {cid: CardUsage(name=t.name) for cid, t in catalog.cards.items()} for p in (1, 2)}
        return cls(config=config, card_usage=usage)

    @property
    def finished(self) -> int:
        return self.p1_wins + self.p2_wins

    @property
    def average_turns(self) -> float:
        return self.total_turns / self.finished if self.finished else 0.0

    def win_rate(self, player: int) -> float:
        wins = self.p1_wins if player == 1 else self.p2_wins
        total = self.config.total_matches
        return wins / total * 100.0 if total else 0.0

    def record(self, outcome: MatchOutcome) -> None:
        if outcome.winner is None:
            self.ties += 1
        else:
            if outcome.winner == 1:
                self.p1_wins += 1
            else:
                self.p2_wins += 1
            self.total_turns += outcome.turns
            if self.shortest_game is None or outcome.turns < self.shortest_game:
                self.shortest_game = outcome.turns
            self.longest_game = max(self.longest_game, outcome.turns)

        for p in (1, 2):
            usage = self.card_usage[p]
            for cid, n in outcome.drawn[p].items():
                usage[cid].total_drawn += n
            for cid, n in outcome.played[p].items():
                usage[cid].total_played += n

    def usage_report(self, player: int) -> list[dict[str, object]]:
        """Cards that were drawn at least once, most played first."""
        rows = [u for u in self.card_usage[player].values() if u.total_drawn > 0]
        rows.sort(key=lambda u: u.total_played, reverse=True)
        return [
            {"name": u.name, "drawn": u.total_drawn, "played": u.total_played, "use_pct": round(u.use_rate, 1)}
            for u in rows
        ]

    def to_dict(self) -> dict[str, object]:
        return {
            "summary": {
                "total_matches": self.config.total_matches,
                "p1_ai": self.config.p1_ai,
                "p2_ai": self.config.p2_ai,
                "p1_wins": self.p1_wins,
                "p2_wins": self.p2_wins,
                "ties": self.ties,
                "p1_win_rate": self.win_rate(1),
                "p2_win_rate": self.win_rate(2),
            },
            "game_durations": {
                "total_turns": self.total_turns,
                "shortest_game": self.shortest_game,
                "longest_game": self.longest_game,
                "average_turns": self.average_turns,
            },
            "card_usage": {
                f"player{p}": {
                    cid: {
                        "name": u.name,
                        "total_drawn": u.total_drawn,
                        "total_played": u.total_played,
                        "use_rate": u.use_rate,
                    }
                    for cid, u in self.card_usage[p].items()
                }
                for p in (1, 2)
            },
        }


def run_tournament(
    catalog: CardCatalog,
    deck_config: DeckConfig,
    config: TournamentConfig | None = None,
    telemetry: TelemetryService | None = None,
) -> TournamentStats:
    cfg = config or TournamentConfig()
    stats = TournamentStats.for_catalog(cfg, catalog)
    logger.info("Matchup: %s vs. %s, %s matches", cfg.p1_ai, cfg.p2_ai, cfg.total_matches)

    for i in range(cfg.total_matches):
        outcome = run_match(
            catalog,
            deck_config,
            seed=cfg.seed + i,
            p1_ai=cfg.p1_ai,
            p2_ai=cfg.p2_ai,
            max_turn_loops=cfg.max_turn_loops,
        )
        stats.record(outcome)
        if telemetry is not None:
            telemetry.log(
                "match_finished",
                {"seed": outcome.seed, "winner": outcome.winner, "turns": outcome.turns, "error": outcome.error},
            )
        if cfg.progress_every and (i + 1) % cfg.progress_every == 0:
            logger.info("... Completed %s matches.", i + 1)
    return stats

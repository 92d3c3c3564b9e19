from __future__ import annotations

import json
from pathlib import Path

from buddytcg.cli import main
from buddytcg.engine.match import MatchConfig
from buddytcg.engine.types import DeckConfig, DeckEntry
from buddytcg.paths import get_paths
from buddytcg.services.content import ContentService
from buddytcg.services.telemetry import TelemetryService
from buddytcg.simulation import MatchOutcome, TournamentConfig, TournamentStats, run_match, run_tournament


def _load_content():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    catalog = content.load_catalog()
    return catalog, content.default_deck(catalog)


def test_small_tournament_accounts_for_every_match(tmp_path: Path) -> None:
    catalog, deck = _load_content()
    telemetry = TelemetryService(tmp_path / "runs.jsonl", run_id="t1")
    stats = run_tournament(catalog, deck, TournamentConfig(total_matches=12, seed=100), telemetry=telemetry)

    assert stats.p1_wins + stats.p2_wins + stats.ties == 12
    if stats.finished:
        assert stats.shortest_game is not None
        assert stats.shortest_game <= stats.average_turns <= stats.longest_game
    for p in (1, 2):
        for usage in stats.card_usage[p].values():
            assert 0 <= usage.total_played <= usage.total_drawn
            assert 0.0 <= usage.use_rate <= 100.0
        # Every player sees at least an opening hand
        assert sum(u.total_drawn for u in stats.card_usage[p].values()) >= 5 * 12

    records = telemetry.read_all()
    assert len(records) == 12
    assert records[0]["type"] == "match_finished"
    assert records[0]["run_id"] == "t1"
    assert [r["payload"]["seed"] for r in records] == list(range(100, 112))


def test_summary_is_json_serialisable() -> None:
    catalog, deck = _load_content()
    stats = run_tournament(catalog, deck, TournamentConfig(total_matches=3, p1_ai="naive", p2_ai="greedy"))
    data = json.loads(json.dumps(stats.to_dict()))

    assert data["summary"]["total_matches"] == 3
    assert data["summary"]["p1_ai"] == "naive"
    assert set(data["card_usage"]) == {"player1", "player2"}
    assert set(data["card_usage"]["player1"]) == set(catalog.all_ids())


def test_setup_failure_is_recorded_not_raised() -> None:
    catalog, _ = _load_content()
    no_basics = DeckConfig(name="no basics", cards=(DeckEntry("base-006", 20),))
    outcome = run_match(catalog, no_basics, seed=3, config=MatchConfig(max_mulligans=3))

    assert outcome.error is not None
    assert outcome.winner is None
    assert outcome.turns == 0
    assert outcome.drawn is not outcome.played
    assert outcome.drawn[1] is not outcome.drawn[2]


def test_stats_record_ties_and_wins() -> None:
    catalog, _ = _load_content()
    stats = TournamentStats.for_catalog(TournamentConfig(total_matches=4), catalog)
    empty = {1: {}, 2: {}}
    stats.record(MatchOutcome(seed=0, winner=1, turns=9, drawn={1: {"base-001": 3}, 2: {}}, played={1: {"base-001": 2}, 2: {}}))
    stats.record(MatchOutcome(seed=1, winner=2, turns=5, drawn=empty, played=empty))
    stats.record(MatchOutcome(seed=2, winner=None, turns=200, drawn=empty, played=empty))

    assert (stats.p1_wins, stats.p2_wins, stats.ties) == (1, 1, 1)
    assert stats.shortest_game == 5
    assert stats.longest_game == 9
    assert stats.average_turns == 7.0
    assert stats.win_rate(1) == 25.0
    assert stats.usage_report(1) == [{"name": "Axolittle", "drawn": 3, "played": 2, "use_pct": 66.7}]
    assert stats.usage_report(2) == []


def test_cli_writes_summary(tmp_path: Path, capsys) -> None:
    out = tmp_path / "out" / "summary.json"
    telemetry = tmp_path / "matches.jsonl"
    code = main(["--matches", "4", "--seed", "7", "--output", str(out), "--telemetry", str(telemetry)])

    assert code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["summary"]["total_matches"] == 4
    assert data["summary"]["p1_ai"] == "greedy"
    assert len(telemetry.read_text(encoding="utf-8").splitlines()) == 4
    printed = capsys.readouterr().out
    assert "Tournament Finished" in printed
    assert "(Drawn includes the opening hand)" in printed

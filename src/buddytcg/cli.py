from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path

from buddytcg.paths import get_paths
from buddytcg.services.content import ContentService
from buddytcg.services.telemetry import TelemetryService
from buddytcg.simulation import TournamentConfig, TournamentStats, run_tournament

logger = logging.getLogger("buddytcg.cli")


def _print_report(stats: TournamentStats, elapsed: float) -> None:
    cfg = stats.config
    print(f"\n--- Tournament Finished in {elapsed:.2f}s ---")
    print(f"P1 ({cfg.p1_ai}) Wins: {stats.p1_wins} ({stats.win_rate(1):.1f}%)")
    print(f"P2 ({cfg.p2_ai}) Wins: {stats.p2_wins} ({stats.win_rate(2):.1f}%)")
    shortest = stats.shortest_game if stats.shortest_game is not None else "-"
    print(f"Avg Duration: {stats.average_turns:.2f}, Shortest: {shortest}, Longest: {stats.longest_game}")
    if stats.ties > 0:
        print(f"Ties/Errors: {stats.ties}")

    for player, ai in ((1, cfg.p1_ai), (2, cfg.p2_ai)):
        print(f"\n--- Card Use Rate for P{player} ({ai}) ---")
        print("(Drawn includes the opening hand)")
        print(f"{'Name':<20} {'Drawn':>7} {'Played':>7} {'Use %':>7}")
        for row in stats.usage_report(player):
            print(f"{row['name']:<20} {row['drawn']:>7} {row['played']:>7} {row['use_pct']:>7}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="buddytcg-tournament")
    parser.add_argument("--matches", type=int, default=2000)
    parser.add_argument("--p1", choices=["naive", "greedy"], default="greedy")
    parser.add_argument("--p2", choices=["naive", "greedy"], default="naive")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--max-turn-loops", type=int, default=200)
    parser.add_argument("--deck", default=None, help="deck name from decks.json (default: first deck)")
    parser.add_argument("--output", type=Path, default=Path("tournament_summary.json"))
    parser.add_argument("--telemetry", type=Path, default=None, help="append one JSONL record per match")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    paths = get_paths()
    content = ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir)
    catalog = content.load_catalog()
    decks = content.load_decks(catalog)
    if args.deck is None:
        deck = next(iter(decks.values()))
    elif args.deck in decks:
        deck = decks[args.deck]
    else:
        parser.error(f"unknown deck {args.deck!r}; choose from {', '.join(decks)}")

    config = TournamentConfig(
        total_matches=args.matches,
        p1_ai=args.p1,
        p2_ai=args.p2,
        seed=args.seed,
        max_turn_loops=args.max_turn_loops,
    )
    telemetry = TelemetryService(args.telemetry) if args.telemetry is not None else None

    logger.info("Starting Tournament...")
    start = time.monotonic()
    stats = run_tournament(catalog, deck, config, telemetry=telemetry)
    _print_report(stats, time.monotonic() - start)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(json.dumps(stats.to_dict(), indent=2), encoding="utf-8")
    print(f"\nSuccessfully wrote results to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

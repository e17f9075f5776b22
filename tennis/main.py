"""Entry point for the tennis predictor command line."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.table import Table

from tennis.api.models import LiveData, PredictionInput
from tennis.config import Settings, load_settings
from tennis.services.data_service import PlayerNotFoundError, TennisService
from tennis.services.sync import DATA_TYPES, SyncService

console = Console()


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tennis", description="Tennis match predictor")
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Show cache stats (the cache lives in this process, so one-shot commands start cold)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sync = sub.add_parser("sync", help="Run one data sync pass")
    sync.add_argument(
        "--data-types", nargs="+", choices=DATA_TYPES, default=list(DATA_TYPES),
        help="What to pull from the API",
    )
    sync.add_argument("--tour", choices=["atp", "wta", "both"], default=None,
                      help="Defaults to the configured tours")
    sync.add_argument("--days-back", type=int, default=None,
                      help="Match window in days (default: sync_match_days)")
    sync.add_argument("--force", action="store_true", help="Refresh every known player")
    sub.add_parser("serve-sync", help="Sync every sync_interval_hours until stopped")
    sub.add_parser("players", help="List players")

    player = sub.add_parser("player", help="Show a player with latest stats")
    player.add_argument("name")

    predict = sub.add_parser("predict", help="Predict a match")
    predict.add_argument("player1")
    predict.add_argument("player2")
    predict.add_argument("--surface", choices=["clay", "grass", "hard", "indoor"], default="hard")
    predict.add_argument("--level", default=None, help="Tournament level")

    history = sub.add_parser("predictions", help="Recent predictions")
    history.add_argument("--limit", type=int, default=50)
    history.add_argument("--player", default=None)

    live = sub.add_parser("live", help="Live data from the tennis API")
    live.add_argument("data_type", choices=["rankings", "matches", "tournaments"])
    live.add_argument("--tour", choices=["atp", "wta"], default="atp")
    live.add_argument("--days", type=int, default=7)
    return parser


def _print_live(data: LiveData) -> None:
    if data.rankings is not None:
        table = Table("Rank", "Player", "Points", "Country", title="Rankings")
        for r in data.rankings:
            table.add_row(str(r.ranking), r.player_name, str(r.points), r.country)
    elif data.matches is not None:
        table = Table("Date", "Tournament", "Match", "Winner", "Status", title="Matches")
        for m in data.matches:
            table.add_row(
                m.date, m.tournament_name, f"{m.player1_name} v {m.player2_name}",
                m.winner_name or "-", m.status,
            )
    else:
        table = Table("Start", "Tournament", "Level", "Surface", "Location", title="Tournaments")
        for t in data.tournaments or []:
            table.add_row(t.start_date, t.name, t.level, t.surface, t.location)
    console.print(table)
    if data.from_cache:
        console.print("[dim](cached)[/dim]")


async def run_command(args: argparse.Namespace, settings: Settings) -> int:
    service = TennisService(settings)
    try:
        if args.command == "serve-sync":
            sync = SyncService(settings, service.store, service.client, service.invalidation)
            await sync.run_forever()
            return 0

        if args.command == "sync":
            sync = SyncService(settings, service.store, service.client, service.invalidation)
            result = await sync.run(
                args.data_types,
                tour=args.tour,
                days_back=args.days_back,
                force_update=args.force,
            )
            console.print(
                f"Players: {result.players}  Rankings: {result.rankings}  "
                f"Matches: {result.matches}  Players updated: {result.players_updated}"
            )
            for error in result.errors:
                console.print(f"[red]{error}[/red]")
            return 0 if result.success else 1

        if args.command == "players":
            listing = service.list_players()
            table = Table("Name", "Country", "Hand", title=f"Players ({len(listing.players)})")
            for p in listing.players:
                table.add_row(p.name, p.country or "-", p.dominant_hand or "-")
            console.print(table)

        elif args.command == "player":
            profile = service.get_player(args.name)
            console.print(f"[bold]{profile.player.name}[/bold] ({profile.player.country or '-'})")
            if profile.latest_stats:
                s = profile.latest_stats
                console.print(
                    f"Ranking: {s.ranking or 'unranked'}  Elo: {s.elo_rating or '-'}  "
                    f"Career win %: {s.career_win_pct * 100:.1f}  Form: {s.recent_form_5}/5"
                )

        elif args.command == "predict":
            result = service.predict_match(PredictionInput(
                player1_name=args.player1,
                player2_name=args.player2,
                surface=args.surface,
                tournament_level=args.level,
            ))
            console.print(
                f"[bold green]{result.predicted_winner}[/bold green] "
                f"{result.win_probability * 100:.1f}% ({result.confidence_level} confidence)"
            )
            table = Table("Feature", "Importance", "Detail")
            for fi in result.feature_importance:
                table.add_row(fi.feature, f"{fi.importance:.3f}", fi.description)
            console.print(table)

        elif args.command == "predictions":
            page = service.get_predictions(args.limit, args.player)
            table = Table("Date", "Match", "Surface", "Winner", "Prob", title=f"Predictions ({page.total})")
            for p in page.predictions:
                table.add_row(
                    p.created_at.strftime("%Y-%m-%d %H:%M"),
                    f"{p.player1_name} v {p.player2_name}",
                    p.surface, p.predicted_winner, f"{p.win_probability * 100:.1f}%",
                )
            console.print(table)

        elif args.command == "live":
            if args.data_type == "rankings":
                data = await service.get_live_rankings(args.tour)
            elif args.data_type == "matches":
                data = await service.get_live_matches(args.tour, args.days)
            else:
                data = await service.get_live_tournaments(args.tour)
            _print_live(data)

        if args.verbose:
            stats = service.cache.cache.stats() if hasattr(service.cache.cache, "stats") else None
            if stats is not None:
                console.print(
                    f"[dim]cache size={stats.size} hits={stats.hits} misses={stats.misses} "
                    f"evictions={stats.evictions}[/dim]"
                )
        return 0
    except PlayerNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return 2
    finally:
        await service.close()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(settings.log_level)
    try:
        sys.exit(asyncio.run(run_command(args, settings)))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()

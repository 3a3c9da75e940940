"""CLI entry points."""

from typing import Dict, List, Optional, Sequence
import argparse
import json
import logging

from propedge.analysis.probability import PredictionResult
from propedge.analysis.value_scan import scan_value_bets
from propedge.config import Config
from propedge.constants import BET_OVER, BET_UNDER, MIN_EV
from propedge.exceptions import PropEdgeError
from propedge.models.context import GameContext
from propedge.ops.logging import configure_logging
from propedge.services import Services, build_services
from propedge.utils.odds import format_pct

logger = logging.getLogger(__name__)

RULE = "=" * 80

# Flag name -> stat type for `analyze`
ANALYZE_LINE_FLAGS = {
    "points": "points",
    "rebounds": "rebounds",
    "assists": "assists",
    "pra": "pra",
    "points_assists": "points_assists",
    "points_rebounds": "points_rebounds",
    "rebounds_assists": "rebounds_assists",
}


def _load_services(config_path: Optional[str] = None) -> Services:
    config = Config.load(config_path=config_path)
    if config_path:
        logger.info("Loaded config from %s", config_path)
    return build_services(config)


def _context_from_args(args: argparse.Namespace) -> GameContext:
    # Home unless --away is given
    return GameContext(
        is_home=not getattr(args, "away", False),
        opponent=getattr(args, "opponent", None),
        expected_minutes=getattr(args, "minutes", None),
    )


def _bet_label(bet: str) -> str:
    if bet in (BET_OVER, BET_UNDER):
        return bet
    return f"{bet} (pass)"


def render_prediction(result: PredictionResult) -> str:
    analysis = result.analysis
    summary = analysis.summary
    historical = analysis.historical
    trend = analysis.trend
    confidence = analysis.confidence
    probability = result.probability
    recommendation = result.recommendation

    lines = [
        RULE,
        f"  PREDICTION REPORT: {result.player} - {result.prop}",
        RULE,
        "",
        "RECOMMENDATION",
        f"   Bet: {_bet_label(recommendation.bet)} ({recommendation.strength or 'N/A'})",
    ]
    if recommendation.reasoning:
        lines.append("   Reasoning:")
        lines.extend(f"     - {reason}" for reason in recommendation.reasoning)

    lines += [
        "",
        "PROBABILITIES",
        f"   Over: {format_pct(probability.over, 2)} (Method: {probability.method})",
        f"   Under: {format_pct(probability.under, 2)}",
    ]
    if probability.ml_weight is not None:
        lines.append(
            f"   Weights: Statistical {format_pct(probability.stat_weight)}, ML {format_pct(probability.ml_weight)}"
        )

    lines += [
        "",
        "STATISTICAL ANALYSIS",
        f"   Mean: {summary.mean:.2f} | Median: {summary.median:.2f} | Weighted Avg: {analysis.weighted_avg:.2f}",
        f"   Std Dev: {summary.std_dev:.2f} | Range: {summary.min:g}-{summary.max:g}",
        "",
        "HISTORICAL PERFORMANCE",
        f"   Over: {historical.over_count}/{historical.total_games} ({format_pct(historical.over_rate)})",
        f"   Under: {historical.under_count}/{historical.total_games}",
        "",
        "TREND ANALYSIS",
        f"   Direction: {trend.direction.upper()}",
        f"   Slope: {trend.slope:.3f} | R2: {trend.r_squared:.3f}",
        "",
        "HOME/AWAY SPLITS",
        f"   Home: {analysis.splits.home_avg:.2f} | Away: {analysis.splits.away_avg:.2f}",
        "",
        "MACHINE LEARNING",
    ]
    if result.ml.available:
        lines.append(f"   Prediction: {result.ml.prediction:.2f} | Confidence: {format_pct(result.ml.confidence)}")
        lines.append(f"   Model: {result.ml.model}")
    else:
        lines.append(f"   Unavailable: {result.ml.error}")

    lines += [
        "",
        "CONFIDENCE",
        f"   Overall: {confidence.level} ({format_pct(confidence.score)})",
        f"   Consistency: {format_pct(confidence.consistency)}",
        f"   Sample Size: {result.sample_size} games",
    ]

    if analysis.adjustments:
        lines += ["", "ADJUSTMENTS"]
        lines.extend(f"   {adj.factor}: {adj.impact}" for adj in analysis.adjustments)

    context = result.context
    lines += ["", "GAME CONTEXT", f"   Location: {'HOME' if context.is_home else 'AWAY'}"]
    if context.opponent:
        lines.append(f"   Opponent: {context.opponent}")
    if context.expected_minutes:
        lines.append(f"   Expected Minutes: {context.expected_minutes:g}")

    if result.odds is not None:
        lines += ["", "ODDS"]
        odds = result.odds.to_dict()
        if not odds["available"]:
            lines.append(f"   {odds['message']}")
        else:
            for name, value in odds["bookmakers"].items():
                lines.append(
                    f"   {name}: line {value['line']} | over {value['over_odds']} ({value['over_ev']}) "
                    f"| under {value['under_odds']} ({value['under_ev']})"
                )
            best = odds["best_value"]
            lines.append(f"   Best: {odds['recommendation']} {best['bookmaker'] or ''} {best['ev'] or ''}".rstrip())

    lines += [RULE, ""]
    return "\n".join(lines)


def render_compact(result: PredictionResult) -> str:
    analysis = result.analysis
    recommendation = result.recommendation
    ml_prediction = f"{result.ml.prediction:.2f}" if result.ml.available else "n/a"
    return "\n".join(
        [
            "",
            result.prop,
            "-" * 60,
            f"  Recommendation: {_bet_label(recommendation.bet)} ({recommendation.strength or 'N/A'})",
            f"  Probability: Over {format_pct(result.probability.over, 2)} "
            f"| Under {format_pct(result.probability.under, 2)}",
            f"  Historical: {analysis.historical.over_count}/{analysis.historical.total_games} over "
            f"({format_pct(analysis.historical.over_rate)})",
            f"  Mean: {analysis.summary.mean:.2f} | Weighted: {analysis.weighted_avg:.2f}",
            f"  Trend: {analysis.trend.direction} | Confidence: {analysis.confidence.level}",
            f"  ML Prediction: {ml_prediction}",
        ]
    )


def run_predict(args: argparse.Namespace) -> int:
    services = _load_services(args.config_path)
    context = _context_from_args(args)
    try:
        if args.event_id:
            result = services.calculator.predict_with_odds(
                args.player, args.stat, args.line, context, event_id=args.event_id
            )
        else:
            result = services.calculator.calculate_probability(args.player, args.stat, args.line, context)
    except PropEdgeError as exc:
        logger.error("Prediction failed: %s", exc)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print(render_prediction(result))
    return 0


def run_analyze(args: argparse.Namespace) -> int:
    lines: Dict[str, float] = {}
    for flag, stat_type in ANALYZE_LINE_FLAGS.items():
        value = getattr(args, flag, None)
        if value is not None:
            lines[stat_type] = value
    if not lines:
        logger.error("Provide at least one line (e.g. --points 24.5)")
        return 1

    services = _load_services(args.config_path)
    results = {}
    errors = {}
    for stat_type, line in lines.items():
        try:
            results[stat_type] = services.calculator.calculate_probability(
                args.player, stat_type, line, _context_from_args(args)
            )
        except PropEdgeError as exc:
            errors[stat_type] = getattr(exc, "message", None) or str(exc)

    if args.json:
        payload = {stat_type: result.to_dict() for stat_type, result in results.items()}
        payload.update({stat_type: {"error": message} for stat_type, message in errors.items()})
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(RULE)
        print(f"  PLAYER PROP ANALYSIS: {args.player.upper()}")
        print(RULE)
        for stat_type in lines:
            if stat_type in errors:
                print(f"\n{stat_type.upper()}: {errors[stat_type]}")
            else:
                print(render_compact(results[stat_type]))
    return 0 if results else 1


def run_collect(args: argparse.Namespace) -> int:
    services = _load_services(args.config_path)
    seasons: Optional[List[str]] = None
    if args.seasons:
        seasons = [season.strip() for season in args.seasons.split(",") if season.strip()]
    try:
        dataset = services.collector.collect_player_dataset(args.player, seasons, team_name=args.team)
    except PropEdgeError as exc:
        logger.error("Data collection failed: %s", exc)
        return 1

    print(f"Player: {dataset.name}")
    print(f"Team: {dataset.latest_team}")
    print(f"Seasons: {', '.join(season.season for season in dataset.seasons)}")
    print(f"Total Games: {len(dataset.all_games())}")
    return 0


def run_players(args: argparse.Namespace) -> int:
    services = _load_services(args.config_path)
    players = services.store.list_players()
    if args.json:
        print(json.dumps([dataset.summary() for dataset in players], indent=2, default=str))
        return 0
    if not players:
        print("No stored players.")
        return 0
    for dataset in players:
        summary = dataset.summary()
        print(
            f"{summary['name']:<28} {summary['team'] or '-':<28} "
            f"{summary['totalGames']:>4} games  ({', '.join(summary['seasons'])})"
        )
    return 0


def run_value_bets(args: argparse.Namespace) -> int:
    services = _load_services(args.config_path)
    found = 0
    for event in scan_value_bets(
        services.store,
        services.calculator,
        services.odds_client,
        min_ev=args.min_ev,
        delay=services.config.player_scan_delay,
    ):
        if args.json:
            print(json.dumps(event, default=str))
            if event["type"] == "error":
                return 1
            continue
        if event["type"] == "bet":
            found += 1
            bet = event["data"]
            print(
                f"{bet['player']:<24} {bet['stat_type']:<9} {bet['bet']:<5} {bet['line']} "
                f"@ {bet['odds']} ({bet['bookmaker']})  EV {bet['ev']}  "
                f"ours {bet['our_probability']} vs {bet['implied_probability']}"
            )
        elif event["type"] == "progress":
            logger.info("Processed %d/%d: %s", event["processed"], event["total"], event["player"])
        elif event["type"] == "error":
            logger.error("Value bet scan failed: %s", event["message"])
            return 1
    if not args.json:
        print(f"{found} value bet(s) found")
    return 0


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from propedge.api.server import create_app

    config = Config.load(config_path=args.config_path)
    app = create_app(config)
    port = args.port or config.port
    logger.info("Server starting on %s:%d", args.host, port)
    uvicorn.run(app, host=args.host, port=port, log_level="info")
    return 0


def _add_context_args(parser: argparse.ArgumentParser) -> None:
    location = parser.add_mutually_exclusive_group()
    location.add_argument("--home", action="store_true", help="Playing at home (default)")
    location.add_argument("--away", action="store_true", help="Playing away")
    parser.add_argument("-o", "--opponent", help="Opponent team name")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Basketball player prop probability calculator")
    parser.add_argument("--log-level", dest="log_level", help="Override PROPEDGE_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    predict = subparsers.add_parser("predict", help="Predict probability for a player prop")
    predict.add_argument("--config", dest="config_path", help="Path to config file")
    predict.add_argument("-p", "--player", required=True, help="Player name")
    predict.add_argument("-s", "--stat", required=True, help="Stat type (points, rebounds, assists, pra, ...)")
    predict.add_argument("-l", "--line", required=True, type=float, help="Over/Under line")
    predict.add_argument("-m", "--minutes", type=float, help="Expected minutes played")
    predict.add_argument("--event-id", dest="event_id", help="odds-api.io event id to price against")
    predict.add_argument("--json", action="store_true", help="Print the raw result as JSON")
    _add_context_args(predict)

    analyze = subparsers.add_parser("analyze", help="Analyze multiple props for a player")
    analyze.add_argument("--config", dest="config_path", help="Path to config file")
    analyze.add_argument("-p", "--player", required=True, help="Player name")
    analyze.add_argument("--points", type=float, help="Points line")
    analyze.add_argument("--rebounds", type=float, help="Rebounds line")
    analyze.add_argument("--assists", type=float, help="Assists line")
    analyze.add_argument("--pra", type=float, help="Points + rebounds + assists line")
    analyze.add_argument("--points-assists", dest="points_assists", type=float, help="Points + assists line")
    analyze.add_argument("--points-rebounds", dest="points_rebounds", type=float, help="Points + rebounds line")
    analyze.add_argument("--rebounds-assists", dest="rebounds_assists", type=float, help="Rebounds + assists line")
    analyze.add_argument("--json", action="store_true", help="Print the raw results as JSON")
    _add_context_args(analyze)

    collect = subparsers.add_parser("collect", help="Collect player data from the stats API")
    collect.add_argument("--config", dest="config_path", help="Path to config file")
    collect.add_argument("-p", "--player", required=True, help="Player name")
    collect.add_argument("-t", "--team", help="Team name (skips team discovery)")
    collect.add_argument("-s", "--seasons", help="Seasons to collect (comma-separated)")

    players = subparsers.add_parser("players", help="List stored players")
    players.add_argument("--config", dest="config_path", help="Path to config file")
    players.add_argument("--json", action="store_true", help="Print summaries as JSON")

    value_bets = subparsers.add_parser("value-bets", help="Scan stored players for positive-EV props")
    value_bets.add_argument("--config", dest="config_path", help="Path to config file")
    value_bets.add_argument("--min-ev", dest="min_ev", type=float, default=MIN_EV, help="Minimum EV (0.05 = 5%%)")
    value_bets.add_argument("--json", action="store_true", help="Print one JSON event per line")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--config", dest="config_path", help="Path to config file")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve.add_argument("--port", type=int, help="Port (defaults to PORT)")

    return parser


COMMANDS = {
    "predict": run_predict,
    "analyze": run_analyze,
    "collect": run_collect,
    "players": run_players,
    "value-bets": run_value_bets,
    "serve": run_serve,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.error("Unknown command")
        return 2
    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())

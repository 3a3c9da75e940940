"""
FastAPI application exposing the prediction pipeline.

Every JSON response carries a ``success`` flag. Domain exceptions raised by
the calculator and collectors are mapped to status codes by the handlers
registered in create_app():

    InvalidStatTypeError, InsufficientDataError, bad request body -> 400
    PlayerNotFoundError, TeamNotFoundError                         -> 404
    DataFetchError (provider failures)                             -> 502
    anything else                                                  -> 500

Run with ``propedge serve``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional
import json
import logging

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from propedge import __version__
from propedge.analysis.probability import ProbabilityCalculator
from propedge.analysis.value_scan import scan_value_bets
from propedge.api.schemas import (
    AnalyzeRequest,
    CollectRequest,
    EdgeRequest,
    PredictRequest,
    PredictWithOddsRequest,
)
from propedge.config import Config
from propedge.constants import MIN_EV
from propedge.exceptions import (
    DataFetchError,
    InsufficientDataError,
    InvalidStatTypeError,
    PlayerNotFoundError,
    PropEdgeError,
    TeamNotFoundError,
)
from propedge.ingestion.odds import format_match_date
from propedge.services import build_services

logger = logging.getLogger(__name__)


def error_body(message: str, details: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message}
    if details:
        body["details"] = details
    return body


def success_body(**data: Any) -> Dict[str, Any]:
    return {"success": True, **data}


def parse_min_ev(value: Optional[str]) -> float:
    """Query value as a float; missing, unparseable or zero falls back to MIN_EV."""
    try:
        parsed = float(value) if value is not None else 0.0
    except ValueError:
        parsed = 0.0
    return parsed or MIN_EV


def sse_stream(events: Iterator[Dict[str, Any]]) -> Iterator[str]:
    for event in events:
        yield f"data: {json.dumps(event, default=str)}\n\n"


def _validation_details(exc: RequestValidationError) -> list:
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(location), "message": error.get("msg", "")})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    def _log_and_respond(request: Request, status: int, message: str, details: Any = None) -> JSONResponse:
        log = logger.error if status >= 500 else logger.warning
        log("%s %s -> %d: %s", request.method, request.url.path, status, message)
        return JSONResponse(status_code=status, content=error_body(message, details))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return _log_and_respond(request, 400, "Validation failed", _validation_details(exc))

    @app.exception_handler(InvalidStatTypeError)
    async def _invalid_stat(request: Request, exc: InvalidStatTypeError):
        return _log_and_respond(request, 400, str(exc), {"valid_types": list(exc.valid_types)})

    @app.exception_handler(InsufficientDataError)
    async def _insufficient_data(request: Request, exc: InsufficientDataError):
        return _log_and_respond(
            request,
            400,
            "Insufficient data",
            {"message": exc.message, "games_found": exc.games_found, "games_required": exc.games_required},
        )

    @app.exception_handler(PlayerNotFoundError)
    async def _player_not_found(request: Request, exc: PlayerNotFoundError):
        return _log_and_respond(request, 404, str(exc))

    @app.exception_handler(TeamNotFoundError)
    async def _team_not_found(request: Request, exc: TeamNotFoundError):
        return _log_and_respond(request, 404, str(exc))

    @app.exception_handler(DataFetchError)
    async def _provider_error(request: Request, exc: DataFetchError):
        return _log_and_respond(request, 502, str(exc))

    @app.exception_handler(PropEdgeError)
    async def _domain_error(request: Request, exc: PropEdgeError):
        return _log_and_respond(request, 500, str(exc))

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("Internal server error"))


def build_router(calculator: ProbabilityCalculator, store, collector, odds_client, config: Config) -> APIRouter:
    router = APIRouter(prefix="/api")

    @router.get("/health")
    def health():
        return {
            "status": "ok",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @router.post("/predict")
    def predict(body: PredictRequest):
        result = calculator.calculate_probability(body.player_name, body.stat_type, body.line, body.context())
        return success_body(**result.to_dict())

    @router.post("/analyze")
    def analyze(body: AnalyzeRequest):
        props = calculator.calculate_all_props(body.player_name, body.lines, body.context())
        return success_body(player=body.player_name, props=props)

    @router.post("/predict-with-odds")
    def predict_with_odds(body: PredictWithOddsRequest):
        result = calculator.predict_with_odds(
            body.player_name,
            body.stat_type,
            body.line,
            body.context(),
            event_id=body.event_id,
        )
        return success_body(**result.to_dict())

    @router.post("/edge")
    def edge(body: EdgeRequest):
        result = calculator.calculate_probability(body.player_name, body.stat_type, body.line, body.context())
        edge_result = calculator.calculate_edge(result.probability.over, body.bookmaker_odds)
        return success_body(**result.to_dict(), edge=edge_result)

    @router.post("/collect", status_code=201)
    def collect(body: CollectRequest):
        dataset = collector.collect_player_dataset(body.player_name, body.seasons, team_name=body.team_name)
        return success_body(
            player=dataset.name,
            team=dataset.latest_team,
            seasons=[season.season for season in dataset.seasons],
            total_games=len(dataset.all_games()),
        )

    @router.get("/players")
    def players():
        return success_body(players=[dataset.summary() for dataset in store.list_players()])

    @router.get("/player/{name}")
    def player(name: str):
        dataset = store.resolve(name)
        if dataset is None:
            raise PlayerNotFoundError(name, "no stored data")
        return success_body(
            player=dataset.to_dict()["player"],
            seasons=[{"season": season.season, "team": season.team, "games": len(season.games)}
                     for season in dataset.seasons],
            total_games=len(dataset.all_games()),
            last_updated=dataset.last_updated,
        )

    @router.get("/next-match/{team}")
    def next_match(team: str):
        match = odds_client.get_next_match(team)
        if not match:
            return success_body(has_match=False, message="No upcoming matches found")
        return success_body(
            has_match=True,
            id=match["id"],
            opponent=match["opponent"],
            is_home=match["isHome"],
            date=match["date"],
            home_team=match["homeTeam"],
            away_team=match["awayTeam"],
            formatted_date=format_match_date(match["date"]),
        )

    @router.get("/value-bets")
    def value_bets(min_ev: Optional[str] = Query(None, alias="minEV")):
        events = scan_value_bets(
            store,
            calculator,
            odds_client,
            min_ev=parse_min_ev(min_ev),
            delay=config.player_scan_delay,
        )
        return StreamingResponse(
            sse_stream(events),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return router


def create_app(
    config: Optional[Config] = None,
    calculator: Optional[ProbabilityCalculator] = None,
    store=None,
    collector=None,
    odds_client=None,
) -> FastAPI:
    """
    Build the application.

    Collaborators that are not passed in are built from ``config``
    (``Config.load()`` when omitted).
    """
    if calculator is None or store is None or collector is None or odds_client is None:
        services = build_services(config)
        config = services.config
        calculator = services.calculator if calculator is None else calculator
        store = services.store if store is None else store
        collector = services.collector if collector is None else collector
        odds_client = services.odds_client if odds_client is None else odds_client
    config = config or Config.load()

    app = FastAPI(title="propedge", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(build_router(calculator, store, collector, odds_client, config))
    return app


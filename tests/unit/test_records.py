"""Unit tests for propedge.models (game records, datasets, context)."""

from datetime import datetime, timezone

import pytest

from propedge.models import GameContext, GameRecord, PlayerDataset, filter_games, parse_game_date, sort_games
from propedge.models.quotes import BookmakerQuote

from tests.fixtures.sample_api_responses import build_dataset, build_games


class TestGameRecord:
    def test_combined_stats_recomputed_from_base_counts(self):
        game = GameRecord.from_dict(
            {"gameId": 1, "date": "2025-01-01", "points": 20, "rebounds": 7, "assists": 5,
             "pra": 999, "points_assists": 0}
        )

        assert game.pra == 32
        assert game.points_assists == 25
        assert game.points_rebounds == 27
        assert game.rebounds_assists == 12
        assert game.to_dict()["pra"] == 32

    def test_stat_lookup(self):
        game = GameRecord(game_id=1, date="2025-01-01", minutes=31.5, points=20, rebounds=7, assists=5)

        assert game.stat("points") == 20
        assert game.stat("pra") == 32
        assert game.stat("minutes") == 31.5
        assert game.stat("steals") is None
        assert game.stat("is_home") is None

    def test_from_dict_tolerates_bad_numbers(self):
        game = GameRecord.from_dict({"gameId": 7, "date": "", "points": "17", "rebounds": None, "minutes": "x"})

        assert game.points == 17
        assert game.rebounds == 0
        assert game.minutes == 0.0
        assert game.opponent == "Unknown"

    def test_json_keys(self):
        game = GameRecord(game_id=3, date="2025-01-01", is_home=True)
        data = game.to_dict()

        assert data["gameId"] == 3
        assert data["home"] is True
        assert GameRecord.from_dict(data).is_home is True


class TestParseGameDate:
    def test_zulu_timestamp(self):
        assert parse_game_date("2025-01-06T00:30:00Z") == datetime(2025, 1, 6, 0, 30, tzinfo=timezone.utc)

    def test_naive_date_is_utc(self):
        assert parse_game_date("2025-01-06").tzinfo is not None

    def test_unparseable_is_epoch(self):
        assert parse_game_date("not a date").year == 1970
        assert parse_game_date(None).year == 1970


class TestPlayerDataset:
    def test_all_games_newest_first_across_seasons(self):
        dataset = build_dataset([10, 11, 12])
        older = build_dataset([1, 2], latest=datetime(2024, 3, 1, tzinfo=timezone.utc), season="2023-2024")
        dataset.seasons = older.seasons + dataset.seasons

        points = [game.points for game in dataset.all_games()]

        assert points == [10, 11, 12, 1, 2]
        assert [g.points for g in dataset.recent_games(2)] == [10, 11]

    def test_latest_team_is_last_season(self):
        dataset = build_dataset([10, 11])
        dataset.seasons.append(build_dataset([5], team="Golden State Warriors").seasons[0])

        assert dataset.latest_team == "Golden State Warriors"
        assert PlayerDataset(player_id=1, name="Nobody").latest_team is None

    def test_document_shape(self):
        dataset = build_dataset([10, 11])
        data = dataset.to_dict()

        assert data["player"] == {"id": 265, "name": "LeBron James", "firstname": "LeBron", "lastname": "James"}
        assert data["seasons"][0]["season"] == "2024-2025"
        assert len(data["seasons"][0]["games"]) == 2

        restored = PlayerDataset.from_dict(data)
        assert restored.name == "LeBron James"
        assert [g.points for g in restored.all_games()] == [10, 11]

    def test_summary(self):
        summary = build_dataset([10, 11, 12]).summary()

        assert summary["totalGames"] == 3
        assert summary["team"] == "Los Angeles Lakers"
        assert summary["seasons"] == ["2024-2025"]

    def test_matches_name_is_case_insensitive_substring(self):
        dataset = build_dataset([10])

        assert dataset.matches_name("lebron")
        assert dataset.matches_name("  JAMES ")
        assert not dataset.matches_name("Curry")

    def test_to_frame(self):
        frame = build_dataset([10, 11, 12]).to_frame()

        assert list(frame["points"]) == [10, 11, 12]
        assert "season" in frame.columns
        assert "pra" in frame.columns


class TestFilterGames:
    def test_filters_preserve_order(self):
        games = build_games([10, 20, 30, 40], minutes=[30, 10, 25, 35])

        assert [g.points for g in filter_games(games, min_minutes=15)] == [10, 30, 40]
        assert [g.points for g in filter_games(games, is_home=True)] == [10, 30]
        assert [g.points for g in filter_games(games, opponent="nuggets")] == [10, 40]

    def test_date_range(self):
        games = build_games([10, 20, 30, 40])
        window = filter_games(games, date_from=games[2].date, date_to=games[1].date)

        assert [g.points for g in window] == [20, 30]

    def test_sort_games(self):
        games = build_games([10, 20, 30])

        assert [g.points for g in sort_games(games, newest_first=False)] == [30, 20, 10]


class TestGameContext:
    def test_accepts_camel_case(self):
        context = GameContext.from_dict({"isHome": True, "opponent": "BOS", "expectedMinutes": "34"})

        assert context.is_home is True
        assert context.expected_minutes == 34.0

    def test_empty(self):
        context = GameContext.from_dict(None)

        assert context.is_home is None
        assert context.to_dict() == {"opponent": "TBD", "is_home": None, "expected_minutes": None}


def test_bookmaker_quote_to_dict():
    quote = BookmakerQuote(bookmaker="Bet365", line=25.5, over_odds=1.9, under_odds=1.9)

    assert quote.to_dict()["bookmaker"] == "Bet365"
    assert quote.to_dict()["line"] == 25.5


@pytest.mark.parametrize(
    "over,under,expected",
    [(1.9, 1.9, True), (1.01, 15.0, True), (0.0, 1.9, False), (1.9, 1.0, False)],
)
def test_bookmaker_quote_is_priced(over, under, expected):
    quote = BookmakerQuote(bookmaker="Kambi", line=25.5, over_odds=over, under_odds=under)

    assert quote.is_priced is expected

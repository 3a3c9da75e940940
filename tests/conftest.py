"""
Pytest configuration and shared fixtures for propedge tests.
"""

import pytest

from propedge.analysis.ml_predictor import ModelCache, PseudoMLPredictor
from propedge.analysis.probability import ProbabilityCalculator
from propedge.storage import PlayerStore

from tests.fixtures.sample_api_responses import build_dataset, build_games, get_sample_points
from tests.mocks import FixedClock


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep real keys and data directories out of tests."""
    for key in ("API_SPORTS_KEY", "ODDS_API_KEY", "PROPEDGE_DATA_DIR", "PROPEDGE_CACHE_DIR"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PROPEDGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PROPEDGE_CACHE_DIR", str(tmp_path / "cache"))


@pytest.fixture
def sample_games():
    """Twenty games of a steady ~28 ppg scorer, newest first."""
    return build_games(get_sample_points(20))


@pytest.fixture
def sample_dataset():
    return build_dataset(get_sample_points(20))


@pytest.fixture
def player_store(tmp_path):
    return PlayerStore(tmp_path / "players")


@pytest.fixture
def stored_player(player_store, sample_dataset):
    player_store.save(sample_dataset)
    return sample_dataset


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def calculator(player_store, stored_player, clock):
    return ProbabilityCalculator(
        player_store,
        predictor=PseudoMLPredictor(ModelCache(clock=clock)),
    )

"""Shared test fixtures."""

from pathlib import Path

import pytest

from standings import TournamentConfig
from standings.store import InMemoryStore


DATA_DIR = Path(__file__).resolve().parent / 'data'

# (token, display name, club) of the players known before any upload
KNOWN_PLAYERS = [
    ('Andrew Walker', 'Andrew Walker', 'Sylvan'),
    ('Beau Briggs', 'Beau Briggs', 'Sylvan'),
    ('Camillo77', 'Camillo Colombo', '8th'),
    ('Chase Brannon', 'Chase Brannon', 'Sylvan'),
]


@pytest.fixture(scope='session')
def data_dir() -> Path:
    """Path to the test data directory."""
    return DATA_DIR


@pytest.fixture
def store() -> InMemoryStore:
    """In-memory store holding the known players."""
    s = InMemoryStore()
    for token, name, club in KNOWN_PLAYERS:
        s.create_player(token, name, club)
    return s


@pytest.fixture
def tour_config() -> TournamentConfig:
    """A stroke-play Tour Event."""
    return TournamentConfig(
        name='Spring Open', date='2025-04-12', tier='Tour Event', fmt='Stroke Play',
    )

"""Core module for golf-season-standings."""

from dataclasses import dataclass, field
from typing import Optional

# Tournament tiers select the points curve.
TIERS = ('Major', 'Tour Event', 'League', 'SUPR')
# Tiers whose exports come with free-form headers.
FLEXIBLE_TIERS = ('League', 'SUPR')

STROKE_PLAY = 'Stroke Play'
STABLEFORD = 'Stableford'
POINTS = 'Points'
FORMATS = (STROKE_PLAY, STABLEFORD, POINTS)

CLUBS = ('Sylvan', '8th')
DEFAULT_CLUB = 'Sylvan'
DEFAULT_PAR = 72

BOARDS = ('gross', 'net')


@dataclass
class RawEntry:
    """One spreadsheet row after header normalization."""

    player_token: str
    raw_score: float
    raw_position: Optional[int]
    raw_handicap: float = 0.0
    gross_points: Optional[float] = None    # Direct points (Points format)
    net_points: Optional[float] = None
    score_parsed: bool = True
    row_number: int = 0


@dataclass
class Player:
    """Durable player identity owned by the persistence store."""

    id: str
    external_token: str
    display_name: str
    club: str


@dataclass
class Tournament:
    """A single event of the season."""

    id: str
    name: str
    date: str
    tier: str
    fmt: str
    par: int = DEFAULT_PAR


@dataclass
class TournamentConfig:
    """Tournament settings supplied with an upload."""

    name: str
    date: str
    tier: str
    fmt: str
    par: int = DEFAULT_PAR

    def __post_init__(self):
        if self.tier not in TIERS:
            raise ValueError(f"Unknown tournament tier: {self.tier!r}")
        if self.fmt not in FORMATS:
            raise ValueError(f"Unknown tournament format: {self.fmt!r}")


@dataclass
class ScoredEntry:
    """Working record carried through score interpretation and placing."""

    player_token: str
    gross_score: float
    net_score: float
    handicap: float
    gross_points: float = 0.0
    net_points: float = 0.0
    gross_position: int = 0
    net_position: int = 0
    gross_tied_players: int = 1
    net_tied_players: int = 1
    direct_points: bool = False
    substituted: bool = False
    row_number: int = 0


@dataclass
class Result:
    """One persisted row per (tournament, player)."""

    tournament_id: str
    player_id: str
    gross_score: float
    net_score: float
    handicap: float
    gross_position: int
    net_position: int
    gross_points: float
    net_points: float
    gross_tied_players: int = 1
    net_tied_players: int = 1
    id: Optional[str] = None

    @property
    def tied_players(self) -> int:
        """Legacy single tie count; the net pass ran last in the old schema."""
        return self.net_tied_players


@dataclass
class PlayerStats:
    """Season standing of one player for a gross or net board."""

    player: Player
    total_points: float
    counting_events: int
    total_events: int
    avg_gross: float
    avg_net: float
    best_finish: int
    events: list[Result] = field(default_factory=list)

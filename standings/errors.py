"""Error kinds raised while processing a tournament upload."""


class UploadError(Exception):
    """Base class for upload failures."""


class EmptyInput(UploadError, ValueError):
    """The upload holds no data rows after the header."""


class InvalidScore(UploadError, ValueError):
    """A scored format row has no usable score."""

    def __init__(self, player_token: str, row_number: int = 0):
        self.player_token = player_token
        self.row_number = row_number
        where = f" (row {row_number})" if row_number else ''
        super().__init__(f"No valid score for player {player_token!r}{where}")


class DuplicatePlayer(UploadError, ValueError):
    """Two rows of one upload resolve to the same player."""

    def __init__(self, player_id: str, tokens: list[str]):
        self.player_id = player_id
        self.tokens = tokens
        super().__init__(
            f"Rows {', '.join(repr(t) for t in tokens)} resolve to the same player"
        )


class PersistenceFailure(UploadError):
    """A write to the persistence store was rejected."""

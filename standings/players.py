"""Staged resolution of export tokens to stored players."""

import logging
import unicodedata
from dataclasses import dataclass
from typing import Optional

from rapidfuzz.distance import JaroWinkler

from standings import DEFAULT_CLUB, Player
from standings.store import PersistenceStore

log = logging.getLogger(__name__)

# Minimum Jaro-Winkler similarity (0–1) for a fuzzy name match
DEFAULT_NAME_THRESHOLD = 0.92
# Words shorter than this are too common to search on
MIN_SEARCH_WORD = 3


@dataclass
class PendingPlayer:
    """A token with no stored player, awaiting confirmation."""

    token: str
    suggested_name: str
    club: str = DEFAULT_CLUB


def normalize_for_tolerant_comparison(text: str) -> str:
    """Normalize text for tolerant name comparison.

    Removes accents/diacritics via NFD decomposition, strips spaces,
    hyphens, dots, commas, semicolons and apostrophes, then uppercases.

    Args:
        text: Raw name string.

    Returns:
        Normalized string for comparison.
    """
    # NFD decomposition: split base characters from combining marks
    decomposed = unicodedata.normalize('NFD', text)
    # Remove combining marks (category 'Mn')
    stripped = ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')
    for ch in (' ', '-', '.', ',', ';', "'", '_'):
        stripped = stripped.replace(ch, '')
    return stripped.upper()


def _search_terms(token: str) -> list[str]:
    words = [w for w in token.replace('_', ' ').split() if len(w) >= MIN_SEARCH_WORD]
    terms = [token]
    for w in words:
        if w not in terms:
            terms.append(w)
    return terms


def name_similarity(token: str, player: Player) -> float:
    """Best Jaro-Winkler similarity of a token against a player's names."""
    norm_token = normalize_for_tolerant_comparison(token)
    return max(
        JaroWinkler.similarity(norm_token, normalize_for_tolerant_comparison(player.display_name)),
        JaroWinkler.similarity(norm_token, normalize_for_tolerant_comparison(player.external_token)),
    )


def find_fuzzy_match(
    store: PersistenceStore,
    token: str,
    threshold: float = DEFAULT_NAME_THRESHOLD,
) -> Optional[Player]:
    """Search the store by name fragments and pick the closest player.

    Args:
        store: Persistence store to search.
        token: Player token from the export.
        threshold: Minimum similarity for a match (0–1).

    Returns:
        The best candidate at or above the threshold, None otherwise.
    """
    candidates: dict[str, Player] = {}
    for term in _search_terms(token):
        for p in store.search_players_by_name(term):
            candidates.setdefault(p.id, p)

    best: Optional[Player] = None
    best_sim = -1.0
    for p in candidates.values():
        sim = name_similarity(token, p)
        if sim > best_sim:
            best, best_sim = p, sim

    if best is not None and best_sim >= threshold:
        log.info("Fuzzy match: %r -> %s (%.3f)", token, best.display_name, best_sim)
        return best
    return None


def resolve_player(
    store: PersistenceStore,
    token: str,
    threshold: float = DEFAULT_NAME_THRESHOLD,
) -> Optional[Player]:
    """Look up a stored player for an export token.

    Uses a multi-stage approach:
    1. Exact token match
    2. Display-name match (case-insensitive)
    3. Fuzzy name search
    4. Unresolved → None
    """
    player = store.find_player_by_token(token)
    if player is not None:
        return player
    player = store.find_player_by_display_name(token)
    if player is not None:
        return player
    return find_fuzzy_match(store, token, threshold)


def resolve_tokens(
    store: PersistenceStore,
    tokens: list[str],
    threshold: float = DEFAULT_NAME_THRESHOLD,
    default_club: str = DEFAULT_CLUB,
) -> tuple[dict[str, Player], list[PendingPlayer]]:
    """Resolve every distinct token; unresolved ones become pending players.

    Each lookup only reads the store, so the order of tokens does not
    affect the outcome.

    Returns:
        Tuple of (token → Player, pending players in first-seen order).
    """
    resolved: dict[str, Player] = {}
    pending: list[PendingPlayer] = []
    for token in dict.fromkeys(tokens):
        player = resolve_player(store, token, threshold)
        if player is None:
            pending.append(PendingPlayer(token=token, suggested_name=token, club=default_club))
        else:
            resolved[token] = player

    log.info(
        "Player resolution finished: %d resolved, %d new",
        len(resolved), len(pending),
    )
    return resolved, pending

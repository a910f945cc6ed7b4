"""Team name normalization for odds-feed to ESPN schedule matching.

Odds feeds spell teams as free text ("Kansas City Chiefs", "LA Rams",
"Washington Football Team"); the schedule store keys teams by ESPN
abbreviation ("KC", "LAR", "WSH"). Resolution consults three tiers and the
first hit wins:

1. ``CANONICAL_TEAMS`` - exact current full name
2. ``TEAM_NAME_VARIATIONS`` - case-insensitive historical / shorthand names
   (relocations, renames, "NY"/"LA" prefixes)
3. substring containment against canonical names, both directions,
   case-insensitive

A miss returns ``None``. Unknown names are normal input, never an error.
"""
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Tuple

from parlay_sync.core.logging import get_logger

logger = get_logger(__name__)


CANONICAL_TEAMS: Mapping[str, str] = MappingProxyType({
    # AFC East
    "Buffalo Bills": "BUF",
    "Miami Dolphins": "MIA",
    "New England Patriots": "NE",
    "New York Jets": "NYJ",

    # AFC North
    "Baltimore Ravens": "BAL",
    "Cincinnati Bengals": "CIN",
    "Cleveland Browns": "CLE",
    "Pittsburgh Steelers": "PIT",

    # AFC South
    "Houston Texans": "HOU",
    "Indianapolis Colts": "IND",
    "Jacksonville Jaguars": "JAX",
    "Tennessee Titans": "TEN",

    # AFC West
    "Denver Broncos": "DEN",
    "Kansas City Chiefs": "KC",
    "Las Vegas Raiders": "LV",
    "Los Angeles Chargers": "LAC",

    # NFC East
    "Dallas Cowboys": "DAL",
    "New York Giants": "NYG",
    "Philadelphia Eagles": "PHI",
    "Washington Commanders": "WSH",

    # NFC North
    "Chicago Bears": "CHI",
    "Detroit Lions": "DET",
    "Green Bay Packers": "GB",
    "Minnesota Vikings": "MIN",

    # NFC South
    "Atlanta Falcons": "ATL",
    "Carolina Panthers": "CAR",
    "New Orleans Saints": "NO",
    "Tampa Bay Buccaneers": "TB",

    # NFC West
    "Arizona Cardinals": "ARI",
    "Los Angeles Rams": "LAR",
    "San Francisco 49ers": "SF",
    "Seattle Seahawks": "SEA",
})

# Keys are lower-case with single spaces
TEAM_NAME_VARIATIONS: Mapping[str, str] = MappingProxyType({
    "las vegas raiders": "LV",
    "lv raiders": "LV",
    "la raiders": "LV",
    "oakland raiders": "LV",
    "los angeles chargers": "LAC",
    "la chargers": "LAC",
    "san diego chargers": "LAC",
    "los angeles rams": "LAR",
    "la rams": "LAR",
    "st. louis rams": "LAR",
    "st louis rams": "LAR",
    "washington commanders": "WSH",
    "washington football team": "WSH",
    "washington redskins": "WSH",
    "new york giants": "NYG",
    "ny giants": "NYG",
    "new york jets": "NYJ",
    "ny jets": "NYJ",
    "new england patriots": "NE",
    "tampa bay buccaneers": "TB",
    "green bay packers": "GB",
    "san francisco 49ers": "SF",
})

TEAM_DISPLAY_NAMES: Mapping[str, str] = MappingProxyType(
    {code: full_name for full_name, code in CANONICAL_TEAMS.items()}
)


def _lookup_canonical(name: str) -> Optional[str]:
    return CANONICAL_TEAMS.get(name)


def _lookup_variation(name: str) -> Optional[str]:
    return TEAM_NAME_VARIATIONS.get(_fold(name))


def _lookup_substring(name: str) -> Optional[str]:
    folded = _fold(name)
    for full_name, code in CANONICAL_TEAMS.items():
        canonical = full_name.lower()
        if folded in canonical or canonical in folded:
            return code
    return None


RESOLUTION_TIERS: Tuple[Tuple[str, Callable[[str], Optional[str]]], ...] = (
    ("canonical", _lookup_canonical),
    ("variation", _lookup_variation),
    ("substring", _lookup_substring),
)


def _fold(name: str) -> str:
    return " ".join(name.lower().split())


def resolve_team_code_with_tier(team_name: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Resolve a team name and report which tier produced the code.

    Args:
        team_name: Free-text team name from an odds feed

    Returns:
        ``(code, tier)``, or ``(None, None)`` when no tier matches
    """
    if not isinstance(team_name, str):
        return None, None

    name = team_name.strip()
    if not name:
        return None, None

    for tier, lookup in RESOLUTION_TIERS:
        code = lookup(name)
        if code:
            return code, tier

    return None, None


def resolve_team_code(team_name: str) -> Optional[str]:
    """
    Map a team name to its ESPN abbreviation.

    Examples:
        >>> resolve_team_code("Kansas City Chiefs")
        'KC'
        >>> resolve_team_code("Oakland Raiders")
        'LV'
        >>> resolve_team_code("Springfield Isotopes") is None
        True
    """
    code, tier = resolve_team_code_with_tier(team_name)

    if code is None:
        logger.warning(f"Could not map team name: {team_name!r}")
    elif tier == "substring":
        logger.debug(f"Team name {team_name!r} resolved to {code} by substring fallback")

    return code


def team_display_name(code: str) -> Optional[str]:
    """Current full name for an ESPN abbreviation."""
    if not code:
        return None
    return TEAM_DISPLAY_NAMES.get(code.upper())

"""
config.py — Project-wide constants for ROV Draft Lab.

Unlike runtime settings (which are read from environment variables), these
constants describe the game itself and are stable across environments.
"""

import os

# ---------------------------------------------------------------------------
# Hero metadata vocabularies
# ---------------------------------------------------------------------------

DAMAGE_TYPES: tuple[str, ...] = ("Physical", "Magic", "True", "Mixed")
POWER_SPIKES: tuple[str, ...] = ("Early", "Mid", "Late", "Balanced")
POSITIONS: tuple[str, ...] = ("Dark Slayer", "Jungle", "Mid", "Abyssal Dragon", "Roam")
TIERS: tuple[str, ...] = ("S", "A", "B", "C", "D")

# New hero_stats rows start at a neutral win rate (percent, 0-100).
DEFAULT_HERO_WIN_RATE: float = 50.0

# Role written for a pick that was never assigned a lane in the post-draft form.
FLEX_ROLE: str = "Flex"

# Role aliases seen in imported scrim sheets → canonical POSITIONS name.
ROLE_ALIASES: dict[str, tuple[str, ...]] = {
    "Dark Slayer": ("Dark Slayer", "DSL", "Slayer"),
    "Jungle": ("Jungle", "JUG"),
    "Mid": ("Mid", "Middle", "MID"),
    "Abyssal Dragon": ("Abyssal Dragon", "Abyssal", "ADL", "Dragon"),
    "Roam": ("Roam", "Support", "SUP"),
}

# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------

DRAFT_MODES: dict[str, int] = {
    "BO1": 1,
    "BO2": 2,
    "BO3": 3,
    "BO4": 4,
    "BO5": 5,
    "BO7": 7,
}

MATCH_STATUS_ONGOING = "ongoing"
MATCH_STATUS_FINISHED = "finished"

MATCH_TYPE_SIMULATOR = "scrim_simulator"
MATCH_TYPE_SUMMARY = "scrim_summary"
MATCH_TYPE_SIMULATION = "simulation"
MATCH_TYPE_REAL = "real"

MATCH_TYPES: tuple[str, ...] = (
    MATCH_TYPE_SIMULATOR,
    MATCH_TYPE_SUMMARY,
    MATCH_TYPE_SIMULATION,
    MATCH_TYPE_REAL,
)

# Match types produced by the full draft simulator (pick/ban order is meaningful).
SIMULATOR_MATCH_TYPES: frozenset[str] = frozenset({MATCH_TYPE_SIMULATOR, MATCH_TYPE_SIMULATION})

# Match types considered by team hero pools; None covers legacy rows.
TEAM_POOL_MATCH_TYPES: frozenset = frozenset({
    MATCH_TYPE_SIMULATOR,
    MATCH_TYPE_SUMMARY,
    MATCH_TYPE_SIMULATION,
    None,
})

TOURNAMENT_STATUSES: tuple[str, ...] = ("upcoming", "ongoing", "completed")

# ---------------------------------------------------------------------------
# Suggestions (matchups / combos mined from recorded drafts)
# ---------------------------------------------------------------------------

# A hero pair needs at least this many games before it is suggested.
SUGGESTION_MIN_GAMES: int = int(os.getenv("SUGGESTION_MIN_GAMES", "3"))
# Suggestions are rounded to this step (percent) before being offered.
SUGGESTION_ROUND_STEP: int = 5
MAX_SUGGESTIONS: int = 10

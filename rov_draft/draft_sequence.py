"""
draft_sequence.py — The fixed ban/pick order of a tournament draft.

Two phases, 18 steps in total:

  Phase 1 bans   B  R  B  R
  Phase 1 picks  B1 R1 R2 B2 B3 R3
  Phase 2 bans   R  B  R  B
  Phase 2 picks  R4 B4 B5 R5

Slots are addressed two ways:
  - order_index: 0-based index into DRAFT_SEQUENCE (used by the engine)
  - position_index: 1-based absolute slot stored on draft_picks rows
    (position_index == order_index + 1)
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from rov_draft.config import FLEX_ROLE

logger = logging.getLogger(__name__)

BLUE = "BLUE"
RED = "RED"
BAN = "BAN"
PICK = "PICK"

PHASE_1_BAN = "PHASE_1_BAN"
PHASE_1_PICK = "PHASE_1_PICK"
PHASE_2_BAN = "PHASE_2_BAN"
PHASE_2_PICK = "PHASE_2_PICK"


class DraftStep(NamedTuple):
    order_index: int
    side: str
    type: str
    count: int
    phase: str
    # True when the step is the second half of a back-to-back pick by the same side
    is_continuation: bool = False


DRAFT_SEQUENCE: tuple[DraftStep, ...] = (
    DraftStep(0, BLUE, BAN, 1, PHASE_1_BAN),
    DraftStep(1, RED, BAN, 1, PHASE_1_BAN),
    DraftStep(2, BLUE, BAN, 1, PHASE_1_BAN),
    DraftStep(3, RED, BAN, 1, PHASE_1_BAN),

    DraftStep(4, BLUE, PICK, 1, PHASE_1_PICK),        # B1
    DraftStep(5, RED, PICK, 1, PHASE_1_PICK),         # R1
    DraftStep(6, RED, PICK, 1, PHASE_1_PICK, True),   # R2
    DraftStep(7, BLUE, PICK, 1, PHASE_1_PICK),        # B2
    DraftStep(8, BLUE, PICK, 1, PHASE_1_PICK, True),  # B3
    DraftStep(9, RED, PICK, 1, PHASE_1_PICK),         # R3

    DraftStep(10, RED, BAN, 1, PHASE_2_BAN),
    DraftStep(11, BLUE, BAN, 1, PHASE_2_BAN),
    DraftStep(12, RED, BAN, 1, PHASE_2_BAN),
    DraftStep(13, BLUE, BAN, 1, PHASE_2_BAN),

    DraftStep(14, RED, PICK, 1, PHASE_2_PICK),        # R4
    DraftStep(15, BLUE, PICK, 1, PHASE_2_PICK),       # B4
    DraftStep(16, BLUE, PICK, 1, PHASE_2_PICK, True), # B5
    DraftStep(17, RED, PICK, 1, PHASE_2_PICK),        # R5
)

# Seconds on the clock per step type
PHASE_TIMERS: dict[str, int] = {BAN: 40, PICK: 60}


def _slots(side: str, step_type: str) -> tuple[int, ...]:
    return tuple(s.order_index + 1 for s in DRAFT_SEQUENCE if s.side == side and s.type == step_type)


# Absolute 1-based slots, in the order each side fills them
BLUE_PICK_SLOTS: tuple[int, ...] = _slots(BLUE, PICK)   # (5, 8, 9, 16, 17)
RED_PICK_SLOTS: tuple[int, ...] = _slots(RED, PICK)     # (6, 7, 10, 15, 18)
BLUE_BAN_SLOTS: tuple[int, ...] = _slots(BLUE, BAN)     # (1, 3, 12, 14)
RED_BAN_SLOTS: tuple[int, ...] = _slots(RED, BAN)       # (2, 4, 11, 13)

# Older scrim sheets numbered the eight bans 1..8 on their own:
#   phase 1: Blue(1) Red(2) Blue(3) Red(4), phase 2: Red(5) Blue(6) Red(7) Blue(8)
_LEGACY_BLUE_BANS = frozenset({1, 3, 6, 8})
_LEGACY_RED_BANS = frozenset({2, 4, 5, 7})


# ---------------------------------------------------------------------------
# Row normalisation helpers (used by every aggregation over draft_picks)
# ---------------------------------------------------------------------------

def normalize_side(raw: Optional[str]) -> Optional[str]:
    """'blue', 'Blue Side', 'BLUE' → 'BLUE'. Returns None for empty / unknown values."""
    side = (raw or "").strip().upper()
    if side == "BLUE SIDE":
        side = BLUE
    elif side == "RED SIDE":
        side = RED
    return side if side in (BLUE, RED) else None


def infer_ban_side(position_index: Optional[int]) -> Optional[str]:
    """Side of a BAN row that was saved without one, derived from its slot."""
    if not position_index:
        return None
    if position_index in BLUE_BAN_SLOTS:
        return BLUE
    if position_index in RED_BAN_SLOTS:
        return RED
    if position_index in _LEGACY_BLUE_BANS:
        return BLUE
    if position_index in _LEGACY_RED_BANS:
        return RED
    return None


def pick_side(pick: dict) -> Optional[str]:
    """Normalised side of a draft_picks row, falling back to slot inference for bans."""
    side = normalize_side(pick.get("side"))
    if side is None and pick.get("type") == BAN:
        side = infer_ban_side(pick.get("position_index"))
    return side


def ban_phase(position_index: Optional[int]) -> Optional[int]:
    """1 or 2 for a ban slot (either numbering scheme), None when unknown."""
    if not position_index:
        return None
    if position_index <= 4:
        return 1
    if position_index <= 8 or 11 <= position_index <= 14:
        return 2
    return None


def step_for_position(position_index: int) -> Optional[DraftStep]:
    if 1 <= position_index <= len(DRAFT_SEQUENCE):
        return DRAFT_SEQUENCE[position_index - 1]
    return None


# ---------------------------------------------------------------------------
# Draft engine: walks DRAFT_SEQUENCE one lock-in at a time
# ---------------------------------------------------------------------------

class DraftEngine:
    """Records bans/picks in sequence order.

    Pick maps are {slot_index: hero_id} where slot_index is 0..4 in the order
    the side filled them; ban lists are in order.  undo() rolls back one step.
    """

    def __init__(self) -> None:
        self.step_index: int = 0
        self.blue_picks: dict[int, int] = {}
        self.red_picks: dict[int, int] = {}
        self.blue_bans: list[int] = []
        self.red_bans: list[int] = []
        self._history: list[tuple] = []

    @property
    def is_finished(self) -> bool:
        return self.step_index >= len(DRAFT_SEQUENCE)

    @property
    def current_step(self) -> Optional[DraftStep]:
        if self.is_finished:
            return None
        return DRAFT_SEQUENCE[self.step_index]

    @property
    def timer(self) -> int:
        step = self.current_step
        if step is None:
            return 0
        return PHASE_TIMERS[step.type]

    def used_heroes(self) -> set[int]:
        return (
            set(self.blue_picks.values())
            | set(self.red_picks.values())
            | set(self.blue_bans)
            | set(self.red_bans)
        )

    def lock_in(self, hero_id: int) -> DraftStep:
        """Applies the current step with hero_id and advances. Returns the applied step."""
        step = self.current_step
        if step is None:
            raise ValueError("Draft is already finished")
        if hero_id in self.used_heroes():
            raise ValueError(f"Hero {hero_id} is already picked or banned")

        self._history.append((
            self.step_index,
            dict(self.blue_picks),
            dict(self.red_picks),
            list(self.blue_bans),
            list(self.red_bans),
        ))

        if step.type == BAN:
            bans = self.blue_bans if step.side == BLUE else self.red_bans
            bans.append(hero_id)
        else:
            picks = self.blue_picks if step.side == BLUE else self.red_picks
            picks[len(picks)] = hero_id

        self.step_index += 1
        return step

    def undo(self) -> None:
        if not self._history:
            return
        (
            self.step_index,
            self.blue_picks,
            self.red_picks,
            self.blue_bans,
            self.red_bans,
        ) = self._history.pop()

    def snapshot(self) -> dict:
        step = self.current_step
        return {
            "step_index": self.step_index,
            "current_step": step._asdict() if step else None,
            "timer": self.timer,
            "is_finished": self.is_finished,
            "blue_picks": self.blue_picks,
            "red_picks": self.red_picks,
            "blue_bans": self.blue_bans,
            "red_bans": self.red_bans,
        }


# ---------------------------------------------------------------------------
# Post-draft form: role assignment + conversion into draft_picks rows
# ---------------------------------------------------------------------------

def autofill_roles(heroes: list[dict]) -> dict[int, str]:
    """Heroes that only play one position get it pre-assigned."""
    assignments: dict[int, str] = {}
    for hero in heroes:
        positions = hero.get("main_position") or []
        if len(positions) == 1:
            assignments[hero["id"]] = positions[0]
    return assignments


def find_duplicate_roles(hero_ids: list[int], assignments: dict[int, str]) -> list[str]:
    """Roles assigned to more than one hero of the same team (empty list = no conflict)."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for hero_id in hero_ids:
        role = assignments.get(hero_id)
        if not role:
            continue
        if role in seen and role not in duplicates:
            duplicates.append(role)
        seen.add(role)
    return duplicates


def find_repeated_heroes(
    blue_picks: dict[int, int],
    red_picks: dict[int, int],
    blue_bans: list[int],
    red_bans: list[int],
) -> list[int]:
    """Hero ids used more than once across both sides' picks and bans."""
    seen: set[int] = set()
    repeated: list[int] = []
    for hero_id in [*blue_picks.values(), *red_picks.values(), *blue_bans, *red_bans]:
        if hero_id in seen and hero_id not in repeated:
            repeated.append(hero_id)
        seen.add(hero_id)
    return repeated


def replay_draft(hero_ids: list[int]) -> DraftEngine:
    """Runs a lock-in order through a fresh engine; raises ValueError on an illegal step."""
    engine = DraftEngine()
    for hero_id in hero_ids:
        engine.lock_in(hero_id)
    return engine


def build_pick_records(
    blue_picks: dict[int, int],
    red_picks: dict[int, int],
    blue_bans: list[int],
    red_bans: list[int],
    assignments: dict[int, str],
) -> list[dict]:
    """Maps the form's per-side slot indexes onto absolute draft slots.

    Entries beyond the five picks / four bans of a side are dropped.
    """
    records: list[dict] = []

    for side, picks, slots in ((BLUE, blue_picks, BLUE_PICK_SLOTS), (RED, red_picks, RED_PICK_SLOTS)):
        for idx, hero_id in sorted(picks.items()):
            idx = int(idx)
            if 0 <= idx < len(slots):
                records.append({
                    "hero_id": hero_id,
                    "type": PICK,
                    "side": side,
                    "position_index": slots[idx],
                    "assigned_role": assignments.get(hero_id) or FLEX_ROLE,
                })

    for side, bans, slots in ((BLUE, blue_bans, BLUE_BAN_SLOTS), (RED, red_bans, RED_BAN_SLOTS)):
        for idx, hero_id in enumerate(bans[: len(slots)]):
            records.append({
                "hero_id": hero_id,
                "type": BAN,
                "side": side,
                "position_index": slots[idx],
                "assigned_role": None,
            })

    logger.debug("[draft] built %d pick records", len(records))
    return sorted(records, key=lambda r: r["position_index"])

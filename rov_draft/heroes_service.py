"""
heroes_service.py — Game versions (patches) and the hero roster.

Heroes are global; their tier / power spike / win rate live in hero_stats,
one row per (hero, version).  A hero "exists in" a version when it has a
hero_stats row for it.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from rov_draft.analytics import normalize_role
from rov_draft.config import DAMAGE_TYPES, DEFAULT_HERO_WIN_RATE, POWER_SPIKES, TIERS
from rov_draft.models import Hero, HeroStat, Version

logger = logging.getLogger(__name__)


def version_to_dict(version: Version) -> dict:
    return {
        "id": version.id,
        "name": version.name,
        "start_date": version.start_date.isoformat() if version.start_date else None,
        "is_active": bool(version.is_active),
    }


def hero_to_dict(hero: Hero, stat: Optional[HeroStat] = None) -> dict:
    data = {
        "id": hero.id,
        "name": hero.name,
        "icon_url": hero.icon_url,
        "main_position": list(hero.main_position or []),
        "damage_type": hero.damage_type,
    }
    if stat is not None:
        data["hero_stats"] = {
            "version_id": stat.version_id,
            "tier": stat.tier,
            "power_spike": stat.power_spike,
            "win_rate": stat.win_rate,
        }
    return data


def _get_version(db: Session, version_id: int) -> Version:
    version = db.get(Version, version_id)
    if version is None:
        raise LookupError(f"Version {version_id} not found")
    return version


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------

def get_versions(db: Session) -> list[dict]:
    rows = db.query(Version).order_by(Version.start_date.desc(), Version.id.desc()).all()
    return [version_to_dict(v) for v in rows]


def get_active_version(db: Session) -> Optional[dict]:
    version = db.query(Version).filter(Version.is_active.is_(True)).first()
    return version_to_dict(version) if version else None


def create_version(db: Session, name: str, start_date: Optional[date]) -> dict:
    if not name or start_date is None:
        raise ValueError("Name and start date are required")

    version = Version(name=name.strip(), start_date=start_date, is_active=False)
    db.add(version)
    db.commit()
    logger.info("[versions] created id=%s name=%s", version.id, version.name)
    return {"success": True, "message": "Version created", "id": version.id}


def activate_version(db: Session, version_id: int) -> dict:
    """Makes version_id the only active version."""
    version = _get_version(db, version_id)
    db.query(Version).filter(Version.id != version_id).update(
        {Version.is_active: False}, synchronize_session=False
    )
    version.is_active = True
    db.commit()
    logger.info("[versions] activated id=%s", version_id)
    return {"success": True, "message": f"Version {version.name} is now active"}


# ---------------------------------------------------------------------------
# Heroes
# ---------------------------------------------------------------------------

def get_all_heroes(db: Session) -> list[dict]:
    return [hero_to_dict(h) for h in db.query(Hero).order_by(Hero.name).all()]


def hero_lookup(db: Session) -> dict[int, dict]:
    """{hero_id: hero dict} for the analytics functions."""
    return {h.id: hero_to_dict(h) for h in db.query(Hero).all()}


def get_heroes_by_version(db: Session, version_id: int) -> list[dict]:
    rows = (
        db.query(Hero, HeroStat)
        .join(HeroStat, HeroStat.hero_id == Hero.id)
        .filter(HeroStat.version_id == version_id)
        .order_by(Hero.name)
        .all()
    )
    return [hero_to_dict(hero, stat) for hero, stat in rows]


def get_hero_detail(db: Session, name: str) -> dict:
    hero = db.query(Hero).filter(func.lower(Hero.name) == name.strip().lower()).first()
    if hero is None:
        raise LookupError(f"Hero {name} not found")
    data = hero_to_dict(hero)
    data["stats"] = [
        {
            "version_id": s.version_id,
            "tier": s.tier,
            "power_spike": s.power_spike,
            "win_rate": s.win_rate,
        }
        for s in sorted(hero.stats, key=lambda s: s.version_id)
    ]
    return data


def _check_hero_fields(
    damage_type: Optional[str],
    main_position: Optional[list[str]],
    tier: Optional[str] = None,
    power_spike: Optional[str] = None,
) -> tuple[list[str], Optional[str]]:
    """Rejects values outside the config vocabularies.

    Returns the positions mapped to their canonical names ('JUG' -> 'Jungle')
    and the tier upper-cased, or None when blank.
    """
    if damage_type and damage_type not in DAMAGE_TYPES:
        raise ValueError(f"Unknown damage type: {damage_type}")
    if power_spike and power_spike not in POWER_SPIKES:
        raise ValueError(f"Unknown power spike: {power_spike}")

    positions: list[str] = []
    for raw in main_position or []:
        position = normalize_role(raw)
        if position is None:
            raise ValueError(f"Unknown position: {raw}")
        if position not in positions:
            positions.append(position)

    tier = tier.strip().upper() if tier and tier.strip() else None
    if tier is not None and tier not in TIERS:
        raise ValueError(f"Unknown tier: {tier}")
    return positions, tier


def _upsert_stat(db: Session, hero_id: int, version_id: int, **values) -> HeroStat:
    stat = (
        db.query(HeroStat)
        .filter(HeroStat.hero_id == hero_id, HeroStat.version_id == version_id)
        .first()
    )
    if stat is None:
        stat = HeroStat(hero_id=hero_id, version_id=version_id, win_rate=DEFAULT_HERO_WIN_RATE)
        db.add(stat)
    for key, value in values.items():
        setattr(stat, key, value)
    return stat


def create_hero(
    db: Session,
    name: str,
    icon_url: str,
    version_id: Optional[int],
    damage_type: Optional[str] = None,
    main_position: Optional[list[str]] = None,
    power_spike: Optional[str] = None,
) -> dict:
    if not name or not icon_url or not version_id:
        raise ValueError("Name, icon URL and version are required")
    positions, _ = _check_hero_fields(damage_type, main_position, power_spike=power_spike)
    _get_version(db, version_id)

    existing = db.query(Hero).filter(func.lower(Hero.name) == name.strip().lower()).first()
    if existing is not None:
        raise ValueError(f"Hero {name} already exists")

    hero = Hero(
        name=name.strip(),
        icon_url=icon_url.strip(),
        damage_type=damage_type,
        main_position=positions,
    )
    db.add(hero)
    db.flush()
    _upsert_stat(db, hero.id, version_id, power_spike=power_spike, win_rate=DEFAULT_HERO_WIN_RATE)
    db.commit()

    logger.info("[heroes] created id=%s name=%s version=%s", hero.id, hero.name, version_id)
    return {"success": True, "message": "Hero created", "id": hero.id}


def update_hero(
    db: Session,
    hero_id: int,
    version_id: int,
    name: str,
    icon_url: str,
    damage_type: Optional[str],
    main_position: list[str],
    tier: Optional[str] = None,
    power_spike: Optional[str] = None,
) -> dict:
    hero = db.get(Hero, hero_id)
    if hero is None:
        raise LookupError(f"Hero {hero_id} not found")
    _get_version(db, version_id)
    positions, tier = _check_hero_fields(damage_type, main_position, tier, power_spike)

    hero.name = name.strip()
    hero.icon_url = icon_url
    hero.damage_type = damage_type
    hero.main_position = positions
    _upsert_stat(db, hero_id, version_id, tier=tier, power_spike=power_spike or "Balanced")
    db.commit()

    logger.info("[heroes] updated id=%s version=%s", hero_id, version_id)
    return {"success": True, "message": "Hero updated"}


# ---------------------------------------------------------------------------
# Spreadsheet import
# ---------------------------------------------------------------------------

def _normalize_header(key: str) -> str:
    return "".join(str(key).lower().split())


def _cell(row: dict, *candidates: str) -> Optional[str]:
    """First non-empty value among the candidate headers (case/space insensitive)."""
    normalized = {_normalize_header(k): v for k, v in row.items()}
    for candidate in candidates:
        value = normalized.get(_normalize_header(candidate))
        if value not in (None, ""):
            return str(value).strip()
    return None


def bulk_import_heroes(db: Session, version_id: int, rows: list[dict]) -> dict:
    """Imports heroes from parsed spreadsheet rows.

    Recognised columns: Name, IconURL, DamageType, Position (comma-separated),
    PowerSpike.  Existing heroes (matched case-insensitively by name) are
    updated; every imported hero gets a stats row for version_id.
    """
    _get_version(db, version_id)
    imported = 0
    errors: list[str] = []

    for i, row in enumerate(rows):
        line = i + 2  # header is spreadsheet row 1
        name = _cell(row, "Name", "Hero Name", "name")
        if not name:
            errors.append(f"Row {line}: Missing hero name")
            continue

        icon_url = _cell(row, "IconURL", "Icon URL", "icon") or ""
        damage_type = _cell(row, "DamageType", "Damage Type", "damage") or "Physical"
        raw_positions = _cell(row, "Position", "Positions", "role") or "Mid"
        positions = [p.strip() for p in raw_positions.split(",") if p.strip()]
        power_spike = _cell(row, "PowerSpike", "Power Spike", "power") or "Balanced"

        try:
            positions, _ = _check_hero_fields(damage_type, positions, power_spike=power_spike)
            hero = db.query(Hero).filter(Hero.name.ilike(name)).first()
            if hero is None:
                hero = Hero(name=name)
                db.add(hero)
            hero.icon_url = icon_url
            hero.damage_type = damage_type
            hero.main_position = positions
            db.flush()

            _upsert_stat(db, hero.id, version_id, tier=None, power_spike=power_spike, win_rate=DEFAULT_HERO_WIN_RATE)
            db.commit()
            imported += 1
        except Exception as exc:
            db.rollback()
            logger.warning("[heroes import] row %d failed: %s", line, exc)
            errors.append(f"Row {line}: {exc}")

    logger.info("[heroes import] version=%s imported=%d errors=%d", version_id, imported, len(errors))
    return {
        "success": True,
        "message": f"Imported {imported} heroes. Errors: {len(errors)}",
        "imported": imported,
        "errors": errors,
    }

"""
Pytest configuration and fixtures for ROV Draft Lab tests.

Every test runs against a fresh throw-away SQLite database.
"""
import os
import tempfile
from datetime import date

import pytest

# Must be set before rov_draft.database is imported: the engine is built at import time
_TMP_DIR = tempfile.mkdtemp(prefix="rov_draft_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["ADMIN_PASSWORD"] = "letmein"
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["SUGGESTION_MIN_GAMES"] = "2"

from rov_draft.database import SessionLocal, create_all_tables, drop_all_tables  # noqa: E402
from rov_draft.models import Hero, HeroStat, Tournament, Version  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_database():
    """Recreates every table around each test."""
    drop_all_tables()
    create_all_tables()
    yield
    drop_all_tables()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def version(db):
    v = Version(name="S1 2026", start_date=date(2026, 1, 1), is_active=True)
    db.add(v)
    db.commit()
    return v


@pytest.fixture
def heroes(db, version):
    """Six heroes with stats in `version`, keyed by name."""
    roster = [
        ("Florentino", ["Dark Slayer"]),
        ("Nakroth", ["Jungle"]),
        ("Liliana", ["Mid"]),
        ("Valhein", ["Abyssal Dragon"]),
        ("Alice", ["Roam"]),
        ("Tulen", ["Mid", "Jungle"]),
    ]
    result = {}
    for name, positions in roster:
        hero = Hero(name=name, icon_url=f"https://cdn.example/{name}.png", main_position=positions, damage_type="Magic")
        db.add(hero)
        db.flush()
        db.add(HeroStat(hero_id=hero.id, version_id=version.id, win_rate=50.0))
        result[name] = hero
    db.commit()
    return result


@pytest.fixture
def tournament(db):
    t = Tournament(name="RoV Pro League", slug="rov_pro_league", status="ongoing")
    db.add(t)
    db.commit()
    return t

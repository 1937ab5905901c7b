import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="pgnbase-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["OPENING_TREE_URL"] = ""

import pytest

from pgnbase import models  # noqa: F401
from pgnbase.database import Base, engine
from pgnbase.openings import EcoEntry, OpeningIndex


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def small_index():
    return OpeningIndex(
        [
            EcoEntry(eco="B50", name="Sicilian Defense: Modern Variations", moves=("e4", "c5", "Nf3", "d6")),
            EcoEntry(eco="B20", name="Sicilian Defense", moves=("e4", "c5")),
            EcoEntry(eco="B01", name="Scandinavian Defense", moves=("e4", "d5")),
            EcoEntry(eco="B00", name="King's Pawn Game", moves=("e4",)),
        ]
    )

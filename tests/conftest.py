from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import order_pricing.persistence.pg as pg
from order_pricing.domain.pricing.models import TaxCode
from order_pricing.persistence.models import Base

SEED_FILE = Path(__file__).resolve().parents[1] / "order_pricing" / "reference_seed.json"


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    engine = create_engine(
        f"sqlite+pysqlite:///{test_db_path}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    pg.engine = engine
    pg.SessionLocal = TestSessionLocal

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="session")
def reference_data() -> dict:
    return json.loads(SEED_FILE.read_text(encoding="utf-8"))


@pytest.fixture(scope="session", autouse=True)
def seeded_reference(configure_test_engine, reference_data):
    with pg.catalog_scope() as catalog:
        catalog.load_reference(reference_data)


@pytest.fixture()
def client(configure_test_engine):
    from order_pricing.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session(configure_test_engine):
    with pg.session_scope() as s:
        yield s


@pytest.fixture()
def tax_codes() -> dict[str, TaxCode]:
    return {
        "T18": TaxCode(id="T18", rate=Decimal("18"), code="VAT18"),
        "T0": TaxCode(id="T0", rate=Decimal("0"), code="VAT0"),
    }


@pytest.fixture()
def wht_codes() -> dict[str, TaxCode]:
    return {"W5": TaxCode(id="W5", rate=Decimal("5"), code="WHT5", is_wht=True)}

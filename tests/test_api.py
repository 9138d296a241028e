import pytest
from sqlalchemy import create_engine

from minibank.api import create_app
from minibank.repo import Repo

SCHEMA = (
    "CREATE TABLE company (company_id INTEGER PRIMARY KEY, company_name TEXT NOT NULL)",
    "CREATE TABLE account (account_id INTEGER PRIMARY KEY, company_id INTEGER NOT NULL, "
    "account_number INTEGER NOT NULL DEFAULT 5550001, account_balance REAL NOT NULL)",
    'CREATE TABLE "transaction" (tx_id INTEGER PRIMARY KEY, source_account_id INTEGER, '
    "target_account_id INTEGER, transfer_amount REAL NOT NULL, error TEXT, "
    "created_at TEXT DEFAULT CURRENT_TIMESTAMP)",
)


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'bank.db'}")
    with eng.begin() as conn:
        for stmt in SCHEMA:
            conn.exec_driver_sql(stmt)
    yield eng
    eng.dispose()


@pytest.fixture
def client(engine):
    return create_app(Repo(engine)).test_client()


def test_create_company(client):
    resp = client.post("/companies", json={"company_name": "Acme Corp"})
    assert resp.status_code == 201
    assert resp.get_json()["company_name"] == "Acme Corp"


def test_list_companies_empty(client):
    resp = client.get("/companies")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "[]\n"


def test_list_companies_after_create(client):
    client.post("/companies", json={"company_name": "Acme Corp"})
    client.post("/companies", json={"company_name": "Beta Corp"})
    resp = client.get("/companies")
    assert [c["company_name"] for c in resp.get_json()] == ["Acme Corp", "Beta Corp"]


def test_create_account(client):
    resp = client.post("/companies/1/accounts", json={"initial_balance": 1000.0})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["account_id"] == 1
    assert body["account_balance"] == 1000


def test_get_account_by_nested_route(client):
    client.post("/companies/1/accounts", json={"initial_balance": 10.0})
    resp = client.get("/companies/1/accounts/1")
    assert resp.status_code == 200
    assert resp.get_json()["account_balance"] == 10


def test_get_company_by_id(client):
    client.post("/companies", json={"company_name": "Acme Corp"})
    resp = client.get("/companies/1")
    assert resp.status_code == 200
    assert resp.get_json() == {"company_id": 1, "company_name": "Acme Corp"}


def test_non_numeric_id_is_not_found(client):
    assert client.get("/companies/abc").status_code == 404


def test_wrong_method_is_rejected(client):
    assert client.delete("/companies").status_code == 405


def test_transfer_route(client, engine):
    with engine.begin() as conn:
        conn.exec_driver_sql(
            "INSERT INTO account (company_id, account_number, account_balance) VALUES "
            "(1, 111, 50.0), (1, 222, 0.0)"
        )
    resp = client.post("/transfer", data=b"111,222,20\n", content_type="text/csv")
    assert resp.status_code == 204
    with engine.connect() as conn:
        balances = conn.exec_driver_sql(
            "SELECT account_balance FROM account ORDER BY account_id"
        ).scalars().all()
    assert balances == [30.0, 20.0]
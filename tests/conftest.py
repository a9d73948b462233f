# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text

from crudui.core.config import Settings
from crudui.main import create_app
from crudui.models.config import AdminConfig
from crudui.models.table import ColumnDescriptor, TableDescriptor

USERS = [
    {"id": 1, "name": "Alice", "email": "alice@example.com", "age": 30, "active": 1,
     "created_at": "2024-01-05", "bio": 'He said, "hi"'},
    {"id": 2, "name": "Bob", "email": "bob@example.com", "age": 25, "active": 0,
     "created_at": "2024-02-10", "bio": None},
    {"id": 3, "name": "Carol", "email": "carol@example.org", "age": 41, "active": 1,
     "created_at": "2024-03-15", "bio": "x" * 400},
    {"id": 4, "name": "Alan", "email": "alan@example.net", "age": 35, "active": 1,
     "created_at": "2024-03-20", "bio": "<b>bold</b>"},
    {"id": 5, "name": "Dave", "email": "dave@example.com", "age": 28, "active": 0,
     "created_at": "2024-04-01", "bio": "quiet"},
]

ORDERS = [
    {"id": 1, "user_id": 1, "total": 10.5, "placed_at": "2024-01-06 10:00:00"},
    {"id": 2, "user_id": 1, "total": 4.5, "placed_at": "2024-02-01 12:30:00"},
    {"id": 3, "user_id": 3, "total": 99.0, "placed_at": "2024-03-16 08:15:00"},
]


def create_schema(db_path) -> None:
    engine = create_engine(f"sqlite:///{db_path}")
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE users ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, name VARCHAR(50) NOT NULL, email VARCHAR(100), "
            "age INTEGER, active BOOLEAN, created_at DATE, bio TEXT)"
        ))
        conn.execute(text(
            "CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER, total FLOAT, placed_at DATETIME)"
        ))
        conn.execute(text("CREATE TABLE secrets (id INTEGER PRIMARY KEY, token TEXT)"))
        conn.execute(text(
            "INSERT INTO users (id, name, email, age, active, created_at, bio) "
            "VALUES (:id, :name, :email, :age, :active, :created_at, :bio)"
        ), USERS)
        conn.execute(text(
            "INSERT INTO orders (id, user_id, total, placed_at) VALUES (:id, :user_id, :total, :placed_at)"
        ), ORDERS)
        conn.execute(text("INSERT INTO secrets (id, token) VALUES (1, 'hunter2')"))
    engine.dispose()


def make_config(db_path, **overrides) -> AdminConfig:
    data = {
        "database": {"driver": "sqlite+aiosqlite", "database": str(db_path)},
        "tables": [
            {
                "name": "users",
                "displayName": "Users",
                "pagination": {"pageSize": 3},
                "columns": [
                    {"name": "bio", "editRenderer": "textarea"},
                    {"name": "email", "viewRenderer": "email"}
                ]
            },
            {"name": "orders", "duplicate": False},
            {"name": "secrets", "hidden": True},
            {
                "name": "order_totals",
                "displayName": "Order totals",
                "customSql": "SELECT user_id, COUNT(*) AS order_count, SUM(total) AS revenue "
                             "FROM orders GROUP BY user_id"
            }
        ]
    }
    data.update(overrides)
    return AdminConfig.model_validate(data)


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "crudui.db"
    create_schema(path)
    return path


@pytest.fixture
def admin_config(db_path):
    return make_config(db_path)


@pytest.fixture
def client(admin_config, settings):
    app = create_app(admin_config, settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def users_table():
    return TableDescriptor(
        name="users",
        columns=(
            ColumnDescriptor("id", "INTEGER", key="PRI", nullable=False),
            ColumnDescriptor("name", "VARCHAR(50)"),
            ColumnDescriptor("email", "VARCHAR(100)"),
            ColumnDescriptor("age", "INTEGER"),
            ColumnDescriptor("created_at", "DATE"),
        ),
        page_size=50
    )


@pytest.fixture
def custom_table():
    return TableDescriptor(
        name="order_totals",
        columns=(ColumnDescriptor("user_id"), ColumnDescriptor("order_count")),
        custom_sql="SELECT user_id, COUNT(*) AS order_count FROM orders GROUP BY user_id"
    )

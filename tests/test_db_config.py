# tests/test_db_config.py
import pytest
from fastapi.testclient import TestClient

from crudui.main import create_app

from .conftest import make_config


def _unreachable_config(tmp_path, **overrides):
    # SQLite cannot create a file inside a directory that does not exist
    return make_config(tmp_path / "missing" / "nowhere.db", **overrides)


def test_every_get_shows_the_configuration_form(tmp_path, settings):
    app = create_app(_unreachable_config(tmp_path), settings)

    with TestClient(app) as client:
        for url in ("/", "/users", "/users/edit/1"):
            response = client.get(url)
            assert response.status_code == 200
            assert "Database Connection Required" in response.text
            assert 'action="/db-config"' in response.text


def test_incomplete_configuration_shows_the_form(settings):
    app = create_app(make_config("", database={"driver": "postgresql+asyncpg"}), settings)

    with TestClient(app) as client:
        response = client.get("/")

    assert "Database Connection Required" in response.text
    assert "Database configuration required" in response.text


def test_failed_then_successful_reconfiguration(tmp_path, db_path, settings):
    app = create_app(_unreachable_config(tmp_path), settings)

    with TestClient(app) as client:
        failed = client.post("/db-config", data={"database": str(tmp_path / "still" / "missing.db")})
        assert failed.status_code == 400
        assert "Database Connection Required" in failed.text
        assert "alert-error" in failed.text

        response = client.post("/db-config", data={"database": str(db_path)}, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/"

        listing = client.get("/users?sort=id,asc")
        assert listing.status_code == 200
        assert '<tr data-key="1"' in listing.text
        assert app.state.dispatcher.state is not None


def test_recovery_under_root_path(tmp_path, db_path, settings):
    app = create_app(_unreachable_config(tmp_path, rootPath="/admin"), settings)

    with TestClient(app) as client:
        form = client.get("/admin/users")
        response = client.post("/admin/db-config", data={"database": str(db_path)}, follow_redirects=False)
        index = client.get("/admin/")

    assert 'action="/admin/db-config"' in form.text
    assert response.headers["location"] == "/admin/"
    assert 'href="/admin/users"' in index.text


def test_startup_fails_when_recovery_is_disabled(tmp_path, settings):
    app = create_app(_unreachable_config(tmp_path, features={"dbErrorUI": False}), settings)

    with pytest.raises(Exception):
        with TestClient(app):
            pass

# tests/test_routes.py
import re

from fastapi.testclient import TestClient
from starlette.datastructures import FormData

from crudui.api.routes import _inline_submission
from crudui.main import create_app

from .conftest import make_config


def _keys(html):
    return re.findall(r'<tr data-key="([^"]*)"', html)


def test_index_lists_visible_tables(client):
    response = client.get("/")

    assert response.status_code == 200
    assert 'href="/users"' in response.text
    assert 'href="/orders"' in response.text
    assert 'href="/order_totals"' in response.text
    assert "secrets" not in response.text


def test_list_with_search_sort_and_visible_columns(client):
    response = client.get("/users?search=al&sort=id,desc&visible=id,email&page=1")

    assert response.status_code == 200
    html = response.text
    assert _keys(html) == ["4", "1"]
    assert re.findall(r'<th class="[^"]*"\s+data-column="([^"]+)"', html) == ["id", "email"]
    assert 'class="col-actions"' in html
    assert 'class="col-edit-delete"' in html
    assert 'data-column="name"' not in html
    assert 'class="sort-desc sortable resizable"' in html


def test_list_paginates(client):
    first = client.get("/users?sort=id,asc")
    second = client.get("/users?sort=id,asc&page=2")

    assert _keys(first.text) == ["1", "2", "3"]
    assert _keys(second.text) == ["4", "5"]
    assert "Showing 4 to 5 of 5 records" in second.text


def test_list_page_past_the_end(client):
    response = client.get("/users?sort=id,asc&page=5")

    assert response.status_code == 200
    assert _keys(response.text) == []
    assert "Showing 0 to 0 of 5 records" in response.text


def test_list_ignores_unknown_sort_column(client):
    response = client.get("/users?sort=ghost,desc")

    assert response.status_code == 200
    assert len(_keys(response.text)) == 3


def test_date_filter(client):
    response = client.get("/users?date_col=created_at&date_from=2024-03-01&date_to=2024-03-20&sort=id,asc")

    assert _keys(response.text) == ["3", "4"]


def test_csv_export(client):
    response = client.get("/users?csv=1&sort=id,asc&visible=id,name,bio")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="users.csv"'
    lines = response.text.splitlines()
    assert lines[0] == "id,name,bio"
    assert lines[1] == '1,Alice,"He said, ""hi"""'
    assert len(lines) == 6


def test_create_record(client):
    form = client.get("/users/new")
    assert form.status_code == 200
    assert 'name="id"' not in form.text

    response = client.post("/users/new", data={
        "name": "Eve", "email": "eve@example.com", "age": "22", "active": "1",
        "created_at": "2024-05-01", "bio": ""
    }, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/users"
    listing = client.get("/users?search=eve@example.com")
    assert _keys(listing.text) == ["6"]


def test_edit_record_updates_submitted_fields_only(client):
    form = client.get("/users/edit/1")
    assert form.status_code == 200
    assert 'name="id" value="1" class="form-control" readonly' in form.text

    response = client.post("/users/edit/1", data={"name": "Alicia"}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/users"
    view = client.get("/users/view/1")
    assert "Alicia" in view.text
    assert "alice@example.com" in view.text


def test_view_save_returns_to_view(client):
    response = client.post("/users/view/2", data={"age": "26"}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/users/view/2"
    assert 'value="26"' in client.get("/users/view/2").text


def test_duplicate_prefills_new_form(client):
    response = client.get("/users/duplicate/2")

    assert response.status_code == 200
    assert 'action="/users/new"' in response.text
    assert 'value="Bob"' in response.text
    assert 'name="id"' not in response.text


def test_duplicate_disabled(client):
    assert client.get("/orders/duplicate/1").status_code == 404


def test_delete_record(client):
    response = client.post("/users/delete/5", follow_redirects=False)

    assert response.status_code == 303
    assert client.get("/users/view/5").status_code == 404


def test_inline_update(client):
    response = client.post("/users/inline/2", data={"field": "email", "value": "bobby@example.com"},
                           follow_redirects=False)

    assert response.status_code == 303
    assert "bobby@example.com" in client.get("/users/view/2").text


def test_inline_update_without_script(client):
    response = client.post("/users/inline/2", data={"field": "name", "name": "Robert"},
                           follow_redirects=False)

    assert response.status_code == 303
    assert "Robert" in client.get("/users/view/2").text


def test_inline_update_rejects_unknown_and_key_fields(client):
    assert client.post("/users/inline/2", data={"field": "ghost", "value": "x"}).status_code == 400
    assert client.post("/users/inline/2", data={"field": "id", "value": "9"}).status_code == 400
    assert client.post("/users/inline/2", data={"value": "x"}).status_code == 400


def test_inline_update_without_value_is_rejected(client):
    response = client.post("/users/inline/1", data={"field": "email"})

    assert response.status_code == 400
    assert "alice@example.com" in client.get("/users/view/1").text


def test_missing_records_are_404(client):
    for url in ("/users/edit/999", "/users/view/999", "/users/duplicate/999"):
        response = client.get(url)
        assert response.status_code == 404
        assert "Error 404" in response.text

    assert client.post("/users/inline/999", data={"field": "name", "value": "x"}).status_code == 404
    assert client.post("/users/delete/999").status_code == 404


def test_database_error_is_500(client):
    response = client.post("/users/new", data={"email": "no-name@example.com"})

    assert response.status_code == 500
    assert "Error 500" in response.text
    assert "Traceback" not in response.text


def test_custom_sql_table_is_read_only(client):
    response = client.get("/order_totals?sort=user_id,asc")

    assert response.status_code == 200
    assert _keys(response.text) == ["1", "3"]
    assert "/order_totals/new" not in response.text
    assert client.get("/order_totals/new").status_code == 404
    assert client.post("/order_totals/delete/1").status_code == 404
    assert client.post("/order_totals/inline/1", data={"field": "revenue", "value": "0"}).status_code == 404


def test_custom_sql_table_csv(client):
    response = client.get("/order_totals?csv=1&sort=user_id,asc")

    assert response.text.splitlines() == ["user_id,order_count,revenue", "1,2,15.0", "3,1,99.0"]


def test_hidden_table_has_no_routes(client):
    assert client.get("/secrets").status_code == 404


def test_static_assets(client):
    assert client.get("/static/client.js").status_code == 200
    assert client.get("/static/style.css").status_code == 200


def test_root_path(db_path, settings):
    app = create_app(make_config(db_path, rootPath="/admin"), settings)

    with TestClient(app) as client:
        index = client.get("/admin/")
        listing = client.get("/admin/users?sort=id,asc")
        created = client.post("/admin/users/new", data={"name": "Zoe"}, follow_redirects=False)
        static = client.get("/admin/static/client.js")

    assert index.status_code == 200
    assert 'href="/admin/users"' in index.text
    assert 'href="/admin/users/view/1"' in listing.text
    assert "/admin/static/style.css?v=" in listing.text
    assert created.headers["location"] == "/admin/users"
    assert static.status_code == 200


def test_inline_submission_with_colliding_column_names():
    # Without script the hidden field input comes first, then the control under the column name
    assert _inline_submission(FormData([("field", "field"), ("field", "new")])) == ("field", "new")
    assert _inline_submission(FormData([("field", "value"), ("value", "new")])) == ("value", "new")
    # Scripted posts always carry field and value
    assert _inline_submission(FormData([("field", "field"), ("value", "new")])) == ("field", "new")
    assert _inline_submission(FormData([("field", "email")])) == ("email", None)

# tests/test_view_renderer.py
from crudui.models.query_state import ACTION_COLUMNS, QueryState, SortKey
from crudui.services import view_renderer
from crudui.services.pagination import PageInfo

ROWS = [
    {"id": 1, "name": "<script>x</script>", "email": "a@example.com", "age": 3, "created_at": "2024-01-01"},
    {"id": 2, "name": "y" * 400, "email": None, "age": None, "created_at": None},
]


def test_table_page_escapes_and_keeps_untruncated_value(users_table):
    html = view_renderer.render_table_page(users_table, ROWS, QueryState(visible=users_table.column_names),
                                           PageInfo(1, 50, 2), "")

    assert "<script>x</script>" not in html
    assert "&lt;script&gt;x&lt;/script&gt;" in html
    assert '<span class="old_value" hidden>' + "y" * 400 + "</span>" in html
    assert "y" * 350 + "…" in html


def test_headers_carry_sort_classes_and_urls(users_table):
    state = QueryState(sort=(SortKey("id", "desc"),), visible=("id", "name") + ACTION_COLUMNS)

    html = view_renderer.render_table_page(users_table, ROWS, state, PageInfo(1, 50, 2), "/admin")

    assert 'class="sort-desc sortable resizable"' in html
    assert 'data-sort="id,desc"' in html
    assert 'data-visible="id,name,__actions__,__editdelete__"' in html
    # Plain click on the sole key toggles it; shift-click on another column appends
    assert 'data-sort-url="/admin/users?sort=id,asc&amp;visible=id,name,__actions__,__editdelete__"' in html
    assert 'data-sort-url-shift="/admin/users?sort=id,desc,name,asc&amp;' in html
    assert 'data-column="email"' not in html


def test_pagination_links_carry_full_state(users_table):
    state = QueryState(search="al", sort=(SortKey("id", "desc"),), visible=("id", "email") + ACTION_COLUMNS, page=5)

    html = view_renderer.render_table_page(users_table, ROWS, state, PageInfo(5, 10, 100), "")

    expected = "/users?search=al&amp;sort=id,desc&amp;visible=id,email,__actions__,__editdelete__"
    assert f'href="{expected}&amp;page=4" rel="prev"' in html
    assert f'href="{expected}"' in html
    assert f'href="{expected}&amp;page=10"' in html
    assert '<span class="page-link current">5</span>' in html
    assert "Showing 41 to 50 of 100 records" in html


def test_action_buttons_and_inline_edit(users_table):
    state = QueryState(visible=users_table.column_names + ACTION_COLUMNS)

    html = view_renderer.render_table_page(users_table, ROWS, state, PageInfo(1, 50, 2), "")

    assert 'href="/users/view/1"' in html
    assert 'href="/users/edit/1"' in html
    assert 'action="/users/delete/1"' in html
    assert 'action="/users/inline/1"' in html
    assert 'href="/users/new"' in html


def test_custom_table_page_is_read_only(custom_table):
    rows = [{"user_id": 1, "order_count": 2}]

    state = QueryState(visible=custom_table.column_names + ACTION_COLUMNS)

    html = view_renderer.render_table_page(custom_table, rows, state, PageInfo(1, 50, 1), "")

    assert "/order_totals/new" not in html
    assert "/order_totals/view/" not in html
    assert "inline-edit" not in html
    assert 'data-column="order_count"' in html


def test_record_forms(users_table):
    row = {"id": 9, "name": "Ann", "email": "ann@example.com", "age": 20, "created_at": "2024-01-01"}

    edit = view_renderer.render_record_form(users_table, row, view_renderer.MODE_EDIT, "/users/edit/9", "")
    new = view_renderer.render_record_form(users_table, None, view_renderer.MODE_NEW, "/users/new", "")

    assert '<input type="text" name="id" value="9" class="form-control" readonly>' in edit
    assert 'value="Ann"' in edit
    assert 'name="id"' not in new
    assert 'action="/users/new"' in new


def test_record_view_has_duplicate_button(users_table):
    row = {"id": 9, "name": "Ann", "email": None, "age": None, "created_at": None}

    html = view_renderer.render_record_view(users_table, row, 9, "")

    assert 'action="/users/view/9"' in html
    assert 'href="/users/duplicate/9"' in html


def test_index_cards(users_table, custom_table):
    html = view_renderer.render_index([users_table, custom_table], "/admin")

    assert 'href="/admin/users"' in html
    assert "Manage users records" in html
    assert "Custom table: order_totals" in html


def test_error_page_has_no_traceback():
    html = view_renderer.render_error("Boom <here>", 500, "")

    assert "Error 500" in html
    assert "Boom &lt;here&gt;" in html
    assert "Traceback" not in html

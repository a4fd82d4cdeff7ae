from dataclasses import replace

from dbls.postgres_driver import Page
from dbls.state import (
    Browsing,
    EditingDelete,
    EditingFilter,
    RowViewMode,
    TableListMode,
    initial_session,
)
from dbls.text_field import CURSOR_MARK, TextField
from dbls.views import (
    footer_bindings,
    page_summary,
    render_screen,
    render_session,
    status_text,
    view_title,
)


def _rows_session(**changes):
    session = replace(
        initial_session(page_size=2),
        mode=RowViewMode(Browsing()),
        selected_table="widgets",
        page=Page(
            columns=("id", "name"),
            rows=(("3", "gamma"), ("4", "delta")),
            total_rows=5,
            offset=2,
        ),
    )
    return replace(session, **changes)


def test_form_view_masks_password_and_marks_focus() -> None:
    session = initial_session({"Host": "db", "Password": "secret"})
    text = render_session(session)
    assert "Enter Postgres Credentials:" in text
    assert f"> Host: db{CURSOR_MARK}" in text
    assert "  Password: ••••••" in text
    assert "secret" not in text
    assert "[Working...]" not in text
    assert "[Working...]" in render_session(replace(session, loading=True))


def test_table_list_view_marks_cursor() -> None:
    session = replace(
        initial_session(),
        mode=TableListMode(),
        table_names=("gadgets", "widgets"),
        table_cursor=1,
    )
    lines = render_session(session).splitlines()
    assert "  gadgets" in lines
    assert "> widgets" in lines


def test_empty_table_list_view() -> None:
    session = replace(initial_session(), mode=TableListMode())
    assert "(no tables found)" in render_session(session)
    assert "(no tables found)" not in render_session(replace(session, loading=True))


def test_rows_view_renders_table_and_summary() -> None:
    text = render_session(_rows_session())
    assert "Rows from table: widgets" in text
    assert "| id | name  |" in text
    assert "| 3  | gamma |" in text
    assert "Rows 3–4 of 5 (Page 2/3, page size 2)" in text
    assert "Active filter" not in text


def test_rows_view_shows_active_filter_and_editors() -> None:
    session = _rows_session(
        filter="id > 2",
        mode=RowViewMode(EditingFilter(TextField.with_value("id > 2"))),
    )
    text = render_session(session)
    assert "Active filter: WHERE id > 2" in text
    assert "Filter WHERE" in text
    assert f"│ id > 2{CURSOR_MARK} │" in text
    deleting = _rows_session(mode=RowViewMode(EditingDelete(TextField())))
    assert "DELETE WHERE" in render_session(deleting)


def test_rows_view_without_columns() -> None:
    session = _rows_session(page=Page())
    text = render_session(session)
    assert "(No rows or columns found)" in text
    assert "(No rows)" in text


def test_page_summary_handles_short_last_page() -> None:
    session = _rows_session(
        page=Page(columns=("id",), rows=(("5",),), total_rows=5, offset=4)
    )
    assert page_summary(session) == "Rows 5–5 of 5 (Page 3/3, page size 2)"


def test_render_screen_clips_to_terminal_width() -> None:
    session = _rows_session(terminal_width=6, horizontal_offset=2)
    full_lines = render_session(session).split("\n")
    clipped_lines = render_screen(session).split("\n")
    assert len(clipped_lines) == len(full_lines)
    assert all(len(line) <= 6 for line in clipped_lines)
    assert clipped_lines[0] == full_lines[0][2:8]


def test_titles_and_status_per_mode() -> None:
    assert view_title(initial_session()) == "Connection"
    assert status_text(initial_session()) == "Not connected"
    session = _rows_session(filter="id > 1")
    assert view_title(session) == "Table Row Data (widgets) Page 2"
    assert "table: widgets" in status_text(session)
    assert "where: id > 1" in status_text(session)


def test_footer_bindings_follow_sub_mode() -> None:
    browsing_keys = [key for key, _ in footer_bindings(_rows_session())]
    assert "n/p" in browsing_keys
    editing = _rows_session(mode=RowViewMode(EditingDelete(TextField())))
    assert footer_bindings(editing) == [("enter", "Delete"), ("esc", "Cancel")]

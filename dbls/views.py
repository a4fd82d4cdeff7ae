from dbls.state import (
    EditingDelete,
    EditingFilter,
    FormMode,
    RowViewMode,
    Session,
    TableListMode,
)
from dbls.table_render import apply_horizontal_scroll, render_table
from dbls.text_field import TextField, display_text


def render_screen(session: Session) -> str:
    """Page text for the current mode, clipped to the terminal width."""
    return apply_horizontal_scroll(
        render_session(session),
        session.horizontal_offset,
        session.terminal_width,
    )


def render_session(session: Session) -> str:
    if isinstance(session.mode, FormMode):
        return _render_form(session)
    if isinstance(session.mode, TableListMode):
        return _render_table_list(session)
    if isinstance(session.mode, RowViewMode):
        return _render_rows(session)
    return "Unknown state"


def _render_form(session: Session) -> str:
    lines = ["Enter Postgres Credentials:", ""]
    for index, form_field in enumerate(session.form.fields):
        focused = index == session.form.focus_index
        marker = "> " if focused else "  "
        value = display_text(form_field.text, focused=focused, secret=form_field.secret)
        lines.append(f"{marker}{form_field.label}: {value}")
    lines.extend(["", session.status])
    if session.loading:
        lines.extend(["", "[Working...]"])
    lines.extend(["", "(ctrl+c/esc to quit)", ""])
    return "\n".join(lines)


def _render_table_list(session: Session) -> str:
    lines = ["Connected.", "", "Tables in public schema:", ""]
    if not session.table_names and not session.loading:
        lines.append("  (no tables found)")
    for index, table_name in enumerate(session.table_names):
        cursor = "> " if index == session.table_cursor else "  "
        lines.append(f"{cursor}{table_name}")
    if session.loading:
        lines.extend(["", "Loading..."])
    lines.extend(
        [
            "",
            session.status,
            "",
            "Use ↑/↓ and Enter. Press q or ctrl+c to quit.",
            "",
        ]
    )
    return "\n".join(lines)


def page_summary(session: Session) -> str:
    page = session.page
    if page.total_rows <= 0:
        return "(No rows)"
    start = page.offset + 1
    end = min(page.offset + len(page.rows), page.total_rows)
    total_pages = (page.total_rows + session.page_size - 1) // session.page_size
    current_page = page.offset // session.page_size + 1
    return (
        f"Rows {start}–{end} of {page.total_rows} "
        f"(Page {current_page}/{total_pages}, page size {session.page_size})"
    )


def _editor_box(label: str, buffer: TextField) -> list[str]:
    text = display_text(buffer, focused=True)
    rule = "─" * (len(text) + 2)
    return [label, f"┌{rule}┐", f"│ {text} │", f"└{rule}┘"]


def _render_rows(session: Session) -> str:
    page = session.page
    sections = [f"Rows from table: {session.selected_table}\n\n"]
    if session.filter:
        sections.append(f"Active filter: WHERE {session.filter}\n\n")
    if page.columns:
        sections.append(render_table(page.columns, page.rows))
    else:
        sections.append("(No rows or columns found)\n")
    if session.filter:
        sections.append("\nPress 'r' to refresh the table (clear filter)\n")
    sections.append(f"\n{page_summary(session)}\n")
    sub_mode = session.row_sub_mode
    if isinstance(sub_mode, EditingFilter):
        sections.append("\n" + "\n".join(_editor_box("Filter WHERE", sub_mode.buffer)) + "\n")
    elif isinstance(sub_mode, EditingDelete):
        sections.append("\n" + "\n".join(_editor_box("DELETE WHERE", sub_mode.buffer)) + "\n")
    sections.append(f"\n{session.status}\n")
    sections.append(
        "\nPress 'b' to go back to tables, 'q' or ctrl+c to quit. "
        "Use n/p for next/prev page, '/' to filter, 'd' to delete, "
        "←/→ or h/l to scroll horizontally.\n"
    )
    return "".join(sections)


def view_title(session: Session) -> str:
    if isinstance(session.mode, FormMode):
        return "Connection"
    if isinstance(session.mode, TableListMode):
        return "Tables (public)"
    if isinstance(session.mode, RowViewMode):
        table_text = session.selected_table or "<none>"
        page_number = session.page.offset // session.page_size + 1
        return f"Table Row Data ({table_text}) Page {page_number}"
    return ""


def status_text(session: Session) -> str:
    database_text = session.form.value("Database") or "<none>"
    host_text = session.form.value("Host") or "<none>"
    if isinstance(session.mode, FormMode):
        return "Not connected"
    table_text = session.selected_table or "<none>"
    filter_text = session.filter or "<none>"
    return (
        f"host: {host_text} | db: {database_text} | table: {table_text}"
        f" | where: {filter_text} | {session.page_size}/page"
    )


def footer_bindings(session: Session) -> list[tuple[str, str]]:
    if isinstance(session.mode, FormMode):
        return [
            ("tab/↓", "Next Field"),
            ("shift+tab/↑", "Prev Field"),
            ("enter", "Next/Connect"),
            ("esc", "Quit"),
        ]
    if isinstance(session.mode, TableListMode):
        return [("↑/↓", "Move"), ("enter", "Open"), ("q", "Quit")]
    sub_mode = session.row_sub_mode
    if isinstance(sub_mode, EditingFilter):
        return [("enter", "Apply"), ("esc", "Clear Filter")]
    if isinstance(sub_mode, EditingDelete):
        return [("enter", "Delete"), ("esc", "Cancel")]
    return [
        ("b", "Back"),
        ("n/p", "Page"),
        ("/", "Filter"),
        ("r", "Clear Filter"),
        ("d", "Delete"),
        ("h/l", "Scroll"),
        ("H/L", "Fast Scroll"),
        ("q", "Quit"),
    ]

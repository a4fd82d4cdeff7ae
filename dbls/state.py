"""Interaction state for the browser.

All UI state lives in one frozen ``Session``. ``update`` folds a key press,
a window resize or a finished database operation into the next session and
returns at most one command for the app to carry out.

Results are applied in arrival order. Nothing tracks which request a result
answers, so when several requests overlap the last one to finish wins.
"""

from dataclasses import dataclass, replace

from dbls.postgres_driver import ConnectionParameters, Page
from dbls.text_field import TextField, edit_text_field


DEFAULT_PAGE_SIZE = 10
DEFAULT_SCROLL_STEP = 4
DEFAULT_FAST_SCROLL_STEP = 16

FORM_PROMPT = "Fill details and press Enter to connect."
FORM_LABELS = ("Host", "Port", "User", "Password", "Database")
_SECRET_LABELS = {"Password"}


# Row view sub-modes


@dataclass(frozen=True)
class Browsing:
    pass


@dataclass(frozen=True)
class EditingFilter:
    buffer: TextField = TextField()


@dataclass(frozen=True)
class EditingDelete:
    buffer: TextField = TextField()


RowSubMode = Browsing | EditingFilter | EditingDelete


# Modes


@dataclass(frozen=True)
class FormMode:
    pass


@dataclass(frozen=True)
class TableListMode:
    pass


@dataclass(frozen=True)
class RowViewMode:
    sub_mode: RowSubMode = Browsing()


Mode = FormMode | TableListMode | RowViewMode


@dataclass(frozen=True)
class FormField:
    label: str
    text: TextField = TextField()
    secret: bool = False


@dataclass(frozen=True)
class ConnectionForm:
    fields: tuple[FormField, ...]
    focus_index: int = 0

    @classmethod
    def from_values(cls, values: dict[str, str]) -> "ConnectionForm":
        fields = tuple(
            FormField(
                label=label,
                text=TextField.with_value(values.get(label, "")),
                secret=label in _SECRET_LABELS,
            )
            for label in FORM_LABELS
        )
        return cls(fields=fields)

    @property
    def last_index(self) -> int:
        return len(self.fields) - 1

    def value(self, label: str) -> str:
        for form_field in self.fields:
            if form_field.label == label:
                return form_field.text.value
        raise KeyError(label)

    def focus(self, index: int) -> "ConnectionForm":
        return replace(self, focus_index=max(0, min(index, self.last_index)))

    def edit_focused(self, key: str, character: str | None) -> "ConnectionForm":
        focused = self.fields[self.focus_index]
        edited = replace(focused, text=edit_text_field(focused.text, key, character))
        fields = list(self.fields)
        fields[self.focus_index] = edited
        return replace(self, fields=tuple(fields))

    def connection_parameters(self) -> ConnectionParameters:
        return ConnectionParameters(
            host=self.value("Host"),
            port=self.value("Port"),
            username=self.value("User"),
            password=self.value("Password"),
            database_name=self.value("Database"),
        )


@dataclass(frozen=True)
class Session:
    form: ConnectionForm
    mode: Mode = FormMode()
    table_names: tuple[str, ...] = ()
    table_cursor: int = 0
    selected_table: str = ""
    page: Page = Page()
    page_size: int = DEFAULT_PAGE_SIZE
    filter: str = ""
    loading: bool = False
    status: str = FORM_PROMPT
    horizontal_offset: int = 0
    terminal_width: int = 0
    scroll_step: int = DEFAULT_SCROLL_STEP
    fast_scroll_step: int = DEFAULT_FAST_SCROLL_STEP

    @property
    def row_sub_mode(self) -> RowSubMode | None:
        if isinstance(self.mode, RowViewMode):
            return self.mode.sub_mode
        return None


def initial_session(
    form_values: dict[str, str] | None = None,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    scroll_step: int = DEFAULT_SCROLL_STEP,
    fast_scroll_step: int = DEFAULT_FAST_SCROLL_STEP,
) -> Session:
    if page_size <= 0:
        raise ValueError("Page size must be greater than 0.")
    return Session(
        form=ConnectionForm.from_values(form_values or {}),
        page_size=page_size,
        scroll_step=scroll_step,
        fast_scroll_step=fast_scroll_step,
    )


# Events


@dataclass(frozen=True)
class KeyPressed:
    key: str
    character: str | None = None

    def matches(self, *names: str) -> bool:
        return self.key in names or (
            self.character is not None and self.character in names
        )


@dataclass(frozen=True)
class WindowResized:
    width: int
    height: int = 0


@dataclass(frozen=True)
class ConnectResult:
    error: Exception | None = None


@dataclass(frozen=True)
class TablesResult:
    tables: tuple[str, ...] = ()
    error: Exception | None = None


@dataclass(frozen=True)
class RowsResult:
    page: Page = Page()
    error: Exception | None = None


@dataclass(frozen=True)
class DeleteResult:
    affected: int = 0
    error: Exception | None = None


ResultEvent = ConnectResult | TablesResult | RowsResult | DeleteResult
Event = KeyPressed | WindowResized | ResultEvent


# Commands


@dataclass(frozen=True)
class Connect:
    parameters: ConnectionParameters


@dataclass(frozen=True)
class ListTables:
    pass


@dataclass(frozen=True)
class FetchRows:
    table: str
    limit: int
    offset: int
    filter: str = ""


@dataclass(frozen=True)
class DeleteRows:
    table: str
    predicate: str


@dataclass(frozen=True)
class Quit:
    pass


DatabaseCommand = Connect | ListTables | FetchRows | DeleteRows
Command = DatabaseCommand | Quit

Transition = tuple[Session, Command | None]


def next_page_offset(total_rows: int, offset: int, page_size: int) -> int | None:
    if total_rows == 0:
        return None
    candidate = offset + page_size
    if candidate >= total_rows:
        return None
    return candidate


def previous_page_offset(offset: int, page_size: int) -> int | None:
    candidate = max(0, offset - page_size)
    if candidate == offset:
        return None
    return candidate


def update(session: Session, event: Event) -> Transition:
    if isinstance(event, KeyPressed):
        return _handle_key(session, event)
    if isinstance(event, WindowResized):
        return replace(session, terminal_width=max(0, event.width)), None
    if isinstance(event, ConnectResult):
        return _handle_connect_result(session, event)
    if isinstance(event, TablesResult):
        return _handle_tables_result(session, event)
    if isinstance(event, RowsResult):
        return _handle_rows_result(session, event)
    if isinstance(event, DeleteResult):
        return _handle_delete_result(session, event)
    return session, None


def _fetch(session: Session, offset: int, **changes: object) -> Transition:
    updated = replace(session, loading=True, **changes)
    return updated, FetchRows(
        table=updated.selected_table,
        limit=updated.page_size,
        offset=offset,
        filter=updated.filter,
    )


def _rows_status(page_size: int) -> str:
    return (
        f"Showing rows (page size {page_size}). Press 'b' to go back, "
        "'n'/'p' for next/prev page, '/' to filter."
    )


# Result handlers


def _handle_connect_result(session: Session, event: ConnectResult) -> Transition:
    if event.error is not None:
        return (
            replace(
                session,
                mode=FormMode(),
                loading=False,
                status=f"Connection failed: {event.error}",
            ),
            None,
        )
    return (
        replace(
            session,
            mode=TableListMode(),
            loading=True,
            status="Connected! Fetching tables...",
        ),
        ListTables(),
    )


def _handle_tables_result(session: Session, event: TablesResult) -> Transition:
    if event.error is not None:
        return (
            replace(
                session,
                mode=FormMode(),
                loading=False,
                status=f"Failed to fetch tables: {event.error}",
            ),
            None,
        )
    if event.tables:
        status = f"Found {len(event.tables)} table(s). Use ↑/↓ and Enter to open one."
    else:
        status = "Connected but no tables found in public schema."
    return (
        replace(
            session,
            table_names=tuple(event.tables),
            table_cursor=0,
            loading=False,
            status=status,
        ),
        None,
    )


def _handle_rows_result(session: Session, event: RowsResult) -> Transition:
    if event.error is not None:
        # Falls back to the table list even when the fetch came from the row view.
        return (
            replace(
                session,
                mode=TableListMode(),
                loading=False,
                status=f"Failed to fetch rows: {event.error}",
            ),
            None,
        )
    return (
        replace(
            session,
            page=event.page,
            mode=RowViewMode(Browsing()),
            loading=False,
            status=_rows_status(session.page_size),
        ),
        None,
    )


def _handle_delete_result(session: Session, event: DeleteResult) -> Transition:
    if event.error is not None:
        return (
            replace(
                session,
                mode=RowViewMode(Browsing()),
                loading=False,
                status=f"Delete failed: {event.error}",
            ),
            None,
        )
    # Same offset even if the delete emptied this page.
    return _fetch(
        session,
        session.page.offset,
        status=f"Deleted {event.affected} row(s). Reloading page...",
    )


# Key handlers


def _handle_key(session: Session, event: KeyPressed) -> Transition:
    mode = session.mode
    if isinstance(mode, FormMode):
        return _handle_form_key(session, event)
    if isinstance(mode, TableListMode):
        return _handle_table_list_key(session, event)
    if isinstance(mode, RowViewMode):
        sub_mode = mode.sub_mode
        if isinstance(sub_mode, EditingDelete):
            return _handle_delete_editor_key(session, sub_mode, event)
        if isinstance(sub_mode, EditingFilter):
            return _handle_filter_editor_key(session, sub_mode, event)
        return _handle_browsing_key(session, event)
    return session, None


def _handle_form_key(session: Session, event: KeyPressed) -> Transition:
    form = session.form
    if event.matches("ctrl+c", "escape"):
        return session, Quit()
    if event.matches("tab", "down"):
        return replace(session, form=form.focus(form.focus_index + 1)), None
    if event.matches("shift+tab", "up"):
        return replace(session, form=form.focus(form.focus_index - 1)), None
    if event.matches("enter"):
        if form.focus_index == form.last_index:
            return (
                replace(session, loading=True, status="Connecting to DB..."),
                Connect(form.connection_parameters()),
            )
        return replace(session, form=form.focus(form.focus_index + 1)), None
    return replace(session, form=form.edit_focused(event.key, event.character)), None


def _handle_table_list_key(session: Session, event: KeyPressed) -> Transition:
    if event.matches("ctrl+c", "escape", "q"):
        return session, Quit()
    last_index = max(0, len(session.table_names) - 1)
    if event.matches("up", "k"):
        return replace(session, table_cursor=max(0, session.table_cursor - 1)), None
    if event.matches("down", "j"):
        return (
            replace(session, table_cursor=min(last_index, session.table_cursor + 1)),
            None,
        )
    if event.matches("enter"):
        if not session.table_names:
            return session, None
        table_cursor = min(session.table_cursor, last_index)
        table_name = session.table_names[table_cursor]
        return _fetch(
            session,
            0,
            table_cursor=table_cursor,
            selected_table=table_name,
            page=Page(),
            horizontal_offset=0,
            filter="",
            status=f"Fetching rows from {table_name}...",
        )
    return session, None


def _handle_browsing_key(session: Session, event: KeyPressed) -> Transition:
    if event.matches("ctrl+c", "q"):
        return session, Quit()
    if event.matches("b"):
        return (
            replace(
                session,
                mode=TableListMode(),
                status="Use ↑/↓ and Enter to select another table.",
            ),
            None,
        )
    if event.matches("/"):
        return (
            replace(
                session,
                mode=RowViewMode(EditingFilter(TextField.with_value(session.filter))),
                status=(
                    "Enter SQL WHERE clause (without 'WHERE'). "
                    "Enter to apply, Esc to cancel."
                ),
            ),
            None,
        )
    if event.matches("d"):
        return (
            replace(
                session,
                mode=RowViewMode(EditingDelete(TextField())),
                status=(
                    "Enter SQL WHERE clause for DELETE (without 'WHERE'). "
                    "Enter to delete, Esc to cancel."
                ),
            ),
            None,
        )
    if event.matches("r"):
        return _fetch(
            session,
            0,
            filter="",
            page=replace(session.page, offset=0),
            status=f"Fetching rows from {session.selected_table}...",
        )
    if event.matches("n"):
        return _turn_page(session, forward=True)
    if event.matches("p"):
        return _turn_page(session, forward=False)
    if event.matches("left", "h"):
        return _scroll(session, -session.scroll_step), None
    if event.matches("right", "l"):
        return _scroll(session, session.scroll_step), None
    if event.matches("shift+left", "H"):
        return _scroll(session, -session.fast_scroll_step), None
    if event.matches("shift+right", "L"):
        return _scroll(session, session.fast_scroll_step), None
    return session, None


def _turn_page(session: Session, *, forward: bool) -> Transition:
    page = session.page
    if forward:
        if page.total_rows == 0:
            return session, None
        target = next_page_offset(page.total_rows, page.offset, session.page_size)
        if target is None:
            return replace(session, status="Already at last page."), None
        return _fetch(session, target, status="Loading next page...")
    target = previous_page_offset(page.offset, session.page_size)
    if target is None:
        return replace(session, status="Already at first page."), None
    return _fetch(session, target, status="Loading previous page...")


def _scroll(session: Session, delta: int) -> Session:
    return replace(
        session,
        horizontal_offset=max(0, session.horizontal_offset + delta),
    )


def _handle_filter_editor_key(
    session: Session,
    editor: EditingFilter,
    event: KeyPressed,
) -> Transition:
    if event.matches("escape", "ctrl+c"):
        return _fetch(
            session,
            0,
            mode=RowViewMode(Browsing()),
            filter="",
            page=replace(session.page, offset=0),
            status="Filter cancelled. Press '/' to filter again.",
        )
    if event.matches("enter"):
        return _fetch(
            session,
            0,
            mode=RowViewMode(Browsing()),
            filter=editor.buffer.value.strip(),
            page=replace(session.page, offset=0),
            status="Applying filter...",
        )
    buffer = edit_text_field(editor.buffer, event.key, event.character)
    return replace(session, mode=RowViewMode(EditingFilter(buffer))), None


def _handle_delete_editor_key(
    session: Session,
    editor: EditingDelete,
    event: KeyPressed,
) -> Transition:
    if event.matches("escape", "ctrl+c"):
        return (
            replace(
                session,
                mode=RowViewMode(Browsing()),
                status="Delete cancelled. Press 'd' to delete again.",
            ),
            None,
        )
    if event.matches("enter"):
        predicate = editor.buffer.value.strip()
        if not predicate:
            return replace(session, status="WHERE clause cannot be empty for DELETE."), None
        return (
            replace(
                session,
                mode=RowViewMode(Browsing()),
                loading=True,
                status="Deleting rows...",
            ),
            DeleteRows(table=session.selected_table, predicate=predicate),
        )
    buffer = edit_text_field(editor.buffer, event.key, event.character)
    return replace(session, mode=RowViewMode(EditingDelete(buffer))), None

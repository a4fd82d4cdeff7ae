import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import Key, Resize
from textual.message import Message
from textual.widgets import Header, Static

from dbls.config import AppConfig, form_values
from dbls.dispatcher import CommandDispatcher, DataClient
from dbls.state import (
    Event,
    KeyPressed,
    Quit,
    ResultEvent,
    Session,
    WindowResized,
    initial_session,
    update,
)
from dbls.views import footer_bindings, render_screen, status_text, view_title
from dbls.widgets import KeyBindingBar, SessionView


logger = logging.getLogger(__name__)


class ResultReceived(Message):
    def __init__(self, event: ResultEvent) -> None:
        super().__init__()
        self.event = event


class DatabaseBrowserApp(App):
    DEFAULT_CSS = """
    #top-bar {
        height: 1;
    }

    #selected-status {
        width: 1fr;
    }

    #loading-indicator {
        width: 1fr;
        content-align: right middle;
        color: rgb(255, 170, 60);
    }

    #keybinds-bar {
        height: auto;
        min-height: 1;
        text-wrap: wrap;
    }

    #view-bar {
        height: 1;
        background: rgb(18, 60, 90);
        color: rgb(235, 245, 255);
        padding: 0 1;
        content-align: center middle;
    }

    #view-bar-text {
        width: 1fr;
        content-align: center middle;
    }

    #session-view {
        height: 1fr;
    }
    """

    # Priority bindings: reach the state machine ahead of Textual's focus/quit bindings.
    BINDINGS = [
        Binding("ctrl+c", "forward_key('ctrl+c')", "Quit", show=False, priority=True),
        Binding("tab", "forward_key('tab')", "Next", show=False, priority=True),
        Binding(
            "shift+tab",
            "forward_key('shift+tab')",
            "Previous",
            show=False,
            priority=True,
        ),
    ]

    def __init__(
        self,
        config: AppConfig,
        client: DataClient,
        *,
        password: str = "",
    ) -> None:
        super().__init__()
        self._client = client
        self._session = initial_session(
            form_values(config, password),
            page_size=config.page_size,
            scroll_step=config.scroll_step,
            fast_scroll_step=config.fast_scroll_step,
        )
        self._dispatcher = CommandDispatcher(
            client,
            deliver=self._deliver_result,
            spawn=self._spawn_command,
        )
        self._views_ready = False

    @property
    def session(self) -> Session:
        return self._session

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical():
            with Horizontal(id="top-bar"):
                yield Static(Text(status_text(self._session)), id="selected-status")
                yield Static("", id="loading-indicator")
            keybinds = KeyBindingBar()
            keybinds.id = "keybinds-bar"
            yield keybinds
            with Horizontal(id="view-bar"):
                yield Static("", id="view-bar-text")
            yield SessionView(id="session-view")

    def on_mount(self) -> None:
        self.title = "dbls"
        self._views_ready = True
        self.apply_event(WindowResized(self.size.width, self.size.height))

    def on_resize(self, event: Resize) -> None:
        self.apply_event(WindowResized(event.size.width, event.size.height))

    def on_key(self, event: Key) -> None:
        character = event.character if event.is_printable else None
        event.stop()
        event.prevent_default()
        self.apply_event(KeyPressed(event.key, character))

    def action_forward_key(self, key: str) -> None:
        self.apply_event(KeyPressed(key))

    def on_result_received(self, message: ResultReceived) -> None:
        self.apply_event(message.event)

    def apply_event(self, event: Event) -> None:
        self._session, command = update(self._session, event)
        if not isinstance(event, WindowResized):
            logger.debug("Applied %s -> %s", type(event).__name__, self._session.mode)
        self._refresh_view()
        if command is None:
            return
        if isinstance(command, Quit):
            self.workers.cancel_group(self, "database")
            self.exit()
            return
        self._dispatcher.dispatch(command)

    async def on_unmount(self) -> None:
        await self._client.close()

    def _spawn_command(self, coroutine):
        # Not exclusive: overlapping requests are allowed and the last result wins.
        return self.run_worker(coroutine, group="database", exclusive=False)

    def _deliver_result(self, event: ResultEvent) -> None:
        self.post_message(ResultReceived(event))

    def _refresh_view(self) -> None:
        if not self._views_ready:
            return
        session = self._session
        self.query_one("#session-view", SessionView).show_page(render_screen(session))
        self.query_one("#selected-status", Static).update(Text(status_text(session)))
        self.query_one("#view-bar-text", Static).update(Text(view_title(session)))
        self.query_one("#keybinds-bar", KeyBindingBar).show_bindings(
            footer_bindings(session)
        )
        self._set_loading(session.loading)

    def _set_loading(self, is_loading: bool, message: str = "Loading...") -> None:
        loading_indicator = self.query_one("#loading-indicator", Static)
        loading_indicator.update(message if is_loading else "")

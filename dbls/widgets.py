from rich.text import Text
from textual.widgets import Static


class KeyBindingBar(Static):
    def __init__(self) -> None:
        super().__init__("", markup=True)

    def show_bindings(self, bindings: list[tuple[str, str]]) -> None:
        self.update("  ".join(f"[bold cyan]{key}[/] {label}" for key, label in bindings))


class SessionView(Static):
    """Plain-text page body.

    The text arrives already clipped to the terminal width, so it is shown
    without markup or wrapping.
    """

    def __init__(self, *, id: str | None = None) -> None:
        super().__init__("", markup=False, id=id)
        self.page_text = ""

    def show_page(self, page_text: str) -> None:
        self.page_text = page_text
        self.update(Text(page_text, no_wrap=True, overflow="crop"))

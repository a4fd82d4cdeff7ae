from dataclasses import dataclass, replace


CURSOR_MARK = "▌"


@dataclass(frozen=True)
class TextField:
    value: str = ""
    cursor: int = 0

    @classmethod
    def with_value(cls, value: str) -> "TextField":
        return cls(value=value, cursor=len(value))


def edit_text_field(field: TextField, key: str, character: str | None) -> TextField:
    """Apply one key press to a single-line buffer.

    Unknown control keys leave the buffer untouched.
    """
    value = field.value
    cursor = min(max(field.cursor, 0), len(value))
    if key == "backspace":
        if cursor == 0:
            return field
        return TextField(value[: cursor - 1] + value[cursor:], cursor - 1)
    if key == "delete":
        return TextField(value[:cursor] + value[cursor + 1 :], cursor)
    if key == "left":
        return replace(field, cursor=max(0, cursor - 1))
    if key == "right":
        return replace(field, cursor=min(len(value), cursor + 1))
    if key in {"home", "ctrl+a"}:
        return replace(field, cursor=0)
    if key in {"end", "ctrl+e"}:
        return replace(field, cursor=len(value))
    if key == "ctrl+u":
        return TextField(value[cursor:], 0)
    if key == "ctrl+k":
        return TextField(value[:cursor], cursor)
    if character and character.isprintable():
        return TextField(
            value[:cursor] + character + value[cursor:],
            cursor + len(character),
        )
    return field


def display_text(field: TextField, *, focused: bool, secret: bool = False) -> str:
    shown = "•" * len(field.value) if secret else field.value
    if not focused:
        return shown
    cursor = min(max(field.cursor, 0), len(shown))
    return shown[:cursor] + CURSOR_MARK + shown[cursor:]

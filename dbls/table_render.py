from typing import Sequence


NO_COLUMNS_TEXT = "(No columns)\n"


def column_widths(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> list[int]:
    widths = [len(column) for column in columns]
    for row in rows:
        for column_index, cell_text in enumerate(row[: len(widths)]):
            widths[column_index] = max(widths[column_index], len(cell_text))
    return widths


def _border_line(widths: Sequence[int]) -> str:
    return "+" + "".join("-" * (width + 2) + "+" for width in widths) + "\n"


def _content_line(cells: Sequence[str], widths: Sequence[int]) -> str:
    padded_cells = [
        f" {cell_text.ljust(width)} |" for cell_text, width in zip(cells, widths)
    ]
    return "|" + "".join(padded_cells) + "\n"


def render_table(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Lay out rows as a bordered text table.

    Widths are counted in code points. Cells past the header are dropped and
    short rows are padded with empty cells.
    """
    if not columns:
        return NO_COLUMNS_TEXT
    widths = column_widths(columns, rows)
    border = _border_line(widths)
    lines = [border, _content_line(columns, widths), border]
    for row in rows:
        cells = [
            row[column_index] if column_index < len(row) else ""
            for column_index in range(len(columns))
        ]
        lines.append(_content_line(cells, widths))
    lines.append(border)
    return "".join(lines)


def apply_horizontal_scroll(text: str, offset: int, width: int) -> str:
    if width <= 0:
        return text
    offset = max(0, offset)
    clipped_lines = [line[offset : offset + width] for line in text.split("\n")]
    return "\n".join(clipped_lines)

"""Plain text output helpers."""

from typing import Iterable, List, Sequence

from ..models.service import Service

BOLD = "\033[1m"
RESET = "\033[0m"
COLUMN_WIDTH = 20


def bold(text: str) -> str:
    return f"{BOLD}{text}{RESET}"


def format_table(rows: Sequence[Sequence[str]], width: int = COLUMN_WIDTH) -> str:
    """Format rows as fixed width columns, the first row is the bold header.

    Args:
        rows: Table rows, header first
        width: Column width in characters

    Returns:
        The table as text, one line per row
    """
    lines = []
    for i, row in enumerate(rows):
        cells = [f"{cell:<{width}}" for cell in row]
        if i == 0:
            cells = [bold(cell) for cell in cells]
        lines.append("".join(cells))
    return "\n".join(lines)


def services_table(services: Iterable[Service]) -> str:
    """Format services as a Name / Status / Restarts table."""
    rows: List[List[str]] = [["Name", "Status", "Restarts"]]
    for service in services:
        rows.append([service.config.name, service.status.label, str(service.restarts)])
    return format_table(rows)

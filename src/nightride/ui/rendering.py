"""Screen rendering: a bordered box with four status lines."""

from blessed import Terminal

from nightride.domain.state import AppState
from nightride.domain.stations import Station

from .keys import HELP_TEXT

MARGIN = 4


def status_lines(state: AppState, stations: list[Station]) -> list[str]:
    """Pure function: the four status lines for the current state."""
    track = str(state.current_track) if state.current_track else "..."
    return [
        f"Station: {stations[state.station].name}",
        f"State:   {'paused' if state.is_paused else 'playing'}",
        f"Track:   {track}",
        f"Volume:  {state.volume:g}",
    ]


def _render_border(term: Terminal, title: str) -> None:
    width, height = term.width, term.height
    if width < 2 or height < 2:
        return

    label = f" {title} "[: max(0, width - 2)]
    fill = width - 2 - len(label)
    left = fill // 2
    top = "╭" + "─" * left + label + "─" * (fill - left) + "╮"
    print(term.move_xy(0, 0) + top, end="")

    for y in range(1, height - 1):
        print(term.move_xy(0, y) + "│" + term.move_xy(width - 1, y) + "│", end="")

    print(term.move_xy(0, height - 1) + "╰" + "─" * (width - 2) + "╯", end="")


def render(term: Terminal, state: AppState, stations: list[Station], title: str) -> None:
    """
    Draw the whole screen.

    Args:
        term: blessed Terminal instance
        state: Current app state
        stations: Station list (for the station name)
        title: Box title
    """
    print(term.home + term.clear, end="")
    _render_border(term, title)

    inner_width = max(0, term.width - 2 * MARGIN)
    for i, line in enumerate(status_lines(state, stations)):
        print(term.move_xy(MARGIN, MARGIN + i * 2) + line[:inner_width], end="")

    footer_y = term.height - 2
    if state.feedback:
        print(
            term.move_xy(MARGIN, footer_y - 1) + term.yellow(state.feedback[:inner_width]),
            end="",
        )
    print(term.move_xy(MARGIN, footer_y) + term.bright_black(HELP_TEXT[:inner_width]), end="")

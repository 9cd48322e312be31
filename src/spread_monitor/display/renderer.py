"""Console rendering of ranked spreads using rich.

build_view() is a pure function of a RankedSpreads result; ConsoleRenderer
clears the terminal and prints it. Lists arrive already ranked and
truncated, so nothing here sorts or filters.
"""

from rich import box
from rich.console import Console, Group, RenderableType
from rich.table import Table
from rich.text import Text

from spread_monitor.models import RankedSpreads, SpreadRecord

TITLE = "=== Binance Spot vs Perpetual Futures - Real-Time Spreads ==="
FOOTER = "Real-time updates (refreshing as data arrives)"


def format_percent(value: float) -> str:
    """Spread with 4 decimals; positives carry an explicit '+'."""
    return f"{value:+.4f}%" if value > 0 else f"{value:.4f}%"


def build_spread_table(records: list[SpreadRecord], color: str) -> Table:
    """One ranked table: symbol and spread %, colored by side."""
    t = Table(
        box=box.SIMPLE_HEAD,
        show_edge=False,
    )
    # fixed widths -> no reflow between refreshes
    t.add_column("Symbol", style="bold", width=15, no_wrap=True)
    t.add_column("Spread %", justify="right", width=12)

    for r in records:
        t.add_row(r.symbol, Text(format_percent(r.percent_diff), style=color))
    return t


def build_view(ranked: RankedSpreads, top_k: int = 10) -> RenderableType:
    """Assemble the full screen for one refresh."""
    return Group(
        Text(TITLE, style="bold cyan"),
        Text(f"Total pairs tracked: {ranked.total_pairs}", style="yellow"),
        Text(""),
        Text(f"TOP {top_k} POSITIVE SPREADS (Spot > Perp)", style="bold green"),
        build_spread_table(ranked.positive, "green"),
        Text(""),
        Text(f"TOP {top_k} NEGATIVE SPREADS (Perp > Spot)", style="bold red"),
        build_spread_table(ranked.negative, "red"),
        Text("-" * 60),
        Text(FOOTER, style="cyan"),
    )


class ConsoleRenderer:
    """Redraws the spread view on every recomputation.

    Args:
        console: Target console (defaults to stdout).
        top_k: List length shown in the list headings.
        clear: Clear the screen before each draw.
    """

    def __init__(
        self, console: Console | None = None, top_k: int = 10, clear: bool = True
    ) -> None:
        self._console = console or Console()
        self._top_k = top_k
        self._clear = clear

    def show_banner(self) -> None:
        self._console.print(
            "[b yellow]Starting Binance Spot vs Perpetual Futures Monitor...[/]\n"
        )

    def render(self, ranked: RankedSpreads) -> None:
        if self._clear:
            self._console.clear()
        self._console.print(build_view(ranked, self._top_k))

"""
This module renders report results.

Functions:
    - `render_table`: Print a polars frame as a `rich` table with
    per-column justification

    - `plot_trend`: Draw a (category, x, y) trend table as a line chart
    with a logarithmic y-axis
"""
import logging
from collections.abc import Mapping
from pathlib import Path

import matplotlib

matplotlib.use('Agg')

import matplotlib.pyplot as plt
import polars as pl
from rich.console import Console, JustifyMethod
from rich.table import Table

logger = logging.getLogger(__name__)


def render_table(
    data: pl.DataFrame,
    console: Console,
    title: str | None = None,
    justify: Mapping[str, JustifyMethod] | None = None,
) -> Table:
    """Print `data` to `console` as a table.

    :param data: The table to print
    :type data: `polars.DataFrame`
    :param console: The console to print to
    :type console: `rich.console.Console`
    :param title: Title shown above the table, defaults to `None`
    :type title: `str`, optional
    :param justify: Column name to justification, defaults to right for
    numeric columns and left for the rest
    :type justify: `Mapping[str, JustifyMethod]`, optional
    :return: The rendered table
    :rtype: `rich.table.Table`
    """
    justify = justify or {}
    table = Table(
        title=title,
        title_justify='left',
        min_width=len(title) if title is not None else None,
    )

    for column, dtype in data.schema.items():
        default_justify = 'right' if dtype.is_numeric() else 'left'
        table.add_column(column, justify=justify.get(column, default_justify))

    for row in data.iter_rows():
        table.add_row(*('' if value is None else str(value) for value in row))

    console.print(table)

    return table


def plot_trend(
    data: pl.DataFrame,
    category: str,
    x: str,
    y: str,
    path: Path,
    title: str | None = None,
) -> Path:
    """Draw one line per value of `category`, with `x` on the horizontal
    axis and `y` on a logarithmic vertical axis, and save the figure to
    `path`. The legend sits below the plot.
    """
    fig, ax = plt.subplots(figsize=(9, 6))

    for (name,), group in data.sort(category, x).group_by(category, maintain_order=True):
        ax.plot(group.get_column(x).to_list(), group.get_column(y).to_list(), label=name)

    ax.set_yscale('log')
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    if title is not None:
        ax.set_title(title)

    if not data.is_empty():
        ax.legend(loc='upper center', bbox_to_anchor=(0.5, -0.12), ncol=2, frameon=False)

    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, bbox_inches='tight')
    plt.close(fig)

    logger.info(f'Wrote {path}')

    return path

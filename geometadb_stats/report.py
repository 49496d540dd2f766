from pathlib import Path

import polars as pl
from rich.console import Console

from .config import QueryConfig, StrictBaseModel
from .presentation import plot_trend, render_table
from .queries import (
    entity_counts,
    multiplatform_series,
    multiplatform_type_trend,
    parse_submission_dates,
    platform_count_bins,
    series_types,
    top_types,
    type_count_distribution,
    type_counts,
    yearly_type_trend,
)
from .tables import GEOTables


class Report(StrictBaseModel, frozen=True):
    entity_counts: pl.DataFrame
    multiplatform_series: pl.DataFrame
    platform_count_bins: pl.DataFrame
    type_counts: pl.DataFrame
    type_count_distribution: pl.DataFrame
    yearly_type_trend: pl.DataFrame
    multiplatform_type_trend: pl.DataFrame
    trend_granularity: str


def build_report(tables: GEOTables, config: QueryConfig = QueryConfig()) -> Report:
    series = multiplatform_series(tables)
    pairs = series_types(tables, delimiter=config.type_delimiter)
    counts = type_counts(pairs)
    most_frequent_types = top_types(counts, n=config.n_top_types)
    dated_pairs = parse_submission_dates(pairs)

    return Report(
        entity_counts=entity_counts(tables),
        multiplatform_series=series,
        platform_count_bins=platform_count_bins(
            series, breaks=config.platform_count_breaks
        ),
        type_counts=counts,
        type_count_distribution=type_count_distribution(pairs),
        yearly_type_trend=yearly_type_trend(
            dated_pairs, top_types=most_frequent_types, year_cutoff=config.year_cutoff
        ),
        multiplatform_type_trend=multiplatform_type_trend(
            dated_pairs,
            top_types=most_frequent_types,
            year_cutoff=config.year_cutoff,
            granularity=config.trend_granularity,
        ),
        trend_granularity=config.trend_granularity,
    )


def render_report(
    report: Report, console: Console, output_dir: Path, figure_format: str = 'png'
) -> list[Path]:
    """Print every summary table of `report` to `console` and write its
    two trend charts to `output_dir`, returning the chart paths.
    """
    render_table(report.entity_counts, console, title='Entity counts')
    render_table(
        report.platform_count_bins.select('bin', 'count'),
        console,
        title='Series by number of platforms',
        justify={'bin': 'center'},
    )
    render_table(report.type_counts, console, title='Series by type')
    render_table(
        report.type_count_distribution,
        console,
        title='Series by number of distinct types',
        justify={'n_types': 'center'},
    )

    return [
        plot_trend(
            report.yearly_type_trend,
            category='type',
            x='year',
            y='count',
            path=output_dir / f'yearly_type_trend.{figure_format}',
            title='Series submissions per year',
        ),
        plot_trend(
            report.multiplatform_type_trend,
            category='type',
            x=report.trend_granularity,
            y='count',
            path=output_dir / f'multiplatform_type_trend.{figure_format}',
            title='Multi-type series submissions',
        ),
    ]

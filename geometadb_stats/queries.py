"""
This module contains the aggregation queries of the report. Each is a
pure function over the bound tables or over frames already collected
from them.

Functions:
    - `entity_counts`: Count the rows of the series, sample, and
    platform tables

    - `multiplatform_series`: Count distinct platforms per series,
    keeping series with more than one

    - `bin_multiplatform_series`, `platform_count_bins`: Bucket those
    counts into bins whose top edge is the observed maximum

    - `series_types`, `split_types`: Explode the delimited `type` field
    into one row per (series, type) pair

    - `type_counts`, `type_count_distribution`, `top_types`: Frequency
    tables over those pairs

    - `parse_submission_dates`: Parse submission dates once, dropping
    pairs whose date is unusable

    - `yearly_type_trend`, `multiplatform_type_trend`: Per-type
    submission counts over time
"""
import logging
from collections.abc import Sequence
from typing import Literal

import polars as pl
from sqlalchemy import distinct, func, select

from .defaults import (
    ENTITY_TABLES,
    MIN_MULTIPLATFORM_COUNT,
    PLATFORM_COUNT_BREAKS,
    SUBMISSION_DATE_FORMAT,
    TYPE_DELIMITER,
    YEAR_CUTOFF,
)
from .tables import GEOTables, Query

logger = logging.getLogger(__name__)

_SERIES_TYPES_SCHEMA = {
    'gse': pl.String,
    'type': pl.String,
    'submission_date': pl.String,
}


def entity_counts(tables: GEOTables) -> pl.DataFrame:
    counts = {
        entity: tables.view(table_name).count()
        for entity, table_name in ENTITY_TABLES.items()
    }

    return pl.DataFrame(
        {'entity': list(counts.keys()), 'count': list(counts.values())},
        schema={'entity': pl.String, 'count': pl.Int64},
    )


def multiplatform_series(tables: GEOTables) -> pl.DataFrame:
    gse_gpl = tables.gse_gpl
    n_platforms = func.count(distinct(gse_gpl.c.gpl))

    statement = (
        select(gse_gpl.c.gse, n_platforms.label('n_platforms'))
        .group_by(gse_gpl.c.gse)
        .having(n_platforms >= MIN_MULTIPLATFORM_COUNT)
        .order_by(gse_gpl.c.gse)
    )
    series = Query(statement=statement, engine=tables.engine).collect()

    return series.cast({'gse': pl.String, 'n_platforms': pl.Int64})


def _platform_bins(breaks: Sequence[int], maximum: int) -> pl.DataFrame:
    lower_edges = [edge for edge in breaks if edge < maximum] or [maximum]
    edges = [*lower_edges, maximum]

    labels = [
        f'[{lower}, {upper}]' if i == 0 else f'({lower}, {upper}]'
        for i, (lower, upper) in enumerate(zip(edges, edges[1:]))
    ]

    return pl.DataFrame(
        {'bin': labels, 'lower': edges[:-1], 'upper': edges[1:]},
        schema={'bin': pl.String, 'lower': pl.Int64, 'upper': pl.Int64},
    )


def bin_multiplatform_series(
    series: pl.DataFrame, breaks: Sequence[int] = PLATFORM_COUNT_BREAKS
) -> pl.DataFrame:
    """Attach to each multiplatform series the platform count bin it
    falls in, along with that bin's bounds.

    The bin edges are the `breaks` below the largest platform count in
    `series`, followed by that largest count, so the top bin always
    ends at the observed maximum. The lowest bin is closed on both
    sides and the rest are open on the left.

    :param series: Output of `multiplatform_series`
    :type series: `polars.DataFrame`
    :param breaks: Increasing bin edges, defaults to `(2, 3, 5, 10, 20)`
    :type breaks: `Sequence[int]`
    :return: `series` with `bin`, `lower`, and `upper` columns
    :rtype: `polars.DataFrame`
    """
    if series.is_empty():
        return series.with_columns(
            pl.lit(None, dtype=pl.String).alias('bin'),
            pl.lit(None, dtype=pl.Int64).alias('lower'),
            pl.lit(None, dtype=pl.Int64).alias('upper'),
        )

    bins = _platform_bins(breaks, maximum=series.get_column('n_platforms').max())
    labels = bins.get_column('bin').to_list()
    inner_edges = bins.get_column('upper').to_list()[:-1]

    if inner_edges:
        bin_expression = (
            pl.col('n_platforms')
            .cut(inner_edges, labels=labels, left_closed=False)
            .cast(pl.String)
        )
    else:
        bin_expression = pl.lit(labels[0], dtype=pl.String)

    return (
        series.with_columns(bin_expression.alias('bin'))
        .join(bins, on='bin', how='left')
        .sort('gse')
    )


def platform_count_bins(
    series: pl.DataFrame, breaks: Sequence[int] = PLATFORM_COUNT_BREAKS
) -> pl.DataFrame:
    schema = {'bin': pl.String, 'lower': pl.Int64, 'upper': pl.Int64, 'count': pl.Int64}

    if series.is_empty():
        return pl.DataFrame(schema=schema)

    binned = bin_multiplatform_series(series, breaks=breaks)
    bins = _platform_bins(breaks, maximum=series.get_column('n_platforms').max())
    counts = binned.group_by('bin').agg(pl.len().alias('count'))

    return (
        bins.join(counts, on='bin', how='left')
        .with_columns(pl.col('count').fill_null(0))
        .cast(schema)
        .sort('lower')
    )


def split_types(raw: pl.DataFrame, delimiter: str = TYPE_DELIMITER) -> pl.DataFrame:
    """Split the delimited `type` field of each series into one row per
    distinct (series, type) pair.

    Tokens are stripped of surrounding whitespace, so `';'` splits both
    `'A;\\tB'` and `'A; B'`. Series without a type and empty tokens are
    dropped.
    """
    raw = raw.cast(_SERIES_TYPES_SCHEMA)

    n_untyped = raw.get_column('type').null_count()
    if n_untyped:
        logger.warning(f'Dropped {n_untyped} series without a type')

    typed = raw.drop_nulls('type')
    tokens = (
        typed.with_columns(pl.col('type').str.split(delimiter))
        .explode('type')
        .with_columns(pl.col('type').str.strip_chars())
    )

    n_empty = tokens.filter(pl.col('type') == '').height
    if n_empty:
        logger.warning(f'Dropped {n_empty} empty type tokens')

    pairs = (
        tokens.filter(pl.col('type') != '')
        .unique(subset=['gse', 'type'], keep='first')
        .sort('gse', 'type')
    )

    n_tokenless = (
        typed.get_column('gse').n_unique() - pairs.get_column('gse').n_unique()
    )
    if n_tokenless:
        logger.warning(f'Dropped {n_tokenless} series whose type has no tokens')

    return pairs


def series_types(tables: GEOTables, delimiter: str = TYPE_DELIMITER) -> pl.DataFrame:
    raw = tables.view('gse', 'gse', 'type', 'submission_date').collect()
    return split_types(raw, delimiter=delimiter)


def type_counts(pairs: pl.DataFrame) -> pl.DataFrame:
    return (
        pairs.group_by('type')
        .agg(pl.len().cast(pl.Int64).alias('count'))
        .sort(['count', 'type'], descending=[True, False])
    )


def type_count_distribution(pairs: pl.DataFrame) -> pl.DataFrame:
    return (
        _types_per_series(pairs)
        .group_by('n_types')
        .agg(pl.len().cast(pl.Int64).alias('n_series'))
        .sort('n_types')
    )


def top_types(counts: pl.DataFrame, n: int) -> list[str]:
    return counts.head(n).get_column('type').to_list()


def _types_per_series(pairs: pl.DataFrame) -> pl.DataFrame:
    return pairs.group_by('gse').agg(
        pl.col('type').n_unique().cast(pl.Int64).alias('n_types')
    )


def parse_submission_dates(pairs: pl.DataFrame) -> pl.DataFrame:
    """Parse the `submission_date` of each (series, type) pair as a date,
    dropping pairs whose date is missing or unparseable. Pairs whose
    dates are already parsed are returned unchanged.
    """
    if pairs.schema['submission_date'] == pl.Date:
        return pairs

    dated = pairs.with_columns(
        pl.col('submission_date').str.to_date(SUBMISSION_DATE_FORMAT, strict=False)
    )

    n_undated = dated.get_column('submission_date').null_count()
    if n_undated:
        logger.warning(
            f'Dropped {n_undated} (series, type) pairs with a missing or unparseable submission date'
        )

    return dated.drop_nulls('submission_date')


def yearly_type_trend(
    pairs: pl.DataFrame, top_types: Sequence[str], year_cutoff: int = YEAR_CUTOFF
) -> pl.DataFrame:
    """Count series per (type, submission year) for the given types,
    keeping only years strictly before `year_cutoff`.
    """
    return (
        parse_submission_dates(pairs)
        .lazy()
        .with_columns(pl.col('submission_date').dt.year().alias('year'))
        .filter(pl.col('year') < year_cutoff, pl.col('type').is_in(list(top_types)))
        .group_by('type', 'year')
        .agg(pl.len().cast(pl.Int64).alias('count'))
        .sort('type', 'year')
        .collect()
    )


def multiplatform_type_trend(
    pairs: pl.DataFrame,
    top_types: Sequence[str],
    year_cutoff: int = YEAR_CUTOFF,
    granularity: Literal['month', 'year'] = 'month',
) -> pl.DataFrame:
    """Like `yearly_type_trend`, restricted to series with more than one
    distinct type. With `granularity='month'` submissions are counted
    per calendar month, in a `month` column holding the first day of
    each month.
    """
    multitype_series = _types_per_series(pairs).filter(pl.col('n_types') > 1)
    multitype_pairs = pairs.join(multitype_series.select('gse'), on='gse', how='semi')

    if granularity == 'month':
        period = pl.col('submission_date').dt.truncate('1mo').alias('month')
    else:
        period = pl.col('submission_date').dt.year().alias('year')

    return (
        parse_submission_dates(multitype_pairs)
        .lazy()
        .filter(
            pl.col('submission_date').dt.year() < year_cutoff,
            pl.col('type').is_in(list(top_types)),
        )
        .group_by('type', period)
        .agg(pl.len().cast(pl.Int64).alias('count'))
        .sort('type', granularity)
        .collect()
    )

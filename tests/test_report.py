from io import StringIO
from pathlib import Path

from polars.testing import assert_frame_equal
from rich.console import Console

from geometadb_stats.config import QueryConfig
from geometadb_stats.report import build_report, render_report
from geometadb_stats.tables import GEOTables


class TestReport:
    def test_example_scenario(self, geo_tables: GEOTables):
        report = build_report(geo_tables)

        assert report.entity_counts.row(0) == ('Series', 3)
        assert report.multiplatform_series.get_column('gse').to_list() == [
            'GSE1',
            'GSE3',
        ]
        assert report.type_counts.rows() == [
            ('RNA-seq', 3),
            ('ChIP-seq', 2),
            ('Methylation', 1),
        ]
        assert report.type_count_distribution.rows() == [(1, 1), (2, 1), (3, 1)]

    def test_trend_types_among_top_types(self, geo_tables: GEOTables):
        report = build_report(geo_tables, config=QueryConfig(n_top_types=1))

        assert set(report.yearly_type_trend.get_column('type')) == {'RNA-seq'}
        assert set(report.multiplatform_type_trend.get_column('type')) == {'RNA-seq'}

    def test_yearly_granularity(self, geo_tables: GEOTables):
        report = build_report(
            geo_tables, config=QueryConfig(trend_granularity='year')
        )

        assert report.multiplatform_type_trend.columns == ['type', 'year', 'count']
        assert report.multiplatform_type_trend.rows() == [
            ('ChIP-seq', 2010, 1),
            ('RNA-seq', 2010, 1),
        ]

    def test_rerun_is_identical(self, geo_tables: GEOTables, tmp_path: Path):
        texts = []

        for run in range(2):
            report = build_report(geo_tables)
            console = Console(file=StringIO(), record=True, width=100)
            render_report(report, console, output_dir=tmp_path / str(run))
            texts.append(console.export_text())

        assert texts[0] == texts[1]
        assert_frame_equal(build_report(geo_tables).type_counts, report.type_counts)

    def test_render_writes_charts(self, geo_tables: GEOTables, tmp_path: Path):
        report = build_report(geo_tables)
        console = Console(file=StringIO(), record=True, width=100)

        paths = render_report(report, console, output_dir=tmp_path, figure_format='svg')

        assert [path.name for path in paths] == [
            'yearly_type_trend.svg',
            'multiplatform_type_trend.svg',
        ]
        assert all(path.is_file() for path in paths)
        assert 'Series by number of platforms' in console.export_text()

from collections.abc import Callable
from pathlib import Path
from typing import Any

from pytest import fixture
from sqlalchemy import Column, Engine, MetaData, String, Table, create_engine, insert

from geometadb_stats.source import snapshot_engine
from geometadb_stats.tables import GEOTables


def write_snapshot(path: Path, rows: dict[str, list[dict[str, Any]]]) -> Path:
    """Write a GEOmetadb-shaped SQLite file containing `rows`, keyed by
    table name. Tables missing from `rows` are created empty.
    """
    metadata = MetaData()
    tables = {
        'gse': Table(
            'gse',
            metadata,
            Column('gse', String),
            Column('title', String),
            Column('type', String),
            Column('submission_date', String),
        ),
        'gsm': Table('gsm', metadata, Column('gsm', String), Column('gse', String)),
        'gpl': Table('gpl', metadata, Column('gpl', String), Column('title', String)),
        'gse_gpl': Table(
            'gse_gpl', metadata, Column('gse', String), Column('gpl', String)
        ),
    }

    engine = create_engine(f'sqlite:///{path}')
    metadata.create_all(engine)

    with engine.begin() as connection:
        for table_name, table_rows in rows.items():
            if table_rows:
                connection.execute(insert(tables[table_name]), table_rows)

    engine.dispose()

    return path


@fixture
def snapshot_rows() -> dict[str, list[dict[str, Any]]]:
    return {
        'gse': [
            {
                'gse': 'GSE1',
                'type': 'RNA-seq;\tChIP-seq',
                'submission_date': '2010-05-03',
            },
            {'gse': 'GSE2', 'type': 'RNA-seq', 'submission_date': '2012-07-19'},
            {
                'gse': 'GSE3',
                'type': 'RNA-seq;\tChIP-seq;\tMethylation',
                'submission_date': '2016-01-02',
            },
        ],
        'gsm': [{'gsm': f'GSM{i}'} for i in range(1, 8)],
        'gpl': [{'gpl': f'GPL{i}'} for i in range(1, 6)],
        'gse_gpl': [
            {'gse': 'GSE1', 'gpl': 'GPL1'},
            {'gse': 'GSE1', 'gpl': 'GPL2'},
            {'gse': 'GSE2', 'gpl': 'GPL1'},
            *({'gse': 'GSE3', 'gpl': f'GPL{i}'} for i in range(1, 6)),
        ],
    }


@fixture
def make_snapshot(tmp_path: Path) -> Callable[..., Path]:
    def _make_snapshot(
        rows: dict[str, list[dict[str, Any]]], name: str = 'GEOmetadb.sqlite'
    ) -> Path:
        return write_snapshot(tmp_path / name, rows=rows)

    return _make_snapshot


@fixture
def snapshot_path(
    make_snapshot: Callable[..., Path],
    snapshot_rows: dict[str, list[dict[str, Any]]],
) -> Path:
    return make_snapshot(snapshot_rows)


@fixture
def engine(snapshot_path: Path) -> Engine:
    return snapshot_engine(snapshot_path)


@fixture
def geo_tables(engine: Engine) -> GEOTables:
    return GEOTables(engine=engine)

"""
This module binds the GEOmetadb tables and wraps queries over them in
descriptors that only run when their result is needed.

Classes:
    - `Query`: An immutable `SELECT` statement bound to an engine,
    executed by `collect` or `count`

    - `GEOTables`: Lazily reflected `gse`, `gsm`, `gpl`, and `gse_gpl`
    tables of a snapshot
"""
from functools import cached_property
from typing import Any

import polars as pl
from sqlalchemy import Engine, MetaData, Table, func, select
from sqlalchemy.sql import ColumnElement, Select

from .config import StrictBaseModel
from .defaults import TABLE_COLUMNS


class Query(StrictBaseModel, frozen=True):
    statement: Select
    engine: Engine

    def where(self, *conditions: ColumnElement[bool]) -> 'Query':
        return self.model_copy(update={'statement': self.statement.where(*conditions)})

    def order_by(self, *columns: Any) -> 'Query':
        return self.model_copy(update={'statement': self.statement.order_by(*columns)})

    def collect(self) -> pl.DataFrame:
        with self.engine.connect() as connection:
            return pl.read_database(self.statement, connection=connection)

    def count(self) -> int:
        count_statement = select(func.count()).select_from(self.statement.subquery())

        with self.engine.connect() as connection:
            return connection.execute(count_statement).scalar_one()


class GEOTables(StrictBaseModel, frozen=True):
    engine: Engine

    @cached_property
    def metadata(self) -> MetaData:
        return MetaData()

    def _reflect(self, name: str) -> Table:
        table = Table(name, self.metadata, autoload_with=self.engine)

        missing_columns = set(TABLE_COLUMNS[name]) - set(table.columns.keys())
        if missing_columns:
            raise ValueError(
                f'Table {name} is missing required columns: {", ".join(sorted(missing_columns))}'
            )

        return table

    @cached_property
    def gse(self) -> Table:
        return self._reflect('gse')

    @cached_property
    def gsm(self) -> Table:
        return self._reflect('gsm')

    @cached_property
    def gpl(self) -> Table:
        return self._reflect('gpl')

    @cached_property
    def gse_gpl(self) -> Table:
        return self._reflect('gse_gpl')

    def table(self, name: str) -> Table:
        if name not in TABLE_COLUMNS:
            raise ValueError(
                f'{name} is not one of the bound tables: {", ".join(TABLE_COLUMNS)}'
            )

        return getattr(self, name)

    def view(self, name: str, *columns: str) -> Query:
        """Build a query over the table `name`, selecting `columns` or
        every column if none are given. Nothing is executed until the
        returned query is collected or counted.
        """
        table = self.table(name)
        selected = [table.c[column] for column in columns] if columns else [table]

        return Query(statement=select(*selected), engine=self.engine)

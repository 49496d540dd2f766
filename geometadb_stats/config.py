from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, HttpUrl, PositiveInt, field_validator

from .defaults import (
    GEOMETADB_FILENAME,
    GEOMETADB_URL,
    MIN_MULTIPLATFORM_COUNT,
    N_TOP_TYPES,
    PLATFORM_COUNT_BREAKS,
    TYPE_DELIMITER,
    YEAR_CUTOFF,
)

strict_config = ConfigDict(
    arbitrary_types_allowed=True,
    extra='forbid',
    frozen=True,
    validate_assignment=True,
    validate_default=True,
)


class StrictBaseModel(BaseModel, frozen=True):
    model_config = strict_config


class SourceConfig(StrictBaseModel, frozen=True):
    path: Path = Path(GEOMETADB_FILENAME)
    url: HttpUrl = GEOMETADB_URL


class QueryConfig(StrictBaseModel, frozen=True):
    type_delimiter: str = TYPE_DELIMITER
    year_cutoff: PositiveInt = YEAR_CUTOFF
    n_top_types: PositiveInt = N_TOP_TYPES
    platform_count_breaks: tuple[PositiveInt, ...] = PLATFORM_COUNT_BREAKS
    trend_granularity: Literal['month', 'year'] = 'month'

    @field_validator('type_delimiter')
    @classmethod
    def validate_type_delimiter(cls, type_delimiter: str) -> str:
        if not type_delimiter.strip():
            raise ValueError('Type delimiter must contain a non-whitespace character.')

        return type_delimiter

    @field_validator('platform_count_breaks')
    @classmethod
    def validate_platform_count_breaks(
        cls, breaks: tuple[int, ...]
    ) -> tuple[int, ...]:
        if not breaks:
            raise ValueError('At least one platform count break is required.')

        if any(left >= right for left, right in zip(breaks, breaks[1:])):
            raise ValueError(
                f'Platform count breaks must be strictly increasing: {breaks}'
            )

        if breaks[0] > MIN_MULTIPLATFORM_COUNT:
            raise ValueError(
                f'The first platform count break must be at most {MIN_MULTIPLATFORM_COUNT} so that every multiplatform series is binned, not {breaks[0]}'
            )

        return breaks


class OutputConfig(StrictBaseModel, frozen=True):
    figure_format: Literal['png', 'pdf', 'svg'] = 'png'


class ReportConfig(StrictBaseModel, frozen=True):
    source: SourceConfig = SourceConfig()
    query: QueryConfig = QueryConfig()
    output: OutputConfig = OutputConfig()

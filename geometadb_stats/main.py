import logging
from functools import cached_property
from pathlib import Path

import fire
from pydantic import DirectoryPath
from pydantic.dataclasses import dataclass
from rich.console import Console
from rich.traceback import install
from sqlalchemy import Engine
from yaml import safe_load

from .config import ReportConfig, strict_config
from .defaults import CONFIG_DIR, LOG_FILENAME, REPORT_CONFIG_FILENAME
from .presentation import render_table
from .queries import entity_counts
from .report import build_report, render_report
from .source import ensure_snapshot, snapshot_engine
from .tables import GEOTables

console = Console()
install(console=console)


@dataclass(config=strict_config, frozen=True)
class GEOmetadbStats:
    """Descriptive statistics and trend charts over a GEOmetadb snapshot."""

    config_dir: DirectoryPath | None = None
    log_dir: Path = Path.cwd() / 'geometadb-stats_log'
    output_dir: Path = Path.cwd() / 'geometadb-stats_output'

    def __post_init__(self) -> None:
        self.log_dir.mkdir(exist_ok=True, parents=True)

        package_logger = logging.getLogger(__package__)
        package_logger.setLevel(logging.INFO)

        for existing_handler in list(package_logger.handlers):
            if isinstance(existing_handler, logging.FileHandler):
                package_logger.removeHandler(existing_handler)
                existing_handler.close()

        handler = logging.FileHandler(self.log_dir / LOG_FILENAME, mode='w')
        handler.setFormatter(
            logging.Formatter('%(asctime)s %(name)s %(levelname)s: %(message)s')
        )
        package_logger.addHandler(handler)

    @cached_property
    def _report_config(self) -> ReportConfig:
        config_dir = self.config_dir if self.config_dir is not None else CONFIG_DIR
        config_path = config_dir / REPORT_CONFIG_FILENAME

        if not config_path.is_file():
            return ReportConfig()

        raw_config = safe_load(config_path.read_bytes()) or {}
        return ReportConfig.model_validate(raw_config)

    @cached_property
    def _engine(self) -> Engine:
        source_config = self._report_config.source
        snapshot_path = ensure_snapshot(source_config.path, url=str(source_config.url))

        return snapshot_engine(snapshot_path)

    def fetch(self) -> str:
        """Download the snapshot if it is not already present."""
        source_config = self._report_config.source
        return str(ensure_snapshot(source_config.path, url=str(source_config.url)))

    def counts(self) -> None:
        """Print the number of series, samples, and platforms."""
        tables = GEOTables(engine=self._engine)
        render_table(entity_counts(tables), console, title='Entity counts')

    def report(self) -> None:
        """Print every summary table and write the trend charts."""
        tables = GEOTables(engine=self._engine)
        report = build_report(tables, config=self._report_config.query)

        report_console = Console(record=True)

        self.output_dir.mkdir(exist_ok=True, parents=True)
        render_report(
            report,
            report_console,
            output_dir=self.output_dir,
            figure_format=self._report_config.output.figure_format,
        )
        report_console.save_text(str(self.output_dir / 'report.txt'))


def main():
    fire.Fire(GEOmetadbStats)

"""
This module makes sure a local GEOmetadb snapshot exists and opens it.

Functions:
    - `ensure_snapshot`: Return the path to the local snapshot,
    downloading and decompressing the canonical copy if it is missing

    - `snapshot_engine`: Create a read-only engine for the snapshot
"""
import gzip
import logging
import shutil
from pathlib import Path

from requests import get
from sqlalchemy import URL, Engine, create_engine

from .defaults import DOWNLOAD_CHUNK_SIZE, GEOMETADB_URL

logger = logging.getLogger(__name__)


def _download(url: str, destination: Path) -> None:
    with get(url, stream=True, timeout=60) as response:
        response.raise_for_status()

        with destination.open('wb') as f:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                f.write(chunk)


def _decompress(source: Path, destination: Path) -> None:
    with gzip.open(source, 'rb') as compressed, destination.open('wb') as f:
        shutil.copyfileobj(compressed, f, length=DOWNLOAD_CHUNK_SIZE)


def ensure_snapshot(path: Path, url: str = GEOMETADB_URL) -> Path:
    """Return `path` if it is an existing file, otherwise download the
    gzip-compressed snapshot at `url` and decompress it to `path`.

    :param path: Where the snapshot lives or should be written
    :type path: `pathlib.Path`
    :param url: Location of the gzip-compressed snapshot
    :type url: `str`
    :raises `requests.HTTPError`: If the server does not return the file
    :return: The path to the decompressed snapshot
    :rtype: `pathlib.Path`
    """
    if path.is_file():
        logger.info(f'Using existing snapshot at {path}')
        return path

    path.parent.mkdir(parents=True, exist_ok=True)
    compressed_path = path.with_name(f'{path.name}.gz')
    partial_path = path.with_name(f'{path.name}.part')

    logger.info(f'Downloading {url} to {compressed_path}')
    _download(url, compressed_path)

    logger.info(f'Decompressing {compressed_path} to {path}')
    _decompress(compressed_path, partial_path)
    partial_path.replace(path)
    compressed_path.unlink()

    return path


def snapshot_engine(path: Path) -> Engine:
    """Create an engine that opens the snapshot at `path` read-only."""
    url = URL.create(
        drivername='sqlite',
        database=path.resolve(strict=True).as_uri(),
        query={'mode': 'ro', 'uri': 'true'},
    )
    return create_engine(url)

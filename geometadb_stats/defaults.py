from pathlib import Path

CONFIG_DIR = Path.home() / '.config' / 'geometadb-stats'
REPORT_CONFIG_FILENAME = 'report.yml'
LOG_FILENAME = 'geometadb-stats.log'

GEOMETADB_URL = 'https://gbnci.cancer.gov/geo/GEOmetadb.sqlite.gz'
GEOMETADB_FILENAME = 'GEOmetadb.sqlite'
DOWNLOAD_CHUNK_SIZE = 1024 * 1024

TABLE_COLUMNS = {
    'gse': ('gse', 'type', 'submission_date'),
    'gsm': ('gsm',),
    'gpl': ('gpl',),
    'gse_gpl': ('gse', 'gpl'),
}
ENTITY_TABLES = {'Series': 'gse', 'Samples': 'gsm', 'Platforms': 'gpl'}

TYPE_DELIMITER = ';'
SUBMISSION_DATE_FORMAT = '%Y-%m-%d'
YEAR_CUTOFF = 2015
N_TOP_TYPES = 6
PLATFORM_COUNT_BREAKS = (2, 3, 5, 10, 20)
MIN_MULTIPLATFORM_COUNT = 2

"""Constants for the FileMaker Data API toolkit."""

DATA_API_PATH = "fmi/data/v1"
DATA_API_DATABASES_PATH = f"{DATA_API_PATH}/databases"

# Secrets read from the tool context
HOST_SECRET = "FILEMAKER_HOST"
DATABASE_SECRET = "FILEMAKER_DATABASE"
USERNAME_SECRET = "FILEMAKER_USERNAME"
PASSWORD_SECRET = "FILEMAKER_PASSWORD"  # noqa: S105

FILEMAKER_SECRETS = [HOST_SECRET, DATABASE_SECRET, USERNAME_SECRET, PASSWORD_SECRET]

# Data API message codes
FM_CODE_RECORD_MISSING = "101"
FM_CODE_TABLE_MISSING = "104"
FM_CODE_LAYOUT_MISSING = "105"
FM_CODE_NO_RECORDS_MATCH = "401"
FM_CODE_INVALID_TOKEN = "952"

NOT_FOUND_CODES = frozenset({FM_CODE_RECORD_MISSING, FM_CODE_TABLE_MISSING, FM_CODE_LAYOUT_MISSING})

# Per-operation request limits used by the rate limiter
DEFAULT_RATE_LIMIT = 100
OPERATION_RATE_LIMITS = {
    "find_records": 100,
    "create_record": 50,
    "update_record": 50,
    "delete_record": 50,
}

# Timestamp format used by FileMaker finds
FILEMAKER_TIMESTAMP_FORMAT = "%m/%d/%Y %H:%M:%S"

# Performance thresholds used for recommendations
SLOW_OPERATION_MS = 5000
LOW_THROUGHPUT_RECORDS_PER_SECOND = 10

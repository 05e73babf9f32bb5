from enum import Enum


class BatchOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ImportMode(str, Enum):
    CREATE = "create"
    UPDATE_OR_CREATE = "update_or_create"


class DuplicatePolicy(str, Enum):
    """What to do with an imported record that has no match in the target layout."""

    SKIP = "skip"
    UPDATE = "update"
    CREATE = "create"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    XML = "xml"


class ConflictStrategy(str, Enum):
    SOURCE_WINS = "source_wins"


class SortOrder(str, Enum):
    ASC = "ascend"
    DESC = "descend"


class CacheAction(str, Enum):
    GET = "get"
    SET = "set"
    DELETE = "delete"
    CLEAR = "clear"
    STATS = "stats"


class PerformanceTest(str, Enum):
    CONNECTION_TEST = "connection_test"
    QUERY_PERFORMANCE = "query_performance"
    BATCH_PERFORMANCE = "batch_performance"

"""FileMaker Data API toolkit for Arcade AI"""

from arcade_filemaker.tools import (
    batch_operations,
    bulk_export,
    bulk_import,
    cancel_run,
    check_rate_limit,
    manage_cache,
    monitor_performance,
    paginated_query,
    sync_data,
)

__all__ = [
    "batch_operations",
    "bulk_export",
    "bulk_import",
    "cancel_run",
    "check_rate_limit",
    "manage_cache",
    "monitor_performance",
    "paginated_query",
    "sync_data",
]

__version__ = "0.1.0"

"""FileMaker tools for Arcade AI"""

from arcade_filemaker.tools.batch import batch_operations
from arcade_filemaker.tools.bulk import bulk_export, bulk_import
from arcade_filemaker.tools.cache import manage_cache
from arcade_filemaker.tools.monitor import monitor_performance
from arcade_filemaker.tools.query import paginated_query
from arcade_filemaker.tools.rate_limit import check_rate_limit
from arcade_filemaker.tools.runs import cancel_run
from arcade_filemaker.tools.sync import sync_data

__all__ = [
    # Record writes
    "batch_operations",
    "bulk_import",
    # Reads
    "paginated_query",
    "bulk_export",
    # Layout to layout copy
    "sync_data",
    # Local helpers, no FileMaker call
    "manage_cache",
    "check_rate_limit",
    "cancel_run",
    "monitor_performance",
]

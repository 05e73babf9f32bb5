from typing import Annotated, Any

from arcade_tdk import ToolContext, tool

from arcade_filemaker.state import get_run_registry
from arcade_filemaker.tools.utils import require_text


@tool
async def cancel_run(
    context: ToolContext,
    run_id: Annotated[str, "The run_id passed to the batch, import, export or sync call"],
) -> Annotated[dict[str, Any], "Whether a running operation was signalled to stop"]:
    """
    Stop a long-running batch, import, export or sync started with a run_id.

    The run stops after the record or page it is working on and returns its partial
    results with cancelled set to true. Records already written are not rolled back.
    """
    run_id = require_text(run_id, "run_id")
    registry = get_run_registry()
    cancelled = registry.cancel(run_id)
    return {
        "run_id": run_id,
        "cancelled": cancelled,
        "active_runs": registry.active_runs(),
    }

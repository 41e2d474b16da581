"""Services layer - Business logic for execution, dependencies, completion and config."""

from .token_index import TokenIndex, Suggestion, token_index
from .execution_request import ExecutionRequest, build_request, snapshot_cells
from .dependency_view import (
    DependencyGraphView,
    DependencyAffordance,
    DependencyAction,
    DependencyCommand,
)
from .result_dispatcher import ResultDispatcher, PendingRun
from .cellflow_config import CellflowConfig, load_config, get_config

__all__ = [
    # token_index
    "TokenIndex",
    "Suggestion",
    "token_index",
    # execution_request
    "ExecutionRequest",
    "build_request",
    "snapshot_cells",
    # dependency_view
    "DependencyGraphView",
    "DependencyAffordance",
    "DependencyAction",
    "DependencyCommand",
    # result_dispatcher
    "ResultDispatcher",
    "PendingRun",
    # cellflow_config
    "CellflowConfig",
    "load_config",
    "get_config",
]

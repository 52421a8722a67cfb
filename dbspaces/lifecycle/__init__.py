from .commands import (
    SpaceCommand,
    create_dbspace_command,
    add_chunk_command,
    drop_chunk_command,
    drop_dbspace_command,
    rebuild_commands,
)
from .executor import EffectExecutor, RealExecutor, DryRunExecutor, make_executor
from .operations import (
    CreateDbspaceRequest,
    AddChunkRequest,
    OperationResult,
    SpaceOperations,
)

__all__ = [
    "SpaceCommand",
    "create_dbspace_command",
    "add_chunk_command",
    "drop_chunk_command",
    "drop_dbspace_command",
    "rebuild_commands",
    "EffectExecutor",
    "RealExecutor",
    "DryRunExecutor",
    "make_executor",
    "CreateDbspaceRequest",
    "AddChunkRequest",
    "OperationResult",
    "SpaceOperations",
]

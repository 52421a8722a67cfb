from .models import (
    DbspaceKind,
    ChunkRole,
    RawFileUsage,
    DBspace,
    Chunk,
    Inventory,
    InventoryTotals,
    percent_full,
)

__all__ = [
    "DbspaceKind",
    "ChunkRole",
    "RawFileUsage",
    "DBspace",
    "Chunk",
    "Inventory",
    "InventoryTotals",
    "percent_full",
]

"""DBspace manager for coordinating reports, inventory and lifecycle operations."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .config import base_config
from .config.dbspace_defaults import DbspaceDefaults, load_dbspace_defaults
from .inventory.builder import build_inventory
from .inventory.fs_info import filesystem_usage
from .inventory.links import apply_symlink_expansion, log_dbspaces
from .inventory.ordering import resolve_chunk_order
from .lifecycle.commands import rebuild_commands
from .lifecycle.executor import make_executor
from .lifecycle.operations import (
    AddChunkRequest,
    CreateDbspaceRequest,
    OperationResult,
    SpaceOperations,
)
from .models.models import Inventory
from .reports.parser import parse_log_placement, parse_reserved_chunks
from .reports.source import ReportSource
from .storage.naming import base_server_name
from .utils.errors import NotFound

logger = logging.getLogger(__name__)


class DbspaceManager:
    """Builds the live inventory of one server and runs operations against it."""

    def __init__(self, source: Optional[ReportSource] = None,
                 defaults: Optional[DbspaceDefaults] = None,
                 server: Optional[str] = None):
        """Initialize dbspace manager."""
        self.source = source or ReportSource()
        self.defaults = defaults or load_dbspace_defaults(base_config.DBSPACE_DEFAULTS)
        self.server = base_server_name(server if server is not None else base_config.INFORMIXSERVER)
        self._inventory: Optional[Inventory] = None

    @property
    def inventory(self) -> Inventory:
        if self._inventory is None:
            self.refresh()
        return self._inventory

    def refresh(self) -> Inventory:
        """Rebuild the inventory from fresh reports."""
        logger.info(f"Reading dbspace layout of server {self.server}")
        summary = self.source.space_summary()
        inventory = build_inventory(summary, self.defaults)
        resolve_chunk_order(inventory, parse_reserved_chunks(self.source.reserved_pages()))
        apply_symlink_expansion(inventory)
        self._inventory = inventory
        return inventory

    def log_dbspaces(self) -> List[str]:
        """Names of non-root dbspaces holding physical or logical logs."""
        placements = parse_log_placement(self.source.log_report())
        return sorted(log_dbspaces(self.inventory, placements))

    def _selected(self, names: Sequence[str]):
        if not names:
            return list(self.inventory.iter_dbspaces())
        selected = []
        for name in names:
            dbspace = self.inventory.find_dbspace(name)
            if dbspace is None:
                raise NotFound(f"DBspace {name} does not exist in server {self.server}")
            selected.append(dbspace)
        return selected

    def space_records(self, names: Sequence[str] = (), chunks: bool = False,
                      logs: bool = False, filesystems: bool = False) -> Dict[str, Any]:
        """Flat records describing the selected dbspaces for rendering."""
        selected = self._selected(names)
        totals = self.inventory.totals()
        records: Dict[str, Any] = {
            "server": self.server,
            "large_chunks_enabled": self.inventory.large_chunks_enabled,
            "dbspaces": [d.as_record() for d in selected],
            "totals": {
                "chunk_count": totals.chunk_count,
                "total_pages": totals.total_pages,
                "free_pages": totals.free_pages,
                "pct_full": totals.pct_full,
            },
        }
        if chunks:
            records["chunks"] = [c.as_record() for d in selected
                                 for c in self.inventory.chunks_of(d.number)]
        if logs:
            records["log_dbspaces"] = self.log_dbspaces()
        if filesystems:
            records["filesystems"] = [entry for d in selected
                                      for entry in filesystem_usage(self.inventory, d)]
        if self.inventory.order_errors:
            records["order_errors"] = {str(k): v for k, v in self.inventory.order_errors.items()}
        return records

    def rebuild_script(self) -> List[str]:
        return rebuild_commands(self.inventory, self.defaults)

    def _operations(self, dry_run: bool) -> SpaceOperations:
        return SpaceOperations(self.inventory, self.defaults, self.server, make_executor(dry_run))

    def create_dbspace(self, request: CreateDbspaceRequest, dry_run: bool = False) -> OperationResult:
        return self._operations(dry_run).create_dbspace(request)

    def add_chunk(self, request: AddChunkRequest, dry_run: bool = False) -> OperationResult:
        return self._operations(dry_run).add_chunk(request)

    def drop_chunk(self, name: str, order: int, dry_run: bool = False) -> OperationResult:
        return self._operations(dry_run).drop_chunk(name, order)

    def drop_dbspace(self, name: str, dry_run: bool = False) -> OperationResult:
        return self._operations(dry_run).drop_dbspace(name)

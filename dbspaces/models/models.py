"""Data models for the dbspace and chunk inventory."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Iterator
from enum import Enum


# Enums
class DbspaceKind(Enum):
    REGULAR = "regular"
    TEMP = "temp"
    BLOB = "blob"
    SMART_BLOB = "smart-blob"

    @property
    def flag_char(self) -> str:
        """Single-character type marker used in listings."""
        return {
            DbspaceKind.REGULAR: "-",
            DbspaceKind.TEMP: "T",
            DbspaceKind.BLOB: "B",
            DbspaceKind.SMART_BLOB: "S",
        }[self]


class ChunkRole(Enum):
    PRIMARY = "P"
    MIRROR = "m"


class RawFileUsage(Enum):
    UNUSED = 0
    THIS_SERVER = 1
    OTHER_SERVER = 2


def percent_full(total_pages: float, free_pages: float) -> Optional[float]:
    """Percentage of used pages; undefined (None) for an empty total."""
    if not total_pages:
        return None
    return 100.0 * (total_pages - free_pages) / total_pages


# Core Inventory Models
@dataclass
class DBspace:
    """A named storage area composed of one or more chunks."""
    number: int
    name: str
    first_chunk_ref: int
    chunk_count: int
    page_size_kb: int
    kind: DbspaceKind = DbspaceKind.REGULAR
    mirrored: bool = False
    temp: bool = False
    address: str = ""
    total_pages: float = 0
    free_pages: float = 0
    pct_full: Optional[float] = None

    @property
    def free_mb(self) -> float:
        return self.free_pages * self.page_size_kb / 1024

    def as_record(self) -> Dict[str, object]:
        """Flat record for report rendering."""
        return {
            "name": self.name,
            "number": self.number,
            "kind": self.kind.value,
            "mirrored": self.mirrored,
            "temp": self.temp,
            "page_size_kb": self.page_size_kb,
            "chunk_count": self.chunk_count,
            "total_pages": self.total_pages,
            "free_pages": self.free_pages,
            "pct_full": self.pct_full,
        }


@dataclass
class Chunk:
    """A fixed-size unit of raw storage assigned to a dbspace."""
    number: int
    dbspace_number: int
    offset_pages: int
    size_pages: float
    free_pages: float
    symlink_path: str
    address: str = ""
    dbspace_name: str = ""
    page_size_kb: int = 0
    kind: DbspaceKind = DbspaceKind.REGULAR
    is_first_in_dbspace: bool = False
    next_chunk_ref: Optional[int] = None
    order_in_dbspace: Optional[int] = None
    raw_file_path: Optional[str] = None
    symlink_chain: Optional[str] = None
    mirror_offset_pages: Optional[int] = None
    mirror_symlink_path: Optional[str] = None
    mirror_raw_file_path: Optional[str] = None
    mirror_symlink_chain: Optional[str] = None

    @property
    def has_mirror(self) -> bool:
        return self.mirror_symlink_path is not None

    @property
    def pct_full(self) -> Optional[float]:
        return percent_full(self.size_pages, self.free_pages)

    def as_record(self) -> Dict[str, object]:
        """Flat record for report rendering."""
        return {
            "dbspace": self.dbspace_name,
            "kind": self.kind.value,
            "dbspace_number": self.dbspace_number,
            "order": self.order_in_dbspace,
            "chunk": self.number,
            "page_size_kb": self.page_size_kb,
            "size_pages": self.size_pages,
            "free_pages": self.free_pages,
            "pct_full": self.pct_full,
            "offset": self.offset_pages,
            "symlink": self.symlink_path,
            "raw_file": self.raw_file_path,
            "mirror_symlink": self.mirror_symlink_path,
            "mirror_raw_file": self.mirror_raw_file_path,
        }


@dataclass
class InventoryTotals:
    """Server-wide totals across all live dbspaces."""
    chunk_count: int = 0
    total_pages: float = 0
    free_pages: float = 0
    pct_full: Optional[float] = None


@dataclass
class Inventory:
    """Read model of all dbspaces and chunks in one server.

    Both collections are keyed by server-assigned number. Numbers of
    dropped entities are simply absent; a missing key is never a record.
    """
    dbspaces: Dict[int, DBspace] = field(default_factory=dict)
    chunks: Dict[int, Chunk] = field(default_factory=dict)
    large_chunks_enabled: bool = False
    order_errors: Dict[int, str] = field(default_factory=dict)

    def get_dbspace(self, number: int) -> Optional[DBspace]:
        return self.dbspaces.get(number)

    def get_chunk(self, number: int) -> Optional[Chunk]:
        return self.chunks.get(number)

    def find_dbspace(self, name: str) -> Optional[DBspace]:
        """Look up a live dbspace by name."""
        for dbspace in self.dbspaces.values():
            if dbspace.name == name:
                return dbspace
        return None

    def chunks_of(self, dbspace_number: int) -> List[Chunk]:
        """Chunks of one dbspace, in creation order where it is known."""
        members = [c for c in self.chunks.values() if c.dbspace_number == dbspace_number]
        return sorted(members, key=lambda c: (c.order_in_dbspace is None,
                                              c.order_in_dbspace or 0,
                                              c.number))

    def chunk_at(self, dbspace_number: int, order: int) -> Optional[Chunk]:
        """Chunk at a 1-based creation position within a dbspace."""
        for chunk in self.chunks_of(dbspace_number):
            if chunk.order_in_dbspace == order:
                return chunk
        return None

    def iter_dbspaces(self) -> Iterator[DBspace]:
        for number in sorted(self.dbspaces):
            yield self.dbspaces[number]

    def symlink_in_use(self, path: str) -> bool:
        """True if any chunk of this server is addressed through ``path``."""
        return any(path in (c.symlink_path, c.mirror_symlink_path)
                   for c in self.chunks.values())

    def totals(self) -> InventoryTotals:
        totals = InventoryTotals()
        for dbspace in self.dbspaces.values():
            totals.chunk_count += dbspace.chunk_count
            totals.total_pages += dbspace.total_pages
            totals.free_pages += dbspace.free_pages
        totals.pct_full = percent_full(totals.total_pages, totals.free_pages)
        return totals

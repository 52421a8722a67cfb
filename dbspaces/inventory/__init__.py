from .builder import build_inventory
from .ordering import resolve_chunk_order
from .links import (
    read_link,
    expand_symlink,
    apply_symlink_expansion,
    links_to,
    raw_file_usage,
    log_dbspaces,
)
from .fs_info import filesystem_usage, mount_point_of

__all__ = [
    "build_inventory",
    "resolve_chunk_order",
    "read_link",
    "expand_symlink",
    "apply_symlink_expansion",
    "links_to",
    "raw_file_usage",
    "log_dbspaces",
    "filesystem_usage",
    "mount_point_of",
]

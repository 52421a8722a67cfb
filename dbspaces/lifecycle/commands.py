"""
Builders for the privileged space-management command.

Sizes and offsets are in KB. Commands are kept as argument lists so they
can be run without a shell, and rendered as text for logs, dry runs and
the rebuild script.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..config import base_config
from ..config.dbspace_defaults import DbspaceDefaults
from ..models.models import Chunk, DBspace, DbspaceKind, Inventory

logger = logging.getLogger(__name__)

ROOT_CHUNK = 1
INERT_PREFIX = '#-'


@dataclass(frozen=True)
class SpaceCommand:
    """One invocation of the space-management command."""
    args: tuple

    @property
    def argv(self) -> List[str]:
        return [base_config.ONSPACES_COMMAND] + list(self.args)

    def __str__(self) -> str:
        return ' '.join(self.argv)


def _chunk_args(symlink: str, size_kb: int, offset_kb: int = 0,
                mirror_symlink: Optional[str] = None, mirror_offset_kb: int = 0) -> List[str]:
    args = ['-p', symlink, '-o', str(offset_kb), '-s', str(size_kb)]
    if mirror_symlink:
        args += ['-m', mirror_symlink, str(mirror_offset_kb)]
    return args


def create_dbspace_command(name: str, kind: DbspaceKind, symlink: str, size_kb: int,
                           page_size_kb: Optional[int] = None,
                           blob_multiple: Optional[int] = None,
                           mirror_symlink: Optional[str] = None,
                           temp: bool = False,
                           offset_kb: int = 0, mirror_offset_kb: int = 0) -> SpaceCommand:
    """Create a dbspace of any kind with its first chunk."""
    if kind == DbspaceKind.BLOB:
        args = ['-c', '-b', name, '-g', str(blob_multiple or 1)]
    elif kind == DbspaceKind.SMART_BLOB:
        args = ['-c', '-S', name]
        if temp:
            args.append('-t')
    else:
        args = ['-c', '-d', name]
        if page_size_kb:
            args += ['-k', str(page_size_kb)]
        if temp or kind == DbspaceKind.TEMP:
            args.append('-t')
    args += _chunk_args(symlink, size_kb, offset_kb, mirror_symlink, mirror_offset_kb)
    return SpaceCommand(tuple(args))


def add_chunk_command(name: str, symlink: str, size_kb: int,
                      mirror_symlink: Optional[str] = None,
                      offset_kb: int = 0, mirror_offset_kb: int = 0) -> SpaceCommand:
    args = ['-a', name] + _chunk_args(symlink, size_kb, offset_kb, mirror_symlink, mirror_offset_kb)
    return SpaceCommand(tuple(args))


def drop_chunk_command(name: str, symlink: str, offset_kb: int = 0) -> SpaceCommand:
    return SpaceCommand(('-d', name, '-p', symlink, '-o', str(offset_kb), '-y'))


def drop_dbspace_command(name: str) -> SpaceCommand:
    return SpaceCommand(('-d', name, '-y'))


def _rebuild_command(chunk: Chunk, dbspace: DBspace, defaults: DbspaceDefaults) -> SpaceCommand:
    size_kb = int(chunk.size_pages * dbspace.page_size_kb)
    offset_kb = chunk.offset_pages * dbspace.page_size_kb
    mirror_symlink = chunk.mirror_symlink_path if dbspace.mirrored else None
    mirror_offset_kb = (chunk.mirror_offset_pages or 0) * dbspace.page_size_kb

    if not chunk.is_first_in_dbspace:
        return add_chunk_command(dbspace.name, chunk.symlink_path, size_kb,
                                 mirror_symlink, offset_kb, mirror_offset_kb)

    blob_multiple = None
    page_size_kb = None
    if dbspace.kind == DbspaceKind.BLOB:
        blob_multiple = dbspace.page_size_kb // defaults.data_page_size
    elif dbspace.kind != DbspaceKind.SMART_BLOB:
        page_size_kb = dbspace.page_size_kb
    return create_dbspace_command(dbspace.name, dbspace.kind, chunk.symlink_path, size_kb,
                                  page_size_kb=page_size_kb, blob_multiple=blob_multiple,
                                  mirror_symlink=mirror_symlink, temp=dbspace.temp,
                                  offset_kb=offset_kb, mirror_offset_kb=mirror_offset_kb)


def rebuild_commands(inventory: Inventory, defaults: DbspaceDefaults) -> List[str]:
    """Command lines that would recreate the current dbspace layout.

    The root chunk's command is shown but commented out. Each line ends
    with a comment naming the raw file behind the chunk.
    """
    rows = []
    for dbspace in inventory.iter_dbspaces():
        chunks = sorted(inventory.chunks_of(dbspace.number),
                        key=lambda c: not c.is_first_in_dbspace)
        for chunk in chunks:
            command = str(_rebuild_command(chunk, dbspace, defaults))
            if chunk.number == ROOT_CHUNK:
                command = INERT_PREFIX + command
            rows.append((command, chunk.raw_file_path or ''))

    width = max((len(command) for command, _ in rows), default=0)
    return [f"{command:<{width}} #{raw}" for command, raw in rows]

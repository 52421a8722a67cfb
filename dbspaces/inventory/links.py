"""Symlink expansion, raw-file usage lookups and log placement."""

import logging
import os
from typing import Iterable, List, Optional, Set, Tuple

from ..models.models import Inventory, RawFileUsage
from ..reports.parser import LogPlacement

logger = logging.getLogger(__name__)

MAX_LINK_DEPTH = 32
ROOT_DBSPACE = 1


def read_link(path: str) -> Optional[str]:
    """Absolute target of a symlink, or None if ``path`` is not a link."""
    try:
        target = os.readlink(path)
    except OSError:
        return None
    if not os.path.isabs(target):
        target = os.path.normpath(os.path.join(os.path.dirname(path), target))
    return target


def expand_symlink(path: str) -> Tuple[Optional[str], str]:
    """Return the immediate link target and the full ``a->b->c`` chain."""
    chain = [path]
    first_target = None
    current = path

    for _ in range(MAX_LINK_DEPTH):
        target = read_link(current)
        if target is None:
            break
        if first_target is None:
            first_target = target
        chain.append(target)
        if target in chain[:-1]:
            logger.warning(f"Symlink loop at {path}")
            break
        current = target

    return first_target, '->'.join(chain)


def apply_symlink_expansion(inventory: Inventory) -> Inventory:
    """Fill raw file paths and link chains for primary and mirror chunks."""
    for chunk in inventory.chunks.values():
        chunk.raw_file_path, chunk.symlink_chain = expand_symlink(chunk.symlink_path)
        if chunk.mirror_symlink_path:
            chunk.mirror_raw_file_path, chunk.mirror_symlink_chain = \
                expand_symlink(chunk.mirror_symlink_path)
    return inventory


def links_to(path: str, symlink_dir: str) -> List[str]:
    """Symlinks in ``symlink_dir`` whose target is ``path``."""
    path = os.path.normpath(path)
    try:
        entries = sorted(os.listdir(symlink_dir))
    except OSError as e:
        logger.warning(f"Cannot list symlink directory {symlink_dir}: {str(e)}")
        return []

    matches = []
    for entry in entries:
        link = os.path.join(symlink_dir, entry)
        if read_link(link) == path:
            matches.append(link)
    return matches


def raw_file_usage(path: str, symlink_dir: str, server: str,
                   inventory: Optional[Inventory] = None) -> RawFileUsage:
    """Report whether a raw file is already the target of a chunk symlink."""
    if inventory is not None:
        for chunk in inventory.chunks.values():
            if path in (chunk.raw_file_path, chunk.mirror_raw_file_path):
                return RawFileUsage.THIS_SERVER

    usage = RawFileUsage.UNUSED
    for link in links_to(path, symlink_dir):
        if os.path.basename(link).startswith(f"{server}."):
            return RawFileUsage.THIS_SERVER
        usage = RawFileUsage.OTHER_SERVER
    return usage


def log_dbspaces(inventory: Inventory, placements: Iterable[LogPlacement]) -> Set[str]:
    """Names of the dbspaces holding a physical or logical log.

    The root dbspace always holds logs when nothing else does, so it is
    left out.
    """
    names: Set[str] = set()
    for placement in placements:
        chunk = inventory.get_chunk(placement.chunk_number)
        if chunk is None:
            logger.warning(f"{placement.log_type.capitalize()} log is in unknown chunk "
                           f"{placement.chunk_number}")
            continue
        if chunk.dbspace_number == ROOT_DBSPACE:
            continue
        names.add(chunk.dbspace_name)
    return names

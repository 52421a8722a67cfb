"""
Names and paths for chunk symlinks and the raw files behind them.

Symlinks are named ``{server}.{dbspace}.{P|m}.{index}`` where index is the
chunk's 1-based position in its dbspace. Raw files are named
``file.{seq}`` with a sequence number that is unique across every primary
and mirror top directory. Retired raw files keep their number inside a
``file.{seq}.NEE-{symlink}`` name, so a number is never handed out twice.
"""

import glob
import logging
import os
import re
from typing import List, NamedTuple, Optional

from ..config.dbspace_defaults import DbspaceDefaults
from ..models.models import ChunkRole

logger = logging.getLogger(__name__)

RAW_FILE_PATTERN = re.compile(r'^file\.(\d+)$')
RETIRED_FILE_PATTERN = re.compile(r'^file\.(\d+)\.NEE-.+\.[Pm]\.\d+$')
SHM_SUFFIX = '_shm'


class ChunkPaths(NamedTuple):
    index: int
    symlink: str
    raw_file: str
    mirror_symlink: Optional[str] = None
    mirror_raw_file: Optional[str] = None


def round_down_size(page_kb: int, size_kb: int) -> int:
    """Largest multiple of ``page_kb`` not above ``size_kb``."""
    return size_kb - size_kb % page_kb


def round_up_size(page_kb: int, size_kb: int) -> int:
    """Smallest multiple of ``page_kb`` not below ``size_kb``."""
    remainder = size_kb % page_kb
    return size_kb if remainder == 0 else size_kb + page_kb - remainder


def base_server_name(server: str) -> str:
    """Server identifier without the shared-memory connection suffix."""
    if server.endswith(SHM_SUFFIX):
        return server[:-len(SHM_SUFFIX)]
    return server


def symlink_name(server: str, dbspace: str, role: ChunkRole, index: int, decimals: int = 3) -> str:
    return f"{server}.{dbspace}.{role.value}.{index:0{decimals}d}"


def raw_file_name(seq: int, decimals: int = 5) -> str:
    return f"file.{seq:0{decimals}d}"


def retired_name(raw_file: str, symlink: str) -> str:
    """Name a raw file is renamed to once its chunk is dropped."""
    return f"{raw_file}.NEE-{os.path.basename(symlink)}"


def mirror_symlink_for(symlink: str) -> str:
    """Mirror counterpart of a primary symlink path."""
    directory, name = os.path.split(symlink)
    parts = name.split('.')
    parts[-2] = ChunkRole.MIRROR.value
    return os.path.join(directory, '.'.join(parts))


def mirror_raw_file_for(raw_file: str, defaults: DbspaceDefaults,
                        primary_top: Optional[str] = None,
                        mirror_top: Optional[str] = None) -> str:
    """Mirror counterpart of a primary raw file: same name, mirror directory."""
    primary_dir = defaults.primary_dir(primary_top)
    relative = os.path.relpath(raw_file, primary_dir)
    return os.path.join(defaults.mirror_dir(mirror_top), relative)


def raw_file_sequence(name: str) -> Optional[int]:
    """Sequence number of an active or retired raw file name."""
    match = RAW_FILE_PATTERN.match(name) or RETIRED_FILE_PATTERN.match(name)
    return int(match.group(1)) if match else None


def is_scanned_top(defaults: DbspaceDefaults, top: str) -> bool:
    """True if raw files under ``top`` count towards the sequence high-water mark.

    Only top directories matched by ``{primary_path}*`` or ``{mirror_path}*``
    are scanned, so only those may receive new raw files.
    """
    top = os.path.normpath(top)
    for base in (defaults.primary_path, defaults.mirror_path):
        base = os.path.normpath(base)
        if top.startswith(base) and os.sep not in top[len(base):]:
            return True
    return False


def next_raw_sequence(defaults: DbspaceDefaults) -> int:
    """One more than the highest raw file number in use anywhere."""
    highest = 0
    for top, sub in ((defaults.primary_path, defaults.primary_sub_path),
                     (defaults.mirror_path, defaults.mirror_sub_path)):
        pattern = os.path.join(f"{top}*", sub, 'file.*')
        for path in glob.glob(pattern):
            seq = raw_file_sequence(os.path.basename(path))
            if seq is not None and seq > highest:
                highest = seq
    logger.debug(f"Highest raw file sequence is {highest}")
    return highest + 1


def next_symlink_index(symlink_dir: str, server: str, dbspace: str) -> int:
    """One more than the highest chunk index among a dbspace's symlinks."""
    prefix = f"{server}.{dbspace}.{ChunkRole.PRIMARY.value}."
    highest = 0
    for path in glob.glob(os.path.join(symlink_dir, glob.escape(prefix) + '*')):
        suffix = os.path.basename(path)[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest + 1


def generate_chunk_paths(defaults: DbspaceDefaults, server: str, dbspace: str,
                         count: int = 1, start_index: int = 1,
                         start_seq: Optional[int] = None, mirrored: bool = False,
                         primary_top: Optional[str] = None,
                         mirror_top: Optional[str] = None) -> List[ChunkPaths]:
    """Generate ``count`` contiguous symlink/raw-file pairs.

    Indexes and sequence numbers both run without gaps from their start
    values. Mirror paths differ from primary paths only in the role
    letter and the top directory.
    """
    if start_seq is None:
        start_seq = next_raw_sequence(defaults)
    primary_dir = defaults.primary_dir(primary_top)

    pairs = []
    for i in range(count):
        index = start_index + i
        symlink = os.path.join(defaults.symlink_dir,
                               symlink_name(server, dbspace, ChunkRole.PRIMARY, index,
                                            defaults.chunk_decimals))
        raw_file = os.path.join(primary_dir, raw_file_name(start_seq + i, defaults.raw_decimals))
        if mirrored:
            pairs.append(ChunkPaths(index, symlink, raw_file,
                                    mirror_symlink_for(symlink),
                                    mirror_raw_file_for(raw_file, defaults, primary_top, mirror_top)))
        else:
            pairs.append(ChunkPaths(index, symlink, raw_file))
    return pairs

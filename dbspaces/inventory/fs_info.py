"""Filesystem usage of the files backing a dbspace's chunks."""

import logging
import os
from typing import Any, Dict, List

import psutil

from ..models.models import DBspace, Inventory

logger = logging.getLogger(__name__)


def mount_point_of(path: str) -> str:
    """Longest mount point that contains ``path``."""
    path = os.path.realpath(path)
    best = '/'
    for partition in psutil.disk_partitions(all=True):
        mount = partition.mountpoint
        if (path == mount or path.startswith(mount.rstrip('/') + '/')) and len(mount) > len(best):
            best = mount
    return best


def filesystem_usage(inventory: Inventory, dbspace: DBspace) -> List[Dict[str, Any]]:
    """Usage of each filesystem holding raw files of ``dbspace``."""
    by_mount: Dict[str, Dict[str, Any]] = {}

    for chunk in inventory.chunks_of(dbspace.number):
        for raw in (chunk.raw_file_path, chunk.mirror_raw_file_path):
            if not raw:
                continue
            try:
                mount = mount_point_of(raw)
                if mount not in by_mount:
                    usage = psutil.disk_usage(mount)
                    by_mount[mount] = {
                        'dbspace': dbspace.name,
                        'mount_point': mount,
                        'total_kb': usage.total // 1024,
                        'used_kb': usage.used // 1024,
                        'free_kb': usage.free // 1024,
                        'percent': usage.percent,
                        'raw_files': [],
                    }
                by_mount[mount]['raw_files'].append(raw)
            except OSError as e:
                logger.warning(f"Cannot read filesystem usage for {raw}: {str(e)}")
                by_mount[raw] = {'dbspace': dbspace.name, 'mount_point': None,
                                 'raw_files': [raw], 'error': str(e)}

    return list(by_mount.values())

"""Storage layout defaults read from the dbspace defaults file."""

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Old key names still found in existing defaults files
KEY_ALIASES = {
    'chunk_path': 'symlink_path',
    'chunk_sub_path': 'symlink_sub_path',
}


@dataclass(frozen=True)
class DbspaceDefaults:
    """Directory layout, naming widths and sizes used for new chunks.

    Sizes are in KB. blob_page_size is a multiple of data_page_size,
    not a size in KB.
    """
    symlink_path: str = "/ifmxdev"
    symlink_sub_path: str = ""
    primary_path: str = "/ifmxdevp"
    primary_sub_path: str = ""
    mirror_path: str = "/ifmxdevm"
    mirror_sub_path: str = ""
    chunk_decimals: int = 3
    raw_decimals: int = 5
    chunk_size: int = 2097150  # 2GB less one 2K page
    data_page_size: int = 2
    blob_page_size: int = 1

    @property
    def symlink_dir(self) -> str:
        """Directory holding all chunk symlinks, primary and mirror."""
        return _join_sub(self.symlink_path, self.symlink_sub_path)

    def primary_dir(self, top: Optional[str] = None) -> str:
        """Directory for primary raw files under the given top directory."""
        return _join_sub(top or self.primary_path, self.primary_sub_path)

    def mirror_dir(self, top: Optional[str] = None) -> str:
        """Directory for mirror raw files under the given top directory."""
        return _join_sub(top or self.mirror_path, self.mirror_sub_path)

    def as_dict(self) -> Dict[str, object]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _join_sub(top: str, sub: str) -> str:
    return os.path.join(top, sub) if sub else top


def parse_defaults(text: str, base: Optional[DbspaceDefaults] = None) -> DbspaceDefaults:
    """Apply ``key value`` lines from a defaults file over ``base``."""
    base = base or DbspaceDefaults()
    known = {f.name: f.type for f in fields(DbspaceDefaults)}
    updates = {}

    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.split('#', 1)[0].strip()
        if not line:
            continue
        parts = line.split()
        key = KEY_ALIASES.get(parts[0], parts[0])
        value = parts[1] if len(parts) > 1 else ""

        if key not in known:
            logger.warning(f"Ignoring unknown defaults key '{parts[0]}' on line {line_no}")
            continue
        if known[key] in (int, 'int'):
            try:
                updates[key] = int(value)
            except ValueError:
                logger.warning(f"Ignoring non-numeric value '{value}' for {key} on line {line_no}")
            continue
        updates[key] = value

    return replace(base, **updates)


def load_dbspace_defaults(path: Optional[str] = None) -> DbspaceDefaults:
    """Load defaults from ``path``, falling back to built-in values."""
    if not path:
        logger.debug("No defaults file configured; using built-in defaults")
        return DbspaceDefaults()
    if not os.path.isfile(path):
        logger.warning(f"Defaults file {path} not found; using built-in defaults")
        return DbspaceDefaults()

    try:
        with open(path, 'r') as f:
            text = f.read()
    except OSError as e:
        logger.warning(f"Error opening defaults file {path}: {str(e)}; using built-in defaults")
        return DbspaceDefaults()

    defaults = parse_defaults(text)
    logger.info(f"Loaded dbspace defaults from {path}")
    return defaults

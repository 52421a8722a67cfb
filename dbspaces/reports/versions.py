"""
Engine version detection and the column layout of flag characters.

The summary report puts the mirror flag and the space-type flag at fixed
character offsets in each dbspace row, and those offsets moved between
major releases. The layout is resolved once from the version line and
passed to the parser as an immutable value.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict

from ..utils.errors import EngineUnreachable, UnsupportedVersion

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r'\bVersion\s+(\S+)')


@dataclass(frozen=True)
class FlagLayout:
    """Character offsets of single-letter flags in a dbspace row."""
    major_version: int
    mirror_flag_pos: int
    kind_flag_pos: int


FLAG_LAYOUTS: Dict[int, FlagLayout] = {
    11: FlagLayout(major_version=11, mirror_flag_pos=63, kind_flag_pos=66),
    12: FlagLayout(major_version=12, mirror_flag_pos=64, kind_flag_pos=66),
}


def detect_major_version(version_text: str) -> int:
    """Extract the engine's major release from a version report.

    Raises:
        EngineUnreachable: no version line is present (engine not running)
        UnsupportedVersion: the version token cannot be read as a release
    """
    for line in version_text.splitlines():
        match = VERSION_PATTERN.search(line)
        if not match:
            continue
        full_version = match.group(1)
        major = full_version.split('.')[0]
        if not major.isdigit():
            raise UnsupportedVersion(full_version)
        logger.debug(f"Engine version {full_version} (major {major})")
        return int(major)

    raise EngineUnreachable("No version line in engine status output; is the server running?")


def flag_layout_for(version_text: str) -> FlagLayout:
    """Resolve the flag layout for the engine that produced ``version_text``."""
    major = detect_major_version(version_text)
    try:
        return FLAG_LAYOUTS[major]
    except KeyError:
        raise UnsupportedVersion(major)

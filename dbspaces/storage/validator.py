"""
Validation of raw files, chunk symlinks and chunk directories.

Every check runs and every problem is reported, so a caller sees the full
list of naming and permission issues at once. The raised error class is
chosen from the most serious kind of problem found.
"""

import logging
import os
import re
import stat
from typing import Iterable, List, NamedTuple, Optional

from ..config.dbspace_defaults import DbspaceDefaults
from ..models.models import ChunkRole
from ..utils.errors import InvalidName, NotFound, PermissionDenied
from .naming import base_server_name

logger = logging.getLogger(__name__)

RAW_FILE_MODE = 0o660
MAX_CHUNK_INDEX = 999

PERMISSION = 'permission'
MISSING = 'missing'
NAMING = 'naming'


class Problem(NamedTuple):
    kind: str
    message: str


def raise_for_problems(subject: str, problems: List[Problem]) -> None:
    """Raise one error describing every problem found for ``subject``."""
    if not problems:
        return
    for problem in problems:
        logger.warning(f"{subject}: {problem.message}")
    message = f"{subject}: " + "; ".join(p.message for p in problems)
    kinds = {p.kind for p in problems}
    if PERMISSION in kinds:
        raise PermissionDenied(message)
    if MISSING in kinds:
        raise NotFound(message)
    raise InvalidName(message)


def raw_file_pattern(top: str) -> str:
    return rf'^{re.escape(top)}\w*/files/file\.\d{{4,}}$'


def raw_file_problems(path: str, tops: Iterable[str],
                      uid: Optional[int] = None, gid: Optional[int] = None) -> List[Problem]:
    """Check a raw file's type, name, ownership and mode."""
    uid = os.getuid() if uid is None else uid
    gid = os.getgid() if gid is None else gid
    problems = []

    if not any(re.match(raw_file_pattern(top), path) for top in tops):
        problems.append(Problem(NAMING, "name does not match {top}/files/file.####"))

    try:
        info = os.lstat(path)
    except OSError:
        problems.append(Problem(MISSING, "file does not exist"))
        return problems

    if not stat.S_ISREG(info.st_mode):
        problems.append(Problem(NAMING, "not a regular file"))
    if info.st_uid != uid:
        problems.append(Problem(PERMISSION, f"owner uid {info.st_uid} is not {uid}"))
    if info.st_gid != gid:
        problems.append(Problem(PERMISSION, f"group gid {info.st_gid} is not {gid}"))
    mode = stat.S_IMODE(info.st_mode)
    if mode != RAW_FILE_MODE:
        problems.append(Problem(PERMISSION, f"mode {mode:o} is not {RAW_FILE_MODE:o}"))
    return problems


def validate_raw_file(path: str, defaults: DbspaceDefaults,
                      uid: Optional[int] = None, gid: Optional[int] = None) -> None:
    tops = (defaults.primary_path, defaults.mirror_path)
    raise_for_problems(f"Raw file {path}", raw_file_problems(path, tops, uid, gid))


def symlink_problems(path: str, defaults: DbspaceDefaults, server: str, dbspace: str,
                     must_exist: bool = True) -> List[Problem]:
    """Check a chunk symlink's location and name against the live server."""
    problems = []
    directory, name = os.path.split(path)

    if directory != defaults.symlink_dir:
        problems.append(Problem(NAMING, f"not in symlink directory {defaults.symlink_dir}"))
    if must_exist and not os.path.islink(path):
        problems.append(Problem(MISSING, "symlink does not exist"))

    parts = name.split('.')
    if len(parts) != 4:
        problems.append(Problem(NAMING, "name is not {server}.{dbspace}.P.###"))
        return problems

    link_server, link_dbspace, role, suffix = parts
    live_server = base_server_name(server)
    if link_server != live_server:
        problems.append(Problem(NAMING, f"server '{link_server}' is not '{live_server}'"))
    if link_dbspace != dbspace:
        problems.append(Problem(NAMING, f"dbspace '{link_dbspace}' is not '{dbspace}'"))
    if role != ChunkRole.PRIMARY.value:
        problems.append(Problem(NAMING, f"role '{role}' is not '{ChunkRole.PRIMARY.value}'"))
    if not (len(suffix) == 3 and suffix.isdigit() and 1 <= int(suffix) <= MAX_CHUNK_INDEX):
        problems.append(Problem(NAMING, f"suffix '{suffix}' is not a number from 001 to 999"))
    return problems


def validate_symlink(path: str, defaults: DbspaceDefaults, server: str, dbspace: str,
                     must_exist: bool = True) -> None:
    raise_for_problems(f"Symlink {path}",
                       symlink_problems(path, defaults, server, dbspace, must_exist))


def validate_chunk_directory(path: str, uid: Optional[int] = None) -> None:
    """A directory new raw files can be created in by the caller."""
    uid = os.getuid() if uid is None else uid
    problems = []
    if not os.path.isdir(path):
        problems.append(Problem(MISSING, "directory does not exist"))
    else:
        owner = os.stat(path).st_uid
        if owner != uid:
            problems.append(Problem(PERMISSION, f"owner uid {owner} is not {uid}"))
        if not os.access(path, os.R_OK | os.W_OK | os.X_OK):
            problems.append(Problem(PERMISSION, "directory is not readable, writable and searchable"))
    raise_for_problems(f"Directory {path}", problems)

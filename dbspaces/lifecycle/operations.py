"""
Lifecycle operations: create a dbspace, add chunks, drop a chunk, drop a dbspace.

Each operation validates everything it can before its first side effect;
validation problems raise. After that, steps run in a fixed order and the
first failing step halts the operation. Steps already completed are not
undone: the returned result names the failed step and the files and
links left behind.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..config.dbspace_defaults import DbspaceDefaults
from ..inventory.links import raw_file_usage
from ..models.models import Chunk, ChunkRole, DBspace, DbspaceKind, Inventory, RawFileUsage
from ..storage.naming import (
    ChunkPaths,
    generate_chunk_paths,
    is_scanned_top,
    mirror_symlink_for,
    next_symlink_index,
    retired_name,
    round_down_size,
    symlink_name,
)
from ..storage.validator import RAW_FILE_MODE, validate_chunk_directory, validate_raw_file
from ..utils.errors import (
    AlreadyExists,
    ChunkOrderError,
    DbspaceError,
    ExternalCommandFailure,
    InvalidChunkOrder,
    InvalidName,
    InvalidOption,
    NotFound,
    SizeConstraintViolation,
    StepFailure,
)
from .commands import (
    add_chunk_command,
    create_dbspace_command,
    drop_chunk_command,
    drop_dbspace_command,
)
from .executor import EffectExecutor

logger = logging.getLogger(__name__)

DBSPACE_NAME_PATTERN = re.compile(r'^[a-z][a-z0-9_]*$')
MAX_PAGE_SIZE_KB = 16


@dataclass
class CreateDbspaceRequest:
    name: str
    path: Optional[str] = None
    size_kb: Optional[int] = None
    mirror: bool = False                # mirror into the default mirror directory
    mirror_path: Optional[str] = None   # mirror into this top directory
    page_size_kb: Optional[int] = None
    temp: bool = False
    blob: bool = False
    blob_multiple: Optional[int] = None
    smart_blob: bool = False


@dataclass
class AddChunkRequest:
    name: str
    path: Optional[str] = None
    mirror_path: Optional[str] = None
    count: int = 1
    size_kb: Optional[int] = None


@dataclass
class OperationResult:
    """Outcome of one lifecycle operation."""
    operation: str
    dbspace: str
    dry_run: bool = False
    succeeded: bool = True
    requested: int = 1
    completed: int = 0
    failed_step: Optional[str] = None
    error: Optional[DbspaceError] = None
    leftover_artifacts: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)

    def summary(self) -> str:
        status = "completed" if self.succeeded else f"halted at: {self.failed_step}"
        suffix = " (dry run)" if self.dry_run else ""
        return (f"{self.operation} {self.dbspace}: {self.completed} of {self.requested} "
                f"{status}{suffix}")


def validate_create_options(request: CreateDbspaceRequest) -> None:
    """Reject kind, page-size and mirror options that cannot go together."""
    conflicts = [
        (request.mirror and request.mirror_path, "-M and -m"),
        (request.temp and request.blob, "-t and -B"),
        (request.blob and request.smart_blob, "-B and -S"),
        (request.page_size_kb and request.smart_blob, "-k and -S"),
        (request.page_size_kb and request.blob, "-k and -B"),
    ]
    for conflict, options in conflicts:
        if conflict:
            raise InvalidOption(f"Options {options} cannot be used together")
    if request.blob_multiple is not None and not request.blob:
        raise InvalidOption("Option -g only applies to blob spaces (-B)")


def requested_kind(request: CreateDbspaceRequest) -> DbspaceKind:
    if request.blob:
        return DbspaceKind.BLOB
    if request.smart_blob:
        return DbspaceKind.SMART_BLOB
    if request.temp:
        return DbspaceKind.TEMP
    return DbspaceKind.REGULAR


class SpaceOperations:
    """Runs lifecycle operations against one server's inventory."""

    def __init__(self, inventory: Inventory, defaults: DbspaceDefaults,
                 server: str, executor: EffectExecutor):
        self.inventory = inventory
        self.defaults = defaults
        self.server = server
        self.executor = executor

    # Shared helpers

    def _new_result(self, operation: str, dbspace: str, requested: int = 1) -> OperationResult:
        return OperationResult(operation=operation, dbspace=dbspace,
                               dry_run=self.executor.dry_run, requested=requested,
                               actions=self.executor.actions)

    def _halt(self, result: OperationResult, error: DbspaceError) -> OperationResult:
        result.succeeded = False
        result.error = error
        if isinstance(error, StepFailure):
            result.failed_step = error.action
        elif isinstance(error, ExternalCommandFailure):
            result.failed_step = error.command
        logger.error(f"{result.operation} {result.dbspace} halted: {error.message}")
        if result.leftover_artifacts:
            logger.warning(f"Left in place after failure: {', '.join(result.leftover_artifacts)}")
        return result

    def _require_dbspace(self, name: str) -> DBspace:
        dbspace = self.inventory.find_dbspace(name)
        if dbspace is None:
            raise NotFound(f"DBspace {name} does not exist in server {self.server}")
        return dbspace

    def _checked_size(self, size_kb: Optional[int], page_kb: int) -> int:
        size_kb = self.defaults.chunk_size if size_kb is None else size_kb
        if size_kb <= 0:
            raise SizeConstraintViolation(f"Chunk size {size_kb} KB must be positive")
        if not self.inventory.large_chunks_enabled and size_kb > self.defaults.chunk_size:
            raise SizeConstraintViolation(
                f"Large chunks are disabled; {size_kb} KB exceeds {self.defaults.chunk_size} KB")
        rounded = round_down_size(page_kb, size_kb)
        if rounded == 0:
            raise SizeConstraintViolation(f"Chunk size {size_kb} KB is smaller than one {page_kb} KB page")
        if rounded != size_kb:
            logger.info(f"Chunk size rounded down from {size_kb} KB to {rounded} KB")
        return rounded

    def _start_index(self, dbspace_name: str) -> int:
        index = next_symlink_index(self.defaults.symlink_dir, self.server, dbspace_name)
        prefix = f"{self.server}.{dbspace_name}.{ChunkRole.PRIMARY.value}."
        dbspace = self.inventory.find_dbspace(dbspace_name)
        if dbspace is not None:
            for chunk in self.inventory.chunks_of(dbspace.number):
                suffix = os.path.basename(chunk.symlink_path)[len(prefix):]
                if os.path.basename(chunk.symlink_path).startswith(prefix) and suffix.isdigit():
                    index = max(index, int(suffix) + 1)
        return index

    def _require_chunk_directory(self, top: str, mirror: bool = False) -> None:
        """A top directory whose raw-file numbers are tracked, with a usable chunk directory."""
        if not is_scanned_top(self.defaults, top):
            raise InvalidName(f"Top directory {top} is not under {self.defaults.primary_path}* "
                              f"or {self.defaults.mirror_path}*")
        validate_chunk_directory(self.defaults.mirror_dir(top) if mirror
                                 else self.defaults.primary_dir(top))

    def _require_new_paths(self, pairs: List[ChunkPaths], existing_raw: bool = False) -> None:
        for pair in pairs:
            for link in (pair.symlink, pair.mirror_symlink):
                if link and self.inventory.symlink_in_use(link):
                    raise AlreadyExists(f"Symlink {link} is already used by a chunk of {self.server}")
            raw_file = None if existing_raw else pair.raw_file
            for path in (pair.symlink, raw_file, pair.mirror_symlink, pair.mirror_raw_file):
                if path and os.path.lexists(path):
                    raise AlreadyExists(f"Path {path} already exists")

    def _build_chunk(self, pair: ChunkPaths, result: OperationResult) -> None:
        """Create raw files, set their mode and link them, skipping what exists."""
        raw_files = [p for p in (pair.raw_file, pair.mirror_raw_file) if p]
        links = [(raw, link) for raw, link in ((pair.raw_file, pair.symlink),
                                               (pair.mirror_raw_file, pair.mirror_symlink)) if link]

        for raw in raw_files:
            if not os.path.isfile(raw):
                self.executor.touch(raw)
                result.leftover_artifacts.append(raw)
        for raw in raw_files:
            self.executor.chmod(raw, RAW_FILE_MODE)
        for raw, link in links:
            if not os.path.islink(link):
                self.executor.symlink(raw, link)
                result.leftover_artifacts.append(link)

    def _retire_chunk(self, chunk: Chunk) -> None:
        """Unlink a dropped chunk's symlinks and rename its raw files out of use."""
        self.executor.unlink(chunk.symlink_path)
        if chunk.mirror_symlink_path:
            self.executor.unlink(chunk.mirror_symlink_path)

        for raw, link in ((chunk.raw_file_path, chunk.symlink_path),
                          (chunk.mirror_raw_file_path, chunk.mirror_symlink_path)):
            if not link:
                continue
            if not raw:
                logger.warning(f"No raw file known behind {link}; nothing to rename")
                continue
            self.executor.rename(raw, retired_name(raw, link))

    def _require_ordered(self, dbspace: DBspace) -> None:
        if dbspace.number in self.inventory.order_errors:
            raise ChunkOrderError(dbspace.number,
                                  f"chunk order of {dbspace.name} is unknown: "
                                  f"{self.inventory.order_errors[dbspace.number]}")

    # Create-DBspace

    def create_dbspace(self, request: CreateDbspaceRequest) -> OperationResult:
        name = request.name
        if not DBSPACE_NAME_PATTERN.match(name):
            raise InvalidName(f"DBspace name '{name}' must start with a lowercase letter "
                              f"followed by lowercase letters, digits or underscores")
        if self.inventory.find_dbspace(name) is not None:
            raise AlreadyExists(f"DBspace {name} already exists in server {self.server}")
        validate_create_options(request)

        kind = requested_kind(request)
        data_page = self.defaults.data_page_size
        page_size_kb = None
        blob_multiple = None
        if request.page_size_kb is not None:
            if request.page_size_kb % data_page or request.page_size_kb > MAX_PAGE_SIZE_KB:
                raise SizeConstraintViolation(
                    f"Page size {request.page_size_kb} KB must be a multiple of {data_page} KB "
                    f"and no more than {MAX_PAGE_SIZE_KB} KB")
        if kind == DbspaceKind.BLOB:
            blob_multiple = request.blob_multiple or self.defaults.blob_page_size
            size_kb = self._checked_size(request.size_kb, blob_multiple * data_page)
        elif kind == DbspaceKind.SMART_BLOB:
            size_kb = self._checked_size(request.size_kb, data_page)
        else:
            page_size_kb = request.page_size_kb or data_page
            size_kb = self._checked_size(request.size_kb, page_size_kb)

        mirrored = request.mirror or request.mirror_path is not None
        primary_top = request.path or self.defaults.primary_path
        mirror_top = request.mirror_path or self.defaults.mirror_path
        self._require_chunk_directory(primary_top)
        if mirrored:
            self._require_chunk_directory(mirror_top, mirror=True)

        pairs = generate_chunk_paths(self.defaults, self.server, name, count=1, start_index=1,
                                     mirrored=mirrored, primary_top=primary_top,
                                     mirror_top=mirror_top)
        self._require_new_paths(pairs)
        pair = pairs[0]

        command = create_dbspace_command(name, kind, pair.symlink, size_kb,
                                         page_size_kb=page_size_kb,
                                         blob_multiple=blob_multiple,
                                         mirror_symlink=pair.mirror_symlink,
                                         temp=request.temp)
        result = self._new_result('create-dbspace', name)
        try:
            self._build_chunk(pair, result)
            self.executor.run(command)
        except (StepFailure, ExternalCommandFailure) as e:
            return self._halt(result, e)

        result.completed = 1
        result.leftover_artifacts = []
        logger.info(f"Created {kind.value} dbspace {name}")
        return result

    # Add-Chunk

    def _resolve_chunk_paths(self, dbspace: DBspace, request: AddChunkRequest) -> List[ChunkPaths]:
        path = request.path or self.defaults.primary_path
        mirror_top = request.mirror_path or self.defaults.mirror_path
        start_index = self._start_index(dbspace.name)

        if os.path.isdir(path):
            self._require_chunk_directory(path)
            if dbspace.mirrored:
                self._require_chunk_directory(mirror_top, mirror=True)
            pairs = generate_chunk_paths(self.defaults, self.server, dbspace.name,
                                         count=request.count, start_index=start_index,
                                         mirrored=dbspace.mirrored,
                                         primary_top=path, mirror_top=mirror_top)
            self._require_new_paths(pairs)
            return pairs

        if os.path.isfile(path):
            if request.count != 1:
                raise InvalidOption("Only one chunk can be added on an existing raw file")
            validate_raw_file(path, self.defaults)
            usage = raw_file_usage(path, self.defaults.symlink_dir, self.server, self.inventory)
            if usage != RawFileUsage.UNUSED:
                owner = "this" if usage == RawFileUsage.THIS_SERVER else "another"
                raise AlreadyExists(f"Raw file {path} is already used by a chunk of {owner} server")
            symlink = os.path.join(self.defaults.symlink_dir,
                                   symlink_name(self.server, dbspace.name, ChunkRole.PRIMARY,
                                                start_index, self.defaults.chunk_decimals))
            mirror_symlink = mirror_raw = None
            if dbspace.mirrored:
                self._require_chunk_directory(mirror_top, mirror=True)
                mirror_symlink = mirror_symlink_for(symlink)
                mirror_raw = os.path.join(self.defaults.mirror_dir(mirror_top),
                                          os.path.basename(path))
            pair = ChunkPaths(start_index, symlink, path, mirror_symlink, mirror_raw)
            self._require_new_paths([pair], existing_raw=True)
            return [pair]

        if not os.path.lexists(path):
            raise NotFound(f"Path {path} does not exist")
        raise InvalidName(f"Path {path} is neither a directory nor a regular file")

    def add_chunk(self, request: AddChunkRequest) -> OperationResult:
        dbspace = self._require_dbspace(request.name)
        if request.count < 1:
            raise InvalidOption(f"Chunk count must be at least 1, not {request.count}")
        if request.mirror_path and not dbspace.mirrored:
            logger.warning(f"DBspace {dbspace.name} is not mirrored; ignoring mirror path")
        size_kb = self._checked_size(request.size_kb, dbspace.page_size_kb)
        pairs = self._resolve_chunk_paths(dbspace, request)

        result = self._new_result('add-chunk', dbspace.name, requested=len(pairs))
        for pair in pairs:
            command = add_chunk_command(dbspace.name, pair.symlink, size_kb,
                                        mirror_symlink=pair.mirror_symlink)
            try:
                self._build_chunk(pair, result)
                self.executor.run(command)
            except (StepFailure, ExternalCommandFailure) as e:
                return self._halt(result, e)
            result.completed += 1
            result.leftover_artifacts = []

        logger.info(f"Added {result.completed} of {result.requested} chunks to {dbspace.name}")
        return result

    # Drop-Chunk

    @staticmethod
    def _check_order(name: str, order: int) -> None:
        if order < 1:
            raise InvalidChunkOrder(f"Chunk order {order} is invalid; chunks are numbered from 1")
        if order == 1:
            raise InvalidChunkOrder(f"Chunk 1 is the first chunk of {name}; "
                                    f"use drop-dbspace to remove it")

    def _locate_chunk(self, dbspace: DBspace, order: int) -> Chunk:
        self._require_ordered(dbspace)
        chunk = self.inventory.chunk_at(dbspace.number, order)
        if chunk is None:
            raise NotFound(f"DBspace {dbspace.name} has no chunk number {order}")
        return chunk

    def _drop_one_chunk(self, dbspace: DBspace, chunk: Chunk) -> None:
        self.executor.run(drop_chunk_command(dbspace.name, chunk.symlink_path))
        self._retire_chunk(chunk)

    def drop_chunk(self, name: str, order: int) -> OperationResult:
        self._check_order(name, order)
        dbspace = self._require_dbspace(name)
        chunk = self._locate_chunk(dbspace, order)

        result = self._new_result('drop-chunk', name)
        try:
            self._drop_one_chunk(dbspace, chunk)
        except (StepFailure, ExternalCommandFailure) as e:
            return self._halt(result, e)
        result.completed = 1
        return result

    # Drop-DBspace

    def drop_dbspace(self, name: str) -> OperationResult:
        dbspace = self._require_dbspace(name)
        self._require_ordered(dbspace)
        chunks = self.inventory.chunks_of(dbspace.number)
        first = [c for c in chunks if c.order_in_dbspace == 1]
        if not first:
            raise NotFound(f"DBspace {name} has no first chunk")
        later = sorted((c for c in chunks if c.order_in_dbspace != 1),
                       key=lambda c: c.order_in_dbspace, reverse=True)

        result = self._new_result('drop-dbspace', name, requested=len(chunks))
        try:
            for chunk in later:
                self._drop_one_chunk(dbspace, chunk)
                result.completed += 1
            self.executor.run(drop_dbspace_command(name))
            self._retire_chunk(first[0])
        except (StepFailure, ExternalCommandFailure) as e:
            return self._halt(result, e)
        result.completed += 1
        logger.info(f"Dropped dbspace {name}")
        return result

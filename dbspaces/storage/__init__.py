from .naming import (
    ChunkPaths,
    round_down_size,
    round_up_size,
    base_server_name,
    symlink_name,
    raw_file_name,
    retired_name,
    mirror_symlink_for,
    mirror_raw_file_for,
    is_scanned_top,
    next_raw_sequence,
    next_symlink_index,
    generate_chunk_paths,
)
from .validator import (
    Problem,
    raw_file_problems,
    symlink_problems,
    validate_raw_file,
    validate_symlink,
    validate_chunk_directory,
)

__all__ = [
    "ChunkPaths",
    "round_down_size",
    "round_up_size",
    "base_server_name",
    "symlink_name",
    "raw_file_name",
    "retired_name",
    "mirror_symlink_for",
    "mirror_raw_file_for",
    "is_scanned_top",
    "next_raw_sequence",
    "next_symlink_index",
    "generate_chunk_paths",
    "Problem",
    "raw_file_problems",
    "symlink_problems",
    "validate_raw_file",
    "validate_symlink",
    "validate_chunk_directory",
]

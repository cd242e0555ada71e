"""Local filesystem side of a sync: path mapping and tree scanning."""

from __future__ import annotations

from .path_mapper import (
    SourceIndex,
    as_folder_prefix,
    is_directory_marker,
    local_path_to_remote_key,
    remote_key_to_local_path,
    root_base_name,
)
from .scanner import build_source_index, scan_local_folders

__all__ = [
    "SourceIndex",
    "as_folder_prefix",
    "is_directory_marker",
    "local_path_to_remote_key",
    "remote_key_to_local_path",
    "root_base_name",
    "scan_local_folders",
    "build_source_index",
]

"""Resolve a local file or directory into (local path, object key) pairs."""

import os
import posixpath
from dataclasses import dataclass
from typing import List

from bulk_upload.common.exceptions import PreflightError


@dataclass(frozen=True)
class FileDescriptor:
    local_path: str
    key: str


def object_key(target_prefix: str, relative_path: str) -> str:
    relative = relative_path.replace(os.sep, "/")
    prefix = target_prefix.strip("/")
    return posixpath.join(prefix, relative) if prefix else relative


def collect_files(source: str, target_prefix: str = "") -> List[FileDescriptor]:
    """List files under ``source`` in a stable order.

    A single file maps to its base name; a directory is walked recursively and
    each file keeps its path relative to the directory. Symlinked directories
    are followed; a link back to one of its own ancestors is skipped.
    """
    if not os.path.exists(source):
        raise PreflightError(f"Source path does not exist: {source}")

    root = os.path.abspath(source)
    if not os.path.isdir(root):
        return [FileDescriptor(root, object_key(target_prefix, os.path.basename(root)))]

    descriptors = []
    # Each directory carries the identities of its ancestors to detect loops.
    ancestors = {root: frozenset()}
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        st = os.stat(dirpath)
        identity = (st.st_dev, st.st_ino)
        chain = ancestors.pop(dirpath)
        if identity in chain:
            dirnames[:] = []
            continue
        chain = chain | {identity}
        dirnames.sort()
        for name in dirnames:
            ancestors[os.path.join(dirpath, name)] = chain
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            descriptors.append(
                FileDescriptor(path, object_key(target_prefix, os.path.relpath(path, root)))
            )
    return descriptors

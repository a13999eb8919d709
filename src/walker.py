"""
Share tree walking.

A share is reduced to three numbers: how many files it holds, how many
folders, and the total byte length of its files. Symlinks and junctions are
neither followed nor counted. What happens when an entry below the share
root cannot be read is decided by an ErrorPolicy:

    SKIP_UNREADABLE      the entry (or the contents of an unlistable folder)
                         is left out of the totals and the walk continues
    ABORT_ON_UNREADABLE  the whole share is reported as failed

A root that cannot be listed always fails the share.
"""
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Union
from errors import WalkError
from models import ErrorPolicy, LongPathPolicy, ShareError, ShareRecord, ShareResult

logger = logging.getLogger(__name__)

# MAX_PATH on Windows
LONG_PATH_THRESHOLD = 260

@dataclass
class TreeStats:
    files: int = 0
    folders: int = 0
    size_bytes: int = 0

def _describe(e: OSError) -> str:
    if e.strerror and e.filename:
        return f"{e.strerror}: {e.filename}"
    return str(e)

def _unreadable(path: str, e: OSError, error_policy: ErrorPolicy) -> None:
    if error_policy is ErrorPolicy.ABORT_ON_UNREADABLE:
        raise WalkError(f"Unreadable entry {path}: {_describe(e)}") from e
    logger.debug("Skipping unreadable entry %s: %s", path, _describe(e))

def count_tree(root: str, error_policy: ErrorPolicy = ErrorPolicy.SKIP_UNREADABLE) -> TreeStats:
    """Count files and folders below root and sum the file sizes"""
    stats = TreeStats()
    try:
        with os.scandir(root) as it:
            pending = [list(it)]
    except OSError as e:
        raise WalkError(f"Cannot enumerate {root}: {_describe(e)}") from e

    while pending:
        for entry in pending.pop():
            try:
                # DirEntry.is_junction needs Python 3.12 (requires-python floor)
                if entry.is_symlink() or entry.is_junction():
                    continue
                if entry.is_dir(follow_symlinks=False):
                    stats.folders += 1
                    try:
                        with os.scandir(entry.path) as it:
                            pending.append(list(it))
                    except OSError as e:
                        _unreadable(entry.path, e, error_policy)
                elif entry.is_file(follow_symlinks=False):
                    size = entry.stat(follow_symlinks=False).st_size
                    stats.files += 1
                    stats.size_bytes += size
            except OSError as e:
                _unreadable(entry.path, e, error_policy)
    return stats

def _timestamp() -> str:
    return datetime.now().isoformat(timespec='seconds')

def share_error(record: ShareRecord, message: str) -> ShareError:
    return ShareError(name=record.name, path=record.path, error=message, timestamp=_timestamp())

def walk_share(record: ShareRecord,
               error_policy: ErrorPolicy = ErrorPolicy.SKIP_UNREADABLE,
               long_path_policy: LongPathPolicy = LongPathPolicy.WARN,
               threshold: int = LONG_PATH_THRESHOLD) -> Union[ShareResult, ShareError]:
    """Walk one share and return its statistics, or the reason it could not be walked"""
    if len(record.path) >= threshold:
        logger.warning(
            "Path of share %s is %d characters long and may be inaccessible: %s",
            record.name, len(record.path), record.path
        )
        if long_path_policy is LongPathPolicy.SKIP:
            return share_error(
                record,
                f"Skipped: path length {len(record.path)} reaches the {threshold} character limit"
            )

    logger.debug("Walking share %s at %s", record.name, record.path)
    try:
        stats = count_tree(record.path, error_policy)
    except WalkError as e:
        logger.error("Share %s failed: %s", record.name, e)
        return share_error(record, str(e))

    logger.debug(
        "Share %s: %d files, %d folders, %d bytes",
        record.name, stats.files, stats.folders, stats.size_bytes
    )
    return ShareResult(
        name=record.name,
        path=record.path,
        size_bytes=stats.size_bytes,
        files=stats.files,
        folders=stats.folders
    )

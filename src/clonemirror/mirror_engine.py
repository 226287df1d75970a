from __future__ import annotations

import logging
import os
from pathlib import Path
import stat

from clonemirror.clone import attempt_clone
from clonemirror.conflict import Confirm, prompt_overwrite, resolve_conflict
from clonemirror.models import (
    ErrorKind,
    MirrorConfig,
    MirrorFailure,
    MirrorStats,
    Resolution,
)


def is_not_older(target: Path, source: Path) -> bool:
    return target.stat().st_mtime_ns >= source.stat().st_mtime_ns


class MirrorEngine:
    """Depth-first mirroring of files and directory trees.

    Every step returns ``True`` on success. The first failure is recorded in
    ``stats.failure``, logged once, and stops the remaining traversal; entries
    already mirrored stay on disk.
    """

    def __init__(
        self,
        config: MirrorConfig,
        logger: logging.Logger | None = None,
        confirm: Confirm | None = None,
    ) -> None:
        self.config = config
        self.log = logger or logging.getLogger("clonemirror.engine")
        self.confirm = confirm or prompt_overwrite
        self.stats = MirrorStats()

    def fail(
        self,
        kind: ErrorKind,
        message: str,
        path: Path | None = None,
        error: OSError | None = None,
        logged: bool = False,
    ) -> bool:
        code = None
        if error is not None:
            code = error.errno or 0
            message = f"{message}: {error.strerror or os.strerror(code)} (errno: {code})"
        if not logged:
            self.log.error("%s", message)
        if self.stats.failure is None:
            self.stats.failure = MirrorFailure(kind=kind, message=message, path=path, errno=code)
        return False

    def make_directory(self, target: Path) -> bool:
        if target.is_dir():
            return True
        if target.exists():
            return self.fail(
                ErrorKind.PRECONDITION,
                f"Cannot overwrite non-directory {target} with a directory",
                path=target,
            )
        self.log.debug("Creating directory: %s", target)
        try:
            target.mkdir()
        except OSError as exc:
            return self.fail(ErrorKind.OS_ERROR, f"Error creating directory {target}", target, exc)
        self.stats.directories += 1
        return True

    def mirror_entry(self, source: Path, target_parent: Path) -> bool:
        target = target_parent / source.name
        if source.is_dir():
            self.log.debug("Found directory: %s", source)
            if not self.make_directory(target):
                return False
            return self.mirror_tree(source, target)
        self.log.debug("Found file: %s", source)
        return self.mirror_file(source, target)

    def mirror_file(self, source: Path, target: Path) -> bool:
        config = self.config

        try:
            if config.update_only and target.is_file() and is_not_older(target, source):
                self.log.debug("Skipping file (not newer): %s", source)
                self.stats.skipped += 1
                return True
        except OSError as exc:
            return self.fail(ErrorKind.OS_ERROR, f"Error comparing {source} with {target}", target, exc)

        resolution = resolve_conflict(target, config, self.confirm, self.log)
        if resolution is Resolution.SKIP:
            self.stats.declined += 1
            return True
        if resolution is Resolution.ABORT:
            kind = ErrorKind.PRECONDITION if target.is_dir() else ErrorKind.CONFLICT
            return self.fail(kind, f"Cannot replace {target}", path=target, logged=True)
        if os.path.lexists(target):
            if config.backup:
                self.stats.backed_up += 1
            self.log.debug("Removing existing target: %s", target)
            try:
                target.unlink()
            except OSError as exc:
                return self.fail(ErrorKind.OS_ERROR, f"Error removing {target}", target, exc)

        self.log.debug("Cloning file from %s to %s", source, target)
        outcome = attempt_clone(source, target, fallback=config.copy_fallback)
        if not outcome.ok:
            self.log.debug("Clone failed with reason %s", outcome.reason.value)
            return self.fail(
                ErrorKind.OS_ERROR,
                f"Error cloning file from {source} to {target}",
                target,
                OSError(outcome.errno, outcome.strerror),
            )
        if outcome.method == "copy":
            self.stats.copied += 1
        else:
            self.stats.cloned += 1

        if config.preserve_permissions:
            self.log.debug("Preserving permissions for: %s", target)
            try:
                os.chmod(target, stat.S_IMODE(source.stat().st_mode))
            except OSError as exc:
                return self.fail(
                    ErrorKind.OS_ERROR, f"Error setting permissions on {target}", target, exc
                )
        return True

    def mirror_tree(self, source: Path, target: Path) -> bool:
        self.log.debug("Mirroring directory %s into %s", source, target)
        try:
            with os.scandir(source) as entries:
                children = [Path(entry.path) for entry in entries]
        except OSError as exc:
            return self.fail(ErrorKind.OS_ERROR, f"Error reading directory {source}", source, exc)

        for child in children:
            if not self.mirror_entry(child, target):
                return False
        return True

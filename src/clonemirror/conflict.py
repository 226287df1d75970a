from __future__ import annotations

import logging
import os
from pathlib import Path
import shutil
from typing import Callable

from clonemirror.models import MirrorConfig, Resolution


Confirm = Callable[[Path], bool]


def backup_path(target: Path) -> Path:
    return target.with_name(f"{target.name}~")


def prompt_overwrite(target: Path) -> bool:
    try:
        response = input(f"Overwrite {target}? (y/n) ")
    except EOFError:
        response = ""
    if response.strip()[:1] in {"y", "Y"}:
        return True
    print(f"Skipping {target}")
    return False


def resolve_conflict(
    target: Path,
    config: MirrorConfig,
    confirm: Confirm = prompt_overwrite,
    logger: logging.Logger | None = None,
) -> Resolution:
    """Decide whether ``target`` may be replaced.

    Checks run in a fixed order: a missing target proceeds, a directory aborts,
    an interactive refusal skips before any backup is taken, then the backup
    is written and finally ``force`` decides whether an existing file may go.
    """
    log = logger or logging.getLogger("clonemirror.conflict")

    if not os.path.lexists(target):
        return Resolution.PROCEED

    if target.is_dir():
        log.error("Target is a directory, refusing to replace it with a file: %s", target)
        return Resolution.ABORT

    if config.interactive and not confirm(target):
        log.debug("Overwrite declined: %s", target)
        return Resolution.SKIP

    if config.backup:
        backup = backup_path(target)
        if backup.is_dir():
            log.error("Backup path is a directory: %s", backup)
            return Resolution.ABORT
        log.debug("Backing up %s to %s", target, backup)
        try:
            shutil.copy2(target, backup)
        except OSError as exc:
            code = exc.errno or 0
            log.error(
                "Error backing up %s: %s (errno: %s)",
                target,
                exc.strerror or os.strerror(code),
                code,
            )
            return Resolution.ABORT

    if not config.force and os.path.lexists(target):
        log.error("File exists: %s", target)
        return Resolution.ABORT

    return Resolution.PROCEED

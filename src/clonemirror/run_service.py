from __future__ import annotations

import logging
from pathlib import Path

from clonemirror.conflict import Confirm
from clonemirror.mirror_engine import MirrorEngine
from clonemirror.models import ErrorKind, MirrorConfig, MirrorStats


EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def _target_inside_source(source_root: Path, target_root: Path) -> bool:
    source_resolved = source_root.resolve()
    target_resolved = target_root.resolve()
    return target_resolved == source_resolved or source_resolved in target_resolved.parents


def _mirror_directory(engine: MirrorEngine, source: Path, target: Path) -> bool:
    if not engine.config.recursive:
        return engine.fail(
            ErrorKind.PRECONDITION,
            f"Source is a directory. Use -R option for recursive copy: {source}",
            path=source,
        )
    if target.exists() and not target.is_dir():
        return engine.fail(
            ErrorKind.PRECONDITION,
            f"Cannot overwrite non-directory {target} with directory {source}",
            path=target,
        )
    if _target_inside_source(source, target):
        return engine.fail(
            ErrorKind.PRECONDITION,
            f"Cannot mirror directory {source} into itself: {target}",
            path=target,
        )
    if not engine.make_directory(target):
        return False
    return engine.mirror_tree(source, target)


def _mirror_single_file(engine: MirrorEngine, source: Path, target: Path) -> bool:
    target_path = target / source.name if target.is_dir() else target
    if target_path != target:
        engine.log.debug("Adjusted target path to: %s", target_path)
    ok = engine.mirror_file(source, target_path)
    engine.stats.stopped_by_prompt = bool(engine.stats.declined)
    return ok


def run_mirror(
    source: Path,
    target: Path,
    config: MirrorConfig,
    logger: logging.Logger | None = None,
    confirm: Confirm | None = None,
) -> tuple[int, MirrorStats]:
    log = logger or logging.getLogger("clonemirror.run")
    engine = MirrorEngine(config, logger=log, confirm=confirm)

    if not source.exists():
        engine.fail(ErrorKind.PRECONDITION, f"Source does not exist: {source}", path=source)
        return EXIT_FAILURE, engine.stats

    if source.is_dir():
        log.debug("Source is a directory: %s", source)
        _mirror_directory(engine, source, target)
    else:
        log.debug("Source is a file: %s", source)
        _mirror_single_file(engine, source, target)

    stats = engine.stats
    log.debug(
        "%s -> %s | cloned=%s copied=%s skipped=%s declined=%s backed_up=%s directories=%s",
        source,
        target,
        stats.cloned,
        stats.copied,
        stats.skipped,
        stats.declined,
        stats.backed_up,
        stats.directories,
    )
    return (EXIT_FAILURE if stats.failed else EXIT_SUCCESS), stats

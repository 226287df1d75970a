from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

from clonemirror.config import build_mirror_config, find_config_file, load_defaults
from clonemirror.run_service import EXIT_FAILURE, EXIT_SUCCESS, run_mirror


LOGGER_NAME = "clonemirror"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="clonemirror",
        description="Mirror a file or directory tree using copy-on-write clones",
    )
    parser.add_argument("source", type=Path)
    parser.add_argument("target", type=Path)
    parser.add_argument(
        "-a", dest="archive", action="store_true", help="Archive mode (recursive and preserve permissions)"
    )
    parser.add_argument("-b", dest="backup", action="store_true", help="Backup existing files to <name>~")
    parser.add_argument("-f", dest="force", action="store_true", help="Force overwrite")
    parser.add_argument("-i", dest="interactive", action="store_true", help="Prompt before overwriting")
    parser.add_argument(
        "-R", "-r", dest="recursive", action="store_true", help="Recursive copy"
    )
    parser.add_argument(
        "-p", dest="preserve_permissions", action="store_true", help="Preserve file permissions"
    )
    parser.add_argument("-u", dest="update_only", action="store_true", help="Only copy newer files")
    parser.add_argument("-d", dest="debug", action="store_true", help="Enable debug output")
    parser.add_argument(
        "--copy-fallback",
        action="store_true",
        help="Fall back to a byte copy when the filesystem cannot clone",
    )
    parser.add_argument("--config", type=Path, default=None, help="Defaults file (.yaml or .json)")
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def configure_logging(debug: bool, log_file: Path | None = None) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else logging.WARNING)
    console.setFormatter(
        logging.Formatter("[%(levelname)s] %(message)s" if debug else "%(message)s")
    )
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(file_handler)
    return logger


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config_path = find_config_file(args.config)
        defaults = load_defaults(config_path) if config_path is not None else None
    except (ValueError, OSError) as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    config = build_mirror_config(
        defaults,
        archive=args.archive,
        recursive=args.recursive,
        preserve_permissions=args.preserve_permissions,
        backup=args.backup,
        force=args.force,
        interactive=args.interactive,
        update_only=args.update_only,
        copy_fallback=args.copy_fallback,
        debug=args.debug,
    )
    log_file = args.log_file or (defaults.log_file if defaults else None)
    logger = configure_logging(config.debug, log_file)
    logger.debug("Resolved options: %s", config)

    exit_code, stats = run_mirror(
        args.source,
        args.target,
        config,
        logger=logger.getChild("run"),
    )
    if exit_code == EXIT_SUCCESS and not stats.stopped_by_prompt:
        print(f"Successfully copied from {args.source} to {args.target}")
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())

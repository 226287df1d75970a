from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Any

import yaml

from clonemirror.models import MirrorConfig


CONFIG_ENV_VAR = "CLONEMIRROR_CONFIG"

BOOL_KEYS = {
    "archive": "archive",
    "recursive": "recursive",
    "preservePermissions": "preserve_permissions",
    "backup": "backup",
    "force": "force",
    "interactive": "interactive",
    "updateOnly": "update_only",
    "copyFallback": "copy_fallback",
    "debug": "debug",
}


@dataclass(slots=True)
class MirrorDefaults:
    archive: bool = False
    recursive: bool = False
    preserve_permissions: bool = False
    backup: bool = False
    force: bool = False
    interactive: bool = False
    update_only: bool = False
    copy_fallback: bool = False
    debug: bool = False
    log_file: Path | None = None


def default_config_file() -> Path:
    return Path.home() / ".config" / "clonemirror" / "config.yaml"


def _as_path(value: Any, field_name: str) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string path")
    return Path(value).expanduser()


def _as_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ValueError(f"{field_name} must be a boolean")


def _load_raw_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ValueError(f"Config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        loaded = yaml.safe_load(text)
    elif suffix == ".json":
        loaded = json.loads(text)
    else:
        raise ValueError("Config file must be .yaml/.yml or .json")

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError("Config root must be an object")
    return loaded


def load_defaults(config_path: Path) -> MirrorDefaults:
    raw = _load_raw_config(config_path)

    unknown = sorted(set(raw) - set(BOOL_KEYS) - {"logFile"})
    if unknown:
        raise ValueError(f"Unknown config key(s): {', '.join(unknown)}")

    defaults = MirrorDefaults()
    for key, attr in BOOL_KEYS.items():
        setattr(defaults, attr, _as_bool(raw.get(key), key, default=False))

    raw_log_file = raw.get("logFile")
    if raw_log_file is not None:
        defaults.log_file = _as_path(raw_log_file, "logFile")
    return defaults


def find_config_file(explicit: Path | None = None) -> Path | None:
    if explicit is not None:
        return explicit
    from_env = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if from_env:
        return Path(from_env).expanduser()
    candidate = default_config_file()
    if candidate.exists():
        return candidate
    return None


def build_mirror_config(
    defaults: MirrorDefaults | None = None,
    *,
    archive: bool = False,
    recursive: bool = False,
    preserve_permissions: bool = False,
    backup: bool = False,
    force: bool = False,
    interactive: bool = False,
    update_only: bool = False,
    copy_fallback: bool = False,
    debug: bool = False,
) -> MirrorConfig:
    """Merge command-line switches onto file defaults.

    Switches can only turn options on; archive implies recursive traversal and
    permission preservation.
    """
    base = defaults or MirrorDefaults()
    archive = archive or base.archive
    return MirrorConfig(
        recursive=recursive or base.recursive or archive,
        preserve_permissions=preserve_permissions or base.preserve_permissions or archive,
        backup=backup or base.backup,
        force=force or base.force,
        interactive=interactive or base.interactive,
        update_only=update_only or base.update_only,
        copy_fallback=copy_fallback or base.copy_fallback,
        debug=debug or base.debug,
    )

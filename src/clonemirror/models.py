from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


@dataclass(frozen=True, slots=True)
class MirrorConfig:
    recursive: bool = False
    preserve_permissions: bool = False
    backup: bool = False
    force: bool = False
    interactive: bool = False
    update_only: bool = False
    copy_fallback: bool = False
    debug: bool = False


class FailureReason(str, Enum):
    TARGET_EXISTS = "target-exists"
    TARGET_IS_DIRECTORY = "target-is-directory"
    CROSS_DEVICE_OR_UNSUPPORTED = "cross-device-or-unsupported"
    OS_ERROR = "os-error"


@dataclass(frozen=True, slots=True)
class CopyOutcome:
    ok: bool
    method: str | None = None
    reason: FailureReason | None = None
    errno: int | None = None
    strerror: str | None = None

    @classmethod
    def success(cls, method: str = "clone") -> "CopyOutcome":
        return cls(ok=True, method=method)

    @classmethod
    def failure(cls, reason: FailureReason, errno: int, strerror: str) -> "CopyOutcome":
        return cls(ok=False, reason=reason, errno=errno, strerror=strerror)


class Resolution(str, Enum):
    PROCEED = "proceed"
    SKIP = "skip"
    ABORT = "abort"


class ErrorKind(str, Enum):
    PRECONDITION = "precondition"
    CONFLICT = "conflict"
    OS_ERROR = "os-error"


@dataclass(frozen=True, slots=True)
class MirrorFailure:
    kind: ErrorKind
    message: str
    path: Path | None = None
    errno: int | None = None


@dataclass(slots=True)
class MirrorStats:
    cloned: int = 0
    copied: int = 0
    skipped: int = 0
    declined: int = 0
    backed_up: int = 0
    directories: int = 0
    failure: MirrorFailure | None = None
    stopped_by_prompt: bool = False

    @property
    def failed(self) -> bool:
        return self.failure is not None

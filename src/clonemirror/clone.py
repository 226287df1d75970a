from __future__ import annotations

from ctypes import CDLL, c_char_p, c_int, c_uint, get_errno
import errno
import os
from pathlib import Path
import shutil
import sys

from clonemirror.models import CopyOutcome, FailureReason

if sys.platform.startswith("linux"):
    import fcntl


# _IOW(0x94, 9, int) from linux/fs.h
FICLONE = 0x40049409

UNSUPPORTED_ERRNOS = frozenset(
    {
        errno.EXDEV,
        errno.ENOTSUP,
        errno.EOPNOTSUPP,
        errno.EINVAL,
        errno.ENOTTY,
        errno.ENOSYS,
    }
)


def _ficlone(source: Path, target: Path) -> None:
    with source.open("rb") as src_handle:
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        try:
            fcntl.ioctl(fd, FICLONE, src_handle.fileno())
        except OSError:
            os.close(fd)
            target.unlink(missing_ok=True)
            raise
        os.close(fd)
    # FICLONE shares data blocks only; mode and timestamps follow the source.
    try:
        shutil.copystat(source, target)
    except OSError:
        target.unlink(missing_ok=True)
        raise


def _darwin_clonefile():
    lib_system = CDLL("libSystem.dylib", use_errno=True)
    clonefile = lib_system.clonefile
    clonefile.argtypes = (c_char_p, c_char_p, c_uint)
    clonefile.restype = c_int

    def _clone(source: Path, target: Path) -> None:
        if clonefile(os.fsencode(source), os.fsencode(target), 0) != 0:
            code = get_errno()
            raise OSError(code, os.strerror(code), str(target))

    return _clone


def _unsupported(source: Path, target: Path) -> None:
    raise OSError(errno.ENOTSUP, f"clone is not available on {sys.platform}", str(source))


if sys.platform.startswith("linux"):
    _clone_file = _ficlone
elif sys.platform == "darwin":
    _clone_file = _darwin_clonefile()
else:
    _clone_file = _unsupported


def attempt_clone(source: Path, target: Path, fallback: bool = False) -> CopyOutcome:
    """Clone ``source`` into a new file at ``target``.

    The target must not exist. A filesystem pair that cannot clone (for example
    across devices) yields ``CROSS_DEVICE_OR_UNSUPPORTED`` unless ``fallback``
    is set, in which case the data is copied with ``shutil.copy2`` instead.
    """
    if target.is_dir():
        return CopyOutcome.failure(
            FailureReason.TARGET_IS_DIRECTORY, errno.EISDIR, os.strerror(errno.EISDIR)
        )
    if target.exists():
        return CopyOutcome.failure(
            FailureReason.TARGET_EXISTS, errno.EEXIST, os.strerror(errno.EEXIST)
        )

    try:
        _clone_file(source, target)
        return CopyOutcome.success("clone")
    except OSError as exc:
        code = exc.errno or 0
        strerror = exc.strerror or os.strerror(code)
        if code not in UNSUPPORTED_ERRNOS:
            return CopyOutcome.failure(FailureReason.OS_ERROR, code, strerror)
        if not fallback:
            return CopyOutcome.failure(FailureReason.CROSS_DEVICE_OR_UNSUPPORTED, code, strerror)

    try:
        shutil.copy2(source, target)
    except OSError as exc:
        code = exc.errno or 0
        return CopyOutcome.failure(FailureReason.OS_ERROR, code, exc.strerror or os.strerror(code))
    return CopyOutcome.success("copy")

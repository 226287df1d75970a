import logging
from pathlib import Path
import shutil

import pytest

import clonemirror.clone as clone_module


def _content_clone(source: Path, target: Path) -> None:
    if target.exists():
        raise FileExistsError(17, "File exists", str(target))
    shutil.copy2(source, target)


@pytest.fixture
def fake_clone(monkeypatch: pytest.MonkeyPatch):
    """Stand in for a reflink-capable filesystem."""
    monkeypatch.setattr(clone_module, "_clone_file", _content_clone)
    return _content_clone


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("CLONEMIRROR_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture(autouse=True)
def reset_cli_logging():
    yield
    logger = logging.getLogger("clonemirror")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)

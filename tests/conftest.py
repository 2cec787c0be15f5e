import os
import sys
import tempfile
from pathlib import Path

import pytest

_SCRATCH_DIR = Path(tempfile.mkdtemp(prefix="session_storage_tests_"))
os.environ.setdefault("SESSION_STORAGE_DIR", str(_SCRATCH_DIR))
os.environ.setdefault("SESSION_STORAGE_LOG_TO_CONSOLE", "false")
os.environ.pop("SESSION_ENCRYPTION_KEY", None)


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from session_storage import logging_setup  # noqa: E402
from session_storage.infrastructure.box_store import BoxRegistry, reset_default_registry  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_logging_and_boxes(tmp_path):
    logging_setup.configure_logging(log_path=tmp_path / "session_storage.log", force=True)
    try:
        yield
    finally:
        reset_default_registry()
        logging_setup.reset_logging()


@pytest.fixture()
def registry(tmp_path) -> BoxRegistry:
    box_registry = BoxRegistry(tmp_path / "boxes")
    try:
        yield box_registry
    finally:
        box_registry.close_all()

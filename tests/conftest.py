import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from chatsweep.config import ChatsweepSettings
from chatsweep.lib.log import configure_logging

configure_logging(verbose=True)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in ("CHATSWEEP_CASCADE_DIR", "CHATSWEEP_VERBOSE", "CHATSWEEP_JSON_LOGS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "globalStorage" / "state.vscdb"


@pytest.fixture
def cascade_settings(tmp_path) -> ChatsweepSettings:
    cascade_dir = tmp_path / "cascade"
    cascade_dir.mkdir()
    return ChatsweepSettings(cascade_dir=cascade_dir)

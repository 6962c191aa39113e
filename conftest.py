"""Configure pytest for the src layout and isolate tests from the environment."""

import sys
from pathlib import Path

import pytest

src_path = str(Path(__file__).parent / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

_ENV_VARS = (
    "SONARR_URL",
    "SONARR_API_KEY",
    "SONARRIMPORT_CONFIG",
    "SONARRIMPORT_DEBUG",
    "SONARRIMPORT_NO_RICH",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Clear sonarrimport env vars and run each test from an empty directory.

    Running from *tmp_path* keeps a developer's ``.env`` or ``settings.json``
    out of the tests.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

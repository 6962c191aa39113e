"""The package version is importable and matches the User-Agent."""

from sonarrimport import __version__
from sonarrimport.__about__ import __version__ as about_version


def test_version() -> None:
    """__version__ is a non-empty string re-exported from __about__."""
    assert isinstance(__version__, str)
    assert len(__version__) > 0
    assert __version__ == about_version

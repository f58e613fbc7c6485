"""
Version information for abu.

The package version is read from pyproject.toml via importlib.metadata so
that the project metadata stays the single source of truth.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("abu")
except PackageNotFoundError:
    # Running from a source checkout without installation
    import tomllib
    from pathlib import Path

    _pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    try:
        with open(_pyproject_path, "rb") as f:
            __version__ = tomllib.load(f)["project"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        __version__ = "0.0.0-dev"

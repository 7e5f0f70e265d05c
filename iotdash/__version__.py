"""
Version information for the IoT dashboard engine.

The installed distribution's metadata is authoritative; a source checkout
falls back to pyproject.toml.
"""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _read_pyproject_version() -> str:
    import tomllib

    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    try:
        with open(pyproject_path, "rb") as f:
            return tomllib.load(f)["project"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return "0.0.0-dev"


try:
    __version__ = version("iotdash")
except PackageNotFoundError:
    __version__ = _read_pyproject_version()

# Version of the dashboard/chart configuration schema (separate from package)
__config_model_version__ = "1.0.0"

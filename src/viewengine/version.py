"""Installed version of the viewengine distribution."""

from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION = "viewengine"

try:
	__version__: str = version(DISTRIBUTION)
except PackageNotFoundError:
	# Imported from a source checkout that was never installed
	__version__ = "0.0.0"

__all__ = ["DISTRIBUTION", "__version__"]

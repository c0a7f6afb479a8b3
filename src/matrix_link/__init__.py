"""matrix-link: send a single message to a Matrix room from the command line."""

from importlib.metadata import version

__version__ = version("matrix-link")

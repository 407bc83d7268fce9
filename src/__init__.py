"""muscleai: orchestration and caching core for vision-model physique analysis."""

from muscleai.version import __version__

__all__ = ["__version__"]

from __future__ import annotations

from noisefield.settings import ConfigError


class GenerationCancelled(RuntimeError):
    """A cooperative cancellation check asked the run to stop."""


__all__ = ["ConfigError", "GenerationCancelled"]

from __future__ import annotations

import logging
from typing import Any


class WorldObserver:
    """Optional callbacks for generation progress.

    Subclass and override what you need; every hook is a no-op here.
    Observers are notified synchronously and must not mutate the grids.
    """

    def stage_completed(self, stage: str) -> None:
        pass

    def erosion_progress(self, fraction: float) -> None:
        pass

    def thermal_progress(self, fraction: float) -> None:
        pass

    def biome_changed(self, biome: Any, previous: Any) -> None:
        pass


class LoggingObserver(WorldObserver):
    """Forward observer callbacks to a logger."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO):
        self.logger = logger or logging.getLogger("worldsynth")
        self.level = int(level)

    def stage_completed(self, stage: str) -> None:
        self.logger.log(self.level, "stage completed: %s", stage)

    def erosion_progress(self, fraction: float) -> None:
        self.logger.log(self.level, "hydraulic erosion %.0f%%", fraction * 100.0)

    def thermal_progress(self, fraction: float) -> None:
        self.logger.log(self.level, "thermal erosion %.0f%%", fraction * 100.0)

    def biome_changed(self, biome: Any, previous: Any) -> None:
        self.logger.log(self.level, "biome changed: %s -> %s", previous, biome)

"""Launch history store and ascent parameter recommendations.

A LaunchDB holds every distinct (turn angle, start speed) pair tried for one
vessel flying from one body, together with the measured outcome of each. After
every attempt the host records the outcome, then asks for the settings to use
next: either a straight replay of the best run so far, or a guess that
continues the trend from the second-best to the best run while staying clear
of earlier overheating and of the point where steeper turns stopped paying off.

Example:
    >>> from gravityturn import AttemptInputs, LaunchDB, LaunchResults
    >>>
    >>> db = LaunchDB("Kerbal X", "Kerbin")
    >>> db.load()
    >>> db.record_attempt(
    ...     AttemptInputs(turn_angle=10.0, start_speed=100.0, destination_height=80.0),
    ...     LaunchResults(total_loss=1200.0, max_heat=0.5, apoapsis=81000.0),
    ... )
    >>> db.save()
    >>> found, turn_angle, start_speed = db.guess_settings()
"""

import logging
from dataclasses import replace
from functools import cmp_to_key
from pathlib import Path
from typing import NamedTuple

import numpy as np
import polars as pl
from beartype import beartype

from gravityturn.confignode import ConfigNodeError
from gravityturn.entry import (
    AttemptInputs,
    LaunchEntry,
    LaunchResults,
    aggressiveness,
    compare_quality,
)
from gravityturn.storage import LocalStorage, StorageBackend, StorageError

log = logging.getLogger(__name__)

# Best run at or above this heat fraction is never replayed
CRITICAL_HEAT = 1.0
# Single-run heat below which there is margin to turn harder
SAFE_HEAT = 0.90
# Bounds on the single-run adjustment factor
MIN_ADJUST = 0.80
MAX_ADJUST = 0.95
# Single-run back-off after overheating
HOT_ANGLE_FACTOR = 0.95
HOT_SPEED_FACTOR = 1.05
# A guess within 1% of a limiting run's aggressiveness counts as reaching it
LIMIT_TOLERANCE = 0.99


class Settings(NamedTuple):
    """Recommended ascent parameters.

    ``turn_angle`` and ``start_speed`` are 0 when ``found`` is False.
    """
    found: bool
    turn_angle: float
    start_speed: float


NOT_FOUND = Settings(False, 0.0, 0.0)


@beartype
class LaunchDB:
    """History of launch attempts for one vessel and launch body.

    Args:
        vessel_name: Vessel (or launch profile) name
        body_name: Name of the body launched from
        storage: Backend used by load/save. Defaults to LocalStorage
        logger: Logger receiving progress and load failures. Defaults to
            this module's logger
    """

    def __init__(
        self,
        vessel_name: str,
        body_name: str,
        storage: StorageBackend | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.vessel_name = vessel_name
        self.body_name = body_name
        self._storage = storage if storage is not None else LocalStorage()
        self._log = logger if logger is not None else log
        self._entries: list[LaunchEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[LaunchEntry]:
        """Copies of the stored entries in their current order."""
        return [replace(entry) for entry in self._entries]

    @property
    def path(self) -> Path:
        """History file for this vessel and body."""
        return self._storage.path_for(self.vessel_name, self.body_name)

    def _sort_by_quality(self) -> None:
        self._entries.sort(key=cmp_to_key(compare_quality))

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    def find_least_critical_hot_entry(self) -> LaunchEntry | None:
        """Get the least aggressive result from launches that overheated.

        Scans in stored order and replaces the candidate only when an entry
        has both a smaller turn angle and a larger start speed, so entries
        that trade one against the other leave the earlier candidate in place.
        """
        crit = None
        for entry in self._entries:
            if entry.is_hot() and (
                crit is None
                or (entry.turn_angle < crit.turn_angle and entry.start_speed > crit.start_speed)
            ):
                crit = entry
        return crit

    def find_efficiency_tipping_point(self) -> LaunchEntry | None:
        """Find the launch that was too aggressive and became less efficient.

        Walks entries from least to most aggressive and returns the first one
        whose loss is higher than the one before it. The walk stops at the
        first overheated entry.
        """
        if len(self._entries) < 2:
            return None
        loss = 0.0
        for entry in sorted(self._entries, key=lambda e: e.aggressiveness):
            if entry.is_hot():
                break
            # A previous loss of 0 means there is no previous entry yet
            if loss != 0 and entry.total_loss > loss:
                return entry
            loss = entry.total_loss
        return None

    def best_settings(self) -> Settings:
        """Replay the best launch so far, no learning involved.

        Fails when there is no history, or when the best launch overheated
        critically or did not reach its target orbit.
        """
        self._sort_by_quality()
        if not self._entries:
            return NOT_FOUND
        best = self._entries[0]
        if best.max_heat >= CRITICAL_HEAT or not best.launch_success:
            return NOT_FOUND
        return Settings(True, best.turn_angle, best.start_speed)

    def guess_settings(self) -> Settings:
        """Analyze previous results and recommend settings for the next launch.

        With a single result, the settings are pushed harder when heating left
        some margin, backed off when it overheated and replayed otherwise.
        With more results, the step from the second-best to the best launch is
        repeated once, then pulled back halfway towards the mildest overheated
        launch and towards the efficiency tipping point when the guess comes
        within 1% of either one's aggressiveness.
        """
        self._sort_by_quality()
        if not self._entries:
            return NOT_FOUND

        best = self._entries[0]
        if len(self._entries) == 1:
            self._log.info("Only one previous result")
            if best.max_heat < SAFE_HEAT:
                adjust = float(np.clip(best.max_heat + (1 - best.max_heat) / 2, MIN_ADJUST, MAX_ADJUST))
                return Settings(True, best.turn_angle / adjust, best.start_speed * adjust)
            if best.is_hot():
                return Settings(
                    True,
                    best.turn_angle * HOT_ANGLE_FACTOR,
                    best.start_speed * HOT_SPEED_FACTOR,
                )
            return Settings(True, best.turn_angle, best.start_speed)

        # Simple linear progression: second best -> best -> next
        second = self._entries[1]
        turn_angle = best.turn_angle + best.turn_angle - second.turn_angle
        start_speed = best.start_speed + best.start_speed - second.start_speed

        hot = self.find_least_critical_hot_entry()
        if hot is not None and aggressiveness(turn_angle, start_speed) >= hot.aggressiveness * LIMIT_TOLERANCE:
            turn_angle = (best.turn_angle + hot.turn_angle) / 2
            start_speed = (best.start_speed + hot.start_speed) / 2
            self._log.info("Found hot run, set between %s and %s", best, hot)

        tip = self.find_efficiency_tipping_point()
        if tip is not None and aggressiveness(turn_angle, start_speed) >= tip.aggressiveness * LIMIT_TOLERANCE:
            turn_angle = (best.turn_angle + tip.turn_angle) / 2
            start_speed = (best.start_speed + tip.start_speed) / 2
            self._log.info("Past efficiency tipping point, set between %s and %s", best, tip)

        return Settings(True, turn_angle, start_speed)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def _get_entry(self, inputs: AttemptInputs) -> LaunchEntry:
        """Get or create the entry for these inputs, so there are no duplicates."""
        key = (inputs.turn_angle, inputs.start_speed, inputs.destination_height)
        for entry in self._entries:
            if entry.key == key:
                return entry
        entry = LaunchEntry()
        self._entries.append(entry)
        return entry

    def record_attempt(self, inputs: AttemptInputs, results: LaunchResults) -> None:
        """Update or create the entry for a completed launch.

        Recording the same outcome twice is a no-op.
        """
        for entry in self._entries:
            if entry.matches_attempt(inputs, results):
                return

        entry = self._get_entry(inputs)
        entry.turn_angle = inputs.turn_angle
        entry.start_speed = inputs.start_speed
        entry.destination_height = inputs.destination_height
        entry.sensitivity = inputs.sensitivity
        entry.roll = inputs.roll
        entry.pressure_cutoff = inputs.pressure_cutoff
        entry.total_loss = results.total_loss
        entry.max_heat = results.max_heat
        entry.apoapsis_time_start = results.apoapsis_time_start
        entry.apoapsis_time_finish = results.apoapsis_time_finish
        entry.launch_success = bool(results.apoapsis >= inputs.destination_height * 1000)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """Replace the in-memory history with the stored one.

        Missing or malformed files are logged and leave the history as it was.

        Returns:
            True if a history was loaded
        """
        path = self.path
        try:
            entries = self._storage.read_entries(path)
        except FileNotFoundError:
            self._log.warning("Vessel DB not found at %s", path)
            return False
        except (OSError, ConfigNodeError, UnicodeDecodeError) as exc:
            self._log.error("Vessel DB load error from %s: %s", path, exc)
            return False
        self._entries = entries
        self._log.info("Vessel DB loaded from %s", path)
        return True

    def save(self) -> Path:
        """Write the whole history, overwriting any previous file.

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            path = self._storage.write_entries(self.path, self._entries)
        except StorageError:
            raise
        except OSError as exc:
            raise StorageError(f"Cannot save vessel DB to {self.path}: {exc}") from exc
        self._log.info("Vessel DB saved to %s", path)
        return path

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def to_frame(self) -> pl.DataFrame:
        """History as a DataFrame, ranked best first.

        Columns are the entry fields plus ``aggressiveness``, ``is_hot`` and
        ``rank`` (0 is the best entry). The stored order is not changed.
        """
        ranked = sorted(self._entries, key=cmp_to_key(compare_quality))
        rows = [
            {
                "rank": rank,
                "turn_angle": e.turn_angle,
                "start_speed": e.start_speed,
                "aggressiveness": e.aggressiveness,
                "destination_height": e.destination_height,
                "total_loss": e.total_loss,
                "max_heat": e.max_heat,
                "is_hot": e.is_hot(),
                "launch_success": e.launch_success,
                "apoapsis_time_start": e.apoapsis_time_start,
                "apoapsis_time_finish": e.apoapsis_time_finish,
                "sensitivity": e.sensitivity,
                "roll": e.roll,
                "pressure_cutoff": e.pressure_cutoff,
            }
            for rank, e in enumerate(ranked)
        ]
        schema = {
            "rank": pl.Int64,
            "turn_angle": pl.Float64,
            "start_speed": pl.Float64,
            "aggressiveness": pl.Float64,
            "destination_height": pl.Float64,
            "total_loss": pl.Float64,
            "max_heat": pl.Float64,
            "is_hot": pl.Boolean,
            "launch_success": pl.Boolean,
            "apoapsis_time_start": pl.Float64,
            "apoapsis_time_finish": pl.Float64,
            "sensitivity": pl.Float64,
            "roll": pl.Float64,
            "pressure_cutoff": pl.Float64,
        }
        return pl.DataFrame(rows, schema=schema)

"""Launch outcome records and their quality ranking.

A LaunchEntry captures the control inputs of one ascent attempt together with
what was measured during it. Entries are ranked against each other with a
policy-style rule chain rather than a single metric: overheating always
loses, then reaching the target orbit, then lower total loss.

Example:
    >>> from gravityturn.entry import LaunchEntry, compare_quality, Quality
    >>>
    >>> cool = LaunchEntry(turn_angle=10.0, start_speed=100.0, total_loss=900.0)
    >>> hot = LaunchEntry(turn_angle=14.0, start_speed=80.0, max_heat=0.99)
    >>> compare_quality(cool, hot) is Quality.BETTER
    True
"""

import math
from dataclasses import dataclass
from enum import IntEnum

from beartype import beartype

# Peak heat fraction above which an attempt counts as overheated
HOT_THRESHOLD = 0.95


# =============================================================================
# Attempt Inputs and Results
# =============================================================================


@beartype
@dataclass
class AttemptInputs:
    """Control inputs actually used for one ascent attempt.

    Attributes:
        turn_angle: Target pitch angle during the turn [deg]
        start_speed: Airspeed at which the pitch-over begins [m/s]
        destination_height: Target apoapsis altitude [km]
        sensitivity: Steering sensitivity (auxiliary)
        roll: Roll angle held during ascent (auxiliary) [deg]
        pressure_cutoff: Atmospheric pressure threshold (auxiliary)
    """
    turn_angle: float
    start_speed: float
    destination_height: float
    sensitivity: float = 0.0
    roll: float = 0.0
    pressure_cutoff: float = 0.0


@beartype
@dataclass
class LaunchResults:
    """Measurements taken at the end of one ascent attempt.

    Attributes:
        total_loss: Cumulative delta-v lost to drag and steering [m/s]
        max_heat: Peak fraction of heat tolerance reached by any part [-]
        apoapsis: Apoapsis altitude of the resulting orbit [m]
        apoapsis_time_start: Start of the coast-to-apoapsis phase [s]
        apoapsis_time_finish: End of the coast-to-apoapsis phase [s]
    """
    total_loss: float
    max_heat: float
    apoapsis: float
    apoapsis_time_start: float = 0.0
    apoapsis_time_finish: float = 0.0


# =============================================================================
# Launch Entry
# =============================================================================


class Quality(IntEnum):
    """Result of comparing two entries, usable as a sort comparator value."""
    BETTER = -1
    EQUAL = 0
    WORSE = 1


@beartype
def aggressiveness(turn_angle: float, start_speed: float) -> float:
    """Angle-per-speed ratio; higher means an earlier, steeper pitch-over.

    A zero start speed yields +/-inf (or nan for 0/0) instead of raising.
    """
    if start_speed == 0:
        if turn_angle == 0:
            return math.nan
        return math.copysign(math.inf, turn_angle)
    return turn_angle / start_speed


@beartype
@dataclass
class LaunchEntry:
    """One distinct (turn angle, start speed) pair tried for a vessel.

    Attributes:
        start_speed: Airspeed at which the pitch-over begins [m/s]
        turn_angle: Target pitch angle during the turn [deg]
        apoapsis_time_start: Start of the coast-to-apoapsis phase [s]
        apoapsis_time_finish: End of the coast-to-apoapsis phase [s]
        sensitivity: Steering sensitivity (not used for ranking)
        roll: Roll angle (not used for ranking) [deg]
        destination_height: Target apoapsis altitude [km]
        pressure_cutoff: Pressure threshold (not used for ranking)
        total_loss: Cumulative delta-v loss, lower is better [m/s]
        max_heat: Peak fraction of heat tolerance reached [-]
        launch_success: Whether apoapsis reached the destination height
    """
    start_speed: float = 0.0
    turn_angle: float = 0.0
    apoapsis_time_start: float = 0.0
    apoapsis_time_finish: float = 0.0
    sensitivity: float = 0.0
    roll: float = 0.0
    destination_height: float = 0.0
    pressure_cutoff: float = 0.0
    total_loss: float = 0.0
    max_heat: float = 0.0
    launch_success: bool = False

    def __str__(self) -> str:
        return f"{self.turn_angle:.2f}/{self.start_speed:.2f}"

    @property
    def key(self) -> tuple[float, float, float]:
        """Identity of the entry inside one history."""
        return (self.turn_angle, self.start_speed, self.destination_height)

    @property
    def aggressiveness(self) -> float:
        """Turn angle per unit of start speed."""
        return aggressiveness(self.turn_angle, self.start_speed)

    def is_hot(self) -> bool:
        """True if any part came close to its heat tolerance."""
        return self.max_heat > HOT_THRESHOLD

    def more_aggressive(self, other: "LaunchEntry") -> bool:
        """True if this entry turns earlier and steeper than ``other``."""
        return self.aggressiveness > other.aggressiveness

    def matches_attempt(self, inputs: AttemptInputs, results: LaunchResults) -> bool:
        """True if this entry already holds exactly this attempt's outcome."""
        return (
            self.turn_angle == inputs.turn_angle
            and self.start_speed == inputs.start_speed
            and self.destination_height == inputs.destination_height
            and self.max_heat == results.max_heat
            and self.total_loss == results.total_loss
        )


@beartype
def compare_quality(a: LaunchEntry, b: LaunchEntry) -> Quality:
    """Rank ``a`` against ``b``; the first matching rule wins.

    Rules, in order:
    1. Overheating always loses against a run that did not overheat.
    2. Of two overheated runs, the less overheated one wins.
    3. Reaching the target orbit beats failing to.
    4. Lower total loss wins; equal losses rank equal.

    This is a policy, not a metric, and is not transitive in general, so it
    is meant for ``functools.cmp_to_key`` rather than a derived sort key.

    Args:
        a: Entry being ranked
        b: Entry it is ranked against

    Returns:
        Quality.BETTER if ``a`` ranks ahead of ``b``, WORSE if behind
    """
    if a.is_hot() and not b.is_hot():
        return Quality.WORSE
    if b.is_hot() and not a.is_hot():
        return Quality.BETTER
    if b.is_hot() and b.max_heat > a.max_heat:
        return Quality.BETTER
    if not b.launch_success and a.launch_success:
        return Quality.BETTER
    if b.total_loss == a.total_loss:
        return Quality.EQUAL
    return Quality.BETTER if b.total_loss > a.total_loss else Quality.WORSE

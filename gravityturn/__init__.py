"""GravityTurn - Launch history learning for gravity turn ascents.

This package keeps a history of ascent attempts per vessel and launch body
and derives the turn angle and start speed to try on the next attempt.

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
    >>> settings = db.guess_settings()
    >>> print(f"Next: {settings.turn_angle:.2f} deg from {settings.start_speed:.0f} m/s")
"""

__version__ = "0.1.0"

from gravityturn.config import (
    LaunchDBConfig,
    get_default_data_dir,
)
from gravityturn.confignode import (
    ConfigNode,
    ConfigNodeError,
    dumps,
    parse,
)
from gravityturn.entry import (
    HOT_THRESHOLD,
    AttemptInputs,
    LaunchEntry,
    LaunchResults,
    Quality,
    aggressiveness,
    compare_quality,
)
from gravityturn.launchdb import (
    LaunchDB,
    Settings,
)
from gravityturn.storage import (
    LocalStorage,
    StorageBackend,
    StorageError,
)

__all__ = [
    # Version
    "__version__",
    # Records
    "AttemptInputs",
    "LaunchResults",
    "LaunchEntry",
    "Quality",
    "HOT_THRESHOLD",
    "aggressiveness",
    "compare_quality",
    # History store
    "LaunchDB",
    "Settings",
    # Configuration
    "LaunchDBConfig",
    "get_default_data_dir",
    # Storage
    "StorageBackend",
    "LocalStorage",
    "StorageError",
    # File format
    "ConfigNode",
    "ConfigNodeError",
    "dumps",
    "parse",
]

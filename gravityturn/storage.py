"""File-based persistence for launch histories.

One history file is kept per (vessel, body) pair. Files use the KSP node
format with the same keys the in-game plugin writes, so existing histories
load unchanged. The backend is a protocol so a host can swap in its own
storage without touching LaunchDB.

Example:
    >>> from gravityturn.config import LaunchDBConfig
    >>> from gravityturn.storage import LocalStorage
    >>>
    >>> storage = LocalStorage(LaunchDBConfig(data_dir="./histories"))
    >>> path = storage.path_for("Kerbal X", "Kerbin")
    >>> storage.write_entries(path, entries)
    >>> entries = storage.read_entries(path)
"""

import re
from abc import abstractmethod
from pathlib import Path
from typing import Protocol, runtime_checkable

from beartype import beartype

from gravityturn.config import LaunchDBConfig
from gravityturn.confignode import ConfigNode, ConfigNodeError, dumps, parse
from gravityturn.entry import LaunchEntry

# Node names used by the in-game plugin
LIST_NODE = "DB"
ITEM_NODE = "item"

# Entry field -> persisted key
FIELD_KEYS = {
    "start_speed": "StartSpeed",
    "apoapsis_time_start": "APTimeStart",
    "apoapsis_time_finish": "APTimeFinish",
    "turn_angle": "TurnAngle",
    "sensitivity": "Sensitivity",
    "roll": "Roll",
    "destination_height": "DestinationHeight",
    "pressure_cutoff": "PressureCutoff",
    "total_loss": "TotalLoss",
    "max_heat": "MaxHeat",
    "launch_success": "LaunchSuccess",
}

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class StorageError(OSError):
    """Raised when a history cannot be written."""


# =============================================================================
# Serialization Helpers
# =============================================================================


def _format_scalar(value: float | bool) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    return repr(float(value))


def _parse_float(text: str | None) -> float:
    if text is None:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def _parse_bool(text: str | None) -> bool:
    return text is not None and text.strip().lower() == "true"


@beartype
def entry_to_node(entry: LaunchEntry) -> ConfigNode:
    """Serialize one entry as an ``item`` node."""
    node = ConfigNode(ITEM_NODE)
    for name, key in FIELD_KEYS.items():
        node.add_value(key, _format_scalar(getattr(entry, name)))
    return node


@beartype
def entry_from_node(node: ConfigNode) -> LaunchEntry:
    """Build an entry from an ``item`` node.

    Unknown keys are ignored; missing or unparsable values default to zero
    (or False for ``LaunchSuccess``).
    """
    values = {}
    for name, key in FIELD_KEYS.items():
        raw = node.get_value(key)
        if name == "launch_success":
            values[name] = _parse_bool(raw)
        else:
            values[name] = _parse_float(raw)
    return LaunchEntry(**values)


@beartype
def entries_to_text(entries: list[LaunchEntry]) -> str:
    root = ConfigNode()
    db = root.add_node(LIST_NODE)
    db.nodes.extend(entry_to_node(entry) for entry in entries)
    return dumps(root)


@beartype
def entries_from_text(text: str) -> list[LaunchEntry]:
    """Parse history file contents.

    Raises:
        ConfigNodeError: If the text is not a valid node tree
    """
    root = parse(text)
    db = root.get_node(LIST_NODE)
    if db is None:
        return []
    return [entry_from_node(node) for node in db.get_nodes(ITEM_NODE)]


# =============================================================================
# Storage Backend Protocol
# =============================================================================


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for launch history storage backends."""

    @abstractmethod
    def path_for(self, vessel_name: str, body_name: str) -> Path:
        """Location of the history for one (vessel, body) pair."""
        ...

    @abstractmethod
    def read_entries(self, path: Path) -> list[LaunchEntry]:
        """Read all entries stored at ``path``.

        Raises:
            FileNotFoundError: If nothing is stored there
            ConfigNodeError: If the stored data is malformed
        """
        ...

    @abstractmethod
    def write_entries(self, path: Path, entries: list[LaunchEntry]) -> Path:
        """Replace whatever is stored at ``path`` with ``entries``.

        Raises:
            StorageError: If the data cannot be written
        """
        ...


# =============================================================================
# Local Storage Implementation
# =============================================================================


@beartype
def safe_filename_part(name: str) -> str:
    """Replace path separators and characters illegal in file names."""
    return _UNSAFE_CHARS.sub("_", name)


@beartype
class LocalStorage:
    """Plain-file storage backend.

    Layout:

        data_dir/
        ├── gt_launchdb_Kerbal X_Kerbin.cfg
        └── gt_launchdb_Kerbal X_Mun.cfg
    """

    def __init__(self, config: LaunchDBConfig | None = None) -> None:
        self.config = config or LaunchDBConfig()

    @property
    def root(self) -> Path:
        return Path(self.config.data_dir)

    def path_for(self, vessel_name: str, body_name: str) -> Path:
        filename = self.config.filename_template.format(
            vessel=safe_filename_part(vessel_name),
            body=safe_filename_part(body_name),
        )
        return self.root / filename

    def read_entries(self, path: Path) -> list[LaunchEntry]:
        if not path.exists():
            raise FileNotFoundError(f"Launch history not found at {path}")
        with open(path, encoding="utf-8") as f:
            try:
                text = f.read()
            except UnicodeDecodeError as exc:
                raise ConfigNodeError(f"{path} is not valid UTF-8: {exc}") from exc
        return entries_from_text(text)

    def write_entries(self, path: Path, entries: list[LaunchEntry]) -> Path:
        text = entries_to_text(entries)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as exc:
            raise StorageError(f"Cannot write launch history to {path}: {exc}") from exc
        return path

    def list_histories(self) -> list[Path]:
        """All history files in the data directory."""
        if not self.root.exists():
            return []
        return sorted(self.root.glob("*.cfg"))

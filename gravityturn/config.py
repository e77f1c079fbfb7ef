"""Configuration for where launch histories live on disk."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from beartype import beartype

DATA_DIR_ENV = "GRAVITYTURN_DATA_DIR"


@beartype
def get_default_data_dir() -> Path:
    """Get the default directory for launch history files.

    Returns ``$GRAVITYTURN_DATA_DIR`` when set, otherwise
    ./PluginData/GravityTurn in the current working directory.
    """
    env = os.environ.get(DATA_DIR_ENV)
    if env:
        return Path(env)
    return Path.cwd() / "PluginData" / "GravityTurn"


@beartype
@dataclass
class LaunchDBConfig:
    """Launch history storage configuration.

    Attributes:
        data_dir: Directory holding one history file per (vessel, body)
        filename_template: File name pattern with ``{vessel}`` and ``{body}``
    """
    data_dir: str | Path = field(default_factory=get_default_data_dir)
    filename_template: str = "gt_launchdb_{vessel}_{body}.cfg"

    def __post_init__(self) -> None:
        """Validate inputs."""
        self.data_dir = Path(self.data_dir)
        if "{vessel}" not in self.filename_template or "{body}" not in self.filename_template:
            raise ValueError("filename_template must contain {vessel} and {body}")

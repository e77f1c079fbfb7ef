#!/usr/bin/env python
"""Print stored launch histories and the settings they recommend.

Lists every history file in the data directory (or only the one for the
given vessel and body), shows its entries ranked best first, then the
replay and guessed settings for the next launch.

Usage:
    uv run python scripts/inspect_launchdb.py
    uv run python scripts/inspect_launchdb.py "Kerbal X" Kerbin
"""

import logging
import sys

import polars as pl

from gravityturn import LaunchDB, LaunchDBConfig, LocalStorage


def show_history(db: LaunchDB) -> None:
    """Print one history and its recommendations."""
    print("=" * 60)
    print(f"{db.vessel_name} from {db.body_name}")
    print(f"  {db.path}")
    print("=" * 60)

    if not db.load():
        print("  (no history)")
        return

    with pl.Config(tbl_rows=-1, tbl_cols=-1):
        print(db.to_frame().select(
            "rank", "turn_angle", "start_speed", "aggressiveness",
            "total_loss", "max_heat", "launch_success",
        ))

    best = db.best_settings()
    guess = db.guess_settings()
    if best.found:
        print(f"  Best:  {best.turn_angle:.2f} deg from {best.start_speed:.1f} m/s")
    else:
        print("  Best:  none (no successful cool launch yet)")
    print(f"  Guess: {guess.turn_angle:.2f} deg from {guess.start_speed:.1f} m/s")
    print()


def main(argv: list[str]) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    storage = LocalStorage(LaunchDBConfig())

    if len(argv) == 2:
        show_history(LaunchDB(argv[0], argv[1], storage=storage))
        return 0
    if argv:
        print(__doc__)
        return 2

    paths = storage.list_histories()
    if not paths:
        print(f"No launch histories in {storage.root}")
        return 0
    for path in paths:
        # gt_launchdb_<vessel>_<body>.cfg; vessel names may contain underscores
        stem = path.stem.removeprefix("gt_launchdb_")
        vessel, _, body = stem.rpartition("_")
        show_history(LaunchDB(vessel, body, storage=storage))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

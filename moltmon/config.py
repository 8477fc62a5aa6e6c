import os
import random
import time
from dataclasses import dataclass
from pathlib import Path

# --- Constants ---
SCHEMA_VERSION = "v0"
DATA_DIR_ENV = "MOLTMON_DATA_DIR"
DEV_MODE_ENV = "MOLTMON_DEV_MODE"
LOG_LEVEL_ENV = "MOLTMON_LOG_LEVEL"

# Front-end cadence
TICK_INTERVAL_SECONDS = 0.25
HATCH_DURATION_MS = 2000

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS


@dataclass(frozen=True)
class TimingConfig:
    egg_hatch_min_ms: int
    egg_hatch_max_ms: int
    hunger_interval_ms: int
    starvation_death_ms: int
    poop_min_delay_ms: int
    poop_max_delay_ms: int
    death_after_sick_ms: int
    rebirth_delay_ms: int
    # Time until the mess makes the pet sick, for 1, 2 and 3+ poops
    sickness_thresholds: tuple[int, int, int]

    def sickness_threshold(self, poop_count: int) -> int:
        return self.sickness_thresholds[max(1, min(poop_count, 3)) - 1]


# --- Timing Profiles ---
PRODUCTION_TIMING = TimingConfig(
    egg_hatch_min_ms=2 * MINUTE_MS,
    egg_hatch_max_ms=5 * MINUTE_MS,
    hunger_interval_ms=5 * MINUTE_MS,
    starvation_death_ms=1 * HOUR_MS,
    poop_min_delay_ms=2 * MINUTE_MS,
    poop_max_delay_ms=5 * MINUTE_MS,
    death_after_sick_ms=1 * HOUR_MS,
    rebirth_delay_ms=5 * SECOND_MS,
    sickness_thresholds=(60 * MINUTE_MS, 45 * MINUTE_MS, 30 * MINUTE_MS),
)

DEV_TIMING = TimingConfig(
    egg_hatch_min_ms=3 * SECOND_MS,
    egg_hatch_max_ms=5 * SECOND_MS,
    hunger_interval_ms=10 * SECOND_MS,
    starvation_death_ms=30 * SECOND_MS,
    poop_min_delay_ms=5 * SECOND_MS,
    poop_max_delay_ms=10 * SECOND_MS,
    death_after_sick_ms=20 * SECOND_MS,
    rebirth_delay_ms=2 * SECOND_MS,
    sickness_thresholds=(20 * SECOND_MS, 15 * SECOND_MS, 10 * SECOND_MS),
)

_TRUTHY = {"1", "true", "yes", "on"}
_dev_mode = os.environ.get(DEV_MODE_ENV, "").strip().lower() in _TRUTHY


def set_dev_mode(enabled: bool):
    global _dev_mode
    _dev_mode = bool(enabled)


def is_dev_mode() -> bool:
    return _dev_mode


def get_config() -> TimingConfig:
    return DEV_TIMING if _dev_mode else PRODUCTION_TIMING


def now_ms() -> int:
    return int(time.time() * 1000)


def random_between(lo: int, hi: int, rng=None) -> int:
    return (rng or random).randint(lo, hi)


def data_dir() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    if override: return Path(override)
    return Path.cwd() / ".moltmon" / SCHEMA_VERSION

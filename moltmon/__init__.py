from .commands import Clean, Command, Feed, Hatch, Heal
from .config import DEV_TIMING, PRODUCTION_TIMING, TimingConfig, get_config, set_dev_mode
from .machine import PetStateMachine
from .models import CauseOfDeath, HistoryData, PetEvent, PetState, PetStateData, PetStats, PetSummary
from .store import Store

__version__ = "0.1.0"

__all__ = [
    "CauseOfDeath",
    "Clean",
    "Command",
    "DEV_TIMING",
    "Feed",
    "Hatch",
    "Heal",
    "HistoryData",
    "PRODUCTION_TIMING",
    "PetEvent",
    "PetState",
    "PetStateData",
    "PetStateMachine",
    "PetStats",
    "PetSummary",
    "Store",
    "TimingConfig",
    "get_config",
    "set_dev_mode",
]

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Feed:
    TYPE = "FEED"
    timestamp: int


@dataclass(frozen=True)
class Clean:
    TYPE = "CLEAN"
    timestamp: int


@dataclass(frozen=True)
class Heal:
    TYPE = "HEAL"
    timestamp: int


@dataclass(frozen=True)
class Hatch:
    TYPE = "HATCH"
    timestamp: int
    creature_id: str
    personality: str


Command = Union[Feed, Clean, Heal, Hatch]

_SIMPLE = {cls.TYPE: cls for cls in (Feed, Clean, Heal)}


def command_from_dict(doc) -> Optional[Command]:
    """Parse one queue entry. Entries that cannot be applied come back as None."""
    if not isinstance(doc, dict):
        logger.debug("Skipping non-object queue entry: %r", doc)
        return None
    kind = doc.get("type")
    timestamp = doc.get("timestamp", 0)
    if kind in _SIMPLE:
        return _SIMPLE[kind](timestamp=timestamp)
    if kind == Hatch.TYPE:
        creature_id, personality = doc.get("creatureId"), doc.get("personality")
        if not creature_id or not personality:
            logger.debug("Skipping HATCH without creatureId/personality: %r", doc)
            return None
        return Hatch(timestamp=timestamp, creature_id=creature_id, personality=personality)
    logger.debug("Skipping unknown command type %r", kind)
    return None


def command_to_dict(cmd: Command):
    doc = {"type": cmd.TYPE, "timestamp": cmd.timestamp}
    if isinstance(cmd, Hatch):
        doc["creatureId"] = cmd.creature_id
        doc["personality"] = cmd.personality
    return doc

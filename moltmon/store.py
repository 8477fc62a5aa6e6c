"""File-backed store shared by every Moltmon process.

Three whole-document JSON files live in the data directory: the current pet
(``state.json``), commands waiting for the ticking process (``commands.json``)
and the ledger of every pet so far (``history.json``). There is no locking:
one process is expected to tick, the others only read or append commands, and
the last writer wins. Documents are written to a temporary file and moved into
place, so a reader sees either the old or the new document.

Only the ticking process (``owner=True``) moves unreadable files aside. Other
processes fall back to defaults and leave the file alone.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from . import config
from .commands import Command, command_from_dict, command_to_dict
from .models import (
    HistoryData,
    PetState,
    PetStateData,
    PetSummary,
    is_legacy_state,
    migrate_state,
)

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "state.json"
COMMANDS_FILE_NAME = "commands.json"
HISTORY_FILE_NAME = "history.json"

_MISSING = object()


class Store:
    def __init__(self, directory=None, owner: bool = False):
        self.directory = Path(directory) if directory is not None else config.data_dir()
        self.owner = owner
        self.state_file = self.directory / STATE_FILE_NAME
        self.commands_file = self.directory / COMMANDS_FILE_NAME
        self.history_file = self.directory / HISTORY_FILE_NAME

    def __repr__(self):
        return f"Store({str(self.directory)!r}, owner={self.owner})"

    # --- Raw document I/O ---
    def _ensure_dir(self):
        self.directory.mkdir(parents=True, exist_ok=True)

    def _write(self, path: Path, doc):
        self._ensure_dir()
        tmp = path.with_name(f"{path.name}.{os.getpid()}.tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(doc, f, indent=2)
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def _read(self, path: Path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except FileNotFoundError:
            return _MISSING
        except UnicodeDecodeError as e:
            self._reject(path, e)
            return _MISSING
        except OSError as e:
            logger.error("Could not read %s: %s", path, e)
            return _MISSING
        if not text.strip():
            # Another writer truncated it and has not finished yet
            logger.debug("%s is empty, using defaults", path)
            return _MISSING
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            self._reject(path, e)
            return _MISSING

    def _reject(self, path: Path, error):
        if not self.owner:
            logger.warning("Unreadable data in %s (%s); using defaults", path, error)
            return
        backup_path = path.with_suffix(".corrupt.json")
        logger.warning("Corrupt data in %s (%s); starting from defaults", path, error)
        try:
            path.replace(backup_path)
            logger.warning("Backed up corrupt file to %s", backup_path)
        except OSError as e:
            logger.error("Could not back up corrupt file %s: %s", path, e)

    # --- State ---
    def read_state_document(self) -> Optional[dict]:
        doc = self._read(self.state_file)
        if doc is _MISSING: return None
        if not isinstance(doc, dict):
            self._reject(self.state_file, "not a JSON object")
            return None
        return doc

    def read_state(self, now: Optional[int] = None) -> Optional[PetStateData]:
        doc = self.read_state_document()
        if doc is None: return None
        try:
            return PetStateData.from_dict(doc, now if now is not None else config.now_ms())
        except (KeyError, TypeError, ValueError) as e:
            self._reject(self.state_file, e)
            return None

    def write_state(self, data: PetStateData):
        self._write(self.state_file, data.to_dict())

    # --- Command queue ---
    def _read_queue_entries(self) -> list:
        doc = self._read(self.commands_file)
        if doc is _MISSING: return []
        entries = doc.get("pendingCommands") if isinstance(doc, dict) else None
        if not isinstance(entries, list):
            self._reject(self.commands_file, "missing pendingCommands list")
            return []
        return entries

    def read_command_queue(self) -> tuple[list[Command], int]:
        """Return the usable commands and how many raw entries the queue held."""
        entries = self._read_queue_entries()
        commands = []
        for entry in entries:
            cmd = command_from_dict(entry)
            if cmd is not None: commands.append(cmd)
        return commands, len(entries)

    def read_commands(self) -> list[Command]:
        return self.read_command_queue()[0]

    def write_command(self, cmd: Command):
        entries = self._read_queue_entries()
        entries.append(command_to_dict(cmd))
        self._write(self.commands_file, {"pendingCommands": entries})
        logger.debug("Queued %s", cmd.TYPE)

    def clear_commands(self):
        self._write(self.commands_file, {"pendingCommands": []})

    # --- History ---
    def read_history(self) -> HistoryData:
        doc = self._read(self.history_file)
        if doc is _MISSING: return HistoryData()
        try:
            return HistoryData.from_dict(doc)
        except (KeyError, TypeError, ValueError) as e:
            self._reject(self.history_file, e)
            return HistoryData()

    def write_history(self, history: HistoryData):
        self._write(self.history_file, history.to_dict())

    def add_pet_to_history(self, summary: PetSummary):
        history = self.read_history()
        history.upsert(summary)
        self.write_history(history)

    def update_current_pet_in_history(self, data: PetStateData, now: Optional[int] = None):
        now = now if now is not None else config.now_ms()
        self.add_pet_to_history(PetSummary.from_state(data, now, is_alive=data.stats.died_at is None))

    # --- Startup ---
    def restore_or_create_state(self, now: Optional[int] = None) -> tuple[PetStateData, bool]:
        """Return ``(state, is_restored)``: the stored live pet, or a brand new egg."""
        now = now if now is not None else config.now_ms()
        doc = self.read_state_document()
        existing = None
        if doc is not None:
            try:
                existing = PetStateData.from_dict(doc, now)
            except (KeyError, TypeError, ValueError) as e:
                self._reject(self.state_file, e)

        if existing is not None and existing.state != PetState.DEAD:
            if is_legacy_state(doc):
                migrated = migrate_state(doc, now)
                self.write_state(migrated)
                self.add_pet_to_history(PetSummary.from_state(migrated, now, is_alive=True))
                logger.info("Migrated legacy save to pet #%d", migrated.pet_id)
                return migrated, True
            logger.info("Restored pet #%d (%s)", existing.pet_id, existing.state.value)
            return existing, True

        history = self.read_history()
        last_id = history.current_pet_id
        if existing is not None:
            last_id = max(last_id, existing.pet_id)
        fresh = PetStateData.fresh(last_id + 1, now)
        self.add_pet_to_history(PetSummary.from_state(fresh, now, is_alive=True))
        self.write_state(fresh)
        logger.info("Created new egg, pet #%d", fresh.pet_id)
        return fresh, False

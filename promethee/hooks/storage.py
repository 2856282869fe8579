"""Local JSON file storage — the default ProgressRepository.

Two documents under the data directory:

    ai_quest_user_state_v1.json      the UserState (camelCase keys)
    ai_quest_current_quests_v1.json  the active quest list

Writes go to a sibling temp file and are moved into place with
os.replace, so a crash mid-write leaves the previous document intact.

A document that fails validation is repaired, not discarded: only the
offending parts (a history record, a stats counter, a top-level field,
a quest) are dropped and load as their defaults. Before such a document
can be overwritten by the next save, the original is copied next to it
as ``<name>.bak``. A document that is not JSON at all is backed up the
same way and loads as the initial state.

Tier 2 service module: imports from promethee.hooks.interfaces (Tier 1)
and promethee.schemas (Tier 1).

Usage:
    from promethee.hooks.storage import JsonFileProgressRepository

    repo = JsonFileProgressRepository(".promethee")
    state = await repo.load_state()
"""

import copy
import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel, to_snake

from promethee.hooks.interfaces import ProgressRepository
from promethee.schemas import Quest, UserState

logger = logging.getLogger(__name__)

STATE_FILE = "ai_quest_user_state_v1.json"
QUESTS_FILE = "ai_quest_current_quests_v1.json"

# Each pass drops every part the previous validation rejected.
_MAX_REPAIR_PASSES = 5


def salvage_state(raw: Any) -> tuple[UserState, list[str]]:
    """Validates a stored progress document, dropping only what is invalid.

    Args:
        raw: The parsed JSON document.

    Returns:
        The loaded state and the paths that were dropped, e.g.
        ``["history[1]", "stats.wordsMastered"]``. The list is empty when
        the document was valid as stored.
    """
    try:
        return UserState.model_validate(raw), []
    except ValidationError as exc:
        errors = exc.errors()
    if not isinstance(raw, dict):
        return UserState(), ["<document>"]

    document = copy.deepcopy(raw)
    dropped: list[str] = []
    for _ in range(_MAX_REPAIR_PASSES):
        removed = _drop_invalid_parts(document, errors)
        if not removed:
            break
        dropped.extend(removed)
        try:
            return UserState.model_validate(document), dropped
        except ValidationError as exc:
            errors = exc.errors()
    return UserState(), ["<document>"]


def _document_key(document: dict[str, Any], name: Any) -> Any | None:
    """Finds the key an error location refers to, alias or field name."""
    if not isinstance(name, str):
        return None
    for key in (name, to_camel(name), to_snake(name)):
        if key in document:
            return key
    return None


def _drop_invalid_parts(document: dict[str, Any], errors: list[Any]) -> list[str]:
    """Removes the smallest enclosing part of ``document`` for each error.

    List items and nested mapping keys are removed on their own; anything
    else takes its whole top-level field with it.
    """
    fields: set[str] = set()
    entries: dict[str, set[Any]] = {}
    for error in errors:
        loc = error["loc"]
        key = _document_key(document, loc[0]) if loc else None
        if key is None:
            continue
        value = document[key]
        if len(loc) > 1 and isinstance(value, list) and isinstance(loc[1], int):
            entries.setdefault(key, set()).add(loc[1])
        elif len(loc) > 1 and isinstance(value, dict) and loc[1] in value:
            entries.setdefault(key, set()).add(loc[1])
        else:
            fields.add(key)

    removed = []
    for key in sorted(fields):
        del document[key]
        removed.append(key)
    for key, parts in sorted(entries.items()):
        if key in fields:
            continue
        container = document[key]
        if isinstance(container, list):
            # Highest index first so the remaining indexes stay valid.
            for index in sorted(parts, reverse=True):
                del container[index]
            removed.extend(f"{key}[{index}]" for index in sorted(parts))
        else:
            for part in sorted(parts, key=str):
                del container[part]
                removed.append(f"{key}.{part}")
    return removed


def salvage_quests(raw: Any) -> tuple[list[Quest], int]:
    """Validates a stored quest list item by item.

    Returns:
        The valid quests in stored order and the number of items dropped.
    """
    if not isinstance(raw, list):
        return [], 1
    quests: list[Quest] = []
    for item in raw:
        try:
            quests.append(Quest.model_validate(item))
        except ValidationError:
            continue
    return quests, len(raw) - len(quests)


class JsonFileProgressRepository(ProgressRepository):
    """Stores progress as two JSON files on the local disk.

    Args:
        data_dir: Directory holding the documents. Created on first save.
    """

    def __init__(self, data_dir: str | Path = ".promethee") -> None:
        self._data_dir = Path(data_dir)

    @property
    def state_path(self) -> Path:
        return self._data_dir / STATE_FILE

    @property
    def quests_path(self) -> Path:
        return self._data_dir / QUESTS_FILE

    async def load_state(self) -> UserState:
        raw = self._read(self.state_path)
        if raw is None:
            return UserState()
        state, dropped = salvage_state(raw)
        if dropped:
            logger.warning(
                "Stored progress in %s had invalid parts, dropped: %s",
                self.state_path,
                ", ".join(dropped),
                extra={"dropped_paths": dropped},
            )
            self._backup(self.state_path)
        return state

    async def save_state(self, state: UserState) -> None:
        self._write(self.state_path, state.model_dump(mode="json", by_alias=True))

    async def load_quests(self) -> list[Quest]:
        raw = self._read(self.quests_path)
        if raw is None:
            return []
        quests, dropped = salvage_quests(raw)
        if dropped:
            logger.warning(
                "Stored quests in %s had %d invalid entries, dropped them",
                self.quests_path,
                dropped,
            )
            self._backup(self.quests_path)
        return quests

    async def save_quests(self, quests: list[Quest]) -> None:
        self._write(
            self.quests_path,
            [quest.model_dump(mode="json", by_alias=True) for quest in quests],
        )

    # -- helpers ---------------------------------------------------------

    def _read(self, path: Path) -> Any | None:
        """Returns the parsed document, or None if absent or unreadable."""
        if not path.is_file():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Cannot read %s, ignoring it: %s", path, exc)
            self._backup(path)
            return None

    def _backup(self, path: Path) -> None:
        """Copies ``path`` to ``<name>.bak`` before a save can replace it."""
        backup_path = path.with_suffix(path.suffix + ".bak")
        try:
            shutil.copyfile(path, backup_path)
        except OSError as exc:
            logger.error("Cannot back up %s to %s: %s", path, backup_path, exc)
            return
        logger.warning("Kept the original of %s as %s", path, backup_path)

    def _write(self, path: Path, document: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8"
        )
        os.replace(tmp_path, path)

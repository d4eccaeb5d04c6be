"""
storage/gateway.py

Snapshot persistence keyed by project id, and the project index.

Layout in the key-value store:
    slp_projects_index     -> JSON list of {id, name, lastModified}
    slp_project_<id>       -> JSON project snapshot
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from debug_trace import trace
from models import ProjectSnapshot, now_millis
from schemas import validate_index, validate_item, validate_snapshot
from storage.store import KeyValueStore, PersistenceError

log = logging.getLogger(__name__)

INDEX_KEY = "slp_projects_index"
PROJECT_PREFIX = "slp_project_"


def _decode(raw: str, what: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise PersistenceError(f"Stored {what} is not valid JSON: {e}") from e


class PersistenceGateway:
    """Whole-snapshot save/load for one store.

    Args:
        store: The key-value substrate.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def key_for(project_id: str) -> str:
        return PROJECT_PREFIX + project_id

    def load(self, project_id: str) -> Optional[ProjectSnapshot]:
        """Load a project's snapshot.

        Returns:
            The snapshot, or None if the project has none stored.

        Raises:
            PersistenceError: If the store fails or holds malformed JSON.
        """
        raw = self.store.get(self.key_for(project_id))
        if raw is None:
            return None
        data = _decode(raw, f"snapshot {project_id}")
        ok, errors = validate_snapshot(data)
        if not ok:
            log.warning("Snapshot %s does not match the schema; normalizing: %s",
                        project_id, "; ".join(errors[:5]))
            self._log_item_problems(project_id, data)
        snapshot = ProjectSnapshot.from_dict(data)
        trace(f"load {project_id}: {len(snapshot.items)} items", "STORE")
        return snapshot

    @staticmethod
    def _log_item_problems(project_id: str, data: Any) -> List[str]:
        """Log each stored item record that fails the item schema.

        Returns:
            The ids (or positions) of the offending records.
        """
        records = data.get("items") if isinstance(data, dict) else None
        if not isinstance(records, list):
            return []
        bad = []
        for pos, rec in enumerate(records):
            ok, errors = validate_item(rec)
            if ok:
                continue
            label = rec.get("id") if isinstance(rec, dict) and rec.get("id") else f"#{pos}"
            bad.append(str(label))
            log.warning("Snapshot %s item %s: %s", project_id, label, "; ".join(errors[:3]))
        return bad

    def save(self, project_id: str, snapshot: ProjectSnapshot) -> None:
        """Replace the stored snapshot of *project_id* in one write.

        Raises:
            PersistenceError: If the store write fails.
        """
        self.store.set(self.key_for(project_id), json.dumps(snapshot.to_dict()))
        trace(f"save {project_id}: {len(snapshot.items)} items", "STORE")

    def remove(self, project_id: str) -> None:
        self.store.remove(self.key_for(project_id))


@dataclass
class ProjectEntry:
    """One row of the project index."""
    id: str
    name: str
    last_modified: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "lastModified": self.last_modified}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProjectEntry":
        return cls(id=d["id"], name=d.get("name", ""), last_modified=int(d.get("lastModified", 0)))


class ProjectIndex:
    """The dashboard's list of projects.

    The index is read once on construction and written back after every
    change. Creating or deleting a project also writes or removes its
    snapshot through *gateway*.

    Raises:
        PersistenceError: On construction, if the stored index cannot be read.
    """

    def __init__(self, store: KeyValueStore, gateway: Optional[PersistenceGateway] = None):
        self.store = store
        self.gateway = gateway or PersistenceGateway(store)
        self.entries: List[ProjectEntry] = self._load()

    def _load(self) -> List[ProjectEntry]:
        raw = self.store.get(INDEX_KEY)
        if raw is None:
            return []
        data = _decode(raw, "project index")
        if not isinstance(data, list):
            log.warning("Project index is not a list; starting empty")
            return []
        ok, errors = validate_index(data)
        if not ok:
            log.warning("Project index has invalid entries, skipping them: %s", "; ".join(errors[:5]))
        entries = []
        for rec in data:
            if isinstance(rec, dict) and isinstance(rec.get("id"), str) and rec["id"]:
                try:
                    entries.append(ProjectEntry.from_dict(rec))
                except (TypeError, ValueError, OverflowError):
                    continue
        return entries

    def _save(self) -> None:
        self.store.set(INDEX_KEY, json.dumps([e.to_dict() for e in self.entries]))

    def list(self) -> List[ProjectEntry]:
        """Projects, most recently modified first."""
        return sorted(self.entries, key=lambda e: e.last_modified, reverse=True)

    def get(self, project_id: str) -> Optional[ProjectEntry]:
        for entry in self.entries:
            if entry.id == project_id:
                return entry
        return None

    def create(self, name: str) -> Optional[ProjectEntry]:
        """Add a project with an empty snapshot.

        Returns:
            The new entry, or None when *name* is blank.
        """
        name = (name or "").strip()
        if not name:
            return None
        stamp = now_millis()
        project_id = f"proj_{stamp}"
        n = 2
        while self.get(project_id) is not None:
            project_id = f"proj_{stamp}_{n}"
            n += 1

        entry = ProjectEntry(id=project_id, name=name, last_modified=stamp)
        self.entries.append(entry)
        self._save()
        self.gateway.save(project_id, ProjectSnapshot())
        trace(f"create project {project_id} {name!r}", "STORE")
        return entry

    def rename(self, project_id: str, name: str) -> bool:
        entry = self.get(project_id)
        name = (name or "").strip()
        if entry is None or not name:
            return False
        entry.name = name
        entry.last_modified = now_millis()
        self._save()
        return True

    def delete(self, project_id: str) -> bool:
        """Remove a project and its snapshot. False if it was not indexed."""
        entry = self.get(project_id)
        if entry is None:
            return False
        self.entries.remove(entry)
        self._save()
        self.gateway.remove(project_id)
        trace(f"delete project {project_id}", "STORE")
        return True

    def touch(self, project_id: str) -> None:
        """Stamp a project as modified now."""
        entry = self.get(project_id)
        if entry is None:
            return
        entry.last_modified = now_millis()
        self._save()

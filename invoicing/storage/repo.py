from __future__ import annotations

import glob
import json
import logging
import shutil
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Predicate = Callable[[Record], bool]


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    return str(o)  # Decimal -> "250.00"


class JsonRepository:
    """
    Table JSON (liste d'enregistrements) avec clé primaire configurable.
    - Verrou partagé : lecture-modification-écriture atomique dans le processus
    - Rotation de backups (backup_enabled, backup_keep)
    - N'écrit pas si le contenu ne change pas
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        entity_name: str = "entity",
        key: str = "id",
        *,
        lock: Optional[threading.RLock] = None,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self.entity_name = entity_name
        self.key = key
        self.lock = lock or threading.RLock()
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))

        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        if not self.filepath.exists():
            self._write_raw([])

    # ---------------- I/O bas niveau ---------------- #

    def _read_raw(self) -> List[Record]:
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, list) else []
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            # Fichier corrompu -> sauvegarde et repart sur liste vide
            logger.warning("%s corrompu, copie en .corrupt.json", self.filepath)
            shutil.copy2(self.filepath, self.filepath.with_suffix(".corrupt.json"))
            return []

    def _rotate_backups(self) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        pattern = str(self.filepath.with_suffix(".*.bak.json"))
        files = sorted(glob.glob(pattern))
        # garde les plus récents
        for old in files[: max(0, len(files) - self.backup_keep)]:
            Path(old).unlink(missing_ok=True)

    def _write_raw(self, data: Iterable[Mapping[str, Any]]) -> None:
        with self.lock:
            new_dump = json.dumps(list(data), ensure_ascii=False, indent=2, default=_json_default)

            # si contenu identique -> ne rien faire
            if self.filepath.exists() and self.filepath.read_text(encoding="utf-8") == new_dump:
                return

            if self.backup_enabled and self.filepath.exists():
                ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
                shutil.copy2(self.filepath, self.filepath.with_suffix(f".{ts}.bak.json"))
                self._rotate_backups()

            # écriture atomique : fichier temporaire puis remplacement
            tmp = self.filepath.with_suffix(".tmp")
            tmp.write_text(new_dump, encoding="utf-8")
            tmp.replace(self.filepath)

    # ---------------- Helpers ---------------- #

    @staticmethod
    def _to_dict(item: BaseModel | Mapping[str, Any]) -> Record:
        if isinstance(item, BaseModel):
            return item.model_dump()
        return dict(item)

    # ---------------- CRUD ---------------- #

    def list_all(self) -> List[Record]:
        return self._read_raw()

    def get_by_id(self, obj_id: Any) -> Optional[Record]:
        return self.find_one(lambda it: str(it.get(self.key)) == str(obj_id))

    def add(self, item: BaseModel | Mapping[str, Any]) -> Record:
        record = self._to_dict(item)
        k = self.key
        if not record.get(k):
            record[k] = uuid4().hex
        with self.lock:
            data = self._read_raw()
            if any(str(d.get(k)) == str(record[k]) for d in data):
                raise ValueError(f"{self.entity_name} with {k}={record[k]} already exists")
            data.append(record)
            self._write_raw(data)
        return record

    def update(self, item: BaseModel | Mapping[str, Any]) -> Record:
        record = self._to_dict(item)
        k = self.key
        obj_id = record.get(k)
        if not obj_id:
            raise ValueError(f"Cannot update {self.entity_name} without '{k}'")
        with self.lock:
            data = self._read_raw()
            for idx, existing in enumerate(data):
                if str(existing.get(k)) == str(obj_id):
                    merged = {**existing, **record}
                    data[idx] = merged
                    self._write_raw(data)
                    return merged
        raise ValueError(f"{self.entity_name} with {k}={obj_id} not found")

    def delete(self, obj_id: Any) -> bool:
        return self.delete_where(lambda d: str(d.get(self.key)) == str(obj_id)) > 0

    def delete_where(self, predicate: Predicate) -> int:
        with self.lock:
            data = self._read_raw()
            new_data = [d for d in data if not predicate(d)]
            removed = len(data) - len(new_data)
            if removed:
                self._write_raw(new_data)
        return removed

    def replace_where(self, predicate: Predicate, items: Iterable[BaseModel | Mapping[str, Any]]) -> List[Record]:
        """Supprime les enregistrements correspondants et insère les nouveaux en une seule écriture."""
        records = [self._to_dict(it) for it in items]
        with self.lock:
            data = [d for d in self._read_raw() if not predicate(d)]
            data.extend(records)
            self._write_raw(data)
        return records

    # ---------------- Recherches ---------------- #

    def find(self, predicate: Predicate) -> List[Record]:
        return [r for r in self._read_raw() if predicate(r)]

    def find_one(self, predicate: Predicate) -> Optional[Record]:
        for r in self._read_raw():
            if predicate(r):
                return r
        return None

"""
Config store — per-target JSON records with existed detection.

Each target directory holds ``.kubegen-rc.json``. The file is a
mapping of generator namespace → key/value record, so several
generators (and their blueprints) can share one file:

    {
      "kubegen-knative": {"appsFolders": ["gateway"], "generatorType": "k8s"},
      "kubegen": {"baseName": "gateway", "buildTool": "maven"}
    }

A record "existed" iff its namespace was present when loaded. Writes
merge named keys into the namespace and never drop keys the caller
did not pass. Writes are atomic (temp file, then rename).
"""

from __future__ import annotations

import json
import logging
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from kubegen.core.errors import ConfigInvalid
from kubegen.core.models.config import ConfigRecord, check_primitive

logger = logging.getLogger(__name__)

RC_FILE = ".kubegen-rc.json"
DEPLOYMENT_NAMESPACE = "kubegen-knative"
APP_NAMESPACE = "kubegen"


class ConfigStore:
    """Reads and merges ConfigRecords below a root directory.

    ``target_id`` is a path relative to the root; ``"."`` is the root
    itself (the deployment directory).
    """

    def __init__(self, root: Path, namespace: str = DEPLOYMENT_NAMESPACE):
        self.root = Path(root)
        self.namespace = namespace

    def path_for(self, target_id: str) -> Path:
        return self.root / target_id / RC_FILE

    def load(self, target_id: str, namespace: str | None = None) -> tuple[ConfigRecord, bool]:
        """Load a record.

        Returns:
            ``(record, existed)``. A missing file or namespace yields an
            empty record and ``existed=False``.

        Raises:
            ConfigInvalid: the file is not valid UTF-8 JSON or the namespace
                is not a mapping of primitives.
        """
        namespace = namespace or self.namespace
        data = self._read(self.path_for(target_id))
        if namespace not in data:
            logger.debug("No %s record for %s", namespace, target_id)
            return ConfigRecord(target_id=target_id, namespace=namespace), False

        values = data[namespace]
        if not isinstance(values, dict):
            raise ConfigInvalid(
                f"expected a mapping, got {type(values).__name__}",
                key=f"{self.path_for(target_id)}:{namespace}",
            )
        record = ConfigRecord(target_id=target_id, namespace=namespace, values=values)
        logger.debug("Loaded %s record for %s (%d keys)", namespace, target_id, len(values))
        return record, True

    def exists(self, target_id: str, namespace: str | None = None) -> bool:
        return (namespace or self.namespace) in self._read(self.path_for(target_id))

    def write(
        self,
        target_id: str,
        values: Mapping[str, Any],
        namespace: str | None = None,
    ) -> ConfigRecord:
        """Merge ``values`` into the target's record and persist it."""
        namespace = namespace or self.namespace
        for key, value in values.items():
            check_primitive(value, key)

        path = self.path_for(target_id)
        data = self._read(path)
        current = data.get(namespace)
        merged = dict(current) if isinstance(current, dict) else {}
        merged.update(values)
        data[namespace] = merged

        self._atomic_write(path, data)
        logger.debug("Wrote %d keys to %s record for %s", len(values), namespace, target_id)
        return ConfigRecord(target_id=target_id, namespace=namespace, values=merged)

    # ── Internals ───────────────────────────────────────────────────

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except UnicodeDecodeError as e:
            raise ConfigInvalid(f"not valid UTF-8: {e}", key=str(path)) from e
        except json.JSONDecodeError as e:
            raise ConfigInvalid(f"invalid JSON: {e}", key=str(path)) from e
        if not isinstance(data, dict):
            raise ConfigInvalid(f"expected a JSON object, got {type(data).__name__}", key=str(path))
        return data

    @staticmethod
    def _atomic_write(path: Path, data: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".kubegen_", suffix=".tmp")
        tmp = Path(tmp_path)
        try:
            with open(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            tmp.replace(path)
        except Exception:
            tmp.unlink(missing_ok=True)
            logger.error("Failed to write config record %s", path)
            raise

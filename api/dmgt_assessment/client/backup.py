import json
import logging
import time
from pathlib import Path
from typing import Any

from ..config import BACKUP_DIR, PROGRESS_STORAGE_KEY

logger = logging.getLogger(__name__)


class BackupStore:
    """Crash-recovery snapshots kept on local disk, one JSON file per key.

    Reads and writes never raise: a broken or unwritable backup only costs
    the recovery copy, never the session.
    """

    def __init__(self, directory: Path | str = BACKUP_DIR) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Any:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("[backup] failed to read %s: %s", path, exc)
            return None

    def set_item(self, key: str, value: Any) -> bool:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(value), encoding="utf-8")
            tmp.replace(path)
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("[backup] failed to write %s: %s", path, exc)
            return False

    def remove_item(self, key: str) -> bool:
        try:
            self._path(key).unlink(missing_ok=True)
            return True
        except OSError as exc:
            logger.warning("[backup] failed to remove %s: %s", key, exc)
            return False

    def save_progress(
        self,
        assessment_type: str,
        company_id: str,
        employee_id: str | None,
        responses: dict[str, Any],
        key: str = PROGRESS_STORAGE_KEY,
    ) -> bool:
        return self.set_item(
            key,
            {
                "assessmentType": assessment_type,
                "companyId": company_id,
                "employeeId": employee_id,
                "responses": responses,
                "timestamp": int(time.time() * 1000),
            },
        )

    def load_progress(
        self,
        assessment_type: str,
        company_id: str,
        employee_id: str | None,
        key: str = PROGRESS_STORAGE_KEY,
    ) -> dict[str, Any] | None:
        """Return the backed-up responses only when they belong to this assessment."""
        snapshot = self.get_item(key)
        if not isinstance(snapshot, dict):
            return None
        if (
            snapshot.get("assessmentType") != assessment_type
            or snapshot.get("companyId") != company_id
            or (snapshot.get("employeeId") or None) != (employee_id or None)
        ):
            return None
        responses = snapshot.get("responses")
        return responses if isinstance(responses, dict) else None

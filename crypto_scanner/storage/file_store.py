"""JSON file store with atomic replace."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import settings
from ..errors import PersistenceError
from ..models import AlertState, Baseline
from .base import StateStore

logger = logging.getLogger(__name__)


class FileStateStore(StateStore):
    """Stores each record as a JSON file in one directory.

    Writes go to a temp file next to the target and are swapped in with
    os.replace, so a crash mid-write leaves the previous file intact.
    """

    def __init__(
        self,
        directory: Optional[str] = None,
        baseline_file: Optional[str] = None,
        alert_state_file: Optional[str] = None,
    ):
        self.directory = Path(directory or settings.state_dir)
        self.baseline_path = self.directory / (baseline_file or settings.baseline_file)
        self.alert_state_path = self.directory / (alert_state_file or settings.alert_state_file)

    def load_baseline(self) -> Optional[Baseline]:
        data = self._read(self.baseline_path)
        if data is None:
            return None
        try:
            return Baseline.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt baseline record in {self.baseline_path}: {e}") from e

    def save_baseline(self, baseline: Baseline) -> None:
        self._write(self.baseline_path, baseline.to_dict())

    def load_alert_state(self) -> Optional[AlertState]:
        data = self._read(self.alert_state_path)
        if data is None:
            return None
        try:
            return AlertState.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt alert state record in {self.alert_state_path}: {e}") from e

    def save_alert_state(self, state: AlertState) -> None:
        self._write(self.alert_state_path, state.to_dict())

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def _write(self, path: Path, payload: Dict[str, Any]) -> None:
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.directory,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(payload, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            logger.debug(f"Wrote {path}")
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Failed to write {path}: {e}") from e

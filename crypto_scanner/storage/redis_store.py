"""Redis-backed store for the baseline and alert state."""

import json
import logging
from typing import Optional

import redis

from ..config import settings
from ..errors import PersistenceError
from ..models import AlertState, Baseline
from .base import StateStore

logger = logging.getLogger(__name__)


class RedisStateStore(StateStore):
    """Keeps each record as a JSON string under its own key.

    A single SET replaces the whole record, so readers never see a partial write.
    """

    def __init__(self, client: Optional[redis.Redis] = None, key_prefix: Optional[str] = None):
        self.client = client
        prefix = key_prefix or settings.redis_key_prefix
        self.baseline_key = f"{prefix}:baseline"
        self.alert_state_key = f"{prefix}:alert_state"

    def connect(self):
        """Establish Redis connection."""
        try:
            self.client = redis.Redis(
                host=settings.redis_host,
                port=settings.redis_port,
                db=settings.redis_db,
                decode_responses=True,
            )
            # Test connection
            self.client.ping()
            logger.info("Connected to Redis")
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise PersistenceError(f"Failed to connect to Redis: {e}") from e

    def close(self):
        """Close Redis connection."""
        if self.client:
            self.client.close()
            self.client = None

    def load_baseline(self) -> Optional[Baseline]:
        data = self._get_json(self.baseline_key)
        if data is None:
            return None
        try:
            return Baseline.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt baseline record at {self.baseline_key}: {e}") from e

    def save_baseline(self, baseline: Baseline) -> None:
        self._set_json(self.baseline_key, baseline.to_dict())

    def load_alert_state(self) -> Optional[AlertState]:
        data = self._get_json(self.alert_state_key)
        if data is None:
            return None
        try:
            return AlertState.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt alert state record at {self.alert_state_key}: {e}") from e

    def save_alert_state(self, state: AlertState) -> None:
        self._set_json(self.alert_state_key, state.to_dict())

    def _get_json(self, key: str) -> Optional[dict]:
        try:
            data_str = self.client.get(key)
        except redis.RedisError as e:
            raise PersistenceError(f"Failed to read {key} from Redis: {e}") from e
        if not data_str:
            return None
        try:
            return json.loads(data_str)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Failed to parse {key} from Redis: {e}") from e

    def _set_json(self, key: str, payload: dict) -> None:
        try:
            self.client.set(key, json.dumps(payload))
        except redis.RedisError as e:
            raise PersistenceError(f"Failed to write {key} to Redis: {e}") from e

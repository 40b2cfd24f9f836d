"""Store interface shared by the file and Redis backends."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import AlertState, Baseline


class StateStore(ABC):
    """Keyed singleton records: one Baseline and one AlertState.

    Loading a record that was never saved returns None. Any other read or
    write failure raises PersistenceError.
    """

    @abstractmethod
    def load_baseline(self) -> Optional[Baseline]:
        ...

    @abstractmethod
    def save_baseline(self, baseline: Baseline) -> None:
        ...

    @abstractmethod
    def load_alert_state(self) -> Optional[AlertState]:
        ...

    @abstractmethod
    def save_alert_state(self, state: AlertState) -> None:
        ...

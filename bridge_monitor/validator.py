from abc import ABC, abstractmethod
from typing import List, Optional

from .models import ChainConfig, DstTx


class NotSetupError(RuntimeError):
    """Raised when a validator is used before a successful setup()."""


class ValidationError(Exception):
    """
    An unlock that could not be proven to be backed by a matching lock.

    This is an expected business outcome rather than a system fault: the
    orchestrator alerts on it instead of retrying.
    """

    def __init__(self, tx: DstTx, message: str):
        super().__init__(message)
        self.tx = tx


class ChainValidator(ABC):
    """
    Scans one chain for unlocks and proves unlocks that originated on it.

    Implementations hold only read-only state fixed at setup(), so scan() and
    validate() may run concurrently for different heights and records.
    """

    def __init__(self):
        self.conf: Optional[ChainConfig] = None

    def _require_setup(self) -> ChainConfig:
        if self.conf is None:
            raise NotSetupError(f"{type(self).__name__} used before setup()")
        return self.conf

    @abstractmethod
    def setup(self, cfg: ChainConfig) -> None:
        """Connects to the chain nodes and binds the bridge contracts."""

    @abstractmethod
    def latest_height(self) -> int:
        """Returns the latest block height seen by the node connection."""

    @abstractmethod
    def scan(self, height: int) -> List[DstTx]:
        """Returns every proxy unlock at exactly ``height``."""

    @abstractmethod
    def validate(self, tx: DstTx) -> None:
        """Returns if ``tx`` is backed by a lock on this chain, raises ValidationError otherwise."""

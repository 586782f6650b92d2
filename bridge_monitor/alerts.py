import logging
import threading
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import requests

from .models import DstTx

FormattedAlert = Tuple[str, List[str], List[Any]]


@dataclass
class InvalidUnlockEvent:
    """An unlock on a destination chain that could not be matched to a lock."""

    tx: DstTx
    error: Exception

    def format(self) -> FormattedAlert:
        keys = ["Amount", "Asset", "To", "DstChain", "PolyHash", "DstHash", "Error"]
        values = [str(self.tx.amount), self.tx.dst_asset, self.tx.to, self.tx.dst_chain_id,
                  self.tx.poly_tx, self.tx.dst_tx, str(self.error)]
        return f"Suspicious unlock on chain {self.tx.dst_chain_id}", keys, values


@dataclass
class ChainHeightStuckEvent:
    chain: str
    duration: float
    current_height: int
    nodes: Sequence[str]

    def format(self) -> FormattedAlert:
        keys = ["CurrentHeight", "StuckFor", "Nodes"]
        values = [self.current_height, f"{int(self.duration)}s", list(self.nodes)]
        return f"Chain node height stopped for {self.chain}", keys, values


class Alerter:
    """
    Delivers alerts to an operator webhook.

    Every alert is logged. When a webhook URL is configured the formatted alert is
    also posted as JSON; delivery problems are logged and reported through the
    return value so a flaky webhook never stops the monitor.
    """

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = 10):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        # One session per thread: every chain monitor thread alerts through this instance.
        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            session.headers.update({'Content-Type': 'application/json'})
            self._local.session = session
        return session

    def send(self, event) -> bool:
        title, keys, values = event.format()
        logging.warning(f"ALERT {title}: " + ", ".join(f"{k}={v}" for k, v in zip(keys, values)))
        if not self.webhook_url:
            return True

        payload = {
            'title': title,
            'fields': [{'name': k, 'value': str(v)} for k, v in zip(keys, values)],
        }
        try:
            response = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logging.error(f"Alert delivery failed for '{title}': {e}")
            return False

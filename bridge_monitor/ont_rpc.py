import logging
import threading
from typing import Any, Dict, List, Sequence

import requests


class OntRpcError(Exception):
    """The node answered but reported a JSON-RPC error."""


class OntRpcClient:
    """
    Minimal JSON-RPC client for Ontology-style (account-model) nodes.

    Nodes are tried in order; a connection-level failure moves on to the next one.
    When every node fails the last transport error is raised unchanged.
    """

    def __init__(self, nodes: Sequence[str], timeout: float = 60):
        if not nodes:
            raise ValueError("OntRpcClient needs at least one node")
        self.nodes = list(nodes)
        self.timeout = timeout
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        # requests.Session is not thread-safe; each scanning thread gets its own.
        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            session.headers.update({'Content-Type': 'application/json', 'Accept': 'application/json'})
            self._local.session = session
        return session

    def _call(self, method: str, params: List[Any]) -> Any:
        payload = {'jsonrpc': '2.0', 'method': method, 'params': params, 'id': 1}
        last_error = None
        for url in self.nodes:
            try:
                response = self.session.post(url, json=payload, timeout=self.timeout)
                response.raise_for_status()
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                logging.warning(f"Ont node {url} unavailable for {method}: {e}")
                last_error = e
                continue
            data: Dict[str, Any] = response.json()
            if data.get('error', 0) != 0:
                raise OntRpcError(f"{method} failed on {url}: {data.get('desc')} (error {data.get('error')})")
            return data.get('result')
        raise last_error

    def get_block_count(self) -> int:
        return int(self._call('getblockcount', []))

    def get_smart_contract_event_by_block(self, height: int) -> List[Dict[str, Any]]:
        """Returns the per-transaction event groups at ``height``; each holds ``TxHash`` and ``Notify``."""
        return self._call('getsmartcodeevent', [height]) or []

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from .models import ChainConfig, DstTx
from .ont_rpc import OntRpcClient
from .utils import BYTE_ARRAY, hex_string_reverse, parse_amount
from .validator import ChainValidator

ONT_PROXY_UNLOCK = "unlock"
ONT_CCM_UNLOCK = "verifyToOntProof"


@dataclass(frozen=True)
class CcmUnlockCandidate:
    src_chain_id: int
    poly_tx: str


@dataclass(frozen=True)
class ProxyUnlockEvent:
    asset: str
    to: str
    raw_amount: Any


@dataclass(frozen=True)
class Unrecognized:
    reason: str


Notification = Union[CcmUnlockCandidate, ProxyUnlockEvent, Unrecognized]


def _decode_method(value: Any) -> str:
    try:
        return bytes.fromhex(value).decode('utf-8', errors='replace')
    except (ValueError, TypeError):
        return ""


def _chain_id(value: Any) -> Optional[int]:
    """Chain ids arrive as JSON numbers; anything but a whole number is rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def decode_notify(notify: Dict[str, Any], ccm_contract: str, proxy_contracts: Sequence[str]) -> Notification:
    """
    Converts a raw notification into a typed event.

    Cross chain manager notifications carry a plain method name, while proxy
    notifications carry it hex encoded. Anything that does not have the expected
    shape comes back as Unrecognized.
    """
    contract = notify.get('ContractAddress')
    states = notify.get('States')
    if contract != ccm_contract and contract not in proxy_contracts:
        return Unrecognized(f"contract {contract} is not monitored")
    if not isinstance(states, list) or not states:
        return Unrecognized(f"states of {contract} is not a list")

    if contract == ccm_contract:
        if states[0] != ONT_CCM_UNLOCK:
            return Unrecognized(f"ccm method {states[0]}")
        src_chain_id = _chain_id(states[3]) if len(states) >= 4 else None
        if src_chain_id is None:
            return Unrecognized(f"malformed ccm unlock states {states}")
        return CcmUnlockCandidate(src_chain_id=src_chain_id, poly_tx=hex_string_reverse(states[1]))

    if _decode_method(states[0]) != ONT_PROXY_UNLOCK:
        return Unrecognized(f"proxy method {states[0]}")
    if len(states) < 4 or not isinstance(states[1], str) or not isinstance(states[2], str):
        return Unrecognized(f"malformed proxy unlock states {states}")
    return ProxyUnlockEvent(asset=states[1], to=states[2], raw_amount=states[3])


class OntValidator(ChainValidator):
    """
    Validator for account-model chains.

    Events are grouped per transaction, so a proxy unlock is only linked to the
    cross chain manager notification of its own transaction, and only when that
    transaction holds exactly one unlock.
    """

    def __init__(self):
        super().__init__()
        self.client: Optional[OntRpcClient] = None

    def setup(self, cfg: ChainConfig) -> None:
        client = OntRpcClient(cfg.nodes)
        height = client.get_block_count() - 1
        self.client = client
        self.conf = cfg
        logging.info(f"Ont validator for chain {cfg.chain_id} connected at height {height}")

    def latest_height(self) -> int:
        self._require_setup()
        return self.client.get_block_count() - 1

    def scan(self, height: int) -> List[DstTx]:
        conf = self._require_setup()
        txs = []
        for evt in self.client.get_smart_contract_event_by_block(height):
            ccm_unlock: Optional[CcmUnlockCandidate] = None
            unlocks: List[DstTx] = []
            for notify in evt.get('Notify') or []:
                event = decode_notify(notify, conf.ccm_contract, conf.proxy_contracts)
                if isinstance(event, CcmUnlockCandidate):
                    if ccm_unlock is None:
                        ccm_unlock = event
                    else:
                        logging.error(f"Found more than one ccm unlock event in tx {evt.get('TxHash')}: {event}")
                elif isinstance(event, ProxyUnlockEvent):
                    amount = parse_amount(event.raw_amount, BYTE_ARRAY)
                    if amount is None:
                        logging.error(f"Invalid dst unlock amount {event.raw_amount} in tx {evt.get('TxHash')}")
                        amount = 0
                    unlocks.append(DstTx(
                        amount=amount,
                        dst_tx=evt.get('TxHash', ''),
                        dst_asset=event.asset,
                        to=event.to,
                        dst_chain_id=conf.chain_id,
                    ))

            # Provenance is ambiguous unless the tx holds exactly one unlock.
            if len(unlocks) != 1:
                ccm_unlock = None
            for tx in unlocks:
                if ccm_unlock is not None:
                    tx = tx.correlated_with(
                        DstTx(src_chain_id=ccm_unlock.src_chain_id, poly_tx=ccm_unlock.poly_tx),
                        dst_height=height,
                    )
                txs.append(tx)
        return txs

    def validate(self, tx: DstTx) -> None:
        """Always passes: locks on this chain family are not cross-checked yet."""
        return None

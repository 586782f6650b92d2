from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

ETH = "eth"
ONT = "ont"
CHAIN_KINDS = (ETH, ONT)


@dataclass(frozen=True)
class ChainConfig:
    """Static configuration of one monitored chain. Owned by its validator after setup."""

    name: str
    kind: str
    chain_id: int
    nodes: Tuple[str, ...]
    ccm_contract: str
    proxy_contracts: Tuple[str, ...] = ()
    start_height: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainConfig":
        """
        Builds a ChainConfig from one entry of the chains JSON file.
        Raises ValueError naming the offending key.
        """
        for key in ("name", "kind", "chain_id", "nodes", "ccm_contract"):
            if key not in data:
                raise ValueError(f"Chain config is missing required key '{key}': {data}")
        if data["kind"] not in CHAIN_KINDS:
            raise ValueError(f"Unsupported chain kind '{data['kind']}' for chain {data['name']}")
        nodes = data["nodes"]
        if isinstance(nodes, str):
            nodes = [nodes]
        if not nodes:
            raise ValueError(f"Chain {data['name']} has no nodes configured")
        try:
            chain_id = int(data["chain_id"])
            start_height = int(data.get("start_height", 0))
        except (TypeError, ValueError):
            raise ValueError(f"Chain {data['name']} has a non-integer chain_id or start_height")
        return cls(
            name=data["name"],
            kind=data["kind"],
            chain_id=chain_id,
            nodes=tuple(nodes),
            ccm_contract=data["ccm_contract"],
            proxy_contracts=tuple(data.get("proxy_contracts", ())),
            start_height=start_height,
        )


@dataclass(frozen=True)
class DstTx:
    """
    A destination-chain unlock, optionally linked to its cross-chain provenance.

    ``dst_tx``, ``dst_chain_id``, ``dst_asset``, ``to`` and ``amount`` always come from
    the proxy unlock event. ``src_chain_id``, ``src_tx``, ``poly_tx`` and ``dst_height``
    are only populated when a cross chain manager event was matched to the unlock.
    """

    src_chain_id: int = 0
    src_tx: str = ""
    poly_tx: str = ""
    dst_height: int = 0
    dst_tx: str = ""
    dst_chain_id: int = 0
    dst_asset: str = ""
    to: str = ""
    amount: int = 0

    @property
    def is_correlated(self) -> bool:
        return bool(self.poly_tx or self.src_tx)

    def correlated_with(self, ccm_tx: "DstTx", dst_height: Optional[int] = None) -> "DstTx":
        """Returns a copy carrying the provenance of the cross chain manager event ``ccm_tx``."""
        return replace(
            self,
            src_chain_id=ccm_tx.src_chain_id,
            src_tx=ccm_tx.src_tx,
            poly_tx=ccm_tx.poly_tx,
            dst_height=ccm_tx.dst_height if dst_height is None else dst_height,
        )

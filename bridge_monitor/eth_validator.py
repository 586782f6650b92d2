import logging
from typing import Any, Dict, List

from web3 import Web3
from web3.contract import Contract
from web3.exceptions import TransactionNotFound

from .abi import CCM_ABI, LOCK_PROXY_ABI
from .models import ChainConfig, DstTx
from .utils import hex_string_reverse, strip_0x
from .validator import ChainValidator, ValidationError

NODE_TIMEOUT_SEC = 60


def _hex(value: Any) -> str:
    """Lower-case hex without prefix for HexBytes, bytes or 0x-prefixed strings."""
    if isinstance(value, str):
        return strip_0x(value).lower()
    return strip_0x(Web3.to_hex(value))


class EthValidator(ChainValidator):
    """
    Validator for EVM-style chains.

    Unlocks are read from the lock proxy ``UnlockEvent`` logs and linked to the
    cross chain manager ``VerifyHeaderAndExecuteTxEvent`` emitted in the same
    transaction. Locks are proven by re-reading ``LockEvent`` logs at the block of
    the source transaction.
    """

    def __init__(self):
        super().__init__()
        self.w3: Web3 = None
        self.ccm: Contract = None
        self.proxies: List[Contract] = []

    def setup(self, cfg: ChainConfig) -> None:
        w3 = self._connect(cfg.nodes)
        proxies = [
            w3.eth.contract(address=Web3.to_checksum_address(address), abi=LOCK_PROXY_ABI)
            for address in cfg.proxy_contracts
        ]
        ccm = w3.eth.contract(address=Web3.to_checksum_address(cfg.ccm_contract), abi=CCM_ABI)
        self.w3, self.proxies, self.ccm = w3, proxies, ccm
        self.conf = cfg
        logging.info(f"Eth validator for chain {cfg.chain_id} bound to ccm {cfg.ccm_contract} and {len(proxies)} proxies")

    @staticmethod
    def _connect(nodes) -> Web3:
        for url in nodes:
            w3 = Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": NODE_TIMEOUT_SEC}))
            if w3.is_connected():
                logging.info(f"Connected to node {url}")
                return w3
            logging.warning(f"Node {url} is not reachable")
        raise ConnectionError(f"Failed to connect to any node: {', '.join(nodes)}")

    def latest_height(self) -> int:
        self._require_setup()
        return self.w3.eth.block_number

    def scan(self, height: int) -> List[DstTx]:
        conf = self._require_setup()

        ccm_unlocks: Dict[str, DstTx] = {}
        for evt in self.ccm.events.VerifyHeaderAndExecuteTxEvent.get_logs(from_block=height, to_block=height):
            args = evt["args"]
            # Last event wins when one transaction carries several.
            ccm_unlocks[_hex(evt["transactionHash"])] = DstTx(
                src_chain_id=args["fromChainID"],
                src_tx=hex_string_reverse(_hex(args["fromChainTxHash"])),
                poly_tx=hex_string_reverse(_hex(args["crossChainTxHash"])),
                dst_height=evt["blockNumber"],
            )

        txs = []
        for proxy in self.proxies:
            for evt in proxy.events.UnlockEvent.get_logs(from_block=height, to_block=height):
                args = evt["args"]
                tx = DstTx(
                    amount=args["amount"],
                    dst_tx=_hex(evt["transactionHash"]),
                    dst_asset=_hex(args["toAssetHash"]),
                    to=_hex(args["toAddress"]),
                    dst_chain_id=conf.chain_id,
                )
                ccm_tx = ccm_unlocks.get(tx.dst_tx)
                if ccm_tx is not None:
                    tx = tx.correlated_with(ccm_tx)
                txs.append(tx)
        return txs

    def validate(self, tx: DstTx) -> None:
        self._require_setup()
        if not tx.src_tx:
            raise ValidationError(tx, f"Failed to validate unlock {tx.dst_tx}: missing source tx hash")

        try:
            receipt = self.w3.eth.get_transaction_receipt("0x" + strip_0x(tx.src_tx))
        except TransactionNotFound:
            raise ValidationError(tx, f"Failed to validate tx {tx.src_tx}: source transaction not found")
        height = receipt["blockNumber"]

        for proxy in self.proxies:
            for evt in proxy.events.LockEvent.get_logs(from_block=height, to_block=height):
                args = evt["args"]
                amount = args["amount"]
                address = _hex(args["toAddress"])
                chain_id = args["toChainId"]
                asset = _hex(args["toAssetHash"])

                logging.info(f"Comparing {tx} {amount} {address} {chain_id} {asset}")
                if amount == tx.amount and address == tx.to and chain_id == tx.dst_chain_id and asset == tx.dst_asset:
                    logging.info(f"Successfully validated tx {tx.src_tx} to {address} asset {asset} amount {amount}")
                    return

        raise ValidationError(
            tx, f"Failed to validate tx {tx.src_tx} to {tx.to} asset {tx.dst_asset} amount {tx.amount}"
        )


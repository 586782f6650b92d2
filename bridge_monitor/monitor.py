import json
import logging
import os
import threading
import time
from typing import Callable, Dict, List, Optional

from .alerts import Alerter, ChainHeightStuckEvent, InvalidUnlockEvent
from .config import ConfigManager
from .eth_validator import EthValidator
from .models import ETH, ONT, ChainConfig, DstTx
from .ont_validator import OntValidator
from .validator import ChainValidator, ValidationError

VALIDATORS = {
    ETH: EthValidator,
    ONT: OntValidator,
}


def build_validator(cfg: ChainConfig) -> ChainValidator:
    """Creates the validator for the chain family of ``cfg`` and sets it up."""
    try:
        validator = VALIDATORS[cfg.kind]()
    except KeyError:
        raise ValueError(f"Unsupported chain kind '{cfg.kind}' for chain {cfg.name}")
    validator.setup(cfg)
    return validator


class UnlockHandler:
    """
    Proves unlocks found on destination chains against their source chain.

    check() has no side effects: it returns the alert to raise for an unlock, if
    any. Node errors raised by the source chain validator propagate so the caller
    can retry the whole height before any of its alerts are sent.
    """
    def __init__(self, validators: Dict[int, ChainValidator]):
        self.validators = validators

    def check(self, tx: DstTx) -> Optional[InvalidUnlockEvent]:
        """Returns an InvalidUnlockEvent for an unproven unlock, None when it was validated or skipped."""
        if not tx.is_correlated:
            error = ValidationError(tx, f"No cross chain manager event found for unlock {tx.dst_tx}")
            return InvalidUnlockEvent(tx, error)

        validator = self.validators.get(tx.src_chain_id)
        if validator is None:
            logging.warning(f"Source chain {tx.src_chain_id} of unlock {tx.dst_tx} is not monitored. Skipping.")
            return None
        if not tx.src_tx:
            logging.warning(f"Unlock {tx.dst_tx} (poly tx {tx.poly_tx}) carries no source tx hash. Skipping.")
            return None

        try:
            validator.validate(tx)
        except ValidationError as e:
            return InvalidUnlockEvent(tx, e)
        return None


class ChainMonitor:
    """
    Scans one chain height by height and hands every unlock to the UnlockHandler.

    The last fully processed height is checkpointed to a JSON state file, so a
    height whose scan or validation failed is retried on the next cycle.
    """
    def __init__(self, cfg: ChainConfig, validator: ChainValidator, handler: UnlockHandler, alerter: Alerter,
                 state_file: str, confirmations: int = 1, stuck_after_sec: float = 600,
                 clock: Callable[[], float] = time.monotonic):
        self.cfg = cfg
        self.validator = validator
        self.handler = handler
        self.alerter = alerter
        self.state_file = state_file
        self.confirmations = confirmations
        self.stuck_after_sec = stuck_after_sec
        self.clock = clock
        self.last_scanned_height = self._load_last_scanned_height(cfg.start_height)

        self._last_seen_height: Optional[int] = None
        self._last_progress_at = clock()
        self._stuck_alerted = False

    def _load_last_scanned_height(self, default_start_height: int) -> int:
        """
        Loads the last scanned height from the state file, falling back to the height
        just before the configured start height.
        """
        try:
            with open(self.state_file, 'r') as f:
                state = json.load(f)
            height = int(state['last_scanned_height'])
            logging.info(f"[{self.cfg.name}] Resuming scan after height {height} (loaded from state file).")
            return height
        except (FileNotFoundError, json.JSONDecodeError, KeyError, TypeError, ValueError):
            logging.warning(f"[{self.cfg.name}] State file not found or invalid. Starting scan from height {default_start_height}.")
            return default_start_height - 1

    def _save_last_scanned_height(self, height: int):
        directory = os.path.dirname(self.state_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.state_file, 'w') as f:
            json.dump({'last_scanned_height': height}, f)

    def _check_height_progress(self, latest: int):
        now = self.clock()
        if latest != self._last_seen_height:
            self._last_seen_height = latest
            self._last_progress_at = now
            self._stuck_alerted = False
            return
        stuck_for = now - self._last_progress_at
        if stuck_for >= self.stuck_after_sec and not self._stuck_alerted:
            self.alerter.send(ChainHeightStuckEvent(self.cfg.name, stuck_for, latest, self.cfg.nodes))
            self._stuck_alerted = True

    def scan_new_blocks(self) -> int:
        """
        Scans every height between the checkpoint and the confirmed chain head.

        Returns:
            int: The number of heights fully processed during this cycle.
        """
        processed = 0
        try:
            latest = self.validator.latest_height()
            self._check_height_progress(latest)
            to_height = latest - self.confirmations
            from_height = self.last_scanned_height + 1
            if from_height > to_height:
                logging.info(f"[{self.cfg.name}] No new blocks to scan. Current head: {latest}, last scanned: {self.last_scanned_height}")
                return 0

            logging.info(f"[{self.cfg.name}] Scanning heights {from_height} to {to_height}...")
            for height in range(from_height, to_height + 1):
                txs = self.validator.scan(height)
                if txs:
                    logging.info(f"[{self.cfg.name}] Found {len(txs)} unlock(s) at height {height}.")
                # All unlocks of a height are checked before alerting, so a retried height never re-alerts.
                alerts = [alert for alert in map(self.handler.check, txs) if alert is not None]
                for alert in alerts:
                    self.alerter.send(alert)
                self.last_scanned_height = height
                self._save_last_scanned_height(height)
                processed += 1
        except Exception as e:
            logging.error(f"[{self.cfg.name}] Scan stopped after height {self.last_scanned_height}: {e}")
        return processed

    def run(self, stop: threading.Event, interval_sec: float):
        while not stop.is_set():
            self.scan_new_blocks()
            stop.wait(interval_sec)


class CrossChainValidator:
    """
    Wires validators, the unlock handler and one ChainMonitor per configured chain,
    and runs every chain monitor in its own thread.
    """
    def __init__(self, config: ConfigManager):
        self.config = config
        self.alerter = Alerter(config.alert_webhook_url)
        self.validators: Dict[int, ChainValidator] = {
            chain.chain_id: build_validator(chain) for chain in config.chains
        }
        self.handler = UnlockHandler(self.validators)
        self.monitors: List[ChainMonitor] = [
            ChainMonitor(
                chain,
                self.validators[chain.chain_id],
                self.handler,
                self.alerter,
                state_file=os.path.join(config.state_dir, f"{chain.name}.json"),
                confirmations=config.block_confirmations,
                stuck_after_sec=config.height_stuck_alert_sec,
            )
            for chain in config.chains
        ]
        self.stop = threading.Event()

    def run(self):
        logging.info(f"Starting cross-chain unlock monitor for {len(self.monitors)} chain(s)...")
        threads = [
            threading.Thread(target=m.run, args=(self.stop, self.config.scan_interval_sec), name=m.cfg.name, daemon=True)
            for m in self.monitors
        ]
        for t in threads:
            t.start()
        try:
            while any(t.is_alive() for t in threads):
                for t in threads:
                    t.join(timeout=1)
        except KeyboardInterrupt:
            logging.info("Shutdown signal received. Exiting...")
        finally:
            self.stop.set()


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - [%(threadName)s] [%(module)s] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    try:
        validator = CrossChainValidator(ConfigManager())
    except Exception as e:
        logging.critical(f"Failed to start monitor: {e}", exc_info=True)
        raise SystemExit(1)
    validator.run()


if __name__ == '__main__':
    # Example .env file:
    # CHAINS_CONFIG_PATH=./config/chains.json
    # ALERT_WEBHOOK_URL=https://hooks.example.com/bridge-alerts
    # STATE_DIR=var
    # SCAN_INTERVAL_SEC=15
    # BLOCK_CONFIRMATIONS=1
    # HEIGHT_STUCK_ALERT_SEC=600
    main()

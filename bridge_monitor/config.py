import json
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv

from .models import ChainConfig


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got '{raw}'")


class ConfigManager:
    """
    Manages the monitor configuration loaded from environment variables and a .env file.

    Per-chain settings (nodes, cross chain manager and proxy contracts) live in the
    JSON file pointed to by CHAINS_CONFIG_PATH; process settings come from the
    environment.
    """
    def __init__(self, env_file_path: str = '.env'):
        load_dotenv(dotenv_path=env_file_path)
        self.chains_config_path: Optional[str] = os.getenv('CHAINS_CONFIG_PATH')
        self.alert_webhook_url: Optional[str] = os.getenv('ALERT_WEBHOOK_URL') or None
        self.state_dir: str = os.getenv('STATE_DIR', 'var')
        self.scan_interval_sec: int = _int_env('SCAN_INTERVAL_SEC', 15)
        self.block_confirmations: int = _int_env('BLOCK_CONFIRMATIONS', 1)
        self.height_stuck_alert_sec: int = _int_env('HEIGHT_STUCK_ALERT_SEC', 600)

        self._validate_config()
        self.chains: List[ChainConfig] = self._load_chains(self.chains_config_path)
        logging.info(f"Configuration loaded with {len(self.chains)} chain(s).")

    def _validate_config(self):
        if not self.chains_config_path:
            raise ValueError('Missing required environment variable for: CHAINS_CONFIG_PATH')
        if self.scan_interval_sec <= 0:
            raise ValueError('SCAN_INTERVAL_SEC must be positive')
        if self.block_confirmations < 0:
            raise ValueError('BLOCK_CONFIRMATIONS must not be negative')

    @staticmethod
    def _load_chains(path: str) -> List[ChainConfig]:
        """Reads the chains JSON file: a list of objects accepted by ChainConfig.from_dict."""
        try:
            with open(path, 'r') as f:
                entries = json.load(f)
        except FileNotFoundError:
            logging.error(f"Chains config file not found at path: {path}")
            raise
        if not isinstance(entries, list) or not entries:
            raise ValueError(f"Chains config {path} must be a non-empty JSON list")

        chains = [ChainConfig.from_dict(entry) for entry in entries]
        seen = set()
        for chain in chains:
            if chain.chain_id in seen:
                raise ValueError(f"Duplicate chain id {chain.chain_id} in {path}")
            seen.add(chain.chain_id)
        return chains

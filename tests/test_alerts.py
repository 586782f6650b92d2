import threading
from unittest.mock import MagicMock

import requests

from bridge_monitor.alerts import Alerter, ChainHeightStuckEvent, InvalidUnlockEvent
from bridge_monitor.models import DstTx
from bridge_monitor.validator import ValidationError

TX = DstTx(src_chain_id=2, src_tx="aa", poly_tx="bb", dst_height=9, dst_tx="cc",
           dst_chain_id=6, dst_asset="asset", to="user", amount=10**20)


class TestFormat:
    def test_invalid_unlock(self):
        title, keys, values = InvalidUnlockEvent(TX, ValidationError(TX, "no lock")).format()
        assert title == "Suspicious unlock on chain 6"
        assert dict(zip(keys, values)) == {
            "Amount": "100000000000000000000",
            "Asset": "asset",
            "To": "user",
            "DstChain": 6,
            "PolyHash": "bb",
            "DstHash": "cc",
            "Error": "no lock",
        }

    def test_height_stuck(self):
        title, keys, values = ChainHeightStuckEvent("ethereum", 612.4, 100, ("http://a",)).format()
        assert title == "Chain node height stopped for ethereum"
        assert values == [100, "612s", ["http://a"]]


class TestAlerter:
    def test_log_only_without_webhook(self, caplog):
        alerter = Alerter()
        alerter._local.session = MagicMock()
        assert alerter.send(InvalidUnlockEvent(TX, ValueError("x"))) is True
        alerter.session.post.assert_not_called()
        assert "Suspicious unlock on chain 6" in caplog.text

    def test_posts_to_webhook(self):
        alerter = Alerter("http://hooks.local/alert")
        alerter._local.session = MagicMock()
        assert alerter.send(ChainHeightStuckEvent("ont", 60, 5, ["n1"])) is True
        args, kwargs = alerter.session.post.call_args
        assert args == ("http://hooks.local/alert",)
        assert kwargs["json"]["title"] == "Chain node height stopped for ont"
        assert kwargs["json"]["fields"][0] == {"name": "CurrentHeight", "value": "5"}

    def test_delivery_failure_is_reported(self):
        alerter = Alerter("http://hooks.local/alert")
        alerter._local.session = MagicMock()
        alerter.session.post.side_effect = requests.exceptions.ConnectionError("refused")
        assert alerter.send(ChainHeightStuckEvent("ont", 60, 5, ["n1"])) is False

    def test_session_per_thread(self):
        alerter = Alerter("http://hooks.local/alert")
        sessions = []
        worker = threading.Thread(target=lambda: sessions.append(alerter.session))
        worker.start()
        worker.join()
        assert alerter.session is alerter.session
        assert sessions[0] is not alerter.session

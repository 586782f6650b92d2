import dataclasses

import pytest

from bridge_monitor.models import ChainConfig, DstTx


def chain_dict(**overrides):
    data = {
        "name": "ethereum",
        "kind": "eth",
        "chain_id": 2,
        "nodes": ["http://node-a", "http://node-b"],
        "ccm_contract": "0xccm",
        "proxy_contracts": ["0xp1", "0xp2"],
    }
    data.update(overrides)
    return data


class TestChainConfig:
    def test_from_dict(self):
        cfg = ChainConfig.from_dict(chain_dict(start_height="100"))
        assert cfg.chain_id == 2
        assert cfg.nodes == ("http://node-a", "http://node-b")
        assert cfg.proxy_contracts == ("0xp1", "0xp2")
        assert cfg.start_height == 100

    def test_single_node_string(self):
        cfg = ChainConfig.from_dict(chain_dict(nodes="http://node-a"))
        assert cfg.nodes == ("http://node-a",)

    def test_missing_key(self):
        data = chain_dict()
        del data["ccm_contract"]
        with pytest.raises(ValueError, match="ccm_contract"):
            ChainConfig.from_dict(data)

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unsupported chain kind"):
            ChainConfig.from_dict(chain_dict(kind="btc"))

    def test_no_nodes(self):
        with pytest.raises(ValueError, match="no nodes"):
            ChainConfig.from_dict(chain_dict(nodes=[]))

    def test_bad_chain_id(self):
        with pytest.raises(ValueError, match="non-integer"):
            ChainConfig.from_dict(chain_dict(chain_id="two"))

    def test_immutable(self):
        cfg = ChainConfig.from_dict(chain_dict())
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.chain_id = 3


class TestDstTx:
    def test_defaults_are_uncorrelated(self):
        tx = DstTx(dst_tx="1234", amount=5)
        assert not tx.is_correlated
        assert tx.amount == 5

    def test_correlated_with_copies_provenance(self):
        unlock = DstTx(dst_tx="1234", dst_chain_id=6, dst_asset="asset", to="user", amount=5)
        ccm = DstTx(src_chain_id=2, src_tx="bbaa", poly_tx="ddcc", dst_height=100)
        tx = unlock.correlated_with(ccm)
        assert tx.is_correlated
        assert (tx.src_chain_id, tx.src_tx, tx.poly_tx, tx.dst_height) == (2, "bbaa", "ddcc", 100)
        assert (tx.dst_tx, tx.dst_chain_id, tx.dst_asset, tx.to, tx.amount) == ("1234", 6, "asset", "user", 5)
        assert not unlock.is_correlated

    def test_correlated_with_height_override(self):
        tx = DstTx(dst_tx="1").correlated_with(DstTx(src_chain_id=2, poly_tx="aa"), dst_height=7)
        assert tx.dst_height == 7

"""Event ABIs of the EVM bridge contracts. Only the events the monitor reads are listed."""


def _event(name, inputs):
    return {
        "anonymous": False,
        "inputs": [
            {"indexed": False, "internalType": ty, "name": arg, "type": ty}
            for arg, ty in inputs
        ],
        "name": name,
        "type": "event",
    }


CCM_ABI = [
    _event("VerifyHeaderAndExecuteTxEvent", [
        ("fromChainID", "uint64"),
        ("toContract", "bytes"),
        ("crossChainTxHash", "bytes"),
        ("fromChainTxHash", "bytes"),
    ]),
]

LOCK_PROXY_ABI = [
    _event("LockEvent", [
        ("fromAssetHash", "address"),
        ("fromAddress", "address"),
        ("toChainId", "uint64"),
        ("toAssetHash", "bytes"),
        ("toAddress", "bytes"),
        ("amount", "uint256"),
    ]),
    _event("UnlockEvent", [
        ("toAssetHash", "address"),
        ("toAddress", "address"),
        ("amount", "uint256"),
    ]),
]

from __future__ import annotations

_PROPERTIES_INPUT = {
    "components": [
        {"internalType": "string", "name": "key", "type": "string"},
        {"internalType": "bytes", "name": "value", "type": "bytes"},
    ],
    "internalType": "struct AspectCore.Property[]",
    "name": "properties",
    "type": "tuple[]",
}

ASPECT_CORE_ABI = [
    {
        "inputs": [
            {"internalType": "bytes", "name": "code", "type": "bytes"},
            _PROPERTIES_INPUT,
            {"internalType": "address", "name": "account", "type": "address"},
            {"internalType": "bytes", "name": "proof", "type": "bytes"},
            {"internalType": "uint256", "name": "joinPoints", "type": "uint256"},
        ],
        "name": "deploy",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "aspectId", "type": "address"},
            {"internalType": "uint256", "name": "aspectVersion", "type": "uint256"},
            {"internalType": "address", "name": "contractAddress", "type": "address"},
            {"internalType": "int8", "name": "priority", "type": "int8"},
        ],
        "name": "bind",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "aspectId", "type": "address"},
            {"internalType": "address", "name": "contractAddress", "type": "address"},
        ],
        "name": "unbind",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

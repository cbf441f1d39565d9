from __future__ import annotations

import re
from typing import Dict


CONFIG_FILE_NAME = "hardhat.config.js"
ENV_FILE_NAME = ".env"
DEFAULT_NETWORK = "artela"

# System contract addresses. Deploy, bind and unbind each address their own
# target; the values coincide today but are overridden independently.
ARTELA_ADDR = "0x0000000000000000000000000000000000A27E14"
ASPECT_ADDR = "0x0000000000000000000000000000000000A27E14"
ASPECT_CORE_ADDR = "0x0000000000000000000000000000000000A27E14"

REGISTRY_ADDRESS_ENV = "ARTELA_REGISTRY_ADDRESS"
ASPECT_ADDRESS_ENV = "ARTELA_ASPECT_ADDRESS"
ASPECT_CORE_ADDRESS_ENV = "ARTELA_ASPECT_CORE_ADDRESS"

# Bit values understood by the Aspect core contract
JOIN_POINTS: Dict[str, int] = {
    "verifyTx": 1,
    "preTxExecute": 2,
    "preContractCall": 4,
    "postContractCall": 8,
    "postTxExecute": 16,
}

DEFAULT_GAS_LIMIT = 9_000_000
DEFAULT_RECEIPT_TIMEOUT = 120
BIND_PRIORITY = 1
BIND_VERSION = 1
PLACEHOLDER_PROOF = b"\x00"

DEFAULT_ENTRY_FILE = "aspect/index.ts"
DEFAULT_TARGET = "debug"
COMPILE_TARGETS = ("debug", "release")
DEFAULT_BUILD_DIR = "build"
DEFAULT_ARTIFACT_EXT = ".bin"
COMPILER_COMMAND = ("npx", "asc")

DEPLOYMENTS_FILE_NAME = "aspects.json"

# Whole-value placeholders such as YOUR_PRIVATE_KEY or <rpc-url>
PLACEHOLDER_PATTERN = re.compile(r"^(?:YOUR[_-]|REPLACE[_-]|<.*>$)", re.IGNORECASE)
GAS_PATTERN = re.compile(r"^\s*([+-]?)(0[xX][0-9a-fA-F]+|\d+)")


__all__ = [
    "CONFIG_FILE_NAME",
    "ENV_FILE_NAME",
    "DEFAULT_NETWORK",
    "ARTELA_ADDR",
    "ASPECT_ADDR",
    "ASPECT_CORE_ADDR",
    "REGISTRY_ADDRESS_ENV",
    "ASPECT_ADDRESS_ENV",
    "ASPECT_CORE_ADDRESS_ENV",
    "JOIN_POINTS",
    "DEFAULT_GAS_LIMIT",
    "DEFAULT_RECEIPT_TIMEOUT",
    "BIND_PRIORITY",
    "BIND_VERSION",
    "PLACEHOLDER_PROOF",
    "DEFAULT_ENTRY_FILE",
    "DEFAULT_TARGET",
    "COMPILE_TARGETS",
    "DEFAULT_BUILD_DIR",
    "DEFAULT_ARTIFACT_EXT",
    "COMPILER_COMMAND",
    "DEPLOYMENTS_FILE_NAME",
    "PLACEHOLDER_PATTERN",
    "GAS_PATTERN",
]

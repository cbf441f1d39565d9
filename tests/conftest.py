from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from eth_account import Account
from web3 import Web3

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
SENDER = Account.from_key(PRIVATE_KEY).address
NODE_URL = "https://betanet-rpc1.artela.network"

HARDHAT_CONFIG = """\
require("@nomicfoundation/hardhat-toolbox");
require("dotenv").config();

/** @type import('hardhat/config').HardhatUserConfig */
module.exports = {
  solidity: "0.8.20",
  networks: {
    hardhat: {
      url: "http://127.0.0.1:8545",
      accounts: ["0x0123"],
    },
    // artela: { url: "http://commented.out" },
    artela: {
      url: "https://betanet-rpc1.artela.network", // public betanet
      accounts: [process.env.PRIVATE_KEY],
    },
  },
};
"""


class RecordingAccount:
    """Real signing, with every signed transaction kept for inspection."""

    def __init__(self) -> None:
        self._account = Account()
        self.signed: List[Dict[str, Any]] = []

    def from_key(self, key):
        return self._account.from_key(key)

    def sign_transaction(self, transaction_dict, private_key):
        self.signed.append(dict(transaction_dict))
        return self._account.sign_transaction(transaction_dict, private_key)


class FakeEth:
    def __init__(self, *, status: int = 1, aspect_address: Optional[str] = None, nonce: int = 5) -> None:
        self.account = RecordingAccount()
        self.gas_price = 2_000_000_000
        self.chain_id = 11822
        self.default_account = None
        self.sent: List[bytes] = []
        self.status = status
        self.aspect_address = aspect_address
        self.nonce = nonce
        self.revert_message = "execution reverted: caller is not the owner"

    def get_transaction_count(self, addr, block_identifier="latest"):
        return self.nonce

    def send_raw_transaction(self, raw):
        self.sent.append(bytes(raw))
        return Web3.keccak(raw)

    def wait_for_transaction_receipt(self, tx_hash, timeout=120):
        receipt: Dict[str, Any] = {
            "transactionHash": tx_hash,
            "status": self.status,
            "blockNumber": 42,
            "gasUsed": 123_456,
            "cumulativeGasUsed": 123_456,
        }
        if self.aspect_address:
            receipt["aspectAddress"] = self.aspect_address
        return receipt

    def call(self, tx, block_identifier=None):
        raise ValueError(self.revert_message)

    @property
    def last_tx(self) -> Dict[str, Any]:
        return self.account.signed[-1]


class FakeWeb3:
    def __init__(self, **kwargs) -> None:
        self.eth = FakeEth(**kwargs)
        self.urls: List[str] = []

    def factory(self, url: str) -> "FakeWeb3":
        self.urls.append(url)
        return self


def unexpected_factory(url: str):
    raise AssertionError(f"chain client must not be created (url={url})")


@pytest.fixture(autouse=True)
def _restore_environ(monkeypatch):
    saved = dict(os.environ)
    for name in ("PRIVATE_KEY", "ARTELA_RPC_URL", "ARTELA_REGISTRY_ADDRESS", "ARTELA_ASPECT_ADDRESS", "ARTELA_ASPECT_CORE_ADDRESS"):
        monkeypatch.delenv(name, raising=False)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> Path:
    """A project directory with a hardhat config and the signing key in the env."""
    (tmp_path / "hardhat.config.js").write_text(HARDHAT_CONFIG, encoding="utf-8")
    monkeypatch.setenv("PRIVATE_KEY", PRIVATE_KEY)
    return tmp_path


@pytest.fixture
def fake_web3() -> FakeWeb3:
    return FakeWeb3()

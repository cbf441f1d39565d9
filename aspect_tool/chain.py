"""web3 helpers shared by the deploy, bind and unbind flows."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import Web3Exception

from .abi import ASPECT_CORE_ABI
from .constants import DEFAULT_GAS_LIMIT, DEFAULT_RECEIPT_TIMEOUT, GAS_PATTERN
from .errors import ChainError, ConfigError, TransactionReverted, ValidationError

# Offline client used only for ABI encoding; it never opens a connection.
_ENCODER = Web3()


@dataclass
class SentTransaction:
    tx_hash: str
    receipt: Dict[str, Any]
    raw_receipt: Any


def init_web3(rpc_url: str) -> Web3:
    if not rpc_url:
        raise ChainError("Node URL is not configured.")
    try:
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        _ = w3.eth.chain_id  # fails fast when the node is unreachable
        return w3
    except Exception as exc:
        raise ChainError(f"Unable to connect to node at {rpc_url}: {exc}") from exc


def derive_account(w3: Web3, private_key: str) -> LocalAccount:
    """Derive the sender from ``private_key`` and make it the client's default account."""
    try:
        account = w3.eth.account.from_key(private_key.strip())
    except (ValueError, TypeError) as exc:
        raise ConfigError("Private key could not be parsed.") from exc
    w3.eth.default_account = account.address
    return account


def parse_gas_limit(gas: Any) -> int:
    """Leading-integer parse of ``gas``; anything non-positive falls back to the default."""
    if gas is None or isinstance(gas, bool):
        return DEFAULT_GAS_LIMIT
    if isinstance(gas, int):
        return gas if gas > 0 else DEFAULT_GAS_LIMIT
    match = GAS_PATTERN.match(str(gas))
    if not match:
        return DEFAULT_GAS_LIMIT
    sign, digits = match.groups()
    value = int(digits, 16) if digits[:2].lower() == "0x" else int(digits, 10)
    if sign == "-":
        value = -value
    return value if value > 0 else DEFAULT_GAS_LIMIT


def to_checksum(value: Optional[str], label: str) -> str:
    candidate = (value or "").strip()
    if not Web3.is_address(candidate):
        raise ValidationError(f"{label} is not a valid address: {value!r}")
    return Web3.to_checksum_address(candidate)


def aspect_core_contract(address: Optional[str] = None) -> Contract:
    if address is None:
        return _ENCODER.eth.contract(abi=ASPECT_CORE_ABI)
    return _ENCODER.eth.contract(address=Web3.to_checksum_address(address), abi=ASPECT_CORE_ABI)


def encode_contract_call(contract: Contract, fn_name: str, args: Sequence[Any] | None = None) -> str:
    """Encode a contract function call, compatible with Web3.py v6/v7."""
    call_args = list(args or [])

    def _try_encode(method_name: str) -> Optional[str]:
        encode_fn = getattr(contract, method_name, None)
        if not callable(encode_fn):
            return None
        for key in ("fn_name", "abi_element_identifier"):
            try:
                return encode_fn(**{key: fn_name, "args": call_args})
            except TypeError:
                continue
        try:
            return encode_fn(fn_name, args=call_args)
        except TypeError:
            return None

    for candidate in ("encode_abi", "encodeABI"):
        encoded = _try_encode(candidate)
        if encoded is not None:
            return encoded

    fn = getattr(contract.functions, fn_name)(*call_args)
    encode_tx = getattr(fn, "_encode_transaction_data", None)
    if callable(encode_tx):
        return encode_tx()
    raise AttributeError(f"Unable to encode contract call for '{fn_name}'.")


def next_nonce(w3: Web3, addr: str) -> int:
    try:
        return w3.eth.get_transaction_count(addr, "pending")
    except Exception:
        return w3.eth.get_transaction_count(addr)


def build_transaction(
    w3: Web3,
    *,
    sender: str,
    to: str,
    data: str,
    gas: int,
    gas_price: Optional[int] = None,
) -> Dict[str, Any]:
    return {
        "from": sender,
        "to": Web3.to_checksum_address(to),
        "data": data,
        "gasPrice": w3.eth.gas_price if gas_price is None else gas_price,
        "gas": gas,
        "nonce": next_nonce(w3, sender),
        "chainId": w3.eth.chain_id,
    }


def format_receipt(receipt: Any) -> Dict[str, Any]:
    if receipt is None:
        return {"status": "pending"}
    tx_hash = receipt.get("transactionHash")
    formatted: Dict[str, Any] = {
        "transactionHash": Web3.to_hex(tx_hash) if tx_hash else None,
        "status": receipt.get("status"),
        "blockNumber": receipt.get("blockNumber"),
        "gasUsed": receipt.get("gasUsed"),
        "cumulativeGasUsed": receipt.get("cumulativeGasUsed"),
    }
    for key in ("from", "to", "contractAddress", "aspectAddress"):
        if receipt.get(key):
            formatted[key] = receipt.get(key)
    return formatted


def sign_and_send(
    w3: Web3,
    private_key: str,
    tx: Dict[str, Any],
    *,
    timeout: int = DEFAULT_RECEIPT_TIMEOUT,
    log: Optional[Callable[[str], None]] = None,
) -> SentTransaction:
    """Sign ``tx``, broadcast it and block until its receipt arrives.

    Raises ``TransactionReverted`` when the receipt status is not 1.
    """
    _log = log or (lambda _message: None)
    try:
        signed = w3.eth.account.sign_transaction(tx, private_key=private_key)
    except Exception as exc:
        raise ChainError(f"Failed to sign transaction: {exc}") from exc
    raw_tx = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction", None)
    if raw_tx is None:
        raise ChainError("Signed transaction missing raw_transaction/rawTransaction")

    local_hash = Web3.keccak(raw_tx)
    _log("sending signed transaction...")
    try:
        tx_hash = w3.eth.send_raw_transaction(raw_tx)
    except Web3Exception as exc:
        if "already known" not in str(exc):
            raise ChainError(f"Error broadcasting transaction: {exc}") from exc
        tx_hash = local_hash
    except Exception as exc:
        raise ChainError(f"Error broadcasting transaction: {exc}") from exc

    tx_hash_hex = Web3.to_hex(tx_hash)
    try:
        receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    except Exception as exc:
        raise ChainError(f"Transaction {tx_hash_hex} not confirmed: {exc}") from exc

    formatted = format_receipt(receipt)
    _log(f"receipt: {formatted}")
    if formatted.get("status") not in (1, True):
        reason = _extract_revert_reason(w3, tx, receipt)
        message = f"Transaction {tx_hash_hex} reverted"
        if reason:
            message = f"{message}: {reason}"
        raise TransactionReverted(message, tx_hash_hex, reason)
    return SentTransaction(tx_hash=tx_hash_hex, receipt=formatted, raw_receipt=receipt)


def _extract_revert_reason(w3: Web3, tx: Dict[str, Any], receipt: Any) -> Optional[str]:
    block_number = receipt.get("blockNumber")
    if block_number is None:
        return None

    call_tx = dict(tx)
    for key in ("nonce", "gas", "gasPrice", "chainId"):
        call_tx.pop(key, None)
    try:
        w3.eth.call(call_tx, block_identifier=block_number)
    except Exception as exc:  # expected: the replayed call raises with revert data
        message = str(exc)
        if "execution reverted:" in message:
            return message.split("execution reverted:", 1)[1].strip()
        if message in {"execution reverted", "('execution reverted', 'no data')"}:
            return None
        return message or None
    return None

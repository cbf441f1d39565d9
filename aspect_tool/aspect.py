"""Deploy, bind and unbind flows for Artela Aspects.

Every flow resolves the project configuration first and validates its input
before the chain client is created, so bad input never reaches the node.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.utils.address import get_create_address

from .chain import (
    aspect_core_contract,
    build_transaction,
    derive_account,
    encode_contract_call,
    init_web3,
    parse_gas_limit,
    sign_and_send,
    to_checksum,
)
from .config import ArtelaConfig, AspectAddresses, resolve_addresses, resolve_config
from .constants import (
    BIND_PRIORITY,
    BIND_VERSION,
    DEFAULT_NETWORK,
    DEFAULT_RECEIPT_TIMEOUT,
    JOIN_POINTS,
    PLACEHOLDER_PROOF,
)
from .errors import ValidationError
from .logging_utils import compose_log

Web3Factory = Callable[[str], Web3]


@dataclass
class DeployRequest:
    binary_path: str
    properties: Optional[str] = None
    join_points: Optional[Sequence[str]] = None
    gas: Any = None


@dataclass
class DeployResult:
    aspect_id: str
    tx_hash: str
    sender: str
    join_points: List[str]
    receipt: Dict[str, Any] = field(default_factory=dict)

    def to_state(self) -> Dict[str, Any]:
        return {
            "aspectId": self.aspect_id,
            "txHash": self.tx_hash,
            "sender": self.sender,
            "joinPoints": list(self.join_points),
        }


@dataclass
class TxResult:
    tx_hash: str
    receipt: Dict[str, Any] = field(default_factory=dict)


def parse_properties(raw: Optional[str]) -> List[Tuple[str, bytes]]:
    """Parse the properties JSON into ``(key, value)`` pairs; absent means none."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Properties are not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ValidationError("Properties must be a JSON array of {\"key\", \"value\"} objects.")

    properties: List[Tuple[str, bytes]] = []
    for item in data:
        if not isinstance(item, dict) or not isinstance(item.get("key"), str) or not item["key"]:
            raise ValidationError(f"Invalid property entry: {item!r}")
        properties.append((item["key"], _property_value(item.get("value"))))
    return properties


def _property_value(value: Any) -> bytes:
    if isinstance(value, str):
        if value[:2].lower() == "0x":
            try:
                return bytes.fromhex(value[2:])
            except ValueError:
                pass
        return value.encode("utf-8")
    if value is None:
        return b""
    return json.dumps(value).encode("utf-8")


def validate_join_points(join_points: Optional[Sequence[str]]) -> List[str]:
    """Return ``join_points`` as a list; the first unknown name is an error."""
    points = list(join_points or [])
    for point in points:
        if point not in JOIN_POINTS:
            raise ValidationError(f"Invalid join point: {point}")
    return points


def join_points_mask(join_points: Sequence[str]) -> int:
    mask = 0
    for point in join_points:
        mask |= JOIN_POINTS[point]
    return mask


def read_aspect_code(binary_path: str) -> str:
    """Return the compiled module as a hex string."""
    path = Path(binary_path)
    if not path.is_file():
        raise ValidationError(f"Aspect binary not found: {binary_path}")
    code = path.read_bytes().hex()
    if not code:
        raise ValidationError("aspectCode cannot be empty")
    return code


def _connect(
    config: ArtelaConfig, web3_factory: Optional[Web3Factory]
) -> Tuple[Web3, LocalAccount]:
    w3 = (web3_factory or init_web3)(config.node_url)
    sender = derive_account(w3, config.private_key)
    return w3, sender


def deploy_aspect(
    request: DeployRequest,
    *,
    base_dir: Optional[Path] = None,
    network: str = DEFAULT_NETWORK,
    addresses: Optional[AspectAddresses] = None,
    web3_factory: Optional[Web3Factory] = None,
    timeout: int = DEFAULT_RECEIPT_TIMEOUT,
    log: Optional[Callable[[str], None]] = None,
) -> DeployResult:
    _log = compose_log(log)
    config = resolve_config(base_dir, network)
    addresses = addresses or resolve_addresses()

    properties = parse_properties(request.properties)
    join_points = validate_join_points(request.join_points)
    aspect_code = read_aspect_code(request.binary_path)

    w3, sender = _connect(config, web3_factory)
    gas_price = w3.eth.gas_price
    _log(f"from address: {sender.address}")

    core = aspect_core_contract()
    data = encode_contract_call(
        core,
        "deploy",
        [
            bytes.fromhex(aspect_code),
            properties,
            sender.address,
            PLACEHOLDER_PROOF,
            join_points_mask(join_points),
        ],
    )
    tx = build_transaction(
        w3,
        sender=sender.address,
        to=addresses.registry,
        data=data,
        gas=parse_gas_limit(request.gas),
        gas_price=gas_price,
    )
    sent = sign_and_send(w3, sender.key, tx, timeout=timeout, log=_log)

    aspect_id = sent.raw_receipt.get("aspectAddress") or get_create_address(
        sender.address, tx["nonce"]
    )
    aspect_id = Web3.to_checksum_address(aspect_id)
    _log(f"== deploy aspectID == {aspect_id}")
    return DeployResult(
        aspect_id=aspect_id,
        tx_hash=sent.tx_hash,
        sender=sender.address,
        join_points=join_points,
        receipt=sent.receipt,
    )


def bind_aspect(
    contract_address: str,
    aspect_id: str,
    gas: Any = None,
    *,
    base_dir: Optional[Path] = None,
    network: str = DEFAULT_NETWORK,
    addresses: Optional[AspectAddresses] = None,
    web3_factory: Optional[Web3Factory] = None,
    timeout: int = DEFAULT_RECEIPT_TIMEOUT,
    log: Optional[Callable[[str], None]] = None,
) -> TxResult:
    """Bind ``aspect_id`` to ``contract_address`` with priority 1 and version 1."""
    _log = compose_log(log)
    config = resolve_config(base_dir, network)
    addresses = addresses or resolve_addresses()
    contract = to_checksum(contract_address, "Contract address")
    aspect = to_checksum(aspect_id, "Aspect id")

    w3, sender = _connect(config, web3_factory)
    data = encode_contract_call(
        aspect_core_contract(),
        "bind",
        [aspect, BIND_VERSION, contract, BIND_PRIORITY],
    )
    tx = build_transaction(
        w3,
        sender=sender.address,
        to=addresses.aspect,
        data=data,
        gas=parse_gas_limit(gas),
    )
    sent = sign_and_send(w3, sender.key, tx, timeout=timeout, log=_log)
    _log("== aspect bind success ==")
    return TxResult(tx_hash=sent.tx_hash, receipt=sent.receipt)


def unbind_aspect(
    contract_address: str,
    aspect_id: str,
    gas: Any = None,
    *,
    base_dir: Optional[Path] = None,
    network: str = DEFAULT_NETWORK,
    addresses: Optional[AspectAddresses] = None,
    web3_factory: Optional[Web3Factory] = None,
    timeout: int = DEFAULT_RECEIPT_TIMEOUT,
    log: Optional[Callable[[str], None]] = None,
) -> TxResult:
    """Unbind ``aspect_id`` from ``contract_address``.

    The call is sent to the Aspect core contract's own address, which is
    configured separately from the address used by bind.
    """
    _log = compose_log(log)
    config = resolve_config(base_dir, network)
    addresses = addresses or resolve_addresses()
    contract = to_checksum(contract_address, "Contract address")
    aspect = to_checksum(aspect_id, "Aspect id")

    w3, sender = _connect(config, web3_factory)
    core = aspect_core_contract(addresses.aspect_core)
    data = encode_contract_call(core, "unbind", [aspect, contract])
    tx = build_transaction(
        w3,
        sender=sender.address,
        to=core.address,
        data=data,
        gas=parse_gas_limit(gas),
    )
    sent = sign_and_send(w3, sender.key, tx, timeout=timeout, log=_log)
    _log("== aspect unbind success ==")
    return TxResult(tx_hash=sent.tx_hash, receipt=sent.receipt)

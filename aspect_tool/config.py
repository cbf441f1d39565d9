"""Project configuration for the Aspect tool.

The node URL and signing key come from the ``networks`` section of the
project's ``hardhat.config.js``. The file is never executed: only the
declarative shape below is understood::

    networks: {
      artela: {
        url: "https://betanet-rpc1.artela.network",
        accounts: [process.env.PRIVATE_KEY],
      },
    }

Values may be string literals, ``process.env.NAME`` references or template
literals interpolating such references (``0x${process.env.KEY}``),
optionally chained with ``||`` / ``??`` fallbacks. References resolve against
the process environment after ``<project>/.env`` has been loaded.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .constants import (
    ARTELA_ADDR,
    ASPECT_ADDR,
    ASPECT_ADDRESS_ENV,
    ASPECT_CORE_ADDR,
    ASPECT_CORE_ADDRESS_ENV,
    CONFIG_FILE_NAME,
    DEFAULT_NETWORK,
    ENV_FILE_NAME,
    PLACEHOLDER_PATTERN,
    REGISTRY_ADDRESS_ENV,
)
from .errors import ConfigError

_LITERAL = r"""(?:"((?:[^"\\]|\\.)*)"|'((?:[^'\\]|\\.)*)'|`((?:[^`\\]|\\.)*)`)"""
_ENV_REF = r"""process\.env(?:\.([A-Za-z_][A-Za-z0-9_]*)|\[\s*["']([A-Za-z_][A-Za-z0-9_]*)["']\s*\])"""
_TERM_RE = re.compile(rf"\s*(?:{_LITERAL}|{_ENV_REF})")
_OR_RE = re.compile(r"\s*(?:\|\||\?\?)")
_INTERPOLATION_RE = re.compile(r"\$\{([^}]*)\}")
_ENV_REF_RE = re.compile(rf"\s*{_ENV_REF}\s*$")
_QUOTES = "\"'`"


@dataclass(frozen=True)
class NetworkSettings:
    url: Optional[str] = None
    # One slot per entry, in order; ``None`` where an entry did not resolve.
    accounts: List[Optional[str]] = field(default_factory=list)
    account_sources: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ArtelaConfig:
    node_url: str
    private_key: str
    network: str = DEFAULT_NETWORK
    config_path: Optional[Path] = None

    def masked_key(self) -> str:
        key = self.private_key
        return f"{key[:8]}...{key[-4:]}" if len(key) > 12 else "***"


@dataclass(frozen=True)
class AspectAddresses:
    registry: str = ARTELA_ADDR
    aspect: str = ASPECT_ADDR
    aspect_core: str = ASPECT_CORE_ADDR


def is_placeholder(value: str) -> bool:
    return bool(PLACEHOLDER_PATTERN.match(value.strip()))


def load_env_file(path: Path) -> bool:
    """Load ``path`` into ``os.environ`` without overriding existing values."""
    if not path.exists():
        return False
    return load_dotenv(path, override=False)


def _strip_comments(source: str) -> str:
    out: List[str] = []
    quote: Optional[str] = None
    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        if quote:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(source[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in _QUOTES:
            quote = ch
        elif source.startswith("//", i):
            end = source.find("\n", i)
            i = n if end == -1 else end
            continue
        elif source.startswith("/*", i):
            end = source.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _enclosed(source: str, open_index: int) -> Optional[str]:
    """Return the text between the bracket at ``open_index`` and its match."""
    opener = source[open_index]
    closer = "}" if opener == "{" else "]"
    depth = 0
    quote: Optional[str] = None
    i = open_index
    while i < len(source):
        ch = source[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return source[open_index + 1 : i]
        i += 1
    return None


def _find_block(source: str, key: str, opener: str = "{") -> Optional[str]:
    name = re.escape(key)
    pattern = re.compile(
        rf"(?:^|[\s,{{])(?:{name}|\"{name}\"|'{name}')\s*:\s*{re.escape(opener)}"
    )
    match = pattern.search(source)
    if not match:
        return None
    return _enclosed(source, match.end() - 1)


def _split_top_level(text: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch in "{[(":
            depth += 1
        elif ch in "}])":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(text[start:i])
            start = i + 1
        i += 1
    parts.append(text[start:])
    return [part for part in parts if part.strip()]


def _term_value(match: re.Match, env: Mapping[str, str]) -> Optional[str]:
    double, single, backtick, env_attr, env_item = match.groups()
    if backtick is not None:
        return _interpolate(backtick, env)
    literal = double if double is not None else single
    if literal is not None:
        return _unescape(literal)
    return env.get(env_attr or env_item)


def _unescape(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text)


def _interpolate(template: str, env: Mapping[str, str]) -> Optional[str]:
    """Expand ``${process.env.NAME}`` in a template literal.

    An unset reference leaves the whole template unset. Any other
    interpolated expression is rejected.
    """
    parts: List[str] = []
    missing = False
    pos = 0
    for match in _INTERPOLATION_RE.finditer(template):
        ref = _ENV_REF_RE.match(match.group(1))
        if not ref:
            raise ConfigError(
                f"Unsupported template expression in {CONFIG_FILE_NAME}: ${{{match.group(1)}}}"
            )
        value = env.get(ref.group(1) or ref.group(2))
        if not value:
            missing = True
        parts.append(_unescape(template[pos : match.start()]))
        parts.append(value or "")
        pos = match.end()
    parts.append(_unescape(template[pos:]))
    return None if missing else "".join(parts)


def _evaluate(text: str, pos: int, env: Mapping[str, str]) -> Tuple[Optional[str], bool]:
    """Evaluate ``term (|| term)*`` at ``pos``; the first non-empty term wins."""
    value: Optional[str] = None
    matched = False
    while True:
        term = _TERM_RE.match(text, pos)
        if not term:
            break
        matched = True
        candidate = _term_value(term, env)
        if value is None and candidate and not is_placeholder(candidate):
            value = candidate
        pos = term.end()
        op = _OR_RE.match(text, pos)
        if not op:
            break
        pos = op.end()
    return value, matched


def parse_hardhat_config(
    source: str, network: str = DEFAULT_NETWORK, env: Optional[Mapping[str, str]] = None
) -> NetworkSettings:
    """Extract ``url`` and ``accounts`` of ``network`` from config source text."""
    env = os.environ if env is None else env
    text = _strip_comments(source)
    networks = _find_block(text, "networks")
    if networks is None:
        return NetworkSettings()
    block = _find_block(networks, network)
    if block is None:
        return NetworkSettings()

    url: Optional[str] = None
    url_match = re.search(r"(?:^|[\s,{])(?:url|\"url\"|'url')\s*:", block)
    if url_match:
        url, _ = _evaluate(block, url_match.end(), env)

    accounts: List[Optional[str]] = []
    sources: List[str] = []
    accounts_block = _find_block(block, "accounts", "[")
    if accounts_block is not None:
        for entry in _split_top_level(accounts_block):
            value, _ = _evaluate(entry, 0, env)
            accounts.append(value or None)
            sources.append(entry.strip())

    return NetworkSettings(url=url, accounts=accounts, account_sources=sources)


def resolve_config(
    base_dir: Optional[Path] = None, network: str = DEFAULT_NETWORK
) -> ArtelaConfig:
    """Resolve node URL and private key for ``network`` from the project config.

    Raises ``ConfigError`` (exit status 0) when the config file, the URL or the
    accounts are missing.
    """
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    config_path = base / CONFIG_FILE_NAME
    if not config_path.exists():
        raise ConfigError(f"{CONFIG_FILE_NAME} does not exist. Please create it.")

    load_env_file(base / ENV_FILE_NAME)
    settings = parse_hardhat_config(config_path.read_text(encoding="utf-8"), network)

    if not settings.url:
        raise ConfigError(
            f"Node URL for network '{network}' is not configured in {CONFIG_FILE_NAME}. Please set it."
        )
    if not settings.accounts:
        raise ConfigError(
            f"Accounts for network '{network}' are not configured in {CONFIG_FILE_NAME}. Please set them."
        )
    if settings.accounts[0] is None:
        raise ConfigError(
            f"Accounts for network '{network}': the first entry ({settings.account_sources[0]}) "
            f"in {CONFIG_FILE_NAME} is not set. Please set it."
        )

    return ArtelaConfig(
        node_url=settings.url.strip(),
        private_key=settings.accounts[0].strip(),
        network=network,
        config_path=config_path,
    )


def resolve_addresses(env: Optional[Mapping[str, str]] = None) -> AspectAddresses:
    env = os.environ if env is None else env

    def _pick(name: str, default: str) -> str:
        value = (env.get(name) or "").strip()
        return value if value and not is_placeholder(value) else default

    return AspectAddresses(
        registry=_pick(REGISTRY_ADDRESS_ENV, ARTELA_ADDR),
        aspect=_pick(ASPECT_ADDRESS_ENV, ASPECT_ADDR),
        aspect_core=_pick(ASPECT_CORE_ADDRESS_ENV, ASPECT_CORE_ADDR),
    )

from __future__ import annotations

import os

import pytest

from aspect_tool.config import is_placeholder, parse_hardhat_config, resolve_addresses, resolve_config
from aspect_tool.constants import ARTELA_ADDR, ASPECT_ADDR
from aspect_tool.errors import ConfigError

from conftest import NODE_URL, PRIVATE_KEY


def test_resolves_url_and_first_account(project):
    config = resolve_config(project)
    assert config.node_url == NODE_URL
    assert config.private_key == PRIVATE_KEY
    assert config.network == "artela"
    assert config.config_path == project / "hardhat.config.js"


def test_missing_config_file_exits_zero(tmp_path):
    with pytest.raises(ConfigError) as excinfo:
        resolve_config(tmp_path)
    assert excinfo.value.exit_code == 0
    assert "hardhat.config.js does not exist" in str(excinfo.value)


def test_missing_url(tmp_path):
    (tmp_path / "hardhat.config.js").write_text(
        'module.exports = { networks: { artela: { accounts: ["0xabc"] } } };'
    )
    with pytest.raises(ConfigError, match="Node URL"):
        resolve_config(tmp_path)


def test_unset_env_account_counts_as_missing(project):
    # PRIVATE_KEY is referenced but no longer set
    del os.environ["PRIVATE_KEY"]
    with pytest.raises(ConfigError, match="Accounts") as excinfo:
        resolve_config(project)
    assert excinfo.value.exit_code == 0


def test_empty_accounts_list(tmp_path):
    (tmp_path / "hardhat.config.js").write_text(
        'module.exports = { networks: { artela: { url: "http://node", accounts: [] } } };'
    )
    with pytest.raises(ConfigError, match="Accounts"):
        resolve_config(tmp_path)


def test_unknown_network(project):
    with pytest.raises(ConfigError, match="'mainnet'"):
        resolve_config(project, network="mainnet")


def test_selects_requested_network(project):
    config = resolve_config(project, network="hardhat")
    assert config.node_url == "http://127.0.0.1:8545"
    assert config.private_key == "0x0123"


def test_env_file_is_loaded(tmp_path):
    (tmp_path / "hardhat.config.js").write_text(
        "module.exports = { networks: { artela: {\n"
        "  url: process.env.ARTELA_RPC_URL,\n"
        "  accounts: [process.env['PRIVATE_KEY']],\n"
        "} } };\n"
    )
    (tmp_path / ".env").write_text(
        f"ARTELA_RPC_URL=http://from-dotenv:8545\nPRIVATE_KEY={PRIVATE_KEY}\n"
    )
    config = resolve_config(tmp_path)
    assert config.node_url == "http://from-dotenv:8545"
    assert config.private_key == PRIVATE_KEY


def test_fallback_chain_and_trimming():
    source = """
    module.exports = {
      networks: {
        artela: {
          url: process.env.ARTELA_RPC_URL || 'https://fallback.example',
          accounts: ["  0xkey  ", process.env.SECOND_KEY],
        },
      },
    };
    """
    settings = parse_hardhat_config(source, env={})
    assert settings.url == "https://fallback.example"
    assert settings.accounts == ["  0xkey  ", None]


def test_placeholder_values_are_ignored():
    source = 'module.exports = { networks: { artela: { url: "http://node", accounts: ["YOUR_PRIVATE_KEY"] } } };'
    settings = parse_hardhat_config(source, env={})
    assert settings.url == "http://node"
    assert settings.accounts == [None]


def test_private_key_is_trimmed(tmp_path, monkeypatch):
    (tmp_path / "hardhat.config.js").write_text(
        "module.exports = { networks: { artela: { url: 'http://node', accounts: [process.env.PRIVATE_KEY] } } };"
    )
    monkeypatch.setenv("PRIVATE_KEY", f"  {PRIVATE_KEY}\n")
    assert resolve_config(tmp_path).private_key == PRIVATE_KEY


def test_address_overrides_are_independent():
    override = "0x00000000000000000000000000000000000000AA"
    addresses = resolve_addresses({"ARTELA_ASPECT_CORE_ADDRESS": override})
    assert addresses.registry == ARTELA_ADDR
    assert addresses.aspect == ASPECT_ADDR
    assert addresses.aspect_core == override


def test_unresolved_first_account_keeps_its_slot(tmp_path):
    source = (
        "module.exports = { networks: { artela: {\n"
        "  url: 'http://node',\n"
        "  accounts: [process.env.DEPLOYER_KEY, '0xsecond'],\n"
        "} } };\n"
    )
    settings = parse_hardhat_config(source, env={})
    assert settings.accounts == [None, "0xsecond"]

    (tmp_path / "hardhat.config.js").write_text(source)
    with pytest.raises(ConfigError, match="DEPLOYER_KEY") as excinfo:
        resolve_config(tmp_path)
    assert excinfo.value.exit_code == 0


def test_placeholder_first_account_is_not_used(tmp_path):
    (tmp_path / "hardhat.config.js").write_text(
        "module.exports = { networks: { artela: { url: 'http://node', accounts: ['YOUR_PRIVATE_KEY', '0xsecond'] } } };"
    )
    with pytest.raises(ConfigError, match="first entry"):
        resolve_config(tmp_path)


@pytest.mark.parametrize(
    "url",
    ["https://rpc.yourcompany.io", "https://replacement-node.example/rpc", "http://node?a=1&b=2"],
)
def test_url_with_placeholder_words_is_kept(url):
    source = f'module.exports = {{ networks: {{ artela: {{ url: "{url}", accounts: ["0xabc"] }} }} }};'
    assert parse_hardhat_config(source, env={}).url == url


@pytest.mark.parametrize("value", ["YOUR_PRIVATE_KEY", "your-key-here", "REPLACE_ME", "<private key>"])
def test_placeholder_detection(value):
    assert is_placeholder(value)
    assert not is_placeholder("https://rpc.yourcompany.io")


def test_template_literal_interpolates_env():
    source = (
        "module.exports = { networks: { artela: {\n"
        "  url: `https://${process.env.RPC_HOST}/rpc`,\n"
        "  accounts: [`0x${process.env['RAW_KEY']}`],\n"
        "} } };\n"
    )
    settings = parse_hardhat_config(source, env={"RPC_HOST": "node.example", "RAW_KEY": "abcd"})
    assert settings.url == "https://node.example/rpc"
    assert settings.accounts == ["0xabcd"]

    unset = parse_hardhat_config(source, env={"RPC_HOST": "node.example"})
    assert unset.accounts == [None]


def test_template_literal_rejects_other_expressions():
    source = "module.exports = { networks: { artela: { url: 'http://node', accounts: [`0x${key}`] } } };"
    with pytest.raises(ConfigError, match="Unsupported template expression"):
        parse_hardhat_config(source, env={})


def test_placeholder_address_override_falls_back():
    addresses = resolve_addresses({"ARTELA_REGISTRY_ADDRESS": "<registry address>"})
    assert addresses.registry == ARTELA_ADDR

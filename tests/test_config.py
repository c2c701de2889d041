from shredwatch.config import (
    DEFAULT_CREATE_ACCOUNT,
    DEFAULT_SERVER_URL,
    DEFAULT_SWAP_ACCOUNT,
    PUMPAMM_PROGRAM_ID,
    Config,
)
from shredwatch.model import Pubkey

EXTRA = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"


def _strs(config):
    return [str(key) for key in config.target_accounts]


def test_defaults_from_empty_environment():
    config = Config.from_env({})
    assert config.server_url == "http://127.0.0.1:9999"
    assert _strs(config) == [DEFAULT_CREATE_ACCOUNT, DEFAULT_SWAP_ACCOUNT, PUMPAMM_PROGRAM_ID]


def test_server_url_override():
    config = Config.from_env({"SHREDSTREAM_SERVER_URL": "http://localhost:1234"})
    assert config.server_url == "http://localhost:1234"


def test_account_overrides_and_extra_target():
    config = Config.from_env({
        "CREATE_ACCOUNT": EXTRA,
        "SWAP_ACCOUNT": PUMPAMM_PROGRAM_ID,
        "TARGET_ACCOUNT": DEFAULT_SWAP_ACCOUNT,
    })
    assert _strs(config) == [EXTRA, PUMPAMM_PROGRAM_ID, PUMPAMM_PROGRAM_ID, DEFAULT_SWAP_ACCOUNT]


def test_invalid_accounts_are_skipped():
    config = Config.from_env({
        "CREATE_ACCOUNT": "not-a-key",
        "SWAP_ACCOUNT": "",
        "TARGET_ACCOUNT": "0000",
    })
    assert config.target_accounts == [Pubkey.from_base58(PUMPAMM_PROGRAM_ID)]
    assert config.server_url == DEFAULT_SERVER_URL


def test_direct_construction_defaults():
    config = Config()
    assert config.server_url == DEFAULT_SERVER_URL
    assert config.target_accounts == []
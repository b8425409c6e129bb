"""Tests for VerifierConfig and environment loading."""

import pytest

from jfs_verifier import ConfigurationError, SignatureEncoding, VerifierConfig

ENV_VARS = (
    "JFS_SIGNATURE_ENCODING",
    "JFS_REQUIRE_CUSTODY",
    "JFS_DEFAULT_RECOVERY_ID",
    "JFS_ORACLE_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so values loaded by dotenv are removed again on teardown
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults():
    config = VerifierConfig()
    assert config.encoding is SignatureEncoding.RAW_65
    assert config.require_custody is True
    assert config.default_recovery_id == 27
    assert config.oracle_timeout == 10.0


@pytest.mark.parametrize("encoding, length, recoverable", [
    (SignatureEncoding.RAW_65, 65, True),
    (SignatureEncoding.HEX_TEXT_IN_BASE64, 65, True),
    (SignatureEncoding.RAW_64_NO_RECOVERY, 64, False),
    (SignatureEncoding.RAW_64_DEFAULT_RECOVERY, 64, True),
])
def test_encoding_properties(encoding, length, recoverable):
    assert encoding.expected_length == length
    assert encoding.recoverable is recoverable


@pytest.mark.parametrize("text", ["hex_text_in_base64", "HEX-TEXT-IN-BASE64", " hex_text_in_base64 "])
def test_parse_encoding(text):
    assert SignatureEncoding.parse(text) is SignatureEncoding.HEX_TEXT_IN_BASE64


def test_parse_unknown_encoding():
    with pytest.raises(ConfigurationError, match="raw_65"):
        SignatureEncoding.parse("auto")


def test_string_encoding_is_coerced():
    assert VerifierConfig(encoding="raw_64_no_recovery").encoding is SignatureEncoding.RAW_64_NO_RECOVERY


@pytest.mark.parametrize("kwargs", [{"default_recovery_id": 0}, {"default_recovery_id": 29}, {"oracle_timeout": 0}])
def test_invalid_values(kwargs):
    with pytest.raises(ConfigurationError):
        VerifierConfig(**kwargs)


def test_from_env_defaults(clean_env):
    assert VerifierConfig.from_env() == VerifierConfig()


def test_from_env_variables(clean_env):
    clean_env.setenv("JFS_SIGNATURE_ENCODING", "raw_64_default_recovery")
    clean_env.setenv("JFS_REQUIRE_CUSTODY", "false")
    clean_env.setenv("JFS_DEFAULT_RECOVERY_ID", "28")
    clean_env.setenv("JFS_ORACLE_TIMEOUT", "2.5")
    assert VerifierConfig.from_env() == VerifierConfig(
        encoding=SignatureEncoding.RAW_64_DEFAULT_RECOVERY,
        require_custody=False,
        default_recovery_id=28,
        oracle_timeout=2.5,
    )


def test_from_env_file(clean_env, tmp_path):
    env_file = tmp_path / "jfs.env"
    env_file.write_text("JFS_SIGNATURE_ENCODING=hex_text_in_base64\nJFS_DEFAULT_RECOVERY_ID=0x1c\n")
    config = VerifierConfig.from_env(str(env_file))
    assert config.encoding is SignatureEncoding.HEX_TEXT_IN_BASE64
    assert config.default_recovery_id == 28


def test_from_env_missing_file(clean_env):
    with pytest.raises(ConfigurationError):
        VerifierConfig.from_env("does-not-exist.env")


@pytest.mark.parametrize("name, value", [
    ("JFS_REQUIRE_CUSTODY", "maybe"),
    ("JFS_DEFAULT_RECOVERY_ID", "twenty-seven"),
    ("JFS_ORACLE_TIMEOUT", "soon"),
    ("JFS_SIGNATURE_ENCODING", "guess"),
])
def test_from_env_rejects_bad_values(clean_env, name, value):
    clean_env.setenv(name, value)
    with pytest.raises(ConfigurationError):
        VerifierConfig.from_env()

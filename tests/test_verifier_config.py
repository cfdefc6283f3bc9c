import json

import pytest

from trie_hash import blake2b256, keccak256
from verifier_config import VerifierConfig, load_config


def test_defaults():
    cfg = VerifierConfig()
    assert cfg.hash_name == "keccak256"
    assert cfg.key_width == 32
    assert cfg.max_workers == 1
    assert cfg.hasher is keccak256
    assert cfg.depth_limit(b"\x00" * 32) == 128


def test_depth_limit_override():
    assert VerifierConfig(max_depth=5).depth_limit(b"\x00" * 32) == 5
    assert VerifierConfig(key_width=None).depth_limit(b"") == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"hash_name": "sha256"},
        {"key_width": 0},
        {"max_depth": 0},
        {"max_workers": 0},
    ],
)
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        VerifierConfig(**kwargs)


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError):
        VerifierConfig.from_dict({"hash": "keccak256"})


def test_load_config(tmp_path):
    path = tmp_path / "verifier.json"
    path.write_text(json.dumps({"hash_name": "blake2b256", "key_width": None, "max_workers": 4}))
    cfg = load_config(str(path))
    assert cfg == VerifierConfig(hash_name="blake2b256", key_width=None, max_workers=4)
    assert cfg.hasher is blake2b256

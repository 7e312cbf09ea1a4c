import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from warrity.core.security import (
    SCOPE_ADMIN,
    _encode_token,
    decode_token,
    hash_password,
    issue_token_pair,
    verify_password,
)


def test_password_hash_round_trip():
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_password_longer_than_bcrypt_limit_is_rejected():
    with pytest.raises(ValueError):
        hash_password("x" * 73)
    assert not verify_password("x" * 73, hash_password("x" * 72))


def test_malformed_hash_does_not_verify():
    assert not verify_password("anything", "not-a-bcrypt-hash")
    assert not verify_password("anything", "")


def test_token_pair_carries_subject_and_scope():
    pair = issue_token_pair("42", scope=SCOPE_ADMIN)
    access = decode_token(pair.access_token, verify_type="access")
    refresh = decode_token(pair.refresh_token, verify_type="refresh")
    assert access.sub == "42"
    assert access.scopes == [SCOPE_ADMIN]
    assert refresh.typ == "refresh"
    assert pair.expires_in > 0


def test_decode_rejects_wrong_type_and_garbage():
    pair = issue_token_pair("7")
    with pytest.raises(ValueError):
        decode_token(pair.refresh_token, verify_type="access")
    with pytest.raises(ValueError):
        decode_token("not.a.token")


def test_decode_rejects_expired_token():
    token = _encode_token("7", timedelta(seconds=-10), token_type="access")
    with pytest.raises(ValueError):
        decode_token(token, verify_type="access")

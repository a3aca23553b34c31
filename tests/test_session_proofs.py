from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.config import Settings
from app.exceptions import InvalidProof
from app.services.auth import SessionProofService, get_password_hash, verify_password


@pytest.fixture
def proofs():
    return SessionProofService("unit-secret", expire_minutes=30)


def test_issue_and_verify_round_trip(proofs):
    claims = proofs.verify(proofs.issue(7, "Ana"))
    assert claims["user_id"] == 7
    assert claims["sub"] == "7"
    assert claims["name"] == "Ana"
    assert "exp" in claims


def test_tampered_payload_is_rejected(proofs):
    header, payload, signature = proofs.issue(7, "Ana").split(".")
    forged_payload = jwt.utils.base64url_encode(b'{"sub":"8","name":"Mallory"}').decode()
    with pytest.raises(InvalidProof):
        proofs.verify(f"{header}.{forged_payload}.{signature}")


def test_other_secret_is_rejected(proofs):
    other = SessionProofService("another-secret")
    with pytest.raises(InvalidProof):
        proofs.verify(other.issue(7, "Ana"))


@pytest.mark.parametrize("proof", ["", "not-a-jwt", "a.b.c", None])
def test_malformed_proofs_are_rejected(proofs, proof):
    with pytest.raises(InvalidProof):
        proofs.verify(proof)


def test_expired_proof_is_rejected(proofs):
    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    token = jwt.encode({"sub": "7", "name": "Ana", "exp": past}, "unit-secret", algorithm="HS256")
    with pytest.raises(InvalidProof):
        proofs.verify(token)


def test_proof_without_subject_is_rejected(proofs):
    token = jwt.encode({"name": "Ana"}, "unit-secret", algorithm="HS256")
    with pytest.raises(InvalidProof):
        proofs.verify(token)


def test_non_numeric_subject_is_rejected(proofs):
    token = jwt.encode({"sub": "admin"}, "unit-secret", algorithm="HS256")
    with pytest.raises(InvalidProof):
        proofs.verify(token)


def test_zero_expiry_issues_proof_without_exp():
    proofs = SessionProofService("unit-secret", expire_minutes=0)
    claims = proofs.verify(proofs.issue(1, "Ana"))
    assert "exp" not in claims


def test_secret_is_required():
    with pytest.raises(ValueError):
        SessionProofService("")


def test_from_settings_uses_configured_secret():
    settings = Settings(jwt_secret_key="  configured  ", session_expire_minutes=5)
    proofs = SessionProofService.from_settings(settings)
    assert proofs.secret_key == "configured"
    assert proofs.expire_minutes == 5


def test_password_hash_is_salted_and_verifiable():
    first = get_password_hash("secret1", rounds=10)
    second = get_password_hash("secret1", rounds=10)
    assert first != second
    assert first.startswith("$2b$10$")
    assert verify_password("secret1", first)
    assert not verify_password("secret2", first)
    assert not verify_password("secret1", "not-a-bcrypt-hash")


def test_bcrypt_rounds_below_ten_are_refused():
    with pytest.raises(ValueError):
        Settings(bcrypt_rounds=8)

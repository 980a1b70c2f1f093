"""Pytest configuration and fixtures for pkgsig tests."""

import logging
from datetime import timedelta
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(autouse=True)
def _reset_pkgsig_logger():
    """Undo CLI logging setup so tests never leak handlers or levels."""
    logger = logging.getLogger("pkgsig")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)


@pytest.fixture
def data_dir():
    """Return the directory holding exported test keys."""
    return DATA_DIR


@pytest.fixture
def datadog_key_bytes():
    """Datadog RPM signing key, RSA, expires 2022-06-28."""
    return (DATA_DIR / "DATADOG_RPM_KEY.public").read_bytes()


@pytest.fixture
def redhat_keys_bytes():
    """Red Hat key file: description text plus two armored RSA keys, no expiration."""
    return (DATA_DIR / "RPM-GPG-KEY-redhat-release").read_bytes()


def make_eddsa_key(name="pkgsig test", key_expiration=None):
    """Generate an EdDSA key with PGPy; returns the private key object."""
    from pgpy import PGPKey, PGPUID
    from pgpy.constants import (
        EllipticCurveOID,
        HashAlgorithm,
        KeyFlags,
        PubKeyAlgorithm,
    )

    key = PGPKey.new(PubKeyAlgorithm.EdDSA, EllipticCurveOID.Ed25519)
    uid = PGPUID.new(name, email="test@example.com")
    prefs = {
        "usage": {KeyFlags.Sign, KeyFlags.Certify},
        "hashes": [HashAlgorithm.SHA256],
    }
    if key_expiration is not None:
        prefs["key_expiration"] = key_expiration
    key.add_uid(uid, **prefs)
    return key


@pytest.fixture
def eddsa_key():
    """Generated EdDSA key expiring in 30 days: (private key, armored public key)."""
    key = make_eddsa_key(key_expiration=timedelta(days=30))
    return key, str(key.pubkey)


@pytest.fixture
def eddsa_key_no_expiry():
    """Generated EdDSA key without expiration: (private key, armored public key)."""
    key = make_eddsa_key()
    return key, str(key.pubkey)


@pytest.fixture
def eddsa_key_factory():
    """Return a factory generating EdDSA keys with a chosen expiration."""
    return make_eddsa_key

"""
Tests for pkgsig.signing.readgpg - key extraction into the KeyStore.

Tests cover:
- Known key vectors (fingerprint, type, expiration)
- Multiple blocks per input and partial-failure tolerance
- Hint policy precedence
- Idempotent re-extraction and repository association
"""

import logging
from datetime import timedelta, timezone

import pytest
from pgpy.constants import PubKeyAlgorithm

from pkgsig.signing.models import MAX_EXPIRATION_DATE, KeyStore, KeyType, Repository
from pkgsig.signing.readgpg import (
    HintPolicy,
    KeyExtractionError,
    classify_algorithm,
    extract_keys,
    resolve_key_type,
)

pytestmark = pytest.mark.signing

DATADOG_FINGERPRINT = "A4C0B90D7443CF6E4E8AA341F1068E14E09422B3"
REDHAT_RELEASE_FINGERPRINT = "567E347AD0044ADE55BA8A5F199E2F91FD431D51"
REDHAT_AUXILIARY_FINGERPRINT = "7E4624258C406535D56D6F135054E4A45A6340B3"

CORRUPT_BLOCK = (
    "-----BEGIN PGP PUBLIC KEY BLOCK-----\n"
    "\n"
    "this is not base64!\n"
    "-----END PGP PUBLIC KEY BLOCK-----\n"
)


@pytest.fixture
def store():
    return KeyStore()


# =========================================================================
# Known vectors
# =========================================================================

class TestKnownKeys:
    def test_datadog_key_with_expiration(self, store, datadog_key_bytes):
        extract_keys(store, datadog_key_bytes, "RSA")

        key = store.get((DATADOG_FINGERPRINT, "RSA"))
        assert key is not None
        assert key.fingerprint == DATADOG_FINGERPRINT
        assert key.expiration_date == "2022-06-28"
        assert key.key_type == "RSA"

    def test_key_without_expiration(self, store, redhat_keys_bytes):
        extract_keys(store, redhat_keys_bytes, "RSA")

        key = store.get((REDHAT_RELEASE_FINGERPRINT, "RSA"))
        assert key is not None
        assert key.expiration_date == MAX_EXPIRATION_DATE
        assert key.key_type == "RSA"

    def test_both_blocks_of_concatenated_file(self, store, redhat_keys_bytes):
        result = extract_keys(store, redhat_keys_bytes, "RSA")

        assert result.blocks == 2
        assert result.parsed == 2
        assert len(store) == 2
        assert (REDHAT_AUXILIARY_FINGERPRINT, "RSA") in store

    def test_str_input(self, store, datadog_key_bytes):
        extract_keys(store, datadog_key_bytes.decode("ascii"), "RSA")
        assert (DATADOG_FINGERPRINT, "RSA") in store

    def test_fingerprint_deterministic_and_uppercase(self, datadog_key_bytes):
        first, second = KeyStore(), KeyStore()
        extract_keys(first, datadog_key_bytes, "RSA")
        extract_keys(second, datadog_key_bytes, "RSA")

        fp1 = first.values()[0].fingerprint
        fp2 = second.values()[0].fingerprint
        assert fp1 == fp2
        assert fp1 == fp1.upper()
        assert " " not in fp1
        assert len(fp1) == 40


# =========================================================================
# Generated keys
# =========================================================================

class TestGeneratedKeys:
    def test_eddsa_classified_from_packet(self, store, eddsa_key):
        _, armored = eddsa_key
        extract_keys(store, armored, "")
        key = store.values()[0]
        assert key.key_type == KeyType.EDDSA.value

    def test_eddsa_expiration_date(self, store, eddsa_key):
        private, armored = eddsa_key
        extract_keys(store, armored, "")

        expires_at = private.created + timedelta(days=30)
        if expires_at.tzinfo is not None:
            expires_at = expires_at.astimezone(timezone.utc)
        assert store.values()[0].expiration_date == expires_at.date().isoformat()

    def test_eddsa_without_expiration(self, store, eddsa_key_no_expiry):
        _, armored = eddsa_key_no_expiry
        extract_keys(store, armored, "")
        assert store.values()[0].expiration_date == MAX_EXPIRATION_DATE

    def test_zero_lifetime_means_no_expiration(self, store, eddsa_key_factory):
        key = eddsa_key_factory(key_expiration=timedelta(0))
        extract_keys(store, str(key.pubkey), "")
        assert store.values()[0].expiration_date == MAX_EXPIRATION_DATE

    def test_binary_key_stream(self, store, eddsa_key):
        private, _ = eddsa_key
        extract_keys(store, bytes(private.pubkey), "")
        fingerprint = str(private.fingerprint).replace(" ", "")
        assert (fingerprint, KeyType.EDDSA.value) in store


# =========================================================================
# Failures
# =========================================================================

class TestPartialFailure:
    def test_corrupt_block_does_not_abort_others(self, store, datadog_key_bytes, caplog):
        raw = CORRUPT_BLOCK.encode("ascii") + datadog_key_bytes
        with caplog.at_level(logging.WARNING, logger="pkgsig"):
            result = extract_keys(store, raw, "RSA", source="mixed.asc")

        assert result.blocks == 2
        assert result.failed == 1
        assert result.errors[0].index == 0
        assert result.errors[0].source == "mixed.asc"
        assert (DATADOG_FINGERPRINT, "RSA") in store
        assert "Skipping key block 0 from mixed.asc" in caplog.text

    def test_unterminated_block_fails_alone(self, store, datadog_key_bytes):
        raw = datadog_key_bytes + b"\n-----BEGIN PGP PUBLIC KEY BLOCK-----\n\nmQIN\n"
        result = extract_keys(store, raw, "RSA")
        assert result.parsed == 1
        assert result.failed == 1
        assert len(store) == 1

    def test_all_blocks_failing_raises(self, store):
        with pytest.raises(KeyExtractionError) as exc_info:
            extract_keys(store, CORRUPT_BLOCK * 2, "RSA", source="broken.asc")

        assert exc_info.value.source == "broken.asc"
        assert len(exc_info.value.errors) == 2
        assert "broken.asc" in str(exc_info.value)
        assert len(store) == 0

    def test_no_key_material_raises(self, store):
        with pytest.raises(KeyExtractionError, match="no OpenPGP key material"):
            extract_keys(store, b"nothing to see here\n", "RSA")

    def test_empty_input_raises(self, store):
        with pytest.raises(KeyExtractionError):
            extract_keys(store, b"", "RSA")

    def test_injected_logger_receives_warnings(self, store, datadog_key_bytes):
        records = []

        class _Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        logger = logging.getLogger("test.injected.readgpg")
        logger.addHandler(_Collect())
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        extract_keys(store, CORRUPT_BLOCK + datadog_key_bytes.decode("ascii"), "RSA", logger=logger)

        assert any(r.levelno == logging.WARNING for r in records)


# =========================================================================
# Deduplication and repositories
# =========================================================================

class TestDeduplication:
    def test_reextraction_is_idempotent(self, store, redhat_keys_bytes):
        extract_keys(store, redhat_keys_bytes, "RSA")
        size = len(store)
        extract_keys(store, redhat_keys_bytes, "RSA")
        assert len(store) == size

    def test_same_fingerprint_different_type_kept_apart(self, store, datadog_key_bytes):
        extract_keys(store, datadog_key_bytes, "RSA")
        extract_keys(store, datadog_key_bytes, "signed-by", hint_policy=HintPolicy.HINT)

        assert len(store) == 2
        assert (DATADOG_FINGERPRINT, "RSA") in store
        assert (DATADOG_FINGERPRINT, "signed-by") in store

    def test_repositories_appended_on_reobservation(self, store, datadog_key_bytes):
        datadog = Repository("datadog", True, True, False)
        mirror = Repository("datadog-mirror", True, False, False)

        extract_keys(store, datadog_key_bytes, "RSA", repositories=[datadog])
        extract_keys(store, datadog_key_bytes, "RSA", repositories=[datadog, mirror])

        key = store[(DATADOG_FINGERPRINT, "RSA")]
        assert [r.name for r in key.repositories] == ["datadog", "datadog-mirror"]

    def test_result_lists_stored_records(self, store, datadog_key_bytes):
        first = extract_keys(store, datadog_key_bytes, "RSA")
        second = extract_keys(store, datadog_key_bytes, "RSA")
        assert first.keys[0] is second.keys[0]


# =========================================================================
# Classification policy
# =========================================================================

class TestKeyTypeResolution:
    @pytest.mark.parametrize("algorithm, expected", [
        (PubKeyAlgorithm.RSAEncryptOrSign, KeyType.RSA),
        (PubKeyAlgorithm.RSASign, KeyType.RSA),
        (PubKeyAlgorithm.DSA, KeyType.DSA),
        (PubKeyAlgorithm.ECDSA, KeyType.ECDSA),
        (PubKeyAlgorithm.EdDSA, KeyType.EDDSA),
        (PubKeyAlgorithm.ElGamal, KeyType.ELGAMAL),
        (PubKeyAlgorithm.Invalid, None),
    ])
    def test_classify_algorithm(self, algorithm, expected):
        assert classify_algorithm(algorithm) == expected

    def test_classify_unknown_value(self):
        assert classify_algorithm(250) is None

    def test_parser_policy_prefers_parsed(self):
        assert resolve_key_type(KeyType.RSA, "DSA", HintPolicy.PARSER) == "RSA"

    def test_parser_policy_falls_back_to_hint(self):
        assert resolve_key_type(None, "trusted", HintPolicy.PARSER) == "trusted"

    def test_hint_policy_prefers_hint(self):
        assert resolve_key_type(KeyType.RSA, "DSA", HintPolicy.HINT) == "DSA"

    def test_hint_policy_empty_hint_uses_parsed(self):
        assert resolve_key_type(KeyType.EDDSA, "  ", HintPolicy.HINT) == "EdDSA"

    def test_nothing_known(self):
        assert resolve_key_type(None, None) == "unknown"

    def test_policy_accepts_string(self):
        assert resolve_key_type(KeyType.RSA, "DSA", "hint") == "DSA"

    def test_hint_ignored_for_parsed_key_by_default(self, store, datadog_key_bytes):
        extract_keys(store, datadog_key_bytes, "DSA")
        assert (DATADOG_FINGERPRINT, "RSA") in store

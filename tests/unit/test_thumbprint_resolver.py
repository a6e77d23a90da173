"""Unit tests for OIDC thumbprint resolution."""

import datetime
from unittest.mock import MagicMock

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from ocm_cluster.errors import TrustResolutionError
from ocm_cluster.services.thumbprint_resolver import (
    ThumbprintResolver,
    select_trust_anchor,
    sha1_fingerprint,
)


def _name(common_name):
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _certificate(subject, issuer, signing_key, public_key, ca):
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(_name(subject))
        .issuer_name(_name(issuer))
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .sign(signing_key, hashes.SHA256())
    )


@pytest.fixture(scope="module")
def chain():
    """Build a leaf -> intermediate -> root chain plus the keys."""
    root_key = ec.generate_private_key(ec.SECP256R1())
    intermediate_key = ec.generate_private_key(ec.SECP256R1())
    leaf_key = ec.generate_private_key(ec.SECP256R1())

    root = _certificate("Test Root CA", "Test Root CA", root_key, root_key.public_key(), ca=True)
    intermediate = _certificate(
        "Test Intermediate CA", "Test Root CA", root_key, intermediate_key.public_key(), ca=True
    )
    leaf = _certificate(
        "oidc.example.com", "Test Intermediate CA", intermediate_key, leaf_key.public_key(), ca=False
    )
    return {"root": root, "intermediate": intermediate, "leaf": leaf}


def _resolver(certificates):
    fetcher = MagicMock()
    fetcher.fetch_chain = MagicMock(return_value=certificates)
    return ThumbprintResolver(fetcher=fetcher), fetcher


# =============================================================================
# Trust anchor selection
# =============================================================================

class TestSelectTrustAnchor:
    """Test which certificate of a chain identifies the issuer."""

    def test_self_signed_ca_wins_over_leaf(self, chain):
        assert select_trust_anchor([chain["leaf"], chain["root"]]) == chain["root"]

    def test_last_certificate_without_self_signed_ca(self, chain):
        selected = select_trust_anchor([chain["leaf"], chain["intermediate"]])
        assert selected == chain["intermediate"]

    def test_single_leaf(self, chain):
        assert select_trust_anchor([chain["leaf"]]) == chain["leaf"]

    def test_fingerprint_format(self, chain):
        fingerprint = sha1_fingerprint(chain["root"])
        assert len(fingerprint) == 40
        assert fingerprint == fingerprint.lower()
        assert bytes.fromhex(fingerprint) == chain["root"].fingerprint(hashes.SHA1())


# =============================================================================
# ThumbprintResolver
# =============================================================================

class TestThumbprintResolver:
    """Test thumbprint resolution with a fake chain fetcher."""

    def test_returns_ca_hash(self, chain):
        resolver, fetcher = _resolver([chain["leaf"], chain["intermediate"], chain["root"]])

        thumbprint = resolver.resolve("https://oidc.example.com/abc123")

        assert thumbprint == sha1_fingerprint(chain["root"])
        assert thumbprint != sha1_fingerprint(chain["leaf"])
        fetcher.fetch_chain.assert_called_once_with("oidc.example.com", 443)

    def test_returns_last_hash_without_ca(self, chain):
        resolver, _ = _resolver([chain["leaf"], chain["intermediate"]])
        assert resolver.resolve("https://oidc.example.com") == sha1_fingerprint(chain["intermediate"])

    def test_port_in_url_is_ignored(self, chain):
        resolver, fetcher = _resolver([chain["root"]])
        resolver.resolve("https://oidc.example.com:8443/path")
        fetcher.fetch_chain.assert_called_once_with("oidc.example.com", 443)

    def test_empty_chain(self):
        resolver, _ = _resolver([])
        with pytest.raises(TrustResolutionError, match="No certificates"):
            resolver.resolve("https://oidc.example.com")

    def test_url_without_scheme(self):
        resolver, fetcher = _resolver([])
        with pytest.raises(TrustResolutionError, match="Invalid issuer URL"):
            resolver.resolve("oidc.example.com/abc")
        fetcher.fetch_chain.assert_not_called()

    def test_connection_error_is_wrapped(self):
        fetcher = MagicMock()
        fetcher.fetch_chain = MagicMock(side_effect=ConnectionRefusedError("refused"))
        resolver = ThumbprintResolver(fetcher=fetcher)

        with pytest.raises(TrustResolutionError) as exc_info:
            resolver.resolve("https://oidc.example.com")

        assert exc_info.value.headline == "Can't get thumbprint"
        assert "refused" in exc_info.value.description

    def test_unexpected_fault_is_wrapped(self):
        fetcher = MagicMock()
        fetcher.fetch_chain = MagicMock(side_effect=RuntimeError("boom"))
        resolver = ThumbprintResolver(fetcher=fetcher)

        with pytest.raises(TrustResolutionError):
            resolver.resolve("https://oidc.example.com")

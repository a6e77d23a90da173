# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""OIDC issuer thumbprint derivation from the served TLS certificate chain."""

import logging
import select
import socket
from typing import Optional, Protocol
from urllib.parse import urlparse

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from OpenSSL import SSL

from ..errors import TrustResolutionError

HTTPS_PORT = 443


class CertificateChainFetcher(Protocol):
    """Returns the certificate chain a TLS server presents."""

    def fetch_chain(self, host: str, port: int) -> list[x509.Certificate]: ...


class TLSChainFetcher:
    """
    Fetches the peer certificate chain with a pyOpenSSL handshake.

    The chain is only hashed, never trusted, so peer verification is off.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def fetch_chain(self, host: str, port: int) -> list[x509.Certificate]:
        context = SSL.Context(SSL.TLS_CLIENT_METHOD)
        context.set_verify(SSL.VERIFY_NONE)

        with socket.create_connection((host, port), timeout=self.timeout) as sock:
            connection = SSL.Connection(context, sock)
            connection.set_tlsext_host_name(host.encode("idna"))
            connection.set_connect_state()
            while True:
                try:
                    connection.do_handshake()
                    break
                except SSL.WantReadError:
                    readable, _, _ = select.select([sock], [], [], self.timeout)
                    if not readable:
                        raise socket.timeout(f"TLS handshake with {host}:{port} timed out")
            return [cert.to_cryptography() for cert in connection.get_peer_cert_chain() or []]


def select_trust_anchor(chain: list[x509.Certificate]) -> x509.Certificate:
    """
    Pick the certificate whose hash identifies the issuer.

    The first self-signed CA certificate of the chain wins; when the chain
    holds none, the last certificate is used.
    """
    for cert in chain:
        if cert.issuer == cert.subject and _is_ca(cert):
            return cert
    return chain[-1]


def _is_ca(cert: x509.Certificate) -> bool:
    try:
        constraints = cert.extensions.get_extension_for_class(x509.BasicConstraints)
    except x509.ExtensionNotFound:
        return False
    return constraints.value.ca


def sha1_fingerprint(cert: x509.Certificate) -> str:
    """SHA1 digest of the DER encoding, as 40 lowercase hex characters."""
    return cert.fingerprint(hashes.SHA1()).hex()


class ThumbprintResolver:
    """
    Derives the thumbprint AWS needs to federate with an OIDC issuer.

    Connects to the issuer host on port 443, selects the trust anchor of
    the chain it presents and returns the anchor's SHA1 fingerprint. Every
    failure, expected or not, surfaces as ``TrustResolutionError``.
    """

    def __init__(
        self,
        fetcher: Optional[CertificateChainFetcher] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.fetcher = fetcher or TLSChainFetcher()
        self._logger = logger or logging.getLogger(__name__)

    def resolve(self, issuer_url: str) -> str:
        """
        Resolve the thumbprint of an issuer URL.

        Args:
            issuer_url: Issuer URL including the scheme

        Returns:
            Hex encoded SHA1 fingerprint of the trust anchor

        Raises:
            TrustResolutionError: If the URL, connection or chain is unusable
        """
        try:
            parsed = urlparse(issuer_url)
            if not parsed.scheme or not parsed.hostname:
                raise TrustResolutionError(f"Invalid issuer URL '{issuer_url}'")

            chain = self.fetcher.fetch_chain(parsed.hostname, HTTPS_PORT)
            if not chain:
                raise TrustResolutionError(
                    f"No certificates presented by {parsed.hostname}:{HTTPS_PORT}"
                )

            thumbprint = sha1_fingerprint(select_trust_anchor(chain))
            self._logger.debug(f"Thumbprint of {parsed.hostname}: {thumbprint}")
            return thumbprint
        except TrustResolutionError:
            raise
        except Exception as e:
            raise TrustResolutionError(
                f"Failed to get thumbprint of '{issuer_url}': {e}"
            ) from e

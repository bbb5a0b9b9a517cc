"""Loading certificate material from Kubernetes secrets."""

from __future__ import annotations

from dataclasses import dataclass

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from ..constants import SECRET_KEY_CERTIFICATE, SECRET_KEY_PRIVATE_KEY
from ..services.kube.base import ResourceStore
from .errors import MalformedInputError


@dataclass(frozen=True)
class CertificateBundle:
    """Leaf certificate, its chain and the matching private key."""

    leaf: x509.Certificate
    chain: tuple[x509.Certificate, ...]
    private_key: bytes

    @property
    def fingerprint(self) -> str:
        """Leaf serial number as a decimal string, used for change detection."""
        return str(self.leaf.serial_number)

    def leaf_pem(self) -> bytes:
        return self.leaf.public_bytes(serialization.Encoding.PEM)

    def chain_pem(self) -> bytes:
        return b"".join(cert.public_bytes(serialization.Encoding.PEM) for cert in self.chain)


def parse_certificate_bundle(data: dict[str, bytes], secret_name: str) -> CertificateBundle:
    """Parse secret data into a CertificateBundle.

    Args:
        data: Decoded secret data
        secret_name: Name of the secret, for error messages

    Returns:
        Parsed bundle; the first certificate in tls.crt is the leaf

    Raises:
        MalformedInputError: If a key is missing or tls.crt holds no certificate
    """
    cert_data = data.get(SECRET_KEY_CERTIFICATE)
    if not cert_data:
        raise MalformedInputError(f"secret {secret_name!r} has no {SECRET_KEY_CERTIFICATE!r} key")

    private_key = data.get(SECRET_KEY_PRIVATE_KEY)
    if not private_key:
        raise MalformedInputError(f"secret {secret_name!r} has no {SECRET_KEY_PRIVATE_KEY!r} key")

    try:
        certs = x509.load_pem_x509_certificates(cert_data)
    except ValueError as e:
        raise MalformedInputError(f"could not load certificate from secret {secret_name!r}: {e}") from e

    if not certs:
        raise MalformedInputError(f"secret {secret_name!r} contains no certificates")

    return CertificateBundle(leaf=certs[0], chain=tuple(certs[1:]), private_key=private_key)


def load_certificate_bundle(store: ResourceStore, namespace: str, secret_name: str) -> CertificateBundle:
    """Read a secret and parse the certificate material it holds.

    Raises:
        NotFoundError: If the secret does not exist
        MalformedInputError: If the secret content cannot be used
    """
    data = store.get_secret_data(namespace, secret_name)
    return parse_certificate_bundle(data, secret_name)

"""Base certificate gateway interface."""

from __future__ import annotations

from typing import Protocol


class CertificateGateway(Protocol):
    """Protocol defining remote certificate store operations."""

    def import_certificate(
        self,
        arn: str | None,
        certificate: bytes,
        chain: bytes,
        private_key: bytes,
    ) -> str:
        """Import a certificate, returning its ARN.

        Args:
            arn: ARN of a previous import to re-import in place, if any
            certificate: PEM encoded leaf certificate
            chain: PEM encoded intermediate certificates, possibly empty
            private_key: PEM encoded private key
        """
        ...

    def delete_certificate(self, arn: str) -> None:
        """Delete a certificate.

        Raises:
            NotFoundError: If the certificate is already gone
        """
        ...

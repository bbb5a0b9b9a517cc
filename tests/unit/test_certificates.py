"""Tests for loading certificate material from secrets."""

from __future__ import annotations

import pytest

from acm_import_operator.utils.certificates import load_certificate_bundle, parse_certificate_bundle
from acm_import_operator.utils.errors import MalformedInputError, NotFoundError
from fakes import make_certificate, make_tls_secret


class TestParseCertificateBundle:
    """Test cases for parse_certificate_bundle."""

    def test_single_certificate(self):
        """Test a secret holding only a leaf certificate."""
        data = make_tls_secret(1)

        bundle = parse_certificate_bundle(data, "web-tls")

        assert bundle.chain == ()
        assert bundle.leaf_pem() == data["tls.crt"]
        assert bundle.chain_pem() == b""
        assert bundle.private_key == data["tls.key"]

    def test_chain_split_from_leaf(self):
        """Test that the first certificate is the leaf and the rest is the chain."""
        data = make_tls_secret(7, with_chain=True)

        bundle = parse_certificate_bundle(data, "web-tls")

        assert bundle.leaf.serial_number == 7
        assert len(bundle.chain) == 1
        assert bundle.leaf_pem() + bundle.chain_pem() == data["tls.crt"]

    def test_fingerprint_is_decimal_serial(self):
        """Test that the fingerprint is the leaf serial in decimal."""
        cert_pem, key_pem, _ = make_certificate(0x1F2E3D4C5B6A)

        bundle = parse_certificate_bundle({"tls.crt": cert_pem, "tls.key": key_pem}, "web-tls")

        assert bundle.fingerprint == str(0x1F2E3D4C5B6A)

    @pytest.mark.parametrize("missing", ["tls.crt", "tls.key"])
    def test_missing_key(self, missing):
        """Test that a secret without certificate or key is rejected."""
        data = make_tls_secret(1)
        del data[missing]

        with pytest.raises(MalformedInputError, match=missing):
            parse_certificate_bundle(data, "web-tls")

    def test_empty_key(self):
        """Test that an empty private key is rejected."""
        data = make_tls_secret(1)
        data["tls.key"] = b""

        with pytest.raises(MalformedInputError):
            parse_certificate_bundle(data, "web-tls")

    def test_garbage_certificate(self):
        """Test that content without any PEM certificate is rejected."""
        data = make_tls_secret(1)
        data["tls.crt"] = b"this is not a certificate"

        with pytest.raises(MalformedInputError, match="web-tls"):
            parse_certificate_bundle(data, "web-tls")


class TestLoadCertificateBundle:
    """Test cases for load_certificate_bundle."""

    def test_loads_from_store(self, store):
        """Test reading and parsing a secret through the store."""
        store.add_secret("default", "web-tls", make_tls_secret(3))

        bundle = load_certificate_bundle(store, "default", "web-tls")

        assert bundle.fingerprint == "3"

    def test_missing_secret(self, store):
        """Test that a missing secret surfaces as NotFoundError."""
        with pytest.raises(NotFoundError):
            load_certificate_bundle(store, "default", "web-tls")

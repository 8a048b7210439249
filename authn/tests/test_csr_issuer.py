"""Tests for CSRIssuer.issue_request() and workload DNS naming."""

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec

from authn.lib.cert_utils import get_common_name, get_dns_names
from authn.lib.config import CAConfig
from authn.lib.csr_issuer import CSRIssuer, canonical_workload_name, workload_dns_name
from authn.lib.errors import InvalidWorkloadName, KeyGenerationFailed


class TestWorkloadDnsName:
    """Tests for the <name>.<zone> mapping."""

    def test_simple_name(self) -> None:
        """A DNS label maps to <name>.<zone>."""
        assert workload_dns_name("hello", "unsafe.aurae.io") == "hello.unsafe.aurae.io"

    def test_name_is_lowercased(self) -> None:
        """Names are canonicalised to lowercase."""
        assert workload_dns_name("Hello-1", "unsafe.aurae.io") == "hello-1.unsafe.aurae.io"

    @pytest.mark.parametrize(
        "name",
        [
            "",
            "-leading",
            "trailing-",
            "has.dot",
            "has space",
            "under_score",
            "a" * 64,
            "café",
            "slash/name",
        ],
    )
    def test_invalid_names_rejected(self, name: str) -> None:
        """Anything other than a single DNS label fails closed."""
        with pytest.raises(InvalidWorkloadName):
            workload_dns_name(name, "unsafe.aurae.io")

    def test_non_string_rejected(self) -> None:
        """Non-string names fail closed."""
        with pytest.raises(InvalidWorkloadName):
            workload_dns_name(None, "unsafe.aurae.io")  # type: ignore[arg-type]

    def test_max_length_label_accepted(self) -> None:
        """A 63-character label is valid."""
        label = "a" * 63
        assert workload_dns_name(label, "unsafe.aurae.io").startswith(label)


class TestIssueRequest:
    """Tests for key pair and CSR generation."""

    def test_csr_subject_cn_is_dns_name(self, csr_issuer: CSRIssuer) -> None:
        """CSR subject CN is <name>.<zone>."""
        request = csr_issuer.issue_request("hello")

        assert get_common_name(request.csr.subject) == "hello.unsafe.aurae.io"
        assert request.dns_name == "hello.unsafe.aurae.io"
        assert request.name == "hello"

    def test_request_name_is_canonical(self, csr_issuer: CSRIssuer) -> None:
        """A mixed-case name is carried on the request in lowercase."""
        request = csr_issuer.issue_request("Hello")

        assert request.name == "hello"
        assert request.dns_name == "hello.unsafe.aurae.io"
        assert canonical_workload_name("HeLLo") == "hello"

    def test_csr_san_contains_dns_name_once(self, csr_issuer: CSRIssuer) -> None:
        """CSR SAN carries the DNS name exactly once and nothing else."""
        request = csr_issuer.issue_request("hello")

        assert get_dns_names(request.csr) == ["hello.unsafe.aurae.io"]
        san = request.csr.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
        assert len(list(san)) == 1

    def test_csr_subject_carries_organization(self, csr_issuer: CSRIssuer) -> None:
        """CSR subject has the configured organization."""
        request = csr_issuer.issue_request("hello")
        org = request.csr.subject.get_attributes_for_oid(x509.NameOID.ORGANIZATION_NAME)

        assert org[0].value == "Aurae"

    def test_csr_is_signed_by_generated_key(self, csr_issuer: CSRIssuer) -> None:
        """CSR public key is the generated key's public half and the signature verifies."""
        request = csr_issuer.issue_request("hello")

        assert request.csr.is_signature_valid
        public_numbers = request.private_key.public_key().public_numbers()
        assert request.csr.public_key().public_numbers() == public_numbers

    def test_each_request_gets_fresh_key(self, csr_issuer: CSRIssuer) -> None:
        """Two requests for the same name never share a key."""
        first = csr_issuer.issue_request("hello")
        second = csr_issuer.issue_request("hello")

        assert first.private_key.private_numbers() != second.private_key.private_numbers()

    def test_key_type_follows_config(self, csr_issuer: CSRIssuer) -> None:
        """The EC test config produces P-384 keys."""
        request = csr_issuer.issue_request("hello")

        assert isinstance(request.private_key, ec.EllipticCurvePrivateKey)
        assert request.private_key.curve.name == "secp384r1"

    def test_invalid_name_generates_nothing(self, csr_issuer: CSRIssuer) -> None:
        """Invalid names are refused before any key is generated."""
        with pytest.raises(InvalidWorkloadName):
            csr_issuer.issue_request("bad name")

    def test_weak_key_policy_raises_key_generation_failed(self) -> None:
        """A key policy weaker than 4096-bit RSA raises KeyGenerationFailed."""
        issuer = CSRIssuer(CAConfig(key_type="rsa", key_size=1024))

        with pytest.raises(KeyGenerationFailed):
            issuer.issue_request("hello")

    def test_csr_pem(self, csr_issuer: CSRIssuer) -> None:
        """csr_pem encodes the CSR as PEM."""
        request = csr_issuer.issue_request("hello")

        assert request.csr_pem.startswith(b"-----BEGIN CERTIFICATE REQUEST-----")

    def test_custom_zone(self) -> None:
        """The DNS suffix follows the configured zone."""
        issuer = CSRIssuer(CAConfig(zone="example.internal", key_type="ec"))

        assert get_dns_names(issuer.issue_request("db").csr) == ["db.example.internal"]

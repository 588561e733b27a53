"""Ephemeral certificate authority and per-node leaf certificates.

One authority is generated per migration run and signs one leaf per node.
The leaf's only subject-alternative-name is the node's logical address, so
peers verify "is this the node I expect" independent of host or IP.

All keys are P-256; certificates are signed with SHA-256 and exchanged
as PEM text.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from chainmig.domain.errors import IssuanceError
from chainmig.domain.nodes import CertificateAndKey

DEFAULT_VALIDITY_DAYS = 3650
AUTHORITY_COMMON_NAME = "chainmig migration CA"
LEAF_COMMON_NAME = "chainmig node"


@dataclass(frozen=True)
class Authority:
    """An in-memory signing identity. Never persisted by this module."""

    certificate: x509.Certificate
    private_key: ec.EllipticCurvePrivateKey = field(repr=False)

    @property
    def cert_pem(self) -> str:
        return _cert_pem(self.certificate)

    def export(self) -> CertificateAndKey:
        """PEM pair for callers that want to keep the authority."""
        return CertificateAndKey(cert=self.cert_pem, key=_key_pem(self.private_key))


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _cert_pem(cert: x509.Certificate) -> str:
    return cert.public_bytes(serialization.Encoding.PEM).decode("utf-8")


def _key_pem(key: ec.EllipticCurvePrivateKey) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


def issue_authority(*, validity_days: int = DEFAULT_VALIDITY_DAYS) -> Authority:
    """Generate a fresh self-signed CA with unconstrained path length.

    Every call yields independent key material.
    """
    try:
        key = ec.generate_private_key(ec.SECP256R1())
        subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, AUTHORITY_COMMON_NAME)])
        now = _utcnow()
        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(minutes=1))
            .not_valid_after(now + timedelta(days=validity_days))
            .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False
            )
            .sign(private_key=key, algorithm=hashes.SHA256())
        )
    except (ValueError, TypeError) as exc:
        msg = f"Cannot generate certificate authority: {exc}"
        raise IssuanceError(msg) from exc
    return Authority(certificate=cert, private_key=key)


def issue_leaf(
    logical_address: str,
    authority: Authority,
    *,
    validity_days: int = DEFAULT_VALIDITY_DAYS,
) -> CertificateAndKey:
    """Generate a key pair and a certificate for *logical_address*.

    The certificate's single SAN entry is *logical_address* verbatim; the
    subject carries a fixed common name so addresses of any length fit.
    Returns the leaf's own certificate and private key.
    """
    try:
        key = ec.generate_private_key(ec.SECP256R1())
        now = _utcnow()
        cert = (
            x509.CertificateBuilder()
            .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, LEAF_COMMON_NAME)]))
            .issuer_name(authority.certificate.subject)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(minutes=1))
            .not_valid_after(now + timedelta(days=validity_days))
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .add_extension(
                x509.SubjectAlternativeName([x509.DNSName(logical_address)]), critical=False
            )
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(
                    authority.private_key.public_key()
                ),
                critical=False,
            )
            .sign(private_key=authority.private_key, algorithm=hashes.SHA256())
        )
    except (ValueError, TypeError) as exc:
        msg = f"Cannot issue certificate for {logical_address!r}: {exc}"
        raise IssuanceError(msg) from exc
    return CertificateAndKey(cert=_cert_pem(cert), key=_key_pem(key))


def issue_leaves(
    logical_addresses: Iterable[str],
    authority: Authority,
    *,
    validity_days: int = DEFAULT_VALIDITY_DAYS,
    max_workers: int = 1,
) -> dict[str, CertificateAndKey]:
    """Issue one leaf per address, keyed by address in input order.

    With ``max_workers > 1`` signing runs on a thread pool; the authority
    key is only read.
    """
    addresses = list(dict.fromkeys(logical_addresses))

    def _issue(address: str) -> CertificateAndKey:
        return issue_leaf(address, authority, validity_days=validity_days)

    if max_workers <= 1:
        return {address: _issue(address) for address in addresses}
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return dict(zip(addresses, pool.map(_issue, addresses), strict=True))


def leaf_identity(cert_pem: str) -> str:
    """Return the single SAN value of a leaf certificate."""
    cert = x509.load_pem_x509_certificate(cert_pem.encode("utf-8"))
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound as exc:
        msg = "Certificate has no subject alternative name"
        raise ValueError(msg) from exc
    names = san.value.get_values_for_type(x509.DNSName)
    if len(names) != 1:
        msg = f"Expected exactly one subject alternative name, found {len(names)}"
        raise ValueError(msg)
    return names[0]


def fingerprint(cert_pem: str) -> str:
    """SHA-256 fingerprint of a certificate, hex-encoded."""
    cert = x509.load_pem_x509_certificate(cert_pem.encode("utf-8"))
    return cert.fingerprint(hashes.SHA256()).hex()


def verify_leaf(cert_pem: str, ca_cert_pem: str) -> bool:
    """Whether *cert_pem* was signed by the authority in *ca_cert_pem*."""
    leaf = x509.load_pem_x509_certificate(cert_pem.encode("utf-8"))
    ca = x509.load_pem_x509_certificate(ca_cert_pem.encode("utf-8"))
    try:
        leaf.verify_directly_issued_by(ca)
    except (InvalidSignature, ValueError, TypeError):
        return False
    return True

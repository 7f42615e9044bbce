"""PKI generation (cryptography).

Produces, under `pki_path`:
- `ca.crt` / `ca.key`: a self-signed CA.
- `admin.crt` / `admin.key`: a client+server certificate signed by the CA,
  valid for the given SANs (IP literals become `IPAddress`, anything else
  `DNSName`).

Every SAN is validated before any key is generated or any file written, so
an invalid SAN leaves the filesystem untouched.
"""

from __future__ import annotations

import datetime
import ipaddress
import os
import re
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from core.domain.errors import PkiGenerationError

CA_COMMON_NAME = "dualrun-ca"
ADMIN_COMMON_NAME = "dualrun-admin"
ADMIN_ORGANIZATION = "system:masters"
KEY_SIZE = 2048
VALIDITY = datetime.timedelta(days=365 * 10)

_DNS_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")

# Always valid for local access.
DEFAULT_SANS: tuple[str, ...] = ("localhost", "127.0.0.1")


def parse_san(san: str) -> x509.GeneralName:
    value = san.strip()
    if not value:
        raise PkiGenerationError("empty subject alternative name")
    try:
        return x509.IPAddress(ipaddress.ip_address(value))
    except ValueError:
        pass

    host = value[2:] if value.startswith("*.") else value
    labels = host.rstrip(".").split(".")
    if len(host) > 253 or not all(_DNS_LABEL.match(label) for label in labels):
        raise PkiGenerationError(f"invalid subject alternative name: {san!r}")
    return x509.DNSName(value)


def _new_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=KEY_SIZE)


def _name(common_name: str, organization: str | None = None) -> x509.Name:
    attrs = [x509.NameAttribute(NameOID.COMMON_NAME, common_name)]
    if organization:
        attrs.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    return x509.Name(attrs)


def _write_pem(path: Path, data: bytes, mode: int) -> None:
    fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as fh:
        fh.write(data)
    # os.open's mode only applies to newly created files.
    os.chmod(path, mode)


def _key_pem(key: rsa.RSAPrivateKey) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def generate_pki(pki_path: Path, *sans: str) -> None:
    names: list[x509.GeneralName] = []
    for san in (*DEFAULT_SANS, *sans):
        name = parse_san(san)
        if name not in names:
            names.append(name)

    now = datetime.datetime.now(datetime.timezone.utc)

    ca_key = _new_key()
    ca_name = _name(CA_COMMON_NAME)
    ca_cert = (
        x509.CertificateBuilder()
        .subject_name(ca_name)
        .issuer_name(ca_name)
        .public_key(ca_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + VALIDITY)
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=True,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .sign(ca_key, hashes.SHA256())
    )

    admin_key = _new_key()
    admin_cert = (
        x509.CertificateBuilder()
        .subject_name(_name(ADMIN_COMMON_NAME, ADMIN_ORGANIZATION))
        .issuer_name(ca_name)
        .public_key(admin_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + VALIDITY)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]),
            critical=False,
        )
        .add_extension(x509.SubjectAlternativeName(names), critical=False)
        .sign(ca_key, hashes.SHA256())
    )

    try:
        pki_path.mkdir(parents=True, exist_ok=True)
        _write_pem(pki_path / "ca.crt", ca_cert.public_bytes(serialization.Encoding.PEM), 0o644)
        _write_pem(pki_path / "ca.key", _key_pem(ca_key), 0o600)
        _write_pem(pki_path / "admin.crt", admin_cert.public_bytes(serialization.Encoding.PEM), 0o644)
        _write_pem(pki_path / "admin.key", _key_pem(admin_key), 0o600)
    except OSError as exc:
        raise PkiGenerationError(f"cannot write PKI to {pki_path}: {exc}") from exc


class X509PkiGenerator:
    """`core.interfaces.collaborators.PkiGenerator` over `generate_pki`."""

    def generate_pki(self, pki_path: Path, *sans: str) -> None:
        generate_pki(pki_path, *sans)

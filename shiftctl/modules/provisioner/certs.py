"""Local TLS material handling for engine provisioning."""
import datetime
import logging
import os
import shutil
from ipaddress import ip_address
from typing import Iterable, List

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from shiftctl.errors import ProvisioningError
from .models import AuthOptions

logger = logging.getLogger("shiftctl.provisioner.certs")

CERT_VALIDITY_DAYS = 1080


def copy_host_certs(auth: AuthOptions) -> None:
    """Copy the CA and client pair into the local certificate store.

    Raises:
        ProvisioningError: Naming the first file that could not be copied
    """
    host_certs = {
        auth.ca_cert_path: os.path.join(auth.store_path, 'ca.pem'),
        auth.client_cert_path: os.path.join(auth.store_path, 'cert.pem'),
        auth.client_key_path: os.path.join(auth.store_path, 'key.pem'),
    }

    for src, dst in host_certs.items():
        if os.path.abspath(src) == os.path.abspath(dst):
            continue
        try:
            os.makedirs(os.path.dirname(dst), exist_ok=True)
            shutil.copyfile(src, dst)
        except OSError as e:
            raise ProvisioningError(f"open cert file: {src}: {e}") from e
        logger.debug(f"Copied {src} to {dst}")


def _subject_alternative_names(hosts: Iterable[str]) -> x509.SubjectAlternativeName:
    entries: List[x509.GeneralName] = []
    for host in hosts:
        try:
            entries.append(x509.IPAddress(ip_address(host)))
        except ValueError:
            entries.append(x509.DNSName(host))
    return x509.SubjectAlternativeName(entries)


def generate_cert(hosts: List[str], cert_file: str, key_file: str, ca_file: str, ca_key_file: str,
                  org: str, bits: int = 2048) -> None:
    """Generate a server key and certificate signed by the local CA.

    Every entry of hosts becomes a subject alternative name, as an IP
    address when it parses as one and as a DNS name otherwise.
    """
    try:
        with open(ca_file, 'rb') as f:
            ca_cert = x509.load_pem_x509_certificate(f.read())
        with open(ca_key_file, 'rb') as f:
            ca_key = serialization.load_pem_private_key(f.read(), password=None)
    except (OSError, ValueError) as e:
        raise ProvisioningError(f"Cannot load CA from {ca_file}/{ca_key_file}: {e}") from e

    key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    now = datetime.datetime.now(datetime.timezone.utc)
    name = x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, org)])

    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(ca_cert.subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(days=CERT_VALIDITY_DAYS))
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]),
            critical=False,
        )
        .add_extension(_subject_alternative_names(hosts), critical=False)
        .sign(ca_key, hashes.SHA256())
    )

    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )
    try:
        with open(cert_file, 'wb') as f:
            f.write(cert.public_bytes(serialization.Encoding.PEM))
        with open(key_file, 'wb') as f:
            f.write(key_pem)
        os.chmod(key_file, 0o600)
    except OSError as e:
        raise ProvisioningError(f"Cannot write server cert {cert_file}: {e}") from e


def server_cert_hosts(auth: AuthOptions, ip: str) -> List[str]:
    """SANs for the server cert: configured SANs plus the guest IP and localhost."""
    return list(auth.server_cert_sans) + [ip, "localhost"]


def generate_server_cert(auth: AuthOptions, ip: str, org: str, bits: int = 2048) -> None:
    """Generate the engine's server certificate for the guest at ip."""
    hosts = server_cert_hosts(auth, ip)
    logger.debug(
        "generating server cert: %s ca-key=%s private-key=%s org=%s san=%s",
        auth.server_cert_path, auth.ca_cert_path, auth.ca_private_key_path, org, hosts,
    )
    generate_cert(
        hosts=hosts,
        cert_file=auth.server_cert_path,
        key_file=auth.server_key_path,
        ca_file=auth.ca_cert_path,
        ca_key_file=auth.ca_private_key_path,
        org=org,
        bits=bits,
    )

"""
dsevents Cryptography Module

Encrypts the login password for the server and checks pinned TLS certificates.
"""

import base64
import hashlib
import logging

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from .exceptions import SSLVerificationError

logger = logging.getLogger("dsevents")


def load_public_key(pem_data: bytes):
    """
    Load the server's RSA public key from PEM data.

    Args:
        pem_data: PEM-encoded public key bytes

    Returns:
        RSA public key object
    """
    return serialization.load_pem_public_key(pem_data)


def load_public_key_b64(encoded: str):
    """Load a public key sent as URL-safe base64 of its PEM form."""
    return load_public_key(base64.urlsafe_b64decode(encoded))


def encrypt_with_rsa(data: bytes, public_key) -> bytes:
    """
    Encrypt data using RSA-OAEP with SHA-256.

    Args:
        data: Data to encrypt (the password bytes)
        public_key: RSA public key object

    Returns:
        bytes: RSA-encrypted data (256 bytes for RSA-2048)
    """
    return public_key.encrypt(
        data,
        padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=None
        )
    )


def encrypt_password(password: str, public_key) -> str:
    """Encrypt a password for transmission and return it as URL-safe base64."""
    encrypted = encrypt_with_rsa(password.encode('utf-8'), public_key)
    return base64.urlsafe_b64encode(encrypted).decode()


def normalize_fingerprint(fingerprint: str) -> str:
    """Lowercase a SHA256 fingerprint and strip ':' and spaces."""
    return fingerprint.lower().replace(':', '').replace(' ', '')


def extract_cert_sha256(response) -> str:
    """
    Extract the SHA256 of the peer certificate from a streamed requests response.

    The response must have been made with stream=True so the socket is still
    open. Returns "" when the certificate is not reachable (plain HTTP, or an
    urllib3 that hides the socket).
    """
    raw = getattr(response, 'raw', None)
    sock = None

    conn = getattr(raw, '_connection', None)
    if conn:
        sock = getattr(conn, 'sock', None)

    if not sock or not hasattr(sock, 'getpeercert'):
        fp = getattr(getattr(raw, '_fp', None), 'fp', None)
        if fp is not None:
            sock = getattr(fp, 'raw', None) or getattr(fp, '_sock', None)

    if sock and hasattr(sock, 'getpeercert'):
        cert_der = sock.getpeercert(binary_form=True)
        if cert_der:
            return hashlib.sha256(cert_der).hexdigest().lower()
    return ""


def verify_cert_sha256(actual_sha256: str, expected_sha256: str) -> bool:
    """
    Compare the server certificate fingerprint with the pinned one.

    Returns:
        True if pinning is not configured, could not be checked, or matches

    Raises:
        SSLVerificationError: if the fingerprints differ
    """
    if not expected_sha256:
        return True

    if not actual_sha256:
        logger.warning(
            "ssl_sha256 is configured but the server certificate could not be "
            "read from the connection. Skipping certificate pinning."
        )
        return True

    expected_clean = normalize_fingerprint(expected_sha256)

    if actual_sha256 != expected_clean:
        raise SSLVerificationError(
            f"SSL certificate mismatch!\n"
            f"Expected: {expected_clean}\n"
            f"Got:      {actual_sha256}"
        )

    logger.debug("SSL certificate pinning verified successfully")
    return True

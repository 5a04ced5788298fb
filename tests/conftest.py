"""Shared fixtures: throwaway signing keys and ready-made configs."""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apple_music_api.config import ClientConfig

BASE_URL = "https://api.music.apple.com"


def _pem(private_key: ec.EllipticCurvePrivateKey) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def ec_private_key() -> ec.EllipticCurvePrivateKey:
    """Fresh P-256 key, the curve Apple issues .p8 keys on."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def private_key_pem(ec_private_key: ec.EllipticCurvePrivateKey) -> str:
    return _pem(ec_private_key)


@pytest.fixture
def p384_private_key_pem() -> str:
    return _pem(ec.generate_private_key(ec.SECP384R1()))


@pytest.fixture
def simple_config() -> ClientConfig:
    """Raw developer token config with fast, deterministic backoff."""
    return ClientConfig.new("dev-token").with_backoff(base=0.1, cap=1.0, jitter=0.0)


@pytest.fixture
def jwt_config(private_key_pem: str) -> ClientConfig:
    return ClientConfig.from_jwt("TEAM123456", "KEY1234567", private_key_pem)

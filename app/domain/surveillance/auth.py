"""Credential validation for the surveillance gateway."""

import hmac
from typing import Protocol


class Authenticator(Protocol):
    def validate(self, credentials: str) -> bool: ...


class SharedSecretAuthenticator:
    """Accepts exactly one static shared password."""

    def __init__(self, secret: str):
        self._secret = secret.encode("utf-8")

    def validate(self, credentials: str) -> bool:
        return hmac.compare_digest(credentials.encode("utf-8"), self._secret)

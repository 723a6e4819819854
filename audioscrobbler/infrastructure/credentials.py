"""Credential store backed by application settings.

Encryption at rest is owned by whoever writes the settings. This store hands
the stored value to a pluggable decryptor, which defaults to treating the
stored value as plaintext.
"""

from collections.abc import Callable

from attrs import define, field

from audioscrobbler.config import settings


def _plaintext(ciphertext: str) -> str:
    return ciphertext


@define(slots=True)
class SettingsCredentialStore:
    """Reads the password from ``settings.credentials``."""

    stored_password: str | None = field(default=None, repr=False)
    decryptor: Callable[[str], str] = field(default=_plaintext, repr=False)

    def get(self) -> str:
        if self.stored_password is not None:
            return self.stored_password
        return settings.credentials.lastfm_password

    def decrypt(self, ciphertext: str) -> str:
        return self.decryptor(ciphertext)

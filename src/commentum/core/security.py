"""Identity token issuance and verification.

Tokens are compact HS256 JWS strings (``header.payload.signature``) whose payload
carries only the subject id and a short provider code. They carry no role and no
expiry: the signing secret is the only thing that can invalidate them.
"""
from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum

from jose import jwt
from jose.exceptions import JOSEError

logger = logging.getLogger(__name__)

TOKEN_SEGMENTS = 3


class ConfigurationError(RuntimeError):
    """Raised when a required piece of server configuration is missing."""


class Provider(str, Enum):
    """Identity providers a subject id can be namespaced under."""

    ANILIST = "anilist"
    MYANIMELIST = "myanimelist"
    SIMKL = "simkl"
    OTHER = "other"


PROVIDER_CODES: dict[Provider, str] = {
    Provider.ANILIST: "al",
    Provider.MYANIMELIST: "mal",
    Provider.SIMKL: "sk",
    Provider.OTHER: "ot",
}
_PROVIDERS_BY_CODE: dict[str, Provider] = {code: provider for provider, code in PROVIDER_CODES.items()}


@dataclass(frozen=True)
class IdentityClaims:
    """Verified identity extracted from a token."""

    subject_id: str
    provider: Provider


def _is_canonical_segment(segment: str) -> bool:
    """Return True if ``segment`` is unpadded base64url that round-trips exactly.

    Decoders ignore the unused low bits of the final character, so two different
    strings can decode to the same bytes. Requiring the canonical spelling makes
    every character of the token significant.
    """
    if not segment:
        return False
    padding = "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(segment + padding)
    except (binascii.Error, ValueError):
        return False
    return base64.urlsafe_b64encode(raw).decode().rstrip("=") == segment


class TokenCodec:
    """Issue and verify identity tokens with an injected signing secret."""

    def __init__(self, secret: str | None, algorithm: str = "HS256") -> None:
        self._secret = secret or None
        self._algorithm = algorithm

    @property
    def configured(self) -> bool:
        """Return True when a signing secret is available."""
        return self._secret is not None

    def issue(self, subject_id: str, provider: Provider | str) -> str:
        """Return a signed token for ``(subject_id, provider)``.

        Raises:
            ConfigurationError: If no signing secret was configured.
            ValueError: If the subject id is empty or the provider is unknown.
        """
        if self._secret is None:
            raise ConfigurationError("JWT_SECRET is not configured; cannot issue tokens")
        if not isinstance(subject_id, str) or not subject_id:
            raise ValueError("subject_id must be a non-empty string")
        code = PROVIDER_CODES[Provider(provider)]
        token: str = jwt.encode(
            {"uid": subject_id, "ct": code},
            self._secret,
            algorithm=self._algorithm,
        )
        return token

    def verify(self, token: str | None) -> IdentityClaims | None:
        """Return the claims carried by ``token``, or None if it is invalid.

        Never raises: every malformed, tampered or unverifiable token is None.
        """
        if self._secret is None:
            logger.error("JWT_SECRET is not configured; rejecting token")
            return None
        if not isinstance(token, str):
            return None

        segments = token.split(".")
        if len(segments) != TOKEN_SEGMENTS:
            return None
        if not all(_is_canonical_segment(segment) for segment in segments):
            return None

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except (JOSEError, ValueError, TypeError) as err:
            logger.debug("Token verification failed: %s", err)
            return None

        subject_id = payload.get("uid")
        code = payload.get("ct")
        if not isinstance(subject_id, str) or not subject_id:
            return None
        if not isinstance(code, str) or code not in _PROVIDERS_BY_CODE:
            return None
        return IdentityClaims(subject_id=subject_id, provider=_PROVIDERS_BY_CODE[code])

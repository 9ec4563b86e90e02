"""
Bearer-token acquisition for Google Cloud backends.

``CredentialProvider.get_token()`` hides where tokens come from: a static
value, an environment variable, or the gcloud CLI.
"""

import os
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from ...utils.error_handling import AuthError
from ...utils.logging import get_logger


class CredentialProvider(ABC):
    """Source of OAuth bearer tokens."""

    @abstractmethod
    def get_token(self) -> str:
        """Return a bearer token.

        Raises:
            AuthError: If no token can be obtained
        """

    def invalidate(self) -> None:
        """Forget any cached token (called after a 401)."""


class StaticCredentialProvider(CredentialProvider):
    def __init__(self, token: str):
        if not token:
            raise AuthError("Static credential provider needs a non-empty token")
        self._token = token

    def get_token(self) -> str:
        return self._token


class EnvCredentialProvider(CredentialProvider):
    """Reads the token from an environment variable on every call."""

    def __init__(self, variable: str = "GOOGLE_OAUTH_ACCESS_TOKEN"):
        self.variable = variable

    def get_token(self) -> str:
        token = os.environ.get(self.variable, "").strip()
        if not token:
            raise AuthError(
                f"Environment variable {self.variable} is not set",
                details={"source": "env", "variable": self.variable}
            )
        return token


class GcloudCredentialProvider(CredentialProvider):
    """
    Runs ``gcloud auth application-default print-access-token``.

    Tokens are cached for ``cache_seconds``; Google access tokens live an hour.
    """

    DEFAULT_COMMAND = ["gcloud", "auth", "application-default", "print-access-token"]

    def __init__(
        self,
        command: Optional[List[str]] = None,
        cache_seconds: float = 45 * 60,
        timeout: float = 30.0,
    ):
        self.command = command or list(self.DEFAULT_COMMAND)
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self.logger = get_logger(__name__)
        self._token: Optional[str] = None
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    def get_token(self) -> str:
        with self._lock:
            if self._token and time.monotonic() - self._fetched_at < self.cache_seconds:
                return self._token

            self._token = self._fetch()
            self._fetched_at = time.monotonic()
            return self._token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None

    def _fetch(self) -> str:
        self.logger.debug("Fetching access token from gcloud")
        try:
            completed = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise AuthError("gcloud CLI not found; install it or use another credential source",
                            details={"source": "gcloud"}) from e
        except subprocess.TimeoutExpired as e:
            raise AuthError(f"gcloud did not return a token within {self.timeout}s",
                            details={"source": "gcloud"}) from e

        token = completed.stdout.strip().splitlines()[0].strip() if completed.stdout.strip() else ""
        if completed.returncode != 0 or not token:
            raise AuthError(
                f"Unable to get access token from gcloud: {completed.stderr.strip()[:200]}",
                details={"source": "gcloud", "returncode": completed.returncode}
            )
        return token

"""
Embedding providers: the Gemini ``embedContent`` API and a local hashing
embedder that needs no network.
"""

import hashlib
import re
from functools import lru_cache
from typing import List, Optional

import numpy as np
import requests

from .base import EmbeddingProvider, post_json
from .gemini import GEMINI_BASE_URL
from ...utils.error_handling import AuthError, EmptyResponseError


class GeminiEmbeddingProvider(EmbeddingProvider):
    """Embeds text with ``models/{model}:embedContent``."""

    def __init__(self, api_key: Optional[str], model: str = "text-embedding-004",
                 base_url: Optional[str] = None, timeout: float = 30.0):
        super().__init__()
        if not api_key:
            raise AuthError(
                "Gemini API key is not configured; set GEMINI_API_KEY or llm.api_key",
                details={"provider": "gemini"}
            )
        self.api_key = api_key
        self.model = model
        self.base_url = (base_url or GEMINI_BASE_URL).rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()

    def embed(self, text: str) -> List[float]:
        payload = {
            "model": f"models/{self.model}",
            "content": {"parts": [{"text": text}]},
        }
        data = post_json(
            self.session,
            f"{self.base_url}/models/{self.model}:embedContent",
            payload,
            provider="gemini",
            timeout=self.timeout,
            headers={"x-goog-api-key": self.api_key},
        )

        values = (data.get("embedding") or {}).get("values")
        if not values:
            raise EmptyResponseError("gemini returned no embedding values", details={"provider": "gemini"})
        return [float(v) for v in values]

    def close(self) -> None:
        self.session.close()


TOKEN_CACHE_SIZE = 4096


@lru_cache(maxsize=TOKEN_CACHE_SIZE)
def token_vector(token: str, dimension: int) -> np.ndarray:
    """Pseudo-random vector for one token, seeded from its sha256 digest."""
    seed = int.from_bytes(hashlib.sha256(token.encode("utf-8")).digest()[:8], "big")
    vector = np.random.default_rng(seed).standard_normal(dimension)
    vector.setflags(write=False)
    return vector


class HashEmbeddingProvider(EmbeddingProvider):
    """
    Feature-hashing embedder.

    Each lowercase token maps to a fixed pseudo-random vector seeded from its
    sha256 digest; a text is the normalised sum of its token vectors. Texts
    sharing words score higher, which is enough for offline search.
    """

    TOKEN_PATTERN = re.compile(r"\w+")

    def __init__(self, dimension: int = 768):
        super().__init__()
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension

    def embed(self, text: str) -> List[float]:
        total = np.zeros(self.dimension)
        for token in self.TOKEN_PATTERN.findall(text.lower()):
            total += token_vector(token, self.dimension)

        norm = np.linalg.norm(total)
        if norm > 0:
            total /= norm
        return total.tolist()

    @property
    def provider_name(self) -> str:
        return "hash"


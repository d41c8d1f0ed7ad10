"""Signing-key and verified-token caches for identity tokens.

Public keys come from the identity provider's JWKS endpoint (Firebase's
securetoken key set by default) and are kept in memory by key id.
"""

from typing import Dict, Optional
from datetime import datetime, timedelta, timezone
import httpx
from jose import jwk

from app.core.config import settings


class AuthCache:
    """
    In-memory JWKS cache plus a short-lived verified-payload cache.

    Key rotation:
    - Every published key is cached under its kid
    - An unknown kid triggers one refresh before giving up
    - The whole set is refreshed once the TTL (1 hour) has passed
    """

    def __init__(self, jwks_url: Optional[str] = None, ttl_hours: int = 1):
        self._jwks_url = jwks_url
        self.keys: Dict[str, str] = {}  # kid -> PEM public key
        self.last_refresh: Optional[datetime] = None
        self.ttl = timedelta(hours=ttl_hours)
        self._client: Optional[httpx.AsyncClient] = None

        # token -> (payload, expiry); keeps re-verification off hot paths
        self.payload_cache: Dict[str, tuple[dict, datetime]] = {}
        self.payload_ttl = timedelta(minutes=5)

    @property
    def jwks_url(self) -> str:
        return self._jwks_url or settings.jwks_url

    def _needs_refresh(self) -> bool:
        if not self.last_refresh or not self.keys:
            return True
        return datetime.now(timezone.utc) - self.last_refresh > self.ttl

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=10.0)
        return self._client

    async def _refresh_keys(self) -> None:
        """
        Fetch the JWKS document and replace the key map.

        Expected shape: {"keys": [{"kid": ..., "kty": "RSA", "n": ..., "e": ..., "alg": "RS256"}]}

        Raises:
            httpx.HTTPError: If the endpoint is unreachable
            ValueError: If no endpoint is configured or the set is empty
        """
        if not self.jwks_url:
            raise ValueError("Identity provider JWKS URL not configured")

        client = await self._get_client()
        response = await client.get(self.jwks_url)
        response.raise_for_status()

        keys_data = response.json().get("keys", [])
        if not keys_data:
            raise ValueError("JWKS response contains no keys")

        new_keys = {}
        for key_data in keys_data:
            kid = key_data.get("kid")
            if not kid:
                continue
            new_keys[kid] = jwk.construct(key_data).to_pem().decode("utf-8")

        self.keys = new_keys
        self.last_refresh = datetime.now(timezone.utc)

    async def get_key(self, kid: str, retry: bool = True) -> Optional[str]:
        """PEM public key for kid, refreshing once on a miss. None if still unknown."""
        if self._needs_refresh():
            await self._refresh_keys()

        if kid in self.keys:
            return self.keys[kid]

        if retry:
            await self._refresh_keys()
            return self.keys.get(kid)

        return None

    def get_payload(self, token: str) -> Optional[dict]:
        entry = self.payload_cache.get(token)
        if entry is None:
            return None

        payload, expiry = entry
        if datetime.now(timezone.utc) >= expiry:
            del self.payload_cache[token]
            return None

        return payload

    def set_payload(self, token: str, payload: dict) -> None:
        # Never cache past the token's own expiry
        expiry = datetime.now(timezone.utc) + self.payload_ttl
        exp_claim = payload.get("exp")
        if isinstance(exp_claim, (int, float)):
            expiry = min(expiry, datetime.fromtimestamp(exp_claim, tz=timezone.utc))
        self.payload_cache[token] = (payload, expiry)

        if len(self.payload_cache) > 100:
            now = datetime.now(timezone.utc)
            self.payload_cache = {
                t: (p, e) for t, (p, e) in self.payload_cache.items()
                if e > now
            }

    def clear(self) -> None:
        self.keys = {}
        self.last_refresh = None
        self.payload_cache = {}

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None


# Shared across all requests
auth_cache = AuthCache()

"""Client for the crates.io registry API.

Resolves the latest published version of a crate so generated manifests
start from current dependency versions.  Lookups are best effort: every
failure is logged and reported as ``None`` so the caller can fall back to a
pinned default.

Typical usage::

    client = RegistryClient()
    versions = client.resolve(DEFAULT_DEPENDENCIES)
"""

from __future__ import annotations

import logging

import httpx

from cargo_scaffold.config import NetworkConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Default dependency set
# ---------------------------------------------------------------------------

DEFAULT_DEPENDENCIES: dict[str, str] = {
    "eyre": "0.6.8",
    "inquire": "0.6.2",
    "tracing": "0.1.39",
    "serde": "1.0.189",
    "serde_json": "1.0.107",
    "tracing-subscriber": "0.3.17",
    "clap": "4.4.3",
}

# Version written for user-requested crates the registry could not resolve.
OVERRIDE_FALLBACK_VERSION = "*"


def merge_dependencies(overrides: list[str] | None = None) -> dict[str, str]:
    """Combine the default dependency set with extra crate names.

    Names already present in the defaults keep their pinned fallback.
    """
    combined = dict(DEFAULT_DEPENDENCIES)
    for name in overrides or []:
        name = name.strip()
        if name and name not in combined:
            combined[name] = OVERRIDE_FALLBACK_VERSION
    return combined


# ---------------------------------------------------------------------------
# RegistryClient
# ---------------------------------------------------------------------------


class RegistryClient:
    """Synchronous client for ``GET /crates/<name>`` on crates.io.

    Results are cached per client so a crate that appears in several
    manifests is only looked up once.
    """

    def __init__(
        self,
        base_url: str = "https://crates.io/api/v1",
        timeout: float = 10.0,
        user_agent: str = "cargo-scaffold",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._cache: dict[str, str | None] = {}

    @classmethod
    def from_config(cls, network: NetworkConfig) -> "RegistryClient":
        return cls(
            base_url=network.registry_url,
            timeout=network.timeout,
            user_agent=network.user_agent,
        )

    def _client(self) -> httpx.Client:
        """Return a fresh ``Client`` configured with our base URL and timeout."""
        return httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    @staticmethod
    def _extract_version(data: dict) -> str | None:
        """Pull the newest stable version out of a ``/crates/<name>`` payload."""
        crate = data.get("crate") or {}
        return crate.get("max_stable_version") or crate.get("newest_version") or None

    def fetch_version(self, name: str) -> str | None:
        """Return the latest version of *name*, or ``None`` on any failure."""
        if name in self._cache:
            return self._cache[name]

        version: str | None = None
        try:
            with self._client() as client:
                response = client.get(f"/crates/{name}")
                response.raise_for_status()
                version = self._extract_version(response.json())
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Registry returned HTTP %s for crate %s", exc.response.status_code, name
            )
        except httpx.HTTPError as exc:
            logger.warning("Failed to query registry for crate %s: %s", name, exc)
        except ValueError:
            logger.warning("Registry returned malformed JSON for crate %s", name)

        self._cache[name] = version
        return version

    def resolve(self, dependencies: dict[str, str]) -> dict[str, str]:
        """Resolve every ``{name: fallback}`` pair to a concrete version."""
        resolved: dict[str, str] = {}
        for name, fallback in dependencies.items():
            version = self.fetch_version(name)
            if version is None:
                logger.debug("Using fallback version %s for %s", fallback, name)
            resolved[name] = version or fallback
        return resolved

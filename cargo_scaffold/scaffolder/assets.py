"""Template image assets for the ``etc/`` directory.

Each asset is downloaded from the asset base URL, decoded with Pillow in its
declared format and re-encoded on disk, so a corrupt or mislabelled payload
never lands in the generated project.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

import httpx
from PIL import Image, UnidentifiedImageError

from cargo_scaffold.config import NetworkConfig
from cargo_scaffold.errors import AssetError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Asset:
    """A template image and the Pillow format it must decode as."""

    filename: str
    image_format: str


ASSETS: tuple[Asset, ...] = (
    Asset("banner.png", "PNG"),
    Asset("logo.png", "PNG"),
    Asset("favicon.ico", "ICO"),
)


class AssetFetcher:
    """Downloads and re-encodes template images."""

    def __init__(
        self,
        base_url: str = "https://raw.githubusercontent.com/refcell/amble/main/etc/template",
        timeout: float = 10.0,
        user_agent: str = "cargo-scaffold",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    @classmethod
    def from_config(cls, network: NetworkConfig) -> "AssetFetcher":
        return cls(
            base_url=network.asset_url,
            timeout=network.timeout,
            user_agent=network.user_agent,
        )

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
            follow_redirects=True,
        )

    def download(self, asset: Asset) -> bytes:
        """Return the raw bytes of *asset*.

        Raises:
            AssetError: The request failed or returned a non-2xx status.
        """
        try:
            with self._client() as client:
                response = client.get(f"/{asset.filename}")
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as exc:
            raise AssetError(f"Failed to download {asset.filename}: {exc}") from exc

    def save(self, asset: Asset, payload: bytes, destination: Path) -> Path:
        """Decode *payload* as ``asset.image_format`` and write it to *destination*."""
        try:
            with Image.open(BytesIO(payload), formats=[asset.image_format]) as image:
                image.load()
                image.save(destination, format=asset.image_format)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise AssetError(f"Failed to decode {asset.filename}: {exc}") from exc
        return destination

    def fetch(self, asset: Asset, directory: Path) -> Path:
        """Download *asset* and store it under *directory*."""
        logger.debug("Fetching asset %s from %s", asset.filename, self.base_url)
        payload = self.download(asset)
        return self.save(asset, payload, directory / asset.filename)

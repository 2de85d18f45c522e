"""License text lookup and placeholder imputation.

License texts come from the SPDX license list (``licenses.json`` for the
identifier index, ``<id>.json`` for the text).  A bundled MIT license is the
fallback when the lookup fails and the user agrees to use it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx

from cargo_scaffold.config import NetworkConfig
from cargo_scaffold.errors import LicenseLookupError

logger = logging.getLogger(__name__)


MIT_LICENSE = """MIT License

Copyright (c) [year] [fullname]

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.
"""

_YEAR_PATTERN = re.compile(r"<year>|\[year\]|\[yyyy\]", re.IGNORECASE)
_HOLDER_PATTERN = re.compile(
    r"<fullname>|\[fullname\]|<copyright holders>|\[name of copyright owner\]",
    re.IGNORECASE,
)

# Manifest spelling of common identifiers; anything else is used as given.
_CANONICAL_IDS: dict[str, str] = {
    "mit": "MIT",
    "apache-2.0": "Apache-2.0",
    "gpl-2.0": "GPL-2.0",
    "gpl-3.0": "GPL-3.0",
    "lgpl-3.0": "LGPL-3.0",
    "agpl-3.0": "AGPL-3.0",
    "mpl-2.0": "MPL-2.0",
    "bsd-2-clause": "BSD-2-Clause",
    "bsd-3-clause": "BSD-3-Clause",
    "isc": "ISC",
    "unlicense": "Unlicense",
    "0bsd": "0BSD",
}


def canonical_license_id(identifier: str) -> str:
    """Return the SPDX spelling of *identifier* for ``Cargo.toml``."""
    return _CANONICAL_IDS.get(identifier.strip().lower(), identifier.strip())


def current_year() -> int:
    return datetime.now(timezone.utc).year


def impute_license(text: str, holder: str, year: int | None = None) -> str:
    """Replace year and copyright-holder placeholders in a license text."""
    year_str = str(year if year is not None else current_year())
    text = _YEAR_PATTERN.sub(year_str, text)
    return _HOLDER_PATTERN.sub(lambda _: holder, text)


def build_mit_license(holder: str, year: int | None = None) -> str:
    """Return the bundled MIT license with placeholders filled in."""
    return impute_license(MIT_LICENSE, holder, year)


# ---------------------------------------------------------------------------
# LicenseClient
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LicenseText:
    """A resolved license."""

    spdx_id: str
    name: str
    text: str


class LicenseClient:
    """Fetches license texts from the SPDX license list."""

    def __init__(
        self,
        base_url: str = "https://spdx.org/licenses",
        timeout: float = 10.0,
        user_agent: str = "cargo-scaffold",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    @classmethod
    def from_config(cls, network: NetworkConfig) -> "LicenseClient":
        return cls(
            base_url=network.spdx_url,
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

    def fetch(self, identifier: str) -> LicenseText:
        """Resolve *identifier* (case-insensitive) to its license text.

        Raises:
            LicenseLookupError: The identifier is unknown, the SPDX list is
                unreachable, or the entry carries no text.
        """
        wanted = identifier.strip().lower()
        logger.debug("Fetching license %s from %s", identifier, self.base_url)
        try:
            with self._client() as client:
                index = client.get("/licenses.json")
                index.raise_for_status()
                spdx_id = self._find_id(index.json(), wanted)
                if spdx_id is None:
                    raise LicenseLookupError(
                        f'Failed to find license "{identifier}" in SPDX database'
                    )
                details = client.get(f"/{spdx_id}.json")
                details.raise_for_status()
                data = details.json()
        except httpx.HTTPError as exc:
            raise LicenseLookupError(f'Failed to query license "{identifier}": {exc}') from exc
        except ValueError as exc:
            raise LicenseLookupError(f"SPDX returned malformed JSON for {identifier}") from exc

        text = data.get("licenseText")
        if not text:
            raise LicenseLookupError(f'SPDX entry for "{identifier}" has no license text')
        logger.debug("Fetched license %s", spdx_id)
        return LicenseText(spdx_id=spdx_id, name=data.get("name", spdx_id), text=text)

    @staticmethod
    def _find_id(index: dict, wanted: str) -> str | None:
        for entry in index.get("licenses", []):
            license_id = entry.get("licenseId", "")
            if license_id.lower() == wanted:
                return license_id
        return None

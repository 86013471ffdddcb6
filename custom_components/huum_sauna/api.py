"""Async REST client for the HUUM sauna cloud."""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Mapping
import logging
from typing import Any

import aiohttp

from .const import API_BASE, REQUEST_TIMEOUT, START_PATH, STATUS_PATH, STOP_PATH
from .sanitize import mask_identifier, redact_text
from .utils import format_number

_LOGGER = logging.getLogger(__name__)


class HuumError(Exception):
    """Base class for HUUM cloud failures."""


class HuumAuthError(HuumError):
    """Authentication with the HUUM cloud failed."""


class RemoteFetchError(HuumError):
    """The status endpoint returned something other than a status payload."""


class RemoteCommandError(HuumError):
    """A start/stop command could not be delivered."""


def _describe(err: BaseException) -> str:
    """Return a short, credential-free description of a transport error."""

    if isinstance(err, aiohttp.ClientResponseError):
        return f"HTTP {err.status}"
    return redact_text(str(err)) or type(err).__name__


class HuumClient:
    """Thin async client for the HUUM cloud (basic auth on every call)."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        username: str,
        password: str,
        *,
        api_base: str = API_BASE,
    ) -> None:
        """Initialise the REST client with authentication context."""
        self._session = session
        self._username = username
        token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
        self._authorization = f"Basic {token}"
        base = api_base or API_BASE
        self._api_base = base if base.endswith("/") else f"{base}/"

    @property
    def api_base(self) -> str:
        """Return the base URL requests are resolved against."""

        return self._api_base

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Perform an authenticated HTTP request.

        Return JSON when possible, otherwise text. Errors are logged without
        credentials and re-raised for the caller to handle.
        """
        headers = kwargs.pop("headers", {})
        headers.setdefault("Authorization", self._authorization)
        headers.setdefault("Accept", "application/json")
        timeout = kwargs.pop("timeout", aiohttp.ClientTimeout(total=REQUEST_TIMEOUT))
        url = path if path.startswith("http") else f"{self._api_base}{path}"
        _LOGGER.debug(
            "HTTP %s %s user=%s", method, url, mask_identifier(self._username)
        )

        try:
            async with self._session.request(
                method, url, headers=headers, timeout=timeout, **kwargs
            ) as resp:
                ctype = resp.headers.get("Content-Type", "")
                try:
                    body_text = await resp.text()
                except (aiohttp.ClientError, UnicodeDecodeError):
                    body_text = ""

                if resp.status >= 400:
                    _LOGGER.error(
                        "HTTP error %s %s -> %s; body=%s",
                        method,
                        url,
                        resp.status,
                        redact_text(body_text),
                    )
                else:
                    _LOGGER.debug("HTTP %s -> %s, ctype=%s", url, resp.status, ctype)

                if resp.status in (401, 403):
                    raise HuumAuthError(f"Unauthorized (status {resp.status})")
                if resp.status >= 400:
                    raise aiohttp.ClientResponseError(
                        resp.request_info,
                        resp.history,
                        status=resp.status,
                        message=body_text,
                        headers=resp.headers,
                    )

                # Try JSON first; fall back to text
                if "application/json" in ctype or (
                    body_text and body_text.lstrip()[:1] in ("{", "[")
                ):
                    try:
                        return await resp.json(content_type=None)
                    except ValueError:
                        return body_text
                return body_text
        except HuumAuthError:
            raise
        except aiohttp.ClientResponseError:
            raise
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            _LOGGER.error(
                "Request %s %s failed (sanitized): %s",
                method,
                url,
                _describe(err),
            )
            raise

    # ----------------- Public API -----------------

    async def async_get_status(self) -> Mapping[str, Any]:
        """Return the raw status payload of the sauna."""

        try:
            data = await self._request("GET", STATUS_PATH)
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise RemoteFetchError(_describe(err)) from err
        if not isinstance(data, Mapping):
            raise RemoteFetchError(
                f"Unexpected status payload type: {type(data).__name__}"
            )
        return data

    async def async_start(self, target_celsius: float) -> None:
        """Start heating towards ``target_celsius``."""

        try:
            await self._request(
                "POST",
                START_PATH,
                params={"targetTemperature": format_number(target_celsius)},
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise RemoteCommandError(_describe(err)) from err

    async def async_stop(self) -> None:
        """Stop heating."""

        try:
            await self._request("POST", STOP_PATH)
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise RemoteCommandError(_describe(err)) from err

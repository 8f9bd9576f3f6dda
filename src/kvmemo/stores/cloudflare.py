"""Cloudflare Workers KV store over the Cloudflare REST API.

Usage:
    store = CloudflareKVStore(account_id, namespace_id, api_token)
    init_environment(KV=store)
    ...
    await store.aclose()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeAlias
from urllib.parse import quote

import httpx
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from kvmemo.errors import StoreError

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.cloudflare.com/client/v4/"

RetryDecorator: TypeAlias = Callable[[Callable[..., Any]], Callable[..., Any]]

# HTTP status codes are interpreted by the store; only transport errors retry.
_DEFAULT_RETRY: RetryDecorator = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential_jitter(initial=0.5, max=5),
    retry=retry_if_exception_type(httpx.TransportError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class CloudflareKVStore:
    """KVStore backed by a Workers KV namespace.

    ``retry`` wraps each HTTP request; pass ``None`` to send every request
    exactly once.
    """

    def __init__(
        self,
        account_id: str,
        namespace_id: str,
        api_token: str,
        client: httpx.AsyncClient | None = None,
        retry: RetryDecorator | None = _DEFAULT_RETRY,
        base_url: str = _BASE_URL,
    ) -> None:
        if not account_id or not namespace_id or not api_token:
            raise ValueError("account_id, namespace_id and api_token are required for CloudflareKVStore")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0))
        self._headers = {"Authorization": f"Bearer {api_token}"}
        self._values_url = f"{base_url}accounts/{account_id}/storage/kv/namespaces/{namespace_id}/values/"
        self._request_with_retry = retry(self._do_request) if retry is not None else self._do_request

    def _url(self, key: str) -> str:
        return self._values_url + quote(key, safe="")

    async def _do_request(self, method: str, key: str, **kwargs: Any) -> httpx.Response:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        return await self._client.request(method, self._url(key), headers=headers, **kwargs)

    async def _request(self, method: str, key: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s KV key %s", method, key)
        try:
            return await self._request_with_retry(method, key, **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"Cloudflare KV {method} failed for key {key}", e) from e

    @staticmethod
    def _check(response: httpx.Response, method: str, key: str) -> None:
        if response.is_success:
            return
        raise StoreError(f"Cloudflare KV {method} for key {key} returned HTTP {response.status_code}: {response.text}")

    async def get(self, key: str) -> str | None:
        response = await self._request("GET", key)
        if response.status_code == 404:
            return None
        self._check(response, "GET", key)
        return response.text

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        response = await self._request(
            "PUT",
            key,
            params={"expiration_ttl": ttl_seconds},
            content=value.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )
        self._check(response, "PUT", key)

    async def delete(self, key: str) -> None:
        response = await self._request("DELETE", key)
        if response.status_code == 404:
            return
        self._check(response, "DELETE", key)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

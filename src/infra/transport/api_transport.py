"""REST management API transport.

Talks to the LLNG manager API (``/api/v1``) with ``requests``. Operations
that the API only exposes as whole documents (configuration) are implemented
as read-modify-write sequences and are not atomic.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import requests
from loguru import logger

from src.app.runtime.config.config_data import ApiParams
from src.infra.constants import DEFAULT_CONSTANTS

from .controller import (
    BackendSelection,
    ConfigInfo,
    LlngTransport,
    SessionDeleteOptions,
    SessionFilter,
    SessionOptions,
    resolve_backend,
)
from .errors import HttpError, NetworkError, RollbackBoundaryError, UnsupportedOperationError

# Keys never copied by deep_merge, at any depth
UNSAFE_MERGE_KEYS = frozenset({"__proto__", "constructor", "prototype"})


def deep_merge(target: Mapping[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``source`` into a copy of ``target``.

    Nested mappings merge key by key; lists and scalars replace the target
    value wholesale.
    """
    result = dict(target)
    for key, value in source.items():
        if key in UNSAFE_MERGE_KEYS:
            continue
        if isinstance(value, Mapping):
            current = result.get(key)
            result[key] = deep_merge(current if isinstance(current, Mapping) else {}, value)
        else:
            result[key] = value
    return result


def load_payload(payload: str) -> Any:
    """Decode a JSON document supplied by the caller."""
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON payload at line {e.lineno} column {e.colno}") from e


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _entries_to_list(result: Any) -> list[Any]:
    """Normalize an id-keyed object (``{id: {...}}``) into ``[{"id": id, ...}]``."""
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        return [
            {"id": key, **value} if isinstance(value, dict) else {"id": key, "value": value}
            for key, value in result.items()
        ]
    return []


class ApiTransport(LlngTransport):
    """LLNG administration through the REST management API.

    Example:
        transport = ApiTransport(ApiParams(base_url="https://manager.example.com"))
        sessions = transport.session_search(SessionFilter(where={"uid": "dwho"}))
    """

    mode = "api"

    def __init__(self, params: ApiParams, session: requests.Session | None = None):
        self.base_url = params.base_url.rstrip("/")
        self.verify_ssl = params.verify_ssl
        self.timeout = params.timeout
        self._auth = (
            (params.basic_auth.username, params.basic_auth.password)
            if params.basic_auth
            else None
        )
        self.session = session or requests.Session()

        if not self.verify_ssl:
            logger.warning(
                "SSL certificate verification is disabled. This makes the connection "
                "vulnerable to man-in-the-middle attacks. Do not use in production."
            )

    # =========================================================================
    # HTTP plumbing
    # =========================================================================

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        """Send one request and decode the response.

        Raises:
            HttpError: On a non-2xx status
            NetworkError: If the request could not be completed
        """
        logger.debug(f"{method} {path}")
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=body if body is not None and method != "GET" else None,
                headers={"Content-Type": "application/json"},
                auth=self._auth,
                verify=self.verify_ssl,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(str(e)) from e

        self._handle_error(response)
        try:
            return self._decode(response)
        except ValueError as e:
            raise NetworkError(f"Invalid JSON response: {e}") from e

    @staticmethod
    def _handle_error(response: requests.Response) -> None:
        if not 200 <= response.status_code < 300:
            raise HttpError(response.status_code, response.reason or "", response.text)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            return response.json()
        text = response.text
        if not text:
            return {}
        try:
            return json.loads(text)
        except ValueError:
            return text

    def _latest_config(self) -> dict[str, Any]:
        return self._request("GET", DEFAULT_CONSTANTS.config_latest_path)

    def _save_config(self, config: Any) -> None:
        self._request("PUT", DEFAULT_CONSTANTS.config_path, body=config)

    # =========================================================================
    # Configuration
    # =========================================================================

    def config_info(self) -> ConfigInfo:
        data = self._latest_config()
        return ConfigInfo(
            cfg_num=int(data.get("cfgNum") or 0),
            cfg_author=data.get("cfgAuthor") or "",
            cfg_date=str(data.get("cfgDate") or ""),
            cfg_log=data.get("cfgLog"),
        )

    def config_get(self, keys: list[str]) -> dict[str, Any]:
        config = self._latest_config()
        return {key: config[key] for key in keys if key in config}

    def config_set(self, pairs: dict[str, Any], log: str | None = None) -> None:
        updated = {**self._latest_config(), **pairs}
        if log:
            updated["cfgLog"] = log
        self._save_config(updated)

    def config_add_key(self, key: str, subkey: str, value: str) -> None:
        config = self._latest_config()
        if not isinstance(config.get(key), dict):
            config[key] = {}
        config[key][subkey] = value
        self._save_config(config)

    def config_del_key(self, key: str, subkey: str) -> None:
        config = self._latest_config()
        current = config.get(key)
        if isinstance(current, dict) and subkey in current:
            del current[subkey]
            self._save_config(config)

    def config_save(self) -> str:
        return json.dumps(self._latest_config(), indent=2)

    def config_restore(self, payload: str) -> None:
        self._save_config(load_payload(payload))

    def config_merge(self, payload: str) -> None:
        snippet = load_payload(payload)
        if not isinstance(snippet, dict):
            raise ValueError("Merge payload must be a JSON object")
        self._save_config(deep_merge(self._latest_config(), snippet))

    def config_rollback(self) -> None:
        current_num = int(self._latest_config().get("cfgNum") or 0)
        if current_num <= 1:
            raise RollbackBoundaryError("Cannot rollback: already at first config")
        previous = self._request(
            "GET", f"{DEFAULT_CONSTANTS.API_PREFIX}/config/{current_num - 1}"
        )
        self._save_config(previous)

    def config_update_cache(self) -> None:
        # Cache is managed server-side
        return None

    def config_test_email(self, destination: str) -> None:
        raise UnsupportedOperationError(
            "config_test_email is not supported via API. Use SSH or K8s mode."
        )

    def config_dump(self) -> str:
        raise UnsupportedOperationError(
            "config_dump is not supported via API. Use SSH or K8s mode."
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def _select_backend(self, options: SessionOptions | None) -> BackendSelection:
        if options is not None and options.hash:
            logger.warning("The hash option has no REST equivalent and is ignored")
        return resolve_backend(options)

    def _session_path(self, backend: str, session_id: str | None = None) -> str:
        path = f"{DEFAULT_CONSTANTS.API_PREFIX}/sessions/{_segment(backend)}"
        if session_id is not None:
            path = f"{path}/{_segment(session_id)}"
        return path

    def session_get(
        self, session_id: str, options: SessionOptions | None = None
    ) -> dict[str, Any]:
        selection = self._select_backend(options)
        return self._request("GET", self._session_path(selection.name, session_id))

    def session_search(self, filters: SessionFilter) -> list[Any]:
        filters = filters.normalized()
        selection = self._select_backend(filters)

        params: dict[str, str] = {}
        where = {**(filters.where or {}), **selection.where}
        if where:
            params["where"] = " AND ".join(f"{key}={value}" for key, value in where.items())
        if filters.id_only:
            params["select"] = "_session_id"
        elif filters.select:
            params["select"] = ",".join(filters.select)
        if filters.count:
            params["count"] = "1"

        result = self._request(
            "GET", self._session_path(selection.name), params=params or None
        )

        if isinstance(result, dict):
            if filters.count:
                return [result]
            if filters.id_only:
                return list(result)
            return _entries_to_list(result)
        if isinstance(result, list):
            return result
        return [result]

    def session_delete(
        self, ids: list[str], options: SessionDeleteOptions | None = None
    ) -> None:
        if options is not None:
            options = options.normalized()
        selection = self._select_backend(options)

        if options is not None and options.where:
            matches = self.session_search(
                SessionFilter(
                    where=options.where,
                    backend=options.backend,
                    refresh_tokens=options.refresh_tokens,
                    persistent=options.persistent,
                    id_only=True,
                )
            )
            ids = []
            for match in matches:
                session_id = (
                    match
                    if isinstance(match, str)
                    else match.get("id") or match.get("_session_id")
                )
                if session_id:
                    ids.append(session_id)
            logger.debug(f"Deleting {len(ids)} matching session(s)")

        for session_id in ids:
            self._request("DELETE", self._session_path(selection.name, session_id))

    def session_set_key(
        self,
        session_id: str,
        pairs: dict[str, Any],
        options: SessionOptions | None = None,
    ) -> None:
        selection = self._select_backend(options)
        self._request("PUT", self._session_path(selection.name, session_id), body=pairs)

    def session_del_key(
        self,
        session_id: str,
        keys: list[str],
        options: SessionOptions | None = None,
    ) -> None:
        selection = self._select_backend(options)
        self._request(
            "PUT",
            self._session_path(selection.name, session_id),
            body=dict.fromkeys(keys),
        )

    def session_backup(
        self,
        backend: str | None = None,
        refresh_tokens: bool = False,
        persistent: bool = False,
    ) -> str:
        selection = resolve_backend(
            SessionOptions(
                backend=backend, refresh_tokens=refresh_tokens, persistent=persistent
            )
        )
        params = None
        if selection.where:
            params = {
                "where": " AND ".join(f"{k}={v}" for k, v in selection.where.items())
            }
        sessions = self._request("GET", self._session_path(selection.name), params=params)
        return json.dumps(sessions, indent=2)

    # =========================================================================
    # Second factors and consents
    # =========================================================================

    def second_factors_get(self, user: str) -> list[Any]:
        return _entries_to_list(
            self._request("GET", f"{DEFAULT_CONSTANTS.API_PREFIX}/secondfactors/{_segment(user)}")
        )

    def second_factors_delete(self, user: str, ids: list[str]) -> None:
        for device_id in ids:
            self._request(
                "DELETE",
                f"{DEFAULT_CONSTANTS.API_PREFIX}/secondfactors/{_segment(user)}/{_segment(device_id)}",
            )

    def second_factors_del_type(self, user: str, device_type: str) -> None:
        devices = self.second_factors_get(user)
        ids = [
            device["id"]
            for device in devices
            if isinstance(device, dict) and device.get("type") == device_type and device.get("id")
        ]
        self.second_factors_delete(user, ids)

    def consents_get(self, user: str) -> list[Any]:
        return _entries_to_list(
            self._request("GET", f"{DEFAULT_CONSTANTS.API_PREFIX}/consents/{_segment(user)}")
        )

    def consents_delete(self, user: str, ids: list[str]) -> None:
        for consent_id in ids:
            self._request(
                "DELETE",
                f"{DEFAULT_CONSTANTS.API_PREFIX}/consents/{_segment(user)}/{_segment(consent_id)}",
            )

    # =========================================================================
    # Scripts
    # =========================================================================

    def exec_script(self, script_name: str, args: list[str]) -> str:
        raise UnsupportedOperationError(
            "exec_script is not supported via API. Use SSH or K8s mode."
        )

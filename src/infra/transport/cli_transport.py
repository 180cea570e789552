"""Operations shared by the transports that drive the vendor CLI binaries.

``lemonldap-ng-cli`` handles configuration, ``lemonldap-ng-sessions`` handles
sessions. Subclasses only decide *where* an argv runs (local/SSH shell or a
Kubernetes pod) by implementing ``_exec`` and ``_exec_with_stdin``.
"""

from __future__ import annotations

import json
from abc import abstractmethod
from collections.abc import Mapping
from typing import Any

from loguru import logger

from src.infra.constants import DEFAULT_CONSTANTS

from .controller import (
    ConfigInfo,
    LlngTransport,
    SessionDeleteOptions,
    SessionFilter,
    SessionOptions,
)
from .errors import UnsupportedOperationError
from .parsers import parse_get, parse_info, parse_json
from .paths import ResolvedPaths


def stringify(value: Any) -> str:
    """Render a config or session value as a single CLI argument."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict | list):
        return json.dumps(value)
    return str(value)


def session_option_flags(options: SessionOptions | None) -> list[str]:
    """Translate session options into ``lemonldap-ng-sessions`` flags."""
    if options is None:
        return []
    flags: list[str] = []
    if options.persistent:
        flags.append("--persistent")
    if options.hash:
        flags.append("--hash")
    if options.refresh_tokens:
        flags.append("--refresh-tokens")
    if options.backend:
        flags.extend(["--backend", options.backend])
    return flags


def where_flags(where: Mapping[str, str] | None) -> list[str]:
    flags: list[str] = []
    for field_name, value in (where or {}).items():
        flags.extend(["--where", f"{field_name}={value}"])
    return flags


def search_flags(filters: SessionFilter) -> list[str]:
    """Translate a session filter into ``search`` flags in a stable order."""
    flags = where_flags(filters.where)
    if filters.select:
        flags.extend(["--select", ",".join(filters.select)])
    if filters.backend:
        flags.extend(["--backend", filters.backend])
    if filters.count:
        flags.append("--count")
    if filters.refresh_tokens:
        flags.append("--refresh-tokens")
    if filters.persistent:
        flags.append("--persistent")
    if filters.hash:
        flags.append("--hash")
    if filters.id_only:
        flags.append("--id-only")
    return flags


class CliTransport(LlngTransport):
    """Base class for transports that run the LLNG command line tools.

    Second factors and consents have no CLI equivalent; those operations
    fail before any process is started.
    """

    def __init__(self, paths: ResolvedPaths, delete_session_path: str | None = None):
        self.paths = paths
        self.delete_session_path = delete_session_path or paths.sibling_of_cli(
            DEFAULT_CONSTANTS.DELETE_SESSION_SCRIPT
        )

    # =========================================================================
    # Execution hooks
    # =========================================================================

    @abstractmethod
    def _exec(self, argv: list[str], env: Mapping[str, str] | None = None) -> str:
        """Run ``argv`` on the target and return its stdout."""
        ...

    @abstractmethod
    def _exec_with_stdin(self, argv: list[str], payload: str) -> str:
        """Run ``argv`` on the target with ``payload`` written to stdin."""
        ...

    def _cli(self, *args: str) -> str:
        logger.debug(f"{DEFAULT_CONSTANTS.CLI_NAME} {args[0]} via {self.mode}")
        return self._exec([self.paths.cli_path, *args])

    def _sessions(self, *args: str) -> str:
        logger.debug(f"{DEFAULT_CONSTANTS.SESSIONS_NAME} {args[0]} via {self.mode}")
        return self._exec([self.paths.sessions_path, *args])

    @staticmethod
    def _unsupported(operation: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(
            f"{operation} is not supported via CLI. Use API mode."
        )

    # =========================================================================
    # Configuration
    # =========================================================================

    def config_info(self) -> ConfigInfo:
        data = parse_info(self._cli("info"))
        try:
            cfg_num = int(data.get("Num", "0"))
        except ValueError:
            cfg_num = 0
        return ConfigInfo(
            cfg_num=cfg_num,
            cfg_author=data.get("Author", ""),
            cfg_date=data.get("Date", ""),
            cfg_log=data.get("Log"),
        )

    def config_get(self, keys: list[str]) -> dict[str, Any]:
        return dict(parse_get(self._cli("get", *keys)))

    def config_set(self, pairs: dict[str, Any], log: str | None = None) -> None:
        args = ["set", "-yes", "1"]
        for key, value in pairs.items():
            args.extend([key, stringify(value)])
        if log:
            args.extend(["-log", log])
        self._cli(*args)

    def config_add_key(self, key: str, subkey: str, value: str) -> None:
        self._cli("addKey", key, subkey, value)

    def config_del_key(self, key: str, subkey: str) -> None:
        self._cli("delKey", key, subkey)

    def config_save(self) -> str:
        return self._cli("save")

    def config_restore(self, payload: str) -> None:
        logger.debug(f"{DEFAULT_CONSTANTS.CLI_NAME} restore via {self.mode}")
        self._exec_with_stdin([self.paths.cli_path, "restore", "-yes", "1", "-"], payload)

    def config_merge(self, payload: str) -> None:
        logger.debug(f"{DEFAULT_CONSTANTS.CLI_NAME} merge via {self.mode}")
        self._exec_with_stdin([self.paths.cli_path, "merge", "-yes", "1", "-"], payload)

    def config_rollback(self) -> None:
        self._cli("rollback", "-yes", "1")

    def config_update_cache(self) -> None:
        self._cli("update-cache")

    def config_test_email(self, destination: str) -> None:
        self._cli("test-email", destination)

    def config_dump(self) -> str:
        # lmConfigEditor opens $EDITOR on a temp file; cat prints it and exits
        logger.debug(f"{DEFAULT_CONSTANTS.CONFIG_EDITOR_NAME} via {self.mode}")
        return self._exec([self.paths.config_editor_path], env={"EDITOR": "cat"})

    # =========================================================================
    # Sessions
    # =========================================================================

    def session_get(
        self, session_id: str, options: SessionOptions | None = None
    ) -> dict[str, Any]:
        output = self._sessions("get", session_id, *session_option_flags(options))
        return parse_json(output, source=DEFAULT_CONSTANTS.SESSIONS_NAME)

    def session_search(self, filters: SessionFilter) -> list[Any]:
        filters = filters.normalized()
        output = self._sessions("search", *search_flags(filters))
        return parse_json(output, source=DEFAULT_CONSTANTS.SESSIONS_NAME)

    def session_delete(
        self, ids: list[str], options: SessionDeleteOptions | None = None
    ) -> None:
        if options is not None:
            options = options.normalized()
        if options is not None and options.where:
            self._sessions(
                "delete", *where_flags(options.where), *session_option_flags(options)
            )
            return

        # One process per id
        flags = session_option_flags(options)
        for session_id in ids:
            logger.debug(f"{DEFAULT_CONSTANTS.DELETE_SESSION_SCRIPT} via {self.mode}")
            self._exec([self.delete_session_path, session_id, *flags])

    def session_set_key(
        self,
        session_id: str,
        pairs: dict[str, Any],
        options: SessionOptions | None = None,
    ) -> None:
        args = ["setKey", session_id]
        for key, value in pairs.items():
            args.extend([key, stringify(value)])
        self._sessions(*args, *session_option_flags(options))

    def session_del_key(
        self,
        session_id: str,
        keys: list[str],
        options: SessionOptions | None = None,
    ) -> None:
        self._sessions("delKey", session_id, *keys, *session_option_flags(options))

    def session_backup(
        self,
        backend: str | None = None,
        refresh_tokens: bool = False,
        persistent: bool = False,
    ) -> str:
        args = ["search"]
        if backend:
            args.extend(["--backend", backend])
        if refresh_tokens:
            args.append("--refresh-tokens")
        if persistent:
            args.append("--persistent")
        return self._sessions(*args)

    # =========================================================================
    # Second factors and consents (API only)
    # =========================================================================

    def second_factors_get(self, user: str) -> list[Any]:
        raise self._unsupported("second_factors_get")

    def second_factors_delete(self, user: str, ids: list[str]) -> None:
        raise self._unsupported("second_factors_delete")

    def second_factors_del_type(self, user: str, device_type: str) -> None:
        raise self._unsupported("second_factors_del_type")

    def consents_get(self, user: str) -> list[Any]:
        raise self._unsupported("consents_get")

    def consents_delete(self, user: str, ids: list[str]) -> None:
        raise self._unsupported("consents_delete")

    # =========================================================================
    # Scripts
    # =========================================================================

    def exec_script(self, script_name: str, args: list[str]) -> str:
        if not DEFAULT_CONSTANTS.SCRIPT_NAME_PATTERN.match(script_name):
            raise ValueError(f"Invalid script name: {script_name!r}")
        logger.debug(f"Script {script_name} via {self.mode}")
        return self._exec([self.paths.script(script_name), *args])

"""Tests for shell command composition."""

import shlex

import pytest

from src.infra.transport.composer import (
    CommandComposer,
    build_remote_command,
    shell_quote,
    splice_wrapper,
    wrap_ssh,
    wrap_sudo,
)

CLI = "/usr/share/lemonldap-ng/bin/lemonldap-ng-cli"


class TestShellQuote:
    @pytest.mark.parametrize(
        "value",
        [
            "",
            "simple",
            "with space",
            "it's",
            "''",
            "a'b'c",
            "$(rm -rf /)",
            "`id`",
            "line\nbreak",
            'double "quotes"',
            "back\\slash",
            "*?[]{}~",
        ],
    )
    def test_round_trip_through_shlex(self, value: str) -> None:
        """A quoted token always splits back to exactly the original string."""
        assert shlex.split(shell_quote(value)) == [value]

    def test_embedded_quote_is_closed_escaped_and_reopened(self) -> None:
        assert shell_quote("it's") == "'it'\\''s'"

    def test_empty_string_is_two_quotes(self) -> None:
        assert shell_quote("") == "''"


class TestPipelineStages:
    def test_splice_wrapper_inserts_tokens_before_binary(self) -> None:
        assert splice_wrapper([CLI, "info"], "docker exec sso-auth-1") == [
            "docker",
            "exec",
            "sso-auth-1",
            CLI,
            "info",
        ]

    def test_splice_wrapper_honours_quoted_tokens(self) -> None:
        argv = splice_wrapper(["bin"], "docker exec 'my container'")
        assert argv == ["docker", "exec", "my container", "bin"]

    def test_splice_wrapper_without_wrapper_is_identity(self) -> None:
        assert splice_wrapper([CLI, "info"], None) == [CLI, "info"]

    def test_wrap_sudo(self) -> None:
        assert wrap_sudo([CLI, "info"], "www-data") == ["sudo", "-u", "www-data", CLI, "info"]

    def test_wrap_sudo_without_user_is_identity(self) -> None:
        assert wrap_sudo([CLI, "info"], None) == [CLI, "info"]

    def test_wrap_ssh_with_port_and_user(self) -> None:
        assert wrap_ssh("cmd", "sso.example.com", user="admin", port=2222) == [
            "ssh",
            "-p",
            "2222",
            "admin@sso.example.com",
            "cmd",
        ]

    def test_wrap_ssh_host_only(self) -> None:
        assert wrap_ssh("cmd", "sso.example.com") == ["ssh", "sso.example.com", "cmd"]

    def test_remote_command_orders_sudo_wrapper_env_binary(self) -> None:
        command = build_remote_command(
            [CLI, "info"],
            env={"EDITOR": "cat"},
            wrapper="docker exec sso-auth-1",
            sudo="www-data",
        )
        assert command == (
            "sudo -u 'www-data' docker exec sso-auth-1 "
            f"env EDITOR='cat' '{CLI}' 'info'"
        )


class TestCommandComposer:
    def test_remote_with_sudo_and_wrapper(self) -> None:
        composer = CommandComposer(
            host="sso.example.com", sudo="www-data", wrapper="docker exec sso-auth-1"
        )

        composed = composer.compose([CLI, "info"])

        assert composed.argv == [
            "ssh",
            "sso.example.com",
            f"sudo -u 'www-data' docker exec sso-auth-1 '{CLI}' 'info'",
        ]
        assert composed.env is None

    def test_remote_arguments_survive_remote_shell(self) -> None:
        """The remote string splits back into the exact argv on the far side."""
        composer = CommandComposer(host="sso.example.com")
        argv = [CLI, "set", "-yes", "1", "portal", "http://auth.example.com/?a=1&b='x'"]

        remote = composer.compose(argv).argv[-1]

        assert shlex.split(remote) == argv

    def test_local_plain(self) -> None:
        composed = CommandComposer().compose([CLI, "info"])

        assert composed.argv == [CLI, "info"]
        assert composed.env is None

    def test_local_sudo_and_wrapper(self) -> None:
        composer = CommandComposer(sudo="www-data", wrapper="docker exec sso-auth-1")

        composed = composer.compose([CLI, "info"])

        assert composed.argv == [
            "sudo",
            "-u",
            "www-data",
            "docker",
            "exec",
            "sso-auth-1",
            CLI,
            "info",
        ]

    def test_local_env_goes_to_child_environment(self) -> None:
        composed = CommandComposer().compose([CLI, "info"], env={"EDITOR": "cat"})

        assert composed.argv == [CLI, "info"]
        assert composed.env == {"EDITOR": "cat"}

    def test_is_remote(self) -> None:
        assert CommandComposer(host="h").is_remote
        assert not CommandComposer().is_remote

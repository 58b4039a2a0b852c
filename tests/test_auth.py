"""Tests for credential resolution."""

import sys

import pytest

from forge_server.auth import (
    TokenCommandError,
    TokenProvider,
    shell_command,
    with_bearer_scheme,
)
from shared.models import InvocationContext, ServerSettings

URL = "https://graphql.example.com/graphql"

posix_only = pytest.mark.skipif(
    sys.platform.startswith("win"), reason="token commands use sh syntax"
)


def make_context(**kwargs) -> InvocationContext:
    return InvocationContext(request_id="req-1", tool_name="getUser", **kwargs)


class TestShellCommand:
    """Tests for host shell selection."""

    def test_unix_shell(self):
        assert shell_command("gh auth token", platform="linux") == ["sh", "-c", "gh auth token"]
        assert shell_command("gh auth token", platform="darwin") == ["sh", "-c", "gh auth token"]

    def test_windows_shell(self):
        assert shell_command("gh auth token", platform="win32") == ["cmd", "/C", "gh auth token"]


class TestBuildEnv:
    """Tests for the token command environment."""

    def test_empty_without_passthrough(self):
        provider = TokenProvider(ServerSettings(url=URL, env={"FOO": "bar"}))

        env = provider.build_env(base={"HOME": "/home/me"})

        assert env == {"FOO": "bar"}

    def test_passthrough_overlay_replaces_inherited(self):
        provider = TokenProvider(ServerSettings(
            url=URL,
            env={"FOO": "bar"},
            env_passthrough=True
        ))

        env = provider.build_env(base={"FOO": "old", "HOME": "/home/me"})

        assert env == {"FOO": "bar", "HOME": "/home/me"}

    def test_passthrough_defaults_to_process_environment(self, monkeypatch):
        monkeypatch.setenv("FORGE_TEST_INHERITED", "yes")
        provider = TokenProvider(ServerSettings(url=URL, env_passthrough=True))

        env = provider.build_env()

        assert env["FORGE_TEST_INHERITED"] == "yes"


class TestBearerScheme:

    def test_bare_token_gets_prefix(self):
        assert with_bearer_scheme("abc123") == "Bearer abc123"

    def test_value_with_scheme_is_unchanged(self):
        assert with_bearer_scheme("Bearer abc123") == "Bearer abc123"
        assert with_bearer_scheme("Basic dXNlcg==") == "Basic dXNlcg=="

    def test_empty_stays_empty(self):
        assert with_bearer_scheme("") == ""

    def test_scheme_without_token_is_unchanged(self):
        assert with_bearer_scheme("Bearer") == "Bearer"
        assert with_bearer_scheme("basic") == "basic"


class TestTokenCommand:
    """Tests for the token command path."""

    @posix_only
    @pytest.mark.asyncio
    async def test_output_is_trimmed_and_prefixed(self):
        provider = TokenProvider(ServerSettings(url=URL, token_command="echo '  abc123  '"))

        credential = await provider.resolve(make_context())

        assert credential == "Bearer abc123"

    @posix_only
    @pytest.mark.asyncio
    async def test_command_wins_over_inbound_credential(self):
        provider = TokenProvider(ServerSettings(url=URL, token_command="echo abc123"))

        credential = await provider.resolve(make_context(inbound_credential="Bearer other"))

        assert credential == "Bearer abc123"

    @posix_only
    @pytest.mark.asyncio
    async def test_failure_carries_stderr(self):
        provider = TokenProvider(ServerSettings(
            url=URL,
            token_command="echo denied >&2; exit 3"
        ))

        with pytest.raises(TokenCommandError) as exc_info:
            await provider.resolve(make_context())

        assert "denied" in str(exc_info.value)
        assert "exit status 3" in str(exc_info.value)

    @posix_only
    @pytest.mark.asyncio
    async def test_empty_output_is_a_failure(self):
        provider = TokenProvider(ServerSettings(url=URL, token_command="true"))

        with pytest.raises(TokenCommandError, match="empty output"):
            await provider.resolve(make_context())

    @posix_only
    @pytest.mark.asyncio
    async def test_whitespace_output_is_a_failure(self):
        provider = TokenProvider(ServerSettings(url=URL, token_command="printf '  \\n'"))

        with pytest.raises(TokenCommandError, match="empty output"):
            await provider.resolve(make_context())

    @posix_only
    @pytest.mark.asyncio
    async def test_overlay_replaces_inherited_variable_once(self, monkeypatch):
        monkeypatch.setenv("FOO", "old")
        provider = TokenProvider(ServerSettings(
            url=URL,
            token_command="env | grep '^FOO='",
            env={"FOO": "bar"},
            env_passthrough=True
        ))

        credential = await provider.resolve(make_context())

        assert credential == "Bearer FOO=bar"

    @posix_only
    @pytest.mark.asyncio
    async def test_environment_not_inherited_without_passthrough(self, monkeypatch):
        monkeypatch.setenv("FORGE_TEST_SECRET", "leaked")
        provider = TokenProvider(ServerSettings(
            url=URL,
            token_command='echo "${FORGE_TEST_SECRET:-unset}"'
        ))

        credential = await provider.resolve(make_context())

        assert credential == "Bearer unset"


class TestPassThrough:
    """Tests for the pass-through path."""

    @pytest.mark.asyncio
    async def test_inbound_credential_forwarded(self):
        provider = TokenProvider(ServerSettings(url=URL))

        credential = await provider.resolve(make_context(inbound_credential="Bearer inbound"))

        assert credential == "Bearer inbound"

    @pytest.mark.asyncio
    async def test_bare_inbound_token_gets_scheme(self):
        provider = TokenProvider(ServerSettings(url=URL))

        credential = await provider.resolve(make_context(inbound_credential="inbound"))

        assert credential == "Bearer inbound"

    @pytest.mark.asyncio
    async def test_no_credential_is_empty(self):
        provider = TokenProvider(ServerSettings(url=URL), debug=True)

        credential = await provider.resolve(make_context())

        assert credential == ""

"""Credential resolution for upstream GraphQL calls.

Two paths, chosen per call:
- token command: run ``token_command`` through the host shell and use its
  trimmed stdout as a bearer token
- pass-through: forward the Authorization value the inbound HTTP request
  carried, if any

The ``Bearer`` scheme is applied here and nowhere else.
"""

import asyncio
import os
import sys
from typing import Mapping, Optional

from shared.logging import credential_fingerprint, get_logger
from shared.models import InvocationContext, ServerSettings

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "
AUTH_SCHEMES = ("bearer", "basic", "digest", "token")


class TokenCommandError(Exception):
    """The token command could not be run, exited non-zero or printed nothing."""
    pass


def shell_command(command: str, platform: str = sys.platform) -> list[str]:
    """Return the argv that runs ``command`` through the host shell."""
    if platform.startswith("win"):
        return ["cmd", "/C", command]
    return ["sh", "-c", command]


def with_bearer_scheme(credential: str) -> str:
    """Prefix a bare token with the bearer scheme; values with a scheme pass as-is."""
    credential = credential.strip()
    if not credential or " " in credential:
        return credential
    if credential.lower() in AUTH_SCHEMES:
        return credential
    return BEARER_PREFIX + credential


class TokenProvider:
    """
    Resolves the Authorization value for one invocation.

    Stateless apart from the immutable server settings, so a single
    instance serves all concurrent calls.
    """

    def __init__(self, settings: ServerSettings, debug: bool = False) -> None:
        self.settings = settings
        self.debug = debug

    @property
    def uses_command(self) -> bool:
        return bool(self.settings.token_command)

    def build_env(self, base: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        """
        Build the token command environment.

        Starts empty, or from ``base`` (the process environment by default)
        when ``env_passthrough`` is set, then overlays ``env``. Overlay
        entries replace inherited ones.
        """
        env: dict[str, str] = {}
        if self.settings.env_passthrough:
            env.update(os.environ if base is None else base)
        env.update(self.settings.env)
        return env

    async def resolve(self, context: InvocationContext) -> str:
        """
        Resolve the credential for a call.

        Returns:
            The Authorization header value, or an empty string for none

        Raises:
            TokenCommandError: If the token command fails
        """
        if self.uses_command:
            credential = BEARER_PREFIX + await self.run_token_command()
            if self.debug:
                logger.debug(
                    "Obtained token",
                    tool=context.tool_name,
                    sha256=credential_fingerprint(credential)
                )
            return credential

        credential = with_bearer_scheme(context.inbound_credential or "")
        if self.debug:
            logger.debug(
                "Pass through token",
                tool=context.tool_name,
                present=bool(credential),
                sha256=credential_fingerprint(credential)
            )
        return credential

    async def run_token_command(self) -> str:
        """
        Run the token command and return its trimmed stdout.

        Raises:
            TokenCommandError: If the command cannot start, exits non-zero
                or prints no token
        """
        command = self.settings.token_command or ""
        env = self.build_env()

        if self.debug:
            logger.debug(
                "Executing token command",
                command=command,
                env_keys=sorted(env)
            )

        try:
            process = await asyncio.create_subprocess_exec(
                *shell_command(command),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            raise TokenCommandError(f"token_command failed: {e}") from e

        if process.returncode != 0:
            message = f"token_command failed: exit status {process.returncode}"
            error_text = stderr.decode("utf-8", errors="replace").strip()
            if error_text:
                message = f"{message} Stderr: {error_text}"
            logger.warning("Token command failed", exit_status=process.returncode)
            raise TokenCommandError(message)

        token = stdout.decode("utf-8", errors="replace").strip()
        if not token:
            logger.warning("Token command printed no token")
            raise TokenCommandError("token_command failed: empty output")
        return token

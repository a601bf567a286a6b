from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from geode_release.api.http import HttpClient, RealHttpClient
from geode_release.cli.commands._helpers import unwrap_or_exit
from geode_release.output.console import ConsoleProtocol, RichConsole
from geode_release.services.publish.config import PublishConfig, load_publish_config
from geode_release.services.publish.constants import HTTP_TIMEOUT_SECONDS, UPLOAD_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: PublishConfig
    console: ConsoleProtocol
    http: HttpClient


def build_context(
    *,
    owner: str | None,
    repo: str | None,
    branch: str | None,
    workflow_file: str | None,
    verbose: bool,
    env: Mapping[str, str],
    console: ConsoleProtocol | None = None,
) -> CLIContext:
    """Resolve configuration and build the console and HTTP client.

    Exits before any remote call when a required value is missing.
    """
    if console is None:
        console = RichConsole(verbose=verbose)

    config = unwrap_or_exit(
        load_publish_config(
            owner=owner,
            repo=repo,
            branch=branch,
            workflow_file=workflow_file,
            verbose=verbose,
            env=env,
        ),
        console,
    )

    return CLIContext(
        config=config,
        console=console,
        http=RealHttpClient(
            config.token,
            timeout=HTTP_TIMEOUT_SECONDS,
            upload_timeout=UPLOAD_TIMEOUT_SECONDS,
        ),
    )

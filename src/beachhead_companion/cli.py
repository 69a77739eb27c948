from __future__ import annotations

import sys
import threading

import typer

from . import __version__
from .cli_common import console_log_level, format_cli_invocation_for_log, load_config_callback, print_json
from .companion import Companion, install_signal_handlers, restore_signal_handlers
from .configmanager import ConfigManager
from .domain_spec import parse_all
from .errors import ConfigurationError, DomainSpecError
from .inspector import DockerInspector
from .policy import MissingContainerHandling, MissingEnvVarHandling
from .publisher import RedisPublisher
from .publisher.json_serializer import domain_configs

EXIT_CYCLE_ERRORS = 1
EXIT_INVALID_SPEC = 2
EXIT_FATAL = 100

logger = ConfigManager.get_logger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
    pretty_exceptions_short=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"beachhead-companion {__version__}")
        raise typer.Exit()


def _configure_logging(level: str, log_file: str | None) -> None:
    try:
        ConfigManager.configure_logging(level, log_file=log_file)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from None


@app.callback()
def _main(
    ctx: typer.Context,
    env_file: str | None = typer.Option(
        None,
        "--env-file",
        envvar="BEACHHEAD_ENV_FILE",
        help="dotenv file to load before reading BEACHHEAD_* settings",
        is_eager=True,
        callback=load_config_callback,
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        envvar="BEACHHEAD_LOG_LEVEL",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
        show_default=True,
    ),
    log_file: str | None = typer.Option(
        None, "--log-file", envvar="BEACHHEAD_LOG_FILE", help="Also log to this file (or directory)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show additional diagnostic output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show warnings and errors"),
    version: bool = typer.Option(  # noqa: ARG001
        False, "--version", help="Show the version and exit", callback=_version_callback, is_eager=True
    ),
) -> None:
    """Publish the domains declared by docker containers to a Redis registry."""
    ctx.obj = {"log_level": log_level, "log_file": log_file, "verbose": verbose, "quiet": quiet}
    _configure_logging(console_log_level(log_level, verbose=verbose, quiet=quiet), log_file)


@app.command("run")
def run(
    ctx: typer.Context,
    containers: list[str] | None = typer.Argument(None, help="Names or ids of the containers to publish"),
    redis_host: str | None = typer.Option(None, "--redis-host", help="Hostname or IP of the Redis server [env: BEACHHEAD_REDIS_HOST]"),
    redis_port: int | None = typer.Option(None, "--redis-port", help="Port of the Redis server [env: BEACHHEAD_REDIS_PORT]"),
    redis_db: int | None = typer.Option(None, "--redis-db", help="Redis database number [env: BEACHHEAD_REDIS_DB]"),
    expire: int | None = typer.Option(
        None, "--expire", help="Seconds after which registrations expire; 0 means never [env: BEACHHEAD_EXPIRE]"
    ),
    refresh: int | None = typer.Option(
        None,
        "--refresh",
        help="Seconds between refreshes; defaults to 45% of --expire (at least 10); 0 means publish once and exit",
    ),
    docker_url: str | None = typer.Option(None, "--docker-url", help="URL of the docker daemon (default: DOCKER_HOST)"),
    docker_network: bool = typer.Option(
        False, "--docker-network", help="Publish container names instead of bridge IP addresses"
    ),
    envvar: str | None = typer.Option(None, "--envvar", help="Container environment variable holding the domain specs"),
    key_prefix: str | None = typer.Option(None, "--key-prefix", help="Prefix for the Redis keys"),
    enumerate_containers: bool = typer.Option(
        False, "--enumerate", "-e", help="Also publish every running container that declares domains"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Don't update registrations, just check container status and configuration"
    ),
    missing_envvar: MissingEnvVarHandling | None = typer.Option(
        None, "--missing-envvar", case_sensitive=False, help="Handling of containers without the environment variable"
    ),
    missing_container: MissingContainerHandling | None = typer.Option(
        None, "--missing-container", case_sensitive=False, help="Handling of containers that cannot be inspected"
    ),
) -> None:
    """Publish domain specs of the given containers, refreshing until SIGINT/SIGTERM.

    A domain-spec has the format DOMAIN[:http[=PORT]][:https[=PORT]]; several are
    separated by spaces. Without http/https both are assumed, on ports 80 and 443.
    """
    opts = ctx.obj or {}
    if dry_run and opts.get("quiet") and not opts.get("verbose"):
        # Dry runs are for looking at the output.
        _configure_logging(opts.get("log_level") or "INFO", opts.get("log_file"))
    logger.debug("Invocation: %s", format_cli_invocation_for_log(ctx, sys.argv[1:]))

    try:
        config = ConfigManager.companion_config(
            redis_host=redis_host,
            redis_port=redis_port,
            redis_db=redis_db,
            expire_seconds=expire,
            refresh_seconds=refresh,
            docker_url=docker_url,
            docker_network=docker_network or None,
            envvar=envvar,
            key_prefix=key_prefix,
            enumerate=enumerate_containers or None,
            dry_run=dry_run or None,
            missing_envvar=missing_envvar,
            missing_container=missing_container,
        )
        if not containers and not config.enumerate:
            raise ConfigurationError("Provide at least one CONTAINER or use --enumerate")
        companion = Companion(
            config,
            DockerInspector(config),
            RedisPublisher(config),
            container_names=containers or [],
            termination=threading.Event(),
        )
    except (ConfigurationError, ValueError) as e:
        logger.debug("Startup failed", exc_info=True)
        typer.echo(f"Fatal error: {e}", err=True)
        raise typer.Exit(code=EXIT_FATAL) from None

    logger.info(
        "Starting redis=%s:%s expire=%s refresh=%s envvar=%s enumerate=%s dry_run=%s",
        config.redis_host,
        config.redis_port,
        config.expire_seconds,
        config.refresh_seconds,
        config.envvar,
        config.enumerate,
        config.dry_run,
    )

    previous = install_signal_handlers(companion.termination)
    try:
        errors = companion.run()
    finally:
        restore_signal_handlers(previous)

    if errors:
        typer.echo(f"Last refresh cycle finished with {len(errors)} error(s); see log for details", err=True)
        raise typer.Exit(code=EXIT_CYCLE_ERRORS)


@app.command("check")
def check(
    domain_specs: str = typer.Argument(..., help="Domain specs, e.g. 'example.org:https www.example.org'"),
    host: str = typer.Option("HOST", "--host", help="Backend host to show in the records"),
) -> None:
    """Parse domain specs and print the registry records they would produce."""
    try:
        specs = parse_all(domain_specs)
    except DomainSpecError as e:
        typer.echo(f"Invalid domain spec: {e}", err=True)
        raise typer.Exit(code=EXIT_INVALID_SPEC) from None
    print_json(domain_configs(host, specs))


def main() -> None:
    app()

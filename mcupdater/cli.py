"""CLI interface for mcupdater."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import UpdaterClient
from .config import config
from .exceptions import UpdaterCancelledError, UpdaterError
from .output import OutputFormatter
from .profiles import load_profiles, select_profiles
from .updater import Updater
from .utils import default_game_path, expand_path

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool, log_file: Optional[str]) -> None:
    """Configure logging based on the verbose flag and optional log file."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("mcupdater").setLevel(logging.DEBUG)
    else:
        # Set default logging level to WARNING to suppress debug/info messages
        logging.basicConfig(level=logging.WARNING)

    if log_file:
        handler = logging.FileHandler(expand_path(log_file), encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        package_logger = logging.getLogger("mcupdater")
        package_logger.addHandler(handler)
        package_logger.setLevel(logging.DEBUG)


def _require_settings(ctx: Any, out: OutputFormatter) -> tuple[str, str]:
    """Return (server, profile) or exit when either is missing."""
    server = ctx.obj.get("server")
    profile = ctx.obj.get("profile")
    if not server or not profile:
        out.error("Server and profile are not configured.")
        out.info("Run 'mcupdater init' or pass --server and --profile")
        ctx.exit(1)
    return server, profile


def _game_path(ctx: Any) -> Path:
    game_dir = ctx.obj.get("game_dir")
    return expand_path(game_dir) if game_dir else default_game_path()


@click.group()
@click.option("--server", "-s", help="Content server base URL")
@click.option("--profile", "-p", help="Server profile name")
@click.option(
    "--game-dir",
    "-g",
    help="Minecraft directory (default: the platform's .minecraft)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.option("--log-file", help="Write a debug log to this file")
@click.version_option(package_name="mcupdater")
@click.pass_context
def main(
    ctx: Any,
    server: Optional[str],
    profile: Optional[str],
    game_dir: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
    log_file: Optional[str],
) -> None:
    """mcupdater - Keep Minecraft mods, resource packs and shaders in sync."""
    # Store settings in context for subcommands to access
    ctx.ensure_object(dict)
    ctx.obj["server"] = server or config.server
    ctx.obj["profile"] = profile or config.profile
    ctx.obj["game_dir"] = game_dir or config.game_dir
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    _configure_logging(verbose, log_file or config.log_file)


@main.command()
@click.option(
    "--server",
    prompt="Content server URL",
    help="Content server base URL",
)
@click.option(
    "--profile",
    prompt="Server profile name",
    help="Server profile name",
)
@click.pass_context
def init(ctx: Any, server: str, profile: str) -> None:
    """Save the server URL and profile name for later runs."""
    out: OutputFormatter = ctx.obj["out"]

    server = server.strip()
    if not server.startswith(("http://", "https://")):
        out.error("Server URL must start with http:// or https://")
        ctx.exit(1)

    if config.is_configured():
        out.warning("Replacing the existing configuration")

    try:
        config_path = config.save(server=server, profile=profile.strip())
    except (UpdaterError, OSError) as e:
        out.error(f"Failed to save configuration: {e}")
        ctx.exit(1)
        return

    out.success("✓ Configuration saved successfully")
    out.info(f"Config file: {config_path}")


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Answer yes to every question")
@click.option(
    "--dry-run", is_flag=True, help="Show what would change without changing it"
)
@click.pass_context
def update(ctx: Any, yes: bool, dry_run: bool) -> None:
    """Synchronize mods, resource packs and shader packs with the server.

    Connects to the server, checks that the launcher profile named like the
    server profile runs the expected loader, then downloads missing files
    and removes retracted ones. Existing server lists and options are only
    replaced after confirmation.

    Examples:
        mcupdater -s https://mc.example.org -p survival update
        mcupdater update --dry-run
        mcupdater update -y
    """
    out: OutputFormatter = ctx.obj["out"]
    server, profile = _require_settings(ctx, out)

    def confirm(question: str) -> bool:
        if yes:
            return True
        return click.confirm(question, default=True)

    with UpdaterClient() as client:
        updater = Updater(
            server=server,
            profile_name=profile,
            game_path=_game_path(ctx),
            client=client,
            output=out,
            confirm=confirm,
        )
        try:
            stats = updater.run(dry_run=dry_run)
        except KeyboardInterrupt:
            out.warning("\nCancelled by user")
            ctx.exit(130)
            return
        except UpdaterCancelledError as e:
            out.warning(str(e))
            ctx.exit(130)
            return
        except UpdaterError as e:
            logger.error("Update failed: %s", e, exc_info=True)
            out.print("")
            out.error(str(e))
            ctx.exit(1)
            return

    if out.json_output:
        out.output_json(stats)


@main.command()
@click.pass_context
def status(ctx: Any) -> None:
    """Check the server connection and show the published versions."""
    out: OutputFormatter = ctx.obj["out"]
    server, profile = _require_settings(ctx, out)

    with UpdaterClient() as client:
        updater = Updater(
            server=server,
            profile_name=profile,
            game_path=_game_path(ctx),
            client=client,
            output=out,
            max_attempts=1,
        )
        try:
            updater.connect()
            context = updater.load_session()
        except UpdaterError as e:
            out.error(str(e))
            ctx.exit(1)
            return

    versions = context.versions
    if out.json_output:
        out.output_json(
            {
                "server": context.server,
                "profile": context.profile_name,
                "versions": versions.to_dict(),
                "loader": versions.loader_name(),
                "motd": list(context.motd),
            }
        )
        return

    out.table(
        f"Versions for {context.profile_name}",
        ["Component", "Version"],
        [[name, versions.text(name) or ""] for name in versions],
    )
    out.info(f"Expected loader: {versions.loader_name() or '-'}")
    for line in context.motd:
        out.print(line)


@main.command()
@click.option(
    "--all", "show_all", is_flag=True, help="List every profile, not just matches"
)
@click.pass_context
def profiles(ctx: Any, show_all: bool) -> None:
    """List launcher profiles found in the game directory."""
    out: OutputFormatter = ctx.obj["out"]
    game_path = _game_path(ctx)
    profile_name = ctx.obj.get("profile")

    try:
        found = load_profiles(game_path)
    except UpdaterError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if show_all or not profile_name:
        selected = list(found.values())
    else:
        selected = select_profiles(found, profile_name)

    if out.json_output:
        out.output_json([p.to_dict() for p in selected])
        return

    if not selected:
        out.warning(f"No launcher profile named {profile_name!r} found")
        return

    out.table(
        f"Profiles in {game_path}",
        ["Name", "Version", "Loader", "Created"],
        [
            [
                p.name,
                p.last_version_id,
                p.toolchain or "-",
                p.created.strftime("%Y-%m-%d %H:%M") if p.created else "-",
            ]
            for p in selected
        ],
    )


if __name__ == "__main__":
    main()

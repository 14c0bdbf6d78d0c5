"""Command-line interface for incremental backups."""

import logging
import sys
import zipfile
from datetime import datetime
from pathlib import Path
import click
from typing import Optional, Tuple

from .core.service import BackupService
from .core.session import BackupSession
from .core.models import BackupConfig
from .config.config_manager import ConfigManager
from .exceptions import BackupError
from .utils.formatters import format_date, format_file_size, parse_archive_name


def _parse_level(level: str) -> int:
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')
    return numeric_level


def setup_logging(level: str, log_file: Optional[str] = None, file_level: Optional[str] = None):
    """Set up logging configuration.

    The console handler logs at ``level``; the optional file handler logs at
    ``file_level``, falling back to ``level``.
    """
    console_level = _parse_level(level)
    file_numeric_level = _parse_level(file_level) if file_level else console_level

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(min(console_level, file_numeric_level) if log_file else console_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(file_numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level', default='WARNING',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Console logging level (status messages are always printed)')
@click.option('--log-file',
              help='Log file path')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: str, log_file: Optional[str]):
    """Incremental Backup - periodic zip backups of a directory tree."""

    ctx.ensure_object(dict)

    setup_logging(log_level, log_file)

    ctx.obj['config_path'] = config_path
    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


def _load_manager(ctx, required: bool) -> Optional[ConfigManager]:
    """Load the config file, or return None when it is optional and absent."""
    config_manager = ConfigManager(ctx.obj.get('config_path'))
    if not required and not ctx.obj.get('config_path') and config_manager.find_config_file() is None:
        return None
    config_manager.load_config()

    logging_config = config_manager.get_logging_config()
    log_file = logging_config.get('file')
    # --log-file keeps the command line level for its file
    if log_file and not ctx.obj.get('log_file'):
        setup_logging(ctx.obj.get('log_level', 'WARNING'), log_file,
                      file_level=logging_config.get('level', 'INFO'))

    return config_manager


def _build_config(ctx, source: Optional[str], destination: Optional[str],
                  interval: Optional[int], exclude: Tuple[str, ...]) -> BackupConfig:
    """Merge command line options over the config file."""
    config_manager = _load_manager(ctx, required=not (source and destination))
    backup = config_manager.get_backup_config() if config_manager else {}
    patterns = list(exclude) or (config_manager.get_exclude_patterns() if config_manager else [])

    return BackupConfig.create(
        source or backup.get('source'),
        destination or backup.get('destination'),
        interval if interval is not None else backup.get('interval_minutes', 30),
        exclude_patterns=patterns,
        compression=backup.get('compression', 'deflated')
    )


@cli.command()
@click.option('--source', '-s', help='Directory to back up')
@click.option('--destination', '-d', help='Directory receiving the archives')
@click.option('--interval', '-i', type=int, help='Minutes between backup passes')
@click.option('--exclude', '-e', multiple=True, help='Glob pattern of relative paths to skip')
@click.option('--once', is_flag=True, help='Run a single full backup pass and exit')
@click.pass_context
def start(ctx, source: Optional[str], destination: Optional[str], interval: Optional[int],
          exclude: Tuple[str, ...], once: bool):
    """Run scheduled backups until interrupted."""
    try:
        config = _build_config(ctx, source, destination, interval, exclude)

        if once:
            config.backup_root.mkdir(parents=True, exist_ok=True)
            result = BackupSession(config, on_log=click.echo).run_pass()
            if not result.success:
                sys.exit(1)
            return

        service = BackupService()
        service.start_config(config, on_log=click.echo)
        click.echo("Press Ctrl+C to stop.")

        try:
            while not service.wait(1.0):
                pass
        except KeyboardInterrupt:
            service.stop()
            # Let a pass in progress finish writing its archive
            service.wait()

    except (BackupError, FileNotFoundError, OSError) as e:
        click.echo(f"Error starting backups: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('archive', type=click.Path(dir_okay=False))
@click.argument('destination', type=click.Path(file_okay=False))
def restore(archive: str, destination: str):
    """Restore ARCHIVE into the DESTINATION directory."""
    result = BackupService().restore(archive, destination, on_log=click.echo)

    if not result.success:
        click.echo(f"❌ Restore failed after {len(result.restored)} files", err=True)
        sys.exit(1)


@cli.command(name='list')
@click.option('--destination', '-d', help='Directory holding the archives')
@click.pass_context
def list_archives(ctx, destination: Optional[str]):
    """List archives in the backup directory."""
    try:
        if not destination:
            config_manager = _load_manager(ctx, required=True)
            destination = config_manager.get_backup_config().get('destination')

        backup_root = Path(destination).expanduser()
        if not backup_root.is_dir():
            click.echo(f"Backup directory does not exist: {backup_root}", err=True)
            sys.exit(1)

        archives = []
        for path in sorted(backup_root.iterdir()):
            created = parse_archive_name(path.name)
            if created is not None and path.is_file():
                archives.append((created, path))

        if not archives:
            click.echo("No archives found")
            return

        click.echo(f"\n🗂️  Archives in {backup_root}")
        click.echo("=" * 50)
        for created, path in archives:
            try:
                with zipfile.ZipFile(path) as zf:
                    entries = f"{len(zf.infolist())} files"
            except (OSError, zipfile.BadZipFile) as e:
                entries = f"unreadable: {e}"
            click.echo(f"  {path.name}  {format_date(created)}  "
                       f"{format_file_size(path.stat().st_size)}  {entries}")

    except (BackupError, FileNotFoundError, OSError) as e:
        click.echo(f"Error listing archives: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate configuration file."""
    try:
        config_manager = ConfigManager(ctx.obj.get('config_path'))
        config_manager.load_config()
        backup_config = config_manager.build_backup_config()

        click.echo("✅ Configuration loaded successfully")

        click.echo(f"\n📊 Configuration Summary:")
        click.echo(f"   Source: {backup_config.source_root}")
        click.echo(f"   Destination: {backup_config.backup_root}")
        click.echo(f"   Interval: {backup_config.interval_minutes} min")

        patterns = backup_config.exclude_patterns
        if patterns:
            click.echo(f"   Excluded: {', '.join(patterns)}")

        if not backup_config.backup_root.exists():
            click.echo("\n⚠️  Backup directory does not exist yet and will be created on start")

        click.echo(f"\n🕒 Checked at: {format_date(datetime.now())}")

    except (BackupError, FileNotFoundError) as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(1)


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()

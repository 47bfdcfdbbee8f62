"""Error handling decorators for CLI commands."""

from __future__ import annotations

import signal
import sys
from functools import wraps

import click

from schema2orm.exceptions import (
    CatalogAccessError,
    EntityNameCollisionError,
    FileWriteError,
    MetadataExtractionError,
    ReverseEngineeringError,
)
from schema2orm.utils.logging import get_logger

logger = get_logger(__name__)

# Handle SIGPIPE gracefully (prevent BrokenPipeError when piping to head, etc.)
try:
    signal.signal(signal.SIGPIPE, signal.SIG_DFL)
except AttributeError:
    # Windows doesn't have SIGPIPE
    pass


def handle_errors(f):
    """Decorator to handle common errors in CLI commands.

    Catches exceptions and displays user-friendly error messages,
    then aborts the command gracefully.

    Example:
        @click.command()
        @handle_errors
        def my_command():
            pass
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except click.Abort:
            raise
        except BrokenPipeError:
            devnull = open("/dev/null", "w")
            sys.stdout = devnull
            sys.stderr = devnull
            sys.exit(0)
        except CatalogAccessError as e:
            click.echo(f"❌ Cannot read the database catalog: {e}", err=True)
            logger.debug("CatalogAccessError details", exc_info=True)
            raise click.Abort()
        except MetadataExtractionError as e:
            click.echo(f"❌ Metadata extraction failed: {e}", err=True)
            logger.debug("MetadataExtractionError details", exc_info=True)
            raise click.Abort()
        except EntityNameCollisionError as e:
            click.echo(f"❌ {e}", err=True)
            click.echo("   Exclude one of the tables with --exclude.", err=True)
            raise click.Abort()
        except FileWriteError as e:
            click.echo(f"❌ {e}", err=True)
            raise click.Abort()
        except ReverseEngineeringError as e:
            click.echo(f"❌ {e}", err=True)
            logger.debug("ReverseEngineeringError details", exc_info=True)
            raise click.Abort()
        except FileNotFoundError as e:
            click.echo(f"❌ File not found: {e}", err=True)
            raise click.Abort()
        except PermissionError as e:
            click.echo(f"❌ Permission denied: {e}", err=True)
            raise click.Abort()
        except ValueError as e:
            click.echo(f"❌ Invalid value: {e}", err=True)
            logger.debug("ValueError details", exc_info=True)
            raise click.Abort()
        except Exception as e:
            click.echo(f"❌ Unexpected error: {e}", err=True)
            logger.exception("Unexpected error in command")
            raise click.Abort()

    return wrapper

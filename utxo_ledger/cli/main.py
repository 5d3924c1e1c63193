"""
UTXOLedger - Command Line Interface
=====================================
Operator CLI for the ledger.

Commands:
- serve: Run the HTTP API
- db upgrade: Apply schema migrations
- ingest: Ingest a block from a JSON file
- rollback: Roll the ledger back to a height
- balance: Query an address balance
- info: Ledger summary
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from pydantic import ValidationError as SchemaValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

# Internal imports
from utxo_ledger.api.schemas import BlockSchema
from utxo_ledger.config import LedgerSettings, get_settings, override_settings, validate_config
from utxo_ledger.domain.ledger import LedgerController
from utxo_ledger.errors import InvalidConfigError, LedgerException
from utxo_ledger.logging_setup import setup_logging
from utxo_ledger.storage.db import LedgerDatabase
from utxo_ledger.version import get_version_string


# ============================================================================
# CLI APP
# ============================================================================

app = typer.Typer(
    name="utxoledger",
    help="UTXOLedger - Block ledger index CLI",
    add_completion=False
)

console = Console()


# ============================================================================
# GLOBAL STATE
# ============================================================================

class CLIState:
    """Global CLI state"""
    config: Optional[LedgerSettings] = None
    quiet: bool = False


state = CLIState()


def _config() -> LedgerSettings:
    return state.config or get_settings()


def _setup_logging(config: LedgerSettings) -> None:
    setup_logging(
        log_level=config.log_level,
        log_to_file=config.log_to_file,
        log_dir=config.log_dir,
        log_format=config.log_format,
        log_rotation_mb=config.log_rotation_mb,
        log_retention_days=config.log_retention_days,
        enable_console=not state.quiet
    )


@contextmanager
def _open_ledger() -> Iterator[LedgerController]:
    """Open database and controller for one command"""
    config = _config()
    _setup_logging(config)
    
    database = LedgerDatabase.from_settings(config)
    controller = LedgerController(database, config)
    try:
        yield controller
    finally:
        controller.close()
        database.close()


def _fail(message: str) -> None:
    console.print(f"[red]❌ {escape(message)}[/red]")
    raise typer.Exit(1)


# ============================================================================
# SERVER
# ============================================================================

@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port")
):
    """Run the HTTP API"""
    import uvicorn
    from utxo_ledger.api.rest_api import create_app
    
    config = _config()
    host = host or config.api_host
    port = port or config.api_port
    
    try:
        validate_config(config, strict=True)
    except InvalidConfigError as e:
        _fail(f"{e}: {'; '.join(e.details['errors'])}")
    
    with _open_ledger() as controller:
        console.print(Panel.fit(
            f"[green]UTXOLedger API[/green]\n\n"
            f"Version: [cyan]{get_version_string()}[/cyan]\n"
            f"Database: [cyan]{config.database_url}[/cyan]\n"
            f"Head: [cyan]{controller.get_head()}[/cyan]\n"
            f"Listening: [cyan]http://{host}:{port}[/cyan]",
            title=config.node_name,
            border_style="green"
        ))
        
        uvicorn.run(
            create_app(controller, config),
            host=host,
            port=port,
            log_level=config.log_level.lower()
        )


# ============================================================================
# DATABASE COMMANDS
# ============================================================================

db_app = typer.Typer(help="Database commands")
app.add_typer(db_app, name="db")


@db_app.command("upgrade")
def db_upgrade(
    revision: str = typer.Option("head", "--revision", "-r", help="Target revision")
):
    """Apply schema migrations"""
    from utxo_ledger.storage.migrations import upgrade_database
    
    config = _config()
    _setup_logging(config)
    
    try:
        upgrade_database(config.database_url, revision)
    except LedgerException as e:
        _fail(str(e))
    
    console.print(f"[green]✅ Database upgraded to {revision}[/green]")


# ============================================================================
# LEDGER COMMANDS
# ============================================================================

@app.command("ingest")
def ingest(
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Block JSON file"
    )
):
    """Ingest a block from a JSON file"""
    try:
        block = BlockSchema.model_validate_json(file.read_text(encoding="utf-8")).to_domain()
    except SchemaValidationError as e:
        _fail(f"Invalid block file: {e.error_count()} error(s)\n{e}")
    except LedgerException as e:
        _fail(str(e))
    
    with _open_ledger() as controller:
        result = controller.ingest_block(block)
    
    if not result.ok:
        _fail(f"{result.message} ({result.kind.value})")
    
    console.print(
        f"[green]✅ Block {result.value['height']} accepted[/green] "
        f"[dim]{result.value['block_id'][:16]}...[/dim]"
    )


@app.command("rollback")
def rollback(
    height: int = typer.Argument(..., help="Target height")
):
    """Roll the ledger back to a height"""
    with _open_ledger() as controller:
        result = controller.rollback_to(height)
    
    if not result.ok:
        _fail(f"{result.message} ({result.kind.value})")
    
    summary = result.value
    console.print(
        f"[green]✅ Rolled back to height {summary['height']}[/green] "
        f"[dim]({summary['removed_blocks']} block(s) removed)[/dim]"
    )


@app.command("balance")
def balance(
    address: str = typer.Argument(..., help="Address")
):
    """Query an address balance"""
    with _open_ledger() as controller:
        result = controller.get_balance(address)
    
    if not result.ok:
        _fail(result.message)
    
    console.print(f"[cyan]{address}[/cyan]: [green]{result.value}[/green]")


@app.command("info")
def info():
    """Ledger summary"""
    with _open_ledger() as controller:
        summary = controller.get_info()
    
    table = Table(title="Ledger Info")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    
    table.add_row("Version", get_version_string())
    table.add_row("Height", str(summary["height"]))
    table.add_row("Blocks", str(summary["blocks"]))
    table.add_row("Addresses", str(summary["addresses"]))
    
    console.print(table)


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

@app.callback()
def main(
    database_url: Optional[str] = typer.Option(
        None,
        "--database-url",
        help="SQLAlchemy database URL"
    ),
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Data directory"
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="No log output on the console"
    )
):
    """
    UTXOLedger - Block ledger index CLI
    """
    overrides = {}
    if database_url is not None:
        overrides["database_url"] = database_url
    if data_dir is not None:
        overrides["data_dir"] = data_dir
    
    state.config = override_settings(**overrides) if overrides else None
    state.quiet = quiet


if __name__ == "__main__":
    app()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "app",
]

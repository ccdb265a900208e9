"""CLI tool for VaultSync"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

app = typer.Typer(
    name="vaultsync",
    help="VaultSync - keep a markdown vault in sync with a vector index",
)
console = Console()

_RESULT_STYLE = {
    "enabled": "green",
    "cancelled": "yellow",
    "error": "red",
}


def _vault(vault: Optional[Path]) -> str:
    from .config import get_settings

    return str((vault or get_settings().vault_path).resolve())


def _setup_logging():
    from .config import get_settings
    from .middleware import setup_logging

    setup_logging(get_settings().log_level)


@app.command()
def doctor():
    """Run environment self-checks"""
    from .config import get_settings
    from .indexer import MetadataStore
    from .models import HealthStatus
    from .sync import ChromaHealthProbe

    settings = get_settings()

    console.print("\n[bold]VaultSync Doctor[/bold]\n")

    table = Table(show_header=True)
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Details")

    all_passed = True

    # 1. Vault path
    vault_ok = settings.vault_path.is_dir()
    table.add_row(
        "Vault Path",
        "[green]✓[/green]" if vault_ok else "[red]✗[/red]",
        str(settings.vault_path),
    )
    all_passed &= vault_ok

    # 2. Metadata store
    sqlite_ok = False
    try:
        MetadataStore().list_vaults()
        sqlite_ok = True
    except Exception:
        pass
    table.add_row(
        "Metadata Store",
        "[green]✓[/green]" if sqlite_ok else "[red]✗[/red]",
        str(settings.sqlite_path),
    )
    all_passed &= sqlite_ok

    # 3. Chroma
    chroma_ok = ChromaHealthProbe().check_health() == HealthStatus.HEALTHY
    table.add_row(
        "Chroma Server",
        "[green]✓[/green]" if chroma_ok else "[red]✗[/red]",
        settings.chroma_url,
    )
    all_passed &= chroma_ok

    # 4. Embedding provider
    embed_ok = True
    embed_message = settings.embedding_provider
    if settings.embedding_provider == "openai" and not settings.openai_api_key:
        embed_ok = False
        embed_message = "OpenAI API key missing"
    elif settings.embedding_provider not in ("openai", "ollama"):
        embed_ok = False
        embed_message = f"Unknown provider: {settings.embedding_provider}"
    table.add_row(
        "Embedding Provider",
        "[green]✓[/green]" if embed_ok else "[red]✗[/red]",
        embed_message,
    )
    all_passed &= embed_ok

    console.print(table)

    if all_passed:
        console.print("\n[green]✓ All checks passed![/green]\n")
    else:
        console.print("\n[red]✗ Some checks failed.[/red]\n")
        raise typer.Exit(code=1)


@app.command()
def status(
    vault: Optional[Path] = typer.Option(None, "--vault", "-v", help="Vault path"),
):
    """Show the vault's sync status and pending changes"""
    from .sync import build_activation_manager

    vault_path = _vault(vault)
    manager = build_activation_manager()
    sync_status = manager.change_detector.check_sync_status(vault_path)

    console.print(f"\n[bold]{vault_path}[/bold]: {sync_status.value}\n")

    if sync_status.value in ("out_of_sync", "not_indexed"):
        changes = manager.change_detector.detect_changes(vault_path)
        table = Table(show_header=True)
        table.add_column("Change", style="cyan")
        table.add_column("Files")
        table.add_row("New", str(len(changes.new_files)))
        table.add_row("Modified", str(len(changes.modified_files)))
        table.add_row("Deleted", str(len(changes.deleted_files)))
        console.print(table)


@app.command()
def activate(
    vault: Optional[Path] = typer.Option(None, "--vault", "-v", help="Vault path"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to every prompt"),
):
    """Index the vault if needed and bring it in sync"""
    from .sync import build_activation_manager

    _setup_logging()
    vault_path = _vault(vault)
    manager = build_activation_manager()

    with _progress() as bar:
        result = manager.activate_rag(
            vault_path,
            on_ingestion_needed=bar.confirmer("Vault is not indexed yet. Index it now?", yes),
            on_reindex_needed=bar.confirmer("Vault has changed since the last index. Sync it now?", yes),
            on_progress=bar.update,
        )

    _print_result(result)


@app.command()
def rebuild(
    vault: Optional[Path] = typer.Option(None, "--vault", "-v", help="Vault path"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Drop the vault's vectors and metadata and index it from scratch"""
    from .sync import build_activation_manager

    _setup_logging()
    vault_path = _vault(vault)
    if not yes:
        typer.confirm(f"Rebuild the index for {vault_path}?", abort=True)

    manager = build_activation_manager()
    with _progress() as bar:
        result = manager.rebuild(vault_path, on_progress=bar.update)

    _print_result(result)


@app.command()
def vaults():
    """List indexed vaults"""
    from .indexer import MetadataStore

    table = Table(show_header=True)
    table.add_column("Vault", style="cyan")
    table.add_column("Files")
    table.add_column("Last Indexed")
    for row in MetadataStore().list_vaults():
        table.add_row(row["vault_id"], str(row["file_count"]), row["last_indexed_at"])
    console.print(table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h"),
    port: Optional[int] = typer.Option(None, "--port", "-p"),
    reload: bool = typer.Option(False, "--reload", "-r"),
):
    """Start the API server"""
    import uvicorn
    from .config import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port

    console.print("\n[bold]Starting VaultSync server[/bold]")
    console.print(f"  URL: http://{host}:{port}")
    console.print(f"  Docs: http://{host}:{port}/docs\n")

    uvicorn.run(
        "vaultsync.main:app",
        host=host,
        port=port,
        reload=reload,
    )


class _progress:
    """Rich progress bar driven by on_progress(stage, fraction) callbacks"""

    def __enter__(self):
        self._bar = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            console=console,
        )
        self._bar.__enter__()
        self._task = self._bar.add_task("Waiting...", total=1.0)
        return self

    def update(self, stage: str, fraction: float):
        self._bar.update(self._task, description=stage.capitalize(), completed=fraction)

    def confirmer(self, question: str, yes: bool = False):
        """Confirmation callback that stops the live display while prompting"""

        def confirm() -> bool:
            if yes:
                return True
            self._bar.stop()
            try:
                return typer.confirm(question, default=True)
            finally:
                self._bar.start()

        return confirm

    def __exit__(self, *exc):
        return self._bar.__exit__(*exc)


def _print_result(result):
    style = _RESULT_STYLE.get(result.value, "white")
    console.print(f"\n[bold {style}]{result.value.upper()}[/bold {style}]\n")
    if result.value == "error":
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()

"""Interface de linha de comando para operar o nomeador."""
from __future__ import annotations

import argparse
import asyncio
import logging
import time
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from nomeador.container import build_container, build_store
from nomeador.domain import InvalidTokenError, RateLimitSnapshot, StoreUnavailableError
from nomeador.infrastructure import LiveDocument
from nomeador.settings import get_log_level
from nomeador.storage import CacheStore, SettingsStore


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="nomeador - exibe nomes reais no lugar de handles"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    annotate = subparsers.add_parser(
        "annotate", help="Anota um arquivo HTML trocando handles por nomes reais"
    )
    annotate.add_argument("path", type=Path, help="Caminho para o arquivo HTML")
    annotate.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Arquivo de saída (padrão: imprime o HTML anotado)",
    )

    toggle = subparsers.add_parser(
        "toggle", help="Liga ou desliga a exibição de nomes reais"
    )
    toggle.add_argument("state", choices=("on", "off"), help="Novo estado da flag")

    state = subparsers.add_parser(
        "state", help="Mostra a flag global, o token e o limite de requisições"
    )
    token = subparsers.add_parser(
        "token", help="Configura ou remove o token de acesso à API"
    )
    token.add_argument("action", choices=("set", "remove"), help="Operação sobre o token")
    token.add_argument(
        "value", nargs="?", default=None, help="Token (ghp_... ou github_pat_...)"
    )
    refresh = subparsers.add_parser(
        "refresh-cache", help="Descarta todos os nomes em cache"
    )
    purge = subparsers.add_parser(
        "purge-cache", help="Remove entradas do cache mais antigas que 7 dias"
    )

    # Nível de log por subcomando (também lê NOMEADOR_LOG_LEVEL)
    for sp in (annotate, toggle, state, token, refresh, purge):
        sp.add_argument(
            "--log-level",
            default=None,
            help="Nível de log: DEBUG, INFO, WARNING, ERROR (padrão INFO)",
        )

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    console = Console()
    level_name = getattr(args, "log_level", None) or get_log_level()
    handler = RichHandler(console=console, markup=True, rich_tracebacks=True)
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    try:
        if args.command == "annotate":
            return asyncio.run(_annotate(args.path, args.output, console))
        if args.command == "toggle":
            return asyncio.run(_toggle(args.state == "on", console))
        if args.command == "state":
            return asyncio.run(_show_state(console))
        if args.command == "token":
            return asyncio.run(_token(args.action, args.value, console))
        if args.command == "refresh-cache":
            return asyncio.run(_refresh_cache(console))
        if args.command == "purge-cache":
            return asyncio.run(_purge_cache(console))
    except (InvalidTokenError, StoreUnavailableError) as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    return 0


async def _annotate(path: Path, output: Path | None, console: Console) -> int:
    try:
        html = path.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Não foi possível ler {path}: {exc}[/red]")
        return 1

    document = LiveDocument(html)
    container = build_container(document)
    try:
        await container.controller.start()
        await container.controller.idle()
    finally:
        await container.aclose()

    annotated = document.render()
    total = len(container.context.markers)
    if output is None:
        console.print(annotated, markup=False, highlight=False, soft_wrap=True)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(annotated, encoding="utf-8")
        console.print(f"[green]{total} nós anotados; resultado salvo em {output}.[/green]")
    return 0


async def _toggle(enabled: bool, console: Console) -> int:
    settings = SettingsStore(build_store())
    await settings.set_enabled(enabled)
    status = "[green]✓ Ativo[/green]" if enabled else "[yellow]○ Inativo[/yellow]"
    console.print(status)
    return 0


async def _show_state(console: Console) -> int:
    stored = await SettingsStore(build_store()).load()
    snapshot = stored.rate_limit

    table = Table(show_header=False)
    table.add_row("Estado", "✓ Ativo" if stored.enabled else "○ Inativo")
    table.add_row("Autenticado", "Sim ✓" if stored.token else "Não")
    if snapshot is None:
        table.add_row("Limite", "5.000/hora" if stored.token else "60/hora")
        table.add_row("Restantes", "Desconhecido")
        table.add_row("Reinício", "Desconhecido")
    else:
        table.add_row("Limite", f"{snapshot.limit}/hora")
        table.add_row("Restantes", _format_remaining(snapshot))
        table.add_row("Reinício", _format_reset(snapshot, time.time()))
    console.print(table)
    return 0


async def _token(action: str, value: str | None, console: Console) -> int:
    """Grava ou remove o token e descarta os nomes resolvidos com o anterior."""

    store = build_store()
    settings = SettingsStore(store)
    if action == "set":
        if not value:
            console.print("[red]Informe o token: nomeador token set <token>[/red]")
            return 1
        await settings.set_token(value)
        message = "[green]✓ Token salvo.[/green]"
    else:
        await settings.remove_token()
        message = "[yellow]Token removido.[/yellow]"

    removed = await CacheStore(store).clear()
    console.print(message)
    console.print(f"{removed} nomes descartados do cache.")
    return 0


async def _refresh_cache(console: Console) -> int:
    removed = await CacheStore(build_store()).clear()
    console.print(f"[green]{removed} nomes descartados do cache.[/green]")
    return 0


async def _purge_cache(console: Console) -> int:
    result = await CacheStore(build_store()).purge_expired()
    console.print_json(data=result.to_summary())
    return 0


def _format_remaining(snapshot: RateLimitSnapshot) -> str:
    if snapshot.remaining < 10:
        return f"[red]{snapshot.remaining}[/red]"
    if snapshot.remaining < 100:
        return f"[yellow]{snapshot.remaining}[/yellow]"
    return str(snapshot.remaining)


def _format_reset(snapshot: RateLimitSnapshot, now: float) -> str:
    minutes = round((snapshot.reset_at - now) / 60)
    if minutes > 60:
        return f"em {round(minutes / 60)}h"
    if minutes > 0:
        return f"em {minutes}m"
    return "agora"


if __name__ == "__main__":
    raise SystemExit(main())

"""CLI interface for Vitrine."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vitrine.config import AppConfig, load_config
from vitrine.engine.contact import format_price, is_mobile_user_agent, share_url
from vitrine.engine.favorites import FavoritesStore
from vitrine.engine.session import DetailPage, StorefrontSession, StorefrontView
from vitrine.models import LayoutVariant, Listing, Notice, NoticeLevel, QueryState, TransactionType
from vitrine.store import get_store

app = typer.Typer(
    name="vitrine",
    help="Multi-tenant real-estate storefront - browse a broker's listings.",
    no_args_is_help=True,
)
console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _print_notices(notices: list[Notice]) -> None:
    for notice in notices:
        color = "red" if notice.level == NoticeLevel.ERROR else "green"
        text = f"[{color}]{notice.title}[/{color}]"
        if notice.description:
            text += f" - {notice.description}"
        console.print(text)


def _listings_table(title: str, listings: list[Listing], favorites: FavoritesStore) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("#", style="dim", width=3)
    table.add_column("Key", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Price", style="green")
    table.add_column("Type", style="white")
    table.add_column("Beds/Bath", style="white")
    table.add_column("Location", style="dim")
    table.add_column("Fav", width=3)

    for i, listing in enumerate(listings, 1):
        table.add_row(
            str(i),
            listing.link_key,
            listing.title[:40],
            format_price(listing.price),
            f"{listing.property_type} / {listing.transaction_type.value}",
            f"{listing.bedrooms}/{listing.bathrooms}",
            listing.location[:35],
            "*" if favorites.is_favorited(listing.id) else "",
        )
    return table


def _display_storefront(view: StorefrontView, favorites: FavoritesStore) -> None:
    tenant = view.tenant
    header = tenant.hero_title or tenant.name
    if tenant.hero_subtitle:
        header += f"\n[dim]{tenant.hero_subtitle}[/dim]"
    console.print(Panel(header, title=tenant.name, border_style="blue"))

    if view.featured:
        console.print(_listings_table("Featured", view.featured, favorites))
    if view.visible:
        console.print(_listings_table("All listings", view.visible, favorites))
    if not view.featured and not view.visible:
        if view.has_active_filters:
            console.print("[yellow]No listings match your search. Try clearing filters.[/yellow]")
        else:
            console.print("[yellow]This storefront has no listings yet.[/yellow]")
    if view.remaining:
        console.print(f"[dim]{view.remaining} more listing(s) - use --pages to see more[/dim]")


@app.command()
def browse(
    slug: str = typer.Argument(..., help="Storefront slug"),
    search: str = typer.Option("", "--search", "-q", help="Search title, address, neighborhood, city or code"),
    property_type: str = typer.Option(None, "--type", "-t"),
    transaction: TransactionType = typer.Option(None, "--transaction"),
    min_price: int = typer.Option(None, "--min-price"),
    max_price: int = typer.Option(None, "--max-price"),
    min_beds: int = typer.Option(None, "--min-beds"),
    city: str = typer.Option(None, "--city"),
    pages: int = typer.Option(1, "--pages", "-p", min=1, help="Reveal chunks to show"),
    reveal: str = typer.Option(None, "--reveal", help="Make sure this listing id is shown"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config TOML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Browse a broker storefront."""
    setup_logging(verbose)
    cfg = load_config(config_path)
    query = QueryState(
        term=search,
        property_type=property_type,
        transaction_type=transaction,
        min_price=min_price,
        max_price=max_price,
        min_bedrooms=min_beds,
        city=city,
    )
    asyncio.run(_run_browse(cfg, slug, query, pages, reveal))


async def _run_browse(cfg: AppConfig, slug: str, query: QueryState, pages: int, reveal: str | None) -> None:
    store = get_store(cfg.store)
    favorites = FavoritesStore.from_config(cfg.favorites)
    try:
        session = StorefrontSession(store, cfg, favorites)
        view = await session.navigate(slug)
        if view.not_found:
            console.print(f'[red]Storefront "{slug}" was not found or is not available.[/red]')
            raise typer.Exit(code=1)
        if view.tenant is None:
            _print_notices(view.notices)
            raise typer.Exit(code=1)

        session.set_query(query)
        for _ in range(pages - 1):
            session.expand()
        if reveal:
            session.ensure_visible(reveal)

        view = session.view()
        _display_storefront(view, favorites)
        _print_notices(view.notices)
    finally:
        await store.close()


def _display_detail(page: DetailPage) -> None:
    listing = page.listing
    gallery = page.gallery

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Code", listing.display_code)
    table.add_row("Price", format_price(listing.price))
    table.add_row("Type", f"{listing.property_type} / {listing.transaction_type.value}")
    table.add_row("Location", listing.address + (f" - {listing.location}" if listing.location else ""))
    table.add_row("Beds/Baths", f"{listing.bedrooms} / {listing.bathrooms}")
    table.add_row("Area", f"{listing.area_m2:g} m²" if listing.area_m2 else "N/A")
    table.add_row("Parking", str(listing.parking_spaces))
    table.add_row("Views", str(page.views_count))
    if listing.features:
        table.add_row("Features", ", ".join(listing.features))
    if gallery.is_placeholder:
        table.add_row("Images", "[dim]No images[/dim]")
    else:
        table.add_row(
            "Image",
            f"{gallery.state.active_index + 1}/{gallery.state.count} {gallery.current_image}",
        )
    table.add_row("Link", page.share_url())
    if page.is_favorited:
        table.add_row("Favorite", "yes")

    title = f"{listing.title}{' (featured)' if listing.is_featured else ''}"
    console.print(Panel(table, title=title, border_style="green"))
    if listing.description:
        console.print(listing.description)

    similar = page.similar
    if similar:
        console.print(_listings_table("Similar listings", similar, page.session.favorites))


@app.command()
def show(
    slug: str = typer.Argument(..., help="Storefront slug"),
    key: str = typer.Argument(..., help="Listing slug or id"),
    image: int = typer.Option(0, "--image", "-i", help="Gallery image to show (0-based)"),
    config_path: Path = typer.Option(None, "--config", "-c"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Show one listing (counts as a page view)."""
    setup_logging(verbose)
    cfg = load_config(config_path)
    asyncio.run(_run_show(cfg, slug, key, image))


async def _run_show(cfg: AppConfig, slug: str, key: str, image: int) -> None:
    store = get_store(cfg.store)
    try:
        session = StorefrontSession(store, cfg, FavoritesStore.from_config(cfg.favorites))
        page = await session.open_detail(slug, key, LayoutVariant(cfg.gallery.default_layout))
        if session.not_found or page.not_found:
            console.print(f'[red]"{slug}/{key}" was not found.[/red]')
            _print_notices(session.notices)
            raise typer.Exit(code=1)
        page.gallery.select(image)
        _display_detail(page)
    finally:
        await store.close()


@app.command()
def favorite(
    listing_id: str = typer.Argument(..., help="Listing id"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Toggle a listing in your favorites."""
    cfg = load_config(config_path)
    favorites = FavoritesStore.from_config(cfg.favorites)
    added = favorites.toggle(listing_id)
    if added:
        console.print(f"[green]Added {listing_id} to favorites[/green]")
    else:
        console.print(f"[yellow]Removed {listing_id} from favorites[/yellow]")
    if not favorites.persistent:
        console.print("[dim]Favorites storage unavailable; change kept for this session only.[/dim]")


@app.command()
def contact(
    slug: str = typer.Argument(..., help="Storefront slug"),
    key: str = typer.Argument(..., help="Listing slug or id"),
    mobile: bool = typer.Option(False, "--mobile", help="Prefer the WhatsApp app scheme"),
    user_agent: str = typer.Option(None, "--user-agent", help="Detect the platform from a user agent"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Print the WhatsApp links for contacting the broker about a listing."""
    cfg = load_config(config_path)
    asyncio.run(_run_contact(cfg, slug, key, mobile or is_mobile_user_agent(user_agent)))


async def _run_contact(cfg: AppConfig, slug: str, key: str, mobile: bool) -> None:
    store = get_store(cfg.store)
    try:
        session = StorefrontSession(store, cfg)
        await session.navigate(slug)
        listing = session.catalog.find(key)
        if session.not_found or listing is None or session.contact is None:
            console.print(f'[red]"{slug}/{key}" was not found.[/red]')
            raise typer.Exit(code=1)
        details = await session.contact.contact()
        if details is None or not details.phone:
            console.print("[red]Contact information unavailable. Try again in a moment.[/red]")
            raise typer.Exit(code=1)
        page_url = share_url(cfg.api.base_url, slug, listing)
        for link in session.contact.whatsapp_links(details.phone, listing, page_url, mobile):
            console.print(link)
    finally:
        await store.close()


@app.command()
def config_show(
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Display current configuration."""
    cfg = load_config(config_path)
    import json

    console.print_json(json.dumps(cfg.model_dump(exclude={"store": {"api_key"}}), indent=2, default=str))


@app.command()
def init_db(
    demo: bool = typer.Option(False, "--demo", help="Seed a demo storefront"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Create the storefront tables (SQL backend)."""
    from vitrine.store.sql import SqlStore

    cfg = load_config(config_path)
    store = SqlStore(cfg.store)
    console.print(f"[bold]Database ready at {cfg.store.database_url}[/bold]")
    if demo:
        slug = _seed_demo(store)
        console.print(f"Seeded demo storefront [cyan]{slug}[/cyan]")


def _seed_demo(store) -> str:
    tenant_id = store.add_tenant(
        "demo-imoveis",
        "Demo Imóveis",
        hero_title="Encontre o imóvel perfeito para você",
        whatsapp_number="5511999990000",
        contact_email="contato@demo-imoveis.com.br",
        creci="12345-J",
    )
    now = datetime.utcnow()
    samples = [
        ("Apartamento Centro", "apartment", "sale", 450_000, "Centro", True),
        ("Casa Sul", "house", "sale", 780_000, "Zona Sul", False),
        ("Apto Praia", "apartment", "rental", 3_500, "Ponta da Praia", False),
        ("Cobertura Jardins", "apartment", "sale", 1_900_000, "Jardins", True),
        ("Sala Comercial Paulista", "commercial", "rental", 6_000, "Bela Vista", False),
    ]
    for i, (title, ptype, kind, price, hood, featured) in enumerate(samples):
        store.add_listing(
            Listing(
                id=f"demo-{i + 1}",
                tenant_id=tenant_id,
                slug=title.lower().replace(" ", "-"),
                title=title,
                price=price,
                property_type=ptype,
                transaction_type=kind,
                neighborhood=hood,
                city="São Paulo",
                state="SP",
                bedrooms=2 + i % 3,
                bathrooms=1 + i % 2,
                is_featured=featured,
                images=[f"https://images.example.com/demo-{i + 1}-{n}.jpg" for n in range(i * 2)],
                created_at=now - timedelta(days=i),
            )
        )
    return "demo-imoveis"


@app.command()
def serve(
    config_path: Path = typer.Option(None, "--config", "-c"),
    host: str = typer.Option(None, "--host"),
    port: int = typer.Option(None, "--port"),
):
    """Start the storefront API server."""
    import uvicorn

    cfg = load_config(config_path)

    from vitrine.api.server import create_app

    web_app = create_app(cfg)
    host = host or cfg.api.host
    port = port or cfg.api.port
    console.print(f"[bold]Starting Vitrine API at http://{host}:{port}[/bold]")
    uvicorn.run(web_app, host=host, port=port)


if __name__ == "__main__":
    app()

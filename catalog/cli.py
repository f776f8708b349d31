"""Command-line interface for browsing and editing the product catalog."""

import asyncio
import json
import sys
from typing import Optional

import click

from .models.product import CATEGORY_LABELS, ProductCategory, ProductFilters, SORT_FIELDS, SORT_ORDERS, decode_product_list
from .services.catalog_controller import PERSISTENCE_FAILED, build_controller
from .utils.config import get_config
from .utils.exceptions import BaseAppException, ConfigurationError, ProductNotFoundError


def _run(coro):
    return asyncio.run(coro)


def _fail(message: str):
    click.echo(click.style(f"✗ {message}", fg="red"), err=True)
    sys.exit(1)


def _warn_if_unsaved(controller):
    if controller.persistence_status == PERSISTENCE_FAILED:
        click.echo(click.style("⚠ Change applied but could not be saved to the store", fg="yellow"))


async def _loaded_controller():
    controller = build_controller()
    await controller.load()
    if controller.error:
        click.echo(click.style(f"⚠ {controller.error}", fg="yellow"), err=True)
    return controller


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """
    Product Catalog CLI.

    Browse, filter and edit the product catalog kept in the durable store.
    """
    pass


@cli.command("list")
@click.option("--category", type=click.Choice(ProductCategory.values()), help="Only this category")
@click.option("--min-price", type=float, help="Lowest price (inclusive)")
@click.option("--max-price", type=float, help="Highest price (inclusive)")
@click.option("--in-stock/--out-of-stock", default=None, help="Filter by availability")
@click.option("--search", "search_query", help="Match name, description, brand or tags")
@click.option("--sort-by", type=click.Choice(SORT_FIELDS), default="createdAt", show_default=True)
@click.option("--order", "sort_order", type=click.Choice(SORT_ORDERS), default="desc", show_default=True)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=None, help="Items per page")
@click.option("--json", "as_json", is_flag=True, help="Print the raw query result as JSON")
def list_products(
    category: Optional[str],
    min_price: Optional[float],
    max_price: Optional[float],
    in_stock: Optional[bool],
    search_query: Optional[str],
    sort_by: str,
    sort_order: str,
    page: int,
    limit: Optional[int],
    as_json: bool
):
    """List one page of products matching the given filters."""

    async def run():
        controller = await _loaded_controller()
        controller.set_filters(ProductFilters(
            category=category,
            min_price=min_price,
            max_price=max_price,
            in_stock=in_stock,
            search_query=search_query,
            sort_by=sort_by,
            sort_order=sort_order
        ))
        controller.set_page(page, limit)
        return controller.query_result

    try:
        result = _run(run())
    except BaseAppException as e:
        _fail(e.message)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.items:
        click.echo("No products found.")
        return

    for product in result.items:
        stock = click.style("in stock", fg="green") if product.in_stock else click.style("out of stock", fg="red")
        click.echo(f"{product.id:<32} {product.name[:40]:<40} {product.price:>10.2f}  {product.category:<11} {stock}")

    click.echo()
    click.echo(f"Page {result.page} of {result.total_pages} ({result.total} matching)")


@cli.command()
def stats():
    """Show catalog-wide counts by stock and category."""
    try:
        controller = _run(_loaded_controller())
    except BaseAppException as e:
        _fail(e.message)

    summary = controller.stats
    click.echo("Catalog Statistics:")
    click.echo("=" * 40)
    click.echo(f"Total:           {summary.total}")
    click.echo(click.style(f"In stock:        {summary.in_stock}", fg="green"))
    click.echo(click.style(f"Out of stock:    {summary.out_of_stock}", fg="red" if summary.out_of_stock else None))
    click.echo()
    click.echo("By category:")
    for name, count in summary.categories.items():
        click.echo(f"  {CATEGORY_LABELS.get(name, name):<24} {count}")


@cli.command()
@click.argument("product_id")
def show(product_id: str):
    """
    Show a single product.

    PRODUCT_ID: Id of the product to display
    """
    try:
        controller = _run(_loaded_controller())
    except BaseAppException as e:
        _fail(e.message)

    product = controller.get_by_id(product_id)
    if product is None:
        _fail(f"Product not found: {product_id}")

    click.echo(json.dumps(product.to_dict(), indent=2))


@cli.command()
@click.option("--name", default="", help="Product name")
@click.option("--description", default="", help="Product description")
@click.option("--price", default="", help="Price, e.g. 19.99")
@click.option("--category", default="", help="One of: " + ", ".join(ProductCategory.values()))
@click.option("--image-url", default="", help="Absolute image URL or /uploads/ path")
@click.option("--tags", default="", help="Comma-separated tags")
@click.option("--sku", default="", help="Optional SKU (A-Z, 0-9, hyphen)")
@click.option("--brand", default="", help="Optional brand")
@click.option("--out-of-stock", is_flag=True, help="Create the product as out of stock")
def add(
    name: str,
    description: str,
    price: str,
    category: str,
    image_url: str,
    tags: str,
    sku: str,
    brand: str,
    out_of_stock: bool
):
    """Validate and add a new product."""
    form = {
        "name": name,
        "description": description,
        "price": price,
        "category": category,
        "imageUrl": image_url,
        "inStock": not out_of_stock,
        "tags": tags,
        "sku": sku,
        "brand": brand,
    }

    async def run():
        controller = await _loaded_controller()
        return controller, await controller.submit_form(form)

    try:
        controller, result = _run(run())
    except BaseAppException as e:
        _fail(e.message)

    if not result.validation.is_valid:
        click.echo(click.style(f"✗ {result.validation.get_summary()}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"✓ Added {result.product.id}", fg="green", bold=True))
    _warn_if_unsaved(controller)


@cli.command()
@click.argument("product_id")
@click.option("--name", default=None, help="New product name")
@click.option("--description", default=None, help="New description")
@click.option("--price", default=None, help="New price, e.g. 19.99")
@click.option("--category", default=None, help="One of: " + ", ".join(ProductCategory.values()))
@click.option("--image-url", default=None, help="Absolute image URL or /uploads/ path")
@click.option("--tags", default=None, help="Comma-separated tags, replacing the current ones")
@click.option("--sku", default=None, help="SKU; pass an empty value to remove it")
@click.option("--brand", default=None, help="Brand; pass an empty value to remove it")
@click.option("--in-stock/--out-of-stock", default=None, help="Change availability")
def update(
    product_id: str,
    name: Optional[str],
    description: Optional[str],
    price: Optional[str],
    category: Optional[str],
    image_url: Optional[str],
    tags: Optional[str],
    sku: Optional[str],
    brand: Optional[str],
    in_stock: Optional[bool]
):
    """
    Validate and apply changes to an existing product.

    Fields that are not given keep their current values.

    PRODUCT_ID: Id of the product to edit
    """
    changes = {
        "name": name,
        "description": description,
        "price": price,
        "category": category,
        "imageUrl": image_url,
        "inStock": in_stock,
        "tags": tags,
        "sku": sku,
        "brand": brand,
    }
    changes = {key: value for key, value in changes.items() if value is not None}

    async def run():
        controller = await _loaded_controller()
        existing = controller.get_by_id(product_id)
        if existing is None:
            raise ProductNotFoundError(product_id)
        form = {**controller.validator.entity_to_form(existing).to_dict(), **changes}
        return controller, await controller.submit_form(form, product_id=product_id)

    try:
        controller, result = _run(run())
    except BaseAppException as e:
        _fail(e.message)

    if not result.validation.is_valid:
        click.echo(click.style(f"✗ {result.validation.get_summary()}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"✓ Updated {result.product.id}", fg="green", bold=True))
    _warn_if_unsaved(controller)


@cli.command()
@click.argument("product_id")
def delete(product_id: str):
    """
    Delete a product.

    PRODUCT_ID: Id of the product to delete
    """

    async def run():
        controller = await _loaded_controller()
        await controller.remove(product_id)
        return controller

    try:
        controller = _run(run())
    except BaseAppException as e:
        _fail(e.message)

    click.echo(click.style(f"✓ Deleted {product_id}", fg="green"))
    _warn_if_unsaved(controller)


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False, writable=True))
def export(file: str):
    """
    Write the catalog to FILE as a JSON array.

    FILE: Destination path
    """
    try:
        controller = _run(_loaded_controller())
    except BaseAppException as e:
        _fail(e.message)

    products = controller.products
    try:
        with open(file, "w", encoding="utf-8") as f:
            json.dump([product.to_dict() for product in products], f, indent=2)
    except OSError as e:
        _fail(f"Cannot write {file}: {str(e)}")

    click.echo(click.style(f"✓ Exported {len(products)} products to {file}", fg="green"))


@cli.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def import_products(file: str):
    """
    Merge products from a JSON array in FILE; existing ids are kept.

    FILE: Source path
    """
    try:
        with open(file, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except OSError as e:
        _fail(f"Cannot read {file}: {str(e)}")
    except ValueError as e:
        _fail(f"{file} is not valid JSON: {str(e)}")

    decoded = decode_product_list(payload)
    if not decoded.ok:
        _fail(f"{file} does not contain a product array ({decoded.reason})")

    try:
        store = build_controller().store
    except BaseAppException as e:
        _fail(e.message)

    before = store.get_products_count()
    if not store.import_products(decoded.products):
        _fail("Import could not be saved to the store")
    added = store.get_products_count() - before

    click.echo(click.style(f"✓ Imported {added} new product(s)", fg="green"))
    if decoded.skipped:
        click.echo(click.style(f"⚠ Skipped {decoded.skipped} invalid record(s)", fg="yellow"))


@cli.command()
@click.confirmation_option(prompt="Remove every product from the store?")
def clear():
    """Empty the durable store; the next load repopulates it."""
    try:
        store = build_controller().store
    except BaseAppException as e:
        _fail(e.message)

    if not store.clear_products():
        _fail("Store could not be cleared")
    click.echo(click.style("✓ Catalog cleared", fg="green"))


@cli.command()
def config_info():
    """Display current configuration settings."""
    try:
        config = get_config()

        click.echo("Configuration Settings:")
        click.echo("=" * 60)
        click.echo()

        click.echo("Environment:")
        click.echo(f"  Environment:     {config.env.environment}")
        click.echo(f"  Log level:       {config.logging.level}")
        click.echo()

        click.echo("Remote API:")
        click.echo(f"  Base URL:        {config.env.catalog_api_base_url}")
        click.echo(f"  Endpoint:        {config.api.products_endpoint}")
        click.echo(f"  Timeout:         {config.api.timeout}s")
        click.echo(f"  Max retries:     {config.api.max_retries}")
        click.echo()

        click.echo("Durable Store:")
        click.echo(f"  Backend:         {config.env.catalog_storage_backend}")
        click.echo(f"  Path:            {config.env.catalog_storage_path}")
        click.echo(f"  Redis URL:       {config.env.catalog_redis_url or '-'}")
        click.echo(f"  Namespace:       {config.storage.namespace}")
        click.echo(f"  Keep empty:      {config.storage.respect_empty_catalog}")
        click.echo()

        click.echo("Browsing:")
        click.echo(f"  Page size:       {config.catalog.default_limit} (max {config.catalog.max_limit})")
        click.echo(f"  Search debounce: {config.catalog.search_debounce_ms} ms")
        click.echo()

    except ConfigurationError as e:
        _fail(f"Configuration error: {e.message}")
    except Exception as e:
        click.echo(click.style(f"✗ Error loading config: {str(e)}", fg="red"), err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()

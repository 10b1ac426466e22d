from __future__ import annotations

import json
import sys
from typing import Dict, Optional

import typer

from recordkit.config import get_settings
from recordkit.domain import Product, ProductRecord
from recordkit.infrastructure.db_factory import Database, build_dsn, mask_dsn
from recordkit.infrastructure.schema import ensure_schema
from recordkit.utils.logging import configure_logging

app = typer.Typer(help="recordkit CLI.")
product_app = typer.Typer(help="Manage rows of the product table.")
app.add_typer(product_app, name="product")


def _database() -> Database:
    return Database()


def _products(db: Database) -> Product:
    return Product(db)


def _fail(errors: Dict[str, str]) -> None:
    for field, message in errors.items():
        typer.echo(f"{field}: {message}", err=True)
    raise typer.Exit(code=1)


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={mask_dsn(build_dsn(settings))} | env={settings.app_env} "
        f"log_level={settings.log_level} statement_timeout_ms={settings.db_statement_timeout_ms}"
    )


@app.command("init-db")
def init_db() -> None:
    """
    Create the product table if it does not exist.
    """
    with _database() as db:
        ensure_schema(db.get_connection())
    typer.echo("Schema ready.")


@product_app.command("add")
def product_add(
    name: str = typer.Option("", "--name", "-n", help="Product name."),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Product description."
    ),
) -> None:
    """Insert a product and print its id."""
    with _database() as db:
        products = _products(db)
        result = products.insert({"name": name, "description": description})
        if not result:
            _fail(result.errors)
        typer.echo(products.get_insert_id())


@product_app.command("list")
def product_list() -> None:
    """Print all products as JSON."""
    with _database() as db:
        rows = _products(db).find_all()
    typer.echo(json.dumps(rows, indent=2, default=str))


@product_app.command("show")
def product_show(product_id: int = typer.Argument(..., help="Product id.")) -> None:
    """Print one product as JSON."""
    with _database() as db:
        row = _products(db).find(product_id)
    if row is None:
        typer.echo(f"Product {product_id} not found.", err=True)
        raise typer.Exit(code=1)
    typer.echo(ProductRecord.model_validate(row).model_dump_json(indent=2))


@product_app.command("update")
def product_update(
    product_id: int = typer.Argument(..., help="Product id."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="New name."),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="New description."
    ),
) -> None:
    """Update a product's name and/or description."""
    changes = {
        key: value
        for key, value in {"name": name, "description": description}.items()
        if value is not None
    }
    with _database() as db:
        products = _products(db)
        if "name" not in changes:
            # name is validated on every write, keep the stored one
            current = products.find(product_id)
            if current is None:
                typer.echo(f"Product {product_id} not found.", err=True)
                raise typer.Exit(code=1)
            changes["name"] = current["name"]
        result = products.update(product_id, changes)
    if not result:
        _fail(result.errors)
    if result.rowcount == 0:
        typer.echo(f"Product {product_id} not found.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Updated product {product_id}.")


@product_app.command("delete")
def product_delete(product_id: int = typer.Argument(..., help="Product id.")) -> None:
    """Delete a product."""
    with _database() as db:
        deleted = _products(db).delete(product_id)
    if not deleted:
        typer.echo(f"Product {product_id} not found.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Deleted product {product_id}.")


@product_app.command("count")
def product_count() -> None:
    """Print the number of products."""
    with _database() as db:
        typer.echo(_products(db).get_total())


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer

from ryandata_geocode_utils.config import GeocodeSettings
from ryandata_geocode_utils.models import RyanDataGeocodeError
from ryandata_geocode_utils.service import GeocodeService
from ryandata_geocode_utils.storage import SQLiteStorage

app = typer.Typer(help="Geocode addresses and search stored records by distance.")


@app.callback()
def _configure(
    verbose: bool = typer.Option(  # noqa: B008
        False, "--verbose", "-v", help="Log debug output to stderr."
    ),
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


def _emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _fail(message: str, code: int = 1) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=code)


def parse_point(text: str) -> Any:
    """Read ``"lat,lon"`` as a coordinate pair; any other text is an address."""
    parts = [part.strip() for part in text.split(",")]
    if len(parts) == 2:
        try:
            return (float(parts[0]), float(parts[1]))
        except ValueError:
            pass
    return text


def _build_service(
    service: str | None,
    key: str | None,
    database: Path | None,
    table: str,
    init: bool = False,
) -> GeocodeService:
    overrides = {name: value for name, value in (("service", service), ("key", key)) if value}
    try:
        settings = GeocodeSettings(**overrides)
    except ValueError as exc:
        _fail(f"Invalid configuration: {exc}", code=2)

    storage = None
    if database is not None:
        storage = SQLiteStorage(str(database), table=table)
        if init:
            storage.create_table()
    return GeocodeService(settings, storage=storage)


@app.command()
def compose(
    address: Optional[str] = typer.Argument(None, help="Street line or full address."),  # noqa: B008
    address2: Optional[str] = typer.Option(None, help="Second address line."),  # noqa: B008
    city: Optional[str] = typer.Option(None),  # noqa: B008
    state: Optional[str] = typer.Option(None),  # noqa: B008
    zip_code: Optional[str] = typer.Option(None, "--zip"),  # noqa: B008
    country: Optional[str] = typer.Option(None),  # noqa: B008
) -> None:
    """Print the canonical address for the given parts."""
    parts = {
        "address1": address,
        "address2": address2,
        "city": city,
        "state": state,
        "zip": zip_code,
        "country": country,
    }
    data = {name: value for name, value in parts.items() if value}
    # A lone argument is already a full address
    source: Any = address if address and len(data) == 1 else data
    composed = GeocodeService(GeocodeSettings()).compose(source)
    if composed is None:
        _fail("No address components given.")
    typer.echo(composed)


@app.command()
def distance(
    origin: str = typer.Argument(..., help='"lat,lon" or an address.'),  # noqa: B008
    destination: str = typer.Argument(..., help='"lat,lon" or an address.'),  # noqa: B008
    unit: str = typer.Option("k", "--unit", "-u", help="k, m, f, i or n."),  # noqa: B008
    service: Optional[str] = typer.Option(None, help="Geocoding service."),  # noqa: B008
    key: Optional[str] = typer.Option(None, help="Geocoding API key."),  # noqa: B008
) -> None:
    """Print the great-circle distance between two points or addresses."""
    svc = _build_service(service, key, None, "geocodes")
    result = svc.distance(parse_point(origin), parse_point(destination), unit)
    if not result.is_valid:
        _fail(f"Error: {result.error}")
    _emit({"distance": result.distance, "unit": result.unit.value})


@app.command()
def geocode(
    address: str = typer.Argument(..., help="Full address string."),  # noqa: B008
    service: Optional[str] = typer.Option(None, help="Geocoding service."),  # noqa: B008
    key: Optional[str] = typer.Option(None, help="Geocoding API key."),  # noqa: B008
    database: Optional[Path] = typer.Option(  # noqa: B008
        None, "--database", "-d", help="SQLite database used as cache."
    ),
    table: str = typer.Option("geocodes", help="Table holding geocoded records."),  # noqa: B008
    init: bool = typer.Option(False, "--init", help="Create the table if missing."),  # noqa: B008
    persist: bool = typer.Option(True, "--persist/--no-persist"),  # noqa: B008
) -> None:
    """Resolve an address to latitude and longitude."""
    svc = _build_service(service, key, database, table, init)
    result = svc.geocode(address, persist=persist)
    if not result.is_resolved:
        _fail(f"Error: {result.error}")
    _emit(result.to_dict())


@app.command()
def near(
    origin: str = typer.Argument(..., help='"lat,lon" or an address.'),  # noqa: B008
    database: Path = typer.Option(..., "--database", "-d", help="SQLite database."),  # noqa: B008
    table: str = typer.Option("geocodes", help="Table holding geocoded records."),  # noqa: B008
    radius: Optional[float] = typer.Option(  # noqa: B008
        None, "--distance", "-r", help="Maximum distance."
    ),
    unit: str = typer.Option("k", "--unit", "-u", help="k, m, f, i or n."),  # noqa: B008
    direction: str = typer.Option("ASC", help="ASC or DESC."),  # noqa: B008
    find: str = typer.Option("all", help="all, first or count."),  # noqa: B008
    limit: Optional[int] = typer.Option(None, help="Maximum rows."),  # noqa: B008
    service: Optional[str] = typer.Option(None, help="Geocoding service."),  # noqa: B008
    key: Optional[str] = typer.Option(None, help="Geocoding API key."),  # noqa: B008
) -> None:
    """List stored records near a point or address."""
    if not database.exists():
        _fail(f"Database not found: {database}")
    svc = _build_service(service, key, database, table)
    extra = {"limit": limit} if limit is not None else None
    result = svc.near(parse_point(origin), radius, unit, direction, extra, find)
    if not result.is_valid:
        _fail(f"Error: {result.error}")
    if find.lower() == "count":
        _emit({"count": result.count})
        return
    _emit(result.rows)


def main() -> None:
    try:
        app()
    except RyanDataGeocodeError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()

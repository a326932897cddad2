"""
main.py

Export Wealthsimple activity as OFX files, one file per account, for import
into personal finance software.

Usage:
    pip install -e .
    export WS_ACCESS_TOKEN=...   # from the _oauth2_access_v2 cookie
    export WS_IDENTITY_ID=...    # identity_canonical_id from the same cookie
    python main.py --preset this-month --output-dir ./ofx

Without ``--account-id`` the activity feed for every account is exported.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from ws_ofx.client import GraphQLClient
from ws_ofx.config import Settings, apply_overrides, load_settings
from ws_ofx.date_time import DateRangePreset
from ws_ofx.errors import FetchError
from ws_ofx.export import ExportRequest, ExportResult, export_transactions


async def run_export(request: ExportRequest, settings: Settings) -> ExportResult:
    async with GraphQLClient(settings.access_token, url=settings.graphql_url) as client:
        return await export_transactions(
            request, client, settings.identity_id, settings=settings
        )


def write_documents(result: ExportResult, output_dir: Path) -> list[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for document in result.documents.values():
        out_path = output_dir / document.filename
        out_path.write_bytes(document.content)
        written.append(out_path)
    return written


@click.command()
@click.option(
    "--preset",
    type=click.Choice([preset.value for preset in DateRangePreset]),
    default=DateRangePreset.ALL.value,
    show_default=True,
    help="Date range to export.",
)
@click.option(
    "--account-id",
    "account_ids",
    multiple=True,
    help="Account to export; repeat for several. Defaults to every account.",
)
@click.option(
    "--feed/--account-details",
    default=True,
    help="Query the activity feed or the per-account activity list.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON or YAML settings file.",
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the .ofx files.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(
    preset: str,
    account_ids: Tuple[str, ...],
    feed: bool,
    config_path: Optional[Path],
    output_dir: Optional[Path],
    verbose: bool,
) -> None:
    """Export Wealthsimple transactions as OFX."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(config_path)
        if output_dir is not None:
            settings = apply_overrides(settings, {"output_dir": output_dir})
    except (ValueError, TypeError) as exc:
        raise click.ClickException(str(exc)) from exc

    if not settings.access_token or not settings.identity_id:
        raise click.UsageError(
            "An access token and identity id are required "
            "(WS_ACCESS_TOKEN / WS_IDENTITY_ID or the config file)."
        )
    if not feed and not account_ids:
        raise click.UsageError("--account-details needs at least one --account-id")

    request = ExportRequest(
        page_type="activity" if feed else "account-details",
        account_ids=list(account_ids),
        from_date=DateRangePreset(preset).from_date(),
    )

    try:
        result = asyncio.run(run_export(request, settings))
    except FetchError as exc:
        raise click.ClickException(str(exc)) from exc

    for out_path in write_documents(result, settings.output_dir):
        click.echo(f"OFX written to {out_path}")
    if result.diagnostics:
        click.echo(f"Skipped {len(result.diagnostics)} transaction(s); see log for details")


if __name__ == "__main__":
    main()

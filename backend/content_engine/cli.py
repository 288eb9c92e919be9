import json
from pathlib import Path

import click
from bs4 import BeautifulSoup
from flask.cli import AppGroup

from content_engine.application.maintenance.backfill_block_ids import backfill_block_ids
from content_engine.application.maintenance.backfill_nav_anchors import backfill_nav_anchors
from content_engine.application.maintenance.demote_orphan_overrides import demote_orphan_overrides
from content_engine.application.maintenance.normalize_positions import normalize_positions
from content_engine.application.maintenance.repair_slugs import repair_slugs
from content_engine.editor.markers import inject_block_markers

content_cli = AppGroup("content", help="Content store maintenance.")


def _echo_report(report):
    mode = "applied" if report.applied else "dry run"
    click.echo(f"{report.name} ({mode}): {report.changed} of {report.scanned} records")
    for change in report.changes:
        click.echo(f"  {json.dumps(change, default=str)}")
    for skip in report.skipped:
        click.echo(f"  skipped {skip['id']}: {skip['reason']}")


def _maintenance_command(name, func, help_text):
    @content_cli.command(name, help=help_text)
    @click.option("--apply", is_flag=True, help="Write changes instead of listing them.")
    def command(apply):
        _echo_report(func(apply=apply))

    return command


_maintenance_command(
    "normalize-positions", normalize_positions, "Rewrite legacy position values."
)
_maintenance_command(
    "backfill-block-ids", backfill_block_ids, "Add missing block identifiers."
)
_maintenance_command(
    "backfill-nav-anchors", backfill_nav_anchors, "Generate missing navigation anchors."
)
_maintenance_command(
    "repair-slugs", repair_slugs, "Clear slugs stored on non-page records."
)
_maintenance_command(
    "demote-orphan-overrides",
    demote_orphan_overrides,
    "Turn overrides without a target back into sections.",
)


@content_cli.command("inject-block-ids")
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
def inject_block_ids_command(directory):
    """Add block markers to editable tags in every HTML file under DIRECTORY."""
    total = 0
    for path in sorted(directory.rglob("*.html")):
        document = BeautifulSoup(path.read_text(encoding="utf-8"), "html.parser")
        added = inject_block_markers(document)
        if added:
            path.write_text(str(document), encoding="utf-8")
            click.echo(f"{path}: {added} markers")
        total += added
    click.echo(f"{total} markers added")


def register_cli(app):
    app.cli.add_command(content_cli)

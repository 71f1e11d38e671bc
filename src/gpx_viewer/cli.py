"""Command-line interface for gpx-viewer.

Provides CLI commands for listing track points, exporting GeoJSON,
replaying a track, and reading photo geotags.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from gpx_viewer import __version__
from gpx_viewer.config import DEFAULT_CONFIG_PATH, load_config
from gpx_viewer.errors import ParseError
from gpx_viewer.lib.logging import setup_logging, verbosity_to_level

if TYPE_CHECKING:
    from gpx_viewer.config import Config
    from gpx_viewer.services.viewer import ViewerSession


class JSONOutput:
    """Helper for JSON output formatting."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._data: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        """Set a value in the output."""
        self._data[key] = value

    def update(self, data: dict[str, Any]) -> None:
        """Update with multiple values."""
        self._data.update(data)

    def output(self) -> None:
        """Print JSON output if enabled."""
        if self.enabled:
            click.echo(json.dumps(self._data, indent=2, default=str))


# Custom context class to hold shared state
class Context:
    """CLI context holding shared configuration and state."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: int = 0
        self.quiet: bool = False
        self.json_output: bool = False
        self.output: JSONOutput = JSONOutput()

    def log(self, message: str, level: int = 0) -> None:
        """Log a message if verbosity allows.

        Args:
            message: Message to log.
            level: Required verbosity level (0=normal, 1=-v, 2=-vv).
        """
        if self.json_output:
            return
        if self.quiet and level == 0:
            return
        if level <= self.verbose or level == 0:
            click.echo(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        if self.json_output:
            self.output.set("error", message)
            self.output.set("status", "error")
        else:
            click.echo(f"Error: {message}", err=True)

    def fail(self, message: str, code: int = 1) -> None:
        """Report an error and exit."""
        self.error(message)
        if self.json_output:
            self.output.output()
        sys.exit(code)


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help=f"Configuration file path (default: {DEFAULT_CONFIG_PATH})",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-error output",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output in JSON format",
)
@click.version_option(version=__version__, prog_name="gpx-viewer")
@pass_context
def main(
    ctx: Context,
    config_path: Path | None,
    verbose: int,
    quiet: bool,
    json_output: bool,
) -> None:
    """GPX Track Viewer CLI.

    List and replay recorded GPS tracks, export them as GeoJSON,
    and read geotags from photos.
    """
    ctx.verbose = verbose
    ctx.quiet = quiet
    ctx.json_output = json_output
    ctx.output = JSONOutput(json_output)

    try:
        ctx.config = load_config(config_path)
    except ValueError as e:
        ctx.fail(f"Invalid configuration: {e}", code=2)

    setup_logging(
        ctx.config,
        # JSON mode keeps stderr free of warnings
        console_level=logging.ERROR if json_output else verbosity_to_level(verbose),
        quiet=quiet,
    )


def _open_session(
    ctx: Context,
    loop: asyncio.AbstractEventLoop,
    track: Path,
    photo_paths: tuple[Path, ...] = (),
) -> ViewerSession:
    """Create a viewer session on ``loop`` and load a track into it.

    Exits with status 1 when the track cannot be read or parsed.
    """
    from gpx_viewer.services.viewer import ViewerSession

    try:
        gpx_text = track.read_bytes().decode("utf-8-sig")
    except OSError as e:
        ctx.fail(f"Cannot read {track}: {e}")
    except UnicodeDecodeError:
        ctx.fail(f"GPX file is not valid UTF-8: {track}")

    session = ViewerSession(loop, ctx.config)
    try:
        session.load(
            gpx_text,
            ((path.read_bytes(), "", path) for path in photo_paths),
        )
    except ParseError as e:
        session.close()
        ctx.fail(str(e))
    return session


@main.group()
def view() -> None:
    """View a recorded GPS track."""
    pass


@view.command(name="points")
@click.argument("track", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_context
def view_points(ctx: Context, track: Path) -> None:
    """List the track points of a GPX file.

    Shows one row per point with latitude and longitude (6 decimals),
    altitude (1 decimal), and the recorded time.
    """
    from gpx_viewer.views.terminal import HEADER, format_row

    loop = asyncio.new_event_loop()
    try:
        session = _open_session(ctx, loop, track)
        rows = session.rows()
        session.close()
    finally:
        loop.close()

    if ctx.json_output:
        ctx.output.update({
            "status": "success",
            "track": str(track),
            "count": len(rows),
            "points": rows,
        })
        ctx.output.output()
        return

    if not rows:
        ctx.log("No track points found")
        return

    click.echo(HEADER)
    for row in rows:
        click.echo(format_row(row))
    ctx.log(f"\n{len(rows)} points", level=1)


@view.command(name="geojson")
@click.argument("track", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--photo",
    "-p",
    "photos",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Geotagged photo to add as a point feature (repeatable)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write GeoJSON to this file instead of stdout",
)
@pass_context
def view_geojson(
    ctx: Context,
    track: Path,
    photos: tuple[Path, ...],
    output: Path | None,
) -> None:
    """Export a track as a GeoJSON FeatureCollection.

    The track becomes one LineString feature whose properties carry the
    per-point timestamps; photos become Point features.
    """
    loop = asyncio.new_event_loop()
    try:
        session = _open_session(ctx, loop, track, photos)
        collection = session.feature_collection()
        point_count = len(session.timeline)
        photo_count = len(session.photos)
        session.close()
    finally:
        loop.close()

    content = json.dumps(collection, indent=2)
    if output is None:
        click.echo(content)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")

    if ctx.json_output:
        ctx.output.update({
            "status": "success",
            "output": str(output),
            "points": point_count,
            "photos": photo_count,
        })
        ctx.output.output()
    else:
        ctx.log(f"Wrote {point_count} points and {photo_count} photos to {output}")


@view.command(name="play")
@click.argument("track", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--start",
    type=int,
    default=0,
    help="Index to start playback from (clamped to the track)",
)
@click.option(
    "--frame-rate",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Points advanced per second (default: from config)",
)
@pass_context
def view_play(ctx: Context, track: Path, start: int, frame_rate: float | None) -> None:
    """Replay a track, printing each point as the playhead reaches it."""
    config = ctx.config
    if config is None:
        ctx.fail("Configuration not loaded")
    if frame_rate is not None:
        config.playback.frame_rate = frame_rate

    loop = asyncio.new_event_loop()
    try:
        session = _open_session(ctx, loop, track)
        history = loop.run_until_complete(_replay(ctx, session, start))
    finally:
        loop.close()

    if ctx.json_output:
        ctx.output.update({
            "status": "success",
            "track": str(track),
            "visited": len(history),
            "points": history,
        })
        ctx.output.output()
    else:
        ctx.log(f"\nReplayed {len(history)} points", level=1)


async def _replay(ctx: Context, session: ViewerSession, start: int) -> list[dict[str, Any]]:
    """Run auto-play on the session's event loop until it finishes."""
    from gpx_viewer.models.playback import PlaybackMode
    from gpx_viewer.views.terminal import HEADER, TerminalView

    if session.timeline.is_empty:
        session.close()
        ctx.log("No track points found")
        return []

    session.engine.jump_to(start)
    terminal = TerminalView(
        session.timeline,
        session.config.display.time_format,
        echo=None if ctx.json_output else click.echo,
    )
    if not ctx.json_output:
        click.echo(HEADER)
    session.attach_view(terminal, terminal)

    finished = asyncio.Event()

    def on_transport(mode: PlaybackMode) -> None:
        if mode is PlaybackMode.IDLE:
            finished.set()

    session.engine.subscribe_transport(on_transport)
    session.controls.press("play")
    try:
        if session.engine.is_playing:
            await finished.wait()
    finally:
        session.close()
    return terminal.history


@main.command()
@click.argument(
    "images",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--comment",
    default="",
    help="Comment attached to every photo",
)
@pass_context
def photos(ctx: Context, images: tuple[Path, ...], comment: str) -> None:
    """Read the geotag of one or more photos.

    Photos without readable GPS metadata are skipped with a warning.
    """
    from gpx_viewer.services.photos import load_photos

    results = load_photos(images, comment)
    skipped = len(images) - len(results)

    if ctx.json_output:
        ctx.output.update({
            "status": "success",
            "photos": [
                {
                    "image": str(photo.image_ref),
                    "lat": photo.coordinate.lat,
                    "lon": photo.coordinate.lon,
                    "alt": photo.coordinate.alt,
                    "timestamp": photo.timestamp.isoformat() if photo.timestamp else None,
                    "comment": photo.comment,
                }
                for photo in results
            ],
            "skipped": skipped,
        })
        ctx.output.output()
        return

    for photo in results:
        taken = photo.timestamp.strftime(ctx.config.display.time_format) if photo.timestamp else "-"
        click.echo(
            f"{photo.image_ref}: {photo.coordinate.lat:.6f}, {photo.coordinate.lon:.6f} "
            f"alt {photo.coordinate.alt:.1f} at {taken}"
        )
    if skipped:
        ctx.log(f"Skipped {skipped} photos without a readable geotag")

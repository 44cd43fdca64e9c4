"""Main entry point for the Live Pitch CLI."""

import sys
import time
from typing import Optional

import click

from ..logger import get_logger
from ..logging_config import setup_logging
from ..audio.audio_input import AudioSourceError, list_input_devices
from ..core.config import ConfigManager
from ..core.factory import ComponentFactory
from .display import ConsoleDisplay

logger = get_logger(__name__)

threshold = click.FloatRange(0.0, 1.0)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    envvar="LIVE_PITCH_CONFIG_DIR",
    default=None,
    help="Directory holding the JSON configuration (default: ~/.config/live_pitch)",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, config_dir: Optional[str]) -> None:
    """Live Pitch - real-time pitch and tuning detection."""
    setup_logging(level="DEBUG" if debug else None)
    ctx.obj = ComponentFactory(ConfigManager(config_dir))


def _estimator_options(f):
    f = click.option(
        "--estimator",
        type=click.Choice(["yin", "aubio"]),
        default="yin",
        show_default=True,
        help="Pitch detection backend",
    )(f)
    f = click.option(
        "--clarity-threshold",
        type=threshold,
        default=None,
        help="Minimum clarity to report a pitch (default from config: 0.7)",
    )(f)
    f = click.option(
        "--power-threshold",
        type=threshold,
        default=None,
        help="Minimum buffer power, the sum of squared samples (default from config: 0.1)",
    )(f)
    return f


@cli.command()
@click.option("--device", type=int, default=None, help="Audio input device ID")
@click.option("--duration", "-t", type=float, default=600.0, show_default=True, help="Seconds to listen")
@click.option("--buffer-size", type=click.IntRange(min=0), default=None, help="Frames per buffer (0 = device default)")
@click.option("--sample-rate", type=click.IntRange(min=1), default=None, help="Sample rate in Hz (default: device rate)")
@_estimator_options
@click.pass_obj
def listen(
    factory: ComponentFactory,
    device: Optional[int],
    duration: float,
    buffer_size: Optional[int],
    sample_rate: Optional[int],
    power_threshold: Optional[float],
    clarity_threshold: Optional[float],
    estimator: str,
) -> None:
    """Show the note and tuning offset of the microphone input."""
    try:
        source = factory.create_audio_source(
            "sounddevice",
            device_id=device,
            sample_rate=sample_rate,
            frames_per_buffer=buffer_size,
        )
        pitch_estimator = factory.create_pitch_estimator(
            estimator,
            power_threshold=power_threshold,
            clarity_threshold=clarity_threshold,
        )
        service = factory.create_tuner_service(source, pitch_estimator)

        click.echo(f"Default input device: {source.device_name}")
        click.echo(f"Using sample rate: {source.sample_rate}")
        click.echo("Listening... Please make a sound into the microphone.")

        display = ConsoleDisplay(overwrite=True)
        service.start(display.show)
    except AudioSourceError as e:
        logger.error(f"Audio input failed: {e}")
        raise click.ClickException(str(e))

    try:
        time.sleep(duration)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        service.stop()
        display.finish()


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--buffer-size", type=click.IntRange(min=2), default=2048, show_default=True, help="Frames per buffer")
@click.option("--realtime", is_flag=True, help="Replay at the file's own pace")
@_estimator_options
@click.pass_obj
def analyze(
    factory: ComponentFactory,
    file: str,
    buffer_size: int,
    realtime: bool,
    power_threshold: Optional[float],
    clarity_threshold: Optional[float],
    estimator: str,
) -> None:
    """Run a sound file through the tuner, one line per detected pitch."""
    try:
        source = factory.create_audio_source(
            "file", file_path=file, frames_per_buffer=buffer_size, realtime=realtime
        )
    except AudioSourceError as e:
        raise click.ClickException(str(e))

    pitch_estimator = factory.create_pitch_estimator(
        estimator,
        power_threshold=power_threshold,
        clarity_threshold=clarity_threshold,
    )
    service = factory.create_tuner_service(source, pitch_estimator)
    display = ConsoleDisplay(overwrite=False)

    click.echo(f"Analyzing {file} ({source.sample_rate} Hz, {source.duration:.2f}s)")
    service.start(lambda reading: display.show(reading, at=source.position))
    try:
        source.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        service.stop()

    if source.error is not None:
        raise click.ClickException(f"Analysis failed: {source.error}")
    if display.count == 0:
        click.echo("No pitch detected.")


@cli.command()
def devices() -> None:
    """List audio input devices."""
    try:
        inputs = list_input_devices()
    except AudioSourceError as e:
        raise click.ClickException(str(e))

    if not inputs:
        click.echo("No input devices found.")
        return

    click.echo("Available audio input devices:")
    for device in inputs:
        marker = "*" if device["is_default"] else " "
        click.echo(
            f"{marker} {device['id']:>3}: {device['name']} "
            f"({device['channels']} ch, {device['default_samplerate']:.0f} Hz)"
        )


def main() -> int:
    """Console script entry point."""
    return cli(prog_name="live-pitch")


if __name__ == "__main__":
    sys.exit(main())

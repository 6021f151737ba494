from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import typer

from ..core.billboards import ShadowSettings
from ..core.commands import DEFAULT_MAX_COMMAND_LENGTH, CommandTooLongError
from ..core.exporter import CommandWriter, NpzWriter
from ..core.loader import load_mesh
from ..core.pipeline import Pipeline, PipelineConfig
from ..core.shading import Material
from ..examples.synthetic import PRESETS, generate_mesh
from ..sdk import convert_from_config

app = typer.Typer(help="Mesh to text-display billboard conversion")
mesh_app = typer.Typer(help="Synthetic mesh helpers")
app.add_typer(mesh_app, name="mesh")


def _configure_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format="[%(levelname)s] %(message)s")
    logging.getLogger("meshboard").setLevel(numeric)


def _parse_triple(text: str, param_hint: str) -> Tuple[float, float, float]:
    parts = [p for p in text.replace(",", " ").split() if p]
    if len(parts) != 3:
        raise typer.BadParameter("Expected three numbers, e.g. '0,1,0'.", param_hint=param_hint)
    try:
        return (float(parts[0]), float(parts[1]), float(parts[2]))
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint=param_hint) from exc


def _writer_for(output: Path):
    ext = output.suffix.lower()
    if ext in {".mcfunction", ".txt"}:
        return CommandWriter(str(output))
    if ext == ".npz":
        return NpzWriter(str(output))
    raise typer.BadParameter("Output must end with .mcfunction, .txt, or .npz", param_hint="--output")


@app.command("convert")
def convert(
    config: Path = typer.Argument(..., exists=True, readable=True, help="Path to YAML configuration file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Override output path (extension sets format)."),
    max_command_length: Optional[int] = typer.Option(None, "--max-command-length", help="Override the command length limit."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Convert the mesh described by a YAML config into summon commands."""

    _configure_logging(log_level)
    if max_command_length is not None and max_command_length <= 0:
        raise typer.BadParameter("max_command_length must be positive.", param_hint="--max-command-length")
    if output is not None and output.suffix.lower() not in {".mcfunction", ".txt", ".npz"}:
        raise typer.BadParameter(f"Unsupported output extension '{output.suffix}'", param_hint="--output")
    try:
        result = convert_from_config(config, output=output, max_command_length=max_command_length)
    except CommandTooLongError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    stats = result.stats
    typer.echo(f"Converted {stats['triangles']} triangles into {stats['billboards']} billboards "
               f"in {stats['commands']} commands → {result.output_path}")


@app.command("convert-mesh")
def convert_mesh(
    mesh: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, readable=True, help="Input mesh path."),
    output: Path = typer.Option(..., "--output", "-o", help="Output path (.mcfunction/.txt/.npz)."),
    color: Optional[str] = typer.Option(None, "--color", help="Flat color 'r,g,b' in 0..1 applied to every face."),
    light: Optional[str] = typer.Option(None, "--light", help="Light direction 'x,y,z' enabling the shadow pass."),
    min_brightness: float = typer.Option(0.5, "--min-brightness", help="Shadow pass brightness facing away from the light."),
    max_brightness: float = typer.Option(1.0, "--max-brightness", help="Shadow pass brightness facing the light."),
    fit_size: Optional[float] = typer.Option(None, "--fit-size", help="Scale the mesh so its longest axis has this length."),
    max_command_length: int = typer.Option(DEFAULT_MAX_COMMAND_LENGTH, "--max-command-length", help="Maximum characters per command."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Quick conversion driven entirely from CLI options."""

    if max_command_length <= 0:
        raise typer.BadParameter("max_command_length must be positive.", param_hint="--max-command-length")
    if fit_size is not None and fit_size <= 0:
        raise typer.BadParameter("fit_size must be positive.", param_hint="--fit-size")
    if min_brightness > max_brightness:
        raise typer.BadParameter("min_brightness must not exceed max_brightness.", param_hint="--min-brightness")
    _configure_logging(log_level)

    material = None
    if color is not None:
        rgb = _parse_triple(color, "--color")
        if any(c < 0.0 or c > 1.0 for c in rgb):
            raise typer.BadParameter("color components must be within [0, 1].", param_hint="--color")
        material = Material(name="flat", color=rgb)

    shadow = None
    if light is not None:
        shadow = ShadowSettings(
            light=_parse_triple(light, "--light"),
            min_brightness=min_brightness,
            max_brightness=max_brightness,
        )

    output = output.resolve()
    writer = _writer_for(output)

    source = load_mesh(mesh.resolve())
    if fit_size is not None and source.max_axis_length() > 0.0:
        source = source.scaled(fit_size / source.max_axis_length())

    pipeline = Pipeline(PipelineConfig(max_command_length=max_command_length, shadow=shadow, material=material))
    try:
        stats = pipeline.run_to_writer(writer, source)
    except CommandTooLongError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Converted {stats['triangles']} triangles into {stats['billboards']} billboards "
               f"in {stats['commands']} commands → {output}")


@mesh_app.command("generate")
def mesh_generate(
    output: Path = typer.Argument(..., help="Output mesh path (.obj)."),
    preset: str = typer.Option("cube", "--preset", help=f"Synthetic mesh preset ({', '.join(PRESETS)})."),
    size: float = typer.Option(1.0, "--size", help="Scene extent scaling factor."),
) -> None:
    """Generate a synthetic polygon mesh useful for conversion demos."""

    if preset.lower() not in PRESETS:
        raise typer.BadParameter(f"preset must be one of {sorted(PRESETS)}.", param_hint="--preset")
    if size <= 0:
        raise typer.BadParameter("size must be positive.", param_hint="--size")
    out = output.resolve()
    generate_mesh(preset=preset, size=size, path=out)
    typer.echo(f"Wrote synthetic mesh to {out}")


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()

import click
import os
from colorstack.config.parser import Config
from colorstack.image.loader import load_rgba
from colorstack.instructions import format_instructions
from colorstack.mesh.generator import HeightfieldMeshGenerator, validate_mesh
from colorstack.mesh.stl_export import serialize_binary_stl, write_stl
from colorstack.pipeline import prepare_palette


@click.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--image', 'image_path', type=click.Path(exists=True), help='Input image (overrides image.path)')
@click.option('--bands', type=int, help='Number of color bands (overrides palette.num_bands)')
@click.option('--output', '-o', 'output_path', help='Output STL path (overrides output.filename)')
@click.option('--filament', 'filaments', multiple=True, help='Available filament color as #RRGGBB; repeat for several')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
def main(config_file, image_path, bands, output_path, filaments, verbose):
    """Turn an image into a stepped multi-color STL from YAML configuration."""

    try:
        if verbose:
            click.echo(f"Loading configuration from {config_file}")

        config = Config.from_yaml(config_file)

        # Command line overrides
        if image_path:
            config.image.path = image_path
        if bands is not None:
            config.palette.num_bands = bands
        if output_path:
            config.output.filename = output_path
        if filaments:
            config.palette.filaments = list(filaments)
            config.palette.mode = "filaments"

        config.validate()

        if verbose:
            click.echo("Configuration loaded and validated successfully")
            click.echo(f"Loading image: {config.image.path}")

        pixels, width, height = load_rgba(config.image.path, config.image.max_dimension)
        config.model.resolve_height(width, height)

        if verbose:
            click.echo(f"Image size: {width}x{height} pixels")
            click.echo(f"Extracting {config.palette.num_bands}-color palette...")

        prepared = prepare_palette(pixels, width, height, config.palette)

        click.echo("Palette (base first):")
        for index, (suggested, display) in enumerate(zip(prepared.suggested, prepared.display)):
            if suggested != display:
                click.echo(f"  {index}: {display} (matched from {suggested})")
            else:
                click.echo(f"  {index}: {display}")

        if verbose:
            click.echo("Generating 3D mesh...")

        generator = HeightfieldMeshGenerator(config.model, config.palette.num_bands)
        mesh = generator.generate_mesh(prepared.band_map, width, height)

        if verbose:
            click.echo(f"Mesh generated: {len(mesh.vertices)} vertices, {mesh.face_count} faces")

        output_path = write_stl(serialize_binary_stl(mesh), config.output.filename)
        click.echo(f"✓ Model saved to {output_path}")

        instructions = format_instructions(
            prepared.display,
            config.model.base_thickness_layers,
            config.model.band_thickness_layers,
            config.model.layer_height_mm,
        )
        click.echo("Slicer instructions:")
        for line in instructions.splitlines():
            click.echo(f"  {line}")

        if config.output.instructions:
            instructions_path = os.path.splitext(output_path)[0] + '_instructions.txt'
            with open(instructions_path, 'w') as f:
                f.write(instructions + "\n")
            click.echo(f"✓ Instructions saved to {instructions_path}")

        if verbose:
            report = validate_mesh(mesh)
            width_mm, depth_mm, height_mm = report['dimensions']
            click.echo(f"Watertight: {'yes' if report['watertight'] else 'no'}")
            click.echo(f"Print dimensions: {width_mm:.1f}mm × {depth_mm:.1f}mm × {height_mm:.1f}mm")

    except Exception as e:
        raise click.ClickException(str(e))


if __name__ == "__main__":
    main()

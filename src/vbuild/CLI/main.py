"""
Command Line Interface for vbuild.
"""
import os
from typing import Optional, Tuple

import click

from ..errors import VBuildError
from ..BUILDERS.image_builder import ImageBuilder
from ..MANAGERS.environment_manager import EnvironmentManager, parse_build_arg_options
from ..MANAGERS.pipeline_orchestrator import PipelineOrchestrator
from ..MANAGERS.snapshot_manager import SnapshotManager
from ..MODELS.build_step import PipelineDefinition
from ..MODELS.toolchain_pipeline import default_pipeline
from ..PARSERS.pipeline_parser import PipelineParser
from ..REGISTRY.image_registry import DockerCliRegistry, ImageRegistry

root_option = click.option('--root', '-C', default='.', type=click.Path(file_okay=False),
                           help='Repository root the pipeline paths are relative to')
pipeline_option = click.option('--pipeline', '-p', 'pipeline_file', default=None,
                               type=click.Path(dir_okay=False),
                               help='Pipeline YAML file (defaults to the built-in toolchain)')
build_arg_option = click.option('--build-arg', 'build_args', multiple=True, metavar='NAME=VALUE',
                                help='Override a build argument; may be repeated')
backend_option = click.option('--backend', default='docker', envvar='VBUILD_BACKEND', show_default=True,
                              help='Container backend executable')


def _load_pipeline(root: str, pipeline_file: Optional[str]) -> PipelineDefinition:
    if pipeline_file is None:
        return default_pipeline()
    return PipelineParser().parse(os.path.join(root, pipeline_file))


def _registry(ctx: click.Context, backend: str) -> ImageRegistry:
    # Tests inject a fake registry through the context object
    return ctx.obj.get('registry') or DockerCliRegistry(backend)


def _builder(ctx: click.Context, root: str, backend: str, build_args: Tuple[str, ...],
             pipeline: Optional[PipelineDefinition] = None) -> ImageBuilder:
    manager = EnvironmentManager(base_dir=root)
    args = manager.get_build_arguments(
        pipeline_args=pipeline.build_args if pipeline else None,
        explicit_args=parse_build_arg_options(build_args),
    )
    return ImageBuilder(_registry(ctx, backend), args, base_dir=root)


def _fail(ctx: click.Context, error: VBuildError):
    click.echo(f"Error: {error}", err=True)
    ctx.exit(error.exit_code)


@click.group()
@click.version_option(package_name='vbuild')
@click.pass_context
def cli(ctx):
    """
    vbuild - builds the verification toolchain as a chain of container images.

    Every image is layered on the one built before it, so images are always
    built one at a time and in dependency order.
    """
    ctx.ensure_object(dict)


@cli.command()
@root_option
@pipeline_option
@build_arg_option
@backend_option
@click.option('--no-clean', is_flag=True, help='Do not clean the snapshot source before copying')
@click.option('--no-snapshot', is_flag=True, help='Reuse the existing snapshot')
@click.option('--resolve', is_flag=True, help='Order steps by their base images instead of as written')
@click.option('--only', multiple=True, metavar='IMAGE',
              help='Build only this image; may be repeated. Other images must already exist')
@click.pass_context
def build(ctx, root, pipeline_file, build_args, backend, no_clean, no_snapshot, resolve, only):
    """Build every image of the pipeline in order."""
    ctx.ensure_object(dict)
    try:
        pipeline = _load_pipeline(root, pipeline_file)
        builder = _builder(ctx, root, backend, build_args, pipeline)
        orchestrator = PipelineOrchestrator(pipeline, builder, resolve=resolve)
        results = orchestrator.run(only=only or None, snapshot=not no_snapshot, clean=not no_clean)
        click.echo(f"Built {len(results)} images: {', '.join(r.reference for r in results)}", err=True)
    except VBuildError as e:
        _fail(ctx, e)


@cli.command()
@click.argument('image')
@click.argument('dockerfile')
@build_arg_option
@backend_option
@click.pass_context
def mkimage(ctx, image, dockerfile, build_args, backend):
    """Build IMAGE:latest from DOCKERFILE, using its directory as context."""
    ctx.ensure_object(dict)
    try:
        result = _builder(ctx, '.', backend, build_args).build(image, dockerfile)
        click.echo(f"Built {result.reference}", err=True)
    except VBuildError as e:
        _fail(ctx, e)


@cli.command()
@root_option
@pipeline_option
@click.option('--no-clean', is_flag=True, help='Do not clean the source before copying')
@click.pass_context
def snapshot(ctx, root, pipeline_file, no_clean):
    """Recreate the vendored source snapshot without building."""
    try:
        pipeline = _load_pipeline(root, pipeline_file)
        if pipeline.snapshot is None:
            click.echo("Pipeline has no snapshot.", err=True)
            return
        destination = SnapshotManager(base_dir=root).prepare(pipeline.snapshot, clean=not no_clean)
        click.echo(f"Snapshot ready at {destination}", err=True)
    except VBuildError as e:
        _fail(ctx, e)


@cli.command()
@root_option
@pipeline_option
@backend_option
@click.option('--resolve', is_flag=True, help='Show the order computed from base images')
@click.pass_context
def steps(ctx, root, pipeline_file, backend, resolve):
    """List the build steps in the order they run."""
    ctx.ensure_object(dict)
    try:
        pipeline = _load_pipeline(root, pipeline_file)
        builder = ImageBuilder(_registry(ctx, backend), EnvironmentManager(base_dir=root).get_build_arguments(
            pipeline_args=pipeline.build_args), base_dir=root)
        ordered = PipelineOrchestrator(pipeline, builder, resolve=resolve).plan()
        click.echo(f"{'#':3} {'IMAGE':15} {'BASE':15} CONTEXT")
        click.echo("-" * 50)
        for index, step in enumerate(ordered, start=1):
            base = builder.resolve_base(step) or '-'
            click.echo(f"{index:<3} {step.image:15} {base:15} {step.context}")
    except VBuildError as e:
        _fail(ctx, e)


@cli.command()
@root_option
@pipeline_option
@backend_option
@click.pass_context
def clean(ctx, root, pipeline_file, backend):
    """Remove all pipeline images so the next build starts from fresh sources."""
    ctx.ensure_object(dict)
    try:
        pipeline = _load_pipeline(root, pipeline_file)
        registry = _registry(ctx, backend)
        # Dependents first
        for step in reversed(pipeline.steps):
            if registry.remove(step.image):
                click.echo(f"Removed {registry.tag(step.image)}", err=True)
    except VBuildError as e:
        _fail(ctx, e)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


def mkimage_main():
    """
    Entry point for the standalone mkimage command.
    """
    mkimage(obj={})


def build_main():
    """
    Entry point that builds the whole pipeline with default settings.
    """
    build(obj={})


if __name__ == '__main__':
    main()

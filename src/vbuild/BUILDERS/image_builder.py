"""
Builder for a single tagged image from one Dockerfile.
"""
import os
import sys
from typing import List, Optional
from pydantic import ValidationError
from ..errors import BuildError, InvalidStepError
from ..MODELS.build_arguments import BuildArguments
from ..MODELS.build_result import BuildResult
from ..MODELS.build_step import BuildStep
from ..MODELS.dockerfile_ast import Instruction
from ..PARSERS.dockerfile_parser import DockerfileParser
from ..REGISTRY.image_registry import ImageRegistry
from ..RUNNERS.dependency_resolver import base_name

# Arguments the backend defines itself
PREDEFINED_ARGS = {
    "HTTP_PROXY", "http_proxy", "HTTPS_PROXY", "https_proxy",
    "FTP_PROXY", "ftp_proxy", "NO_PROXY", "no_proxy", "ALL_PROXY", "all_proxy",
    "TARGETPLATFORM", "TARGETOS", "TARGETARCH", "TARGETVARIANT",
    "BUILDPLATFORM", "BUILDOS", "BUILDARCH", "BUILDVARIANT",
}


class ImageBuilder:
    """
    Builds '<image>:latest' from a Dockerfile with the run's shared build arguments.
    """
    def __init__(self, registry: ImageRegistry, args: BuildArguments, base_dir: str = "."):
        """
        Initializes the ImageBuilder.

        :param registry: The container backend the image is built with.
        :param args: Build arguments passed to every build.
        :param base_dir: The base directory for resolving relative paths.
        """
        self.registry = registry
        self.args = args
        self.base_dir = os.path.abspath(base_dir)
        self.parser = DockerfileParser()

    def build(self, image_name: str, dockerfile_path: str, context: Optional[str] = None) -> BuildResult:
        """
        Builds one image. Invalid input is rejected before the backend is invoked.

        :param image_name: Name of the image; it is tagged as '<image_name>:latest'.
        :param dockerfile_path: Path to the Dockerfile.
        :param context: Build context directory. Defaults to the Dockerfile's directory.
        :return: The successful BuildResult.
        :raises InvalidStepError: If the image name is empty or the Dockerfile is missing.
        :raises BuildError: If the backend exits with a non-zero status.
        """
        if not image_name or not image_name.strip():
            raise InvalidStepError("Image name must not be empty")

        full_path = os.path.normpath(os.path.join(self.base_dir, dockerfile_path))
        if not os.path.isfile(full_path):
            raise InvalidStepError(f"Dockerfile not found: {full_path}")

        if context is None:
            context_dir = os.path.dirname(full_path) or "."
        else:
            context_dir = os.path.normpath(os.path.join(self.base_dir, context))
        if not os.path.isdir(context_dir):
            raise InvalidStepError(f"Build context is not a directory: {context_dir}")

        try:
            step = BuildStep(
                image=image_name,
                dockerfile=os.path.relpath(full_path, context_dir),
                context=context_dir,
            )
        except ValidationError as e:
            raise InvalidStepError(f"Invalid build step {image_name!r}: {e}") from e

        self.warn_unsupplied_args(image_name, self.read_dockerfile(full_path))

        print(f"[{image_name}] Building {self.registry.tag(image_name)} from {full_path}", file=sys.stderr)
        result = self.registry.build(step, self.args, context_dir)
        if not result.succeeded:
            raise BuildError(image_name, result.exit_code)
        return result

    def build_step(self, step: BuildStep) -> BuildResult:
        """
        Builds a pipeline step, resolving its context against the base directory.
        """
        return self.build(step.image, os.path.join(step.context, step.dockerfile), context=step.context)

    def read_dockerfile(self, path: str) -> List[Instruction]:
        try:
            return self.parser.parse(path)
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidStepError(f"Cannot read Dockerfile {path}: {e}") from e

    def resolve_base(self, step: BuildStep) -> Optional[str]:
        """
        Returns the repository name of the image a step is layered on.

        A declared base must agree with the Dockerfile's FROM line; without a
        declaration the FROM line decides.

        :raises InvalidStepError: If the declaration and the Dockerfile disagree.
        """
        path = os.path.join(self.base_dir, step.context, step.dockerfile)
        from_image = None
        if os.path.isfile(path):
            from_image = self.parser.base_image(self.read_dockerfile(path), self.args.values)

        declared = base_name(step.base)
        found = base_name(from_image) if from_image and "$" not in from_image else None

        if declared and found and declared != found:
            raise InvalidStepError(
                f"Step {step.image} declares base {declared} but its Dockerfile is FROM {found}"
            )
        return declared or found

    def warn_unsupplied_args(self, image_name: str, instructions: List[Instruction]):
        """
        Reports ARGs without a default that the build argument set does not provide.
        """
        for name, default in self.parser.declared_args(instructions).items():
            if default is None and name not in self.args and name not in PREDEFINED_ARGS:
                print(f"[{image_name}] Warning: build argument {name} is not set", file=sys.stderr)

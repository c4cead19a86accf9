# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Access to the container backend's local image store and layer cache.

The store is a single global resource with no locking; two pipeline runs at
the same time would race on the same tags.
"""

import os
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO

from ..errors import VBuildError
from ..MODELS.build_arguments import BuildArguments
from ..MODELS.build_result import BuildResult
from ..MODELS.build_step import BuildStep
from ..RUNNERS.process_runner import ProcessRunner
from .image_reference import ImageReference


class ImageRegistry(ABC):
    """
    The operations the builder needs from a container backend.
    """

    def tag(self, name: str) -> str:
        """
        Get the reference an image built by the pipeline is stored under.

        Args:
            name: Image name

        Returns:
            The reference string, e.g. 'rvt_base:latest'
        """
        return str(ImageReference.latest(name))

    @abstractmethod
    def has(self, name: str, tag: str = ImageReference.DEFAULT_TAG) -> bool:
        """Check whether an image with this name and tag is in the local store."""

    @abstractmethod
    def build(self, step: BuildStep, args: BuildArguments, context_dir: str) -> BuildResult:
        """
        Build one image and tag it as '<image>:latest'.

        Args:
            step: The step to build; its dockerfile is resolved against context_dir
            args: Build arguments passed to the backend
            context_dir: The directory the backend sees as build context

        Returns:
            BuildResult with the backend's exit code
        """

    @abstractmethod
    def remove(self, name: str, tag: str = ImageReference.DEFAULT_TAG) -> bool:
        """Remove a tagged image. Returns False if it was not present, raises if removal fails."""


class DockerCliRegistry(ImageRegistry):
    """
    Registry backed by the docker command line (or a compatible one such as podman).
    """

    def __init__(self, executable: str = "docker", stdout: Optional[TextIO] = None):
        """
        Initialize the registry.

        Args:
            executable: Backend command to run.
            stdout: Where build output goes. Defaults to stderr.
        """
        self.executable = executable
        self.stdout = stdout

    def _runner(self, name: str) -> ProcessRunner:
        return ProcessRunner(name, stdout=self.stdout)

    def has(self, name: str, tag: str = ImageReference.DEFAULT_TAG) -> bool:
        command = [self.executable, "image", "inspect", f"{name}:{tag}"]
        return self._runner(name).run(command, quiet=True) == 0

    def build_command(self, step: BuildStep, args: BuildArguments, context_dir: str) -> List[str]:
        """
        Assemble the backend build command for a step.

        The previous image with the same tag is offered as a layer cache.
        """
        reference = self.tag(step.image)
        return [
            self.executable,
            "build",
            f"--cache-from={reference}",
            f"--file={os.path.join(context_dir, step.dockerfile)}",
            f"--tag={reference}",
            *args.as_cli_args(),
            context_dir,
        ]

    def build(self, step: BuildStep, args: BuildArguments, context_dir: str) -> BuildResult:
        command = self.build_command(step, args, context_dir)
        exit_code = self._runner(step.image).run(command, working_dir=context_dir)
        return BuildResult(image=step.image, tag=ImageReference.DEFAULT_TAG, exit_code=exit_code)

    def remove(self, name: str, tag: str = ImageReference.DEFAULT_TAG) -> bool:
        if not self.has(name, tag):
            return False
        command = [self.executable, "image", "rm", f"{name}:{tag}"]
        exit_code = self._runner(name).run(command)
        if exit_code != 0:
            raise VBuildError(f"Removing {name}:{tag} failed with exit code {exit_code}")
        return True

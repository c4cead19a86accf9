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
Exceptions raised while preparing and building the image chain.

Every error carries the process exit code the CLI should terminate with.
"""


class VBuildError(Exception):
    """Base class for all vbuild failures."""

    exit_code = 1


class ConfigError(VBuildError):
    """Invalid pipeline file, env file or build argument."""

    exit_code = 2


class InvalidStepError(VBuildError):
    """A build step that cannot be handed to the backend (empty name, missing Dockerfile)."""

    exit_code = 2


class OrderError(VBuildError):
    """A step would be built before the image it is layered on."""

    exit_code = 2


class SnapshotError(VBuildError):
    """Cleaning or copying the vendored source tree failed."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class BuildError(VBuildError):
    """The container backend exited with a non-zero status."""

    def __init__(self, image: str, exit_code: int):
        super().__init__(f"Building {image} failed with exit code {exit_code}")
        self.image = image
        self.exit_code = exit_code

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
Snapshots of vendored source trees placed inside a build context.

The backend cannot follow symlinks that leave its build context, so the
snapshot is always a physical copy, recreated from scratch on every run.
"""
import os
import shutil
import sys
from pathlib import Path
from typing import Optional

from ..errors import SnapshotError
from ..MODELS.build_step import SnapshotSpec
from ..RUNNERS.process_runner import ProcessRunner


class SnapshotManager:
    """
    Copies a dependency's working tree into a build context.
    """
    def __init__(self, base_dir: str = ".", runner: Optional[ProcessRunner] = None):
        """
        Initializes the snapshot manager.

        :param base_dir: The base directory for resolving relative paths.
        :param runner: Runs the clean command; a fresh one is created when omitted.
        """
        self.base_dir = os.path.abspath(base_dir)
        self.runner = runner or ProcessRunner("snapshot")

    def resolve(self, path: str) -> Path:
        return Path(os.path.normpath(os.path.join(self.base_dir, path)))

    def prepare(self, spec: SnapshotSpec, clean: bool = True) -> Path:
        """
        Deletes the previous snapshot and copies the source tree again.

        :param spec: Source and destination of the snapshot.
        :param clean: Run the source's clean command first to keep the copy small.
        :return: The destination path.
        :raises SnapshotError: If the source is missing, cleaning fails or copying fails.
        """
        source = self.resolve(spec.source)
        destination = self.resolve(spec.destination)

        if not source.is_dir():
            raise SnapshotError(f"Snapshot source is not a directory: {source}")
        if destination == source or source in destination.parents:
            raise SnapshotError(f"Snapshot destination {destination} lies inside its source {source}")
        # Replacing an ancestor would delete the source itself
        if destination in source.parents:
            raise SnapshotError(f"Snapshot destination {destination} contains its source {source}")

        if clean and spec.clean_command:
            exit_code = self.runner.run(list(spec.clean_command), working_dir=str(source))
            if exit_code != 0:
                raise SnapshotError(
                    f"Cleaning {source} with '{' '.join(spec.clean_command)}' failed with exit code {exit_code}",
                    exit_code=exit_code,
                )

        print(f"[snapshot] Copying {source} -> {destination}", file=sys.stderr)
        try:
            self.remove(destination)
            destination.parent.mkdir(parents=True, exist_ok=True)
            # symlinks=False copies the files links point at
            shutil.copytree(source, destination, symlinks=False)
        except OSError as e:
            raise SnapshotError(f"Copying {source} to {destination} failed: {e}") from e

        return destination

    @staticmethod
    def remove(path: Path):
        """
        Removes a previous snapshot, whatever kind of entry it is.
        """
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)

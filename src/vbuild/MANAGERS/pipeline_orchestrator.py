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
Orchestration of the whole image chain: snapshot first, then every step in dependency order.
"""
import sys
from enum import Enum
from typing import Iterable, List, Optional, Set

from ..errors import OrderError
from ..BUILDERS.image_builder import ImageBuilder
from ..MODELS.build_result import BuildResult
from ..MODELS.build_step import BuildStep, PipelineDefinition
from ..RUNNERS.dependency_resolver import DependencyResolver
from .snapshot_manager import SnapshotManager


class PipelineState(str, Enum):
    """
    States of a pipeline run. Steps completed so far are tracked separately.

    SNAPSHOT_READY means ready to build; a run without a snapshot records it as SNAPSHOT_SKIPPED.
    """
    INIT = "INIT"
    SNAPSHOT_READY = "SNAPSHOT_READY"
    BUILDING = "BUILDING"
    SUCCEEDED = "SUCCEEDED"
    ABORTED = "ABORTED"


class PipelineOrchestrator:
    """
    Builds every step of a pipeline once, strictly one after another.

    The first failure aborts the run; images already built are left in place.
    """
    def __init__(self,
                 pipeline: PipelineDefinition,
                 builder: ImageBuilder,
                 snapshot_manager: Optional[SnapshotManager] = None,
                 resolve: bool = False):
        """
        Initializes the orchestrator.

        :param pipeline: Steps and snapshot to build.
        :param builder: Builds individual images.
        :param snapshot_manager: Prepares the snapshot; defaults to one rooted at the builder's base_dir.
        :param resolve: Sort steps by their bases instead of validating the written order.
        """
        self.pipeline = pipeline
        self.builder = builder
        self.snapshot_manager = snapshot_manager or SnapshotManager(builder.base_dir)
        self.resolver = DependencyResolver()
        self.resolve = resolve

        self.state = PipelineState.INIT
        self.transitions: List[str] = [PipelineState.INIT.value]
        self.results: List[BuildResult] = []
        # Pipeline images left out of this run on purpose
        self.skipped: Set[str] = set()

    def plan(self) -> List[BuildStep]:
        """
        Returns the steps in the order they will be built.

        :raises OrderError: If a step comes before the step producing its base.
        """
        if self.resolve:
            return self.resolver.resolve_order(self.pipeline.steps)
        return self.resolver.validate_order(self.pipeline.steps)

    def run(self,
            only: Optional[Iterable[str]] = None,
            snapshot: bool = True,
            clean: bool = True) -> List[BuildResult]:
        """
        Prepares the snapshot and builds all steps in order.

        :param only: Build just these images; other pipeline images must already exist.
        :param snapshot: Prepare the snapshot before building.
        :param clean: Run the snapshot source's clean command first.
        :return: One result per built step.
        :raises VBuildError: The first failure, after moving to ABORTED.
        """
        self.state = PipelineState.INIT
        self.transitions = [PipelineState.INIT.value]
        self.results = []
        self.skipped = set()
        try:
            steps = self._select(self.plan(), only)
            print(f"Building images in order: {', '.join(step.image for step in steps)}", file=sys.stderr)

            if snapshot and self.pipeline.snapshot is not None:
                self.snapshot_manager.prepare(self.pipeline.snapshot, clean=clean)
                self._transition(PipelineState.SNAPSHOT_READY)
            else:
                self._transition(PipelineState.SNAPSHOT_READY, "SNAPSHOT_SKIPPED")

            built: Set[str] = set()
            for index, step in enumerate(steps, start=1):
                self._check_base(step, built)
                self.results.append(self.builder.build_step(step))
                built.add(step.image)
                self._transition(PipelineState.BUILDING, f"STEP_{index}_DONE")

            self._transition(PipelineState.SUCCEEDED)
            return self.results
        except Exception:
            self._transition(PipelineState.ABORTED)
            print(f"Pipeline aborted after building {len(self.results)} images", file=sys.stderr)
            raise

    def _select(self, steps: List[BuildStep], only: Optional[Iterable[str]]) -> List[BuildStep]:
        if only is None:
            return steps
        wanted = set(only)
        self.skipped = set(self.pipeline.images) - wanted
        unknown = wanted - set(self.pipeline.images)
        if unknown:
            raise OrderError(f"Unknown pipeline images: {', '.join(sorted(unknown))}")
        return [step for step in steps if step.image in wanted]

    def _check_base(self, step: BuildStep, built: Set[str]):
        """
        Refuses to build on a pipeline image that this run has not produced yet.

        Images selected out of the run with ``only`` are accepted if they already exist.
        """
        base = self.builder.resolve_base(step)
        if base is None or base in built or self.pipeline.step(base) is None:
            return
        if base in self.skipped and self.builder.registry.has(base):
            return
        raise OrderError(f"Step {step.image} needs {self.builder.registry.tag(base)}, which has not been built yet")

    def _transition(self, state: PipelineState, label: Optional[str] = None):
        self.state = state
        self.transitions.append(label or state.value)

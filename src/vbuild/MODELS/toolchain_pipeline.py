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
The built-in verification toolchain pipeline.

Each image is built in its own subdirectory of ``docker/`` so that one step's
context changes never invalidate another step's layer cache. The order below
mirrors the ``FROM`` chain of the Dockerfiles and is maintained by hand.
"""
from .build_step import BuildStep, SnapshotSpec, PipelineDefinition


def _step(image: str, directory: str, base: str) -> BuildStep:
    return BuildStep(image=image, dockerfile="Dockerfile", context=f"docker/{directory}", base=base)


TOOLCHAIN_STEPS = [
    _step("rvt_base", "base", "ubuntu"),
    _step("rvt_rustc", "rustc", "rvt_base"),
    _step("rvt_minisat", "minisat", "rvt_rustc"),
    _step("rvt_stp", "stp", "rvt_minisat"),
    _step("rvt_klee", "klee", "rvt_stp"),
    _step("rvt_z3", "z3", "rvt_klee"),
    _step("rvt_yices", "yices", "rvt_z3"),
    _step("rvt_seahorn", "seahorn", "rvt_yices"),
    _step("rvt", "rvt", "rvt_seahorn"),
]

# The final image compiles the patched LLVM helper, which has to be inside its context.
TOOLCHAIN_SNAPSHOT = SnapshotSpec(
    source="rvt-patch-llvm",
    destination="docker/rvt/rvt-patch-llvm",
    clean_command=["cargo", "clean"],
)


def default_pipeline() -> PipelineDefinition:
    """
    Returns a fresh copy of the toolchain pipeline.
    """
    return PipelineDefinition(steps=list(TOOLCHAIN_STEPS), snapshot=TOOLCHAIN_SNAPSHOT)

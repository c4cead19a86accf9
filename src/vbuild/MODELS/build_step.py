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
Models for build steps, the snapshot of vendored sources and whole pipelines.
"""
from typing import List, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BuildStep(BaseModel):
    """
    One named unit of the pipeline producing one tagged image.
    """
    model_config = ConfigDict(frozen=True)

    image: str = Field(min_length=1)
    dockerfile: str = "Dockerfile"
    # Relative to the pipeline root
    context: str = "."
    # Image this step is layered on; read from the Dockerfile when unset
    base: Optional[str] = None

    @field_validator("image")
    @classmethod
    def _image_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("image name must not be blank")
        return value


class SnapshotSpec(BaseModel):
    """
    A dependency's source tree that has to be physically copied into a build context.
    """
    model_config = ConfigDict(frozen=True)

    source: str
    destination: str
    clean_command: List[str] = ["cargo", "clean"]


class PipelineDefinition(BaseModel):
    """
    The hand-ordered list of build steps plus the snapshot taken before them.
    """
    steps: List[BuildStep]
    snapshot: Optional[SnapshotSpec] = None
    build_args: Dict[str, str] = {}

    @model_validator(mode="after")
    def _unique_images(self) -> "PipelineDefinition":
        seen = set()
        for step in self.steps:
            if step.image in seen:
                raise ValueError(f"Duplicate build step for image {step.image}")
            seen.add(step.image)
        return self

    def step(self, image: str) -> Optional[BuildStep]:
        for candidate in self.steps:
            if candidate.image == image:
                return candidate
        return None

    @property
    def images(self) -> List[str]:
        return [step.image for step in self.steps]

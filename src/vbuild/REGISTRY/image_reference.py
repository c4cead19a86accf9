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
Image reference parsing for images in the local image store.
Parses references like 'rvt_base', 'ubuntu:20.04' or 'localhost:5000/rvt:dev'.
"""

from typing import Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class ImageReference:
    """
    Parsed local image reference.

    Examples:
        - rvt_base -> rvt_base:latest
        - ubuntu:20.04 -> ubuntu:20.04
        - localhost:5000/rvt -> localhost:5000/rvt:latest
        - rvt@sha256:abc123 -> rvt@sha256:abc123
    """

    name: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    DEFAULT_TAG = "latest"

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse an image reference string.

        Args:
            reference: Image reference string (e.g., 'rvt_base', 'ubuntu:20.04')

        Returns:
            Parsed ImageReference object.
        """
        if not reference or not reference.strip():
            raise ValueError("Empty image reference")
        reference = reference.strip()

        digest = None
        if "@" in reference:
            reference, digest = reference.rsplit("@", 1)

        tag = None
        last_colon = reference.rfind(":")
        # A colon followed by a path is a registry port, not a tag
        if last_colon != -1 and "/" not in reference[last_colon + 1:]:
            tag = reference[last_colon + 1:]
            reference = reference[:last_colon]

        if not reference:
            raise ValueError("Image reference has no name")

        if not tag and not digest:
            tag = cls.DEFAULT_TAG

        return cls(name=reference, tag=tag, digest=digest)

    @classmethod
    def latest(cls, name: str) -> "ImageReference":
        """Reference to the stable tag every pipeline step produces."""
        return cls(name=name, tag=cls.DEFAULT_TAG)

    def __str__(self) -> str:
        if self.digest:
            return f"{self.name}@{self.digest}"
        return f"{self.name}:{self.tag}"

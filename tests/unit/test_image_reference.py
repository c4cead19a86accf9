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
Unit tests for image references.
"""
import pytest
from vbuild.REGISTRY.image_reference import ImageReference


class TestImageReference:
    """Tests for ImageReference parsing."""

    def test_parse_simple_name(self):
        """A bare pipeline image name gets the latest tag."""
        ref = ImageReference.parse("rvt_base")
        assert ref.name == "rvt_base"
        assert ref.tag == "latest"
        assert ref.digest is None

    def test_parse_with_tag(self):
        ref = ImageReference.parse("ubuntu:20.04")
        assert ref.name == "ubuntu"
        assert ref.tag == "20.04"

    def test_parse_registry_port_is_not_a_tag(self):
        ref = ImageReference.parse("localhost:5000/rvt")
        assert ref.name == "localhost:5000/rvt"
        assert ref.tag == "latest"

    def test_parse_registry_port_with_tag(self):
        ref = ImageReference.parse("localhost:5000/rvt:dev")
        assert ref.name == "localhost:5000/rvt"
        assert ref.tag == "dev"

    def test_parse_with_digest(self):
        ref = ImageReference.parse("rvt@sha256:abc123")
        assert ref.name == "rvt"
        assert ref.digest == "sha256:abc123"
        assert ref.tag is None
        assert str(ref) == "rvt@sha256:abc123"

    def test_latest(self):
        assert str(ImageReference.latest("rvt_klee")) == "rvt_klee:latest"

    def test_str_representation(self):
        assert str(ImageReference.parse("ubuntu:20.04")) == "ubuntu:20.04"
        assert str(ImageReference.parse("rvt")) == "rvt:latest"

    @pytest.mark.parametrize("reference", ["", "   ", ":latest"])
    def test_invalid_reference_raises(self, reference):
        with pytest.raises(ValueError):
            ImageReference.parse(reference)

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
Parsers for pipeline YAML files.

A pipeline file replaces the built-in toolchain pipeline::

    snapshot:
      source: rvt-patch-llvm
      destination: docker/rvt/rvt-patch-llvm
      clean_command: [cargo, clean]
    build_args:
      Z3_VERSION: "4.8.10"
    steps:
      - image: rvt_base
        context: docker/base
        base: ubuntu
"""
import os
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from ..MODELS.build_step import PipelineDefinition
from ..UTILS.string_interpolation import EnvironmentInterpolator


class PipelineParser:
    """
    Parser for pipeline definition files.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional environment context for interpolation.

        :param context: A dictionary of environment variables for interpolation.
        """
        self.context = context if context is not None else dict(os.environ)

    def parse(self, pipeline_path: str) -> PipelineDefinition:
        """
        Parses a pipeline file from a path.

        :param pipeline_path: Path to the pipeline file.
        :return: Parsed pipeline.
        """
        try:
            with open(pipeline_path, 'r') as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(f"Cannot read pipeline file {pipeline_path}: {e}") from e
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> PipelineDefinition:
        """
        Parses a pipeline from a string.

        :param content: YAML content of the pipeline file.
        :return: Parsed pipeline.
        """
        try:
            content = EnvironmentInterpolator.interpolate(content, self.context, bare=False)
        except KeyError as e:
            raise ConfigError(f"Pipeline file references an undefined variable: {e}") from e

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Pipeline file is not valid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError("Pipeline file must be a mapping with a 'steps' list")

        try:
            return PipelineDefinition(**self._normalize(data))
        except (ValidationError, TypeError) as e:
            raise ConfigError(f"Invalid pipeline file: {e}") from e

    def _normalize(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        YAML turns unquoted versions like 4.8 into floats; build arguments are always strings.
        """
        normalized = dict(data)
        build_args = normalized.get('build_args') or {}
        if not isinstance(build_args, dict):
            raise ConfigError("'build_args' must be a mapping")
        normalized['build_args'] = {str(k): str(v) for k, v in build_args.items()}
        if not normalized.get('steps'):
            raise ConfigError("Pipeline file must declare at least one step")
        return normalized

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
Parsers for Dockerfiles, extracting instructions, the base image and declared build arguments.
"""
import json
import re
from typing import Dict, List, Optional
from ..MODELS.dockerfile_ast import Instruction
from ..UTILS.string_interpolation import EnvironmentInterpolator

_INSTRUCTION = re.compile(r'^([A-Za-z]+)(?:\s+(.*))?$')


class DockerfileParser:
    """
    Parser for Dockerfile instructions.
    """
    def parse(self, dockerfile_path: str) -> List[Instruction]:
        """
        Parses a Dockerfile from a file path.

        Args:
            dockerfile_path (str): Path to the Dockerfile.

        Returns:
            List[Instruction]: List of parsed instructions.
        """
        with open(dockerfile_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> List[Instruction]:
        """
        Parses a Dockerfile from a string content.

        Comment lines are dropped even in the middle of a continuation, which is
        how the backend treats them.

        Args:
            content (str): Content of the Dockerfile.

        Returns:
            List[Instruction]: List of parsed instructions.
        """
        instructions = []
        pending: List[str] = []
        start = 0

        for number, line in enumerate(content.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue
            if not pending:
                start = number
            if stripped.endswith('\\'):
                pending.append(stripped[:-1].strip())
                continue
            pending.append(stripped)
            self._append(" ".join(part for part in pending if part), start, instructions)
            pending = []

        if pending:
            self._append(" ".join(part for part in pending if part), start, instructions)

        return instructions

    def _append(self, text: str, line: int, instructions: List[Instruction]):
        match = _INSTRUCTION.match(text)
        if not match:
            return
        inst = match.group(1).upper()
        args_str = (match.group(2) or "").strip()

        if args_str.startswith('[') and args_str.endswith(']'):
            try:
                args = json.loads(args_str)
            except json.JSONDecodeError:
                args = [args_str]
            if not isinstance(args, list):
                args = [args_str]
            args = [str(arg) for arg in args]
        elif inst == "ARG":
            args = args_str.split()
        elif inst == "ENV" and '=' in args_str:
            args = re.findall(r'(\S+=\S+)', args_str)
        elif inst == "ENV":
            args = args_str.split(None, 1)
        else:
            args = [args_str] if args_str else []

        instructions.append(Instruction(instruction=inst, arguments=args, raw=text, line=line))

    @staticmethod
    def declared_args(instructions: List[Instruction]) -> Dict[str, Optional[str]]:
        """
        Collects the build arguments a Dockerfile declares with ARG, with their defaults.

        :param instructions: Parsed instructions.
        :return: Argument names mapped to their default value, or None when there is none.
        """
        declared: Dict[str, Optional[str]] = {}
        for inst in instructions:
            if inst.instruction != "ARG":
                continue
            for arg in inst.arguments:
                if '=' in arg:
                    name, default = arg.split('=', 1)
                    declared[name] = default.strip('"\'')
                else:
                    declared.setdefault(arg, None)
        return declared

    @classmethod
    def base_image(cls, instructions: List[Instruction], args: Optional[Dict[str, str]] = None) -> Optional[str]:
        """
        Returns the image named by the first FROM instruction.

        Build arguments declared before FROM are substituted, falling back to their
        ARG defaults. Flags such as --platform and any "AS name" alias are dropped.

        :param instructions: Parsed instructions.
        :param args: Build arguments supplied to the backend.
        :return: The base image reference, or None if there is no FROM.
        """
        context: Dict[str, str] = {}
        for inst in instructions:
            if inst.instruction == "ARG":
                for name, default in cls.declared_args([inst]).items():
                    if default is not None:
                        context[name] = default
            elif inst.instruction == "FROM":
                context.update(args or {})
                words = [word for word in inst.words() if not word.startswith("--")]
                if not words:
                    return None
                return EnvironmentInterpolator.interpolate(words[0], context, strict=False)
        return None

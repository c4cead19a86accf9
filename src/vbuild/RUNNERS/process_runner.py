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
Execution of backend commands with stdout redirected to the diagnostic stream.
"""
import io
import subprocess
import sys
from typing import Dict, List, Optional, TextIO

# Exit status a shell reports for a command it cannot find.
COMMAND_NOT_FOUND = 127


class ProcessRunner:
    """
    Runs a single command to completion.
    """
    def __init__(self, name: str, stdout: Optional[TextIO] = None):
        """
        Initializes the process runner.

        Args:
            name (str): Identifier used to prefix diagnostic lines.
            stdout (Optional[TextIO]): Where the command's stdout goes. Defaults to stderr,
                so progress stays visible without polluting captured output.
        """
        self.name = name
        self.stdout = stdout

    def run(self,
            command: List[str],
            working_dir: Optional[str] = None,
            env: Optional[Dict[str, str]] = None,
            quiet: bool = False) -> int:
        """
        Runs the command and waits for it. There is no timeout.

        Args:
            command (List[str]): Command and arguments to execute.
            working_dir (Optional[str]): Directory to run the command in.
            env (Optional[Dict[str, str]]): Environment; inherits the current one when None.
            quiet (bool): Discard all output, for probes whose exit status is the answer.

        Returns:
            int: The exit code.
        """
        stream = self.stdout if self.stdout is not None else sys.stderr

        if not quiet:
            print(f"[{self.name}] Running: {' '.join(command)}", file=stream)

        try:
            if quiet:
                process = subprocess.run(
                    command,
                    cwd=working_dir,
                    env=env,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    shell=False,
                )
                return process.returncode

            if self._has_fileno(stream):
                stream.flush()
                process = subprocess.run(command, cwd=working_dir, env=env, stdout=stream, shell=False)
                return process.returncode

            # Captured streams (e.g. under a test runner) have no descriptor to hand over
            process = subprocess.Popen(
                command,
                cwd=working_dir,
                env=env,
                stdout=subprocess.PIPE,
                text=True,
                shell=False,
            )
            for line in process.stdout:
                stream.write(line)
            process.stdout.close()
            return process.wait()
        except FileNotFoundError as e:
            print(f"[{self.name}] Failed to start: {e}", file=stream)
            return COMMAND_NOT_FOUND

    @staticmethod
    def _has_fileno(stream: TextIO) -> bool:
        try:
            stream.fileno()
        except (AttributeError, io.UnsupportedOperation, ValueError):
            return False
        return True

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
Models for the build argument set shared by every step of a run.
"""
from typing import List, Dict, Optional
from pydantic import BaseModel, ConfigDict

# Bumping a tool means changing exactly one of these.
PINNED_VERSIONS: Dict[str, str] = {
    "UBUNTU_VERSION": "20.04",
    "LLVM_VERSION": "10",
    "RUSTC_VERSION": "nightly-2020-08-03",
    "MINISAT_VERSION": "37158a35c62d448b3feccfa83006266e12e5acb7",
    "STP_VERSION": "2.3.3",
    "KLEE_VERSION": "c51ffcd377097ee80ec9b0d6f07f8ea583a5aa1d",
    "GTEST_VERSION": "1.7.0",
    "Z3_VERSION": "4.8.10",
    "YICES_VERSION": "2.6.2",
    "SEAHORN_VERSION": "dev10",
    "VERIFY_COMMON_VERSION": "master",
}

IDENTITY_ARGS = ("UID", "GID", "USERNAME")


class BuildArguments(BaseModel):
    """
    Read-only mapping from build argument name to value.
    """
    model_config = ConfigDict(frozen=True)

    values: Dict[str, str] = {}

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(name, default)

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def merged(self, overrides: Dict[str, str]) -> "BuildArguments":
        """
        Returns a new argument set with ``overrides`` applied on top.
        """
        values = dict(self.values)
        values.update(overrides)
        return BuildArguments(values=values)

    def as_cli_args(self) -> List[str]:
        """
        Renders the set as backend flags, sorted by name so runs are comparable.
        """
        flags = []
        for name in sorted(self.values):
            flags.extend(["--build-arg", f"{name}={self.values[name]}"])
        return flags

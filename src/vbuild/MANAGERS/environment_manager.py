"""
Managers for resolving the build argument set of a pipeline run.
"""
import os
from typing import Dict, List, Mapping, Optional, Tuple
from ..errors import ConfigError
from ..MODELS.build_arguments import BuildArguments, PINNED_VERSIONS
from ..PARSERS.env_parser import EnvParser

VERSIONS_FILE = "versions.env"


def resolve_user_identity(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Reads the invoking user's ids and login name so build artifacts are not root-owned.

    Missing or empty values fall back to 0 / root so unattended builds still run.

    :param environ: Environment to read; defaults to the process environment.
    :return: The UID, GID and USERNAME build arguments.
    """
    env = os.environ if environ is None else environ
    return {
        "UID": env.get("UID") or "0",
        "GID": env.get("GID") or "0",
        "USERNAME": env.get("USER") or env.get("LOGNAME") or "root",
    }


def parse_build_arg_options(options: Tuple[str, ...]) -> Dict[str, str]:
    """
    Parses NAME=VALUE pairs given on the command line.

    :raises ConfigError: If an option has no '=' or an empty name.
    """
    parsed = {}
    for option in options:
        name, sep, value = option.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ConfigError(f"Invalid build argument '{option}', expected NAME=VALUE")
        parsed[name] = value
    return parsed


class EnvironmentManager:
    """
    Merges build arguments from pinned defaults, pipeline files, env files and the command line.
    """
    def __init__(self, base_dir: str = ".", environ: Optional[Mapping[str, str]] = None):
        """
        Initializes the environment manager.

        :param base_dir: The base directory for resolving relative paths to .env files.
        :param environ: Environment used for the user identity; defaults to the process environment.
        """
        self.base_dir = base_dir
        self.environ = environ
        self.parser = EnvParser()

    def get_build_arguments(self,
                            pipeline_args: Optional[Dict[str, str]] = None,
                            env_files: Optional[List[str]] = None,
                            explicit_args: Optional[Dict[str, str]] = None) -> BuildArguments:
        """
        Builds the argument set shared by every step of a run.

        :param pipeline_args: Overrides declared by the pipeline file.
        :param env_files: Env files with version overrides; defaults to versions.env if present.
        :param explicit_args: Overrides from the command line, which win over everything.
        :return: The merged build arguments.
        """
        merged = dict(PINNED_VERSIONS)

        # 1. Pipeline file
        merged.update(pipeline_args or {})

        # 2. Env files (later files override earlier ones)
        for env_file in (env_files if env_files is not None else [VERSIONS_FILE]):
            file_path = os.path.join(self.base_dir, env_file)
            if os.path.exists(file_path):
                try:
                    merged.update(self.parser.parse(file_path))
                except OSError as e:
                    raise ConfigError(f"Cannot read {file_path}: {e}") from e

        # 3. Invoking user
        merged.update(resolve_user_identity(self.environ))

        # 4. Explicit build arguments override everything
        merged.update(explicit_args or {})

        return BuildArguments(values=merged)

"""
Shared fixtures: a fake image registry and a toolchain repository on disk.
"""
import pytest
from vbuild.MODELS.build_arguments import BuildArguments
from vbuild.MODELS.build_result import BuildResult
from vbuild.MODELS.toolchain_pipeline import TOOLCHAIN_STEPS
from vbuild.REGISTRY.image_registry import ImageRegistry


class FakeRegistry(ImageRegistry):
    """
    In-memory image store that records every build request.
    """
    def __init__(self, fail_on=None, exit_code=1, existing=()):
        self.images = set(existing)
        self.calls = []
        self.args = None
        self.contexts = []
        self.fail_on = fail_on
        self.exit_code = exit_code

    def has(self, name, tag="latest"):
        return f"{name}:{tag}" in self.images

    def build(self, step, args, context_dir):
        self.calls.append(step.image)
        self.contexts.append(context_dir)
        self.args = args
        if step.image == self.fail_on:
            return BuildResult(image=step.image, exit_code=self.exit_code)
        self.images.add(self.tag(step.image))
        return BuildResult(image=step.image)

    def remove(self, name, tag="latest"):
        reference = f"{name}:{tag}"
        if reference not in self.images:
            return False
        self.images.remove(reference)
        return True


def write_toolchain(root):
    """
    Lays out docker/<dir>/Dockerfile for every toolchain step plus the vendored source tree.
    """
    for step in TOOLCHAIN_STEPS:
        context = root / step.context
        context.mkdir(parents=True)
        if step.base == "ubuntu":
            content = "ARG UBUNTU_VERSION\nFROM ubuntu:${UBUNTU_VERSION}\n"
        else:
            content = f"FROM {step.base}:latest\nUSER root\n"
        (context / "Dockerfile").write_text(content)
    source = root / "rvt-patch-llvm"
    source.mkdir()
    (source / "Cargo.toml").write_text("[package]\nname = \"rvt-patch-llvm\"\n")
    return root


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def build_args():
    return BuildArguments(values={"UBUNTU_VERSION": "20.04", "UID": "1000", "GID": "1000", "USERNAME": "dev"})


@pytest.fixture
def toolchain_root(tmp_path):
    return write_toolchain(tmp_path)


@pytest.fixture
def make_registry():
    return FakeRegistry


@pytest.fixture
def checking_backend(tmp_path):
    """
    A stand-in backend whose build fails unless the --file and context it is given exist.

    Each successful build appends its context argument to the returned log.
    """
    log = tmp_path / "builds.log"
    script = tmp_path / "fake-docker"
    script.write_text(
        '#!/bin/sh\n'
        '[ "$1" = build ] || exit 0\n'
        'for arg in "$@"; do\n'
        '  case "$arg" in --file=*) file="${arg#--file=}" ;; esac\n'
        '  context="$arg"\n'
        'done\n'
        '[ -f "$file" ] && [ -d "$context" ] || exit 9\n'
        f'echo "$context" >> "{log}"\n'
    )
    script.chmod(0o755)
    return script, log

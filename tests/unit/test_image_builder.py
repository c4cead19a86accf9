"""
Unit tests for the image builder.
"""
import io
import os
import pytest
from vbuild.BUILDERS.image_builder import ImageBuilder
from vbuild.errors import BuildError, InvalidStepError
from vbuild.MODELS.build_step import BuildStep
from vbuild.REGISTRY.image_registry import DockerCliRegistry


class TestImageBuilder:
    """Tests for ImageBuilder."""

    def test_build(self, tmp_path, registry, build_args):
        (tmp_path / "Dockerfile").write_text("FROM ubuntu:20.04\n")
        builder = ImageBuilder(registry, build_args, base_dir=str(tmp_path))

        result = builder.build("rvt_base", "Dockerfile")

        assert result.succeeded
        assert registry.calls == ["rvt_base"]
        assert registry.has("rvt_base")
        assert registry.args is build_args
        assert registry.contexts == [str(tmp_path)]

    @pytest.mark.parametrize("image", ["", "  "])
    def test_empty_image_name_fails_before_backend(self, tmp_path, registry, build_args, image):
        (tmp_path / "Dockerfile").write_text("FROM ubuntu\n")
        builder = ImageBuilder(registry, build_args, base_dir=str(tmp_path))
        with pytest.raises(InvalidStepError):
            builder.build(image, "Dockerfile")
        assert registry.calls == []

    def test_missing_dockerfile(self, tmp_path, registry, build_args):
        builder = ImageBuilder(registry, build_args, base_dir=str(tmp_path))
        with pytest.raises(InvalidStepError):
            builder.build("rvt_base", "Dockerfile")
        assert registry.calls == []

    def test_backend_failure(self, tmp_path, build_args, make_registry):
        (tmp_path / "Dockerfile").write_text("FROM ubuntu\n")
        registry = make_registry(fail_on="rvt_base", exit_code=5)
        builder = ImageBuilder(registry, build_args, base_dir=str(tmp_path))
        with pytest.raises(BuildError) as excinfo:
            builder.build("rvt_base", "Dockerfile")
        assert excinfo.value.exit_code == 5
        assert excinfo.value.image == "rvt_base"
        assert not registry.has("rvt_base")

    def test_build_step_uses_context(self, toolchain_root, registry, build_args):
        builder = ImageBuilder(registry, build_args, base_dir=str(toolchain_root))
        builder.build_step(BuildStep(image="rvt_z3", context="docker/z3"))
        assert registry.contexts == [str(toolchain_root / "docker" / "z3")]

    def test_warns_about_unset_args(self, tmp_path, registry, build_args, capsys):
        (tmp_path / "Dockerfile").write_text(
            "FROM ubuntu\nARG UID\nARG STP_VERSION\nARG JOBS=4\nARG HTTP_PROXY\n"
        )
        ImageBuilder(registry, build_args, base_dir=str(tmp_path)).build("rvt_stp", "Dockerfile")
        err = capsys.readouterr().err
        assert "STP_VERSION is not set" in err
        assert "UID is not set" not in err
        assert "JOBS" not in err
        assert "HTTP_PROXY" not in err


class TestResolveBase:

    def test_declared_base_matches_dockerfile(self, toolchain_root, registry, build_args):
        builder = ImageBuilder(registry, build_args, base_dir=str(toolchain_root))
        assert builder.resolve_base(BuildStep(image="rvt_stp", context="docker/stp", base="rvt_minisat")) == "rvt_minisat"

    def test_base_read_from_dockerfile(self, toolchain_root, registry, build_args):
        builder = ImageBuilder(registry, build_args, base_dir=str(toolchain_root))
        assert builder.resolve_base(BuildStep(image="rvt_stp", context="docker/stp")) == "rvt_minisat"
        assert builder.resolve_base(BuildStep(image="rvt_base", context="docker/base")) == "ubuntu"

    def test_mismatch_is_rejected(self, toolchain_root, registry, build_args):
        builder = ImageBuilder(registry, build_args, base_dir=str(toolchain_root))
        with pytest.raises(InvalidStepError):
            builder.resolve_base(BuildStep(image="rvt_stp", context="docker/stp", base="rvt_rustc"))

    def test_no_dockerfile_uses_declaration(self, tmp_path, registry, build_args):
        builder = ImageBuilder(registry, build_args, base_dir=str(tmp_path))
        assert builder.resolve_base(BuildStep(image="x", base="y:1")) == "y"
        assert builder.resolve_base(BuildStep(image="x")) is None


class TestDockerCliBackend:

    def test_relative_base_dir(self, toolchain_root, build_args, checking_backend, monkeypatch):
        script, log = checking_backend
        monkeypatch.chdir(toolchain_root)
        registry = DockerCliRegistry(str(script), stdout=io.StringIO())
        builder = ImageBuilder(registry, build_args, base_dir=".")

        result = builder.build_step(BuildStep(image="rvt_base", context="docker/base"))

        assert result.succeeded
        (context,) = log.read_text().splitlines()
        assert os.path.isabs(context)
        assert os.path.samefile(context, toolchain_root / "docker" / "base")

    def test_mkimage_style_relative_dockerfile(self, toolchain_root, build_args, checking_backend, monkeypatch):
        script, log = checking_backend
        monkeypatch.chdir(toolchain_root)
        builder = ImageBuilder(DockerCliRegistry(str(script), stdout=io.StringIO()), build_args)

        assert builder.build("rvt_z3", "docker/z3/Dockerfile").succeeded
        (context,) = log.read_text().splitlines()
        assert os.path.samefile(context, toolchain_root / "docker" / "z3")

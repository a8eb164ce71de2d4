"""
Tests for payload creation, reuse and package-only output.
"""

import importlib
import io
import zipfile
from unittest.mock import patch

import pytest

from lambda_deployer.core.context import DeployOptions
from lambda_deployer.core.exceptions import ArchiveNotFoundError, ConfigurationError
# The package re-exports an ``archive`` function that shadows the submodule attribute.
archive = importlib.import_module("lambda_deployer.packaging.archive")


def _entries(payload: bytes) -> set:
    with zipfile.ZipFile(io.BytesIO(payload)) as zf:
        return set(zf.namelist())


@pytest.fixture
def no_native_zip():
    with patch("lambda_deployer.packaging.archive.native_zip_available", return_value=False):
        yield


@pytest.fixture
def no_install():
    with patch("lambda_deployer.packaging.builder.install_dependencies") as mock_install:
        yield mock_install


class TestZipDirectory:

    def test_entries_are_relative_posix_paths(self, tmp_path):
        (tmp_path / "a.py").write_text("a")
        (tmp_path / "pkg").mkdir()
        (tmp_path / "pkg" / "b.py").write_text("b")

        assert _entries(archive.zip_directory(tmp_path)) == {"a.py", "pkg/b.py"}

    def test_entries_are_deflated(self, tmp_path):
        (tmp_path / "a.py").write_text("x" * 1000)
        with zipfile.ZipFile(io.BytesIO(archive.zip_directory(tmp_path))) as zf:
            assert zf.getinfo("a.py").compress_type == zipfile.ZIP_DEFLATED


class TestReadArchive:

    def test_reads_bytes(self, tmp_path):
        path = tmp_path / "fn.zip"
        path.write_bytes(b"PK\x03\x04")
        assert archive.read_archive(str(path)) == b"PK\x03\x04"

    def test_missing_path_raises(self, tmp_path):
        with pytest.raises(ArchiveNotFoundError) as exc:
            archive.read_archive(str(tmp_path / "missing.zip"))
        assert "No such Zipfile" in str(exc.value)

    def test_empty_path_raises(self):
        with pytest.raises(ArchiveNotFoundError):
            archive.read_archive(None)


class TestArchive:

    def test_existing_zipfile_is_reused_without_building(self, project_dir, tmp_path):
        existing = tmp_path / "prebuilt.zip"
        existing.write_bytes(b"exact bytes")
        options = DeployOptions(function_name="fn", deploy_zipfile=str(existing))

        with patch("lambda_deployer.packaging.archive.build_and_archive") as mock_build:
            payload = archive.archive(options, project_dir)

        assert payload == b"exact bytes"
        mock_build.assert_not_called()

    def test_missing_zipfile_falls_through_to_build(self, project_dir, tmp_path, no_native_zip, no_install):
        options = DeployOptions(function_name="fn", deploy_zipfile=str(tmp_path / "missing.zip"))

        payload = archive.archive(options, project_dir)

        entries = _entries(payload)
        assert "lambda_function.py" in entries
        assert "lib/helpers.py" in entries
        assert "deploy.env" not in entries
        no_install.assert_called_once()

    def test_build_runs_post_install_before_zip(self, project_dir, no_native_zip, no_install):
        with patch("lambda_deployer.packaging.builder.run_post_install_script") as mock_hook:
            archive.archive(DeployOptions(function_name="fn", environment="dev"), project_dir)

        code_dir = project_dir.resolve() / ".lambda"
        mock_hook.assert_called_once_with(code_dir, "dev")

    def test_skip_install_zips_staging_as_is(self, project_dir, no_native_zip, no_install):
        code_dir = project_dir / ".lambda"
        code_dir.mkdir()
        (code_dir / "cached.py").write_text("")

        payload = archive.archive(DeployOptions(function_name="fn", skip_install=True), project_dir)

        assert _entries(payload) == {"cached.py"}
        no_install.assert_not_called()

    def test_prebuilt_directory_skips_install(self, project_dir, no_native_zip, no_install):
        dist = project_dir / "dist"
        dist.mkdir()
        (dist / "handler.py").write_text("")
        (dist / ".venv").mkdir()
        (dist / ".venv" / "dep.py").write_text("")

        payload = archive.archive(DeployOptions(function_name="fn", prebuilt_directory="dist"), project_dir)

        assert _entries(payload) == {"handler.py", ".venv/dep.py"}
        no_install.assert_not_called()

    def test_native_zip_is_preferred(self, project_dir, no_install):
        with patch("lambda_deployer.packaging.archive.native_zip_available", return_value=True), \
             patch("lambda_deployer.packaging.archive.native_zip", return_value=b"native") as mock_native:
            payload = archive.archive(DeployOptions(function_name="fn"), project_dir)

        assert payload == b"native"
        mock_native.assert_called_once()


class TestPackage:

    def test_requires_package_directory(self, project_dir):
        with pytest.raises(ConfigurationError):
            archive.package(DeployOptions(function_name="fn"), project_dir)

    def test_rejects_file_path(self, project_dir, tmp_path):
        target = tmp_path / "not-a-dir"
        target.write_text("")
        with pytest.raises(NotADirectoryError):
            archive.package(DeployOptions(function_name="fn", package_directory=str(target)), project_dir)

    def test_writes_named_zip(self, project_dir, tmp_path, no_native_zip, no_install):
        out_dir = tmp_path / "out" / "nested"
        options = DeployOptions(function_name="fn", environment="prod", package_directory=str(out_dir))

        zip_path = archive.package(options, project_dir)

        assert zip_path == out_dir / "fn-prod.zip"
        assert "lambda_function.py" in _entries(zip_path.read_bytes())

    def test_name_without_environment(self, project_dir, tmp_path, no_native_zip, no_install):
        options = DeployOptions(function_name="fn", package_directory=str(tmp_path / "out"))
        assert archive.package(options, project_dir).name == "fn.zip"

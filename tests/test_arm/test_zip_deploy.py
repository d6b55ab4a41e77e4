"""Tests for ZIP deploy path resolution."""
import zipfile

import pytest

from armgraph.arm.zip_deploy import DeployFolder, DeployZip, ZipDeployKind
from armgraph.errors import ArtifactError


@pytest.fixture
def app_folder(tmp_path):
    folder = tmp_path / "webapp"
    (folder / "static").mkdir(parents=True)
    (folder / "index.html").write_text("<h1>hello</h1>")
    (folder / "static" / "site.css").write_text("body {}")
    return folder


def test_folder_classifies_as_deploy_folder(app_folder):
    assert ZipDeployKind.parse(app_folder) == DeployFolder(app_folder)


def test_zip_classifies_as_deploy_zip(tmp_path):
    package = tmp_path / "package.zip"
    package.write_bytes(b"PK")
    assert ZipDeployKind.parse(str(package)) == DeployZip(package)


@pytest.mark.parametrize("filename", ["package.tar.gz", "package.ZIP", "package"])
def test_other_files_are_rejected(tmp_path, filename):
    path = tmp_path / filename
    path.write_bytes(b"data")

    assert ZipDeployKind.try_parse(path) is None
    with pytest.raises(ArtifactError, match="must either be a folder"):
        ZipDeployKind.parse(path)


def test_missing_path_is_rejected(tmp_path):
    with pytest.raises(ArtifactError):
        ZipDeployKind.parse(tmp_path / "missing.zip")


def test_deploy_zip_resolves_to_itself(tmp_path):
    package = tmp_path / "package.zip"
    package.write_bytes(b"PK")
    assert DeployZip(package).get_zip_path() == package


def test_folder_is_archived_next_to_itself(app_folder):
    zip_path = DeployFolder(app_folder).get_zip_path()

    assert zip_path == app_folder.parent / "webapp.zip"
    with zipfile.ZipFile(zip_path) as archive:
        names = set(archive.namelist())
    assert "index.html" in names
    assert "static/site.css" in names


def test_folder_archive_to_target_folder(app_folder, tmp_path):
    target = tmp_path / "out"
    target.mkdir()
    assert DeployFolder(app_folder).get_zip_path(target) == target / "webapp.zip"


def test_resolving_twice_replaces_stale_archive(app_folder):
    """A retried deploy must not trip over the archive left by the first run."""
    kind = DeployFolder(app_folder)
    first = kind.get_zip_path()

    (app_folder / "index.html").write_text("<h1>changed</h1>")
    second = kind.get_zip_path()

    assert first == second
    with zipfile.ZipFile(second) as archive:
        assert archive.read("index.html") == b"<h1>changed</h1>"


def test_stale_non_archive_file_is_replaced(app_folder):
    (app_folder.parent / "webapp.zip").write_text("left over from a cancelled run")

    zip_path = DeployFolder(app_folder).get_zip_path()
    assert zipfile.is_zipfile(zip_path)


def test_kind_base_cannot_be_instantiated(tmp_path):
    with pytest.raises(TypeError):
        ZipDeployKind(tmp_path)

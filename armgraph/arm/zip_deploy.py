"""Resolution of ZIP deploy paths into uploadable archives."""
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..errors import ArtifactError


@dataclass(frozen=True)
class ZipDeployKind(ABC):
    """A ZIP deploy source: either a folder to archive or an existing archive."""
    path: Path

    @property
    def value(self) -> str:
        return str(self.path)

    @staticmethod
    def try_parse(path: Union[str, Path]) -> Optional["ZipDeployKind"]:
        """Classify a filesystem path.

        Args:
            path: Folder or .zip file to deploy.

        Returns:
            Optional[ZipDeployKind]: ``DeployFolder`` for a directory, ``DeployZip``
            for a file whose extension is exactly ``.zip``, otherwise None.
        """
        path = Path(path)
        if path.is_dir():
            return DeployFolder(path)
        if path.is_file() and path.suffix == ".zip":
            return DeployZip(path)
        return None

    @staticmethod
    def parse(path: Union[str, Path]) -> "ZipDeployKind":
        """Classify a filesystem path, failing for anything unrecognised.

        Raises:
            ArtifactError: If the path is neither a folder nor an existing .zip file.
        """
        kind = ZipDeployKind.try_parse(path)
        if kind is None:
            raise ArtifactError(
                f"Path '{path}' must either be a folder to be zipped, or an existing zip."
            )
        return kind

    @abstractmethod
    def get_zip_path(self, target_folder: Optional[Union[str, Path]] = None) -> Path:
        """Return the path of an archive ready for upload."""
        pass


@dataclass(frozen=True)
class DeployFolder(ZipDeployKind):
    """A folder whose contents are archived before upload."""

    def get_zip_path(self, target_folder: Optional[Union[str, Path]] = None) -> Path:
        """Archive the folder and return the path of the new archive.

        The archive is written to ``<target_folder>/<folder name>.zip``, where the
        target defaults to the folder's parent. Any existing file at that path is
        deleted first, so repeated calls always produce a fresh archive.

        Args:
            target_folder: Directory that receives the archive.

        Returns:
            Path: Location of the generated archive.
        """
        target = Path(target_folder) if target_folder is not None else self.path.resolve().parent
        package = target / f"{self.path.resolve().name}.zip"
        package.unlink(missing_ok=True)

        try:
            archive = shutil.make_archive(
                str(package.with_suffix("")), "zip", root_dir=str(self.path)
            )
        except BaseException:
            # A half-written archive must never be mistaken for a valid one.
            package.unlink(missing_ok=True)
            raise
        return Path(archive)


@dataclass(frozen=True)
class DeployZip(ZipDeployKind):
    """An archive that is uploaded as-is."""

    def get_zip_path(self, target_folder: Optional[Union[str, Path]] = None) -> Path:
        return self.path

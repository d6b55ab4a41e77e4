"""YAML manifest parser."""
from typing import List

import yaml
from pydantic import ValidationError

from ..builders.base import Builder
from ..errors import ManifestError
from .schema import Manifest


class ManifestParser:
    """Parser for YAML infrastructure manifests."""

    @staticmethod
    def load(file_path: str) -> Manifest:
        """Load and validate a YAML manifest file.

        Args:
            file_path: Path to the YAML manifest file.

        Returns:
            Manifest: Validated manifest object.

        Raises:
            FileNotFoundError: If the manifest file doesn't exist.
            ManifestError: If the YAML is malformed or the manifest is invalid.
        """
        with open(file_path, 'r') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ManifestError(f"Failed to parse manifest {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(f"Manifest {file_path} must be a mapping at the top level")

        try:
            return Manifest.model_validate(data)
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest {file_path}:\n{e}") from e

    @staticmethod
    def load_builders(file_path: str) -> List[Builder]:
        """Load a manifest and finalize its resource configurations.

        Raises:
            ConfigurationError: If a resource violates a configuration invariant.
        """
        return ManifestParser.load(file_path).to_builders()

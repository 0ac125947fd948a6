"""Write a curriculum bundle as JSON for host applications."""

import logging
from pathlib import Path

from curriculum_eval.models.bundle import CurriculumBundle

logger = logging.getLogger("curriculum_eval.output.bundle")


class BundleWriter:
    """Serializes a curriculum bundle to a JSON file."""

    def __init__(self, output_path: Path, filename: str = "curriculum.json"):
        """Initialize the bundle writer.

        Args:
            output_path: Directory to write the bundle to.
            filename: Name of the JSON file.
        """
        self._output_path = output_path
        self._filename = filename

    @property
    def filepath(self) -> Path:
        """Full path to the JSON file."""
        return self._output_path / self._filename

    def write(self, bundle: CurriculumBundle) -> Path:
        """Write the bundle, replacing any previous file.

        Returns:
            Path to the written file.
        """
        self._output_path.mkdir(parents=True, exist_ok=True)

        # Write then rename so readers never see a partial bundle
        tmp_path = self.filepath.with_suffix(self.filepath.suffix + ".tmp")
        tmp_path.write_text(bundle_to_json(bundle), encoding="utf-8")
        tmp_path.replace(self.filepath)

        logger.info(
            f"Wrote bundle with {bundle.metadata.total_sections} sections to {self.filepath}"
        )
        return self.filepath


def bundle_to_json(bundle: CurriculumBundle) -> str:
    """Serialize a bundle to a JSON string."""
    return bundle.model_dump_json(indent=2)


def bundle_from_json(content: str) -> CurriculumBundle:
    """Load a bundle previously written by BundleWriter."""
    return CurriculumBundle.model_validate_json(content)

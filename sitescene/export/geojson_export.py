"""
GeoJSON dataset exporter.

Serializes the loaded site back to GeoJSON for download, and scenes to
JSON for an external renderer.
"""

from __future__ import annotations

import json
from pathlib import Path
from urllib.parse import quote

from ..core.models import SiteDataset
from ..visualization.scene_assembler import SceneDescription

# Characters left unescaped by JavaScript's encodeURIComponent
_URI_SAFE = "-_.!~*'()"


class GeoJSONExporter:
    """
    Export site data.

    Supports:
    - Byte-stable GeoJSON of the loaded collection
    - data: URIs for browser downloads
    - Scene description JSON
    """

    MEDIA_TYPE = "text/json"

    def __init__(self, pretty: bool = False):
        """
        Initialize exporter.

        Args:
            pretty: Whether to format JSON with indentation
        """
        self.pretty = pretty

    def _dumps(self, data) -> str:
        if self.pretty:
            return json.dumps(data, ensure_ascii=False, indent=2)
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))

    def serialize(self, dataset: SiteDataset) -> bytes:
        """
        Serialize the dataset's feature collection as UTF-8 GeoJSON.

        The same in-memory dataset always yields the same bytes.
        """
        return self._dumps(dataset.collection).encode("utf-8")

    def to_data_uri(self, dataset: SiteDataset) -> str:
        """Build a download link carrying the serialized dataset."""
        text = self.serialize(dataset).decode("utf-8")
        return f"data:{self.MEDIA_TYPE};charset=utf-8,{quote(text, safe=_URI_SAFE)}"

    def export(self, dataset: SiteDataset, output_path: Path | str) -> Path:
        """
        Write the dataset to a .geojson file.

        Returns:
            Path to exported file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.serialize(dataset))
        return output_path

    def export_scene(self, scene: SceneDescription, output_path: Path | str) -> Path:
        """Write a scene description as JSON."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self._dumps(scene.to_dict()), encoding="utf-8")
        return output_path

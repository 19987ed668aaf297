"""Public offload API for embedding colorstack in interactive front ends.

The CLI runs synchronously; GUI or server callers submit jobs here so a slow
extraction or export never blocks their event loop.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional
from colorstack.mesh.stl_export import export_mesh
from colorstack.palette.extractor import ExtractionSettings, extract_palette


class PaletteWorker:
    """Runs extraction and export off the caller's thread.

    Each submission is one request and one Future; there are no partial
    results. Callers that lose interest should drop the Future rather than
    cancel a running job.
    """

    def __init__(self, max_workers: int = 1):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="colorstack")

    def submit_palette(self, pixels, width: int, height: int, k: int,
                       settings: Optional[ExtractionSettings] = None) -> Future:
        return self._executor.submit(extract_palette, pixels, width, height, k, settings)

    def submit_export(self, band_map, img_width: int, img_height: int, physical_width: float,
                      physical_height: float, layer_height: float, base_thickness_layers: int,
                      band_thickness_layers: int, num_bands: int) -> Future:
        return self._executor.submit(
            export_mesh, band_map, img_width, img_height, physical_width, physical_height,
            layer_height, base_thickness_layers, band_thickness_layers, num_bands,
        )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> 'PaletteWorker':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

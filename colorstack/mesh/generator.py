import numpy as np
import trimesh
from dataclasses import dataclass
from colorstack.config.parser import ModelConfig
from colorstack.errors import BandMapConsistencyError, InvalidInputError


@dataclass
class HeightfieldMesh:
    vertices: np.ndarray  # (N, 3) float64, physical units
    faces: np.ndarray  # (F, 3) int64 vertex indices, outward winding
    image_width: int
    image_height: int

    @property
    def face_count(self) -> int:
        return len(self.faces)

    def to_trimesh(self) -> trimesh.Trimesh:
        return trimesh.Trimesh(vertices=self.vertices, faces=self.faces, process=False)


def expected_face_count(image_width: int, image_height: int) -> int:
    """Caps, front/back walls and left/right walls of a W x H heightfield."""
    return (4 * (image_width - 1) * (image_height - 1)
            + 4 * (image_width - 1)
            + 4 * (image_height - 1))


def band_heights(num_bands: int, layer_height: float, base_thickness_layers: int,
                 band_thickness_layers: int) -> np.ndarray:
    """Top-surface height of each band; strictly increasing for positive inputs."""
    if num_bands < 1:
        raise InvalidInputError(f"Number of bands must be at least 1, got {num_bands}")

    heights = np.empty(num_bands, dtype=np.float64)
    heights[0] = base_thickness_layers * layer_height
    for i in range(1, num_bands):
        heights[i] = heights[i - 1] + band_thickness_layers * layer_height
    return heights


class HeightfieldMeshGenerator:
    def __init__(self, model: ModelConfig, num_bands: int):
        self.model = model
        self.num_bands = num_bands
        self._validate_parameters()
        self.heights = band_heights(
            num_bands,
            model.layer_height_mm,
            model.base_thickness_layers,
            model.band_thickness_layers,
        )

    def _validate_parameters(self) -> None:
        m = self.model
        if m.layer_height_mm <= 0:
            raise InvalidInputError("Layer height must be positive")
        if m.base_thickness_layers <= 0 or m.band_thickness_layers <= 0:
            raise InvalidInputError("Base and band thickness must be positive layer counts")
        if m.width_mm is None or m.height_mm is None or m.width_mm <= 0 or m.height_mm <= 0:
            raise InvalidInputError("Physical width and height must be positive")
        if self.num_bands < 1:
            raise InvalidInputError(f"Number of bands must be at least 1, got {self.num_bands}")

    def generate_mesh(self, band_map, image_width: int, image_height: int) -> HeightfieldMesh:
        """Build the stepped solid for a band map laid out row-major, top row first."""
        if image_width < 2 or image_height < 2:
            raise InvalidInputError(
                f"Image must be at least 2x2 pixels to build a mesh, got {image_width}x{image_height}"
            )

        band_grid = self._band_grid(band_map, image_width, image_height)
        vertices = self._create_vertices(band_grid)
        faces = np.vstack([
            self._create_cap_faces(image_width, image_height),
            self._create_front_back_faces(image_width, image_height),
            self._create_left_right_faces(image_width, image_height),
        ])

        return HeightfieldMesh(vertices=vertices, faces=faces,
                               image_width=image_width, image_height=image_height)

    def _band_grid(self, band_map, image_width: int, image_height: int) -> np.ndarray:
        bands = np.asarray(band_map).reshape(-1)
        if bands.size != image_width * image_height:
            raise BandMapConsistencyError(
                f"Band map has {bands.size} entries, expected {image_width * image_height}"
            )

        if not np.issubdtype(bands.dtype, np.integer):
            if not np.all(np.isfinite(bands)) or not np.all(bands == np.round(bands)):
                raise BandMapConsistencyError("Band map entries must be whole numbers")
            bands = bands.astype(np.int64)

        out_of_range = (bands < 0) | (bands >= self.num_bands)
        if np.any(out_of_range):
            bad_band = int(bands[np.argmax(out_of_range)])
            raise BandMapConsistencyError(
                f"Band map references band {bad_band} but only {self.num_bands} bands are defined"
            )

        # Image row 0 is the top of the picture and the far (back) edge of the model
        return bands.reshape(image_height, image_width)[::-1]

    def _create_vertices(self, band_grid: np.ndarray) -> np.ndarray:
        """Interleaved bottom/top vertex pairs; pixel p owns vertices 2p and 2p+1."""
        rows, cols = band_grid.shape
        dx = self.model.width_mm / (cols - 1)
        dy = self.model.height_mm / (rows - 1)

        jj, ii = np.meshgrid(np.arange(rows), np.arange(cols), indexing='ij')
        x = (ii * dx).reshape(-1)
        y = (jj * dy).reshape(-1)
        z = self.heights[band_grid].reshape(-1)

        vertices = np.empty((rows * cols, 2, 3), dtype=np.float64)
        vertices[:, 0, 0] = x
        vertices[:, 0, 1] = y
        vertices[:, 0, 2] = 0.0
        vertices[:, 1, 0] = x
        vertices[:, 1, 1] = y
        vertices[:, 1, 2] = z

        return vertices.reshape(-1, 3)

    @staticmethod
    def _bottom(pixel_index):
        return 2 * pixel_index

    @staticmethod
    def _top(pixel_index):
        return 2 * pixel_index + 1

    def _create_cap_faces(self, cols: int, rows: int) -> np.ndarray:
        """Two top and two bottom triangles per 2x2 pixel quad, bottom reversed."""
        jj, ii = np.meshgrid(np.arange(rows - 1), np.arange(cols - 1), indexing='ij')
        p00 = (jj * cols + ii).reshape(-1)
        p10 = p00 + 1
        p01 = p00 + cols
        p11 = p01 + 1

        t, b = self._top, self._bottom
        faces = np.stack([
            np.stack([t(p00), t(p10), t(p11)], axis=1),
            np.stack([t(p00), t(p11), t(p01)], axis=1),
            np.stack([b(p00), b(p11), b(p10)], axis=1),
            np.stack([b(p00), b(p01), b(p11)], axis=1),
        ], axis=1)

        return faces.reshape(-1, 3)

    def _create_front_back_faces(self, cols: int, rows: int) -> np.ndarray:
        """Walls along y=0 (front, facing -y) and y=max (back, facing +y)."""
        i = np.arange(cols - 1)
        front = i
        back = (rows - 1) * cols + i

        t, b = self._top, self._bottom
        faces = np.stack([
            np.stack([b(front), t(front + 1), t(front)], axis=1),
            np.stack([b(front), b(front + 1), t(front + 1)], axis=1),
            np.stack([b(back), t(back), t(back + 1)], axis=1),
            np.stack([b(back), t(back + 1), b(back + 1)], axis=1),
        ], axis=1)

        return faces.reshape(-1, 3)

    def _create_left_right_faces(self, cols: int, rows: int) -> np.ndarray:
        """Walls along x=0 (left, facing -x) and x=max (right, facing +x)."""
        j = np.arange(rows - 1)
        left = j * cols
        right = j * cols + (cols - 1)

        t, b = self._top, self._bottom
        faces = np.stack([
            np.stack([b(left), t(left), t(left + cols)], axis=1),
            np.stack([b(left), t(left + cols), b(left + cols)], axis=1),
            np.stack([b(right), t(right + cols), t(right)], axis=1),
            np.stack([b(right), b(right + cols), t(right + cols)], axis=1),
        ], axis=1)

        return faces.reshape(-1, 3)


def validate_mesh(mesh: HeightfieldMesh) -> dict:
    """Check the solid is printable; warns rather than repairing."""
    tm = mesh.to_trimesh()

    if not tm.is_watertight:
        print("Warning: Mesh is not watertight")
    if not tm.is_winding_consistent:
        print("Warning: Mesh face winding is inconsistent")

    bounds = tm.bounds
    return {
        'vertices': len(mesh.vertices),
        'faces': mesh.face_count,
        'watertight': bool(tm.is_watertight),
        'winding_consistent': bool(tm.is_winding_consistent),
        'volume': float(tm.volume),
        'dimensions': tuple(float(v) for v in bounds[1] - bounds[0]),
    }

import numpy as np
from pathlib import Path
from colorstack.config.parser import ModelConfig
from colorstack.mesh.generator import HeightfieldMesh, HeightfieldMeshGenerator


HEADER_SIZE = 80
TRIANGLE_DTYPE = np.dtype([
    ('normal', '<f4', (3,)),
    ('vertices', '<f4', (3, 3)),
    ('attributes', '<u2'),
])


def face_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Unit normals of (v2 - v1) x (v3 - v1); zero-length normals stay zero."""
    triangles = vertices[faces]
    normals = np.cross(triangles[:, 1] - triangles[:, 0], triangles[:, 2] - triangles[:, 0])
    lengths = np.linalg.norm(normals, axis=1)
    lengths[lengths == 0] = 1.0
    return normals / lengths[:, None]


def serialize_binary_stl(mesh: HeightfieldMesh, header: bytes = b"") -> bytes:
    """Encode the mesh as binary STL: header, uint32 count, 50 bytes per triangle."""
    records = np.zeros(mesh.face_count, dtype=TRIANGLE_DTYPE)
    records['normal'] = face_normals(mesh.vertices, mesh.faces)
    records['vertices'] = mesh.vertices[mesh.faces]

    header_bytes = header[:HEADER_SIZE].ljust(HEADER_SIZE, b'\0')
    count = np.array([mesh.face_count], dtype='<u4')

    return header_bytes + count.tobytes() + records.tobytes()


def export_mesh(band_map, img_width: int, img_height: int, physical_width: float,
                physical_height: float, layer_height: float, base_thickness_layers: int,
                band_thickness_layers: int, num_bands: int, header: bytes = b"") -> bytes:
    """Build the stepped heightfield for a band map and return it as binary STL bytes."""
    model = ModelConfig(
        width_mm=physical_width,
        height_mm=physical_height,
        layer_height_mm=layer_height,
        base_thickness_layers=base_thickness_layers,
        band_thickness_layers=band_thickness_layers,
    )
    generator = HeightfieldMeshGenerator(model, num_bands)
    mesh = generator.generate_mesh(band_map, img_width, img_height)
    return serialize_binary_stl(mesh, header)


def write_stl(data: bytes, filename: str) -> str:
    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return str(path)

"""
Rigid object models for Yttrium.

Provides triangle meshes, the resource identifier used to locate mesh files,
and the loader that resolves an identifier into an object model.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from yttrium.errors import CapabilityUnavailable, InvalidDimension, ResourceNotFound
from yttrium.logging.setup import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TriangleMesh:
    """
    Triangle mesh in object coordinates.

    Attributes:
        vertices: Vertex positions in meters, shape (V, 3).
        faces: Vertex indices per triangle, shape (F, 3).
        name: Mesh name (usually the file stem).
    """

    vertices: NDArray[np.float64]
    faces: NDArray[np.int64]
    name: str = "mesh"

    def __post_init__(self) -> None:
        """Validate array shapes and freeze the arrays."""
        vertices = np.array(self.vertices, dtype=np.float64)
        faces = np.array(self.faces, dtype=np.int64).reshape(-1, 3)
        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise InvalidDimension(f"vertices must be (V, 3), got {vertices.shape}")
        if faces.size and (faces.min() < 0 or faces.max() >= len(vertices)):
            raise InvalidDimension(f"mesh '{self.name}' has out-of-range face indices")
        vertices.setflags(write=False)
        faces.setflags(write=False)
        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "faces", faces)

    @property
    def triangles(self) -> NDArray[np.float64]:
        """Triangle corner positions, shape (F, 3, 3)."""
        return self.vertices[self.faces]

    @property
    def is_empty(self) -> bool:
        """Whether the mesh has no faces."""
        return len(self.faces) == 0

    @classmethod
    def box(
        cls, size: Sequence[float], name: str = "box"
    ) -> "TriangleMesh":
        """
        Axis-aligned box centered at the object origin.

        Args:
            size: Edge lengths (x, y, z) in meters.
            name: Mesh name.

        Returns:
            Box mesh with 12 outward-facing triangles.
        """
        hx, hy, hz = (float(s) / 2.0 for s in size)
        vertices = np.array(
            [
                [-hx, -hy, -hz],
                [hx, -hy, -hz],
                [hx, hy, -hz],
                [-hx, hy, -hz],
                [-hx, -hy, hz],
                [hx, -hy, hz],
                [hx, hy, hz],
                [-hx, hy, hz],
            ],
            dtype=np.float64,
        )
        faces = np.array(
            [
                [0, 2, 1], [0, 3, 2],  # -z
                [4, 5, 6], [4, 6, 7],  # +z
                [0, 1, 5], [0, 5, 4],  # -y
                [3, 7, 6], [3, 6, 2],  # +y
                [0, 4, 7], [0, 7, 3],  # -x
                [1, 2, 6], [1, 6, 5],  # +x
            ],
            dtype=np.int64,
        )
        return cls(vertices=vertices, faces=faces, name=name)


@dataclass(frozen=True)
class ObjectModel:
    """
    Collection of rigid objects, one mesh per tracked object.

    Attributes:
        meshes: Meshes in tracking order.
    """

    meshes: tuple[TriangleMesh, ...]

    def __post_init__(self) -> None:
        """Store meshes as an immutable tuple."""
        object.__setattr__(self, "meshes", tuple(self.meshes))

    @property
    def object_count(self) -> int:
        """Number of tracked objects."""
        return len(self.meshes)

    @property
    def is_empty(self) -> bool:
        """Whether the model has no renderable geometry."""
        return self.object_count == 0 or any(m.is_empty for m in self.meshes)

    @property
    def names(self) -> list[str]:
        """Mesh names in tracking order."""
        return [m.name for m in self.meshes]


@dataclass(frozen=True)
class ObjectResourceIdentifier:
    """
    Locates the mesh files of the tracked objects.

    Attributes:
        package_path: Root directory of the object package.
        directory: Sub-directory holding the mesh files.
        meshes: Mesh file names, one per tracked object.
    """

    package_path: Path = Path(".")
    directory: str = "objects"
    meshes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def mesh_paths(self) -> list[Path]:
        """Absolute mesh file paths in tracking order."""
        base = Path(self.package_path) / self.directory
        return [base / mesh for mesh in self.meshes]

    @property
    def object_count(self) -> int:
        """Number of objects referenced."""
        return len(self.meshes)


def load_object_model(identifier: ObjectResourceIdentifier) -> ObjectModel:
    """
    Load all meshes referenced by a resource identifier.

    Mesh files are read with Open3D (any format it supports: obj, ply, stl, ...).

    Args:
        identifier: Resource identifier.

    Returns:
        ObjectModel with one mesh per referenced file.

    Raises:
        ResourceNotFound: If a mesh file does not exist.
        CapabilityUnavailable: If Open3D is not installed.
    """
    paths = identifier.mesh_paths
    missing = [str(p) for p in paths if not p.is_file()]
    if missing:
        raise ResourceNotFound(f"Object mesh file(s) not found: {', '.join(missing)}")

    try:
        import open3d as o3d
    except ImportError as e:
        raise CapabilityUnavailable(
            "Loading mesh files requires open3d (pip install yttrium[mesh])"
        ) from e

    meshes = []
    for path in paths:
        o3d_mesh = o3d.io.read_triangle_mesh(str(path))
        mesh = TriangleMesh(
            vertices=np.asarray(o3d_mesh.vertices, dtype=np.float64),
            faces=np.asarray(o3d_mesh.triangles, dtype=np.int64),
            name=path.stem,
        )
        logger.debug(
            "mesh_loaded",
            path=str(path),
            vertices=len(mesh.vertices),
            faces=len(mesh.faces),
        )
        meshes.append(mesh)

    return ObjectModel(meshes=tuple(meshes))


def resolve_object_model(
    source: Union[ObjectModel, ObjectResourceIdentifier],
    loader: Optional[Callable[[ObjectResourceIdentifier], ObjectModel]] = None,
) -> ObjectModel:
    """
    Resolve an object model or identifier into an object model.

    Args:
        source: Already loaded model, or identifier to load.
        loader: Optional callable replacing load_object_model.

    Returns:
        Resolved ObjectModel.
    """
    if isinstance(source, ObjectModel):
        return source
    load = loader or load_object_model
    return load(source)

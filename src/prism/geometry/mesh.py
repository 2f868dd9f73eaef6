"""Triangle meshes.

A Mesh is a list of triangles sharing a vertex array. Every triangle of the
mesh is tested against the ray at once with a vectorized Moller-Trumbore
intersection. Crossings along the line are labelled entering and exiting by
parity, so a closed mesh behaves as a solid (and can take part in CSG) no
matter how its faces are wound. An open mesh, or a lone Triangle, is a sheet
of zero thickness: an odd final crossing is closed by an exit at the same t.

With ``smooth`` shading the normal is interpolated from per-vertex normals,
which are averaged from the adjacent faces when the mesh does not supply
them.

Example:
    >>> from src.prism.core.ray import make_ray, vec3
    >>> from src.prism.geometry.mesh import Triangle
    >>> tri = Triangle(vec3(-1, 0, -2), vec3(1, 0, -2), vec3(0, 1, -2))
    >>> hit = tri.closest_hit(make_ray(vec3(0, 0.25, 0), vec3(0, 0, -1)))
    >>> round(hit.t, 6), hit.normal.tolist()
    (2.0, [0.0, 0.0, 1.0])
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pywavefront
from pywavefront.exceptions import PywavefrontException

from src.prism.core.errors import SceneError
from src.prism.core.ray import Ray, Vec3, as_vec3, dot, normalize, ray_at
from src.prism.geometry.base import HitRecord, Surface

logger = logging.getLogger(__name__)

# |det| below this means the ray runs parallel to the triangle
_PARALLEL_EPSILON = 1e-12
# Crossings closer than this through faces of the same orientation are one crossing
_DUPLICATE_T = 1e-9


class Mesh(Surface):
    """A triangle mesh.

    Args:
        vertices: (V, 3) vertex positions.
        faces: (F, 3) vertex indices of each triangle.
        normals: Optional (V, 3) per-vertex normals for smooth shading.
        uvs: Optional (V, 2) per-vertex texture coordinates. Without them
            the native coordinates of a hit are its barycentric (u, v).
        smooth: Interpolate vertex normals instead of using face normals.
        material: Surface material.

    Raises:
        SceneError: On malformed arrays, out-of-range indices, or when no
            face has a non-zero area.
    """

    def __init__(
        self,
        vertices,
        faces,
        normals=None,
        uvs=None,
        smooth: bool = False,
        material=None,
        name: str | None = None,
    ):
        super().__init__(material, name)
        vertices = np.asarray(vertices, dtype=np.float64)
        faces = np.asarray(faces)
        if vertices.ndim != 2 or vertices.shape[1] != 3 or not np.all(np.isfinite(vertices)):
            raise SceneError(f"Mesh vertices must be a finite (V, 3) array, got shape {vertices.shape}")
        if faces.ndim != 2 or faces.shape[1] != 3 or not np.issubdtype(faces.dtype, np.integer):
            raise SceneError(f"Mesh faces must be an integer (F, 3) array, got shape {faces.shape}")
        if faces.size and (faces.min() < 0 or faces.max() >= len(vertices)):
            raise SceneError("Mesh face refers to a missing vertex")

        v0 = vertices[faces[:, 0]]
        e1 = vertices[faces[:, 1]] - v0
        e2 = vertices[faces[:, 2]] - v0
        cross = np.cross(e1, e2)
        area = np.linalg.norm(cross, axis=1)
        keep = area > 1e-12
        if not keep.all():
            logger.warning("Dropping %d degenerate faces from %r", int((~keep).sum()), name or "mesh")
        if not keep.any():
            raise SceneError("Mesh has no face with a non-zero area")

        self.vertices = vertices
        self.faces = faces[keep]
        self.smooth = bool(smooth)
        self._v0 = v0[keep]
        self._e1 = e1[keep]
        self._e2 = e2[keep]
        self.face_normals = cross[keep] / area[keep, None]

        if normals is not None:
            normals = np.asarray(normals, dtype=np.float64)
            if normals.shape != vertices.shape:
                raise SceneError(f"Mesh normals must have shape {vertices.shape}, got {normals.shape}")
            self.vertex_normals = _unit_rows(normals)
        elif self.smooth:
            self.vertex_normals = self._average_normals()
        else:
            self.vertex_normals = None

        if uvs is not None:
            uvs = np.asarray(uvs, dtype=np.float64)
            if uvs.shape != (len(vertices), 2):
                raise SceneError(f"Mesh uvs must have shape ({len(vertices)}, 2), got {uvs.shape}")
        self.uvs = uvs
        self._tangents = self._face_tangents()

        used = vertices[np.unique(self.faces)]
        self._lo = used.min(axis=0)
        self._hi = used.max(axis=0)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    # =========================================================================
    # Construction helpers
    # =========================================================================

    def _average_normals(self) -> np.ndarray:
        """Per-vertex mean of the unit normals of the faces touching its position.

        Vertices at the same position share the mean, so meshes that store
        separate corners per face still shade smoothly.
        """
        _, welded = np.unique(self.vertices, axis=0, return_inverse=True)
        welded = welded.reshape(-1)
        sums = np.zeros((welded.max() + 1, 3))
        for corner in range(3):
            np.add.at(sums, welded[self.faces[:, corner]], self.face_normals)
        norms = np.linalg.norm(sums, axis=1, keepdims=True)
        # Positions no face uses keep a zero normal
        means = np.divide(sums, norms, out=np.zeros_like(sums), where=norms > 1e-12)
        return means[welded]

    def _face_tangents(self) -> np.ndarray:
        """Direction of growing u on every face."""
        tangents = self._e1.copy()
        if self.uvs is not None:
            uv0 = self.uvs[self.faces[:, 0]]
            du1, dv1 = (self.uvs[self.faces[:, 1]] - uv0).T
            du2, dv2 = (self.uvs[self.faces[:, 2]] - uv0).T
            det = du1 * dv2 - du2 * dv1
            ok = np.abs(det) > 1e-12
            safe = np.where(ok, det, 1.0)
            dp_du = (dv2[:, None] * self._e1 - dv1[:, None] * self._e2) / safe[:, None]
            tangents = np.where(ok[:, None], dp_du, tangents)
        return _unit_rows(tangents)

    @classmethod
    def from_obj(cls, path: str | Path, smooth: bool = False, material=None, name: str | None = None) -> Mesh:
        """Load a Wavefront OBJ file with pywavefront.

        Every triangle keeps its own three corners, so per-corner texture
        coordinates and normals survive. Polygons are split into triangle
        fans by the parser. OBJ ``v`` runs bottom to top and is flipped to
        match image rows. Materials named in the file are ignored; the whole
        mesh gets ``material``.

        Raises:
            SceneError: If the file is missing, malformed or has no faces.
        """
        path = Path(path)
        if not path.exists():
            raise SceneError(f"Mesh file not found: {path}")
        try:
            scene = pywavefront.Wavefront(str(path), create_materials=True)
        except (PywavefrontException, ValueError, IndexError, KeyError) as exc:
            raise SceneError(f"Cannot parse mesh {path}: {exc}") from exc

        positions, normals, uvs = [], [], []
        for obj_material in scene.materials.values():
            if not obj_material.vertices:
                continue
            layout, stride = _vertex_layout(obj_material.vertex_format)
            corners = np.asarray(obj_material.vertices, dtype=np.float64).reshape(-1, stride)
            corners = corners[: len(corners) - len(corners) % 3]
            offset, _ = layout["V"]
            positions.append(corners[:, offset : offset + 3])
            if "N" in layout:
                offset, _ = layout["N"]
                normals.append(corners[:, offset : offset + 3])
            if "T" in layout:
                offset, _ = layout["T"]
                uv = corners[:, offset : offset + 2].copy()
                uv[:, 1] = 1.0 - uv[:, 1]
                uvs.append(uv)

        if not positions:
            raise SceneError(f"Mesh file {path} has no faces")
        vertices = np.concatenate(positions)
        # Corner attributes are only kept when every triangle has them
        vertex_normals = np.concatenate(normals) if len(normals) == len(positions) else None
        vertex_uvs = np.concatenate(uvs) if len(uvs) == len(positions) else None

        logger.debug("Loaded mesh %s (%d faces)", path, len(vertices) // 3)
        return cls(
            vertices,
            np.arange(len(vertices)).reshape(-1, 3),
            normals=vertex_normals,
            uvs=vertex_uvs,
            smooth=smooth or vertex_normals is not None,
            material=material,
            name=name or path.stem,
        )

    # =========================================================================
    # Intersection
    # =========================================================================

    def intersect(self, ray: Ray) -> list[HitRecord]:
        if ray.is_degenerate:
            return []

        d = ray.direction
        pvec = np.cross(d, self._e2)
        det = np.einsum("ij,ij->i", self._e1, pvec)
        candidates = np.abs(det) > _PARALLEL_EPSILON
        if not candidates.any():
            return []
        inv = np.where(candidates, 1.0 / np.where(candidates, det, 1.0), 0.0)

        tvec = ray.origin - self._v0
        u = np.einsum("ij,ij->i", tvec, pvec) * inv
        qvec = np.cross(tvec, self._e1)
        v = (qvec @ d) * inv
        t = np.einsum("ij,ij->i", self._e2, qvec) * inv
        inside = candidates & (u >= 0.0) & (v >= 0.0) & (u + v <= 1.0)

        idx = np.flatnonzero(inside)
        if idx.size == 0:
            return []
        idx = idx[np.argsort(t[idx], kind="stable")]

        # Drop the second copy of a crossing through a shared edge
        crossings = []
        for i in idx:
            front = det[i] > 0.0
            if crossings:
                j = crossings[-1]
                if t[i] - t[j] < _DUPLICATE_T and (det[j] > 0.0) == front:
                    continue
            crossings.append(i)

        hits = []
        for n, i in enumerate(crossings):
            hits.append(self._make_hit(ray, i, t[i], u[i], v[i], n % 2 == 0))
        if len(crossings) % 2:
            i = crossings[-1]
            hits.append(self._make_hit(ray, i, t[i], u[i], v[i], False))
        return hits

    def _make_hit(self, ray: Ray, face: int, t: float, b1: float, b2: float, entering: bool) -> HitRecord:
        t = float(t)
        b0 = 1.0 - b1 - b2
        # Face normal looking against the ray, flipped for exits
        geometric = self.face_normals[face]
        if dot(geometric, ray.direction) > 0.0:
            geometric = -geometric
        if not entering:
            geometric = -geometric

        normal = geometric
        if self.smooth and self.vertex_normals is not None:
            a, b, c = self.faces[face]
            interpolated = normalize(
                b0 * self.vertex_normals[a] + b1 * self.vertex_normals[b] + b2 * self.vertex_normals[c]
            )
            if interpolated.any():
                normal = interpolated if dot(interpolated, geometric) >= 0.0 else -interpolated

        if self.uvs is not None:
            a, b, c = self.faces[face]
            uv = b0 * self.uvs[a] + b1 * self.uvs[b] + b2 * self.uvs[c]
            uv = (float(uv[0]), float(uv[1]))
        else:
            uv = (float(b1), float(b2))

        return HitRecord(
            t=t,
            point=ray_at(ray, t),
            normal=normal.copy(),
            entering=entering,
            material=self.material,
            uv=uv,
            surface=self,
            tangent=self._tangents[face].copy(),
        )

    def bounds(self) -> tuple[Vec3, Vec3]:
        return self._lo.copy(), self._hi.copy()

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<{type(self).__name__}{label} faces={self.face_count}>"


class Triangle(Mesh):
    """A single triangle.

    Args:
        a, b, c: Corner positions.
        normals: Optional three per-corner normals; when given the triangle
            is smooth shaded.
        uvs: Optional three per-corner texture coordinates.
        material: Surface material.
    """

    def __init__(self, a, b, c, normals=None, uvs=None, material=None, name: str | None = None):
        corners = np.array([as_vec3(a), as_vec3(b), as_vec3(c)])
        if np.linalg.norm(np.cross(corners[1] - corners[0], corners[2] - corners[0])) <= 1e-12:
            raise SceneError("Triangle corners must not be collinear")
        super().__init__(
            corners,
            np.array([[0, 1, 2]]),
            normals=normals,
            uvs=uvs,
            smooth=normals is not None,
            material=material,
            name=name,
        )

    @property
    def normal(self) -> Vec3:
        """Unit normal of the winding a -> b -> c."""
        return self.face_normals[0].copy()


def _unit_rows(rows: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(rows, axis=1, keepdims=True)
    if np.any(norms < 1e-12):
        raise SceneError("Mesh normals must be non-zero")
    return rows / norms


def _vertex_layout(vertex_format: str) -> tuple[dict[str, tuple[int, int]], int]:
    """Offsets of the interleaved fields of a pywavefront format like ``T2F_N3F_V3F``."""
    layout = {}
    offset = 0
    for field in vertex_format.split("_"):
        size = int(field[1:-1])
        layout[field[0]] = (offset, size)
        offset += size
    if "V" not in layout:
        raise SceneError(f"Mesh vertex format {vertex_format!r} has no positions")
    return layout, offset

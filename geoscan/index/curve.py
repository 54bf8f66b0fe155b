"""Cube-face Hilbert curve: GeoPoint -> 64-bit curve position.

The sphere is projected onto the six faces of a cube.  Each face is
recursively split into four quadrants, 30 times, and the quadrants are
ordered along a Hilbert curve (two bits per level).  A curve position is
the leaf cell id::

    face (3 bits) | hilbert position (60 bits) | 1

This is the S2 cell id layout, so positions are interoperable with other
S2-based writers.  A cell at level ``k`` owns the contiguous interval
``[id - lsb + 1, id + lsb]`` with ``lsb = 1 << (60 - 2k)``; its four
children split that interval into quarters, in curve order.  The upper
bound is an even id, which is never a leaf position, so cells that are
neighbours on the curve produce touching intervals.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from geoscan.contracts.geo import GeoPoint
from geoscan.errors import OutOfRangeError

MAX_LEVEL = 30
POS_BITS = 2 * MAX_LEVEL + 1
MAX_SIZE = 1 << MAX_LEVEL
NUM_FACES = 6

SWAP_MASK = 0x01
INVERT_MASK = 0x02

# Hilbert orientation tables, indexed by orientation then by
# ``i_bit << 1 | j_bit`` (IJ_TO_POS) or by curve digit (POS_TO_IJ).
IJ_TO_POS = (
    (0, 1, 3, 2),  # canonical
    (0, 3, 1, 2),  # axes swapped
    (2, 3, 1, 0),  # bits inverted
    (2, 1, 3, 0),  # swapped & inverted
)
POS_TO_IJ = (
    (0, 1, 3, 2),
    (0, 2, 3, 1),
    (3, 2, 0, 1),
    (3, 1, 0, 2),
)
POS_TO_ORIENTATION = (SWAP_MASK, 0, 0, INVERT_MASK | SWAP_MASK)

# Slack added to cell bounding caps to absorb floating point error between
# the encoder's (i, j) discretization and the cell geometry.
CAP_PADDING_RAD = 1e-9

DEG_TO_RAD = math.pi / 180
RAD_TO_DEG = 180 / math.pi

Vector = tuple[float, float, float]


# ----------------------------------------------------------------------
# Projections
# ----------------------------------------------------------------------


def lat_lng_to_xyz(latitude: float, longitude: float) -> Vector:
    phi = latitude * DEG_TO_RAD
    theta = longitude * DEG_TO_RAD
    cosphi = math.cos(phi)
    return (math.cos(theta) * cosphi, math.sin(theta) * cosphi, math.sin(phi))


def xyz_to_lat_lng(p: Vector) -> tuple[float, float]:
    x, y, z = p
    latitude = math.atan2(z, math.sqrt(x * x + y * y)) * RAD_TO_DEG
    longitude = math.atan2(y, x) * RAD_TO_DEG
    return latitude, longitude


def xyz_to_face_uv(p: Vector) -> tuple[int, float, float]:
    x, y, z = p
    ax, ay, az = abs(x), abs(y), abs(z)
    if ax > ay:
        face = 0 if ax > az else 2
    else:
        face = 1 if ay > az else 2
    if p[face] < 0:
        face += 3

    if face == 0:
        return face, y / x, z / x
    if face == 1:
        return face, -x / y, z / y
    if face == 2:
        return face, -x / z, -y / z
    if face == 3:
        return face, z / x, y / x
    if face == 4:
        return face, z / y, -x / y
    return face, -y / z, -x / z


def face_uv_to_xyz(face: int, u: float, v: float) -> Vector:
    if face == 0:
        return (1.0, u, v)
    if face == 1:
        return (-u, 1.0, v)
    if face == 2:
        return (-u, -v, 1.0)
    if face == 3:
        return (-1.0, -v, -u)
    if face == 4:
        return (v, -1.0, -u)
    return (v, u, -1.0)


def uv_to_st(u: float) -> float:
    """Quadratic projection, keeps cell areas roughly uniform."""
    if u >= 0:
        return 0.5 * math.sqrt(1 + 3 * u)
    return 1 - 0.5 * math.sqrt(1 - 3 * u)


def st_to_uv(s: float) -> float:
    if s >= 0.5:
        return (1 / 3.0) * (4 * s * s - 1)
    return (1 / 3.0) * (1 - 4 * (1 - s) * (1 - s))


def st_to_ij(s: float) -> int:
    return max(0, min(MAX_SIZE - 1, int(math.floor(MAX_SIZE * s))))


def normalize(p: Vector) -> Vector:
    x, y, z = p
    n = math.sqrt(x * x + y * y + z * z)
    return (x / n, y / n, z / n)


def angle_between(a: Vector, b: Vector) -> float:
    """Angle in radians between two unit vectors (stable for tiny angles)."""
    cx = a[1] * b[2] - a[2] * b[1]
    cy = a[2] * b[0] - a[0] * b[2]
    cz = a[0] * b[1] - a[1] * b[0]
    dot = a[0] * b[0] + a[1] * b[1] + a[2] * b[2]
    return math.atan2(math.sqrt(cx * cx + cy * cy + cz * cz), dot)


# ----------------------------------------------------------------------
# Encoder
# ----------------------------------------------------------------------


def face_ij_to_position(face: int, i: int, j: int) -> int:
    """Leaf curve position for face-local integer coordinates."""
    orientation = face & SWAP_MASK
    pos = 0
    for k in range(MAX_LEVEL - 1, -1, -1):
        ij = (((i >> k) & 1) << 1) | ((j >> k) & 1)
        digit = IJ_TO_POS[orientation][ij]
        pos = (pos << 2) | digit
        orientation ^= POS_TO_ORIENTATION[digit]
    return (face << POS_BITS) | (pos << 1) | 1


class CurveEncoder:
    """Maps points to leaf positions on the cube-face Hilbert curve.

    Pure and deterministic: the write path and the query path must agree
    bit for bit, so the depth is fixed at ``MAX_LEVEL``.
    """

    def encode(self, point: GeoPoint) -> int:
        return self.encode_lat_lng(point.latitude, point.longitude)

    def encode_lat_lng(self, latitude: float, longitude: float) -> int:
        if not (
            math.isfinite(latitude)
            and math.isfinite(longitude)
            and -90.0 <= latitude <= 90.0
            and -180.0 <= longitude <= 180.0
        ):
            raise OutOfRangeError(latitude, longitude)

        face, u, v = xyz_to_face_uv(lat_lng_to_xyz(latitude, longitude))
        i = st_to_ij(uv_to_st(u))
        j = st_to_ij(uv_to_st(v))
        return face_ij_to_position(face, i, j)


def face_of(position: int) -> int:
    return position >> POS_BITS


def level_of(position: int) -> int:
    """Level of a cell id (30 for leaf positions)."""
    lsb = position & -position
    return MAX_LEVEL - (lsb.bit_length() - 1) // 2


# ----------------------------------------------------------------------
# Cells
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class LatLngBound:
    """Conservative lat/lng box around a cell, in degrees.

    ``lng_lo``/``lng_hi`` may extend past +/-180 when the box wraps the
    antimeridian; ``full_lng`` marks boxes touching a pole.
    """

    lat_lo: float
    lat_hi: float
    lng_lo: float
    lng_hi: float
    full_lng: bool = False


@dataclass(frozen=True)
class Cell:
    """A quadtree cell on one cube face.

    ``i``/``j`` are the leaf coordinates of the cell's low corner and
    ``pos`` the ``2 * level`` bit Hilbert position within the face.
    """

    face: int
    level: int
    i: int
    j: int
    orientation: int
    pos: int

    @property
    def size(self) -> int:
        return 1 << (MAX_LEVEL - self.level)

    @property
    def lsb(self) -> int:
        return 1 << (2 * (MAX_LEVEL - self.level))

    @property
    def id(self) -> int:
        return (
            (self.face << POS_BITS)
            | (self.pos << (POS_BITS - 2 * self.level))
            | self.lsb
        )

    @property
    def range_min(self) -> int:
        return self.id - self.lsb + 1

    @property
    def range_max(self) -> int:
        return self.id + self.lsb

    def contains_position(self, position: int) -> bool:
        return self.range_min <= position <= self.range_max

    def children(self) -> list["Cell"]:
        """The four sub-cells, in curve order."""
        if self.level >= MAX_LEVEL:
            return []
        half = self.size >> 1
        result = []
        for digit in range(4):
            ij = POS_TO_IJ[self.orientation][digit]
            result.append(
                Cell(
                    face=self.face,
                    level=self.level + 1,
                    i=self.i + (ij >> 1) * half,
                    j=self.j + (ij & 1) * half,
                    orientation=self.orientation ^ POS_TO_ORIENTATION[digit],
                    pos=(self.pos << 2) | digit,
                )
            )
        return result

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def _uv_bounds(self) -> tuple[float, float, float, float]:
        u_lo = st_to_uv(self.i / MAX_SIZE)
        u_hi = st_to_uv((self.i + self.size) / MAX_SIZE)
        v_lo = st_to_uv(self.j / MAX_SIZE)
        v_hi = st_to_uv((self.j + self.size) / MAX_SIZE)
        return u_lo, u_hi, v_lo, v_hi

    def vertices(self) -> list[Vector]:
        u_lo, u_hi, v_lo, v_hi = self._uv_bounds()
        return [
            normalize(face_uv_to_xyz(self.face, u, v))
            for u, v in ((u_lo, v_lo), (u_hi, v_lo), (u_hi, v_hi), (u_lo, v_hi))
        ]

    def center(self) -> Vector:
        s = (self.i + self.size / 2) / MAX_SIZE
        t = (self.j + self.size / 2) / MAX_SIZE
        return normalize(face_uv_to_xyz(self.face, st_to_uv(s), st_to_uv(t)))

    def bounding_cap(self) -> tuple[Vector, float]:
        """Cap (axis, angle in radians) containing the whole cell.

        Cell edges are geodesics and caps under a hemisphere are convex, so
        a cap through the four vertices contains the cell.
        """
        axis = self.center()
        angle = max(angle_between(axis, v) for v in self.vertices())
        return axis, angle + CAP_PADDING_RAD

    def lat_lng_bound(self) -> LatLngBound:
        """Lat/lng box of the bounding cap (looser than the cell, never tighter)."""
        axis, angle = self.bounding_cap()
        lat_c, lng_c = xyz_to_lat_lng(axis)
        angle_deg = angle * RAD_TO_DEG
        lat_lo = lat_c - angle_deg
        lat_hi = lat_c + angle_deg
        if lat_lo <= -90.0 or lat_hi >= 90.0:
            return LatLngBound(max(lat_lo, -90.0), min(lat_hi, 90.0), -180.0, 180.0, True)

        sin_a = math.sin(angle)
        cos_c = math.cos(lat_c * DEG_TO_RAD)
        if sin_a >= cos_c:
            return LatLngBound(lat_lo, lat_hi, -180.0, 180.0, True)
        dlng = math.asin(sin_a / cos_c) * RAD_TO_DEG
        return LatLngBound(lat_lo, lat_hi, lng_c - dlng, lng_c + dlng)


def face_cells() -> list[Cell]:
    """The six level-0 cells, in curve order."""
    return [
        Cell(face=face, level=0, i=0, j=0, orientation=face & SWAP_MASK, pos=0)
        for face in range(NUM_FACES)
    ]


def leaf_cell(position: int) -> Cell:
    """Rebuild the level-30 cell of a leaf curve position."""
    face = face_of(position)
    pos = (position >> 1) & ((1 << (2 * MAX_LEVEL)) - 1)
    orientation = face & SWAP_MASK
    i = j = 0
    for k in range(MAX_LEVEL - 1, -1, -1):
        digit = (pos >> (2 * k)) & 3
        ij = POS_TO_IJ[orientation][digit]
        i = (i << 1) | (ij >> 1)
        j = (j << 1) | (ij & 1)
        orientation ^= POS_TO_ORIENTATION[digit]
    return Cell(face=face, level=MAX_LEVEL, i=i, j=j, orientation=orientation, pos=pos)

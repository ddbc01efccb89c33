from __future__ import annotations

import math
from typing import Sequence, Tuple

from .models import Vector3, WorldTransform


_SINGULARITY_THRESHOLD = 0.4999995


def _normalize_axis(angle: float) -> float:
    """Wrap an angle in degrees into (-180, 180]."""
    angle = math.fmod(angle, 360.0)
    if angle > 180.0:
        angle -= 360.0
    elif angle <= -180.0:
        angle += 360.0
    return angle


def quaternion_to_euler_degrees(x: float, y: float, z: float, w: float) -> Tuple[float, float, float]:
    """Decompose a rotation quaternion into (roll, pitch, yaw) degrees.

    Uses the engine rotator convention (roll about X, pitch about Y, yaw about
    Z) and pins pitch to +/-90 near the gimbal-lock singularity.
    """

    norm = math.sqrt(x * x + y * y + z * z + w * w)
    if norm == 0.0:
        return (0.0, 0.0, 0.0)
    x, y, z, w = x / norm, y / norm, z / norm, w / norm

    singularity = z * x - w * y
    yaw_y = 2.0 * (w * z + x * y)
    yaw_x = 1.0 - 2.0 * (y * y + z * z)
    yaw = math.degrees(math.atan2(yaw_y, yaw_x))

    if singularity < -_SINGULARITY_THRESHOLD:
        pitch = -90.0
        roll = _normalize_axis(-yaw - 2.0 * math.degrees(math.atan2(x, w)))
    elif singularity > _SINGULARITY_THRESHOLD:
        pitch = 90.0
        roll = _normalize_axis(yaw - 2.0 * math.degrees(math.atan2(x, w)))
    else:
        pitch = math.degrees(math.asin(max(-1.0, min(1.0, 2.0 * singularity))))
        roll = math.degrees(math.atan2(-2.0 * (w * x + y * z), 1.0 - 2.0 * (x * x + y * y)))
    return (roll, pitch, yaw)


def rotation_to_euler_degrees(rotation: Sequence[float]) -> Tuple[float, float, float]:
    """Accept a quaternion (x, y, z, w) or Euler degrees (roll, pitch, yaw)."""
    if len(rotation) == 4:
        return quaternion_to_euler_degrees(*[float(v) for v in rotation])
    if len(rotation) == 3:
        roll, pitch, yaw = (float(v) for v in rotation)
        return (roll, pitch, yaw)
    raise ValueError(f"rotation must have 3 or 4 components, got {len(rotation)}")


def world_transform_from_instance(instance) -> WorldTransform:
    return WorldTransform(
        location=Vector3.of(instance.location),
        rotation_euler=Vector3.of(rotation_to_euler_degrees(instance.rotation)),
        scale=Vector3.of(instance.scale),
    )

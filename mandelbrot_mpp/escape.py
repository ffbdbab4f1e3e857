"""Escape-time iteration of the Mandelbrot map."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

DEFAULT_MAX_ITERATIONS = 256
DEFAULT_ESCAPE_RADIUS = 2.0


@dataclass(frozen=True)
class EscapeResult:
    """Per-sample results of an escape-time run."""

    iterations: np.ndarray
    smooth: np.ndarray
    inside: np.ndarray
    max_iterations: int

    @property
    def shape(self) -> tuple[int, ...]:
        return self.iterations.shape


def escape_count(c: complex, max_iterations: int = DEFAULT_MAX_ITERATIONS, escape_radius: float = DEFAULT_ESCAPE_RADIUS) -> int:
    """Number of iterations of ``z -> z*z + c`` (from ``z = 0``) until ``|z|`` exceeds the radius.

    Points that stay bounded for ``max_iterations`` steps report ``max_iterations``.
    """

    z = 0j
    for n in range(1, max_iterations + 1):
        z = z * z + c
        if abs(z) > escape_radius:
            return n
    return max_iterations


@tf.function
def _mandelbrot_step(zs: tf.Tensor, cs: tf.Tensor, ns: tf.Tensor, active: tf.Tensor, radius: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single Mandelbrot iteration for points that have not diverged."""

    zs_new = zs * zs + cs
    zs = tf.where(active, zs_new, zs)
    ns = ns + tf.cast(active, tf.int32)
    new_active = tf.logical_and(active, tf.abs(zs) <= radius)
    return zs, ns, new_active


@tf.function
def _mandelbrot_run(cs: tf.Tensor, max_iterations: tf.Tensor, radius: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate the Mandelbrot formula using a TensorFlow while loop."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zs = tf.zeros_like(cs)
    ns = tf.zeros(tf.shape(cs), tf.int32)
    active = tf.ones(tf.shape(cs), tf.bool)

    def cond(i: tf.Tensor, zs: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tf.Tensor:
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i: tf.Tensor, zs: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
        zs, ns, active = _mandelbrot_step(zs, cs, ns, active, radius)
        return i + 1, zs, ns, active

    return tf.while_loop(cond, body, (i, zs, ns, active))


class EscapeIterator:
    """Compute escape counts for a grid of complex samples on TensorFlow."""

    def __init__(
        self,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        escape_radius: float = DEFAULT_ESCAPE_RADIUS,
        *,
        device: Optional[str] = None,
    ):
        if int(max_iterations) < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}.")
        if not (math.isfinite(escape_radius) and escape_radius > 0):
            raise ValueError(f"escape_radius must be a positive number, got {escape_radius!r}.")
        self.max_iterations = int(max_iterations)
        self.escape_radius = float(escape_radius)
        self.device = device

    def run(self, samples: np.ndarray) -> EscapeResult:
        samples = np.asarray(samples, dtype=np.complex128)
        max_iterations = tf.constant(self.max_iterations, dtype=tf.int32)

        with tf.device(self.device if self.device is not None else "/CPU:0"):
            cs = tf.convert_to_tensor(samples, dtype=tf.complex128)
            radius = tf.constant(self.escape_radius, dtype=tf.float64)

            _, zs, ns, active = _mandelbrot_run(cs, max_iterations, radius)

            az = tf.abs(zs)
            eps = tf.constant(1e-12, dtype=az.dtype)
            az_safe = tf.maximum(az, tf.constant(1.0, dtype=az.dtype) + eps)
            log_az = tf.math.log(az_safe)
            log_log_az = tf.math.log(tf.maximum(log_az, eps))
            ns_float = tf.cast(ns, tf.float64)
            log2 = tf.math.log(tf.constant(2.0, dtype=az.dtype))
            smooth_escape = ns_float + tf.constant(1.0, dtype=tf.float64) - log_log_az / log2
            smooth = tf.where(active, tf.cast(max_iterations, tf.float64), smooth_escape)

        return EscapeResult(
            iterations=ns.numpy(),
            smooth=smooth.numpy(),
            inside=active.numpy(),
            max_iterations=self.max_iterations,
        )

    def count(self, c: complex) -> int:
        """Escape count of a single point, computed on the same path as :meth:`run`."""

        return int(self.run(np.array([[c]])).iterations[0, 0])

"""
Layered soil profile: immutable per-layer physical limits.

Layers are ordered top to bottom and a layer's index is its identity.
Thickness is in mm, the water limits are volumetric (mm/mm) and bulk
density is in g/cm³. Physical consistency of the limits is the validator's
business (see ``soilcascade.physics.validation``), not the constructor's, so
that an impossible soil is reported with the validator's error types.
"""
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from soilcascade.core.constants import SPECIFIC_BULK_DENSITY
from soilcascade.core.exceptions import ErrorContext, ParameterError
from soilcascade.core.types import DepthMm, LayerIndex


@dataclass(frozen=True)
class SoilLayer:
    """Physical limits of one depth interval"""
    thickness: float  # mm
    air_dry: float  # mm/mm
    ll15: float  # mm/mm, 15 bar lower limit
    dul: float  # mm/mm, drained upper limit
    sat: float  # mm/mm, saturation
    bulk_density: float  # g/cm³

    @property
    def max_porosity(self) -> float:
        """Total porosity implied by bulk density"""
        return 1.0 - self.bulk_density / SPECIFIC_BULK_DENSITY


@dataclass(frozen=True)
class SoilProfile:
    """Ordered, immutable set of soil layers"""
    layers: Tuple[SoilLayer, ...]

    def __post_init__(self):
        if len(self.layers) == 0:
            raise ParameterError("A soil profile needs at least one layer")
        for i, layer in enumerate(self.layers):
            if layer.thickness <= 0:
                raise ParameterError(
                    f"Layer thickness must be > 0 (got {layer.thickness})",
                    context=ErrorContext(layer=i, details={"value": layer.thickness})
                )

    @classmethod
    def from_arrays(
        cls,
        thickness: Sequence[float],
        air_dry: Sequence[float],
        ll15: Sequence[float],
        dul: Sequence[float],
        sat: Sequence[float],
        bulk_density: Sequence[float],
    ) -> "SoilProfile":
        """Build a profile from parallel per-layer sequences"""
        columns = [thickness, air_dry, ll15, dul, sat, bulk_density]
        n = len(thickness)
        if any(len(c) != n for c in columns):
            raise ParameterError(
                f"Per-layer sequences differ in length: {[len(c) for c in columns]}"
            )
        layers = tuple(
            SoilLayer(
                thickness=float(t), air_dry=float(ad), ll15=float(ll),
                dul=float(du), sat=float(sa), bulk_density=float(bd)
            )
            for t, ad, ll, du, sa, bd in zip(*columns)
        )
        return cls(layers)

    def __len__(self) -> int:
        return len(self.layers)

    @property
    def n_layers(self) -> int:
        return len(self.layers)

    def _column(self, name: str) -> np.ndarray:
        return np.array([getattr(layer, name) for layer in self.layers], dtype=float)

    @property
    def thickness(self) -> np.ndarray:
        return self._column("thickness")

    @property
    def air_dry(self) -> np.ndarray:
        return self._column("air_dry")

    @property
    def ll15(self) -> np.ndarray:
        return self._column("ll15")

    @property
    def dul(self) -> np.ndarray:
        return self._column("dul")

    @property
    def sat(self) -> np.ndarray:
        return self._column("sat")

    @property
    def bulk_density(self) -> np.ndarray:
        return self._column("bulk_density")

    @property
    def air_dry_mm(self) -> np.ndarray:
        return self.air_dry * self.thickness

    @property
    def ll15_mm(self) -> np.ndarray:
        return self.ll15 * self.thickness

    @property
    def dul_mm(self) -> np.ndarray:
        return self.dul * self.thickness

    @property
    def sat_mm(self) -> np.ndarray:
        return self.sat * self.thickness

    @property
    def max_porosity(self) -> np.ndarray:
        """Total porosity per layer, 1 - BD/2.65"""
        return 1.0 - self.bulk_density / SPECIFIC_BULK_DENSITY

    @property
    def depth_bottom(self) -> np.ndarray:
        """Cumulative depth (mm) of the bottom of each layer"""
        return np.cumsum(self.thickness)

    def layer_index_of_depth(self, depth: DepthMm) -> LayerIndex:
        """
        Index of the layer containing a depth.

        Returns the first layer whose cumulative thickness is >= depth, so
        a depth exactly on a boundary belongs to the layer above it and a
        depth of 0 maps to the top layer.

        Raises:
            ParameterError: if the depth lies below the profile
        """
        bottoms = self.depth_bottom
        if depth > bottoms[-1]:
            raise ParameterError(
                f"Depth {depth} mm is below the bottom of the profile ({bottoms[-1]} mm)",
                context=ErrorContext(operation="layer_index_of_depth", details={"value": depth})
            )
        return int(np.searchsorted(bottoms, depth, side="left"))

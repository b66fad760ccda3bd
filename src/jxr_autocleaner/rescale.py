"""White-point rescaling between scRGB and the gain-map encoder's linear range.

scRGB puts SDR reference white at 1.0, i.e. 80 nits (IEC 61966-2-1). The
gain-map encoder's half-float input reads 1.0 as 203 nits (BT.2408), so
every channel is multiplied by 80/203 before encoding. Negative values are
out of gamut for the encoder and clamp to zero.
"""

import numpy as np

SCRGB_WHITE_NITS = 80.0
GAINMAP_WHITE_NITS = 203.0
SCRGB_TO_GAINMAP = SCRGB_WHITE_NITS / GAINMAP_WHITE_NITS


def rescale_linear(pixels: np.ndarray, ratio: float = SCRGB_TO_GAINMAP) -> np.ndarray:
    """Scale linear channel values by ``ratio`` and clamp negatives.

    Math is done in float32; the result is half float, the layout the
    encoder expects.
    """
    scaled = np.asarray(pixels, dtype=np.float32) * np.float32(ratio)
    np.maximum(scaled, 0.0, out=scaled)
    return scaled.astype(np.float16)


def restore_linear(pixels: np.ndarray, ratio: float = SCRGB_TO_GAINMAP) -> np.ndarray:
    """Inverse of ``rescale_linear`` for non-negative input, in float32."""
    return np.asarray(pixels, dtype=np.float32) / np.float32(ratio)

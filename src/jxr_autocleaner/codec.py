"""Image decode/encode collaborators.

``ImageCodec`` is the interface the converter talks to. ``ImagecodecsCodec``
backs it with imagecodecs (JPEG XR decode, Ultra HDR gain-map encode) and
Pillow (plain JPEG encode).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import imagecodecs
import numpy as np
from loguru import logger
from PIL import Image

from .errors import CodecError, DecodeError, EncodeError

log = logger.bind(component="codec")

# Target display peak brightness for the gain map, in nits
TARGET_PEAK_NITS = 4000.0


@dataclass
class DecodedImage:
    """Decoded source pixels, shape (height, width[, channels])."""

    pixels: np.ndarray

    @property
    def is_hdr(self) -> bool:
        """Half/full float pixel formats carry HDR; integer formats are SDR."""
        return self.pixels.dtype.kind == "f"

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])


class ImageCodec(ABC):
    @abstractmethod
    def decode(self, path: Path) -> DecodedImage:
        """Read and decode ``path``. Raises DecodeError."""

    @abstractmethod
    def encode_sdr(self, image: DecodedImage, output: Path, quality: int) -> None:
        """Write a standard JPEG to ``output``. Raises EncodeError."""

    @abstractmethod
    def encode_gainmap(self, pixels: np.ndarray, quality: int) -> bytes:
        """Encode linear RGBA half floats (BT.709, 1.0 = 203 nits) into a
        gain-map JPEG with base image ``quality``. Raises CodecError."""


def to_rgba(pixels: np.ndarray) -> np.ndarray:
    """Expand gray/RGB float pixels to RGBA with an opaque alpha channel."""
    if pixels.ndim == 2:
        pixels = np.repeat(pixels[:, :, np.newaxis], 3, axis=2)
    if pixels.shape[2] == 4:
        return pixels
    alpha = np.ones(pixels.shape[:2] + (1,), dtype=pixels.dtype)
    return np.concatenate([pixels[:, :, :3], alpha], axis=2)


class ImagecodecsCodec(ImageCodec):
    def decode(self, path: Path) -> DecodedImage:
        try:
            data = path.read_bytes()
            pixels = imagecodecs.jpegxr_decode(data)
        except Exception as e:
            raise DecodeError(path, str(e)) from e
        log.debug(
            f"Decoded {path.name}: {pixels.shape[1]}x{pixels.shape[0]} {pixels.dtype}"
        )
        return DecodedImage(pixels=np.asarray(pixels))

    def encode_sdr(self, image: DecodedImage, output: Path, quality: int) -> None:
        pixels = image.pixels
        if pixels.dtype != np.uint8:
            # 16-bit fixed point sources: keep the top byte
            pixels = (pixels >> 8).astype(np.uint8)
        if pixels.ndim == 3 and pixels.shape[2] == 4:
            pixels = pixels[:, :, :3]
        if pixels.ndim == 3 and pixels.shape[2] == 1:
            pixels = pixels[:, :, 0]
        try:
            Image.fromarray(np.ascontiguousarray(pixels)).save(
                output, format="JPEG", quality=quality
            )
        except (OSError, TypeError, ValueError) as e:
            raise EncodeError(output, str(e)) from e

    def encode_gainmap(self, pixels: np.ndarray, quality: int) -> bytes:
        """Ultra HDR encode via imagecodecs (libultrahdr).

        Tuned for gaming captures: 4000 nit target display peak instead of
        the 10000 nit default for linear input, and the best-quality preset.
        imagecodecs has no knob for the gain map's own JPEG quality or the
        multi-channel gain map; libultrahdr picks those.
        """
        rgba = np.ascontiguousarray(to_rgba(pixels).astype(np.float16))
        log.debug(
            f"Gain-map encode {rgba.shape[1]}x{rgba.shape[0]} "
            f"(base q={quality}, peak {TARGET_PEAK_NITS:.0f} nits)"
        )
        try:
            encoded = imagecodecs.ultrahdr_encode(
                rgba,
                level=quality,
                gamut=imagecodecs.ULTRAHDR.CG.BT_709,
                transfer=imagecodecs.ULTRAHDR.CT.LINEAR,
                crange=imagecodecs.ULTRAHDR.CR.FULL_RANGE,
                nits=TARGET_PEAK_NITS,
                usage=imagecodecs.ULTRAHDR.USAGE.QUALITY,
            )
        except Exception as e:
            raise CodecError(str(e)) from e
        if not encoded:
            raise CodecError("encoder returned an empty stream")
        return bytes(encoded)

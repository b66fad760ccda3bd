"""Single-file conversion: decode, encode to a temp file, replace the source.

SDR sources get a plain JPEG transcode. HDR (floating point) sources are
rescaled to the gain-map encoder's white point and written as an Ultra HDR
JPEG. Either way the result lands in ``<stem>.tmp.jpg`` first and is then
moved over by ``atomic_replace``.
"""

from pathlib import Path

from loguru import logger

from .codec import ImageCodec, ImagecodecsCodec
from .config import AgentConfig
from .errors import CodecError, DecodeError, EncodeError
from .rescale import rescale_linear
from .scanner import converted_path, temp_output_path

log = logger.bind(component="converter")


def atomic_replace(temp_path: Path, source_path: Path, final_path: Path) -> bool:
    """Move a finished temp output into place and retire the source.

    The source is deleted first; the temp file already holds the complete
    result, so even if the source can't be deleted (still locked) the
    rename goes ahead and both files are kept. Returns False only when the
    rename fails, in which case the temp file is left on disk.
    """
    try:
        source_path.unlink()
    except FileNotFoundError:
        log.debug(f"Source already gone: {source_path}")
    except OSError as e:
        log.warning(
            f"Could not delete original {source_path.name} (locked?): {e} "
            f"-- keeping both files"
        )

    try:
        temp_path.replace(final_path)
    except OSError as e:
        log.error(f"Failed to rename temp file to final: {e}")
        return False
    return True


class Converter:
    """Converts one source file in place using an ImageCodec."""

    def __init__(self, config: AgentConfig, codec: ImageCodec | None = None) -> None:
        self.config = config
        self.codec = codec or ImagecodecsCodec()

    def convert(self, source_path: Path, quality: int | None = None) -> bool:
        """Convert ``source_path`` to its output format next to it.

        Returns True on success, False on failure (the error is logged and
        the source is left untouched).
        """
        quality = self.config.jpeg_quality if quality is None else quality
        temp_path = temp_output_path(
            source_path, self.config.output_extension, self.config.temp_marker
        )
        final_path = converted_path(source_path, self.config.output_extension)
        log.info(f"Converting: {source_path}")

        try:
            image = self.codec.decode(source_path)
        except DecodeError as e:
            log.error(str(e))
            return False

        try:
            if image.is_hdr:
                log.info("HDR pixel format detected, using gain-map JPEG encoding")
                pixels = rescale_linear(image.pixels)
                encoded = self.codec.encode_gainmap(pixels, quality)
                temp_path.write_bytes(encoded)
            else:
                log.info("SDR pixel format detected, performing plain JPEG transcode")
                self.codec.encode_sdr(image, temp_path, quality)
        except (EncodeError, CodecError, OSError) as e:
            log.error(f"Encoding {source_path.name} failed: {e}")
            temp_path.unlink(missing_ok=True)
            return False
        # Drop the decoded buffer before touching the source on disk
        del image

        if not atomic_replace(temp_path, source_path, final_path):
            return False
        kept_original = source_path.exists()

        suffix = " (original kept)" if kept_original else ""
        try:
            size = f"{final_path.stat().st_size / 1024.0:.1f} KB"
        except OSError:
            size = "size unknown"
        log.info(f"Conversion complete{suffix}: {final_path} ({size})")
        return True

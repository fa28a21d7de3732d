"""
SConboard — Image Intake Service
=================================

What:  Reads images the user attaches and validates them before they join the
       form record.
How:   Extension check, size check, then MIME sniffing of the header bytes.
       Files are read with aiofiles so a slow disk never blocks the event loop.
Who:   Called by FormSession.add_images().

Validation order (cheapest first):
    1. Extension   .png / .jpg / .jpeg
    2. Size        non-empty, at most settings.max_image_size
    3. MIME type   libmagic inspection of the header bytes (PNG or JPEG),
                   and the detected type must match the extension

A batch is all-or-nothing: load_images() raises on the first bad file and
returns nothing, so the record never holds half a selection.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

import aiofiles

from sconboard.config import settings
from sconboard.exceptions import FileStorageError, ValidationError
from sconboard.schemas.form import ImageFile

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
# What: Detected MIME type → the extension a file of that type must carry
# Used both to accept a type and to catch renamed files (PNG bytes in a .jpg)
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
}

# What: Extensions accepted by the fast first check
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg"}

# .jpeg and .jpg name the same format
EXTENSION_ALIASES = {".jpeg": ".jpg"}

PathLike = Union[str, Path]


def detect_mime_type(content: bytes) -> str:
    """Sniff the MIME type from the file's magic bytes."""
    import magic

    return magic.from_buffer(content, mime=True)


class ImageService:
    """
    Validates and loads attached images.

    Lifecycle of one attached file:
        1. load_image(path) → extension check (no disk access yet)
        2. stat() size check (an oversized file is never read)
        3. read_file() through aiofiles
        4. build_image() → size again on the bytes, then MIME sniffing
        5. ImageFile handed back to FormSession

    Args:
        max_size: Override for settings.max_image_size (used in tests).
    """

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = max_size or settings.max_image_size

    def validate_extension(self, filename: str) -> str:
        """
        What:    Checks that the file extension is one of .png/.jpg/.jpeg.
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if the extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="images",
                context={"filename": filename, "extension": ext},
            )
        return ext

    def validate_size(self, filename: str, size: int) -> None:
        """
        What:    Rejects empty files and files above max_size.
        How:     Called twice per file from disk: on the stat() result before
                 reading, and on the bytes actually read (the file may have
                 changed in between).
        Raises:  ValidationError with field "images".
        """
        max_mb = self.max_size / (1024 * 1024)

        if size == 0:
            raise ValidationError(
                message=f"'{filename}' is empty.",
                field="images",
                context={"filename": filename},
            )

        if size > self.max_size:
            raise ValidationError(
                message=(
                    f"'{filename}' is too large ({size / (1024 * 1024):.1f}MB). "
                    f"Images can be up to {max_mb:.0f}MB."
                ),
                field="images",
                context={"filename": filename, "max_size_mb": max_mb, "actual_size": size},
            )

    def validate_mime_type(self, content: bytes, filename: str) -> str:
        """
        What:    Uses the header bytes to determine the real file type.
        How:     The detected type must be PNG or JPEG and must agree with the
                 file's extension, so "shop.jpg" holding PNG bytes is refused.

        Returns: Detected MIME type (e.g. "image/jpeg").
        Raises:
            ValidationError if the content is not PNG or JPEG, or does not
                match the extension.
            FileStorageError if the type could not be determined at all.
        """
        try:
            mime_type = detect_mime_type(content)
        except Exception as e:
            logger.error("MIME type detection failed for %s: %s", filename, str(e))
            raise FileStorageError(
                message="Could not verify the image type. Please try again.",
                context={"filename": filename, "error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"'{filename}' is not a valid image (detected '{mime_type}'). "
                    f"Upload PNG or JPEG files."
                ),
                field="images",
                context={"filename": filename, "detected_mime": mime_type},
            )

        ext = Path(filename).suffix.lower()
        ext = EXTENSION_ALIASES.get(ext, ext)
        expected = ALLOWED_MIME_TYPES[mime_type]
        if ext != expected:
            logger.warning(
                "Extension/content mismatch for %s: detected %s", filename, mime_type
            )
            raise ValidationError(
                message=(
                    f"'{filename}' does not match its contents (detected '{mime_type}'). "
                    f"Rename it to '{expected}' or pick another file."
                ),
                field="images",
                context={"filename": filename, "detected_mime": mime_type, "expected_extension": expected},
            )
        return mime_type

    def build_image(self, filename: str, content: bytes) -> ImageFile:
        """Validate in-memory content (e.g. from a multipart upload) and wrap it."""
        self.validate_extension(filename)
        self.validate_size(filename, len(content))
        mime_type = self.validate_mime_type(content, filename)
        return ImageFile(filename=filename, content_type=mime_type, content=content)

    async def read_file(self, path: PathLike) -> bytes:
        """
        What:    Reads the whole file without blocking the event loop.
        Raises:  FileStorageError wrapping any OSError (missing file,
                 permissions, path is a directory).
        """
        path = Path(path)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error("Failed to read image %s: %s", path, str(e))
            raise FileStorageError(
                message=f"Could not read '{path.name}'.",
                context={"path": str(path), "os_error": str(e)},
            )

    async def load_image(self, path: PathLike) -> ImageFile:
        """
        Read and validate one image from disk.

        The extension is checked before touching the disk; the size is checked
        against the stat result before reading so an oversized file is never
        loaded into memory.
        """
        path = Path(path)
        self.validate_extension(path.name)

        try:
            size = path.stat().st_size
        except OSError as e:
            raise FileStorageError(
                message=f"Could not read '{path.name}'.",
                context={"path": str(path), "os_error": str(e)},
            )
        self.validate_size(path.name, size)

        content = await self.read_file(path)
        image = self.build_image(path.name, content)
        logger.info("Image loaded: %s (%s, %d bytes)", image.filename, image.content_type, image.size)
        return image

    async def load_images(self, paths: Iterable[PathLike]) -> Tuple[ImageFile, ...]:
        """Load a whole selection; raises on the first invalid file."""
        images = []
        for path in paths:
            images.append(await self.load_image(path))
        return tuple(images)


# Module singleton; limits come from settings
image_service = ImageService()

"""
SConboard — Image Preview Registry
===================================

What:  Hands out preview references for attached images and tracks which are
       still live, like URL.createObjectURL / URL.revokeObjectURL in a browser.
How:   Each create() registers the image bytes under a fresh "blob:" reference.
       release() drops it. A reference is owned by exactly one image in the
       form; FormSession releases it when that image is removed, when the form
       resets and when the session closes.

Leak check:
    live_count must return to its starting value after any sequence of
    add/remove cycles followed by close().
"""

import logging
import uuid
from typing import Dict, Iterable, Optional

from sconboard.schemas.form import ImageFile

logger = logging.getLogger(__name__)

PREVIEW_SCHEME = "blob:sconboard/"


class PreviewRegistry:
    """
    Live preview references and the images behind them.

    One registry per FormSession by default. References are opaque strings
    ("blob:sconboard/<uuid>"); a released reference stays released, and
    create() never hands out the same reference twice.
    """

    def __init__(self):
        self._live: Dict[str, ImageFile] = {}

    @property
    def live_count(self) -> int:
        return len(self._live)

    def create(self, image: ImageFile) -> str:
        """Register the image and return a fresh reference for its preview."""
        ref = f"{PREVIEW_SCHEME}{uuid.uuid4()}"
        self._live[ref] = image
        logger.debug("Preview created: %s for %s", ref, image.filename)
        return ref

    def resolve(self, ref: str) -> Optional[ImageFile]:
        """The image behind a live reference, or None once released."""
        return self._live.get(ref)

    def is_live(self, ref: str) -> bool:
        return ref in self._live

    def release(self, ref: str) -> bool:
        """Revoke one reference. Returns False if it was already released."""
        image = self._live.pop(ref, None)
        if image is None:
            return False
        logger.debug("Preview released: %s", ref)
        return True

    def release_all(self, refs: Iterable[str]) -> int:
        """
        Revoke every reference in refs.

        Returns: How many were still live. Already-released references are
                 skipped, so calling this twice with the same refs is safe.
        """
        return sum(1 for ref in list(refs) if self.release(ref))

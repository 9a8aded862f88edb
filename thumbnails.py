"""Request parameters for layout preview thumbnails."""

from dataclasses import dataclass


PREVIEW_WIDTH_PARAM = "preview_width"
SCALE_PARAM = "scale"


@dataclass(frozen=True)
class ThumbnailSize:
    width: float
    height: float


def preview_width(size: ThumbnailSize) -> str:
    return str(float(size.width))


def thumbnail_parameters(size: ThumbnailSize, scale: float) -> dict[str, str | float]:
    """Build the query parameters asking the server for previews at ``size``.

    ``scale`` is the display scale factor from configuration; the server
    multiplies the preview width by it.
    """
    return {
        PREVIEW_WIDTH_PARAM: preview_width(size),
        SCALE_PARAM: scale,
    }

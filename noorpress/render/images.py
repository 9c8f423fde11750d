"""Image placement helpers shared by the print renderers.

Responsibilities:
- Fit images into boxes preserving aspect ratio (sizes read with Pillow).
- Crop images to a box aspect so full-bleed panels carry art edge to edge.
- Apply the image-failure policy: gray placeholder plus warning, or hard failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import ImageLoadError, InvalidInputError
from ..io.images import ImageSet
from .surface import RenderSurface

IMAGE_POLICIES = frozenset({"placeholder", "fail"})
PLACEHOLDER_GRAY = 0.85
_ASPECT_TOLERANCE = 0.001


@dataclass(frozen=True, slots=True)
class Box:
    """Rectangle in inches, top-left origin."""

    x: float
    y: float
    width: float
    height: float


def require_image_policy(policy: str) -> str:
    """Validate an image-failure policy name."""

    if policy not in IMAGE_POLICIES:
        supported = ", ".join(sorted(IMAGE_POLICIES))
        raise InvalidInputError(f"Unknown image policy `{policy}`; supported: {supported}.")
    return policy


def image_size(data: bytes) -> tuple[int, int]:
    """Return pixel `(width, height)` of encoded image bytes."""

    try:
        with Image.open(BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageLoadError("Image bytes could not be decoded.") from exc


def fit_image(data: bytes, box: Box) -> Box:
    """Return the largest aspect-preserving box centered inside `box`."""

    pixel_width, pixel_height = image_size(data)
    if pixel_width <= 0 or pixel_height <= 0:
        raise ImageLoadError("Image has no pixels.")
    scale = min(box.width / pixel_width, box.height / pixel_height)
    width = pixel_width * scale
    height = pixel_height * scale
    return Box(
        x=box.x + (box.width - width) / 2,
        y=box.y + (box.height - height) / 2,
        width=width,
        height=height,
    )


def crop_to_fill(data: bytes, box: Box) -> bytes:
    """Center-crop image bytes to the aspect ratio of `box`.

    Drawing the result over `box` covers it edge to edge with no distortion.
    Bytes whose aspect already matches are returned unchanged.
    """

    try:
        with Image.open(BytesIO(data)) as image:
            pixel_width, pixel_height = image.size
            if pixel_width <= 0 or pixel_height <= 0:
                raise ImageLoadError("Image has no pixels.")
            target = box.width / box.height
            if abs(pixel_width / pixel_height - target) < _ASPECT_TOLERANCE:
                return data
            if pixel_width / pixel_height > target:
                size = (max(1, round(pixel_height * target)), pixel_height)
            else:
                size = (pixel_width, max(1, round(pixel_width / target)))
            output_format = "JPEG" if image.format == "JPEG" else "PNG"
            cropped = ImageOps.fit(image, size, centering=(0.5, 0.5))
            buffer = BytesIO()
            cropped.save(buffer, format=output_format)
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageLoadError("Image bytes could not be decoded.") from exc
    return buffer.getvalue()


def place_image(
    surface: RenderSurface,
    images: ImageSet,
    ref: str,
    box: Box,
    policy: str,
    warnings: list[str],
    label: str,
    fill: bool = False,
) -> bool:
    """Draw `ref` into `box`, or degrade per `policy`.

    By default the image is fitted inside `box`; with `fill` it is cropped to
    the box aspect and covers the whole box.

    Returns:
        `True` when the real image was drawn, `False` for a placeholder.

    Raises:
        ImageLoadError: When the image is unavailable and `policy` is `fail`.
    """

    try:
        data = images.get(ref)
        if fill:
            data = crop_to_fill(data, box)
            fitted = box
        else:
            fitted = fit_image(data, box)
    except ImageLoadError as exc:
        if policy == "fail":
            raise ImageLoadError(f"{label}: {exc.detail}", ref=ref) from exc
        surface.draw_rect(box.x, box.y, box.width, box.height, fill_gray=PLACEHOLDER_GRAY)
        warnings.append(f"{label}: image unavailable, placeholder drawn ({exc.detail})")
        return False
    surface.draw_image(data, fitted.x, fitted.y, fitted.width, fitted.height)
    return True

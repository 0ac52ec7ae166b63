"""
Image Processor Module.

Prepares a label photo for text recognition:
    - Image loading from a path or an in-memory PIL image
    - Orientation correction from EXIF data
    - Optional crop to the capture frame
    - Resize to the recognition target width
    - Contrast and sharpness enhancement
    - JPEG + base64 encoding for the cloud service

Preprocessing is best-effort: any failure is logged and the original image
is used unmodified.
"""

import base64
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from PIL import Image, ImageEnhance, ImageOps

from config import get_config
from expiry_scan.utils.exceptions import ImageLoadError, PreprocessingError
from expiry_scan.utils.helpers import validate_file_exists
from expiry_scan.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

ImageSource = Union[str, Path, Image.Image]

# EXIF tag holding the camera rotation
_EXIF_ORIENTATION = 0x0112


@dataclass(frozen=True)
class CropRegion:
    """
    Rectangle in source-image pixel coordinates.

    Attributes:
        x: Left edge
        y: Top edge
        width: Width in pixels
        height: Height in pixels

    Example:
        >>> region = CropRegion(x=100, y=400, width=800, height=200)
        >>> region.box
        (100, 400, 900, 600)
    """
    x: int
    y: int
    width: int
    height: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """PIL crop box as (left, upper, right, lower)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def clamp(self, image_size: Tuple[int, int]) -> 'CropRegion':
        """
        Clip the region to the image bounds.

        Args:
            image_size: (width, height) of the image.

        Returns:
            Clipped region; width/height are 0 when it lies outside the image.
        """
        image_width, image_height = image_size
        left = max(0, min(self.x, image_width))
        top = max(0, min(self.y, image_height))
        right = max(left, min(self.x + self.width, image_width))
        bottom = max(top, min(self.y + self.height, image_height))
        return CropRegion(x=left, y=top, width=right - left, height=bottom - top)

    @classmethod
    def from_screen_frame(
        cls,
        frame: Tuple[float, float, float, float],
        screen_size: Tuple[float, float],
        image_size: Tuple[int, int]
    ) -> 'CropRegion':
        """
        Map an on-screen capture frame onto the captured image.

        The preview is assumed to show the whole image scaled independently
        on each axis.

        Args:
            frame: (x, y, width, height) of the frame in screen points.
            screen_size: (width, height) of the preview in screen points.
            image_size: (width, height) of the captured image in pixels.

        Returns:
            CropRegion in image pixels, clamped to the image.

        Example:
            >>> CropRegion.from_screen_frame((20, 300, 350, 100), (390, 844), (1170, 2532))
            CropRegion(x=60, y=900, width=1050, height=300)
        """
        frame_x, frame_y, frame_width, frame_height = frame
        screen_width, screen_height = screen_size
        image_width, image_height = image_size

        if screen_width <= 0 or screen_height <= 0:
            raise ValueError(f"Invalid screen size: {screen_size}")

        scale_x = image_width / screen_width
        scale_y = image_height / screen_height

        region = cls(
            x=int(round(frame_x * scale_x)),
            y=int(round(frame_y * scale_y)),
            width=int(round(frame_width * scale_x)),
            height=int(round(frame_height * scale_y))
        )
        return region.clamp(image_size)


@dataclass
class PreprocessedImage:
    """
    Output of the preprocessing pipeline.

    Attributes:
        image: Image to hand to the recognizers
        original_size: (width, height) before preprocessing
        steps: Names of the steps that were applied
        fallback: True when preprocessing failed and `image` is the original
    """
    image: Image.Image
    original_size: Tuple[int, int]
    steps: List[str] = field(default_factory=list)
    fallback: bool = False

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) of the image handed to the recognizers."""
        return self.image.size


def load_image(source: ImageSource) -> Image.Image:
    """
    Open an image reference.

    Args:
        source: File path or an already-loaded PIL image.

    Returns:
        Loaded PIL image.

    Raises:
        ImageLoadError: If the path does not exist or is not a readable image.
    """
    if isinstance(source, Image.Image):
        return source

    if not validate_file_exists(source):
        raise ImageLoadError(str(source), "file not found")

    try:
        image = Image.open(source)
        image.load()
    except Exception as e:
        raise ImageLoadError(str(source), str(e))

    logger.debug(f"Loaded image {Path(source).name} ({image.width}x{image.height}, {image.mode})")
    return image


def encode_jpeg_base64(image: Image.Image, quality: int = 90) -> str:
    """
    Encode an image as a base64 JPEG data URI.

    Args:
        image: Image to encode.
        quality: JPEG quality (1-95).

    Returns:
        String of the form "data:image/jpeg;base64,...".
    """
    if image.mode != 'RGB':
        image = image.convert('RGB')

    buffer = io.BytesIO()
    image.save(buffer, format='JPEG', quality=quality)
    payload = base64.b64encode(buffer.getvalue()).decode('ascii')
    return f"data:image/jpeg;base64,{payload}"


class ImageProcessor:
    """
    Preprocesses label photos for text recognition.

    Attributes:
        target_width: Width in pixels every image is resized to
        enhance_contrast: Whether to apply contrast enhancement
        contrast_factor: Contrast enhancement factor
        sharpen: Whether to apply sharpness enhancement
        sharpness_factor: Sharpness enhancement factor

    Example:
        >>> processor = ImageProcessor()
        >>> prepared = processor.preprocess("label.jpg")
        >>> prepared.size
        (1200, 900)
    """

    def __init__(
        self,
        target_width: Optional[int] = None,
        enhance_contrast: Optional[bool] = None,
        sharpen: Optional[bool] = None
    ) -> None:
        """Initialize the image processor with configuration."""
        self.target_width = target_width or get_config("preprocessing.target_width", 1200)
        self.enhance_contrast = (
            enhance_contrast if enhance_contrast is not None
            else get_config("preprocessing.enhance_contrast", True)
        )
        self.contrast_factor = get_config("preprocessing.contrast_factor", 1.2)
        self.sharpen = (
            sharpen if sharpen is not None
            else get_config("preprocessing.sharpen", True)
        )
        self.sharpness_factor = get_config("preprocessing.sharpness_factor", 1.1)

        logger.debug(
            f"ImageProcessor initialized (target_width={self.target_width}, "
            f"contrast={self.enhance_contrast}, sharpen={self.sharpen})"
        )

    def preprocess(
        self,
        image: Image.Image,
        crop: Optional[CropRegion] = None
    ) -> PreprocessedImage:
        """
        Apply the preprocessing pipeline, falling back to the original image.

        Processing steps:
            1. Fix orientation from EXIF
            2. Convert to RGB
            3. Crop to the region (optional)
            4. Resize to the target width
            5. Enhance contrast and sharpness

        Args:
            image: Loaded PIL image.
            crop: Region in source-image pixels.

        Returns:
            PreprocessedImage; `fallback` is True when any step failed.
        """
        original_size = image.size
        steps: List[str] = []

        try:
            processed = self._process_image(image, crop, steps)
        except Exception as e:
            logger.warning(f"Preprocessing failed, using original image: {e}")
            return PreprocessedImage(
                image=image,
                original_size=original_size,
                steps=[],
                fallback=True
            )

        logger.debug(
            f"Preprocessed image: {original_size[0]}x{original_size[1]} -> "
            f"{processed.width}x{processed.height} ({', '.join(steps) or 'no steps'})"
        )
        return PreprocessedImage(image=processed, original_size=original_size, steps=steps)

    def _process_image(
        self,
        image: Image.Image,
        crop: Optional[CropRegion],
        steps: List[str]
    ) -> Image.Image:
        """Run every step; exceptions propagate to preprocess()."""
        if image.getexif().get(_EXIF_ORIENTATION, 1) != 1:
            image = ImageOps.exif_transpose(image)
            steps.append('orient')

        image = self._convert_to_rgb(image)

        if crop is not None:
            image = self._crop(image, crop)
            steps.append('crop')

        resized = self._resize_to_target(image)
        if resized is not image:
            image = resized
            steps.append('resize')

        if self.enhance_contrast:
            image = ImageEnhance.Contrast(image).enhance(self.contrast_factor)
            steps.append('contrast')

        if self.sharpen:
            image = ImageEnhance.Sharpness(image).enhance(self.sharpness_factor)
            steps.append('sharpen')

        return image

    def _convert_to_rgb(self, image: Image.Image) -> Image.Image:
        """
        Convert image to RGB mode.

        Transparent pixels are flattened onto white.
        """
        if image.mode == 'RGB':
            return image

        if image.mode == 'RGBA':
            background = Image.new('RGB', image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[3])
            return background

        return image.convert('RGB')

    def _crop(self, image: Image.Image, crop: CropRegion) -> Image.Image:
        """
        Crop to the region, clamped to the image.

        Raises:
            PreprocessingError: If the region does not overlap the image.
        """
        region = crop.clamp(image.size)
        if region.width == 0 or region.height == 0:
            raise PreprocessingError("crop", f"region {crop} lies outside {image.size}")
        return image.crop(region.box)

    def _resize_to_target(self, image: Image.Image) -> Image.Image:
        """
        Resize to the target width, keeping the aspect ratio.

        Returns:
            Resized image, or the same object when already at the target width.
        """
        width, height = image.size
        if width == self.target_width or width == 0:
            return image

        ratio = self.target_width / width
        new_height = max(1, int(round(height * ratio)))
        return image.resize((self.target_width, new_height), Image.LANCZOS)

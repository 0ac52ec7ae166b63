"""
Input Handler Module for the Expiry Date OCR Engine.

Loads label photos and prepares them for recognition.
"""

from .image_processor import (
    CropRegion,
    ImageProcessor,
    ImageSource,
    PreprocessedImage,
    encode_jpeg_base64,
    load_image,
)

__all__ = [
    'CropRegion',
    'ImageProcessor',
    'ImageSource',
    'PreprocessedImage',
    'encode_jpeg_base64',
    'load_image'
]

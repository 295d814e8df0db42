class StickerError(Exception):
    """Base class for sticker processing failures."""


class ImageDecodeError(StickerError):
    """Payload could not be decoded into a raster."""


class UnsupportedImageTypeError(ImageDecodeError):
    """Payload is not a JPEG, PNG or WebP image."""


class ImageEncodeError(StickerError):
    """Final raster could not be serialised to PNG."""

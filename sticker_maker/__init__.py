"""Photo-to-sticker raster processing: background removal, gap bridging, outlines."""

__version__ = "1.0.0"

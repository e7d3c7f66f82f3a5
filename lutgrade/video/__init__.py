"""Video probing and encoding profiles."""

from .analyzer import VideoAnalyzer, VideoStreamInfo
from .formats import EncodingProfile, PixelFormat, VideoCodec

__all__ = [
    "VideoAnalyzer",
    "VideoStreamInfo",
    "EncodingProfile",
    "PixelFormat",
    "VideoCodec",
]

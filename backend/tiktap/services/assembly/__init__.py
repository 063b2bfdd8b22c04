"""Final video assembly strategies.

- ShotstackAssembler: remote render farm, observed by polling
- FFmpegAssembler: local mux of voiceover and looped footage
"""

from tiktap.services.assembly.base import VideoAssembler
from tiktap.services.assembly.ffmpeg import FFmpegAssembler
from tiktap.services.assembly.shotstack import ShotstackAssembler

__all__ = ["FFmpegAssembler", "ShotstackAssembler", "VideoAssembler"]

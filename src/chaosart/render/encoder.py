"""
Frame output.

Pipes raw RGB frames to ffmpeg via stdin, or writes them as numbered PNGs.
No intermediate files for video: frames go straight from numpy arrays to
the encoder.
"""

import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from PIL import Image


# Quality presets: (preset, crf, pix_fmt)
QUALITY_PRESETS = {
    "high": ("slow", "18", "yuv444p"),
    "medium": ("medium", "23", "yuv420p"),
    "fast": ("ultrafast", "28", "yuv420p"),
}


def build_ffmpeg_command(
    output_path: Path,
    width: int,
    height: int,
    fps: int,
    quality: str = "high",
) -> List[str]:
    """Return the ffmpeg argument list for a silent H.264 MP4."""
    preset, crf, pix_fmt = QUALITY_PRESETS.get(quality, QUALITY_PRESETS["high"])
    return [
        "ffmpeg", "-y",
        "-loglevel", "error", "-nostats",
        # Raw video input from pipe
        "-f", "rawvideo",
        "-pix_fmt", "rgb24",
        "-s", f"{width}x{height}",
        "-r", str(fps),
        "-i", "pipe:0",
        # Video encoding
        "-c:v", "libx264",
        "-preset", preset,
        "-crf", crf,
        "-pix_fmt", pix_fmt,
        "-an",
        str(output_path),
    ]


def encode_video(
    frame_iterator: Iterator,
    output_path: Path,
    width: int = 1280,
    height: int = 720,
    fps: int = 60,
    quality: str = "high",
    total_frames: Optional[int] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> Path:
    """
    Encode frames to MP4.

    Args:
        frame_iterator: Yields (H, W, 3) uint8 numpy arrays.
        output_path: Output MP4 path.
        width: Frame width.
        height: Frame height.
        fps: Frames per second.
        quality: "high", "medium", or "fast".
        total_frames: Total frame count for progress reporting.
        progress_callback: Optional callback(current_frame, total_frames).

    Returns:
        Path to the output file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = build_ffmpeg_command(output_path, width, height, fps, quality)

    # stderr goes to a file: an undrained pipe stalls ffmpeg once it fills
    with tempfile.TemporaryFile() as err_file:
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=err_file,
            )
        except FileNotFoundError as e:
            raise RuntimeError("ffmpeg not found on PATH") from e

        frame_count = 0
        try:
            for frame in frame_iterator:
                proc.stdin.write(frame.tobytes())
                frame_count += 1

                if progress_callback and total_frames:
                    progress_callback(frame_count, total_frames)

        except BrokenPipeError:
            pass
        finally:
            if proc.stdin:
                proc.stdin.close()

        proc.wait()

        if proc.returncode != 0:
            err_file.seek(0)
            stderr = err_file.read().decode("utf-8", errors="replace")
            # Filter out common non-error ffmpeg messages
            error_lines = [
                line for line in stderr.split("\n")
                if "error" in line.lower() or "invalid" in line.lower()
            ]
            error_msg = "\n".join(error_lines[-5:]) if error_lines else stderr[-500:]
            raise RuntimeError(
                f"ffmpeg exited with code {proc.returncode}: {error_msg}"
            )

    return output_path


def write_png_frames(
    frame_iterator: Iterator,
    directory: Path,
    prefix: str = "frame",
    total_frames: Optional[int] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> List[Path]:
    """Write each frame as ``<prefix>_00000.png`` and return the paths."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    written = []
    for i, frame in enumerate(frame_iterator):
        path = directory / f"{prefix}_{i:05d}.png"
        Image.fromarray(frame).save(path)
        written.append(path)
        if progress_callback and total_frames:
            progress_callback(i + 1, total_frames)
    return written

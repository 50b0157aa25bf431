"""Audio transcoding through the ffmpeg command-line tool.

Depends on ffmpy, which builds the ffmpeg command line and runs it as a
subprocess. ffmpeg itself must be installed separately.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from ffmpy import FFmpeg

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "ffmpeg"
DEFAULT_SAMPLE_RATE = 44100
DEFAULT_BITRATE = "192k"


def ffmpeg_available(executable: str = DEFAULT_EXECUTABLE) -> bool:
    """Return True if *executable* resolves to a program on PATH."""
    return shutil.which(executable) is not None


def build_silence_pad_command(
    source: Path,
    dest: Path,
    silence_ms: int = 3000,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    bitrate: str = DEFAULT_BITRATE,
    executable: str = DEFAULT_EXECUTABLE,
) -> FFmpeg:
    """Build the command that writes *silence_ms* of stereo silence + *source* as MP3.

    Both segments are normalised to the same sample format, rate and layout
    before concatenation so any input codec works.
    """
    silence = f"anullsrc=channel_layout=stereo:sample_rate={sample_rate}"
    fmt = f"aformat=sample_fmts=fltp:sample_rates={sample_rate}:channel_layouts=stereo"
    graph = (
        f"[0:a]{fmt}[pad];"
        f"[1:a]{fmt}[main];"
        "[pad][main]concat=n=2:v=0:a=1[out]"
    )
    return FFmpeg(
        executable=executable,
        global_options="-y -nostdin -loglevel error",
        inputs={
            silence: f"-f lavfi -t {silence_ms / 1000:.3f}",
            str(source): None,
        },
        outputs={
            str(dest): (
                f"-filter_complex {graph} -map [out] "
                f"-codec:a libmp3lame -b:a {bitrate} -ar {sample_rate} -ac 2"
            ),
        },
    )


def pad_with_silence(
    source: Path,
    dest: Path,
    silence_ms: int = 3000,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    bitrate: str = DEFAULT_BITRATE,
    executable: str = DEFAULT_EXECUTABLE,
) -> None:
    """Transcode *source* to an MP3 at *dest* with leading silence.

    Raises:
        FileNotFoundError: *source* does not exist.
        ffmpy.FFExecutableNotFoundError: *executable* cannot be started.
        ffmpy.FFRuntimeError: ffmpeg exited with a non-zero status.
    """
    source = Path(source)
    if not source.is_file():
        raise FileNotFoundError(f"Audio file not found: {source}")

    ff = build_silence_pad_command(
        source, dest,
        silence_ms=silence_ms,
        sample_rate=sample_rate,
        bitrate=bitrate,
        executable=executable,
    )
    logger.debug("Running %s", ff.cmd)
    ff.run(stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)

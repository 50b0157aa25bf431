"""Tests for the ffmpeg silence-padding command."""

import shutil
from unittest.mock import patch

import pytest
from ffmpy import FFmpeg

from beat_ingest.media.audio import (
    build_silence_pad_command,
    ffmpeg_available,
    pad_with_silence,
)


class TestBuildCommand:
    def test_silence_then_source(self, tmp_path):
        ff = build_silence_pad_command(
            tmp_path / "audio.ogg", tmp_path / "song1.mp3", silence_ms=3000
        )
        cmd = ff.cmd
        assert "anullsrc=channel_layout=stereo:sample_rate=44100" in cmd
        assert "-f lavfi -t 3.000" in cmd
        # Silence is input 0, the source track input 1
        assert cmd.index("anullsrc") < cmd.index("audio.ogg")
        assert "concat=n=2:v=0:a=1" in cmd
        assert "libmp3lame" in cmd
        assert "-ar 44100 -ac 2" in cmd
        assert cmd.rstrip().endswith("song1.mp3")

    def test_custom_settings(self, tmp_path):
        ff = build_silence_pad_command(
            tmp_path / "a.wav", tmp_path / "b.mp3",
            silence_ms=1500, sample_rate=48000, bitrate="128k", executable="/opt/ffmpeg",
        )
        assert ff.cmd.startswith("/opt/ffmpeg")
        assert "-t 1.500" in ff.cmd
        assert "-b:a 128k" in ff.cmd
        assert "sample_rate=48000" in ff.cmd


class TestPadWithSilence:
    def test_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            pad_with_silence(tmp_path / "absent.mp3", tmp_path / "out.mp3")

    def test_runs_command(self, tmp_path):
        source = tmp_path / "audio.mp3"
        source.write_bytes(b"x")
        with patch.object(FFmpeg, "run") as run:
            pad_with_silence(source, tmp_path / "song1.mp3")
        run.assert_called_once()

    def test_ffmpeg_available(self):
        assert ffmpeg_available("beat-ingest-test-missing-ffmpeg") is False


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")
class TestFFmpegIntegration:
    def test_output_is_padded_stereo_mp3(self, tmp_path):
        np = pytest.importorskip("numpy")
        sf = pytest.importorskip("soundfile")

        sr = 22050
        t = np.linspace(0, 1.0, sr, endpoint=False, dtype=np.float32)
        source = tmp_path / "tone.wav"
        sf.write(str(source), 0.5 * np.sin(2 * np.pi * 440 * t), sr)

        dest = tmp_path / "song1.mp3"
        pad_with_silence(source, dest, silence_ms=3000)
        assert dest.exists()

        # Decode back to WAV to measure it
        decoded = tmp_path / "decoded.wav"
        FFmpeg(
            global_options="-y -nostdin -loglevel error",
            inputs={str(dest): None},
            outputs={str(decoded): None},
        ).run()
        info = sf.info(str(decoded))
        assert info.samplerate == 44100
        assert info.channels == 2
        assert info.duration == pytest.approx(4.0, abs=0.1)

        audio, _ = sf.read(str(decoded))
        # First 2.9s are silent, the tone follows
        assert np.abs(audio[: int(2.9 * 44100)]).max() < 1e-3
        assert np.abs(audio[int(3.2 * 44100):]).max() > 0.1

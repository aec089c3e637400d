"""
PCM to WAV container encoding.

Gemini TTS answers with headerless 16-bit little-endian PCM. Browsers will not
play that, so it gets the canonical 44-byte RIFF/WAVE header in front.
"""

from __future__ import annotations

import struct

WAV_HEADER_SIZE = 44

# "RIFF" <size> "WAVE" "fmt " <16> <fmt=1> <ch> <rate> <byte rate> <align> <bits> "data" <len>
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def pcm_to_wav(
    pcm: bytes,
    sample_rate: int = 24000,
    channels: int = 1,
    bits_per_sample: int = 16,
) -> bytes:
    """
    Wrap raw linear PCM in a WAV container.

    Args:
        pcm: Raw sample bytes, copied verbatim after the header.
        sample_rate: Samples per second.
        channels: Channel count.
        bits_per_sample: Sample width in bits.

    Returns:
        WAV file bytes of length 44 + len(pcm).
    """
    byte_rate = sample_rate * channels * bits_per_sample // 8
    block_align = channels * bits_per_sample // 8
    data_size = len(pcm)

    header = _HEADER.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,  # fmt chunk size for PCM
        1,  # audio format: PCM
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )
    return header + bytes(pcm)


def is_wav(data: bytes) -> bool:
    """Check for the RIFF/WAVE magic at the start of a buffer."""
    return len(data) >= 12 and data[0:4] == b"RIFF" and data[8:12] == b"WAVE"

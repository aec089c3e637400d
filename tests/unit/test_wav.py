"""Unit tests for PCM to WAV wrapping"""

from __future__ import annotations

import struct

from lesbot.audio.wav import WAV_HEADER_SIZE, is_wav, pcm_to_wav


def test_header_fields_for_tts_format():
    pcm = bytes(range(256)) * 4
    wav = pcm_to_wav(pcm, 24000, 1, 16)

    assert len(wav) == WAV_HEADER_SIZE + len(pcm)
    assert wav[0:4] == b"RIFF"
    assert wav[8:12] == b"WAVE"
    assert wav[12:16] == b"fmt "
    assert wav[36:40] == b"data"

    riff_size, = struct.unpack_from("<I", wav, 4)
    assert riff_size == 36 + len(pcm)

    fmt_size, audio_format, channels, rate, byte_rate, align, bits = struct.unpack_from(
        "<IHHIIHH", wav, 16
    )
    assert fmt_size == 16
    assert audio_format == 1
    assert channels == 1
    assert rate == 24000
    assert byte_rate == 48000
    assert align == 2
    assert bits == 16

    data_size, = struct.unpack_from("<I", wav, 40)
    assert data_size == len(pcm)


def test_pcm_bytes_copied_verbatim():
    pcm = b"\x01\x02\x03\x04\xff\xfe"
    assert pcm_to_wav(pcm)[WAV_HEADER_SIZE:] == pcm


def test_empty_pcm_gives_bare_header():
    wav = pcm_to_wav(b"")

    assert len(wav) == WAV_HEADER_SIZE
    assert struct.unpack_from("<I", wav, 4)[0] == 36
    assert struct.unpack_from("<I", wav, 40)[0] == 0


def test_stereo_block_align_and_byte_rate():
    wav = pcm_to_wav(b"\x00" * 8, sample_rate=44100, channels=2, bits_per_sample=16)

    channels, rate, byte_rate, align = struct.unpack_from("<HIIH", wav, 22)
    assert channels == 2
    assert rate == 44100
    assert byte_rate == 44100 * 2 * 2
    assert align == 4


def test_is_wav():
    assert is_wav(pcm_to_wav(b"\x00\x00"))
    assert not is_wav(b"\x00\x00")
    assert not is_wav(b"RIFF\x00\x00\x00\x00AVI ")

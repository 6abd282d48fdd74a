"""
Unit tests for the gzip compressors.
"""
import gzip
import shutil
import zlib

import pytest

from gzipware.compressors import ProcessCompressor, ZlibCompressor, create_compressor
from gzipware.config import GzipSettings
from gzipware.exceptions import CompressionStreamError

PAYLOAD = b"The quick brown fox jumps over the lazy dog. " * 200


async def compress_chunks(compressor, chunks):
    out = []
    async with compressor:
        for chunk in chunks:
            out.append(await compressor.compress(chunk))
        out.append(await compressor.flush())
    return b"".join(out)


@pytest.mark.asyncio
async def test_zlib_compressor_produces_gzip():
    chunks = [PAYLOAD[i:i + 1000] for i in range(0, len(PAYLOAD), 1000)]
    data = await compress_chunks(ZlibCompressor(), chunks)
    assert data[:2] == b"\x1f\x8b"
    assert gzip.decompress(data) == PAYLOAD
    assert len(data) < len(PAYLOAD)


@pytest.mark.asyncio
async def test_zlib_compressor_tuning_knobs():
    compressor = ZlibCompressor(level=1, window_bits=9, mem_level=1, strategy=zlib.Z_HUFFMAN_ONLY)
    data = await compress_chunks(compressor, [PAYLOAD])
    assert gzip.decompress(data) == PAYLOAD


@pytest.mark.asyncio
async def test_zlib_compressor_rejects_write_after_flush():
    compressor = ZlibCompressor()
    await compressor.flush()
    assert await compressor.flush() == b""
    with pytest.raises(CompressionStreamError):
        await compressor.compress(b"late")


def test_create_compressor_uses_settings():
    assert isinstance(create_compressor(GzipSettings()), ZlibCompressor)
    process = create_compressor(GzipSettings(COMPRESSOR="process", GZIP_BIN="pigz", GZIP_FLAGS=["-6"]))
    assert isinstance(process, ProcessCompressor)
    assert process.binary == "pigz"
    assert process.flags == ["-6"]


@pytest.mark.asyncio
@pytest.mark.skipif(shutil.which("gzip") is None, reason="gzip binary not available")
async def test_process_compressor_round_trip():
    chunks = [PAYLOAD[i:i + 4096] for i in range(0, len(PAYLOAD), 4096)]
    data = await compress_chunks(ProcessCompressor(), chunks)
    assert gzip.decompress(data) == PAYLOAD


@pytest.mark.asyncio
async def test_process_compressor_missing_binary():
    compressor = ProcessCompressor(binary="definitely-not-a-gzip-binary")
    with pytest.raises(CompressionStreamError):
        await compressor.compress(b"data")
    await compressor.aclose()


@pytest.mark.asyncio
@pytest.mark.skipif(shutil.which("gzip") is None, reason="gzip binary not available")
async def test_process_compressor_aclose_kills_unfinished_process():
    compressor = ProcessCompressor()
    await compressor.compress(b"partial")
    await compressor.aclose()
    assert compressor._process.returncode is not None

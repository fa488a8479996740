"""
Cross-platform atomic file writing utilities.

Writes go to a temporary file in the target directory and are then renamed
over the target, so readers never observe a half-written export or download.
"""

import asyncio
import os
import shutil
import tempfile
from pathlib import Path
from typing import AsyncIterable

import structlog

logger = structlog.get_logger(__name__)


def atomic_write_text(target_path: Path, content: str, encoding: str = "utf-8", newline: str = "") -> Path:
    """
    Atomically write text content to a file.

    Args:
        target_path: Target file path to write to
        content: Text content to write
        encoding: Text encoding to use (default: utf-8)
        newline: Newline translation passed to ``open`` ("" writes content verbatim)

    Returns:
        Absolute path of the written file

    Raises:
        OSError: If writing or renaming fails
    """
    target_path = Path(target_path).resolve()
    target_path.parent.mkdir(parents=True, exist_ok=True)

    temp_file_path = None

    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=target_path.parent,
            prefix=f".{target_path.name}.",
            suffix=".tmp",
            delete=False,
            encoding=encoding,
            newline=newline,
        ) as temp_file:
            temp_file_path = Path(temp_file.name)
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        try:
            # os.replace is atomic on both POSIX and Windows when on same filesystem
            os.replace(str(temp_file_path), str(target_path))
        except OSError as rename_error:
            logger.warning(
                "Atomic rename failed, falling back to shutil.move", error=str(rename_error), target=str(target_path)
            )
            shutil.move(str(temp_file_path), str(target_path))

        logger.debug("Atomic write completed", target=str(target_path), size=len(content))
        return target_path

    except Exception as e:
        if temp_file_path and temp_file_path.exists():
            try:
                temp_file_path.unlink()
            except OSError as cleanup_error:
                logger.warning(
                    "Failed to clean up temporary file", temp_file=str(temp_file_path), error=str(cleanup_error)
                )
        if isinstance(e, OSError):
            raise
        raise OSError(f"Failed to atomically write {target_path}: {e}") from e


async def atomic_write_stream(target_path: Path, chunks: AsyncIterable[bytes]) -> Path:
    """
    Atomically write a stream of byte chunks to a file.

    Chunks go to a temporary file beside the target, which replaces the target
    only once the stream is exhausted. File I/O runs in the default executor.

    Args:
        target_path: Target file path to write to
        chunks: Async iterable of byte chunks

    Returns:
        Absolute path of the written file

    Notes:
        - On any failure (including cancellation) the temp file is removed
          and an existing target is left as it was
    """
    target_path = Path(target_path).resolve()
    target_path.parent.mkdir(parents=True, exist_ok=True)
    loop = asyncio.get_running_loop()

    temp_fd, temp_name = tempfile.mkstemp(dir=target_path.parent, prefix=f".{target_path.name}.", suffix=".tmp")
    temp_file_path = Path(temp_name)
    size = 0
    replaced = False

    try:
        with os.fdopen(temp_fd, "wb") as temp_file:
            async for chunk in chunks:
                await loop.run_in_executor(None, temp_file.write, chunk)
                size += len(chunk)
            await loop.run_in_executor(None, temp_file.flush)
            await loop.run_in_executor(None, os.fsync, temp_file.fileno())

        await loop.run_in_executor(None, os.replace, str(temp_file_path), str(target_path))
        replaced = True
    finally:
        if not replaced:
            try:
                temp_file_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning(
                    "Failed to clean up temporary file", temp_file=str(temp_file_path), error=str(cleanup_error)
                )

    logger.debug("Atomic stream completed", target=str(target_path), size=size)
    return target_path

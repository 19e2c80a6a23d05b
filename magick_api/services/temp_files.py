"""
Scratch-file lifecycle around each ImageMagick run.

Every request writes one input file and names one output file under the
scratch directory. Both are removed once the response is on its way,
either right away or after ``CLEANUP_DELAY`` milliseconds.
"""
import asyncio
import logging
import os
from typing import Iterable, Optional, Set

from fastapi.concurrency import run_in_threadpool

from magick_api.utils.paths import ensure_dir, unique_path, sibling_path, scene_paths

logger = logging.getLogger(__name__)

# strong references so scheduled deletions are not garbage collected
_pending_deletions: Set[asyncio.Task] = set()


class TempFileManager:
    def __init__(self, directory: str, cleanup_delay_ms: int = 0):
        self.directory = directory
        self.cleanup_delay_ms = cleanup_delay_ms

    def ensure_directory(self):
        ensure_dir(self.directory)

    async def write(self, content: bytes, extension: str) -> str:
        """Persist ``content`` under a fresh uuid4 name and return the path."""
        path = unique_path(self.directory, extension)
        await run_in_threadpool(self._write_sync, path, content)
        return path

    def _write_sync(self, path: str, content: bytes):
        self.ensure_directory()
        with open(path, "wb") as f:
            f.write(content)

    def output_path(self, input_path: str, suffix: str, extension: str) -> str:
        return sibling_path(input_path, suffix, extension)

    async def read(self, path: str) -> bytes:
        return await run_in_threadpool(self._read_sync, path)

    @staticmethod
    def _read_sync(path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    async def delete(self, path: str, delay_ms: int = 0):
        """Remove ``path`` now, or schedule it when ``delay_ms`` is positive.

        Failures are logged and never raised.
        """
        if delay_ms > 0:
            task = asyncio.get_running_loop().create_task(self._delete_later(path, delay_ms))
            _pending_deletions.add(task)
            task.add_done_callback(_pending_deletions.discard)
            return
        await run_in_threadpool(self._remove, path)

    async def _delete_later(self, path: str, delay_ms: int):
        await asyncio.sleep(delay_ms / 1000)
        await run_in_threadpool(self._remove, path)

    @staticmethod
    def _remove(path: str):
        try:
            os.remove(path)
        except FileNotFoundError:
            # output never written because the transform failed
            logger.debug(f"Temp file already gone: {path}")
        except OSError as e:
            logger.error(f"Failed to delete file {path}: {e}")

    async def cleanup(self, paths: Iterable[Optional[str]], delay_ms: Optional[int] = None):
        """Delete each assigned path plus any scene files split off from it."""
        delay = self.cleanup_delay_ms if delay_ms is None else delay_ms
        for path in paths:
            if not path:
                continue
            await self.delete(path, delay)
            for scene in scene_paths(path):
                await self.delete(scene, delay)

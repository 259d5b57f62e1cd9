"""Streamed text accumulation with a per-step deadline."""

from __future__ import annotations

import queue
import threading
import time
from typing import Any, Callable, Iterable

from mdxai.errors import GenerationTimeoutError
from mdxai.logging import get_logger

logger = get_logger(__name__)

ChunkCallback = Callable[[str], None]

_CHUNK, _ERROR, _DONE = "chunk", "error", "done"


def _pump(chunks: Iterable[str], out: queue.Queue[tuple[str, Any]], stop: threading.Event) -> None:
    """Read ``chunks`` on a worker thread, forwarding each one (or the failure) to ``out``."""

    it = iter(chunks)
    try:
        for chunk in it:
            if stop.is_set():
                break
            out.put((_CHUNK, chunk))
    except Exception as exc:  # noqa: BLE001 - re-raised by the reading thread
        out.put((_ERROR, exc))
    else:
        out.put((_DONE, None))
    finally:
        close = getattr(it, "close", None)
        if close is not None:
            close()


def accumulate_stream(
    chunks: Iterable[str],
    *,
    timeout_s: float | None = None,
    on_chunk: ChunkCallback | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> str:
    """Join streamed chunks, enforcing a deadline on the whole step.

    With a deadline the stream is read on a daemon worker thread, so the deadline fires even
    while a read is blocked waiting for the next chunk. A chunk that arrives after the deadline
    is not counted. A timeout raised by the stream itself (the client's read timeout) is
    re-raised with the text accumulated so far as ``partial``.

    Args:
        chunks: Incremental text chunks.
        timeout_s: Step deadline in seconds, or ``None`` for no deadline.
        on_chunk: Called with each chunk as it arrives, on the calling thread.
        clock: Monotonic clock, injectable for tests.

    Raises:
        GenerationTimeoutError: If the deadline passes before the stream ends.
    """

    parts: list[str] = []
    try:
        if timeout_s is None:
            for chunk in chunks:
                parts.append(chunk)
                if on_chunk is not None:
                    on_chunk(chunk)
            return "".join(parts)

        deadline = clock() + timeout_s
        out: queue.Queue[tuple[str, Any]] = queue.Queue()
        stop = threading.Event()
        threading.Thread(target=_pump, args=(chunks, out, stop), name="mdxai-stream", daemon=True).start()
        while True:
            remaining = deadline - clock()
            try:
                if remaining <= 0:
                    raise queue.Empty
                kind, value = out.get(timeout=remaining)
            except queue.Empty:
                stop.set()
                partial = "".join(parts)
                logger.warning(
                    "Generation step exceeded its deadline",
                    extra={"timeout_s": timeout_s, "partial_chars": len(partial)},
                )
                raise GenerationTimeoutError(
                    f"Generation step exceeded {timeout_s:g}s deadline",
                    partial=partial,
                ) from None
            if kind == _DONE:
                return "".join(parts)
            if kind == _ERROR:
                raise value
            parts.append(value)
            if on_chunk is not None:
                on_chunk(value)
    except GenerationTimeoutError as exc:
        if not exc.partial:
            exc.partial = "".join(parts)
        raise

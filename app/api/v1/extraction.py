import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import StreamingResponse

from app.core.rate_limit import UPLOAD_RATE_LIMIT, rate_limit
from app.extraction import DocumentUpload, ExtractionError, ExtractionSupervisor, FileTooLarge, MAX_FILE_SIZE
from app.extraction.sniff import format_from_filename
from app.schemas.report import ExtractTextResponse

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_CHUNK_BYTES = 64 * 1024

_supervisor = ExtractionSupervisor()


def get_extraction_supervisor() -> ExtractionSupervisor:
    return _supervisor


def _too_large() -> FileTooLarge:
    return FileTooLarge(
        f"File too large. Maximum allowed size is {MAX_FILE_SIZE // (1024 * 1024)} MB.",
        hint="Please try a smaller file.",
    )


async def _read_upload(file: UploadFile) -> DocumentUpload:
    filename = file.filename or "uploaded-file"
    if file.size is not None and file.size > MAX_FILE_SIZE:
        raise _too_large()

    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > MAX_FILE_SIZE:
            raise _too_large()
        chunks.append(chunk)
    format_from_filename(filename)
    return DocumentUpload.from_bytes(filename, b"".join(chunks))


def _sse_event(event: str, payload: dict[str, Any]) -> str:
    data = json.dumps(payload, ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


@router.post("/extract-text", response_model=ExtractTextResponse)
@rate_limit(UPLOAD_RATE_LIMIT)
async def extract_text(
    request: Request,
    file: UploadFile = File(...),
    supervisor: ExtractionSupervisor = Depends(get_extraction_supervisor),
):
    _ = request
    upload = await _read_upload(file)
    document = await asyncio.to_thread(supervisor.extract, upload)
    return ExtractTextResponse.from_document(document)


@router.post("/extract-text/stream")
@rate_limit(UPLOAD_RATE_LIMIT)
async def extract_text_stream(
    request: Request,
    file: UploadFile = File(...),
    supervisor: ExtractionSupervisor = Depends(get_extraction_supervisor),
):
    upload = await _read_upload(file)

    async def event_stream():
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

        def push_progress(event: dict[str, Any]) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, {"kind": "progress", "payload": event})

        def worker() -> None:
            try:
                document = supervisor.extract(upload, progress=push_progress)
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {"kind": "result", "payload": ExtractTextResponse.from_document(document).model_dump(mode="json")},
                )
            except ExtractionError as exc:
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {
                        "kind": "error",
                        "payload": {"message": exc.detail, "code": exc.code, "status": exc.status_code},
                    },
                )
            except Exception as exc:  # pragma: no cover - guard rail
                logger.exception("extract_stream_failed file=%s", upload.name)
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {"kind": "error", "payload": {"message": str(exc), "code": "internal_error", "status": 500}},
                )
            finally:
                loop.call_soon_threadsafe(queue.put_nowait, {"kind": "done", "payload": {}})

        task = asyncio.create_task(asyncio.to_thread(worker))

        try:
            yield _sse_event("connected", {"ok": True, "filename": upload.name})
            while True:
                if await request.is_disconnected():
                    break
                event = await queue.get()
                kind = event.get("kind")
                if kind == "done":
                    break
                if kind in {"progress", "result", "error"}:
                    yield _sse_event(kind, event.get("payload", {}))
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )

"""API routes for health, vault status, activation, and rebuild."""

import json
import threading
from pathlib import Path
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from .. import __version__
from ..config import get_settings
from ..models import ActivationResult, SyncStatus
from ..sync import ActivationManager, ProgressChannel, build_activation_manager


router = APIRouter(prefix="/api")


# === Request/Response Models ===

class ActivateRequest(BaseModel):
    vault_path: Optional[str] = None
    # Answers to the two confirmation prompts
    ingest: bool = False
    reindex: bool = False


class RebuildRequest(BaseModel):
    vault_path: Optional[str] = None


class ActivateResponse(BaseModel):
    vault_path: Optional[str]
    result: ActivationResult
    progress: list[dict] = []


class StatusResponse(BaseModel):
    vault_path: str
    status: SyncStatus
    changes: Optional[dict] = None


def get_manager() -> ActivationManager:
    return build_activation_manager()


def _resolve_vault(vault_path: Optional[str]) -> str:
    return str(Path(vault_path or get_settings().vault_path).resolve())


# === Health Check ===

@router.get("/health")
def health_check(manager: ActivationManager = Depends(get_manager)):
    """Service and vector database health"""
    return {
        "status": "ok",
        "version": __version__,
        "vector_db": manager.health_probe.check_health().value,
    }


# === Vault ===

@router.get("/vault/status", response_model=StatusResponse)
def vault_status(
    vault_path: Optional[str] = Query(None),
    manager: ActivationManager = Depends(get_manager),
):
    """Current sync status, with the pending change set when drifted"""
    vault = _resolve_vault(vault_path)
    status = manager.change_detector.check_sync_status(vault)

    changes = None
    if status in (SyncStatus.OUT_OF_SYNC, SyncStatus.NOT_INDEXED):
        changes = manager.change_detector.detect_changes(vault).to_dict()

    return StatusResponse(vault_path=vault, status=status, changes=changes)


@router.post("/vault/activate", response_model=ActivateResponse)
def activate(request: ActivateRequest, manager: ActivationManager = Depends(get_manager)):
    """
    Activate retrieval for a vault.

    The client answers the confirmation prompts up front with ``ingest``
    (first full ingestion) and ``reindex`` (incremental sync).
    """
    vault = _resolve_vault(request.vault_path)
    channel = ProgressChannel()
    result = manager.activate_rag(
        vault,
        on_ingestion_needed=lambda: request.ingest,
        on_reindex_needed=lambda: request.reindex,
        on_progress=channel,
    )
    channel.close()
    return ActivateResponse(
        vault_path=vault,
        result=result,
        progress=[event.to_dict() for event in channel],
    )


@router.post("/vault/rebuild", response_model=ActivateResponse)
def rebuild(
    request: RebuildRequest,
    req: Request,
    manager: ActivationManager = Depends(get_manager),
):
    """
    Drop and rebuild the vault's index.

    Streams progress as server-sent events when the client sends
    ``Accept: text/event-stream``.
    """
    vault = _resolve_vault(request.vault_path)

    if "text/event-stream" in req.headers.get("accept", ""):
        return StreamingResponse(
            _stream_rebuild(manager, vault),
            media_type="text/event-stream",
        )

    channel = ProgressChannel()
    result = manager.rebuild(vault, on_progress=channel)
    channel.close()
    return ActivateResponse(
        vault_path=vault,
        result=result,
        progress=[event.to_dict() for event in channel],
    )


def _stream_rebuild(manager: ActivationManager, vault: str) -> Iterator[str]:
    """Run the rebuild on a worker thread and relay its progress as SSE"""
    channel = ProgressChannel()
    outcome: dict[str, ActivationResult] = {}

    def worker():
        try:
            outcome["result"] = manager.rebuild(vault, on_progress=channel)
        finally:
            channel.close()

    thread = threading.Thread(target=worker, name=f"rebuild:{vault}", daemon=True)
    thread.start()

    for event in channel:
        yield _sse("progress", event.to_dict())

    thread.join()
    result = outcome.get("result", ActivationResult.ERROR)
    yield _sse("result", {"vault_path": vault, "result": result.value})


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Response, status
from fastapi.responses import FileResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, field_validator

from bf2wasm.assembler import AssemblerFailed, AssemblerNotFound, Wat2Wasm
from bf2wasm.generator import CellAddressing, Generator, StructureError
from bf2wasm.module import render_module

from .store import ArtifactRecord, ArtifactStore


class CompileRequest(BaseModel):
    code: str = ""
    addressing: str = CellAddressing.LOCAL.value

    @field_validator("addressing")
    @classmethod
    def validate_addressing(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {mode.value for mode in CellAddressing}:
            raise ValueError("addressing must be either 'local' or 'global'")
        return normalized


class CompilePayload(BaseModel):
    artifact_id: str
    addressing: str
    code: str
    body: str
    module: str
    label_count: int
    loop_count: int


def create_app(
    store: Optional[ArtifactStore] = None,
    *,
    assembler: Optional[Wat2Wasm] = None,
    static_dir: Optional[Path] = None,
) -> FastAPI:
    artifact_store = store if store is not None else ArtifactStore()
    wat2wasm = assembler if assembler is not None else Wat2Wasm()
    app = FastAPI(title="bf2wasm compile API", version="0.1.0")

    static_directory = static_dir or Path(__file__).resolve().parent / "static"
    if static_directory.exists():
        app.mount("/static", StaticFiles(directory=str(static_directory)), name="static")

        @app.get("/", response_class=FileResponse)
        def serve_index() -> FileResponse:
            index_path = static_directory / "index.html"
            if not index_path.exists():
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="index.html not found",
                )
            return FileResponse(index_path)

    def _build_payload(record: ArtifactRecord) -> CompilePayload:
        return CompilePayload(
            artifact_id=record.artifact_id,
            addressing=record.addressing.value,
            code=record.code,
            body=record.body,
            module=record.module,
            label_count=record.label_count,
            loop_count=record.loop_count,
        )

    def _get_record(artifact_id: str) -> ArtifactRecord:
        try:
            return artifact_store.get(artifact_id)
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    @app.post("/api/compile", response_model=CompilePayload, status_code=status.HTTP_201_CREATED)
    def compile_code(payload: CompileRequest) -> CompilePayload:
        addressing = CellAddressing(payload.addressing)
        generator = Generator(addressing=addressing)
        try:
            body = generator.translate(payload.code)
        except StructureError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from exc

        record = artifact_store.add(
            code=payload.code,
            addressing=addressing,
            body=body,
            module=render_module(body, addressing=addressing),
            label_count=generator.label_count,
        )
        return _build_payload(record)

    @app.get("/api/compile/{artifact_id}", response_model=CompilePayload)
    def get_artifact(artifact_id: str) -> CompilePayload:
        return _build_payload(_get_record(artifact_id))

    @app.get("/api/compile/{artifact_id}/module.wat", response_class=PlainTextResponse)
    def get_module_text(artifact_id: str) -> PlainTextResponse:
        return PlainTextResponse(_get_record(artifact_id).module)

    @app.get("/api/compile/{artifact_id}/module.wasm")
    def get_module_binary(artifact_id: str) -> Response:
        record = _get_record(artifact_id)
        try:
            binary = wat2wasm.assemble_text(record.module)
        except AssemblerNotFound as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=str(exc),
            ) from exc
        except AssemblerFailed as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=str(exc),
            ) from exc
        return Response(content=binary, media_type="application/wasm")

    @app.delete("/api/compile/{artifact_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_artifact(artifact_id: str) -> Response:
        removed = artifact_store.remove(artifact_id)
        if not removed:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown artifact id: {artifact_id}",
            )
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


__all__ = ["create_app"]

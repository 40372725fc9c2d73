"""FastAPI wrapper for the mask engine."""

from __future__ import annotations

import importlib.metadata
import json
import logging
import os
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from core.mask.format_characters import DEFAULT_FORMAT_CHARACTERS
from core.presets.models import PresetCatalog
from core.presets.preset_loader import load_presets
from core.presets.registry import build_format_characters, create_engine, list_presets
from core.session.models import SessionScript
from core.session.replay import run_session
from core.utils.errors import (
    InvalidPatternError,
    InvalidPlaceholderError,
    PresetError,
    SessionScriptError,
)

app = FastAPI(title="maskops API", version="0.1.0")
logger = logging.getLogger("maskops.api")

_DEFAULT_MAX_SCRIPT_STEPS = 1000
_REQUEST_ID_HEADER = "X-Maskops-Request-Id"


class FormatRequest(BaseModel):
    """Body of POST /v1/format."""

    model_config = ConfigDict(extra="forbid")

    pattern: str | None = None
    preset: str | None = None
    value: str = ""
    placeholder_char: str | None = None
    revealing_mask: bool | None = None

    @model_validator(mode="after")
    def _check_mask_source(self) -> FormatRequest:
        if (self.pattern is None) == (self.preset is None):
            raise ValueError("exactly one of pattern or preset is required")
        return self


class ApiRequestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail or {}


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            error_code="INTERNAL_ERROR",
            status_code=500,
            failure_stage="middleware",
        )
        response = _error_response(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="internal server error",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    response.headers.setdefault(_REQUEST_ID_HEADER, request_id)
    return response


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness endpoint."""

    return {"status": "ok"}


@app.get("/v1/meta")
async def meta_v1(request: Request) -> JSONResponse:
    """Metadata endpoint: presets, format character tokens and version."""

    request_id = _request_id_from_request(request)
    if not _meta_enabled():
        return _error_response(
            status_code=404,
            error_code="NOT_FOUND",
            message="meta endpoint disabled",
            request_id=request_id,
        )

    def _build(_: Any) -> dict[str, Any]:
        catalog = _load_catalog()
        tokens = dict(DEFAULT_FORMAT_CHARACTERS)
        for token, definition in build_format_characters(catalog).items():
            if definition is None:
                tokens.pop(token, None)
            else:
                tokens[token] = definition
        return {
            "presets": {
                name: catalog.presets[name].model_dump(mode="json")
                for name in list_presets(catalog)
            },
            "format_characters": {token: tokens[token].name for token in sorted(tokens)},
            "max_script_steps": _max_script_steps(),
            "version": _package_version(),
        }

    return await _handle(request, "meta", _build)


@app.post("/v1/format")
async def format_v1(request: Request) -> JSONResponse:
    """Lay out one value over a mask."""

    def _build(raw: Any) -> dict[str, Any]:
        body = _validate_model(FormatRequest, raw)
        engine = _with_mask_errors(
            lambda: create_engine(
                _load_catalog(),
                preset=body.preset,
                pattern=body.pattern,
                value=body.value,
                placeholder_char=body.placeholder_char,
                revealing_mask=body.revealing_mask,
            )
        )
        return {
            "value": engine.get_value(),
            "raw_value": engine.get_raw_value(),
            "empty_value": engine.empty_value,
            "max_length": engine.max_length,
        }

    return await _handle(request, "format", _build, read_body=True)


@app.post("/v1/replay")
async def replay_v1(request: Request) -> JSONResponse:
    """Replay an edit session script and return the session report."""

    def _build(raw: Any) -> dict[str, Any]:
        script = _validate_model(SessionScript, raw)
        max_steps = _max_script_steps()
        if len(script.steps) > max_steps:
            raise ApiRequestError(
                status_code=413,
                error_code="TOO_MANY_STEPS",
                message="session script has too many steps",
                detail={"steps": len(script.steps), "max_script_steps": max_steps},
            )
        report = _with_mask_errors(lambda: run_session(script, _load_catalog()))
        return report.model_dump(mode="json")

    return await _handle(request, "replay", _build, read_body=True)


async def _handle(
    request: Request,
    route: str,
    build: Callable[[Any], dict[str, Any]],
    *,
    read_body: bool = False,
) -> JSONResponse:
    request_started = time.perf_counter()
    request_id = _request_id_from_request(request)
    _log_event(logging.INFO, "start", request_id, route=route)

    try:
        raw = await _read_json_object(request) if read_body else None
        payload = build(raw)
    except ApiRequestError as exc:
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            route=route,
            error_code=exc.error_code,
            status_code=exc.status_code,
            total_ms=_elapsed_ms(request_started),
        )
        return _error_response(
            status_code=exc.status_code,
            error_code=exc.error_code,
            message=exc.message,
            request_id=request_id,
            detail=exc.detail,
        )

    _log_event(
        logging.INFO,
        "done",
        request_id,
        route=route,
        status_code=200,
        total_ms=_elapsed_ms(request_started),
    )
    return JSONResponse(status_code=200, headers={_REQUEST_ID_HEADER: request_id}, content=payload)


async def _read_json_object(request: Request) -> dict[str, Any]:
    body = await request.body()
    try:
        raw = json.loads(body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_JSON",
            message="request body must be UTF-8 JSON",
            detail={"error": str(exc)},
        ) from exc

    if not isinstance(raw, dict):
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_JSON",
            message="request JSON must be an object",
        )
    return raw


def _validate_model(model: type[Any], raw: Any) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message="request schema validation failed",
            detail={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def _with_mask_errors(build: Callable[[], Any]) -> Any:
    try:
        return build()
    except InvalidPatternError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_PATTERN",
            message=str(exc),
            detail={"pattern": exc.source, "reason": exc.reason},
        ) from exc
    except InvalidPlaceholderError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_PLACEHOLDER",
            message=str(exc),
            detail={"placeholder_char": exc.placeholder},
        ) from exc
    except PresetError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="UNKNOWN_PRESET",
            message=str(exc),
            detail={"preset": exc.name, "available": exc.available},
        ) from exc
    except SessionScriptError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message=str(exc),
        ) from exc


def _load_catalog() -> PresetCatalog:
    raw_path = os.getenv("MASKOPS_PRESETS_PATH")
    path = Path(raw_path) if raw_path else None
    try:
        return load_presets(path)
    except ValueError as exc:
        raise ApiRequestError(
            status_code=500,
            error_code="INVALID_CONFIG",
            message="preset catalog could not be loaded",
            detail={"error": str(exc)},
        ) from exc


def _max_script_steps() -> int:
    raw = os.getenv("MASKOPS_MAX_SCRIPT_STEPS")
    if raw is None:
        return _DEFAULT_MAX_SCRIPT_STEPS
    try:
        parsed = int(raw)
    except ValueError:
        return _DEFAULT_MAX_SCRIPT_STEPS
    return parsed if parsed > 0 else _DEFAULT_MAX_SCRIPT_STEPS


def _meta_enabled() -> bool:
    raw = os.getenv("MASKOPS_ENABLE_META", "1").strip().lower()
    return raw not in {"0", "false", "no", "off"}


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    generated = uuid.uuid4().hex
    request.state.request_id = generated
    return generated


def _package_version() -> str:
    try:
        return importlib.metadata.version("maskops")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    payload_detail = dict(detail or {})
    payload_detail["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        headers={_REQUEST_ID_HEADER: request_id},
        content={
            "error_code": error_code,
            "message": message,
            "detail": payload_detail,
        },
    )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _log_event(level: int, event: str, request_id: str, **fields: Any) -> None:
    payload = {
        "event": event,
        "request_id": request_id,
        **fields,
    }
    logger.log(level, _dump_json(payload))

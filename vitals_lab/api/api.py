"""
Vitals Lab - Telemetry API

FastAPI service that:
- Accepts POSTed pulse-oximeter readings at /api/telemetry
- Exposes the latest reading plus a recent window via GET /api/telemetry
- Holds the LED flag the dashboard toggles at /api/led
- Keeps the last standalone temperature at /api/temperature

Invalid readings are acknowledged as skipped rather than failing the
request, so a flaky sensor never stops the device from posting.
"""

import os
from typing import Any, Dict, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .config import Settings, configure_logging, load_settings
from .controls import LatestTemperature, LedState
from .errors import MalformedInput, install_error_handlers
from .models import coerce_float
from .service import TelemetryService
from .store import TelemetryStore

# -------------------------------------------------------------------
# Application factory
# -------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is None:
        settings = load_settings()

    app = FastAPI(title="Vitals Lab API")
    app.state.settings = settings
    app.state.service = TelemetryService(
        TelemetryStore(settings.history_capacity),
        mode=settings.validation_mode,
        recent_window=settings.recent_window,
        default_device=settings.default_device,
    )
    app.state.led = LedState()
    app.state.temperature = LatestTemperature()

    install_error_handlers(app)
    app.include_router(_build_router())
    return app


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------


def get_service(request: Request) -> TelemetryService:
    return request.app.state.service


def get_led(request: Request) -> LedState:
    return request.app.state.led


def get_temperature(request: Request) -> LatestTemperature:
    return request.app.state.temperature


async def _read_json_object(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise MalformedInput("Request body is not valid JSON") from exc
    if not isinstance(body, dict):
        raise MalformedInput("Request body must be a JSON object")
    return body


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------


def _build_router() -> APIRouter:
    router = APIRouter()

    @router.post("/api/telemetry")
    async def ingest_telemetry(
        request: Request, service: TelemetryService = Depends(get_service)
    ):
        try:
            payload = await _read_json_object(request)
        except MalformedInput:
            service.record_malformed()
            raise

        verdict = service.ingest(payload)
        if not verdict.accepted:
            return {"ok": False, "skipped": True, "reason": verdict.reason.value}
        return JSONResponse(status_code=201, content={"ok": True})

    @router.get("/api/telemetry")
    def get_telemetry(
        limit: Optional[int] = Query(None, ge=0),
        service: TelemetryService = Depends(get_service),
    ):
        return {"ok": True, **service.query(limit)}

    @router.get("/api/led")
    def get_led_state(led: LedState = Depends(get_led)):
        return {"state": led.get()}

    @router.post("/api/led")
    async def set_led_state(request: Request, led: LedState = Depends(get_led)):
        body = await _read_json_object(request)
        if "state" not in body:
            raise MalformedInput("State missing")
        return {"status": "success", "state": led.set(body["state"])}

    @router.get("/api/temperature")
    def get_latest_temperature(temperature: LatestTemperature = Depends(get_temperature)):
        value = temperature.get()
        if value is None:
            return JSONResponse(status_code=404, content={"message": "No temperature data yet"})
        return {"temperature": value}

    @router.post("/api/temperature")
    async def set_latest_temperature(
        request: Request, temperature: LatestTemperature = Depends(get_temperature)
    ):
        body = await _read_json_object(request)
        value = coerce_float(body.get("temperature"))
        if value is None:
            raise MalformedInput("Temperature missing")
        temperature.set(value)
        return {"status": "success"}

    @router.get("/health")
    def health(service: TelemetryService = Depends(get_service)):
        return service.health()

    return router


app = create_app()


def main() -> None:
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)
    uvicorn.run(
        app,
        host=os.getenv("VITALS_HOST", "0.0.0.0"),
        port=int(os.getenv("VITALS_PORT", "8000")),
    )


if __name__ == "__main__":
    main()

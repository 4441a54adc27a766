from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Query, status
from pydantic import BaseModel

from ..config import Paths, load_pipeline_config
from ..heart.events import ACK_REASONS, CANCELLED
from ..heart.pipeline import HeartRatePipeline, build_pipeline
from ..heart.samples import SensorReading
from ..utils.auth import require_token
from ..utils.time_utils import now_ms


class ReadingIngest(BaseModel):
    bpm: int  # raw sensor value; -1 permission denied, -2 sensor unavailable
    timestamp: int | None = None


class EmergencyAck(BaseModel):
    reason: str = CANCELLED  # cancelled|confirmed
    timestamp: int | None = None


class BatteryReport(BaseModel):
    level: int  # raw level; negative when the watch cannot report it
    scale: int = 100
    timestamp: int | None = None


class ClockRequest(BaseModel):
    timestamp: int | None = None


def create_app(pipeline: HeartRatePipeline) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        pipeline.close()

    app = FastAPI(title="SafeSync Heart Rate API", lifespan=lifespan)
    app.state.pipeline = pipeline

    # Allow the companion dashboard to poll from a browser.
    app.add_middleware(
        __import__("fastapi.middleware.cors", fromlist=["CORSMiddleware"]).CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/samples")
    def ingest_samples(readings: List[ReadingIngest], _: str = Depends(require_token)):
        """Ingest one or more raw sensor readings."""
        stored = 0
        for r in readings:
            if pipeline.on_reading(SensorReading.from_raw(r.bpm, r.timestamp)):
                stored += 1
        if stored:
            pipeline.save()
        return {
            "received": len(readings),
            "stored": stored,
            "emergency_active": pipeline.is_active(),
        }

    @app.get("/samples")
    def list_samples(
        start: int | None = None,
        end: int | None = None,
        _: str = Depends(require_token),
    ):
        """Samples with start <= timestamp <= end (defaults to the chart window)."""
        end = now_ms() if end is None else end
        start = end - pipeline.cfg.chart_window_ms if start is None else start
        return [s.to_dict() for s in pipeline.query(start, end)]

    @app.get("/chart")
    def chart(
        window_ms: int | None = Query(default=None, gt=0),
        bin_size_ms: int | None = Query(default=None, gt=0),
        now: int | None = None,
        _: str = Depends(require_token),
    ):
        """Binned, smoothed and gap-segmented series for the chart screen."""
        return pipeline.chart(window_ms=window_ms, now=now, bin_size_ms=bin_size_ms).to_dict()

    @app.get("/status")
    def get_status(now: int | None = None, _: str = Depends(require_token)):
        return pipeline.status(now)

    @app.post("/emergency")
    def request_emergency(payload: ClockRequest | None = None, principal: str = Depends(require_token)):
        """Manual SOS from the watch face."""
        ts = payload.timestamp if payload else None
        return {"raised": pipeline.request_emergency(ts, actor=principal), "emergency_active": pipeline.is_active()}

    @app.post("/emergency/ack")
    def ack_emergency(payload: EmergencyAck, principal: str = Depends(require_token)):
        if payload.reason not in ACK_REASONS:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid reason")
        cleared = pipeline.acknowledge(payload.timestamp, reason=payload.reason, actor=principal)
        return {"cleared": cleared, "reason": payload.reason, "by": principal}

    @app.post("/emergency/tick")
    def tick(payload: ClockRequest | None = None, _: str = Depends(require_token)):
        """Advance the SOS countdown; confirms the emergency once it runs out."""
        ts = payload.timestamp if payload else None
        confirmed = pipeline.tick(ts)
        return {"confirmed": confirmed, "countdown_remaining_s": pipeline.countdown_remaining(ts)}

    @app.post("/battery")
    def report_battery(payload: BatteryReport, _: str = Depends(require_token)):
        pct = pipeline.on_battery(payload.level, payload.scale, payload.timestamp)
        return {"battery_pct": pct}

    @app.post("/prune")
    def prune(payload: ClockRequest | None = None, _: str = Depends(require_token)):
        ts = payload.timestamp if payload else None
        removed = pipeline.prune(ts)
        return {"removed": removed, "sample_count": len(pipeline.snapshot())}

    return app


def _default_pipeline() -> HeartRatePipeline:
    paths = Paths()
    pipeline = build_pipeline(load_pipeline_config(paths), paths)
    pipeline.initialize()
    return pipeline


app = create_app(_default_pipeline())

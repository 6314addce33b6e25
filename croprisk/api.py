"""HTTP API for the crop risk forecast."""

import datetime as dt
import hmac
from typing import Dict, List

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel, Field

from .config import settings
from .errors import EmptyForecastError, MalformedSeriesError, WeatherProviderError
from .forecast_service import get_risk_report
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="croprisk/api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the configured static key."""
    # No key configured: allow requests (dev/default mode).
    if not settings.api_key:
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter()


class RiskForecastRequest(BaseModel):
    """Location (and optional reference date) to assess."""
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    today: dt.date | None = None


class RiskForecastResponse(BaseModel):
    """Ordered findings as `{risk, level, details}` / `{condition, assessment, details}` records."""
    report: List[Dict[str, str]]


@router.get("/health")
def health():
    """Liveness check."""
    return {"status": "ok"}


@router.post("/risk-forecast", response_model=RiskForecastResponse, dependencies=[Depends(require_api_key)])
def risk_forecast(req: RiskForecastRequest):
    """Fetch weather for the location and return the ordered risk report."""
    try:
        report = get_risk_report(req.lat, req.lon, today=req.today)
    except WeatherProviderError as exc:
        logger.warning("Weather provider failure", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    except (MalformedSeriesError, EmptyForecastError) as exc:
        logger.warning("Unusable weather series", extra={"error": str(exc), "error_type": type(exc).__name__})
        raise HTTPException(status_code=422, detail=str(exc))

    return RiskForecastResponse(report=report.to_records())

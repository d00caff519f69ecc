"""
api_server.py - FastAPI Backend for the Duty-Time Compliance Engine
===================================================================

RESTful API exposing the FTL compliance engine to the duty-log frontend.

Endpoints:
- POST /api/duty/recalculate - Recalculate a pilot-month from raw records
- POST /api/duty/edit - Apply one field edit, then recalculate
- POST /api/duty/toggle-day-off - Toggle a date between duty and day off, then recalculate
- POST /api/duty/breakdown - Audit breakdown of one date
- POST /api/duty-log/import - Upload a CSV/JSON duty log into the server-side store
- GET /api/duty/{staff_id}/{month} - Recalculate a stored pilot-month

Usage:
    uvicorn api.api_server:app --reload --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, UploadFile, File, HTTPException, Form, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from pathlib import Path
import logging
import os
import tempfile

from core import DutyComplianceEngine, EngineConfig, FTLInputError
from core.orchestrator import apply_field_edit, build_month_slots, summarize_month, toggle_day_off
from models.data_models import MonthlyDayRecord, PilotAttributes, coerce_date
from parsers.duty_log_parser import CSVDutyLogParser, JSONDutyLogParser, DutyLogParseError, DutyLogStore
from reports.monthly_report import build_breakdown

logging.basicConfig(
    level=os.environ.get("FTL_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

HOME_TIMEZONE = os.environ.get("FTL_HOME_TIMEZONE", "UTC")

# ============================================================================
# FASTAPI APP INITIALIZATION
# ============================================================================

app = FastAPI(
    title="Duty-Time Compliance API",
    description="Flight and duty time limitation checks for helicopter and fixed-wing pilots",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

engine = DutyComplianceEngine(EngineConfig.default_config())
duty_log_store = DutyLogStore()  # staff_id -> date -> DutyRecord

# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class MonthRequest(BaseModel):
    staff_id: Optional[str] = None
    month: str  # Format: "2024-03"
    aircraft_category: List[str] = []  # First listed category is used
    records: List[Dict[str, Any]] = []  # Backend documents, camelCase or snake_case keys
    history: List[Dict[str, Any]] = []


class EditRequest(MonthRequest):
    date: str  # "YYYY-MM-DD"
    field: str
    value: Any = None


class DateRequest(MonthRequest):
    date: str


class MonthResponse(BaseModel):
    staff_id: Optional[str] = None
    month: str
    aircraft_category: Optional[str] = None
    days: List[Dict[str, Any]]
    summary: Dict[str, Any]
    records: List[Dict[str, Any]]  # Raw month after any edit, ready to be saved


class ImportResponse(BaseModel):
    staff_id: str
    imported: int
    first_date: Optional[str] = None
    last_date: Optional[str] = None


# ============================================================================
# HELPERS
# ============================================================================

def _parse_request(request: MonthRequest):
    parser = JSONDutyLogParser(HOME_TIMEZONE)
    records = parser.parse(request.records, request.staff_id)
    history = parser.parse(request.history, request.staff_id)
    raw_month = build_month_slots(request.month, records, request.staff_id)
    pilot = PilotAttributes.from_categories(request.aircraft_category, request.staff_id)
    return raw_month, history, pilot


def _request_date(request) -> date:
    try:
        return coerce_date(request.date)
    except ValueError:
        raise FTLInputError(f"Date must be formatted YYYY-MM-DD, got '{request.date}'")


def _month_response(month: str, pilot: PilotAttributes, days: List[MonthlyDayRecord]) -> MonthResponse:
    category = pilot.aircraft_category
    return MonthResponse(
        staff_id=pilot.staff_id,
        month=month,
        aircraft_category=category.value if category else None,
        days=[day.to_dict() for day in days],
        summary=summarize_month(days).to_dict(),
        records=[day.record.to_dict() for day in days],
    )


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check"""
    return {
        "status": "ok",
        "service": "Duty-Time Compliance API",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat()
    }


@app.post("/api/duty/recalculate", response_model=MonthResponse)
async def recalculate_month(request: MonthRequest):
    """Full-month recalculation from raw records plus look-back history"""
    try:
        raw_month, history, pilot = _parse_request(request)
        logger.info(
            f"Recalculating {request.month} for {request.staff_id or 'anonymous'} "
            f"({len(request.records)} records, {len(history)} history)"
        )
        days = engine.recalculate(raw_month, history, pilot)
        return _month_response(request.month, pilot, days)
    except (FTLInputError, DutyLogParseError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Recalculation failed: {str(e)}")


@app.post("/api/duty/edit", response_model=MonthResponse)
async def edit_field(request: EditRequest):
    """Apply one field edit, then recalculate the whole month"""
    try:
        raw_month, history, pilot = _parse_request(request)
        logger.info(f"Editing {request.field} on {request.date} for {request.staff_id or 'anonymous'}")
        edited = apply_field_edit(raw_month, _request_date(request), request.field, request.value)
        days = engine.recalculate(edited, history, pilot)
        return _month_response(request.month, pilot, days)
    except (FTLInputError, DutyLogParseError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Edit failed: {str(e)}")


@app.post("/api/duty/toggle-day-off", response_model=MonthResponse)
async def toggle_day(request: DateRequest):
    """Duty day <-> day off, then recalculate the whole month"""
    try:
        raw_month, history, pilot = _parse_request(request)
        logger.info(f"Toggling day off on {request.date} for {request.staff_id or 'anonymous'}")
        days = engine.recalculate(toggle_day_off(raw_month, _request_date(request)), history, pilot)
        return _month_response(request.month, pilot, days)
    except (FTLInputError, DutyLogParseError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Toggle failed: {str(e)}")


@app.post("/api/duty/breakdown")
async def day_breakdown(request: DateRequest):
    """Every intermediate figure behind one date's verdict"""
    try:
        raw_month, history, pilot = _parse_request(request)
        days = engine.recalculate(raw_month, history, pilot)
        target = _request_date(request)
        match = [day for day in days if day.date == target]
        if not match:
            raise HTTPException(status_code=404, detail=f"{request.date} is not part of {request.month}")
        return build_breakdown(match[0], pilot.aircraft_category, engine.config)
    except (FTLInputError, DutyLogParseError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Breakdown failed: {str(e)}")


@app.post("/api/duty-log/import", response_model=ImportResponse)
async def import_duty_log(
    file: UploadFile = File(...),
    staff_id: str = Form(...),
):
    """Upload a CSV or JSON duty log for one pilot into the server-side store"""
    try:
        if not file.filename:
            raise HTTPException(status_code=400, detail="No file provided")

        suffix = Path(file.filename).suffix.lower()
        if suffix not in ['.csv', '.json']:
            raise HTTPException(status_code=400, detail="Unsupported file format. Use CSV or JSON.")

        content = await file.read()
        if suffix == '.json':
            records = JSONDutyLogParser(HOME_TIMEZONE).parse(content, staff_id)
        else:
            with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
                tmp.write(content)
                tmp_path = tmp.name
            try:
                records = CSVDutyLogParser().parse_csv(tmp_path, staff_id)
            finally:
                os.unlink(tmp_path)

        if not records:
            raise HTTPException(status_code=400, detail="No duty log entries found")

        imported = duty_log_store.add_records(staff_id, records)
        logger.info(f"Imported {imported} duty log entries for {staff_id}")
        return ImportResponse(
            staff_id=staff_id,
            imported=imported,
            first_date=records[0].date.isoformat(),
            last_date=records[-1].date.isoformat(),
        )
    except DutyLogParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Import failed: {str(e)}")


@app.get("/api/duty/{staff_id}/{month}", response_model=MonthResponse)
async def get_stored_month(staff_id: str, month: str, category: List[str] = Query([])):
    """Recalculate a stored pilot-month against everything stored before it"""
    if not duty_log_store.has_staff(staff_id):
        raise HTTPException(status_code=404, detail="Pilot not found")

    try:
        raw_month = build_month_slots(month, duty_log_store.month_records(staff_id, month), staff_id)
        history = duty_log_store.history_before(staff_id, month)
        pilot = PilotAttributes.from_categories(category, staff_id)
        days = engine.recalculate(raw_month, history, pilot)
        return _month_response(month, pilot, days)
    except FTLInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Recalculation failed: {str(e)}")


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", 8000))

    logger.info(f"Starting duty-time compliance API on port {port} (docs at /docs)")

    uvicorn.run(app, host="0.0.0.0", port=port)

"""
FastAPI Server for the MQL5 Expert Advisor Builder

Endpoints:
- GET /status - Health check
- GET /catalog - Assets, timeframes, indicators and risk modes
- GET /templates, GET /templates/{template_id} - Pre-built strategies
- GET /strategy/default - Seed strategy for a new session
- POST /strategy/validate - Validate a strategy payload
- POST /strategy/conditions/{add,update,remove}, /strategy/risk, /strategy/field - Edits
- POST /strategy/optimize - Deterministic parameter nudge
- POST /generate - Generate EA code + simulated backtest (concurrently)
- POST /export - Download generated code as an .mq5 file

The server keeps no strategy state: every edit endpoint takes the current
strategy and returns the new one.
"""

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Any, Optional, List
from functools import lru_cache
import os
from dotenv import load_dotenv

from ai_providers import ProviderOracle, RemoteUnavailableError, get_provider
from ea_generator import ExpertAdvisorGenerator, export_filename
from equity_curve import to_area_points, to_polyline_points
from optimizer import optimize_strategy
from strategy_catalog import catalog_snapshot
from strategy_model import (
    InvalidArgument,
    StrategySpecification,
    add_condition,
    create_default,
    remove_condition,
    set_risk_field,
    set_strategy_field,
    update_condition,
)
from strategy_spec_schema import load_strategy_spec, validate_strategy_spec
from strategy_templates import PREBUILT_TEMPLATES, get_template

from contextlib import asynccontextmanager

# Load environment variables
load_dotenv()

# ============================================================================
# CONFIGURATION
# ============================================================================

AI_PROVIDER = os.getenv("AI_PROVIDER", "anthropic").lower()
DEFAULT_MODELS = {"anthropic": "claude-sonnet-4-5", "openai": "gpt-5.2"}
API_KEY_VARS = {"anthropic": "ANTHROPIC_API_KEY", "openai": "OPENAI_API_KEY"}

if AI_PROVIDER not in DEFAULT_MODELS:
    raise ValueError(f"Invalid AI_PROVIDER: {AI_PROVIDER}. Must be 'openai' or 'anthropic'")

AI_MODEL = os.getenv("AI_MODEL") or DEFAULT_MODELS[AI_PROVIDER]
SIMULATION_MODEL = os.getenv("SIMULATION_MODEL") or AI_MODEL


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events"""
    print("=" * 60)
    print("MQL5 Expert Advisor Builder")
    print("=" * 60)
    print(f"Provider: {AI_PROVIDER.upper()}")
    print(f"Code Model: {AI_MODEL}")
    print(f"Simulation Model: {SIMULATION_MODEL}")
    print(f"Templates: {', '.join(template.id for template in PREBUILT_TEMPLATES)}")
    print("=" * 60)
    yield


# Initialize FastAPI app
app = FastAPI(
    title="MQL5 Expert Advisor Builder",
    description="Build trading strategies and generate MetaTrader 5 Expert Advisors using AI",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ============================================================================
# GENERATOR
# ============================================================================

@lru_cache(maxsize=1)
def _build_generator() -> ExpertAdvisorGenerator:
    api_key = os.getenv(API_KEY_VARS[AI_PROVIDER])
    if not api_key:
        raise RuntimeError(f"Missing {API_KEY_VARS[AI_PROVIDER]} environment variable")
    oracle = ProviderOracle(
        code_provider=get_provider(api_key=api_key, model=AI_MODEL, provider=AI_PROVIDER),
        simulation_provider=get_provider(api_key=api_key, model=SIMULATION_MODEL, provider=AI_PROVIDER),
    )
    print(f"✅ EA generator initialized (code: {AI_MODEL}, simulation: {SIMULATION_MODEL})")
    return ExpertAdvisorGenerator(oracle)


def get_ea_generator() -> ExpertAdvisorGenerator:
    try:
        return _build_generator()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


# ============================================================================
# REQUEST / RESPONSE MODELS
# ============================================================================

class StrategyRequest(BaseModel):
    """Any request carrying the current strategy"""
    strategy: Dict[str, Any] = Field(..., description="Current strategy payload (camelCase)")

    model_config = ConfigDict(json_schema_extra={
        "example": {"strategy": create_default().to_payload()}
    })


class AddConditionRequest(StrategyRequest):
    side: str = Field(..., description="BUY or SELL")
    defaults: Optional[Dict[str, Any]] = None


class UpdateConditionRequest(StrategyRequest):
    side: str
    index: int
    condition: Dict[str, Any]


class RemoveConditionRequest(StrategyRequest):
    side: str
    index: int


class SetFieldRequest(StrategyRequest):
    field: str
    value: Any = None


class StrategyResponse(BaseModel):
    strategy: Dict[str, Any]


class ValidateStrategyResponse(BaseModel):
    valid: bool
    errors: List[Dict[str, str]]


class GenerateResponse(BaseModel):
    """Response from a generation cycle"""
    success: bool
    code: Optional[str] = None
    explanation: Optional[str] = None
    filename: Optional[str] = None
    simulation: Optional[Dict[str, Any]] = None
    equity_points: Optional[str] = None
    equity_area: Optional[str] = None
    error: Optional[str] = None


class ExportRequest(BaseModel):
    code: str
    name: Optional[str] = None


class StatusResponse(BaseModel):
    """Status check response"""
    status: str
    provider: str
    model: str
    simulation_model: str


def _load(payload: Dict[str, Any]) -> StrategySpecification:
    valid, errors = validate_strategy_spec(payload)
    if not valid:
        raise HTTPException(status_code=400, detail=errors)
    try:
        return load_strategy_spec(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _respond(spec: StrategySpecification) -> StrategyResponse:
    return StrategyResponse(strategy=spec.to_payload())


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/status", response_model=StatusResponse)
async def status():
    """Health check endpoint"""
    return StatusResponse(
        status="running",
        provider=AI_PROVIDER,
        model=AI_MODEL,
        simulation_model=SIMULATION_MODEL,
    )


@app.get("/catalog")
async def catalog():
    return catalog_snapshot()


@app.get("/templates")
async def list_templates():
    return [template.model_dump(mode="json", by_alias=True) for template in PREBUILT_TEMPLATES]


@app.get("/templates/{template_id}")
async def read_template(template_id: str):
    try:
        template = get_template(template_id)
    except InvalidArgument as e:
        raise HTTPException(status_code=404, detail=str(e))
    return template.model_dump(mode="json", by_alias=True)


@app.get("/strategy/default", response_model=StrategyResponse)
async def default_strategy():
    return _respond(create_default())


@app.post("/strategy/validate", response_model=ValidateStrategyResponse)
async def validate_strategy(request: StrategyRequest):
    """Validate a strategy payload against the builder contract."""
    valid, errors = validate_strategy_spec(request.strategy)
    return ValidateStrategyResponse(valid=valid, errors=errors)


@app.post("/strategy/conditions/add", response_model=StrategyResponse)
async def add_strategy_condition(request: AddConditionRequest):
    return _respond(add_condition(_load(request.strategy), request.side, request.defaults))


@app.post("/strategy/conditions/update", response_model=StrategyResponse)
async def update_strategy_condition(request: UpdateConditionRequest):
    spec = _load(request.strategy)
    return _respond(update_condition(spec, request.side, request.index, request.condition))


@app.post("/strategy/conditions/remove", response_model=StrategyResponse)
async def remove_strategy_condition(request: RemoveConditionRequest):
    return _respond(remove_condition(_load(request.strategy), request.side, request.index))


@app.post("/strategy/risk", response_model=StrategyResponse)
async def set_strategy_risk(request: SetFieldRequest):
    return _respond(set_risk_field(_load(request.strategy), request.field, request.value))


@app.post("/strategy/field", response_model=StrategyResponse)
async def set_strategy_attribute(request: SetFieldRequest):
    return _respond(set_strategy_field(_load(request.strategy), request.field, request.value))


@app.post("/strategy/optimize", response_model=StrategyResponse)
async def optimize(request: StrategyRequest):
    return _respond(optimize_strategy(_load(request.strategy)))


@app.post("/generate", response_model=GenerateResponse)
async def generate(
    request: StrategyRequest,
    generator: ExpertAdvisorGenerator = Depends(get_ea_generator),
):
    """
    Generate MQL5 code and a simulated backtest for the strategy.

    Both oracle calls run concurrently; if either fails the whole request fails.
    """
    spec = _load(request.strategy)
    try:
        print(f"\n{'='*60}")
        print(f"📥 Generating EA {spec.name} ({spec.asset} {spec.timeframe})")
        print(f"{'='*60}")

        result = await generator.generate(spec)

        print(f"✅ EA generated: {result.filename}, "
              f"{result.simulation.total_trades} simulated trades")
        print(f"{'='*60}\n")

        return GenerateResponse(
            success=True,
            code=result.generation.code,
            explanation=result.generation.explanation,
            filename=result.filename,
            simulation=result.simulation.to_payload(),
            equity_points=to_polyline_points(result.equity_points),
            equity_area=to_area_points(result.equity_points, generator.curve_height),
        )

    except RemoteUnavailableError as e:
        print(f"❌ Generation failed: {e.__cause__!r}")
        print(f"{'='*60}\n")
        return GenerateResponse(
            success=False,
            error=str(e)
        )


@app.post("/export")
async def export(request: ExportRequest):
    """Return generated code verbatim as a downloadable .mq5 file."""
    filename = export_filename(request.name)
    return Response(
        content=request.code,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================================
# STARTUP
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "server:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 8000)),
        reload=True
    )

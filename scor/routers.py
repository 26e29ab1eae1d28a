"""
REST API for DAO risk analysis
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from fastapi.responses import Response
from pydantic import BaseModel

from scor import __version__
from scor.exceptions import CacheUnavailable, DataFormatError, InvalidSubjectFormat, UpstreamUnavailable
from scor.models import RiskResult
from scor.services.report_service import export_report, report_filename
from scor.services.scoring_service import ScoringService

logger = logging.getLogger(__name__)

api_router = APIRouter()

EXAMPLE_ADDRESS = "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class BreakdownResponse(BaseModel):
    """Component scores, each 0-100"""
    treasury: int
    activity: int
    diversification: int
    maturity: int
    history: int


class HoldingResponse(BaseModel):
    symbol: str
    amount: float
    value_usd: float
    percentage_of_portfolio: int
    is_stable: bool
    risk_bucket: str
    price_usd: float
    contract_address: str = ""


class CreditDecisionResponse(BaseModel):
    approved: bool
    label: str
    rationale: str
    max_advance_ratio: float


class ActivityResponse(BaseModel):
    activity_level: str
    last_activity: str
    treasury_stability: str
    wallet_age: str
    wallet_age_days: Optional[int] = None
    total_transactions: int
    recent_transactions: int
    first_activity: Optional[datetime] = None


class PortfolioResponse(BaseModel):
    asset_count: int
    native_ratio: float
    stablecoin_ratio: float
    top_holding_percentage: int
    risk_distribution: Dict[str, int]


class AnalysisResponse(BaseModel):
    """Complete DAO risk analysis"""
    address: str
    name: str
    score: int
    risk_level: str
    breakdown: BreakdownResponse
    portfolio_value_usd: float
    native_value_usd: float
    token_value_usd: float
    holdings: List[HoldingResponse]
    credit_decision: CreditDecisionResponse
    activity: ActivityResponse
    portfolio: PortfolioResponse
    risk_factors: List[str]
    payment_reliability: int
    price_source: str
    computed_at: datetime
    cached: bool

    class Config:
        json_schema_extra = {
            "example": {
                "address": EXAMPLE_ADDRESS,
                "name": "Uniswap UNI Token",
                "score": 84,
                "risk_level": "Low",
                "breakdown": {
                    "treasury": 100,
                    "activity": 60,
                    "diversification": 65,
                    "maturity": 100,
                    "history": 100,
                },
                "portfolio_value_usd": 2500000.0,
                "native_value_usd": 2000000.0,
                "token_value_usd": 500000.0,
                "holdings": [],
                "credit_decision": {
                    "approved": True,
                    "label": "Approved for Financing",
                    "rationale": "Strong treasury, consistent activity, and low risk indicators",
                    "max_advance_ratio": 0.7,
                },
                "risk_factors": [],
                "payment_reliability": 95,
                "price_source": "live",
                "computed_at": "2025-01-15T10:30:00Z",
                "cached": False,
            }
        }

    @classmethod
    def from_result(cls, result: RiskResult, cached: bool) -> "AnalysisResponse":
        breakdown = result.breakdown
        decision = result.credit_decision
        activity = result.activity
        portfolio = result.portfolio
        return cls(
            address=result.subject,
            name=result.name,
            score=result.final_score,
            risk_level=result.risk_tier.value,
            breakdown=BreakdownResponse(
                treasury=breakdown.treasury,
                activity=breakdown.activity,
                diversification=breakdown.diversification,
                maturity=breakdown.maturity,
                history=breakdown.history,
            ),
            portfolio_value_usd=result.portfolio_value_usd,
            native_value_usd=result.native_value_usd,
            token_value_usd=result.token_value_usd,
            holdings=[
                HoldingResponse(
                    symbol=h.symbol,
                    amount=h.amount,
                    value_usd=h.value_usd,
                    percentage_of_portfolio=h.percentage_of_portfolio,
                    is_stable=h.is_stable,
                    risk_bucket=h.risk_bucket,
                    price_usd=h.price_usd,
                    contract_address=h.contract_address,
                )
                for h in result.holdings
            ],
            credit_decision=CreditDecisionResponse(
                approved=decision.approved,
                label=decision.label,
                rationale=decision.rationale,
                max_advance_ratio=decision.max_advance_ratio,
            ),
            activity=ActivityResponse(
                activity_level=activity.activity_level,
                last_activity=activity.last_activity,
                treasury_stability=activity.treasury_stability,
                wallet_age=activity.wallet_age,
                wallet_age_days=activity.wallet_age_days,
                total_transactions=activity.total_transactions,
                recent_transactions=activity.recent_transactions,
                first_activity=activity.first_activity,
            ),
            portfolio=PortfolioResponse(
                asset_count=portfolio.asset_count,
                native_ratio=portfolio.native_ratio,
                stablecoin_ratio=portfolio.stablecoin_ratio,
                top_holding_percentage=portfolio.top_holding_percentage,
                risk_distribution=dict(portfolio.risk_distribution),
            ),
            risk_factors=list(result.risk_factors),
            payment_reliability=result.payment_reliability,
            price_source=result.price_source,
            computed_at=result.computed_at,
            cached=cached,
        )


class CacheEntryResponse(BaseModel):
    address: str
    name: str
    stored_at: datetime
    age_minutes: int
    is_expired: bool


class CacheStatsResponse(BaseModel):
    total_cached: int
    entries: List[CacheEntryResponse]


class CacheClearedResponse(BaseModel):
    cleared: int


class ErrorResponse(BaseModel):
    """Error response model"""
    detail: str


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    timestamp: datetime
    version: str


# ============================================================================
# HELPERS
# ============================================================================

def get_scoring_service(request: Request) -> ScoringService:
    return request.app.state.scoring_service


async def run_analysis(service: ScoringService, address: str):
    """Run one analysis, mapping pipeline errors to HTTP errors"""
    try:
        return await service.analyze(address)
    except InvalidSubjectFormat:
        raise HTTPException(
            status_code=400,
            detail="Invalid Ethereum address format. Must be 42 characters starting with 0x",
        )
    except UpstreamUnavailable as e:
        logger.error("Upstream failure analyzing %s: %s", address, e)
        raise HTTPException(
            status_code=502,
            detail="Unable to fetch blockchain data. Please check the address and try again.",
        )
    except DataFormatError as e:
        logger.error("Malformed upstream data analyzing %s: %s", address, e)
        raise HTTPException(
            status_code=502,
            detail="Received unexpected data from the blockchain explorer. Please try again in a moment.",
        )
    except Exception:
        logger.exception("Analysis failed for %s", address)
        raise HTTPException(
            status_code=500,
            detail="Failed to analyze DAO. Please try again in a moment.",
        )


ANALYSIS_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid wallet address"},
    502: {"model": ErrorResponse, "description": "Upstream data unavailable"},
    500: {"model": ErrorResponse, "description": "Server error"},
}


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@api_router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
    )


@api_router.get(
    "/analyze/{address}",
    response_model=AnalysisResponse,
    responses=ANALYSIS_ERRORS,
    summary="Analyze DAO treasury",
)
async def analyze_dao(
    address: str = Path(..., description="DAO treasury address (0x...)"),
    service: ScoringService = Depends(get_scoring_service),
):
    """
    Get the risk analysis for a DAO treasury.

    Results are cached per address for the configured validity window;
    `cached` tells whether this response was served from the cache.
    """
    result, cached = await run_analysis(service, address)
    return AnalysisResponse.from_result(result, cached)


@api_router.get(
    "/analyze/{address}/report",
    response_class=Response,
    responses={**ANALYSIS_ERRORS, 200: {"content": {"text/plain": {}}}},
    summary="Download risk assessment report",
)
async def download_report(
    address: str = Path(..., description="DAO treasury address (0x...)"),
    service: ScoringService = Depends(get_scoring_service),
):
    """Paginated plain-text report, pages separated by form feeds"""
    result, _ = await run_analysis(service, address)
    return Response(
        content=export_report(result),
        media_type="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(result)}"'},
    )


@api_router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(service: ScoringService = Depends(get_scoring_service)):
    try:
        return service.cache.stats()
    except CacheUnavailable as e:
        logger.warning("Cache unavailable on stats: %s", e)
        raise HTTPException(status_code=503, detail="Cache is currently unavailable.")


@api_router.delete("/cache", response_model=CacheClearedResponse)
async def clear_cache(service: ScoringService = Depends(get_scoring_service)):
    return CacheClearedResponse(cleared=service.clear_cache())

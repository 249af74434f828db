"""
Retirement Drawdown Planner - FastAPI Backend
Features:
- Accumulation projection for RRSP, TFSA, FHSA and non-registered accounts
- Tax-optimized withdrawal simulation (RRIF minimums, bracket filling)
- Federal and Ontario tax with surtaxes and health premium
- What-if scenario comparison
- Contribution suggestions
"""
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.simulations import router as simulations_router

logging.basicConfig(level=logging.INFO)

app = FastAPI(
    title="Retirement Drawdown Planner API",
    description="Household retirement projection with a tax-aware withdrawal order",
    version="1.0.0"
)


def cors_origins():
    """Comma-separated RETIREMENT_CORS_ORIGINS, default any origin"""
    raw = os.environ.get("RETIREMENT_CORS_ORIGINS", "*")
    return [o.strip() for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(simulations_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for deployment"""
    return {"status": "healthy", "service": "retirement-drawdown-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=5001, reload=True)

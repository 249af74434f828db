import logging

from fastapi import APIRouter, HTTPException
from schemas.simulation import LimitsParams, ScenarioParams, SimulationParams
from services.simulation_service import (
    run_comparison_service,
    run_limits_service,
    run_simulation_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _run_or_raise(service, params):
    try:
        return service(params)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("%s failed", service.__name__)
        raise HTTPException(status_code=500, detail=f"Simulation failed: {e}")


@router.post("/run-simulation")
def run_simulation_endpoint(params: SimulationParams):
    """
    Run accumulation and the tax-optimized withdrawal simulation.
    """
    return _run_or_raise(run_simulation_service, params)


@router.post("/compare-scenarios")
def compare_scenarios_endpoint(params: ScenarioParams):
    """
    Run the baseline plan and each named assumption set side by side.
    """
    return _run_or_raise(run_comparison_service, params)


@router.post("/contribution-limits")
def contribution_limits_endpoint(params: LimitsParams):
    """
    Suggest annual contributions per account type within the household budget.
    """
    return _run_or_raise(run_limits_service, params)

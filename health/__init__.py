# ============================================================================
# HEALTH MODULE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Infrastructure - Health endpoints
# PURPOSE: Probe endpoints for the gateway process
# CREATED: 15 OCT 2026
# ============================================================================

from health.router import health_router

__all__ = ["health_router"]

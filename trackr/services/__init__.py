"""Service layer: envelope-returning operations over a record store."""
from trackr.services.dashboard_service import DashboardService
from trackr.services.management_service import ManagementService

__all__ = ["DashboardService", "ManagementService"]

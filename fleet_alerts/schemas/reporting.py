from pydantic import BaseModel


class DashboardSummary(BaseModel):
    documents_due_in_30_days: int
    documents_due_in_60_days: int
    documents_overdue: int
    drivers_missing_license: int
    alerts_total: int
    alerts_failed: int
    predictive_alerts_active: int = 0

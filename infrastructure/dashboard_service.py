# infrastructure/dashboard_service.py
import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List

from domain.bookkeeping import monthly_series, month_end, month_start, summarize
from domain.money import ZERO
from domain.status import ClientStatus, OfferStatus, ProjectStatus, TransactionType
from infrastructure.database import Database


@dataclass
class DashboardData:
    open_leads: int = 0
    active_projects: int = 0
    offers_sent: int = 0
    revenue_month: Decimal = ZERO
    hours_month: Decimal = ZERO
    total_clients: int = 0
    total_projects: int = 0
    total_offers: int = 0
    revenue_series: List[Dict] = field(default_factory=list)
    project_status: Dict[str, int] = field(default_factory=dict)
    recent_offers: List[Dict] = field(default_factory=list)
    recent_projects: List[Dict] = field(default_factory=list)


class DashboardService:
    """Key figures for the start page. Revenue is cash in: income transactions only."""

    def __init__(self, db: Database):
        self.db = db

    def load(self, today: datetime.date = None, recent: int = 5) -> DashboardData:
        today = today or datetime.date.today()
        start, end = month_start(today), month_end(today)

        incomes = self.db.list_transactions(TransactionType.INCOME, start=month_start(today, 5), end=end)
        month_income = [t for t in incomes if start <= t.date <= end]

        entries = self.db.list_time_entries(
            start=datetime.datetime.combine(start, datetime.time.min),
            end=datetime.datetime.combine(end, datetime.time.max),
        )
        minutes = sum(e.duration_minutes or 0 for e in entries)

        status_counts = self.db.project_status_counts()

        return DashboardData(
            open_leads=self.db.count_rows("clients", ClientStatus.LEAD.value),
            active_projects=self.db.count_rows("projects", ProjectStatus.ACTIVE.value),
            offers_sent=self.db.count_rows("offers", OfferStatus.SENT.value),
            revenue_month=summarize(month_income).income,
            hours_month=Decimal(minutes) / 60,
            total_clients=self.db.count_rows("clients"),
            total_projects=self.db.count_rows("projects"),
            total_offers=self.db.count_rows("offers"),
            revenue_series=[{"month": m["month"], "revenue": m["income"]}
                            for m in monthly_series(incomes, today=today, months=6)],
            project_status={s.value: status_counts.get(s.value, 0) for s in ProjectStatus},
            recent_offers=[
                {"id": o.id, "number": o.number, "total": o.total, "date": o.date, "status": o.status.value}
                for o in self.db.list_offers(limit=recent)
            ],
            recent_projects=[
                {"id": p.id, "title": p.title, "status": p.status.value}
                for p in self.db.list_projects(limit=recent)
            ],
        )

import datetime
from dataclasses import dataclass
from typing import Optional

from .status import ClientStatus, ProjectStatus


@dataclass
class Client:
    name: str
    company: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    notes: str = ""
    status: ClientStatus = ClientStatus.LEAD
    customer_number: Optional[str] = None
    id: Optional[int] = None


@dataclass
class Project:
    client_id: int
    title: str
    status: ProjectStatus = ProjectStatus.PLANNED
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    notes: str = ""
    id: Optional[int] = None


@dataclass
class TimeEntry:
    project_id: int
    start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    note: str = ""
    duration_minutes: Optional[int] = None
    id: Optional[int] = None

    def stop(self, at: datetime.datetime = None) -> int:
        """Close the entry. A running timer always books at least one minute."""
        self.end_time = at or datetime.datetime.now()
        elapsed = (self.end_time - self.start_time).total_seconds()
        self.duration_minutes = max(1, round(elapsed / 60))
        return self.duration_minutes

import uuid
from datetime import date, datetime

from pydantic import BaseModel

from soot.common.enums import CalendarItemKind, ImportantDateType


class ImportantDateRecord(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    date: date
    type: ImportantDateType = ImportantDateType.OTHER
    is_recurring_yearly: bool = True

    model_config = {"from_attributes": True}


class ImportantDateOccurrence(BaseModel):
    id: str
    important_date_id: uuid.UUID
    title: str
    description: str | None
    type: ImportantDateType
    occurrence_date: datetime
    is_recurring_yearly: bool


class CalendarTaskSource(BaseModel):
    id: uuid.UUID
    title: str
    due_date: datetime | None
    reminder_offset_days: int | None = None
    image_url: str | None = None
    zone_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    assignee_id: uuid.UUID | None = None
    project_id: uuid.UUID | None = None
    equipment_id: uuid.UUID | None = None

    model_config = {"from_attributes": True}


class CalendarItem(BaseModel):
    id: str
    title: str
    due_date: datetime
    kind: CalendarItemKind
    parent_id: str | None = None
    image_url: str | None = None
    is_image_generating: bool = False
    zone_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    assignee_id: uuid.UUID | None = None
    project_id: uuid.UUID | None = None
    equipment_id: uuid.UUID | None = None
    important_date_id: uuid.UUID | None = None
    important_date_type: ImportantDateType | None = None
    href: str | None = None
    description: str | None = None

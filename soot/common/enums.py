import enum


class MemberRole(str, enum.Enum):
    OWNER = "OWNER"
    MEMBER = "MEMBER"


class ClientStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class RecurrenceUnit(str, enum.Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class ImportantDateType(str, enum.Enum):
    BIRTHDAY = "BIRTHDAY"
    ANNIVERSARY = "ANNIVERSARY"
    EVENT = "EVENT"
    OTHER = "OTHER"


class CalendarItemKind(str, enum.Enum):
    TASK = "task"
    REMINDER = "reminder"
    IMPORTANT_DATE = "important_date"


class NotificationType(str, enum.Enum):
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_COMMENTED = "TASK_COMMENTED"
    TASK_STATUS = "TASK_STATUS"
    TASK_REMINDER = "TASK_REMINDER"
    TASK_ESCALATION = "TASK_ESCALATION"
    PROJECT_CREATED = "PROJECT_CREATED"
    INVITE_ACCEPTED = "INVITE_ACCEPTED"


class Weekday(str, enum.Enum):
    MON = "MON"
    TUE = "TUE"
    WED = "WED"
    THU = "THU"
    FRI = "FRI"
    SAT = "SAT"
    SUN = "SUN"


class BudgetEntryType(str, enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class BudgetEntrySource(str, enum.Enum):
    MANUAL = "MANUAL"
    RECURRING = "RECURRING"
    SHOPPING_LIST = "SHOPPING_LIST"
    DOCUMENT = "DOCUMENT"


class ImageEntityType(str, enum.Enum):
    TASK = "task"
    PROJECT = "project"
    EQUIPMENT = "equipment"


class ImageJobStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

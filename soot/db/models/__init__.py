from soot.db.models.budget import BudgetEntry, BudgetRecurringEntry
from soot.db.models.equipment import Equipment
from soot.db.models.house import Animal, Category, House, HouseInvite, HouseMember, Person, Zone
from soot.db.models.image_job import ImageJob
from soot.db.models.important_date import ImportantDate
from soot.db.models.notification import Notification, NotificationSettings
from soot.db.models.project import Project
from soot.db.models.task import Task
from soot.db.models.user import MagicLinkToken, User

__all__ = [
    "Animal",
    "BudgetEntry",
    "BudgetRecurringEntry",
    "Category",
    "Equipment",
    "House",
    "HouseInvite",
    "HouseMember",
    "ImageJob",
    "ImportantDate",
    "MagicLinkToken",
    "Notification",
    "NotificationSettings",
    "Person",
    "Project",
    "Task",
    "User",
    "Zone",
]

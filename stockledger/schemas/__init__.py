from stockledger.schemas.announcement import Announcement
from stockledger.schemas.job import Job, JobDetail, WorkLogItem
from stockledger.schemas.product import FeedEntry, HistoryEntry, Product
from stockledger.schemas.user import User

__all__ = [
    "Announcement",
    "FeedEntry",
    "HistoryEntry",
    "Job",
    "JobDetail",
    "Product",
    "User",
    "WorkLogItem",
]

from .node import Experience, Profile, Node
from .edge import Edge
from .activity import ActivityEvent
from .company import Employee, CompanyMap
from .progress import ScrapeProgress, ProgressUpdate, AcquisitionResult
from .search import YearsRange, SearchFilters, ParsedQuery, ScoreBreakdown, SearchResult

__all__ = [
    "Experience",
    "Profile",
    "Node",
    "Edge",
    "ActivityEvent",
    "Employee",
    "CompanyMap",
    "ScrapeProgress",
    "ProgressUpdate",
    "AcquisitionResult",
    "YearsRange",
    "SearchFilters",
    "ParsedQuery",
    "ScoreBreakdown",
    "SearchResult",
]

from domain.curation.errors import (
    ConfigurationError,
    CurationError,
    CurationValidationError,
    InsufficientWatchHistoryError,
    RecordNotFoundError,
    SchemaError,
    TransportError,
)
from domain.curation.metadata import MovieDetails, SearchResult
from domain.curation.movie_record import ListStatus, MovieRecord
from domain.curation.policy import FeedbackFlag, ListLayout, ViewProjection, ViewTab
from domain.curation.taste_analysis import Recommendation, TasteAnalysisResult

__all__ = [
    "ConfigurationError",
    "CurationError",
    "CurationValidationError",
    "InsufficientWatchHistoryError",
    "RecordNotFoundError",
    "SchemaError",
    "TransportError",
    "MovieDetails",
    "SearchResult",
    "ListStatus",
    "MovieRecord",
    "FeedbackFlag",
    "ListLayout",
    "ViewProjection",
    "ViewTab",
    "Recommendation",
    "TasteAnalysisResult",
]

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from application.curation.curator_session import CuratorSession
from domain.curation.movie_record import MovieRecord
from domain.curation.policy import MovieCard, RecordChange, SearchCard, ViewProjection
from domain.curation.taste_analysis import TasteAnalysisResult

ListStatusValue = Literal["to-watch", "watched"]
TabValue = Literal["search", "to-watch", "watched"]


class AddMovieRequest(BaseModel):
    """Add a movie to one list"""
    title: str = Field(..., description="Movie title (matched case-insensitively against existing records)")
    status: ListStatusValue = Field(..., description="Target list")
    external_id: Optional[str] = Field(default=None, description="Search result id (drives the 'Added!' flag)")


class SearchQueryRequest(BaseModel):
    query: str = Field("", description="Raw search box text")


class TabRequest(BaseModel):
    tab: TabValue


class MovieOut(BaseModel):
    id: str
    title: str
    watched: bool
    on_watchlist: bool
    description: Optional[str] = None
    poster_url: Optional[str] = None
    created_at: Optional[datetime] = None
    loading: bool = False
    details_available: bool = False

    @classmethod
    def from_card(cls, card: MovieCard) -> "MovieOut":
        r: MovieRecord = card.record
        return cls(
            id=r.id,
            title=r.title,
            watched=r.watched,
            on_watchlist=r.on_watchlist,
            description=r.description,
            poster_url=r.poster_url,
            created_at=r.created_at,
            loading=card.loading,
            details_available=card.details_available,
        )


class SearchResultOut(BaseModel):
    title: str
    year: Optional[str] = None
    poster_url: Optional[str] = None
    external_id: Optional[str] = None
    added_to_watched: bool = False
    added_to_watchlist: bool = False

    @classmethod
    def from_card(cls, card: SearchCard) -> "SearchResultOut":
        return cls(
            title=card.result.title,
            year=card.result.year,
            poster_url=card.result.poster_url,
            external_id=card.result.external_id,
            added_to_watched=card.added_to_watched,
            added_to_watchlist=card.added_to_watchlist,
        )


class ViewResponse(BaseModel):
    tab: TabValue
    movies: List[MovieOut] = Field(default_factory=list)
    search_results: List[SearchResultOut] = Field(default_factory=list)
    is_searching: bool = False

    @classmethod
    def from_projection(cls, view: ViewProjection) -> "ViewResponse":
        return cls(
            tab=view.tab.value,
            movies=[MovieOut.from_card(c) for c in view.cards],
            search_results=[SearchResultOut.from_card(c) for c in view.search_cards],
            is_searching=view.is_searching,
        )


class AddMovieResponse(BaseModel):
    id: str


class RecordChangeResponse(BaseModel):
    id: str
    deleted: bool
    fields: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_change(cls, record_id: str, change: RecordChange) -> "RecordChangeResponse":
        return cls(id=record_id, deleted=change.delete, fields=dict(change.fields))


class RecommendationOut(BaseModel):
    title: str
    description: Optional[str] = None
    poster_url: Optional[str] = None


class AnalysisResponse(BaseModel):
    title: str
    suggestion: str
    recommendations: List[RecommendationOut]

    @classmethod
    def from_result(cls, result: TasteAnalysisResult) -> "AnalysisResponse":
        return cls(
            title=result.title,
            suggestion=result.suggestion,
            recommendations=[
                RecommendationOut(title=r.title, description=r.description, poster_url=r.poster_url)
                for r in result.recommendations
            ],
        )


class FeedbackOut(BaseModel):
    external_id: str
    status: ListStatusValue


class SessionResponse(BaseModel):
    user_id: Optional[str] = None
    started: bool
    active_tab: TabValue
    search_query: str = ""
    is_searching: bool = False
    is_analyzing: bool = False
    movie_count: int = 0
    pending_ids: List[str] = Field(default_factory=list)
    feedback: Optional[FeedbackOut] = None
    error: Optional[str] = None

    @classmethod
    def from_session(cls, session: CuratorSession) -> "SessionResponse":
        feedback = session.feedback
        return cls(
            user_id=session.user_id,
            started=session.started,
            active_tab=session.active_tab.value,
            search_query=session.search_query,
            is_searching=session.is_searching,
            is_analyzing=session.is_analyzing,
            movie_count=len(session.movies),
            pending_ids=sorted(session.pending_ids),
            feedback=(
                FeedbackOut(external_id=feedback.external_id, status=feedback.status.value)
                if feedback is not None
                else None
            ),
            error=session.error,
        )


class ErrorResponse(BaseModel):
    kind: str
    detail: str

from application.curation.collection_watcher import CollectionWatcher, records_from_snapshot
from application.curation.curator_session import CuratorOptions, CuratorSession
from application.curation.debounce import Debouncer
from application.curation.enrichment_tracker import EnrichmentTracker
from application.curation.movie_collection import UserMovieCollection
from application.curation.taste_analysis_service import TasteAnalysisService

__all__ = [
    "CollectionWatcher",
    "records_from_snapshot",
    "CuratorOptions",
    "CuratorSession",
    "Debouncer",
    "EnrichmentTracker",
    "UserMovieCollection",
    "TasteAnalysisService",
]

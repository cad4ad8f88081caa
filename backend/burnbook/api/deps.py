"""API dependencies."""
from burnbook.services.ingestion import IngestionOrchestrator
from burnbook.services.query import QueryAnswerer


def get_orchestrator() -> IngestionOrchestrator:
    """Ingestion orchestrator bound to the application session factory."""
    return IngestionOrchestrator()


def get_query_answerer() -> QueryAnswerer:
    return QueryAnswerer()

from fastapi import APIRouter, Request

from midgard_history.core.config import settings
from midgard_history.schemas.api import IngestionStatus, SeriesStatus
from midgard_history.services.checkpoint_store import CheckpointStore
from midgard_history.services.data_quality import data_quality
from midgard_history.services.series import SERIES

router = APIRouter()


@router.get("/ingestion-status", response_model=IngestionStatus)
def ingestion_status(request: Request) -> IngestionStatus:
    """Heartbeat: resume boundary and ingestor state per series."""
    checkpoints = CheckpointStore()
    ingestors = {i.name: i for i in getattr(request.app.state, "ingestors", None) or []}
    items = []
    for definition in SERIES.values():
        name = definition.name.value
        ingestor = ingestors.get(name)
        last = ingestor.last_result if ingestor else None
        items.append(
            SeriesStatus(
                series=name,
                last_boundary=checkpoints.last_boundary(definition),
                state=ingestor.state.value if ingestor else None,
                last_fetch_state=last.state.value if last else None,
                last_fetch_written=last.written if last else None,
                malformed_values=data_quality.count(name),
            )
        )
    return IngestionStatus(
        scheduler_enabled=settings.enable_scheduler,
        series=items,
        data_quality=data_quality.snapshot(),
    )

from pydantic import BaseModel


class CleanupSummary(BaseModel):
    """Outcome of one expiry sweep. For observability only."""
    processed_count: int = 0
    deleted_count: int = 0
    error_count: int = 0
    purged_sessions: int = 0
    purged_shares: int = 0

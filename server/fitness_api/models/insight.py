"""AI insight model."""
from .base import CamelModel


class Insight(CamelModel):
    """Natural-language insight generated from recent metrics."""

    id: int
    user_id: str
    content: str
    type: str = "daily"
    is_read: bool = False
    generated_at: str

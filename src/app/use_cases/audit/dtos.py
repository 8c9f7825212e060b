from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class AuditEventItem(BaseModel):
    id: str
    action: str
    actor: Optional[str] = None
    timestamp: str
    metadata: Dict[str, Any]


class AuditEventPage(BaseModel):
    events: List[AuditEventItem]
    next_cursor: Optional[str] = None

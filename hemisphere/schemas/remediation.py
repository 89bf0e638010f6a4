"""
Zombie signal, decision and remediation queue schemas
"""
from typing import Any, Dict, Optional, Tuple
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

ZOMBIE_DETECTION_TYPE = "zombie_item"


class RemediationType(str, Enum):
    ELABORATION = "elaboration"
    FORMAT_SHIFT = "format_shift"
    NOVEL_CONTEXT = "novel_context"
    ENCODING_RESET = "encoding_reset"


class RemediationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


ACTIVE_STATUSES = (RemediationStatus.PENDING, RemediationStatus.IN_PROGRESS)


class ZombieSignals(BaseModel):
    """Behavioural signals for one (learner, item) pair"""
    model_config = ConfigDict(frozen=True)

    lh_rh_divergence: bool = False  # structured recall high, transfer low
    format_dependence: bool = False  # accurate only in the dominant response type
    speed_without_depth: bool = False  # fast answers, shallow elaboration
    stalled_difficulty: bool = False  # many accurate reviews, tier not advancing


class RemediationDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=0, le=1)
    is_zombie: bool
    remediation_type: RemediationType


class RemediationEntry(BaseModel):
    """Row in the remediation queue, unique per (user, item, detection type)"""
    user_id: str
    item_id: str
    kc_id: str
    detection_type: str = ZOMBIE_DETECTION_TYPE
    zombie_score: float = Field(0.0, ge=0, le=1)
    signals: Dict[str, Any] = Field(default_factory=dict)
    remediation_type: RemediationType
    status: RemediationStatus = RemediationStatus.PENDING
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.user_id, self.item_id, self.detection_type)

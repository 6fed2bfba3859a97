"""Event and speaker enums."""

from enum import Enum


class EventStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    LIVE = "LIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Events that accept public submissions and registrations
PUBLIC_EVENT_STATUSES = {EventStatus.PUBLISHED, EventStatus.LIVE}


class SpeakerStatus(str, Enum):
    INVITED = "INVITED"
    CONFIRMED = "CONFIRMED"
    DECLINED = "DECLINED"
    CANCELLED = "CANCELLED"

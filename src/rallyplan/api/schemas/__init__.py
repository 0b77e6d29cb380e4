"""Pydantic models for API I/O."""

from .allocation import (
    AllocationRequest,
    AllocationSummaryResponse,
    AutoAssignResponse,
    CaptainChangeRequest,
    CaptainChangeResponse,
    DraftPayload,
    NoticeResponse,
    OverflowResponse,
    SelectionPayload,
    SlotClearRequest,
    SlotOptionsRequest,
    SlotOptionsResponse,
    SlotSaveRequest,
    SlotSaveResponse,
)
from .schedule import ScheduleRequest

__all__ = [
    "AllocationRequest",
    "AllocationSummaryResponse",
    "AutoAssignResponse",
    "CaptainChangeRequest",
    "CaptainChangeResponse",
    "DraftPayload",
    "NoticeResponse",
    "OverflowResponse",
    "ScheduleRequest",
    "SelectionPayload",
    "SlotClearRequest",
    "SlotOptionsRequest",
    "SlotOptionsResponse",
    "SlotSaveRequest",
    "SlotSaveResponse",
]

"""
Pydantic schemas for API responses and requests
"""

from survivor_hub.schemas.auth import ActorResponse, LoginRequest, RegisterRequest, TokenResponse
from survivor_hub.schemas.chat import ChatMessage, ChatRequest
from survivor_hub.schemas.directory import (
    ResourceCreate,
    ResourceResponse,
    ResourceUpdate,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from survivor_hub.schemas.report import (
    AdminStatisticsResponse,
    EvidenceFileResponse,
    ReportDetailResponse,
    ReportListResponse,
    ReportResponse,
    ReportStatusUpdate,
    ReportSubmitResponse,
    ReportTrackingResponse,
    StatusChangeResponse,
    UserReportSummary,
)
from survivor_hub.schemas.translation import (
    TranslationBundleResponse,
    TranslationCreate,
    TranslationResponse,
    TranslationUpdate,
)
from survivor_hub.schemas.user import (
    PreferencesResponse,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
)

__all__ = [
    "ActorResponse",
    "AdminStatisticsResponse",
    "ChatMessage",
    "ChatRequest",
    "EvidenceFileResponse",
    "LoginRequest",
    "PreferencesResponse",
    "PreferencesUpdate",
    "ProfileResponse",
    "ProfileUpdate",
    "RegisterRequest",
    "ReportDetailResponse",
    "ReportListResponse",
    "ReportResponse",
    "ReportStatusUpdate",
    "ReportSubmitResponse",
    "ReportTrackingResponse",
    "ResourceCreate",
    "ResourceResponse",
    "ResourceUpdate",
    "ServiceCreate",
    "ServiceResponse",
    "ServiceUpdate",
    "StatusChangeResponse",
    "TokenResponse",
    "TranslationBundleResponse",
    "TranslationCreate",
    "TranslationResponse",
    "TranslationUpdate",
    "UserReportSummary",
]

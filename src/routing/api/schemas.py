"""Pydantic request/response models for the Routing API.

API schemas are separate from Protean commands (anti-corruption pattern).
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class PublishEventRequest(BaseModel):
    service: str = Field(..., examples=["ImportProcessor"])
    topic: str = Field(..., examples=["DailyImportFailure"])
    severity: str = Field("Info", examples=["Urgent"])
    client_id: str | None = None
    template_id: str | None = None
    subject: str | None = Field(None, max_length=500)
    body: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    saga_id: str | None = None
    correlation_id: str | None = None


class DeliveryStatusRequest(BaseModel):
    status: str = Field(..., examples=["Delivered"], description="Processing, Delivered, Failed or Bounced")
    error: str | None = None
    external_message_id: str | None = None
    occurred_at: datetime | None = None


class RequeueRequest(BaseModel):
    requested_by: str | None = None


class ProcessRetriesRequest(BaseModel):
    as_of: datetime | None = None
    limit: int = Field(100, ge=1, le=1000)


class RouteUnprocessedRequest(BaseModel):
    limit: int = Field(100, ge=1, le=1000)


class CreateContactRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str | None = None
    phone: str | None = None
    organization: str | None = None
    user_id: str | None = None
    notes: str | None = None


class UpdateContactRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    organization: str | None = None
    user_id: str | None = None
    notes: str | None = None


class CreateGroupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    client_id: str | None = None
    description: str | None = None
    purpose: str = Field("Production", examples=["TestOnly"])
    tags: list[str] = Field(default_factory=list)


class AddMemberRequest(BaseModel):
    contact_id: str
    added_by: str | None = None


class CreatePolicyRequest(BaseModel):
    service: str
    topic: str
    channel: str = Field(..., examples=["Email"])
    recipient_group_id: str
    role: str = "To"
    client_id: str | None = None
    min_severity: str | None = None
    priority: int = 0
    updated_by: str | None = None


class TogglePolicyRequest(BaseModel):
    updated_by: str | None = None


class CreateTemplateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=500)
    html_content: str | None = None
    text_content: str | None = None
    description: str | None = None
    template_type: str = "notification"
    test_data: dict[str, Any] | None = None


class PreviewTemplateRequest(BaseModel):
    data: dict[str, Any] | None = None


class CreateMappingRequest(BaseModel):
    service: str
    topic: str
    template_id: str
    client_id: str | None = None
    priority: int = 0
    updated_by: str | None = None


class SampleSendRequest(BaseModel):
    template_id: str
    data: dict[str, Any] | None = None
    reason: str | None = Field(None, max_length=500)
    initiated_by: str | None = None


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class IdResponse(BaseModel):
    id: str


class CountResponse(BaseModel):
    count: int


class PublishEventResponse(BaseModel):
    event_id: str
    delivery_ids: list[str]
    already_processed: bool = False


class DeliveryResponse(BaseModel):
    delivery_id: str
    outbound_event_id: str
    contact_id: str
    channel: str
    role: str
    status: str
    attempt_count: int
    created_at: datetime | None = None
    delivered_at: datetime | None = None
    failed_at: datetime | None = None
    next_retry_at: datetime | None = None
    error_message: str | None = None
    external_message_id: str | None = None


class EventResponse(BaseModel):
    event_id: str
    service: str
    topic: str
    client_id: str | None = None
    severity: str
    template_id: str | None = None
    subject: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    saga_id: str | None = None
    correlation_id: str | None = None
    created_at: datetime | None = None
    processed_at: datetime | None = None


class EventDetailResponse(EventResponse):
    deliveries: list[DeliveryResponse] = Field(default_factory=list)
    status_counts: dict[str, int] = Field(default_factory=dict)


class EventListResponse(BaseModel):
    events: list[EventResponse]


class FailedDeliveryResponse(BaseModel):
    delivery_id: str
    outbound_event_id: str
    contact_id: str
    channel: str
    status: str
    error_message: str | None = None
    attempt_count: int
    exhausted: bool
    failed_at: datetime | None = None
    next_retry_at: datetime | None = None


class ChannelHealthResponse(BaseModel):
    channel: str
    status: str
    last_successful_delivery_at: datetime | None = None
    error_count_24h: int
    total_24h: int
    delivered_24h: int
    success_rate: float | None = None


class ContactResponse(BaseModel):
    contact_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    organization: str | None = None
    user_id: str | None = None
    is_active: bool


class GroupResponse(BaseModel):
    group_id: str
    name: str
    client_id: str | None = None
    description: str | None = None
    purpose: str
    tags: list[str] = Field(default_factory=list)
    is_active: bool
    member_count: int


class PolicyResponse(BaseModel):
    policy_id: str
    service: str
    topic: str
    client_id: str | None = None
    min_severity: str | None = None
    channel: str
    recipient_group_id: str
    role: str
    priority: int
    is_enabled: bool


class RenderedContentResponse(BaseModel):
    subject: str
    html_body: str | None = None
    plain_text_body: str | None = None
    template_id: str | None = None

"""FastAPI routes for routing configuration: contacts, groups, policies, templates."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from routing.api.schemas import (
    AddMemberRequest,
    ContactResponse,
    CreateContactRequest,
    CreateGroupRequest,
    CreateMappingRequest,
    CreatePolicyRequest,
    CreateTemplateRequest,
    GroupResponse,
    IdResponse,
    PolicyResponse,
    PreviewTemplateRequest,
    RenderedContentResponse,
    SampleSendRequest,
    StatusResponse,
    TogglePolicyRequest,
    UpdateContactRequest,
)
from routing.directory.contact import Contact
from routing.directory.contact_management import (
    CreateContact,
    DeactivateContact,
    ReactivateContact,
    UpdateContact,
)
from routing.directory.group import RecipientGroup
from routing.directory.group_management import AddGroupMember, CreateRecipientGroup, RemoveGroupMember
from routing.directory.queries import get_members
from routing.policy.management import CreateRoutingPolicy, DeleteRoutingPolicy, ToggleRoutingPolicy
from routing.policy.policy import RoutingPolicy
from routing.template.management import CreateMessageTemplate, CreateTopicTemplateMapping
from routing.template.resolver import preview_template
from routing.template.sample_send import SendSampleMessage

admin_router = APIRouter(prefix="/routing/admin", tags=["routing-admin"])


def _contact_response(c) -> ContactResponse:
    return ContactResponse(
        contact_id=str(c.id),
        name=c.name,
        email=c.email or None,
        phone=c.phone,
        organization=c.organization,
        user_id=c.user_id,
        is_active=bool(c.is_active),
    )


def _group_response(g) -> GroupResponse:
    return GroupResponse(
        group_id=str(g.id),
        name=g.name,
        client_id=g.client_id,
        description=g.description,
        purpose=g.purpose,
        tags=g.tag_list,
        is_active=bool(g.is_active),
        member_count=len(g.memberships),
    )


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------
@admin_router.get("/contacts", response_model=list[ContactResponse])
async def list_contacts(search: str | None = None, include_inactive: bool = False) -> list[ContactResponse]:
    repo = current_domain.repository_for(Contact)
    if search:
        contacts = repo.search(search, include_inactive=include_inactive)
    else:
        contacts = repo.list_contacts(include_inactive=include_inactive)
    return [_contact_response(c) for c in contacts]


@admin_router.post("/contacts", status_code=201, response_model=IdResponse)
async def create_contact(body: CreateContactRequest) -> IdResponse:
    command = CreateContact(**body.model_dump())
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@admin_router.put("/contacts/{contact_id}", response_model=StatusResponse)
async def update_contact(contact_id: str, body: UpdateContactRequest) -> StatusResponse:
    command = UpdateContact(contact_id=contact_id, **body.model_dump())
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.post("/contacts/{contact_id}/deactivate", response_model=StatusResponse)
async def deactivate_contact(contact_id: str) -> StatusResponse:
    current_domain.process(DeactivateContact(contact_id=contact_id), asynchronous=False)
    return StatusResponse()


@admin_router.post("/contacts/{contact_id}/reactivate", response_model=StatusResponse)
async def reactivate_contact(contact_id: str) -> StatusResponse:
    current_domain.process(ReactivateContact(contact_id=contact_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Recipient groups
# ---------------------------------------------------------------------------
@admin_router.get("/groups", response_model=list[GroupResponse])
async def list_groups(include_inactive: bool = False) -> list[GroupResponse]:
    groups = current_domain.repository_for(RecipientGroup).list_groups(include_inactive=include_inactive)
    return [_group_response(g) for g in groups]


@admin_router.post("/groups", status_code=201, response_model=IdResponse)
async def create_group(body: CreateGroupRequest) -> IdResponse:
    command = CreateRecipientGroup(
        name=body.name,
        client_id=body.client_id,
        description=body.description,
        purpose=body.purpose,
        tags=json.dumps(body.tags),
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@admin_router.get("/groups/{group_id}/members", response_model=list[ContactResponse])
async def list_members(group_id: str) -> list[ContactResponse]:
    return [_contact_response(c) for c in get_members(group_id)]


@admin_router.post("/groups/{group_id}/members", status_code=201, response_model=StatusResponse)
async def add_member(group_id: str, body: AddMemberRequest) -> StatusResponse:
    command = AddGroupMember(group_id=group_id, contact_id=body.contact_id, added_by=body.added_by)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.delete("/groups/{group_id}/members/{contact_id}", response_model=StatusResponse)
async def remove_member(group_id: str, contact_id: str) -> StatusResponse:
    current_domain.process(RemoveGroupMember(group_id=group_id, contact_id=contact_id), asynchronous=False)
    return StatusResponse()


@admin_router.post("/groups/{group_id}/sample-send", status_code=201, response_model=IdResponse)
async def sample_send(group_id: str, body: SampleSendRequest) -> IdResponse:
    """Send a rendered template to a TestOnly/Both group."""
    command = SendSampleMessage(
        group_id=group_id,
        template_id=body.template_id,
        data=json.dumps(body.data) if body.data is not None else None,
        reason=body.reason,
        initiated_by=body.initiated_by,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Routing policies
# ---------------------------------------------------------------------------
@admin_router.get("/policies", response_model=list[PolicyResponse])
async def list_policies(include_disabled: bool = False) -> list[PolicyResponse]:
    policies = current_domain.repository_for(RoutingPolicy).list_policies(include_disabled=include_disabled)
    return [
        PolicyResponse(
            policy_id=str(p.id),
            service=p.service,
            topic=p.topic,
            client_id=p.client_id,
            min_severity=p.min_severity,
            channel=p.channel,
            recipient_group_id=str(p.recipient_group_id),
            role=p.role,
            priority=p.priority or 0,
            is_enabled=bool(p.is_enabled),
        )
        for p in policies
    ]


@admin_router.post("/policies", status_code=201, response_model=IdResponse)
async def create_policy(body: CreatePolicyRequest) -> IdResponse:
    command = CreateRoutingPolicy(**body.model_dump())
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@admin_router.post("/policies/{policy_id}/toggle", response_model=StatusResponse)
async def toggle_policy(policy_id: str, body: TogglePolicyRequest | None = None) -> StatusResponse:
    command = ToggleRoutingPolicy(policy_id=policy_id, updated_by=body.updated_by if body else None)
    is_enabled = current_domain.process(command, asynchronous=False)
    return StatusResponse(status="enabled" if is_enabled else "disabled")


@admin_router.delete("/policies/{policy_id}", response_model=StatusResponse)
async def delete_policy(policy_id: str) -> StatusResponse:
    current_domain.process(DeleteRoutingPolicy(policy_id=policy_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------
@admin_router.post("/templates", status_code=201, response_model=IdResponse)
async def create_template(body: CreateTemplateRequest) -> IdResponse:
    command = CreateMessageTemplate(
        name=body.name,
        subject=body.subject,
        html_content=body.html_content,
        text_content=body.text_content,
        description=body.description,
        template_type=body.template_type,
        test_data=json.dumps(body.test_data) if body.test_data is not None else None,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@admin_router.post("/templates/{template_id}/preview", response_model=RenderedContentResponse)
async def preview(template_id: str, body: PreviewTemplateRequest | None = None) -> RenderedContentResponse:
    content = preview_template(template_id, body.data if body else None)
    return RenderedContentResponse(
        subject=content.subject,
        html_body=content.html_body,
        plain_text_body=content.plain_text_body,
        template_id=content.template_id,
    )


@admin_router.post("/template-mappings", status_code=201, response_model=IdResponse)
async def create_mapping(body: CreateMappingRequest) -> IdResponse:
    command = CreateTopicTemplateMapping(**body.model_dump())
    return IdResponse(id=current_domain.process(command, asynchronous=False))

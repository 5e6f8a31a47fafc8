"""Enquiry API endpoints.

Provides the public storefront submission endpoint and the admin
workflow endpoints (list, update, reopen, communication log, deep links).
"""

from enum import Enum
from typing import Annotated, Any, TypeVar

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status

from horeca.api.products import pagination_to_schema
from horeca.api.schemas import (
    EnquiryCreateRequest,
    EnquiryItemSchema,
    EnquiryListResponse,
    EnquiryMessageRequest,
    EnquiryMessageResponse,
    EnquiryMessageSchema,
    EnquiryMessagesResponse,
    EnquiryResponse,
    EnquirySchema,
    EnquiryUpdateRequest,
    ErrorResponse,
    WhatsAppLinkResponse,
)
from horeca.application.enquiry_service import (
    ENQUIRY_LIST_DEFAULT_LIMIT,
    EnquiryLineInput,
    EnquiryQuery,
    EnquiryService,
    EnquirySubmission,
    get_enquiry_service,
)
from horeca.catalog.search import PaginationParams
from horeca.domain.entities import Enquiry, EnquiryMessage
from horeca.domain.exceptions import ValidationError
from horeca.domain.state_machines import EnquiryStatus
from horeca.domain.value_objects import MessageChannel, MessageSender, Priority, UserType

router = APIRouter(prefix="/enquiries", tags=["Enquiries"])

LIST_CACHE_CONTROL = "public, s-maxage=30, stale-while-revalidate=60"

E = TypeVar("E", bound=Enum)


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> EnquiryService:
    """Get enquiry service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_enquiry_service(request_id=request_id)


def _parse_choice(enum_cls: type[E], value: Any, field_name: str) -> E:
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid {field_name} '{value}'",
            field=field_name,
            details={"allowed": [m.value for m in enum_cls]},
        ) from None


def _optional_choice(enum_cls: type[E], value: Any, field_name: str) -> E | None:
    return _parse_choice(enum_cls, value, field_name) if value else None


# ============================================================================
# Converters
# ============================================================================


def message_to_schema(entry: EnquiryMessage) -> EnquiryMessageSchema:
    return EnquiryMessageSchema(
        id=entry.id,
        sender=entry.sender.value,
        channel=entry.channel.value,
        message=entry.message,
        created_by=entry.created_by,
        created_at=entry.created_at,
    )


def enquiry_to_schema(enquiry: Enquiry) -> EnquirySchema:
    """Convert Enquiry aggregate to response schema."""
    return EnquirySchema(
        id=enquiry.id,
        human_enquiry_id=enquiry.human_enquiry_id,
        phone=enquiry.phone,
        name=enquiry.name,
        email=enquiry.email,
        company=enquiry.company,
        state=enquiry.state,
        customer_id=enquiry.customer_id,
        source=enquiry.source,
        user_type=enquiry.user_type.value,
        type=enquiry.type.value,
        categories=list(enquiry.categories),
        message=enquiry.message,
        priority=enquiry.priority.value,
        status=enquiry.status.value,
        assigned_to=enquiry.assigned_to,
        notes=enquiry.notes,
        items=[
            EnquiryItemSchema(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                color_name=item.color_name,
                notes=item.notes,
            )
            for item in enquiry.items
        ],
        messages=[message_to_schema(m) for m in sorted(enquiry.messages, key=lambda m: m.created_at)],
        created_at=enquiry.created_at,
        updated_at=enquiry.updated_at,
    )


def _line_inputs(lines: list) -> list[EnquiryLineInput]:
    return [
        EnquiryLineInput(
            product_name=line.product_name,
            product_id=line.product_id,
            quantity=line.quantity,
            color_name=line.color_name,
            notes=line.notes,
        )
        for line in lines
    ]


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=EnquiryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
    summary="Submit an enquiry",
    description=(
        "Public storefront submission. Lines come from products, else the "
        "attached cart snapshot, else (with use_session_cart) the session cart."
    ),
)
async def submit_enquiry(
    body: EnquiryCreateRequest,
    service: Annotated[EnquiryService, Depends(get_service)],
    x_session_id: Annotated[str | None, Header()] = None,
) -> EnquiryResponse:
    """Submit an enquiry.

    Args:
        body: Contact details, message and optional lines.
        service: Enquiry service.
        x_session_id: Storefront session, used when the session cart
            supplies the lines.

    Returns:
        The created enquiry, status new.
    """
    submission = EnquirySubmission(
        phone=body.phone,
        name=body.name,
        email=body.email,
        company=body.company,
        state=body.state,
        source=body.source,
        user_type=_parse_choice(UserType, body.user_type or UserType.UNKNOWN.value, "user_type"),
        categories=list(body.categories),
        message=body.message,
        products=_line_inputs(body.products),
        attached_cart_snapshot=_line_inputs(body.attached_cart_snapshot),
        session_id=x_session_id if body.use_session_cart else None,
    )
    enquiry = await service.submit(submission)
    return EnquiryResponse(enquiry=enquiry_to_schema(enquiry))


@router.get(
    "",
    response_model=EnquiryListResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="List enquiries",
    description="Admin list, newest first, with per-status counts that ignore the status filter.",
)
async def list_enquiries(
    response: Response,
    service: Annotated[EnquiryService, Depends(get_service)],
    enquiry_status: Annotated[str | None, Query(alias="status")] = None,
    priority: str | None = None,
    assigned_to: str | None = None,
    category: str | None = None,
    search: str | None = None,
    limit: int = ENQUIRY_LIST_DEFAULT_LIMIT,
    skip: int = 0,
) -> EnquiryListResponse:
    query = EnquiryQuery(
        status=_optional_choice(EnquiryStatus, enquiry_status, "status"),
        priority=_optional_choice(Priority, priority, "priority"),
        assigned_to=assigned_to or None,
        category=category or None,
        search=search or None,
    )
    result = await service.list_enquiries(query, PaginationParams(limit=limit, skip=skip))
    response.headers["Cache-Control"] = LIST_CACHE_CONTROL
    return EnquiryListResponse(
        enquiries=[enquiry_to_schema(e) for e in result.items],
        pagination=pagination_to_schema(result),
        status_counts=result.status_counts,
    )


@router.get(
    "/{enquiry_id}",
    response_model=EnquiryResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get an enquiry",
    description="Fetch by internal id or human enquiry id, with items and messages.",
)
async def get_enquiry(
    enquiry_id: str,
    service: Annotated[EnquiryService, Depends(get_service)],
) -> EnquiryResponse:
    enquiry = await service.get_enquiry(enquiry_id)
    return EnquiryResponse(enquiry=enquiry_to_schema(enquiry))


@router.put(
    "/{enquiry_id}",
    response_model=EnquiryResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Update an enquiry",
    description="Change status, priority, assignee or notes. Closed and spam enquiries need an explicit reopen.",
)
async def update_enquiry(
    enquiry_id: str,
    body: EnquiryUpdateRequest,
    service: Annotated[EnquiryService, Depends(get_service)],
) -> EnquiryResponse:
    enquiry = await service.update_enquiry(
        enquiry_id,
        status=_optional_choice(EnquiryStatus, body.status, "status"),
        priority=_optional_choice(Priority, body.priority, "priority"),
        assigned_to=body.assigned_to,
        notes=body.notes,
    )
    return EnquiryResponse(enquiry=enquiry_to_schema(enquiry))


@router.post(
    "/{enquiry_id}/reopen",
    response_model=EnquiryResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Reopen an enquiry",
)
async def reopen_enquiry(
    enquiry_id: str,
    service: Annotated[EnquiryService, Depends(get_service)],
) -> EnquiryResponse:
    enquiry = await service.reopen(enquiry_id)
    return EnquiryResponse(enquiry=enquiry_to_schema(enquiry))


@router.get(
    "/{enquiry_id}/messages",
    response_model=EnquiryMessagesResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="List an enquiry's communication log",
)
async def list_messages(
    enquiry_id: str,
    service: Annotated[EnquiryService, Depends(get_service)],
) -> EnquiryMessagesResponse:
    messages = await service.list_messages(enquiry_id)
    return EnquiryMessagesResponse(messages=[message_to_schema(m) for m in messages], total=len(messages))


@router.post(
    "/{enquiry_id}/messages",
    response_model=EnquiryMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Append a communication log entry",
)
async def add_message(
    enquiry_id: str,
    body: EnquiryMessageRequest,
    service: Annotated[EnquiryService, Depends(get_service)],
) -> EnquiryMessageResponse:
    entry = await service.add_message(
        enquiry_id,
        body.message,
        sender=_parse_choice(MessageSender, body.sender, "sender"),
        channel=_parse_choice(MessageChannel, body.channel, "channel"),
        created_by=body.created_by,
    )
    return EnquiryMessageResponse(message=message_to_schema(entry))


@router.get(
    "/{enquiry_id}/whatsapp-link",
    response_model=WhatsAppLinkResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Build WhatsApp deep links",
)
async def whatsapp_link(
    enquiry_id: str,
    service: Annotated[EnquiryService, Depends(get_service)],
    message: str = "",
) -> WhatsAppLinkResponse:
    links = await service.whatsapp_links(enquiry_id, message)
    return WhatsAppLinkResponse(**links)

"""Enquiry application service.

Handles storefront enquiry submission (customer linking, line items, type
and priority derivation) and the admin workflow: listing with per-status
counts, status transitions, explicit reopen, and the communication log.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from horeca.application.cart_service import CartService, get_cart_service
from horeca.catalog.repository import ProductRepository, get_product_repository
from horeca.catalog.search import PaginatedResult, PaginationParams
from horeca.domain.base import new_id, utcnow
from horeca.domain.entities import Customer, Enquiry, EnquiryMessage
from horeca.domain.exceptions import NotFoundError, ValidationError
from horeca.domain.state_machines import EnquiryStatus
from horeca.domain.value_objects import MessageChannel, MessageSender, Priority, UserType
from horeca.infrastructure.cache import TTLCache
from horeca.infrastructure.config import settings
from horeca.infrastructure.messaging import build_whatsapp_link, format_enquiry_message, phone_digits

logger = structlog.get_logger()

ENQUIRY_LIST_DEFAULT_LIMIT = 50
PLACEHOLDER_EMAIL_DOMAIN = "enquiry.invalid"


# ============================================================================
# In-Memory Repositories
# ============================================================================


class CustomerRepository:
    """In-memory repository for customers."""

    def __init__(self) -> None:
        self._customers: dict[str, Customer] = {}

    def save(self, customer: Customer) -> None:
        self._customers[customer.id] = customer

    def get(self, customer_id: str) -> Customer | None:
        return self._customers.get(customer_id)

    def find_by_email_or_phone(self, email: str | None, phone: str | None) -> Customer | None:
        """First customer whose email or phone matches.

        Email is compared lowercased.
        """
        email = (email or "").strip().lower()
        phone = (phone or "").strip()
        for customer in self._customers.values():
            if (email and customer.email == email) or (phone and customer.phone == phone):
                return customer
        return None

    def count(self) -> int:
        return len(self._customers)


class EnquiryRepository:
    """In-memory repository for enquiries.

    An enquiry is stored together with its line items in a single
    assignment, so readers never observe an enquiry without its lines.
    """

    def __init__(self) -> None:
        self._enquiries: dict[str, Enquiry] = {}

    def save(self, enquiry: Enquiry) -> None:
        self._enquiries[enquiry.id] = enquiry

    def get(self, enquiry_id: str) -> Enquiry | None:
        return self._enquiries.get(enquiry_id)

    def get_by_human_id(self, human_enquiry_id: str) -> Enquiry | None:
        return next((e for e in self._enquiries.values() if e.human_enquiry_id == human_enquiry_id), None)

    def list_all(self) -> list[Enquiry]:
        """All enquiries, newest first."""
        return sorted(self._enquiries.values(), key=lambda e: e.created_at, reverse=True)

    def count_with_prefix(self, prefix: str) -> int:
        return sum(1 for e in self._enquiries.values() if e.human_enquiry_id.startswith(prefix))

    def count(self) -> int:
        return len(self._enquiries)


_customer_repo: CustomerRepository | None = None
_enquiry_repo: EnquiryRepository | None = None
_status_counts_cache: TTLCache[dict[str, int]] | None = None


def get_customer_repository() -> CustomerRepository:
    """Get customer repository singleton."""
    global _customer_repo
    if _customer_repo is None:
        _customer_repo = CustomerRepository()
    return _customer_repo


def get_enquiry_repository() -> EnquiryRepository:
    """Get enquiry repository singleton."""
    global _enquiry_repo
    if _enquiry_repo is None:
        _enquiry_repo = EnquiryRepository()
    return _enquiry_repo


def get_status_counts_cache() -> TTLCache[dict[str, int]]:
    """Get the per-status enquiry count cache singleton."""
    global _status_counts_cache
    if _status_counts_cache is None:
        _status_counts_cache = TTLCache(ttl_seconds=min(settings.status_counts_ttl_seconds, 60))
    return _status_counts_cache


def reset_enquiry_repositories() -> None:
    """Reset enquiry, customer and count-cache state (for testing)."""
    global _customer_repo, _enquiry_repo, _status_counts_cache
    _customer_repo = CustomerRepository()
    _enquiry_repo = EnquiryRepository()
    _status_counts_cache = None


# ============================================================================
# Query and Input Types
# ============================================================================


@dataclass
class EnquiryLineInput:
    """A requested enquiry line."""

    product_name: str = ""
    product_id: str | None = None
    quantity: int = 1
    color_name: str | None = None
    notes: str = ""


@dataclass
class EnquirySubmission:
    """Storefront enquiry submission.

    Attributes:
        phone: Contact phone, required.
        name: Contact name.
        email: Contact email.
        company: Company name.
        state: Region or state.
        source: Page the enquiry came from.
        user_type: Declared user type.
        categories: Categories of interest.
        message: Free-text message.
        products: Explicit line items.
        attached_cart_snapshot: Alternative line source, used when products is empty.
        session_id: Session whose cart supplies the lines when neither list
            is given; the cart is cleared after a successful submission.
    """

    phone: str
    name: str = ""
    email: str = ""
    company: str = ""
    state: str = ""
    source: str = "website-form"
    user_type: UserType = UserType.UNKNOWN
    categories: list[str] = field(default_factory=list)
    message: str = ""
    products: list[EnquiryLineInput] = field(default_factory=list)
    attached_cart_snapshot: list[EnquiryLineInput] = field(default_factory=list)
    session_id: str | None = None


@dataclass
class EnquiryQuery:
    """Admin list filters.

    Attributes:
        status: Exact status.
        priority: Exact priority.
        assigned_to: Exact assignee.
        category: Category the enquiry lists.
        search: Substring over name, email, phone, message and company.
    """

    status: EnquiryStatus | None = None
    priority: Priority | None = None
    assigned_to: str | None = None
    category: str | None = None
    search: str | None = None

    def cache_key(self) -> tuple[Any, ...]:
        """Key for counts, which ignore the status dimension."""
        return (
            self.priority.value if self.priority else None,
            self.assigned_to,
            self.category,
            (self.search or "").strip().lower() or None,
        )

    def matches(self, enquiry: Enquiry, include_status: bool = True) -> bool:
        if include_status and self.status is not None and enquiry.status != self.status:
            return False
        if self.priority is not None and enquiry.priority != self.priority:
            return False
        if self.assigned_to and enquiry.assigned_to != self.assigned_to:
            return False
        if self.category and self.category not in enquiry.categories:
            return False
        if self.search and self.search.strip() and not enquiry.matches_text(self.search.strip()):
            return False
        return True


# ============================================================================
# Enquiry Service
# ============================================================================


class EnquiryService:
    """Application service for enquiries.

    Submission steps, in order:
    1. Validate the phone
    2. Find or create the customer when name and email are given,
       otherwise back-fill placeholders from the phone
    3-4. Derive type and priority (inside Enquiry.submit)
    5. Persist the enquiry with all its lines at once
    6. Return the created enquiry
    """

    def __init__(
        self,
        enquiry_repo: EnquiryRepository | None = None,
        customer_repo: CustomerRepository | None = None,
        product_repo: ProductRepository | None = None,
        cart_service: CartService | None = None,
        counts_cache: TTLCache[dict[str, int]] | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            enquiry_repo: Enquiry repository.
            customer_repo: Customer repository.
            product_repo: Product repository for line item lookups.
            cart_service: Cart service used for session cart snapshots.
            counts_cache: Per-status count cache.
            request_id: Request ID for correlation.
        """
        self.enquiry_repo = enquiry_repo or get_enquiry_repository()
        self.customer_repo = customer_repo or get_customer_repository()
        self.product_repo = product_repo or get_product_repository()
        self.cart_service = cart_service or get_cart_service(request_id)
        self.counts_cache = counts_cache if counts_cache is not None else get_status_counts_cache()
        self.request_id = request_id

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    async def submit(self, submission: EnquirySubmission) -> Enquiry:
        """Submit a storefront enquiry.

        Args:
            submission: Enquiry fields and lines.

        Returns:
            The created enquiry in status NEW.

        Raises:
            ValidationError: If the phone is empty or a line is invalid.
        """
        phone = (submission.phone or "").strip()
        if not phone:
            raise ValidationError("Phone is required", field="phone")

        name = (submission.name or "").strip()
        email = (submission.email or "").strip().lower()
        customer_id = None
        if name and email:
            customer = self._find_or_create_customer(name, email, phone, submission.company.strip())
            customer_id = customer.id
        else:
            name = name or _placeholder_name(phone)
            email = email or _placeholder_email(phone)

        line_inputs, from_cart = await self._resolve_lines(submission)
        lines = [self._resolve_line(line) for line in line_inputs]

        enquiry = Enquiry.submit(
            human_enquiry_id=self._next_human_id(),
            phone=phone,
            lines=lines,
            name=name,
            email=email,
            company=submission.company.strip(),
            state=submission.state.strip(),
            customer_id=customer_id,
            source=(submission.source or "website-form").strip(),
            user_type=submission.user_type,
            categories=[c for c in submission.categories if c and c.strip()],
            message=submission.message.strip(),
        )
        self.enquiry_repo.save(enquiry)
        self.counts_cache.invalidate()

        if from_cart and submission.session_id:
            await self.cart_service.clear(submission.session_id)

        logger.info(
            "Enquiry created",
            enquiry_id=enquiry.id,
            human_enquiry_id=enquiry.human_enquiry_id,
            enquiry_type=enquiry.type.value,
            priority=enquiry.priority.value,
            item_count=len(enquiry.items),
            customer_id=customer_id,
            request_id=self.request_id,
        )
        return enquiry

    def _find_or_create_customer(self, name: str, email: str, phone: str, company: str) -> Customer:
        customer = self.customer_repo.find_by_email_or_phone(email, phone)
        if customer is None:
            customer = Customer(id=new_id(), phone=phone, name=name, email=email, company_name=company)
            self.customer_repo.save(customer)
            logger.info("Customer created", customer_id=customer.id, request_id=self.request_id)
        elif customer.merge_contact(name, company):
            self.customer_repo.save(customer)
            logger.info("Customer updated", customer_id=customer.id, request_id=self.request_id)
        return customer

    async def _resolve_lines(self, submission: EnquirySubmission) -> tuple[list[EnquiryLineInput], bool]:
        if submission.products:
            return submission.products, False
        if submission.attached_cart_snapshot:
            return submission.attached_cart_snapshot, False
        if submission.session_id:
            cart = await self.cart_service.get_cart(submission.session_id)
            lines = [
                EnquiryLineInput(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    color_name=line.color_name,
                )
                for line in cart.lines
            ]
            return lines, bool(lines)
        return [], False

    def _resolve_line(self, line: EnquiryLineInput) -> dict[str, Any]:
        """Snapshot a line; an unknown product keeps its name with no reference."""
        product = self.product_repo.get(line.product_id) if line.product_id else None
        product_name = (line.product_name or "").strip() or (product.title if product else "")
        if not product_name:
            raise ValidationError(
                "Product name is required for an unknown product",
                field="products",
                details={"product_id": line.product_id},
            )
        if line.product_id and product is None:
            logger.warning(
                "Enquiry line references unknown product",
                product_id=line.product_id,
                product_name=product_name,
                request_id=self.request_id,
            )
        return {
            "product_id": product.id if product else None,
            "product_name": product_name,
            "quantity": line.quantity,
            "color_name": line.color_name or None,
            "notes": line.notes or "",
        }

    def _next_human_id(self, now: datetime | None = None) -> str:
        """Next ``ENQ-YYMMDD-NNNN`` id for the day."""
        prefix = f"ENQ-{(now or utcnow()).strftime('%y%m%d')}-"
        sequence = self.enquiry_repo.count_with_prefix(prefix) + 1
        return f"{prefix}{sequence:04d}"

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_enquiry(self, enquiry_id: str) -> Enquiry:
        """Get an enquiry with its items and messages.

        Accepts the internal id or the human enquiry id.

        Raises:
            NotFoundError: If it does not exist.
        """
        enquiry = self.enquiry_repo.get(enquiry_id) or self.enquiry_repo.get_by_human_id(enquiry_id)
        if enquiry is None:
            raise NotFoundError("Enquiry", enquiry_id)
        return enquiry

    async def list_enquiries(
        self,
        query: EnquiryQuery,
        pagination: PaginationParams,
    ) -> PaginatedResult[Enquiry]:
        """List enquiries newest first with per-status counts.

        Counts cover the filtered set ignoring the status filter and are
        served from a short-lived cache invalidated on every enquiry write.
        """
        matched = [e for e in self.enquiry_repo.list_all() if query.matches(e)]
        page = matched[pagination.skip : pagination.skip + pagination.limit]
        return PaginatedResult(
            items=page,
            total=len(matched),
            limit=pagination.limit,
            skip=pagination.skip,
            status_counts=self.status_counts(query),
        )

    def status_counts(self, query: EnquiryQuery | None = None) -> dict[str, int]:
        query = query or EnquiryQuery()
        key = query.cache_key()
        cached = self.counts_cache.get(key)
        if cached is not None:
            return dict(cached)
        counts = {status.value: 0 for status in EnquiryStatus}
        for enquiry in self.enquiry_repo.list_all():
            if query.matches(enquiry, include_status=False):
                counts[enquiry.status.value] += 1
        self.counts_cache.set(key, counts)
        return dict(counts)

    # -------------------------------------------------------------------------
    # Admin Workflow
    # -------------------------------------------------------------------------

    async def update_enquiry(
        self,
        enquiry_id: str,
        status: EnquiryStatus | None = None,
        priority: Priority | None = None,
        assigned_to: str | None = None,
        notes: str | None = None,
    ) -> Enquiry:
        """Apply status and workflow changes together or not at all.

        Raises:
            NotFoundError: If the enquiry does not exist.
            InvalidStateTransitionError: If the status change is not allowed.
        """
        current = await self.get_enquiry(enquiry_id)
        enquiry = copy.deepcopy(current)
        previous_status = enquiry.status
        if status is not None:
            enquiry.change_status(status)
        changed = enquiry.update_workflow(priority=priority, assigned_to=assigned_to, notes=notes)
        self.enquiry_repo.save(enquiry)
        self.counts_cache.invalidate()

        logger.info(
            "Enquiry updated",
            enquiry_id=enquiry.id,
            from_status=previous_status.value,
            to_status=enquiry.status.value,
            changed_fields=changed,
            request_id=self.request_id,
        )
        return enquiry

    async def reopen(self, enquiry_id: str) -> Enquiry:
        """Move a closed or spam enquiry back to NEW.

        Raises:
            NotFoundError: If the enquiry does not exist.
            InvalidStateTransitionError: If it is not closed or spam.
        """
        enquiry = copy.deepcopy(await self.get_enquiry(enquiry_id))
        previous_status = enquiry.status
        enquiry.reopen()
        self.enquiry_repo.save(enquiry)
        self.counts_cache.invalidate()
        logger.info(
            "Enquiry reopened",
            enquiry_id=enquiry.id,
            from_status=previous_status.value,
            request_id=self.request_id,
        )
        return enquiry

    async def add_message(
        self,
        enquiry_id: str,
        message: str,
        sender: MessageSender = MessageSender.ADMIN,
        channel: MessageChannel = MessageChannel.INTERNAL_NOTE,
        created_by: str = "",
    ) -> EnquiryMessage:
        """Append a communication log entry; the status is unchanged.

        Raises:
            NotFoundError: If the enquiry does not exist.
            ValidationError: If the message is empty.
        """
        enquiry = copy.deepcopy(await self.get_enquiry(enquiry_id))
        entry = enquiry.add_message(message, sender=sender, channel=channel, created_by=created_by)
        self.enquiry_repo.save(enquiry)
        self.counts_cache.invalidate()
        logger.info(
            "Enquiry message added",
            enquiry_id=enquiry.id,
            sender=sender.value,
            channel=channel.value,
            request_id=self.request_id,
        )
        return entry

    async def list_messages(self, enquiry_id: str) -> list[EnquiryMessage]:
        enquiry = await self.get_enquiry(enquiry_id)
        return sorted(enquiry.messages, key=lambda m: m.created_at)

    async def whatsapp_links(self, enquiry_id: str, message: str = "") -> dict[str, str | None]:
        """Deep links for an enquiry.

        Returns:
            ``customer_link`` for an admin reply to the enquirer and
            ``business_link`` carrying the enquiry summary to the business
            number (None when no business number is configured).
        """
        enquiry = await self.get_enquiry(enquiry_id)
        summary = format_enquiry_message(
            enquiry.human_enquiry_id,
            enquiry.name,
            enquiry.phone,
            [(item.product_name, item.quantity) for item in enquiry.items],
            message=enquiry.message,
            company=enquiry.company,
        )
        business_number = phone_digits(settings.whatsapp_business_number)
        return {
            "customer_link": build_whatsapp_link(enquiry.phone, message),
            "business_link": build_whatsapp_link(business_number, summary) if business_number else None,
        }


def _placeholder_name(phone: str) -> str:
    digits = phone_digits(phone) or phone
    return f"Guest {digits[-4:]}"


def _placeholder_email(phone: str) -> str:
    digits = phone_digits(phone) or "unknown"
    return f"{digits}@{PLACEHOLDER_EMAIL_DOMAIN}"


def get_enquiry_service(request_id: str | None = None) -> EnquiryService:
    """Get enquiry service instance.

    Args:
        request_id: Request ID for correlation.

    Returns:
        EnquiryService instance.
    """
    return EnquiryService(request_id=request_id)

import typing as t
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import AwareDatetime, EmailStr, Field, StringConstraints

from accounts.schema import MinimalUserSchema
from common.schema import OneToOneFiftyString, StrippedString
from events.models import AttendanceRecord, Event, MerchandiseVariant, Registration, Team, TeamInvite, TeamMember
from events.models.custom_form import CustomFormField

# ---- Events ----


class MerchandiseVariantSchema(ModelSchema):
    class Meta:
        model = MerchandiseVariant
        fields = ["id", "size", "color", "stock_quantity", "price"]


class MerchandiseVariantCreateSchema(Schema):
    size: t.Annotated[str, StringConstraints(min_length=1, max_length=20, strip_whitespace=True)]
    color: t.Annotated[str, StringConstraints(min_length=1, max_length=40, strip_whitespace=True)]
    stock_quantity: int = Field(..., ge=0)
    price: Decimal | None = Field(None, ge=0)


class RestockSchema(Schema):
    quantity: int = Field(..., ge=1)


class MinimalEventSchema(ModelSchema):
    organizer_name: str

    class Meta:
        model = Event
        fields = ["id", "name", "event_type", "status", "start", "end"]

    @staticmethod
    def resolve_organizer_name(obj: Event) -> str:
        return obj.organizer.display_name


class EventDetailSchema(ModelSchema):
    organizer_name: str
    custom_form: list[CustomFormField]
    variants: list[MerchandiseVariantSchema]

    class Meta:
        model = Event
        fields = [
            "id",
            "name",
            "description",
            "event_type",
            "status",
            "eligibility",
            "tags",
            "registration_deadline",
            "start",
            "end",
            "registration_limit",
            "registration_fee",
            "registration_count",
            "custom_form_locked",
            "item_name",
            "purchase_limit_per_participant",
            "max_team_size",
        ]

    @staticmethod
    def resolve_organizer_name(obj: Event) -> str:
        return obj.organizer.display_name

    @staticmethod
    def resolve_custom_form(obj: Event) -> list[CustomFormField]:
        return obj.form.ordered_fields()

    @staticmethod
    def resolve_variants(obj: Event) -> list[MerchandiseVariant]:
        return list(obj.variants.all())


class EventCountersSchema(ModelSchema):
    class Meta:
        model = Event
        fields = ["id", "registration_count", "registration_limit", "total_revenue", "total_attendance", "total_stock"]


TagString = t.Annotated[str, StringConstraints(min_length=1, max_length=64, strip_whitespace=True)]


class EventCreateSchema(Schema):
    name: OneToOneFiftyString
    description: StrippedString = ""
    event_type: Event.EventType = Event.EventType.NORMAL
    eligibility: Event.Eligibility = Event.Eligibility.ALL
    tags: list[TagString] = Field(default_factory=list)
    registration_deadline: AwareDatetime
    start: AwareDatetime
    end: AwareDatetime
    registration_limit: int = Field(..., ge=1)
    registration_fee: Decimal = Field(Decimal("0"), ge=0)
    custom_form: list[CustomFormField] = Field(default_factory=list, description="Normal events only")
    item_name: StrippedString = Field("", max_length=255, description="Merchandise events only")
    purchase_limit_per_participant: int = Field(1, ge=1)
    variants: list[MerchandiseVariantCreateSchema] = Field(default_factory=list, description="Merchandise events only")
    max_team_size: int = Field(4, ge=1, description="Hackathon events only")


class EventUpdateSchema(Schema):
    """Partial update. Which fields are accepted depends on the event status."""

    name: OneToOneFiftyString | None = None
    description: StrippedString | None = None
    eligibility: Event.Eligibility | None = None
    tags: list[TagString] | None = None
    registration_deadline: AwareDatetime | None = None
    start: AwareDatetime | None = None
    end: AwareDatetime | None = None
    registration_limit: int | None = Field(None, ge=1)
    registration_fee: Decimal | None = Field(None, ge=0)
    item_name: StrippedString | None = Field(None, max_length=255)
    purchase_limit_per_participant: int | None = Field(None, ge=1)
    max_team_size: int | None = Field(None, ge=1)
    status: Event.Status | None = None


class CustomFormUpdateSchema(Schema):
    fields: list[CustomFormField]


class OrganizerEventSchema(ModelSchema):
    class Meta:
        model = Event
        fields = [
            "id",
            "name",
            "event_type",
            "status",
            "registration_deadline",
            "start",
            "end",
            "registration_limit",
            "registration_count",
            "total_revenue",
            "total_attendance",
            "custom_form_locked",
            "created_at",
        ]


class CounterDriftSchema(Schema):
    registration_count: int
    total_revenue: Decimal
    total_attendance: int
    total_stock: int
    has_drift: bool


# ---- Registrations ----


class RegistrationCreateSchema(Schema):
    form_responses: dict[str, t.Any] = Field(default_factory=dict)


class MerchandiseOrderSchema(Schema):
    size: StrippedString = Field(..., min_length=1, max_length=20)
    color: StrippedString = Field(..., min_length=1, max_length=40)
    quantity: int = Field(..., ge=1)


class RegistrationSchema(ModelSchema):
    event: MinimalEventSchema
    team_id: UUID | None = None

    class Meta:
        model = Registration
        fields = [
            "id",
            "status",
            "payment_status",
            "ticket_id",
            "amount_paid",
            "form_responses",
            "order_size",
            "order_color",
            "quantity",
            "rejection_reason",
            "attended",
            "attended_at",
            "created_at",
        ]


class TicketSchema(ModelSchema):
    event: MinimalEventSchema
    participant: MinimalUserSchema
    team_id: UUID | None = None
    qr_payload: dict[str, t.Any] | None = None

    class Meta:
        model = Registration
        fields = [
            "id",
            "status",
            "ticket_id",
            "qr_code",
            "amount_paid",
            "order_size",
            "order_color",
            "quantity",
            "attended",
            "attended_at",
            "created_at",
        ]


class OrderSchema(ModelSchema):
    """A merchandise order as the organizer reviews it."""

    participant: MinimalUserSchema
    payment_proof_url: str | None = None

    class Meta:
        model = Registration
        fields = [
            "id",
            "status",
            "payment_status",
            "ticket_id",
            "order_size",
            "order_color",
            "quantity",
            "amount_paid",
            "rejection_reason",
            "created_at",
        ]

    @staticmethod
    def resolve_payment_proof_url(obj: Registration) -> str | None:
        return obj.payment_proof.url if obj.payment_proof else None


class OrderRejectSchema(Schema):
    reason: StrippedString = Field("", max_length=1000)


class RegistrationFilterSchema(Schema):
    event_type: Event.EventType | None = None
    status: Registration.Status | None = None
    window: t.Literal["upcoming", "past"] | None = None


# ---- Teams ----


class TeamCreateSchema(Schema):
    event_id: UUID
    name: OneToOneFiftyString
    size: int = Field(..., ge=1)


class TeamInviteCreateSchema(Schema):
    emails: list[EmailStr] = Field(..., min_length=1, max_length=20)


class TeamMemberSchema(ModelSchema):
    user: MinimalUserSchema
    registration_id: UUID | None = None
    joined_at: datetime

    class Meta:
        model = TeamMember
        fields = ["id", "skip_reason"]


class TeamInviteSchema(ModelSchema):
    class Meta:
        model = TeamInvite
        fields = ["id", "invited_email", "code", "status", "created_at", "expires_at", "accepted_at"]


class TeamSchema(ModelSchema):
    event: MinimalEventSchema
    leader: MinimalUserSchema
    members: list[TeamMemberSchema]
    invites: list[TeamInviteSchema]

    class Meta:
        model = Team
        fields = ["id", "name", "size", "status", "join_code", "created_at", "completed_at"]

    @staticmethod
    def resolve_members(obj: Team) -> list[TeamMember]:
        return list(obj.memberships.all())

    @staticmethod
    def resolve_invites(obj: Team) -> list[TeamInvite]:
        return list(obj.invites.all())


# ---- Attendance ----


class AttendanceMarkSchema(Schema):
    ticket_id: StrippedString = Field(..., min_length=1, max_length=32)
    method: AttendanceRecord.Method = AttendanceRecord.Method.CAMERA
    reason: StrippedString = Field("", max_length=1000, description="Required for manual overrides")


class AttendanceRecordSchema(ModelSchema):
    participant: MinimalUserSchema
    scanned_by: MinimalUserSchema
    ticket_id: str | None = None
    scanned_at: AwareDatetime

    class Meta:
        model = AttendanceRecord
        fields = ["id", "method", "duplicate", "reason", "ip_address", "user_agent"]

    @staticmethod
    def resolve_ticket_id(obj: AttendanceRecord) -> str | None:
        return obj.registration.ticket_id


class AttendanceResultSchema(Schema):
    duplicate: bool
    registration: RegistrationSchema
    record: AttendanceRecordSchema

"""Schema for accounts module."""

import typing as t

from django.contrib.auth.password_validation import validate_password
from ninja import ModelSchema, Schema
from pydantic import UUID4, EmailStr, Field, model_validator

from common.schema import StrippedString

from .models import FelicityUser


class FelicityUserSchema(ModelSchema):
    id: UUID4
    display_name: str

    class Meta:
        model = FelicityUser
        fields = [
            "email",
            "first_name",
            "last_name",
            "role",
            "participant_type",
            "college_name",
            "contact_number",
            "organizer_name",
        ]


class MinimalUserSchema(ModelSchema):
    display_name: str

    class Meta:
        model = FelicityUser
        fields = ["id", "email", "first_name", "last_name"]


class PasswordMixin(Schema):
    password1: str = Field(..., min_length=8, max_length=128)
    password2: str = Field(..., min_length=8, max_length=128)

    @model_validator(mode="after")
    def passwords_match(self) -> t.Self:
        """Ensure both passwords match."""
        if self.password1 != self.password2:
            raise ValueError("Passwords do not match.")
        return self


class RegisterParticipantSchema(PasswordMixin):
    email: EmailStr
    first_name: StrippedString = Field(..., min_length=1, max_length=150)
    last_name: StrippedString = Field(..., min_length=1, max_length=150)
    participant_type: FelicityUser.ParticipantType
    college_name: StrippedString = ""
    contact_number: StrippedString = Field("", max_length=20)

    @model_validator(mode="after")
    def validate_password_strength(self) -> t.Self:
        """Run Django's password validators against the would-be user."""
        tmp_user = FelicityUser(
            email=self.email, username=self.email, first_name=self.first_name, last_name=self.last_name
        )
        validate_password(self.password1, user=tmp_user)
        return self

"""Schema for accounts module."""

from ninja import ModelSchema, Schema
from pydantic import UUID4, Field

from common.schema import StrippedString

from .models import UniversityUser


class UniversityUserSchema(ModelSchema):
    id: UUID4
    display_name: str

    class Meta:
        model = UniversityUser
        fields = ["username", "email", "first_name", "last_name", "role", "faculty", "is_active"]


class MinimalUserSchema(ModelSchema):
    id: UUID4
    display_name: str

    class Meta:
        model = UniversityUser
        fields = ["first_name", "last_name", "email"]


class ProfileUpdateSchema(Schema):
    first_name: StrippedString = Field(max_length=150)
    last_name: StrippedString = Field(max_length=150)
    faculty: StrippedString = Field("", max_length=255)

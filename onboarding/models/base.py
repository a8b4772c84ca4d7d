"""
onboarding/models/base.py

Purpose: Shared behaviour for persisted records and their patches

- camelCase JSON keys, snake_case attributes
- Wholesale overwrite from stored JSON (no validation)
- Fixed projection of the declared fields on serialization
- Patch models where every field is optional and unknown keys are rejected
"""

from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from onboarding.core.exceptions import InvalidPatchError


class JsonRecord(BaseModel):
    """
    Base for records stored as JSON documents.

    Attributes are assigned without validation, mirroring what was stored.
    Keys that are not declared fields survive on the live object but are
    dropped by to_json().
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @classmethod
    def field_name(cls, key: str) -> str:
        """Maps a JSON key (alias) or attribute name to the attribute name."""
        for name, field in cls.model_fields.items():
            if key == name or key == field.alias:
                return name
        return key

    def overwrite(self, data: Mapping[str, Any]) -> None:
        """
        Assigns every key of `data` onto the record, known or not.

        Undeclared keys go into the model's extras so they can never replace
        a property or method of the class.
        """
        for key, value in data.items():
            name = self.field_name(key)
            if name in type(self).model_fields:
                setattr(self, name, value)
            else:
                self.__pydantic_extra__[key] = value

    def to_json(self) -> Dict[str, Any]:
        """Declared fields only, in declaration order, keyed by JSON name."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            include=set(type(self).model_fields),
            warnings=False,
        )


class JsonPatch(BaseModel):
    """
    Base for partial updates. Only fields explicitly set are applied.

    Fields default to None so they can be left unset, but an explicit None is
    only accepted for the attribute names listed in NULLABLE.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    NULLABLE: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        nulled = sorted(
            name for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.NULLABLE
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self

    @classmethod
    def coerce(cls, patch: Optional[Any]) -> "JsonPatch":
        """
        Builds a patch from None, a mapping or an existing patch instance.

        Raises:
            InvalidPatchError: on unknown keys or ill-typed values
        """
        if patch is None:
            return cls()
        if isinstance(patch, cls):
            return patch
        if not isinstance(patch, Mapping):
            raise InvalidPatchError(
                f"{cls.__name__} expects a mapping, got {type(patch).__name__}"
            )
        try:
            return cls.model_validate(dict(patch))
        except ValidationError as e:
            raise InvalidPatchError(
                f"Invalid {cls.__name__}: {e.error_count()} error(s)",
                details=e.errors(include_url=False)
            ) from e

    def changes(self) -> Dict[str, Any]:
        """Attribute name -> value for every field set on this patch."""
        return self.model_dump(mode="json", exclude_unset=True)

"""Typed failures raised by the material pool core."""

from __future__ import annotations


class MaterialError(Exception):
    """Base class for domain failures surfaced to callers."""


class ClaimError(MaterialError):
    """A claim could not be completed."""

    def __init__(self, material_id: int, message: str) -> None:
        super().__init__(message)
        self.material_id = material_id


class MaterialNotFoundError(ClaimError):
    """The referenced material does not exist."""

    def __init__(self, material_id: int) -> None:
        super().__init__(material_id, f"Material {material_id} not found")


class AlreadyClaimedError(ClaimError):
    """The material is already in use; the caller should pick another one."""

    def __init__(self, material_id: int) -> None:
        super().__init__(material_id, f"Material {material_id} is already in use")


class DuplicateIdentifierError(MaterialError):
    """A material with the same identifier already exists."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Material identifier already exists: {identifier}")
        self.identifier = identifier


class ImportRowError(MaterialError):
    """An import row failed validation."""


class InvalidStatusError(ImportRowError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Unrecognised material status: {value!r}")
        self.value = value


class InvalidHolderError(ImportRowError):
    def __init__(self, holder: str | None) -> None:
        super().__init__(f"Holder is not a known identity: {holder!r}")
        self.holder = holder


class MalformedRowError(ImportRowError):
    def __init__(self, fields: tuple[str, ...]) -> None:
        super().__init__(f"Unreadable values in: {', '.join(fields)}")
        self.fields = fields


class UnknownIdentityError(MaterialError):
    def __init__(self, identity_ref: object) -> None:
        super().__init__(f"Unknown identity: {identity_ref}")
        self.identity_ref = identity_ref


class PermissionDeniedError(MaterialError):
    """The acting identity lacks the role required for the operation."""


class DuplicateUsernameError(MaterialError):
    def __init__(self, username: str) -> None:
        super().__init__(f"Username already exists: {username}")
        self.username = username

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PhoneRecord:
    # Both fields hold digits only (see phone_directory.normalize_digits).
    phone_number: str
    region: str


@dataclass(frozen=True, slots=True)
class VerificationResult:
    verified: bool
    failure_reason: str | None = None

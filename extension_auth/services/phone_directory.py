"""Read-only phone number directory backing /oauth/verify-mobile.

The dataset is a JSON array of ``{"phoneNumber": ..., "region": ...}``
rows, where region is the country calling code. Dataset numbers may carry
that code as a separated prefix ("1 1234567890"); it is dropped on load.
Numbers and regions are then compared as bare digits, so "+1 (123) 456-7890"
with region "+1" matches the row ``{"phoneNumber": "1 1234567890",
"region": "1"}``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from pathlib import Path

from extension_auth.models.phone_record import PhoneRecord, VerificationResult

logger = logging.getLogger(__name__)

NOT_FOUND = "Phone number not found"
REGION_MISMATCH = "Region does not match"
INVALID_INPUT = "Phone number and region must contain digits"

_NON_DIGITS = re.compile(r"\D")
# "1 1234567890", "+1 222-333-4444": calling code set off from the number.
_SEPARATED_PREFIX = re.compile(r"^\s*\+?(\d+)[\s.-]+(\S.*)$")


def normalize_digits(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def normalize_stored_number(phone_number: str, region: str) -> str:
    """Digits of a dataset number, without a separated calling-code prefix."""
    match = _SEPARATED_PREFIX.match(phone_number)
    if match and match.group(1) == region:
        return normalize_digits(match.group(2))
    return normalize_digits(phone_number)


class PhoneDirectory:
    def __init__(self, records: Iterable[PhoneRecord]) -> None:
        # phone number -> regions it is registered under
        self._regions_by_number: dict[str, set[str]] = {}
        for record in records:
            self._regions_by_number.setdefault(record.phone_number, set()).add(
                record.region
            )

    def __len__(self) -> int:
        return len(self._regions_by_number)

    @classmethod
    def from_json_file(cls, path: Path) -> PhoneDirectory:
        rows = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(rows, list):
            raise ValueError(f"{path}: expected a JSON array of phone records")
        records = []
        for index, row in enumerate(rows):
            try:
                region = normalize_digits(str(row["region"]))
                phone_number = normalize_stored_number(str(row["phoneNumber"]), region)
            except (KeyError, TypeError):
                raise ValueError(
                    f"{path}: row {index} needs phoneNumber and region"
                ) from None
            records.append(PhoneRecord(phone_number=phone_number, region=region))
        directory = cls(records)
        logger.info("Phone directory loaded  path=%s numbers=%d", path, len(directory))
        return directory

    def _candidates(self, number: str, region: str) -> list[str]:
        # The caller may or may not have prefixed the number with its
        # calling code; try it as given first, then with the prefix removed.
        candidates = [number]
        if number.startswith(region) and len(number) > len(region):
            candidates.append(number[len(region) :])
        return candidates

    def verify(self, phone_number: str, region: str) -> VerificationResult:
        number = normalize_digits(phone_number)
        region_digits = normalize_digits(region)
        if not number or not region_digits:
            return VerificationResult(verified=False, failure_reason=INVALID_INPUT)

        found_any = False
        for candidate in self._candidates(number, region_digits):
            regions = self._regions_by_number.get(candidate)
            if regions is None:
                continue
            found_any = True
            if region_digits in regions:
                return VerificationResult(verified=True)

        return VerificationResult(
            verified=False,
            failure_reason=REGION_MISMATCH if found_any else NOT_FOUND,
        )

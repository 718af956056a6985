"""
dataset_register.registration
=============================

The :class:`Registration` record and the store interfaces that persist
it. A registration is identified by its URL and replaced wholesale on
every harvest; it is never updated field by field.
"""

import datetime as _dt
from typing import List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def format_datetime(value: _dt.datetime) -> str:
    """
    Canonical timestamp form: UTC, millisecond precision, ``Z`` suffix
    (e.g. ``2024-05-01T12:00:00.000Z``).

    Every timestamp written to and compared in the registration graph
    uses this form, because "read before" filtering compares the
    strings lexicographically; that only matches chronological order
    when precision and offset are identical on both sides.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=_dt.timezone.utc)
    value = value.astimezone(_dt.timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class Registration(BaseModel):
    """
    A registered source URL and the outcome of its last harvest.

    Attributes
    ----------
    url:
        The registration URL (identity).
    date_posted:
        When the URL was first registered.
    valid_until:
        Set once the source stops yielding valid descriptions; the
        registration may be dropped after this moment.
    datasets:
        IRIs of the datasets found during the last harvest.
    status_code:
        HTTP status of the last harvest.
    date_read:
        When the URL was last harvested.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    date_posted: _dt.datetime
    valid_until: Optional[_dt.datetime] = None
    datasets: List[str] = Field(default_factory=list)
    status_code: Optional[int] = None
    date_read: Optional[_dt.datetime] = None

    def read(
        self,
        datasets: List[str],
        status_code: int,
        valid: bool,
        date_read: Optional[_dt.datetime] = None,
    ) -> "Registration":
        """
        Return a copy that records a harvest.

        A valid harvest clears ``valid_until``; an invalid one keeps an
        existing ``valid_until`` or starts it at ``date_read``.
        """
        date_read = date_read or utcnow()
        if valid:
            valid_until = None
        else:
            valid_until = self.valid_until or date_read
        return self.model_copy(
            update={
                "datasets": list(datasets),
                "status_code": status_code,
                "date_read": date_read,
                "valid_until": valid_until,
            }
        )


class RegistrationStore(Protocol):
    async def store(self, registration: Registration) -> None: ...

    async def find_registrations_read_before(
        self, date: _dt.datetime
    ) -> List[Registration]: ...


class AllowedRegistrationDomainStore(Protocol):
    async def contains(self, *domain_names: str) -> bool: ...

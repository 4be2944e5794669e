from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Optional

import attrs
import orjson


class LicenseDecision(StrEnum):
    ACCEPTED = 'accepted'
    MISSING = 'missing'
    INVALID = 'invalid'
    INACTIVE = 'inactive'
    EXPIRED = 'expired'
    IP_DENIED = 'ip_denied'
    QUOTA = 'quota'
    ERROR = 'error'


def parse_allowed_ips(raw: Any) -> Optional[list[str]]:
    """`allowed_ips` column (JSON text, json/jsonb value or NULL) -> list of addresses.

    Raises ValueError when the stored value is not a JSON array.
    """
    if raw is None:
        return None
    value = orjson.loads(raw) if isinstance(raw, (str, bytes)) else raw
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f'allowed_ips must be a JSON array, got {type(value).__name__}')
    return [str(ip) for ip in value]


def _as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)


@attrs.define
class License:
    license_id: int
    license_key: str = attrs.field(repr=False)
    license_name: str
    is_active: bool
    expiry_date: Optional[datetime] = attrs.field(default=None, converter=_as_utc)
    max_requests_per_day: Optional[int] = None
    allowed_ips: Optional[list[str]] = None
    total_requests: int = 0
    last_used_date: Optional[datetime] = None

    def is_expired(self, *, now: datetime) -> bool:
        return self.expiry_date is not None and self.expiry_date < now

    def permits_ip(self, client_ip: Optional[str]) -> bool:
        # Empty or missing allow-list means unrestricted
        if not self.allowed_ips:
            return True
        return client_ip in self.allowed_ips

    @property
    def has_daily_quota(self) -> bool:
        return bool(self.max_requests_per_day)

    def check_usable(self, *, now: datetime, client_ip: Optional[str]) -> LicenseDecision:
        """ACCEPTED, or the first reason the license cannot be used right now."""
        if not self.is_active:
            return LicenseDecision.INACTIVE
        if self.is_expired(now=now):
            return LicenseDecision.EXPIRED
        if not self.permits_ip(client_ip):
            return LicenseDecision.IP_DENIED
        return LicenseDecision.ACCEPTED

    def quota_exhausted(self, *, requests_today: int) -> bool:
        return self.has_daily_quota and requests_today >= (self.max_requests_per_day or 0)

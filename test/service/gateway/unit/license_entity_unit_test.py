from datetime import datetime, timedelta, timezone

import pytest

from src.service.gateway.domain.entity.license_entity import (
    License,
    LicenseDecision,
    parse_allowed_ips,
)


NOW = datetime(2026, 10, 17, tzinfo=timezone.utc)


def _license(**overrides) -> License:
    values = {'license_id': 1, 'license_key': 'k', 'license_name': 'n', 'is_active': True}
    values.update(overrides)
    return License(**values)


@pytest.mark.unit
class TestParseAllowedIps:
    def test_json_text(self) -> None:
        assert parse_allowed_ips('["10.0.0.1", "10.0.0.2"]') == ['10.0.0.1', '10.0.0.2']

    def test_already_decoded_list(self) -> None:
        assert parse_allowed_ips(['10.0.0.1']) == ['10.0.0.1']

    def test_null_means_unrestricted(self) -> None:
        assert parse_allowed_ips(None) is None
        assert parse_allowed_ips('null') is None

    def test_unparsable_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_allowed_ips('10.0.0.1, 10.0.0.2')

    def test_non_array_raises(self) -> None:
        with pytest.raises(ValueError, match='JSON array'):
            parse_allowed_ips('{"ip": "10.0.0.1"}')


@pytest.mark.unit
class TestLicenseChecks:
    def test_usable(self) -> None:
        assert _license().check_usable(now=NOW, client_ip='1.1.1.1') is LicenseDecision.ACCEPTED

    def test_expiry_boundary(self) -> None:
        assert _license(expiry_date=NOW).check_usable(now=NOW, client_ip=None) is (
            LicenseDecision.ACCEPTED
        )
        assert _license(expiry_date=NOW - timedelta(seconds=1)).check_usable(
            now=NOW, client_ip=None
        ) is LicenseDecision.EXPIRED

    def test_ip_not_in_list(self) -> None:
        assert _license(allowed_ips=['2.2.2.2']).check_usable(now=NOW, client_ip='1.1.1.1') is (
            LicenseDecision.IP_DENIED
        )

    def test_quota(self) -> None:
        assert _license(max_requests_per_day=3).quota_exhausted(requests_today=3)
        assert not _license(max_requests_per_day=3).quota_exhausted(requests_today=2)
        assert not _license(max_requests_per_day=None).quota_exhausted(requests_today=10_000)

    def test_key_not_in_repr(self) -> None:
        assert 'secret-key' not in repr(_license(license_key='secret-key'))

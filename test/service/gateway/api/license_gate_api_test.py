"""
License gate through the full ASGI pipeline

Given a license store and an httpx client over the app,
each scenario checks the rejection envelope (or pass-through) and the
usage counter side effect.
"""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient
import pytest

from src.platform.exception.exceptions import StorageError


GUEST_URL = '/api/guests/123456'
HEADERS = {'x-api-key': 'valid-key'}


@pytest.mark.unit
class TestLicenseGateRejections:
    @pytest.mark.asyncio
    async def test_missing_key_is_401(self, confirmation_client: AsyncClient) -> None:
        response = await confirmation_client.get(GUEST_URL)

        assert response.status_code == 401
        assert response.json() == {
            'error': 'Unauthorized',
            'message': 'API key is required. Please provide x-api-key header.',
        }

    @pytest.mark.asyncio
    async def test_unknown_key_is_401(self, confirmation_client: AsyncClient) -> None:
        response = await confirmation_client.get(GUEST_URL, headers={'x-api-key': 'nope'})

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid API key.'

    @pytest.mark.asyncio
    async def test_inactive_license_is_403_regardless_of_other_fields(
        self, confirmation_client: AsyncClient, license_repo
    ) -> None:
        # Given: inactive but otherwise unrestricted and far from expiry
        license_repo.add(is_active=False, expiry_date=None, allowed_ips=[])

        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)

        assert response.status_code == 403
        assert response.json() == {
            'error': 'Forbidden',
            'message': 'API key is inactive. Please contact administrator.',
        }

    @pytest.mark.asyncio
    async def test_expired_license_is_403(self, confirmation_client: AsyncClient, license_repo) -> None:
        license_repo.add(expiry_date=datetime.now(timezone.utc) - timedelta(minutes=1))

        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)

        assert response.status_code == 403
        assert response.json()['message'] == 'API key has expired. Please renew your license.'

    @pytest.mark.asyncio
    async def test_ip_outside_allow_list_is_403(
        self, confirmation_client: AsyncClient, license_repo
    ) -> None:
        license_repo.add(allowed_ips=['10.0.0.1'])

        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)

        assert response.status_code == 403
        assert response.json()['message'] == 'API key is not authorized from this IP address.'

    @pytest.mark.asyncio
    async def test_daily_quota_reached_is_429(
        self, confirmation_client: AsyncClient, license_repo
    ) -> None:
        license_repo.add(max_requests_per_day=5)
        license_repo.requests_today['valid-key'] = 5

        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)

        assert response.status_code == 429
        assert response.json() == {
            'error': 'Too Many Requests',
            'message': 'Daily request limit of 5 has been reached.',
        }

    @pytest.mark.asyncio
    async def test_serialized_requests_hit_quota_on_the_next_one(
        self, confirmation_client: AsyncClient, license_repo, audit_log_repo
    ) -> None:
        """
        Given: a quota of 3 counted from audit rows, which are written in the background
        When: five requests are sent one after another
        Then: the fourth and fifth are rejected, whether or not earlier rows have landed
        """
        license_repo.add(max_requests_per_day=3)
        license_repo.audit_log = audit_log_repo

        codes = []
        for _ in range(5):
            response = await confirmation_client.get(GUEST_URL, headers=HEADERS)
            codes.append(response.status_code)

        assert codes == [200, 200, 200, 429, 429]

    @pytest.mark.asyncio
    async def test_license_lookup_failure_is_generic_500(
        self, confirmation_client: AsyncClient, license_repo
    ) -> None:
        license_repo.error = StorageError()

        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)

        assert response.status_code == 500
        assert response.json() == {
            'error': 'Internal Server Error',
            'message': 'Error validating API key.',
        }

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_generic_500(
        self, confirmation_client: AsyncClient, license_repo
    ) -> None:
        license_repo.error = RuntimeError('driver exploded: ORA-00942')

        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)

        assert response.status_code == 500
        assert 'ORA-00942' not in response.text
        assert response.json()['message'] == 'Error validating API key.'

    @pytest.mark.asyncio
    async def test_rejections_do_not_touch_usage_counter(
        self, confirmation_client: AsyncClient, license_repo, settle
    ) -> None:
        await confirmation_client.get(GUEST_URL, headers={'x-api-key': 'nope'})
        await settle()

        assert license_repo.usage == []


@pytest.mark.unit
class TestLicenseGateAcceptance:
    @pytest.mark.asyncio
    async def test_health_bypasses_the_gate(self, confirmation_client: AsyncClient) -> None:
        response = await confirmation_client.get('/health')

        assert response.status_code == 200
        assert response.json() == {'status': 'ok'}

    @pytest.mark.asyncio
    async def test_cors_preflight_needs_no_key(self, confirmation_client: AsyncClient) -> None:
        response = await confirmation_client.options(
            GUEST_URL,
            headers={
                'Origin': 'http://localhost:3000',
                'Access-Control-Request-Method': 'PUT',
                'Access-Control-Request-Headers': 'x-api-key',
            },
        )

        assert response.status_code == 200
        assert response.headers['access-control-allow-origin'] == 'http://localhost:3000'

    @pytest.mark.asyncio
    async def test_allowed_ip_passes(self, confirmation_client: AsyncClient, license_repo) -> None:
        license_repo.add(allowed_ips=['10.0.0.1', '127.0.0.1'])

        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_quota_below_limit_passes(
        self, confirmation_client: AsyncClient, license_repo
    ) -> None:
        license_repo.add(max_requests_per_day=5)
        license_repo.requests_today['valid-key'] = 4

        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_accepted_request_records_usage_once(
        self, confirmation_client: AsyncClient, license_repo, settle
    ) -> None:
        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)
        await settle()

        assert response.status_code == 200
        assert license_repo.usage == ['valid-key']

    @pytest.mark.asyncio
    async def test_usage_update_failure_does_not_fail_request(
        self, confirmation_client: AsyncClient, license_repo, settle
    ) -> None:
        async def broken_usage(*, license_key: str) -> None:
            raise StorageError()

        license_repo.record_usage = broken_usage

        response = await confirmation_client.get(GUEST_URL, headers=HEADERS)
        await settle()

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_metrics_endpoint_is_gated(self, confirmation_client: AsyncClient) -> None:
        denied = await confirmation_client.get('/metrics')
        allowed = await confirmation_client.get('/metrics', headers=HEADERS)

        assert denied.status_code == 401
        assert allowed.status_code == 200
        assert 'gateway_license_decisions_total' in allowed.text

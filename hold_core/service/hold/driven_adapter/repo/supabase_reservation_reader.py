"""
Supabase (PostgREST) reservation reader

GET {SUPABASE_URL}/rest/v1/reservations
    ?select=id,status,hold_expiration,check_in_date,check_out_date
    &site_id=eq.<site_id>
    &status=neq.cancelled

Authenticated with the service-role key. The cancelled filter is pushed to
the store; every failure mode surfaces as ReservationReadError.
"""

from typing import Any, List, Optional, cast

import httpx
import orjson
from pydantic import SecretStr

from hold_core.platform.concurrency.delay_strategy import IDelayStrategy, JitterDelay
from hold_core.platform.config.core_setting import Settings
from hold_core.platform.exception.exceptions import (
    MissingConfigurationError,
    ReservationReadError,
    UpstreamRequestError,
    UpstreamTimeoutError,
)
from hold_core.platform.http.retryable_fetch import DEFAULT_TIMEOUT_SECONDS, fetch_with_retry
from hold_core.platform.logging.loguru_io import Logger
from hold_core.platform.logging.loguru_io_utils import mask
from hold_core.service.hold.app.interface.i_reservation_reader import IReservationReader
from hold_core.service.hold.domain.reservation import Reservation, ReservationStatus


RESERVATION_COLUMNS = 'id,status,hold_expiration,check_in_date,check_out_date'


class SupabaseReservationReader(IReservationReader):
    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        base_url: str,
        service_role_key: str,
        table: str = 'reservations',
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        retry_backoff: Optional[IDelayStrategy] = None,
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip('/')
        self.table = table
        self.timeout_seconds = timeout_seconds
        self.retry_backoff = retry_backoff or JitterDelay(min_ms=200, max_ms=400)
        self._headers = {
            'apikey': service_role_key,
            'Authorization': f'Bearer {service_role_key}',
            'Accept': 'application/json',
        }
        Logger.base.debug(
            f'🔌 [RESERVATION_READER] {self.base_url} table={table} key={mask(service_role_key)}'
        )

    @classmethod
    def from_settings(
        cls, *, settings: Settings, client: httpx.AsyncClient
    ) -> 'SupabaseReservationReader':
        """
        Raises:
            MissingConfigurationError: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY unset
        """
        missing = settings.missing_keys('SUPABASE_URL', 'SUPABASE_SERVICE_ROLE_KEY')
        if missing:
            raise MissingConfigurationError(missing)
        service_role_key = cast(SecretStr, settings.SUPABASE_SERVICE_ROLE_KEY)
        return cls(
            client=client,
            base_url=cast(str, settings.SUPABASE_URL),
            service_role_key=service_role_key.get_secret_value(),
            table=settings.RESERVATIONS_TABLE,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
            retry_backoff=JitterDelay(
                min_ms=settings.HTTP_RETRY_BACKOFF_MIN_MS,
                max_ms=settings.HTTP_RETRY_BACKOFF_MAX_MS,
            ),
        )

    @property
    def endpoint(self) -> str:
        return f'{self.base_url}/rest/v1/{self.table}'

    async def list_active_reservations(self, *, site_id: str) -> List[Reservation]:
        params = {
            'select': RESERVATION_COLUMNS,
            'site_id': f'eq.{site_id}',
            'status': f'neq.{ReservationStatus.CANCELLED}',
        }
        try:
            response = await fetch_with_retry(
                self.client,
                'GET',
                self.endpoint,
                timeout_seconds=self.timeout_seconds,
                backoff=self.retry_backoff,
                params=params,
                headers=self._headers,
            )
        except (UpstreamRequestError, UpstreamTimeoutError) as e:
            raise ReservationReadError(e.message, site_id=site_id) from e

        if response.status_code >= 400:
            raise ReservationReadError(
                f'Reservation query failed with HTTP {response.status_code}: '
                f'{response.text[:200]}',
                site_id=site_id,
            )

        return self._parse_rows(response.content, site_id=site_id)

    @staticmethod
    def _parse_rows(content: bytes, *, site_id: str) -> List[Reservation]:
        try:
            rows: Any = orjson.loads(content) if content else []
        except orjson.JSONDecodeError as e:
            raise ReservationReadError(f'Malformed reservation payload: {e}', site_id=site_id) from e

        if not isinstance(rows, list):
            raise ReservationReadError(
                f'Expected a list of reservations, got {type(rows).__name__}', site_id=site_id
            )

        try:
            return [Reservation.from_row(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise ReservationReadError(
                f'Malformed reservation row: {type(e).__name__}: {e}', site_id=site_id
            ) from e

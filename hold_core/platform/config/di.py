"""
https://python-dependency-injector.ets-labs.org/index.html

The hold creator is the host's side-effecting collaborator; it must be
provided before create_hold_use_case can be built:

    container = Container()
    container.hold_creator.override(providers.Object(MyHoldCreator()))
    use_case = container.create_hold_use_case()

The idempotency sweeper runs for the life of the host's task group:

    async with anyio.create_task_group() as tg:
        await container.idempotency_sweeper().start(task_group=tg)
"""

from dependency_injector import containers, providers
import httpx

from hold_core.platform.concurrency.bounded_executor import BoundedConcurrencyExecutor
from hold_core.platform.concurrency.delay_strategy import jitter_or_no_delay
from hold_core.platform.config.core_setting import Settings
from hold_core.platform.time.clock import SystemClock
from hold_core.service.hold.app.command.create_hold_use_case import CreateHoldUseCase
from hold_core.service.hold.app.interface.i_hold_creator import IHoldCreator
from hold_core.service.hold.app.query.availability_guard import AvailabilityGuard
from hold_core.service.hold.driven_adapter.idempotency.idempotency_sweeper import (
    IdempotencySweeper,
)
from hold_core.service.hold.driven_adapter.idempotency.in_memory_idempotency_cache import (
    InMemoryIdempotencyCache,
)
from hold_core.service.hold.driven_adapter.repo.supabase_reservation_reader import (
    SupabaseReservationReader,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    clock = providers.Singleton(SystemClock)

    # Infrastructure
    http_client = providers.Singleton(httpx.AsyncClient)

    # One cache per process, owned by the container rather than a module global
    idempotency_cache = providers.Singleton(
        InMemoryIdempotencyCache,
        clock=clock,
        ttl_seconds=config_service.provided.IDEMPOTENCY_TTL_SECONDS,
        max_entries=config_service.provided.IDEMPOTENCY_MAX_ENTRIES,
    )

    # Started by the host inside its task group
    idempotency_sweeper = providers.Singleton(
        IdempotencySweeper,
        cache=idempotency_cache,
        interval_seconds=config_service.provided.IDEMPOTENCY_SWEEP_INTERVAL_SECONDS,
    )

    batch_delay_strategy = providers.Factory(
        jitter_or_no_delay,
        max_ms=config_service.provided.BATCH_JITTER_MAX_MS,
    )

    executor = providers.Factory(
        BoundedConcurrencyExecutor,
        delay_strategy=batch_delay_strategy,
    )

    # Repositories
    reservation_reader = providers.Singleton(
        SupabaseReservationReader.from_settings,
        settings=config_service,
        client=http_client,
    )

    # Side-effecting collaborator supplied by the host
    hold_creator = providers.Dependency(instance_of=IHoldCreator)

    # Use cases
    availability_guard = providers.Factory(
        AvailabilityGuard,
        reservation_reader=reservation_reader,
        clock=clock,
        fail_open=config_service.provided.AVAILABILITY_FAIL_OPEN,
    )

    create_hold_use_case = providers.Factory(
        CreateHoldUseCase,
        idempotency_cache=idempotency_cache,
        availability_guard=availability_guard,
        hold_creator=hold_creator,
        executor=executor,
        clock=clock,
        default_concurrency=config_service.provided.BATCH_CONCURRENCY,
        hold_expiry_buffer_seconds=config_service.provided.HOLD_EXPIRY_BUFFER_SECONDS,
    )


container = Container()

"""Application entry point and composition root."""

import argparse
import asyncio
import logging
import signal
from dataclasses import dataclass

from falcon.asgi import App

from dacsimple import __version__
from dacsimple.application.services.admin_service import AdminService
from dacsimple.application.services.event_emitter import EventEmitter
from dacsimple.application.services.permission_copier import PermissionCopier
from dacsimple.application.services.privilege_store import PrivilegeStore
from dacsimple.application.services.role_privilege_retriever import RolePrivilegeRetriever
from dacsimple.application.tasks import (
    ChangePermissionsSubtask,
    ChangePermissionsTask,
    PostChangePermissionsTask,
    TriggerEventsOnCompletionSubtask,
)
from dacsimple.application.use_cases.permission.change_permissions import (
    ChangePermissionsUseCase,
)
from dacsimple.application.use_cases.permission.get_permissions import GetPermissionsUseCase
from dacsimple.application.use_cases.permission.propagate_permissions import (
    PropagatePermissionsUseCase,
)
from dacsimple.application.use_cases.permission.save_permissions import SavePermissionsUseCase
from dacsimple.application.use_cases.resource.handle_resource_moved import ResourceMovedHandler
from dacsimple.config import Settings, get_settings
from dacsimple.domain.events import ResourceCopiedEvent, ResourceCreatedEvent, ResourceMovedEvent
from dacsimple.domain.services import PermissionsStrategy
from dacsimple.domain.value_objects import ReconciliationPolicy
from dacsimple.infrastructure.events.event_manager import EventManager
from dacsimple.infrastructure.ontology.resource_tree import RelationalResourceTree
from dacsimple.infrastructure.permission.permission_provider import DacPermissionProvider
from dacsimple.infrastructure.persistence.postgres.connection import create_pool
from dacsimple.infrastructure.persistence.postgres.unit_of_work import create_uow_factory
from dacsimple.infrastructure.tasks.runner import TaskRunner
from dacsimple.infrastructure.tasks.task_queue import DacTaskLog, DacTaskQueue
from dacsimple.interfaces.api.app import create_app
from dacsimple.interfaces.api.middleware.lifespan import LifespanMiddleware
from dacsimple.interfaces.api.resources.health import HealthResource
from dacsimple.interfaces.api.resources.permissions import ResourcePermissionsResource
from dacsimple.interfaces.api.resources.tasks import TaskResource
from dacsimple.logging_config import configure_logging

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Wired object graph shared by the API, the worker and scripts."""

    event_manager: EventManager
    privilege_store: PrivilegeStore
    resource_tree: RelationalResourceTree
    permission_provider: DacPermissionProvider
    change_permissions: ChangePermissionsUseCase
    save_permissions: SavePermissionsUseCase
    get_permissions: GetPermissionsUseCase
    propagate_permissions: PropagatePermissionsUseCase
    task_queue: DacTaskQueue
    task_log: DacTaskLog
    task_runner: TaskRunner
    permission_copier: PermissionCopier
    admin_service: AdminService


def build_services(settings: Settings, uow_factory) -> Services:
    """Wire every component over a unit of work factory."""
    event_manager = EventManager()
    store = PrivilegeStore(uow_factory, event_manager)
    tree = RelationalResourceTree(uow_factory)
    emitter = EventEmitter(event_manager)
    strategy = PermissionsStrategy(
        settings.reconciliation_policy, settings.cascade_dependent_privileges
    )
    change_permissions = ChangePermissionsUseCase(store, tree, strategy, emitter)
    sync_change_permissions = ChangePermissionsUseCase(
        store,
        tree,
        PermissionsStrategy(ReconciliationPolicy.SYNC, settings.cascade_dependent_privileges),
        emitter,
    )

    task_queue = DacTaskQueue(uow_factory)
    task_log = DacTaskLog(uow_factory)
    provider = DacPermissionProvider(store, tree, settings.dac_administrator_role)
    propagate = PropagatePermissionsUseCase(tree, store, strategy, task_queue)
    save = SavePermissionsUseCase(
        change_permissions,
        propagate,
        tree,
        provider,
        async_threshold=settings.async_propagation_threshold,
    )
    runner = TaskRunner(
        uow_factory,
        [
            ChangePermissionsTask(change_permissions, tree),
            ChangePermissionsSubtask(change_permissions, tree),
            TriggerEventsOnCompletionSubtask(
                change_permissions,
                tree,
                task_queue,
                task_log,
                base_delay_seconds=settings.sentinel_base_delay_seconds,
                max_delay_seconds=settings.sentinel_max_delay_seconds,
                max_attempts=settings.sentinel_max_attempts,
            ),
            PostChangePermissionsTask(emitter),
        ],
    )

    copier = PermissionCopier(store)
    moved_handler = ResourceMovedHandler(
        sync_change_permissions, RolePrivilegeRetriever(store), tree
    )
    event_manager.attach(ResourceCreatedEvent.name, provider.handle_resource_created)
    event_manager.attach(ResourceCopiedEvent.name, copier.handle_resource_copied)
    event_manager.attach(ResourceMovedEvent.name, moved_handler.handle)

    return Services(
        event_manager=event_manager,
        privilege_store=store,
        resource_tree=tree,
        permission_provider=provider,
        change_permissions=change_permissions,
        save_permissions=save,
        get_permissions=GetPermissionsUseCase(store, tree, provider),
        propagate_permissions=propagate,
        task_queue=task_queue,
        task_log=task_log,
        task_runner=runner,
        permission_copier=copier,
        admin_service=AdminService(store, tree),
    )


def create_dacsimple_app() -> App:
    """Composition root - build Falcon app with all dependencies."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.debug)
    pool = create_pool(settings.database_url)
    services = build_services(settings, create_uow_factory(pool))

    lifespan = LifespanMiddleware(
        pool,
        runner=services.task_runner if settings.run_worker_in_api else None,
        poll_interval=settings.worker_poll_interval_seconds,
    )
    return create_app(
        permissions_resource=ResourcePermissionsResource(
            services.get_permissions, services.save_permissions
        ),
        task_resource=TaskResource(services.task_log),
        health_resource=HealthResource(pool),
        middleware=[lifespan],
    )


def run_server(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Run uvicorn server."""
    import uvicorn

    uvicorn.run(create_dacsimple_app(), host=host, port=port)


async def run_worker() -> None:
    """Standalone task worker; stops on SIGINT/SIGTERM."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.debug)
    pool = create_pool(settings.database_url)
    services = build_services(settings, create_uow_factory(pool))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await pool.open()
    try:
        logger.info("dacsimple worker v%s started", __version__)
        await services.task_runner.run(stop, settings.worker_poll_interval_seconds)
    finally:
        await pool.close()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(prog="dacsimple", description=f"dacsimple v{__version__}")
    sub = parser.add_subparsers(dest="command")
    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    sub.add_parser("worker", help="Run a background task worker")
    args = parser.parse_args()

    if args.command == "worker":
        asyncio.run(run_worker())
    elif args.command == "serve":
        run_server(args.host, args.port)
    else:
        print(f"dacsimple v{__version__}")

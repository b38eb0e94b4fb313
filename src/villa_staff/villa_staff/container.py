from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .database.connection import DBConfig, DatabaseConnection
from .points.catalog import RuleCatalog
from .points.service import PointsLedger
from .points.store_points_repository import StorePointsRepository, load_rule_catalog
from .reports.service import ReportService
from .storage.gateway import PersistenceGateway
from .storage.local_store import LocalJsonStore
from .storage.mysql_store import MySQLRecordStore
from .tasks.service import TaskService
from .tasks.store_task_repository import StoreTaskRepository
from .users.service import RosterService
from .users.store_user_repository import StoreUserRepository

STORE_BACKENDS = ("mysql", "local")


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    gateway: PersistenceGateway
    catalog: RuleCatalog

    users_repo: StoreUserRepository
    points_repo: StorePointsRepository
    tasks_repo: StoreTaskRepository

    roster_service: RosterService
    points_ledger: PointsLedger
    task_service: TaskService
    report_service: ReportService


def build_container(
    *,
    db_config: dict,
    store_backend: str = "mysql",
    local_store_dir: str = "instance/store",
    catalog: Optional[RuleCatalog] = None,
) -> Container:
    if store_backend not in STORE_BACKENDS:
        raise ValueError(f"Unknown STORE_BACKEND: {store_backend}")

    conn = None
    remote = None
    if store_backend == "mysql":
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        remote = MySQLRecordStore(conn)
    gateway = PersistenceGateway(LocalJsonStore(local_store_dir), remote)

    # The catalog is read once here and handed to the ledger explicitly.
    catalog = catalog or load_rule_catalog(gateway)

    users_repo = StoreUserRepository(gateway)
    points_repo = StorePointsRepository(gateway)
    tasks_repo = StoreTaskRepository(gateway)

    roster_service = RosterService(users_repo)
    points_ledger = PointsLedger(points_repo, catalog)
    task_service = TaskService(tasks_repo)
    report_service = ReportService(tasks_repo, users_repo, points_ledger)

    return Container(
        conn=conn,
        gateway=gateway,
        catalog=catalog,
        users_repo=users_repo,
        points_repo=points_repo,
        tasks_repo=tasks_repo,
        roster_service=roster_service,
        points_ledger=points_ledger,
        task_service=task_service,
        report_service=report_service,
    )

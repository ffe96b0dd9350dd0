"""
SQLite store for the status page.

This module persists:
- Services (name and public URL)
- Interventions (time window, severity, planned flag, progress status, title, description)
- The many-to-many link between interventions and the services they affect
- Comments posted on interventions

Every write validates the record through the domain models before touching
the database, so nothing violating an invariant is ever persisted. The
temporal state of an intervention is never stored; it is derived on read.
"""

import sqlite3
from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging
import threading

from status_engine.errors import NotFound, ValidationError
from status_engine.models import Comment, Intervention, InterventionStatus, Service, Severity
from status_engine.queries import StatusSnapshot

logger = logging.getLogger(__name__)
# Create separate logger for SQL queries
sql_logger = logging.getLogger('sql_queries')

SCHEMA_VERSION = 2


class ServiceDeletionPolicy(Enum):
    """What happens to interventions referencing a service being deleted."""
    CASCADE = "cascade"    # unlink; interventions left without services are deleted
    RESTRICT = "restrict"  # refuse to delete a referenced service
    ORPHAN = "orphan"      # keep the references, display the service as deleted


class StatusDatabase:
    """
    SQLite database storing services, interventions and comments.

    Connections are thread-local; writes and snapshot reads are serialized
    with a lock so a snapshot never observes a half-applied write.
    """

    def __init__(self, db_path: str = "status.db",
                 deletion_policy: ServiceDeletionPolicy = ServiceDeletionPolicy.CASCADE,
                 deleted_service_label: str = "(deleted service)"):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file (created if doesn't exist)
            deletion_policy: Policy applied when a referenced service is deleted
            deleted_service_label: Name shown for deleted services under the orphan policy
        """
        self.db_path = db_path
        self.deletion_policy = ServiceDeletionPolicy(deletion_policy)
        self.deleted_service_label = deleted_service_label
        self._local = threading.local()  # Thread-local storage for connections
        self._lock = threading.RLock()
        logger.info(f"Initializing status database: {db_path} (deletion policy: {self.deletion_policy.value})")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, 'connection') or self._local.connection is None:
            connection = sqlite3.connect(self.db_path, check_same_thread=False)
            connection.row_factory = sqlite3.Row  # Enable column access by name
            connection.execute("PRAGMA foreign_keys = ON")
            self._local.connection = connection
            logger.debug(f"Created new database connection for thread {threading.current_thread().ident}")
        return self._local.connection

    def connect(self):
        """Open database connection and create schema if needed."""
        _ = self.conn
        self._create_schema()
        logger.info("Database connected and schema initialized")

    def close(self):
        """Close database connection for current thread."""
        if hasattr(self._local, 'connection') and self._local.connection:
            self._local.connection.close()
            self._local.connection = None
            logger.info(f"Database connection closed for thread {threading.current_thread().ident}")

    def _execute_with_logging(self, query: str, params=None) -> sqlite3.Cursor:
        """Execute SQL query with logging."""
        if params:
            sql_logger.debug(f"SQL: {query} | PARAMS: {params}")
            return self.conn.execute(query, params)
        sql_logger.debug(f"SQL: {query}")
        return self.conn.execute(query)

    def _create_schema(self):
        """
        Create database schema.

        Tables:
        - migrations: schema version
        - services: monitored services
        - interventions: maintenance/outage windows
        - interventions_services: affected services of each intervention
        - comments: status updates posted on interventions

        ``interventions_services.service_id`` has no foreign key: what happens
        to it when a service is deleted depends on the deletion policy.
        """
        with self._lock, self.conn:
            self.conn.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER NOT NULL)")
            row = self.conn.execute("SELECT version FROM migrations").fetchone()
            if row is None:
                self.conn.execute("INSERT INTO migrations (version) VALUES (0)")
                version = 0
            else:
                version = row['version']

            if version >= SCHEMA_VERSION:
                return

            if version < 1:
                self._create_tables()
            if version < 2:
                self.conn.execute(
                    "ALTER TABLE interventions ADD COLUMN is_planned BOOLEAN NOT NULL DEFAULT 0"
                )
                self.conn.execute("ALTER TABLE interventions ADD COLUMN status VARCHAR(63)")

            self.conn.execute("UPDATE migrations SET version = ?", (SCHEMA_VERSION,))
            logger.info(f"Database schema upgraded from version {version} to {SCHEMA_VERSION}")

    def _create_tables(self):
        """Version 1 of the schema."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS services (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name VARCHAR(255) NOT NULL,
                url VARCHAR(255) NOT NULL
            )
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS interventions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title VARCHAR(255) NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                start_date TEXT NOT NULL,
                end_date TEXT NOT NULL,
                severity VARCHAR(63) NOT NULL
            )
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS interventions_services (
                service_id INTEGER NOT NULL,
                intervention_id INTEGER NOT NULL,
                PRIMARY KEY (service_id, intervention_id),
                FOREIGN KEY (intervention_id) REFERENCES interventions(id) ON DELETE CASCADE
            )
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS comments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                intervention_id INTEGER NOT NULL,
                date TEXT NOT NULL,
                description TEXT NOT NULL,
                FOREIGN KEY (intervention_id) REFERENCES interventions(id) ON DELETE CASCADE
            )
        """)
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_links_service ON interventions_services(service_id)"
        )

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def create_service(self, name: str, url: str) -> Service:
        """Validate and insert a new service."""
        service = Service(id=None, name=name, url=url)
        with self._lock, self.conn:
            cursor = self._execute_with_logging(
                "INSERT INTO services (name, url) VALUES (?, ?)", (service.name, service.url)
            )
            created = Service(id=cursor.lastrowid, name=service.name, url=service.url)
        logger.info(f"Service {created.name!r} created with id {created.id}")
        return created

    def update_service(self, service_id: int, name: Optional[str] = None, url: Optional[str] = None) -> Service:
        """Edit a service; omitted fields keep their current value."""
        with self._lock, self.conn:
            current = self.get_service(service_id)
            updated = Service(
                id=current.id,
                name=current.name if name is None else name,
                url=current.url if url is None else url,
            )
            self._execute_with_logging(
                "UPDATE services SET name = ?, url = ? WHERE id = ?",
                (updated.name, updated.url, service_id)
            )
        logger.info(f"Service {service_id} updated")
        return updated

    def delete_service(self, service_id: int):
        """
        Delete a service, applying the configured deletion policy.

        Raises:
            NotFound: If the service does not exist
            ValidationError: Under the restrict policy, if interventions reference it
        """
        with self._lock, self.conn:
            self.get_service(service_id)
            linked = [row['intervention_id'] for row in self._execute_with_logging(
                "SELECT intervention_id FROM interventions_services WHERE service_id = ?", (service_id,)
            )]

            if linked and self.deletion_policy is ServiceDeletionPolicy.RESTRICT:
                raise ValidationError(
                    'service', f"service {service_id} is referenced by {len(linked)} intervention(s)"
                )

            if self.deletion_policy is ServiceDeletionPolicy.CASCADE:
                self._execute_with_logging(
                    "DELETE FROM interventions_services WHERE service_id = ?", (service_id,)
                )
                emptied = [row['id'] for row in self._execute_with_logging("""
                    SELECT i.id FROM interventions AS i
                    WHERE NOT EXISTS (
                        SELECT 1 FROM interventions_services AS l WHERE l.intervention_id = i.id
                    )
                """)]
                for intervention_id in emptied:
                    self._execute_with_logging("DELETE FROM interventions WHERE id = ?", (intervention_id,))
                if emptied:
                    logger.info(f"Deleted {len(emptied)} intervention(s) left without services: {emptied}")

            self._execute_with_logging("DELETE FROM services WHERE id = ?", (service_id,))
        logger.info(f"Service {service_id} deleted ({len(linked)} linked intervention(s), "
                    f"policy {self.deletion_policy.value})")

    def get_service(self, service_id: int) -> Service:
        row = self._execute_with_logging(
            "SELECT id, name, url FROM services WHERE id = ?", (service_id,)
        ).fetchone()
        if row is None:
            raise NotFound('service', service_id)
        return self._row_to_service(row)

    def list_services(self) -> List[Service]:
        rows = self._execute_with_logging("SELECT id, name, url FROM services ORDER BY id")
        return [self._row_to_service(row) for row in rows]

    def list_services_with_intervention_counts(self) -> List[Tuple[Service, int]]:
        """All services, each with the number of interventions that ever affected it."""
        rows = self._execute_with_logging("""
            SELECT s.id, s.name, s.url, COUNT(l.intervention_id) AS num_interventions
            FROM services AS s
            LEFT JOIN interventions_services AS l ON s.id = l.service_id
            GROUP BY s.id
            ORDER BY s.id
        """)
        return [(self._row_to_service(row), row['num_interventions']) for row in rows]

    # ------------------------------------------------------------------
    # Interventions
    # ------------------------------------------------------------------

    def create_intervention(self, title: str, start_date: datetime, end_date: datetime,
                            severity, affected_services: Iterable[int],
                            description: str = "", is_planned: bool = False,
                            status: Optional[InterventionStatus] = None) -> Intervention:
        """
        Validate and insert a new intervention.

        Raises:
            ValidationError: If the intervention breaks an invariant
            NotFound: If an affected service does not exist
        """
        intervention = Intervention(
            id=None,
            title=title,
            description=description,
            start_date=start_date,
            end_date=end_date,
            severity=severity,
            affected_services=affected_services,
            is_planned=is_planned,
            status=status,
        )
        with self._lock, self.conn:
            self._check_services_exist(intervention.affected_services)
            cursor = self._execute_with_logging("""
                INSERT INTO interventions
                    (title, description, start_date, end_date, severity, is_planned, status)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                intervention.title,
                intervention.description,
                intervention.start_date.isoformat(),
                intervention.end_date.isoformat(),
                intervention.severity.value,
                intervention.is_planned,
                intervention.status.value if intervention.status else None,
            ))
            intervention_id = cursor.lastrowid
            self._link_services(intervention_id, intervention.affected_services)
        logger.info(f"Intervention {intervention.title!r} created with id {intervention_id} "
                    f"({intervention.severity.value}, {len(intervention.affected_services)} service(s))")
        return self._with_id(intervention, intervention_id)

    def update_intervention(self, intervention_id: int, **changes) -> Intervention:
        """
        Edit an intervention; omitted fields keep their current value.

        Accepted keys: title, description, start_date, end_date, severity,
        affected_services, is_planned, status.
        """
        allowed = {'title', 'description', 'start_date', 'end_date', 'severity', 'affected_services',
                   'is_planned', 'status'}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(sorted(unknown)[0], "unknown intervention field")

        with self._lock, self.conn:
            current = self.get_intervention(intervention_id)
            fields = {
                'title': current.title,
                'description': current.description,
                'start_date': current.start_date,
                'end_date': current.end_date,
                'severity': current.severity,
                'affected_services': current.affected_services,
                'is_planned': current.is_planned,
                'status': current.status,
            }
            fields.update({k: v for k, v in changes.items() if v is not None})
            updated = Intervention(id=intervention_id, **fields)

            self._check_services_exist(updated.affected_services - current.affected_services)
            self._execute_with_logging("""
                UPDATE interventions
                SET title = ?, description = ?, start_date = ?, end_date = ?, severity = ?,
                    is_planned = ?, status = ?
                WHERE id = ?
            """, (
                updated.title,
                updated.description,
                updated.start_date.isoformat(),
                updated.end_date.isoformat(),
                updated.severity.value,
                updated.is_planned,
                updated.status.value if updated.status else None,
                intervention_id,
            ))
            self._execute_with_logging(
                "DELETE FROM interventions_services WHERE intervention_id = ?", (intervention_id,)
            )
            self._link_services(intervention_id, updated.affected_services)
        logger.info(f"Intervention {intervention_id} updated")
        return updated

    def delete_intervention(self, intervention_id: int):
        with self._lock, self.conn:
            self.get_intervention(intervention_id)
            self._execute_with_logging("DELETE FROM interventions WHERE id = ?", (intervention_id,))
        logger.info(f"Intervention {intervention_id} deleted")

    def get_intervention(self, intervention_id: int) -> Intervention:
        row = self._execute_with_logging(
            "SELECT * FROM interventions WHERE id = ?", (intervention_id,)
        ).fetchone()
        if row is None:
            raise NotFound('intervention', intervention_id)
        links = self._load_links(intervention_id)
        return self._row_to_intervention(row, links.get(intervention_id, set()))

    def list_interventions(self) -> List[Intervention]:
        links = self._load_links()
        rows = self._execute_with_logging("SELECT * FROM interventions ORDER BY id")
        return [self._row_to_intervention(row, links.get(row['id'], set())) for row in rows]

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def add_comment(self, intervention_id: int, description: str, date: datetime) -> Comment:
        """Post a status update on an intervention."""
        comment = Comment(id=None, intervention_id=intervention_id, date=date, description=description)
        with self._lock, self.conn:
            self.get_intervention(intervention_id)
            cursor = self._execute_with_logging(
                "INSERT INTO comments (intervention_id, date, description) VALUES (?, ?, ?)",
                (intervention_id, comment.date.isoformat(), comment.description)
            )
        logger.info(f"Comment {cursor.lastrowid} added to intervention {intervention_id}")
        return Comment(id=cursor.lastrowid, intervention_id=intervention_id,
                       date=comment.date, description=comment.description)

    def list_comments(self, intervention_id: Optional[int] = None) -> List[Comment]:
        """Comments, newest first, optionally restricted to one intervention."""
        if intervention_id is None:
            rows = self._execute_with_logging("SELECT * FROM comments ORDER BY date DESC, id DESC")
        else:
            rows = self._execute_with_logging(
                "SELECT * FROM comments WHERE intervention_id = ? ORDER BY date DESC, id DESC",
                (intervention_id,)
            )
        return [self._row_to_comment(row) for row in rows]

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> StatusSnapshot:
        """Read every record at once for one request."""
        with self._lock:
            return StatusSnapshot.of(
                services=self.list_services(),
                interventions=self.list_interventions(),
                comments=self.list_comments(),
                orphan_label=(self.deleted_service_label
                              if self.deletion_policy is ServiceDeletionPolicy.ORPHAN else None),
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_services_exist(self, service_ids: Iterable[int]):
        for service_id in sorted(service_ids):
            self.get_service(service_id)

    def _link_services(self, intervention_id: int, service_ids: Iterable[int]):
        for service_id in sorted(service_ids):
            self._execute_with_logging(
                "INSERT INTO interventions_services (service_id, intervention_id) VALUES (?, ?)",
                (service_id, intervention_id)
            )

    def _load_links(self, intervention_id: Optional[int] = None) -> Dict[int, Set[int]]:
        if intervention_id is None:
            rows = self._execute_with_logging("SELECT service_id, intervention_id FROM interventions_services")
        else:
            rows = self._execute_with_logging(
                "SELECT service_id, intervention_id FROM interventions_services WHERE intervention_id = ?",
                (intervention_id,)
            )
        links: Dict[int, Set[int]] = {}
        for row in rows:
            links.setdefault(row['intervention_id'], set()).add(row['service_id'])
        return links

    @staticmethod
    def _with_id(intervention: Intervention, intervention_id: int) -> Intervention:
        return replace(intervention, id=intervention_id)

    @staticmethod
    def _row_to_service(row: sqlite3.Row) -> Service:
        return Service(id=row['id'], name=row['name'], url=row['url'])

    @staticmethod
    def _row_to_intervention(row: sqlite3.Row, service_ids: Set[int]) -> Intervention:
        return Intervention(
            id=row['id'],
            title=row['title'],
            description=row['description'],
            start_date=datetime.fromisoformat(row['start_date']),
            end_date=datetime.fromisoformat(row['end_date']),
            severity=Severity(row['severity']),
            affected_services=frozenset(service_ids),
            is_planned=bool(row['is_planned']),
            status=InterventionStatus(row['status']) if row['status'] else None,
        )

    @staticmethod
    def _row_to_comment(row: sqlite3.Row) -> Comment:
        return Comment(
            id=row['id'],
            intervention_id=row['intervention_id'],
            date=datetime.fromisoformat(row['date']),
            description=row['description'],
        )

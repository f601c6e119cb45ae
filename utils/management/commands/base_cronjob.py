import os
import socket
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import DatabaseError
from django.utils import timezone

from utils.models import CronJobLock


class BaseCronJobCommand(BaseCommand):
    """
    Base class for management commands started by an external scheduler.

    Several pods may start the same command; a CronJobLock row makes sure
    only one of them runs it. Subclasses set job_name and implement
    execute_job().

    Usage:
        class Command(BaseCronJobCommand):
            job_name = "reconcile_lifecycle"
            max_execution_time = timedelta(minutes=30)

            def execute_job(self, *args, **options):
                ...
    """

    # Must be overridden by subclasses
    job_name = None

    # Lock lifetime; a crashed run's lock can be taken over after this
    max_execution_time = timedelta(hours=1)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if not self.job_name:
            raise ValueError(f"{self.__class__.__name__} must define job_name")
        self.pod_id = f"{socket.gethostname()}-{os.getpid()}"
        self.lock_acquired = False
        # Defaults for tests that call helpers without going through call_command
        self.verbosity = 1
        self.dry_run = False

    def add_arguments(self, parser):
        """Add common arguments for all CronJob commands"""
        parser.add_argument(
            "--force",
            action="store_true",
            help="Run even if another pod holds the lock (debugging only)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be done without changing anything",
        )

    def handle(self, *args, **options):
        """Take the lock, then delegate to execute_job."""
        self.verbosity = options.get("verbosity", 1)
        self.dry_run = options.get("dry_run", False)

        if self.dry_run:
            self.stdout.write(
                self.style.NOTICE(f"🔍 DRY RUN: {self.job_name} (no changes will be made)")
            )

        try:
            expired = CronJobLock.cleanup_expired_locks()
        except DatabaseError as e:
            self.log_error(f"Database unavailable for lock cleanup: {e}")
            return None
        if expired and self.verbosity >= 2:
            self.stdout.write(f"🧹 Cleaned up {expired} expired locks")

        # Dry runs change nothing, so they do not need the lock
        if not self.dry_run and not options.get("force", False):
            if not self.acquire_lock():
                return None

        start_time = timezone.now()
        self.log_info(f"Starting {self.job_name} on pod {self.pod_id}")
        try:
            self.execute_job(*args, **options)
        except Exception as e:
            self.log_error(f"Job {self.job_name} failed: {e}")
            raise
        finally:
            if self.lock_acquired:
                self.release_lock()

        # handle() output is written to stdout by BaseCommand, so nothing is returned
        elapsed = (timezone.now() - start_time).total_seconds()
        self.log_success(f"Completed {self.job_name} in {elapsed:.2f}s")

    def acquire_lock(self):
        holder = CronJobLock.acquire(self.job_name, self.pod_id, self.max_execution_time)
        if holder is not None:
            self.log_warning(f"Job {self.job_name} is already running on {holder}")
            return False
        self.lock_acquired = True
        if self.verbosity >= 2:
            self.stdout.write(f"🔒 Acquired lock for {self.job_name}")
        return True

    def release_lock(self):
        try:
            if not CronJobLock.release(self.job_name, self.pod_id):
                self.log_warning(f"Lock for {self.job_name} was not found during release")
        except DatabaseError as e:
            self.log_error(f"Error releasing lock: {e}")
        finally:
            self.lock_acquired = False

    def execute_job(self, *args, **options):
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement execute_job() method"
        )

    def log_info(self, message):
        if self.verbosity >= 1:
            self.stdout.write(self.style.NOTICE(f"ℹ️ {message}"))

    def log_success(self, message):
        if self.verbosity >= 1:
            self.stdout.write(self.style.SUCCESS(f"✅ {message}"))

    def log_warning(self, message):
        if self.verbosity >= 1:
            self.stdout.write(self.style.WARNING(f"⚠️ {message}"))

    def log_error(self, message):
        self.stdout.write(self.style.ERROR(f"❌ {message}"))

from datetime import timedelta

from django.db import IntegrityError, models, transaction
from django.utils import timezone


class CronJobLock(models.Model):
    """
    Lock row for management commands that several pods may start at once.

    A lock is held by whoever created the row for a job name; rows past
    expires_at belong to crashed runs and may be taken over.
    """

    job_name = models.CharField(
        max_length=100, unique=True, help_text="Unique identifier for the scheduled job"
    )
    locked_by = models.CharField(
        max_length=100, help_text="Pod identifier (hostname + process ID)"
    )
    locked_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the lock was acquired",
    )
    expires_at = models.DateTimeField(
        help_text="When the lock expires (safety mechanism for crashed pods)"
    )

    class Meta:
        db_table = "cronjob_locks"
        verbose_name = "CronJob Lock"
        verbose_name_plural = "CronJob Locks"
        indexes = [models.Index(fields=["expires_at"], name="cronjob_expires_idx")]

    def __str__(self):
        return f"{self.job_name} ({self.locked_by})"

    def is_expired(self):
        return timezone.now() > self.expires_at

    @classmethod
    def cleanup_expired_locks(cls):
        """Remove expired locks; returns how many were removed."""
        deleted, _ = cls.objects.filter(expires_at__lt=timezone.now()).delete()
        return deleted

    @classmethod
    def acquire(cls, job_name, owner, ttl=timedelta(hours=1)):
        """
        Take the lock for `job_name` on behalf of `owner`.

        Returns the current holder's identifier when the lock is held by
        someone else, else None.
        """
        now = timezone.now()
        try:
            with transaction.atomic():
                cls.objects.create(
                    job_name=job_name, locked_by=owner, locked_at=now, expires_at=now + ttl
                )
            return None
        except IntegrityError:
            pass

        # Take over only if the existing lock expired
        taken = cls.objects.filter(job_name=job_name, expires_at__lt=now).update(
            locked_by=owner, locked_at=now, expires_at=now + ttl
        )
        if taken:
            return None
        holder = cls.objects.filter(job_name=job_name).values_list("locked_by", flat=True).first()
        if holder is None:
            # Released between our attempts
            return cls.acquire(job_name, owner, ttl)
        return holder

    @classmethod
    def release(cls, job_name, owner):
        """Release the lock if `owner` holds it; returns True when a row was removed."""
        deleted, _ = cls.objects.filter(job_name=job_name, locked_by=owner).delete()
        return deleted > 0

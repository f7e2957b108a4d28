from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    """
    Append-only record of administrative and grading actions
    (student provisioning, approvals, marks and attendance saves).
    """
    action = models.CharField(max_length=50, db_index=True)
    details = models.JSONField(default=dict, blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_actions'
    )
    target_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_entries'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_log'
        ordering = ['-created_at']
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'
        indexes = [
            models.Index(fields=['performed_by', 'created_at'], name='audit_log_actor_created_idx'),
        ]

    def __str__(self):
        return f"{self.action} by {self.performed_by} at {self.created_at:%Y-%m-%d %H:%M}"

    @classmethod
    def record(cls, action, performed_by=None, target_user=None, **details):
        """Create an entry; ``details`` must be JSON-serialisable."""
        return cls.objects.create(
            action=action,
            performed_by=performed_by,
            target_user=target_user,
            details=details,
        )

"""
Upsert reconciliation for per-student rows keyed by a natural composite key.

Attendance rows are keyed by ``(student_id, class_assigned_id, date)`` and
marks by ``(exam_subject_id, student_id)``. A submitted batch is merged
against the rows already stored under the same keys:

- a stored row is updated in place (its primary key and ``created_at`` are
  kept) and only queued for writing when one of its value fields changed;
- a new key becomes an insert;
- rows the caller flags as unset are skipped and leave stored state alone.

Validation happens before reconciliation; a batch that fails validation never
reaches ``apply_write_plan``.
"""
import logging
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


class BatchValidationError(ValidationError):
    """
    A submitted batch was rejected because one of its rows is invalid.

    Carries enough context to point at the offending row.
    """

    def __init__(self, message, student_id=None, field=None, bound=None, value=None):
        super().__init__(message, code='invalid_batch')
        self.student_id = student_id
        self.field = field
        self.bound = bound
        self.value = value

    def as_dict(self):
        data = {'error': self.messages[0]}
        if self.student_id is not None:
            data['student_id'] = self.student_id
        if self.field:
            data['field'] = self.field
        if self.bound is not None:
            data['bound'] = str(self.bound)
        if self.value is not None:
            data['value'] = str(self.value)
        return data


@dataclass
class WritePlan:
    to_create: list = field(default_factory=list)
    to_update: list = field(default_factory=list)
    unchanged: list = field(default_factory=list)
    skipped: list = field(default_factory=list)

    @property
    def has_writes(self):
        return bool(self.to_create or self.to_update)

    def summary(self):
        return {
            'created': len(self.to_create),
            'updated': len(self.to_update),
            'unchanged': len(self.unchanged),
            'skipped': len(self.skipped),
        }


def composite_key(row, key_fields):
    return tuple(getattr(row, name) for name in key_fields)


def index_by_key(rows, key_fields):
    """Map stored rows by their composite key."""
    return {composite_key(row, key_fields): row for row in rows}


def reconcile(incoming, existing, key_fields, value_fields, audit_fields=(), is_unset=None):
    """
    Merge ``incoming`` rows against ``existing`` (a mapping of key -> stored row).

    ``value_fields`` are compared and replaced; ``audit_fields`` (e.g. who
    entered the row) are copied only when a value field actually changed so
    that re-submitting an identical batch is a no-op. When a key appears more
    than once in ``incoming`` the last occurrence wins.
    """
    plan = WritePlan()
    latest = {}

    for row in incoming:
        if is_unset is not None and is_unset(row):
            plan.skipped.append(row)
            continue
        key = composite_key(row, key_fields)
        latest.pop(key, None)
        latest[key] = row

    for key, row in latest.items():
        stored = existing.get(key)
        if stored is None:
            plan.to_create.append(row)
            continue

        changed = [
            name for name in value_fields
            if getattr(stored, name) != getattr(row, name)
        ]
        if not changed:
            plan.unchanged.append(stored)
            continue

        for name in list(value_fields) + list(audit_fields):
            setattr(stored, name, getattr(row, name))
        plan.to_update.append(stored)

    return plan


def apply_write_plan(model, plan, key_fields, value_fields, audit_fields=()):
    """
    Persist a ``WritePlan`` in one transaction.

    Inserts use ``bulk_create`` with the composite key as conflict target, so
    a row inserted concurrently by another writer is overwritten rather than
    raising: last write wins. ``created_at`` is never part of an update.
    """
    if not plan.has_writes:
        return plan

    def field_names(names):
        return [model._meta.get_field(name).name for name in names]

    unique_fields = field_names(key_fields)
    update_fields = field_names(list(value_fields) + list(audit_fields)) + ['updated_at']

    with transaction.atomic():
        if plan.to_create:
            model.objects.bulk_create(
                plan.to_create,
                update_conflicts=True,
                unique_fields=unique_fields,
                update_fields=update_fields,
            )
        if plan.to_update:
            now = timezone.now()
            for row in plan.to_update:
                row.updated_at = now
            model.objects.bulk_update(plan.to_update, update_fields)

    logger.info(
        f"Upserted {model._meta.label}: "
        f"{len(plan.to_create)} created, {len(plan.to_update)} updated"
    )
    return plan

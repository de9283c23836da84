"""Recurring schedule management."""

import dataclasses
import logging
from typing import Any, List, Optional, Sequence

from ..constants import ERR_SCHEDULE_NOT_FOUND, ERR_TARGET_NOT_FOUND, ERR_TEMPLATE_NOT_FOUND
from ..domain.models import ErrorCode, OperationResult, RecurringSchedule
from ..scheduling.recurrence import compute_next, validate_policy
from ..store.interface import Store
from ..utils.time import Clock, utc_now
from .common import POLICY_FIELDS, build_policy, merge_policy, validate_content_fields

logger = logging.getLogger(__name__)


class ScheduleService:
    """
    CRUD for recurring schedules.

    Keeps the rule that an active schedule always has a next trigger time:
    it is computed on creation and recomputed whenever a policy field
    changes or the schedule is switched back on.
    """

    def __init__(self, store: Store, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def create_schedule(
        self,
        webhook_id: str,
        name: str,
        schedule_type: Optional[str],
        interval_minutes: Optional[int] = None,
        schedule_time: Optional[str] = None,
        schedule_days: Optional[Sequence[int]] = None,
        message_content: Optional[str] = None,
        embed_data: Optional[dict] = None,
        image_url: Optional[str] = None,
        is_active: bool = True,
    ) -> OperationResult[RecurringSchedule]:
        """
        Create a schedule on a target.

        Returns:
            OperationResult with the stored schedule, whose next trigger time
            is already set
        """
        if not name or not name.strip():
            return OperationResult.fail(ErrorCode.VALIDATION, "name must not be empty")

        policy = build_policy(schedule_type, interval_minutes, schedule_time, schedule_days)
        error = validate_policy(policy) or validate_content_fields(
            message_content, embed_data, image_url
        )
        if error:
            return OperationResult.fail(ErrorCode.VALIDATION, error)

        if self.store.get_target(webhook_id) is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)

        schedule = self.store.add_schedule(
            RecurringSchedule(
                webhook_id=webhook_id,
                name=name.strip(),
                policy=policy,
                message_content=message_content,
                embed_data=embed_data,
                image_url=image_url,
                is_active=is_active,
                next_trigger_at=compute_next(policy, self.clock()),
            )
        )
        logger.info(
            f"Created schedule '{schedule.name}' ({schedule.id}), "
            f"next trigger {schedule.next_trigger_at.isoformat()}"
        )
        return OperationResult.ok(schedule)

    def get_schedule(self, schedule_id: str) -> Optional[RecurringSchedule]:
        return self.store.get_schedule(schedule_id)

    def list_schedules(self, webhook_id: str) -> OperationResult[List[RecurringSchedule]]:
        """A target's schedules, newest first."""
        if self.store.get_target(webhook_id) is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)
        return OperationResult.ok(self.store.list_schedules(webhook_id))

    def update_schedule(self, schedule_id: str, **changes: Any) -> OperationResult[RecurringSchedule]:
        """
        Apply a partial update to a schedule.

        Args:
            schedule_id: Schedule id
            **changes: Any of name, message_content, embed_data, image_url,
                is_active, schedule_type, interval_minutes, schedule_time,
                schedule_days

        Returns:
            OperationResult with the updated schedule
        """
        schedule = self.store.get_schedule(schedule_id)
        if schedule is None:
            return OperationResult.fail(ErrorCode.SCHEDULE_NOT_FOUND, ERR_SCHEDULE_NOT_FOUND)

        # Explicit nulls for required fields mean "leave unchanged"
        for key in ("name", "is_active"):
            if key in changes and changes[key] is None:
                del changes[key]
        policy_changes = {key: changes.pop(key) for key in POLICY_FIELDS if key in changes}
        unknown = set(changes) - {"name", "message_content", "embed_data", "image_url", "is_active"}
        if unknown:
            raise TypeError(f"Unknown schedule fields: {', '.join(sorted(unknown))}")

        if "name" in changes and not (changes["name"] or "").strip():
            return OperationResult.fail(ErrorCode.VALIDATION, "name must not be empty")

        updated = dataclasses.replace(schedule, **changes)
        if policy_changes:
            updated = dataclasses.replace(updated, policy=merge_policy(schedule.policy, **policy_changes))
            error = validate_policy(updated.policy)
            if error:
                return OperationResult.fail(ErrorCode.VALIDATION, error)

        error = validate_content_fields(updated.message_content, updated.embed_data, updated.image_url)
        if error:
            return OperationResult.fail(ErrorCode.VALIDATION, error)

        reactivated = changes.get("is_active") is True
        if updated.is_active and (policy_changes or reactivated or updated.next_trigger_at is None):
            updated = dataclasses.replace(
                updated, next_trigger_at=compute_next(updated.policy, self.clock())
            )

        stored = self.store.update_schedule(updated)
        if stored is None:
            return OperationResult.fail(ErrorCode.SCHEDULE_NOT_FOUND, ERR_SCHEDULE_NOT_FOUND)
        return OperationResult.ok(stored)

    def delete_schedule(self, schedule_id: str) -> OperationResult[None]:
        if not self.store.delete_schedule(schedule_id):
            return OperationResult.fail(ErrorCode.SCHEDULE_NOT_FOUND, ERR_SCHEDULE_NOT_FOUND)
        logger.info(f"Deleted schedule {schedule_id}")
        return OperationResult.ok()

    def apply_template(self, webhook_id: str, template_id: str) -> OperationResult[RecurringSchedule]:
        """
        Create a schedule on a target from a template's content and policy.

        The new schedule is named after the template.
        """
        template = self.store.get_template(template_id)
        if template is None:
            return OperationResult.fail(ErrorCode.TEMPLATE_NOT_FOUND, ERR_TEMPLATE_NOT_FOUND)
        if self.store.get_target(webhook_id) is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)

        schedule = self.store.add_schedule(
            RecurringSchedule(
                webhook_id=webhook_id,
                name=template.name,
                policy=template.policy,
                message_content=template.message_content,
                embed_data=template.embed_data,
                image_url=template.image_url,
                next_trigger_at=compute_next(template.policy, self.clock()),
            )
        )
        logger.info(f"Applied template {template_id} to target {webhook_id} as schedule {schedule.id}")
        return OperationResult.ok(schedule)

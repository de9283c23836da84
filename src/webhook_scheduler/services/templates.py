"""Message template management."""

import dataclasses
import logging
from typing import Any, List, Optional, Sequence

from ..constants import ERR_TEMPLATE_NOT_FOUND
from ..domain.models import ErrorCode, OperationResult, Template
from ..scheduling.recurrence import validate_policy
from ..store.interface import Store
from .common import POLICY_FIELDS, build_policy, merge_policy, validate_content_fields

logger = logging.getLogger(__name__)

_TEMPLATE_FIELDS = {"name", "description", "message_content", "embed_data", "image_url"}


class TemplateService:
    """CRUD for reusable message templates."""

    def __init__(self, store: Store):
        self.store = store

    def create_template(
        self,
        name: str,
        schedule_type: Optional[str],
        interval_minutes: Optional[int] = None,
        schedule_time: Optional[str] = None,
        schedule_days: Optional[Sequence[int]] = None,
        description: Optional[str] = None,
        message_content: Optional[str] = None,
        embed_data: Optional[dict] = None,
        image_url: Optional[str] = None,
    ) -> OperationResult[Template]:
        if not name or not name.strip():
            return OperationResult.fail(ErrorCode.VALIDATION, "name must not be empty")

        policy = build_policy(schedule_type, interval_minutes, schedule_time, schedule_days)
        error = validate_policy(policy) or validate_content_fields(
            message_content, embed_data, image_url
        )
        if error:
            return OperationResult.fail(ErrorCode.VALIDATION, error)

        template = self.store.add_template(
            Template(
                name=name.strip(),
                policy=policy,
                description=description,
                message_content=message_content,
                embed_data=embed_data,
                image_url=image_url,
            )
        )
        logger.info(f"Created template '{template.name}' ({template.id})")
        return OperationResult.ok(template)

    def get_template(self, template_id: str) -> Optional[Template]:
        return self.store.get_template(template_id)

    def list_templates(self) -> List[Template]:
        return self.store.list_templates()

    def update_template(self, template_id: str, **changes: Any) -> OperationResult[Template]:
        """Apply a partial update; accepts the same fields as create_template()."""
        template = self.store.get_template(template_id)
        if template is None:
            return OperationResult.fail(ErrorCode.TEMPLATE_NOT_FOUND, ERR_TEMPLATE_NOT_FOUND)

        if "name" in changes and changes["name"] is None:
            del changes["name"]
        policy_changes = {key: changes.pop(key) for key in POLICY_FIELDS if key in changes}
        unknown = set(changes) - _TEMPLATE_FIELDS
        if unknown:
            raise TypeError(f"Unknown template fields: {', '.join(sorted(unknown))}")

        if "name" in changes and not (changes["name"] or "").strip():
            return OperationResult.fail(ErrorCode.VALIDATION, "name must not be empty")

        updated = dataclasses.replace(template, **changes)
        if policy_changes:
            updated = dataclasses.replace(updated, policy=merge_policy(template.policy, **policy_changes))

        error = validate_policy(updated.policy) or validate_content_fields(
            updated.message_content, updated.embed_data, updated.image_url
        )
        if error:
            return OperationResult.fail(ErrorCode.VALIDATION, error)

        stored = self.store.update_template(updated)
        if stored is None:
            return OperationResult.fail(ErrorCode.TEMPLATE_NOT_FOUND, ERR_TEMPLATE_NOT_FOUND)
        return OperationResult.ok(stored)

    def delete_template(self, template_id: str) -> OperationResult[None]:
        if not self.store.delete_template(template_id):
            return OperationResult.fail(ErrorCode.TEMPLATE_NOT_FOUND, ERR_TEMPLATE_NOT_FOUND)
        logger.info(f"Deleted template {template_id}")
        return OperationResult.ok()

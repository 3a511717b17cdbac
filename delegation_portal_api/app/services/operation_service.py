"""
Business logic for delegation operations.

Every public method takes the caller context produced by
``core.security`` (``None`` for anonymous requests), checks it, and
talks to :class:`OperationStore`.  Failures are never recovered
locally: domain errors from ``core.errors`` describe authorization and
lookup problems, and store errors propagate unchanged.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.errors import NotFoundError
from ..core.security import ensure_can_manage, require_caller
from ..schemas.operation import (
    OperationCreate,
    OperationRead,
    OperationStatus,
    OperationStatusUpdate,
    OperationType,
)
from .operation_store import OperationStore


logger = logging.getLogger(__name__)


SEED_OPERATION = OperationCreate(
    name="Souscription Assurance Vie - Client Seed",
    client_name="Client Seed",
    type=OperationType.SOUSCRIPTION,
    operation_type="Assurance Vie",
    form_data={"seed": True},
    notes="Opération de test créée automatiquement",
)

TEST_OPERATION = OperationCreate(
    name="Test Operation",
    client_name="Test Client",
    type=OperationType.SOUSCRIPTION,
    operation_type="Test Type",
    form_data={"test": True},
    notes="Test operation",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class OperationService:
    """Create, update and list delegation operations."""

    @classmethod
    async def create_operation(
        cls,
        data: OperationCreate,
        current_user: Optional[Dict[str, Any]],
    ) -> OperationRead:
        """Persist a new operation owned by the caller.

        The category has already been normalised by ``OperationCreate``
        and ``form_data`` defaults to an empty mapping.  The new record
        always starts ``En attente``.

        Raises
        ------
        UnauthorizedError
            If no caller is authenticated.
        """
        caller = require_caller(current_user, "create an operation")
        timestamp = _now()
        record = {
            "id": str(uuid.uuid4()),
            "user_id": caller["user_id"],
            "name": data.name,
            "client_name": data.client_name,
            "type": data.type.value,
            "operation_type": data.operation_type,
            "status": OperationStatus.EN_ATTENTE.value,
            "form_data": data.form_data or {},
            "notes": data.notes,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            operation = OperationStore.create(record)
        except Exception as e:
            logger.error("Failed to create operation for user %s: %s", caller["user_id"], e)
            raise
        logger.info(
            "User %s created operation %s (%s / %s)",
            caller["user_id"], operation.id, operation.type.value, operation.operation_type,
        )
        return operation

    @classmethod
    async def update_status(
        cls,
        operation_id: str,
        data: OperationStatusUpdate,
        current_user: Optional[Dict[str, Any]],
    ) -> OperationRead:
        """Overwrite the status of an operation.

        Any status may follow any other; repeating the same update is
        harmless apart from refreshing ``updated_at``.  Non-owners are
        rejected before anything is written.

        Raises
        ------
        UnauthorizedError
            If no caller is authenticated.
        NotFoundError
            If the operation does not exist.
        ForbiddenError
            If the caller neither owns the operation nor is an administrator.
        """
        caller = require_caller(current_user, "update an operation")
        operation = OperationStore.find_unique(operation_id)
        if operation is None:
            raise NotFoundError("Operation not found")
        ensure_can_manage(caller, operation.user_id, "update this operation")
        updated = OperationStore.update(
            operation_id,
            {"status": data.status.value, "updated_at": _now()},
        )
        if updated is None:
            raise NotFoundError("Operation not found")
        logger.info(
            "User %s set operation %s status to %s", caller["user_id"], operation_id, data.status.value
        )
        return updated

    @classmethod
    async def list_operations(cls, current_user: Optional[Dict[str, Any]]) -> List[OperationRead]:
        """Return the caller's operations, newest first."""
        caller = require_caller(current_user, "view operations")
        try:
            operations = OperationStore.find_many(caller["user_id"])
        except Exception as e:
            logger.error("Failed to fetch operations for user %s: %s", caller["user_id"], e)
            raise
        logger.debug("Found %d operations for user %s", len(operations), caller["user_id"])
        return operations

    @classmethod
    async def get_operation(
        cls,
        operation_id: str,
        current_user: Optional[Dict[str, Any]],
    ) -> OperationRead:
        """Retrieve a single operation for the detail view.

        Same access rule as status updates: owners and administrators.
        """
        caller = require_caller(current_user, "view operations")
        operation = OperationStore.find_unique(operation_id)
        if operation is None:
            raise NotFoundError("Operation not found")
        ensure_can_manage(caller, operation.user_id, "view this operation")
        return operation

    @classmethod
    async def create_seed_operation(
        cls,
        current_user: Optional[Dict[str, Any]],
    ) -> Optional[OperationRead]:
        """Create the sample operation if the caller has none yet.

        Returns ``None`` when the caller already owns at least one
        operation.
        """
        caller = require_caller(current_user, "create an operation")
        if OperationStore.find_many(caller["user_id"], limit=1):
            logger.info("Seed operation not needed for user %s", caller["user_id"])
            return None
        return await cls.create_operation(SEED_OPERATION, caller)

    @classmethod
    async def create_test_operation(
        cls,
        current_user: Optional[Dict[str, Any]],
    ) -> OperationRead:
        """Create the fixed test operation for the caller."""
        return await cls.create_operation(TEST_OPERATION, current_user)

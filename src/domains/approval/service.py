# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Approval service for principal and teacher onboarding.

Registration creates one PENDING approval per principal or teacher. This
service lists approvals and moves them to APPROVED or REJECTED:

- principals are reviewed by super admins
- teachers are reviewed by super admins or by a principal or school admin
  of the same school

The reviewed user receives an APPROVAL notification in the same
transaction as the status change.
"""

import logging

from sqlalchemy import Select, false, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationFailedError,
)
from src.domains.notification import NotificationService
from src.domains.tenancy import Actor
from src.infrastructure.database.models import Approval
from src.infrastructure.database.queries import fetch_page
from src.models.common import ApprovalStatus, NotificationPriority, NotificationType, Role
from src.utils.datetime import utc_now
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)


class ApprovalServiceError(ServiceError):
    """Base exception for approval service errors."""

    pass


class ApprovalNotFoundError(ApprovalServiceError, NotFoundError):
    """Raised when an approval is not found or not visible."""

    pass


class ApprovalPermissionError(ApprovalServiceError, PermissionDeniedError):
    """Raised when the caller may not review the approval."""

    pass


class ApprovalAlreadyReviewedError(ApprovalServiceError, ValidationFailedError):
    """Raised when the approval is no longer pending."""

    pass


class ApprovalService:
    """Service for reviewing registration approvals.

    Attributes:
        _db: Async database session.
        _notifications: Notification service sharing the session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._notifications = NotificationService(db)

    def _visible(self, stmt: Select, actor: Actor) -> Select:
        if actor.is_super_admin:
            return stmt
        if actor.has_any_role(Role.PRINCIPAL, Role.SCHOOL_ADMIN) and actor.school_id:
            return stmt.where(
                Approval.school_id == actor.school_id,
                Approval.role == Role.TEACHER,
            )
        return stmt.where(false())

    async def list_approvals(
        self,
        actor: Actor,
        params: PageParams,
        *,
        status: str | None = ApprovalStatus.PENDING,
        role: str | None = None,
        school_id: str | None = None,
    ) -> tuple[list[Approval], int]:
        """List approvals visible to the caller, pending ones by default.

        Returns:
            Tuple of (approvals with their user loaded, total count).
        """
        stmt = self._visible(select(Approval).options(selectinload(Approval.user)), actor)
        if status:
            stmt = stmt.where(Approval.status == status)
        if role:
            stmt = stmt.where(Approval.role == role)
        if school_id:
            stmt = stmt.where(Approval.school_id == str(school_id))

        approvals, total = await fetch_page(self._db, stmt, params, Approval.created_at.asc())
        logger.info("Approvals retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return approvals, total

    async def approve(self, actor: Actor, approval_id: str, comments: str | None = None) -> Approval:
        return await self._review(actor, approval_id, ApprovalStatus.APPROVED, comments)

    async def reject(self, actor: Actor, approval_id: str, comments: str | None = None) -> Approval:
        return await self._review(actor, approval_id, ApprovalStatus.REJECTED, comments)

    async def _review(
        self,
        actor: Actor,
        approval_id: str,
        status: ApprovalStatus,
        comments: str | None,
    ) -> Approval:
        """Move a pending approval to its final state.

        Raises:
            ApprovalNotFoundError: If missing or in another school.
            ApprovalPermissionError: If the caller may not review this role.
            ApprovalAlreadyReviewedError: If the approval is not pending.
        """
        result = await self._db.execute(
            select(Approval)
            .options(selectinload(Approval.user))
            .where(Approval.id == str(approval_id))
        )
        approval = result.scalar_one_or_none()
        if approval is None:
            raise ApprovalNotFoundError("Approval not found")

        if not actor.is_super_admin:
            if not actor.school_id or str(approval.school_id) != actor.school_id:
                raise ApprovalNotFoundError("Approval not found")
            if approval.role != Role.TEACHER or not actor.has_any_role(
                Role.PRINCIPAL, Role.SCHOOL_ADMIN
            ):
                raise ApprovalPermissionError("You are not allowed to review this approval")

        if approval.status != ApprovalStatus.PENDING:
            raise ApprovalAlreadyReviewedError("Approval has already been reviewed")

        approval.status = status
        approval.reviewed_by_id = actor.id
        approval.reviewed_at = utc_now()
        approval.comments = comments

        approved = status == ApprovalStatus.APPROVED
        self._notifications.notify_users(
            [approval.user_id],
            title="Registration approved" if approved else "Registration rejected",
            content=(
                "Your account has been approved. You now have full access."
                if approved
                else "Your account registration was rejected."
                + (f" Reason: {comments}" if comments else "")
            ),
            type=NotificationType.APPROVAL,
            priority=NotificationPriority.HIGH,
            data={"approval_id": str(approval.id), "status": str(status)},
            sender_id=actor.id,
        )
        await self._db.commit()

        logger.info(
            "Approval reviewed: %s (user=%s, status=%s, by=%s)",
            approval.id,
            approval.user_id,
            status,
            actor.id,
        )
        return approval

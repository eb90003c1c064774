# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment service for class assignments and submissions.

This module provides the AssignmentService class for:
- Tenant-scoped assignment listing and lookup
- Assignment creation with parent notifications
- Teacher-owned updates, deletion and document uploads
- Parent submissions on behalf of their children
- Per-student assignment status

Example:
    >>> service = AssignmentService(db, storage)
    >>> assignment, notified = await service.create_assignment(actor, request)
    >>> items, total = await service.list_assignments(actor, PageParams(), status="active")
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    DependentRecordsError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationFailedError,
)
from src.domains.notification.service import NotificationService
from src.domains.tenancy import Actor, TenantScope, resolve_tenant_scope
from src.infrastructure.database.models import (
    Assignment,
    AssignmentSubmission,
    Class,
    FileRecord,
    Result,
    Student,
    Subject,
    Teacher,
    subject_teachers,
)
from src.infrastructure.database.queries import count_rows, fetch_page
from src.infrastructure.storage import FileUpload, StorageBackend, StorageError, StoredFile
from src.models.assignment import (
    AssignmentCreateRequest,
    AssignmentUpdateRequest,
    StudentAssignmentStatus,
)
from src.models.common import AssignmentType, NotificationType
from src.utils.datetime import ensure_utc, utc_now
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)


class AssignmentServiceError(ServiceError):
    """Base exception for assignment service errors."""

    pass


class AssignmentNotFoundError(AssignmentServiceError, NotFoundError):
    """Raised when an assignment is not found in the caller's scope."""

    pass


class SubjectAccessError(AssignmentServiceError, NotFoundError):
    """Raised when the subject is missing or not taught by the teacher."""

    pass


class ClassNotFoundError(AssignmentServiceError, NotFoundError):
    """Raised when class is not found."""

    pass


class TeacherNotFoundError(AssignmentServiceError, NotFoundError):
    """Raised when the owning teacher is not found."""

    pass


class StudentAccessError(AssignmentServiceError, NotFoundError):
    """Raised when a student is missing or outside the caller's scope."""

    pass


class SubmissionNotAllowedError(AssignmentServiceError, PermissionDeniedError):
    """Raised when a non-parent tries to submit."""

    pass


class InvalidAssignmentError(AssignmentServiceError, ValidationFailedError):
    """Raised when assignment data breaks a business rule."""

    pass


class AssignmentHasResultsError(AssignmentServiceError, DependentRecordsError):
    """Raised when deleting an assignment that already has results."""

    pass


@dataclass
class StudentAssignment:
    """An assignment as seen by one student."""

    assignment: Assignment
    status: StudentAssignmentStatus
    submission: AssignmentSubmission | None = None


class AssignmentService:
    """Service for managing assignments.

    Attributes:
        db: Async database session.
        storage: Backend used for uploaded documents.
    """

    def __init__(self, db: AsyncSession, storage: StorageBackend | None = None) -> None:
        """Initialize assignment service.

        Args:
            db: Async database session.
            storage: File storage backend, required for uploads.
        """
        self.db = db
        self.storage = storage

    def _scoped(self, scope: TenantScope):
        return scope.apply(
            select(Assignment),
            Assignment,
            owner_column="teacher_id",
            class_column="class_id",
            school_wide=Assignment.assignment_type == AssignmentType.CLASS_WIDE,
        )

    async def list_assignments(
        self,
        actor: Actor,
        params: PageParams,
        *,
        class_id: str | None = None,
        subject_id: str | None = None,
        status: str | None = None,
        school_id: str | None = None,
    ) -> tuple[list[Assignment], int]:
        """List assignments visible to the caller, by due date.

        Args:
            actor: The caller.
            params: Page window.
            class_id: Only assignments of this class.
            subject_id: Only assignments of this subject.
            status: upcoming, active or overdue relative to now.
            school_id: Explicit school filter.

        Returns:
            Tuple of (assignments, total count).
        """
        scope = await resolve_tenant_scope(self.db, actor, school_id)
        stmt = self._scoped(scope)

        if class_id:
            stmt = stmt.where(Assignment.class_id == class_id)
        if subject_id:
            stmt = stmt.where(Assignment.subject_id == subject_id)

        now = utc_now()
        if status == "upcoming":
            stmt = stmt.where(Assignment.start_date > now)
        elif status == "active":
            stmt = stmt.where(Assignment.start_date <= now, Assignment.due_date >= now)
        elif status == "overdue":
            stmt = stmt.where(Assignment.due_date < now)

        assignments, total = await fetch_page(self.db, stmt, params, Assignment.due_date.asc())

        logger.info(
            "Assignments retrieved: user=%s, role=%s, page=%d, total=%d",
            actor.id,
            actor.role,
            params.page,
            total,
        )
        return assignments, total

    async def get_assignment(self, actor: Actor, assignment_id: str) -> Assignment:
        """Get one assignment in the caller's scope.

        Raises:
            AssignmentNotFoundError: If missing or out of scope.
        """
        scope = await resolve_tenant_scope(self.db, actor)
        result = await self.db.execute(
            self._scoped(scope).where(Assignment.id == str(assignment_id))
        )
        assignment = result.scalar_one_or_none()
        if assignment is None:
            raise AssignmentNotFoundError("Assignment not found")
        return assignment

    async def create_assignment(
        self,
        actor: Actor,
        request: AssignmentCreateRequest,
    ) -> tuple[Assignment, int]:
        """Create an assignment and notify the parents of the class.

        Args:
            actor: The creator (teacher or school manager).
            request: Assignment data.

        Returns:
            Tuple of (created assignment, notifications queued).

        Raises:
            SubjectAccessError: If the subject is not in scope, or a
                teacher does not teach it.
            ClassNotFoundError: If the class is not in the subject's school.
            TeacherNotFoundError: If the owning teacher is not in the school.
        """
        scope = await resolve_tenant_scope(self.db, actor)

        subject_stmt = scope.apply(
            select(Subject).where(Subject.id == str(request.subject_id)),
            Subject,
        )
        if actor.is_teacher:
            subject_stmt = subject_stmt.where(
                Subject.id.in_(
                    select(subject_teachers.c.subject_id).where(
                        subject_teachers.c.teacher_id == actor.id
                    )
                )
            )
        subject = (await self.db.execute(subject_stmt)).scalar_one_or_none()
        if subject is None:
            raise SubjectAccessError("Subject not found or access denied")

        class_ = None
        if request.class_id:
            result = await self.db.execute(
                select(Class).where(
                    Class.id == str(request.class_id),
                    Class.school_id == subject.school_id,
                )
            )
            class_ = result.scalar_one_or_none()
            if class_ is None:
                raise ClassNotFoundError("Class not found")

        teacher_id = await self._resolve_owner(actor, request, subject.school_id)

        assignment = Assignment(
            title=request.title,
            description=request.description,
            instructions=request.instructions,
            start_date=request.start_date,
            due_date=request.due_date,
            max_score=request.max_score,
            assignment_type=request.assignment_type,
            document_urls=[],
            subject_id=subject.id,
            class_id=class_.id if class_ else None,
            teacher_id=teacher_id,
            school_id=subject.school_id,
        )
        self.db.add(assignment)
        await self.db.flush()

        notified = 0
        if class_ is not None:
            notified = await self._notify_class_parents(assignment, subject, class_, actor.id)

        await self.db.commit()

        logger.info(
            "Assignment created: id=%s, user=%s, class=%s, parents_notified=%d",
            assignment.id,
            actor.id,
            assignment.class_id,
            notified,
        )
        return assignment, notified

    async def _resolve_owner(
        self,
        actor: Actor,
        request: AssignmentCreateRequest,
        school_id: str,
    ) -> str:
        if actor.is_teacher:
            return actor.id

        if request.teacher_id is None:
            raise InvalidAssignmentError("teacher_id is required when the creator is not a teacher")

        result = await self.db.execute(
            select(Teacher.id).where(
                Teacher.id == str(request.teacher_id),
                Teacher.school_id == school_id,
            )
        )
        teacher_id = result.scalar_one_or_none()
        if teacher_id is None:
            raise TeacherNotFoundError("Teacher not found")
        return teacher_id

    async def _notify_class_parents(
        self,
        assignment: Assignment,
        subject: Subject,
        class_: Class,
        sender_id: str,
    ) -> int:
        result = await self.db.execute(
            select(Student).where(
                Student.class_id == class_.id,
                Student.parent_id.is_not(None),
            )
        )
        students = result.scalars().all()

        # One row per enrolled student; parents of siblings get one each
        notifications = NotificationService(self.db)
        due = ensure_utc(assignment.due_date).date().isoformat()
        for student in students:
            notifications.notify_users(
                [student.parent_id],
                title="New Assignment Posted",
                content=(
                    f'A new assignment "{assignment.title}" has been posted for {student.name} '
                    f"in {subject.name}. Due date: {due}"
                ),
                type=NotificationType.ASSIGNMENT,
                data={
                    "assignment_id": assignment.id,
                    "student_id": student.id,
                },
                sender_id=sender_id,
            )
        return len(students)

    async def _get_owned(self, actor: Actor, assignment_id: str) -> Assignment:
        scope = await resolve_tenant_scope(self.db, actor)
        result = await self.db.execute(
            scope.apply(
                select(Assignment).where(Assignment.id == str(assignment_id)),
                Assignment,
                owner_column="teacher_id",
            )
        )
        assignment = result.scalar_one_or_none()
        if assignment is None:
            raise AssignmentNotFoundError("Assignment not found or access denied")
        return assignment

    async def update_assignment(
        self,
        actor: Actor,
        assignment_id: str,
        request: AssignmentUpdateRequest,
    ) -> Assignment:
        """Update an assignment. Teachers may only update their own.

        Raises:
            AssignmentNotFoundError: If missing, out of scope or not owned.
            InvalidAssignmentError: If the resulting due date is not after
                the start date.
        """
        assignment = await self._get_owned(actor, assignment_id)

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        start = ensure_utc(changes.get("start_date", assignment.start_date))
        due = ensure_utc(changes.get("due_date", assignment.due_date))
        if due <= start:
            raise InvalidAssignmentError("Due date must be after start date")

        for field, value in changes.items():
            setattr(assignment, field, value)

        await self.db.commit()
        await self.db.refresh(assignment)

        logger.info("Assignment updated: id=%s, user=%s", assignment.id, actor.id)
        return assignment

    async def delete_assignment(self, actor: Actor, assignment_id: str) -> None:
        """Delete an assignment with its submissions.

        Raises:
            AssignmentNotFoundError: If missing, out of scope or not owned.
            AssignmentHasResultsError: If results were recorded for it.
        """
        assignment = await self._get_owned(actor, assignment_id)

        results = await count_rows(
            self.db, select(Result.id).where(Result.assignment_id == assignment.id)
        )
        if results:
            raise AssignmentHasResultsError("Cannot delete assignment with existing results")

        await self.db.execute(
            delete(AssignmentSubmission).where(AssignmentSubmission.assignment_id == assignment.id)
        )
        await self.db.delete(assignment)
        await self.db.commit()

        logger.info("Assignment deleted: id=%s, user=%s", assignment_id, actor.id)

    async def upload_files(
        self,
        actor: Actor,
        assignment_id: str,
        uploads: list[FileUpload],
    ) -> tuple[Assignment, list[FileRecord]]:
        """Store documents and attach their URLs to the assignment.

        Files are stored one after another; if any fails, the files
        already written by this call are removed and nothing is recorded.

        Raises:
            InvalidAssignmentError: If no files were given.
            AssignmentNotFoundError: If missing, out of scope or not owned.
        """
        if not uploads:
            raise InvalidAssignmentError("No files uploaded")

        assignment = await self._get_owned(actor, assignment_id)
        stored = await self._store_all(f"assignments/{assignment.school_id}", uploads)

        records = [
            self._file_record(f, "ASSIGNMENT", assignment.id, actor.id, assignment.school_id)
            for f in stored
        ]
        self.db.add_all(records)
        assignment.document_urls = [*assignment.document_urls, *(f.url for f in stored)]

        await self.db.commit()

        logger.info(
            "Assignment files uploaded: id=%s, user=%s, files=%d",
            assignment.id,
            actor.id,
            len(stored),
        )
        return assignment, records

    async def submit_assignment(
        self,
        actor: Actor,
        assignment_id: str,
        student_id: str,
        content: str | None = None,
        uploads: list[FileUpload] | None = None,
    ) -> AssignmentSubmission:
        """Submit (or resubmit) an assignment for a parent's child.

        Raises:
            SubmissionNotAllowedError: If the caller is not a parent.
            StudentAccessError: If the student is not the caller's child.
            AssignmentNotFoundError: If the assignment does not apply to
                the student.
            InvalidAssignmentError: If the due date has passed.
        """
        if not actor.is_parent:
            raise SubmissionNotAllowedError("Only parents can submit assignments")

        result = await self.db.execute(
            select(Student).where(Student.id == str(student_id), Student.parent_id == actor.id)
        )
        student = result.scalar_one_or_none()
        if student is None:
            raise StudentAccessError("Student not found or access denied")

        result = await self.db.execute(
            self._for_student(student).where(Assignment.id == str(assignment_id))
        )
        assignment = result.scalar_one_or_none()
        if assignment is None:
            raise AssignmentNotFoundError("Assignment not found")

        if utc_now() > ensure_utc(assignment.due_date):
            raise InvalidAssignmentError("Assignment submission deadline has passed")

        stored: list[StoredFile] = []
        if uploads:
            stored = await self._store_all(f"submissions/{student.school_id}", uploads)
            self.db.add_all(
                self._file_record(f, "SUBMISSION", assignment.id, actor.id, student.school_id)
                for f in stored
            )
        urls = [f.url for f in stored]

        result = await self.db.execute(
            select(AssignmentSubmission).where(
                AssignmentSubmission.assignment_id == assignment.id,
                AssignmentSubmission.student_id == student.id,
            )
        )
        submission = result.scalar_one_or_none()
        if submission is None:
            submission = AssignmentSubmission(
                assignment_id=assignment.id,
                student_id=student.id,
                submitted_by_id=actor.id,
                content=content,
                submission_urls=urls,
                submitted_at=utc_now(),
            )
            self.db.add(submission)
        else:
            submission.content = content
            # A resubmission without files keeps the earlier uploads
            if urls:
                submission.submission_urls = urls
            submission.submitted_by_id = actor.id
            submission.submitted_at = utc_now()
        await self.db.flush()

        NotificationService(self.db).notify_users(
            [assignment.teacher_id],
            title="Assignment Submitted",
            content=f'{student.name} {student.surname} has submitted the assignment "{assignment.title}"',
            type=NotificationType.ASSIGNMENT,
            data={
                "assignment_id": assignment.id,
                "student_id": student.id,
                "submission_id": submission.id,
            },
            sender_id=actor.id,
        )
        await self.db.commit()

        logger.info(
            "Assignment submitted: id=%s, student=%s, user=%s, files=%d",
            assignment.id,
            student.id,
            actor.id,
            len(urls),
        )
        return submission

    async def get_student_assignments(
        self,
        actor: Actor,
        student_id: str,
        status: StudentAssignmentStatus | None = None,
    ) -> tuple[Student, list[StudentAssignment]]:
        """List the assignments that apply to a student with their status.

        Returns:
            Tuple of (student, assignments ordered by due date).

        Raises:
            StudentAccessError: If the student is not visible to the caller.
        """
        if actor.is_parent:
            stmt = select(Student).where(
                Student.id == str(student_id),
                Student.parent_id == actor.id,
            )
        else:
            scope = await resolve_tenant_scope(self.db, actor)
            stmt = scope.apply(select(Student).where(Student.id == str(student_id)), Student)
        student = (await self.db.execute(stmt)).scalar_one_or_none()
        if student is None:
            raise StudentAccessError("Student not found or access denied")

        result = await self.db.execute(
            self._for_student(student).order_by(Assignment.due_date.asc())
        )
        assignments = list(result.scalars().all())

        submissions: dict[str, AssignmentSubmission] = {}
        if assignments:
            result = await self.db.execute(
                select(AssignmentSubmission).where(
                    AssignmentSubmission.student_id == student.id,
                    AssignmentSubmission.assignment_id.in_([a.id for a in assignments]),
                )
            )
            submissions = {s.assignment_id: s for s in result.scalars().all()}

        now = utc_now()
        items = []
        for assignment in assignments:
            submission = submissions.get(assignment.id)
            if submission is not None:
                item_status = "submitted"
            elif ensure_utc(assignment.due_date) < now:
                item_status = "overdue"
            else:
                item_status = "pending"
            if status and item_status != status:
                continue
            items.append(StudentAssignment(assignment, item_status, submission))

        logger.info(
            "Student assignments retrieved: student=%s, user=%s, status=%s, count=%d",
            student.id,
            actor.id,
            status,
            len(items),
        )
        return student, items

    @staticmethod
    def _for_student(student: Student):
        applies = Assignment.assignment_type == AssignmentType.CLASS_WIDE
        if student.class_id:
            applies = or_(Assignment.class_id == student.class_id, applies)
        return select(Assignment).where(Assignment.school_id == student.school_id, applies)

    async def _store_all(self, folder: str, uploads: list[FileUpload]) -> list[StoredFile]:
        if self.storage is None:
            raise AssignmentServiceError("File storage is not configured")

        stored: list[StoredFile] = []
        try:
            for upload in uploads:
                stored.append(
                    await self.storage.save(
                        folder,
                        upload.original_name,
                        upload.content,
                        upload.content_type,
                    )
                )
        except StorageError:
            for f in stored:
                await self.storage.delete(f.folder, f.file_name)
            raise
        return stored

    @staticmethod
    def _file_record(
        stored: StoredFile,
        entity_type: str,
        entity_id: str,
        uploaded_by: str,
        school_id: str | None,
    ) -> FileRecord:
        return FileRecord(
            file_name=stored.file_name,
            original_name=stored.original_name,
            content_type=stored.content_type,
            size=stored.size,
            url=stored.url,
            folder=stored.folder,
            entity_type=entity_type,
            entity_id=entity_id,
            uploaded_by_id=uploaded_by,
            school_id=school_id,
        )

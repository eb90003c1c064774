# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dashboard service for role-specific overviews.

Each dashboard runs a handful of independent read queries. They are
awaited one after another: an AsyncSession must not be shared between
concurrent tasks.

Example:
    >>> service = DashboardService(db)
    >>> dashboard = await service.get_teacher_dashboard(actor)
"""

import logging
from datetime import timedelta

from sqlalchemy import exists, false, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.notification import NotificationService
from src.domains.tenancy import Actor
from src.infrastructure.database.models import (
    Approval,
    Assignment,
    AssignmentSubmission,
    Class,
    Exam,
    Result,
    School,
    Student,
    Subject,
    Teacher,
    User,
    subject_teachers,
)
from src.infrastructure.database.queries import count_rows
from src.models.academic import SubjectResponse
from src.models.assignment import AssignmentResponse
from src.models.common import ApprovalStatus, ExamStatus, Role
from src.models.dashboard import (
    ChildSummary,
    ClassSummary,
    ParentDashboard,
    ParentOverview,
    ResultSummary,
    SchoolDashboard,
    SchoolOverview,
    SuperAdminDashboard,
    SuperAdminOverview,
    TeacherDashboard,
    TeacherOverview,
)
from src.models.exam import ExamResponse
from src.models.notification import NotificationResponse
from src.models.school import SchoolResponse
from src.utils.datetime import utc_now
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
RECENT_RESULTS_LIMIT = 10
RECENT_ASSIGNMENT_DAYS = 7


class DashboardService:
    """Builds the per-role dashboards.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_super_admin_dashboard(self, actor: Actor) -> SuperAdminDashboard:
        total_schools = await count_rows(self._db, select(School.id))
        verified_schools = await count_rows(
            self._db, select(School.id).where(School.is_verified.is_(True))
        )
        total_users = await count_rows(self._db, select(User.id))
        total_students = await count_rows(self._db, select(Student.id))

        by_role = await self._db.execute(select(User.role, func.count()).group_by(User.role))
        users_by_role = {str(role): count for role, count in by_role.all()}

        recent = await self._db.execute(
            select(School).order_by(School.created_at.desc()).limit(RECENT_LIMIT)
        )

        logger.info("Super admin dashboard retrieved: user=%s", actor.id)
        return SuperAdminDashboard(
            overview=SuperAdminOverview(
                total_schools=total_schools,
                verified_schools=verified_schools,
                pending_schools=total_schools - verified_schools,
                total_users=total_users,
                total_students=total_students,
            ),
            users_by_role=users_by_role,
            recent_schools=[SchoolResponse.model_validate(s) for s in recent.scalars().all()],
        )

    async def get_school_dashboard(self, actor: Actor) -> SchoolDashboard:
        """Dashboard shared by school admins and principals.

        Pending approvals are the school's pending teacher approvals.
        """
        school_id = actor.school_id
        if school_id is None:
            return SchoolDashboard(
                overview=SchoolOverview(
                    total_students=0,
                    total_teachers=0,
                    total_classes=0,
                    total_subjects=0,
                    pending_approvals=0,
                )
            )

        now = utc_now()
        total_students = await count_rows(
            self._db, select(Student.id).where(Student.school_id == school_id)
        )
        total_teachers = await count_rows(
            self._db, select(Teacher.id).where(Teacher.school_id == school_id)
        )
        total_classes = await count_rows(
            self._db, select(Class.id).where(Class.school_id == school_id)
        )
        total_subjects = await count_rows(
            self._db, select(Subject.id).where(Subject.school_id == school_id)
        )
        pending_approvals = await count_rows(
            self._db,
            select(Approval.id).where(
                Approval.school_id == school_id,
                Approval.role == Role.TEACHER,
                Approval.status == ApprovalStatus.PENDING,
            ),
        )

        recent_assignments = await self._db.execute(
            select(Assignment)
            .where(
                Assignment.school_id == school_id,
                Assignment.created_at >= now - timedelta(days=RECENT_ASSIGNMENT_DAYS),
            )
            .order_by(Assignment.created_at.desc())
            .limit(RECENT_LIMIT)
        )
        upcoming_exams = await self._db.execute(
            select(Exam)
            .where(
                Exam.school_id == school_id,
                Exam.start_date >= now,
                Exam.status == ExamStatus.PUBLISHED,
            )
            .order_by(Exam.start_date.asc())
            .limit(RECENT_LIMIT)
        )

        logger.info(
            "School dashboard retrieved: user=%s, role=%s, school=%s",
            actor.id,
            actor.role,
            school_id,
        )
        return SchoolDashboard(
            overview=SchoolOverview(
                total_students=total_students,
                total_teachers=total_teachers,
                total_classes=total_classes,
                total_subjects=total_subjects,
                pending_approvals=pending_approvals,
            ),
            recent_assignments=[
                AssignmentResponse.model_validate(a) for a in recent_assignments.scalars().all()
            ],
            upcoming_exams=[ExamResponse.model_validate(e) for e in upcoming_exams.scalars().all()],
        )

    async def get_teacher_dashboard(self, actor: Actor) -> TeacherDashboard:
        """Dashboard for a teacher.

        Pending submissions counts the teacher's started assignments that
        have no submission at all.
        """
        now = utc_now()

        student_count = (
            select(func.count(Student.id))
            .where(Student.class_id == Class.id)
            .correlate(Class)
            .scalar_subquery()
        )
        classes = await self._db.execute(
            select(Class.id, Class.name, Class.grade_id, student_count.label("student_count"))
            .where(Class.supervisor_id == actor.id)
            .order_by(Class.name)
        )
        my_classes = [
            ClassSummary(
                id=row.id,
                name=row.name,
                grade_id=row.grade_id,
                student_count=row.student_count or 0,
            )
            for row in classes.all()
        ]

        subjects = await self._db.execute(
            select(Subject)
            .join(subject_teachers, subject_teachers.c.subject_id == Subject.id)
            .where(subject_teachers.c.teacher_id == actor.id)
            .order_by(Subject.name)
        )
        my_subjects = [SubjectResponse.model_validate(s) for s in subjects.scalars().all()]

        total_assignments = await count_rows(
            self._db, select(Assignment.id).where(Assignment.teacher_id == actor.id)
        )
        recent = await self._db.execute(
            select(Assignment)
            .where(Assignment.teacher_id == actor.id)
            .order_by(Assignment.created_at.desc())
            .limit(RECENT_LIMIT)
        )

        has_submission = exists().where(AssignmentSubmission.assignment_id == Assignment.id)
        pending_submissions = await count_rows(
            self._db,
            select(Assignment.id).where(
                Assignment.teacher_id == actor.id,
                Assignment.start_date <= now,
                ~has_submission,
            ),
        )

        logger.info("Teacher dashboard retrieved: user=%s", actor.id)
        return TeacherDashboard(
            overview=TeacherOverview(
                total_classes=len(my_classes),
                total_subjects=len(my_subjects),
                total_assignments=total_assignments,
                pending_submissions=pending_submissions,
            ),
            my_classes=my_classes,
            my_subjects=my_subjects,
            recent_assignments=[AssignmentResponse.model_validate(a) for a in recent.scalars().all()],
        )

    async def get_parent_dashboard(self, actor: Actor) -> ParentDashboard:
        children_rows = await self._db.execute(
            select(Student, Class.name)
            .outerjoin(Class, Class.id == Student.class_id)
            .where(Student.parent_id == actor.id)
            .order_by(Student.name, Student.surname)
        )
        children = [
            ChildSummary(
                id=student.id,
                name=student.name,
                surname=student.surname,
                school_id=student.school_id,
                class_id=student.class_id,
                class_name=class_name,
            )
            for student, class_name in children_rows.all()
        ]
        child_ids = [str(child.id) for child in children]

        results_stmt = select(Result).where(
            Result.student_id.in_(child_ids) if child_ids else false()
        )
        results = await self._db.execute(
            results_stmt.order_by(Result.created_at.desc()).limit(RECENT_RESULTS_LIMIT)
        )

        notifications = NotificationService(self._db)
        recent_notifications, _, unread = await notifications.list_notifications(
            actor.id, PageParams(page=1, limit=RECENT_LIMIT)
        )

        logger.info("Parent dashboard retrieved: user=%s, children=%d", actor.id, len(children))
        return ParentDashboard(
            overview=ParentOverview(
                total_children=len(children),
                schools_count=len({str(child.school_id) for child in children}),
                unread_notifications=unread,
            ),
            children=children,
            recent_results=[ResultSummary.model_validate(r) for r in results.scalars().all()],
            recent_notifications=[
                NotificationResponse.model_validate(n) for n in recent_notifications
            ],
        )

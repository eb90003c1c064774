# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant isolation: who the caller is and which rows they may see."""

from src.domains.tenancy.scope import (
    Actor,
    TenantScope,
    build_tenant_scope,
    get_parent_school_ids,
    get_parent_student_ids,
    SchoolAccessError,
    resolve_target_school,
    resolve_tenant_scope,
)

__all__ = [
    "Actor",
    "TenantScope",
    "build_tenant_scope",
    "resolve_tenant_scope",
    "resolve_target_school",
    "SchoolAccessError",
    "get_parent_school_ids",
    "get_parent_student_ids",
]

"""
Pytest configuration and fixtures for testing.

This module provides:
- A sample module tree (core, hrm, crm, finance, analytics, compliance)
- Registry, authorizer and projector fixtures built from it
- Static providers and an AccessService wired to them
- Common context builders
"""

import copy
import os
from typing import Any

import pytest

# Set test environment before importing package modules
os.environ["MODULE_ACCESS_ENVIRONMENT"] = "test"

from module_access.config import AccessConfig
from module_access.engine import Authorizer
from module_access.menu import MenuProjector
from module_access.models import AccessContext
from module_access.providers import StaticRoleGrantProvider, StaticTenantProvider
from module_access.registry import Registry, load_registry
from module_access.resolver import EligibilityResolver
from module_access.service import AccessService


# =============================================================================
# SAMPLE MODULE TREE
# =============================================================================


SAMPLE_MODULES: list[dict[str, Any]] = [
    {
        "code": "core",
        "name": "Core",
        "priority": 0,
        "is_core": True,
        "submodules": [
            {
                "code": "settings",
                "name": "Settings",
                "priority": 10,
                "components": [
                    {
                        "code": "general",
                        "name": "General Settings",
                        "actions": [
                            {"code": "view", "name": "View"},
                            {"code": "update", "name": "Update"},
                        ],
                    },
                ],
            },
        ],
    },
    {
        "code": "hrm",
        "category": "hr",
        "name": "Human Resources",
        "priority": 10,
        "min_plan": "basic",
        "dependencies": ["core"],
        "icon": "UserGroupIcon",
        "route_prefix": "/hrm",
        "submodules": [
            {
                "code": "leave",
                "name": "Leave",
                "priority": 2,
                "components": [
                    {
                        "code": "leave-requests",
                        "name": "Leave Requests",
                        "actions": [
                            {"code": "view", "name": "View"},
                            {"code": "approve", "name": "Approve"},
                        ],
                    },
                ],
            },
            {
                "code": "employees",
                "name": "Employees",
                "priority": 1,
                "components": [
                    {
                        "code": "employee-directory",
                        "name": "Employee Directory",
                        "type": "page",
                        "route": "hrm.employees.index",
                        "priority": 2,
                        "actions": [
                            {"code": "view", "name": "View"},
                            {"code": "create", "name": "Create"},
                            {"code": "update", "name": "Update"},
                            {"code": "delete", "name": "Delete"},
                            {"code": "export", "name": "Export", "is_active": False},
                        ],
                    },
                    {
                        "code": "departments",
                        "name": "Departments",
                        "type": "section",
                        "priority": 1,
                        "actions": [
                            {"code": "view", "name": "View"},
                            {"code": "manage", "name": "Manage"},
                        ],
                    },
                ],
            },
            {
                "code": "legacy",
                "name": "Legacy",
                "priority": 0,
                "is_active": False,
                "components": [
                    {
                        "code": "archive",
                        "name": "Archive",
                        "actions": [{"code": "view", "name": "View"}],
                    },
                ],
            },
        ],
    },
    {
        "code": "crm",
        "category": "sales",
        "name": "CRM",
        "priority": 20,
        "min_plan": "professional",
        "dependencies": ["core"],
        "submodules": [
            {
                "code": "leads",
                "name": "Leads",
                "components": [
                    {
                        "code": "lead-list",
                        "name": "Lead List",
                        "actions": [
                            {"code": "view", "name": "View"},
                            {"code": "create", "name": "Create"},
                        ],
                    },
                ],
            },
        ],
    },
    {
        "code": "finance",
        "name": "Finance",
        "priority": 20,
        "min_plan": "business",
        "dependencies": ["core"],
        "submodules": [
            {
                "code": "accounts",
                "name": "Accounts",
                "components": [
                    {
                        "code": "ledger",
                        "name": "Ledger",
                        "actions": [
                            {"code": "view", "name": "View"},
                            {"code": "post", "name": "Post"},
                        ],
                    },
                ],
            },
        ],
    },
    {
        "code": "analytics",
        "category": "sales",
        "name": "Analytics",
        "priority": 5,
        "min_plan": "professional",
        "license_type": "addon",
        "dependencies": ["crm", "finance"],
        "submodules": [
            {
                "code": "dashboards",
                "name": "Dashboards",
                "components": [
                    {
                        "code": "overview",
                        "name": "Overview",
                        "type": "widget",
                        "actions": [{"code": "view", "name": "View"}],
                    },
                ],
            },
        ],
    },
    {
        "code": "compliance",
        "name": "Compliance",
        "priority": 30,
        "dependencies": ["core"],
        "is_active": False,
        "submodules": [
            {
                "code": "audits",
                "name": "Audits",
                "components": [
                    {
                        "code": "audit-log",
                        "name": "Audit Log",
                        "actions": [{"code": "view", "name": "View"}],
                    },
                ],
            },
        ],
    },
]


def sample_registry_data() -> dict[str, Any]:
    """Fresh deep copy of the sample tree, safe to mutate in a test."""
    return {"modules": copy.deepcopy(SAMPLE_MODULES)}


# =============================================================================
# ENGINE FIXTURES
# =============================================================================


@pytest.fixture
def registry_data() -> dict[str, Any]:
    return sample_registry_data()


@pytest.fixture
def registry(registry_data) -> Registry:
    return load_registry(registry_data, source="sample")


@pytest.fixture
def resolver(registry) -> EligibilityResolver:
    return EligibilityResolver(registry)


@pytest.fixture
def authorizer(registry) -> Authorizer:
    return Authorizer(registry)


@pytest.fixture
def projector(authorizer) -> MenuProjector:
    return MenuProjector(authorizer)


@pytest.fixture
def make_context():
    """Build an AccessContext from loose inputs."""
    def _make(plan="basic", active=(), granted=(), **kwargs) -> AccessContext:
        return AccessContext.create(plan, active, granted, **kwargs)
    return _make


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def test_config() -> AccessConfig:
    return AccessConfig(environment="test", context_timeout_seconds=1.0)


@pytest.fixture
def tenant_provider() -> StaticTenantProvider:
    provider = StaticTenantProvider()
    provider.set_tenant("acme", "professional", ["hrm", "crm"])
    provider.set_tenant("startup", "basic", [])
    return provider


@pytest.fixture
def grant_provider() -> StaticRoleGrantProvider:
    provider = StaticRoleGrantProvider()
    provider.define_role("hr_viewer", ["hrm.employees.employee-directory.view"], scope="own")
    provider.define_role("hr_manager", ["hrm.*"], scope="department")
    provider.define_role("sales_rep", ["crm.leads.*", "finance.*"], scope="team")
    provider.assign_role("alice", "hr_viewer")
    provider.assign_role("bob", "hr_manager")
    provider.assign_role("bob", "sales_rep")
    return provider


@pytest.fixture
def service(registry, tenant_provider, grant_provider, test_config) -> AccessService:
    return AccessService(
        registry,
        tenant_provider=tenant_provider,
        grant_provider=grant_provider,
        config=test_config,
    )

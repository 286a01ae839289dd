"""Seed data and display constants."""

from __future__ import annotations

from bpd_dashboard.models import TaskPriority, TaskStatus

INITIAL_DATA = {
    "tasks": [
        {
            "id": "t-binders-redacted",
            "name": "Redacted Subgrantee Binders",
            "description": "Process and verify redacted versions of subgrantee binders for public release.",
            "dependentTasks": ["t30"],
            "notes": [],
            "program": "BEAD",
            "assignedTo": "Dayna",
            "assignedToId": "u-dayna",
            "priority": "High",
            "startDate": "2025-12-29",
            "plannedEndDate": "2026-01-09",
            "actualEndDate": "",
            "status": "OPEN",
            "progress": 0,
            "updatedAt": "2025-12-29T09:14:40.014Z",
            "updatedBy": "System Admin",
        },
        {
            "id": "t-usda-allotment",
            "name": "USDA Advice Allotment Initial",
            "description": "Initial filing for USDA funding advice allotment.",
            "dependentTasks": [],
            "notes": [],
            "program": "USDA",
            "assignedTo": "Melia",
            "assignedToId": "u-melia",
            "priority": "High",
            "startDate": "2025-12-01",
            "plannedEndDate": "2025-12-15",
            "actualEndDate": "2025-12-15",
            "status": "COMPLETED",
            "progress": 100,
            "updatedAt": "2025-12-29T08:42:30.667Z",
            "updatedBy": "system",
        },
        {
            "id": "t-ptc-travel",
            "name": "Travel for PTC",
            "description": "Logistics and travel arrangements for the PTC conference.",
            "dependentTasks": [],
            "notes": [],
            "program": "BPD",
            "assignedTo": "Dolorez",
            "assignedToId": "u-dolorez",
            "priority": "High",
            "startDate": "2025-12-26",
            "plannedEndDate": "2026-01-09",
            "actualEndDate": "",
            "status": "IN_PROGRESS",
            "progress": 45,
            "updatedAt": "2025-12-29T09:15:40.079Z",
            "updatedBy": "System Admin",
        },
    ],
    "programs": [
        {"id": "p-bead", "name": "BEAD", "description": "Broadband Equity, Access, and Deployment", "color": "indigo", "createdAt": "2024-01-01T00:00:00Z", "createdBy": "u-admin"},
        {"id": "p-cpf", "name": "CPF", "description": "Capital Projects Fund", "color": "emerald", "createdAt": "2024-01-01T00:00:00Z", "createdBy": "u-admin"},
        {"id": "p-usda", "name": "USDA", "description": "USDA Broadband Technical Assistance", "color": "amber", "createdAt": "2024-01-01T00:00:00Z", "createdBy": "u-admin"},
        {"id": "p-bpd", "name": "BPD", "description": "Broadband Policy and Development", "color": "rose", "createdAt": "2024-01-01T00:00:00Z", "createdBy": "u-admin"},
    ],
    "users": [
        {"id": "u-admin", "name": "System Admin", "email": "admin@bpd.gov", "role": "Admin", "department": "Operations"},
        {"id": "u-glen", "name": "Glen", "email": "g.hunter@cnmi.gov", "role": "Manager", "department": "BEAD"},
        {"id": "u-melia", "name": "Melia", "email": "me.johnson@dof.gov.mp", "role": "Staff", "department": "BEAD"},
        {"id": "u-dolorez", "name": "Dolorez", "email": "d.salas@bpd.cnmi.gov", "role": "Admin", "department": "BEAD"},
    ],
}

PROGRAM_PALETTE = ("indigo", "emerald", "rose", "amber", "sky", "violet")

ROLES = ("Staff", "Manager", "Admin")

DEPARTMENTS = ("BEAD", "CPF", "USDA", "Operations")

# rich styles for each palette colour
PROGRAM_STYLES = {
    "indigo": "bold blue",
    "emerald": "bold green",
    "rose": "bold red",
    "amber": "bold yellow",
    "sky": "bold cyan",
    "violet": "bold magenta",
}

STATUS_STYLES = {
    TaskStatus.OPEN: "white",
    TaskStatus.IN_PROGRESS: "blue",
    TaskStatus.COMPLETED: "green",
    TaskStatus.ON_HOLD: "dark_orange",
}

PRIORITY_STYLES = {
    TaskPriority.LOW: "dim",
    TaskPriority.MEDIUM: "white",
    TaskPriority.HIGH: "yellow",
    TaskPriority.CRITICAL: "bold red",
}

"""
Default area permissions.

Used until the permissions record has been loaded from the store, and as the
fallback when loading fails.
"""

from typing import Dict

ScreenPermissions = Dict[str, Dict[str, bool]]

FULL = {"view": True, "edit": True}
READ_ONLY = {"view": True, "edit": False}

SUPERUSER_ROLES = {"Jefe", "Gerencia"}

DEFAULT_PERMISSIONS: Dict[str, ScreenPermissions] = {
    "Comercial": {
        "Dashboard": FULL,
        "Opportunities": FULL,
        "Prospects": FULL,
        "Clients": FULL,
        "Grilla": FULL,
        "PNTs": FULL,
        "Canjes": FULL,
        "Invoices": FULL,
        "Billing": FULL,
        "Calendar": FULL,
        "Licenses": FULL,
        "Approvals": FULL,
        "Activity": FULL,
        "Team": FULL,
        "Rates": FULL,
        "Reports": FULL,
        "Import": FULL,
    },
    "Recursos Humanos": {
        "Licenses": FULL,
        "Canjes": FULL,
        "Team": FULL,
    },
    "Pautado": {
        "Clients": READ_ONLY,
        "Opportunities": READ_ONLY,
        "PNTs": FULL,
        "Grilla": FULL,
    },
    "Administración": {
        "Dashboard": FULL,
        "Opportunities": FULL,
        "Clients": FULL,
        "Canjes": FULL,
        "Invoices": FULL,
        "Billing": FULL,
        "Team": FULL,
        "Rates": FULL,
        "Reports": FULL,
        "Import": FULL,
    },
    "Programación": {
        "Grilla": READ_ONLY,
        "PNTs": READ_ONLY,
    },
    "Redacción": {
        "PNTs": READ_ONLY,
    },
}

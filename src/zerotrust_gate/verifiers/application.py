"""Application domain: per-application authorized users plus request context."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..access.context import AccessRequest, DomainResult
from ..exceptions import RegistryError
from ..policy.models import Domain, Policy, RiskLevel
from .base import DomainVerifier

REQUIRED_CONTEXT = ("time", "location", "device")


@dataclass
class Application:
    app_id: str
    name: str = ""
    authorized_users: set[str] = field(default_factory=set)
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_id": self.app_id,
            "name": self.name,
            "authorized_users": sorted(self.authorized_users),
        }


class ApplicationVerifier(DomainVerifier):
    domain = Domain.APPLICATION

    def __init__(self):
        super().__init__()
        self._apps: dict[str, Application] = {}

    def default_policies(self) -> list[Policy]:
        return [
            Policy(
                policy_id="application-access",
                name="Application Access Control",
                domain=self.domain,
                description="Subjects must be explicitly authorized for each application",
                risk_level=RiskLevel.HIGH,
                policy_type="Authorization",
                rules={"least_privilege": True},
                owner="app-security",
            ),
            Policy(
                policy_id="application-context",
                name="Context-Aware Access",
                domain=self.domain,
                description="Requests must carry time, location and device attributes",
                risk_level=RiskLevel.MEDIUM,
                policy_type="ContextAwareness",
                rules={"required_context": list(REQUIRED_CONTEXT)},
                owner="app-security",
            ),
        ]

    # --- Application registry ---

    def register_application(self, app_id: str, name: str = "", users: Iterable[str] = ()) -> Application:
        app = Application(app_id=app_id, name=name or app_id, authorized_users=set(users))
        with self._lock.write():
            self._apps[app_id] = app
        return app

    def authorize_user(self, app_id: str, subject_id: str) -> None:
        with self._lock.write():
            app = self._apps.get(app_id)
            if app is None:
                raise RegistryError(f"unknown application: {app_id}")
            app.authorized_users.add(subject_id)

    def revoke_user(self, app_id: str, subject_id: str) -> bool:
        with self._lock.write():
            app = self._apps.get(app_id)
            if app is None:
                raise RegistryError(f"unknown application: {app_id}")
            if subject_id not in app.authorized_users:
                return False
            app.authorized_users.discard(subject_id)
            return True

    def get_application(self, app_id: str) -> Application | None:
        with self._lock.read():
            return self._apps.get(app_id)

    # --- Verification ---

    def verify(self, request: AccessRequest, policies: Iterable[Policy]) -> DomainResult:
        with self._lock.read():
            app = self._apps.get(request.resource_id)
            authorized = app is not None and request.subject_id in app.authorized_users
        if app is None:
            return self._fail("UnknownApplication", app_id=request.resource_id)
        if not authorized:
            return self._fail("SubjectNotAuthorized", app_id=app.app_id, subject_id=request.subject_id)

        required = set(REQUIRED_CONTEXT)
        for policy in self.enforced(policies):
            required.update(policy.rule("required_context", []))
        missing = sorted(k for k in required if not request.get(k))
        if missing:
            return self._fail("IncompleteContext", app_id=app.app_id, missing=missing)

        return self._pass("ApplicationAuthorized", app_id=app.app_id)

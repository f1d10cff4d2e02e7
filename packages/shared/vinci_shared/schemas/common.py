from enum import Enum


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


# Roles allowed to manage an organization (settings, members, invitations)
MANAGER_ROLES: frozenset["Role"] = frozenset({Role.OWNER, Role.ADMIN})


class Criticality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SurfaceType(str, Enum):
    REPO = "repo"
    SERVICE = "service"
    WEBAPP = "webapp"
    WORKER = "worker"
    INFRA = "infra"


class FeatureStatus(str, Enum):
    DRAFT = "draft"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class FeatureSource(str, Enum):
    MANUAL = "manual"
    JIRA = "jira"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELED = "canceled"
    EXPIRED = "expired"

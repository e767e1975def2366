"""SQLAlchemy table definitions."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cloudgate.db.base import Base, JSONType
from cloudgate.models.enums import (
    DeploymentState,
    DeploymentStatusReason,
    DeploymentStatusValue,
    DeploymentStrategy,
    RoleType,
)

GUID_LENGTH = 36


class OrganizationTable(Base):
    """Organizations table."""

    __tablename__ = "organizations"

    guid: Mapped[str] = mapped_column(String(GUID_LENGTH), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    spaces: Mapped[list["SpaceTable"]] = relationship(
        "SpaceTable", back_populates="organization"
    )


class SpaceTable(Base):
    """Spaces table - apps are grouped (and authorized) by space."""

    __tablename__ = "spaces"

    guid: Mapped[str] = mapped_column(String(GUID_LENGTH), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    organization_guid: Mapped[str] = mapped_column(
        String(GUID_LENGTH),
        ForeignKey("organizations.guid", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    organization: Mapped[OrganizationTable] = relationship(
        "OrganizationTable", back_populates="spaces"
    )

    __table_args__ = (
        UniqueConstraint("organization_guid", "name", name="uq_spaces_org_name"),
    )


class AppTable(Base):
    """Apps table."""

    __tablename__ = "apps"

    guid: Mapped[str] = mapped_column(String(GUID_LENGTH), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    space_guid: Mapped[str] = mapped_column(
        String(GUID_LENGTH),
        ForeignKey("spaces.guid", ondelete="CASCADE"),
        nullable=False,
    )
    revisions_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enable_ssh: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    droplet_guid: Mapped[str | None] = mapped_column(String(GUID_LENGTH), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    space: Mapped[SpaceTable] = relationship("SpaceTable")

    __table_args__ = (
        Index("idx_apps_space", "space_guid"),
    )


# Names are unique per space regardless of case
Index(
    "uq_apps_space_lower_name",
    AppTable.space_guid,
    func.lower(AppTable.name),
    unique=True,
)


class DeploymentTable(Base):
    """Deployments table."""

    __tablename__ = "deployments"

    guid: Mapped[str] = mapped_column(String(GUID_LENGTH), primary_key=True)
    state: Mapped[DeploymentState] = mapped_column(
        Enum(DeploymentState), nullable=False, default=DeploymentState.DEPLOYING
    )
    status_value: Mapped[DeploymentStatusValue] = mapped_column(
        Enum(DeploymentStatusValue), nullable=False, default=DeploymentStatusValue.ACTIVE
    )
    status_reason: Mapped[DeploymentStatusReason | None] = mapped_column(
        Enum(DeploymentStatusReason), nullable=True
    )
    last_healthy_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    strategy: Mapped[DeploymentStrategy] = mapped_column(
        Enum(DeploymentStrategy), nullable=False, default=DeploymentStrategy.ROLLING
    )

    # Artifacts
    droplet_guid: Mapped[str | None] = mapped_column(String(GUID_LENGTH), nullable=True)
    previous_droplet_guid: Mapped[str | None] = mapped_column(String(GUID_LENGTH), nullable=True)
    revision_guid: Mapped[str | None] = mapped_column(String(GUID_LENGTH), nullable=True)
    revision_version: Mapped[int | None] = mapped_column(Integer, nullable=True)

    app_guid: Mapped[str] = mapped_column(
        String(GUID_LENGTH),
        ForeignKey("apps.guid", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Relationships
    app: Mapped[AppTable] = relationship("AppTable")
    historical_related_processes: Mapped[list["DeploymentProcessTable"]] = relationship(
        "DeploymentProcessTable",
        order_by="DeploymentProcessTable.id",
        cascade="all, delete-orphan",
    )
    labels: Mapped[list["DeploymentLabelTable"]] = relationship(
        "DeploymentLabelTable",
        order_by="DeploymentLabelTable.id",
        cascade="all, delete-orphan",
    )
    annotations: Mapped[list["DeploymentAnnotationTable"]] = relationship(
        "DeploymentAnnotationTable",
        order_by="DeploymentAnnotationTable.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_deployments_app", "app_guid", "created_at"),
        Index("idx_deployments_state", "state"),
    )


class DeploymentProcessTable(Base):
    """Processes spawned by a deployment - append-only history."""

    __tablename__ = "deployment_processes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deployment_guid: Mapped[str] = mapped_column(
        String(GUID_LENGTH),
        ForeignKey("deployments.guid", ondelete="CASCADE"),
        nullable=False,
    )
    process_guid: Mapped[str] = mapped_column(String(GUID_LENGTH), nullable=False)
    process_type: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_deployment_processes_deployment", "deployment_guid", "id"),
    )


class DeploymentLabelTable(Base):
    """Deployment labels."""

    __tablename__ = "deployment_labels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resource_guid: Mapped[str] = mapped_column(
        String(GUID_LENGTH),
        ForeignKey("deployments.guid", ondelete="CASCADE"),
        nullable=False,
    )
    key_prefix: Mapped[str | None] = mapped_column(String(253), nullable=True)
    key_name: Mapped[str] = mapped_column(String(63), nullable=False)
    value: Mapped[str | None] = mapped_column(String(63), nullable=True)

    __table_args__ = (
        Index("idx_deployment_labels_resource", "resource_guid"),
    )


class DeploymentAnnotationTable(Base):
    """Deployment annotations."""

    __tablename__ = "deployment_annotations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resource_guid: Mapped[str] = mapped_column(
        String(GUID_LENGTH),
        ForeignKey("deployments.guid", ondelete="CASCADE"),
        nullable=False,
    )
    key_prefix: Mapped[str | None] = mapped_column(String(253), nullable=True)
    key_name: Mapped[str] = mapped_column(String(63), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_deployment_annotations_resource", "resource_guid"),
    )


class RoleMembershipTable(Base):
    """Role memberships - a user's role in one space or organization."""

    __tablename__ = "role_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_guid: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[RoleType] = mapped_column(Enum(RoleType), nullable=False)
    space_guid: Mapped[str | None] = mapped_column(
        String(GUID_LENGTH),
        ForeignKey("spaces.guid", ondelete="CASCADE"),
        nullable=True,
    )
    organization_guid: Mapped[str | None] = mapped_column(
        String(GUID_LENGTH),
        ForeignKey("organizations.guid", ondelete="CASCADE"),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint(
            "user_guid", "role", "space_guid", "organization_guid",
            name="uq_role_membership",
        ),
        Index("idx_role_memberships_user", "user_guid"),
    )


class EventTable(Base):
    """Audit events table - immutable lifecycle records."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guid: Mapped[str] = mapped_column(String(GUID_LENGTH), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(255), nullable=False)

    # What was acted upon
    actee: Mapped[str] = mapped_column(String(255), nullable=False)
    actee_type: Mapped[str] = mapped_column(String(255), nullable=False)
    actee_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Who acted
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_type: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    actor_username: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Assigned by the database at insert time
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )

    # Direct link to a live space (not set for delete requests)
    linked_space_guid: Mapped[str | None] = mapped_column(
        String(GUID_LENGTH),
        ForeignKey("spaces.guid", ondelete="SET NULL"),
        nullable=True,
    )

    # Denormalised scope, survives deletion of the space
    space_guid: Mapped[str | None] = mapped_column(String(GUID_LENGTH), nullable=True)
    organization_guid: Mapped[str | None] = mapped_column(String(GUID_LENGTH), nullable=True)

    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )

    __table_args__ = (
        Index("idx_events_actee", "actee", "timestamp"),
        Index("idx_events_type", "type", "timestamp"),
        Index("idx_events_space", "space_guid", "timestamp"),
        Index("idx_events_org", "organization_guid", "timestamp"),
    )

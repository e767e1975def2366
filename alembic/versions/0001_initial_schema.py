"""Initial CloudGate schema."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

GUID = sa.String(length=36)


def upgrade() -> None:
    """Create base tables and enums."""
    bind = op.get_bind()

    deploymentstate = sa.Enum(
        "DEPLOYING", "DEPLOYED", "CANCELING", "CANCELED", name="deploymentstate"
    )
    deploymentstatusvalue = sa.Enum("ACTIVE", "FINALIZED", name="deploymentstatusvalue")
    deploymentstatusreason = sa.Enum(
        "DEPLOYING",
        "CANCELING",
        "DEPLOYED",
        "CANCELED",
        "SUPERSEDED",
        name="deploymentstatusreason",
    )
    deploymentstrategy = sa.Enum("ROLLING", name="deploymentstrategy")
    roletype = sa.Enum(
        "SPACE_DEVELOPER",
        "SPACE_AUDITOR",
        "SPACE_MANAGER",
        "ORGANIZATION_MANAGER",
        name="roletype",
    )

    for enum_type in (
        deploymentstate,
        deploymentstatusvalue,
        deploymentstatusreason,
        deploymentstrategy,
        roletype,
    ):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "organizations",
        sa.Column("guid", GUID, primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("name", name="uq_organizations_name"),
    )

    op.create_table(
        "spaces",
        sa.Column("guid", GUID, primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "organization_guid",
            GUID,
            sa.ForeignKey("organizations.guid", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("organization_guid", "name", name="uq_spaces_org_name"),
    )

    op.create_table(
        "apps",
        sa.Column("guid", GUID, primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "space_guid",
            GUID,
            sa.ForeignKey("spaces.guid", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("revisions_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("enable_ssh", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("droplet_guid", GUID, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_apps_space", "apps", ["space_guid"])
    op.create_index(
        "uq_apps_space_lower_name",
        "apps",
        ["space_guid", sa.text("lower(name)")],
        unique=True,
    )

    op.create_table(
        "deployments",
        sa.Column("guid", GUID, primary_key=True),
        sa.Column("state", deploymentstate, nullable=False),
        sa.Column("status_value", deploymentstatusvalue, nullable=False),
        sa.Column("status_reason", deploymentstatusreason, nullable=True),
        sa.Column("last_healthy_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("strategy", deploymentstrategy, nullable=False),
        sa.Column("droplet_guid", GUID, nullable=True),
        sa.Column("previous_droplet_guid", GUID, nullable=True),
        sa.Column("revision_guid", GUID, nullable=True),
        sa.Column("revision_version", sa.Integer(), nullable=True),
        sa.Column(
            "app_guid",
            GUID,
            sa.ForeignKey("apps.guid", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_deployments_app", "deployments", ["app_guid", "created_at"])
    op.create_index("idx_deployments_state", "deployments", ["state"])

    op.create_table(
        "deployment_processes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "deployment_guid",
            GUID,
            sa.ForeignKey("deployments.guid", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("process_guid", GUID, nullable=False),
        sa.Column("process_type", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_deployment_processes_deployment",
        "deployment_processes",
        ["deployment_guid", "id"],
    )

    for table, value_type in (
        ("deployment_labels", sa.String(length=63)),
        ("deployment_annotations", sa.Text()),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "resource_guid",
                GUID,
                sa.ForeignKey("deployments.guid", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("key_prefix", sa.String(length=253), nullable=True),
            sa.Column("key_name", sa.String(length=63), nullable=False),
            sa.Column("value", value_type, nullable=True),
        )
        op.create_index(f"idx_{table}_resource", table, ["resource_guid"])

    op.create_table(
        "role_memberships",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_guid", sa.String(length=255), nullable=False),
        sa.Column("role", roletype, nullable=False),
        sa.Column(
            "space_guid",
            GUID,
            sa.ForeignKey("spaces.guid", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "organization_guid",
            GUID,
            sa.ForeignKey("organizations.guid", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.UniqueConstraint(
            "user_guid", "role", "space_guid", "organization_guid",
            name="uq_role_membership",
        ),
    )
    op.create_index("idx_role_memberships_user", "role_memberships", ["user_guid"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("guid", GUID, nullable=False),
        sa.Column("type", sa.String(length=255), nullable=False),
        sa.Column("actee", sa.String(length=255), nullable=False),
        sa.Column("actee_type", sa.String(length=255), nullable=False),
        sa.Column("actee_name", sa.String(length=255), nullable=True),
        sa.Column("actor", sa.String(length=255), nullable=False),
        sa.Column("actor_type", sa.String(length=255), nullable=False),
        sa.Column("actor_name", sa.String(length=255), nullable=True),
        sa.Column("actor_username", sa.String(length=255), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.Column(
            "linked_space_guid",
            GUID,
            sa.ForeignKey("spaces.guid", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("space_guid", GUID, nullable=True),
        sa.Column("organization_guid", GUID, nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.UniqueConstraint("guid", name="uq_events_guid"),
    )
    op.create_index("idx_events_actee", "events", ["actee", "timestamp"])
    op.create_index("idx_events_type", "events", ["type", "timestamp"])
    op.create_index("idx_events_space", "events", ["space_guid", "timestamp"])
    op.create_index("idx_events_org", "events", ["organization_guid", "timestamp"])


def downgrade() -> None:
    """Drop all CloudGate tables and enums."""
    op.drop_table("events")
    op.drop_table("role_memberships")
    op.drop_table("deployment_annotations")
    op.drop_table("deployment_labels")
    op.drop_table("deployment_processes")
    op.drop_table("deployments")
    op.drop_table("apps")
    op.drop_table("spaces")
    op.drop_table("organizations")

    bind = op.get_bind()
    for name in (
        "roletype",
        "deploymentstrategy",
        "deploymentstatusreason",
        "deploymentstatusvalue",
        "deploymentstate",
    ):
        sa.Enum(name=name).drop(bind, checkfirst=True)

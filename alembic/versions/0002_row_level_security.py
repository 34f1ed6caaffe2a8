"""row_level_security

Revision ID: 0002_row_level_security
Revises: 0001_initial_schema
Create Date: 2025-08-04 09:40:12.118553

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0002_row_level_security'
down_revision: Union[str, None] = '0001_initial_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# tables whose rows belong to a plant; the API sets app.accessible_plants per transaction
PLANT_SCOPED_TABLES = ('enrollments', 'progress', 'activity_events', 'question_events', 'section_progress')


def upgrade() -> None:
    # '*' opens every plant; otherwise a comma separated list of plant ids
    op.execute("""
        CREATE OR REPLACE FUNCTION app_can_access_plant(target uuid) RETURNS boolean
        LANGUAGE sql STABLE AS $$
            SELECT coalesce(current_setting('app.accessible_plants', true), '') = '*'
                OR target::text = ANY (string_to_array(coalesce(current_setting('app.accessible_plants', true), ''), ','))
        $$
    """)
    op.execute("""
        CREATE OR REPLACE FUNCTION app_current_user_id() RETURNS text
        LANGUAGE sql STABLE AS $$
            SELECT nullif(current_setting('app.current_user_id', true), '')
        $$
    """)

    for table in ('plants', 'profiles', 'admin_roles', *PLANT_SCOPED_TABLES):
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY")

    # plant names are needed to sign up, so reading is open
    op.execute("CREATE POLICY plants_read ON plants FOR SELECT USING (true)")
    op.execute("""
        CREATE POLICY plants_write ON plants FOR ALL
        USING (current_setting('app.accessible_plants', true) = '*')
        WITH CHECK (current_setting('app.accessible_plants', true) = '*')
    """)

    op.execute("""
        CREATE POLICY profiles_tenant ON profiles FOR ALL
        USING (id::text = app_current_user_id() OR app_can_access_plant(plant_id))
        WITH CHECK (id::text = app_current_user_id() OR app_can_access_plant(plant_id))
    """)

    op.execute("""
        CREATE POLICY admin_roles_tenant ON admin_roles FOR ALL
        USING (
            user_id::text = app_current_user_id()
            OR current_setting('app.accessible_plants', true) = '*'
            OR (plant_id IS NOT NULL AND app_can_access_plant(plant_id))
        )
        WITH CHECK (current_setting('app.accessible_plants', true) = '*')
    """)

    for table in PLANT_SCOPED_TABLES:
        op.execute(f"""
            CREATE POLICY {table}_tenant ON {table} FOR ALL
            USING (app_can_access_plant(plant_id))
            WITH CHECK (app_can_access_plant(plant_id))
        """)


def downgrade() -> None:
    for table in PLANT_SCOPED_TABLES:
        op.execute(f"DROP POLICY IF EXISTS {table}_tenant ON {table}")
    op.execute("DROP POLICY IF EXISTS admin_roles_tenant ON admin_roles")
    op.execute("DROP POLICY IF EXISTS profiles_tenant ON profiles")
    op.execute("DROP POLICY IF EXISTS plants_write ON plants")
    op.execute("DROP POLICY IF EXISTS plants_read ON plants")

    for table in ('plants', 'profiles', 'admin_roles', *PLANT_SCOPED_TABLES):
        op.execute(f"ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")

    op.execute("DROP FUNCTION IF EXISTS app_current_user_id()")
    op.execute("DROP FUNCTION IF EXISTS app_can_access_plant(uuid)")

# Supabase table: provider_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- provider_id: uuid (foreign key to providers.id, not null)
- user_id: uuid (foreign key to auth.users.id, not null)
- role: provider_role (not null) - values: owner, admin, supervisor, staff, viewer
  (rows created before the rename may still hold 'manager', read as supervisor)
- status: text (not null, default: 'invited') - values: active, invited, suspended
- team_id: uuid (foreign key to teams.id, nullable)
- invited_by: uuid (nullable)
- joined_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- unique (provider_id, user_id)

Supabase table: audit_logs
- id: uuid (primary key)
- provider_id: uuid (not null)
- user_id: uuid (actor, not null)
- action: text - e.g. member_team_updated, member_role_updated, member_status_updated, member_removed, shift_deleted
- resource_type: text
- resource_id: uuid
- details: jsonb
- created_at: timestamp (default: now())

Function: get_user_metadata(user_id uuid)
  RETURNS TABLE (id uuid, email text, raw_user_meta_data jsonb)
  SECURITY DEFINER view onto auth.users for display names.
"""

# Supabase table: teams
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- provider_id: uuid (foreign key to providers.id, not null)
- service_location_id: uuid (foreign key to service_locations.id, not null)
- name: text (not null) - unique per (provider_id, service_location_id)
- description: text (nullable)
- daily_capacity: integer (nullable) - max confirmed/in-progress bookings per event date
- max_concurrent_events: integer (nullable)
- status: text (not null, default: 'active') - values: active, inactive, archived
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Function: get_team_capacity_info(p_team_id uuid, p_event_date date)
  RETURNS TABLE (
    team_id uuid, team_name text, daily_capacity integer,
    max_concurrent_events integer,
    bookings_on_date integer,       -- confirmed + in_progress bookings on that date
    remaining_capacity integer      -- NULL when daily_capacity is NULL (unlimited)
  )
"""

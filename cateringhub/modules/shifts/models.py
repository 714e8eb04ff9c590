# Supabase table: shifts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- booking_id: uuid (foreign key to bookings.id, not null)
- user_id: uuid (foreign key to auth.users.id, nullable)
- worker_profile_id: uuid (foreign key to worker_profiles.id, nullable)
  CHECK exactly one of user_id / worker_profile_id is set
- role: text (nullable) - e.g. "Supervisor", "Staff", "Server"
- scheduled_start: timestamptz (nullable)
- scheduled_end: timestamptz (nullable) - CHECK scheduled_end > scheduled_start
- actual_start: timestamptz (nullable) - set by check-in
- actual_end: timestamptz (nullable) - set by check-out, CHECK actual_end > actual_start
- status: text (not null, default: 'scheduled') - values: scheduled, checked_in, checked_out, cancelled
- notes: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""

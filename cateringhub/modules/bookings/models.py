# Supabase table: bookings
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- provider_id: uuid (foreign key to providers.id, not null)
- customer_id: uuid (foreign key to auth.users.id, nullable) - null for manual bookings
- service_location_id: uuid (foreign key to service_locations.id, nullable)
- team_id: uuid (foreign key to teams.id, nullable)
- customer_name: text (not null)
- customer_email: text (nullable)
- customer_phone: text (nullable)
- event_date: date (not null)
- event_time: time (nullable)
- event_type: text (nullable)
- guest_count: integer (nullable, > 0)
- venue_name: text (nullable)
- venue_address: text (nullable)
- estimated_budget: numeric (nullable, >= 0)
- base_price: numeric (nullable, >= 0)
- total_price: numeric (nullable)
- special_requests: text (nullable)
- notes: text (nullable)
- status: booking_status (not null, default: 'pending') - values: pending, confirmed, in_progress, completed, cancelled
- source: text (not null, default: 'auto') - values: manual, auto
- created_by: uuid (nullable) - member who entered a manual booking
- confirmed_at, completed_at, cancelled_at: timestamptz (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Function: create_manual_booking(
    p_provider_id, p_customer_name, p_event_date, p_service_location_id,
    p_customer_phone, p_customer_email, p_event_time, p_event_type,
    p_guest_count, p_venue_name, p_venue_address, p_estimated_budget,
    p_special_requests, p_notes, p_base_price, p_team_id,
    p_status DEFAULT 'pending'
) RETURNS TABLE (id, status, event_date, source, base_price, total_price, created_at, created_by)
  Raises when the caller lacks the role, the name is blank, the date is past
  for an open booking, guest_count <= 0, base_price < 0, or the team is not
  an active team of the provider.
"""

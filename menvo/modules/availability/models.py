# Supabase table: mentor_availability
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

mentor_availability:
- id: uuid (primary key)
- mentor_id: uuid (foreign key to profiles.id, not null)
- day_of_week: smallint (not null, 0 = Sunday .. 6 = Saturday)
- start_time: time (not null)
- end_time: time (not null)
- timezone: text (not null, IANA name, default 'America/Sao_Paulo')
- is_active: boolean (default: true)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- check constraint start_time < end_time

Overlapping active windows for the same mentor and weekday are rejected by the
service on write; the slot generator also skips duplicate instants.
"""

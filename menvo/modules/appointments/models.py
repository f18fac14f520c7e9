# Supabase table: appointments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

appointments:
- id: uuid (primary key)
- mentor_id: uuid (foreign key to profiles.id, not null)
- mentee_id: uuid (foreign key to profiles.id, not null)
- scheduled_at: timestamptz (not null)
- duration_minutes: integer (default: 60, check > 0)
- status: text (scheduled | completed | cancelled | no_show, default: scheduled)
- message: text (nullable, note from the mentee)
- cancellation_reason: text (nullable)
- cancelled_by: uuid (nullable)
- organization_id: uuid (nullable, foreign key to organizations.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Required index, the only guard against two sessions booking the same slot:

    CREATE UNIQUE INDEX appointments_mentor_slot_active
        ON appointments (mentor_id, scheduled_at)
        WHERE status <> 'cancelled';

A violation surfaces from PostgREST as error code 23505 and is returned to the
caller as a 409 conflict. Cancelled rows drop out of the index, so cancelling
frees the slot.
"""

# Supabase table: waiting_list
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

waiting_list:
- id: uuid (primary key)
- name: text (not null)
- email: text (unique, stored trimmed and lower-cased)
- whatsapp: text (nullable)
- reason: text (nullable)
- status: text (pending | approved | rejected, default: pending)
- notes: text (nullable, admin only)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""

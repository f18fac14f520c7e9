# Supabase table: newsletter_subscriptions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

newsletter_subscriptions:
- id: uuid (primary key)
- email: text (not null, lower-cased)
- name: text (nullable)
- whatsapp: text (nullable)
- consent_given: boolean (not null)
- consent_date: timestamp (not null)
- marketing_consent: boolean (default: false)
- ip_address: text (nullable)
- user_agent: text (nullable)
- status: text (active | unsubscribed)
- subscribed_at: timestamp (default: now())
- unsubscribed_at: timestamp (nullable)

At most one active subscription per email; unsubscribed rows are kept as
consent history.
"""

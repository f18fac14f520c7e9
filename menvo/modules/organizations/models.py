# Supabase tables: organizations, organization_members, organization_activity_log
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

organizations:
- id: uuid (primary key)
- name: text (not null)
- slug: text (unique, derived from name)
- type: text (company | ngo | hackathon | sebrae | community | other)
- status: text (pending_approval | active | suspended | inactive)
- description, logo_url, website, contact_email, contact_phone: text
- created_by: uuid (foreign key to auth.users.id)
- approved_by: uuid (nullable)
- approved_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

organization_members:
- id: uuid (primary key)
- organization_id: uuid (foreign key to organizations.id)
- user_id: uuid (nullable until an invited email signs up)
- email: text
- role: text (admin | mentor | mentee)
- status: text (invited | active | declined | left | expired | cancelled)
- invitation_token: text (unique, nullable)
- invited_by: uuid (nullable)
- invited_at, activated_at, expires_at, updated_at: timestamp

organization_activity_log:
- id: uuid (primary key)
- organization_id: uuid
- activity_type: text (organization_created | organization_approved | member_invited | member_joined | member_left)
- actor_id: uuid
- target_id: uuid (nullable)
- metadata: jsonb
- created_at: timestamp (default: now())
"""

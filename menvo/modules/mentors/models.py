# Mentors are profiles rows with role = 'mentor'; see profiles/models.py

"""
Expected Supabase table structure:

verification_logs:
- id: uuid (primary key)
- mentor_id: uuid (foreign key to profiles.id)
- admin_id: uuid (foreign key to auth.users.id)
- action: text (verified | unverified)
- notes: text (nullable)
- created_at: timestamp (default: now())
"""

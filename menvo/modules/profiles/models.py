# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text
- full_name, first_name, last_name: text (nullable)
- bio: text (nullable)
- city, state, country: text (nullable)
- linkedin_url, github_url, website_url, avatar_url: text (nullable)
- presentation_video_url: text (nullable) - required for mentors
- expertise_areas: text[] (nullable) - required (non-empty) for mentors
- languages: text[] (nullable)
- current_position, current_company: text (nullable)
- session_price: numeric (nullable)
- years_experience: integer (nullable)
- cv_url: text (nullable) - set by CV upload
- role: text (nullable) - mirror of the auth role claim
- is_profile_complete: boolean (default: false)
- verified_at: timestamptz (nullable) - set by an admin only
- status: text (default: 'active') - active | suspended | deactivated
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Rows are created on the first profile-completion submission and never
hard-deleted. A mentor with verified_at null is pending verification.
"""

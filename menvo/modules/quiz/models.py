# Supabase table: quiz_responses
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

quiz_responses:
- id: uuid (primary key)
- name: text (not null)
- email: text (not null)
- linkedin_url: text (nullable)
- career_moment: text
- mentorship_experience: text
- development_areas: text[]
- current_challenge: text
- future_vision: text
- share_knowledge: text
- personal_life_help: text
- analysis_status: text (pending | completed | failed)
- ai_analysis: jsonb (nullable, written by the analyze-quiz Edge Function)
- processed_at: timestamp (nullable, written by the Edge Function)
- created_at: timestamp (default: now())
"""

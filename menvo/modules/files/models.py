# Supabase table: user_files
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

user_files:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null)
- file_name: text (original name as uploaded)
- file_size: integer (bytes)
- content_type: text
- category: text (cv | document)
- s3_key: text (unique, users/{user_id}/{category}/{uuid}-{name})
- s3_url: text
- created_at: timestamp (default: now())

Objects live in a private S3 bucket; downloads go through presigned URLs.
"""

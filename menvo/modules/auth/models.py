# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - User login, refresh and session management
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.refresh_session() - Exchange a refresh token for a new token pair
- auth.get_user() - Get current user from JWT token
- auth.admin.update_user_by_id() - Write server-side claims (service role key)

Role claim:
- auth.users.raw_app_meta_data ->> 'role': one of mentee | mentor | admin | company | recruiter
- absent until the user picks a role; only the service role can write it
- tokens issued before a role change still carry the old claims, so clients
  call /auth/refresh after /auth/select-role
"""

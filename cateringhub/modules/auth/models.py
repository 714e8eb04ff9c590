# Supabase Auth
# This module uses Supabase's built-in authentication system.
# Provider-scoped roles are NOT stored on the auth user; they live in
# provider_members (see modules/members/models.py) and are re-read on every
# request.

"""
Supabase Auth provides:
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

Display names come from auth.users.raw_user_meta_data (full_name, avatar_url),
exposed to other users through the get_user_metadata(user_id) function.
"""

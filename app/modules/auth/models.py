# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - Invited and self-registered users (auth.users table)
# - Password sign-in, magic links, invite and recovery links
# - JWT access/refresh token issuance and PKCE code exchange
# - Password hashing and security

"""
Supabase Auth provides:
- auth.sign_in_with_password() - Authenticate users
- auth.set_session() - Adopt the access/refresh pair from an implicit-flow redirect
- auth.exchange_code_for_session() - Trade a PKCE authorization code for a session
- auth.get_user() - Get current user from JWT token
- auth.update_user() - Set the password after following an invite or recovery link
- auth.admin.sign_out(jwt) - Revoke the refresh tokens of a signed-in user
- auth.admin.invite_user_by_email() / auth.admin.delete_user() - service role only

The browser keeps the session in the sb-access-token / sb-refresh-token cookies.
Every new auth.users row gets a matching public.profiles row via a database trigger.
"""

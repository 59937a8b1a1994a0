# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id on delete cascade)
- email: text (not null) - synced from auth.users
- full_name: text (nullable)
- avatar_url: text (nullable)
- role: user_role enum (participant | moderator | admin, default: participant)
- bio: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Note: Deleting the auth.users row removes the profile through the cascade.
RLS lets every user read profiles and update only their own row; admins may update role.
"""

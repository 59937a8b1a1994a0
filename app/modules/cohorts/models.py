# Supabase tables: cohorts, cohort_members, encouragements
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

cohorts:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- start_date: date (nullable)
- end_date: date (nullable)
- is_active: boolean (default: true)
- created_by: uuid (foreign key to profiles.id, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

cohort_members:
- id: uuid (primary key)
- cohort_id: uuid (foreign key to cohorts.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- role: text (not null, default: 'participant') - values: participant, moderator
- joined_at: timestamp (default: now())
- unique constraint on (cohort_id, user_id)

encouragements:
- id: uuid (primary key)
- cohort_id: uuid (foreign key to cohorts.id, not null)
- author_id: uuid (foreign key to profiles.id, not null)
- content: text (not null)
- type: encouragement_type enum (encouragement | prayer, default: encouragement)
- created_at: timestamp (default: now())

Encouragements have no update path. A participant belongs to one cohort; the admin
API skips users that already belong to a cohort.
"""

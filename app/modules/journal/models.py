# Supabase table: journal_entries
# Actual operations are handled via Supabase SDK in service.py

"""
journal_entries:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- cohort_id: uuid (nullable)
- title: text (nullable)
- content: text (not null)
- prompt_id: uuid (nullable)
- is_private: boolean (default: true)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Entries are private to their author: RLS allows access only where user_id = auth.uid(),
and every query here also filters on user_id.
"""

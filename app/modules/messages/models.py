# Supabase table: messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

messages:
- id: uuid (primary key)
- cohort_id: uuid (foreign key to cohorts.id, not null)
- sender_id: uuid (foreign key to profiles.id, not null)
- recipient_id: uuid (foreign key to profiles.id, nullable) - null = sent to the whole cohort
- content: text (not null)
- message_type: message_type enum (announcement | prompt | general | private, default: general)
- is_pinned: boolean (default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Private messages always carry both sender_id and recipient_id.
"""

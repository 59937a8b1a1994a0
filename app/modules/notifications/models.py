# Supabase tables: fcm_tokens, notifications
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

fcm_tokens:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- token: text (not null) - Firebase Cloud Messaging registration token
- device_info: text (nullable) - browser user agent
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
- unique constraint on (user_id, token)

notifications:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- title: text (not null)
- body: text (not null)
- type: notification_type enum (message | announcement | prompt | document)
- reference_id: uuid (nullable) - id of the message or document it points at
- is_read: boolean (default: false)
- created_at: timestamp (default: now())

Delivery of push messages to the registered tokens is done by Firebase, outside this service.
"""

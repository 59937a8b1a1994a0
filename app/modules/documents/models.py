# Supabase table: documents, storage bucket: documents
# Actual operations are handled via Supabase SDK in service.py

"""
documents:
- id: uuid (primary key)
- cohort_id: uuid (foreign key to cohorts.id, not null)
- uploaded_by: uuid (foreign key to profiles.id, not null)
- title: text (not null)
- description: text (nullable)
- file_path: text (not null) - object key inside the "documents" storage bucket
- file_type: text (not null) - MIME type
- file_size: bigint (not null) - bytes
- created_at: timestamp (default: now())

Files are private; downloads go through signed URLs that expire after one hour.
"""

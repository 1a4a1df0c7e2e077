"""Application-wide constants."""

import uuid

# Declared MIME types accepted for ingestion
ALLOWED_CONTENT_TYPES = {
    "application/pdf": ".pdf",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": ".pptx",
    "application/vnd.ms-powerpoint": ".ppt",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "text/plain": ".txt",
    "text/csv": ".csv",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
    "application/vnd.ms-excel": ".xls",
}

# Namespace for deriving per-account chat session ids
SESSION_NAMESPACE = uuid.UUID("5f0b8c1e-3d7a-4c52-9a61-2f4e8d9b7c10")

# Roles allowed to read other users' sessions
MODERATOR_ROLES = {"moderator", "admin"}

# Longest failure reason shown in an outcome message
MAX_FAILURE_REASON_LENGTH = 300
